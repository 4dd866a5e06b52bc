"""
Queue ordering works on plain dictionaries, so these tests need no database.
"""
from datetime import date

from clinic.services.queue import build_provider_queue, build_provider_queues, is_paid, sort_queue

DAY = date(2024, 5, 1)


def appt(id, status='pending', at='2024-05-01T09:00:00+00:00', paid=False, staff=1, total='40.00'):
    return {
        'id': id,
        'staffId': staff,
        'status': status,
        'datetime': at,
        'billingStatus': 'paid' if paid else 'billed',
        'totalAmount': total,
        'paidAmount': total if paid else '0.00',
    }


def test_is_paid_by_billing_status_or_amount():
    assert is_paid({'billingStatus': 'paid'})
    assert is_paid({'billingStatus': 'billed', 'totalAmount': '40.00', 'paidAmount': '40.00'})
    assert is_paid({'billingStatus': 'billed', 'totalAmount': 40, 'paidAmount': 45})
    assert not is_paid({'billingStatus': 'billed', 'totalAmount': '40.00', 'paidAmount': '39.99'})
    assert not is_paid({'billingStatus': 'billed', 'totalAmount': None, 'paidAmount': '10'})
    assert not is_paid({})


def test_paid_appointments_jump_ahead_of_earlier_unpaid_ones():
    early_unpaid = appt(1, at='2024-05-01T08:00:00+00:00')
    late_paid = appt(2, at='2024-05-01T11:00:00+00:00', paid=True)
    assert [a['id'] for a in sort_queue([early_unpaid, late_paid])] == [2, 1]


def test_same_payment_state_orders_by_time_then_id():
    a = appt(5, at='2024-05-01T10:00:00+00:00', paid=True)
    b = appt(3, at='2024-05-01T09:00:00+00:00', paid=True)
    c = appt(4, at='2024-05-01T09:00:00+00:00', paid=True)
    assert [x['id'] for x in sort_queue([a, b, c])] == [3, 4, 5]


def test_missing_datetime_sorts_last_within_its_group():
    undated = appt(1, at=None, paid=True)
    dated = appt(2, at='2024-05-01T23:00:00+00:00', paid=True)
    assert [x['id'] for x in sort_queue([undated, dated])] == [2, 1]


def test_next_up_is_the_first_paid_waiting_when_slot_is_free():
    queue = build_provider_queue([
        appt(1, at='2024-05-01T08:00:00+00:00'),
        appt(2, status='checked_in', at='2024-05-01T09:00:00+00:00', paid=True),
        appt(3, status='completed', paid=True),
        appt(4, status='cancelled'),
    ])
    assert queue['active'] is None
    assert [a['id'] for a in queue['waiting']] == [2, 1]
    assert queue['completedCount'] == 1
    assert queue['nextUpId'] == 2


def test_no_next_up_while_someone_is_in_progress():
    queue = build_provider_queue([
        appt(1, status='in_progress', paid=True),
        appt(2, status='confirmed', paid=True),
    ])
    assert queue['active']['id'] == 1
    assert queue['nextUpId'] is None


def test_no_next_up_when_head_of_queue_is_unpaid():
    queue = build_provider_queue([appt(1), appt(2, at='2024-05-01T10:00:00+00:00')])
    assert queue['nextUpId'] is None


def test_provider_columns_for_the_day():
    staff = [
        {'id': 1, 'fullName': 'Dr. A', 'type': 'doctor', 'specialization': 'Cardiology'},
        {'id': 2, 'fullName': 'Nurse B', 'type': 'nurse', 'specialization': ''},
        {'id': 3, 'fullName': 'Clerk C', 'type': 'admin', 'specialization': ''},
        {'id': 4, 'fullName': 'Dr. Idle', 'type': 'doctor', 'specialization': ''},
    ]
    appointments = [
        appt(1, staff=1, paid=True),
        appt(2, staff=2),
        appt(3, staff=3),
        appt(4, staff=1, at='2024-05-02T09:00:00+00:00', paid=True),
    ]
    columns = build_provider_queues(appointments, staff, DAY)
    assert [c['staff']['id'] for c in columns] == [1, 2]
    assert columns[0]['staff'] == {'id': 1, 'fullName': 'Dr. A', 'type': 'doctor', 'specialization': 'Cardiology'}
    assert [a['id'] for a in columns[0]['waiting']] == [1]
    assert columns[0]['nextUpId'] == 1
    assert columns[1]['nextUpId'] is None
