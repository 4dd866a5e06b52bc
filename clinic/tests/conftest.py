from decimal import Decimal
from itertools import count

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from clinic.models import Bed, MedicalStaff, Patient, User

_seq = count(1)


@pytest.fixture(autouse=True)
def _clear_cache():
    # throttle counters and cached settings live in the local-memory cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_user(db):
    def _make(role='admin', username=None, password='P@ssw0rd!234', **extra):
        return User.objects.create_user(
            username=username or f'{role}{next(_seq)}', password=password, role=role, **extra
        )
    return _make


@pytest.fixture
def api_as(make_user):
    """APIClient force-authenticated as a fresh user of ``role``."""
    def _client(role='admin'):
        client = APIClient()
        client.force_authenticate(user=make_user(role))
        return client
    return _client


@pytest.fixture
def make_patient(db):
    def _make(full_name='Jane Doe', **fields):
        fields.setdefault('patient_code', f'P9901{next(_seq):02d}')
        return Patient.objects.create(full_name=full_name, **fields)
    return _make


@pytest.fixture
def patient(make_patient):
    return make_patient()


@pytest.fixture
def make_staff(db):
    def _make(full_name='Dr. Sara Haddad', type='doctor', **fields):
        fields.setdefault('employee_id', f'DOC-{next(_seq):04d}')
        fields.setdefault('consultation_fee', Decimal('40.00'))
        fields.setdefault('consultation_fee_followup', Decimal('20.00'))
        fields.setdefault('consultation_fee_emergency', Decimal('80.00'))
        return MedicalStaff.objects.create(full_name=full_name, type=type, **fields)
    return _make


@pytest.fixture
def doctor(make_staff):
    return make_staff()


@pytest.fixture
def make_bed(db):
    def _make(room_number=None, cost='100.00', **fields):
        return Bed.objects.create(
            room_number=room_number or f'G-{next(_seq)}', cost_per_day=Decimal(cost), **fields
        )
    return _make


@pytest.fixture
def bed(make_bed):
    return make_bed()
