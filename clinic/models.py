"""
Database models for the AllCare hospital administration backend.

The models capture the registry (patients, staff), the clinical flows
(appointments, admissions, lab/nurse/operation requests, pharmacy) and
the money side (bills, bill items, treasury transactions).  Field names
mirror the JSON the front-end consumes so the views can translate rows
to camelCase dictionaries without lookup tables.
"""
from __future__ import annotations

from decimal import Decimal

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


def _money(**kwargs):
    return models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'), **kwargs)


class User(AbstractUser):
    """System user with a single role.

    The role decides the permission set (see :mod:`clinic.rbac`).
    """
    ROLE_CHOICES = [
        ('admin', 'Administrator'),
        ('manager', 'Manager'),
        ('receptionist', 'Receptionist'),
        ('accountant', 'Accountant'),
        ('technician', 'Technician'),
        ('doctor', 'Doctor'),
        ('nurse', 'Nurse'),
        ('pharmacist', 'Pharmacist'),
        ('hr', 'Human Resources'),
    ]
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='receptionist', db_index=True)
    full_name = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=32, blank=True)

    def display_name(self) -> str:
        return self.full_name or self.get_full_name() or self.username

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class RolePermission(models.Model):
    """Stored override of the default permission list of a role."""
    role = models.CharField(max_length=20, unique=True)
    permissions = models.JSONField(default=list, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.role


# ---------------------------------------------------------------------------
# Configuration catalogs
# ---------------------------------------------------------------------------
class CatalogEntry(models.Model):
    """Bilingual catalog row shared by the configuration lists."""
    name_en = models.CharField(max_length=255)
    name_ar = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        abstract = True
        ordering = ['name_en']

    def __str__(self) -> str:
        return self.name_en


class Department(CatalogEntry):
    description_en = models.TextField(blank=True)
    description_ar = models.TextField(blank=True)


class Specialization(CatalogEntry):
    related_role = models.CharField(max_length=20, blank=True)


class InsuranceProvider(CatalogEntry):
    pass


class Bank(CatalogEntry):
    pass


class PaymentMethod(CatalogEntry):
    pass


class TaxRate(CatalogEntry):
    rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0'))


class LabTest(CatalogEntry):
    category_en = models.CharField(max_length=255, blank=True)
    category_ar = models.CharField(max_length=255, blank=True)
    cost = _money()
    normal_range = models.CharField(max_length=255, blank=True)


class NurseService(CatalogEntry):
    description_en = models.TextField(blank=True)
    description_ar = models.TextField(blank=True)
    cost = _money()


class OperationCatalog(CatalogEntry):
    base_cost = _money()


class SystemSetting(models.Model):
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField(blank=True)

    def __str__(self) -> str:
        return self.key


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------
class Patient(models.Model):
    """A registered patient.

    ``patient_code`` is the human facing identifier ``P<YY><MM><seq>``.
    """
    GENDER_CHOICES = [('male', 'Male'), ('female', 'Female'), ('other', 'Other')]
    TYPE_CHOICES = [('outpatient', 'Outpatient'), ('inpatient', 'Inpatient'), ('emergency', 'Emergency')]

    patient_code = models.CharField(max_length=20, unique=True)
    full_name = models.CharField(max_length=255, db_index=True)
    phone = models.CharField(max_length=32, blank=True)
    address = models.CharField(max_length=255, blank=True)
    age = models.PositiveIntegerField(default=0)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, default='other')
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='outpatient', db_index=True)
    symptoms = models.TextField(blank=True)
    medical_history = models.TextField(blank=True)
    allergies = models.TextField(blank=True)
    blood_group = models.CharField(max_length=5, blank=True)
    emergency_contact = models.JSONField(default=dict, blank=True)
    has_insurance = models.BooleanField(default=False)
    insurance_details = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.full_name} ({self.patient_code})"


class MedicalStaff(models.Model):
    """Employee record; doctors and nurses also take appointments."""
    STATUS_CHOICES = [('active', 'Active'), ('inactive', 'Inactive'), ('dismissed', 'Dismissed')]

    employee_id = models.CharField(max_length=20, unique=True)
    full_name = models.CharField(max_length=255)
    type = models.CharField(max_length=30, default='doctor', db_index=True)
    department = models.CharField(max_length=255, blank=True)
    specialization = models.CharField(max_length=255, blank=True)
    consultation_fee = _money()
    consultation_fee_followup = _money()
    consultation_fee_emergency = _money()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    is_available = models.BooleanField(default=True)
    available_days = models.JSONField(default=list, blank=True)
    available_time_start = models.CharField(max_length=5, blank=True)
    available_time_end = models.CharField(max_length=5, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=32, blank=True)
    address = models.CharField(max_length=255, blank=True)
    base_salary = _money()
    join_date = models.DateField(null=True, blank=True)
    bank_details = models.JSONField(default=dict, blank=True)

    def __str__(self) -> str:
        return f"{self.full_name} ({self.employee_id})"


class Attendance(models.Model):
    STATUS_CHOICES = [('present', 'Present'), ('absent', 'Absent'), ('late', 'Late'), ('half_day', 'Half day')]

    staff = models.ForeignKey(MedicalStaff, on_delete=models.CASCADE, related_name='attendance')
    date = models.DateField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES)
    check_in = models.TimeField(null=True, blank=True)
    check_out = models.TimeField(null=True, blank=True)

    class Meta:
        unique_together = ('staff', 'date')


class LeaveRequest(models.Model):
    TYPE_CHOICES = [('sick', 'Sick'), ('vacation', 'Vacation'), ('casual', 'Casual'), ('unpaid', 'Unpaid')]
    STATUS_CHOICES = [('pending', 'Pending'), ('approved', 'Approved'), ('rejected', 'Rejected')]

    staff = models.ForeignKey(MedicalStaff, on_delete=models.CASCADE, related_name='leaves')
    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    start_date = models.DateField()
    end_date = models.DateField()
    reason = models.TextField(blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending')
    created_at = models.DateTimeField(auto_now_add=True)


class PayrollRecord(models.Model):
    STATUS_CHOICES = [('draft', 'Draft'), ('paid', 'Paid')]

    staff = models.ForeignKey(MedicalStaff, on_delete=models.CASCADE, related_name='payroll')
    month = models.CharField(max_length=7, db_index=True)  # YYYY-MM
    base_salary = _money()
    total_bonuses = _money()
    total_fines = _money()
    net_salary = _money()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='draft')
    generated_at = models.DateTimeField(auto_now_add=True)


class FinancialAdjustment(models.Model):
    TYPE_CHOICES = [('bonus', 'Bonus'), ('fine', 'Fine'), ('loan', 'Loan')]

    staff = models.ForeignKey(MedicalStaff, on_delete=models.CASCADE, related_name='adjustments')
    type = models.CharField(max_length=10, choices=TYPE_CHOICES, db_index=True)
    amount = _money()
    reason = models.TextField(blank=True)
    date = models.DateField(default=timezone.localdate)
    status = models.CharField(max_length=20, default='active')


# ---------------------------------------------------------------------------
# Billing & treasury
# ---------------------------------------------------------------------------
class Bill(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('partial', 'Partially paid'),
        ('paid', 'Paid'),
        ('overdue', 'Overdue'),
        ('refunded', 'Refunded'),
        ('cancelled', 'Cancelled'),
    ]

    bill_number = models.CharField(max_length=8, unique=True)
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='bills')
    total_amount = _money()
    paid_amount = _money()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending', db_index=True)
    bill_date = models.DateTimeField(default=timezone.now)
    is_settlement_bill = models.BooleanField(default=False)

    @property
    def balance(self) -> Decimal:
        return self.total_amount - self.paid_amount

    def __str__(self) -> str:
        return f"Bill #{self.bill_number}"


class BillItem(models.Model):
    bill = models.ForeignKey(Bill, on_delete=models.CASCADE, related_name='items')
    description = models.CharField(max_length=255)
    amount = _money()


class Transaction(models.Model):
    """Treasury ledger line. Payments are income, refunds and expenses are expense."""
    TYPE_CHOICES = [('income', 'Income'), ('expense', 'Expense')]

    type = models.CharField(max_length=10, choices=TYPE_CHOICES, db_index=True)
    category = models.CharField(max_length=100)
    amount = _money()
    method = models.CharField(max_length=50, blank=True)
    bill = models.ForeignKey(Bill, null=True, blank=True, on_delete=models.SET_NULL, related_name='transactions')
    details = models.JSONField(default=dict, blank=True)
    date = models.DateTimeField(default=timezone.now, db_index=True)
    description = models.TextField(blank=True)


# ---------------------------------------------------------------------------
# Appointments
# ---------------------------------------------------------------------------
class Appointment(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('confirmed', 'Confirmed'),
        ('waiting', 'Waiting'),
        ('checked_in', 'Checked in'),
        ('in_progress', 'In progress'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]
    BILLING_CHOICES = [('unbilled', 'Unbilled'), ('billed', 'Billed'), ('paid', 'Paid')]

    appointment_number = models.CharField(max_length=20, unique=True)
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='appointments')
    staff = models.ForeignKey(MedicalStaff, on_delete=models.PROTECT, related_name='appointments')
    datetime = models.DateTimeField(db_index=True)
    type = models.CharField(max_length=50, default='Consultation')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)
    billing_status = models.CharField(max_length=10, choices=BILLING_CHOICES, default='unbilled')
    reason = models.TextField(blank=True)
    bill = models.ForeignKey(Bill, null=True, blank=True, on_delete=models.SET_NULL, related_name='appointments')
    daily_token = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.appointment_number} {self.status}"


class AppointmentTransition(models.Model):
    """Records every status change of an appointment for history purposes."""
    appointment = models.ForeignKey(Appointment, on_delete=models.CASCADE, related_name='transitions')
    from_status = models.CharField(max_length=20)
    to_status = models.CharField(max_length=20)
    operator = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL)
    reason = models.CharField(max_length=255, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)


# ---------------------------------------------------------------------------
# Beds & admissions
# ---------------------------------------------------------------------------
class Bed(models.Model):
    TYPE_CHOICES = [('General', 'General'), ('Private', 'Private'), ('ICU', 'ICU')]
    STATUS_CHOICES = [
        ('available', 'Available'),
        ('reserved', 'Reserved'),
        ('occupied', 'Occupied'),
        ('cleaning', 'Cleaning'),
        ('maintenance', 'Maintenance'),
    ]

    room_number = models.CharField(max_length=20, unique=True)
    type = models.CharField(max_length=10, choices=TYPE_CHOICES, default='General')
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default='available', db_index=True)
    cost_per_day = _money()

    def __str__(self) -> str:
        return f"{self.room_number} ({self.status})"


class Admission(models.Model):
    STATUS_CHOICES = [
        ('reserved', 'Reserved'),
        ('active', 'Active'),
        ('discharged', 'Discharged'),
        ('cancelled', 'Cancelled'),
    ]
    DISCHARGE_CHOICES = [
        ('Recovered', 'Recovered'),
        ('Stable', 'Stable'),
        ('Transferred', 'Transferred'),
        ('AMA', 'Against medical advice'),
    ]

    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='admissions')
    bed = models.ForeignKey(Bed, on_delete=models.PROTECT, related_name='admissions')
    doctor = models.ForeignKey(MedicalStaff, null=True, blank=True, on_delete=models.SET_NULL, related_name='admissions')
    entry_date = models.DateTimeField(default=timezone.now)
    discharge_date = models.DateTimeField(null=True, blank=True)
    actual_discharge_date = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default='reserved', db_index=True)
    deposit_amount = _money()
    deposit_bill = models.ForeignKey(
        Bill, null=True, blank=True, on_delete=models.SET_NULL, related_name='deposit_admissions'
    )
    settlement_bill = models.ForeignKey(
        Bill, null=True, blank=True, on_delete=models.SET_NULL, related_name='settled_admissions'
    )
    notes = models.TextField(blank=True)
    discharge_notes = models.TextField(blank=True)
    discharge_status = models.CharField(max_length=12, choices=DISCHARGE_CHOICES, blank=True)

    def __str__(self) -> str:
        return f"Admission {self.pk} {self.status}"


class InpatientNote(models.Model):
    admission = models.ForeignKey(Admission, on_delete=models.CASCADE, related_name='clinical_notes')
    doctor = models.ForeignKey(MedicalStaff, null=True, blank=True, on_delete=models.SET_NULL)
    note = models.TextField()
    vitals = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)


# ---------------------------------------------------------------------------
# Medical services
# ---------------------------------------------------------------------------
class LabRequest(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('confirmed', 'Confirmed'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='lab_requests')
    tests = models.ManyToManyField(LabTest, related_name='requests')
    projected_cost = _money()
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default='pending', db_index=True)
    results = models.JSONField(default=dict, blank=True)
    bill = models.ForeignKey(Bill, null=True, blank=True, on_delete=models.SET_NULL, related_name='lab_requests')
    created_at = models.DateTimeField(auto_now_add=True)


class NurseRequest(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='nurse_requests')
    service = models.ForeignKey(NurseService, on_delete=models.PROTECT, related_name='requests')
    staff = models.ForeignKey(MedicalStaff, null=True, blank=True, on_delete=models.SET_NULL)
    cost = _money()
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default='pending')
    bill = models.ForeignKey(Bill, null=True, blank=True, on_delete=models.SET_NULL, related_name='nurse_requests')
    created_at = models.DateTimeField(auto_now_add=True)


class Operation(models.Model):
    STATUS_CHOICES = [
        ('requested', 'Requested'),
        ('pending_payment', 'Pending payment'),
        ('confirmed', 'Confirmed'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='operations')
    doctor = models.ForeignKey(MedicalStaff, null=True, blank=True, on_delete=models.SET_NULL)
    operation_name = models.CharField(max_length=255)
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='requested', db_index=True)
    projected_cost = _money()
    cost_details = models.JSONField(default=dict, blank=True)
    bill = models.ForeignKey(Bill, null=True, blank=True, on_delete=models.SET_NULL, related_name='operations')
    created_at = models.DateTimeField(auto_now_add=True)


# ---------------------------------------------------------------------------
# Pharmacy
# ---------------------------------------------------------------------------
class Medicine(models.Model):
    name = models.CharField(max_length=255, db_index=True)
    generic_name = models.CharField(max_length=255, blank=True)
    category = models.CharField(max_length=100, blank=True)
    stock_level = models.PositiveIntegerField(default=0)
    unit_price = _money()
    expiry_date = models.DateField(null=True, blank=True)
    batch_number = models.CharField(max_length=50, blank=True)
    reorder_level = models.PositiveIntegerField(default=10)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.name


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
class Notification(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications')
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True)
    type = models.CharField(max_length=20, default='info')
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
