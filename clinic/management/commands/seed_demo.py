"""
Management command to seed a fresh database with demo data.
"""
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from clinic.models import (
    Bank,
    Bed,
    Department,
    InsuranceProvider,
    LabTest,
    MedicalStaff,
    Medicine,
    NurseService,
    OperationCatalog,
    PaymentMethod,
    Specialization,
    SystemSetting,
    TaxRate,
    User,
)
from clinic.services.identifiers import next_employee_id


class Command(BaseCommand):
    help = "Seed an admin user, beds, catalogs, staff and pharmacy stock (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--admin-password", default="admin12345")

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding demo data...")
        self.create_admin(options["admin_password"])
        self.create_settings()
        self.create_catalogs()
        self.create_beds()
        self.create_staff()
        self.create_medicines()
        self.stdout.write(self.style.SUCCESS("Demo data ready."))

    def create_admin(self, password):
        user, created = User.objects.get_or_create(
            username="admin",
            defaults={"role": "admin", "full_name": "System Administrator", "is_staff": True, "is_superuser": True},
        )
        if created:
            user.set_password(password)
            user.save()
        self.stdout.write(f"  admin user {'created' if created else 'exists'}")

    def create_settings(self):
        defaults = {
            "hospitalName": "AllCare Hospital",
            "hospitalAddress": "1 Main Street",
            "hospitalPhone": "+000 000 000",
            "currency": "USD",
        }
        for key, value in defaults.items():
            SystemSetting.objects.get_or_create(key=key, defaults={"value": value})

    def create_catalogs(self):
        for name_en, name_ar in [("Cardiology", "أمراض القلب"), ("Pediatrics", "طب الأطفال"),
                                 ("General Surgery", "الجراحة العامة")]:
            Department.objects.get_or_create(name_en=name_en, defaults={"name_ar": name_ar})
        for name_en, role in [("Cardiologist", "doctor"), ("Pediatrician", "doctor"), ("ICU Nurse", "nurse")]:
            Specialization.objects.get_or_create(name_en=name_en, defaults={"related_role": role})
        for name_en, cost in [("Complete Blood Count", "15.00"), ("Lipid Panel", "25.00"), ("HbA1c", "20.00")]:
            LabTest.objects.get_or_create(name_en=name_en, defaults={"category_en": "Blood", "cost": Decimal(cost)})
        for name_en, cost in [("Wound Dressing", "10.00"), ("IV Cannulation", "12.00")]:
            NurseService.objects.get_or_create(name_en=name_en, defaults={"cost": Decimal(cost)})
        for name_en, cost in [("Appendectomy", "1200.00"), ("Hernia Repair", "900.00")]:
            OperationCatalog.objects.get_or_create(name_en=name_en, defaults={"base_cost": Decimal(cost)})
        for name_en in ("Cash", "Card", "Bank Transfer", "Insurance"):
            PaymentMethod.objects.get_or_create(name_en=name_en)
        InsuranceProvider.objects.get_or_create(name_en="National Health Cover")
        Bank.objects.get_or_create(name_en="Central Bank")
        TaxRate.objects.get_or_create(name_en="VAT", defaults={"rate": Decimal("5.00")})

    def create_beds(self):
        layout = [("General", 10, "50.00"), ("Private", 5, "120.00"), ("ICU", 3, "300.00")]
        created = 0
        for bed_type, count, cost in layout:
            for i in range(1, count + 1):
                _, new = Bed.objects.get_or_create(
                    room_number=f"{bed_type[0]}-{100 + i}",
                    defaults={"type": bed_type, "cost_per_day": Decimal(cost)},
                )
                created += int(new)
        self.stdout.write(f"  {created} bed(s) created")

    def create_staff(self):
        people = [
            ("Dr. Sara Haddad", "doctor", "Cardiology", "Cardiologist", "40.00"),
            ("Dr. Omar Nasser", "doctor", "Pediatrics", "Pediatrician", "30.00"),
            ("Lina Saleh", "nurse", "General Surgery", "ICU Nurse", "15.00"),
        ]
        for full_name, staff_type, department, specialization, fee in people:
            if MedicalStaff.objects.filter(full_name=full_name).exists():
                continue
            fee = Decimal(fee)
            MedicalStaff.objects.create(
                employee_id=next_employee_id(staff_type),
                full_name=full_name,
                type=staff_type,
                department=department,
                specialization=specialization,
                consultation_fee=fee,
                consultation_fee_followup=fee / 2,
                consultation_fee_emergency=fee * 2,
                base_salary=Decimal("2500.00"),
                available_days=["Mon", "Tue", "Wed", "Thu", "Fri"],
                available_time_start="09:00",
                available_time_end="17:00",
            )

    def create_medicines(self):
        stock = [("Paracetamol 500mg", "Paracetamol", 200, "0.50"), ("Amoxicillin 250mg", "Amoxicillin", 80, "1.20"),
                 ("Ibuprofen 400mg", "Ibuprofen", 5, "0.80")]
        for name, generic, level, price in stock:
            Medicine.objects.get_or_create(
                name=name, defaults={"generic_name": generic, "stock_level": level, "unit_price": Decimal(price)}
            )
