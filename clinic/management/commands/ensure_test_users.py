from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand

from clinic.models import User

TEST_PASSWORD = "AllCare#2024"


class Command(BaseCommand):
    help = "Ensure one test user per role exists with the shared test password (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default=TEST_PASSWORD)

    def handle(self, *args, **opts):
        password = make_password(opts["password"])
        for role, label in User.ROLE_CHOICES:
            username = f"{role}1"
            u, created = User.objects.get_or_create(
                username=username,
                defaults={"role": role, "full_name": f"Test {label}", "password": password, "is_active": True},
            )
            if not created:
                # reset password, role and active flag
                u.password = password
                u.role = role
                u.is_active = True
                u.save(update_fields=["password", "role", "is_active"])
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
