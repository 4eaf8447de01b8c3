# records/management/commands/ensure_test_users.py
import datetime

from django.core.management.base import BaseCommand
from django.db import transaction

from records.models import Department, Doctor, Nurse, Patient, Specialty, User

PASSWORD = "Clinic#2024"

TEST_SET = [
    ("admin1", "admin", "Administrator"),
    ("doctor1", "doctor", "Samir Haddad"),
    ("nurse1", "nurse", "Lina Mansour"),
    ("1000000001", "patient", "Karim Benali"),
]


class Command(BaseCommand):
    help = f"Ensure one account per role exists with password={PASSWORD} (idempotent)."

    @transaction.atomic
    def handle(self, *args, **opts):
        specialty, _ = Specialty.objects.get_or_create(name="General Medicine")
        department, _ = Department.objects.get_or_create(name="Outpatients")
        for username, role, full_name in TEST_SET:
            u, created = User.objects.get_or_create(username=username, defaults={"role": role, "is_active": True})
            # Reset password, activation and role on every run
            u.set_password(PASSWORD)
            u.role = role
            u.is_active = True
            u.save()
            if role == User.ROLE_DOCTOR:
                Doctor.objects.update_or_create(user=u, defaults={"full_name": full_name, "specialty": specialty})
            elif role == User.ROLE_NURSE:
                Nurse.objects.update_or_create(user=u, defaults={"full_name": full_name, "department": department})
            elif role == User.ROLE_PATIENT:
                Patient.objects.update_or_create(
                    user=u,
                    defaults={
                        "national_id": username,
                        "full_name": full_name,
                        "date_of_birth": datetime.date(1990, 1, 1),
                        "gender": "Male",
                        "blood_type": "O+",
                        "account_status": Patient.STATUS_ACTIVE,
                        "consecutive_missed_appointments": 0,
                    },
                )
            self.stdout.write(self.style.SUCCESS(f"{'created' if created else 'ok'}: {username} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
