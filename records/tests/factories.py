"""Model factories shared by the backend tests."""
import datetime

from django.utils import timezone

from records.models import Appointment, Department, Doctor, Nurse, Patient, Specialty, User

PASSWORD = 'Clinic#2024'


def make_admin(username='admin1'):
    return User.objects.create_user(username=username, password=PASSWORD, role=User.ROLE_ADMIN)


def make_doctor(username='doctor1', full_name='Samir Haddad'):
    user = User.objects.create_user(username=username, password=PASSWORD, role=User.ROLE_DOCTOR)
    specialty, _ = Specialty.objects.get_or_create(name='Cardiology')
    return Doctor.objects.create(user=user, full_name=full_name, specialty=specialty, phone_number='0550000001')


def make_nurse(username='nurse1', full_name='Lina Mansour'):
    user = User.objects.create_user(username=username, password=PASSWORD, role=User.ROLE_NURSE)
    department, _ = Department.objects.get_or_create(name='Outpatients')
    return Nurse.objects.create(user=user, full_name=full_name, department=department)


def make_patient(national_id='1000000001', full_name='Karim Benali', account_status=Patient.STATUS_ACTIVE):
    user = User.objects.create_user(username=national_id, password=PASSWORD, role=User.ROLE_PATIENT)
    return Patient.objects.create(
        user=user,
        national_id=national_id,
        full_name=full_name,
        date_of_birth=datetime.date(1990, 5, 17),
        gender='Male',
        blood_type='O+',
        phone_number='0660000001',
        account_status=account_status,
    )


def make_appointment(patient, doctor, when=None, status=Appointment.STATUS_SCHEDULED):
    return Appointment.objects.create(
        patient=patient,
        doctor=doctor,
        appointment_date=when or timezone.now() + datetime.timedelta(days=1),
        reason_for_visit='Check-up',
        status=status,
    )


