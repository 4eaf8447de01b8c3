from __future__ import annotations

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Max, Q
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import ValidationError as DRFValidation

from records.exceptions import BusinessError
from records.models import Appointment, Consultation, LabResult, Patient, Prescription
from records.services.audit import log_action
from records.services.formatting import (
    appointment_row,
    consultation_row,
    fmt_dt,
    lab_result_row,
    patient_row,
    prescription_row,
)

User = get_user_model()


def search_patients(query: str = ''):
    qs = Patient.objects.annotate(
        consultation_count=Count('consultations', distinct=True),
        last_visit=Max('consultations__visit_date'),
    )
    query = (query or '').strip()
    if query:
        qs = qs.filter(Q(full_name__icontains=query) | Q(national_id__icontains=query))
    return qs.order_by('full_name', 'id')


def _check_password(password: str, user=None) -> None:
    try:
        validate_password(password, user=user)
    except ValidationError as e:
        raise DRFValidation({'password': e.messages})


def create_patient(actor, *, full_name, national_id, password, date_of_birth, gender, blood_type, phone,
                   address='', request=None) -> Patient:
    """Create the login account and the medical profile in one go.

    Patients sign in with their national id, which therefore doubles as
    the account username and must be unique.
    """
    if User.objects.filter(username=national_id).exists() or Patient.objects.filter(national_id=national_id).exists():
        raise BusinessError('A patient with this National ID already exists', status_code=status.HTTP_409_CONFLICT)
    _check_password(password)
    with transaction.atomic():
        user = User.objects.create_user(username=national_id, password=password, role=User.ROLE_PATIENT)
        patient = Patient.objects.create(
            user=user,
            national_id=national_id,
            full_name=full_name.strip(),
            date_of_birth=date_of_birth,
            gender=gender,
            blood_type=blood_type,
            phone_number=phone,
            address=address or '',
            account_status=Patient.STATUS_ACTIVE,
        )
        log_action(action_type='patient_created', description=f"Patient registered: {patient.full_name}",
                   user=actor, target_type='patient', target_id=patient.id, request=request)
    return patient


def update_patient(actor, *, patient_id: int, changes: dict, request=None) -> Patient:
    patient = Patient.objects.select_related('user').filter(id=patient_id).first()
    if patient is None:
        raise BusinessError('Patient not found', status_code=status.HTTP_404_NOT_FOUND)
    mapping = {
        'full_name': 'full_name',
        'date_of_birth': 'date_of_birth',
        'gender': 'gender',
        'blood_type': 'blood_type',
        'phone': 'phone_number',
        'address': 'address',
    }
    with transaction.atomic():
        fields = []
        for key, field in mapping.items():
            value = changes.get(key)
            # address may be cleared, the other fields only replaced
            if value is None or (value == '' and key != 'address'):
                continue
            setattr(patient, field, value.strip() if isinstance(value, str) else value)
            fields.append(field)
        if fields:
            patient.save(update_fields=fields)
        if changes.get('password'):
            _check_password(changes['password'], user=patient.user)
            patient.user.set_password(changes['password'])
            patient.user.save(update_fields=['password'])
        log_action(action_type='patient_updated', description=f"Patient updated: {patient.full_name}",
                   user=actor, target_type='patient', target_id=patient.id, request=request)
    return patient


def delete_patient(actor, *, patient_id: int, request=None) -> None:
    patient = Patient.objects.select_related('user').filter(id=patient_id).first()
    if patient is None:
        raise BusinessError('Patient not found', status_code=status.HTTP_404_NOT_FOUND)
    name = patient.full_name
    with transaction.atomic():
        # deleting the account cascades to the profile and its records
        patient.user.delete()
        log_action(action_type='patient_deleted', description=f"Patient deleted: {name}",
                   user=actor, target_type='patient', target_id=patient_id, request=request)


def full_records(patient: Patient) -> dict:
    """Everything the medical records screen shows for one patient."""
    consultations = [
        consultation_row(c)
        for c in (
            Consultation.objects.filter(patient=patient)
            .select_related('doctor', 'appointment')
            .prefetch_related('prescriptions', 'lab_results')
            .order_by('-visit_date', '-id')
        )
    ]
    prescriptions = []
    for p in (Prescription.objects.filter(consultation__patient=patient)
              .select_related('consultation__doctor').order_by('-id')):
        row = prescription_row(p)
        row.update(visit_date=fmt_dt(p.consultation.visit_date), doctor_name=p.consultation.doctor.full_name)
        prescriptions.append(row)
    lab_results = []
    for r in (LabResult.objects.filter(consultation__patient=patient)
              .select_related('consultation__doctor').order_by('-test_date', '-id')):
        row = lab_result_row(r)
        row.update(visit_date=fmt_dt(r.consultation.visit_date), doctor_name=r.consultation.doctor.full_name)
        lab_results.append(row)
    appointments = list(
        Appointment.objects.filter(patient=patient).select_related('patient', 'doctor')
        .order_by('-appointment_date', '-id')
    )
    now = timezone.now()
    return {
        'success': True,
        'patient': patient_row(patient),
        'consultations': consultations,
        'prescriptions': prescriptions,
        'lab_results': lab_results,
        'appointments': [appointment_row(a) for a in appointments],
        'stats': {
            'total_consultations': len(consultations),
            'total_prescriptions': len(prescriptions),
            'total_lab_results': len(lab_results),
            'total_appointments': len(appointments),
            'upcoming_appointments': sum(
                1 for a in appointments
                if a.status == Appointment.STATUS_SCHEDULED and a.appointment_date > now
            ),
        },
    }
