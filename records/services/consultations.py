"""
Consultation authoring.

A consultation is created together with its prescriptions and lab
results in one transaction.  Children can later be added, edited or
removed one by one without touching the parent record.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

import bleach
from django.db import transaction
from django.utils import timezone
from rest_framework import status

from records.exceptions import BusinessError
from records.models import Appointment, Consultation, LabResult, Prescription, User
from records.services.appointments import doctor_for_user, get_patient
from records.services.audit import log_action
from records.services.uploads import delete_files_on_commit

logger = logging.getLogger(__name__)

DETAIL_FIELDS = ('diagnosis', 'symptoms', 'doctor_notes')
PRESCRIPTION_FIELDS = ('medication_name', 'dosage', 'frequency', 'duration')


def clean_text(value: Optional[str]) -> str:
    return bleach.clean((value or '').strip(), strip=True)


def get_consultation(consultation_id: int) -> Consultation:
    consultation = (
        Consultation.objects.select_related('doctor', 'appointment', 'patient')
        .filter(id=consultation_id)
        .first()
    )
    if consultation is None:
        raise BusinessError('Consultation not found', status_code=status.HTTP_404_NOT_FOUND)
    return consultation


def list_consultations(patient_id: int):
    return (
        Consultation.objects.filter(patient_id=patient_id)
        .select_related('doctor', 'appointment')
        .prefetch_related('prescriptions', 'lab_results')
        .order_by('-visit_date', '-id')
    )


def _add_prescription(consultation: Consultation, data: dict) -> Prescription:
    return Prescription.objects.create(
        consultation=consultation,
        **{field: clean_text(data.get(field)) for field in PRESCRIPTION_FIELDS},
    )


def _add_lab_result(consultation: Consultation, data: dict) -> LabResult:
    return LabResult.objects.create(
        consultation=consultation,
        test_name=clean_text(data.get('test_name')),
        result_summary=clean_text(data.get('result_summary')),
        result_file_path=data.get('result_file_path') or None,
        test_date=data.get('test_date') or timezone.localdate(),
    )


def create_consultation(actor: User, *, patient_id: int, doctor_user_id: int, diagnosis: str, symptoms: str,
                        doctor_notes: str = '', appointment_id: Optional[int] = None,
                        prescriptions: Iterable[dict] = (), lab_results: Iterable[dict] = (),
                        request=None) -> Consultation:
    """Create a consultation with its children, all or nothing."""
    patient = get_patient(patient_id)
    if patient.is_restricted:
        raise BusinessError('Cannot add consultation: Patient account is restricted',
                            status_code=status.HTTP_403_FORBIDDEN)
    doctor = doctor_for_user(doctor_user_id)
    appointment = None
    if appointment_id:
        appointment = Appointment.objects.filter(id=appointment_id, patient=patient).first()
        if appointment is None:
            raise BusinessError('Appointment not found for this patient', status_code=status.HTTP_404_NOT_FOUND)

    with transaction.atomic():
        consultation = Consultation.objects.create(
            appointment=appointment,
            patient=patient,
            doctor=doctor,
            diagnosis=clean_text(diagnosis),
            symptoms=clean_text(symptoms),
            doctor_notes=clean_text(doctor_notes),
        )
        for item in prescriptions:
            _add_prescription(consultation, item)
        for item in lab_results:
            _add_lab_result(consultation, item)
        log_action(action_type='consultation_created',
                   description=f"Consultation recorded for {patient.full_name}",
                   user=actor, target_type='consultation', target_id=consultation.id, request=request)
    logger.info('Consultation %s created for patient %s', consultation.id, patient.id)
    return consultation


def update_consultation(actor: User, *, consultation_id: int, changes: dict, request=None) -> Consultation:
    consultation = get_consultation(consultation_id)
    fields = [f for f in DETAIL_FIELDS if f in changes]
    for field in fields:
        setattr(consultation, field, clean_text(changes[field]))
    if fields:
        consultation.save(update_fields=fields)
    log_action(action_type='consultation_updated', description=f"Consultation #{consultation.id} updated",
               user=actor, target_type='consultation', target_id=consultation.id, request=request)
    return consultation


def delete_consultation(actor: User, *, consultation_id: int, request=None) -> None:
    consultation = get_consultation(consultation_id)
    paths = list(consultation.lab_results.values_list('result_file_path', flat=True))
    with transaction.atomic():
        consultation.delete()
        log_action(action_type='consultation_deleted', description=f"Consultation #{consultation_id} deleted",
                   user=actor, target_type='consultation', target_id=consultation_id, request=request)
        for raw in paths:
            delete_files_on_commit(raw)


# ---------------------------------------------------------------------
# Children
# ---------------------------------------------------------------------

def add_prescription(consultation_id: int, data: dict) -> Prescription:
    return _add_prescription(get_consultation(consultation_id), data)


def update_prescription(prescription_id: int, data: dict) -> Prescription:
    prescription = Prescription.objects.filter(id=prescription_id).first()
    if prescription is None:
        raise BusinessError('Prescription not found', status_code=status.HTTP_404_NOT_FOUND)
    fields = [f for f in PRESCRIPTION_FIELDS if f in data]
    for field in fields:
        setattr(prescription, field, clean_text(data[field]))
    if fields:
        prescription.save(update_fields=fields)
    return prescription


def delete_prescription(prescription_id: int) -> None:
    deleted, _ = Prescription.objects.filter(id=prescription_id).delete()
    if not deleted:
        raise BusinessError('Prescription not found', status_code=status.HTTP_404_NOT_FOUND)


def add_lab_result(consultation_id: int, data: dict) -> LabResult:
    return _add_lab_result(get_consultation(consultation_id), data)


def update_lab_result(result_id: int, data: dict) -> LabResult:
    """Edit a lab result; the stored file path only changes when a new one is sent."""
    result = LabResult.objects.filter(id=result_id).first()
    if result is None:
        raise BusinessError('Lab result not found', status_code=status.HTTP_404_NOT_FOUND)
    fields = []
    for field in ('test_name', 'result_summary'):
        if field in data:
            setattr(result, field, clean_text(data[field]))
            fields.append(field)
    if 'test_date' in data:
        result.test_date = data['test_date'] or timezone.localdate()
        fields.append('test_date')
    if data.get('result_file_path'):
        result.result_file_path = data['result_file_path']
        fields.append('result_file_path')
    if fields:
        result.save(update_fields=fields)
    return result


def delete_lab_result(result_id: int) -> None:
    result = LabResult.objects.filter(id=result_id).first()
    if result is None:
        raise BusinessError('Lab result not found', status_code=status.HTTP_404_NOT_FOUND)
    with transaction.atomic():
        result.delete()
        delete_files_on_commit(result.result_file_path)
