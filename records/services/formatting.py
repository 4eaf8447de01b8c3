"""
Row builders shared by the views.

Each helper turns a model instance into the flat dict the mobile client
decodes, using ``<entity>_id`` keys and local ``%Y-%m-%d %H:%M:%S``
timestamps.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from django.utils import timezone

from records.models import (
    Appointment,
    Consultation,
    LabResult,
    Patient,
    Prescription,
    ReaccessRequest,
    SystemLog,
)

DATETIME_FORMAT = '%Y-%m-%d %H:%M:%S'


def fmt_dt(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if timezone.is_aware(value):
        value = timezone.localtime(value)
    return value.strftime(DATETIME_FORMAT)


def fmt_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def appointment_row(a: Appointment) -> dict:
    return {
        'appointment_id': a.id,
        'patient_id': a.patient_id,
        'doctor_id': a.doctor_id,
        'doctor_user_id': a.doctor.user_id,
        'appointment_date': fmt_dt(a.appointment_date),
        'reason_for_visit': a.reason_for_visit,
        'status': a.status,
        'created_at': fmt_dt(a.created_at),
        'patient_name': a.patient.full_name,
        'patient_phone': a.patient.phone_number,
        'patient_account_status': a.patient.account_status,
        'doctor_name': a.doctor.full_name,
    }


def prescription_row(p: Prescription) -> dict:
    return {
        'prescription_id': p.id,
        'consultation_id': p.consultation_id,
        'medication_name': p.medication_name,
        'dosage': p.dosage,
        'frequency': p.frequency,
        'duration': p.duration,
    }


def lab_result_row(r: LabResult) -> dict:
    return {
        'result_id': r.id,
        'consultation_id': r.consultation_id,
        'test_name': r.test_name,
        'result_summary': r.result_summary,
        'result_file_path': r.result_file_path,
        'test_date': fmt_date(r.test_date),
    }


def consultation_row(c: Consultation, *, nested: bool = True) -> dict:
    row = {
        'consultation_id': c.id,
        'appointment_id': c.appointment_id,
        'patient_id': c.patient_id,
        'doctor_id': c.doctor_id,
        'doctor_user_id': c.doctor.user_id,
        'visit_date': fmt_dt(c.visit_date),
        'diagnosis': c.diagnosis,
        'symptoms': c.symptoms,
        'doctor_notes': c.doctor_notes,
        'doctor_name': c.doctor.full_name,
        'appointment_date': fmt_dt(c.appointment.appointment_date) if c.appointment else None,
    }
    if nested:
        prescriptions = [prescription_row(p) for p in c.prescriptions.all()]
        lab_results = [lab_result_row(r) for r in c.lab_results.all()]
        row.update({
            'prescriptions': prescriptions,
            'lab_results': lab_results,
            'prescription_count': len(prescriptions),
            'lab_result_count': len(lab_results),
        })
    return row


def patient_row(p: Patient) -> dict:
    return {
        'patient_id': p.id,
        'user_id': p.user_id,
        'national_id': p.national_id,
        'full_name': p.full_name,
        'date_of_birth': fmt_date(p.date_of_birth),
        'gender': p.gender,
        'blood_type': p.blood_type,
        'phone_number': p.phone_number,
        'address': p.address,
        'account_status': p.account_status,
        'consecutive_missed_appointments': p.consecutive_missed_appointments,
        'created_at': fmt_dt(p.created_at),
    }


def log_row(entry: SystemLog) -> dict:
    return {
        'log_id': entry.id,
        'action_type': entry.action_type,
        'action_description': entry.action_description,
        'user_id': entry.user_id,
        'user_name': entry.user_name,
        'user_role': entry.user_role,
        'target_type': entry.target_type,
        'target_id': entry.target_id,
        'ip_address': entry.ip_address,
        'created_at': fmt_dt(entry.created_at),
    }


def reaccess_row(r: ReaccessRequest) -> dict:
    return {
        'request_id': r.id,
        'patient_id': r.patient_id,
        'patient_name': r.patient.full_name,
        'national_id': r.patient.national_id,
        'consecutive_missed_appointments': r.patient.consecutive_missed_appointments,
        'reason': r.reason,
        'contact_phone': r.contact_phone,
        'status': r.status,
        'admin_response': r.admin_response,
        'created_at': fmt_dt(r.created_at),
        'processed_at': fmt_dt(r.processed_at),
        'processed_by': r.processed_by_id,
    }
