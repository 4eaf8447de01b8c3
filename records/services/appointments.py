"""
Appointment scheduling rules.

Creation refuses restricted patients and slots that clash with one of
the doctor's scheduled appointments.  Status changes only leave the
``scheduled`` state and drive the missed-appointment counter that
restricts a patient after repeated no-shows.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone
from rest_framework import status

from records.exceptions import BusinessError
from records.models import Appointment, Doctor, Patient, User
from records.services.audit import log_action

logger = logging.getLogger(__name__)

TRANSITIONS = {
    Appointment.STATUS_SCHEDULED: {
        Appointment.STATUS_COMPLETED,
        Appointment.STATUS_MISSED,
        Appointment.STATUS_CANCELLED,
    },
    Appointment.STATUS_COMPLETED: set(),
    Appointment.STATUS_MISSED: set(),
    Appointment.STATUS_CANCELLED: set(),
}


def can_transition(current: str, new: str) -> bool:
    """Return True if an appointment may move from ``current`` to ``new``."""
    return new in TRANSITIONS.get(current, set())


def doctor_for_user(user_id: int) -> Doctor:
    doctor = Doctor.objects.select_related('user').filter(user_id=user_id).first()
    if doctor is None:
        raise BusinessError('Doctor not found', status_code=status.HTTP_404_NOT_FOUND)
    return doctor


def get_patient(patient_id: int) -> Patient:
    patient = Patient.objects.filter(id=patient_id).first()
    if patient is None:
        raise BusinessError('Patient not found', status_code=status.HTTP_404_NOT_FOUND)
    return patient


def get_appointment(appointment_id: int, *, for_update: bool = False) -> Appointment:
    qs = Appointment.objects.select_related('patient', 'doctor')
    if for_update:
        qs = qs.select_for_update()
    appointment = qs.filter(id=appointment_id).first()
    if appointment is None:
        raise BusinessError('Appointment not found', status_code=status.HTTP_404_NOT_FOUND)
    return appointment


def list_appointments(*, doctor_user_id: Optional[int] = None, patient_id: Optional[int] = None,
                      status_filter: Optional[str] = None) -> QuerySet:
    qs = Appointment.objects.select_related('patient', 'doctor')
    if doctor_user_id:
        qs = qs.filter(doctor__user_id=doctor_user_id)
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    if status_filter:
        qs = qs.filter(status=status_filter)
    return qs.order_by('-appointment_date', '-id')


def find_conflict(doctor: Doctor, when: datetime, *, exclude_id: Optional[int] = None) -> Optional[Appointment]:
    """Return a scheduled appointment of ``doctor`` too close to ``when``."""
    window = timedelta(minutes=settings.APPOINTMENT_CONFLICT_MINUTES)
    qs = Appointment.objects.select_related('patient').filter(
        doctor=doctor,
        status=Appointment.STATUS_SCHEDULED,
        appointment_date__gt=when - window,
        appointment_date__lt=when + window,
    )
    if exclude_id is not None:
        qs = qs.exclude(id=exclude_id)
    return qs.order_by('appointment_date').first()


def _raise_conflict(conflict: Appointment) -> None:
    when = timezone.localtime(conflict.appointment_date).strftime('%b %d, %Y %H:%M')
    raise BusinessError(
        f"Time conflict: You already have an appointment with {conflict.patient.full_name} at {when}",
        status_code=status.HTTP_409_CONFLICT,
    )


def create_appointment(actor: User, *, patient_id: int, doctor_user_id: int, appointment_date: datetime,
                       reason_for_visit: str = '', request=None) -> Appointment:
    doctor = doctor_for_user(doctor_user_id)
    patient = get_patient(patient_id)
    if patient.is_restricted:
        raise BusinessError('Cannot create appointment: Patient account is restricted',
                            status_code=status.HTTP_403_FORBIDDEN)
    conflict = find_conflict(doctor, appointment_date)
    if conflict is not None:
        _raise_conflict(conflict)
    appointment = Appointment.objects.create(
        patient=patient,
        doctor=doctor,
        appointment_date=appointment_date,
        reason_for_visit=reason_for_visit or '',
        status=Appointment.STATUS_SCHEDULED,
    )
    log_action(
        action_type='appointment_created',
        description='New appointment scheduled for '
                    + timezone.localtime(appointment_date).strftime('%b %d, %Y %H:%M'),
        user=actor, target_type='appointment', target_id=appointment.id, request=request,
    )
    return appointment


def reschedule_appointment(actor: User, *, appointment_id: int, appointment_date: datetime,
                           reason_for_visit: Optional[str] = None, request=None) -> Appointment:
    appointment = get_appointment(appointment_id)
    conflict = find_conflict(appointment.doctor, appointment_date, exclude_id=appointment.id)
    if conflict is not None:
        _raise_conflict(conflict)
    appointment.appointment_date = appointment_date
    fields = ['appointment_date']
    if reason_for_visit is not None:
        appointment.reason_for_visit = reason_for_visit
        fields.append('reason_for_visit')
    appointment.save(update_fields=fields)
    log_action(action_type='appointment_updated', description=f"Appointment #{appointment.id} rescheduled",
               user=actor, target_type='appointment', target_id=appointment.id, request=request)
    return appointment


def update_status(actor: User, *, appointment_id: int, new_status: str, request=None) -> Appointment:
    """Apply a status transition and the missed-appointment penalty.

    ``missed`` bumps the patient's consecutive counter and restricts the
    account once the limit is reached; ``completed`` resets the counter.
    The appointment row and the patient row change together or not at all.
    """
    with transaction.atomic():
        appointment = get_appointment(appointment_id, for_update=True)
        if not can_transition(appointment.status, new_status):
            raise BusinessError(
                f"Cannot change status from {appointment.status} to {new_status}",
                status_code=status.HTTP_409_CONFLICT,
            )
        appointment.status = new_status
        appointment.save(update_fields=['status'])

        patient = Patient.objects.select_for_update().get(id=appointment.patient_id)
        restricted_now = False
        if new_status == Appointment.STATUS_MISSED:
            patient.consecutive_missed_appointments += 1
            if (patient.consecutive_missed_appointments >= settings.MISSED_APPOINTMENTS_LIMIT
                    and not patient.is_restricted):
                patient.account_status = Patient.STATUS_RESTRICTED
                restricted_now = True
            patient.save(update_fields=['consecutive_missed_appointments', 'account_status'])
        elif new_status == Appointment.STATUS_COMPLETED:
            patient.consecutive_missed_appointments = 0
            patient.save(update_fields=['consecutive_missed_appointments'])

        log_action(action_type=f"appointment_{new_status}", description=f"Appointment marked as {new_status}",
                   user=actor, target_type='appointment', target_id=appointment.id, request=request)
        if restricted_now:
            logger.info('Patient %s restricted after %s missed appointments',
                        patient.id, patient.consecutive_missed_appointments)
            log_action(
                action_type='patient_restricted',
                description=f"Patient account restricted due to {settings.MISSED_APPOINTMENTS_LIMIT}+ "
                            f"missed appointments: {patient.full_name}",
                user=actor, target_type='patient', target_id=patient.id, request=request,
            )
    appointment.patient = patient
    return appointment


def delete_appointment(actor: User, *, appointment_id: int, request=None) -> None:
    appointment = get_appointment(appointment_id)
    appointment.delete()
    log_action(action_type='appointment_deleted', description=f"Appointment #{appointment_id} deleted",
               user=actor, target_type='appointment', target_id=appointment_id, request=request)
