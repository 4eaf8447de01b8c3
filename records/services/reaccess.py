"""
Re-access requests: how a restricted patient gets back in.

Patients cannot log in while restricted, so submitting and checking a
request is keyed on the ``patient_id`` returned by the refused login.
"""
from __future__ import annotations

from typing import Optional

from django.db import transaction
from django.utils import timezone
from rest_framework import status

from records.exceptions import BusinessError
from records.models import Patient, ReaccessRequest
from records.services.audit import log_action

DEFAULT_APPROVAL = 'Your request has been approved. You can now login and book appointments.'
DEFAULT_REJECTION = 'Your request has been rejected. Please contact the clinic for more information.'


def pending_for(patient_id: int) -> Optional[ReaccessRequest]:
    return (
        ReaccessRequest.objects.select_related('patient')
        .filter(patient_id=patient_id, status=ReaccessRequest.STATUS_PENDING)
        .order_by('-created_at')
        .first()
    )


def submit(*, patient_id: int, reason: str, contact_phone: Optional[str] = None, request=None) -> ReaccessRequest:
    patient = Patient.objects.filter(id=patient_id).first()
    if patient is None:
        raise BusinessError('Patient not found', status_code=status.HTTP_404_NOT_FOUND)
    if not patient.is_restricted:
        raise BusinessError('Your account is not restricted')
    if pending_for(patient_id) is not None:
        raise BusinessError('You already have a pending request', status_code=status.HTTP_409_CONFLICT)
    req = ReaccessRequest.objects.create(patient=patient, reason=reason.strip(), contact_phone=contact_phone or None)
    log_action(action_type='reaccess_submitted',
               description=f"Re-access request submitted by patient: {patient.full_name}",
               user_name=patient.full_name, user_role='patient',
               target_type='patient', target_id=patient.id, request=request)
    return req


def list_requests(status_filter: str = 'pending'):
    qs = ReaccessRequest.objects.select_related('patient')
    if status_filter != 'all':
        qs = qs.filter(status=status_filter)
    return qs.order_by('-created_at', '-id')


def _pending_or_raise(request_id: int) -> ReaccessRequest:
    req = ReaccessRequest.objects.select_for_update().select_related('patient').filter(id=request_id).first()
    if req is None:
        raise BusinessError('Request not found', status_code=status.HTTP_404_NOT_FOUND)
    if req.status != ReaccessRequest.STATUS_PENDING:
        raise BusinessError(f"Request already {req.status}", status_code=status.HTTP_409_CONFLICT)
    return req


def approve(admin, *, request_id: int, admin_response: Optional[str] = None, request=None) -> ReaccessRequest:
    """Approve the request and lift the patient's restriction."""
    with transaction.atomic():
        req = _pending_or_raise(request_id)
        req.status = ReaccessRequest.STATUS_APPROVED
        req.admin_response = admin_response or DEFAULT_APPROVAL
        req.processed_at = timezone.now()
        req.processed_by = admin
        req.save(update_fields=['status', 'admin_response', 'processed_at', 'processed_by'])
        patient = req.patient
        patient.account_status = Patient.STATUS_ACTIVE
        patient.consecutive_missed_appointments = 0
        patient.save(update_fields=['account_status', 'consecutive_missed_appointments'])
        log_action(action_type='reaccess_approved',
                   description=f"Re-access request approved for patient: {patient.full_name}",
                   user=admin, target_type='patient', target_id=patient.id, request=request)
    return req


def reject(admin, *, request_id: int, admin_response: Optional[str] = None, request=None) -> ReaccessRequest:
    with transaction.atomic():
        req = _pending_or_raise(request_id)
        req.status = ReaccessRequest.STATUS_REJECTED
        req.admin_response = admin_response or DEFAULT_REJECTION
        req.processed_at = timezone.now()
        req.processed_by = admin
        req.save(update_fields=['status', 'admin_response', 'processed_at', 'processed_by'])
        log_action(action_type='reaccess_rejected',
                   description=f"Re-access request rejected for patient: {req.patient.full_name}",
                   user=admin, target_type='patient', target_id=req.patient_id, request=request)
    return req
