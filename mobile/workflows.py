"""
Consultation workflows.

Completing an appointment offers to record a consultation straight
away.  Each step waits for the previous one:

1. the status change is sent; a failure ends the workflow;
2. restricted patients are never offered a consultation;
3. the user is asked whether to record one now;
4. the authoring form produces a draft, or nothing when dismissed;
5. pending lab files are uploaded one by one, failed uploads are left
   out, then the consultation is created in a single call.

:class:`ConsultationEditor` covers later edits, where every child record
is added or removed through its own call.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import TYPE_CHECKING, Callable, List, Optional

from mobile.attachments import encode_file_paths
from mobile.errors import ApiError, ClinicError, RestrictedAccountError, ValidationError
from mobile.records import Appointment, Consultation, Patient
from mobile.status import AppointmentStatus

if TYPE_CHECKING:
    from mobile.api import ApiClient

logger = logging.getLogger(__name__)

RESTRICTED_CONSULTATION = 'Cannot add consultation: Patient account is restricted'


# ---------------------------------------------------------------------
# Drafts
# ---------------------------------------------------------------------
@dataclass
class PrescriptionDraft:
    medication_name: str
    dosage: str = ''
    frequency: str = ''
    duration: str = ''

    def validate(self) -> None:
        if not self.medication_name.strip():
            raise ValidationError('Medication name is required')

    def to_payload(self) -> dict:
        return {
            'medication_name': self.medication_name.strip(),
            'dosage': self.dosage.strip(),
            'frequency': self.frequency.strip(),
            'duration': self.duration.strip(),
        }


@dataclass
class LabResultDraft:
    """A lab result being written.

    ``file_paths`` are already on the server; ``pending_files`` are local
    paths still to upload.
    """
    test_name: str
    result_summary: str = ''
    test_date: Optional[date] = None
    file_paths: List[str] = field(default_factory=list)
    pending_files: List[str] = field(default_factory=list)

    def validate(self) -> None:
        if not self.test_name.strip():
            raise ValidationError('Test name is required')

    def to_payload(self) -> dict:
        payload = {
            'test_name': self.test_name.strip(),
            'result_summary': self.result_summary.strip(),
        }
        if self.test_date is not None:
            payload['test_date'] = self.test_date.isoformat()
        encoded = encode_file_paths(self.file_paths)
        if encoded is not None:
            payload['result_file_path'] = encoded
        return payload


@dataclass
class ConsultationDraft:
    patient_id: int
    doctor_user_id: Optional[int]
    appointment_id: Optional[int] = None
    diagnosis: str = ''
    symptoms: str = ''
    doctor_notes: str = ''
    prescriptions: List[PrescriptionDraft] = field(default_factory=list)
    lab_results: List[LabResultDraft] = field(default_factory=list)

    def validate(self) -> None:
        if not self.diagnosis.strip() or not self.symptoms.strip():
            raise ValidationError('Please fill diagnosis and symptoms')
        for item in self.prescriptions:
            item.validate()
        for item in self.lab_results:
            item.validate()

    def to_payload(self) -> dict:
        payload = {
            'patient_id': self.patient_id,
            'diagnosis': self.diagnosis.strip(),
            'symptoms': self.symptoms.strip(),
            'doctor_notes': self.doctor_notes.strip(),
            'prescriptions': [p.to_payload() for p in self.prescriptions],
            'lab_results': [r.to_payload() for r in self.lab_results],
        }
        if self.doctor_user_id is not None:
            payload['doctor_user_id'] = self.doctor_user_id
        if self.appointment_id is not None:
            payload['appointment_id'] = self.appointment_id
        return payload


# ---------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class UploadFailure:
    local_path: str
    message: str


@dataclass(frozen=True)
class SubmitResult:
    success: bool
    message: str
    consultation_id: Optional[int] = None
    skipped_uploads: tuple = ()


@dataclass
class CompletionOutcome:
    status_updated: bool
    status_message: str
    restricted: bool = False
    prompted: bool = False
    accepted: bool = False
    consultation: Optional[SubmitResult] = None

    @property
    def messages(self) -> List[str]:
        out = [self.status_message]
        if self.consultation is not None:
            out.append(self.consultation.message)
            out.extend(f"Upload failed: {f.local_path} ({f.message})" for f in self.consultation.skipped_uploads)
        return out

    @property
    def error(self) -> Optional[str]:
        if not self.status_updated:
            return self.status_message
        if self.consultation is not None and not self.consultation.success:
            return self.consultation.message
        return None


# ---------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------
def open_consultation_form(patient: Patient, doctor_user_id: Optional[int],
                           appointment_id: Optional[int] = None) -> ConsultationDraft:
    """Empty draft bound to the patient, doctor and appointment.

    Refused locally, before any request, for restricted patients.
    """
    if patient.is_restricted:
        raise RestrictedAccountError(RESTRICTED_CONSULTATION, patient_id=patient.patient_id, name=patient.full_name)
    return ConsultationDraft(patient_id=patient.patient_id, doctor_user_id=doctor_user_id,
                             appointment_id=appointment_id)


def upload_pending(api: 'ApiClient', lab: LabResultDraft, skipped: List[UploadFailure]) -> LabResultDraft:
    """Upload ``lab.pending_files``; failures are recorded in ``skipped`` and left out."""
    paths = list(lab.file_paths)
    for local_path in lab.pending_files:
        try:
            paths.append(api.upload_lab_file(local_path))
        except ClinicError as e:
            logger.warning('Skipping attachment %s: %s', local_path, e.message)
            skipped.append(UploadFailure(local_path, e.message))
    return replace(lab, file_paths=paths, pending_files=[])


def submit_consultation(api: 'ApiClient', draft: ConsultationDraft) -> SubmitResult:
    """Upload pending files, then create the consultation in one call.

    Raises :class:`ValidationError` before any request if the draft is
    incomplete.  Backend and transport failures come back as an
    unsuccessful result.
    """
    draft.validate()
    skipped: List[UploadFailure] = []
    resolved = replace(draft, lab_results=[upload_pending(api, lab, skipped) for lab in draft.lab_results])
    try:
        body = api.create_consultation(resolved)
    except ClinicError as e:
        return SubmitResult(False, e.message, skipped_uploads=tuple(skipped))
    return SubmitResult(True, body.get('message') or 'Consultation added',
                        consultation_id=body.get('consultation_id'), skipped_uploads=tuple(skipped))


def _decline() -> bool:
    return False


class CompletionWorkflow:
    """Mark an appointment completed and optionally record its consultation.

    ``reload`` runs once the status change went through, whatever
    happens afterwards.
    """

    def __init__(self, api: 'ApiClient', *, doctor_user_id: Optional[int] = None,
                 reload: Optional[Callable[[], object]] = None):
        self.api = api
        self.doctor_user_id = doctor_user_id
        self.reload = reload

    def complete(self, appointment: Appointment, patient: Optional[Patient] = None,
                 confirm: Callable[[], bool] = _decline,
                 author: Optional[Callable[[ConsultationDraft], Optional[ConsultationDraft]]] = None,
                 ) -> CompletionOutcome:
        try:
            body = self.api.update_appointment_status(appointment.appointment_id, AppointmentStatus.COMPLETED)
        except ClinicError as e:
            return CompletionOutcome(status_updated=False, status_message=e.message)

        outcome = CompletionOutcome(status_updated=True, status_message=body.get('message') or 'Status updated')
        try:
            self._follow_up(outcome, appointment, patient, confirm, author)
        finally:
            if self.reload is not None:
                self.reload()
        return outcome

    def _follow_up(self, outcome, appointment, patient, confirm, author) -> None:
        if patient is None:
            patient = Patient(patient_id=appointment.patient_id, full_name=appointment.patient_name or '',
                              account_status=appointment.patient_account_status or 'active')
        if patient.is_restricted:
            outcome.restricted = True
            return
        outcome.prompted = True
        if not confirm():
            return
        outcome.accepted = True
        form = open_consultation_form(patient, self.doctor_user_id or appointment.doctor_user_id,
                                      appointment.appointment_id)
        draft = author(form) if author is not None else None
        if draft is None:
            return
        try:
            outcome.consultation = submit_consultation(self.api, draft)
        except ValidationError as e:
            outcome.consultation = SubmitResult(False, e.message)


class ConsultationEditor:
    """Edit one consultation; every change is its own call, followed by a reload.

    A failed reload does not undo the change: the body is still returned
    and the failure is kept in ``reload_error``.
    """

    def __init__(self, api: 'ApiClient', consultation: Consultation):
        self.api = api
        self.consultation = consultation
        self.skipped_uploads: List[UploadFailure] = []
        self.reload_error: Optional[str] = None

    @property
    def consultation_id(self) -> int:
        return self.consultation.consultation_id

    def reload(self) -> Consultation:
        for item in self.api.list_consultations(self.consultation.patient_id):
            if item.consultation_id == self.consultation_id:
                self.consultation = item
                return item
        raise ApiError('Consultation not found')

    def _after_write(self, body: dict) -> dict:
        self.reload_error = None
        try:
            self.reload()
        except ClinicError as e:
            logger.warning('Reload after edit failed: %s', e.message)
            self.reload_error = e.message
        return body

    def update_details(self, *, diagnosis: Optional[str] = None, symptoms: Optional[str] = None,
                       doctor_notes: Optional[str] = None) -> dict:
        for label, value in (('Diagnosis', diagnosis), ('Symptoms', symptoms)):
            if value is not None and not value.strip():
                raise ValidationError(f"{label} cannot be empty")
        body = self.api.update_consultation(self.consultation_id, diagnosis=diagnosis, symptoms=symptoms,
                                            doctor_notes=doctor_notes)
        return self._after_write(body)

    def add_prescription(self, draft: PrescriptionDraft) -> dict:
        draft.validate()
        body = self.api.create_prescription(self.consultation_id, draft)
        return self._after_write(body)

    def add_lab_result(self, draft: LabResultDraft) -> dict:
        draft.validate()
        self.skipped_uploads = []
        body = self.api.create_lab_result(self.consultation_id, upload_pending(self.api, draft, self.skipped_uploads))
        return self._after_write(body)

    def delete_prescription(self, prescription_id: int) -> dict:
        body = self.api.delete_prescription(prescription_id)
        return self._after_write(body)

    def delete_lab_result(self, result_id: int) -> dict:
        body = self.api.delete_lab_result(result_id)
        return self._after_write(body)
