"""
Per-screen state containers.

Each screen owns its copy of the data it shows and reloads it from the
API after every successful write.  :meth:`ScreenState.run` is the only
way a screen talks to the backend:

* while one call is in flight further calls are ignored, which stands in
  for disabling the submit button;
* once the screen is disposed, late results are dropped;
* a failure keeps the data already on screen and exposes the backend's
  message in ``error``.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Generic, List, Optional, TypeVar

from mobile import filters
from mobile.errors import ClinicError, ValidationError
from mobile.records import Appointment, Consultation, Patient, PatientRecords, ReaccessRequest, SystemLog
from mobile.status import ALL, AppointmentStatus, StatusLike, parse_status
from mobile.workflows import (
    CompletionOutcome,
    CompletionWorkflow,
    ConsultationDraft,
    ConsultationEditor,
    LabResultDraft,
    PrescriptionDraft,
    SubmitResult,
    UploadFailure,
    open_consultation_form,
    submit_consultation,
)

if TYPE_CHECKING:
    from mobile.api import ApiClient

logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')


class ScreenState(Generic[T]):
    def __init__(self, api: 'ApiClient'):
        self.api = api
        self.data: Optional[T] = None
        self.error: Optional[str] = None
        self.message: Optional[str] = None
        self.disposed = False
        self._busy = threading.Lock()

    @property
    def loading(self) -> bool:
        return self._busy.locked()

    def dispose(self) -> None:
        self.disposed = True

    def run(self, action: Callable[[], R]) -> Optional[R]:
        """Run ``action`` unless busy or disposed; ``None`` when skipped or failed."""
        if self.disposed or not self._busy.acquire(blocking=False):
            return None
        try:
            self.error = None
            result = action()
        except ClinicError as e:
            logger.info('%s: %s', type(self).__name__, e.message)
            if not self.disposed:
                self.error = e.message
            return None
        finally:
            self._busy.release()
        if self.disposed:
            return None
        return result

    def fetch(self) -> T:
        raise NotImplementedError

    def load(self) -> Optional[T]:
        data = self.run(self.fetch)
        if data is not None:
            self.data = data
        return data

    def reload(self) -> None:
        """Fetch inside an action that already holds the busy lock.

        A failed reload keeps the current data and sets ``error``; it
        never undoes the write that preceded it.
        """
        try:
            data = self.fetch()
        except ClinicError as e:
            logger.info('%s reload failed: %s', type(self).__name__, e.message)
            if not self.disposed:
                self.error = e.message
            return
        if not self.disposed:
            self.data = data

    def write(self, call: Callable[[], dict]) -> Optional[dict]:
        """Send one write, then reload within the same busy window."""
        def action():
            body = call()
            self.reload()
            return body

        body = self.run(action)
        if body is not None:
            self.message = body.get('message')
        return body


class DoctorAppointmentsScreen(ScreenState[List[Appointment]]):
    def __init__(self, api: 'ApiClient', doctor_user_id: int, clock: Callable[[], datetime] = datetime.now):
        super().__init__(api)
        self.doctor_user_id = doctor_user_id
        self.clock = clock
        self.status_filter: StatusLike = ALL

    def fetch(self) -> List[Appointment]:
        return self.api.list_appointments(doctor_user_id=self.doctor_user_id)

    def set_filter(self, status: StatusLike) -> None:
        self.status_filter = status

    @property
    def visible(self) -> List[Appointment]:
        return filters.by_status(self.data or [], self.status_filter)

    @property
    def today(self) -> List[Appointment]:
        return filters.today(self.data or [], self.clock())

    @property
    def upcoming(self) -> List[Appointment]:
        return filters.upcoming(self.data or [], self.clock())

    @property
    def past(self) -> List[Appointment]:
        return filters.past(self.data or [])

    @property
    def stats(self) -> filters.AppointmentStats:
        return filters.appointment_stats(self.data or [], self.clock())

    def update_status(self, appointment: Appointment, status: StatusLike, *, patient: Optional[Patient] = None,
                      confirm: Optional[Callable[[], bool]] = None,
                      author: Optional[Callable[[ConsultationDraft], Optional[ConsultationDraft]]] = None):
        """Send a status change; ``completed`` goes through the completion workflow."""
        try:
            status = parse_status(status)
        except ValueError:
            self.error = f"Invalid status: {status}"
            return None
        if status is not AppointmentStatus.COMPLETED:
            return self.write(lambda: self.api.update_appointment_status(appointment.appointment_id, status))

        workflow = CompletionWorkflow(self.api, doctor_user_id=self.doctor_user_id, reload=self.reload)
        outcome: Optional[CompletionOutcome] = self.run(
            lambda: workflow.complete(appointment, patient, confirm or (lambda: False), author)
        )
        if outcome is not None:
            self.error = outcome.error or self.error
            self.message = '\n'.join(outcome.messages)
        return outcome

    def delete(self, appointment_id: int) -> Optional[dict]:
        return self.write(lambda: self.api.delete_appointment(appointment_id))


class PatientAppointmentsScreen(ScreenState[List[Appointment]]):
    def __init__(self, api: 'ApiClient', clock: Callable[[], datetime] = datetime.now):
        super().__init__(api)
        self.clock = clock

    def fetch(self) -> List[Appointment]:
        return self.api.my_appointments()

    @property
    def upcoming(self) -> List[Appointment]:
        return filters.upcoming(self.data or [], self.clock())

    @property
    def past(self) -> List[Appointment]:
        return filters.past(self.data or [])


class PatientDetailScreen(ScreenState[List[Consultation]]):
    """A patient's consultations as seen by a doctor."""

    def __init__(self, api: 'ApiClient', patient: Patient, doctor_user_id: Optional[int] = None):
        super().__init__(api)
        self.patient = patient
        self.doctor_user_id = doctor_user_id

    def fetch(self) -> List[Consultation]:
        return self.api.list_consultations(self.patient.patient_id)

    @property
    def can_add_consultation(self) -> bool:
        return not self.patient.is_restricted

    def open_consultation_form(self, appointment_id: Optional[int] = None) -> Optional[ConsultationDraft]:
        try:
            return open_consultation_form(self.patient, self.doctor_user_id, appointment_id)
        except ClinicError as e:
            self.error = e.message
            return None

    def save_consultation(self, draft: ConsultationDraft) -> Optional[SubmitResult]:
        try:
            draft.validate()
        except ValidationError as e:
            self.error = e.message
            return None

        def action():
            result = submit_consultation(self.api, draft)
            if result.success:
                self.reload()
            return result

        result = self.run(action)
        if result is None:
            return None
        if result.success:
            self.message = result.message
        else:
            self.error = result.message
        return result

    def editor(self, consultation: Consultation) -> 'ConsultationEditScreen':
        return ConsultationEditScreen(self.api, consultation)

    def delete_consultation(self, consultation_id: int) -> Optional[dict]:
        return self.write(lambda: self.api.delete_consultation(consultation_id))


class ConsultationEditScreen(ScreenState[Consultation]):
    """One consultation open for editing; every edit is a guarded submit."""

    def __init__(self, api: 'ApiClient', consultation: Consultation):
        super().__init__(api)
        self.editor = ConsultationEditor(api, consultation)
        self.data = consultation

    def fetch(self) -> Consultation:
        return self.editor.reload()

    @property
    def skipped_uploads(self) -> List[UploadFailure]:
        return self.editor.skipped_uploads

    def _edit(self, call: Callable[[], dict]) -> Optional[dict]:
        body = self.run(call)
        if body is None:
            return None
        self.data = self.editor.consultation
        self.message = body.get('message')
        self.error = self.editor.reload_error
        return body

    def update_details(self, **fields) -> Optional[dict]:
        return self._edit(lambda: self.editor.update_details(**fields))

    def add_prescription(self, draft: PrescriptionDraft) -> Optional[dict]:
        return self._edit(lambda: self.editor.add_prescription(draft))

    def add_lab_result(self, draft: LabResultDraft) -> Optional[dict]:
        return self._edit(lambda: self.editor.add_lab_result(draft))

    def delete_prescription(self, prescription_id: int) -> Optional[dict]:
        return self._edit(lambda: self.editor.delete_prescription(prescription_id))

    def delete_lab_result(self, result_id: int) -> Optional[dict]:
        return self._edit(lambda: self.editor.delete_lab_result(result_id))


class PatientRecordsScreen(ScreenState[PatientRecords]):
    def __init__(self, api: 'ApiClient', *, user_id: Optional[int] = None, patient_id: Optional[int] = None):
        super().__init__(api)
        self.user_id = user_id
        self.patient_id = patient_id

    def fetch(self) -> PatientRecords:
        return self.api.patient_records(user_id=self.user_id, patient_id=self.patient_id)


class SystemLogsScreen(ScreenState[List[SystemLog]]):
    def __init__(self, api: 'ApiClient', page_size: int = 50):
        super().__init__(api)
        self.page_size = page_size
        self.filter_type: str = ALL
        self.total = 0
        self.action_types: List[str] = []

    def fetch(self) -> List[SystemLog]:
        rows, self.total = self.api.system_logs(limit=self.page_size, offset=0, filter_type=self.filter_type)
        self.action_types = self.api.log_action_types()
        return rows

    def set_filter(self, action_type: str) -> Optional[List[SystemLog]]:
        self.filter_type = action_type or ALL
        return self.load()

    @property
    def has_more(self) -> bool:
        return len(self.data or []) < self.total

    def load_more(self) -> Optional[List[SystemLog]]:
        offset = len(self.data or [])
        page = self.run(lambda: self.api.system_logs(limit=self.page_size, offset=offset,
                                                     filter_type=self.filter_type))
        if page is None:
            return None
        rows, self.total = page
        self.data = list(self.data or []) + rows
        return rows

    def clear_old(self, days: Optional[int] = None) -> Optional[dict]:
        return self.write(lambda: self.api.clear_logs(days))


class ReaccessScreen(ScreenState[List[ReaccessRequest]]):
    """Both sides of re-access: patients file and check, admins decide.

    With ``patient_id`` set the data is the pending request (zero or one),
    otherwise the admin list filtered by ``status_filter``.
    """

    def __init__(self, api: 'ApiClient', *, patient_id: Optional[int] = None, status_filter: str = 'pending'):
        super().__init__(api)
        self.patient_id = patient_id
        self.status_filter = status_filter

    def fetch(self) -> List[ReaccessRequest]:
        if self.patient_id is not None:
            pending = self.api.check_reaccess(self.patient_id)
            return [pending] if pending else []
        return self.api.list_reaccess(self.status_filter)

    @property
    def has_pending(self) -> bool:
        return any(r.is_pending for r in self.data or [])

    def submit(self, reason: str, contact_phone: Optional[str] = None) -> Optional[dict]:
        if not reason.strip():
            self.error = 'Please explain why you missed your appointments'
            return None
        return self.write(lambda: self.api.submit_reaccess(self.patient_id, reason.strip(), contact_phone or None))

    def approve(self, request_id: int, response: Optional[str] = None) -> Optional[dict]:
        return self.write(lambda: self.api.approve_reaccess(request_id, response or None))

    def reject(self, request_id: int, response: Optional[str] = None) -> Optional[dict]:
        return self.write(lambda: self.api.reject_reaccess(request_id, response or None))
