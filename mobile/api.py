"""
HTTP client for the clinic backend.

One :class:`ApiClient` wraps one ``requests.Session``.  Reads return
typed records from :mod:`mobile.records`; writes return the decoded
response body so callers can show its ``message``.  A body with
``success: false`` raises :class:`~mobile.errors.ApiError` carrying the
backend's message unchanged.
"""
from __future__ import annotations

import logging
import os
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Union

import requests

from mobile.attachments import encode_file_paths
from mobile.config import ClientSettings
from mobile.errors import ApiError, RestrictedAccountError, TransportError
from mobile.records import (
    Appointment,
    Consultation,
    Patient,
    PatientRecords,
    ReaccessRequest,
    Session,
    SystemLog,
)
from mobile.status import ALL, AppointmentStatus

if TYPE_CHECKING:
    from mobile.workflows import ConsultationDraft, LabResultDraft, PrescriptionDraft

logger = logging.getLogger(__name__)

WIRE_DATETIME = '%Y-%m-%d %H:%M:%S'


def _wire_datetime(value: Union[datetime, str]) -> str:
    return value.strftime(WIRE_DATETIME) if isinstance(value, datetime) else value


def _wire_date(value: Union[date, str, None]) -> Optional[str]:
    return value.isoformat() if isinstance(value, date) else value


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


class ApiClient:
    def __init__(self, settings: Optional[ClientSettings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or ClientSettings.from_env()
        self.session = session or requests.Session()
        self.token: Optional[str] = self.settings.token
        self.current: Optional[Session] = None

    # ------------------------------------------------------------------
    # plumbing
    # ------------------------------------------------------------------
    def _headers(self) -> Dict[str, str]:
        headers = {'Accept': 'application/json'}
        if self.token:
            headers['Authorization'] = f"Token {self.token}"
        return headers

    def request(self, method: str, path: str, *, params: Optional[dict] = None, json: Optional[dict] = None,
                files: Optional[dict] = None) -> dict:
        url = f"{self.settings.base_url}/{path.lstrip('/')}"
        logger.debug('%s %s', method, url)
        try:
            resp = self.session.request(
                method, url,
                params=_compact(params or {}) or None,
                json=json,
                files=files,
                headers=self._headers(),
                timeout=self.settings.timeout,
            )
        except requests.RequestException as e:
            logger.warning('%s %s failed: %s', method, url, e)
            raise TransportError(f"Connection Error: {e}") from e
        try:
            body = resp.json()
        except ValueError as e:
            logger.warning('%s %s returned a non-JSON body (%s)', method, url, resp.status_code)
            raise TransportError(f"Connection Error: unexpected response ({resp.status_code})") from e
        if not isinstance(body, dict):
            raise TransportError(f"Connection Error: unexpected response ({resp.status_code})")
        if not body.get('success'):
            message = body.get('message') or f"Request failed ({resp.status_code})"
            if body.get('is_restricted'):
                raise RestrictedAccountError(message, patient_id=body.get('patient_id'), name=body.get('name'))
            raise ApiError(message, status_code=resp.status_code, payload=body)
        return body

    def get(self, path: str, **params) -> dict:
        return self.request('GET', path, params=params)

    def post(self, path: str, payload: Optional[dict] = None) -> dict:
        return self.request('POST', path, json=payload or {})

    # ------------------------------------------------------------------
    # authentication
    # ------------------------------------------------------------------
    def _start_session(self, body: dict) -> Session:
        session = Session.from_json(body)
        self.token = session.token
        self.current = session
        return session

    def login(self, username: str, password: str) -> Session:
        body = self.post('api/auth/login', {'login_type': 'staff', 'username': username, 'password': password})
        return self._start_session(body)

    def login_patient(self, national_id: str, full_name: str, password: str) -> Session:
        body = self.post('api/auth/login', {
            'login_type': 'patient',
            'national_id': national_id,
            'full_name': full_name,
            'password': password,
        })
        return self._start_session(body)

    def logout(self) -> dict:
        body = self.post('api/auth/logout', _compact({
            'refresh': self.current.jwt_refresh if self.current else None,
        }))
        self.token = None
        self.current = None
        return body

    # ------------------------------------------------------------------
    # appointments
    # ------------------------------------------------------------------
    def list_appointments(self, doctor_user_id: Optional[int] = None, patient_id: Optional[int] = None,
                          status: Optional[str] = None) -> List[Appointment]:
        if isinstance(status, AppointmentStatus):
            status = status.value
        body = self.get('api/appointments', doctor_user_id=doctor_user_id, patient_id=patient_id,
                        status=None if status == ALL else status)
        return [Appointment.from_json(a) for a in body.get('appointments', [])]

    def my_appointments(self) -> List[Appointment]:
        body = self.get('api/appointments/mine')
        return [Appointment.from_json(a) for a in body.get('appointments', [])]

    def create_appointment(self, patient_id: int, appointment_date: Union[datetime, str], reason_for_visit: str = '',
                           doctor_user_id: Optional[int] = None) -> dict:
        return self.post('api/appointments/create', _compact({
            'patient_id': patient_id,
            'doctor_user_id': doctor_user_id,
            'appointment_date': _wire_datetime(appointment_date),
            'reason_for_visit': reason_for_visit,
        }))

    def update_appointment(self, appointment_id: int, appointment_date: Union[datetime, str],
                           reason_for_visit: Optional[str] = None) -> dict:
        return self.post('api/appointments/update', _compact({
            'appointment_id': appointment_id,
            'appointment_date': _wire_datetime(appointment_date),
            'reason_for_visit': reason_for_visit,
        }))

    def update_appointment_status(self, appointment_id: int, status: Union[AppointmentStatus, str]) -> dict:
        value = status.value if isinstance(status, AppointmentStatus) else status
        return self.post('api/appointments/update-status', {'appointment_id': appointment_id, 'status': value})

    def delete_appointment(self, appointment_id: int) -> dict:
        return self.post('api/appointments/delete', {'appointment_id': appointment_id})

    # ------------------------------------------------------------------
    # patients
    # ------------------------------------------------------------------
    def list_patients(self, query: str = '') -> List[Patient]:
        body = self.get('api/patients', search=query or None)
        return [Patient.from_json(p) for p in body.get('patients', [])]

    def patient_records(self, user_id: Optional[int] = None, patient_id: Optional[int] = None) -> PatientRecords:
        return PatientRecords.from_json(self.get('api/patients/records', user_id=user_id, patient_id=patient_id))

    def create_patient(self, *, full_name: str, national_id: str, password: str, date_of_birth: Union[date, str],
                       gender: str, blood_type: str, phone: str, address: str = '') -> dict:
        return self.post('api/patients/create', {
            'full_name': full_name,
            'national_id': national_id,
            'password': password,
            'date_of_birth': _wire_date(date_of_birth),
            'gender': gender,
            'blood_type': blood_type,
            'phone': phone,
            'address': address,
        })

    def update_patient(self, patient_id: int, **changes) -> dict:
        if 'date_of_birth' in changes:
            changes['date_of_birth'] = _wire_date(changes['date_of_birth'])
        return self.post('api/patients/update', _compact({'patient_id': patient_id, **changes}))

    def delete_patient(self, patient_id: int) -> dict:
        return self.post('api/patients/delete', {'patient_id': patient_id})

    # ------------------------------------------------------------------
    # consultations, prescriptions, lab results
    # ------------------------------------------------------------------
    def list_consultations(self, patient_id: int) -> List[Consultation]:
        body = self.get('api/consultations', patient_id=patient_id)
        return [Consultation.from_json(c) for c in body.get('consultations', [])]

    def create_consultation(self, draft: 'ConsultationDraft') -> dict:
        return self.post('api/consultations/create', draft.to_payload())

    def update_consultation(self, consultation_id: int, *, diagnosis: Optional[str] = None,
                            symptoms: Optional[str] = None, doctor_notes: Optional[str] = None) -> dict:
        return self.post('api/consultations/update', _compact({
            'consultation_id': consultation_id,
            'diagnosis': diagnosis,
            'symptoms': symptoms,
            'doctor_notes': doctor_notes,
        }))

    def delete_consultation(self, consultation_id: int) -> dict:
        return self.post('api/consultations/delete', {'consultation_id': consultation_id})

    def create_prescription(self, consultation_id: int, draft: 'PrescriptionDraft') -> dict:
        return self.post('api/prescriptions/create', {'consultation_id': consultation_id, **draft.to_payload()})

    def update_prescription(self, prescription_id: int, **fields) -> dict:
        return self.post('api/prescriptions/update', _compact({'prescription_id': prescription_id, **fields}))

    def delete_prescription(self, prescription_id: int) -> dict:
        return self.post('api/prescriptions/delete', {'prescription_id': prescription_id})

    def create_lab_result(self, consultation_id: int, draft: 'LabResultDraft') -> dict:
        return self.post('api/lab-results/create', {'consultation_id': consultation_id, **draft.to_payload()})

    def update_lab_result(self, result_id: int, *, test_name: Optional[str] = None,
                          result_summary: Optional[str] = None, test_date: Union[date, str, None] = None,
                          file_paths: Optional[List[str]] = None) -> dict:
        return self.post('api/lab-results/update', _compact({
            'result_id': result_id,
            'test_name': test_name,
            'result_summary': result_summary,
            'test_date': _wire_date(test_date),
            'result_file_path': encode_file_paths(file_paths) if file_paths is not None else None,
        }))

    def delete_lab_result(self, result_id: int) -> dict:
        return self.post('api/lab-results/delete', {'result_id': result_id})

    def upload_lab_file(self, local_path: str) -> str:
        """Upload one file and return its server-relative path."""
        try:
            handle = open(local_path, 'rb')
        except OSError as e:
            raise TransportError(f"Could not read {os.path.basename(local_path)}: {e.strerror}") from e
        with handle:
            body = self.request('POST', 'api/lab-results/upload',
                                files={'file': (os.path.basename(local_path), handle, _guess_type(local_path))})
        file_path = body.get('file_path')
        if not file_path:
            raise ApiError('Upload failed: no file path returned', payload=body)
        return file_path

    # ------------------------------------------------------------------
    # staff and metadata
    # ------------------------------------------------------------------
    def list_staff(self, role: str = 'doctor', query: str = '') -> List[dict]:
        return self.get('api/staff', role=role, search=query or None).get('staff', [])

    def metadata(self) -> dict:
        body = self.get('api/metadata')
        return {'specialties': body.get('specialties', []), 'departments': body.get('departments', [])}

    def create_staff(self, *, username: str, password: str, role: str, full_name: str,
                     extra_id: Optional[int] = None, phone_number: str = '') -> dict:
        return self.post('api/staff/create', _compact({
            'username': username,
            'password': password,
            'role': role,
            'full_name': full_name,
            'extra_id': extra_id,
            'phone_number': phone_number,
        }))

    def update_staff(self, user_id: int, **fields) -> dict:
        return self.post('api/staff/update', _compact({'user_id': user_id, **fields}))

    def delete_staff(self, user_id: int) -> dict:
        return self.post('api/staff/delete', {'user_id': user_id})

    # ------------------------------------------------------------------
    # system logs
    # ------------------------------------------------------------------
    def system_logs(self, limit: int = 50, offset: int = 0,
                    filter_type: Optional[str] = None) -> Tuple[List[SystemLog], int]:
        body = self.get('api/logs', limit=limit, offset=offset,
                        filter_type=None if filter_type in (None, '', ALL) else filter_type)
        return [SystemLog.from_json(r) for r in body.get('logs', [])], int(body.get('total') or 0)

    def log_action_types(self) -> List[str]:
        return list(self.get('api/logs/action-types').get('action_types', []))

    def clear_logs(self, days: Optional[int] = None) -> dict:
        return self.post('api/logs/clear', _compact({'days': days}))

    # ------------------------------------------------------------------
    # re-access requests
    # ------------------------------------------------------------------
    def submit_reaccess(self, patient_id: int, reason: str, contact_phone: Optional[str] = None) -> dict:
        return self.post('api/reaccess/submit', _compact({
            'patient_id': patient_id,
            'reason': reason,
            'contact_phone': contact_phone,
        }))

    def check_reaccess(self, patient_id: int) -> Optional[ReaccessRequest]:
        body = self.get('api/reaccess/check', patient_id=patient_id)
        if not body.get('has_pending') or not body.get('request'):
            return None
        return ReaccessRequest.from_json(body['request'])

    def list_reaccess(self, status: str = 'pending') -> List[ReaccessRequest]:
        body = self.get('api/reaccess', status=status)
        return [ReaccessRequest.from_json(r) for r in body.get('requests', [])]

    def approve_reaccess(self, request_id: int, admin_response: Optional[str] = None) -> dict:
        return self.post('api/reaccess/approve', _compact({'request_id': request_id, 'admin_response': admin_response}))

    def reject_reaccess(self, request_id: int, admin_response: Optional[str] = None) -> dict:
        return self.post('api/reaccess/reject', _compact({'request_id': request_id, 'admin_response': admin_response}))


def _guess_type(path: str) -> str:
    ext = os.path.splitext(path)[1].lower()
    return {
        '.pdf': 'application/pdf',
        '.jpg': 'image/jpeg',
        '.jpeg': 'image/jpeg',
        '.png': 'image/png',
        '.gif': 'image/gif',
    }.get(ext, 'application/octet-stream')
