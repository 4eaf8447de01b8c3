"""
Typed records for the clinic API.

Each payload is decoded once, at the API boundary, into a frozen
dataclass.  Missing keys become ``None`` and numeric identifiers sent
as strings are coerced, so screens never handle raw dicts.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional, Tuple

from mobile.attachments import decode_file_paths

DATETIME_FORMATS = ('%Y-%m-%d %H:%M:%S', '%Y-%m-%d %H:%M', '%Y-%m-%dT%H:%M:%S', '%Y-%m-%dT%H:%M')


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a backend timestamp into naive local time, ``None`` if malformed."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        parsed = None
        for fmt in DATETIME_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
        if parsed is None:
            try:
                parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
            except ValueError:
                return None
    else:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def parse_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def _int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True)
class Appointment:
    appointment_id: int
    status: str
    appointment_date: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    patient_id: Optional[int] = None
    doctor_id: Optional[int] = None
    doctor_user_id: Optional[int] = None
    reason_for_visit: Optional[str] = None
    patient_name: Optional[str] = None
    patient_phone: Optional[str] = None
    patient_account_status: Optional[str] = None
    doctor_name: Optional[str] = None

    @property
    def patient_is_restricted(self) -> bool:
        return self.patient_account_status == 'restricted'

    @classmethod
    def from_json(cls, data: dict) -> 'Appointment':
        raw_date = _str(data.get('appointment_date'))
        return cls(
            appointment_id=_int(data.get('appointment_id')),
            status=(_str(data.get('status')) or '').lower(),
            appointment_date=raw_date,
            scheduled_at=parse_datetime(raw_date),
            patient_id=_int(data.get('patient_id')),
            doctor_id=_int(data.get('doctor_id')),
            doctor_user_id=_int(data.get('doctor_user_id')),
            reason_for_visit=_str(data.get('reason_for_visit')),
            patient_name=_str(data.get('patient_name')),
            patient_phone=_str(data.get('patient_phone')),
            patient_account_status=_str(data.get('patient_account_status')),
            doctor_name=_str(data.get('doctor_name')),
        )


@dataclass(frozen=True)
class Patient:
    patient_id: int
    full_name: str
    user_id: Optional[int] = None
    national_id: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    blood_type: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    account_status: str = 'active'
    consecutive_missed_appointments: int = 0
    consultation_count: Optional[int] = None
    last_visit: Optional[datetime] = None

    @property
    def is_restricted(self) -> bool:
        return self.account_status == 'restricted'

    @classmethod
    def from_json(cls, data: dict) -> 'Patient':
        return cls(
            patient_id=_int(data.get('patient_id')),
            full_name=_str(data.get('full_name')) or '',
            user_id=_int(data.get('user_id')),
            national_id=_str(data.get('national_id')),
            date_of_birth=parse_date(data.get('date_of_birth')),
            gender=_str(data.get('gender')),
            blood_type=_str(data.get('blood_type')),
            phone_number=_str(data.get('phone_number')),
            address=_str(data.get('address')),
            account_status=_str(data.get('account_status')) or 'active',
            consecutive_missed_appointments=_int(data.get('consecutive_missed_appointments')) or 0,
            consultation_count=_int(data.get('consultation_count')),
            last_visit=parse_datetime(data.get('last_visit')),
        )


@dataclass(frozen=True)
class Prescription:
    prescription_id: int
    medication_name: str
    consultation_id: Optional[int] = None
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None
    visit_date: Optional[datetime] = None
    doctor_name: Optional[str] = None

    @classmethod
    def from_json(cls, data: dict) -> 'Prescription':
        return cls(
            prescription_id=_int(data.get('prescription_id')),
            medication_name=_str(data.get('medication_name')) or '',
            consultation_id=_int(data.get('consultation_id')),
            dosage=_str(data.get('dosage')),
            frequency=_str(data.get('frequency')),
            duration=_str(data.get('duration')),
            visit_date=parse_datetime(data.get('visit_date')),
            doctor_name=_str(data.get('doctor_name')),
        )


@dataclass(frozen=True)
class LabResult:
    result_id: int
    test_name: str
    consultation_id: Optional[int] = None
    result_summary: Optional[str] = None
    test_date: Optional[date] = None
    file_paths: Tuple[str, ...] = ()
    visit_date: Optional[datetime] = None
    doctor_name: Optional[str] = None

    @classmethod
    def from_json(cls, data: dict) -> 'LabResult':
        return cls(
            result_id=_int(data.get('result_id')),
            test_name=_str(data.get('test_name')) or '',
            consultation_id=_int(data.get('consultation_id')),
            result_summary=_str(data.get('result_summary')),
            test_date=parse_date(data.get('test_date')),
            file_paths=tuple(decode_file_paths(data.get('result_file_path'))),
            visit_date=parse_datetime(data.get('visit_date')),
            doctor_name=_str(data.get('doctor_name')),
        )


@dataclass(frozen=True)
class Consultation:
    consultation_id: int
    patient_id: Optional[int] = None
    doctor_id: Optional[int] = None
    doctor_user_id: Optional[int] = None
    appointment_id: Optional[int] = None
    visit_date: Optional[datetime] = None
    diagnosis: str = ''
    symptoms: str = ''
    doctor_notes: str = ''
    doctor_name: Optional[str] = None
    prescriptions: Tuple[Prescription, ...] = ()
    lab_results: Tuple[LabResult, ...] = ()

    @property
    def is_walk_in(self) -> bool:
        return self.appointment_id is None

    @classmethod
    def from_json(cls, data: dict) -> 'Consultation':
        return cls(
            consultation_id=_int(data.get('consultation_id')),
            patient_id=_int(data.get('patient_id')),
            doctor_id=_int(data.get('doctor_id')),
            doctor_user_id=_int(data.get('doctor_user_id')),
            appointment_id=_int(data.get('appointment_id')),
            visit_date=parse_datetime(data.get('visit_date')),
            diagnosis=_str(data.get('diagnosis')) or '',
            symptoms=_str(data.get('symptoms')) or '',
            doctor_notes=_str(data.get('doctor_notes')) or '',
            doctor_name=_str(data.get('doctor_name')),
            prescriptions=tuple(Prescription.from_json(p) for p in data.get('prescriptions') or ()),
            lab_results=tuple(LabResult.from_json(r) for r in data.get('lab_results') or ()),
        )


@dataclass(frozen=True)
class SystemLog:
    log_id: int
    action_type: str
    action_description: str = ''
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    user_role: Optional[str] = None
    target_type: Optional[str] = None
    target_id: Optional[int] = None
    ip_address: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_json(cls, data: dict) -> 'SystemLog':
        return cls(
            log_id=_int(data.get('log_id')),
            action_type=_str(data.get('action_type')) or '',
            action_description=_str(data.get('action_description')) or '',
            user_id=_int(data.get('user_id')),
            user_name=_str(data.get('user_name')),
            user_role=_str(data.get('user_role')),
            target_type=_str(data.get('target_type')),
            target_id=_int(data.get('target_id')),
            ip_address=_str(data.get('ip_address')),
            created_at=parse_datetime(data.get('created_at')),
        )


@dataclass(frozen=True)
class ReaccessRequest:
    request_id: int
    patient_id: int
    status: str
    reason: str = ''
    patient_name: Optional[str] = None
    national_id: Optional[str] = None
    contact_phone: Optional[str] = None
    admin_response: Optional[str] = None
    consecutive_missed_appointments: Optional[int] = None
    created_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == 'pending'

    @classmethod
    def from_json(cls, data: dict) -> 'ReaccessRequest':
        return cls(
            request_id=_int(data.get('request_id')),
            patient_id=_int(data.get('patient_id')),
            status=_str(data.get('status')) or 'pending',
            reason=_str(data.get('reason')) or '',
            patient_name=_str(data.get('patient_name')),
            national_id=_str(data.get('national_id')),
            contact_phone=_str(data.get('contact_phone')),
            admin_response=_str(data.get('admin_response')),
            consecutive_missed_appointments=_int(data.get('consecutive_missed_appointments')),
            created_at=parse_datetime(data.get('created_at')),
            processed_at=parse_datetime(data.get('processed_at')),
        )


@dataclass(frozen=True)
class Session:
    """The logged-in user as returned by the login call."""
    user_id: int
    role: str
    name: str
    token: str
    patient_id: Optional[int] = None
    jwt_access: Optional[str] = None
    jwt_refresh: Optional[str] = None

    @classmethod
    def from_json(cls, data: dict) -> 'Session':
        return cls(
            user_id=_int(data.get('user_id')),
            role=_str(data.get('role')) or '',
            name=_str(data.get('name')) or '',
            token=_str(data.get('token')) or '',
            patient_id=_int(data.get('patient_id')),
            jwt_access=_str(data.get('jwt_access')),
            jwt_refresh=_str(data.get('jwt_refresh')),
        )


@dataclass(frozen=True)
class RecordStats:
    total_consultations: int = 0
    total_prescriptions: int = 0
    total_lab_results: int = 0
    total_appointments: int = 0
    upcoming_appointments: int = 0

    @classmethod
    def from_json(cls, data: Optional[dict]) -> 'RecordStats':
        data = data or {}
        return cls(**{name: _int(data.get(name)) or 0 for name in cls.__dataclass_fields__})


@dataclass(frozen=True)
class PatientRecords:
    """The full medical record bundle of one patient."""
    patient: Patient
    consultations: Tuple[Consultation, ...] = ()
    prescriptions: Tuple[Prescription, ...] = ()
    lab_results: Tuple[LabResult, ...] = ()
    appointments: Tuple[Appointment, ...] = ()
    stats: RecordStats = field(default_factory=RecordStats)

    @classmethod
    def from_json(cls, data: dict) -> 'PatientRecords':
        return cls(
            patient=Patient.from_json(data.get('patient') or {}),
            consultations=tuple(Consultation.from_json(c) for c in data.get('consultations') or ()),
            prescriptions=tuple(Prescription.from_json(p) for p in data.get('prescriptions') or ()),
            lab_results=tuple(LabResult.from_json(r) for r in data.get('lab_results') or ()),
            appointments=tuple(Appointment.from_json(a) for a in data.get('appointments') or ()),
            stats=RecordStats.from_json(data.get('stats')),
        )
