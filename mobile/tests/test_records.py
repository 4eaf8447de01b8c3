from datetime import date, datetime, timezone

from mobile.records import (
    Appointment,
    Consultation,
    PatientRecords,
    ReaccessRequest,
    Session,
    parse_date,
    parse_datetime,
)


def test_parse_datetime_formats():
    assert parse_datetime('2024-03-14 09:05:00') == datetime(2024, 3, 14, 9, 5)
    assert parse_datetime('2024-03-14 09:05') == datetime(2024, 3, 14, 9, 5)
    assert parse_datetime('2024-03-14T09:05:00') == datetime(2024, 3, 14, 9, 5)
    assert parse_datetime('') is None
    assert parse_datetime('yesterday') is None
    assert parse_datetime(None) is None


def test_parse_datetime_converts_aware_values_to_local():
    parsed = parse_datetime('2024-03-14T09:05:00+00:00')
    assert parsed.tzinfo is None
    assert parsed == datetime(2024, 3, 14, 9, 5, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)


def test_parse_date():
    assert parse_date('1990-05-17') == date(1990, 5, 17)
    assert parse_date('1990-05-17 00:00:00') == date(1990, 5, 17)
    assert parse_date('17/05/1990') is None


def test_appointment_coerces_ids_and_status():
    a = Appointment.from_json({
        'appointment_id': '12', 'patient_id': 3, 'status': 'Scheduled',
        'appointment_date': '2024-03-14 09:00:00', 'patient_account_status': 'restricted',
    })
    assert a.appointment_id == 12
    assert a.status == 'scheduled'
    assert a.scheduled_at == datetime(2024, 3, 14, 9)
    assert a.patient_is_restricted
    assert a.doctor_name is None


def test_appointment_keeps_raw_date_when_unparseable():
    a = Appointment.from_json({'appointment_id': 1, 'status': 'scheduled', 'appointment_date': 'soon'})
    assert a.appointment_date == 'soon'
    assert a.scheduled_at is None


def test_consultation_nests_children_and_decodes_paths():
    c = Consultation.from_json({
        'consultation_id': 5,
        'appointment_id': None,
        'diagnosis': 'Flu',
        'prescriptions': [{'prescription_id': 1, 'medication_name': 'Paracetamol'}],
        'lab_results': [
            {'result_id': 2, 'test_name': 'CBC', 'result_file_path': '["uploads/a.png"]'},
            {'result_id': 3, 'test_name': 'ECG', 'result_file_path': 'uploads/old.pdf'},
        ],
    })
    assert c.is_walk_in
    assert c.prescriptions[0].medication_name == 'Paracetamol'
    assert [r.file_paths for r in c.lab_results] == [('uploads/a.png',), ('uploads/old.pdf',)]
    assert c.symptoms == ''


def test_records_bundle():
    bundle = PatientRecords.from_json({
        'patient': {'patient_id': 4, 'full_name': 'Karim Benali', 'account_status': 'active'},
        'appointments': [{'appointment_id': 9, 'status': 'completed'}],
        'stats': {'total_appointments': 1},
    })
    assert bundle.patient.full_name == 'Karim Benali'
    assert not bundle.patient.is_restricted
    assert bundle.stats.total_appointments == 1
    assert bundle.stats.total_consultations == 0
    assert bundle.consultations == ()


def test_session_and_reaccess():
    s = Session.from_json({'user_id': 7, 'role': 'patient', 'name': 'Karim', 'token': 'abc', 'patient_id': '4'})
    assert (s.user_id, s.patient_id, s.jwt_access) == (7, 4, None)
    r = ReaccessRequest.from_json({'request_id': 1, 'patient_id': 4, 'status': 'pending'})
    assert r.is_pending
