import json

import pytest

from mobile.errors import RestrictedAccountError, ValidationError
from mobile.records import Consultation, Prescription
from mobile.workflows import (
    CompletionWorkflow,
    ConsultationDraft,
    ConsultationEditor,
    LabResultDraft,
    PrescriptionDraft,
    open_consultation_form,
    submit_consultation,
)


def fill(draft):
    draft.diagnosis = 'Seasonal flu'
    draft.symptoms = 'Fever'
    draft.prescriptions = [PrescriptionDraft('Paracetamol', '500mg'), PrescriptionDraft('Vitamin C')]
    draft.lab_results = [LabResultDraft('Chest X-ray', pending_files=['/sd/xray1.png', '/sd/xray2.png'])]
    return draft


class Reloads:
    def __init__(self):
        self.count = 0

    def __call__(self):
        self.count += 1


def test_declining_records_no_consultation(api, appointment, patient):
    reload = Reloads()
    outcome = CompletionWorkflow(api, reload=reload).complete(appointment, patient, confirm=lambda: False)
    assert outcome.status_updated
    assert outcome.prompted and not outcome.accepted
    assert outcome.consultation is None
    assert api.names() == ['update_appointment_status']
    assert api.calls[0] == ('update_appointment_status', 17, 'completed')
    assert reload.count == 1


def test_dismissed_form_records_nothing(api, appointment, patient):
    outcome = CompletionWorkflow(api).complete(appointment, patient, confirm=lambda: True, author=lambda d: None)
    assert outcome.accepted
    assert 'create_consultation' not in api.names()


def test_accept_with_children_and_a_failed_upload(api, appointment, patient):
    api.failing_uploads = {'/sd/xray2.png'}
    reload = Reloads()
    outcome = CompletionWorkflow(api, doctor_user_id=2, reload=reload).complete(
        appointment, patient, confirm=lambda: True, author=fill)

    assert api.names() == [
        'update_appointment_status', 'upload_lab_file', 'upload_lab_file', 'create_consultation',
    ]
    payload = api.calls[-1][1]
    assert payload['appointment_id'] == 17
    assert payload['doctor_user_id'] == 2
    assert len(payload['prescriptions']) == 2
    [lab] = payload['lab_results']
    assert json.loads(lab['result_file_path']) == ['uploads/lab_results/xray1.png']

    result = outcome.consultation
    assert result.success and result.consultation_id == 41
    assert [f.local_path for f in result.skipped_uploads] == ['/sd/xray2.png']
    assert outcome.error is None
    assert any('Upload failed: /sd/xray2.png' in m for m in outcome.messages)
    assert reload.count == 1


def test_all_uploads_failing_omits_the_path_field(api, appointment, patient):
    api.failing_uploads = {'/sd/xray1.png', '/sd/xray2.png'}
    outcome = CompletionWorkflow(api).complete(appointment, patient, confirm=lambda: True, author=fill)
    [lab] = api.calls[-1][1]['lab_results']
    assert 'result_file_path' not in lab
    assert len(outcome.consultation.skipped_uploads) == 2


def test_restricted_patient_is_never_prompted(api, appointment, restricted_patient):
    asked = []
    outcome = CompletionWorkflow(api).complete(appointment, restricted_patient,
                                               confirm=lambda: asked.append(1) or True, author=fill)
    assert outcome.status_updated and outcome.restricted
    assert not outcome.prompted
    assert asked == []
    assert api.names() == ['update_appointment_status']


def test_restriction_read_from_the_appointment_row(api, appointment):
    row = appointment.__class__(**{**appointment.__dict__, 'patient_account_status': 'restricted'})
    outcome = CompletionWorkflow(api).complete(row, confirm=lambda: True, author=fill)
    assert outcome.restricted
    assert api.names() == ['update_appointment_status']


def test_status_failure_stops_everything(api, appointment, patient, refused):
    api.fail['update_appointment_status'] = refused
    reload = Reloads()
    outcome = CompletionWorkflow(api, reload=reload).complete(appointment, patient, confirm=lambda: True,
                                                              author=fill)
    assert not outcome.status_updated
    assert outcome.error == 'Cannot change status from completed to completed'
    assert api.names() == ['update_appointment_status']
    assert reload.count == 0


def test_incomplete_draft_is_reported_without_a_request(api, appointment, patient):
    outcome = CompletionWorkflow(api).complete(appointment, patient, confirm=lambda: True, author=lambda d: d)
    assert outcome.error == 'Please fill diagnosis and symptoms'
    assert api.names() == ['update_appointment_status']


def test_open_form_refuses_restricted_patient(restricted_patient):
    with pytest.raises(RestrictedAccountError) as exc:
        open_consultation_form(restricted_patient, 2)
    assert exc.value.message == 'Cannot add consultation: Patient account is restricted'
    assert exc.value.patient_id == 5


def test_submit_validates_children(api):
    draft = ConsultationDraft(patient_id=4, doctor_user_id=2, diagnosis='Flu', symptoms='Fever',
                              prescriptions=[PrescriptionDraft('  ')])
    with pytest.raises(ValidationError):
        submit_consultation(api, draft)
    assert api.calls == []


def test_walk_in_payload_has_no_appointment(api):
    draft = ConsultationDraft(patient_id=4, doctor_user_id=None, diagnosis=' Flu ', symptoms='Fever')
    result = submit_consultation(api, draft)
    assert result.success
    payload = api.calls[0][1]
    assert 'appointment_id' not in payload and 'doctor_user_id' not in payload
    assert payload['diagnosis'] == 'Flu'
    assert payload['prescriptions'] == [] and payload['lab_results'] == []


# ---------------------------------------------------------------------
# Editing
# ---------------------------------------------------------------------

@pytest.fixture
def consultation():
    return Consultation(
        consultation_id=41, patient_id=4, diagnosis='Angina', symptoms='Chest pain',
        prescriptions=tuple(Prescription(prescription_id=i, medication_name=name)
                            for i, name in enumerate(('Aspirin', 'Nitroglycerin', 'Atorvastatin'), start=1)),
    )


def test_deleting_one_prescription_keeps_the_rest(api, consultation):
    api.consultations = [consultation]
    editor = ConsultationEditor(api, consultation)
    editor.delete_prescription(2)
    assert api.names() == ['delete_prescription', 'list_consultations']
    assert [p.prescription_id for p in editor.consultation.prescriptions] == [1, 3]
    assert editor.consultation.diagnosis == 'Angina'


def test_editor_adds_children_one_call_each(api, consultation):
    api.consultations = [consultation]
    api.failing_uploads = {'/sd/bad.pdf'}
    editor = ConsultationEditor(api, consultation)
    editor.add_prescription(PrescriptionDraft('Bisoprolol', '5mg'))
    editor.add_lab_result(LabResultDraft('ECG', file_paths=['uploads/lab_results/old.pdf'],
                                         pending_files=['/sd/ecg.pdf', '/sd/bad.pdf']))
    assert api.names() == [
        'create_prescription', 'list_consultations',
        'upload_lab_file', 'upload_lab_file', 'create_lab_result', 'list_consultations',
    ]
    lab_payload = api.calls[4][2]
    assert json.loads(lab_payload['result_file_path']) == ['uploads/lab_results/old.pdf',
                                                           'uploads/lab_results/ecg.pdf']
    assert [f.local_path for f in editor.skipped_uploads] == ['/sd/bad.pdf']


def test_editor_rejects_blank_details(api, consultation):
    editor = ConsultationEditor(api, consultation)
    with pytest.raises(ValidationError):
        editor.update_details(diagnosis='  ')
    assert api.calls == []
    api.consultations = [consultation]
    editor.update_details(doctor_notes='Follow up in a week')
    assert api.calls[0] == ('update_consultation', 41,
                            {'diagnosis': None, 'symptoms': None, 'doctor_notes': 'Follow up in a week'})
