import pytest

from mobile.errors import ApiError, TransportError
from mobile.records import Appointment, Consultation, Patient


class FakeApi:
    """Stands in for ``ApiClient``; records every call and replays canned answers.

    ``fail`` maps a method name to the error it should raise, and
    ``failing_uploads`` holds local paths whose upload fails.
    """

    def __init__(self):
        self.calls = []
        self.fail = {}
        self.failing_uploads = set()
        self.appointments = []
        self.consultations = []
        self.hook = None

    def _call(self, name, *args):
        self.calls.append((name,) + args)
        if self.hook is not None:
            self.hook(name)
        if name in self.fail:
            raise self.fail[name]

    def names(self):
        return [c[0] for c in self.calls]

    def update_appointment_status(self, appointment_id, status):
        self._call('update_appointment_status', appointment_id, getattr(status, 'value', status))
        return {'success': True, 'message': 'Status updated'}

    def delete_appointment(self, appointment_id):
        self._call('delete_appointment', appointment_id)
        self.appointments = [a for a in self.appointments if a.appointment_id != appointment_id]
        return {'success': True, 'message': 'Appointment deleted'}

    def list_appointments(self, doctor_user_id=None, patient_id=None, status=None):
        self._call('list_appointments', doctor_user_id)
        return list(self.appointments)

    def upload_lab_file(self, local_path):
        self._call('upload_lab_file', local_path)
        if local_path in self.failing_uploads:
            raise TransportError('Connection Error: timed out')
        return 'uploads/lab_results/' + local_path.rsplit('/', 1)[-1]

    def create_consultation(self, draft):
        self._call('create_consultation', draft.to_payload())
        return {'success': True, 'message': 'Consultation added', 'consultation_id': 41}

    def update_consultation(self, consultation_id, **fields):
        self._call('update_consultation', consultation_id, fields)
        return {'success': True, 'message': 'Consultation updated'}

    def delete_consultation(self, consultation_id):
        self._call('delete_consultation', consultation_id)
        return {'success': True, 'message': 'Consultation deleted'}

    def list_consultations(self, patient_id):
        self._call('list_consultations', patient_id)
        return list(self.consultations)

    def create_prescription(self, consultation_id, draft):
        self._call('create_prescription', consultation_id, draft.to_payload())
        return {'success': True, 'message': 'Prescription added'}

    def delete_prescription(self, prescription_id):
        self._call('delete_prescription', prescription_id)
        for i, c in enumerate(self.consultations):
            kept = tuple(p for p in c.prescriptions if p.prescription_id != prescription_id)
            self.consultations[i] = Consultation(**{**c.__dict__, 'prescriptions': kept})
        return {'success': True, 'message': 'Prescription deleted'}

    def create_lab_result(self, consultation_id, draft):
        self._call('create_lab_result', consultation_id, draft.to_payload())
        return {'success': True, 'message': 'Lab result added'}

    def delete_lab_result(self, result_id):
        self._call('delete_lab_result', result_id)
        return {'success': True, 'message': 'Lab result deleted'}


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def patient():
    return Patient(patient_id=4, full_name='Karim Benali', user_id=9)


@pytest.fixture
def restricted_patient():
    return Patient(patient_id=5, full_name='Omar Kaci', account_status='restricted')


@pytest.fixture
def appointment():
    return Appointment.from_json({
        'appointment_id': 17, 'patient_id': 4, 'doctor_user_id': 2, 'status': 'scheduled',
        'appointment_date': '2024-03-14 09:00:00', 'patient_name': 'Karim Benali',
        'patient_account_status': 'active',
    })


@pytest.fixture
def refused():
    return ApiError('Cannot change status from completed to completed', status_code=409)
