import pytest
from django.urls import reverse
from rest_framework.authtoken.models import Token
from rest_framework.test import APIClient

from records.models import Patient, SystemLog

from .factories import PASSWORD, make_admin, make_doctor, make_patient

pytestmark = pytest.mark.django_db


def login(client, **payload):
    return client.post(reverse('login_view'), payload, format='json')


def test_staff_login_returns_tokens_and_display_name():
    doctor = make_doctor()
    r = login(APIClient(), username='doctor1', password=PASSWORD)
    assert r.status_code == 200
    assert r.data['success'] is True
    assert r.data['message'] == 'Login Successful'
    assert r.data['role'] == 'doctor'
    assert r.data['user_id'] == doctor.user_id
    assert r.data['name'] == 'Samir Haddad'
    assert r.data['token'] and r.data['jwt_access'] and r.data['jwt_refresh']
    assert SystemLog.objects.filter(action_type='login_success', user=doctor.user).exists()


def test_admin_is_greeted_as_administrator():
    make_admin()
    r = login(APIClient(), username='admin1', password=PASSWORD)
    assert r.status_code == 200
    assert r.data['name'] == 'Administrator'


def test_wrong_password_is_refused_and_logged():
    make_doctor()
    r = login(APIClient(), username='doctor1', password='nope-nope')
    assert r.status_code == 400
    assert r.data == {'success': False, 'message': 'Invalid Password'}
    assert SystemLog.objects.filter(action_type='login_failed').count() == 1


def test_unknown_username():
    r = login(APIClient(), username='ghost', password=PASSWORD)
    assert r.status_code == 404
    assert r.data['message'] == 'Username not found'


def test_patient_cannot_use_staff_login():
    make_patient()
    r = login(APIClient(), username='1000000001', password=PASSWORD)
    assert r.status_code == 404


def test_deactivated_account():
    doctor = make_doctor()
    doctor.user.is_active = False
    doctor.user.save()
    r = login(APIClient(), username='doctor1', password=PASSWORD)
    assert r.status_code == 403
    assert r.data['message'] == 'Account Deactivated'


def test_missing_username_is_a_validation_error():
    r = login(APIClient(), password=PASSWORD)
    assert r.status_code == 400
    assert r.data['success'] is False
    assert r.data['message'] == 'Username is required'


def test_patient_login_by_national_id_and_name():
    p = make_patient()
    r = login(APIClient(), login_type='patient', national_id='1000000001', full_name='karim benali',
              password=PASSWORD)
    assert r.status_code == 200
    assert r.data['role'] == 'patient'
    assert r.data['patient_id'] == p.id
    assert r.data['name'] == 'Karim Benali'


def test_patient_not_found():
    make_patient()
    r = login(APIClient(), login_type='patient', national_id='1000000001', full_name='Someone Else',
              password=PASSWORD)
    assert r.status_code == 404
    assert r.data['message'] == 'No patient found with these details'


def test_restricted_patient_gets_reaccess_signal():
    p = make_patient(account_status=Patient.STATUS_RESTRICTED)
    r = login(APIClient(), login_type='patient', national_id='1000000001', full_name='Karim Benali',
              password=PASSWORD)
    assert r.status_code == 403
    assert r.data['success'] is False
    assert r.data['is_restricted'] is True
    assert r.data['patient_id'] == p.id
    assert r.data['name'] == 'Karim Benali'
    assert 'restricted' in r.data['message']
    assert 'token' not in r.data
    assert SystemLog.objects.filter(action_type='login_restricted').exists()


def test_token_from_login_authenticates_requests():
    make_doctor()
    client = APIClient()
    token = login(client, username='doctor1', password=PASSWORD).data['token']
    assert client.get('/api/patients').status_code == 401
    client.credentials(HTTP_AUTHORIZATION=f'Token {token}')
    r = client.get('/api/patients')
    assert r.status_code == 200
    assert r.data['success'] is True


def test_unauthenticated_request_uses_envelope():
    r = APIClient().get('/api/appointments')
    assert r.status_code == 401
    assert r.data['success'] is False
    assert r.data['message']


def test_jwt_refresh_and_logout():
    doctor = make_doctor()
    client = APIClient()
    data = login(client, username='doctor1', password=PASSWORD).data
    r = client.post('/api/auth/refresh', {'refresh': data['jwt_refresh']}, format='json')
    assert r.status_code == 200
    assert r.data['jwt_access']

    client.credentials(HTTP_AUTHORIZATION=f"Bearer {data['jwt_access']}")
    r = client.post('/api/auth/logout', {'refresh': data['jwt_refresh']}, format='json')
    assert r.status_code == 200
    assert r.data['blacklisted'] == 1
    assert not Token.objects.filter(user=doctor.user).exists()

    r = APIClient().post('/api/auth/refresh', {'refresh': data['jwt_refresh']}, format='json')
    assert r.status_code == 401
    assert r.data['success'] is False


def test_refresh_with_garbage_token():
    r = APIClient().post('/api/auth/refresh', {'refresh': 'not-a-token'}, format='json')
    assert r.status_code == 401
