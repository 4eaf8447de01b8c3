"""Re-access appeals from restricted patients and the admin activity log."""
import datetime
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError
from django.utils import timezone

from records.models import Patient, ReaccessRequest, SystemLog
from records.services.audit import log_action

from .factories import make_patient

pytestmark = pytest.mark.django_db


@pytest.fixture
def restricted(db):
    p = make_patient(national_id='1000000009', full_name='Omar Kaci', account_status=Patient.STATUS_RESTRICTED)
    p.consecutive_missed_appointments = 3
    p.save()
    return p


def submit(client, patient, reason='I was in hospital', **extra):
    return client.post('/api/reaccess/submit', {'patient_id': patient.id, 'reason': reason, **extra}, format='json')


def test_submit_and_check(api_client, restricted):
    r = submit(api_client, restricted, contact_phone='0661112233')
    assert r.status_code == 201
    assert r.data['message'] == 'Request submitted successfully'
    assert SystemLog.objects.filter(action_type='reaccess_submitted', user_name='Omar Kaci').exists()

    r = api_client.get('/api/reaccess/check', {'patient_id': restricted.id})
    assert r.status_code == 200
    assert r.data['has_pending'] is True
    assert r.data['request']['contact_phone'] == '0661112233'
    assert r.data['request']['status'] == 'pending'


def test_check_without_request(api_client, restricted):
    r = api_client.get('/api/reaccess/check', {'patient_id': restricted.id})
    assert r.data == {'success': True, 'has_pending': False, 'request': None}


def test_second_pending_request_refused(api_client, restricted):
    submit(api_client, restricted)
    r = submit(api_client, restricted, reason='Again')
    assert r.status_code == 409
    assert r.data['message'] == 'You already have a pending request'
    assert ReaccessRequest.objects.count() == 1


def test_active_patient_cannot_appeal(api_client, patient):
    r = submit(api_client, patient)
    assert r.status_code == 400
    assert r.data['message'] == 'Your account is not restricted'


def test_blank_reason(api_client, restricted):
    r = submit(api_client, restricted, reason='   ')
    assert r.status_code == 400
    assert r.data['message'] == 'reason: Please explain why you missed your appointments'


def test_approve_reactivates_patient(as_user, admin, restricted):
    req = ReaccessRequest.objects.create(patient=restricted, reason='Family emergency')
    client = as_user(admin)
    r = client.get('/api/reaccess')
    assert [row['request_id'] for row in r.data['requests']] == [req.id]
    assert r.data['requests'][0]['consecutive_missed_appointments'] == 3

    r = client.post('/api/reaccess/approve', {'request_id': req.id}, format='json')
    assert r.status_code == 200
    restricted.refresh_from_db()
    req.refresh_from_db()
    assert restricted.account_status == Patient.STATUS_ACTIVE
    assert restricted.consecutive_missed_appointments == 0
    assert req.status == ReaccessRequest.STATUS_APPROVED
    assert req.processed_by == admin
    assert req.admin_response.startswith('Your request has been approved')

    r = client.post('/api/reaccess/reject', {'request_id': req.id}, format='json')
    assert r.status_code == 409
    assert r.data['message'] == 'Request already approved'


def test_reject_keeps_restriction(as_user, admin, restricted):
    req = ReaccessRequest.objects.create(patient=restricted, reason='Forgot')
    r = as_user(admin).post('/api/reaccess/reject', {
        'request_id': req.id, 'admin_response': 'Please call reception',
    }, format='json')
    assert r.status_code == 200
    restricted.refresh_from_db()
    req.refresh_from_db()
    assert restricted.is_restricted
    assert (req.status, req.admin_response) == ('rejected', 'Please call reception')
    r = as_user(admin).get('/api/reaccess', {'status': 'rejected'})
    assert len(r.data['requests']) == 1


def test_decisions_are_admin_only(as_user, doctor, restricted):
    req = ReaccessRequest.objects.create(patient=restricted, reason='Forgot')
    r = as_user(doctor.user).post('/api/reaccess/approve', {'request_id': req.id}, format='json')
    assert r.status_code == 403


# ---------------------------------------------------------------------
# Activity log
# ---------------------------------------------------------------------

def age(entry, days):
    SystemLog.objects.filter(id=entry.id).update(created_at=timezone.now() - datetime.timedelta(days=days))


def test_logs_filter_and_paging(as_user, admin):
    for i in range(3):
        log_action(action_type='patient_created', description=f"Patient {i}", user=admin)
    log_action(action_type='login_failed', description='Bad password', user_name='ghost')
    client = as_user(admin)

    r = client.get('/api/logs', {'limit': 2})
    assert r.status_code == 200
    assert r.data['total'] == 4
    assert len(r.data['logs']) == 2
    assert r.data['logs'][0]['action_type'] == 'login_failed'

    r = client.get('/api/logs', {'filter_type': 'patient_created', 'offset': 1})
    assert r.data['total'] == 3
    assert len(r.data['logs']) == 2
    assert r.data['logs'][0]['user_name'] == 'Administrator'

    r = client.get('/api/logs/action-types')
    assert r.data['action_types'] == ['login_failed', 'patient_created']


def test_clear_old_logs(as_user, admin):
    old = log_action(action_type='login_success', description='Old login', user=admin)
    age(old, 40)
    log_action(action_type='login_success', description='Fresh login', user=admin)

    r = as_user(admin).post('/api/logs/clear', {}, format='json')
    assert r.status_code == 200
    assert r.data['deleted'] == 1
    assert r.data['message'] == 'Deleted 1 old log entries'
    assert not SystemLog.objects.filter(id=old.id).exists()
    assert SystemLog.objects.filter(action_type='logs_cleared').exists()


def test_logs_admin_only(as_user, doctor):
    assert as_user(doctor.user).get('/api/logs').status_code == 403


def test_clear_old_logs_command(admin):
    for days in (5, 10):
        age(log_action(action_type='login_success', description='Login', user=admin), days)
    out = StringIO()
    call_command('clear_old_logs', '--days', '7', stdout=out)
    assert 'Deleted 1 old log entries' in out.getvalue()
    assert SystemLog.objects.count() == 1

    with pytest.raises(CommandError):
        call_command('clear_old_logs', '--days', '0')
