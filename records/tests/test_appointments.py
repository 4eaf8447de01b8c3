"""
Integration tests for the appointment endpoints.

Covers scheduling rules (restricted patients, doctor time clashes), the
status transition table and the missed-appointment penalty that
restricts a patient after repeated no-shows.
"""
import datetime

from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from records.models import Appointment, Patient, SystemLog

from .factories import make_admin, make_appointment, make_doctor, make_nurse, make_patient


def wire(dt):
    return timezone.localtime(dt).strftime('%Y-%m-%d %H:%M:%S')


class AppointmentAPITests(APITestCase):
    def setUp(self) -> None:
        self.admin = make_admin()
        self.doctor = make_doctor()
        self.nurse = make_nurse()
        self.patient = make_patient()
        self.slot = (timezone.now() + datetime.timedelta(days=2)).replace(second=0, microsecond=0)

    def authenticate(self, user) -> None:
        self.client.force_authenticate(user=user)

    def create(self, when, **extra):
        payload = {'patient_id': self.patient.id, 'appointment_date': wire(when), 'reason_for_visit': 'Chest pain'}
        payload.update(extra)
        return self.client.post('/api/appointments/create', payload, format='json')

    def set_status(self, appointment_id, new_status):
        return self.client.post('/api/appointments/update-status',
                                {'appointment_id': appointment_id, 'status': new_status}, format='json')

    # ------------------------------------------------------------------
    def test_doctor_creates_appointment_for_self(self) -> None:
        self.authenticate(self.doctor.user)
        r = self.create(self.slot)
        self.assertEqual(r.status_code, status.HTTP_201_CREATED)
        self.assertEqual(r.data['message'], 'Appointment created')
        appointment = Appointment.objects.get(id=r.data['appointment_id'])
        self.assertEqual(appointment.doctor, self.doctor)
        self.assertEqual(appointment.status, Appointment.STATUS_SCHEDULED)
        self.assertTrue(SystemLog.objects.filter(action_type='appointment_created').exists())

    def test_nurse_must_name_the_doctor(self) -> None:
        self.authenticate(self.nurse.user)
        r = self.create(self.slot)
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(r.data['message'], 'doctor_user_id is required')
        r = self.create(self.slot, doctor_user_id=self.doctor.user_id)
        self.assertEqual(r.status_code, status.HTTP_201_CREATED)

    def test_restricted_patient_cannot_book(self) -> None:
        self.patient.account_status = Patient.STATUS_RESTRICTED
        self.patient.save()
        self.authenticate(self.doctor.user)
        r = self.create(self.slot)
        self.assertEqual(r.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(r.data['message'], 'Cannot create appointment: Patient account is restricted')
        self.assertFalse(Appointment.objects.exists())

    def test_time_conflict_within_window(self) -> None:
        other = make_patient(national_id='1000000002', full_name='Nadia Saidi')
        make_appointment(other, self.doctor, when=self.slot)
        self.authenticate(self.doctor.user)
        r = self.create(self.slot + datetime.timedelta(minutes=10))
        self.assertEqual(r.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(r.data['message'].startswith('Time conflict: You already have an appointment with Nadia Saidi'))
        r = self.create(self.slot + datetime.timedelta(minutes=20))
        self.assertEqual(r.status_code, status.HTTP_201_CREATED)

    def test_cancelled_slot_does_not_conflict(self) -> None:
        make_appointment(self.patient, self.doctor, when=self.slot, status=Appointment.STATUS_CANCELLED)
        self.authenticate(self.doctor.user)
        self.assertEqual(self.create(self.slot).status_code, status.HTTP_201_CREATED)

    def test_reschedule_ignores_its_own_slot(self) -> None:
        appointment = make_appointment(self.patient, self.doctor, when=self.slot)
        self.authenticate(self.doctor.user)
        r = self.client.post('/api/appointments/update', {
            'appointment_id': appointment.id,
            'appointment_date': wire(self.slot + datetime.timedelta(minutes=5)),
        }, format='json')
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data['message'], 'Appointment updated')

    def test_list_filters_and_row_shape(self) -> None:
        a1 = make_appointment(self.patient, self.doctor, when=self.slot)
        make_appointment(self.patient, self.doctor, when=self.slot - datetime.timedelta(days=7),
                         status=Appointment.STATUS_COMPLETED)
        other_doctor = make_doctor(username='doctor2', full_name='Yacine Amrani')
        make_appointment(self.patient, other_doctor, when=self.slot + datetime.timedelta(hours=3))

        self.authenticate(self.doctor.user)
        r = self.client.get('/api/appointments', {'doctor_user_id': self.doctor.user_id})
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(len(r.data['appointments']), 2)
        row = r.data['appointments'][0]
        self.assertEqual(row['appointment_id'], a1.id)
        self.assertEqual(row['patient_name'], 'Karim Benali')
        self.assertEqual(row['patient_account_status'], 'active')
        self.assertEqual(row['doctor_name'], 'Samir Haddad')
        self.assertEqual(row['appointment_date'], wire(self.slot))

        r = self.client.get('/api/appointments', {'doctor_user_id': self.doctor.user_id, 'status': 'completed'})
        self.assertEqual([a['status'] for a in r.data['appointments']], ['completed'])
        r = self.client.get('/api/appointments', {'status': 'all'})
        self.assertEqual(len(r.data['appointments']), 3)

    def test_patient_reads_only_own_list(self) -> None:
        make_appointment(self.patient, self.doctor, when=self.slot)
        other = make_patient(national_id='1000000002', full_name='Nadia Saidi')
        make_appointment(other, self.doctor, when=self.slot + datetime.timedelta(hours=1))
        self.authenticate(self.patient.user)
        r = self.client.get('/api/appointments/mine')
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual([a['patient_id'] for a in r.data['appointments']], [self.patient.id])
        self.assertEqual(self.client.get('/api/appointments').status_code, status.HTTP_403_FORBIDDEN)

    # ------------------------------------------------------------------
    def test_complete_scheduled_appointment(self) -> None:
        appointment = make_appointment(self.patient, self.doctor)
        self.authenticate(self.doctor.user)
        r = self.set_status(appointment.id, 'completed')
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data['message'], 'Status updated')
        self.assertEqual(r.data['appointment']['status'], 'completed')
        self.assertTrue(SystemLog.objects.filter(action_type='appointment_completed').exists())

    def test_terminal_status_cannot_change(self) -> None:
        appointment = make_appointment(self.patient, self.doctor, status=Appointment.STATUS_COMPLETED)
        self.authenticate(self.doctor.user)
        r = self.set_status(appointment.id, 'missed')
        self.assertEqual(r.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(r.data['message'], 'Cannot change status from completed to missed')
        appointment.refresh_from_db()
        self.assertEqual(appointment.status, Appointment.STATUS_COMPLETED)

    def test_unknown_status_rejected(self) -> None:
        appointment = make_appointment(self.patient, self.doctor)
        self.authenticate(self.doctor.user)
        r = self.set_status(appointment.id, 'postponed')
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Invalid status', r.data['message'])

    def test_missing_appointment(self) -> None:
        self.authenticate(self.doctor.user)
        r = self.set_status(999, 'missed')
        self.assertEqual(r.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(r.data['message'], 'Appointment not found')

    def test_three_missed_appointments_restrict_patient(self) -> None:
        self.authenticate(self.doctor.user)
        for days in (1, 2, 3):
            a = make_appointment(self.patient, self.doctor, when=timezone.now() - datetime.timedelta(days=days))
            self.assertEqual(self.set_status(a.id, 'missed').status_code, status.HTTP_200_OK)
        self.patient.refresh_from_db()
        self.assertEqual(self.patient.consecutive_missed_appointments, 3)
        self.assertTrue(self.patient.is_restricted)
        self.assertEqual(SystemLog.objects.filter(action_type='patient_restricted').count(), 1)

    def test_completed_visit_resets_missed_counter(self) -> None:
        self.authenticate(self.doctor.user)
        missed = make_appointment(self.patient, self.doctor)
        self.set_status(missed.id, 'missed')
        done = make_appointment(self.patient, self.doctor, when=self.slot)
        self.set_status(done.id, 'completed')
        self.patient.refresh_from_db()
        self.assertEqual(self.patient.consecutive_missed_appointments, 0)
        self.assertFalse(self.patient.is_restricted)

    def test_cancel_has_no_side_effect(self) -> None:
        appointment = make_appointment(self.patient, self.doctor)
        self.authenticate(self.nurse.user)
        self.assertEqual(self.set_status(appointment.id, 'cancelled').status_code, status.HTTP_200_OK)
        self.patient.refresh_from_db()
        self.assertEqual(self.patient.consecutive_missed_appointments, 0)

    def test_delete_from_any_state(self) -> None:
        appointment = make_appointment(self.patient, self.doctor, status=Appointment.STATUS_MISSED)
        self.authenticate(self.admin)
        r = self.client.post('/api/appointments/delete', {'appointment_id': appointment.id}, format='json')
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data['message'], 'Appointment deleted')
        self.assertFalse(Appointment.objects.exists())
