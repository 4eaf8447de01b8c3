"""
URL mappings for the clinic API.

Paths carry no trailing slash; mutations are POSTs that name the target
record in the body, reads are GETs with query parameters.
"""
from django.urls import include, path

from .views import (
    appointments,
    consultations,
    health,
    lab_results,
    logs,
    patients,
    prescriptions,
    reaccess,
    staff,
)
from .views.auth_views import jwt_logout_view, jwt_refresh_view, login_view

urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh'),
    path('api/auth/logout', jwt_logout_view, name='jwt_logout'),
    # Appointments
    path('api/appointments', appointments.list_appointments, name='appointments'),
    path('api/appointments/mine', appointments.my_appointments, name='appointments_mine'),
    path('api/appointments/create', appointments.create_appointment, name='appointments_create'),
    path('api/appointments/update', appointments.update_appointment, name='appointments_update'),
    path('api/appointments/update-status', appointments.update_appointment_status,
         name='appointments_update_status'),
    path('api/appointments/delete', appointments.delete_appointment, name='appointments_delete'),
    # Consultations and their children
    path('api/consultations', consultations.list_consultations, name='consultations'),
    path('api/consultations/create', consultations.create_consultation, name='consultations_create'),
    path('api/consultations/update', consultations.update_consultation, name='consultations_update'),
    path('api/consultations/delete', consultations.delete_consultation, name='consultations_delete'),
    path('api/prescriptions', prescriptions.list_prescriptions, name='prescriptions'),
    path('api/prescriptions/create', prescriptions.create_prescription, name='prescriptions_create'),
    path('api/prescriptions/update', prescriptions.update_prescription, name='prescriptions_update'),
    path('api/prescriptions/delete', prescriptions.delete_prescription, name='prescriptions_delete'),
    path('api/lab-results', lab_results.list_lab_results, name='lab_results'),
    path('api/lab-results/create', lab_results.create_lab_result, name='lab_results_create'),
    path('api/lab-results/update', lab_results.update_lab_result, name='lab_results_update'),
    path('api/lab-results/delete', lab_results.delete_lab_result, name='lab_results_delete'),
    path('api/lab-results/upload', lab_results.upload_lab_file, name='lab_results_upload'),
    # Patients
    path('api/patients', patients.list_patients, name='patients'),
    path('api/patients/create', patients.create_patient, name='patients_create'),
    path('api/patients/update', patients.update_patient, name='patients_update'),
    path('api/patients/delete', patients.delete_patient, name='patients_delete'),
    path('api/patients/records', patients.patient_records, name='patients_records'),
    # Staff
    path('api/staff', staff.list_staff, name='staff'),
    path('api/staff/create', staff.create_staff, name='staff_create'),
    path('api/staff/update', staff.update_staff, name='staff_update'),
    path('api/staff/delete', staff.delete_staff, name='staff_delete'),
    path('api/metadata', staff.metadata, name='metadata'),
    # System logs
    path('api/logs', logs.recent_logs, name='logs'),
    path('api/logs/action-types', logs.action_types, name='logs_action_types'),
    path('api/logs/clear', logs.clear_logs, name='logs_clear'),
    # Re-access requests
    path('api/reaccess', reaccess.list_requests, name='reaccess'),
    path('api/reaccess/submit', reaccess.submit_request, name='reaccess_submit'),
    path('api/reaccess/check', reaccess.check_request, name='reaccess_check'),
    path('api/reaccess/approve', reaccess.approve_request, name='reaccess_approve'),
    path('api/reaccess/reject', reaccess.reject_request, name='reaccess_reject'),
]
