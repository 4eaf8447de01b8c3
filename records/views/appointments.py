"""
Appointment endpoints.

Staff schedule, reschedule, change status and delete; a patient reads
their own list through ``mine``.  The status rules live in
``records.services.appointments``.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from records.exceptions import BusinessError
from records.models import User
from records.permissions import IsPatientRole, IsStaffRole
from records.serializers.appointments import (
    AppointmentCreateSerializer,
    AppointmentIdSerializer,
    AppointmentListQuerySerializer,
    AppointmentStatusSerializer,
    AppointmentUpdateSerializer,
)
from records.services import appointments as svc
from records.services.formatting import appointment_row


def _doctor_user_id(request, given):
    if given:
        return given
    if request.user.role == User.ROLE_DOCTOR:
        return request.user.id
    raise BusinessError('doctor_user_id is required')


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def list_appointments(request):
    q = AppointmentListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    status_filter = vd.get('status')
    qs = svc.list_appointments(
        doctor_user_id=vd.get('doctor_user_id'),
        patient_id=vd.get('patient_id'),
        status_filter=None if status_filter == 'all' else status_filter,
    )
    return Response({'success': True, 'appointments': [appointment_row(a) for a in qs]})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def my_appointments(request):
    profile = getattr(request.user, 'patient_profile', None)
    if profile is None:
        raise BusinessError('Patient not found', status_code=404)
    qs = svc.list_appointments(patient_id=profile.id)
    return Response({'success': True, 'appointments': [appointment_row(a) for a in qs]})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def create_appointment(request):
    s = AppointmentCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    appointment = svc.create_appointment(
        request.user,
        patient_id=vd['patient_id'],
        doctor_user_id=_doctor_user_id(request, vd.get('doctor_user_id')),
        appointment_date=vd['appointment_date'],
        reason_for_visit=vd.get('reason_for_visit', ''),
        request=request,
    )
    return Response({'success': True, 'message': 'Appointment created', 'appointment_id': appointment.id},
                    status=201)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def update_appointment(request):
    s = AppointmentUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    svc.reschedule_appointment(
        request.user,
        appointment_id=vd['appointment_id'],
        appointment_date=vd['appointment_date'],
        reason_for_visit=vd.get('reason_for_visit'),
        request=request,
    )
    return Response({'success': True, 'message': 'Appointment updated'})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def update_appointment_status(request):
    s = AppointmentStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appointment = svc.update_status(
        request.user,
        appointment_id=s.validated_data['appointment_id'],
        new_status=s.validated_data['status'],
        request=request,
    )
    return Response({
        'success': True,
        'message': 'Status updated',
        'appointment': appointment_row(appointment),
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def delete_appointment(request):
    s = AppointmentIdSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.delete_appointment(request.user, appointment_id=s.validated_data['appointment_id'], request=request)
    return Response({'success': True, 'message': 'Appointment deleted'})
