"""
Patient management views.

Staff search, register and update patients; only administrators delete
them.  The full records bundle is readable by staff and by the patient
it belongs to.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from records.exceptions import BusinessError
from records.models import Patient, User
from records.permissions import STAFF_ROLES, IsAdminRole, IsStaffRole
from records.serializers.patients import (
    PatientCreateSerializer,
    PatientIdSerializer,
    PatientRecordsQuerySerializer,
    PatientSearchQuerySerializer,
    PatientUpdateSerializer,
)
from records.services import patients as svc
from records.services.formatting import fmt_dt, patient_row


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def list_patients(request):
    q = PatientSearchQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    rows = []
    for p in svc.search_patients(q.validated_data['search']):
        row = patient_row(p)
        row['consultation_count'] = p.consultation_count
        row['last_visit'] = fmt_dt(p.last_visit)
        rows.append(row)
    return Response({'success': True, 'patients': rows})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def create_patient(request):
    s = PatientCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    patient = svc.create_patient(request.user, request=request, **s.validated_data)
    return Response({
        'success': True,
        'message': 'Patient registered successfully',
        'user_id': patient.user_id,
        'patient_id': patient.id,
    }, status=201)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def update_patient(request):
    s = PatientUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    changes = dict(s.validated_data)
    patient_id = changes.pop('patient_id')
    svc.update_patient(request.user, patient_id=patient_id, changes=changes, request=request)
    return Response({'success': True, 'message': 'Patient updated successfully'})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def delete_patient(request):
    s = PatientIdSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.delete_patient(request.user, patient_id=s.validated_data['patient_id'], request=request)
    return Response({'success': True, 'message': 'Patient deleted successfully'})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def patient_records(request):
    q = PatientRecordsQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = Patient.objects.select_related('user')
    if vd.get('patient_id'):
        patient = qs.filter(id=vd['patient_id']).first()
    else:
        patient = qs.filter(user_id=vd['user_id']).first()
    if patient is None:
        raise BusinessError('Patient not found', status_code=404)
    role = request.user.role
    if role not in STAFF_ROLES and not (role == User.ROLE_PATIENT and patient.user_id == request.user.id):
        raise PermissionDenied('You can only view your own records')
    return Response(svc.full_records(patient))
