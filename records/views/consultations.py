from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from records.exceptions import BusinessError
from records.models import User
from records.permissions import IsClinicianRole, IsStaffRole
from records.serializers.consultations import (
    ConsultationCreateSerializer,
    ConsultationIdSerializer,
    ConsultationListQuerySerializer,
    ConsultationUpdateSerializer,
)
from records.services import consultations as svc
from records.services.formatting import consultation_row


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def list_consultations(request):
    q = ConsultationListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    rows = [consultation_row(c) for c in svc.list_consultations(q.validated_data['patient_id'])]
    return Response({'success': True, 'consultations': rows})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsClinicianRole])
def create_consultation(request):
    s = ConsultationCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    doctor_user_id = vd.get('doctor_user_id')
    if not doctor_user_id:
        if request.user.role != User.ROLE_DOCTOR:
            raise BusinessError('doctor_user_id is required')
        doctor_user_id = request.user.id
    consultation = svc.create_consultation(
        request.user,
        patient_id=vd['patient_id'],
        doctor_user_id=doctor_user_id,
        diagnosis=vd['diagnosis'],
        symptoms=vd['symptoms'],
        doctor_notes=vd.get('doctor_notes', ''),
        appointment_id=vd.get('appointment_id'),
        prescriptions=vd.get('prescriptions', []),
        lab_results=vd.get('lab_results', []),
        request=request,
    )
    return Response({'success': True, 'message': 'Consultation added', 'consultation_id': consultation.id},
                    status=201)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsClinicianRole])
def update_consultation(request):
    s = ConsultationUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    changes = dict(s.validated_data)
    consultation_id = changes.pop('consultation_id')
    svc.update_consultation(request.user, consultation_id=consultation_id, changes=changes, request=request)
    return Response({'success': True, 'message': 'Consultation updated'})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsClinicianRole])
def delete_consultation(request):
    s = ConsultationIdSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.delete_consultation(request.user, consultation_id=s.validated_data['consultation_id'], request=request)
    return Response({'success': True, 'message': 'Consultation deleted'})
