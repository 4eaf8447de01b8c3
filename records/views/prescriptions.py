from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from records.models import Prescription
from records.permissions import IsClinicianRole, IsStaffRole
from records.serializers.consultations import (
    ChildListQuerySerializer,
    PrescriptionCreateSerializer,
    PrescriptionIdSerializer,
    PrescriptionUpdateSerializer,
)
from records.services import consultations as svc
from records.services.formatting import prescription_row


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def list_prescriptions(request):
    q = ChildListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = Prescription.objects.filter(consultation_id=q.validated_data['consultation_id'])
    return Response({'success': True, 'prescriptions': [prescription_row(p) for p in qs]})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsClinicianRole])
def create_prescription(request):
    s = PrescriptionCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    data = dict(s.validated_data)
    prescription = svc.add_prescription(data.pop('consultation_id'), data)
    return Response({'success': True, 'message': 'Prescription added', 'prescription_id': prescription.id},
                    status=201)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsClinicianRole])
def update_prescription(request):
    s = PrescriptionUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    data = dict(s.validated_data)
    svc.update_prescription(data.pop('prescription_id'), data)
    return Response({'success': True, 'message': 'Prescription updated'})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsClinicianRole])
def delete_prescription(request):
    s = PrescriptionIdSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.delete_prescription(s.validated_data['prescription_id'])
    return Response({'success': True, 'message': 'Prescription deleted'})
