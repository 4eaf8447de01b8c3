"""
Lab result endpoints and the lab file upload.

Uploads are stored first and return a media-relative ``file_path``;
the client then embeds the collected paths in a lab result.
"""
import os

from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from records.models import LabResult
from records.permissions import IsClinicianRole, IsStaffRole
from records.serializers.consultations import (
    ChildListQuerySerializer,
    LabResultCreateSerializer,
    LabResultIdSerializer,
    LabResultUpdateSerializer,
)
from records.services import consultations as svc
from records.services.formatting import lab_result_row
from records.services.uploads import save_lab_file


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def list_lab_results(request):
    q = ChildListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = LabResult.objects.filter(consultation_id=q.validated_data['consultation_id'])
    return Response({'success': True, 'lab_results': [lab_result_row(r) for r in qs]})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsClinicianRole])
def create_lab_result(request):
    s = LabResultCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    data = dict(s.validated_data)
    result = svc.add_lab_result(data.pop('consultation_id'), data)
    return Response({'success': True, 'message': 'Lab result added', 'result_id': result.id}, status=201)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsClinicianRole])
def update_lab_result(request):
    s = LabResultUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    data = dict(s.validated_data)
    svc.update_lab_result(data.pop('result_id'), data)
    return Response({'success': True, 'message': 'Lab result updated'})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsClinicianRole])
def delete_lab_result(request):
    s = LabResultIdSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.delete_lab_result(s.validated_data['result_id'])
    return Response({'success': True, 'message': 'Lab result deleted'})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsClinicianRole])
@parser_classes([MultiPartParser, FormParser])
def upload_lab_file(request):
    path = save_lab_file(request.FILES.get('file'))
    return Response({
        'success': True,
        'message': 'File uploaded successfully',
        'file_path': path,
        'file_name': os.path.basename(path),
    }, status=201)

upload_lab_file.cls.throttle_scope = 'upload'
