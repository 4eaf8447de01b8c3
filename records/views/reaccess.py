"""
Re-access request endpoints.

``submit`` and ``check`` are anonymous: a restricted patient cannot log
in and only holds the ``patient_id`` returned by the refused login.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from records.permissions import IsAdminRole
from records.serializers.reaccess import (
    ReaccessCheckSerializer,
    ReaccessDecisionSerializer,
    ReaccessListQuerySerializer,
    ReaccessSubmitSerializer,
)
from records.services import reaccess as svc
from records.services.formatting import reaccess_row


@api_view(['POST'])
@permission_classes([AllowAny])
def submit_request(request):
    s = ReaccessSubmitSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    req = svc.submit(request=request, **s.validated_data)
    return Response({'success': True, 'message': 'Request submitted successfully', 'request_id': req.id},
                    status=201)

submit_request.cls.throttle_scope = 'reaccess'


@api_view(['GET'])
@permission_classes([AllowAny])
def check_request(request):
    q = ReaccessCheckSerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    pending = svc.pending_for(q.validated_data['patient_id'])
    return Response({
        'success': True,
        'has_pending': pending is not None,
        'request': reaccess_row(pending) if pending else None,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def list_requests(request):
    q = ReaccessListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    rows = [reaccess_row(r) for r in svc.list_requests(q.validated_data['status'])]
    return Response({'success': True, 'requests': rows})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def approve_request(request):
    s = ReaccessDecisionSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.approve(request.user, request=request, **s.validated_data)
    return Response({'success': True, 'message': 'Request approved. Patient account reactivated.'})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def reject_request(request):
    s = ReaccessDecisionSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.reject(request.user, request=request, **s.validated_data)
    return Response({'success': True, 'message': 'Request rejected'})
