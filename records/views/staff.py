from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from records.permissions import IsAdminRole, IsStaffRole
from records.serializers.staff import (
    StaffCreateSerializer,
    StaffListQuerySerializer,
    StaffUpdateSerializer,
    UserIdSerializer,
)
from records.services import staff as svc


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def list_staff(request):
    q = StaffListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return Response({'success': True, 'staff': svc.list_staff(q.validated_data['role'], q.validated_data['search'])})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def metadata(request):
    return Response(svc.metadata())


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def create_staff(request):
    s = StaffCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = svc.create_staff(request.user, request=request, **s.validated_data)
    return Response({'success': True, 'message': 'Staff added successfully', 'user_id': user.id}, status=201)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def update_staff(request):
    s = StaffUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.update_staff(request.user, request=request, **s.validated_data)
    return Response({'success': True, 'message': 'Account updated successfully'})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def delete_staff(request):
    s = UserIdSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.delete_staff(request.user, user_id=s.validated_data['user_id'], request=request)
    return Response({'success': True, 'message': 'User deleted'})
