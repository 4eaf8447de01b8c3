from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from records.permissions import IsAdminRole
from records.serializers.logs import LogClearSerializer, LogQuerySerializer
from records.services import logs as svc
from records.services.audit import log_action
from records.services.formatting import log_row


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def recent_logs(request):
    q = LogQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    rows, total = svc.recent_logs(limit=vd['limit'], offset=vd['offset'], filter_type=vd.get('filter_type'))
    return Response({
        'success': True,
        'logs': [log_row(r) for r in rows],
        'total': total,
        'limit': vd['limit'],
        'offset': vd['offset'],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def action_types(request):
    return Response({'success': True, 'action_types': svc.action_types()})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def clear_logs(request):
    s = LogClearSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    days = s.validated_data['days']
    deleted = svc.clear_old(days)
    log_action(action_type='logs_cleared', description=f"Cleared {deleted} log entries older than {days} days",
               user=request.user, request=request)
    return Response({'success': True, 'deleted': deleted, 'message': f"Deleted {deleted} old log entries"})
