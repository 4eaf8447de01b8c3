from __future__ import annotations

from datetime import timedelta
from typing import Optional

from django.core.cache import cache
from django.utils import timezone

from records.models import SystemLog

ACTION_TYPES_CACHE_KEY = 'system_logs:action_types'


def recent_logs(*, limit: int = 50, offset: int = 0, filter_type: Optional[str] = None):
    qs = SystemLog.objects.all()
    if filter_type and filter_type != 'all':
        qs = qs.filter(action_type=filter_type)
    total = qs.count()
    rows = list(qs.order_by('-created_at', '-id')[offset:offset + limit])
    return rows, total


def action_types() -> list[str]:
    types = cache.get(ACTION_TYPES_CACHE_KEY)
    if types is None:
        types = list(SystemLog.objects.order_by('action_type').values_list('action_type', flat=True).distinct())
        cache.set(ACTION_TYPES_CACHE_KEY, types, 60)
    return types


def clear_old(days: int) -> int:
    """Delete entries older than ``days`` days and return how many went."""
    cutoff = timezone.now() - timedelta(days=days)
    deleted, _ = SystemLog.objects.filter(created_at__lt=cutoff).delete()
    cache.delete(ACTION_TYPES_CACHE_KEY)
    return deleted
