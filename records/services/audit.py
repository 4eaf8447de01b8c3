from typing import Optional

from django.contrib.auth import get_user_model

from records.models import SystemLog

User = get_user_model()


def client_ip(request) -> Optional[str]:
    if request is None:
        return None
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def log_action(*, action_type: str, description: str, user: Optional[User] = None, user_name: Optional[str] = None,
               user_role: Optional[str] = None, target_type: Optional[str] = None, target_id: Optional[int] = None,
               request=None) -> SystemLog:
    """Append an entry to the activity log.

    When ``user`` is given its display name and role fill in the blanks,
    so callers only pass ``user_name``/``user_role`` for anonymous actors
    (failed logins, re-access appeals).
    """
    account = user if getattr(user, 'pk', None) else None
    if account is not None:
        user_name = user_name or account.display_name
        user_role = user_role or account.role
    return SystemLog.objects.create(
        action_type=action_type,
        action_description=description,
        user=account,
        user_name=user_name,
        user_role=user_role,
        target_type=target_type,
        target_id=target_id,
        ip_address=client_ip(request),
    )
