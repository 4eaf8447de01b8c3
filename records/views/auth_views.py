"""
Login, token refresh and logout.

Staff log in with their username; patients with national id plus full
name.  A restricted patient is refused with ``is_restricted`` set so the
client can offer the re-access request screen.  Every login outcome is
written to the activity log.
"""
from __future__ import annotations

from django.contrib.auth.models import update_last_login
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken

from records.exceptions import BusinessError
from records.models import Patient, User
from records.serializers.auth import LoginSerializer, LogoutSerializer, RefreshSerializer
from records.services.audit import log_action

RESTRICTED_MESSAGE = 'Your account is restricted due to multiple missed appointments. Please request re-access.'


def _refuse(request, message: str, code: int, *, name: str, user=None, action_type: str = 'login_failed',
            extra: dict | None = None):
    log_action(action_type=action_type, description=f"{message}: {name}",
               user=user, user_name=name, request=request)
    raise BusinessError(message, status_code=code, extra=extra)


def _find_account(request, vd) -> tuple[User, str]:
    if vd['login_type'] == 'patient':
        patient = (
            Patient.objects.select_related('user')
            .filter(national_id=vd['national_id'], full_name__iexact=vd['full_name'])
            .first()
        )
        if patient is None:
            _refuse(request, 'No patient found with these details', status.HTTP_404_NOT_FOUND,
                    name=vd['national_id'])
        return patient.user, vd['national_id']
    user = User.objects.filter(username=vd['username']).exclude(role=User.ROLE_PATIENT).first()
    if user is None:
        _refuse(request, 'Username not found', status.HTTP_404_NOT_FOUND, name=vd['username'])
    return user, vd['username']


# ---------------------------------------------------------------------
# Username/password login
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data

    user, login_name = _find_account(request, vd)
    if not user.check_password(vd['password']):
        _refuse(request, 'Invalid Password', status.HTTP_400_BAD_REQUEST, name=login_name, user=user)
    if not user.is_active:
        _refuse(request, 'Account Deactivated', status.HTTP_403_FORBIDDEN, name=login_name, user=user)

    profile = getattr(user, 'patient_profile', None) if user.role == User.ROLE_PATIENT else None
    if profile is not None and profile.is_restricted:
        _refuse(request, RESTRICTED_MESSAGE, status.HTTP_403_FORBIDDEN, name=profile.full_name, user=user,
                action_type='login_restricted',
                extra={'is_restricted': True, 'patient_id': profile.id, 'name': profile.full_name})

    update_last_login(None, user)
    token_obj, _ = Token.objects.get_or_create(user=user)
    refresh = RefreshToken.for_user(user)
    log_action(action_type='login_success', description=f"User logged in: {user.display_name}",
               user=user, target_type='user', target_id=user.id, request=request)

    payload: dict[str, object] = {
        'success': True,
        'message': 'Login Successful',
        'user_id': user.id,
        'role': user.role,
        'name': user.display_name,
        'token': token_obj.key,
        'jwt_access': str(refresh.access_token),
        'jwt_refresh': str(refresh),
    }
    if profile is not None:
        payload['patient_id'] = profile.id
    return Response(payload, status=200)

# ScopedRateThrottle reads throttle_scope from the wrapped APIView class
login_view.cls.throttle_scope = 'login'


# ---------------------------------------------------------------------
# JWT: refresh & logout
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from a refresh token."""
    s = RefreshSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    refresh = TokenRefreshSerializer(data={'refresh': s.validated_data['refresh']})
    try:
        refresh.is_valid(raise_exception=True)
    except TokenError as e:
        raise InvalidToken(e.args[0])
    data = {'success': True, 'jwt_access': refresh.validated_data['access']}
    if 'refresh' in refresh.validated_data:
        data['jwt_refresh'] = refresh.validated_data['refresh']
    return Response(data)

jwt_refresh_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist the given refresh token (or all of them) and drop the API token."""
    s = LogoutSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    refresh = s.validated_data.get('refresh')
    count = 0
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
        except TokenError:
            raise BusinessError('Invalid refresh token')
        count = 1
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    Token.objects.filter(user=request.user).delete()
    log_action(action_type='logout', description=f"User logged out: {request.user.display_name}",
               user=request.user, target_type='user', target_id=request.user.id, request=request)
    return Response({'success': True, 'message': 'Logged out', 'blacklisted': count})
