from __future__ import annotations

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import Q
from rest_framework import status
from rest_framework.exceptions import ValidationError as DRFValidation

from records.exceptions import BusinessError
from records.models import Department, Doctor, Nurse, Specialty
from records.services.audit import log_action

User = get_user_model()


def list_staff(role: str, search: str = '') -> list[dict]:
    """Doctors or nurses with their specialty/department as ``extra_info``."""
    search = (search or '').strip()
    if role == User.ROLE_DOCTOR:
        qs = Doctor.objects.select_related('user', 'specialty')
        if search:
            qs = qs.filter(Q(full_name__icontains=search) | Q(user__username__icontains=search))
        return [
            {
                'user_id': d.user_id,
                'doctor_id': d.id,
                'username': d.user.username,
                'full_name': d.full_name,
                'phone_number': d.phone_number,
                'extra_info': d.specialty.name if d.specialty else None,
                'extra_id': d.specialty_id,
                'is_active': d.user.is_active,
            }
            for d in qs.order_by('full_name')
        ]
    qs = Nurse.objects.select_related('user', 'department')
    if search:
        qs = qs.filter(Q(full_name__icontains=search) | Q(user__username__icontains=search))
    return [
        {
            'user_id': n.user_id,
            'nurse_id': n.id,
            'username': n.user.username,
            'full_name': n.full_name,
            'phone_number': n.phone_number,
            'extra_info': n.department.name if n.department else None,
            'extra_id': n.department_id,
            'is_active': n.user.is_active,
        }
        for n in qs.order_by('full_name')
    ]


def metadata() -> dict:
    return {
        'success': True,
        'specialties': [{'id': s.id, 'name': s.name} for s in Specialty.objects.order_by('name')],
        'departments': [{'id': d.id, 'name': d.name} for d in Department.objects.order_by('name')],
    }


def _validate(password: str, user=None) -> None:
    try:
        validate_password(password, user=user)
    except ValidationError as e:
        raise DRFValidation({'password': e.messages})


def _save_profile(user, *, full_name: str, extra_id, phone_number: str) -> None:
    if user.role == User.ROLE_DOCTOR:
        Doctor.objects.update_or_create(
            user=user,
            defaults={'full_name': full_name, 'phone_number': phone_number or '',
                      'specialty': Specialty.objects.filter(id=extra_id).first() if extra_id else None},
        )
    elif user.role == User.ROLE_NURSE:
        Nurse.objects.update_or_create(
            user=user,
            defaults={'full_name': full_name, 'phone_number': phone_number or '',
                      'department': Department.objects.filter(id=extra_id).first() if extra_id else None},
        )
    else:
        user.first_name = full_name
        user.save(update_fields=['first_name'])


def _update_profile(user, *, full_name, extra_id, phone_number) -> None:
    profile = getattr(user, 'doctor_profile', None) or getattr(user, 'nurse_profile', None)
    if profile is None:
        if full_name:
            _save_profile(user, full_name=full_name, extra_id=extra_id, phone_number=phone_number)
        return
    if full_name:
        profile.full_name = full_name
    if phone_number is not None:
        profile.phone_number = phone_number
    if extra_id is not None:
        if isinstance(profile, Doctor):
            profile.specialty = Specialty.objects.filter(id=extra_id).first()
        else:
            profile.department = Department.objects.filter(id=extra_id).first()
    profile.save()


def create_staff(actor, *, username, password, role, full_name, extra_id=None, phone_number='', request=None):
    if User.objects.filter(username=username).exists():
        raise BusinessError('Username already taken', status_code=status.HTTP_409_CONFLICT)
    _validate(password)
    with transaction.atomic():
        user = User.objects.create_user(username=username, password=password, role=role)
        _save_profile(user, full_name=full_name, extra_id=extra_id, phone_number=phone_number)
        log_action(action_type='staff_created', description=f"Staff account created: {full_name} ({role})",
                   user=actor, target_type='user', target_id=user.id, request=request)
    return user


def update_staff(actor, *, user_id, username=None, password=None, full_name=None, extra_id=None,
                 phone_number=None, is_active=None, request=None):
    user = User.objects.filter(id=user_id).exclude(role=User.ROLE_PATIENT).first()
    if user is None:
        raise BusinessError('Staff member not found', status_code=status.HTTP_404_NOT_FOUND)
    try:
        with transaction.atomic():
            if username and username != user.username:
                user.username = username
            if password:
                _validate(password, user=user)
                user.set_password(password)
            if is_active is not None:
                user.is_active = is_active
            user.save()
            _update_profile(user, full_name=full_name, extra_id=extra_id, phone_number=phone_number)
            log_action(action_type='staff_updated', description=f"Staff account updated: {user.username}",
                       user=actor, target_type='user', target_id=user.id, request=request)
    except IntegrityError:
        raise BusinessError('Username already taken', status_code=status.HTTP_409_CONFLICT)
    return user


def delete_staff(actor, *, user_id, request=None) -> None:
    user = User.objects.filter(id=user_id).exclude(role=User.ROLE_PATIENT).first()
    if user is None:
        raise BusinessError('Staff member not found', status_code=status.HTTP_404_NOT_FOUND)
    if actor is not None and user.id == actor.id:
        raise BusinessError('You cannot delete your own account', status_code=status.HTTP_403_FORBIDDEN)
    name = user.display_name
    user.delete()
    log_action(action_type='staff_deleted', description=f"Staff account deleted: {name}",
               user=actor, target_type='user', target_id=user_id, request=request)
