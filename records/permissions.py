"""
Role based permission classes.
"""
from rest_framework.permissions import BasePermission

STAFF_ROLES = {"admin", "doctor", "nurse"}
CLINICIAN_ROLES = {"admin", "doctor"}


def _role(request):
    user = getattr(request, "user", None)
    if not (user and user.is_authenticated):
        return None
    return getattr(user, "role", None)


class IsAdminRole(BasePermission):
    """Allow access only to administrators."""
    message = "Administrator access required"

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) == "admin"


class IsStaffRole(BasePermission):
    """Admins, doctors and nurses."""
    message = "Staff access required"

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) in STAFF_ROLES


class IsClinicianRole(BasePermission):
    """Roles allowed to author medical records (doctors and admins)."""
    message = "Only doctors can edit medical records"

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) in CLINICIAN_ROLES


class IsPatientRole(BasePermission):
    """Allow access only to users with the patient role."""
    message = "Patient access required"

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) == "patient"
