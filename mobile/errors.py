"""
Client-side error taxonomy.

``ValidationError`` never leaves the device, ``ApiError`` carries the
backend's ``message`` verbatim, ``TransportError`` covers everything
between the device and a decoded JSON body, and
``RestrictedAccountError`` short-circuits workflows for restricted
patients.
"""
from __future__ import annotations

from typing import Optional


class ClinicError(Exception):
    """Base class; ``message`` is the text shown to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ClinicError):
    """A form failed a local check; no request was sent."""


class ApiError(ClinicError):
    """The backend answered ``success: false``."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, payload: Optional[dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}


class TransportError(ClinicError):
    """The request never produced a usable JSON answer."""


class RestrictedAccountError(ClinicError):
    """The patient account is restricted.

    Raised by the login call with the ``patient_id`` needed to file a
    re-access request, and locally by workflows that restricted patients
    may not enter.
    """

    def __init__(self, message: str, *, patient_id: Optional[int] = None, name: Optional[str] = None):
        super().__init__(message)
        self.patient_id = patient_id
        self.name = name
