import pytest
from rest_framework.test import APIClient

from .factories import make_admin, make_doctor, make_nurse, make_patient


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def admin(db):
    return make_admin()


@pytest.fixture
def doctor(db):
    return make_doctor()


@pytest.fixture
def nurse(db):
    return make_nurse()


@pytest.fixture
def patient(db):
    return make_patient()


@pytest.fixture
def as_user(api_client):
    """Authenticate the shared client as ``user`` and return it."""
    def _as(user):
        api_client.force_authenticate(user=user)
        return api_client
    return _as
