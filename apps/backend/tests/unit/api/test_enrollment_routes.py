"""
Name: Enrollment Endpoint Tests

Responsibilities:
  - PIN setup for self (User and linked Worker) and by RESET_PIN holders
  - complete-enrollment only for the authenticated User
  - Use case errors mapped to RFC 7807 responses
"""

from uuid import uuid4

import pytest
from app.container import get_user_repository, get_worker_repository
from app.domain.entities import UserRole

from ...conftest import RUT_BRUNO
from .conftest import auth_headers

pytestmark = pytest.mark.unit


def test_user_sets_own_pin(client, api_identities):
    user = api_identities.user()

    res = client.post(
        f"/v1/users/{user.id}/pin",
        json={"new_pin": "2580"},
        headers=auth_headers(user),
    )

    assert res.status_code == 200
    body = res.json()
    assert body["identity_id"] == str(user.id)
    assert body["kind"] == "user"
    assert body["propagated"] is False
    assert get_user_repository().get_user(user.id).pin_hash


def test_user_sets_pin_of_linked_worker(client, api_identities):
    worker = api_identities.worker(rut=RUT_BRUNO)
    user = api_identities.user(rut=RUT_BRUNO, worker_id=worker.id)

    res = client.post(
        f"/v1/workers/{worker.id}/pin",
        json={"new_pin": "2580"},
        headers=auth_headers(user),
    )

    assert res.status_code == 200
    assert res.json()["kind"] == "worker"


def test_worker_role_cannot_set_others_pin(client, api_identities):
    actor = api_identities.user()
    other = api_identities.worker(rut=RUT_BRUNO)

    res = client.post(
        f"/v1/workers/{other.id}/pin",
        json={"new_pin": "2580"},
        headers=auth_headers(actor),
    )

    assert res.status_code == 403


def test_admin_resets_any_pin(client, api_identities):
    admin = api_identities.user(role=UserRole.ADMIN)
    worker = api_identities.worker(rut=RUT_BRUNO)

    res = client.post(
        f"/v1/workers/{worker.id}/pin",
        json={"new_pin": "2580"},
        headers=auth_headers(admin),
    )

    assert res.status_code == 200


def test_weak_pin_is_422(client, api_identities):
    user = api_identities.user()

    res = client.post(
        f"/v1/users/{user.id}/pin",
        json={"new_pin": "1234"},
        headers=auth_headers(user),
    )

    assert res.status_code == 422
    assert res.json()["code"] == "VALIDATION_ERROR"
    assert res.headers["content-type"].startswith("application/problem+json")


def test_pin_requires_authentication(client):
    res = client.post(f"/v1/users/{uuid4()}/pin", json={"new_pin": "2580"})

    assert res.status_code == 401


def test_complete_enrollment(client, api_identities):
    user = api_identities.user(pin="2580")

    res = client.post(
        f"/v1/users/{user.id}/complete-enrollment",
        json={"pin": "2580"},
        headers={**auth_headers(user), "User-Agent": "tablet-app/2.1"},
    )

    assert res.status_code == 200
    body = res.json()
    assert body["enabled"] is True
    assert body["resynced"] is False
    assert body["signature"]["purpose"] == "enrollment"
    assert body["signature"]["signer_rut"] == "11.111.111-1"
    assert body["signature"]["user_agent"] == "tablet-app/2.1"
    assert "pin_hash" not in body["signature"]
    worker = get_worker_repository().get_worker_by_rut(user.rut)
    assert worker.enabled is True
    assert body["worker_id"] == str(worker.id)


def test_complete_enrollment_wrong_pin_is_401(client, api_identities):
    user = api_identities.user(pin="2580")

    res = client.post(
        f"/v1/users/{user.id}/complete-enrollment",
        json={"pin": "1470"},
        headers=auth_headers(user),
    )

    assert res.status_code == 401
    assert res.json()["code"] == "UNAUTHORIZED"


def test_complete_enrollment_twice_is_409(client, api_identities):
    user = api_identities.user(pin="2580")
    headers = auth_headers(user)
    client.post(
        f"/v1/users/{user.id}/complete-enrollment", json={"pin": "2580"}, headers=headers
    )

    res = client.post(
        f"/v1/users/{user.id}/complete-enrollment", json={"pin": "2580"}, headers=headers
    )

    assert res.status_code == 409


def test_cannot_enroll_someone_else(client, api_identities, preventionist_headers):
    user = api_identities.user(pin="2580")

    res = client.post(
        f"/v1/users/{user.id}/complete-enrollment",
        json={"pin": "2580"},
        headers=preventionist_headers,
    )

    assert res.status_code == 403
