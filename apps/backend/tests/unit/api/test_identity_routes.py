"""
Name: Identity Endpoint Tests

Responsibilities:
  - /users and /workers provisioning restricted to manage_users
  - Lookups: self or view_users by id, view_users by RUT
  - Temporary password works for login; reset replaces it
  - Worker-side complete-enrollment (self-linked or manage_users)
"""

import pytest
from app.container import get_user_repository, get_worker_repository
from app.domain.entities import UserRole

from ...conftest import RUT_BRUNO, RUT_CARLA
from .conftest import auth_headers

pytestmark = pytest.mark.unit


@pytest.fixture
def admin_headers(api_identities):
    admin = api_identities.user(
        rut=RUT_CARLA, first_name="Carla", role=UserRole.ADMIN
    )
    return auth_headers(admin)


def test_admin_creates_user_and_it_can_log_in(client, admin_headers):
    res = client.post(
        "/v1/users",
        json={
            "rut": "22222222-2",
            "first_name": "Bruno",
            "last_name": "Soto",
            "role": "worker",
        },
        headers=admin_headers,
    )

    assert res.status_code == 201
    body = res.json()
    assert body["user"]["rut"] == "22.222.222-2"
    assert body["user"]["status"] == "pending"
    assert body["user"]["enrollment_state"] == "unenrolled"
    assert "password_hash" not in body["user"]

    login = client.post(
        "/auth/login",
        json={"rut": "22.222.222-2", "password": body["temporary_password"]},
    )
    assert login.status_code == 200


def test_preventionist_cannot_create_users(client, preventionist_headers):
    res = client.post(
        "/v1/users",
        json={"rut": RUT_BRUNO, "first_name": "Bruno", "role": "worker"},
        headers=preventionist_headers,
    )

    assert res.status_code == 403


def test_duplicate_user_is_409(client, admin_headers, api_identities):
    api_identities.user(rut=RUT_BRUNO)

    res = client.post(
        "/v1/users",
        json={"rut": "22.222.222-2", "first_name": "Bruno", "role": "worker"},
        headers=admin_headers,
    )

    assert res.status_code == 409


def test_invalid_rut_is_422(client, admin_headers):
    res = client.post(
        "/v1/workers",
        json={"rut": "22.222.222-3", "first_name": "Bruno", "position": "Soldador"},
        headers=admin_headers,
    )

    assert res.status_code == 422


def test_user_reads_own_profile_but_not_others(client, api_identities):
    user = api_identities.user()
    other = api_identities.user(rut=RUT_BRUNO)

    own = client.get(f"/v1/users/{user.id}", headers=auth_headers(user))
    foreign = client.get(f"/v1/users/{other.id}", headers=auth_headers(user))

    assert own.status_code == 200
    assert own.json()["id"] == str(user.id)
    assert foreign.status_code == 403


def test_preventionist_looks_up_user_by_rut(
    client, api_identities, preventionist_headers
):
    user = api_identities.user(rut=RUT_BRUNO)

    res = client.get("/v1/users/rut/22.222.222-2", headers=preventionist_headers)

    assert res.status_code == 200
    assert res.json()["id"] == str(user.id)


def test_unknown_rut_is_404(client, preventionist_headers):
    res = client.get("/v1/workers/rut/22222222-2", headers=preventionist_headers)

    assert res.status_code == 404


def test_admin_updates_user_status(client, admin_headers, api_identities):
    user = api_identities.user(rut=RUT_BRUNO)

    res = client.patch(
        f"/v1/users/{user.id}",
        json={"status": "suspended", "position": "Bodeguero"},
        headers=admin_headers,
    )

    assert res.status_code == 200
    assert res.json()["status"] == "suspended"
    assert get_user_repository().get_user(user.id).position == "Bodeguero"


def test_reset_password_returns_new_temporary_password(
    client, admin_headers, api_identities
):
    user = api_identities.user(rut=RUT_BRUNO)

    res = client.post(f"/v1/users/{user.id}/reset-password", headers=admin_headers)

    assert res.status_code == 200
    login = client.post(
        "/auth/login",
        json={"rut": RUT_BRUNO, "password": res.json()["temporary_password"]},
    )
    assert login.status_code == 200


def test_admin_registers_worker_linked_to_existing_user(
    client, admin_headers, api_identities
):
    user = api_identities.user(rut=RUT_BRUNO)

    res = client.post(
        "/v1/workers",
        json={"rut": "22.222.222-2", "first_name": "Bruno", "position": "Soldador"},
        headers=admin_headers,
    )

    assert res.status_code == 201
    body = res.json()
    assert body["linked_user"] is True
    assert body["worker"]["user_id"] == str(user.id)
    assert body["worker"]["enabled"] is False
    assert get_user_repository().get_user(user.id).worker_id is not None


def test_admin_updates_worker(client, admin_headers, api_identities):
    worker = api_identities.worker(rut=RUT_BRUNO)

    res = client.patch(
        f"/v1/workers/{worker.id}", json={"position": "Capataz"}, headers=admin_headers
    )

    assert res.status_code == 200
    assert res.json()["position"] == "Capataz"


def test_linked_user_completes_worker_enrollment(client, api_identities):
    worker = api_identities.worker(rut=RUT_BRUNO, pin="2580")
    user = api_identities.user(rut=RUT_BRUNO, worker_id=worker.id)

    res = client.post(
        f"/v1/workers/{worker.id}/complete-enrollment",
        json={"pin": "2580"},
        headers=auth_headers(user),
    )

    assert res.status_code == 200
    body = res.json()
    assert body["enabled"] is True
    assert body["signature"]["purpose"] == "enrollment"
    assert body["signature"]["reference_type"] == "worker"
    assert get_worker_repository().get_worker(worker.id).enabled is True


def test_admin_operates_worker_enrollment_terminal(
    client, admin_headers, api_identities
):
    worker = api_identities.worker(rut=RUT_BRUNO, pin="2580")

    wrong = client.post(
        f"/v1/workers/{worker.id}/complete-enrollment",
        json={"pin": "1470"},
        headers=admin_headers,
    )
    ok = client.post(
        f"/v1/workers/{worker.id}/complete-enrollment",
        json={"pin": "2580"},
        headers=admin_headers,
    )

    assert wrong.status_code == 401
    assert ok.status_code == 200


def test_other_worker_cannot_complete_enrollment(client, api_identities):
    worker = api_identities.worker(rut=RUT_BRUNO, pin="2580")
    stranger = api_identities.user()

    res = client.post(
        f"/v1/workers/{worker.id}/complete-enrollment",
        json={"pin": "2580"},
        headers=auth_headers(stranger),
    )

    assert res.status_code == 403
