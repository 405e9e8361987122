"""
Name: Users HTTP API Tests

Responsibilities:
  - Exercise /api/users CRUD through the FastAPI app (in-memory repository)
  - Verify status codes (201/401/403/404/422/503) and RFC7807 bodies
  - Verify responses never expose passwords

Notes:
  - APP_ENV=test => container wires InMemoryUserRepository
  - Tokens are issued with create_access_token (no login round-trip)
"""

import pytest
from fastapi.testclient import TestClient

from useradmin.api.main import create_app
from useradmin.application.input_shaping import PasswordPolicy, UserInputShaper
from useradmin.application.usecases.users import CreateUserUseCase
from useradmin.application.user_rules import build_create_rules
from useradmin.container import (
    get_create_user_use_case,
    get_password_hasher,
    get_user_repository,
)
from useradmin.crosscutting.exceptions import BreachCheckError
from useradmin.domain.entities import UserRole, UserStatus
from useradmin.identity.auth_users import create_access_token

pytestmark = [pytest.mark.unit, pytest.mark.api]

STRONG_PASSWORD = "S3cure!pass"
PROBLEM_JSON = "application/problem+json"


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def users():
    repo = get_user_repository()
    admin = repo.create(
        username="admin",
        email="admin@example.com",
        password_hash="h",
        role=UserRole.ADMIN,
    )
    bob = repo.create(username="bob", email="bob@old.com", password_hash="h")
    carol = repo.create(username="carol", email="carol@example.com", password_hash="h")
    return {"admin": admin, "bob": bob, "carol": carol}


def _auth(user) -> dict[str, str]:
    token, _ = create_access_token(user)
    return {"Authorization": f"Bearer {token}"}


def _assert_problem(response, status_code: int, code: str) -> dict:
    assert response.status_code == status_code
    assert response.headers["content-type"].startswith(PROBLEM_JSON)
    body = response.json()
    assert body["code"] == code
    assert body["status"] == status_code
    return body


# ============================================================================
# Authentication
# ============================================================================


def test_missing_token_is_401(client):
    _assert_problem(client.get("/api/users"), 401, "UNAUTHORIZED")


def test_garbage_token_is_401(client):
    response = client.get("/api/users", headers={"Authorization": "Bearer nope"})
    _assert_problem(response, 401, "UNAUTHORIZED")


def test_token_of_deleted_user_is_401(client, users):
    headers = _auth(users["bob"])
    get_user_repository().delete(users["bob"].id)

    _assert_problem(client.get("/api/user", headers=headers), 401, "UNAUTHORIZED")


def test_token_of_suspended_user_is_403(client, users):
    get_user_repository().update(users["bob"].id, {"status": UserStatus.SUSPENDED})

    response = client.get("/api/user", headers=_auth(users["bob"]))
    _assert_problem(response, 403, "FORBIDDEN")


# ============================================================================
# List
# ============================================================================


def test_admin_lists_users(client, users):
    response = client.get("/api/users", headers=_auth(users["admin"]))

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Users fetched successfully"
    assert body["total"] == 3
    assert body["current_page"] == 1
    assert body["per_page"] == 10
    assert [u["username"] for u in body["data"]] == ["admin", "bob", "carol"]
    assert all("password_hash" not in u for u in body["data"])


def test_list_filters_and_pagination(client, users):
    response = client.get(
        "/api/users",
        params={"status": "active", "per_page": 1, "page": 2},
        headers=_auth(users["admin"]),
    )

    body = response.json()
    assert [u["username"] for u in body["data"]] == ["bob"]
    assert body["last_page"] == 3


def test_list_filter_by_unknown_email_is_empty_page(client, users):
    response = client.get(
        "/api/users",
        params={"email": "nobody@example.com"},
        headers=_auth(users["admin"]),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["data"] == []
    assert body["total"] == 0


def test_list_rejects_invalid_per_page(client, users):
    response = client.get(
        "/api/users", params={"per_page": 0}, headers=_auth(users["admin"])
    )

    body = _assert_problem(response, 422, "VALIDATION_ERROR")
    assert body["errors"]["per_page"] == ["The per page field must be at least 1."]


def test_member_cannot_list(client, users):
    _assert_problem(
        client.get("/api/users", headers=_auth(users["bob"])), 403, "FORBIDDEN"
    )


# ============================================================================
# Create
# ============================================================================


def _new_user_payload(**overrides):
    payload = {
        "username": "dave",
        "email": "dave@example.com",
        "password": STRONG_PASSWORD,
        "password_confirmation": STRONG_PASSWORD,
    }
    payload.update(overrides)
    return payload


def test_admin_creates_user(client, users):
    response = client.post(
        "/api/users", json=_new_user_payload(), headers=_auth(users["admin"])
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User created successfully"
    assert body["data"]["status"] == "active"
    assert body["data"]["role"] == "member"
    assert "password" not in body["data"]
    assert "password_hash" not in body["data"]

    stored = get_user_repository().find_by_id(body["data"]["id"])
    assert stored.password_hash != STRONG_PASSWORD
    assert get_password_hasher().verify(stored.password_hash, STRONG_PASSWORD)


def test_create_cannot_escalate_role(client, users):
    response = client.post(
        "/api/users",
        json=_new_user_payload(role="admin"),
        headers=_auth(users["admin"]),
    )

    assert response.json()["data"]["role"] == "member"


def test_create_reports_all_field_errors(client, users):
    response = client.post(
        "/api/users",
        json={"username": "a", "email": "bad-email", "password": "pw"},
        headers=_auth(users["admin"]),
    )

    body = _assert_problem(response, 422, "VALIDATION_ERROR")
    assert body["errors"]["email"] == ["The email field must be a valid email address."]
    assert "password" in body["errors"]
    assert "username" not in body["errors"]


def test_create_duplicate_email(client, users):
    response = client.post(
        "/api/users",
        json=_new_user_payload(email="BOB@old.com"),
        headers=_auth(users["admin"]),
    )

    body = _assert_problem(response, 422, "VALIDATION_ERROR")
    assert body["errors"] == {"email": ["The email has already been taken."]}


def test_create_without_body(client, users):
    response = client.post("/api/users", headers=_auth(users["admin"]))

    body = _assert_problem(response, 422, "VALIDATION_ERROR")
    assert set(body["errors"]) == {"username", "email", "password"}


def test_member_cannot_create(client, users):
    response = client.post(
        "/api/users", json=_new_user_payload(), headers=_auth(users["bob"])
    )
    _assert_problem(response, 403, "FORBIDDEN")


def test_breach_service_down_is_503(app, client, users):
    class DownChecker:
        def is_compromised(self, plaintext):
            raise BreachCheckError("Breach check service unavailable")

    repo = get_user_repository()
    rules = build_create_rules(PasswordPolicy(check_breaches=True))
    app.dependency_overrides[get_create_user_use_case] = lambda: CreateUserUseCase(
        repo, UserInputShaper(repo, DownChecker()), rules, get_password_hasher()
    )

    response = client.post(
        "/api/users", json=_new_user_payload(), headers=_auth(users["admin"])
    )

    _assert_problem(response, 503, "SERVICE_UNAVAILABLE")
    assert repo.find_by_email("dave@example.com") is None


# ============================================================================
# Show / Update / Delete
# ============================================================================


def test_member_views_self(client, users):
    bob = users["bob"]
    response = client.get(f"/api/users/{bob.id}", headers=_auth(bob))

    assert response.status_code == 200
    assert response.json()["data"]["email"] == "bob@old.com"
    assert response.json()["message"] == "User fetched successfully"


def test_member_cannot_view_others(client, users):
    carol_id = users["carol"].id
    response = client.get(f"/api/users/{carol_id}", headers=_auth(users["bob"]))
    _assert_problem(response, 403, "FORBIDDEN")


def test_unknown_user_is_404(client, users):
    response = client.get("/api/users/999", headers=_auth(users["admin"]))
    _assert_problem(response, 404, "NOT_FOUND")


def test_non_numeric_id_is_422(client, users):
    response = client.get("/api/users/abc", headers=_auth(users["admin"]))

    body = _assert_problem(response, 422, "VALIDATION_ERROR")
    assert "user_id" in body["errors"]


def test_member_updates_self(client, users):
    bob = users["bob"]
    response = client.put(
        f"/api/users/{bob.id}",
        json={"username": "bob", "email": "b@x.com", "role": "admin"},
        headers=_auth(bob),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["email"] == "b@x.com"
    assert data["role"] == "member"
    assert data["status"] == "active"


def test_patch_is_accepted(client, users):
    bob = users["bob"]
    response = client.patch(
        f"/api/users/{bob.id}",
        json={"username": "bobby", "email": "bob@old.com"},
        headers=_auth(bob),
    )

    assert response.json()["data"]["username"] == "bobby"


def test_member_cannot_change_own_status(client, users):
    bob = users["bob"]
    response = client.put(
        f"/api/users/{bob.id}",
        json={"username": "bob", "email": "bob@old.com", "status": "inactive"},
        headers=_auth(bob),
    )

    _assert_problem(response, 403, "FORBIDDEN")
    assert get_user_repository().find_by_id(bob.id).status == UserStatus.ACTIVE


def test_member_cannot_update_others(client, users):
    response = client.put(
        f"/api/users/{users['carol'].id}",
        json={"username": "x", "email": "x@x.com"},
        headers=_auth(users["bob"]),
    )
    _assert_problem(response, 403, "FORBIDDEN")


def test_admin_changes_status(client, users):
    bob = users["bob"]
    response = client.put(
        f"/api/users/{bob.id}",
        json={"username": "bob", "email": "bob@old.com", "status": "suspended"},
        headers=_auth(users["admin"]),
    )

    assert response.json()["data"]["status"] == "suspended"
    assert response.json()["message"] == "User updated successfully"


def test_admin_deletes_user(client, users):
    carol = users["carol"]
    headers = _auth(users["admin"])

    response = client.delete(f"/api/users/{carol.id}", headers=headers)

    assert response.status_code == 200
    assert response.json()["message"] == "User deleted successfully"
    assert response.json()["data"]["id"] == carol.id
    _assert_problem(
        client.get(f"/api/users/{carol.id}", headers=headers), 404, "NOT_FOUND"
    )


def test_member_cannot_delete_self(client, users):
    bob = users["bob"]
    _assert_problem(
        client.delete(f"/api/users/{bob.id}", headers=_auth(bob)), 403, "FORBIDDEN"
    )


# ============================================================================
# Platform endpoints
# ============================================================================


def test_request_id_is_propagated(client, users):
    response = client.get(
        "/api/users", headers={**_auth(users["admin"]), "X-Request-Id": "req-123"}
    )
    assert response.headers["X-Request-Id"] == "req-123"


def test_problem_body_carries_request_id(client):
    response = client.get("/api/users", headers={"X-Request-Id": "req-401"})
    assert response.json()["request_id"] == "req-401"


def test_healthz_skips_db_in_test_env(client):
    body = client.get("/healthz").json()

    assert body["ok"] is True
    assert body["db"] == "skipped"


def test_metrics_endpoint(client, users):
    client.get(f"/api/users/{users['bob'].id}", headers=_auth(users["bob"]))

    response = client.get("/metrics")

    assert response.status_code == 200
    assert 'endpoint="/api/users/{id}"' in response.text
