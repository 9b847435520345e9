from __future__ import annotations

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.models.entities import MemberStatus
from conftest import DEFAULT_PASSWORD, auth_headers, create_member, create_user


def test_protected_endpoints_require_credentials(client: TestClient) -> None:
    response = client.get("/api/clientes")

    assert response.status_code == 401
    assert response.json()["detail"] == "Not authenticated."


def test_invalid_bearer_token_is_rejected(client: TestClient) -> None:
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_register_links_member_and_rejects_duplicates(client: TestClient, db_session: Session) -> None:
    member = create_member(db_session, email="bruno@huntly.test", name="Bruno")

    response = client.post(
        "/api/auth/register",
        json={"email": "Bruno@Huntly.test", "password": "abcdef", "member_id": str(member.id)},
    )
    assert response.status_code == 201
    payload = response.json()
    assert payload["email"] == "bruno@huntly.test"
    assert payload["member"]["name"] == "Bruno"

    duplicate = client.post("/api/auth/register", json={"email": "bruno@huntly.test", "password": "abcdef"})
    assert duplicate.status_code == 409

    second_account = client.post(
        "/api/auth/register",
        json={"email": "other@huntly.test", "password": "abcdef", "member_id": str(member.id)},
    )
    assert second_account.status_code == 409


def test_register_rejects_short_password(client: TestClient) -> None:
    response = client.post("/api/auth/register", json={"email": "short@huntly.test", "password": "123"})

    assert response.status_code == 400


def test_login_sets_cookie_and_me_reads_it(client: TestClient, db_session: Session) -> None:
    member = create_member(db_session, email="carla@huntly.test", name="Carla")
    create_user(db_session, email="carla@huntly.test", member=member)

    response = client.post("/api/auth/login", json={"email": "carla@huntly.test", "password": DEFAULT_PASSWORD})
    assert response.status_code == 200
    payload = response.json()
    assert payload["token"]
    assert payload["user"]["last_login_at"] is not None
    assert "auth-token" in response.cookies

    me_response = client.get("/api/auth/me")
    assert me_response.status_code == 200
    assert me_response.json()["member_id"] == str(member.id)

    logout = client.post("/api/auth/logout")
    assert logout.status_code == 204
    assert client.get("/api/auth/me").status_code == 401


def test_login_failures(client: TestClient, db_session: Session) -> None:
    inactive = create_member(db_session, email="off@huntly.test", status=MemberStatus.INACTIVE)
    create_user(db_session, email="off@huntly.test", member=inactive)
    create_user(db_session, email="dana@huntly.test")

    wrong_password = client.post("/api/auth/login", json={"email": "dana@huntly.test", "password": "nope"})
    assert wrong_password.status_code == 401

    unknown = client.post("/api/auth/login", json={"email": "ghost@huntly.test", "password": DEFAULT_PASSWORD})
    assert unknown.status_code == 401

    blocked = client.post("/api/auth/login", json={"email": "off@huntly.test", "password": DEFAULT_PASSWORD})
    assert blocked.status_code == 403


def test_change_password(client: TestClient, db_session: Session) -> None:
    user = create_user(db_session, email="eva@huntly.test")
    headers = auth_headers(user)

    wrong = client.post(
        "/api/auth/change-password",
        headers=headers,
        json={"current_password": "bad", "new_password": "nova-senha"},
    )
    assert wrong.status_code == 401

    changed = client.post(
        "/api/auth/change-password",
        headers=headers,
        json={"current_password": DEFAULT_PASSWORD, "new_password": "nova-senha"},
    )
    assert changed.status_code == 204

    login = client.post("/api/auth/login", json={"email": "eva@huntly.test", "password": "nova-senha"})
    assert login.status_code == 200


def test_request_validation_errors_are_reported_as_400(client: TestClient) -> None:
    response = client.post("/api/auth/login", json={"email": "x@huntly.test"})

    assert response.status_code == 400
    payload = response.json()
    assert payload["detail"].startswith("password")
    assert payload["errors"]
