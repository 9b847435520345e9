from __future__ import annotations

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from conftest import admin_headers, member_headers


def _create_member(client: TestClient, headers: dict[str, str], **overrides: object) -> dict:
    body = {"name": "Diego Lima", "email": "diego@huntly.test", "role": "DEVELOPER"}
    body.update(overrides)
    response = client.post("/api/membros", headers=headers, json=body)
    assert response.status_code == 201, response.text
    return response.json()


def test_member_crud_and_role_normalization(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)

    created = _create_member(
        client,
        headers,
        email="Diego@Huntly.test",
        roles=["DESIGNER", "DEVELOPER", "CTO"],
        department="  Engenharia ",
    )
    assert created["email"] == "diego@huntly.test"
    assert created["roles"] == ["DEVELOPER", "DESIGNER", "CTO"]
    assert created["has_admin_access"] is True
    assert created["department"] == "Engenharia"

    updated = client.put(
        f"/api/membros/{created['id']}",
        headers=headers,
        json={"role": "DESIGNER", "status": "ON_LEAVE"},
    )
    assert updated.status_code == 200
    assert updated.json()["roles"][0] == "DESIGNER"
    assert updated.json()["status"] == "ON_LEAVE"

    on_leave = client.get("/api/membros", headers=headers, params={"status": "ON_LEAVE"})
    assert [item["id"] for item in on_leave.json()["items"]] == [created["id"]]


def test_member_email_must_be_unique(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    _create_member(client, headers)

    response = client.post(
        "/api/membros",
        headers=headers,
        json={"name": "Outro Diego", "email": "DIEGO@huntly.test", "role": "DEVOPS"},
    )

    assert response.status_code == 409


def test_only_admins_delete_members(client: TestClient, db_session: Session) -> None:
    _, member_auth = member_headers(db_session)
    _, admin_auth = admin_headers(db_session)
    created = _create_member(client, admin_auth)

    forbidden = client.delete(f"/api/membros/{created['id']}", headers=member_auth)
    assert forbidden.status_code == 403

    deleted = client.delete(f"/api/membros/{created['id']}", headers=admin_auth)
    assert deleted.status_code == 204
    assert client.get(f"/api/membros/{created['id']}", headers=admin_auth).status_code == 404


def test_team_membership_is_visible_from_both_sides(client: TestClient, db_session: Session) -> None:
    lead, headers = member_headers(db_session)
    dev = _create_member(client, headers)

    team = client.post(
        "/api/times",
        headers=headers,
        json={"name": "Squad Core", "lead_id": str(lead.id), "member_ids": [str(lead.id), dev["id"]]},
    )
    assert team.status_code == 201
    team_payload = team.json()
    assert set(team_payload["member_ids"]) == {str(lead.id), dev["id"]}

    member = client.get(f"/api/membros/{dev['id']}", headers=headers).json()
    assert member["team_ids"] == [team_payload["id"]]

    removed = client.put(
        f"/api/membros/{dev['id']}",
        headers=headers,
        json={"team_ids": []},
    )
    assert removed.json()["team_ids"] == []
    team_after = client.get(f"/api/times/{team_payload['id']}", headers=headers).json()
    assert team_after["member_ids"] == [str(lead.id)]

    assert client.delete(f"/api/times/{team_payload['id']}", headers=headers).status_code == 204
    assert client.get("/api/times", headers=headers).json()["items"] == []


def test_team_with_unknown_member_is_rejected(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)

    response = client.post(
        "/api/times",
        headers=headers,
        json={"name": "Fantasmas", "member_ids": ["00000000-0000-0000-0000-000000000001"]},
    )

    assert response.status_code == 400
