from __future__ import annotations

from datetime import datetime, timedelta

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from conftest import member_headers


def _create_client(client: TestClient, headers: dict[str, str], **overrides: object) -> dict:
    body = {"name": "Acme Ltda", "email": "contato@acme.test", "cnpj": "12.345.678/0001-90"}
    body.update(overrides)
    response = client.post("/api/clientes", headers=headers, json=body)
    assert response.status_code == 201, response.text
    return response.json()


def test_client_email_and_cnpj_are_unique(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    created = _create_client(client, headers, email="Contato@Acme.test")
    assert created["email"] == "contato@acme.test"
    assert created["status"] == "ACTIVE"

    same_email = client.post(
        "/api/clientes",
        headers=headers,
        json={"name": "Acme Filial", "email": "contato@acme.test"},
    )
    assert same_email.status_code == 409

    same_cnpj = client.post(
        "/api/clientes",
        headers=headers,
        json={"name": "Acme Filial", "cnpj": "12.345.678/0001-90"},
    )
    assert same_cnpj.status_code == 409

    other = _create_client(client, headers, name="Globex", email="hi@globex.test", cnpj=None)
    clash = client.put(f"/api/clientes/{other['id']}", headers=headers, json={"email": "contato@acme.test"})
    assert clash.status_code == 409


def test_client_with_projects_cannot_be_deleted(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    created = _create_client(client, headers)
    project = client.post(
        "/api/projetos",
        headers=headers,
        json={"client_id": created["id"], "name": "Portal"},
    )
    assert project.status_code == 201

    blocked = client.delete(f"/api/clientes/{created['id']}", headers=headers)
    assert blocked.status_code == 409

    assert client.delete(f"/api/projetos/{project.json()['id']}", headers=headers).status_code == 204
    assert client.delete(f"/api/clientes/{created['id']}", headers=headers).status_code == 204


def test_lead_conversion_creates_client(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    lead = client.post(
        "/api/leads",
        headers=headers,
        json={
            "name": "Bruno Prospect",
            "email": "bruno@prospect.test",
            "company": "Prospect SA",
            "source": "REFERRAL",
            "estimated_value": "15000.00",
        },
    )
    assert lead.status_code == 201
    lead_id = lead.json()["id"]
    assert lead.json()["status"] == "NEW"

    converted = client.post(f"/api/leads/{lead_id}/convert", headers=headers)
    assert converted.status_code == 201
    client_payload = converted.json()
    assert client_payload["name"] == "Bruno Prospect"
    assert client_payload["company"] == "Prospect SA"

    lead_after = client.get(f"/api/leads/{lead_id}", headers=headers).json()
    assert lead_after["status"] == "WON"
    assert lead_after["converted_to_client_id"] == client_payload["id"]
    assert lead_after["converted_at"] is not None

    again = client.post(f"/api/leads/{lead_id}/convert", headers=headers)
    assert again.status_code == 400


def test_lead_status_filter(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    client.post("/api/leads", headers=headers, json={"name": "Novo"})
    client.post("/api/leads", headers=headers, json={"name": "Qualificado", "status": "QUALIFIED"})

    qualified = client.get("/api/leads", headers=headers, params={"status": "QUALIFIED"})

    assert [item["name"] for item in qualified.json()["items"]] == ["Qualificado"]


def test_meetings_upcoming_filter_and_links(client: TestClient, db_session: Session) -> None:
    member, headers = member_headers(db_session)
    created_client = _create_client(client, headers)
    now = datetime.utcnow()

    future = client.post(
        "/api/reunioes",
        headers=headers,
        json={
            "title": "Kickoff",
            "start_at": (now + timedelta(days=2)).isoformat(),
            "end_at": (now + timedelta(days=2, hours=1)).isoformat(),
            "client_id": created_client["id"],
            "member_ids": [str(member.id)],
            "tags": ["kickoff", "kickoff", " "],
        },
    )
    assert future.status_code == 201, future.text
    assert future.json()["member_ids"] == [str(member.id)]
    assert future.json()["tags"] == ["kickoff"]

    past = client.post(
        "/api/reunioes",
        headers=headers,
        json={"title": "Retro", "start_at": (now - timedelta(days=2)).isoformat()},
    )
    assert past.status_code == 201

    upcoming = client.get("/api/reunioes", headers=headers, params={"upcoming": "true"})
    assert [item["title"] for item in upcoming.json()["items"]] == ["Kickoff"]

    everything = client.get("/api/reunioes", headers=headers)
    assert len(everything.json()["items"]) == 2


def test_meeting_end_before_start_is_rejected(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    start = datetime(2026, 5, 10, 14, 0)

    response = client.post(
        "/api/reunioes",
        headers=headers,
        json={
            "title": "Invertida",
            "start_at": start.isoformat(),
            "end_at": (start - timedelta(hours=1)).isoformat(),
        },
    )

    assert response.status_code == 400
