from __future__ import annotations

from datetime import datetime, timedelta
from uuid import UUID, uuid4

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.models.entities import ApiKey
from conftest import admin_headers, member_headers


def _create_key(client: TestClient, headers: dict[str, str], **overrides: object) -> dict:
    body = {"name": "Integracao", "permissions": ["transactions:read", "transactions:write"]}
    body.update(overrides)
    response = client.post("/api/api-keys", headers=headers, json=body)
    assert response.status_code == 201, response.text
    return response.json()


def _create_internal_project(client: TestClient, headers: dict[str, str], name: str) -> dict:
    response = client.post("/api/projetos-internos", headers=headers, json={"name": name})
    assert response.status_code == 201, response.text
    return response.json()


def test_api_key_management_requires_admin(client: TestClient, db_session: Session) -> None:
    _, member_auth = member_headers(db_session)
    _, admin_auth = admin_headers(db_session)

    assert client.get("/api/api-keys", headers=member_auth).status_code == 403

    created = _create_key(client, admin_auth, expires_in="30d")
    assert created["key"].startswith(created["prefix"])
    assert created["expires_at"] is not None
    assert created["is_expired"] is False

    listing = client.get("/api/api-keys", headers=admin_auth).json()
    assert [item["id"] for item in listing["items"]] == [created["id"]]
    assert "key" not in listing["items"][0]
    assert "full-access" in listing["available_permissions"]
    assert "never" in listing["expiry_options"]


def test_api_key_rejects_unknown_permission_and_expiry(client: TestClient, db_session: Session) -> None:
    _, admin_auth = admin_headers(db_session)

    bad_permission = client.post(
        "/api/api-keys",
        headers=admin_auth,
        json={"name": "Errada", "permissions": ["projects:admin"]},
    )
    assert bad_permission.status_code == 400

    bad_expiry = client.post(
        "/api/api-keys",
        headers=admin_auth,
        json={"name": "Errada", "expires_in": "2w"},
    )
    assert bad_expiry.status_code == 400


def test_api_key_update_changes_scope_and_expiry(client: TestClient, db_session: Session) -> None:
    _, admin_auth = admin_headers(db_session)
    site = _create_internal_project(client, admin_auth, "Site institucional")
    created = _create_key(client, admin_auth)
    assert created["internal_project_id"] is None
    assert created["expires_at"] is None
    url = f"/api/api-keys/{created['id']}"

    scoped = client.put(url, headers=admin_auth, json={"internal_project_id": site["id"]})
    assert scoped.status_code == 200
    assert scoped.json()["internal_project_id"] == site["id"]

    renamed = client.put(url, headers=admin_auth, json={"name": "Integracao ERP"})
    assert renamed.json()["name"] == "Integracao ERP"
    assert renamed.json()["internal_project_id"] == site["id"]

    unknown = client.put(url, headers=admin_auth, json={"internal_project_id": str(uuid4())})
    assert unknown.status_code == 404

    cleared = client.put(url, headers=admin_auth, json={"internal_project_id": None})
    assert cleared.status_code == 200
    assert cleared.json()["internal_project_id"] is None

    expiring = client.put(url, headers=admin_auth, json={"expires_in": "7d"})
    assert expiring.status_code == 200
    assert expiring.json()["expires_at"] is not None
    assert expiring.json()["is_expired"] is False

    assert client.put(url, headers=admin_auth, json={"expires_in": "2w"}).status_code == 400
    assert client.get(url, headers=admin_auth).json()["expires_at"] == expiring.json()["expires_at"]


def test_api_key_reaches_ledger_but_not_session_endpoints(client: TestClient, db_session: Session) -> None:
    _, admin_auth = admin_headers(db_session)
    created = _create_key(client, admin_auth)
    key_headers = {"X-API-Key": created["key"]}

    posted = client.post(
        "/api/financeiro",
        headers=key_headers,
        json={
            "type": "EXPENSE",
            "category": "SOFTWARE",
            "amount": "99.90",
            "description": "Licenca IDE",
            "date": "2026-02-01",
        },
    )
    assert posted.status_code == 201, posted.text
    assert client.get("/api/financeiro", headers=key_headers).status_code == 200

    assert client.get("/api/clientes", headers=key_headers).status_code == 403
    assert client.get("/api/auth/me", headers=key_headers).status_code == 403
    assert client.delete(f"/api/financeiro/{posted.json()['id']}", headers=key_headers).status_code == 403
    assert client.get("/api/projetos-internos", headers=key_headers).status_code == 403

    used = client.get(f"/api/api-keys/{created['id']}", headers=admin_auth).json()
    assert used["last_used_at"] is not None


def test_inactive_expired_and_unknown_keys_are_rejected(client: TestClient, db_session: Session) -> None:
    _, admin_auth = admin_headers(db_session)
    created = _create_key(client, admin_auth)
    key_headers = {"X-API-Key": created["key"]}

    assert client.get("/api/financeiro", headers={"X-API-Key": "hk_unknown"}).status_code == 401

    disabled = client.put(f"/api/api-keys/{created['id']}", headers=admin_auth, json={"is_active": False})
    assert disabled.json()["is_active"] is False
    assert client.get("/api/financeiro", headers=key_headers).status_code == 401

    client.put(f"/api/api-keys/{created['id']}", headers=admin_auth, json={"is_active": True})
    api_key = db_session.get(ApiKey, UUID(created["id"]))
    api_key.expires_at = datetime.utcnow() - timedelta(minutes=1)
    db_session.commit()
    assert client.get("/api/financeiro", headers=key_headers).status_code == 401

    assert client.delete(f"/api/api-keys/{created['id']}", headers=admin_auth).status_code == 204
    assert client.get(f"/api/api-keys/{created['id']}", headers=admin_auth).status_code == 404


def test_scoped_key_only_sees_its_internal_project(client: TestClient, db_session: Session) -> None:
    _, admin_auth = admin_headers(db_session)
    site = _create_internal_project(client, admin_auth, "Site institucional")
    other = _create_internal_project(client, admin_auth, "Ferramentas")
    created = _create_key(
        client,
        admin_auth,
        permissions=["full-access"],
        internal_project_id=site["id"],
    )
    key_headers = {"X-API-Key": created["key"]}

    listing = client.get("/api/projetos-internos", headers=key_headers)
    assert [item["id"] for item in listing.json()["items"]] == [site["id"]]
    assert client.get(f"/api/projetos-internos/{other['id']}", headers=key_headers).status_code == 403
    assert client.post("/api/projetos-internos", headers=key_headers, json={"name": "Novo"}).status_code == 403

    posted = client.post(
        f"/api/projetos-internos/{site['id']}/transactions",
        headers=key_headers,
        json={
            "type": "EXPENSE",
            "category": "INFRASTRUCTURE",
            "amount": "45.00",
            "description": "Hospedagem",
            "date": "2026-02-03",
        },
    )
    assert posted.status_code == 201, posted.text
    assert posted.json()["internal_project_id"] == site["id"]

    foreign = client.post(
        "/api/financeiro",
        headers=key_headers,
        json={
            "type": "EXPENSE",
            "category": "INFRASTRUCTURE",
            "amount": "10.00",
            "description": "Outro projeto",
            "date": "2026-02-03",
            "internal_project_id": other["id"],
        },
    )
    assert foreign.status_code == 403

    ledger = client.get("/api/financeiro", headers=key_headers).json()["items"]
    assert [item["internal_project_id"] for item in ledger] == [site["id"]]

    customer = client.post("/api/clientes", headers=admin_auth, json={"name": "Acme"}).json()
    project = client.post(
        "/api/projetos",
        headers=admin_auth,
        json={"client_id": customer["id"], "name": "Portal"},
    ).json()
    assert client.get(f"/api/projetos/{project['id']}/tasks", headers=key_headers).status_code == 403

    detail = client.get(f"/api/projetos-internos/{site['id']}", headers=admin_auth).json()
    assert detail["financials"]["total_expense"] == "45.00"
    assert client.delete(f"/api/projetos-internos/{site['id']}", headers=admin_auth).status_code == 409


def test_internal_task_board(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    board = _create_internal_project(client, headers, "Automacoes")
    base = f"/api/projetos-internos/{board['id']}/tasks"

    first = client.post(base, headers=headers, json={"title": "Bot do Slack"}).json()
    second = client.post(base, headers=headers, json={"title": "Relatorio semanal"}).json()
    assert (first["order"], second["order"]) == (0, 1)
    assert first["internal_project_id"] == board["id"]

    moved = client.put(
        f"{base}/reorder",
        headers=headers,
        json={"task_id": second["id"], "new_status": "DONE", "new_order": 0},
    )
    assert moved.status_code == 200
    done = [item for item in moved.json()["items"] if item["status"] == "DONE"]
    assert [item["title"] for item in done] == ["Relatorio semanal"]
    assert done[0]["completed_at"] is not None

    updated = client.put(f"{base}/{first['id']}", headers=headers, json={"actual_hours": "3.5"})
    assert updated.json()["actual_hours"] == "3.50"

    assert client.delete(f"{base}/{first['id']}", headers=headers).status_code == 204
    assert client.get(f"{base}/{first['id']}", headers=headers).status_code == 404
    assert client.get(f"/api/projetos-internos/{board['id']}", headers=headers).json()["task_count"] == 1


def test_internal_story_board(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    board = _create_internal_project(client, headers, "Automacoes")
    other = _create_internal_project(client, headers, "Ferramentas")
    stories_url = f"/api/projetos-internos/{board['id']}/stories"
    tasks_url = f"/api/projetos-internos/{board['id']}/tasks"

    first = client.post(stories_url, headers=headers, json={"title": "Onboarding", "points": 5})
    assert first.status_code == 201
    first = first.json()
    second = client.post(stories_url, headers=headers, json={"title": "Faturamento"}).json()
    shipped = client.post(stories_url, headers=headers, json={"title": "Site", "status": "DONE"}).json()
    assert (first["order"], second["order"], shipped["order"]) == (0, 1, 0)
    assert first["priority"] == "MEDIUM" and first["points"] == 5
    assert shipped["completed_at"] is not None

    assert client.post(stories_url, headers=headers, json={"title": "   "}).status_code == 400
    assert client.post(stories_url, headers=headers, json={"title": "Negativa", "points": -1}).status_code == 400

    task = client.post(tasks_url, headers=headers, json={"title": "Checklist", "story_id": first["id"]}).json()
    assert task["story_id"] == first["id"]
    foreign_story = client.post(
        f"/api/projetos-internos/{other['id']}/stories",
        headers=headers,
        json={"title": "Outra"},
    ).json()
    foreign = client.post(tasks_url, headers=headers, json={"title": "Errada", "story_id": foreign_story["id"]})
    assert foreign.status_code == 400

    listing = client.get(stories_url, headers=headers).json()["items"]
    assert [item["title"] for item in listing] == ["Onboarding", "Faturamento", "Site"]
    assert [item["id"] for item in listing[0]["tasks"]] == [task["id"]]

    moved = client.put(
        f"{stories_url}/reorder",
        headers=headers,
        json={"story_id": second["id"], "new_status": "TODO", "new_order": 0},
    )
    assert moved.status_code == 200
    assert [item["title"] for item in moved.json()["items"]] == ["Faturamento", "Onboarding", "Site"]

    in_progress = client.put(f"{stories_url}/{first['id']}", headers=headers, json={"status": "IN_PROGRESS"})
    assert in_progress.status_code == 200
    assert (in_progress.json()["status"], in_progress.json()["order"]) == ("IN_PROGRESS", 0)
    assert [item["id"] for item in in_progress.json()["tasks"]] == [task["id"]]

    cross_project = client.put(
        f"/api/projetos-internos/{other['id']}/stories/{first['id']}",
        headers=headers,
        json={"title": "Movida"},
    )
    assert cross_project.status_code == 404

    assert client.delete(f"{stories_url}/{first['id']}", headers=headers).status_code == 204
    assert client.get(f"{tasks_url}/{task['id']}", headers=headers).json()["story_id"] is None
    assert [item["title"] for item in client.get(stories_url, headers=headers).json()["items"]] == ["Faturamento", "Site"]
