from __future__ import annotations

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from conftest import member_headers


def _create_project(client: TestClient, headers: dict[str, str], **overrides: object) -> dict:
    customer = client.post("/api/clientes", headers=headers, json={"name": "Acme Ltda"})
    assert customer.status_code == 201
    body = {"client_id": customer.json()["id"], "name": "Portal do Cliente"}
    body.update(overrides)
    response = client.post("/api/projetos", headers=headers, json=body)
    assert response.status_code == 201, response.text
    return response.json()


def _create_task(client: TestClient, headers: dict[str, str], project_id: str, title: str, **extra: object) -> dict:
    response = client.post(
        f"/api/projetos/{project_id}/tasks",
        headers=headers,
        json={"title": title, **extra},
    )
    assert response.status_code == 201, response.text
    return response.json()


def _titles(items: list[dict], status: str) -> list[str]:
    return [item["title"] for item in items if item["status"] == status]


def test_project_financials_follow_hours_and_ledger(client: TestClient, db_session: Session) -> None:
    member, headers = member_headers(db_session)
    project = _create_project(
        client,
        headers,
        billing_type="HOURLY_RATE",
        hourly_rate="150.00",
        member_ids=[str(member.id)],
    )
    assert project["member_ids"] == [str(member.id)]
    assert project["financials"]["calculated_value"] == "0.00"

    _create_task(client, headers, project["id"], "API", actual_hours="10", estimated_hours="12")
    for body in (
        {"type": "INCOME", "category": "PROJECT_PAYMENT", "amount": "500.00"},
        {"type": "EXPENSE", "category": "INFRASTRUCTURE", "amount": "200.00"},
    ):
        created = client.post(
            "/api/financeiro",
            headers=headers,
            json={**body, "description": "Movimento", "date": "2026-03-10", "project_id": project["id"]},
        )
        assert created.status_code == 201, created.text

    detail = client.get(f"/api/projetos/{project['id']}", headers=headers).json()
    financials = detail["financials"]
    assert financials["total_hours_worked"] == "10.00"
    assert financials["calculated_value"] == "1500.00"
    assert financials["effective_hourly_rate"] == "150.00"
    assert financials["total_received"] == "500.00"
    assert financials["total_cost"] == "200.00"
    assert financials["profit"] == "300.00"
    assert financials["remaining_value"] == "1000.00"
    assert detail["task_counts"]["TODO"] == 1

    blocked = client.delete(f"/api/projetos/{project['id']}", headers=headers)
    assert blocked.status_code == 409


def test_project_filters_and_validation(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    project = _create_project(client, headers, status="IN_PROGRESS")

    in_progress = client.get("/api/projetos", headers=headers, params={"status": "IN_PROGRESS"})
    assert [item["id"] for item in in_progress.json()["items"]] == [project["id"]]
    planning = client.get("/api/projetos", headers=headers, params={"status": "PLANNING"})
    assert planning.json()["items"] == []

    bad_dates = client.put(
        f"/api/projetos/{project['id']}",
        headers=headers,
        json={"start_date": "2026-06-01", "end_date": "2026-05-01"},
    )
    assert bad_dates.status_code == 400

    unknown_client = client.post(
        "/api/projetos",
        headers=headers,
        json={"client_id": "00000000-0000-0000-0000-000000000001", "name": "Orfao"},
    )
    assert unknown_client.status_code == 404


def test_task_board_reorder(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    project = _create_project(client, headers)
    tasks = {title: _create_task(client, headers, project["id"], title) for title in ("A", "B", "C")}
    assert [tasks[title]["order"] for title in ("A", "B", "C")] == [0, 1, 2]

    moved = client.put(
        f"/api/projetos/{project['id']}/tasks/reorder",
        headers=headers,
        json={"task_id": tasks["C"]["id"], "new_status": "TODO", "new_order": 0},
    )
    assert moved.status_code == 200
    assert _titles(moved.json()["items"], "TODO") == ["C", "A", "B"]

    done = client.put(
        f"/api/projetos/{project['id']}/tasks/reorder",
        headers=headers,
        json={"task_id": tasks["A"]["id"], "new_status": "DONE", "new_order": 5},
    )
    items = done.json()["items"]
    assert _titles(items, "TODO") == ["C", "B"]
    assert [item["order"] for item in items if item["status"] == "TODO"] == [0, 1]
    moved_a = next(item for item in items if item["title"] == "A")
    assert moved_a["status"] == "DONE"
    assert moved_a["order"] == 0
    assert moved_a["completed_at"] is not None

    reopened = client.put(
        f"/api/projetos/{project['id']}/tasks/reorder",
        headers=headers,
        json={"task_id": tasks["A"]["id"], "new_status": "IN_PROGRESS", "new_order": 0},
    )
    reopened_a = next(item for item in reopened.json()["items"] if item["title"] == "A")
    assert reopened_a["completed_at"] is None


def test_task_reorder_unknown_task_is_not_found(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    project = _create_project(client, headers)

    response = client.put(
        f"/api/projetos/{project['id']}/tasks/reorder",
        headers=headers,
        json={"task_id": "00000000-0000-0000-0000-000000000001", "new_status": "TODO", "new_order": 0},
    )

    assert response.status_code == 404


def test_task_status_update_appends_and_delete_compacts(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    project = _create_project(client, headers)
    first = _create_task(client, headers, project["id"], "Primeira")
    second = _create_task(client, headers, project["id"], "Segunda")
    _create_task(client, headers, project["id"], "Revisao", status="IN_REVIEW")

    updated = client.put(
        f"/api/projetos/{project['id']}/tasks/{first['id']}",
        headers=headers,
        json={"status": "IN_REVIEW", "tags": ["api", "api"]},
    )
    assert updated.status_code == 200
    assert updated.json()["order"] == 1
    assert updated.json()["tags"] == ["api"]

    remaining = client.get(f"/api/projetos/{project['id']}/tasks/{second['id']}", headers=headers)
    assert remaining.json()["order"] == 0

    deleted = client.delete(f"/api/projetos/{project['id']}/tasks/{second['id']}", headers=headers)
    assert deleted.status_code == 204
    board = client.get(f"/api/projetos/{project['id']}/tasks", headers=headers).json()["items"]
    assert _titles(board, "IN_REVIEW") == ["Revisao", "Primeira"]
    assert _titles(board, "TODO") == []


def test_task_without_title_is_rejected(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    project = _create_project(client, headers)

    response = client.post(f"/api/projetos/{project['id']}/tasks", headers=headers, json={"priority": "HIGH"})

    assert response.status_code == 400


def test_epics_and_story_board(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    project = _create_project(client, headers)
    other = _create_project(client, headers, name="Outro")

    epic = client.post(
        f"/api/projetos/{project['id']}/epics",
        headers=headers,
        json={"title": "Onboarding", "priority": "HIGH"},
    )
    assert epic.status_code == 201
    epic_id = epic.json()["id"]

    foreign_epic = client.post(
        f"/api/projetos/{other['id']}/stories",
        headers=headers,
        json={"title": "Cadastro", "epic_id": epic_id},
    )
    assert foreign_epic.status_code == 400

    story_a = client.post(
        f"/api/projetos/{project['id']}/stories",
        headers=headers,
        json={"title": "Cadastro", "epic_id": epic_id, "points": 3},
    ).json()
    story_b = client.post(
        f"/api/projetos/{project['id']}/stories",
        headers=headers,
        json={"title": "Login", "points": 5},
    ).json()
    assert (story_a["order"], story_b["order"]) == (0, 1)

    reordered = client.put(
        f"/api/projetos/{project['id']}/stories/reorder",
        headers=headers,
        json={"story_id": story_b["id"], "new_status": "TODO", "new_order": 0},
    )
    assert [item["title"] for item in reordered.json()["items"]] == ["Login", "Cadastro"]

    task = _create_task(client, headers, project["id"], "Tela de cadastro", story_id=story_a["id"])
    assert task["story_id"] == story_a["id"]

    assert client.delete(f"/api/stories/{story_a['id']}", headers=headers).status_code == 204
    detached = client.get(f"/api/projetos/{project['id']}/tasks/{task['id']}", headers=headers).json()
    assert detached["story_id"] is None

    stories = client.get(f"/api/projetos/{project['id']}/stories", headers=headers).json()["items"]
    assert [(item["title"], item["order"]) for item in stories] == [("Login", 0)]

    epics = client.get(f"/api/projetos/{project['id']}/epics", headers=headers).json()["items"]
    assert [item["title"] for item in epics] == ["Onboarding"]
    assert client.delete(f"/api/projetos/{project['id']}/epics/{epic_id}", headers=headers).status_code == 204
