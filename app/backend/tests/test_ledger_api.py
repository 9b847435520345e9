from __future__ import annotations

from datetime import date

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from conftest import member_headers


def _post(client: TestClient, headers: dict[str, str], **fields: object):
    body = {"description": "Lancamento", "date": "2026-03-15"}
    body.update(fields)
    return client.post("/api/financeiro", headers=headers, json=body)


def test_transaction_crud_and_filters(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    income = _post(client, headers, type="INCOME", category="CONSULTING", amount="1200.00", date="2026-03-02")
    expense = _post(client, headers, type="EXPENSE", category="OFFICE", amount="300.50", date="2026-04-10")
    assert income.status_code == 201 and expense.status_code == 201
    assert income.json()["amount"] == "1200.00"

    only_income = client.get("/api/financeiro", headers=headers, params={"type": "INCOME"}).json()["items"]
    assert [item["id"] for item in only_income] == [income.json()["id"]]

    april = client.get(
        "/api/financeiro",
        headers=headers,
        params={"start_date": "2026-04-01", "end_date": "2026-04-30"},
    ).json()["items"]
    assert [item["id"] for item in april] == [expense.json()["id"]]

    updated = client.put(
        f"/api/financeiro/{expense.json()['id']}",
        headers=headers,
        json={"amount": "320.00", "notes": " aluguel "},
    )
    assert updated.status_code == 200
    assert updated.json()["amount"] == "320.00"
    assert updated.json()["notes"] == "aluguel"
    assert updated.json()["category"] == "OFFICE"

    assert client.delete(f"/api/financeiro/{expense.json()['id']}", headers=headers).status_code == 204
    assert client.get(f"/api/financeiro/{expense.json()['id']}", headers=headers).status_code == 404


def test_transaction_validation(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)

    mismatch = _post(client, headers, type="INCOME", category="SALARIES", amount="10.00")
    assert mismatch.status_code == 400

    zero = _post(client, headers, type="EXPENSE", category="TAXES", amount="0")
    assert zero.status_code == 400

    inverted = client.get(
        "/api/financeiro",
        headers=headers,
        params={"start_date": "2026-04-30", "end_date": "2026-04-01"},
    )
    assert inverted.status_code == 400

    created = _post(client, headers, type="EXPENSE", category="TAXES", amount="50.00").json()
    flipped = client.put(f"/api/financeiro/{created['id']}", headers=headers, json={"type": "INCOME"})
    assert flipped.status_code == 400


def test_transaction_takes_client_from_project(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    customer = client.post("/api/clientes", headers=headers, json={"name": "Acme"}).json()
    other = client.post("/api/clientes", headers=headers, json={"name": "Globex"}).json()
    project = client.post(
        "/api/projetos",
        headers=headers,
        json={"client_id": customer["id"], "name": "Portal"},
    ).json()

    linked = _post(
        client,
        headers,
        type="INCOME",
        category="PROJECT_PAYMENT",
        amount="800.00",
        project_id=project["id"],
    )
    assert linked.json()["client_id"] == customer["id"]

    wrong_client = _post(
        client,
        headers,
        type="INCOME",
        category="PROJECT_PAYMENT",
        amount="800.00",
        project_id=project["id"],
        client_id=other["id"],
    )
    assert wrong_client.status_code == 400


def test_moving_transaction_to_another_project_follows_its_client(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    acme = client.post("/api/clientes", headers=headers, json={"name": "Acme"}).json()
    globex = client.post("/api/clientes", headers=headers, json={"name": "Globex"}).json()
    portal = client.post("/api/projetos", headers=headers, json={"client_id": acme["id"], "name": "Portal"}).json()
    app_project = client.post("/api/projetos", headers=headers, json={"client_id": globex["id"], "name": "App"}).json()

    created = _post(
        client,
        headers,
        type="INCOME",
        category="PROJECT_PAYMENT",
        amount="500.00",
        project_id=portal["id"],
    ).json()
    assert created["client_id"] == acme["id"]

    moved = client.put(f"/api/financeiro/{created['id']}", headers=headers, json={"project_id": app_project["id"]})
    assert moved.status_code == 200
    assert moved.json()["project_id"] == app_project["id"]
    assert moved.json()["client_id"] == globex["id"]

    by_client = client.get("/api/financeiro", headers=headers, params={"client_id": globex["id"]}).json()["items"]
    assert [item["id"] for item in by_client] == [created["id"]]

    wrong_client = client.put(
        f"/api/financeiro/{created['id']}",
        headers=headers,
        json={"project_id": portal["id"], "client_id": globex["id"]},
    )
    assert wrong_client.status_code == 400

    note_only = client.put(f"/api/financeiro/{created['id']}", headers=headers, json={"notes": "parcela 2"})
    assert note_only.json()["client_id"] == globex["id"]


def test_rejected_update_leaves_transaction_unchanged(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    created = _post(client, headers, type="EXPENSE", category="SOFTWARE", amount="75.00").json()

    rejected = client.put(
        f"/api/financeiro/{created['id']}",
        headers=headers,
        json={"type": "INCOME", "category": "LICENSE", "description": "   "},
    )
    assert rejected.status_code == 400

    current = client.get(f"/api/financeiro/{created['id']}", headers=headers).json()
    assert (current["type"], current["category"]) == ("EXPENSE", "SOFTWARE")
    assert current["description"] == "Lancamento"


def test_summary_for_month(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    _post(client, headers, type="INCOME", category="CONSULTING", amount="1000.00", date="2026-03-05")
    _post(client, headers, type="INCOME", category="LICENSE", amount="250.00", date="2026-03-20")
    _post(client, headers, type="EXPENSE", category="SOFTWARE", amount="400.00", date="2026-03-21")
    _post(client, headers, type="EXPENSE", category="SOFTWARE", amount="999.00", date="2026-02-21")

    summary = client.get("/api/financeiro/summary", headers=headers, params={"month": "2026-03"})
    assert summary.status_code == 200
    payload = summary.json()
    assert payload["period"] == {"month": "2026-03", "start_date": "2026-03-01", "end_date": "2026-03-31"}
    assert payload["totals"] == {
        "total_income": "1250.00",
        "total_expense": "400.00",
        "profit": "850.00",
        "transaction_count": 3,
    }
    assert payload["by_category"][0] == {"type": "INCOME", "category": "CONSULTING", "total": "1000.00", "count": 1}
    assert payload["monthly"][-1]["month"] == "2026-03"
    assert payload["monthly"][-2] == {"month": "2026-02", "income": "0.00", "expense": "999.00", "profit": "-999.00"}

    bad_month = client.get("/api/financeiro/summary", headers=headers, params={"month": "03/2026"})
    assert bad_month.status_code == 400


def test_dashboard_metrics(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    today = date.today()
    customer = client.post("/api/clientes", headers=headers, json={"name": "Acme"}).json()
    client.post("/api/clientes", headers=headers, json={"name": "Inativa", "status": "INACTIVE"})
    client.post(
        "/api/projetos",
        headers=headers,
        json={"client_id": customer["id"], "name": "Portal", "status": "IN_PROGRESS", "project_value": "9000"},
    )
    client.post("/api/leads", headers=headers, json={"name": "Lead quente", "status": "NEGOTIATION"})
    _post(client, headers, type="INCOME", category="CONSULTING", amount="700.00", date=today.isoformat())
    _post(client, headers, type="EXPENSE", category="MARKETING", amount="200.00", date=today.isoformat())

    response = client.get("/api/dashboard/metrics", headers=headers)

    assert response.status_code == 200
    metrics = response.json()
    assert metrics["counts"] == {
        "leads": 1,
        "clients": 2,
        "active_clients": 1,
        "projects": 1,
        "active_projects": 1,
    }
    assert metrics["financial"]["year"] == today.year
    assert metrics["financial"]["profit"] == "500.00"
    negotiation = next(item for item in metrics["leads_by_status"] if item["status"] == "NEGOTIATION")
    assert negotiation["count"] == 1
    assert metrics["monthly_revenue"][-1]["income"] == "700.00"
    assert metrics["recent_projects"][0]["client_name"] == "Acme"
    assert metrics["recent_projects"][0]["project_value"] == "9000.00"
