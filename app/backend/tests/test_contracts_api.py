from __future__ import annotations

from datetime import date, timedelta

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.services.contract_service import next_contract_number
from conftest import member_headers


def _setup_client_and_project(client: TestClient, headers: dict[str, str]) -> tuple[dict, dict]:
    customer = client.post("/api/clientes", headers=headers, json={"name": "Acme"}).json()
    project = client.post(
        "/api/projetos",
        headers=headers,
        json={"client_id": customer["id"], "name": "Portal"},
    ).json()
    return customer, project


def _contract_body(customer_id: str, **overrides: object) -> dict:
    body = {
        "title": "Desenvolvimento do portal",
        "client_id": customer_id,
        "total_value": "3000.00",
        "start_date": "2026-01-01",
        "end_date": "2026-12-31",
    }
    body.update(overrides)
    return body


def test_next_contract_number_continues_monthly_sequence() -> None:
    today = date(2026, 3, 9)

    assert next_contract_number([], today=today) == "CONT-202603-001"
    assert next_contract_number(["CONT-202603-001", "CONT-202603-007"], today=today) == "CONT-202603-008"
    assert next_contract_number(["CONT-202602-015", "CONT-202603-abc"], today=today) == "CONT-202603-001"


def test_contract_with_installments_and_summary(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    customer, project = _setup_client_and_project(client, headers)
    today = date.today()

    response = client.post(
        "/api/contratos",
        headers=headers,
        json=_contract_body(
            customer["id"],
            project_ids=[project["id"]],
            payments=[
                {"installment_number": 1, "amount": "1000.00", "due_date": "2026-01-10", "status": "PAID"},
                {"installment_number": 2, "amount": "1000.00", "due_date": (today - timedelta(days=3)).isoformat()},
                {"installment_number": 3, "amount": "1000.00", "due_date": (today + timedelta(days=30)).isoformat()},
            ],
        ),
    )
    assert response.status_code == 201, response.text
    contract = response.json()
    assert contract["contract_number"] == f"CONT-{today:%Y%m}-001"
    assert contract["project_ids"] == [project["id"]]
    assert contract["status"] == "DRAFT"

    paid, late, upcoming = contract["payments"]
    assert paid["payment_date"] == today.isoformat()
    assert late["is_overdue"] is True
    assert upcoming["is_overdue"] is False
    assert contract["payment_summary"] == {
        "total_paid": "1000.00",
        "total_pending": "1000.00",
        "total_overdue": "1000.00",
        "overdue_count": 1,
        "payment_progress": "33.33",
    }

    second = client.post("/api/contratos", headers=headers, json=_contract_body(customer["id"], title="Suporte"))
    assert second.json()["contract_number"] == f"CONT-{today:%Y%m}-002"

    assert client.delete(f"/api/clientes/{customer['id']}", headers=headers).status_code == 409
    assert client.delete(f"/api/projetos/{project['id']}", headers=headers).status_code == 409


def test_contract_validation(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    customer, _ = _setup_client_and_project(client, headers)
    other = client.post("/api/clientes", headers=headers, json={"name": "Globex"}).json()
    _, foreign_project = _setup_client_and_project(client, headers)

    duplicate_installments = client.post(
        "/api/contratos",
        headers=headers,
        json=_contract_body(
            customer["id"],
            payments=[
                {"installment_number": 1, "amount": "10.00", "due_date": "2026-02-01"},
                {"installment_number": 1, "amount": "10.00", "due_date": "2026-03-01"},
            ],
        ),
    )
    assert duplicate_installments.status_code == 400

    inverted = client.post(
        "/api/contratos",
        headers=headers,
        json=_contract_body(customer["id"], start_date="2026-12-31", end_date="2026-01-01"),
    )
    assert inverted.status_code == 400

    wrong_project = client.post(
        "/api/contratos",
        headers=headers,
        json=_contract_body(other["id"], project_ids=[foreign_project["id"]]),
    )
    assert wrong_project.status_code == 400


def test_payment_lifecycle(client: TestClient, db_session: Session) -> None:
    _, headers = member_headers(db_session)
    customer, _ = _setup_client_and_project(client, headers)
    contract = client.post("/api/contratos", headers=headers, json=_contract_body(customer["id"])).json()
    base = f"/api/contratos/{contract['id']}/payments"

    created = client.post(
        base,
        headers=headers,
        json={"installment_number": 1, "amount": "1500.00", "due_date": "2026-05-10"},
    )
    assert created.status_code == 201
    payment = created.json()
    assert payment["status"] == "PENDING"

    duplicate = client.post(
        base,
        headers=headers,
        json={"installment_number": 1, "amount": "1500.00", "due_date": "2026-06-10"},
    )
    assert duplicate.status_code == 409

    paid = client.put(
        f"{base}/{payment['id']}",
        headers=headers,
        json={"status": "PAID", "payment_method": "PIX"},
    )
    assert paid.status_code == 200
    assert paid.json()["payment_date"] == date.today().isoformat()
    assert paid.json()["payment_method"] == "PIX"

    detail = client.get(f"/api/contratos/{contract['id']}", headers=headers).json()
    assert detail["payment_summary"]["total_paid"] == "1500.00"
    assert detail["payment_summary"]["payment_progress"] == "50.00"

    assert client.delete(f"{base}/{payment['id']}", headers=headers).status_code == 204
    assert client.get(base, headers=headers).json()["items"] == []

    assert client.delete(f"/api/contratos/{contract['id']}", headers=headers).status_code == 204
    assert client.get(f"/api/contratos/{contract['id']}", headers=headers).status_code == 404
