from __future__ import annotations

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from conftest import admin_headers, auth_headers, create_user, member_headers


def _create_suggestion(client: TestClient, headers: dict[str, str], **overrides: object) -> dict:
    body = {"title": "Daily assincrona", "description": "Trocar a daily por updates escritos.", "category": "PROCESSOS"}
    body.update(overrides)
    response = client.post("/api/sugestoes", headers=headers, json=body)
    assert response.status_code == 201, response.text
    return response.json()


def test_suggestions_require_linked_member(client: TestClient, db_session: Session) -> None:
    user = create_user(db_session, email="solo@huntly.test")

    response = client.get("/api/sugestoes", headers=auth_headers(user))

    assert response.status_code == 403


def test_votes_toggle_per_member(client: TestClient, db_session: Session) -> None:
    author, author_auth = member_headers(db_session)
    _, voter_auth = member_headers(db_session, name="Bruno Dev", email="bruno@huntly.test")
    suggestion = _create_suggestion(client, author_auth)
    assert suggestion["status"] == "ABERTA"
    assert suggestion["author"]["id"] == str(author.id)
    vote_url = f"/api/sugestoes/{suggestion['id']}/votos"

    assert client.post(vote_url, headers=voter_auth).json() == {"voted": True, "vote_count": 1}
    assert client.post(vote_url, headers=author_auth).json() == {"voted": True, "vote_count": 2}

    seen_by_voter = client.get(f"/api/sugestoes/{suggestion['id']}", headers=voter_auth).json()
    assert seen_by_voter["vote_count"] == 2
    assert seen_by_voter["has_voted"] is True

    assert client.post(vote_url, headers=voter_auth).json() == {"voted": False, "vote_count": 1}
    listing = client.get("/api/sugestoes", headers=voter_auth).json()["items"]
    assert listing[0]["has_voted"] is False


def test_comments(client: TestClient, db_session: Session) -> None:
    _, author_auth = member_headers(db_session)
    commenter, commenter_auth = member_headers(db_session, name="Bruno Dev", email="bruno@huntly.test")
    suggestion = _create_suggestion(client, author_auth)
    comments_url = f"/api/sugestoes/{suggestion['id']}/comentarios"

    created = client.post(comments_url, headers=commenter_auth, json={"content": "  Apoio a ideia.  "})
    assert created.status_code == 201
    assert created.json()["content"] == "Apoio a ideia."
    assert created.json()["author"]["name"] == commenter.name

    blank = client.post(comments_url, headers=commenter_auth, json={"content": "   "})
    assert blank.status_code == 400

    listed = client.get(comments_url, headers=author_auth).json()["items"]
    assert [item["content"] for item in listed] == ["Apoio a ideia."]
    detail = client.get(f"/api/sugestoes/{suggestion['id']}", headers=author_auth).json()
    assert detail["comment_count"] == 1
    assert len(detail["comments"]) == 1

    blocked = client.delete(f"/api/membros/{commenter.id}", headers=admin_headers(db_session)[1])
    assert blocked.status_code == 409


def test_author_edits_and_admin_moves_status(client: TestClient, db_session: Session) -> None:
    _, author_auth = member_headers(db_session)
    _, other_auth = member_headers(db_session, name="Bruno Dev", email="bruno@huntly.test")
    _, admin_auth = admin_headers(db_session)
    suggestion = _create_suggestion(client, author_auth)
    url = f"/api/sugestoes/{suggestion['id']}"

    assert client.put(url, headers=other_auth, json={"title": "Outro titulo"}).status_code == 403
    assert client.put(url, headers=author_auth, json={"status": "APROVADA"}).status_code == 403

    edited = client.put(url, headers=author_auth, json={"title": "Daily escrita", "category": "EQUIPE"})
    assert edited.status_code == 200
    assert edited.json()["title"] == "Daily escrita"
    assert edited.json()["category"] == "EQUIPE"

    moved = client.put(url, headers=admin_auth, json={"status": "EM_ANALISE"})
    assert moved.json()["status"] == "EM_ANALISE"

    filtered = client.get("/api/sugestoes", headers=other_auth, params={"status": "EM_ANALISE"}).json()["items"]
    assert [item["id"] for item in filtered] == [suggestion["id"]]
    assert client.get("/api/sugestoes", headers=other_auth, params={"category": "FINANCEIRO"}).json()["items"] == []

    assert client.delete(url, headers=admin_auth).status_code == 403
    assert client.delete(url, headers=author_auth).status_code == 204
    assert client.get(url, headers=author_auth).status_code == 404
