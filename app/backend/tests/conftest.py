from __future__ import annotations

from collections.abc import Generator
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.security import create_access_token, hash_password
from app.db.base import Base
from app.db.dependencies import get_db_session
import app.models.entities  # noqa: F401
from app.main import create_app
from app.models.entities import Member, MemberRole, MemberStatus, User

DEFAULT_PASSWORD = "secret123"


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_db() -> Generator[Session, None, None]:
        try:
            yield db_session
        except Exception:
            db_session.rollback()
            raise

    app.dependency_overrides[get_db_session] = override_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def create_member(
    db: Session,
    *,
    name: str = "Ana Souza",
    email: str = "ana@huntly.test",
    role: MemberRole = MemberRole.DEVELOPER,
    extra_roles: tuple[MemberRole, ...] = (),
    status: MemberStatus = MemberStatus.ACTIVE,
) -> Member:
    now = datetime.utcnow()
    roles = [role.value] + [extra.value for extra in extra_roles if extra != role]
    member = Member(
        name=name,
        email=email,
        role=role,
        roles=roles,
        status=status,
        created_at=now,
        updated_at=now,
    )
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


def create_user(
    db: Session,
    *,
    email: str = "ana@huntly.test",
    password: str = DEFAULT_PASSWORD,
    member: Member | None = None,
) -> User:
    now = datetime.utcnow()
    user = User(
        email=email,
        password_hash=hash_password(password),
        member_id=member.id if member is not None else None,
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token({"sub": str(user.id), "email": user.email})
    return {"Authorization": f"Bearer {token}"}


def member_headers(
    db: Session,
    *,
    name: str = "Ana Souza",
    email: str = "ana@huntly.test",
    role: MemberRole = MemberRole.DEVELOPER,
) -> tuple[Member, dict[str, str]]:
    member = create_member(db, name=name, email=email, role=role)
    user = create_user(db, email=email, member=member)
    return member, auth_headers(user)


def admin_headers(db: Session, *, email: str = "ceo@huntly.test") -> tuple[Member, dict[str, str]]:
    return member_headers(db, name="Carla CEO", email=email, role=MemberRole.CEO)
