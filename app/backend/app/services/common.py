"""Helpers shared by the service layer."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TypeVar

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

T = TypeVar("T")

Q2 = Decimal("0.01")


def money(value: Decimal | None) -> str | None:
    if value is None:
        return None
    return str(Decimal(value).quantize(Q2))


def iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def ids(values: list) -> list[str]:
    return [str(value) for value in values]


def clean_text(value: str | None) -> str | None:
    """Strip text input; blank strings become ``None``."""

    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def ensure_found(row: T | None, detail: str) -> T:
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    return row


def bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def conflict(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)


def ensure_date_range(start: date | datetime | None, end: date | datetime | None, *, label: str = "end_date") -> None:
    if start is not None and end is not None and end < start:
        raise bad_request(f"{label} must not be before the start.")


def commit_or_conflict(db: Session, detail: str) -> None:
    """Commit the unit of work, mapping constraint violations to 409."""

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise conflict(detail) from exc
