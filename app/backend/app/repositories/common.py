"""Shared helpers for association tables (members/teams linked to a record)."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.orm import Session


def list_link_ids(db: Session, model: type[Any], owner_field: str, owner_id: UUID, target_field: str) -> list[UUID]:
    owner_column = getattr(model, owner_field)
    target_column = getattr(model, target_field)
    return list(db.scalars(select(target_column).where(owner_column == owner_id).order_by(model.id.asc())).all())


def link_ids_by_owner(
    db: Session,
    model: type[Any],
    owner_field: str,
    owner_ids: Iterable[UUID],
    target_field: str,
) -> dict[UUID, list[UUID]]:
    """Batch variant of ``list_link_ids`` used by list endpoints."""

    ids = list(owner_ids)
    grouped: dict[UUID, list[UUID]] = defaultdict(list)
    if not ids:
        return grouped

    owner_column = getattr(model, owner_field)
    target_column = getattr(model, target_field)
    rows = db.execute(select(owner_column, target_column).where(owner_column.in_(ids))).all()
    for owner_id, target_id in rows:
        grouped[owner_id].append(target_id)
    return grouped


def replace_links(
    db: Session,
    model: type[Any],
    owner_field: str,
    owner_id: UUID,
    target_field: str,
    target_ids: Iterable[UUID],
) -> None:
    """Replace all association rows of one owner with ``target_ids`` (duplicates dropped)."""

    owner_column = getattr(model, owner_field)
    db.execute(delete(model).where(owner_column == owner_id))
    for target_id in dict.fromkeys(target_ids):
        db.add(model(**{owner_field: owner_id, target_field: target_id}))
    db.flush()


def delete_links(db: Session, model: type[Any], field: str, value: UUID) -> None:
    db.execute(delete(model).where(getattr(model, field) == value))
    db.flush()
