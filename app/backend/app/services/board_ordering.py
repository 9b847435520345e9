"""Kanban column ordering shared by project tasks, stories and internal tasks.

Cards are ORM rows (or any object) exposing ``id``, ``status``, ``order``,
``created_at`` and ``completed_at``. Functions mutate the cards in place and
return the ones whose position changed so callers can flush only those.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from app.models.entities import WorkStatus

COLUMN_ORDER: tuple[WorkStatus, ...] = (
    WorkStatus.TODO,
    WorkStatus.IN_PROGRESS,
    WorkStatus.IN_REVIEW,
    WorkStatus.DONE,
)
_COLUMN_RANK = {column: rank for rank, column in enumerate(COLUMN_ORDER)}


class BoardCard(Protocol):
    id: Any
    status: WorkStatus
    order: int
    created_at: datetime | None
    completed_at: datetime | None


class CardNotFoundError(LookupError):
    """Raised when the moved card is not part of the board."""


def _position_key(card: BoardCard) -> tuple[int, datetime]:
    return card.order, card.created_at or datetime.min


def column_cards(cards: Iterable[BoardCard], status: WorkStatus) -> list[BoardCard]:
    """Cards of one column ordered by position, ties broken by creation time."""

    return sorted((card for card in cards if card.status == status), key=_position_key)


def board_sort_key(card: BoardCard) -> tuple[int, int, datetime]:
    return _COLUMN_RANK[card.status], card.order, card.created_at or datetime.min


def sort_board(cards: Iterable[BoardCard]) -> list[BoardCard]:
    """Whole board ordered by column (TODO first) and then position."""

    return sorted(cards, key=board_sort_key)


def _renumber(column: Sequence[BoardCard], changed: dict[int, BoardCard]) -> None:
    for index, card in enumerate(column):
        if card.order != index:
            card.order = index
            changed[id(card)] = card


def append_position(cards: Iterable[BoardCard], status: WorkStatus) -> int:
    """Order value that places a new card at the end of ``status``."""

    orders = [card.order for card in cards if card.status == status]
    return max(orders) + 1 if orders else 0


def compact(cards: Iterable[BoardCard], status: WorkStatus) -> list[BoardCard]:
    """Renumber one column densely (0..n-1), e.g. after a card was removed."""

    changed: dict[int, BoardCard] = {}
    _renumber(column_cards(cards, status), changed)
    return list(changed.values())


def move_card(
    cards: Sequence[BoardCard],
    card_id: UUID,
    new_status: WorkStatus,
    new_order: int,
    *,
    now: datetime | None = None,
) -> list[BoardCard]:
    """Move ``card_id`` into ``new_status`` at index ``new_order``.

    The index is clamped to the target column. The target column, and the
    source column when the status changes, are renumbered densely.
    ``completed_at`` is stamped on entering DONE, cleared on leaving it and
    kept while the card stays in DONE.
    """

    card = next((item for item in cards if item.id == card_id), None)
    if card is None:
        raise CardNotFoundError(f"Card {card_id} is not on this board.")

    source_status = card.status
    others = [item for item in cards if item is not card]
    target = column_cards(others, new_status)
    position = min(max(new_order, 0), len(target))
    target.insert(position, card)

    changed: dict[int, BoardCard] = {}
    if source_status != new_status:
        card.status = new_status
        changed[id(card)] = card

    if new_status == WorkStatus.DONE:
        if source_status != WorkStatus.DONE or card.completed_at is None:
            card.completed_at = now or datetime.utcnow()
            changed[id(card)] = card
    elif card.completed_at is not None:
        card.completed_at = None
        changed[id(card)] = card

    _renumber(target, changed)
    if source_status != new_status:
        _renumber(column_cards(others, source_status), changed)
    return list(changed.values())
