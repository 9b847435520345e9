from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import pytest

from app.models.entities import WorkStatus
from app.services import board_ordering

BASE_TIME = datetime(2026, 1, 1, 9, 0, 0)


@dataclass
class Card:
    status: WorkStatus
    order: int
    created_at: datetime = BASE_TIME
    completed_at: datetime | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)


def _column(cards: list[Card], status: WorkStatus) -> list[uuid.UUID]:
    return [card.id for card in board_ordering.column_cards(cards, status)]


def test_append_position_is_after_last_card_of_column() -> None:
    cards = [Card(WorkStatus.TODO, 0), Card(WorkStatus.TODO, 4), Card(WorkStatus.DONE, 9)]

    assert board_ordering.append_position(cards, WorkStatus.TODO) == 5
    assert board_ordering.append_position(cards, WorkStatus.IN_REVIEW) == 0


def test_column_cards_break_order_ties_by_creation_time() -> None:
    late = Card(WorkStatus.TODO, 0, created_at=BASE_TIME + timedelta(minutes=5))
    early = Card(WorkStatus.TODO, 0, created_at=BASE_TIME)

    assert _column([late, early], WorkStatus.TODO) == [early.id, late.id]


def test_sort_board_orders_columns_left_to_right() -> None:
    done = Card(WorkStatus.DONE, 0)
    review = Card(WorkStatus.IN_REVIEW, 0)
    todo_second = Card(WorkStatus.TODO, 1)
    todo_first = Card(WorkStatus.TODO, 0)

    ordered = board_ordering.sort_board([done, review, todo_second, todo_first])

    assert [card.id for card in ordered] == [todo_first.id, todo_second.id, review.id, done.id]


def test_move_within_column_renumbers_densely() -> None:
    a, b, c = Card(WorkStatus.TODO, 0), Card(WorkStatus.TODO, 1), Card(WorkStatus.TODO, 2)
    cards = [a, b, c]

    changed = board_ordering.move_card(cards, c.id, WorkStatus.TODO, 0)

    assert _column(cards, WorkStatus.TODO) == [c.id, a.id, b.id]
    assert [a.order, b.order, c.order] == [1, 2, 0]
    assert {card.id for card in changed} == {a.id, b.id, c.id}


def test_move_across_columns_compacts_source_and_stamps_completion() -> None:
    a, b, c = Card(WorkStatus.IN_PROGRESS, 0), Card(WorkStatus.IN_PROGRESS, 1), Card(WorkStatus.IN_PROGRESS, 2)
    done = Card(WorkStatus.DONE, 0, completed_at=BASE_TIME)
    cards = [a, b, c, done]
    now = BASE_TIME + timedelta(days=1)

    board_ordering.move_card(cards, a.id, WorkStatus.DONE, 0, now=now)

    assert a.status == WorkStatus.DONE
    assert a.completed_at == now
    assert _column(cards, WorkStatus.DONE) == [a.id, done.id]
    assert done.order == 1
    assert _column(cards, WorkStatus.IN_PROGRESS) == [b.id, c.id]
    assert [b.order, c.order] == [0, 1]


def test_leaving_done_clears_completion_and_staying_keeps_it() -> None:
    first = Card(WorkStatus.DONE, 0, completed_at=BASE_TIME)
    second = Card(WorkStatus.DONE, 1, completed_at=BASE_TIME)
    cards = [first, second]

    board_ordering.move_card(cards, second.id, WorkStatus.DONE, 0, now=BASE_TIME + timedelta(days=3))
    assert second.completed_at == BASE_TIME

    board_ordering.move_card(cards, first.id, WorkStatus.TODO, 0)
    assert first.completed_at is None
    assert first.status == WorkStatus.TODO


def test_new_order_is_clamped_to_target_column() -> None:
    todo = Card(WorkStatus.TODO, 0)
    review = Card(WorkStatus.IN_REVIEW, 0)
    cards = [todo, review]

    board_ordering.move_card(cards, todo.id, WorkStatus.IN_REVIEW, 99)

    assert _column(cards, WorkStatus.IN_REVIEW) == [review.id, todo.id]
    assert todo.order == 1

    board_ordering.move_card(cards, todo.id, WorkStatus.IN_REVIEW, -5)
    assert todo.order == 0
    assert review.order == 1


def test_move_unknown_card_raises() -> None:
    with pytest.raises(board_ordering.CardNotFoundError):
        board_ordering.move_card([Card(WorkStatus.TODO, 0)], uuid.uuid4(), WorkStatus.DONE, 0)


def test_compact_closes_gaps_after_removal() -> None:
    a, b = Card(WorkStatus.TODO, 0), Card(WorkStatus.TODO, 3)

    changed = board_ordering.compact([a, b], WorkStatus.TODO)

    assert [a.order, b.order] == [0, 1]
    assert [card.id for card in changed] == [b.id]
