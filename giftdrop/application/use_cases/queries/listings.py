# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Paginated, newest-first projections over the ledger."""

from __future__ import annotations

from collections.abc import Sequence

from giftdrop.domain.ledger import (
    ActionKind,
    ActionView,
    GiftNotFoundError,
    LedgerAction,
    PurchaseUnit,
)
from giftdrop.domain.ledger.entities import action_author_id, action_counterpart_ids
from giftdrop.domain.ledger.repositories import (
    ActionRepository,
    GiftRepository,
    UserRepository,
)

ACTIVITY_KINDS: tuple[ActionKind, ...] = (
    ActionKind.INVOICE,
    ActionKind.PURCHASE,
    ActionKind.SEND,
    ActionKind.RECEIVE,
)
GIFT_HISTORY_KINDS: tuple[ActionKind, ...] = (ActionKind.PURCHASE, ActionKind.SEND)


def join_users(actions: Sequence[LedgerAction], users: UserRepository) -> list[ActionView]:
    """Attach author, sender and receiver with a single batch lookup."""

    if not actions:
        return []
    ids: set[int] = set()
    for action in actions:
        ids.add(action_author_id(action))
        ids.update(i for i in action_counterpart_ids(action) if i is not None)
    by_id = {user.id: user for user in users.find_many(ids)}

    views = []
    for action in actions:
        sender_id, receiver_id = action_counterpart_ids(action)
        views.append(
            ActionView(
                action=action,
                user=by_id.get(action_author_id(action)),
                sender=by_id.get(sender_id) if sender_id is not None else None,
                receiver=by_id.get(receiver_id) if receiver_id is not None else None,
            )
        )
    return views


class _PagedQuery:
    def __init__(self, *, actions: ActionRepository, users: UserRepository, page_size: int) -> None:
        self._actions = actions
        self._users = users
        self._page_size = page_size

    @staticmethod
    def _offset(offset: int | None) -> int:
        return max(int(offset or 0), 0)


class ListInventoryUseCase(_PagedQuery):
    """Units a buyer still holds and has not handed to any message yet."""

    def execute(self, user_id: int, offset: int | None = 0) -> list[PurchaseUnit]:
        return list(
            self._actions.list_deliverable_units(
                user_id, offset=self._offset(offset), limit=self._page_size
            )
        )


class ListReceivedGiftsUseCase(_PagedQuery):
    def execute(self, user_id: int, offset: int | None = 0) -> list[ActionView]:
        rows = self._actions.list_by_user(
            user_id, (ActionKind.RECEIVE,), offset=self._offset(offset), limit=self._page_size
        )
        return join_users(rows, self._users)


class ListActivityUseCase(_PagedQuery):
    def execute(self, user_id: int, offset: int | None = 0) -> list[ActionView]:
        rows = self._actions.list_by_user(
            user_id, ACTIVITY_KINDS, offset=self._offset(offset), limit=self._page_size
        )
        return join_users(rows, self._users)


class ListGiftHistoryUseCase(_PagedQuery):
    def __init__(
        self,
        *,
        gifts: GiftRepository,
        actions: ActionRepository,
        users: UserRepository,
        page_size: int,
    ) -> None:
        super().__init__(actions=actions, users=users, page_size=page_size)
        self._gifts = gifts

    def execute(self, gift_id: int, offset: int | None = 0) -> list[ActionView]:
        if self._gifts.get(gift_id) is None:
            raise GiftNotFoundError(gift_id)
        rows = self._actions.list_by_gift(
            gift_id, GIFT_HISTORY_KINDS, offset=self._offset(offset), limit=self._page_size
        )
        return join_users(rows, self._users)


__all__ = [
    "ListActivityUseCase",
    "ListGiftHistoryUseCase",
    "ListInventoryUseCase",
    "ListReceivedGiftsUseCase",
    "join_users",
]
