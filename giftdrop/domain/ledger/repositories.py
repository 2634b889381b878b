# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from decimal import Decimal
from typing import Protocol

from .entities import (
    ActionKind,
    GiftDefinition,
    InvoiceAction,
    LedgerAction,
    PurchaseUnit,
    ReceiveAction,
    SendAction,
    User,
    UserProfile,
)


class GiftRepository(Protocol):
    def list_catalog(self) -> Sequence[GiftDefinition]: ...
    def get(self, gift_id: int) -> GiftDefinition | None: ...
    def reserve_unit(self, gift_id: int) -> bool: ...


class UserRepository(Protocol):
    def upsert(self, profile: UserProfile) -> User: ...
    def get(self, user_id: int) -> User | None: ...
    def find_many(self, user_ids: Iterable[int]) -> Sequence[User]: ...
    def update_preferences(
        self, user_id: int, *, locale: str | None = None, theme: str | None = None
    ) -> bool: ...
    def top(self, limit: int) -> Sequence[User]: ...
    def count_ranked_above(self, gifts_received: int) -> int: ...
    def search(self, query: str, *, offset: int, limit: int) -> Sequence[User]: ...
    def get_photo(self, user_id: int) -> bytes | None: ...
    def list_avatar_candidates(
        self, checked_before: datetime, limit: int
    ) -> Sequence[tuple[int, datetime | None, str | None]]: ...
    def claim_avatar_check(
        self, user_id: int, previous: datetime | None, now: datetime
    ) -> bool: ...
    def store_avatar(
        self, user_id: int, *, file_id: str | None, photo: bytes | None
    ) -> None: ...


class ActionRepository(Protocol):
    def add_invoice(
        self,
        *,
        buyer_user_id: int,
        gift_id: int,
        invoice_external_id: str,
        price: Decimal,
        asset: str,
        created_at: datetime,
    ) -> InvoiceAction: ...

    def promote_invoice(
        self, invoice_external_id: str, claim_code: str
    ) -> PurchaseUnit | None: ...

    def get(self, action_id: int) -> LedgerAction | None: ...

    def find_by_invoice(self, invoice_external_id: str) -> LedgerAction | None: ...

    def find_unit_by_code(self, claim_code: str) -> PurchaseUnit | None: ...

    def set_delivery_ref(self, unit_id: int, message_ref: str) -> PurchaseUnit | None: ...

    def claim_receiver(self, unit_id: int, claimant_user_id: int) -> bool: ...

    def complete_transfer(
        self, unit: PurchaseUnit, claimant_user_id: int, created_at: datetime
    ) -> tuple[SendAction, ReceiveAction]: ...

    def list_deliverable_units(
        self, buyer_user_id: int, *, offset: int, limit: int
    ) -> Sequence[PurchaseUnit]: ...

    def list_by_user(
        self, user_id: int, kinds: Iterable[ActionKind], *, offset: int, limit: int
    ) -> Sequence[LedgerAction]: ...

    def list_by_gift(
        self, gift_id: int, kinds: Iterable[ActionKind], *, offset: int, limit: int
    ) -> Sequence[LedgerAction]: ...

    def list_claim_anomalies(self, limit: int) -> Sequence[PurchaseUnit]: ...
