# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from giftdrop.domain.ledger import InlineOffer, NotificationIntent


@dataclass(slots=True, frozen=True)
class ProviderInvoice:
    invoice_external_id: str
    payment_url: str


@dataclass(slots=True, frozen=True)
class AvatarSnapshot:
    file_id: str | None
    photo: bytes | None = None


class PaymentProviderPort(Protocol):
    async def create_invoice(
        self, *, asset: str, amount: Decimal, payload: str, description: str
    ) -> ProviderInvoice: ...


class MessagingGatewayPort(Protocol):
    async def deliver(self, intent: NotificationIntent) -> None: ...

    async def answer_inline_query(
        self, query_id: str, offers: Sequence[InlineOffer], *, locale: str
    ) -> None: ...

    async def send_welcome(self, chat_id: int, *, locale: str) -> None: ...

    async def fetch_avatar(self, user_id: int, known_file_id: str | None) -> AvatarSnapshot | None: ...
