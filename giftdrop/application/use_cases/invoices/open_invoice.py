# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import UTC, datetime

from giftdrop.application.interfaces import PaymentProviderPort
from giftdrop.application.services.inventory import InventoryService
from giftdrop.domain.ledger import (
    GiftNotFoundError,
    InvoiceRef,
    NotFoundError,
    SoldOutError,
)
from giftdrop.domain.ledger.repositories import (
    ActionRepository,
    GiftRepository,
    UserRepository,
)
from giftdrop.shared.logging import logger


class OpenInvoiceUseCase:
    def __init__(
        self,
        *,
        gifts: GiftRepository,
        users: UserRepository,
        actions: ActionRepository,
        provider: PaymentProviderPort,
        inventory: InventoryService,
    ) -> None:
        self._gifts = gifts
        self._users = users
        self._actions = actions
        self._provider = provider
        self._inventory = inventory

    async def execute(self, buyer_user_id: int, gift_id: int) -> InvoiceRef:
        gift = self._gifts.get(gift_id)
        if gift is None:
            raise GiftNotFoundError(gift_id)
        if not self._inventory.has_stock(gift):
            raise SoldOutError(gift_id)
        buyer = self._users.get(buyer_user_id)
        if buyer is None:
            raise NotFoundError("user", buyer_user_id)

        # The provider is called before anything is written: a failed call
        # leaves no ledger record behind.
        invoice = await self._provider.create_invoice(
            asset=gift.settlement_asset,
            amount=gift.unit_price,
            payload=str(gift.id),
            description=gift.localized_name(buyer.locale),
        )

        action = self._actions.add_invoice(
            buyer_user_id=buyer_user_id,
            gift_id=gift.id,
            invoice_external_id=invoice.invoice_external_id,
            price=gift.unit_price,
            asset=gift.settlement_asset,
            created_at=datetime.now(UTC),
        )
        logger.info(
            f"invoice.open: ok action_id={action.id} user_id={buyer_user_id} "
            f"gift_id={gift.id} invoice={invoice.invoice_external_id}"
        )
        return InvoiceRef(
            invoice_external_id=invoice.invoice_external_id,
            payment_url=invoice.payment_url,
        )
