# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from giftdrop.application.services.inventory import InventoryService
from giftdrop.domain.ledger import (
    ConfirmedPurchase,
    NotificationEvent,
    NotificationIntent,
    new_claim_code,
)
from giftdrop.domain.ledger.codes import DEFAULT_CLAIM_CODE_LENGTH
from giftdrop.domain.ledger.entities import DEFAULT_LOCALE
from giftdrop.domain.ledger.repositories import ActionRepository, UserRepository
from giftdrop.shared.logging import logger


class ConfirmPaymentUseCase:
    """Promote a paid invoice to a purchased unit.

    Payment providers redeliver callbacks, so an unknown or already promoted
    invoice id is absorbed and reported as ``None``.
    """

    def __init__(
        self,
        *,
        actions: ActionRepository,
        users: UserRepository,
        inventory: InventoryService,
        claim_code_length: int = DEFAULT_CLAIM_CODE_LENGTH,
    ) -> None:
        self._actions = actions
        self._users = users
        self._inventory = inventory
        self._claim_code_length = claim_code_length

    def execute(self, invoice_external_id: str) -> ConfirmedPurchase | None:
        unit = self._actions.promote_invoice(
            invoice_external_id, new_claim_code(self._claim_code_length)
        )
        if unit is None:
            logger.info(f"invoice.confirm: ignored invoice={invoice_external_id}")
            return None

        reserved = self._inventory.reserve_unit(unit.gift_id)
        if not reserved:
            # Payment is already taken; the unit stays valid and the oversell
            # is left for an operator to settle.
            logger.warning(
                f"invoice.confirm: oversold gift_id={unit.gift_id} unit_id={unit.id} "
                f"invoice={invoice_external_id}"
            )

        buyer = self._users.get(unit.buyer_user_id)
        intent = NotificationIntent(
            user_id=unit.buyer_user_id,
            event=NotificationEvent.PURCHASE_CONFIRMED,
            locale=buyer.locale if buyer else DEFAULT_LOCALE,
            payload={
                "unit_id": unit.id,
                "gift_id": unit.gift_id,
                "claim_code": unit.claim_code,
                "invoice_external_id": invoice_external_id,
            },
        )
        logger.info(
            f"invoice.confirm: ok unit_id={unit.id} user_id={unit.buyer_user_id} "
            f"gift_id={unit.gift_id} reserved={reserved}"
        )
        return ConfirmedPurchase(unit=unit, reserved=reserved, notifications=(intent,))
