# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from giftdrop.domain.ledger import PurchaseUnit
from giftdrop.domain.ledger.repositories import ActionRepository
from giftdrop.shared.logging import logger


class RecordDeliveryUseCase:
    """Stamp the gateway message handle on a held, undelivered unit."""

    def __init__(self, *, actions: ActionRepository) -> None:
        self._actions = actions

    def execute(self, unit_id: int, delivery_message_ref: str) -> PurchaseUnit | None:
        if not delivery_message_ref:
            return None
        unit = self._actions.set_delivery_ref(unit_id, delivery_message_ref)
        if unit is None:
            logger.info(f"delivery.record: skipped unit_id={unit_id}")
        else:
            logger.info(f"delivery.record: ok unit_id={unit_id}")
        return unit
