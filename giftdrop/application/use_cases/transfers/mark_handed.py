# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from giftdrop.application.use_cases.invoices.record_delivery import RecordDeliveryUseCase
from giftdrop.domain.ledger import PurchaseUnit
from giftdrop.shared.logging import logger


class MarkHandedToRecipientMessageUseCase:
    """Remember which inline message currently offers a held unit.

    One-shot: the write only lands while the unit is held and has no message
    recorded, so a repeated gateway event is a no-op.
    """

    def __init__(self, *, record_delivery: RecordDeliveryUseCase) -> None:
        self._record_delivery = record_delivery

    def execute(self, purchase_unit_id: int | str, message_handle: str | None) -> PurchaseUnit | None:
        try:
            unit_id = int(purchase_unit_id)
        except (TypeError, ValueError):
            logger.info(f"inline.handed: bad result id={purchase_unit_id!r}")
            return None
        if not message_handle:
            return None
        unit = self._record_delivery.execute(unit_id, message_handle)
        logger.info(f"inline.handed: unit_id={unit_id} recorded={unit is not None}")
        return unit
