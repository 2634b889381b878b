# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from giftdrop.domain.ledger import GiftDefinition
from giftdrop.domain.ledger.repositories import GiftRepository
from giftdrop.shared.logging import logger


class InventoryService:
    """Sold-count bookkeeping against a gift's total supply.

    Units are never returned to inventory, so there is no release path.
    """

    def __init__(self, gifts: GiftRepository) -> None:
        self._gifts = gifts

    def reserve_unit(self, gift_id: int) -> bool:
        reserved = self._gifts.reserve_unit(gift_id)
        if reserved:
            logger.debug(f"inventory.reserve: ok gift_id={gift_id}")
        else:
            logger.info(f"inventory.reserve: sold out gift_id={gift_id}")
        return reserved

    @staticmethod
    def has_stock(gift: GiftDefinition) -> bool:
        # Advisory only: the authoritative check is the conditional increment.
        return not gift.sold_out


__all__ = ["InventoryService"]
