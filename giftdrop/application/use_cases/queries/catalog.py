# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from giftdrop.domain.ledger import GiftDefinition
from giftdrop.domain.ledger.repositories import GiftRepository


class ListCatalogUseCase:
    def __init__(self, *, gifts: GiftRepository) -> None:
        self._gifts = gifts

    def execute(self) -> list[GiftDefinition]:
        return list(self._gifts.list_catalog())


__all__ = ["ListCatalogUseCase"]
