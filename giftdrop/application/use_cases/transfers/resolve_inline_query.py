# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from giftdrop.domain.ledger import InlineOffer, looks_like_claim_code
from giftdrop.domain.ledger.codes import DEFAULT_CLAIM_CODE_LENGTH
from giftdrop.domain.ledger.repositories import ActionRepository, GiftRepository


class ResolveInlineQueryUseCase:
    """Units a user may offer through an inline message.

    An empty query lists the first page of the user's deliverable units; a
    claim code resolves that single unit when it belongs to the user and is
    still deliverable. Anything else resolves to nothing.
    """

    def __init__(
        self,
        *,
        gifts: GiftRepository,
        actions: ActionRepository,
        page_size: int,
        claim_code_length: int = DEFAULT_CLAIM_CODE_LENGTH,
    ) -> None:
        self._gifts = gifts
        self._actions = actions
        self._page_size = page_size
        self._claim_code_length = claim_code_length

    def is_valid_query(self, query: str) -> bool:
        return not query or looks_like_claim_code(query, self._claim_code_length)

    def execute(self, user_id: int, query: str) -> list[InlineOffer]:
        query = (query or "").strip()
        if not self.is_valid_query(query):
            return []
        if query:
            unit = self._actions.find_unit_by_code(query)
            units = (
                [unit]
                if unit is not None and unit.buyer_user_id == user_id and unit.is_deliverable
                else []
            )
        else:
            units = list(
                self._actions.list_deliverable_units(user_id, offset=0, limit=self._page_size)
            )
        if not units:
            return []
        catalog = {gift.id: gift for gift in self._gifts.list_catalog()}
        return [
            InlineOffer(unit=unit, gift=catalog[unit.gift_id])
            for unit in units
            if unit.gift_id in catalog
        ]
