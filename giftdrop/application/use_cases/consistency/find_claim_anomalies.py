# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from giftdrop.domain.ledger import PurchaseUnit
from giftdrop.domain.ledger.repositories import ActionRepository
from giftdrop.shared.logging import logger


class FindClaimAnomaliesUseCase:
    """Report claimed units whose send or receive link is missing.

    Nothing is repaired automatically.
    """

    def __init__(self, *, actions: ActionRepository, limit: int = 100) -> None:
        self._actions = actions
        self._limit = limit

    def execute(self) -> list[PurchaseUnit]:
        anomalies = [unit for unit in self._actions.list_claim_anomalies(self._limit) if unit.is_anomalous]
        for unit in anomalies:
            logger.warning(
                f"consistency: unit_id={unit.id} receiver={unit.receiver_user_id} "
                f"send_id={unit.linked_send_action_id} receive_id={unit.linked_receive_action_id}"
            )
        return anomalies
