# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Transfer of a purchased unit to exactly one claimant."""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime

from giftdrop.domain.ledger import (
    ClaimAccepted,
    ClaimError,
    ClaimRejected,
    ClaimResult,
    NotificationEvent,
    NotificationIntent,
    PurchaseUnit,
    ReceiveAction,
    SendAction,
)
from giftdrop.domain.ledger.entities import DEFAULT_LOCALE
from giftdrop.domain.ledger.repositories import ActionRepository, UserRepository
from giftdrop.shared.logging import logger


class ClaimUnitUseCase:
    """Move a unit from held to claimed.

    The checks done on the first read are advisory. The single conditional
    write on ``receiver_user_id`` decides the winner; every other concurrent
    attempt observes ``GiftAlreadyReceived``. Precondition failures come back
    as :class:`ClaimRejected` values rather than exceptions.
    """

    def __init__(self, *, actions: ActionRepository, users: UserRepository) -> None:
        self._actions = actions
        self._users = users

    def execute(self, claim_code: str, claimant_user_id: int) -> ClaimResult:
        unit = self._actions.find_unit_by_code(claim_code)
        if unit is None:
            logger.info(f"claim: not found user_id={claimant_user_id}")
            return ClaimRejected(ClaimError.GIFT_NOT_FOUND)

        early = self._precheck(unit, claimant_user_id)
        if early is not None:
            return early

        if not self._actions.claim_receiver(unit.id, claimant_user_id):
            return self._classify_lost_write(claim_code, claimant_user_id)

        send, receive = self._actions.complete_transfer(
            unit, claimant_user_id, datetime.now(UTC)
        )
        claimed = replace(
            unit,
            receiver_user_id=claimant_user_id,
            linked_send_action_id=send.id,
            linked_receive_action_id=receive.id,
        )
        logger.info(
            f"claim: ok unit_id={unit.id} sender={unit.buyer_user_id} "
            f"receiver={claimant_user_id} receive_id={receive.id}"
        )
        return ClaimAccepted(
            unit=claimed,
            receive=receive,
            send=send,
            notifications=(self._received_intent(claimed, claimant_user_id),),
        )

    def _precheck(self, unit: PurchaseUnit, claimant_user_id: int) -> ClaimResult | None:
        if unit.receiver_user_id == claimant_user_id:
            return self._replay(unit)
        if unit.buyer_user_id == claimant_user_id:
            logger.info(f"claim: own gift unit_id={unit.id} user_id={claimant_user_id}")
            return ClaimRejected(ClaimError.GIFT_OWN)
        if unit.receiver_user_id is not None:
            logger.info(f"claim: already received unit_id={unit.id} user_id={claimant_user_id}")
            return ClaimRejected(ClaimError.GIFT_ALREADY_RECEIVED)
        return None

    def _classify_lost_write(self, claim_code: str, claimant_user_id: int) -> ClaimResult:
        # Re-read only to report accurately; the transition is never retried.
        current = self._actions.find_unit_by_code(claim_code)
        if current is None:
            return ClaimRejected(ClaimError.GIFT_NOT_FOUND)
        if current.receiver_user_id == claimant_user_id:
            return self._replay(current)
        logger.info(f"claim: lost race unit_id={current.id} user_id={claimant_user_id}")
        return ClaimRejected(ClaimError.GIFT_ALREADY_RECEIVED)

    def _replay(self, unit: PurchaseUnit) -> ClaimAccepted:
        receive = self._linked(unit.linked_receive_action_id, ReceiveAction)
        send = self._linked(unit.linked_send_action_id, SendAction)
        if receive is None:
            logger.warning(f"claim: replay without receive record unit_id={unit.id}")
        return ClaimAccepted(unit=unit, receive=receive, send=send, replay=True)

    def _linked(self, action_id: int | None, expected: type):
        if action_id is None:
            return None
        action = self._actions.get(action_id)
        return action if isinstance(action, expected) else None

    def _received_intent(self, unit: PurchaseUnit, claimant_user_id: int) -> NotificationIntent:
        sender = self._users.get(unit.buyer_user_id)
        return NotificationIntent(
            user_id=unit.buyer_user_id,
            event=NotificationEvent.GIFT_RECEIVED,
            locale=sender.locale if sender else DEFAULT_LOCALE,
            payload={
                "unit_id": unit.id,
                "gift_id": unit.gift_id,
                "receiver_user_id": claimant_user_id,
                "delivery_message_ref": unit.delivery_message_ref,
            },
        )
