# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Iterable

from giftdrop.application.interfaces import MessagingGatewayPort
from giftdrop.domain.ledger import NotificationIntent
from giftdrop.shared.logging import logger
from giftdrop.shared.utils.asyncio_utils import run_async


class NotificationDispatcher:
    """Hand notification intents to the messaging gateway from sync code.

    Delivery is best effort: the ledger write that produced an intent is
    already committed, so a failed send is logged and dropped.
    """

    def __init__(self, gateway: MessagingGatewayPort) -> None:
        self._gateway = gateway

    def dispatch(self, intents: Iterable[NotificationIntent]) -> int:
        delivered = 0
        for intent in intents:
            try:
                run_async(self._gateway.deliver(intent))
                delivered += 1
            except Exception as exc:
                logger.opt(exception=exc).warning(
                    f"notify: delivery failed user_id={intent.user_id} event={intent.event.value}"
                )
        return delivered


__all__ = ["NotificationDispatcher"]
