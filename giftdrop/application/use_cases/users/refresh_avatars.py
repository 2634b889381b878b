# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from giftdrop.application.interfaces import MessagingGatewayPort
from giftdrop.domain.ledger.repositories import UserRepository
from giftdrop.shared.logging import logger


class RefreshAvatarsUseCase:
    """Re-fetch stale profile photos.

    Each candidate is claimed with a compare-and-set on its last check time,
    so two workers never refresh the same user in one round.
    """

    def __init__(
        self,
        *,
        users: UserRepository,
        gateway: MessagingGatewayPort,
        max_age: float,
        batch_size: int = 20,
    ) -> None:
        self._users = users
        self._gateway = gateway
        self._max_age = max_age
        self._batch_size = batch_size

    async def execute(self) -> int:
        now = datetime.now(UTC)
        threshold = now - timedelta(seconds=self._max_age)
        refreshed = 0
        for user_id, checked_at, file_id in self._users.list_avatar_candidates(
            threshold, self._batch_size
        ):
            if not self._users.claim_avatar_check(user_id, checked_at, now):
                continue
            try:
                snapshot = await self._gateway.fetch_avatar(user_id, file_id)
            except Exception as exc:
                logger.warning(f"avatars: fetch failed user_id={user_id} error={exc}")
                continue
            if snapshot is None:
                if file_id is not None:
                    self._users.store_avatar(user_id, file_id=None, photo=None)
                continue
            if snapshot.file_id == file_id and snapshot.photo is None:
                continue
            self._users.store_avatar(user_id, file_id=snapshot.file_id, photo=snapshot.photo)
            refreshed += 1
        if refreshed:
            logger.info(f"avatars: refreshed={refreshed}")
        return refreshed
