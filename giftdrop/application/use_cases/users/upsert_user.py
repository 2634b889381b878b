# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from giftdrop.domain.ledger import InvalidArgumentError, User, UserProfile
from giftdrop.domain.ledger.repositories import UserRepository
from giftdrop.shared.logging import logger


class UpsertUserUseCase:
    """Create or refresh a user from gateway identity fields.

    Locale and theme chosen by the user survive later upserts; the score is
    never touched here.
    """

    def __init__(self, *, users: UserRepository) -> None:
        self._users = users

    def execute(self, profile: UserProfile) -> User:
        if profile.id <= 0:
            raise InvalidArgumentError("id", "must be positive")
        user = self._users.upsert(profile)
        logger.debug(f"users.upsert: user_id={user.id} locale={user.locale}")
        return user
