# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from giftdrop.domain.ledger import (
    SUPPORTED_LOCALES,
    SUPPORTED_THEMES,
    InvalidArgumentError,
    NotFoundError,
    User,
)
from giftdrop.domain.ledger.repositories import UserRepository
from giftdrop.shared.logging import logger


class UpdateSettingsUseCase:
    def __init__(self, *, users: UserRepository) -> None:
        self._users = users

    def execute(self, user_id: int, *, locale: str | None = None, theme: str | None = None) -> User:
        if locale is None and theme is None:
            raise InvalidArgumentError("settings", "nothing to update")
        if locale is not None and locale not in SUPPORTED_LOCALES:
            raise InvalidArgumentError("locale", f"expected one of {', '.join(SUPPORTED_LOCALES)}")
        if theme is not None and theme not in SUPPORTED_THEMES:
            raise InvalidArgumentError("theme", f"expected one of {', '.join(SUPPORTED_THEMES)}")

        if not self._users.update_preferences(user_id, locale=locale, theme=theme):
            raise NotFoundError("user", user_id)
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        logger.info(f"users.settings: user_id={user_id} locale={locale} theme={theme}")
        return user
