# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from giftdrop.domain.ledger import InvalidArgumentError, NotFoundError, RankedUser, User
from giftdrop.domain.ledger.repositories import UserRepository


class GetLeaderboardUseCase:
    def __init__(self, *, users: UserRepository, size: int) -> None:
        self._users = users
        self._size = size

    def execute(self) -> list[User]:
        return list(self._users.top(self._size))


class GetUserProfileUseCase:
    """User card with its leaderboard position.

    The position is the number of users with strictly more gifts, so users
    tied on score share a position.
    """

    def __init__(self, *, users: UserRepository) -> None:
        self._users = users

    def execute(self, user_id: int) -> RankedUser:
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        return RankedUser(user=user, position=self._users.count_ranked_above(user.gifts_received))


class SearchUsersUseCase:
    def __init__(self, *, users: UserRepository, limit: int) -> None:
        self._users = users
        self._limit = limit

    def execute(self, query: str, offset: int | None = 0) -> list[User]:
        query = (query or "").strip()
        if not query:
            raise InvalidArgumentError("query", "empty")
        if len(query) > 64:
            raise InvalidArgumentError("query", "too_long")
        return list(self._users.search(query, offset=max(int(offset or 0), 0), limit=self._limit))


class GetUserPhotoUseCase:
    def __init__(self, *, users: UserRepository) -> None:
        self._users = users

    def execute(self, user_id: int) -> bytes:
        photo = self._users.get_photo(user_id)
        if not photo:
            raise NotFoundError("photo", user_id)
        return photo


__all__ = [
    "GetLeaderboardUseCase",
    "GetUserPhotoUseCase",
    "GetUserProfileUseCase",
    "SearchUsersUseCase",
]
