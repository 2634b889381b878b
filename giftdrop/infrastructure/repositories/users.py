# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from datetime import datetime

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from giftdrop.domain.ledger import User, UserProfile
from giftdrop.domain.ledger.repositories import UserRepository
from giftdrop.infrastructure.db.models import UserRow
from giftdrop.infrastructure.unit_of_work import unit_of_work_scope
from giftdrop.shared.logging import logger


def _to_domain(row: UserRow) -> User:
    return User(
        id=row.id,
        first_name=row.first_name,
        last_name=row.last_name,
        username=row.username,
        is_premium=bool(row.is_premium),
        locale=row.locale,
        theme=row.theme,
        gifts_received=row.gifts_received,
        has_photo=row.photo is not None,
    )


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlAlchemyUserRepository(UserRepository):
    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def upsert(self, profile: UserProfile) -> User:
        try:
            return self._upsert_once(profile)
        except IntegrityError:
            # A concurrent insert won; the second pass takes the update branch.
            logger.debug(f"users.upsert: retry after insert race user_id={profile.id}")
            return self._upsert_once(profile)

    def _upsert_once(self, profile: UserProfile) -> User:
        with unit_of_work_scope(self._session_factory) as session:
            row = session.get(UserRow, profile.id)
            if row is None:
                row = UserRow(
                    id=profile.id,
                    locale=profile.initial_locale(),
                    gifts_received=0,
                )
                session.add(row)
            row.first_name = profile.first_name
            row.last_name = profile.last_name
            row.username = profile.username
            row.is_premium = profile.is_premium
            session.flush()
            return _to_domain(row)

    def get(self, user_id: int) -> User | None:
        with unit_of_work_scope(self._session_factory) as session:
            row = session.get(UserRow, user_id)
            return _to_domain(row) if row else None

    def find_many(self, user_ids: Iterable[int]) -> Sequence[User]:
        ids = list(set(user_ids))
        if not ids:
            return []
        with unit_of_work_scope(self._session_factory) as session:
            rows = session.scalars(select(UserRow).where(UserRow.id.in_(ids)))
            return [_to_domain(row) for row in rows]

    def update_preferences(
        self, user_id: int, *, locale: str | None = None, theme: str | None = None
    ) -> bool:
        values: dict[str, object] = {}
        if locale is not None:
            values["locale"] = locale
        if theme is not None:
            values["theme"] = theme
        if not values:
            return self.get(user_id) is not None
        with unit_of_work_scope(self._session_factory) as session:
            result = session.execute(
                update(UserRow)
                .where(UserRow.id == user_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    def top(self, limit: int) -> Sequence[User]:
        with unit_of_work_scope(self._session_factory) as session:
            rows = session.scalars(
                select(UserRow)
                .order_by(UserRow.gifts_received.desc(), UserRow.id)
                .limit(limit)
            )
            return [_to_domain(row) for row in rows]

    def count_ranked_above(self, gifts_received: int) -> int:
        with unit_of_work_scope(self._session_factory) as session:
            return session.scalar(
                select(func.count()).select_from(UserRow).where(
                    UserRow.gifts_received > gifts_received
                )
            ) or 0

    def search(self, query: str, *, offset: int, limit: int) -> Sequence[User]:
        pattern = f"%{_escape_like(query.lstrip('@'))}%"
        with unit_of_work_scope(self._session_factory) as session:
            rows = session.scalars(
                select(UserRow)
                .where(
                    or_(
                        UserRow.first_name.ilike(pattern, escape="\\"),
                        UserRow.last_name.ilike(pattern, escape="\\"),
                        UserRow.username.ilike(pattern, escape="\\"),
                    )
                )
                .order_by(UserRow.gifts_received.desc(), UserRow.id)
                .offset(offset)
                .limit(limit)
            )
            return [_to_domain(row) for row in rows]

    def get_photo(self, user_id: int) -> bytes | None:
        with unit_of_work_scope(self._session_factory) as session:
            return session.scalar(select(UserRow.photo).where(UserRow.id == user_id))

    def list_avatar_candidates(
        self, checked_before: datetime, limit: int
    ) -> Sequence[tuple[int, datetime | None, str | None]]:
        with unit_of_work_scope(self._session_factory) as session:
            rows = session.execute(
                select(UserRow.id, UserRow.photo_checked_at, UserRow.photo_file_id)
                .where(
                    or_(
                        UserRow.photo_checked_at.is_(None),
                        UserRow.photo_checked_at < checked_before,
                    )
                )
                .order_by(UserRow.photo_checked_at.is_(None).desc(), UserRow.photo_checked_at)
                .limit(limit)
            )
            return [(row.id, row.photo_checked_at, row.photo_file_id) for row in rows]

    def claim_avatar_check(self, user_id: int, previous: datetime | None, now: datetime) -> bool:
        condition = (
            UserRow.photo_checked_at.is_(None)
            if previous is None
            else UserRow.photo_checked_at == previous
        )
        with unit_of_work_scope(self._session_factory) as session:
            result = session.execute(
                update(UserRow)
                .where(UserRow.id == user_id, condition)
                .values(photo_checked_at=now)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    def store_avatar(self, user_id: int, *, file_id: str | None, photo: bytes | None) -> None:
        with unit_of_work_scope(self._session_factory) as session:
            session.execute(
                update(UserRow)
                .where(UserRow.id == user_id)
                .values(photo_file_id=file_id, photo=photo)
                .execution_options(synchronize_session=False)
            )


__all__ = ["SqlAlchemyUserRepository"]
