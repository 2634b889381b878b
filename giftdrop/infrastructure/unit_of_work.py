# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Transaction boundary shared by the ledger repositories."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy.orm import Session

from giftdrop.shared.logging import logger


@dataclass(slots=True)
class SqlAlchemyUnitOfWork:
    """One session per repository call, committed on a clean exit.

    Conditional updates report success through ``rowcount``, which is only
    meaningful once the statement is flushed, so nothing here defers writes.
    """

    session_factory: Callable[[], Session]
    session: Session | None = None

    def __enter__(self) -> Session:
        self.session = self.session_factory()
        return self.session

    def __exit__(self, exc_type, exc, tb) -> None:
        session = self.session
        if session is None:
            return
        try:
            if exc_type is None:
                session.commit()
            else:
                logger.debug(f"uow: rollback after {exc_type.__name__}")
                session.rollback()
        except Exception:
            logger.exception("uow: commit failed")
            session.rollback()
            raise
        finally:
            session.close()
            self.session = None


@contextmanager
def unit_of_work_scope(factory: Callable[[], Session]) -> Iterator[Session]:
    with SqlAlchemyUnitOfWork(factory) as session:
        yield session


__all__ = ["SqlAlchemyUnitOfWork", "unit_of_work_scope"]
