# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable, Sequence

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from giftdrop.domain.ledger import GiftDefinition
from giftdrop.domain.ledger.repositories import GiftRepository
from giftdrop.infrastructure.db.models import GiftRow
from giftdrop.infrastructure.unit_of_work import unit_of_work_scope


def _to_domain(row: GiftRow) -> GiftDefinition:
    return GiftDefinition(
        id=row.id,
        display_order=row.display_order,
        name=dict(row.name or {}),
        unit_price=row.unit_price,
        settlement_asset=row.settlement_asset,
        total_supply=row.total_supply,
        sold_count=row.sold_count,
        image=row.image,
        color=row.color,
        animation=row.animation,
    )


class SqlAlchemyGiftRepository(GiftRepository):
    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def list_catalog(self) -> Sequence[GiftDefinition]:
        with unit_of_work_scope(self._session_factory) as session:
            rows = session.scalars(select(GiftRow).order_by(GiftRow.display_order, GiftRow.id))
            return [_to_domain(row) for row in rows]

    def get(self, gift_id: int) -> GiftDefinition | None:
        with unit_of_work_scope(self._session_factory) as session:
            row = session.get(GiftRow, gift_id)
            return _to_domain(row) if row else None

    def reserve_unit(self, gift_id: int) -> bool:
        # Conditional increment; the row count tells whether stock was left.
        with unit_of_work_scope(self._session_factory) as session:
            result = session.execute(
                update(GiftRow)
                .where(GiftRow.id == gift_id, GiftRow.sold_count < GiftRow.total_supply)
                .values(sold_count=GiftRow.sold_count + 1)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    def save(self, gift: GiftDefinition) -> None:
        """Insert or update a catalog entry, keeping its sold count."""

        with unit_of_work_scope(self._session_factory) as session:
            row = session.get(GiftRow, gift.id)
            if row is None:
                row = GiftRow(id=gift.id, sold_count=gift.sold_count)
                session.add(row)
            row.display_order = gift.display_order
            row.name = dict(gift.name)
            row.unit_price = gift.unit_price
            row.settlement_asset = gift.settlement_asset
            row.total_supply = max(gift.total_supply, row.sold_count or 0)
            row.image = gift.image
            row.color = gift.color
            row.animation = gift.animation


__all__ = ["SqlAlchemyGiftRepository"]
