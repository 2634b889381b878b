# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Create the schema and load the gift catalog."""

from __future__ import annotations

import argparse
from decimal import Decimal

from giftdrop.domain.ledger import GiftDefinition
from giftdrop.infrastructure.db import SessionLocal, init_db
from giftdrop.infrastructure.repositories.gifts import SqlAlchemyGiftRepository

CATALOG: tuple[GiftDefinition, ...] = (
    GiftDefinition(
        id=1,
        display_order=1,
        name={"en": "Delicious Cake", "ru": "Вкусный торт"},
        unit_price=Decimal("10"),
        settlement_asset="USDT",
        total_supply=500,
        image="delicious-cake",
    ),
    GiftDefinition(
        id=2,
        display_order=2,
        name={"en": "Green Star", "ru": "Зелёная звезда"},
        unit_price=Decimal("5"),
        settlement_asset="TON",
        total_supply=3000,
        image="green-star",
    ),
    GiftDefinition(
        id=3,
        display_order=3,
        name={"en": "Blue Star", "ru": "Синяя звезда"},
        unit_price=Decimal("0.01"),
        settlement_asset="ETH",
        total_supply=5000,
        image="blue-star",
    ),
    GiftDefinition(
        id=4,
        display_order=4,
        name={"en": "Red Star", "ru": "Красная звезда"},
        unit_price=Decimal("0.01"),
        settlement_asset="ETH",
        total_supply=10000,
        image="red-star",
    ),
)


def main() -> None:
    parser = argparse.ArgumentParser(description="Load the gift catalog")
    parser.add_argument(
        "--only",
        type=int,
        action="append",
        help="Gift id to load (repeatable); loads everything by default",
    )
    args = parser.parse_args()

    init_db()
    repository = SqlAlchemyGiftRepository(SessionLocal)
    selected = [gift for gift in CATALOG if not args.only or gift.id in args.only]
    for gift in selected:
        repository.save(gift)
        print(f"Loaded gift {gift.id} {gift.localized_name('en')} ({gift.total_supply} units)")


if __name__ == "__main__":
    main()
