# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import String, TypeDecorator


class DecimalString(TypeDecorator):
    """Exact decimal amounts stored as text.

    SQLite has no fixed-point type, and crypto prices carry up to 18 digits.
    """

    impl = String
    cache_ok = True

    def process_bind_param(self, value: Decimal | str | None, dialect) -> str | None:
        if value is None:
            return None
        return format(Decimal(value).normalize(), "f")

    def process_result_value(self, value: str | None, dialect) -> Decimal | None:
        if value is None:
            return None
        return Decimal(value)


__all__ = ["DecimalString"]
