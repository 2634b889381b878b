# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql.sqltypes import Boolean

from giftdrop.infrastructure.db.session import Base
from giftdrop.infrastructure.db.column_types import DecimalString


class GiftRow(Base):
    __tablename__ = "gifts"
    __table_args__ = (
        CheckConstraint("total_supply >= 0", name="ck_gift_supply"),
        CheckConstraint("sold_count >= 0", name="ck_gift_sold"),
    )
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
    name: Mapped[dict] = mapped_column(JSON, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(DecimalString(64), nullable=False)
    settlement_asset: Mapped[str] = mapped_column(String(16), nullable=False)
    total_supply: Mapped[int] = mapped_column(Integer, nullable=False)
    sold_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    image: Mapped[str | None] = mapped_column(String(256), nullable=True)
    color: Mapped[str | None] = mapped_column(String(32), nullable=True)
    animation: Mapped[str | None] = mapped_column(String(256), nullable=True)


class UserRow(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    first_name: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    last_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    username: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    is_premium: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="0"
    )
    locale: Mapped[str] = mapped_column(String(8), nullable=False, default="en")
    theme: Mapped[str | None] = mapped_column(String(16), nullable=True)
    gifts_received: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0", index=True
    )
    photo: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    photo_file_id: Mapped[str | None] = mapped_column(String(256), nullable=True)
    photo_checked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )


class ActionRow(Base):
    """Every ledger record in one table, tagged by ``kind``.

    ``user_id`` is the author: buyer for invoice and purchase rows, sender
    for send rows, claimant for receive rows.
    """

    __tablename__ = "actions"
    __table_args__ = (
        Index("ix_actions_user_kind_created", "user_id", "kind", "created_at"),
        Index("ix_actions_gift_kind_created", "gift_id", "kind", "created_at"),
    )
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    kind: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    gift_id: Mapped[int] = mapped_column(ForeignKey("gifts.id"), nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)

    invoice_external_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, unique=True
    )
    price: Mapped[Decimal | None] = mapped_column(DecimalString(64), nullable=True)
    asset: Mapped[str | None] = mapped_column(String(16), nullable=True)
    claim_code: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)
    delivery_message_ref: Mapped[str | None] = mapped_column(String(256), nullable=True)

    sender_user_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    receiver_user_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    linked_purchase_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    linked_send_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    linked_receive_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
