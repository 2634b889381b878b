# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Ledger storage: one ``actions`` table, state moves through conditional UPDATEs."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from giftdrop.domain.exceptions import InvariantViolation
from giftdrop.domain.ledger import (
    ActionKind,
    InvoiceAction,
    LedgerAction,
    PurchaseUnit,
    ReceiveAction,
    SendAction,
)
from giftdrop.domain.ledger.repositories import ActionRepository
from giftdrop.infrastructure.db.models import ActionRow, UserRow
from giftdrop.infrastructure.unit_of_work import unit_of_work_scope


def _utc(value: datetime) -> datetime:
    # SQLite hands back naive values; everything is stored in UTC.
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


def _to_domain(row: ActionRow) -> LedgerAction:
    kind = ActionKind(row.kind)
    if kind is ActionKind.INVOICE:
        return InvoiceAction(
            id=row.id,
            created_at=_utc(row.created_at),
            gift_id=row.gift_id,
            buyer_user_id=row.user_id,
            invoice_external_id=row.invoice_external_id or "",
            price=row.price or Decimal(0),
            asset=row.asset or "",
        )
    if kind is ActionKind.PURCHASE:
        return PurchaseUnit(
            id=row.id,
            created_at=_utc(row.created_at),
            gift_id=row.gift_id,
            buyer_user_id=row.user_id,
            invoice_external_id=row.invoice_external_id,
            price=row.price or Decimal(0),
            asset=row.asset or "",
            claim_code=row.claim_code or "",
            delivery_message_ref=row.delivery_message_ref,
            receiver_user_id=row.receiver_user_id,
            linked_send_action_id=row.linked_send_id,
            linked_receive_action_id=row.linked_receive_id,
        )
    if kind is ActionKind.SEND:
        return SendAction(
            id=row.id,
            created_at=_utc(row.created_at),
            gift_id=row.gift_id,
            sender_user_id=row.user_id,
            receiver_user_id=row.receiver_user_id,
            linked_purchase_action_id=row.linked_purchase_id,
            linked_receive_action_id=row.linked_receive_id,
        )
    return ReceiveAction(
        id=row.id,
        created_at=_utc(row.created_at),
        gift_id=row.gift_id,
        receiver_user_id=row.user_id,
        sender_user_id=row.sender_user_id,
        linked_purchase_action_id=row.linked_purchase_id,
        linked_send_action_id=row.linked_send_id,
    )


def _newest_first(stmt):
    return stmt.order_by(ActionRow.created_at.desc(), ActionRow.id.desc())


def _kinds(kinds: Iterable[ActionKind]) -> list[str]:
    return [ActionKind(kind).value for kind in kinds]


def _deliverable():
    return (
        ActionRow.kind == ActionKind.PURCHASE.value,
        ActionRow.receiver_user_id.is_(None),
        ActionRow.delivery_message_ref.is_(None),
        ActionRow.linked_send_id.is_(None),
        ActionRow.linked_receive_id.is_(None),
    )


class SqlAlchemyActionRepository(ActionRepository):
    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def add_invoice(
        self,
        *,
        buyer_user_id: int,
        gift_id: int,
        invoice_external_id: str,
        price: Decimal,
        asset: str,
        created_at: datetime,
    ) -> InvoiceAction:
        with unit_of_work_scope(self._session_factory) as session:
            row = ActionRow(
                kind=ActionKind.INVOICE.value,
                created_at=created_at,
                gift_id=gift_id,
                user_id=buyer_user_id,
                invoice_external_id=invoice_external_id,
                price=price,
                asset=asset,
            )
            session.add(row)
            session.flush()
            action = _to_domain(row)
            assert isinstance(action, InvoiceAction)
            return action

    def promote_invoice(self, invoice_external_id: str, claim_code: str) -> PurchaseUnit | None:
        with unit_of_work_scope(self._session_factory) as session:
            result = session.execute(
                update(ActionRow)
                .where(
                    ActionRow.invoice_external_id == invoice_external_id,
                    ActionRow.kind == ActionKind.INVOICE.value,
                )
                .values(kind=ActionKind.PURCHASE.value, claim_code=claim_code)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                return None
        return self.find_unit_by_code(claim_code)

    def get(self, action_id: int) -> LedgerAction | None:
        with unit_of_work_scope(self._session_factory) as session:
            row = session.get(ActionRow, action_id)
            return _to_domain(row) if row else None

    def find_by_invoice(self, invoice_external_id: str) -> LedgerAction | None:
        with unit_of_work_scope(self._session_factory) as session:
            row = session.scalar(
                select(ActionRow).where(ActionRow.invoice_external_id == invoice_external_id)
            )
            return _to_domain(row) if row else None

    def find_unit_by_code(self, claim_code: str) -> PurchaseUnit | None:
        if not claim_code:
            return None
        with unit_of_work_scope(self._session_factory) as session:
            row = session.scalar(
                select(ActionRow).where(
                    ActionRow.claim_code == claim_code,
                    ActionRow.kind == ActionKind.PURCHASE.value,
                )
            )
            if row is None:
                return None
            unit = _to_domain(row)
            assert isinstance(unit, PurchaseUnit)
            return unit

    def _get_unit(self, unit_id: int) -> PurchaseUnit | None:
        action = self.get(unit_id)
        return action if isinstance(action, PurchaseUnit) else None

    def set_delivery_ref(self, unit_id: int, message_ref: str) -> PurchaseUnit | None:
        with unit_of_work_scope(self._session_factory) as session:
            result = session.execute(
                update(ActionRow)
                .where(ActionRow.id == unit_id, *_deliverable())
                .values(delivery_message_ref=message_ref)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                return None
        return self._get_unit(unit_id)

    def claim_receiver(self, unit_id: int, claimant_user_id: int) -> bool:
        # The one write that decides a transfer: first claimant to set the
        # receiver wins, every later statement matches zero rows.
        with unit_of_work_scope(self._session_factory) as session:
            result = session.execute(
                update(ActionRow)
                .where(
                    ActionRow.id == unit_id,
                    ActionRow.kind == ActionKind.PURCHASE.value,
                    ActionRow.receiver_user_id.is_(None),
                    ActionRow.user_id != claimant_user_id,
                )
                .values(receiver_user_id=claimant_user_id)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    def complete_transfer(
        self, unit: PurchaseUnit, claimant_user_id: int, created_at: datetime
    ) -> tuple[SendAction, ReceiveAction]:
        with unit_of_work_scope(self._session_factory) as session:
            # Write first so SQLite takes the write lock before any read.
            send = ActionRow(
                kind=ActionKind.SEND.value,
                created_at=created_at,
                gift_id=unit.gift_id,
                user_id=unit.buyer_user_id,
                receiver_user_id=claimant_user_id,
                linked_purchase_id=unit.id,
            )
            session.add(send)
            session.flush()

            purchase = session.get(ActionRow, unit.id)
            if purchase is None or purchase.receiver_user_id != claimant_user_id:
                raise InvariantViolation(
                    "transfer completed without a matching claim", field="receiver_user_id"
                )

            receive = ActionRow(
                kind=ActionKind.RECEIVE.value,
                created_at=created_at,
                gift_id=unit.gift_id,
                user_id=claimant_user_id,
                sender_user_id=unit.buyer_user_id,
                linked_purchase_id=unit.id,
                linked_send_id=send.id,
            )
            session.add(receive)
            session.flush()

            send.linked_receive_id = receive.id
            purchase.linked_send_id = send.id
            purchase.linked_receive_id = receive.id
            session.execute(
                update(UserRow)
                .where(UserRow.id == claimant_user_id)
                .values(gifts_received=UserRow.gifts_received + 1)
                .execution_options(synchronize_session=False)
            )
            session.flush()

            send_action = _to_domain(send)
            receive_action = _to_domain(receive)
            assert isinstance(send_action, SendAction)
            assert isinstance(receive_action, ReceiveAction)
            return send_action, receive_action

    def list_deliverable_units(
        self, buyer_user_id: int, *, offset: int, limit: int
    ) -> Sequence[PurchaseUnit]:
        with unit_of_work_scope(self._session_factory) as session:
            rows = session.scalars(
                _newest_first(
                    select(ActionRow).where(ActionRow.user_id == buyer_user_id, *_deliverable())
                )
                .offset(offset)
                .limit(limit)
            )
            return [unit for unit in map(_to_domain, rows) if isinstance(unit, PurchaseUnit)]

    def list_by_user(
        self, user_id: int, kinds: Iterable[ActionKind], *, offset: int, limit: int
    ) -> Sequence[LedgerAction]:
        with unit_of_work_scope(self._session_factory) as session:
            rows = session.scalars(
                _newest_first(
                    select(ActionRow).where(
                        ActionRow.user_id == user_id, ActionRow.kind.in_(_kinds(kinds))
                    )
                )
                .offset(offset)
                .limit(limit)
            )
            return [_to_domain(row) for row in rows]

    def list_by_gift(
        self, gift_id: int, kinds: Iterable[ActionKind], *, offset: int, limit: int
    ) -> Sequence[LedgerAction]:
        with unit_of_work_scope(self._session_factory) as session:
            rows = session.scalars(
                _newest_first(
                    select(ActionRow).where(
                        ActionRow.gift_id == gift_id, ActionRow.kind.in_(_kinds(kinds))
                    )
                )
                .offset(offset)
                .limit(limit)
            )
            return [_to_domain(row) for row in rows]

    def list_claim_anomalies(self, limit: int) -> Sequence[PurchaseUnit]:
        with unit_of_work_scope(self._session_factory) as session:
            rows = session.scalars(
                select(ActionRow)
                .where(
                    ActionRow.kind == ActionKind.PURCHASE.value,
                    ActionRow.receiver_user_id.is_not(None),
                    (ActionRow.linked_send_id.is_(None)) | (ActionRow.linked_receive_id.is_(None)),
                )
                .order_by(ActionRow.id)
                .limit(limit)
            )
            return [unit for unit in map(_to_domain, rows) if isinstance(unit, PurchaseUnit)]


__all__ = ["SqlAlchemyActionRepository"]
