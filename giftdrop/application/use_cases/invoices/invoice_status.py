# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from dataclasses import dataclass

from giftdrop.domain.ledger import InvoiceAction, NotFoundError, PurchaseUnit
from giftdrop.domain.ledger.repositories import ActionRepository


@dataclass(slots=True, frozen=True)
class InvoiceStatus:
    invoice_external_id: str
    status: str
    unit: PurchaseUnit | None = None


class GetInvoiceStatusUseCase:
    def __init__(self, *, actions: ActionRepository) -> None:
        self._actions = actions

    def execute(self, invoice_external_id: str, user_id: int) -> InvoiceStatus:
        action = self._actions.find_by_invoice(invoice_external_id)
        if not isinstance(action, InvoiceAction | PurchaseUnit) or action.buyer_user_id != user_id:
            raise NotFoundError("invoice", invoice_external_id)
        if isinstance(action, InvoiceAction):
            return InvoiceStatus(invoice_external_id, "pending")
        return InvoiceStatus(invoice_external_id, "paid", action)
