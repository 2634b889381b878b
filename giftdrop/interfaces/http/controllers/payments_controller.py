# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from flask import Blueprint, jsonify, request
from pydantic import ValidationError

from giftdrop.application.use_cases.invoices.confirm_payment import ConfirmPaymentUseCase
from giftdrop.infrastructure.cryptopay import SIGNATURE_HEADER, verify_signature
from giftdrop.infrastructure.notifications import NotificationDispatcher
from giftdrop.infrastructure.observability import record_invoice_event
from giftdrop.interfaces.http.dto.payments import INVOICE_PAID, CryptoPayUpdateDTO
from giftdrop.shared.errors import UnauthorizedError
from giftdrop.shared.errors.validation import raise_validation_error
from giftdrop.shared.logging import logger


class PaymentsController:
    def __init__(
        self,
        *,
        token: str,
        confirm_payment: ConfirmPaymentUseCase,
        notifications: NotificationDispatcher,
    ) -> None:
        self._token = token
        self._confirm_payment = confirm_payment
        self._notifications = notifications

    def as_blueprint(self) -> Blueprint:
        bp = Blueprint("payments", __name__)
        bp.add_url_rule("/cryptopay", view_func=self.cryptopay, methods=["POST"])
        return bp

    def cryptopay(self):
        raw = request.get_data(cache=True)
        if not verify_signature(self._token, raw, request.headers.get(SIGNATURE_HEADER)):
            logger.warning("cryptopay.webhook: bad signature")
            raise UnauthorizedError("bad_signature")

        try:
            update = CryptoPayUpdateDTO.model_validate(request.get_json(silent=True) or {})
        except ValidationError as exc:
            raise_validation_error(exc)

        if update.update_type != INVOICE_PAID or update.payload is None:
            logger.info(f"cryptopay.webhook: ignored update_type={update.update_type}")
            return jsonify({"ok": True})

        confirmed = self._confirm_payment.execute(update.payload.invoice_id)
        if confirmed is None:
            record_invoice_event("duplicate")
            return jsonify({"ok": True})

        record_invoice_event("paid" if confirmed.reserved else "oversold")
        self._notifications.dispatch(confirmed.notifications)
        return jsonify({"ok": True})


__all__ = ["PaymentsController"]
