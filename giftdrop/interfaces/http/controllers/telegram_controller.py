# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import hmac

from flask import Blueprint, jsonify, request
from pydantic import ValidationError

from giftdrop.application.interfaces import MessagingGatewayPort
from giftdrop.application.use_cases.transfers.mark_handed import (
    MarkHandedToRecipientMessageUseCase,
)
from giftdrop.application.use_cases.transfers.resolve_inline_query import (
    ResolveInlineQueryUseCase,
)
from giftdrop.application.use_cases.users.upsert_user import UpsertUserUseCase
from giftdrop.interfaces.http.dto.telegram import (
    ChosenInlineResultDTO,
    InlineQueryDTO,
    MessageDTO,
    TelegramUpdateDTO,
)
from giftdrop.shared.errors import UnauthorizedError
from giftdrop.shared.logging import logger
from giftdrop.shared.utils.asyncio_utils import run_async

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"


class TelegramController:
    """Bot API webhook.

    Telegram redelivers on any non-2xx answer, so once the secret checks out
    every update is acknowledged and failures are only logged.
    """

    def __init__(
        self,
        *,
        webhook_secret: str,
        upsert_user: UpsertUserUseCase,
        resolve_inline_query: ResolveInlineQueryUseCase,
        mark_handed: MarkHandedToRecipientMessageUseCase,
        gateway: MessagingGatewayPort,
    ) -> None:
        self._webhook_secret = webhook_secret
        self._upsert_user = upsert_user
        self._resolve_inline_query = resolve_inline_query
        self._mark_handed = mark_handed
        self._gateway = gateway

    def as_blueprint(self) -> Blueprint:
        bp = Blueprint("telegram", __name__)
        bp.add_url_rule("/webhook", view_func=self.webhook, methods=["POST"])
        return bp

    def webhook(self):
        received = request.headers.get(SECRET_HEADER, "")
        if not self._webhook_secret or not hmac.compare_digest(received, self._webhook_secret):
            raise UnauthorizedError("bad_webhook_secret")

        try:
            update = TelegramUpdateDTO.model_validate(request.get_json(silent=True) or {})
        except ValidationError as exc:
            logger.warning(f"telegram.webhook: unparseable update errors={exc.error_count()}")
            return jsonify({"ok": True})

        try:
            if update.message is not None:
                self._on_message(update.message)
            elif update.inline_query is not None:
                self._on_inline_query(update.inline_query)
            elif update.chosen_inline_result is not None:
                self._on_chosen_inline_result(update.chosen_inline_result)
        except Exception:
            logger.exception(f"telegram.webhook: update_id={update.update_id} failed")
        return jsonify({"ok": True})

    def _on_message(self, message: MessageDTO) -> None:
        if message.from_ is None:
            return
        user = self._upsert_user.execute(message.from_.to_profile())
        if (message.text or "").split(" ", 1)[0] == "/start":
            run_async(self._gateway.send_welcome(message.chat.id, locale=user.locale))

    def _on_inline_query(self, inline_query: InlineQueryDTO) -> None:
        query = inline_query.query.strip()
        if not self._resolve_inline_query.is_valid_query(query):
            run_async(self._gateway.answer_inline_query(inline_query.id, [], locale="en"))
            return
        user = self._upsert_user.execute(inline_query.from_.to_profile())
        offers = self._resolve_inline_query.execute(user.id, query)
        run_async(
            self._gateway.answer_inline_query(inline_query.id, offers, locale=user.locale)
        )

    def _on_chosen_inline_result(self, result: ChosenInlineResultDTO) -> None:
        self._mark_handed.execute(result.result_id, result.inline_message_id)


__all__ = ["SECRET_HEADER", "TelegramController"]
