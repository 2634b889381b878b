# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Sequence
from html import escape
from typing import Any

import httpx

from giftdrop.application.interfaces import AvatarSnapshot, MessagingGatewayPort
from giftdrop.domain.ledger import (
    DEFAULT_LOCALE,
    InlineOffer,
    NotificationEvent,
    NotificationIntent,
)
from giftdrop.domain.ledger.repositories import GiftRepository, UserRepository
from giftdrop.infrastructure.resilience import CircuitBreaker, resilient_call
from giftdrop.shared.config import load_config
from giftdrop.shared.logging import logger

_config = load_config()

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "start": "🎁 Here you can buy and send gifts to your friends.",
        "btn_open_app": "Open App",
        "btn_send_gift": "Send Gift",
        "btn_receive_gift": "Receive Gift",
        "send_gift_of": "Send a gift of {gift}",
        "gift_message": "🎁 I have a <b>gift</b> for you! Tap the button below to open it.",
        "gift_message_received": "🎁 Gift received",
        "purchased": "✅ You have purchased the gift of <b>{gift}</b>.",
        "received": "👌 <b>{name}</b> received your gift of <b>{gift}</b>.",
        "invoice": "Purchasing a {gift} gift",
    },
    "ru": {
        "start": "🎁 Здесь вы можете покупать и отправлять подарки своим друзьям.",
        "btn_open_app": "Открыть приложение",
        "btn_send_gift": "Отправить подарок",
        "btn_receive_gift": "Получить подарок",
        "send_gift_of": "Отправить подарок «{gift}»",
        "gift_message": "🎁 У меня для тебя есть <b>подарок</b>! Нажми кнопку ниже, чтобы открыть его.",
        "gift_message_received": "🎁 Подарок получен",
        "purchased": "✅ Вы купили подарок «<b>{gift}</b>».",
        "received": "👌 <b>{name}</b> получил(а) ваш подарок «<b>{gift}</b>».",
        "invoice": "Приобретение подарка «{gift}»",
    },
}


def message(locale: str | None, key: str, **params: str) -> str:
    catalog = MESSAGES.get(locale or DEFAULT_LOCALE) or MESSAGES[DEFAULT_LOCALE]
    template = catalog.get(key) or MESSAGES[DEFAULT_LOCALE][key]
    return template.format(**{name: escape(value) for name, value in params.items()})


class TelegramApiError(RuntimeError):
    def __init__(self, method: str, description: str) -> None:
        super().__init__(f"{method}: {description}")
        self.method = method
        self.description = description


class TelegramBotGateway(MessagingGatewayPort):
    """Bot API adapter that renders notification intents into messages."""

    def __init__(
        self,
        *,
        gifts: GiftRepository,
        users: UserRepository,
        token: str | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._gifts = gifts
        self._users = users
        self._token = token if token is not None else _config.telegram.token
        self._api_url = (api_url or _config.telegram.api_url).rstrip("/")
        self._timeout = timeout or _config.telegram.timeout
        self._transport = transport
        self._breaker = CircuitBreaker.from_config("telegram")

    @property
    def _app_link(self) -> str:
        return f"https://t.me/{_config.telegram.username}/app"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def _call(self, http: httpx.AsyncClient, method: str, **params: Any) -> Any:
        response = await resilient_call(
            http.post,
            f"{self._api_url}/bot{self._token}/{method}",
            json={key: value for key, value in params.items() if value is not None},
            breaker=self._breaker,
            timeout=self._timeout,
        )
        try:
            data = response.json()
        except ValueError:
            data = {}
        if not data.get("ok"):
            raise TelegramApiError(method, str(data.get("description") or response.status_code))
        return data.get("result")

    def _gift_name(self, gift_id: int, locale: str) -> str:
        gift = self._gifts.get(gift_id)
        return gift.localized_name(locale) if gift else f"#{gift_id}"

    def _open_app_markup(self, locale: str) -> dict[str, Any]:
        return {
            "inline_keyboard": [
                [{"text": message(locale, "btn_open_app"), "url": self._app_link}]
            ]
        }

    async def deliver(self, intent: NotificationIntent) -> None:
        locale = intent.locale
        payload = intent.payload
        gift_name = self._gift_name(int(payload["gift_id"]), locale)
        async with self._client() as http:
            if intent.event is NotificationEvent.PURCHASE_CONFIRMED:
                await self._call(
                    http,
                    "sendMessage",
                    chat_id=intent.user_id,
                    text=message(locale, "purchased", gift=gift_name),
                    parse_mode="HTML",
                    reply_markup=self._open_app_markup(locale),
                )
                return

            if intent.event is NotificationEvent.GIFT_RECEIVED:
                inline_id = payload.get("delivery_message_ref")
                if inline_id:
                    try:
                        await self._call(
                            http,
                            "editMessageText",
                            inline_message_id=inline_id,
                            text=message(locale, "gift_message_received"),
                            reply_markup=self._open_app_markup(locale),
                        )
                    except TelegramApiError as exc:
                        # The inline message may be gone; the direct message still goes out.
                        logger.warning(f"telegram.deliver: edit failed {exc.description}")
                receiver = self._users.get(int(payload["receiver_user_id"]))
                name = receiver.first_name if receiver else str(payload["receiver_user_id"])
                await self._call(
                    http,
                    "sendMessage",
                    chat_id=intent.user_id,
                    text=message(locale, "received", name=name, gift=gift_name),
                    parse_mode="HTML",
                )
                return
        logger.warning(f"telegram.deliver: unsupported event={intent.event}")

    async def answer_inline_query(
        self, query_id: str, offers: Sequence[InlineOffer], *, locale: str
    ) -> None:
        results = []
        for offer in offers:
            gift_name = offer.gift.localized_name(locale)
            result: dict[str, Any] = {
                "type": "article",
                "id": str(offer.unit.id),
                "title": message(locale, "btn_send_gift"),
                "description": message(locale, "send_gift_of", gift=gift_name),
                "input_message_content": {
                    "message_text": message(locale, "gift_message"),
                    "parse_mode": "HTML",
                },
                "reply_markup": {
                    "inline_keyboard": [
                        [
                            {
                                "text": message(locale, "btn_receive_gift"),
                                "url": f"{self._app_link}?startapp={offer.unit.claim_code}",
                            }
                        ]
                    ]
                },
            }
            if offer.gift.image:
                result.update(
                    thumbnail_url=f"{_config.telegram.server_url}/assets/gift/{offer.gift.image}.png",
                    thumbnail_width=512,
                    thumbnail_height=512,
                )
            results.append(result)
        async with self._client() as http:
            await self._call(
                http,
                "answerInlineQuery",
                inline_query_id=query_id,
                results=results,
                is_personal=True,
                cache_time=0,
            )

    async def send_welcome(self, chat_id: int, *, locale: str) -> None:
        async with self._client() as http:
            await self._call(
                http,
                "sendPhoto",
                chat_id=chat_id,
                photo=f"{_config.telegram.server_url}/assets/logo-640x360.png",
                caption=message(locale, "start"),
                reply_markup={
                    "inline_keyboard": [
                        [
                            {
                                "text": message(locale, "btn_open_app"),
                                "web_app": {"url": _config.telegram.server_url},
                            }
                        ]
                    ]
                },
            )

    async def fetch_avatar(self, user_id: int, known_file_id: str | None) -> AvatarSnapshot | None:
        async with self._client() as http:
            chat = await self._call(http, "getChat", chat_id=user_id)
            file_id = ((chat or {}).get("photo") or {}).get("small_file_id")
            if not file_id:
                return None
            if file_id == known_file_id:
                return AvatarSnapshot(file_id=file_id)
            file = await self._call(http, "getFile", file_id=file_id)
            path = (file or {}).get("file_path")
            if not path:
                return AvatarSnapshot(file_id=file_id)
            response = await resilient_call(
                http.get,
                f"{self._api_url}/file/bot{self._token}/{path}",
                breaker=self._breaker,
                timeout=self._timeout,
            )
            response.raise_for_status()
            return AvatarSnapshot(file_id=file_id, photo=response.content)

    async def set_webhook(self) -> None:
        async with self._client() as http:
            await self._call(
                http,
                "setWebhook",
                url=f"{_config.telegram.server_url}/webhook",
                secret_token=_config.telegram.webhook_secret or None,
                allowed_updates=["message", "inline_query", "chosen_inline_result"],
            )
        logger.info("telegram: webhook registered")


__all__ = ["MESSAGES", "TelegramApiError", "TelegramBotGateway", "message"]
