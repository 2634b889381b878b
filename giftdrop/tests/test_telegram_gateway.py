from __future__ import annotations

import asyncio
import json

import httpx

from giftdrop.domain.ledger import InlineOffer, NotificationEvent, NotificationIntent
from giftdrop.infrastructure.telegram import TelegramBotGateway, message
from giftdrop.infrastructure.workers import PeriodicWorker


class BotApi:
    """Records Bot API calls and answers them from a per-method table."""

    def __init__(self, results: dict[str, object] | None = None, failing: set[str] | None = None) -> None:
        self.results = results or {}
        self.failing = failing or set()
        self.calls: list[tuple[str, dict]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if "/file/" in request.url.path:
            self.calls.append(("download", {}))
            return httpx.Response(200, content=b"jpeg-bytes")
        method = request.url.path.rsplit("/", 1)[-1]
        self.calls.append((method, json.loads(request.content or b"{}")))
        if method in self.failing:
            return httpx.Response(400, json={"ok": False, "description": "message not found"})
        return httpx.Response(200, json={"ok": True, "result": self.results.get(method, True)})


def _gateway(gifts, users, api: BotApi) -> TelegramBotGateway:
    return TelegramBotGateway(
        gifts=gifts,
        users=users,
        token="123:abc",
        api_url="https://bot.test",
        timeout=5,
        transport=httpx.MockTransport(api),
    )


def test_message_escapes_parameters() -> None:
    text = message("en", "received", name="<b>Eve</b>", gift="Cake")
    assert "&lt;b&gt;Eve&lt;/b&gt;" in text
    assert message("de", "btn_open_app") == "Open App"


def test_purchase_confirmed_sends_localized_message(gifts, users, cake, people) -> None:
    api = BotApi()
    intent = NotificationIntent(
        user_id=people["friend"],
        event=NotificationEvent.PURCHASE_CONFIRMED,
        locale="ru",
        payload={"gift_id": cake.id, "unit_id": 1, "claim_code": "x" * 16},
    )

    asyncio.run(_gateway(gifts, users, api).deliver(intent))

    ((method, body),) = api.calls
    assert method == "sendMessage"
    assert body["chat_id"] == people["friend"]
    assert "Вкусный торт" in body["text"]


def test_gift_received_survives_failed_inline_edit(gifts, users, cake, people) -> None:
    api = BotApi(failing={"editMessageText"})
    intent = NotificationIntent(
        user_id=people["buyer"],
        event=NotificationEvent.GIFT_RECEIVED,
        payload={
            "gift_id": cake.id,
            "unit_id": 1,
            "receiver_user_id": people["friend"],
            "delivery_message_ref": "inline-77",
        },
    )

    asyncio.run(_gateway(gifts, users, api).deliver(intent))

    assert [method for method, _ in api.calls] == ["editMessageText", "sendMessage"]
    assert api.calls[0][1]["inline_message_id"] == "inline-77"
    assert "Boris" in api.calls[1][1]["text"]


def test_inline_answer_links_claim_code(gifts, users, cake, people, buy_unit) -> None:
    api = BotApi()
    unit = buy_unit(people["buyer"], cake)

    asyncio.run(
        _gateway(gifts, users, api).answer_inline_query(
            "q-9", [InlineOffer(unit=unit, gift=cake)], locale="en"
        )
    )

    ((method, body),) = api.calls
    assert method == "answerInlineQuery"
    assert body["is_personal"] is True
    (article,) = body["results"]
    assert article["id"] == str(unit.id)
    button = article["reply_markup"]["inline_keyboard"][0][0]
    assert button["url"].endswith(f"?startapp={unit.claim_code}")


def test_fetch_avatar_downloads_only_new_files(gifts, users) -> None:
    api = BotApi(
        results={
            "getChat": {"id": 5, "photo": {"small_file_id": "small-1"}},
            "getFile": {"file_path": "photos/file_1.jpg"},
        }
    )
    gateway = _gateway(gifts, users, api)

    unchanged = asyncio.run(gateway.fetch_avatar(5, "small-1"))
    assert unchanged.file_id == "small-1"
    assert unchanged.photo is None

    fresh = asyncio.run(gateway.fetch_avatar(5, None))
    assert fresh.photo == b"jpeg-bytes"
    assert [method for method, _ in api.calls] == ["getChat", "getChat", "getFile", "download"]


def test_worker_iteration_logs_and_continues() -> None:
    calls: list[int] = []

    def task() -> None:
        calls.append(1)
        raise RuntimeError("boom")

    worker = PeriodicWorker(name="test", interval=60, task=task)
    worker.run_once()
    worker.run_once()
    assert len(calls) == 2
