from __future__ import annotations

import asyncio
import hashlib
import hmac
import json
from decimal import Decimal

import httpx
import pytest

from giftdrop.domain.ledger import ProviderError
from giftdrop.infrastructure.cryptopay import TOKEN_HEADER, CryptoPayClient, verify_signature


def _sign(token: str, body: bytes) -> str:
    return hmac.new(hashlib.sha256(token.encode()).digest(), body, hashlib.sha256).hexdigest()


def test_verify_signature() -> None:
    body = b'{"update_type":"invoice_paid"}'
    signature = _sign("tok", body)

    assert verify_signature("tok", body, signature)
    assert verify_signature("tok", body, signature.upper())
    assert not verify_signature("tok", body + b" ", signature)
    assert not verify_signature("other", body, signature)
    assert not verify_signature("tok", body, None)
    assert not verify_signature("", body, signature)


def _client(handler) -> CryptoPayClient:
    return CryptoPayClient(
        token="tok",
        base_url="https://pay.test",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


def test_create_invoice_posts_once_and_parses_result() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "ok": True,
                "result": {
                    "invoice_id": 777,
                    "bot_invoice_url": "https://t.me/CryptoBot?start=IV777",
                    "mini_app_invoice_url": "https://t.me/CryptoBot/app?startapp=invoice-IV777",
                },
            },
        )

    invoice = asyncio.run(
        _client(handler).create_invoice(
            asset="TON", amount=Decimal("3.50"), payload="2", description="Green Star"
        )
    )

    assert invoice.invoice_external_id == "777"
    assert invoice.payment_url == "https://t.me/CryptoBot/app?startapp=invoice-IV777"
    (request,) = seen
    assert request.url.path == "/api/createInvoice"
    assert request.headers[TOKEN_HEADER] == "tok"
    body = json.loads(request.content)
    assert body["asset"] == "TON"
    assert body["amount"] == "3.50"
    assert body["payload"] == "2"


def test_create_invoice_rejection_is_provider_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"ok": False, "error": {"code": 400, "name": "ASSET_INVALID"}})

    with pytest.raises(ProviderError):
        asyncio.run(
            _client(handler).create_invoice(
                asset="XXX", amount=Decimal("1"), payload="1", description="x"
            )
        )


def test_create_invoice_transport_failure_is_not_retried() -> None:
    attempts: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(ProviderError):
        asyncio.run(
            _client(handler).create_invoice(
                asset="TON", amount=Decimal("1"), payload="1", description="x"
            )
        )
    assert len(attempts) == 1
