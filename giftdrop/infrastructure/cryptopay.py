# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Crypto Pay API client and webhook signature check."""

from __future__ import annotations

import hashlib
import hmac
from decimal import Decimal

import httpx

from giftdrop.application.interfaces import PaymentProviderPort, ProviderInvoice
from giftdrop.domain.ledger import ProviderError
from giftdrop.infrastructure.resilience import CircuitBreaker, guarded_call
from giftdrop.shared.config import load_config
from giftdrop.shared.logging import logger

_config = load_config()

SIGNATURE_HEADER = "crypto-pay-api-signature"
TOKEN_HEADER = "Crypto-Pay-API-Token"


def verify_signature(token: str, raw_body: bytes, signature: str | None) -> bool:
    """HMAC-SHA256 of the raw body keyed with SHA256(token), hex encoded."""

    if not token or not signature:
        return False
    secret = hashlib.sha256(token.encode()).digest()
    expected = hmac.new(secret, raw_body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature.strip().lower())


class CryptoPayClient(PaymentProviderPort):
    """Invoice creation against Crypto Pay.

    ``createInvoice`` is not idempotent, so it is attempted exactly once;
    failures surface as :class:`ProviderError`.
    """

    def __init__(
        self,
        *,
        token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token = token if token is not None else _config.cryptopay.token
        self._base_url = (base_url or _config.cryptopay.url).rstrip("/")
        self._timeout = timeout or _config.cryptopay.timeout
        self._transport = transport
        self._breaker = CircuitBreaker.from_config("cryptopay")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
            headers={TOKEN_HEADER: self._token},
        )

    async def create_invoice(
        self, *, asset: str, amount: Decimal, payload: str, description: str
    ) -> ProviderInvoice:
        body = {
            "currency_type": "crypto",
            "asset": asset,
            "amount": format(amount, "f"),
            "description": description[:1024],
            "payload": payload,
        }
        try:
            async with self._client() as http:
                response = await guarded_call(
                    http.post,
                    "/api/createInvoice",
                    json=body,
                    breaker=self._breaker,
                    timeout=self._timeout,
                )
        except Exception as exc:
            logger.warning(f"cryptopay.create_invoice: transport failure {type(exc).__name__}")
            raise ProviderError("cryptopay", type(exc).__name__) from exc

        try:
            data = response.json()
        except ValueError:
            data = {}
        if response.status_code != 200 or not data.get("ok"):
            error = data.get("error") if isinstance(data, dict) else None
            logger.warning(
                f"cryptopay.create_invoice: rejected code={response.status_code} error={error}"
            )
            raise ProviderError("cryptopay", str(error or response.status_code))

        result = data.get("result") or {}
        invoice_id = result.get("invoice_id")
        url = (
            result.get("mini_app_invoice_url")
            or result.get("bot_invoice_url")
            or result.get("pay_url")
        )
        if invoice_id is None or not url:
            raise ProviderError("cryptopay", "malformed response")
        logger.info(f"cryptopay.create_invoice: ok invoice={invoice_id} asset={asset}")
        return ProviderInvoice(invoice_external_id=str(invoice_id), payment_url=url)


__all__ = ["CryptoPayClient", "SIGNATURE_HEADER", "verify_signature"]
