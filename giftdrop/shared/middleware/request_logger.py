# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Per-request access log with a correlation id.

Webhook callers (Telegram, Crypto Pay) authenticate with headers, and the
Mini App sends its signed initData in a header or the JSON body, so none of
those are ever written to the log verbatim.
"""

from __future__ import annotations

import hashlib
import secrets
import time

from flask import Flask, Response, g, request

from giftdrop.shared.config import load_config
from giftdrop.shared.logging import (
    clear_correlation_id,
    get_correlation_id,
    logger,
    set_correlation_id,
)

REQUEST_ID_HEADER = "X-Request-ID"

_SECRET_HEADERS = frozenset(
    {
        "authorization",
        "cookie",
        "x-telegram-init-data",
        "x-telegram-bot-api-secret-token",
        "crypto-pay-api-signature",
    }
)
# Probes hit these every few seconds.
_QUIET_PATHS = frozenset({"/api/health", "/metrics"})


def _fingerprint(value: str) -> str:
    return f"<sha256:{hashlib.sha256(value.encode()).hexdigest()[:8]}>"


def _client_ip() -> str:
    forwarded = request.headers.get("X-Forwarded-For", "")
    return forwarded.split(",")[0].strip() or request.remote_addr or "unknown"


def _safe_headers() -> dict[str, str]:
    return {
        key: _fingerprint(value) if key.lower() in _SECRET_HEADERS else value
        for key, value in request.headers.items()
    }


def configure_request_logging(app: Flask) -> None:
    debug_mode = load_config().debug_logging

    @app.before_request
    def _open_request() -> None:
        set_correlation_id(request.headers.get(REQUEST_ID_HEADER) or secrets.token_urlsafe(8))
        g.request_started = time.perf_counter()
        if request.path in _QUIET_PATHS:
            return
        if debug_mode:
            logger.debug(
                f"http.in: {request.method} {request.path} ip={_client_ip()} "
                f"args={sorted(request.args)} headers={_safe_headers()} "
                f"bytes={request.content_length or 0}"
            )
        else:
            logger.info(f"http.in: {request.method} {request.path} ip={_client_ip()}")

    @app.after_request
    def _close_request(response: Response) -> Response:
        response.headers.setdefault(REQUEST_ID_HEADER, get_correlation_id())
        if request.path in _QUIET_PATHS and response.status_code < 400:
            return response
        elapsed = time.perf_counter() - g.get("request_started", time.perf_counter())
        logger.info(
            f"http.out: {request.method} {request.path} status={response.status_code} "
            f"user={g.get('user_id')} elapsed={elapsed * 1000:.1f}ms"
        )
        return response

    @app.teardown_request
    def _drop_context(exc: BaseException | None) -> None:
        if exc is not None:
            logger.error(f"http.fail: {type(exc).__name__} on {request.method} {request.path}")
        clear_correlation_id()


__all__ = ["REQUEST_ID_HEADER", "configure_request_logging"]
