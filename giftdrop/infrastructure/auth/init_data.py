# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Telegram Mini App ``initData`` validation."""

from __future__ import annotations

import hashlib
import hmac
import json
from dataclasses import dataclass
from functools import wraps
from typing import Any
from urllib.parse import parse_qsl

from flask import g, request

from giftdrop.domain.ledger import UserProfile
from giftdrop.shared.config import load_config
from giftdrop.shared.errors import UnauthorizedError
from giftdrop.shared.logging import logger

INIT_DATA_HEADER = "X-Telegram-Init-Data"


@dataclass(slots=True, frozen=True)
class InitData:
    user: UserProfile
    start_param: str | None = None
    auth_date: int | None = None


def _profile_from(raw: dict[str, Any]) -> UserProfile:
    return UserProfile(
        id=int(raw["id"]),
        first_name=str(raw.get("first_name") or ""),
        last_name=raw.get("last_name"),
        username=raw.get("username"),
        is_premium=bool(raw.get("is_premium", False)),
        language_code=raw.get("language_code"),
    )


def validate_init_data(init_data: str, bot_token: str) -> InitData | None:
    """Check the signature and decode the payload; ``None`` when invalid.

    The data-check string is every field except ``hash`` as ``key=value``,
    sorted by key and joined with newlines. The key is
    HMAC-SHA256("WebAppData", bot_token).
    """

    if not init_data or not bot_token:
        return None
    fields = dict(parse_qsl(init_data, keep_blank_values=True))
    received = fields.pop("hash", None)
    if not received:
        return None

    check_string = "\n".join(f"{key}={fields[key]}" for key in sorted(fields))
    secret = hmac.new(b"WebAppData", bot_token.encode(), hashlib.sha256).digest()
    expected = hmac.new(secret, check_string.encode(), hashlib.sha256).hexdigest()
    if not hmac.compare_digest(expected, received):
        return None

    try:
        user = _profile_from(json.loads(fields["user"]))
    except (KeyError, TypeError, ValueError):
        return None
    auth_date = fields.get("auth_date")
    return InitData(
        user=user,
        start_param=fields.get("start_param") or None,
        auth_date=int(auth_date) if auth_date and auth_date.isdigit() else None,
    )


def _raw_init_data() -> str:
    header = request.headers.get(INIT_DATA_HEADER)
    if header is not None:
        return header
    payload = request.get_json(silent=True) or {}
    value = payload.get("initData") if isinstance(payload, dict) else None
    return value if isinstance(value, str) else ""


def _dev_init_data() -> InitData | None:
    config = load_config()
    if config.is_production() or config.security.dev_init_user_id is None:
        return None
    return InitData(user=UserProfile(id=config.security.dev_init_user_id, first_name="Developer"))


def init_data_required(f):
    @wraps(f)
    def inner(*args, **kwargs):
        raw = _raw_init_data()
        init = validate_init_data(raw, load_config().telegram.token)
        if init is None and raw == "":
            init = _dev_init_data()
        if init is None:
            logger.warning(f"initData rejected on {request.method} {request.path}")
            raise UnauthorizedError("invalid_init_data")
        g.init = init
        g.user_id = init.user.id
        return f(*args, **kwargs)

    return inner


__all__ = ["INIT_DATA_HEADER", "InitData", "init_data_required", "validate_init_data"]
