# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import re
import secrets

CLAIM_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789_-"
DEFAULT_CLAIM_CODE_LENGTH = 16


def new_claim_code(length: int = DEFAULT_CLAIM_CODE_LENGTH) -> str:
    """URL-safe token; 16 chars carry 96 bits of entropy."""

    return "".join(secrets.choice(CLAIM_CODE_ALPHABET) for _ in range(length))


def looks_like_claim_code(value: str, length: int = DEFAULT_CLAIM_CODE_LENGTH) -> bool:
    return bool(re.fullmatch(rf"[A-Za-z0-9_-]{{{length}}}", value or ""))
