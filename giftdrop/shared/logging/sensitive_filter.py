# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import re
from typing import Any

SENSITIVE_PATTERNS = [
    # Bot API urls embed the token in the path
    (r"(/bot)(\d+:[a-zA-Z0-9_\-]{30,})", r"\1***REDACTED***"),
    (r"(/file/bot)(\d+:[a-zA-Z0-9_\-]{30,})", r"\1***REDACTED***"),

    # API keys and secrets
    (r"(api[_-]?key\s*[:=]\s*['\"]?)([a-zA-Z0-9_\-]{20,})(['\"]?)", r"\1***REDACTED***\3"),
    (r"(secret[_-]?(?:key|token)?\s*[:=]\s*['\"]?)([a-zA-Z0-9_\-]{12,})(['\"]?)", r"\1***REDACTED***\3", re.IGNORECASE),

    # Tokens
    (r"(bearer\s+)([a-zA-Z0-9_\-\.]{20,})", r"\1***REDACTED***", re.IGNORECASE),
    (r"(token\s*[:=]\s*['\"]?)([a-zA-Z0-9_\-\.:]{20,})(['\"]?)", r"\1***REDACTED***\3", re.IGNORECASE),
    (r"(crypto-pay-api-(?:token|signature)['\"]?\s*[:=]\s*['\"]?)([a-zA-Z0-9:_\-]{16,})(['\"]?)", r"\1***REDACTED***\3", re.IGNORECASE),

    # Mini App initData
    (r"(hash=)([a-f0-9]{64})", r"\1***REDACTED***"),
    (r"(initData['\"]?\s*[:=]\s*['\"]?)([^'\"\s]{16,})(['\"]?)", r"\1***REDACTED***\3"),

    # Claim codes grant ownership of a unit
    (r"(claim[_-]?code\s*[:=]\s*['\"]?)([A-Za-z0-9_\-]{12,})(['\"]?)", r"\1***REDACTED***\3", re.IGNORECASE),
    (r"(start_?param\s*[:=]\s*['\"]?)([A-Za-z0-9_\-]{12,})(['\"]?)", r"\1***REDACTED***\3", re.IGNORECASE),

    # Database URLs with credentials
    (r"(postgresql|postgres|mysql|mongodb)://([^:]+):([^@]+)@", r"\1://\2:***REDACTED***@"),
]


def sanitize_message(message: str) -> str:
    sanitized = message

    for pattern_tuple in SENSITIVE_PATTERNS:
        if len(pattern_tuple) == 2:
            pattern, replacement = pattern_tuple
            flags = 0
        else:
            pattern, replacement, flags = pattern_tuple

        sanitized = re.sub(pattern, replacement, sanitized, flags=flags)

    return sanitized


def sanitize_record(record: dict[str, Any]) -> bool:
    if "message" in record:
        record["message"] = sanitize_message(record["message"])
    return True
