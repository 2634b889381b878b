from __future__ import annotations

import json
import os
from urllib.parse import urlencode

from giftdrop.infrastructure.auth.init_data import validate_init_data

TOKEN = os.environ["TELEGRAM_TOKEN"]


def _fields(user_id: int = 1001, **extra: str) -> dict[str, str]:
    user = {"id": user_id, "first_name": "Alice", "language_code": "en", "is_premium": True}
    return {"auth_date": "1735689600", "user": json.dumps(user), **extra}


def test_valid_init_data_yields_profile_and_start_param(sign_init_data) -> None:
    init = validate_init_data(sign_init_data(_fields(start_param="abcdefgh_ijkl-mn")), TOKEN)

    assert init is not None
    assert init.user.id == 1001
    assert init.user.first_name == "Alice"
    assert init.user.is_premium is True
    assert init.start_param == "abcdefgh_ijkl-mn"
    assert init.auth_date == 1735689600


def test_tampered_init_data_is_rejected(sign_init_data) -> None:
    tampered = sign_init_data(_fields()).replace("Alice", "Mallory")

    assert validate_init_data(tampered, TOKEN) is None


def test_foreign_token_and_missing_hash_are_rejected(sign_init_data) -> None:
    assert validate_init_data(sign_init_data(_fields(), "999:OTHER"), TOKEN) is None
    assert validate_init_data(urlencode(_fields()), TOKEN) is None
    assert validate_init_data("", TOKEN) is None


def test_missing_user_is_rejected(sign_init_data) -> None:
    assert validate_init_data(sign_init_data({"auth_date": "1"}), TOKEN) is None
