from __future__ import annotations

import os
import tempfile
from decimal import Decimal
from pathlib import Path

_TMP = Path(tempfile.mkdtemp(prefix="giftdrop-tests-"))
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TMP / 'default.db'}")
os.environ.setdefault("LOG_FILE", str(_TMP / "giftdrop.log"))
os.environ.setdefault("TELEGRAM_TOKEN", "123456:TEST-TOKEN")
os.environ.setdefault("TELEGRAM_USERNAME", "giftdrop_test_bot")
os.environ.setdefault("SERVER_SECRET", "webhook-secret")
os.environ.setdefault("CRYPTOPAY_TOKEN", "cryptopay-token")
os.environ.setdefault("ENABLE_RATE_LIMIT", "false")
os.environ.setdefault("RESILIENCE_RETRIES", "0")

import pytest  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from giftdrop.domain.ledger import GiftDefinition, UserProfile  # noqa: E402
from giftdrop.infrastructure.db import build_engine, init_db  # noqa: E402
from giftdrop.infrastructure.repositories.actions import SqlAlchemyActionRepository  # noqa: E402
from giftdrop.infrastructure.repositories.gifts import SqlAlchemyGiftRepository  # noqa: E402
from giftdrop.infrastructure.repositories.users import SqlAlchemyUserRepository  # noqa: E402

BUYER_ID = 1001
FRIEND_ID = 2002
STRANGER_ID = 3003


@pytest.fixture()
def engine(tmp_path: Path):
    engine = build_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def gifts(session_factory) -> SqlAlchemyGiftRepository:
    return SqlAlchemyGiftRepository(session_factory)


@pytest.fixture()
def users(session_factory) -> SqlAlchemyUserRepository:
    return SqlAlchemyUserRepository(session_factory)


@pytest.fixture()
def actions(session_factory) -> SqlAlchemyActionRepository:
    return SqlAlchemyActionRepository(session_factory)


@pytest.fixture()
def cake(gifts: SqlAlchemyGiftRepository) -> GiftDefinition:
    gift = GiftDefinition(
        id=1,
        display_order=1,
        name={"en": "Delicious Cake", "ru": "Вкусный торт"},
        unit_price=Decimal("10"),
        settlement_asset="USDT",
        total_supply=500,
        image="delicious-cake",
    )
    gifts.save(gift)
    return gift


@pytest.fixture()
def people(users: SqlAlchemyUserRepository) -> dict[str, int]:
    users.upsert(UserProfile(id=BUYER_ID, first_name="Alice", language_code="en"))
    users.upsert(UserProfile(id=FRIEND_ID, first_name="Boris", language_code="ru"))
    users.upsert(UserProfile(id=STRANGER_ID, first_name="Carol", username="carol_c"))
    return {"buyer": BUYER_ID, "friend": FRIEND_ID, "stranger": STRANGER_ID}


@pytest.fixture()
def buy_unit(gifts, users, actions):
    """Open and confirm an invoice; returns the resulting purchase unit."""

    from datetime import UTC, datetime
    from itertools import count

    from giftdrop.application.services.inventory import InventoryService
    from giftdrop.application.use_cases.invoices.confirm_payment import ConfirmPaymentUseCase

    confirm = ConfirmPaymentUseCase(
        actions=actions, users=users, inventory=InventoryService(gifts)
    )
    invoice_ids = count(5000)

    def _buy(buyer_user_id: int, gift: GiftDefinition):
        invoice_id = str(next(invoice_ids))
        actions.add_invoice(
            buyer_user_id=buyer_user_id,
            gift_id=gift.id,
            invoice_external_id=invoice_id,
            price=gift.unit_price,
            asset=gift.settlement_asset,
            created_at=datetime.now(UTC),
        )
        confirmed = confirm.execute(invoice_id)
        assert confirmed is not None
        return confirmed.unit

    return _buy


def _sign_init_data(fields: dict[str, str], token: str | None = None) -> str:
    import hashlib
    import hmac
    from urllib.parse import urlencode

    token = token or os.environ["TELEGRAM_TOKEN"]
    check_string = "\n".join(f"{key}={fields[key]}" for key in sorted(fields))
    secret = hmac.new(b"WebAppData", token.encode(), hashlib.sha256).digest()
    digest = hmac.new(secret, check_string.encode(), hashlib.sha256).hexdigest()
    return urlencode({**fields, "hash": digest})


@pytest.fixture()
def sign_init_data():
    """Build a Mini App initData string signed with the test bot token."""

    return _sign_init_data
