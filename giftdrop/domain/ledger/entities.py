# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Ledger entities: catalog gifts, users and the tagged Action records."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, TypeAlias

from giftdrop.domain.exceptions import InvariantViolation

DEFAULT_LOCALE = "en"
SUPPORTED_LOCALES: tuple[str, ...] = ("en", "ru")
SUPPORTED_THEMES: tuple[str, ...] = ("day", "night")


class ActionKind(str, Enum):
    INVOICE = "invoice"
    PURCHASE = "purchase"
    SEND = "send"
    RECEIVE = "receive"


class UnitState(str, Enum):
    HELD = "held"
    CLAIMED = "claimed"


class ClaimError(str, Enum):
    GIFT_NOT_FOUND = "GiftNotFound"
    GIFT_ALREADY_RECEIVED = "GiftAlreadyReceived"
    GIFT_OWN = "GiftOwn"


class NotificationEvent(str, Enum):
    PURCHASE_CONFIRMED = "purchase_confirmed"
    GIFT_RECEIVED = "gift_received"


@dataclass(slots=True, frozen=True)
class GiftDefinition:
    """Catalog entry with its inventory counters."""

    id: int
    display_order: int
    name: Mapping[str, str]
    unit_price: Decimal
    settlement_asset: str
    total_supply: int
    sold_count: int = 0
    image: str | None = None
    color: str | None = None
    animation: str | None = None

    def __post_init__(self) -> None:
        if self.total_supply < 0:
            raise InvariantViolation("total supply must be >= 0", field="total_supply")
        if not 0 <= self.sold_count <= self.total_supply:
            raise InvariantViolation(
                "sold count must be within [0, total supply]", field="sold_count"
            )
        if self.unit_price <= 0:
            raise InvariantViolation("unit price must be positive", field="unit_price")

    @property
    def available(self) -> int:
        return self.total_supply - self.sold_count

    @property
    def sold_out(self) -> bool:
        return self.sold_count >= self.total_supply

    def localized_name(self, locale: str | None) -> str:
        if locale and locale in self.name:
            return self.name[locale]
        return self.name.get(DEFAULT_LOCALE) or next(iter(self.name.values()), "")


@dataclass(slots=True, frozen=True)
class UserProfile:
    """Identity fields as reported by the messaging gateway."""

    id: int
    first_name: str
    last_name: str | None = None
    username: str | None = None
    is_premium: bool = False
    language_code: str | None = None

    def initial_locale(self) -> str:
        if self.language_code and self.language_code.lower().startswith("ru"):
            return "ru"
        return DEFAULT_LOCALE


@dataclass(slots=True, frozen=True)
class User:
    id: int
    first_name: str
    last_name: str | None
    username: str | None
    is_premium: bool
    locale: str
    theme: str | None
    gifts_received: int
    has_photo: bool = False

    def __post_init__(self) -> None:
        if self.gifts_received < 0:
            raise InvariantViolation("gifts received cannot be negative", field="gifts_received")


@dataclass(slots=True, frozen=True)
class InvoiceAction:
    kind: ClassVar[ActionKind] = ActionKind.INVOICE

    id: int
    created_at: datetime
    gift_id: int
    buyer_user_id: int
    invoice_external_id: str
    price: Decimal
    asset: str


@dataclass(slots=True, frozen=True)
class PurchaseUnit:
    """A paid, transferable gift unit.

    Held while ``receiver_user_id`` is unset; claimed once it is set. The
    claim transition happens at most once per unit.
    """

    kind: ClassVar[ActionKind] = ActionKind.PURCHASE

    id: int
    created_at: datetime
    gift_id: int
    buyer_user_id: int
    invoice_external_id: str | None
    price: Decimal
    asset: str
    claim_code: str
    delivery_message_ref: str | None = None
    receiver_user_id: int | None = None
    linked_send_action_id: int | None = None
    linked_receive_action_id: int | None = None

    @property
    def state(self) -> UnitState:
        return UnitState.HELD if self.receiver_user_id is None else UnitState.CLAIMED

    @property
    def is_deliverable(self) -> bool:
        """Held, not yet handed to any outbound message, no transfer links."""

        return (
            self.state is UnitState.HELD
            and self.delivery_message_ref is None
            and self.linked_send_action_id is None
            and self.linked_receive_action_id is None
        )

    @property
    def is_anomalous(self) -> bool:
        return self.state is UnitState.CLAIMED and (
            self.linked_receive_action_id is None or self.linked_send_action_id is None
        )


@dataclass(slots=True, frozen=True)
class SendAction:
    kind: ClassVar[ActionKind] = ActionKind.SEND

    id: int
    created_at: datetime
    gift_id: int
    sender_user_id: int
    receiver_user_id: int
    linked_purchase_action_id: int
    linked_receive_action_id: int | None = None


@dataclass(slots=True, frozen=True)
class ReceiveAction:
    kind: ClassVar[ActionKind] = ActionKind.RECEIVE

    id: int
    created_at: datetime
    gift_id: int
    receiver_user_id: int
    sender_user_id: int
    linked_purchase_action_id: int
    linked_send_action_id: int | None = None


LedgerAction: TypeAlias = InvoiceAction | PurchaseUnit | SendAction | ReceiveAction


def action_author_id(action: LedgerAction) -> int:
    """User who authored the record: buyer, sender or claimant."""

    if isinstance(action, SendAction):
        return action.sender_user_id
    if isinstance(action, ReceiveAction):
        return action.receiver_user_id
    return action.buyer_user_id


def action_counterpart_ids(action: LedgerAction) -> tuple[int | None, int | None]:
    """(sender, receiver) ids referenced by the record besides its author."""

    if isinstance(action, SendAction):
        return None, action.receiver_user_id
    if isinstance(action, ReceiveAction):
        return action.sender_user_id, None
    if isinstance(action, PurchaseUnit):
        return None, action.receiver_user_id
    return None, None


@dataclass(slots=True, frozen=True)
class NotificationIntent:
    """Ask the messaging gateway to tell ``user_id`` about ``event``."""

    user_id: int
    event: NotificationEvent
    locale: str = DEFAULT_LOCALE
    payload: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class InvoiceRef:
    invoice_external_id: str
    payment_url: str


@dataclass(slots=True, frozen=True)
class ConfirmedPurchase:
    unit: PurchaseUnit
    reserved: bool
    notifications: tuple[NotificationIntent, ...] = ()


@dataclass(slots=True, frozen=True)
class ClaimAccepted:
    unit: PurchaseUnit
    receive: ReceiveAction | None
    send: SendAction | None = None
    replay: bool = False
    notifications: tuple[NotificationIntent, ...] = ()


@dataclass(slots=True, frozen=True)
class ClaimRejected:
    error: ClaimError

    @property
    def code(self) -> str:
        return self.error.value


ClaimResult: TypeAlias = ClaimAccepted | ClaimRejected


@dataclass(slots=True, frozen=True)
class ActionView:
    """Ledger record joined with the users it references."""

    action: LedgerAction
    user: User | None = None
    sender: User | None = None
    receiver: User | None = None


@dataclass(slots=True, frozen=True)
class RankedUser:
    user: User
    position: int


@dataclass(slots=True, frozen=True)
class InlineOffer:
    unit: PurchaseUnit
    gift: GiftDefinition
