# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .codes import looks_like_claim_code, new_claim_code
from .entities import (
    DEFAULT_LOCALE,
    SUPPORTED_LOCALES,
    SUPPORTED_THEMES,
    ActionKind,
    ActionView,
    ClaimAccepted,
    ClaimError,
    ClaimRejected,
    ClaimResult,
    ConfirmedPurchase,
    GiftDefinition,
    InlineOffer,
    InvoiceAction,
    InvoiceRef,
    LedgerAction,
    NotificationEvent,
    NotificationIntent,
    PurchaseUnit,
    RankedUser,
    ReceiveAction,
    SendAction,
    UnitState,
    User,
    UserProfile,
)
from .exceptions import (
    GiftNotFoundError,
    InvalidArgumentError,
    NotFoundError,
    ProviderError,
    SoldOutError,
)

__all__ = [
    "DEFAULT_LOCALE",
    "SUPPORTED_LOCALES",
    "SUPPORTED_THEMES",
    "ActionKind",
    "ActionView",
    "ClaimAccepted",
    "ClaimError",
    "ClaimRejected",
    "ClaimResult",
    "ConfirmedPurchase",
    "GiftDefinition",
    "GiftNotFoundError",
    "InlineOffer",
    "InvalidArgumentError",
    "InvoiceAction",
    "InvoiceRef",
    "LedgerAction",
    "NotFoundError",
    "NotificationEvent",
    "NotificationIntent",
    "ProviderError",
    "PurchaseUnit",
    "RankedUser",
    "ReceiveAction",
    "SendAction",
    "SoldOutError",
    "UnitState",
    "User",
    "UserProfile",
    "looks_like_claim_code",
    "new_claim_code",
]
