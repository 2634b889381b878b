# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .interfaces import (
    AvatarSnapshot,
    MessagingGatewayPort,
    PaymentProviderPort,
    ProviderInvoice,
)

__all__ = [
    "AvatarSnapshot",
    "MessagingGatewayPort",
    "PaymentProviderPort",
    "ProviderInvoice",
]
