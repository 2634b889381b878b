# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""JSON shapes returned by the HTTP API.

Claim codes are bearer secrets: they are only rendered for the owner's own
inventory and invoice status, never in shared feeds.
"""

from __future__ import annotations

from typing import Any

from giftdrop.domain.ledger import (
    ActionView,
    GiftDefinition,
    InvoiceAction,
    LedgerAction,
    PurchaseUnit,
    RankedUser,
    ReceiveAction,
    SendAction,
    User,
)


def _iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def gift_dict(gift: GiftDefinition) -> dict[str, Any]:
    return {
        "id": gift.id,
        "order": gift.display_order,
        "name": dict(gift.name),
        "price": format(gift.unit_price, "f"),
        "asset": gift.settlement_asset,
        "total": gift.total_supply,
        "sold": gift.sold_count,
        "available": gift.available,
        "image": gift.image,
        "color": gift.color,
        "animation": gift.animation,
    }


def user_dict(user: User | None) -> dict[str, Any] | None:
    if user is None:
        return None
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "username": user.username,
        "is_premium": user.is_premium,
        "locale": user.locale,
        "theme": user.theme,
        "gifts_received": user.gifts_received,
        "photo_url": f"/user/{user.id}/photo.jpg" if user.has_photo else None,
    }


def ranked_user_dict(ranked: RankedUser) -> dict[str, Any]:
    payload = user_dict(ranked.user) or {}
    payload["position"] = ranked.position
    return payload


def unit_dict(unit: PurchaseUnit, *, with_code: bool = False) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": unit.id,
        "kind": unit.kind.value,
        "created_at": _iso(unit.created_at),
        "gift_id": unit.gift_id,
        "user_id": unit.buyer_user_id,
        "price": format(unit.price, "f"),
        "asset": unit.asset,
        "state": unit.state.value,
        "receiver_id": unit.receiver_user_id,
        "send_id": unit.linked_send_action_id,
        "receive_id": unit.linked_receive_action_id,
    }
    if with_code:
        payload["code"] = unit.claim_code
        payload["delivered"] = unit.delivery_message_ref is not None
    return payload


def action_dict(action: LedgerAction) -> dict[str, Any]:
    if isinstance(action, PurchaseUnit):
        return unit_dict(action)
    base: dict[str, Any] = {
        "id": action.id,
        "kind": action.kind.value,
        "created_at": _iso(action.created_at),
        "gift_id": action.gift_id,
    }
    if isinstance(action, InvoiceAction):
        base.update(
            user_id=action.buyer_user_id,
            invoice_id=action.invoice_external_id,
            price=format(action.price, "f"),
            asset=action.asset,
        )
    elif isinstance(action, SendAction):
        base.update(
            user_id=action.sender_user_id,
            receiver_id=action.receiver_user_id,
            purchase_id=action.linked_purchase_action_id,
            receive_id=action.linked_receive_action_id,
        )
    elif isinstance(action, ReceiveAction):
        base.update(
            user_id=action.receiver_user_id,
            sender_id=action.sender_user_id,
            purchase_id=action.linked_purchase_action_id,
            send_id=action.linked_send_action_id,
        )
    return base


def action_view_dict(view: ActionView) -> dict[str, Any]:
    payload = action_dict(view.action)
    payload["user"] = user_dict(view.user)
    if view.sender is not None:
        payload["sender"] = user_dict(view.sender)
    if view.receiver is not None:
        payload["receiver"] = user_dict(view.receiver)
    return payload


__all__ = [
    "action_dict",
    "action_view_dict",
    "gift_dict",
    "ranked_user_dict",
    "unit_dict",
    "user_dict",
]
