# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from typing import Any

from flask import Blueprint, Response, g, jsonify, request
from pydantic import ValidationError

from giftdrop.application.use_cases.invoices.invoice_status import GetInvoiceStatusUseCase
from giftdrop.application.use_cases.invoices.open_invoice import OpenInvoiceUseCase
from giftdrop.application.use_cases.queries.catalog import ListCatalogUseCase
from giftdrop.application.use_cases.queries.leaderboard import (
    GetLeaderboardUseCase,
    GetUserPhotoUseCase,
    GetUserProfileUseCase,
    SearchUsersUseCase,
)
from giftdrop.application.use_cases.queries.listings import (
    ListActivityUseCase,
    ListGiftHistoryUseCase,
    ListInventoryUseCase,
    ListReceivedGiftsUseCase,
)
from giftdrop.application.use_cases.transfers.claim_unit import ClaimUnitUseCase
from giftdrop.application.use_cases.users.update_settings import UpdateSettingsUseCase
from giftdrop.application.use_cases.users.upsert_user import UpsertUserUseCase
from giftdrop.domain.ledger import ClaimAccepted, ClaimResult, InvalidArgumentError
from giftdrop.infrastructure.auth.init_data import init_data_required
from giftdrop.infrastructure.notifications import NotificationDispatcher
from giftdrop.infrastructure.observability import record_claim_outcome, record_invoice_event
from giftdrop.interfaces.http.dto.requests import SearchRequestDTO, SettingsRequestDTO
from giftdrop.interfaces.http.dto.serializers import (
    action_view_dict,
    gift_dict,
    ranked_user_dict,
    unit_dict,
    user_dict,
)
from giftdrop.shared.errors.validation import raise_validation_error
from giftdrop.shared.middleware.rate_limit import rate_limit
from giftdrop.shared.utils.asyncio_utils import run_async


def _offset() -> int:
    try:
        return max(int(request.args.get("offs", 0)), 0)
    except (TypeError, ValueError):
        return 0


def _int_arg(name: str, value: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError(name, "not an integer") from None


def _claim_dict(result: ClaimResult) -> dict[str, Any]:
    if isinstance(result, ClaimAccepted):
        return {
            "ok": True,
            "replay": result.replay,
            "unit": unit_dict(result.unit),
            "receive_id": result.receive.id if result.receive else None,
        }
    return {"ok": False, "error": result.code}


class ApiController:
    """Mini App API. Every route except the avatar needs a valid initData."""

    def __init__(
        self,
        *,
        upsert_user: UpsertUserUseCase,
        claim_unit: ClaimUnitUseCase,
        list_catalog: ListCatalogUseCase,
        gift_history: ListGiftHistoryUseCase,
        open_invoice: OpenInvoiceUseCase,
        invoice_status: GetInvoiceStatusUseCase,
        leaderboard: GetLeaderboardUseCase,
        user_profile: GetUserProfileUseCase,
        received_gifts: ListReceivedGiftsUseCase,
        inventory: ListInventoryUseCase,
        activity: ListActivityUseCase,
        search_users: SearchUsersUseCase,
        update_settings: UpdateSettingsUseCase,
        user_photo: GetUserPhotoUseCase,
        notifications: NotificationDispatcher,
    ) -> None:
        self._upsert_user = upsert_user
        self._claim_unit = claim_unit
        self._list_catalog = list_catalog
        self._gift_history = gift_history
        self._open_invoice = open_invoice
        self._invoice_status = invoice_status
        self._leaderboard = leaderboard
        self._user_profile = user_profile
        self._received_gifts = received_gifts
        self._inventory = inventory
        self._activity = activity
        self._search_users = search_users
        self._update_settings = update_settings
        self._user_photo = user_photo
        self._notifications = notifications

    def as_blueprint(self) -> Blueprint:
        bp = Blueprint("api", __name__)
        routes = (
            ("/api/init", self.init, "init"),
            ("/api/gifts", self.gifts, "gifts"),
            ("/api/gifts/<gift_id>/history", self.gift_history, "gift_history"),
            ("/api/gifts/<gift_id>/buy", self.buy, "buy"),
            ("/api/invoices/<invoice_id>", self.invoice, "invoice"),
            ("/api/leaderboard", self.leaderboard, "leaderboard"),
            ("/api/users/<user_id>", self.user, "user"),
            ("/api/users/<user_id>/gifts", self.user_gifts, "user_gifts"),
            ("/api/inventory", self.inventory, "inventory"),
            ("/api/actions", self.actions, "actions"),
            ("/api/search", self.search, "search"),
            ("/api/settings", self.settings, "settings"),
        )
        for rule, view, endpoint in routes:
            bp.add_url_rule(rule, view_func=view, methods=["POST"], endpoint=endpoint)
        bp.add_url_rule(
            "/user/<int:user_id>/photo.jpg", view_func=self.photo, methods=["GET"], endpoint="photo"
        )
        return bp

    @init_data_required
    def init(self):
        user = self._upsert_user.execute(g.init.user)
        result: dict[str, Any] = {}
        if g.init.start_param:
            claim = self._claim_unit.execute(g.init.start_param, user.id)
            if isinstance(claim, ClaimAccepted):
                record_claim_outcome("replay" if claim.replay else "accepted")
                self._notifications.dispatch(claim.notifications)
            else:
                record_claim_outcome(claim.code)
            result["claim"] = _claim_dict(claim)

        result.update(
            me=ranked_user_dict(self._user_profile.execute(user.id)),
            gifts=[gift_dict(gift) for gift in self._list_catalog.execute()],
            inventory=[unit_dict(unit, with_code=True) for unit in self._inventory.execute(user.id)],
            leaderboard=[user_dict(item) for item in self._leaderboard.execute()],
            received=[action_view_dict(view) for view in self._received_gifts.execute(user.id)],
        )
        return jsonify(result)

    @init_data_required
    def gifts(self):
        return jsonify([gift_dict(gift) for gift in self._list_catalog.execute()])

    @init_data_required
    def gift_history(self, gift_id: str):
        views = self._gift_history.execute(_int_arg("gift_id", gift_id), _offset())
        return jsonify([action_view_dict(view) for view in views])

    @init_data_required
    @rate_limit()
    def buy(self, gift_id: str):
        invoice = run_async(self._open_invoice.execute(g.user_id, _int_arg("gift_id", gift_id)))
        record_invoice_event("opened")
        return jsonify({"id": invoice.invoice_external_id, "url": invoice.payment_url})

    @init_data_required
    def invoice(self, invoice_id: str):
        status = self._invoice_status.execute(invoice_id, g.user_id)
        payload: dict[str, Any] = {"id": status.invoice_external_id, "status": status.status}
        if status.unit is not None:
            payload["unit"] = unit_dict(status.unit, with_code=True)
        return jsonify(payload)

    @init_data_required
    def leaderboard(self):
        return jsonify([user_dict(user) for user in self._leaderboard.execute()])

    @init_data_required
    def user(self, user_id: str):
        return jsonify(ranked_user_dict(self._user_profile.execute(_int_arg("user_id", user_id))))

    @init_data_required
    def user_gifts(self, user_id: str):
        views = self._received_gifts.execute(_int_arg("user_id", user_id), _offset())
        return jsonify([action_view_dict(view) for view in views])

    @init_data_required
    def inventory(self):
        units = self._inventory.execute(g.user_id, _offset())
        return jsonify([unit_dict(unit, with_code=True) for unit in units])

    @init_data_required
    def actions(self):
        views = self._activity.execute(g.user_id, _offset())
        return jsonify([action_view_dict(view) for view in views])

    @init_data_required
    def search(self):
        try:
            dto = SearchRequestDTO.model_validate(request.get_json(silent=True) or {})
        except ValidationError as exc:
            raise_validation_error(exc)
        users = self._search_users.execute(dto.query, _offset())
        return jsonify([user_dict(user) for user in users])

    @init_data_required
    def settings(self):
        try:
            dto = SettingsRequestDTO.model_validate(request.get_json(silent=True) or {})
        except ValidationError as exc:
            raise_validation_error(exc)
        user = self._update_settings.execute(g.user_id, locale=dto.locale, theme=dto.theme)
        return jsonify({"ok": True, "user": user_dict(user)})

    def photo(self, user_id: int):
        response = Response(self._user_photo.execute(user_id), mimetype="image/jpeg")
        response.headers["Cache-Control"] = "public, max-age=300"
        return response


__all__ = ["ApiController"]
