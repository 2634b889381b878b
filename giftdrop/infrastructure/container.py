# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable
from functools import cached_property

from sqlalchemy.orm import Session

from giftdrop.application.services.inventory import InventoryService
from giftdrop.application.use_cases.consistency.find_claim_anomalies import (
    FindClaimAnomaliesUseCase,
)
from giftdrop.application.use_cases.invoices.confirm_payment import ConfirmPaymentUseCase
from giftdrop.application.use_cases.invoices.invoice_status import GetInvoiceStatusUseCase
from giftdrop.application.use_cases.invoices.open_invoice import OpenInvoiceUseCase
from giftdrop.application.use_cases.invoices.record_delivery import RecordDeliveryUseCase
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
from giftdrop.application.use_cases.transfers.mark_handed import (
    MarkHandedToRecipientMessageUseCase,
)
from giftdrop.application.use_cases.transfers.resolve_inline_query import (
    ResolveInlineQueryUseCase,
)
from giftdrop.application.use_cases.users.refresh_avatars import RefreshAvatarsUseCase
from giftdrop.application.use_cases.users.update_settings import UpdateSettingsUseCase
from giftdrop.application.use_cases.users.upsert_user import UpsertUserUseCase
from giftdrop.infrastructure.cryptopay import CryptoPayClient
from giftdrop.infrastructure.db import SessionLocal
from giftdrop.infrastructure.notifications import NotificationDispatcher
from giftdrop.infrastructure.observability import LEDGER_ANOMALIES
from giftdrop.infrastructure.repositories.actions import SqlAlchemyActionRepository
from giftdrop.infrastructure.repositories.gifts import SqlAlchemyGiftRepository
from giftdrop.infrastructure.repositories.users import SqlAlchemyUserRepository
from giftdrop.infrastructure.telegram import TelegramBotGateway
from giftdrop.infrastructure.workers import PeriodicWorker
from giftdrop.interfaces.http.controllers.api_controller import ApiController
from giftdrop.interfaces.http.controllers.misc_controller import MiscController
from giftdrop.interfaces.http.controllers.payments_controller import PaymentsController
from giftdrop.interfaces.http.controllers.telegram_controller import TelegramController
from giftdrop.shared.config import AppConfig, load_config
from giftdrop.shared.utils.asyncio_utils import run_async


class Container:
    def __init__(
        self,
        *,
        config: AppConfig | None = None,
        session_factory: Callable[[], Session] | None = None,
    ) -> None:
        self.config = config or load_config()
        self.session_factory = session_factory or SessionLocal

    # Repositories

    @cached_property
    def gift_repository(self) -> SqlAlchemyGiftRepository:
        return SqlAlchemyGiftRepository(self.session_factory)

    @cached_property
    def user_repository(self) -> SqlAlchemyUserRepository:
        return SqlAlchemyUserRepository(self.session_factory)

    @cached_property
    def action_repository(self) -> SqlAlchemyActionRepository:
        return SqlAlchemyActionRepository(self.session_factory)

    # Adapters

    @cached_property
    def payment_provider(self) -> CryptoPayClient:
        return CryptoPayClient()

    @cached_property
    def gateway(self) -> TelegramBotGateway:
        return TelegramBotGateway(gifts=self.gift_repository, users=self.user_repository)

    @cached_property
    def notifications(self) -> NotificationDispatcher:
        return NotificationDispatcher(self.gateway)

    @cached_property
    def inventory_service(self) -> InventoryService:
        return InventoryService(self.gift_repository)

    # Use cases

    @cached_property
    def upsert_user_use_case(self) -> UpsertUserUseCase:
        return UpsertUserUseCase(users=self.user_repository)

    @cached_property
    def update_settings_use_case(self) -> UpdateSettingsUseCase:
        return UpdateSettingsUseCase(users=self.user_repository)

    @cached_property
    def refresh_avatars_use_case(self) -> RefreshAvatarsUseCase:
        return RefreshAvatarsUseCase(
            users=self.user_repository,
            gateway=self.gateway,
            max_age=self.config.ledger.avatar_max_age,
        )

    @cached_property
    def open_invoice_use_case(self) -> OpenInvoiceUseCase:
        return OpenInvoiceUseCase(
            gifts=self.gift_repository,
            users=self.user_repository,
            actions=self.action_repository,
            provider=self.payment_provider,
            inventory=self.inventory_service,
        )

    @cached_property
    def confirm_payment_use_case(self) -> ConfirmPaymentUseCase:
        return ConfirmPaymentUseCase(
            actions=self.action_repository,
            users=self.user_repository,
            inventory=self.inventory_service,
            claim_code_length=self.config.ledger.claim_code_length,
        )

    @cached_property
    def invoice_status_use_case(self) -> GetInvoiceStatusUseCase:
        return GetInvoiceStatusUseCase(actions=self.action_repository)

    @cached_property
    def claim_unit_use_case(self) -> ClaimUnitUseCase:
        return ClaimUnitUseCase(actions=self.action_repository, users=self.user_repository)

    @cached_property
    def record_delivery_use_case(self) -> RecordDeliveryUseCase:
        return RecordDeliveryUseCase(actions=self.action_repository)

    @cached_property
    def mark_handed_use_case(self) -> MarkHandedToRecipientMessageUseCase:
        return MarkHandedToRecipientMessageUseCase(record_delivery=self.record_delivery_use_case)

    @cached_property
    def resolve_inline_query_use_case(self) -> ResolveInlineQueryUseCase:
        return ResolveInlineQueryUseCase(
            gifts=self.gift_repository,
            actions=self.action_repository,
            page_size=self.config.ledger.page_size,
            claim_code_length=self.config.ledger.claim_code_length,
        )

    @cached_property
    def find_claim_anomalies_use_case(self) -> FindClaimAnomaliesUseCase:
        return FindClaimAnomaliesUseCase(actions=self.action_repository)

    def _paged(self, cls):
        return cls(
            actions=self.action_repository,
            users=self.user_repository,
            page_size=self.config.ledger.page_size,
        )

    # Controllers

    @cached_property
    def api_controller(self) -> ApiController:
        users = self.user_repository
        return ApiController(
            upsert_user=self.upsert_user_use_case,
            claim_unit=self.claim_unit_use_case,
            list_catalog=ListCatalogUseCase(gifts=self.gift_repository),
            gift_history=ListGiftHistoryUseCase(
                gifts=self.gift_repository,
                actions=self.action_repository,
                users=users,
                page_size=self.config.ledger.page_size,
            ),
            open_invoice=self.open_invoice_use_case,
            invoice_status=self.invoice_status_use_case,
            leaderboard=GetLeaderboardUseCase(
                users=users, size=self.config.ledger.leaderboard_size
            ),
            user_profile=GetUserProfileUseCase(users=users),
            received_gifts=self._paged(ListReceivedGiftsUseCase),
            inventory=self._paged(ListInventoryUseCase),
            activity=self._paged(ListActivityUseCase),
            search_users=SearchUsersUseCase(users=users, limit=self.config.ledger.leaderboard_size),
            update_settings=self.update_settings_use_case,
            user_photo=GetUserPhotoUseCase(users=users),
            notifications=self.notifications,
        )

    @cached_property
    def telegram_controller(self) -> TelegramController:
        return TelegramController(
            webhook_secret=self.config.telegram.webhook_secret,
            upsert_user=self.upsert_user_use_case,
            resolve_inline_query=self.resolve_inline_query_use_case,
            mark_handed=self.mark_handed_use_case,
            gateway=self.gateway,
        )

    @cached_property
    def payments_controller(self) -> PaymentsController:
        return PaymentsController(
            token=self.config.cryptopay.token,
            confirm_payment=self.confirm_payment_use_case,
            notifications=self.notifications,
        )

    @cached_property
    def misc_controller(self) -> MiscController:
        return MiscController(metrics_enabled=self.config.observability.metrics_enabled)

    # Background workers

    def _check_consistency(self) -> None:
        LEDGER_ANOMALIES.set(len(self.find_claim_anomalies_use_case.execute()))

    @cached_property
    def workers(self) -> list[PeriodicWorker]:
        return [
            PeriodicWorker(
                name="avatars",
                interval=self.config.ledger.avatar_refresh_interval,
                task=lambda: run_async(self.refresh_avatars_use_case.execute()),
            ),
            PeriodicWorker(
                name="consistency",
                interval=self.config.ledger.consistency_check_interval,
                task=self._check_consistency,
            ),
        ]


container = Container()
