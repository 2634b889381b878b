# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from giftdrop.shared.errors.base import DomainError, InfrastructureError


class GiftNotFoundError(DomainError):
    code = "GiftNotFound"
    status = HTTPStatus.NOT_FOUND

    def __init__(self, gift_id: Any = None) -> None:
        super().__init__(context={"gift_id": gift_id} if gift_id is not None else None)


class SoldOutError(DomainError):
    code = "SoldOut"
    status = HTTPStatus.CONFLICT

    def __init__(self, gift_id: int) -> None:
        super().__init__(context={"gift_id": gift_id})


class NotFoundError(DomainError):
    code = "NotFound"
    status = HTTPStatus.NOT_FOUND

    def __init__(self, entity: str, key: Any) -> None:
        super().__init__(context={"entity": entity, "key": key})


class InvalidArgumentError(DomainError):
    code = "InvalidArgument"
    status = HTTPStatus.BAD_REQUEST

    def __init__(self, field: str, reason: str | None = None) -> None:
        context: dict[str, Any] = {"field": field}
        if reason:
            context["reason"] = reason
        super().__init__(context=context)


class ProviderError(InfrastructureError):
    def __init__(self, provider: str, reason: str | None = None) -> None:
        context: dict[str, Any] = {"provider": provider}
        if reason:
            context["reason"] = reason
        super().__init__("ProviderError", status=HTTPStatus.BAD_GATEWAY, context=context)
