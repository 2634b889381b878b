# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

INVOICE_PAID = "invoice_paid"


class CryptoPayInvoiceDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    invoice_id: str
    status: str | None = None
    payload: str | None = None

    @field_validator("invoice_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: object) -> object:
        return str(value) if isinstance(value, int) else value


class CryptoPayUpdateDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    update_id: int | None = None
    update_type: str
    payload: CryptoPayInvoiceDTO | None = None


__all__ = ["INVOICE_PAID", "CryptoPayInvoiceDTO", "CryptoPayUpdateDTO"]
