# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _ApiRequest(BaseModel):
    # Every Mini App call carries initData in the body next to its fields.
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    init_data: str | None = Field(None, alias="initData")


class SettingsRequestDTO(_ApiRequest):
    locale: str | None = None
    theme: str | None = None


class SearchRequestDTO(_ApiRequest):
    query: str = Field("", max_length=256)


__all__ = ["SearchRequestDTO", "SettingsRequestDTO"]
