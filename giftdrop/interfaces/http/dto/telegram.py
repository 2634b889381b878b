# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Subset of Bot API update objects the webhook consumes."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from giftdrop.domain.ledger import UserProfile


class _TelegramModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TelegramUserDTO(_TelegramModel):
    id: int
    first_name: str = ""
    last_name: str | None = None
    username: str | None = None
    is_premium: bool = False
    language_code: str | None = None

    def to_profile(self) -> UserProfile:
        return UserProfile(
            id=self.id,
            first_name=self.first_name,
            last_name=self.last_name,
            username=self.username,
            is_premium=self.is_premium,
            language_code=self.language_code,
        )


class ChatDTO(_TelegramModel):
    id: int


class MessageDTO(_TelegramModel):
    message_id: int
    from_: TelegramUserDTO | None = Field(None, alias="from")
    chat: ChatDTO
    text: str | None = None


class InlineQueryDTO(_TelegramModel):
    id: str
    from_: TelegramUserDTO = Field(alias="from")
    query: str = ""


class ChosenInlineResultDTO(_TelegramModel):
    result_id: str
    from_: TelegramUserDTO = Field(alias="from")
    inline_message_id: str | None = None
    query: str = ""


class TelegramUpdateDTO(_TelegramModel):
    update_id: int
    message: MessageDTO | None = None
    inline_query: InlineQueryDTO | None = None
    chosen_inline_result: ChosenInlineResultDTO | None = None


__all__ = [
    "ChosenInlineResultDTO",
    "InlineQueryDTO",
    "MessageDTO",
    "TelegramUpdateDTO",
    "TelegramUserDTO",
]
