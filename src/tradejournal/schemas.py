# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Request bodies accepted by the JSON API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

AUTH_MODES = ("login", "signup")

# Column sizes of the brokers table.
NAME_MAX = 255
ACCOUNT_MAX = 255
CURRENCY_MAX = 16


def is_valid_auth_mode(mode: object) -> bool:
    return isinstance(mode, str) and mode in AUTH_MODES


class AuthPayload(BaseModel):
    username: str = Field(min_length=3, max_length=31)
    password: str = Field(min_length=6, max_length=255)


class BrokerCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, max_length=NAME_MAX)
    account_number: Optional[str] = Field(default=None, alias="accountNumber", max_length=ACCOUNT_MAX)
    currency: str = Field(min_length=1, max_length=CURRENCY_MAX)


class BrokerUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=NAME_MAX)
    account_number: Optional[str] = Field(default=None, alias="accountNumber", max_length=ACCOUNT_MAX)
    currency: Optional[str] = Field(default=None, min_length=1, max_length=CURRENCY_MAX)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)
