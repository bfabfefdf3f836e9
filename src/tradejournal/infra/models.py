# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from tradejournal.core.utils import utc_now
from tradejournal.schemas import ACCOUNT_MAX, CURRENCY_MAX, NAME_MAX


class Base(DeclarativeBase):
    pass


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    username: Mapped[str] = mapped_column(String(31), unique=True, nullable=False, index=True)

    credential: Mapped[Optional["UserAuthRow"]] = relationship(back_populates="user", uselist=False)

    def __repr__(self) -> str:
        return f"<UserRow id={self.id!r} username={self.username!r}>"


class UserAuthRow(Base):
    """Password credential, one per user."""

    __tablename__ = "user_auth"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)

    user: Mapped[UserRow] = relationship(back_populates="credential")


class SessionRow(Base):
    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)


class BrokerRow(Base):
    __tablename__ = "brokers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(NAME_MAX), unique=True, nullable=False)
    account_number: Mapped[Optional[str]] = mapped_column(String(ACCOUNT_MAX), nullable=True)
    currency: Mapped[str] = mapped_column(String(CURRENCY_MAX), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )
