# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Users and their password credentials."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from tradejournal.auth.session import User
from tradejournal.core.utils import generate_id
from tradejournal.infra.db import Database
from tradejournal.infra.models import UserAuthRow, UserRow

ID_ENTROPY = 15


class UsernameTakenError(Exception):
    pass


@dataclass(frozen=True)
class UserRecord:
    user: User
    hashed_password: Optional[str]


def _credential_row(user_id: str, hashed_password: str) -> UserAuthRow:
    return UserAuthRow(id=generate_id(ID_ENTROPY), user_id=user_id, hashed_password=hashed_password)


class SqlUserStore:
    def __init__(self, db: Database) -> None:
        self.db = db

    def find_user_by_username(self, username: str) -> Optional[UserRecord]:
        with self.db.session() as s:
            row = s.scalars(
                select(UserRow).options(selectinload(UserRow.credential)).where(UserRow.username == username)
            ).first()
            if row is None:
                return None
            hashed = row.credential.hashed_password if row.credential else None
            return UserRecord(user=User(id=row.id, username=row.username), hashed_password=hashed or None)

    def username_exists(self, username: str) -> bool:
        with self.db.session() as s:
            return s.scalar(select(UserRow.id).where(UserRow.username == username)) is not None

    def create_user_with_credential(self, username: str, hashed_password: str) -> User:
        """Insert the user and its credential in one transaction.

        Either both rows are committed or neither is.
        """
        user_id = generate_id(ID_ENTROPY)
        try:
            with self.db.session() as s:
                s.add(UserRow(id=user_id, username=username))
                s.flush()
                s.add(_credential_row(user_id, hashed_password))
                s.flush()
        except IntegrityError as e:
            if self.username_exists(username):
                raise UsernameTakenError(username) from e
            raise
        return User(id=user_id, username=username)
