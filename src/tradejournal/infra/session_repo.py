# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import delete, select, update

from tradejournal.auth.session import Session, User
from tradejournal.core.utils import as_utc
from tradejournal.infra.db import Database
from tradejournal.infra.models import SessionRow, UserRow


class SqlSessionStore:
    """Session storage over the `sessions` table."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def get_session_and_user(self, session_id: str) -> Tuple[Optional[Session], Optional[User]]:
        with self.db.session() as s:
            row = s.execute(
                select(SessionRow, UserRow)
                .join(UserRow, UserRow.id == SessionRow.user_id)
                .where(SessionRow.id == session_id)
            ).first()
            if row is None:
                return None, None
            sess_row, user_row = row
            return (
                Session(id=sess_row.id, user_id=sess_row.user_id, expires_at=as_utc(sess_row.expires_at)),
                User(id=user_row.id, username=user_row.username),
            )

    def insert_session(self, session: Session) -> None:
        with self.db.session() as s:
            s.add(SessionRow(id=session.id, user_id=session.user_id, expires_at=session.expires_at))

    def update_session_expiration(self, session_id: str, expires_at: datetime) -> None:
        with self.db.session() as s:
            s.execute(update(SessionRow).where(SessionRow.id == session_id).values(expires_at=expires_at))

    def delete_session(self, session_id: str) -> None:
        with self.db.session() as s:
            s.execute(delete(SessionRow).where(SessionRow.id == session_id))

    def delete_user_sessions(self, user_id: str) -> None:
        with self.db.session() as s:
            s.execute(delete(SessionRow).where(SessionRow.user_id == user_id))
