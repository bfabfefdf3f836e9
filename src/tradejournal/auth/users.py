# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Login and signup flows.

Both return a `Result`: the HTTP layer decides the status code. Failures never
carry internal detail; storage errors are logged here and reported generically.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError

from tradejournal.auth.passwords import hash_password, verify_password
from tradejournal.auth.session import Session, SessionCookie, SessionManager, User
from tradejournal.core.results import Failure, FailureKind, Result, Success
from tradejournal.infra.user_repo import UsernameTakenError, UserRecord

logger = logging.getLogger(__name__)

DEFAULT_REDIRECT = "/"

INVALID_CREDENTIALS = Failure(FailureKind.UNAUTHENTICATED, "Invalid credentials")
USERNAME_TAKEN = Failure(FailureKind.CONFLICT, "Username already taken")

_DUMMY_HASH: Optional[str] = None


class UserStore(Protocol):
    def find_user_by_username(self, username: str) -> Optional[UserRecord]: ...

    def username_exists(self, username: str) -> bool: ...

    def create_user_with_credential(self, username: str, hashed_password: str) -> User: ...


@dataclass(frozen=True)
class AuthOutcome:
    user: User
    session: Session
    cookie: SessionCookie
    redirect_to: str = DEFAULT_REDIRECT

    def to_payload(self, message: str) -> dict:
        return {
            "message": message,
            "user": {"id": self.user.id, "username": self.user.username},
            "redirect": self.redirect_to,
        }


def _dummy_hash() -> str:
    global _DUMMY_HASH
    if _DUMMY_HASH is None:
        _DUMMY_HASH = hash_password("not-a-real-password")
    return _DUMMY_HASH


def _start_session(sessions: SessionManager, user: User, redirect_to: str) -> AuthOutcome:
    session = sessions.create_session(user.id)
    return AuthOutcome(
        user=user,
        session=session,
        cookie=sessions.create_session_cookie(session),
        redirect_to=redirect_to or DEFAULT_REDIRECT,
    )


def login(
    users: UserStore,
    sessions: SessionManager,
    username: str,
    password: str,
    *,
    redirect_to: str = DEFAULT_REDIRECT,
) -> Result[AuthOutcome]:
    try:
        record = users.find_user_by_username(username)
        if record is None or not record.hashed_password:
            # Same cost as a real check so response time does not reveal the account.
            verify_password(_dummy_hash(), password)
            return INVALID_CREDENTIALS
        if not verify_password(record.hashed_password, password):
            return INVALID_CREDENTIALS
        return Success(_start_session(sessions, record.user, redirect_to))
    except SQLAlchemyError:
        logger.exception("Login failed for a storage reason")
        return Failure(FailureKind.INTERNAL, "Internal server error")


def signup(
    users: UserStore,
    sessions: SessionManager,
    username: str,
    password: str,
    *,
    redirect_to: str = DEFAULT_REDIRECT,
) -> Result[AuthOutcome]:
    try:
        if users.username_exists(username):
            return USERNAME_TAKEN
        try:
            user = users.create_user_with_credential(username, hash_password(password))
        except UsernameTakenError:
            return USERNAME_TAKEN
        logger.info("User %s signed up", user.id)
        return Success(_start_session(sessions, user, redirect_to))
    except SQLAlchemyError:
        logger.exception("Signup failed for a storage reason")
        return Failure(FailureKind.INTERNAL, "Failed to create user")
