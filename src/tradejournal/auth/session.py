# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

from tradejournal.core.utils import env_flag, generate_id, utc_now

logger = logging.getLogger(__name__)

COOKIE_NAME = os.getenv("TJ_COOKIE_NAME", "trading_journal_session")
DEFAULT_TTL_SECONDS = int(os.getenv("TJ_SESSION_TTL", "3600"))  # 1 hour
DEFAULT_REFRESH_RATIO = float(os.getenv("TJ_SESSION_REFRESH_RATIO", "0.5"))

SESSION_ID_ENTROPY = 25


@dataclass(frozen=True)
class User:
    id: str
    username: str


@dataclass(frozen=True)
class Session:
    id: str
    user_id: str
    expires_at: datetime
    fresh: bool = False


@dataclass(frozen=True)
class SessionValidation:
    session: Optional[Session]
    user: Optional[User]

    @property
    def fresh(self) -> bool:
        return bool(self.session and self.session.fresh)

    @property
    def valid(self) -> bool:
        return self.session is not None


ANONYMOUS = SessionValidation(session=None, user=None)


@dataclass(frozen=True)
class SessionCookie:
    name: str
    value: str
    attributes: Dict[str, Any] = field(default_factory=dict)


class SessionStore(Protocol):
    def get_session_and_user(self, session_id: str) -> Tuple[Optional[Session], Optional[User]]: ...

    def insert_session(self, session: Session) -> None: ...

    def update_session_expiration(self, session_id: str, expires_at: datetime) -> None: ...

    def delete_session(self, session_id: str) -> None: ...

    def delete_user_sessions(self, user_id: str) -> None: ...


def secure_cookies() -> bool:
    override = os.getenv("TJ_COOKIE_SECURE")
    if override is not None:
        return env_flag("TJ_COOKIE_SECURE")
    return os.getenv("TJ_ENV", "development").strip().lower() == "production"


def cookie_settings(secure: Optional[bool] = None) -> Dict[str, Any]:
    """Attributes shared by every session cookie, issued or blank."""
    return {
        "path": "/",
        "secure": secure_cookies() if secure is None else secure,
        "samesite": "strict",
        "httponly": True,
    }


class SessionManager:
    """Issues, validates, renews and invalidates server-side sessions.

    Expiration slides: a session validated after `refresh_ratio` of its TTL has
    elapsed gets a full new TTL and is reported as `fresh`, so the caller knows
    to send the cookie again. Sessions validated earlier are left untouched,
    which keeps ordinary requests read-only.

    Two requests renewing the same session concurrently both write a similar
    expiry; the last write wins.
    """

    def __init__(
        self,
        store: SessionStore,
        *,
        ttl: Optional[timedelta] = None,
        refresh_ratio: float = DEFAULT_REFRESH_RATIO,
        cookie_name: str = COOKIE_NAME,
        secure: Optional[bool] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if not 0 < refresh_ratio <= 1:
            raise ValueError("refresh_ratio must be in (0, 1]")
        self.store = store
        self.ttl = ttl if ttl is not None else timedelta(seconds=DEFAULT_TTL_SECONDS)
        self.refresh_ratio = refresh_ratio
        self.cookie_name = cookie_name
        self.secure = secure_cookies() if secure is None else secure
        self._clock = clock

    def create_session(self, user_id: str) -> Session:
        session = Session(
            id=generate_id(SESSION_ID_ENTROPY),
            user_id=user_id,
            expires_at=self._clock() + self.ttl,
            fresh=True,
        )
        self.store.insert_session(session)
        logger.info("Session created for user %s", user_id)
        return session

    def validate_session(self, session_id: str) -> SessionValidation:
        if not session_id:
            return ANONYMOUS

        session, user = self.store.get_session_and_user(session_id)
        if session is None or user is None:
            return ANONYMOUS

        now = self._clock()
        if now >= session.expires_at:
            try:
                self.store.delete_session(session.id)
            except Exception:
                logger.exception("Could not remove expired session of user %s", session.user_id)
            logger.debug("Expired session rejected for user %s", session.user_id)
            return ANONYMOUS

        renew_after = session.expires_at - self.ttl + self.ttl * self.refresh_ratio
        if now > renew_after:
            expires_at = now + self.ttl
            self.store.update_session_expiration(session.id, expires_at)
            logger.debug("Session renewed for user %s", session.user_id)
            return SessionValidation(
                session=Session(id=session.id, user_id=session.user_id, expires_at=expires_at, fresh=True),
                user=user,
            )

        return SessionValidation(
            session=Session(id=session.id, user_id=session.user_id, expires_at=session.expires_at),
            user=user,
        )

    def invalidate_session(self, session_id: str) -> None:
        self.store.delete_session(session_id)
        logger.info("Session invalidated")

    def invalidate_user_sessions(self, user_id: str) -> None:
        self.store.delete_user_sessions(user_id)
        logger.info("All sessions invalidated for user %s", user_id)

    def create_session_cookie(self, session: Session) -> SessionCookie:
        attrs = cookie_settings(self.secure)
        attrs["expires"] = session.expires_at
        return SessionCookie(name=self.cookie_name, value=session.id, attributes=attrs)

    def create_blank_session_cookie(self) -> SessionCookie:
        attrs = cookie_settings(self.secure)
        attrs["max_age"] = 0
        return SessionCookie(name=self.cookie_name, value="", attributes=attrs)
