# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from typing import Optional

from fastapi import HTTPException, Request
from starlette.concurrency import run_in_threadpool
from starlette.responses import Response

from tradejournal.auth.session import ANONYMOUS, SessionCookie, SessionManager, SessionValidation, User, cookie_settings
from tradejournal.core.responses import server_error
from tradejournal.infra.db import Database

logger = logging.getLogger(__name__)

__all__ = [
    "cookie_settings",
    "current_user_optional",
    "get_db",
    "get_sessions",
    "require_user",
    "require_user_or_redirect",
    "session_gate",
    "set_session_cookie",
]


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_sessions(request: Request) -> SessionManager:
    return request.app.state.sessions


def set_session_cookie(response: Response, cookie: SessionCookie) -> None:
    response.set_cookie(cookie.name, cookie.value, **cookie.attributes)


def _sets_cookie(response: Response, name: str) -> bool:
    prefix = f"{name}=".encode("latin-1")
    return any(k == b"set-cookie" and v.startswith(prefix) for k, v in response.raw_headers)


async def session_gate(request: Request, call_next):
    """Resolve the session cookie into `request.state.user` / `request.state.session`.

    Never rejects a request; handlers decide what needs a user. A fresh session
    gets its cookie reissued and an unknown or expired one gets a blank cookie,
    unless the handler already wrote the session cookie itself. Errors that
    escape the handler become the 500 envelope here so the directive still
    reaches the client.
    """
    sessions: SessionManager = request.app.state.sessions
    session_id = request.cookies.get(sessions.cookie_name)

    result: SessionValidation = ANONYMOUS
    directive: Optional[SessionCookie] = None
    if session_id:
        try:
            result = await run_in_threadpool(sessions.validate_session, session_id)
        except Exception:
            # Store unreachable: serve anonymously, keep the client's cookie.
            logger.exception("Session validation failed")
            result = ANONYMOUS
        else:
            if result.session is None:
                directive = sessions.create_blank_session_cookie()
            elif result.fresh:
                directive = sessions.create_session_cookie(result.session)

    request.state.user = result.user
    request.state.session = result.session

    try:
        response = await call_next(request)
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        response = server_error()
    if directive is not None and not _sets_cookie(response, sessions.cookie_name):
        set_session_cookie(response, directive)
    return response


def current_user_optional(request: Request) -> Optional[User]:
    return getattr(request.state, "user", None)


def require_user(request: Request) -> User:
    u = current_user_optional(request)
    if u:
        return u
    raise HTTPException(status_code=401, detail="Unauthorized")


def require_user_or_redirect(request: Request) -> User:
    u = current_user_optional(request)
    if u:
        return u
    raise HTTPException(status_code=303, detail="Login required", headers={"Location": "/auth"})
