# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from tradejournal.auth.session import SessionManager, User
from tradejournal.auth.users import login, signup
from tradejournal.core.responses import (
    api_error,
    api_response,
    failure_response,
    result_response,
    server_error,
    unauthorized,
    validation_error,
)
from tradejournal.core.results import Failure, Result, Success
from tradejournal.core.utils import df_to_csv_stream
from tradejournal.infra.db import Database
from tradejournal.infra.session_repo import SqlSessionStore
from tradejournal.infra.user_repo import SqlUserStore
from tradejournal.permissions import (
    current_user_optional,
    get_db,
    get_sessions,
    require_user,
    require_user_or_redirect,
    session_gate,
    set_session_cookie,
)
from tradejournal.schemas import AuthPayload, BrokerCreate, BrokerUpdate, is_valid_auth_mode
from tradejournal.services import broker_service
from tradejournal.services.seed_service import import_brokers_yaml

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

auth_router = APIRouter(prefix="/auth", tags=["auth"])
broker_router = APIRouter(prefix="/brokers", tags=["brokers"], dependencies=[Depends(require_user)])
pages_router = APIRouter(include_in_schema=False)


def get_users(request: Request) -> SqlUserStore:
    return request.app.state.users


def _broker_response(result: Result, status: int = 200):
    if isinstance(result, Success):
        value = result.value
        result = Success([b.to_api() for b in value] if isinstance(value, list) else value.to_api())
    return result_response(result, status)


# ------------------ Auth ------------------


@auth_router.post("/login")
def login_post(
    payload: AuthPayload,
    users: SqlUserStore = Depends(get_users),
    sessions: SessionManager = Depends(get_sessions),
):
    result = login(users, sessions, payload.username, payload.password)
    if isinstance(result, Failure):
        return failure_response(result)
    outcome = result.value
    resp = api_response(outcome.to_payload("Login successful"))
    set_session_cookie(resp, outcome.cookie)
    return resp


@auth_router.post("/signup")
def signup_post(
    payload: AuthPayload,
    users: SqlUserStore = Depends(get_users),
    sessions: SessionManager = Depends(get_sessions),
):
    result = signup(users, sessions, payload.username, payload.password)
    if isinstance(result, Failure):
        return failure_response(result)
    outcome = result.value
    resp = api_response(outcome.to_payload("Signup successful"))
    set_session_cookie(resp, outcome.cookie)
    return resp


@auth_router.api_route("/logout", methods=["GET", "POST"])
def logout(request: Request, sessions: SessionManager = Depends(get_sessions)):
    session = getattr(request.state, "session", None)
    if session is None:
        return unauthorized()
    try:
        sessions.invalidate_session(session.id)
    except SQLAlchemyError:
        logger.exception("Logout failed")
        return server_error()
    resp = RedirectResponse(url="/auth", status_code=303)
    set_session_cookie(resp, sessions.create_blank_session_cookie())
    return resp


# ------------------ Brokers ------------------


@broker_router.get("")
def brokers_list(db: Database = Depends(get_db)):
    return _broker_response(broker_service.list_brokers(db))


@broker_router.get("/export.csv")
def brokers_export(db: Database = Depends(get_db)):
    result = broker_service.list_brokers(db)
    if isinstance(result, Failure):
        return failure_response(result)
    return df_to_csv_stream(broker_service.brokers_frame(result.value), filename="brokers.csv")


@broker_router.post("")
def brokers_create(payload: BrokerCreate, db: Database = Depends(get_db)):
    return _broker_response(broker_service.create_broker(db, payload.model_dump()), 201)


@broker_router.get("/{broker_id}")
def brokers_get(broker_id: str, db: Database = Depends(get_db)):
    return _broker_response(broker_service.get_broker(db, broker_id))


@broker_router.put("/{broker_id}")
def brokers_update(broker_id: str, payload: BrokerUpdate, db: Database = Depends(get_db)):
    return _broker_response(broker_service.update_broker(db, broker_id, payload.changes()))


@broker_router.delete("/{broker_id}")
def brokers_delete(broker_id: str, db: Database = Depends(get_db)):
    return _broker_response(broker_service.delete_broker(db, broker_id))


# ------------------ Pages ------------------


@pages_router.get("/auth", response_class=HTMLResponse)
def auth_page(request: Request, mode: str = "login"):
    if current_user_optional(request):
        return RedirectResponse(url="/", status_code=303)
    if not is_valid_auth_mode(mode):
        mode = "login"
    return templates.TemplateResponse(request, "auth.html", {"mode": mode, "current_user": None})


@pages_router.get("/", response_class=HTMLResponse)
def home(request: Request, user: User = Depends(require_user_or_redirect), db: Database = Depends(get_db)):
    result = broker_service.list_brokers(db)
    brokers: List[broker_service.Broker] = []
    error = ""
    if isinstance(result, Failure):
        error = result.message
    else:
        brokers = result.value
    return templates.TemplateResponse(
        request,
        "brokers.html",
        {"current_user": user, "brokers": brokers, "error": error},
    )


# ------------------ Error handling ------------------


def _validation_details(exc: RequestValidationError) -> list:
    out = []
    for err in exc.errors():
        out.append(
            {
                "path": [p for p in err.get("loc", ()) if p != "body"],
                "message": err.get("msg", ""),
                "type": err.get("type", ""),
            }
        )
    return out


async def _on_validation_error(request: Request, exc: RequestValidationError):
    return validation_error(_validation_details(exc))


async def _on_http_error(request: Request, exc: StarletteHTTPException):
    return api_error(str(exc.detail), exc.status_code, headers=getattr(exc, "headers", None))


async def _on_unhandled_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return server_error()


# ------------------ App factory ------------------


def create_app(
    *,
    db: Optional[Database] = None,
    sessions: Optional[SessionManager] = None,
    seed_path: Optional[str] = None,
) -> FastAPI:
    db = db or Database()
    db.create_all()
    sessions = sessions or SessionManager(SqlSessionStore(db))

    app = FastAPI(title="Trading Journal")
    app.state.db = db
    app.state.sessions = sessions
    app.state.users = SqlUserStore(db)

    app.middleware("http")(session_gate)
    app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

    app.add_exception_handler(RequestValidationError, _on_validation_error)
    app.add_exception_handler(StarletteHTTPException, _on_http_error)
    app.add_exception_handler(Exception, _on_unhandled_error)

    app.include_router(auth_router)
    app.include_router(broker_router)
    app.include_router(pages_router)

    seed = seed_path or os.getenv("TJ_SEED_BROKERS")
    if seed:
        import_brokers_yaml(db, Path(seed))

    return app


app = create_app()
