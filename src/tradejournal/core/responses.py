# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""JSON envelope shared by every API endpoint.

    {"success": true, "data": ...}
    {"success": false, "message": "...", "errors": [...]}
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from tradejournal.core.results import Failure, FailureKind, Result

STATUS_BY_KIND: Dict[FailureKind, int] = {
    FailureKind.INVALID: 422,
    FailureKind.UNAUTHENTICATED: 401,
    FailureKind.CONFLICT: 409,
    FailureKind.NOT_FOUND: 404,
    FailureKind.INTERNAL: 500,
}


def api_response(data: Any, status: int = 200) -> JSONResponse:
    return JSONResponse({"success": True, "data": jsonable_encoder(data)}, status_code=status)


def api_error(
    message: str,
    status: int = 400,
    errors: Any = None,
    *,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    body: Dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = jsonable_encoder(errors)
    return JSONResponse(body, status_code=status, headers=dict(headers) if headers else None)


def unauthorized() -> JSONResponse:
    return api_error("Unauthorized", 401)


def validation_error(errors: Any) -> JSONResponse:
    return api_error("Validation error", 422, errors)


def server_error(message: str = "Internal server error") -> JSONResponse:
    return api_error(message, 500)


def failure_response(failure: Failure) -> JSONResponse:
    return api_error(failure.message, STATUS_BY_KIND[failure.kind], failure.errors)


def result_response(result: Result, status: int = 200) -> JSONResponse:
    if isinstance(result, Failure):
        return failure_response(result)
    return api_response(result.value, status)
