# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Explicit success/failure values returned by the service layer.

Services never raise for expected outcomes (unknown broker, bad credentials,
duplicate username). They return a `Failure` tagged with a `FailureKind`, and
the HTTP layer owns the translation to status codes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar, Union

T = TypeVar("T")


class FailureKind(str, Enum):
    INVALID = "invalid"
    UNAUTHENTICATED = "unauthenticated"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str
    errors: Optional[Any] = None


Result = Union[Success[T], Failure]


def not_found(resource: str = "Resource") -> Failure:
    return Failure(FailureKind.NOT_FOUND, f"{resource} not found")


def internal(message: str = "Internal server error") -> Failure:
    return Failure(FailureKind.INTERNAL, message)
