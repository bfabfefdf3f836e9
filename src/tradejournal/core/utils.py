# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import base64
import io
import os
import secrets
from datetime import datetime, timezone

import pandas as pd
from fastapi.responses import StreamingResponse


def env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "y"}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def generate_id(entropy_size: int) -> str:
    """Random id with `entropy_size` bytes of entropy, lowercase base32 without padding."""
    raw = secrets.token_bytes(entropy_size)
    return base64.b32encode(raw).decode("ascii").rstrip("=").lower()


def df_to_csv_stream(df: pd.DataFrame, *, filename: str = "") -> StreamingResponse:
    """Stream a dataframe as CSV without writing to disk."""
    buf = io.StringIO()
    df.to_csv(buf, index=False)
    buf.seek(0)
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'} if filename else None
    return StreamingResponse(iter([buf.getvalue()]), media_type="text/csv", headers=headers)
