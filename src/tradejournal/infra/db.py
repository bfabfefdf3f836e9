# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Database handle passed explicitly to stores and services.

There is no module-level engine: `create_app` builds one `Database` and hands
it to everything that needs storage, so tests can point it at a temp file.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from tradejournal.infra.models import Base

logger = logging.getLogger(__name__)

DATA_DIR = Path(os.getenv("TJ_DATA_DIR", "data")).resolve()
DEFAULT_DATABASE_URL = os.getenv(
    "TJ_DATABASE_URL", f"sqlite:///{DATA_DIR / 'trading_journal.db'}"
)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cur = dbapi_connection.cursor()
    cur.execute("PRAGMA foreign_keys=ON")
    cur.close()


class Database:
    def __init__(self, url: Optional[str] = None, *, echo: bool = False) -> None:
        self.url = url or DEFAULT_DATABASE_URL
        parsed = make_url(self.url)
        connect_args = {}
        if parsed.get_backend_name() == "sqlite":
            # Requests are served from FastAPI's threadpool.
            connect_args["check_same_thread"] = False
            if parsed.database and parsed.database != ":memory:":
                Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
        self.engine: Engine = create_engine(self.url, echo=echo, connect_args=connect_args)
        if parsed.get_backend_name() == "sqlite":
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        self._sessionmaker = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_all(self) -> None:
        Base.metadata.create_all(self.engine)
        logger.debug("Schema ready on %s", self.engine.url.render_as_string(hide_password=True))

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Unit of work: commit on success, roll back on any error."""
        s = self._sessionmaker()
        try:
            yield s
            s.commit()
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

    def dispose(self) -> None:
        self.engine.dispose()
