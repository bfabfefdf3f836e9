# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Load brokers from a YAML file.

Expected layout:

    brokers:
      - name: Interactive Brokers
        account_number: U1234567
        currency: USD
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml
from sqlalchemy import select

from tradejournal.infra.db import Database
from tradejournal.infra.models import BrokerRow
from tradejournal.services.broker_service import normalize_fields

logger = logging.getLogger(__name__)


def _load_entries(path: Path) -> List[Dict[str, Any]]:
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    entries = (raw.get("brokers") or []) if isinstance(raw, dict) else []
    out: List[Dict[str, Any]] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        name = str(entry.get("name") or "").strip()
        currency = str(entry.get("currency") or "").strip()
        if not name or not currency:
            logger.warning("Skipping broker entry without name/currency in %s", path)
            continue
        account = entry.get("account_number")
        fields = {
            "name": name,
            "account_number": str(account).strip() if account not in (None, "") else None,
            "currency": currency,
        }
        out.append(normalize_fields(fields))
    return out


def import_brokers_yaml(db: Database, path: Path) -> int:
    """Create the brokers listed in `path` that do not exist yet. Returns how many were added."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Seed file not found: {path}")

    entries = _load_entries(path)
    created = 0
    with db.session() as s:
        existing = set(s.scalars(select(BrokerRow.name)).all())
        for entry in entries:
            if entry["name"] in existing:
                continue
            s.add(BrokerRow(**entry))
            existing.add(entry["name"])
            created += 1
    logger.info("Imported %d broker(s) from %s", created, path)
    return created
