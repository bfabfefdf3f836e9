# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import pandas as pd
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from tradejournal.core.results import Failure, FailureKind, Result, Success, internal, not_found
from tradejournal.core.utils import as_utc
from tradejournal.infra.db import Database
from tradejournal.infra.models import BrokerRow

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "account_number", "currency")
CSV_COLUMNS = ["id", "name", "account_number", "currency", "created_at", "updated_at"]


@dataclass(frozen=True)
class Broker:
    id: str
    name: str
    account_number: Optional[str]
    currency: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: BrokerRow) -> Broker:
        return cls(
            id=row.id,
            name=row.name,
            account_number=row.account_number,
            currency=row.currency,
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
        )

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "accountNumber": self.account_number,
            "currency": self.currency,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


def normalize_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only editable keys; currency codes are stored upper-case."""
    data = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
    if isinstance(data.get("currency"), str):
        data["currency"] = data["currency"].strip().upper()
    return data


def _name_taken(name: str) -> Failure:
    return Failure(FailureKind.CONFLICT, f"A broker with the name '{name}' already exists.")


def list_brokers(db: Database) -> Result[List[Broker]]:
    try:
        with db.session() as s:
            rows = s.scalars(select(BrokerRow).order_by(BrokerRow.created_at, BrokerRow.name)).all()
            return Success([Broker.from_row(r) for r in rows])
    except SQLAlchemyError:
        logger.exception("Error retrieving brokers")
        return internal()


def get_broker(db: Database, broker_id: str) -> Result[Broker]:
    try:
        with db.session() as s:
            row = s.get(BrokerRow, broker_id)
            if row is None:
                return not_found("Broker")
            return Success(Broker.from_row(row))
    except SQLAlchemyError:
        logger.exception("Error retrieving broker %s", broker_id)
        return internal()


def create_broker(db: Database, fields: Dict[str, Any]) -> Result[Broker]:
    data = normalize_fields(fields)
    try:
        with db.session() as s:
            row = BrokerRow(**data)
            s.add(row)
            s.flush()
            broker = Broker.from_row(row)
        logger.info("Broker %s created", broker.id)
        return Success(broker)
    except IntegrityError:
        return _name_taken(str(data.get("name", "")))
    except SQLAlchemyError:
        logger.exception("Error creating broker")
        return internal()


def update_broker(db: Database, broker_id: str, changes: Dict[str, Any]) -> Result[Broker]:
    """Apply a partial update; only the keys present in `changes` are written."""
    data = {k: v for k, v in normalize_fields(changes).items() if v is not None or k == "account_number"}
    try:
        with db.session() as s:
            row = s.get(BrokerRow, broker_id)
            if row is None:
                return not_found("Broker")
            for key, value in data.items():
                setattr(row, key, value)
            s.flush()
            broker = Broker.from_row(row)
        return Success(broker)
    except IntegrityError:
        return _name_taken(str(data.get("name", "")))
    except SQLAlchemyError:
        logger.exception("Error updating broker %s", broker_id)
        return internal()


def delete_broker(db: Database, broker_id: str) -> Result[Broker]:
    try:
        with db.session() as s:
            row = s.get(BrokerRow, broker_id)
            if row is None:
                return not_found("Broker")
            broker = Broker.from_row(row)
            s.delete(row)
        logger.info("Broker %s deleted", broker_id)
        return Success(broker)
    except SQLAlchemyError:
        logger.exception("Error deleting broker %s", broker_id)
        return internal()


def brokers_frame(brokers: List[Broker]) -> pd.DataFrame:
    if not brokers:
        return pd.DataFrame(columns=CSV_COLUMNS)
    return pd.DataFrame([asdict(b) for b in brokers], columns=CSV_COLUMNS)
