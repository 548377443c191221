"""Persistence layer for loan records.

This module abstracts persistence so the web app can keep loan records in an
external database. Each record is stored as the same JSON document the mobile
app keeps in its key-value store, keyed by the loan id. Schedules are never
stored; they are recomputed from the record on every request. It defaults to
SQLite for local development, but accepts any SQLAlchemy-compatible URL.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LoanRecordModel(Base):
    __tablename__ = "loan_records"

    id = Column(String(64), primary_key=True)
    record_json = Column(Text, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)


class LoanStore:
    """Database-backed loan record store."""

    def __init__(self, url: str) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    def list_loans(self) -> List[Dict[str, Any]]:
        with self._session_factory() as session:
            rows = session.execute(
                select(LoanRecordModel).order_by(LoanRecordModel.created_at.asc())
            ).scalars()
            return [json.loads(row.record_json) for row in rows]

    def get_loan(self, loan_id: str) -> Optional[Dict[str, Any]]:
        with self._session_factory() as session:
            row = session.get(LoanRecordModel, loan_id)
            return json.loads(row.record_json) if row else None

    def add_loan(self, record: Dict[str, Any]) -> None:
        with self._session_factory() as session:
            session.add(LoanRecordModel(id=record["id"], record_json=json.dumps(record)))
            session.commit()
        logger.info("Stored loan %s", record["id"])

    def update_loan(self, record: Dict[str, Any]) -> bool:
        """Replace a stored record. Returns ``False`` if the id is unknown."""
        with self._session_factory() as session:
            row = session.get(LoanRecordModel, record["id"])
            if row is None:
                return False
            row.record_json = json.dumps(record)
            session.commit()
        logger.info("Updated loan %s", record["id"])
        return True

    def delete_loan(self, loan_id: str) -> bool:
        with self._session_factory() as session:
            row = session.get(LoanRecordModel, loan_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
        logger.info("Deleted loan %s", loan_id)
        return True

    def clear_loans(self) -> None:
        with self._session_factory() as session:
            session.execute(LoanRecordModel.__table__.delete())
            session.commit()


def create_store_from_env(url: str | None) -> LoanStore:
    return LoanStore(url or "sqlite:///loan_data.sqlite3")
