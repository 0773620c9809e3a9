"""
Backing stores for per-user sales record sets.

A store persists and returns record sets; id assignment, filtering and
sorting live in ``SalesRepository``. Appends are insert-only: a record id
already taken for the user raises ``RecordIdConflictError`` and nothing
from that batch is stored.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from typing import Callable, Protocol

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.sales import CanonicalSalesRecord
from db.models.sales_record import SalesRecordRow
from db.repositories.errors import RecordIdConflictError, SalesPersistenceError

logger = logging.getLogger(__name__)


class SalesStore(Protocol):
    """
    Persistence contract consumed by ``SalesRepository``.
    """

    def load(self, user_id: str) -> list[CanonicalSalesRecord]:
        ...

    def append_all(self, user_id: str, records: Sequence[CanonicalSalesRecord]) -> None:
        ...

    def delete_all(self, user_id: str) -> None:
        ...


class InMemorySalesStore:
    """
    Process-local store; used by tests and single-process deployments.
    """

    def __init__(self) -> None:
        self._records: dict[str, list[CanonicalSalesRecord]] = {}
        self._lock = threading.Lock()

    def load(self, user_id: str) -> list[CanonicalSalesRecord]:
        with self._lock:
            return list(self._records.get(user_id, ()))

    def append_all(self, user_id: str, records: Sequence[CanonicalSalesRecord]) -> None:
        with self._lock:
            current = self._records.setdefault(user_id, [])
            batch_ids = [record.id for record in records]
            clashes = {record.id for record in current}.intersection(batch_ids)
            if clashes or len(set(batch_ids)) != len(batch_ids):
                raise RecordIdConflictError(
                    f"Record ids already taken for user {user_id!r}: {sorted(clashes)}."
                )
            current.extend(records)

    def delete_all(self, user_id: str) -> None:
        with self._lock:
            self._records.pop(user_id, None)


class SQLAlchemySalesStore:
    """
    Stores records in the ``sales_records`` table, one transaction per call.
    """

    def __init__(self, session_factory: Callable[[], Session] | None = None) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory: Callable[[], Session] = SessionLocal
        else:
            self._session_factory = session_factory

    def load(self, user_id: str) -> list[CanonicalSalesRecord]:
        stmt = (
            select(SalesRecordRow)
            .where(SalesRecordRow.user_id == user_id)
            .order_by(SalesRecordRow.position.asc(), SalesRecordRow.pk.asc())
        )
        try:
            with self._session_factory() as session:
                rows = session.scalars(stmt).all()
                return [row.to_record() for row in rows]
        except SQLAlchemyError as exc:
            raise SalesPersistenceError("Failed to load sales records.") from exc

    def append_all(self, user_id: str, records: Sequence[CanonicalSalesRecord]) -> None:
        """
        Insert *records* after the user's existing rows in one transaction.

        Existing rows are never rewritten. The unique ``(user_id, record_id)``
        index rejects a batch whose ids another writer already took.
        """

        if not records:
            return

        next_position = (
            select(func.coalesce(func.max(SalesRecordRow.position), -1) + 1)
            .where(SalesRecordRow.user_id == user_id)
        )
        try:
            with self._session_factory() as session:
                with session.begin():
                    start = session.scalar(next_position) or 0
                    session.add_all(
                        SalesRecordRow.from_record(user_id, record, start + offset)
                        for offset, record in enumerate(records)
                    )
        except IntegrityError as exc:
            raise RecordIdConflictError(
                f"Record ids already taken for user {user_id!r}."
            ) from exc
        except SQLAlchemyError as exc:
            raise SalesPersistenceError("Failed to save sales records.") from exc
        logger.debug("Inserted sales records user_id=%r count=%d", user_id, len(records))

    def delete_all(self, user_id: str) -> None:
        try:
            with self._session_factory() as session:
                with session.begin():
                    session.execute(delete(SalesRecordRow).where(SalesRecordRow.user_id == user_id))
        except SQLAlchemyError as exc:
            raise SalesPersistenceError("Failed to delete sales records.") from exc
