"""
Per-user sales record repository.

Owns id assignment on append, clearing, and the filtered/sorted view of a
user's record set. Persistence is delegated to a ``SalesStore``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from dataclasses import replace
from functools import cmp_to_key
from typing import Any

from app.domain.sales import (
    NUMERIC_FIELDS,
    RECORD_FIELDS,
    CanonicalSalesRecord,
    FilterCriteria,
    SortConfig,
    ViewState,
)
from db.repositories.errors import AuthRequiredError, RecordIdConflictError
from db.repositories.sales_store import SalesStore

logger = logging.getLogger(__name__)

_MAX_APPEND_ATTEMPTS = 3


def _as_int(value: Any) -> int | None:
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _next_id(records: Sequence[CanonicalSalesRecord]) -> int:
    numeric_ids = [number for number in (_as_int(r.id) for r in records) if number is not None]
    return max(numeric_ids) + 1 if numeric_ids else 1


def _stamp(records: Sequence[CanonicalSalesRecord], start: int) -> list[CanonicalSalesRecord]:
    stamped: list[CanonicalSalesRecord] = []
    for offset, record in enumerate(records):
        record_id = str(start + offset)
        with_id = record.with_id(record_id, product_id=record.product_id or f"prod-{record_id}")
        stamped.append(replace(with_id, discount=max(0.0, min(1.0, with_id.discount))))
    return stamped


def _compare(left: Any, right: Any) -> int:
    return (left > right) - (left < right)


def _compare_ids(left: str, right: str) -> int:
    left_number, right_number = _as_int(left), _as_int(right)
    if left_number is not None and right_number is not None:
        return _compare(left_number, right_number)
    return _compare(str(left).lower(), str(right).lower())


def sort_records(
    records: Sequence[CanonicalSalesRecord],
    sort: SortConfig,
) -> list[CanonicalSalesRecord]:
    """
    Stable sort by ``sort.key``; an unset key keeps insertion order.
    """

    if sort.key is None or sort.direction is None:
        return list(records)
    if sort.key not in RECORD_FIELDS:
        raise ValueError(f"Unknown sort key: {sort.key!r}.")

    key = sort.key
    if key == "id":
        sort_key = cmp_to_key(lambda a, b: _compare_ids(a.id, b.id))
    elif key in NUMERIC_FIELDS:
        sort_key = lambda record: float(record.field_value(key))  # noqa: E731
    else:
        sort_key = lambda record: str(record.field_value(key)).lower()  # noqa: E731

    return sorted(records, key=sort_key, reverse=sort.direction == "desc")


def filter_records(
    records: Sequence[CanonicalSalesRecord],
    filters: FilterCriteria,
) -> list[CanonicalSalesRecord]:
    if filters.is_empty():
        return list(records)
    return [record for record in records if filters.matches(record)]


class SalesRepository:
    """
    Repository entrypoint for one process; every call names its user.
    """

    def __init__(self, store: SalesStore) -> None:
        self._store = store
        self._registry_lock = threading.Lock()
        self._user_locks: dict[str, threading.Lock] = {}
        self._view_states: dict[str, ViewState] = {}

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def load(self, user_id: str) -> list[CanonicalSalesRecord]:
        return self._store.load(self._require_user(user_id))

    def append(
        self,
        user_id: str,
        records: Sequence[CanonicalSalesRecord],
    ) -> list[CanonicalSalesRecord]:
        """
        Append *records* with fresh ids continuing after the current maximum.

        Ids are assigned under a per-user lock so appends within this
        process never collide. Another process may take the same ids first;
        the store then rejects the batch and ids are reassigned from the
        reloaded set, up to ``_MAX_APPEND_ATTEMPTS`` times. The user's
        active filters are reset.
        """

        user_id = self._require_user(user_id)
        with self._lock_for(user_id):
            for attempt in range(1, _MAX_APPEND_ATTEMPTS + 1):
                appended = _stamp(records, _next_id(self._store.load(user_id)))
                try:
                    self._store.append_all(user_id, appended)
                    break
                except RecordIdConflictError:
                    if attempt == _MAX_APPEND_ATTEMPTS:
                        raise
                    logger.warning(
                        "Record id conflict on append user_id=%r attempt=%d; reassigning ids",
                        user_id,
                        attempt,
                    )
            self._view_state(user_id).filters = FilterCriteria()

        logger.info(
            "Appended sales records user_id=%r count=%d first_id=%s",
            user_id,
            len(appended),
            appended[0].id if appended else None,
        )
        return appended

    def clear(self, user_id: str) -> None:
        user_id = self._require_user(user_id)
        with self._lock_for(user_id):
            self._store.delete_all(user_id)
            with self._registry_lock:
                self._view_states[user_id] = ViewState()
        logger.info("Cleared sales records user_id=%r", user_id)

    def view(
        self,
        user_id: str,
        *,
        filters: FilterCriteria | None = None,
        sort: SortConfig | None = None,
    ) -> list[CanonicalSalesRecord]:
        """
        Return the filtered, then sorted, record set.

        Omitted arguments fall back to the user's active view state.
        """

        user_id = self._require_user(user_id)
        state = self._view_state(user_id)
        records = self._store.load(user_id)
        visible = filter_records(records, filters if filters is not None else state.filters)
        return sort_records(visible, sort if sort is not None else state.sort)

    # ------------------------------------------------------------------
    # View state
    # ------------------------------------------------------------------

    def update_filters(self, user_id: str, **changes: Any) -> FilterCriteria:
        state = self._view_state(self._require_user(user_id))
        state.filters = state.filters.merge(**changes)
        return state.filters

    def get_filters(self, user_id: str) -> FilterCriteria:
        return self._view_state(self._require_user(user_id)).filters

    def request_sort(self, user_id: str, key: str) -> SortConfig:
        if key not in RECORD_FIELDS:
            raise ValueError(f"Unknown sort key: {key!r}.")
        state = self._view_state(self._require_user(user_id))
        state.sort = state.sort.toggle(key)
        return state.sort

    def get_sort(self, user_id: str) -> SortConfig:
        return self._view_state(self._require_user(user_id)).sort

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _require_user(user_id: str | None) -> str:
        if user_id is None or not str(user_id).strip():
            raise AuthRequiredError("A user id is required for sales record access.")
        return str(user_id).strip()

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._registry_lock:
            return self._user_locks.setdefault(user_id, threading.Lock())

    def _view_state(self, user_id: str) -> ViewState:
        with self._registry_lock:
            return self._view_states.setdefault(user_id, ViewState())
