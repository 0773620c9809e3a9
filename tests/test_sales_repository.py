"""
tests/test_sales_repository.py

Pytest tests for SalesRepository and its backing stores.

Coverage
--------
- Id assignment on append (1..N, then N+1; non-numeric ids ignored)
- Concurrent appends for one user never collide, in one process or across
  repositories sharing a database (conflicting ids are reassigned)
- Conjunctive filtering and the active view state
- Sorting rules and the three-state toggle
- Identity checks
- SQLAlchemy store round trip on in-memory SQLite
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Callable

import pytest
from sqlalchemy import Text, create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.domain.sales import CanonicalSalesRecord, CustomerType, FilterCriteria, SortConfig
from db.base import Base
from db.models.sales_record import SalesRecordRow
from db.repositories.errors import AuthRequiredError, RecordIdConflictError, SalesPersistenceError
from db.repositories.sales_repository import SalesRepository, sort_records
from db.repositories.sales_store import InMemorySalesStore, SQLAlchemySalesStore

USER = "user-1"

RecordFactory = Callable[..., CanonicalSalesRecord]


@pytest.fixture()
def store() -> InMemorySalesStore:
    return InMemorySalesStore()


@pytest.fixture()
def repository(store: InMemorySalesStore) -> SalesRepository:
    return SalesRepository(store)


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, expire_on_commit=False)
    engine.dispose()


class TestAppend:
    def test_ids_start_at_one_and_continue(self, repository: SalesRepository, make_record: RecordFactory) -> None:
        first = repository.append(USER, [make_record(id="x") for _ in range(3)])
        second = repository.append(USER, [make_record(id="y") for _ in range(2)])

        assert [record.id for record in first] == ["1", "2", "3"]
        assert [record.id for record in second] == ["4", "5"]
        assert [record.id for record in repository.load(USER)] == ["1", "2", "3", "4", "5"]

    def test_non_numeric_ids_are_ignored_for_max(
        self,
        store: InMemorySalesStore,
        repository: SalesRepository,
        make_record: RecordFactory,
    ) -> None:
        store.append_all(USER, [make_record(id="abc"), make_record(id="5")])

        (appended,) = repository.append(USER, [make_record()])

        assert appended.id == "6"

    def test_missing_product_id_defaults_from_record_id(
        self, repository: SalesRepository, make_record: RecordFactory
    ) -> None:
        (appended,) = repository.append(USER, [make_record(product_id="")])

        assert appended.product_id == "prod-1"

    def test_discount_is_clamped(self, repository: SalesRepository, make_record: RecordFactory) -> None:
        (appended,) = repository.append(USER, [make_record(discount=1.5)])

        assert appended.discount == 1.0

    def test_append_resets_active_filters(self, repository: SalesRepository, make_record: RecordFactory) -> None:
        repository.update_filters(USER, region="Казань")

        repository.append(USER, [make_record()])

        assert repository.get_filters(USER).is_empty()

    def test_users_are_isolated(self, repository: SalesRepository, make_record: RecordFactory) -> None:
        repository.append(USER, [make_record()])
        (other,) = repository.append("user-2", [make_record()])

        assert other.id == "1"
        assert len(repository.load(USER)) == 1

    def test_concurrent_appends_get_unique_ids(
        self, repository: SalesRepository, make_record: RecordFactory
    ) -> None:
        batches = [[make_record() for _ in range(5)] for _ in range(8)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda batch: repository.append(USER, batch), batches))

        ids = [record.id for record in repository.load(USER)]
        assert sorted(ids, key=int) == [str(number) for number in range(1, 41)]

    def test_in_memory_store_rejects_taken_ids(self, store: InMemorySalesStore, make_record: RecordFactory) -> None:
        store.append_all(USER, [make_record(id="1")])

        with pytest.raises(RecordIdConflictError):
            store.append_all(USER, [make_record(id="2"), make_record(id="1")])

        assert [record.id for record in store.load(USER)] == ["1"]

    def test_conflicts_are_retried_then_raised(self, make_record: RecordFactory) -> None:
        class AlwaysTakenStore(InMemorySalesStore):
            attempts = 0

            def append_all(self, user_id, records):
                self.attempts += 1
                raise RecordIdConflictError("taken")

        store = AlwaysTakenStore()

        with pytest.raises(RecordIdConflictError):
            SalesRepository(store).append(USER, [make_record()])

        assert store.attempts == 3
        assert store.load(USER) == []


class TestClearAndIdentity:
    def test_clear_empties_set_and_view_state(
        self, repository: SalesRepository, make_record: RecordFactory
    ) -> None:
        repository.append(USER, [make_record()])
        repository.request_sort(USER, "revenue")

        repository.clear(USER)

        assert repository.load(USER) == []
        assert repository.get_sort(USER) == SortConfig()

    @pytest.mark.parametrize("user_id", ["", "   ", None])
    def test_missing_identity_is_rejected(self, repository: SalesRepository, user_id: str | None) -> None:
        with pytest.raises(AuthRequiredError):
            repository.load(user_id)  # type: ignore[arg-type]
        with pytest.raises(AuthRequiredError):
            repository.append(user_id, [])  # type: ignore[arg-type]


class TestView:
    @pytest.fixture()
    def loaded(self, repository: SalesRepository, make_record: RecordFactory) -> SalesRepository:
        repository.append(
            USER,
            [
                make_record(region="Москва", category="Чай", date=date(2024, 1, 10)),
                make_record(region="Москва", category="Кофе", date=date(2024, 2, 10)),
                make_record(
                    region="Санкт-Петербург",
                    category="Чай зелёный",
                    date=date(2024, 3, 10),
                    customer_type=CustomerType.WHOLESALE,
                ),
            ],
        )
        return repository

    def test_filters_are_conjunctive(self, loaded: SalesRepository) -> None:
        records = loaded.view(USER, filters=FilterCriteria(region="москва", category="чай"))

        assert [record.id for record in records] == ["1"]

    def test_date_range_is_inclusive(self, loaded: SalesRepository) -> None:
        criteria = FilterCriteria(start_date=date(2024, 2, 10), end_date=date(2024, 3, 10))

        assert [record.id for record in loaded.view(USER, filters=criteria)] == ["2", "3"]

    def test_customer_type_is_exact(self, loaded: SalesRepository) -> None:
        criteria = FilterCriteria(customer_type=CustomerType.WHOLESALE)

        assert [record.id for record in loaded.view(USER, filters=criteria)] == ["3"]

    def test_active_filters_apply_when_omitted(self, loaded: SalesRepository) -> None:
        loaded.update_filters(USER, category="Кофе")

        assert [record.id for record in loaded.view(USER)] == ["2"]

    def test_unknown_filter_field_is_rejected(self, loaded: SalesRepository) -> None:
        with pytest.raises(ValueError):
            loaded.update_filters(USER, colour="red")


class TestSorting:
    def test_ids_sort_numerically(self, make_record: RecordFactory) -> None:
        records = [make_record(id=value) for value in ("10", "9", "100")]

        ordered = sort_records(records, SortConfig(key="id", direction="asc"))

        assert [record.id for record in ordered] == ["9", "10", "100"]

    def test_mixed_ids_fall_back_to_lexical(self, make_record: RecordFactory) -> None:
        records = [make_record(id=value) for value in ("b", "2", "A")]

        ordered = sort_records(records, SortConfig(key="id", direction="asc"))

        assert [record.id for record in ordered] == ["2", "A", "b"]

    def test_numeric_fields_sort_numerically_descending(self, make_record: RecordFactory) -> None:
        records = [make_record(id=str(i), revenue=value) for i, value in enumerate((5.0, 100.0, 20.0))]

        ordered = sort_records(records, SortConfig(key="revenue", direction="desc"))

        assert [record.revenue for record in ordered] == [100.0, 20.0, 5.0]

    def test_text_sort_is_case_insensitive_and_stable(self, make_record: RecordFactory) -> None:
        records = [
            make_record(id="1", product_name="beta"),
            make_record(id="2", product_name="Alpha"),
            make_record(id="3", product_name="ALPHA"),
        ]

        ordered = sort_records(records, SortConfig(key="product_name", direction="asc"))

        assert [record.id for record in ordered] == ["2", "3", "1"]

    def test_derived_fields_are_sortable(self, make_record: RecordFactory) -> None:
        records = [
            make_record(id="1", revenue=100.0, cost_price=90.0),
            make_record(id="2", revenue=100.0, cost_price=10.0),
        ]

        ordered = sort_records(records, SortConfig(key="profit", direction="desc"))

        assert [record.id for record in ordered] == ["2", "1"]

    def test_toggle_cycles_three_states(self, repository: SalesRepository) -> None:
        assert repository.request_sort(USER, "revenue") == SortConfig("revenue", "asc")
        assert repository.request_sort(USER, "revenue") == SortConfig("revenue", "desc")
        assert repository.request_sort(USER, "revenue") == SortConfig()
        assert repository.request_sort(USER, "revenue") == SortConfig("revenue", "asc")

    def test_toggle_other_key_restarts_ascending(self, repository: SalesRepository) -> None:
        repository.request_sort(USER, "revenue")
        repository.request_sort(USER, "revenue")

        assert repository.request_sort(USER, "date") == SortConfig("date", "asc")

    def test_unknown_sort_key_is_rejected(self, repository: SalesRepository) -> None:
        with pytest.raises(ValueError):
            repository.request_sort(USER, "colour")


class TestSQLAlchemySalesStore:
    def test_round_trip_preserves_order_and_fields(self, session_factory, make_record: RecordFactory) -> None:
        repository = SalesRepository(SQLAlchemySalesStore(session_factory))
        repository.append(USER, [make_record(product_name="B"), make_record(product_name="A", discount=0.1)])
        repository.append(USER, [make_record(product_name="C")])

        loaded = repository.load(USER)

        assert [record.id for record in loaded] == ["1", "2", "3"]
        assert [record.product_name for record in loaded] == ["B", "A", "C"]
        assert loaded[1].discount == pytest.approx(0.1)
        assert loaded[0].date == date(2024, 3, 15)

    def test_delete_all_is_scoped_to_user(self, session_factory, make_record: RecordFactory) -> None:
        store = SQLAlchemySalesStore(session_factory)
        store.append_all(USER, [make_record()])
        store.append_all("user-2", [make_record()])

        store.delete_all(USER)

        assert store.load(USER) == []
        assert len(store.load("user-2")) == 1

    def test_database_errors_are_wrapped(self) -> None:
        engine = create_engine("sqlite://", poolclass=StaticPool)
        store = SQLAlchemySalesStore(sessionmaker(bind=engine))

        with pytest.raises(SalesPersistenceError):
            store.load(USER)

    def test_append_never_rewrites_existing_rows(self, session_factory, make_record: RecordFactory) -> None:
        store = SQLAlchemySalesStore(session_factory)
        store.append_all(USER, [make_record(id="1", product_name="kept")])

        with pytest.raises(RecordIdConflictError):
            store.append_all(USER, [make_record(id="2"), make_record(id="1", product_name="dup")])

        assert [(record.id, record.product_name) for record in store.load(USER)] == [("1", "kept")]

    def test_competing_writer_ids_are_reassigned(self, session_factory, make_record: RecordFactory) -> None:
        other = SalesRepository(SQLAlchemySalesStore(session_factory))

        class CompetingStore(SQLAlchemySalesStore):
            competitor_pending = True

            def append_all(self, user_id, records):
                if self.competitor_pending:
                    self.competitor_pending = False
                    other.append(user_id, [make_record(product_name="B")])
                super().append_all(user_id, records)

        repository = SalesRepository(CompetingStore(session_factory))

        (appended,) = repository.append(USER, [make_record(product_name="A")])

        loaded = repository.load(USER)
        assert appended.id == "2"
        assert [record.id for record in loaded] == ["1", "2"]
        assert [record.product_name for record in loaded] == ["B", "A"]

    def test_long_free_text_round_trips(self, session_factory, make_record: RecordFactory) -> None:
        store = SQLAlchemySalesStore(session_factory)
        name = "Набор " + "x" * 600

        store.append_all(USER, [make_record(product_name=name, category="c" * 400)])

        (loaded,) = store.load(USER)
        assert loaded.product_name == name
        assert len(loaded.category) == 400

    @pytest.mark.parametrize("column", ["product_name", "product_id", "category", "region"])
    def test_free_text_columns_are_unbounded(self, column: str) -> None:
        assert isinstance(SalesRecordRow.__table__.c[column].type, Text)
