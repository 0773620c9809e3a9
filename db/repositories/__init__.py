"""
Repository layer exports.
"""

from db.repositories.errors import AuthRequiredError, SalesPersistenceError, SalesRepositoryError
from db.repositories.sales_repository import SalesRepository, filter_records, sort_records
from db.repositories.sales_store import InMemorySalesStore, SalesStore, SQLAlchemySalesStore

__all__ = [
    "SalesRepository",
    "SalesStore",
    "InMemorySalesStore",
    "SQLAlchemySalesStore",
    "filter_records",
    "sort_records",
    "SalesRepositoryError",
    "AuthRequiredError",
    "SalesPersistenceError",
]
