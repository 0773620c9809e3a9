from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI

from app.config import get_analytics_settings


def _validate_settings() -> None:
    """
    Validate analytics thresholds at startup.

    Raises RuntimeError listing every inconsistent setting.
    """

    settings = get_analytics_settings()
    errors: list[str] = []

    if not 0 < settings.abc_a_threshold < settings.abc_b_threshold <= 100:
        errors.append(
            f"ABC thresholds must satisfy 0 < A < B <= 100 "
            f"(got A={settings.abc_a_threshold}, B={settings.abc_b_threshold})."
        )
    if not 0 <= settings.xyz_x_threshold < settings.xyz_y_threshold:
        errors.append(
            f"XYZ thresholds must satisfy 0 <= X < Y "
            f"(got X={settings.xyz_x_threshold}, Y={settings.xyz_y_threshold})."
        )
    if settings.az_mid_revenue > settings.az_high_revenue:
        errors.append(
            "ABCXYZ_AZ_MID_REVENUE must not exceed ABCXYZ_AZ_HIGH_REVENUE."
        )

    if errors:
        raise RuntimeError(
            "Startup validation failed, invalid analytics settings:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_db() -> None:
    """Open a session and run SELECT 1. Raises RuntimeError if the DB is unreachable."""
    from sqlalchemy import text

    from db.session import SessionLocal

    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
    except Exception as exc:
        raise RuntimeError("Database unavailable.") from exc


def _ensure_schema() -> None:
    """
    Verify that every ORM table exists in the database.

    Missing tables are created when SALES_AUTO_CREATE_SCHEMA is enabled
    (the default for the local SQLite store); otherwise startup aborts and
    the operator must run ``alembic upgrade head``.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401
    from db.base import Base
    from db.session import get_engine

    log = logging.getLogger(__name__)
    engine = get_engine()
    actual: set[str] = set(sa_inspect(engine).get_table_names())
    missing = set(Base.metadata.tables.keys()) - actual
    if not missing:
        return

    auto_create_default = "true" if engine.dialect.name == "sqlite" else "false"
    auto_create = os.getenv("SALES_AUTO_CREATE_SCHEMA", auto_create_default).strip().lower()
    if auto_create in {"1", "true", "yes", "on"}:
        Base.metadata.create_all(engine)
        log.info("Created missing tables: %s", ", ".join(sorted(missing)))
        return

    log.critical(
        "Schema mismatch: %d table(s) defined in ORM metadata are absent from "
        "the database: %s. Run 'alembic upgrade head' and restart.",
        len(missing),
        ", ".join(sorted(missing)),
    )
    raise RuntimeError(
        f"Schema mismatch: {len(missing)} table(s) missing from the database "
        f"({', '.join(sorted(missing))}). Run migrations and restart."
    )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Validate DB connectivity and schema on boot."""
    _check_db()
    logging.getLogger(__name__).info("Database connectivity confirmed")
    _ensure_schema()
    logging.getLogger(__name__).info("Database schema validated")
    yield


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _configure_logging()
    _validate_settings()

    application = FastAPI(
        title="Sales Analytics API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import sales_router

    application.include_router(sales_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
