from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

import psycopg
from fastapi import Request
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool, PoolTimeout

try:
    from .config import CONFIG, FamilyConfig
    from .errors import StoreUnavailable
except ImportError:  # pragma: no cover
    # Support running with CWD=family_api (e.g., `python -m uvicorn main:app`).
    from config import CONFIG, FamilyConfig
    from errors import StoreUnavailable

log = logging.getLogger(__name__)


def get_database_url(config: FamilyConfig = CONFIG) -> str:
    url = config.database_url
    if not url:
        raise RuntimeError("DATABASE_URL is not set")
    return url


def _configure_connection(conn: psycopg.Connection) -> None:
    # The graph engine never writes.
    conn.read_only = True


class FamilyStore:
    """Process-wide handle on the backing Postgres store.

    Built once at startup, handed to request handlers, closed at shutdown.
    ``connection()`` scopes one pooled connection to a request and returns it
    to the pool on every exit path.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    @classmethod
    def from_config(cls, config: FamilyConfig = CONFIG) -> "FamilyStore":
        kwargs: dict[str, object] = {
            "row_factory": dict_row,
            "options": f"-c statement_timeout={int(config.statement_timeout_ms)}",
        }
        if config.db_sslmode:
            kwargs["sslmode"] = config.db_sslmode
        pool = ConnectionPool(
            get_database_url(config),
            min_size=config.pool_min_size,
            max_size=max(config.pool_min_size, config.pool_max_size),
            timeout=config.acquire_timeout,
            kwargs=kwargs,
            configure=_configure_connection,
            name="family-store",
            open=False,
        )
        return cls(pool)

    def open(self) -> None:
        self._pool.open(wait=False)
        log.info("store pool opened (max_size=%s)", self._pool.max_size)

    def close(self) -> None:
        self._pool.close()
        log.info("store pool closed")

    @contextmanager
    def connection(self) -> Iterator[psycopg.Connection]:
        try:
            with self._pool.connection() as conn:
                yield conn
        except PoolTimeout as exc:
            raise StoreUnavailable("timed out waiting for a database connection") from exc
        except psycopg.OperationalError as exc:
            # Also covers statement_timeout cancellations (QueryCanceled).
            raise StoreUnavailable(f"database unavailable: {exc.__class__.__name__}") from exc


def get_store(request: Request) -> FamilyStore:
    store: Optional[FamilyStore] = getattr(request.app.state, "store", None)
    if store is None:
        raise StoreUnavailable("store is not initialised")
    return store
