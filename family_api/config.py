from __future__ import annotations

import os
from dataclasses import dataclass

# Hard ceiling for search results; no paging past it.
SEARCH_RESULT_CAP = 250


def _s(name: str, default: str | None = None) -> str | None:
    value = os.environ.get(name, "").strip()
    return value or default


def _f(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


def _i(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default


@dataclass(frozen=True)
class FamilyConfig:
    database_url: str | None = _s("DATABASE_URL") or _s("DB_URL")
    # e.g. "require" for hosted Postgres with self-signed certs.
    db_sslmode: str | None = _s("FAMILY_DB_SSLMODE")

    # Connection pool
    pool_min_size: int = _i("FAMILY_DB_POOL_MIN", 1)
    pool_max_size: int = _i("FAMILY_DB_POOL_MAX", 10)
    acquire_timeout: float = _f("FAMILY_DB_ACQUIRE_TIMEOUT", 5.0)
    statement_timeout_ms: int = _i("FAMILY_DB_STATEMENT_TIMEOUT_MS", 5000)

    # Query bounds
    search_limit: int = max(1, min(_i("FAMILY_SEARCH_LIMIT", SEARCH_RESULT_CAP), SEARCH_RESULT_CAP))
    lineage_max_depth: int = _i("FAMILY_LINEAGE_MAX_DEPTH", 64)
    lineage_max_nodes: int = _i("FAMILY_LINEAGE_MAX_NODES", 5000)
    lineage_budget_seconds: float = _f("FAMILY_LINEAGE_BUDGET_SECONDS", 5.0)

    cors_origins: str = _s("FAMILY_CORS_ORIGINS", "*") or "*"
    log_level: str = (_s("LOG_LEVEL", "INFO") or "INFO").upper()

    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


CONFIG = FamilyConfig()
