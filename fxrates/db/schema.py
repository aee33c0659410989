"""Database schema DDL definitions and initialization utilities.

Tables:
  - exchange_rates: one directional rate per ordered currency pair
  - metadata: key/value store (schema version)
"""

from __future__ import annotations
import sqlite3
from typing import Sequence
from pathlib import Path

BASIC_UTC_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"
SCHEMA_VERSION = 1
SCHEMA_VERSION_KEY = "schema_version"

EXCHANGE_RATES_DDL = """
CREATE TABLE IF NOT EXISTS exchange_rates (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    from_currency TEXT NOT NULL,
    to_currency TEXT NOT NULL,
    rate REAL NOT NULL CHECK (rate > 0),
    source TEXT,
    created_at TEXT NOT NULL, -- ISO timestamp (UTC, with offset)
    updated_at TEXT NOT NULL,
    UNIQUE(from_currency, to_currency),
    CHECK (from_currency != to_currency)
);
"""

METADATA_DDL = f"""
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

RATES_FROM_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_rates_from ON exchange_rates(from_currency, id);"
)
RATES_TO_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_rates_to ON exchange_rates(to_currency, id);"
)

DDL_ORDER: Sequence[str] = (
    EXCHANGE_RATES_DDL,
    METADATA_DDL,
    RATES_FROM_INDEX_DDL,
    RATES_TO_INDEX_DDL,
)


def init_db(path: Path) -> None:
    """Create all tables idempotently and record the schema version.

    Parameters
    ----------
    path: Path to SQLite database file.
    """
    conn = sqlite3.connect(path)
    try:
        cur = conn.cursor()
        for ddl in DDL_ORDER:
            cur.execute(ddl)
        cur.execute(
            "INSERT INTO metadata (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value, "
            f"updated_at=({BASIC_UTC_NOW})",
            (SCHEMA_VERSION_KEY, str(SCHEMA_VERSION)),
        )
        conn.commit()
    finally:
        conn.close()
