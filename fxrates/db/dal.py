"""SQLite data access layer for exchange rates.

Responsibilities
----------------
- Persist directional rates in the ``exchange_rates`` table.
- Map rows to ``ExchangeRate`` models and back.
- Report duplicate pairs as ``Conflict`` via the table's UNIQUE constraint.

Each call opens its own connection, so a ``Database`` instance can be shared
across request threads.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
import sqlite3
from typing import Any, List, Optional

from fxrates.core.errors import Conflict
from fxrates.models.rates import ExchangeRate

_COLUMNS = "id, from_currency, to_currency, rate, source, created_at, updated_at"


def _row_to_rate(row: sqlite3.Row) -> ExchangeRate:
    return ExchangeRate(
        id=row["id"],
        from_currency=row["from_currency"],
        to_currency=row["to_currency"],
        rate=row["rate"],
        source=row["source"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


class Database:
    def __init__(self, db_path: Path):
        self.db_path = db_path

    # ------------------------------------------------------------------
    # Connection helpers
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=5.0)
        conn.row_factory = sqlite3.Row
        return conn

    def _fetch_one(
        self, cur: sqlite3.Cursor, from_currency: str, to_currency: str
    ) -> Optional[ExchangeRate]:
        cur.execute(
            f"SELECT {_COLUMNS} FROM exchange_rates WHERE from_currency = ? AND to_currency = ?",
            (from_currency, to_currency),
        )
        row = cur.fetchone()
        return _row_to_rate(row) if row else None

    # ------------------------------------------------------------------
    # Rate CRUD
    def get(self, from_currency: str, to_currency: str) -> Optional[ExchangeRate]:
        with self._connect() as conn:
            return self._fetch_one(conn.cursor(), from_currency, to_currency)

    def insert(
        self,
        from_currency: str,
        to_currency: str,
        rate: float,
        source: Optional[str],
        now: datetime,
    ) -> ExchangeRate:
        stamp = now.isoformat()
        with self._connect() as conn:
            cur = conn.cursor()
            try:
                cur.execute(
                    """
                    INSERT INTO exchange_rates
                        (from_currency, to_currency, rate, source, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (from_currency, to_currency, rate, source, stamp, stamp),
                )
            except sqlite3.IntegrityError as e:
                raise Conflict(
                    f"Exchange rate already exists for {from_currency}/{to_currency}"
                ) from e
            rate_id = int(cur.lastrowid)
            conn.commit()
        return ExchangeRate(
            id=rate_id,
            from_currency=from_currency,
            to_currency=to_currency,
            rate=rate,
            source=source,
            created_at=now,
            updated_at=now,
        )

    def update(
        self,
        from_currency: str,
        to_currency: str,
        rate: float,
        source: Optional[str],
        now: datetime,
    ) -> Optional[ExchangeRate]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                UPDATE exchange_rates
                SET rate = ?, source = COALESCE(?, source), updated_at = ?
                WHERE from_currency = ? AND to_currency = ?
                """,
                (rate, source, now.isoformat(), from_currency, to_currency),
            )
            if cur.rowcount == 0:
                return None
            row = self._fetch_one(cur, from_currency, to_currency)
            conn.commit()
            return row

    def delete(self, from_currency: str, to_currency: str) -> bool:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                "DELETE FROM exchange_rates WHERE from_currency = ? AND to_currency = ?",
                (from_currency, to_currency),
            )
            conn.commit()
            return cur.rowcount > 0

    def list(
        self, from_currency: Optional[str] = None, to_currency: Optional[str] = None
    ) -> List[ExchangeRate]:
        query = f"SELECT {_COLUMNS} FROM exchange_rates"
        clauses: List[str] = []
        params: List[Any] = []
        if from_currency:
            clauses.append("from_currency = ?")
            params.append(from_currency)
        if to_currency:
            clauses.append("to_currency = ?")
            params.append(to_currency)
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY id ASC"
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(query, params)
            return [_row_to_rate(r) for r in cur.fetchall()]

    def count(self) -> int:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM exchange_rates")
            return int(cur.fetchone()[0])
