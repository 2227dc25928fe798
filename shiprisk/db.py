"""SQLite schema and Repository class for the supplier catalogue and assessment history."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from shiprisk.config import DB_PATH
from shiprisk.models import Assessment, RiskLevel, Supplier
from shiprisk.scoring.engine import validate_input


SCHEMA = """
CREATE TABLE IF NOT EXISTS suppliers (
    name      TEXT PRIMARY KEY COLLATE NOCASE,
    cost      REAL NOT NULL,
    rating    REAL NOT NULL,
    reviews   INTEGER NOT NULL,
    location  TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS assessments (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at       TEXT NOT NULL,
    kind             TEXT NOT NULL,
    subject          TEXT NOT NULL,
    risk_percentage  REAL,
    risk_level       TEXT,
    payload          TEXT NOT NULL DEFAULT '{}'
);

CREATE INDEX IF NOT EXISTS idx_assessments_kind ON assessments(kind);
"""


def _parse_dt(s: str) -> datetime:
    """Parse an ISO-format timestamp string to a timezone-aware datetime."""
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class Repository:
    """Thin wrapper around raw sqlite3 for typed reads/writes."""

    def __init__(self, db_path: str | Path | None = None) -> None:
        self._path = str(db_path or DB_PATH)
        self._conn = sqlite3.connect(self._path)
        self._conn.executescript(SCHEMA)
        self._conn.execute("PRAGMA journal_mode=WAL")

    # ---- writes ----

    def upsert_supplier(self, supplier: Supplier) -> None:
        validate_input(supplier.to_input())
        self._conn.execute(
            """INSERT INTO suppliers (name, cost, rating, reviews, location)
               VALUES (?,?,?,?,?)
               ON CONFLICT(name) DO UPDATE SET
                 cost=excluded.cost, rating=excluded.rating,
                 reviews=excluded.reviews, location=excluded.location""",
            (supplier.name, supplier.cost, supplier.rating, supplier.reviews, supplier.location),
        )
        self._conn.commit()

    def seed_suppliers(self, suppliers: list[Supplier]) -> int:
        """Insert suppliers that are not already present. Returns count inserted."""
        for s in suppliers:
            validate_input(s.to_input())
        cur = self._conn.executemany(
            """INSERT OR IGNORE INTO suppliers (name, cost, rating, reviews, location)
               VALUES (?,?,?,?,?)""",
            [(s.name, s.cost, s.rating, s.reviews, s.location) for s in suppliers],
        )
        self._conn.commit()
        return cur.rowcount

    def delete_supplier(self, name: str) -> bool:
        cur = self._conn.execute("DELETE FROM suppliers WHERE name = ?", (name,))
        self._conn.commit()
        return cur.rowcount > 0

    def record_assessment(
        self,
        kind: str,
        subject: str,
        risk_percentage: float | None = None,
        risk_level: RiskLevel | None = None,
        payload: dict | None = None,
    ) -> Assessment:
        created_at = datetime.now(timezone.utc)
        body = payload or {}
        cur = self._conn.execute(
            """INSERT INTO assessments
               (created_at, kind, subject, risk_percentage, risk_level, payload)
               VALUES (?,?,?,?,?,?)""",
            (
                created_at.isoformat(),
                kind,
                subject,
                risk_percentage,
                risk_level.value if risk_level else None,
                json.dumps(body, default=str),
            ),
        )
        self._conn.commit()
        return Assessment(
            id=cur.lastrowid,
            created_at=created_at,
            kind=kind,
            subject=subject,
            risk_percentage=risk_percentage,
            risk_level=risk_level,
            payload=body,
        )

    # ---- reads ----

    def get_supplier(self, name: str) -> Supplier | None:
        row = self._conn.execute(
            "SELECT * FROM suppliers WHERE name = ?", (name.strip(),)
        ).fetchone()
        if not row:
            return None
        return self._row_to_supplier(row)

    def list_suppliers(self) -> list[Supplier]:
        rows = self._conn.execute("SELECT * FROM suppliers ORDER BY rowid").fetchall()
        return [self._row_to_supplier(r) for r in rows]

    def list_assessments(self, limit: int = 20, kind: str | None = None) -> list[Assessment]:
        """Most recent first."""
        if kind:
            rows = self._conn.execute(
                "SELECT * FROM assessments WHERE kind = ? ORDER BY id DESC LIMIT ?",
                (kind, limit),
            ).fetchall()
        else:
            rows = self._conn.execute(
                "SELECT * FROM assessments ORDER BY id DESC LIMIT ?", (limit,)
            ).fetchall()
        return [self._row_to_assessment(r) for r in rows]

    # ---- helpers ----

    @staticmethod
    def _row_to_supplier(r: tuple) -> Supplier:
        return Supplier(name=r[0], cost=r[1], rating=r[2], reviews=r[3], location=r[4])

    @staticmethod
    def _row_to_assessment(r: tuple) -> Assessment:
        return Assessment(
            id=r[0],
            created_at=_parse_dt(r[1]),
            kind=r[2],
            subject=r[3],
            risk_percentage=r[4],
            risk_level=RiskLevel(r[5]) if r[5] else None,
            payload=json.loads(r[6]),
        )

    def close(self) -> None:
        self._conn.close()
