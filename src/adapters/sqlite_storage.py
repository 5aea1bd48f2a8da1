"""SQLite storage adapter.

Implements the core LedgerStorePort and WatchlistStorePort using a simple
SQLite database.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Dict, List

from core.watchlist import CATEGORIES


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the storage port contracts."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - ledger: announced identities in insertion order
        - watchlist: followed series per category
        """

        with self._connect() as conn:
            # ledger mirrors the in-memory DedupLedger so a restart does not
            # re-announce the last batch.
            # Fields:
            # - position: insertion order (oldest first)
            # - identity: dedup key, e.g. anuncio_<title> or reddit_<epoch>
            # - recorded_at: when the snapshot containing it was written
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS ledger (
                    position INTEGER PRIMARY KEY,
                    identity TEXT NOT NULL UNIQUE,
                    recorded_at TIMESTAMP NOT NULL
                )
                """
            )
            # watchlist keeps user-curated series; names are compared exactly.
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS watchlist (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    category TEXT NOT NULL,
                    name TEXT NOT NULL,
                    added_at TIMESTAMP NOT NULL,
                    UNIQUE (category, name)
                )
                """
            )

    def load_ledger(self) -> List[str]:
        """Return stored identities oldest-first."""

        with self._connect() as conn:
            rows = conn.execute("SELECT identity FROM ledger ORDER BY position").fetchall()
        return [row["identity"] for row in rows]

    def save_ledger(self, identities: List[str]) -> None:
        """Replace the stored ledger with a fresh snapshot."""

        now = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute("DELETE FROM ledger")
            conn.executemany(
                "INSERT INTO ledger (position, identity, recorded_at) VALUES (?, ?, ?)",
                [(position, identity, now) for position, identity in enumerate(identities)],
            )

    def load_watchlist(self) -> Dict[str, List[str]]:
        entries: Dict[str, List[str]] = {category: [] for category in CATEGORIES}
        with self._connect() as conn:
            rows = conn.execute("SELECT category, name FROM watchlist ORDER BY id").fetchall()
        for row in rows:
            entries.setdefault(row["category"], []).append(row["name"])
        return entries

    def add_watchlist_entry(self, category: str, name: str) -> None:
        """Insert a series if it is not already stored."""

        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR IGNORE INTO watchlist (category, name, added_at)
                VALUES (?, ?, ?)
                """,
                (category, name, now.isoformat()),
            )
