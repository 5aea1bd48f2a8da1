from __future__ import annotations

from adapters.sqlite_storage import SQLiteStorage
from core.dedup import DedupLedger


def _storage(tmp_path) -> SQLiteStorage:
    storage = SQLiteStorage(str(tmp_path / "herald.db"))
    storage.init_db()
    return storage


def test_ledger_roundtrip_preserves_order(tmp_path) -> None:
    storage = _storage(tmp_path)
    assert storage.load_ledger() == []

    storage.save_ledger(["anuncio_B", "reddit_1700000000", "anuncio_A"])
    assert storage.load_ledger() == ["anuncio_B", "reddit_1700000000", "anuncio_A"]

    # A later snapshot replaces the previous one, evictions included.
    storage.save_ledger(["anuncio_A", "doblaje_1700000500"])
    assert storage.load_ledger() == ["anuncio_A", "doblaje_1700000500"]


def test_restored_ledger_blocks_repeats(tmp_path) -> None:
    storage = _storage(tmp_path)
    storage.save_ledger([f"anuncio_{index}" for index in range(120)])

    ledger = DedupLedger(100, storage.load_ledger())

    assert len(ledger) == 100
    assert ledger.contains("anuncio_119")
    assert not ledger.contains("anuncio_0")


def test_watchlist_entries_are_unique_per_category(tmp_path) -> None:
    storage = _storage(tmp_path)
    storage.add_watchlist_entry("anime", "Frieren")
    storage.add_watchlist_entry("anime", "Frieren")
    storage.add_watchlist_entry("anime", "Roshidere")
    storage.add_watchlist_entry("manga", "Frieren")

    assert storage.load_watchlist() == {"anime": ["Frieren", "Roshidere"], "manga": ["Frieren"]}


def test_init_db_is_idempotent(tmp_path) -> None:
    storage = _storage(tmp_path)
    storage.save_ledger(["anuncio_A"])
    storage.init_db()
    assert storage.load_ledger() == ["anuncio_A"]
