"""Unit tests for the SQLite-backed blob store."""

from __future__ import annotations

from pathlib import Path
import sqlite3

import pytest

from jyutping_client.cache.store import COLLECTION_NAME, STORE_VERSION, BlobStore
from jyutping_client.errors import StoreError


def test_get_returns_none_on_miss(tmp_path: Path) -> None:
    store = BlobStore(tmp_path / "cache.sqlite3")

    assert store.get("full.jyp_dict") is None


def test_put_then_get_round_trips_bytes(tmp_path: Path) -> None:
    store = BlobStore(tmp_path / "nested" / "cache.sqlite3")

    store.put("full.jyp_dict", b"\x00\x01blob")
    store.put("full.jyp_dict", b"newer")
    store.put("test.jyp_dict", b"other")

    assert store.get("full.jyp_dict") == b"newer"
    assert store.get("test.jyp_dict") == b"other"


def test_delete_removes_only_that_key(tmp_path: Path) -> None:
    store = BlobStore(tmp_path / "cache.sqlite3")
    store.put("a", b"1")
    store.put("b", b"2")

    store.delete("a")
    store.delete("missing")

    assert store.get("a") is None
    assert store.get("b") == b"2"


def test_schema_creation_is_idempotent(tmp_path: Path) -> None:
    path = tmp_path / "cache.sqlite3"
    BlobStore(path).put("a", b"1")

    assert BlobStore(path).get("a") == b"1"
    with sqlite3.connect(path) as connection:
        tables = connection.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table'"
        ).fetchall()
        version = connection.execute("PRAGMA user_version").fetchone()[0]
    assert tables == [(COLLECTION_NAME,)]
    assert version == STORE_VERSION


def test_newer_store_version_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "cache.sqlite3"
    connection = sqlite3.connect(path)
    connection.execute(f"PRAGMA user_version = {STORE_VERSION + 1}")
    connection.close()

    with pytest.raises(StoreError, match="has version"):
        BlobStore(path).get("a")


def test_unopenable_store_raises_store_error(tmp_path: Path) -> None:
    with pytest.raises(StoreError, match="jyutping_dict_cache"):
        BlobStore(tmp_path).get("a")
