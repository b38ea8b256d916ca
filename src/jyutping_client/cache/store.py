"""Persistent key-value store for downloaded dictionary blobs."""

from __future__ import annotations

from contextlib import closing
from dataclasses import dataclass
from pathlib import Path
import sqlite3

from jyutping_client.errors import StoreError

STORE_NAME = "jyutping_dict_cache"
STORE_VERSION = 1
COLLECTION_NAME = "jyut"


@dataclass(frozen=True)
class BlobStore:
    """SQLite-backed store with one fixed collection keyed by filename.

    Entries never expire: presence of a key is taken as validity. Every call
    opens its own connection, so each read or write is atomic on its own and no
    transaction spans calls. All failures surface as ``StoreError``.
    """

    path: Path

    def _connect(self) -> sqlite3.Connection:
        """Open the store, creating the collection when it is missing.

        Raises:
            StoreError: If the database cannot be opened or upgraded, or was
                written by a newer store version.
        """

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            connection = sqlite3.connect(self.path)
        except (OSError, sqlite3.Error) as exc:
            raise StoreError(f"Cannot open store {STORE_NAME} at {self.path}: {exc}") from exc

        try:
            version = connection.execute("PRAGMA user_version").fetchone()[0]
            if version > STORE_VERSION:
                raise StoreError(
                    f"Store {STORE_NAME} at {self.path} has version {version}, "
                    f"expected at most {STORE_VERSION}"
                )
            with connection:
                connection.execute(
                    f"CREATE TABLE IF NOT EXISTS {COLLECTION_NAME} "
                    "(key TEXT PRIMARY KEY, value BLOB NOT NULL)"
                )
                connection.execute(f"PRAGMA user_version = {STORE_VERSION}")
        except sqlite3.Error as exc:
            connection.close()
            raise StoreError(f"Cannot prepare store {STORE_NAME} at {self.path}: {exc}") from exc
        except StoreError:
            connection.close()
            raise
        return connection

    def get(self, key: str) -> bytes | None:
        """Return the stored blob for ``key``, or ``None`` on a miss.

        Raises:
            StoreError: If the store cannot be opened or read.
        """

        with closing(self._connect()) as connection:
            try:
                row = connection.execute(
                    f"SELECT value FROM {COLLECTION_NAME} WHERE key = ?", (key,)
                ).fetchone()
            except sqlite3.Error as exc:
                raise StoreError(f"Cannot read {key!r} from store: {exc}") from exc
        return None if row is None else bytes(row[0])

    def put(self, key: str, value: bytes) -> None:
        """Insert or replace the blob stored under ``key``.

        Raises:
            StoreError: If the store cannot be opened or written.
        """

        with closing(self._connect()) as connection:
            try:
                with connection:
                    connection.execute(
                        f"INSERT OR REPLACE INTO {COLLECTION_NAME} (key, value) VALUES (?, ?)",
                        (key, sqlite3.Binary(value)),
                    )
            except sqlite3.Error as exc:
                raise StoreError(f"Cannot write {key!r} to store: {exc}") from exc

    def delete(self, key: str) -> None:
        """Remove ``key`` from the store if present.

        Raises:
            StoreError: If the store cannot be opened or written.
        """

        with closing(self._connect()) as connection:
            try:
                with connection:
                    connection.execute(f"DELETE FROM {COLLECTION_NAME} WHERE key = ?", (key,))
            except sqlite3.Error as exc:
                raise StoreError(f"Cannot delete {key!r} from store: {exc}") from exc
