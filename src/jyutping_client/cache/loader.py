"""Dictionary blob acquisition: persistent store first, network second."""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter

from jyutping_client.cache.store import BlobStore
from jyutping_client.errors import FatalInitError, StoreError

logger = logging.getLogger(__name__)

# Accept whatever copy an intermediate HTTP cache holds, however old.
FETCH_HEADERS = {"Cache-Control": "max-stale"}


def _build_session() -> requests.Session:
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=3)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def resolve_asset_url(base_url: str, filename: str) -> str:
    """Resolve ``filename`` relative to the directory named by ``base_url``."""

    if not base_url.endswith("/"):
        base_url += "/"
    return urljoin(base_url, filename)


class AssetCache:
    """Load dictionary blobs, caching them in a persistent store.

    A store hit is returned as-is with no freshness check. On a miss, or when the
    store cannot be used, the blob is downloaded and written back; failing to
    write back is logged, and the bytes are then kept in memory so later loads
    in this process do not download again. A failed download is fatal.

    Concurrent ``load`` calls for the same filename share one in-flight task.
    Blocking store and network work runs in worker threads so the event loop
    stays responsive.
    """

    def __init__(
        self,
        base_url: str,
        store: BlobStore | None = None,
        session: requests.Session | None = None,
        timeout: float = 60.0,
    ) -> None:
        self.base_url = base_url
        self.store = store
        self.timeout = timeout
        self._session = session if session is not None else _build_session()
        self._inflight: dict[str, asyncio.Task[bytes]] = {}
        self._unpersisted: dict[str, bytes] = {}

    async def load(self, filename: str) -> bytes:
        """Return the complete blob for ``filename``.

        Raises:
            FatalInitError: If the blob is not cached and cannot be downloaded.
        """

        task = self._inflight.get(filename)
        if task is None:
            task = asyncio.ensure_future(self._load(filename))
            self._inflight[filename] = task
            task.add_done_callback(lambda done: self._forget(filename, done))
        return await asyncio.shield(task)

    def _forget(self, filename: str, task: asyncio.Task[bytes]) -> None:
        if self._inflight.get(filename) is task:
            del self._inflight[filename]

    async def _load(self, filename: str) -> bytes:
        if filename in self._unpersisted:
            return self._unpersisted[filename]

        cached = await asyncio.to_thread(self._read_cached, filename)
        if cached is not None:
            logger.info("Using cached dictionary %s (%d bytes)", filename, len(cached))
            return cached

        logger.info("Fetching dictionary %s from network", filename)
        data = await asyncio.to_thread(self._fetch, filename)
        if not await asyncio.to_thread(self._write_back, filename, data):
            self._unpersisted[filename] = data
        return data

    def _read_cached(self, filename: str) -> bytes | None:
        if self.store is None:
            return None
        try:
            return self.store.get(filename)
        except StoreError as exc:
            logger.warning("Persistent store access failed, falling back to network: %s", exc)
            return None

    def _fetch(self, filename: str) -> bytes:
        url = resolve_asset_url(self.base_url, filename)
        try:
            response = self._session.get(url, headers=FETCH_HEADERS, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise FatalInitError(f"Failed to fetch dictionary blob {url}: {exc}") from exc
        data = response.content
        logger.info("Downloaded dictionary %s (%d bytes)", filename, len(data))
        return data

    def _write_back(self, filename: str, data: bytes) -> bool:
        """Persist ``data``; return whether the store now holds it."""

        if self.store is None:
            return False
        try:
            self.store.put(filename, data)
        except StoreError as exc:
            logger.warning("Failed to cache dictionary %s: %s", filename, exc)
            return False
        logger.info("Dictionary %s cached in persistent store", filename)
        return True
