"""Top-level orchestration: dictionary blob to engine to search session."""

from __future__ import annotations

import logging
from typing import Callable

from jyutping_client.cache.loader import AssetCache
from jyutping_client.cache.store import BlobStore
from jyutping_client.config import ClientConfig
from jyutping_client.errors import FatalInitError
from jyutping_client.session import SearchEngine, SearchSession

logger = logging.getLogger(__name__)

EngineFactory = Callable[[bytes], SearchEngine]

UNAVAILABLE_PREFIX = "Search unavailable"


def build_asset_cache(config: ClientConfig) -> AssetCache:
    """Create the asset cache described by ``config``."""

    return AssetCache(
        base_url=config.base_url,
        store=BlobStore(config.store_path),
        timeout=config.timeout,
    )


async def load_engine(
    cache: AssetCache, filename: str, engine_factory: EngineFactory
) -> SearchEngine:
    """Acquire the dictionary blob and construct the search engine from it.

    Args:
        cache: Asset cache used to obtain the blob.
        filename: Dictionary asset name.
        engine_factory: Callable building an engine from the raw blob.

    Returns:
        Ready search engine.

    Raises:
        FatalInitError: If the blob cannot be acquired or the engine rejects it.
    """

    data = await cache.load(filename)
    logger.info("Got dictionary blob %s (%d bytes)", filename, len(data))
    try:
        engine = engine_factory(data)
    except Exception as exc:
        raise FatalInitError(f"Cannot build search engine from {filename}: {exc}") from exc
    logger.info("Finished search init")
    return engine


async def open_session(
    config: ClientConfig,
    engine_factory: EngineFactory,
    url: str = "",
    cache: AssetCache | None = None,
) -> SearchSession:
    """Bootstrap a search session, running the URL's initial query if present.

    A fatal initialisation failure does not raise: it yields an unavailable
    session whose views explain that search is disabled. There is no automatic
    retry; a new bootstrap is needed.

    Args:
        config: Client settings.
        engine_factory: Callable building an engine from the raw blob.
        url: Shareable URL the session starts from.
        cache: Asset cache override; built from ``config`` when omitted.

    Returns:
        Started session.
    """

    cache = cache if cache is not None else build_asset_cache(config)
    try:
        engine = await load_engine(cache, config.filename, engine_factory)
    except FatalInitError as exc:
        logger.error("Search initialisation failed: %s", exc)
        return SearchSession.unavailable(
            f"{UNAVAILABLE_PREFIX}: {exc}", url=url, page_size=config.page_size
        )

    session = SearchSession(engine, url=url, page_size=config.page_size)
    await session.start()
    return session
