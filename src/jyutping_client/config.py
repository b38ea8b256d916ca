"""Runtime configuration for the search client."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from jyutping_client.models import DEFAULT_PAGE_SIZE

DEFAULT_DICTIONARY_FILENAME = "full.jyp_dict"
STORE_FILENAME = "jyutping_dict_cache.sqlite3"


def _resolve_default_store_path() -> Path:
    """Resolve default persistent store path from project layout.

    Returns:
        ``data/jyutping_dict_cache.sqlite3`` when a ``data`` directory exists in
        the working directory, otherwise the same filename in the working
        directory itself.
    """

    data_dir = Path("data")
    if data_dir.is_dir():
        return data_dir / STORE_FILENAME
    return Path(STORE_FILENAME)


@dataclass(frozen=True)
class ClientConfig:
    """Settings shared by the asset cache, bootstrap, and session.

    Attributes:
        base_url: Location the dictionary filename is resolved against.
        filename: Dictionary asset name; also the persistent-store key.
        store_path: SQLite file backing the persistent store.
        page_size: Result count requested for every new query.
        timeout: Network timeout in seconds for the blob download.
    """

    base_url: str
    filename: str = DEFAULT_DICTIONARY_FILENAME
    store_path: Path = field(default_factory=_resolve_default_store_path)
    page_size: int = DEFAULT_PAGE_SIZE
    timeout: float = 60.0

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ValueError(f"page_size must be positive, got {self.page_size}")
        if not self.filename:
            raise ValueError("filename must not be empty")
