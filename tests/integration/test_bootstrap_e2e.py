"""End-to-end bootstrap: blob download, engine construction, first query, CLI."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
import textwrap

import pytest
import requests

from jyutping_client import cli
from jyutping_client.cache import loader
from jyutping_client.cache.loader import AssetCache
from jyutping_client.cache.store import BlobStore
from jyutping_client.config import ClientConfig
from jyutping_client.models import ViewStatus
from jyutping_client.pipeline import open_session

BASE_URL = "https://jyut.example/static/"
BLOB = b"dict-blob"

ENGINE_MODULE = "fake_jyutping_engine"
ENGINE_SOURCE = textwrap.dedent(
    '''
    import json


    class Engine:
        def __init__(self, data):
            if data != b"dict-blob":
                raise ValueError("unexpected dictionary blob")

        def search(self, prefix, limit):
            return json.dumps(
                [
                    {
                        "characters": "老師",
                        "jyutping": "lou5 si1",
                        "english_definitions": ["teacher"],
                        "entry_source": "CEDict",
                        "match_type": "Jyutping",
                        "matched_spans": [[0, len(prefix)]],
                    }
                ]
            )
    '''
)


class _FakeResponse:
    def __init__(self, status_code: int, content: bytes) -> None:
        self.status_code = status_code
        self.content = content

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")


class _FakeSession:
    def __init__(self, status_code: int = 200, content: bytes = BLOB) -> None:
        self.status_code = status_code
        self.content = content
        self.urls: list[str] = []

    def get(self, url: str, headers: dict[str, str], timeout: float) -> _FakeResponse:
        self.urls.append(url)
        return _FakeResponse(self.status_code, self.content)


class _Engine:
    def __init__(self, data: bytes) -> None:
        self.data = data

    def search(self, prefix: str, limit: int) -> str:
        entry = {
            "characters": "老師",
            "jyutping": "lou5 si1",
            "english_definitions": ["teacher"],
            "entry_source": "CCanto",
            "match_type": "Jyutping",
            "matched_spans": [[0, len(prefix)]],
        }
        return json.dumps({"results": [entry], "timings": {"rank": 1}})


def _bootstrap(config: ClientConfig, http: _FakeSession, factory=_Engine, url: str = ""):
    cache = AssetCache(config.base_url, store=BlobStore(config.store_path), session=http)
    return asyncio.run(open_session(config, factory, url=url, cache=cache))


def test_bootstrap_runs_initial_query_and_caches_blob(tmp_path: Path) -> None:
    config = ClientConfig(base_url=BASE_URL, store_path=tmp_path / "cache.sqlite3")
    first_http = _FakeSession()

    session = _bootstrap(config, first_http, url="https://jyut.example/?q=lou")

    assert first_http.urls == ["https://jyut.example/static/full.jyp_dict"]
    assert session.available
    assert session.view.status is ViewStatus.RESULTS
    assert session.view.url == "https://jyut.example/?q=lou"
    assert (
        '<a class="jyutping-link" href="?q=lou5"><mark class="hit-highlight">lou</mark>5</a>'
        in session.view.html
    )
    assert "(Sourced from CC-Canto)" in session.view.html

    second_http = _FakeSession()
    again = _bootstrap(config, second_http)

    assert second_http.urls == []
    assert again.view.status is ViewStatus.IDLE


def test_bootstrap_failure_yields_unavailable_session(tmp_path: Path) -> None:
    config = ClientConfig(base_url=BASE_URL, store_path=tmp_path / "cache.sqlite3")

    session = _bootstrap(config, _FakeSession(status_code=503), url="https://jyut.example/?q=lou")

    assert not session.available
    assert session.view.status is ViewStatus.UNAVAILABLE
    assert session.view.message.startswith("Search unavailable: Failed to fetch")
    assert asyncio.run(session.on_input("lou")).status is ViewStatus.UNAVAILABLE


def test_engine_construction_failure_is_fatal(tmp_path: Path) -> None:
    config = ClientConfig(base_url=BASE_URL, store_path=tmp_path / "cache.sqlite3")

    def _reject(data: bytes) -> _Engine:
        raise ValueError("corrupt dictionary")

    session = _bootstrap(config, _FakeSession(), factory=_reject)

    assert session.view.message == (
        "Search unavailable: Cannot build search engine from full.jyp_dict: corrupt dictionary"
    )


@pytest.fixture
def engine_module(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    module_dir = tmp_path / "engine"
    module_dir.mkdir()
    (module_dir / f"{ENGINE_MODULE}.py").write_text(ENGINE_SOURCE, encoding="utf-8")
    monkeypatch.syspath_prepend(str(module_dir))
    return f"{ENGINE_MODULE}:Engine"


def _cli_args(tmp_path: Path, engine: str, *extra: str) -> list[str]:
    return [
        "--base-url",
        BASE_URL,
        "--engine",
        engine,
        "--store",
        str(tmp_path / "cache.sqlite3"),
        *extra,
    ]


def test_cli_single_query_prints_table(
    tmp_path: Path,
    engine_module: str,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    http = _FakeSession()
    monkeypatch.setattr(loader, "_build_session", lambda: http)

    exit_code = cli.main(_cli_args(tmp_path, engine_module, "--query", "lou"))

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "lou5 si1" in out
    assert "teacher" in out
    assert len(http.urls) == 1


def test_cli_html_output_and_refresh(
    tmp_path: Path,
    engine_module: str,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    BlobStore(tmp_path / "cache.sqlite3").put("full.jyp_dict", b"stale")
    http = _FakeSession()
    monkeypatch.setattr(loader, "_build_session", lambda: http)

    exit_code = cli.main(
        _cli_args(tmp_path, engine_module, "--refresh", "--query", "lou", "--format", "html")
    )

    out = capsys.readouterr().out
    assert exit_code == 0
    assert out.startswith('<ul class="card">')
    assert len(http.urls) == 1
    assert BlobStore(tmp_path / "cache.sqlite3").get("full.jyp_dict") == BLOB


def test_cli_reports_unavailable_search(
    tmp_path: Path,
    engine_module: str,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setattr(loader, "_build_session", lambda: _FakeSession(status_code=500))

    exit_code = cli.main(_cli_args(tmp_path, engine_module, "--query", "lou"))

    captured = capsys.readouterr()
    assert exit_code == 1
    assert "Search unavailable: Failed to fetch" in captured.err
    assert "500" in captured.err
