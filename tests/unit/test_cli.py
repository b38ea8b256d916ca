"""Unit tests for CLI helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from jyutping_client.cli import _load_engine_factory, build_arg_parser, format_view_text
from jyutping_client.models import (
    Entry,
    EntrySource,
    SearchResultPage,
    SessionState,
    SessionView,
    ViewStatus,
)


def _results_view(can_load_more: bool) -> SessionView:
    entry = Entry(
        characters='<mark class="hit-highlight">老</mark>師',
        jyutping="lou5 si1",
        english_definitions=("teacher", "tutor &amp; coach"),
        entry_source=EntrySource.CEDICT,
    )
    return SessionView(
        status=ViewStatus.RESULTS,
        state=SessionState("lou", 12),
        url="?q=lou",
        page=SearchResultPage(results=(entry,)),
        can_load_more=can_load_more,
    )


def test_format_view_text_renders_plain_table() -> None:
    text = format_view_text(_results_view(can_load_more=False))

    lines = text.splitlines()
    assert lines[0].split(" | ")[0].strip() == "jyutping"
    assert "lou5 si1 | 老師" in lines[2]
    assert "teacher; tutor & coach" in lines[2]
    assert lines[2].rstrip().endswith("CEDict")
    assert ":more" not in text


def test_format_view_text_mentions_load_more_on_full_page() -> None:
    assert ":more" in format_view_text(_results_view(can_load_more=True))


def test_format_view_text_for_idle_empty_and_unavailable() -> None:
    idle = SessionView(status=ViewStatus.IDLE, state=SessionState(), url="")
    empty = SessionView(
        status=ViewStatus.RESULTS,
        state=SessionState("zzz", 12),
        url="?q=zzz",
        page=SearchResultPage(),
    )
    unavailable = SessionView(
        status=ViewStatus.UNAVAILABLE,
        state=SessionState(),
        url="",
        message="Search unavailable: offline",
    )

    assert format_view_text(idle).startswith("Type jyutping")
    assert format_view_text(empty) == "No results for 'zzz'."
    assert format_view_text(unavailable) == "Search unavailable: offline"


@pytest.mark.parametrize(
    "target", ["no_colon", ":attr", "module:", "jyutping_client.cli:missing"]
)
def test_load_engine_factory_rejects_bad_target(target: str) -> None:
    with pytest.raises(SystemExit):
        _load_engine_factory(target)


def test_load_engine_factory_imports_callable() -> None:
    assert _load_engine_factory("jyutping_client.cli:format_view_text") is format_view_text


def test_arg_parser_defaults() -> None:
    args = build_arg_parser().parse_args(
        ["--base-url", "https://jyut.example/", "--engine", "engine:Build"]
    )

    assert args.filename == "full.jyp_dict"
    assert args.page_size == 12
    assert args.format == "text"
    assert args.store is None
    assert not args.refresh
    assert not args.debug


def test_arg_parser_accepts_store_path() -> None:
    args = build_arg_parser().parse_args(
        ["--base-url", "b", "--engine", "e:f", "--store", "cache/x.sqlite3", "--refresh"]
    )

    assert args.store == Path("cache/x.sqlite3")
    assert args.refresh
