"""CLI entrypoint: search a dictionary engine loaded through the asset cache."""

from __future__ import annotations

import argparse
import asyncio
import importlib
import logging
from pathlib import Path
import sys
from typing import Sequence

from jyutping_client.cache.store import BlobStore
from jyutping_client.config import DEFAULT_DICTIONARY_FILENAME, ClientConfig
from jyutping_client.errors import StoreError
from jyutping_client.io.html_io import parse_fragment, text_content
from jyutping_client.models import DEFAULT_PAGE_SIZE, SessionView, ViewStatus
from jyutping_client.pipeline import EngineFactory, open_session
from jyutping_client.session import SearchSession
from jyutping_client.url_state import DEBUG_PARAM, QUERY_PARAM, set_param

logger = logging.getLogger(__name__)

LOAD_MORE_COMMAND = ":more"


def _load_engine_factory(target: str) -> EngineFactory:
    """Import an engine factory given as ``module:attribute``.

    Args:
        target: Import path such as ``jyutping_engine:JyutpingSearch``.

    Returns:
        Callable building an engine from the dictionary blob.
    """

    module_name, sep, attribute = target.partition(":")
    if not sep or not module_name or not attribute:
        raise SystemExit(f"Engine must be given as module:attribute, got {target!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise SystemExit(f"Cannot import engine module {module_name!r}: {exc}") from exc
    factory = getattr(module, attribute, None)
    if not callable(factory):
        raise SystemExit(f"Engine factory {target!r} not found or not callable")
    return factory


def _format_table(headers: Sequence[str], data_rows: Sequence[Sequence[str]]) -> str:
    """Format rows as an ASCII table for terminal output.

    Args:
        headers: Table headers.
        data_rows: Row values.

    Returns:
        Monospace table string.
    """

    widths = [len(header) for header in headers]
    for row in data_rows:
        for idx, value in enumerate(row):
            widths[idx] = max(widths[idx], len(value))

    header_line = " | ".join(header.ljust(widths[idx]) for idx, header in enumerate(headers))
    separator_line = "-+-".join("-" * width for width in widths)
    body_lines = [
        " | ".join(value.ljust(widths[idx]) for idx, value in enumerate(row)) for row in data_rows
    ]
    return "\n".join([header_line, separator_line, *body_lines])


def _plain(html: str) -> str:
    return text_content(parse_fragment(html))


def format_view_text(view: SessionView) -> str:
    """Render a session view as a plain-text table.

    Args:
        view: View returned by a session transition.

    Returns:
        Terminal-friendly summary of the view.
    """

    if view.status is ViewStatus.UNAVAILABLE:
        return view.message
    if view.status is ViewStatus.IDLE or view.page is None:
        return "Type jyutping, English, or characters to search (e.g. lou5 si1, teacher, 老師)."
    if not view.page.results:
        return f"No results for {view.state.current_query!r}."

    rows = [
        [
            _plain(entry.jyutping),
            _plain(entry.characters),
            "; ".join(_plain(definition) for definition in entry.english_definitions),
            entry.entry_source.value,
        ]
        for entry in view.page.results
    ]
    table = _format_table(["jyutping", "characters", "english", "source"], rows)
    if view.can_load_more:
        table += f"\n\nMore results may be available; enter {LOAD_MORE_COMMAND} to load them."
    return table


def _print_view(view: SessionView | None, output_format: str) -> None:
    if view is None:
        return
    if output_format == "html":
        print(view.html if view.status is ViewStatus.RESULTS else format_view_text(view))
    else:
        print(format_view_text(view))


def build_arg_parser() -> argparse.ArgumentParser:
    """Construct CLI argument parser.

    Returns:
        Configured parser for the search command.
    """

    parser = argparse.ArgumentParser(description="Search a Cantonese dictionary engine.")
    parser.add_argument(
        "--base-url",
        required=True,
        help="URL of the directory serving the dictionary blob.",
    )
    parser.add_argument(
        "--engine",
        required=True,
        help="Engine factory as module:attribute, called with the dictionary bytes.",
    )
    parser.add_argument(
        "--filename",
        default=DEFAULT_DICTIONARY_FILENAME,
        help=f"Dictionary asset name (default: {DEFAULT_DICTIONARY_FILENAME}).",
    )
    parser.add_argument(
        "--store",
        type=Path,
        default=None,
        help="SQLite file caching the dictionary (default: data/ or working directory).",
    )
    parser.add_argument(
        "--refresh",
        action="store_true",
        help="Drop the cached dictionary before loading so it is downloaded again.",
    )
    parser.add_argument("--query", default=None, help="Run one query and exit.")
    parser.add_argument(
        "--page-size", type=int, default=DEFAULT_PAGE_SIZE, help="Results per new query."
    )
    parser.add_argument("--timeout", type=float, default=60.0, help="Download timeout in seconds.")
    parser.add_argument(
        "--format",
        choices=("text", "html"),
        default="text",
        help="Output format for results.",
    )
    parser.add_argument("--debug", action="store_true", help="Include diagnostics in HTML output.")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity.",
    )
    return parser


def _build_config(args: argparse.Namespace) -> ClientConfig:
    options = {
        "base_url": args.base_url,
        "filename": args.filename,
        "page_size": args.page_size,
        "timeout": args.timeout,
    }
    if args.store is not None:
        options["store_path"] = args.store
    try:
        return ClientConfig(**options)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc


async def _interactive(session: SearchSession, output_format: str) -> None:
    """Prompt for queries until end of input, like typing into the search box."""

    while True:
        print("=====================")
        try:
            line = await asyncio.to_thread(input, "Query: ")
        except EOFError:
            print()
            return
        text = line.strip()
        if text == LOAD_MORE_COMMAND:
            view = await session.load_more()
        else:
            view = await session.on_input(text)
        _print_view(view, output_format)


async def _run(args: argparse.Namespace) -> int:
    config = _build_config(args)
    engine_factory = _load_engine_factory(args.engine)

    if args.refresh:
        try:
            BlobStore(config.store_path).delete(config.filename)
        except StoreError as exc:
            logger.warning("Could not clear cached dictionary: %s", exc)

    url = set_param("", DEBUG_PARAM, "1") if args.debug else ""
    if args.query:
        url = set_param(url, QUERY_PARAM, args.query)

    session = await open_session(config, engine_factory, url=url)
    if not session.available:
        print(session.view.message, file=sys.stderr)
        return 1

    if args.query:
        _print_view(session.view, args.format)
        return 0

    await _interactive(session, args.format)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run CLI workflow from arguments through query output.

    Returns:
        Zero exit status on success, one when search could not be initialised.
    """

    parser = build_arg_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
