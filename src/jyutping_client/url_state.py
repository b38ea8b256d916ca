"""Shareable-URL helpers for the ``q`` and ``debug`` query parameters.

The session replaces its URL in place on every change; these helpers only
rewrite the query string and leave every other URL component untouched.
"""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

QUERY_PARAM = "q"
DEBUG_PARAM = "debug"


def _params(url: str) -> list[tuple[str, str]]:
    return parse_qsl(urlsplit(url).query, keep_blank_values=True)


def _with_params(url: str, params: list[tuple[str, str]]) -> str:
    parts = urlsplit(url)
    return urlunsplit(parts._replace(query=urlencode(params)))


def get_param(url: str, name: str) -> str | None:
    """Return the first value of ``name`` in the URL query, or ``None``."""

    for key, value in _params(url):
        if key == name:
            return value
    return None


def set_param(url: str, name: str, value: str) -> str:
    """Set ``name`` to ``value``, keeping its position if already present."""

    params = _params(url)
    updated: list[tuple[str, str]] = []
    replaced = False
    for key, current in params:
        if key != name:
            updated.append((key, current))
        elif not replaced:
            updated.append((key, value))
            replaced = True
    if not replaced:
        updated.append((name, value))
    return _with_params(url, updated)


def remove_param(url: str, name: str) -> str:
    """Drop every occurrence of ``name`` from the URL query."""

    return _with_params(url, [(key, value) for key, value in _params(url) if key != name])


def debug_enabled(url: str) -> bool:
    """Whether the URL asks for the diagnostics panel (``debug=1``)."""

    return get_param(url, DEBUG_PARAM) == "1"
