"""Data models shared by the markup, protocol, cache, and session layers.

This module defines explicit immutable contracts so each component has a narrow,
testable interface: parsed markup trees, match spans, decoded dictionary entries,
result pages, and the session snapshots returned by the controller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Union

DEFAULT_PAGE_SIZE = 12


@dataclass(frozen=True)
class Text:
    """Text node of a parsed HTML fragment, stored unescaped."""

    text: str


@dataclass(frozen=True)
class Element:
    """Element node with ordered attributes and ordered children.

    Attributes are kept as ``(name, value)`` pairs in source order so a rewrite
    can reproduce them verbatim.
    """

    tag: str
    attrs: tuple[tuple[str, str], ...] = ()
    children: tuple["MarkupNode", ...] = ()

    def get(self, name: str, default: str | None = None) -> str | None:
        """Return the first value of attribute ``name`` or ``default``."""

        for key, value in self.attrs:
            if key == name:
                return value
        return default


MarkupNode = Union[Text, Element]


@dataclass(frozen=True)
class Fragment:
    """Root of a parsed HTML fragment: a bare ordered list of top-level nodes."""

    children: tuple[MarkupNode, ...] = ()


@dataclass(frozen=True)
class MatchSpan:
    """Half-open ``[start, end)`` range over the raw text of one field.

    Offsets count Unicode scalar values, i.e. they index a Python ``str``.
    """

    start: int
    end: int

    @classmethod
    def from_pair(cls, pair: Any) -> "MatchSpan":
        """Build a span from a two-item ``[start, end]`` sequence."""

        start, end = pair
        return cls(start=int(start), end=int(end))


class EntrySource(Enum):
    """Dictionary data source tagged on each entry."""

    CEDICT = "CEDict"
    CCANTO = "CCanto"

    @property
    def css_class(self) -> str:
        """Colouring class used for the attribution line."""

        return {EntrySource.CEDICT: "ce-dict", EntrySource.CCANTO: "cc-canto"}[self]

    @property
    def attribution(self) -> str:
        """Human-readable attribution text shown under each entry."""

        return {
            EntrySource.CEDICT: "(Sourced from CEDict)",
            EntrySource.CCANTO: "(Sourced from CC-Canto)",
        }[self]


class MatchType(Enum):
    """Which entry field a search hit was found in."""

    JYUTPING = "Jyutping"
    TRADITIONAL = "Traditional"
    ENGLISH = "English"


@dataclass(frozen=True)
class Entry:
    """One decoded search result with display-ready, highlighted HTML fields.

    ``raw`` keeps the decoded JSON object the entry was built from; it only feeds
    the diagnostics panel and takes no part in equality.
    """

    characters: str
    jyutping: str
    english_definitions: tuple[str, ...]
    entry_source: EntrySource
    cost: int | None = None
    match_type: MatchType | None = None
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class SearchResultPage:
    """Canonical search response: ordered entries plus opaque timing diagnostics."""

    results: tuple[Entry, ...] = ()
    timings: Mapping[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class SessionState:
    """Query and page size owned by the search session controller."""

    current_query: str = ""
    current_max_results: int = DEFAULT_PAGE_SIZE


class ViewStatus(Enum):
    """Display state of the search panel."""

    IDLE = "idle"
    RESULTS = "results"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class SessionView:
    """Snapshot returned by every session transition.

    Attributes:
        status: Which panel is shown.
        state: Session state after the transition.
        url: Shareable URL after the transition.
        page: Decoded page for ``RESULTS``; ``None`` otherwise.
        html: Rendered result markup; empty when nothing is shown.
        can_load_more: Whether the "More" control is offered.
        message: Explanation for ``UNAVAILABLE`` views.
    """

    status: ViewStatus
    state: SessionState
    url: str
    page: SearchResultPage | None = None
    html: str = ""
    can_load_more: bool = False
    message: str = ""
