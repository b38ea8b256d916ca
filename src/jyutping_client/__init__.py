"""Cantonese dictionary search client package."""

from .models import (
    Element,
    Entry,
    EntrySource,
    Fragment,
    MatchSpan,
    MatchType,
    SearchResultPage,
    SessionState,
    SessionView,
    Text,
)

__all__ = [
    "Element",
    "Entry",
    "EntrySource",
    "Fragment",
    "MatchSpan",
    "MatchType",
    "SearchResultPage",
    "SessionState",
    "SessionView",
    "Text",
]
