"""Decode engine search responses into the canonical ``SearchResultPage``.

Two response envelopes exist: the current ``{"results": [...], "timings": {...}}``
object and a legacy bare array of entries. Each result item is either a display
result wrapping a pre-highlighted ``rendered_entry`` or a bare entry. Bare entries
may carry raw field text with ``match_type`` and ``matched_spans`` instead of
highlight markup; those are highlighted here so nothing downstream sees raw spans.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Sequence

from jyutping_client.errors import ProtocolError, SpanError
from jyutping_client.io.html_io import escape_html
from jyutping_client.markup.highlight import highlight
from jyutping_client.models import Entry, EntrySource, MatchSpan, MatchType, SearchResultPage

MAX_REPORTED_ERRORS = 25


def _raise_collected(errors: list[str]) -> None:
    """Raise one ``ProtocolError`` summarizing collected field problems."""

    preview = "\n".join(f"- {item}" for item in errors[:MAX_REPORTED_ERRORS])
    rest = len(errors) - min(MAX_REPORTED_ERRORS, len(errors))
    more = f"\n- ... and {rest} more" if rest > 0 else ""
    raise ProtocolError(
        f"Search response validation failed with {len(errors)} errors:\n{preview}{more}"
    )


def _match_type_of(item: Mapping[str, Any]) -> str | None:
    """Find the match type in either the bare or the nested display shape."""

    if "match_type" in item:
        return item["match_type"]
    match_obj = item.get("match_obj")
    while isinstance(match_obj, Mapping):
        if "match_type" in match_obj:
            return match_obj["match_type"]
        match_obj = match_obj.get("match_obj")
    return None


def _parse_spans(raw_spans: Any, errors: list[str], where: str) -> list[MatchSpan]:
    if not isinstance(raw_spans, list):
        errors.append(f"{where}: matched_spans must be a list")
        return []
    spans: list[MatchSpan] = []
    for raw in raw_spans:
        try:
            spans.append(MatchSpan.from_pair(raw))
        except (TypeError, ValueError):
            errors.append(f"{where}: malformed span {raw!r}")
    return spans


def split_english_spans(
    definitions: Sequence[str], spans: Sequence[MatchSpan]
) -> list[list[MatchSpan]]:
    """Distribute spans over definitions laid end to end.

    English spans address the concatenation of all definitions. Each span is
    rebased onto the definition that fully contains it; spans crossing a
    definition boundary are dropped.

    Args:
        definitions: Raw definition texts in order.
        spans: Spans over the concatenated definitions.

    Returns:
        One span list per definition.
    """

    per_definition: list[list[MatchSpan]] = [[] for _ in definitions]
    offset = 0
    for idx, definition in enumerate(definitions):
        end = offset + len(definition)
        for span in spans:
            if span.start >= offset and span.end <= end:
                per_definition[idx].append(MatchSpan(span.start - offset, span.end - offset))
        offset = end
    return per_definition


def _highlight_raw_fields(
    characters: str,
    jyutping: str,
    definitions: list[str],
    match_type: MatchType | None,
    spans: list[MatchSpan],
    errors: list[str],
    where: str,
) -> tuple[str, str, list[str]]:
    """Turn raw field text into display HTML, highlighting the matched field."""

    char_spans = spans if match_type is MatchType.TRADITIONAL else []
    jyut_spans = spans if match_type is MatchType.JYUTPING else []
    if match_type is MatchType.ENGLISH:
        english_spans = split_english_spans(definitions, spans)
    else:
        english_spans = [[] for _ in definitions]

    try:
        return (
            highlight(characters, char_spans),
            highlight(jyutping, jyut_spans),
            [highlight(text, def_spans) for text, def_spans in zip(definitions, english_spans)],
        )
    except SpanError as exc:
        errors.append(f"{where}: {exc}")
        return (
            escape_html(characters),
            escape_html(jyutping),
            [escape_html(text) for text in definitions],
        )


def _decode_entry(item: Any, idx: int, errors: list[str]) -> Entry | None:
    """Decode one result item, appending any problems to ``errors``.

    Returns:
        Decoded entry, or ``None`` when the item is unusable.
    """

    where = f"Result {idx}"
    if not isinstance(item, Mapping):
        errors.append(f"{where}: expected an object, got {type(item).__name__}")
        return None

    fields = item.get("rendered_entry", item)
    if not isinstance(fields, Mapping):
        errors.append(f"{where}: rendered_entry must be an object")
        return None

    start_count = len(errors)
    characters = fields.get("characters")
    jyutping = fields.get("jyutping")
    definitions = fields.get("english_definitions")
    source_name = fields.get("entry_source")
    cost = fields.get("cost")

    if not isinstance(characters, str):
        errors.append(f"{where}: characters must be a string")
    if not isinstance(jyutping, str):
        errors.append(f"{where}: jyutping must be a string")
    if not isinstance(definitions, list) or not all(isinstance(d, str) for d in definitions):
        errors.append(f"{where}: english_definitions must be a list of strings")
    try:
        entry_source = EntrySource(source_name)
    except ValueError:
        errors.append(f"{where}: unknown entry_source {source_name!r}")
    if cost is not None and (isinstance(cost, bool) or not isinstance(cost, int)):
        errors.append(f"{where}: cost must be an integer")

    raw_match_type = _match_type_of(item)
    match_type: MatchType | None = None
    if raw_match_type is not None:
        try:
            match_type = MatchType(raw_match_type)
        except ValueError:
            errors.append(f"{where}: unknown match_type {raw_match_type!r}")

    if len(errors) > start_count:
        return None

    if "rendered_entry" not in item and "matched_spans" in item:
        spans = _parse_spans(item["matched_spans"], errors, where)
        characters, jyutping, definitions = _highlight_raw_fields(
            characters, jyutping, definitions, match_type, spans, errors, where
        )
        if len(errors) > start_count:
            return None

    return Entry(
        characters=characters,
        jyutping=jyutping,
        english_definitions=tuple(definitions),
        entry_source=entry_source,
        cost=cost,
        match_type=match_type,
        raw=dict(item),
    )


def decode_search_response(payload: str) -> SearchResultPage:
    """Decode an engine JSON response in either envelope shape.

    Args:
        payload: JSON text returned by ``SearchEngine.search``.

    Returns:
        Canonical page; ``timings`` is empty for the legacy bare-array shape.

    Raises:
        ProtocolError: If the JSON is malformed or any result has the wrong shape.
    """

    try:
        decoded = json.loads(payload)
    except (TypeError, json.JSONDecodeError) as exc:
        raise ProtocolError(f"Search response is not valid JSON: {exc}") from exc

    if isinstance(decoded, list):
        items = decoded
        timings: Mapping[str, Any] = {}
    elif isinstance(decoded, Mapping):
        items = decoded.get("results")
        if not isinstance(items, list):
            raise ProtocolError("Search response object has no 'results' list")
        timings = decoded.get("timings") or {}
        if not isinstance(timings, Mapping):
            raise ProtocolError("Search response 'timings' must be an object")
    else:
        raise ProtocolError(
            f"Search response must be an array or an object, got {type(decoded).__name__}"
        )

    errors: list[str] = []
    entries: list[Entry] = []
    for idx, item in enumerate(items, start=1):
        entry = _decode_entry(item, idx, errors)
        if entry is not None:
            entries.append(entry)

    if errors:
        _raise_collected(errors)

    return SearchResultPage(results=tuple(entries), timings=dict(timings))
