"""Span highlighting: raw field text plus match spans to mark-wrapped HTML."""

from __future__ import annotations

from typing import Sequence

from jyutping_client.errors import SpanError
from jyutping_client.io.html_io import escape_html
from jyutping_client.models import MatchSpan

HIGHLIGHT_OPEN = '<mark class="hit-highlight">'
HIGHLIGHT_CLOSE = "</mark>"


def _validate_spans(text: str, spans: Sequence[MatchSpan]) -> None:
    """Reject spans that do not address a range inside ``text``.

    Raises:
        SpanError: If any span is negative, reversed, or past the end of text.
    """

    errors: list[str] = []
    for idx, span in enumerate(spans, start=1):
        if span.start < 0 or span.end < span.start or span.end > len(text):
            errors.append(
                f"Span {idx}: [{span.start}, {span.end}) outside text of length {len(text)}"
            )
    if errors:
        raise SpanError("; ".join(errors))


def normalize_spans(spans: Sequence[MatchSpan]) -> list[MatchSpan]:
    """Sort spans by start and make them non-overlapping.

    Sorting is stable on ``start``. A span beginning before the end of the
    previously kept span is clipped to begin there; spans that are empty after
    clipping (or empty to begin with) are dropped.

    Args:
        spans: Spans in any order.

    Returns:
        Sorted, non-overlapping, non-empty spans.
    """

    kept: list[MatchSpan] = []
    last = 0
    for span in sorted(spans, key=lambda item: item.start):
        start = max(span.start, last)
        if start >= span.end:
            continue
        kept.append(MatchSpan(start=start, end=span.end))
        last = span.end
    return kept


def highlight(text: str, spans: Sequence[MatchSpan]) -> str:
    """Render ``text`` as escaped HTML with each span wrapped in a highlight mark.

    Args:
        text: Raw, unescaped field text.
        spans: Match spans over ``text`` in Unicode scalar value offsets.

    Returns:
        HTML string; equal to the escaped text when ``spans`` is empty.

    Raises:
        SpanError: If a span lies outside ``text``.
    """

    if not spans:
        return escape_html(text)

    _validate_spans(text, spans)

    parts: list[str] = []
    last = 0
    for span in normalize_spans(spans):
        if span.start > last:
            parts.append(escape_html(text[last : span.start]))
        parts.append(HIGHLIGHT_OPEN)
        parts.append(escape_html(text[span.start : span.end]))
        parts.append(HIGHLIGHT_CLOSE)
        last = span.end

    if last < len(text):
        parts.append(escape_html(text[last:]))
    return "".join(parts)
