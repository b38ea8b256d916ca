"""HTML rendering of decoded search results."""

from __future__ import annotations

import json
from typing import Any, Mapping

from jyutping_client.io.html_io import parse_fragment, serialize
from jyutping_client.markup.annotate import wrap_characters, wrap_syllables
from jyutping_client.models import Element, Entry, MarkupNode, SearchResultPage, Text

LOAD_MORE_LABEL = "More"


def _debug_panel(payload: Mapping[str, Any]) -> Element:
    """Build a diagnostics block dumping ``payload`` as indented JSON."""

    dump = json.dumps(payload, indent=2, ensure_ascii=False, default=str)
    return Element(
        tag="div",
        attrs=(("class", "debug-info"),),
        children=(Element(tag="pre", children=(Text(dump),)),),
    )


def render_entry(entry: Entry, debug: bool = False) -> tuple[MarkupNode, ...]:
    """Render one entry as the list items of a result card.

    The title item holds the syllable-linked jyutping heading followed by the
    character-linked heading. Each English definition gets its own item with its
    highlight markup preserved, and an attribution line names the source.

    Args:
        entry: Decoded entry with display-ready HTML fields.
        debug: Whether to append the raw entry JSON.

    Returns:
        Nodes to append to the result card, in display order.
    """

    jyutping_heading = Element(
        tag="h3",
        attrs=(("class", "title"), ("title", entry.entry_source.value)),
        children=wrap_syllables(parse_fragment(entry.jyutping)).children,
    )
    characters_heading = Element(
        tag="h2",
        attrs=(("class", "title"),),
        children=wrap_characters(parse_fragment(entry.characters)).children,
    )
    title = Element(
        tag="li",
        attrs=(("class", "card-item"),),
        children=(
            Element(tag="span", attrs=(("class", "item-jyutping"),), children=(jyutping_heading,)),
            Element(tag="span", attrs=(("class", "item-english"),), children=(characters_heading,)),
        ),
    )

    nodes: list[MarkupNode] = [title]
    for definition in entry.english_definitions:
        nodes.append(
            Element(
                tag="li",
                attrs=(("class", "card-item"),),
                children=(
                    Element(
                        tag="span",
                        attrs=(("class", "item-english indent"),),
                        children=parse_fragment(definition).children,
                    ),
                ),
            )
        )

    nodes.append(
        Element(
            tag="p",
            attrs=(("class", f"item-english {entry.entry_source.css_class}"),),
            children=(Text(entry.entry_source.attribution),),
        )
    )

    if debug:
        nodes.append(_debug_panel(entry.raw))
    return tuple(nodes)


def render_page(page: SearchResultPage, max_results: int, debug: bool = False) -> str:
    """Render a full result page as HTML.

    Args:
        page: Decoded search response.
        max_results: Limit the page was requested with; a full page offers the
            "More" control.
        debug: Whether to include timings and raw entry diagnostics.

    Returns:
        Card list markup, or an empty string when there are no results.
    """

    if not page.results:
        return ""

    card_children: list[MarkupNode] = []
    if debug:
        card_children.append(_debug_panel(page.timings))
        card_children.append(Element(tag="hr"))
    for entry in page.results:
        card_children.extend(render_entry(entry, debug=debug))

    nodes: list[MarkupNode] = [
        Element(tag="ul", attrs=(("class", "card"),), children=tuple(card_children))
    ]
    if len(page.results) == max_results:
        nodes.append(
            Element(
                tag="button",
                attrs=(("class", "load-more-btn"),),
                children=(Text(LOAD_MORE_LABEL),),
            )
        )
    return serialize(nodes)
