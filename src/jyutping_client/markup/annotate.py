"""Rewrite highlighted result markup into query-triggering links.

Two tree rewrites are provided. ``wrap_syllables`` turns each whitespace-delimited
jyutping word into one link, letting inline elements such as highlight marks sit
inside the link of the word they belong to. ``wrap_characters`` links every
character on its own, nesting the links inside any inline element instead of
merging across element boundaries.

Both operate on immutable ``MarkupNode`` trees and return new trees; inline
subtrees are shared where they are carried over unchanged.
"""

from __future__ import annotations

import re
from typing import Iterable, TypeVar
from urllib.parse import quote

from jyutping_client.io.html_io import parse_fragment, serialize, text_content
from jyutping_client.models import Element, Fragment, MarkupNode, Text

SYLLABLE_LINK_CLASS = "jyutping-link"
CHARACTER_LINK_CLASS = "character-link"
WHITESPACE_SPLIT_RE = re.compile(r"(\s+)")

# Characters left unescaped by JavaScript's encodeURIComponent besides the
# alphanumerics and "-_.~" that quote() always keeps.
_URI_COMPONENT_SAFE = "!*'()"

RootT = TypeVar("RootT", Fragment, Element)


def query_href(text: str) -> str:
    """Build the relative link that runs a search for ``text``."""

    return "?q=" + quote(text, safe=_URI_COMPONENT_SAFE)


def _with_children(root: RootT, children: tuple[MarkupNode, ...]) -> RootT:
    if isinstance(root, Fragment):
        return Fragment(children=children)
    return Element(tag=root.tag, attrs=root.attrs, children=children)


class _SyllableLinker:
    """Accumulates output nodes while tracking the currently open word link."""

    def __init__(self) -> None:
        self.output: list[MarkupNode] = []
        self._link_children: list[MarkupNode] | None = None
        self._link_text: list[str] = []

    def _open_link(self) -> list[MarkupNode]:
        if self._link_children is None:
            self._link_children = []
            self._link_text = []
        return self._link_children

    def add_word(self, word: str) -> None:
        self._open_link().append(Text(word))
        self._link_text.append(word)

    def add_element(self, element: Element) -> None:
        self._open_link().append(element)
        self._link_text.append(text_content(element))

    def add_whitespace(self, whitespace: str) -> None:
        self.flush()
        self.output.append(Text(whitespace))

    def flush(self) -> None:
        """Close the open link, if any.

        A link whose text is blank (for example one holding only an empty
        element) is not emitted as a link; its content is emitted in place.
        """

        if self._link_children is None:
            return

        target = "".join(self._link_text).strip()
        if target:
            self.output.append(
                Element(
                    tag="a",
                    attrs=(("class", SYLLABLE_LINK_CLASS), ("href", query_href(target))),
                    children=tuple(self._link_children),
                )
            )
        else:
            self.output.extend(self._link_children)

        self._link_children = None
        self._link_text = []


def wrap_syllables(root: RootT) -> RootT:
    """Wrap every whitespace-delimited word of ``root`` in one search link.

    Text nodes are split on whitespace runs. Non-whitespace runs are appended to
    the open link; whitespace runs close it and are kept as plain text between
    links. An inline element is carried into the open link as a whole, so a
    highlighted part of a word stays inside that word's link. The link target is
    the trimmed plain text of everything the link holds.

    Args:
        root: Fragment or element whose children are rewritten.

    Returns:
        New root of the same kind with rewritten children.
    """

    linker = _SyllableLinker()
    for node in root.children:
        if isinstance(node, Text):
            for part in WHITESPACE_SPLIT_RE.split(node.text):
                if not part:
                    continue
                if part.isspace():
                    linker.add_whitespace(part)
                else:
                    linker.add_word(part)
        else:
            linker.add_element(node)
    linker.flush()
    return _with_children(root, tuple(linker.output))


def _character_link(char: str) -> Element:
    return Element(
        tag="a",
        attrs=(("href", query_href(char)), ("class", CHARACTER_LINK_CLASS)),
        children=(Text(char),),
    )


def _wrap_character_nodes(nodes: Iterable[MarkupNode]) -> tuple[MarkupNode, ...]:
    wrapped: list[MarkupNode] = []
    for node in nodes:
        if isinstance(node, Text):
            wrapped.extend(_character_link(char) for char in node.text)
        else:
            wrapped.append(
                Element(
                    tag=node.tag,
                    attrs=node.attrs,
                    children=_wrap_character_nodes(node.children),
                )
            )
    return tuple(wrapped)


def wrap_characters(root: RootT) -> RootT:
    """Wrap every character of ``root`` in its own search link.

    Iteration is per Unicode scalar value. Elements are cloned with their tag and
    attributes, and their content is wrapped character by character inside the
    clone.

    Args:
        root: Fragment or element whose children are rewritten.

    Returns:
        New root of the same kind with rewritten children.
    """

    return _with_children(root, _wrap_character_nodes(root.children))


def make_jyutping_clickable(jyutping_html: str) -> str:
    """Parse, syllable-wrap, and re-serialize a jyutping HTML fragment."""

    return serialize(wrap_syllables(parse_fragment(jyutping_html)))


def make_characters_clickable(characters_html: str) -> str:
    """Parse, character-wrap, and re-serialize a characters HTML fragment."""

    return serialize(wrap_characters(parse_fragment(characters_html)))
