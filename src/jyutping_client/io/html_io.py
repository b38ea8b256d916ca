"""HTML fragment parsing and serialization over immutable markup trees."""

from __future__ import annotations

from html import escape
from typing import Iterable

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from jyutping_client.models import Element, Fragment, MarkupNode, Text

VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "source",
        "track",
        "wbr",
    }
)


def escape_html(text: str) -> str:
    """Escape ``&``, ``<``, ``>``, ``"`` and ``'`` for safe HTML embedding."""

    return escape(text, quote=True)


def _convert(children: Iterable[object]) -> tuple[MarkupNode, ...]:
    """Convert BeautifulSoup children to markup nodes, dropping comments.

    Args:
        children: ``contents`` of a soup or tag.

    Returns:
        Immutable tuple of converted nodes in source order.
    """

    nodes: list[MarkupNode] = []
    for child in children:
        if isinstance(child, Tag):
            attrs = tuple(
                (name, "" if value is None else str(value)) for name, value in child.attrs.items()
            )
            nodes.append(Element(tag=child.name, attrs=attrs, children=_convert(child.contents)))
        elif isinstance(child, Comment):
            continue
        elif isinstance(child, NavigableString):
            text = str(child)
            if text:
                nodes.append(Text(text))
    return tuple(nodes)


def parse_fragment(html: str) -> Fragment:
    """Parse an HTML fragment into a markup tree.

    ``class`` and other multi-valued attributes are kept as the literal source
    string so attributes survive a rewrite verbatim.

    Args:
        html: Fragment markup such as ``lou5 <mark class="hit-highlight">si</mark>1``.

    Returns:
        Fragment whose children mirror the top-level nodes of ``html``.
    """

    soup = BeautifulSoup(html, "html.parser", multi_valued_attributes=None)
    return Fragment(children=_convert(soup.contents))


def _serialize_node(node: MarkupNode, out: list[str]) -> None:
    if isinstance(node, Text):
        out.append(escape(node.text, quote=False))
        return

    out.append(f"<{node.tag}")
    for name, value in node.attrs:
        out.append(f' {name}="{escape(value, quote=True)}"')
    out.append(">")
    if node.tag in VOID_ELEMENTS:
        return
    for child in node.children:
        _serialize_node(child, out)
    out.append(f"</{node.tag}>")


def serialize(root: Fragment | MarkupNode | Iterable[MarkupNode]) -> str:
    """Serialize a fragment, a node, or a node sequence back to HTML.

    A ``Fragment`` serializes to its children only, mirroring ``innerHTML``.

    Args:
        root: Tree or nodes to render.

    Returns:
        HTML text.
    """

    if isinstance(root, Fragment):
        nodes: Iterable[MarkupNode] = root.children
    elif isinstance(root, (Text, Element)):
        nodes = (root,)
    else:
        nodes = root

    out: list[str] = []
    for node in nodes:
        _serialize_node(node, out)
    return "".join(out)


def text_content(root: Fragment | MarkupNode) -> str:
    """Return the concatenated text of all descendant text nodes."""

    if isinstance(root, Text):
        return root.text
    return "".join(text_content(child) for child in root.children)
