"""Serialize the generic node tree into Lexical editor JSON."""

from collections.abc import Iterable
from typing import Any

from gdoc_importer.models.node import (
    BlockNode,
    HeadingNode,
    ListItemNode,
    Node,
    ParagraphNode,
    TableCellNode,
    TableNode,
    TableRowNode,
    TextNode,
)

_ELEMENT_BASE: dict[str, Any] = {"direction": "ltr", "format": "", "version": 1}


def _element(type_: str, children: Iterable[Node], **extra: Any) -> dict[str, Any]:
    return {"type": type_, "children": [to_lexical(c) for c in children], **_ELEMENT_BASE, **extra}


def to_lexical(node: Node) -> dict[str, Any]:
    """Convert one node (and its subtree) to a Lexical JSON object."""
    if isinstance(node, TextNode):
        return {
            "type": "text",
            "detail": node.detail,
            "format": int(node.format),
            "mode": node.mode,
            "style": node.style,
            "text": node.text,
            "version": 1,
        }
    if isinstance(node, ParagraphNode):
        return _element("paragraph", node.children, indent=node.indent, textFormat=0)
    if isinstance(node, HeadingNode):
        return _element("heading", node.children, indent=0, tag=f"h{node.level}")
    if isinstance(node, ListItemNode):
        return _element(
            "listitem", node.children, indent=node.indent, listType=node.kind.value, value=1
        )
    if isinstance(node, TableNode):
        return _element(
            "table", node.rows, rowCount=node.row_count, columnCount=node.column_count
        )
    if isinstance(node, TableRowNode):
        return _element("tablerow", node.cells)
    if isinstance(node, TableCellNode):
        return _element("tablecell", node.children)
    if isinstance(node, BlockNode):
        return {"type": "block", "fields": dict(node.fields), "format": "", "version": 2}
    msg = f"Cannot serialize {type(node).__name__}"
    raise TypeError(msg)


def to_lexical_root(nodes: Iterable[Node]) -> dict[str, Any]:
    """Wrap a node sequence in a Lexical root document."""
    return {
        "root": {
            "type": "root",
            "children": [to_lexical(n) for n in nodes],
            "direction": "ltr",
            "format": "",
            "indent": 0,
            "version": 1,
        }
    }
