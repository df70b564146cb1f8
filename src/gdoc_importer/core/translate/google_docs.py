"""Translate a Google Docs API document into the generic node tree.

The input is the JSON returned by ``documents.get``: ``body.content`` is an ordered
list of structural elements, each holding a ``paragraph``, a ``table`` or
something we ignore (section breaks, tables of contents).
"""

from collections.abc import Iterable, Mapping
from typing import Any

from loguru import logger

from gdoc_importer.models.node import (
    HeadingNode,
    ListItemNode,
    ListKind,
    Node,
    ParagraphNode,
    TableCellNode,
    TableNode,
    TableRowNode,
    TextFormat,
    TextNode,
)

DEFAULT_GLYPH = "•"
NUMBERED_GLYPH = "1."
REPLACEMENT_CHAR = "\ufffd"
MAX_HEADING_LEVEL = 4

ORDERED_GLYPH_TYPES = frozenset(
    {"DECIMAL", "ZERO_DECIMAL", "ALPHA", "UPPER_ALPHA", "ROMAN", "UPPER_ROMAN"}
)

# Glyph symbols Google Docs uses for bullet presets, mapped to what we render.
GLYPH_SYMBOLS: dict[str, str] = {
    "●": "•",
    "•": "•",
    "○": "◦",
    "◦": "◦",
    "■": "▪",
    "▪": "▪",
    "□": "▫",
    "◆": "◆",
    "❖": "◆",
    "◇": "◇",
    "➢": "➢",
    "➤": "➢",
    "➔": "➢",
    "→": "➢",
    "►": "➢",
    "❏": "☐",
    "☐": "☐",
    "❑": "☐",
    "✔": "✓",
    "✓": "✓",
    "-": "-",
    "–": "-",
}


def _text_format(style: Mapping[str, Any] | None) -> TextFormat:
    fmt = TextFormat(0)
    if not style:
        return fmt
    if style.get("bold"):
        fmt |= TextFormat.BOLD
    if style.get("italic"):
        fmt |= TextFormat.ITALIC
    if style.get("underline"):
        fmt |= TextFormat.UNDERLINE
    return fmt


def _text_nodes(runs: list[tuple[str, TextFormat]]) -> list[TextNode]:
    """Strip the paragraph terminator and replacement chars; drop empty runs."""
    if runs and runs[-1][0].endswith("\n"):
        runs[-1] = (runs[-1][0][:-1], runs[-1][1])
    nodes = []
    for text, fmt in runs:
        text = text.replace(REPLACEMENT_CHAR, "")
        if text:
            nodes.append(TextNode(text=text, format=fmt))
    return nodes


def _paragraph_runs(paragraph: Mapping[str, Any]) -> list[tuple[str, TextFormat]]:
    runs = []
    for element in paragraph.get("elements") or []:
        run = element.get("textRun")
        if run is None:
            # Inline objects (images) are reported by inline_image_ids().
            continue
        runs.append((run.get("content") or "", _text_format(run.get("textStyle"))))
    return runs


def _heading_level(paragraph: Mapping[str, Any]) -> int | None:
    style_type = (paragraph.get("paragraphStyle") or {}).get("namedStyleType") or ""
    if not style_type.startswith("HEADING_"):
        return None
    try:
        level = int(style_type.removeprefix("HEADING_"))
    except ValueError:
        return None
    if level < 1:
        return None
    return min(level, MAX_HEADING_LEVEL)


def resolve_bullet(document: Mapping[str, Any], bullet: Mapping[str, Any]) -> tuple[ListKind, str]:
    """Look up the kind and glyph of a bullet in the document's list registry.

    Anything missing or unrecognized resolves to a plain "•" bullet.
    """
    list_id = bullet.get("listId")
    level = bullet.get("nestingLevel") or 0
    list_entry = (document.get("lists") or {}).get(list_id) if list_id else None
    levels = ((list_entry or {}).get("listProperties") or {}).get("nestingLevels") or []
    if not 0 <= level < len(levels):
        logger.debug("No list style for list {!r} level {}, using default glyph", list_id, level)
        return ListKind.BULLET, DEFAULT_GLYPH
    style = levels[level] or {}
    if style.get("glyphType") in ORDERED_GLYPH_TYPES:
        return ListKind.NUMBERED, NUMBERED_GLYPH
    glyph = GLYPH_SYMBOLS.get(style.get("glyphSymbol") or "")
    if glyph is None:
        return ListKind.BULLET, DEFAULT_GLYPH
    return ListKind.BULLET, glyph


def parse_paragraph(document: Mapping[str, Any], paragraph: Mapping[str, Any]) -> Node | None:
    """Translate one paragraph; None when it has no text left after cleanup."""
    children = tuple(_text_nodes(_paragraph_runs(paragraph)))
    if not children:
        return None

    level = _heading_level(paragraph)
    if level is not None:
        return HeadingNode(children=children, level=level)

    bullet = paragraph.get("bullet")
    if bullet is not None:
        kind, glyph = resolve_bullet(document, bullet)
        return ListItemNode(
            children=children,
            indent=bullet.get("nestingLevel") or 0,
            kind=kind,
            glyph=glyph,
        )
    return ParagraphNode(children=children)


def _cell_node(cell: Mapping[str, Any]) -> TableCellNode:
    runs: list[tuple[str, TextFormat]] = []
    for element in cell.get("content") or []:
        paragraph = element.get("paragraph")
        if paragraph is not None:
            runs.extend(_paragraph_runs(paragraph))
    children = _text_nodes(runs) or [TextNode(text="")]
    return TableCellNode(children=tuple(children))


def _empty_cell() -> TableCellNode:
    return TableCellNode(children=(TextNode(text=""),))


def parse_table(table: Mapping[str, Any]) -> TableNode | None:
    """Translate a table, padding every row to the first row's width."""
    rows = [
        [_cell_node(cell) for cell in row.get("tableCells") or []]
        for row in table.get("tableRows") or []
    ]
    if not rows:
        return None
    width = len(rows[0])
    padded = []
    for cells in rows:
        if len(cells) < width:
            cells = cells + [_empty_cell() for _ in range(width - len(cells))]
        padded.append(TableRowNode(cells=tuple(cells)))
    return TableNode(rows=tuple(padded))


def flatten_list_items(nodes: Iterable[Node]) -> list[Node]:
    """Rewrite list items as paragraphs starting with an indented bullet prefix."""
    result: list[Node] = []
    for node in nodes:
        if isinstance(node, ListItemNode):
            prefix = TextNode(text="  " * node.indent + node.glyph + " ")
            node = ParagraphNode(children=(prefix, *node.children), indent=node.indent)
        result.append(node)
    return result


def _body_content(document: Any) -> list[Mapping[str, Any]]:
    if not isinstance(document, Mapping):
        return []
    return (document.get("body") or {}).get("content") or []


def parse_document(document: Any, *, flatten_lists: bool = True) -> list[Node]:
    """Translate a Google Docs document into a sequence of top-level nodes.

    Never raises for a well-formed document; a document without body content
    yields an empty list.
    """
    nodes: list[Node] = []
    for element in _body_content(document):
        node: Node | None = None
        if "paragraph" in element:
            node = parse_paragraph(document, element["paragraph"])
        elif "table" in element:
            node = parse_table(element["table"])
        if node is not None:
            nodes.append(node)
    logger.debug("Translated document into {} node(s)", len(nodes))
    return flatten_list_items(nodes) if flatten_lists else nodes


def inline_image_ids(document: Any) -> list[str]:
    """Return ids of inline objects that are images, in document order."""
    inline_objects = (document.get("inlineObjects") or {}) if isinstance(document, Mapping) else {}
    ids = []
    for element in _body_content(document):
        for part in (element.get("paragraph") or {}).get("elements") or []:
            object_id = (part.get("inlineObjectElement") or {}).get("inlineObjectId")
            if not object_id:
                continue
            embedded = (
                (inline_objects.get(object_id) or {}).get("inlineObjectProperties") or {}
            ).get("embeddedObject") or {}
            if (embedded.get("imageProperties") or {}).get("contentUri"):
                ids.append(object_id)
    return ids
