"""Parse markdown-ish text into the generic node tree.

Used when the structured document cannot be fetched and only the HTML export
is available: the export is converted to markdown, then parsed line by line.
Lists come out as prefixed paragraphs and numbered lines lose their number,
the same shapes the structure translator produces.
"""

import re

from loguru import logger
from markdownify import ATX, markdownify as md

from gdoc_importer.models.node import (
    HeadingNode,
    Node,
    ParagraphNode,
    TableCellNode,
    TableNode,
    TableRowNode,
    TextFormat,
    TextNode,
)

HEADING_RE = re.compile(r"^(#{1,4}) (.*)$")
BULLET_PREFIX_RE = re.compile(r"^\s*[-*]\s+")
NUMBERED_RE = re.compile(r"^\d+\.\s")
NUMBERED_PREFIX_RE = re.compile(r"^\d+\.\s*")
TABLE_SEPARATOR_RE = re.compile(r"^\|[\s\-:|]+\|$")
BOLD_SPAN_RE = re.compile(r"\*\*(.+?)\*\*")


def _paragraph(text: str, fmt: TextFormat = TextFormat(0)) -> ParagraphNode:
    return ParagraphNode(children=(TextNode(text=text, format=fmt),))


def _cell(text: str) -> TableCellNode:
    return TableCellNode(children=(TextNode(text=text),))


def parse_table_lines(lines: list[str]) -> TableNode | None:
    """Build a table from consecutive pipe-delimited lines.

    Separator rows are discarded and rows are padded to the first row's width.
    Returns None when no data rows remain.
    """
    rows: list[list[str]] = []
    for line in lines:
        line = line.strip()
        if not line or TABLE_SEPARATOR_RE.match(line):
            continue
        cells = [c.strip() for c in line.split("|")]
        cells = [c for c in cells if c]
        if cells:
            rows.append(cells)
    if not rows:
        return None

    width = len(rows[0])
    table_rows = []
    for cells in rows:
        padded = [_cell(c) for c in cells] + [_cell("") for _ in range(width - len(cells))]
        table_rows.append(TableRowNode(cells=tuple(padded)))
    return TableNode(rows=tuple(table_rows))


def _inline_paragraph(line: str) -> ParagraphNode:
    text = line.strip()
    # Bold applies to the whole node; only one span per line is really supported.
    unwrapped, count = BOLD_SPAN_RE.subn(r"\1", text)
    fmt = TextFormat.BOLD if count else TextFormat(0)
    return _paragraph(unwrapped, fmt)


def _line_node(line: str) -> Node | None:
    m = HEADING_RE.match(line)
    if m:
        text = m.group(2).strip()
        return HeadingNode(children=(TextNode(text=text),), level=len(m.group(1))) if text else None

    stripped = line.strip()
    if stripped.startswith(("- ", "* ")):
        text = BULLET_PREFIX_RE.sub("", line).strip()
        return _paragraph(f"• {text}") if text else None

    if NUMBERED_RE.match(line):
        text = NUMBERED_PREFIX_RE.sub("", line).strip()
        return _paragraph(text) if text else None

    if stripped:
        return _inline_paragraph(line)
    return None


def parse_markdown(text: str) -> list[Node]:
    """Parse markdown text into a sequence of top-level nodes."""
    nodes: list[Node] = []
    table_lines: list[str] = []

    def flush_table() -> None:
        if table_lines:
            table = parse_table_lines(table_lines)
            if table is not None:
                nodes.append(table)
            table_lines.clear()

    for line in text.split("\n"):
        if line.strip().startswith("|"):
            table_lines.append(line)
            continue
        flush_table()
        node = _line_node(line)
        if node is not None:
            nodes.append(node)
    flush_table()

    logger.debug("Parsed markdown into {} node(s)", len(nodes))
    return nodes


def html_to_markdown(html: str) -> str:
    """Convert an HTML export to markdown the parser understands."""
    return md(html, heading_style=ATX, bullets="-")
