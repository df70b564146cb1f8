"""Domain models for the generic rich-text tree."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum, IntFlag
from typing import Any


class TextFormat(IntFlag):
    """Style flags carried by a text node."""

    BOLD = 1
    ITALIC = 2
    UNDERLINE = 4


class ListKind(Enum):
    """Kind of list a list item belongs to."""

    BULLET = "bullet"
    NUMBERED = "number"


@dataclass(frozen=True)
class TextNode:
    """A run of text with uniform styling."""

    text: str
    format: TextFormat = TextFormat(0)
    detail: int = 0
    mode: str = "normal"
    style: str = ""


@dataclass(frozen=True)
class ParagraphNode:
    """A paragraph of inline children."""

    children: tuple["Node", ...]
    indent: int = 0


@dataclass(frozen=True)
class HeadingNode:
    """A heading, level 1 (largest) to 4."""

    children: tuple["Node", ...]
    level: int


@dataclass(frozen=True)
class ListItemNode:
    """A list item, before it is flattened into a bullet-prefixed paragraph."""

    children: tuple["Node", ...]
    indent: int = 0
    kind: ListKind = ListKind.BULLET
    glyph: str = "•"


@dataclass(frozen=True)
class TableCellNode:
    """A single table cell."""

    children: tuple["Node", ...]


@dataclass(frozen=True)
class TableRowNode:
    """A row of table cells."""

    cells: tuple[TableCellNode, ...]


@dataclass(frozen=True)
class TableNode:
    """A table; rows are expected to be rectangular."""

    rows: tuple[TableRowNode, ...]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.rows[0].cells) if self.rows else 0


@dataclass(frozen=True)
class BlockNode:
    """An opaque CMS block (FAQ, media, ...), discriminated by ``fields["blockType"]``."""

    fields: Mapping[str, Any] = field(default_factory=dict)

    @property
    def block_type(self) -> str | None:
        return self.fields.get("blockType")


Node = (
    TextNode
    | ParagraphNode
    | HeadingNode
    | ListItemNode
    | TableNode
    | TableRowNode
    | TableCellNode
    | BlockNode
)


def child_nodes(node: Node) -> tuple[Node, ...]:
    """Return the direct children of a node, in reading order."""
    if isinstance(node, TableNode):
        return node.rows
    if isinstance(node, TableRowNode):
        return node.cells
    if isinstance(node, TextNode | BlockNode):
        return ()
    return node.children


def node_text(node: Node) -> str:
    """Concatenate the text of every text leaf below a node."""
    if isinstance(node, TextNode):
        return node.text
    return "".join(node_text(child) for child in child_nodes(node))
