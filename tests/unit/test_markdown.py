"""Tests for the markdown fallback parser."""

from gdoc_importer.core.translate.markdown import (
    html_to_markdown,
    parse_markdown,
    parse_table_lines,
)
from gdoc_importer.models.node import (
    HeadingNode,
    ParagraphNode,
    TableNode,
    TextFormat,
    TextNode,
    node_text,
)


def _texts(nodes: list) -> list[str]:
    return [node_text(n) for n in nodes]


def _cells(table: TableNode) -> list[list[str]]:
    return [[node_text(c) for c in row.cells] for row in table.rows]


def test_headings() -> None:
    """One to four hashes followed by a space make a heading."""
    nodes = parse_markdown("# One\n## Two\n### Three\n#### Four")

    assert [n.level for n in nodes] == [1, 2, 3, 4]
    assert all(isinstance(n, HeadingNode) for n in nodes)
    assert _texts(nodes) == ["One", "Two", "Three", "Four"]


def test_deep_or_unspaced_hashes_are_paragraphs() -> None:
    """Five hashes, or hashes without a space, are plain text."""
    nodes = parse_markdown("##### Five\n##FAQ")

    assert all(isinstance(n, ParagraphNode) for n in nodes)
    assert _texts(nodes) == ["##### Five", "##FAQ"]


def test_empty_heading_dropped() -> None:
    """A heading marker with no text produces nothing."""
    assert parse_markdown("##   ") == []


def test_bullets_become_prefixed_paragraphs() -> None:
    """Dash and star bullets become paragraphs starting with the bullet glyph."""
    nodes = parse_markdown("- dash\n* star\n  - nested")

    assert all(isinstance(n, ParagraphNode) for n in nodes)
    assert _texts(nodes) == ["• dash", "• star", "• nested"]


def test_bullets_are_not_bold_parsed() -> None:
    """Bold markers inside a bullet are kept as text."""
    [node] = parse_markdown("- **bold** item")

    assert node_text(node) == "• **bold** item"
    assert node.children[0].format == TextFormat(0)


def test_numbered_lines_lose_prefix() -> None:
    """Numbered lines keep their text without renumbering."""
    nodes = parse_markdown("1. First\n10. Tenth")

    assert _texts(nodes) == ["First", "Tenth"]


def test_bold_span_marks_whole_paragraph() -> None:
    """A **bold** span is unwrapped and the whole node is bold."""
    [node] = parse_markdown("Some **bold** text")

    assert node.children == (TextNode("Some bold text", TextFormat.BOLD),)


def test_plain_paragraph() -> None:
    """Other lines are trimmed paragraphs; blank lines are skipped."""
    nodes = parse_markdown("  Hello there  \n\n\nBye")

    assert _texts(nodes) == ["Hello there", "Bye"]
    assert nodes[0].children[0].format == TextFormat(0)


def test_table_block() -> None:
    """Consecutive pipe lines form one table; separators are dropped."""
    text = "Intro\n| A | B |\n|---|---|\n| 1 | 2 |\nOutro"

    nodes = parse_markdown(text)

    assert _texts(nodes)[0] == "Intro"
    assert isinstance(nodes[1], TableNode)
    assert _cells(nodes[1]) == [["A", "B"], ["1", "2"]]
    assert node_text(nodes[2]) == "Outro"


def test_table_rows_padded_to_first_row() -> None:
    """Short rows are padded; every row ends up with the same width."""
    table = parse_table_lines(["| A | B | C |", "| :-- | --- | --: |", "| 1 |", "| 2 | 3 |"])

    assert table is not None
    assert _cells(table) == [["A", "B", "C"], ["1", "", ""], ["2", "3", ""]]
    assert {len(row.cells) for row in table.rows} == {3}


def test_single_row_table() -> None:
    """A lone pipe row is still a table."""
    [node] = parse_markdown("| only | row |")

    assert isinstance(node, TableNode)
    assert node.row_count == 1
    assert node.column_count == 2


def test_separator_only_table_dropped() -> None:
    """A block with no data rows produces no table."""
    assert parse_table_lines(["|---|", "| - |"]) is None
    assert parse_markdown("|---|---|") == []


def test_empty_input() -> None:
    assert parse_markdown("") == []


def test_html_export_round_trip() -> None:
    """An HTML export converts to markdown the parser understands."""
    html = (
        "<h1>Guide</h1>"
        "<p>Hello <b>world</b></p>"
        "<ul><li>One</li><li>Two</li></ul>"
        "<h3>What is it?</h3>"
        "<p>A thing.</p>"
    )

    nodes = parse_markdown(html_to_markdown(html))

    assert _texts(nodes) == [
        "Guide",
        "Hello world",
        "• One",
        "• Two",
        "What is it?",
        "A thing.",
    ]
    assert isinstance(nodes[0], HeadingNode)
    assert nodes[0].level == 1
    assert nodes[1].children[0].format == TextFormat.BOLD
    assert isinstance(nodes[4], HeadingNode)
    assert nodes[4].level == 3


def test_html_table_export() -> None:
    """Exported tables come back as rectangular tables."""
    html = "<table><tr><th>A</th><th>B</th></tr><tr><td>1</td><td>2</td></tr></table>"

    tables = [n for n in parse_markdown(html_to_markdown(html)) if isinstance(n, TableNode)]

    assert len(tables) == 1
    assert _cells(tables[0]) == [["A", "B"], ["1", "2"]]
