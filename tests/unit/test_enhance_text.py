"""Tests for structure-preserving text enhancement."""

from gdoc_importer.core.enhance.text import (
    EnhancementStatus,
    build_instructions,
    build_line_map,
    enhance_nodes,
    extract_plain_text,
    substitute_text,
)
from gdoc_importer.errors import (
    RewriteProviderError,
    RewriteQuotaExceededError,
    RewriteTimeoutError,
)
from gdoc_importer.models.node import BlockNode, ParagraphNode, TextFormat, TextNode, node_text
from tests.unit.fakes import FakeRewriter, h, p


def test_extract_plain_text() -> None:
    """One paragraph per top-level node with text, blank-line separated."""
    nodes = [h("Title"), p("  "), p("Body text. ")]

    assert extract_plain_text(nodes) == "Title\n\nBody text."


def test_build_line_map_changed_lines() -> None:
    """Only lines that differ are mapped."""
    assert build_line_map("a\n\nb", "a\n\nB") == {"b": "B"}


def test_build_line_map_ignores_blank_lines() -> None:
    """Blank lines do not count towards the line structure."""
    assert build_line_map("a\n\nb", "a\nb\n\n") == {}


def test_build_line_map_mismatch() -> None:
    assert build_line_map("a\n\nb", "a b") is None


def test_instructions_name_audience() -> None:
    assert "tutorial" in build_instructions("tutorial")


def test_enhancement_applied() -> None:
    """Rewritten lines replace the text of matching leaves."""
    nodes = [h("Teh title"), p("Some txt here.")]
    rewriter = FakeRewriter(lambda t: t.replace("Teh", "The").replace("txt", "text"))

    result = enhance_nodes(nodes, rewriter)

    assert result.status is EnhancementStatus.APPLIED
    assert result.applied
    assert [node_text(n) for n in result.nodes] == ["The title", "Some text here."]
    assert result.nodes[0].level == 2


def test_enhancement_keeps_formatting() -> None:
    """Style flags of substituted leaves are kept."""
    nodes = [p("bold claim", TextFormat.BOLD)]

    result = enhance_nodes(nodes, FakeRewriter(lambda t: "Bold claim"))

    assert result.nodes == [ParagraphNode(children=(TextNode("Bold claim", TextFormat.BOLD),))]


def test_untouched_nodes_keep_identity() -> None:
    """Nodes without changed text are returned as the same objects."""
    nodes = [p("Fine as is."), p("Fix teh typo.")]

    result = enhance_nodes(nodes, FakeRewriter(lambda t: t.replace("teh", "the")))

    assert result.nodes[0] is nodes[0]
    assert node_text(result.nodes[1]) == "Fix the typo."


def test_instructions_sent_with_text() -> None:
    rewriter = FakeRewriter()

    enhance_nodes([p("Hello")], rewriter, audience="newsletter")

    [(text, instructions)] = rewriter.rewrite_calls
    assert text == "Hello"
    assert "newsletter" in instructions


def test_line_mismatch_returns_input() -> None:
    """A rewrite with a different line count leaves the tree untouched."""
    nodes = [p("One."), p("Two.")]

    result = enhance_nodes(nodes, FakeRewriter(lambda t: t + "\n\nThree."))

    assert result.status is EnhancementStatus.LINE_MISMATCH
    assert result.nodes is nodes


def test_unchanged_rewrite() -> None:
    nodes = [p("Perfect.")]

    result = enhance_nodes(nodes, FakeRewriter())

    assert result.status is EnhancementStatus.UNCHANGED
    assert result.nodes is nodes


def test_empty_document_not_sent() -> None:
    """Nothing is sent when there is no text."""
    rewriter = FakeRewriter()
    nodes = [p(""), BlockNode(fields={"blockType": "mediaBlock"})]

    result = enhance_nodes(nodes, rewriter)

    assert result.status is EnhancementStatus.EMPTY
    assert rewriter.rewrite_calls == []


def test_quota_exceeded_carries_reset_hint() -> None:
    nodes = [p("Text.")]
    rewriter = FakeRewriter(error=RewriteQuotaExceededError("quota", reset_hint=30.0))

    result = enhance_nodes(nodes, rewriter)

    assert result.status is EnhancementStatus.QUOTA_EXCEEDED
    assert result.reset_hint == 30.0
    assert result.nodes is nodes


def test_service_failures_degrade() -> None:
    """Timeouts and provider errors leave the input as is."""
    nodes = [p("Text.")]

    for error in (RewriteTimeoutError("slow"), RewriteProviderError("broken")):
        result = enhance_nodes(nodes, FakeRewriter(error=error))

        assert result.status is EnhancementStatus.FAILED
        assert result.nodes is nodes


def test_substitute_first_match_only() -> None:
    """Each leaf takes the first mapped line it contains, replaced once."""
    [node] = substitute_text([p("aa")], {"a": "b"})

    assert node_text(node) == "ba"


def test_substitute_skips_blocks() -> None:
    block = BlockNode(fields={"blockType": "faq", "title": "old"})

    assert substitute_text([block], {"old": "new"}) == [block]
