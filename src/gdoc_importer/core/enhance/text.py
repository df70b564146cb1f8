"""Rewrite prose through an external service without losing document structure.

The document is flattened to plain text, one top-level node per paragraph,
and sent to the rewriter with instructions to only polish wording. The
answer is mapped back line by line and applied to the text leaves as
substring substitutions, so formatting and structure stay untouched. If the
rewrite changed the number of lines, nothing is applied.

Substitution is first-match-wins per leaf; a line that repeats across leaves
is only approximately mapped.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from enum import Enum

from loguru import logger

from gdoc_importer.errors import RewriteError, RewriteQuotaExceededError
from gdoc_importer.models.node import BlockNode, Node, TableNode, TableRowNode, TextNode, node_text
from gdoc_importer.protocols import TextRewriter

INSTRUCTIONS_TEMPLATE = """\
You are a copy editor improving a {audience}. Improve the TEXT ONLY and keep \
the structure exactly as it is.

Rules:
- Keep the same number of lines, in the same order: one output line per input line
- Keep blank lines between paragraphs where they are
- Do not add, remove, merge or split paragraphs, headings or list items
- Keep list bullets, numbering and indentation characters as they are
- Keep the meaning and the original wording wherever it is already correct
- Only fix grammar, spelling and clarity
- Do not add information that was not in the original

Return only the edited text, without any commentary."""


class EnhancementStatus(Enum):
    """Outcome of an enhancement attempt."""

    APPLIED = "applied"
    UNCHANGED = "unchanged"
    EMPTY = "empty"
    LINE_MISMATCH = "line_mismatch"
    QUOTA_EXCEEDED = "quota_exceeded"
    FAILED = "failed"


@dataclass(frozen=True)
class EnhancementResult:
    """Nodes after enhancement, and what happened.

    ``nodes`` is the input sequence itself whenever nothing was applied.
    """

    nodes: Sequence[Node]
    status: EnhancementStatus
    reset_hint: float | None = None

    @property
    def applied(self) -> bool:
        return self.status is EnhancementStatus.APPLIED


def build_instructions(audience: str) -> str:
    return INSTRUCTIONS_TEMPLATE.format(audience=audience)


def extract_plain_text(nodes: Sequence[Node]) -> str:
    """One paragraph per top-level node with text, separated by blank lines."""
    paragraphs = [text for text in (node_text(n).strip() for n in nodes) if text]
    return "\n\n".join(paragraphs)


def _content_lines(text: str) -> list[str]:
    return [line.strip() for line in text.split("\n") if line.strip()]


def build_line_map(original: str, rewritten: str) -> dict[str, str] | None:
    """Map each changed original line to its rewrite.

    Returns None when the two texts do not have the same number of non-blank lines.
    """
    original_lines = _content_lines(original)
    rewritten_lines = _content_lines(rewritten)
    if len(original_lines) != len(rewritten_lines):
        return None
    return {old: new for old, new in zip(original_lines, rewritten_lines) if old != new}


def _substitute_leaf(node: TextNode, mapping: Mapping[str, str]) -> TextNode:
    for old, new in mapping.items():
        if old in node.text:
            return replace(node, text=node.text.replace(old, new, 1))
    return node


def _substitute(node: Node, mapping: Mapping[str, str]) -> Node:
    if isinstance(node, TextNode):
        return _substitute_leaf(node, mapping)
    if isinstance(node, BlockNode):
        return node
    if isinstance(node, TableNode):
        attr = "rows"
    elif isinstance(node, TableRowNode):
        attr = "cells"
    else:
        attr = "children"
    old_children = getattr(node, attr)
    new_children = tuple(_substitute(c, mapping) for c in old_children)
    if all(new is old for new, old in zip(new_children, old_children)):
        return node
    return replace(node, **{attr: new_children})


def substitute_text(nodes: Sequence[Node], mapping: Mapping[str, str]) -> list[Node]:
    """Apply a line map to every text leaf; untouched nodes are returned as-is."""
    return [_substitute(n, mapping) for n in nodes]


def enhance_nodes(
    nodes: Sequence[Node],
    rewriter: TextRewriter,
    *,
    audience: str = "blog post",
) -> EnhancementResult:
    """Polish the text of a document, keeping its structure.

    Service failures never propagate: the input nodes come back unchanged,
    with a status saying why.
    """
    text = extract_plain_text(nodes)
    if not text:
        logger.warning("No text content to enhance, skipping")
        return EnhancementResult(nodes=nodes, status=EnhancementStatus.EMPTY)

    logger.info("Enhancing {} characters of text", len(text))
    try:
        rewritten = rewriter.rewrite(text, build_instructions(audience))
    except RewriteQuotaExceededError as exc:
        logger.warning("Rewrite quota exceeded, continuing without enhancement: {}", exc)
        return EnhancementResult(
            nodes=nodes, status=EnhancementStatus.QUOTA_EXCEEDED, reset_hint=exc.reset_hint
        )
    except RewriteError as exc:
        logger.warning("Rewrite failed, continuing without enhancement: {}", exc)
        return EnhancementResult(nodes=nodes, status=EnhancementStatus.FAILED)

    line_map = build_line_map(text, rewritten)
    if line_map is None:
        logger.warning("Rewritten text changed the line structure, keeping the original")
        return EnhancementResult(nodes=nodes, status=EnhancementStatus.LINE_MISMATCH)
    if not line_map:
        return EnhancementResult(nodes=nodes, status=EnhancementStatus.UNCHANGED)

    logger.debug("Applying {} changed line(s)", len(line_map))
    return EnhancementResult(
        nodes=substitute_text(nodes, line_map), status=EnhancementStatus.APPLIED
    )
