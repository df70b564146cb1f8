"""Rewrite every FAQ block of a document in a single service call."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from loguru import logger

from gdoc_importer.core.enhance.text import extract_plain_text
from gdoc_importer.core.translate.markdown import parse_markdown
from gdoc_importer.errors import RewriteError, RewriteQuotaExceededError
from gdoc_importer.models.faq import FAQBlock
from gdoc_importer.protocols import FAQRewriter


class FAQRewriteStatus(Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    QUOTA_EXCEEDED = "quota_exceeded"
    FAILED = "failed"


@dataclass(frozen=True)
class FAQRewriteResult:
    status: FAQRewriteStatus
    reset_hint: float | None = None
    updated_items: int = 0


def build_faq_payload(blocks: Sequence[FAQBlock]) -> list[dict[str, Any]]:
    """Describe FAQ blocks as plain data, answers flattened to text."""
    return [
        {
            "blockIndex": block_index,
            "title": block.title,
            "items": [
                {
                    "itemIndex": item_index,
                    "question": item.question,
                    "answer": extract_plain_text(item.answer),
                }
                for item_index, item in enumerate(block.items)
            ],
        }
        for block_index, block in enumerate(blocks)
    ]


def _by_index(entries: Any, key: str) -> dict[int, Mapping[str, Any]]:
    """Index response entries by their explicit index, or by position when absent."""
    indexed: dict[int, Mapping[str, Any]] = {}
    if not isinstance(entries, list):
        return indexed
    for position, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            continue
        index = entry.get(key, position)
        if isinstance(index, int):
            indexed.setdefault(index, entry)
    return indexed


def merge_faq_rewrite(blocks: Sequence[FAQBlock], rewritten: list[dict[str, Any]]) -> int:
    """Apply a rewrite response to the blocks in place; return the number of items changed.

    Blocks and items missing from the response keep their original content.
    A rewritten answer is parsed as markdown and only used if it yields nodes.
    """
    changed = 0
    by_block = _by_index(rewritten, "blockIndex")
    for block_index, block in enumerate(blocks):
        new_block = by_block.get(block_index)
        if new_block is None:
            logger.debug("No rewrite for FAQ block {}, keeping original", block_index)
            continue
        new_title = new_block.get("title")
        if isinstance(new_title, str) and new_title and new_title != block.title:
            block.title = new_title

        by_item = _by_index(new_block.get("items"), "itemIndex")
        for item_index, item in enumerate(block.items):
            new_item = by_item.get(item_index)
            if new_item is None:
                continue
            item_changed = False
            question = new_item.get("question")
            if isinstance(question, str) and question.strip() and question.strip() != item.question:
                item.question = question.strip()
                item_changed = True
            answer = new_item.get("answer")
            if isinstance(answer, str) and answer and answer != extract_plain_text(item.answer):
                nodes = parse_markdown(answer)
                if nodes:
                    item.answer = tuple(nodes)
                    item_changed = True
            changed += item_changed
    return changed


def rewrite_faq_blocks(blocks: Sequence[FAQBlock], rewriter: FAQRewriter) -> FAQRewriteResult:
    """Rewrite all FAQ blocks with one call, mutating them in place.

    On any service failure the blocks are left untouched.
    """
    if not blocks:
        return FAQRewriteResult(status=FAQRewriteStatus.SKIPPED)

    payload = build_faq_payload(blocks)
    total = sum(len(b["items"]) for b in payload)
    logger.info("Rewriting {} FAQ item(s) in a single call", total)
    try:
        rewritten = rewriter.rewrite_faqs(payload)
    except RewriteQuotaExceededError as exc:
        logger.warning("Rewrite quota exceeded, keeping FAQ content as is: {}", exc)
        return FAQRewriteResult(status=FAQRewriteStatus.QUOTA_EXCEEDED, reset_hint=exc.reset_hint)
    except RewriteError as exc:
        logger.warning("FAQ rewrite failed, keeping FAQ content as is: {}", exc)
        return FAQRewriteResult(status=FAQRewriteStatus.FAILED)

    changed = merge_faq_rewrite(blocks, rewritten)
    logger.info("FAQ rewrite updated {} of {} item(s)", changed, total)
    return FAQRewriteResult(status=FAQRewriteStatus.APPLIED, updated_items=changed)
