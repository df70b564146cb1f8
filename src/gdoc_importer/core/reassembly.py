"""Put extracted blocks back into the document at the positions they came from."""

import itertools
import time
from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import Any

from gdoc_importer.core.images import ImageRef
from gdoc_importer.core.lexical import to_lexical_root
from gdoc_importer.models.faq import FAQBlock, FAQBlockWithPosition
from gdoc_importer.models.node import BlockNode, Node


def faq_block_node(block: FAQBlock, *, stamp: int, counter: Iterator[int]) -> BlockNode:
    """Serialize an FAQ block; item ids are ``faq-item-<stamp>-<ordinal>``."""
    items: list[dict[str, Any]] = [
        {
            "question": item.question,
            "answer": to_lexical_root(item.answer),
            "id": f"faq-item-{stamp}-{next(counter)}",
        }
        for item in block.items
    ]
    return BlockNode(fields={"blockType": "faq", "title": block.title or None, "items": items})


def reassemble(
    remaining: Sequence[Node],
    faq_blocks: Sequence[FAQBlockWithPosition],
    *,
    clock: Callable[[], float] = time.time,
) -> list[Node]:
    """Splice FAQ blocks into the remaining nodes at their insert indexes.

    Blocks are inserted from the highest index down so earlier positions stay
    valid. Blocks sharing an index keep their detection order.
    """
    stamp = int(clock() * 1000)
    counter = itertools.count()
    serialized = [
        (fb.insert_index, order, faq_block_node(fb.block, stamp=stamp, counter=counter))
        for order, fb in enumerate(faq_blocks)
    ]

    result = list(remaining)
    for insert_index, _order, node in sorted(serialized, key=lambda t: (t[0], t[1]), reverse=True):
        index = max(0, min(insert_index, len(result)))
        result.insert(index, node)
    return result


def media_block_node(image: ImageRef) -> BlockNode:
    return BlockNode(fields={"blockType": "mediaBlock", "url": image.url, "alt": image.alt})


def append_media_blocks(nodes: Iterable[Node], images: Iterable[ImageRef]) -> list[Node]:
    """Append one media block per image after the document content."""
    return [*nodes, *(media_block_node(image) for image in images)]
