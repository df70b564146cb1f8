"""FAQ section models produced by detection and consumed by reassembly."""

from dataclasses import dataclass, field

from gdoc_importer.models.node import Node


@dataclass
class FAQItem:
    """One question with its answer subtree."""

    question: str
    answer: tuple[Node, ...]


@dataclass
class FAQBlock:
    """A detected FAQ section.

    Mutable: the batch FAQ rewrite updates titles, questions and answers in place.
    """

    title: str | None = None
    items: list[FAQItem] = field(default_factory=list)


@dataclass(frozen=True)
class FAQBlockWithPosition:
    """A FAQ block plus the index in the remaining nodes where it started."""

    block: FAQBlock
    insert_index: int


@dataclass(frozen=True)
class FAQDetection:
    """Result of scanning a document for FAQ sections."""

    faq_blocks: tuple[FAQBlockWithPosition, ...]
    remaining_nodes: tuple[Node, ...]

    @property
    def question_count(self) -> int:
        return sum(len(b.block.items) for b in self.faq_blocks)
