"""Detect FAQ sections in a node sequence and lift them out as FAQ blocks.

The scan is a small state machine. ``advance`` is the pure transition
function; ``detect_faqs`` threads the state through the document, collecting
the nodes to keep and the finished FAQ blocks.

Sections are opened eagerly on a marker or an FAQ heading and closed by the
first node that cannot belong to one. A section that never collected a
complete question/answer pair is dropped, so its terminator simply stays in
the document.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from loguru import logger

from gdoc_importer.core.faq.classify import (
    MARKER_RE,
    Answer,
    Blank,
    Marker,
    Question,
    QuestionAnswer,
    classify,
    is_question_like,
)
from gdoc_importer.models.faq import FAQBlock, FAQBlockWithPosition, FAQDetection, FAQItem
from gdoc_importer.models.node import HeadingNode, Node, ParagraphNode, TextNode, node_text


@dataclass(frozen=True)
class OutsideFAQ:
    pass


@dataclass(frozen=True)
class SeekingTitle:
    """A marker without a title was seen; the next heading may name the section."""

    insert_index: int


@dataclass(frozen=True)
class Collecting:
    """Inside an FAQ section, gathering question/answer pairs."""

    insert_index: int
    title: str | None = None
    items: tuple[FAQItem, ...] = ()
    question: str | None = None
    answer: tuple[Node, ...] = ()


State = OutsideFAQ | SeekingTitle | Collecting


@dataclass(frozen=True)
class Step:
    """Result of feeding one node to the state machine.

    ``keep`` is the node to append to the remaining nodes, ``finished`` a block
    closed by this node, and ``again`` asks for the same node to be fed again
    to the new state.
    """

    state: State
    keep: Node | None = None
    finished: FAQBlockWithPosition | None = None
    again: bool = False


def _flush(state: Collecting) -> tuple[FAQItem, ...]:
    """Items of the section, plus the pending pair if it has an answer."""
    if state.question is not None and state.answer:
        return (*state.items, FAQItem(question=state.question, answer=state.answer))
    if state.question is not None:
        logger.debug("Dropping FAQ question without answer: {!r}", state.question)
    return state.items


def _finalize(state: State) -> FAQBlockWithPosition | None:
    if not isinstance(state, Collecting):
        return None
    items = _flush(state)
    if not items:
        return None
    return FAQBlockWithPosition(
        block=FAQBlock(title=state.title, items=list(items)),
        insert_index=state.insert_index,
    )


def _open_section(marker: Marker, position: int) -> State:
    if marker.seek_title:
        return SeekingTitle(insert_index=position)
    return Collecting(insert_index=position, title=marker.title)


def _advance_outside(state: OutsideFAQ, node: Node, position: int) -> Step:
    kind = classify(node, question_pending=False)
    if isinstance(kind, Marker):
        return Step(state=_open_section(kind, position))
    return Step(state=state, keep=node)


def _advance_seeking(state: SeekingTitle, node: Node) -> Step:
    collecting = Collecting(insert_index=state.insert_index)
    if isinstance(classify(node, question_pending=False), Blank):
        return Step(state=state)
    if is_question_like(node):
        return Step(state=collecting, again=True)
    text = node_text(node).strip()
    # An h1 starts new content rather than naming the section.
    if isinstance(node, HeadingNode) and node.level > 1 and not MARKER_RE.match(text):
        return Step(state=replace(collecting, title=text))
    return Step(state=collecting, again=True)


def _advance_collecting(state: Collecting, node: Node, position: int) -> Step:
    kind = classify(node, question_pending=state.question is not None)
    if isinstance(kind, Marker):
        return Step(state=_open_section(kind, position), finished=_finalize(state))
    if isinstance(kind, QuestionAnswer):
        answer = ParagraphNode(children=(TextNode(text=kind.answer),))
        item = FAQItem(question=kind.question, answer=(answer,))
        return Step(state=replace(state, items=(*state.items, item)))
    if isinstance(kind, Question):
        return Step(state=replace(state, items=_flush(state), question=kind.text, answer=()))
    if isinstance(kind, Answer):
        if state.question is None:
            # Stray prose inside the section stays in the document.
            return Step(state=state, keep=node)
        return Step(state=replace(state, answer=(*state.answer, node)))
    if isinstance(kind, Blank):
        return Step(state=state)
    # Terminator: close the section and let the node be handled outside it.
    return Step(state=OutsideFAQ(), finished=_finalize(state), again=True)


def advance(state: State, node: Node, *, position: int) -> Step:
    """Feed one node to the state machine.

    ``position`` is the number of nodes kept so far; a section opened by this
    node is spliced back at that index.
    """
    if isinstance(state, OutsideFAQ):
        return _advance_outside(state, node, position)
    if isinstance(state, SeekingTitle):
        return _advance_seeking(state, node)
    return _advance_collecting(state, node, position)


def finish(state: State) -> FAQBlockWithPosition | None:
    """Close the scan, returning the block still open at end of input."""
    return _finalize(state)


@dataclass
class _Scan:
    state: State = field(default_factory=OutsideFAQ)
    remaining: list[Node] = field(default_factory=list)
    blocks: list[FAQBlockWithPosition] = field(default_factory=list)

    def feed(self, node: Node) -> None:
        while True:
            step = advance(self.state, node, position=len(self.remaining))
            self.state = step.state
            if step.finished is not None:
                self.blocks.append(step.finished)
            if step.keep is not None:
                self.remaining.append(step.keep)
            if not step.again:
                return


def detect_faqs(nodes: Iterable[Node]) -> FAQDetection:
    """Split a document into FAQ blocks (with positions) and the remaining nodes."""
    scan = _Scan()
    for node in nodes:
        scan.feed(node)
    last = finish(scan.state)
    if last is not None:
        scan.blocks.append(last)

    detection = FAQDetection(faq_blocks=tuple(scan.blocks), remaining_nodes=tuple(scan.remaining))
    if detection.faq_blocks:
        logger.info(
            "Detected {} FAQ block(s) with {} question(s)",
            len(detection.faq_blocks),
            detection.question_count,
        )
    return detection
