"""Classify nodes into the roles they can play in an FAQ section.

``classify`` is pure: it looks at one node (plus whether a question is
currently waiting for its answer) and returns a tagged result. The detector
decides what to do with it depending on its state.
"""

import re
from dataclasses import dataclass

from gdoc_importer.models.node import (
    HeadingNode,
    ListItemNode,
    Node,
    ParagraphNode,
    TableNode,
    TextNode,
    node_text,
)

FAQ_KEYWORDS: tuple[str, ...] = (
    "faq",
    "frequently asked questions",
    "questions and answers",
    "q&a",
    "q and a",
    "faqs",
    "common questions",
)

# "##FAQ", "## FAQ", "##FAQFrequently Asked Questions", ...
MARKER_RE = re.compile(r"^##\s?faq", re.IGNORECASE)
# The marker token itself; "##FAQs" counts as the bare token, not "##FAQ" titled "s".
MARKER_TOKEN_RE = re.compile(r"^##\s?FAQ(?:s(?=\s|$))?", re.IGNORECASE)

# "Question? Answer" on a single line, separated by spaces, tabs or vertical tabs.
COMBINED_QA_RE = re.compile(r"^(.+\?)\s+(.+)$", re.DOTALL)

HEADING_QUESTION_WORDS: tuple[str, ...] = (
    "what",
    "how",
    "why",
    "when",
    "where",
    "who",
    "which",
    "can",
    "will",
    "should",
    "does",
    "is",
    "are",
)
HEADING_QUESTION_RE = re.compile(
    r"^(?:" + "|".join(HEADING_QUESTION_WORDS) + r")\b", re.IGNORECASE
)
HEADING_QUESTION_MAX_LEN = 100
QUESTION_HEADING_LEVELS = frozenset({2, 3, 4})

QUESTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^q:\s*", re.IGNORECASE),
    re.compile(r"^question:\s*", re.IGNORECASE),
    re.compile(r"^\d+\.\s+.*\?$", re.DOTALL),
    re.compile(r"^[a-z]\.\s+.*\?$", re.IGNORECASE | re.DOTALL),
    re.compile(r"\?$"),
)

_CLEAN_QUESTION_RES: tuple[re.Pattern[str], ...] = (
    re.compile(r"^(?:q|question):\s*", re.IGNORECASE),
    re.compile(r"^\d+\.\s*"),
    re.compile(r"^[a-z]\.\s*", re.IGNORECASE),
)


@dataclass(frozen=True)
class Marker:
    """Start of an FAQ section.

    ``seek_title`` is set when the marker carried no title of its own, so the
    next heading should be used as one.
    """

    title: str | None
    seek_title: bool


@dataclass(frozen=True)
class QuestionAnswer:
    """A question and its answer written on the same line."""

    question: str
    answer: str


@dataclass(frozen=True)
class Question:
    text: str


@dataclass(frozen=True)
class Answer:
    pass


@dataclass(frozen=True)
class Terminator:
    """Content that cannot be part of an FAQ section."""


@dataclass(frozen=True)
class Blank:
    pass


Classification = Marker | QuestionAnswer | Question | Answer | Terminator | Blank


def clean_question(text: str) -> str:
    """Remove "Q:" / "Question:" and list numbering prefixes."""
    for pattern in _CLEAN_QUESTION_RES:
        text = pattern.sub("", text, count=1)
    return text.strip()


def is_faq_heading_text(text: str) -> bool:
    """Check whether heading text names an FAQ section."""
    normalized = text.strip().lower()
    return bool(MARKER_RE.match(normalized)) or any(k in normalized for k in FAQ_KEYWORDS)


def marker_title(text: str) -> str | None:
    """Title written right after the marker token, if any."""
    text = text.strip()
    m = MARKER_TOKEN_RE.match(text)
    if m is None:
        return None
    return text[m.end() :].strip() or None


def _is_question_heading(node: HeadingNode, text: str) -> bool:
    if node.level not in QUESTION_HEADING_LEVELS:
        return False
    if text.endswith("?"):
        return True
    return bool(HEADING_QUESTION_RE.match(text)) and len(text) < HEADING_QUESTION_MAX_LEN


def _is_question_paragraph(text: str) -> bool:
    m = COMBINED_QA_RE.match(text)
    question_part = m.group(1).strip() if m else text
    return any(p.search(question_part) for p in QUESTION_PATTERNS)


def is_question_like(node: Node) -> bool:
    """Whether a node would be read as a question (combined lines included)."""
    text = node_text(node).strip()
    if not text:
        return False
    if isinstance(node, HeadingNode):
        return _is_question_heading(node, text)
    if isinstance(node, ParagraphNode):
        return _is_question_paragraph(text)
    return False


def classify(node: Node, *, question_pending: bool) -> Classification:
    """Classify a node for FAQ detection.

    A combined "question? answer" line is only split when no question is
    pending; otherwise the whole line becomes the next question.
    """
    text = node_text(node).strip()

    if MARKER_RE.match(text):
        title = marker_title(text)
        return Marker(title=title, seek_title=title is None)
    if isinstance(node, HeadingNode) and is_faq_heading_text(text):
        return Marker(title=text, seek_title=False)

    # Tables without text (layout tables holding images) are skipped like blank lines.
    if isinstance(node, TableNode) and not text:
        return Blank()
    if not isinstance(node, ParagraphNode | HeadingNode | ListItemNode | TextNode):
        return Terminator()
    if not text:
        return Blank()

    if isinstance(node, ParagraphNode):
        if not question_pending:
            m = COMBINED_QA_RE.match(text)
            if m:
                return QuestionAnswer(
                    question=clean_question(m.group(1)), answer=m.group(2).strip()
                )
        if _is_question_paragraph(text):
            return Question(text=clean_question(text))
        return Answer()

    if isinstance(node, HeadingNode) and _is_question_heading(node, text):
        return Question(text=clean_question(text))
    return Terminator()
