"""Import orchestration: fetch, translate, detect FAQs, enhance, reassemble, save."""

from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Any

from loguru import logger

from gdoc_importer.config import DEFAULT_AUDIENCE, DEFAULT_TITLE
from gdoc_importer.core.enhance.faq import FAQRewriteResult, FAQRewriteStatus, rewrite_faq_blocks
from gdoc_importer.core.enhance.text import EnhancementStatus, enhance_nodes
from gdoc_importer.core.faq.detector import detect_faqs
from gdoc_importer.core.images import ImageRef
from gdoc_importer.core.lexical import to_lexical_root
from gdoc_importer.core.reassembly import append_media_blocks, reassemble
from gdoc_importer.core.translate.google_docs import parse_document
from gdoc_importer.core.translate.markdown import html_to_markdown, parse_markdown
from gdoc_importer.errors import UnsupportedDocumentError
from gdoc_importer.models.node import Node
from gdoc_importer.protocols import (
    BlockSink,
    DocumentProvider,
    FAQRewriter,
    HtmlExportProvider,
    ImageSource,
    TextRewriter,
)


@dataclass(frozen=True)
class ImportOptions:
    use_ai: bool = False
    audience: str = DEFAULT_AUDIENCE
    include_images: bool = True
    detect_faqs: bool = True


@dataclass(frozen=True)
class ConversionResult:
    """A converted node sequence plus what happened along the way."""

    nodes: list[Node]
    faq_count: int = 0
    question_count: int = 0
    enhancement: EnhancementStatus | None = None
    faq_rewrite: FAQRewriteResult | None = None
    reset_hint: float | None = None

    @property
    def content(self) -> dict[str, Any]:
        return to_lexical_root(self.nodes)


@dataclass(frozen=True)
class ImportResult:
    document_id: str
    title: str
    conversion: ConversionResult
    images_count: int = 0
    used_fallback: bool = False
    saved: object = None

    @property
    def content(self) -> dict[str, Any]:
        return self.conversion.content


def convert_nodes(
    nodes: Sequence[Node],
    *,
    rewriter: TextRewriter | None = None,
    options: ImportOptions = ImportOptions(),
) -> ConversionResult:
    """Detect FAQ sections, optionally rewrite text, and put the blocks back."""
    if options.detect_faqs:
        detection = detect_faqs(nodes)
        remaining: Sequence[Node] = detection.remaining_nodes
        faq_blocks = detection.faq_blocks
    else:
        remaining, faq_blocks = nodes, ()

    faq_rewrite: FAQRewriteResult | None = None
    enhancement: EnhancementStatus | None = None
    reset_hint: float | None = None
    if options.use_ai and rewriter is not None:
        if faq_blocks and isinstance(rewriter, FAQRewriter):
            faq_rewrite = rewrite_faq_blocks([fb.block for fb in faq_blocks], rewriter)
            reset_hint = faq_rewrite.reset_hint
        if faq_rewrite is not None and faq_rewrite.status is FAQRewriteStatus.QUOTA_EXCEEDED:
            # Same service, same quota: do not spend another call on it.
            enhancement = EnhancementStatus.QUOTA_EXCEEDED
        else:
            result = enhance_nodes(remaining, rewriter, audience=options.audience)
            remaining, enhancement = result.nodes, result.status
            reset_hint = result.reset_hint or reset_hint
    elif options.use_ai:
        logger.warning("AI enhancement requested but no rewrite provider is configured")

    return ConversionResult(
        nodes=reassemble(remaining, faq_blocks),
        faq_count=len(faq_blocks),
        question_count=sum(len(fb.block.items) for fb in faq_blocks),
        enhancement=enhancement,
        faq_rewrite=faq_rewrite,
        reset_hint=reset_hint,
    )


def convert_document(
    document: Any,
    *,
    rewriter: TextRewriter | None = None,
    options: ImportOptions = ImportOptions(),
) -> ConversionResult:
    """Convert a Google Docs API document; no I/O besides the optional rewriter."""
    return convert_nodes(parse_document(document), rewriter=rewriter, options=options)


def _fetch_nodes(
    document_id: str, provider: DocumentProvider
) -> tuple[list[Node], str | None, bool]:
    """Return (nodes, title, used_fallback)."""
    try:
        document = provider.get_document(document_id)
    except UnsupportedDocumentError:
        if not isinstance(provider, HtmlExportProvider):
            raise
        logger.warning("Document {} is not a native Google Doc, using the HTML export", document_id)
        markdown = html_to_markdown(provider.export_html(document_id))
        return parse_markdown(markdown), None, True
    return parse_document(document), document.get("title"), False


def _collect_images(document_id: str, images: ImageSource | None) -> list[ImageRef]:
    if images is None:
        return []
    try:
        refs = images.list_images(document_id)
    except Exception:
        logger.warning(
            "Image extraction failed for {}, continuing without images", document_id, exc_info=True
        )
        return []
    logger.info("Found {} image(s)", len(refs))
    return refs


def import_document(
    document_id: str,
    provider: DocumentProvider,
    *,
    rewriter: TextRewriter | None = None,
    images: ImageSource | None = None,
    sink: BlockSink | None = None,
    options: ImportOptions = ImportOptions(),
) -> ImportResult:
    """Import one document end to end.

    Source errors (not found, access denied, unsupported without an HTML
    export) propagate; enhancement and image failures only degrade the result.
    """
    logger.info("Importing document {}", document_id)
    nodes, title, used_fallback = _fetch_nodes(document_id, provider)
    title = title or DEFAULT_TITLE

    conversion = convert_nodes(nodes, rewriter=rewriter, options=options)

    refs = _collect_images(document_id, images) if options.include_images else []
    if refs:
        conversion = replace(conversion, nodes=append_media_blocks(conversion.nodes, refs))

    saved = sink.save(document_id, title, conversion.content) if sink is not None else None
    logger.info(
        "Imported {!r}: {} node(s), {} FAQ block(s), {} image(s)",
        title,
        len(conversion.nodes),
        conversion.faq_count,
        len(refs),
    )
    return ImportResult(
        document_id=document_id,
        title=title,
        conversion=conversion,
        images_count=len(refs),
        used_fallback=used_fallback,
        saved=saved,
    )
