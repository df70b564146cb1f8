"""MCP server exposing Google Docs import and conversion tools."""

import asyncio
import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from gdoc_importer.config import DEFAULT_AUDIENCE, resolve_output_directory
from gdoc_importer.core.doc_id import extract_document_id
from gdoc_importer.core.enhance.text import extract_plain_text
from gdoc_importer.core.faq.detector import detect_faqs
from gdoc_importer.core.translate.google_docs import parse_document
from gdoc_importer.core.translate.markdown import parse_markdown
from gdoc_importer.errors import GDocImportError
from gdoc_importer.pipeline import ImportOptions, convert_nodes, import_document
from gdoc_importer.protocols import BlockSink, DocumentProvider, ImageSource, TextRewriter
from gdoc_importer.writer import FileSink

# --- Core functions (testable without MCP context) ---


def gdoc_convert_markdown(markdown: str, *, detect_faqs: bool = True) -> dict[str, Any]:
    """Convert markdown text to Lexical JSON, extracting FAQ sections as blocks.

    Args:
        markdown: Markdown text (headings, bullets, pipe tables, **bold**).
        detect_faqs: Lift FAQ sections out into FAQ blocks.
    """
    if not markdown.strip():
        return {"error": "No markdown provided."}
    result = convert_nodes(parse_markdown(markdown), options=ImportOptions(detect_faqs=detect_faqs))
    return {
        "content": result.content,
        "node_count": len(result.nodes),
        "faq_count": result.faq_count,
        "question_count": result.question_count,
    }


def gdoc_detect_faqs(text: str, *, source_format: str = "markdown") -> dict[str, Any]:
    """Report the FAQ sections found in a document.

    Args:
        text: Markdown text, or a Google Docs API document serialized as JSON.
        source_format: "markdown" or "google_docs_json".
    """
    if source_format == "markdown":
        nodes = parse_markdown(text)
    elif source_format == "google_docs_json":
        try:
            nodes = parse_document(json.loads(text))
        except json.JSONDecodeError as exc:
            return {"error": f"Invalid JSON: {exc}"}
    else:
        return {"error": f"Unknown source_format {source_format!r}."}

    detection = detect_faqs(nodes)
    return {
        "faq_blocks": [
            {
                "title": fb.block.title,
                "insert_index": fb.insert_index,
                "items": [
                    {"question": item.question, "answer": extract_plain_text(item.answer)}
                    for item in fb.block.items
                ],
            }
            for fb in detection.faq_blocks
        ],
        "question_count": detection.question_count,
        "remaining_node_count": len(detection.remaining_nodes),
    }


def gdoc_import(
    provider: DocumentProvider,
    sink: BlockSink,
    *,
    document: str,
    images: ImageSource | None = None,
    rewriter: TextRewriter | None = None,
    use_ai: bool = False,
    audience: str = DEFAULT_AUDIENCE,
    include_images: bool = True,
) -> dict[str, Any]:
    """Import a Google Doc and save it through the sink.

    Args:
        document: Google Doc URL or document id.
        use_ai: Polish text and FAQs with the configured rewrite service.
        audience: Kind of text, passed to the rewriter.
        include_images: Append media blocks for images in the document.
    """
    try:
        document_id = extract_document_id(document)
    except ValueError as exc:
        return {"error": str(exc)}

    options = ImportOptions(use_ai=use_ai, audience=audience, include_images=include_images)
    try:
        result = import_document(
            document_id,
            provider,
            rewriter=rewriter,
            images=images if include_images else None,
            sink=sink,
            options=options,
        )
    except GDocImportError as exc:
        return {"error": str(exc), "document_id": document_id}

    conversion = result.conversion
    output: dict[str, Any] = {
        "document_id": result.document_id,
        "title": result.title,
        "saved": str(result.saved) if result.saved is not None else None,
        "node_count": len(conversion.nodes),
        "faq_count": conversion.faq_count,
        "question_count": conversion.question_count,
        "images_count": result.images_count,
        "used_fallback": result.used_fallback,
    }
    if conversion.enhancement is not None:
        output["enhancement"] = conversion.enhancement.value
    if conversion.reset_hint is not None:
        output["quota_reset_seconds"] = conversion.reset_hint
    return output


# --- MCP Server Setup ---


@dataclass
class ServerContext:
    """Shared resources for the MCP server lifetime."""

    output_dir: Path
    sink: FileSink


@asynccontextmanager
async def server_lifespan(_server: FastMCP) -> AsyncIterator[ServerContext]:
    """Prepare the output directory on startup."""
    output_dir = resolve_output_directory()
    output_dir.mkdir(parents=True, exist_ok=True)
    logger.debug("Saving imports to {}", output_dir)
    yield ServerContext(output_dir=output_dir, sink=FileSink(output_dir, dry_run=False))


mcp_server = FastMCP(
    "gdoc-importer",
    instructions="""\
Imports Google Docs into Lexical rich-text JSON for a CMS.

- gdoc_import_tool fetches a document by URL or id, lifts FAQ sections into FAQ
  blocks, and saves the result as a .lexical.json file.
- gdoc_convert_markdown_tool converts markdown you already have.
- gdoc_detect_faqs_tool shows which questions and answers would be extracted,
  without converting anything.

FAQ sections start at a "##FAQ" marker line or a heading such as "Frequently
Asked Questions", and end at the first line that is neither a question nor an
answer.
""",
    lifespan=server_lifespan,
)


def _ctx(mcp_ctx: Context) -> ServerContext:
    return mcp_ctx.request_context.lifespan_context  # type: ignore[return-value]


# --- MCP Tool Wrappers ---


@mcp_server.tool()
async def gdoc_convert_markdown_tool(markdown: str, detect_faqs: bool = True) -> dict[str, Any]:
    """Convert markdown text to Lexical JSON, extracting FAQ sections as FAQ blocks.

    Args:
        markdown: Markdown text (headings, bullets, pipe tables, **bold**).
        detect_faqs: Lift FAQ sections out into FAQ blocks.
    """
    return gdoc_convert_markdown(markdown, detect_faqs=detect_faqs)


@mcp_server.tool()
async def gdoc_detect_faqs_tool(text: str, source_format: str = "markdown") -> dict[str, Any]:
    """List the FAQ sections, questions and answers detected in a document.

    Args:
        text: Markdown text, or a Google Docs API document serialized as JSON.
        source_format: "markdown" or "google_docs_json".
    """
    return gdoc_detect_faqs(text, source_format=source_format)


@mcp_server.tool()
async def gdoc_import_tool(
    ctx: Context,
    document: str,
    use_ai: bool = False,
    audience: str = DEFAULT_AUDIENCE,
    include_images: bool = True,
) -> dict[str, Any]:
    """Import a Google Doc (URL or id) and save it as Lexical JSON.

    Args:
        document: Google Doc URL or document id.
        use_ai: Polish text and FAQs with the configured rewrite service.
        audience: Kind of text, passed to the rewriter (default "blog post").
        include_images: Append media blocks for images in the document.
    """
    from gdoc_importer.api import GoogleDocsApi
    from gdoc_importer.rewrite import resolve_rewriter

    try:
        api = GoogleDocsApi()
    except RuntimeError as exc:
        return {"error": str(exc)}
    rewriter = resolve_rewriter() if use_ai else None

    return await asyncio.to_thread(
        gdoc_import,
        api,
        _ctx(ctx).sink,
        document=document,
        images=api,
        rewriter=rewriter,
        use_ai=use_ai,
        audience=audience,
        include_images=include_images,
    )


def run_mcp_server() -> None:
    """Run the MCP server with stdio transport."""
    from gdoc_importer.logging_config import configure_logging

    configure_logging(verbose=False)
    mcp_server.run(transport="stdio")
