"""CLI for gdoc-importer (import, offline conversion, FAQ inspection, MCP server)."""

import json
from pathlib import Path
from typing import Annotated, Any

import typer
from loguru import logger

from gdoc_importer.config import DEFAULT_AUDIENCE, resolve_output_directory
from gdoc_importer.core.doc_id import extract_document_id
from gdoc_importer.core.faq.detector import detect_faqs
from gdoc_importer.core.translate.google_docs import parse_document
from gdoc_importer.core.translate.markdown import parse_markdown
from gdoc_importer.errors import GDocImportError
from gdoc_importer.logging_config import configure_logging
from gdoc_importer.models.node import Node
from gdoc_importer.pipeline import ImportOptions, convert_document, convert_nodes, import_document

app = typer.Typer(help="Import Google Docs into Lexical rich-text JSON.")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose=verbose)


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _read_json(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Cannot read {}: {}", path, exc)
        raise typer.Exit(1) from exc


def _read_nodes(path: Path) -> list[Node]:
    """Nodes from a Google Docs JSON export, or from markdown for any other file."""
    if path.suffix == ".json":
        return parse_document(_read_json(path))
    try:
        return parse_markdown(path.read_text(encoding="utf-8"))
    except OSError as exc:
        logger.error("Cannot read {}: {}", path, exc)
        raise typer.Exit(1) from exc


def _rewriter_or_exit(use_ai: bool) -> Any:
    if not use_ai:
        return None
    from gdoc_importer.rewrite import resolve_rewriter

    rewriter = resolve_rewriter()
    if rewriter is None:
        logger.error("--ai needs OPENAI_API_KEY or GOOGLE_AI_API_KEY in the environment")
        raise typer.Exit(1)
    return rewriter


@app.command(name="import")
def import_cmd(
    document: str = typer.Argument(..., help="Google Doc URL or document id"),
    use_ai: bool = typer.Option(False, "--ai", help="Polish text and FAQs with a rewrite service"),
    audience: str = typer.Option(
        DEFAULT_AUDIENCE, "--audience", help="Kind of text, for the rewriter"
    ),
    out_dir: Annotated[
        Path | None,
        typer.Option("--out-dir", "-o", help="Directory for .lexical.json files"),
    ] = None,
    no_images: bool = typer.Option(False, "--no-images", help="Do not append media blocks"),
    cache: bool = typer.Option(False, "--cache", help="Use cached API responses when present"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Do not write any files"),
) -> None:
    """Import a Google Doc and save it as Lexical JSON."""
    from gdoc_importer.api import GoogleDocsApi
    from gdoc_importer.writer import FileSink

    try:
        document_id = extract_document_id(document)
    except ValueError as exc:
        logger.error("{}", exc)
        raise typer.Exit(1) from exc

    rewriter = _rewriter_or_exit(use_ai)

    dst = out_dir or resolve_output_directory()
    if not dry_run:
        dst.mkdir(parents=True, exist_ok=True)

    try:
        api = GoogleDocsApi(from_cache=cache)
    except RuntimeError as exc:
        logger.error("{}", exc)
        raise typer.Exit(1) from exc

    options = ImportOptions(use_ai=use_ai, audience=audience, include_images=not no_images)
    try:
        result = import_document(
            document_id,
            api,
            rewriter=rewriter,
            images=api,
            sink=FileSink(dst, dry_run=dry_run),
            options=options,
        )
    except GDocImportError as exc:
        logger.error("{}", exc)
        raise typer.Exit(1) from exc

    conversion = result.conversion
    typer.echo(f"Imported {result.title!r} -> {result.saved}")
    typer.echo(
        f"  {len(conversion.nodes)} nodes, {conversion.faq_count} FAQ blocks "
        f"({conversion.question_count} questions), {result.images_count} images"
    )
    if result.used_fallback:
        typer.echo("  converted from the HTML export (not a native Google Doc)")
    if conversion.enhancement is not None:
        typer.echo(f"  enhancement: {conversion.enhancement.value}")
    if conversion.reset_hint is not None:
        typer.echo(f"  rewrite quota resets in about {conversion.reset_hint:.0f}s")


@app.command()
def convert(
    path: Path = typer.Argument(..., help="Google Docs API JSON (documents.get response)"),
    use_ai: bool = typer.Option(False, "--ai", help="Polish text and FAQs with a rewrite service"),
    audience: str = typer.Option(
        DEFAULT_AUDIENCE, "--audience", help="Kind of text, for the rewriter"
    ),
) -> None:
    """Convert a saved Google Docs JSON document to Lexical JSON on stdout."""
    document = _read_json(path)
    rewriter = _rewriter_or_exit(use_ai)
    result = convert_document(
        document, rewriter=rewriter, options=ImportOptions(use_ai=use_ai, audience=audience)
    )
    _echo_json(result.content)


@app.command()
def markdown(
    path: Path = typer.Argument(..., help="Markdown file"),
    detect: bool = typer.Option(True, "--detect-faqs/--no-detect-faqs", help="Extract FAQ blocks"),
) -> None:
    """Convert a markdown file to Lexical JSON on stdout."""
    if path.suffix == ".json":
        logger.error("{} looks like a Google Docs export, use 'convert'", path)
        raise typer.Exit(1)
    result = convert_nodes(_read_nodes(path), options=ImportOptions(detect_faqs=detect))
    _echo_json(result.content)


@app.command()
def faqs(
    path: Path = typer.Argument(..., help="Google Docs JSON export or markdown file"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Show the FAQ sections detected in a document."""
    detection = detect_faqs(_read_nodes(path))

    if output_json:
        _echo_json(
            {
                "faq_blocks": [
                    {
                        "title": fb.block.title,
                        "insert_index": fb.insert_index,
                        "questions": [item.question for item in fb.block.items],
                    }
                    for fb in detection.faq_blocks
                ],
                "remaining_nodes": len(detection.remaining_nodes),
            }
        )
        return

    typer.echo(
        f"Found {len(detection.faq_blocks)} FAQ blocks "
        f"with {detection.question_count} questions:\n"
    )
    for fb in detection.faq_blocks:
        typer.echo(f"  [{fb.block.title or 'untitled'}] at position {fb.insert_index}")
        for item in fb.block.items:
            typer.echo(f"    - {item.question}")
        typer.echo()


@app.command()
def serve() -> None:
    """Start the MCP server (stdio transport)."""
    from gdoc_importer.mcp.server import run_mcp_server

    run_mcp_server()
