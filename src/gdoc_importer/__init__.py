"""Google Docs to Lexical import pipeline."""

from gdoc_importer.api import GoogleDocsApi
from gdoc_importer.core.faq.detector import detect_faqs
from gdoc_importer.core.translate.google_docs import parse_document
from gdoc_importer.core.translate.markdown import parse_markdown
from gdoc_importer.pipeline import ImportOptions, convert_document, import_document
from gdoc_importer.protocols import (
    BlockSink,
    DocumentProvider,
    FAQRewriter,
    HtmlExportProvider,
    ImageSource,
    TextRewriter,
)
from gdoc_importer.writer import FileSink

__all__ = [
    "BlockSink",
    "DocumentProvider",
    "FAQRewriter",
    "FileSink",
    "GoogleDocsApi",
    "HtmlExportProvider",
    "ImageSource",
    "ImportOptions",
    "TextRewriter",
    "convert_document",
    "detect_faqs",
    "import_document",
    "parse_document",
    "parse_markdown",
]
