"""Protocols for the collaborators the import pipeline depends on."""

from typing import Any, Protocol, runtime_checkable

from gdoc_importer.core.images import ImageRef


@runtime_checkable
class DocumentProvider(Protocol):
    """Protocol for sources of structured Google Docs documents."""

    def get_document(self, document_id: str) -> dict[str, Any]:
        """Return the documents.get JSON for a document.

        Raises DocumentNotFoundError, DocumentAccessDeniedError or
        UnsupportedDocumentError.
        """
        ...


@runtime_checkable
class HtmlExportProvider(Protocol):
    """Protocol for sources that can export a document as HTML."""

    def export_html(self, document_id: str) -> str:
        """Return the document exported as HTML."""
        ...


@runtime_checkable
class TextRewriter(Protocol):
    """Protocol for text rewrite services."""

    def rewrite(self, text: str, instructions: str) -> str:
        """Rewrite text following the instructions.

        Raises RewriteQuotaExceededError, RewriteTimeoutError or RewriteProviderError.
        """
        ...


@runtime_checkable
class FAQRewriter(Protocol):
    """Protocol for services that rewrite all FAQ blocks of a document in one call."""

    def rewrite_faqs(self, blocks: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Rewrite FAQ blocks.

        Each block is ``{"blockIndex", "title", "items": [{"itemIndex", "question", "answer"}]}``;
        the result uses the same shape and may omit blocks or items.
        """
        ...


@runtime_checkable
class BlockSink(Protocol):
    """Protocol for storage of imported documents."""

    def save(self, document_id: str, title: str, content: dict[str, Any]) -> object:
        """Persist the Lexical root of an imported document."""
        ...


@runtime_checkable
class ImageSource(Protocol):
    """Protocol for sources of image references in a document."""

    def list_images(self, document_id: str) -> list[ImageRef]:
        """Return the images referenced by a document, in document order."""
        ...
