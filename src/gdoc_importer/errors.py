"""Typed failures raised by collaborators and surfaced to the caller."""


class GDocImportError(Exception):
    """Base class for all import failures."""


class InvalidDocumentIdError(GDocImportError, ValueError):
    """The input is neither a Google Doc URL nor a plausible document id."""


class SourceDocumentError(GDocImportError):
    """The source document could not be fetched."""

    def __init__(self, document_id: str, detail: str = "") -> None:
        self.document_id = document_id
        self.detail = detail
        msg = f"{self.reason}: {document_id!r}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)

    reason = "Cannot fetch document"


class DocumentNotFoundError(SourceDocumentError):
    reason = "Document not found"


class DocumentAccessDeniedError(SourceDocumentError):
    reason = "Access denied to document"


class UnsupportedDocumentError(SourceDocumentError):
    """The file exists but is not a native Google Doc (e.g. an uploaded .docx)."""

    reason = "Unsupported document format"


class RewriteError(GDocImportError):
    """The text rewrite service did not return usable output."""


class RewriteQuotaExceededError(RewriteError):
    """The provider refused the call for quota or rate-limit reasons."""

    def __init__(self, message: str, *, reset_hint: float | None = None) -> None:
        super().__init__(message)
        # Seconds until the provider expects the quota to reset, when it says so.
        self.reset_hint = reset_hint


class RewriteTimeoutError(RewriteError):
    pass


class RewriteProviderError(RewriteError):
    pass
