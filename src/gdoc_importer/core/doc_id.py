"""Google Doc id extraction from user input."""

import re

from gdoc_importer.errors import InvalidDocumentIdError

_VALID_ID = re.compile(r"^[A-Za-z0-9_-]{20,44}$")

_URL_PATTERNS = (
    re.compile(r"/document/d/([A-Za-z0-9_-]+)"),
    re.compile(r"/d/([A-Za-z0-9_-]+)"),
    re.compile(r"^([A-Za-z0-9_-]{20,})$"),
)


def is_valid_document_id(document_id: str) -> bool:
    """Check whether a string looks like a Google Doc id."""
    return bool(_VALID_ID.match(document_id))


def extract_document_id(value: str) -> str:
    """Return the document id from a Google Docs URL or a raw id.

    Raises InvalidDocumentIdError if nothing id-like is found.
    """
    value = value.strip()
    if is_valid_document_id(value):
        return value
    for pattern in _URL_PATTERNS:
        m = pattern.search(value)
        if m:
            return m.group(1)
    msg = f"Not a Google Doc URL or id: {value!r}"
    raise InvalidDocumentIdError(msg)
