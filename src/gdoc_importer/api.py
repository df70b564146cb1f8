"""Google Docs / Drive API client with optional caching."""

import json
import os
from pathlib import Path
from typing import Any

import requests
from loguru import logger

from gdoc_importer.config import (
    ACCESS_TOKEN_ENV,
    ACCESS_TOKEN_FILES,
    API_CACHE_PREFIX,
    DOCS_API_TIMEOUT,
    DOCS_API_URL,
    DRIVE_API_URL,
)
from gdoc_importer.core.images import ImageRef, extract_image_refs
from gdoc_importer.errors import (
    DocumentAccessDeniedError,
    DocumentNotFoundError,
    SourceDocumentError,
    UnsupportedDocumentError,
)


def read_access_token() -> tuple[str, str]:
    """Return (token, where it came from). Raises RuntimeError if there is none."""
    env_token = os.environ.get(ACCESS_TOKEN_ENV, "").strip()
    if env_token:
        return env_token, f"${ACCESS_TOKEN_ENV}"
    for token_path in ACCESS_TOKEN_FILES:
        try:
            return token_path.read_text(encoding="utf-8").strip(), str(token_path)
        except FileNotFoundError:
            pass
    msg = (
        f"Cannot find Google access token: set ${ACCESS_TOKEN_ENV} "
        f"or create one of {[str(p) for p in ACCESS_TOKEN_FILES]!r}"
    )
    raise RuntimeError(msg)


class GoogleDocsApi:
    """Fetches documents from the Google Docs API and HTML exports from Drive."""

    def __init__(self, *, access_token: str | None = None, from_cache: bool = False) -> None:
        self.from_cache = from_cache
        self.sess = requests.Session()

        if access_token is None:
            access_token, token_name = read_access_token()
        else:
            token_name = "argument"
        self.sess.headers["Authorization"] = f"Bearer {access_token}"

        self.api_cache_prefix: str | None = API_CACHE_PREFIX if from_cache else None

        logger.debug(
            "API ready: token from {!r}, from_cache {!r}, api_cache_prefix {!r}",
            token_name,
            self.from_cache,
            self.api_cache_prefix,
        )

        if self.api_cache_prefix:
            Path(self.api_cache_prefix).parent.mkdir(parents=True, exist_ok=True)

    def _cache_name(self, kind: str, document_id: str) -> str | None:
        if not self.api_cache_prefix:
            return None
        return f"{self.api_cache_prefix}{kind}--{document_id}"

    def _get(self, url: str, document_id: str, **params: Any) -> requests.Response:
        logger.debug("Making request: {!r}", url)
        try:
            r = self.sess.get(url, params=params or None, timeout=DOCS_API_TIMEOUT)
        except requests.RequestException as exc:
            raise SourceDocumentError(document_id, str(exc)) from exc
        if r.status_code == 404:
            raise DocumentNotFoundError(document_id)
        if r.status_code in (401, 403):
            raise DocumentAccessDeniedError(document_id, _error_message(r))
        if r.status_code == 400 and "not supported" in _error_message(r).lower():
            raise UnsupportedDocumentError(document_id, _error_message(r))
        try:
            r.raise_for_status()
        except requests.HTTPError as exc:
            detail = f"HTTP {r.status_code}: {_error_message(r)}"
            raise SourceDocumentError(document_id, detail) from exc
        return r

    def get_document(self, document_id: str) -> dict[str, Any]:
        """Return the documents.get JSON of a document."""
        cache_name = self._cache_name("document", document_id)
        if cache_name and Path(cache_name).exists():
            logger.debug("Filled from cache: {!r}", cache_name)
            with open(cache_name, encoding="utf-8") as f:
                return json.load(f)  # type: ignore[no-any-return]

        r = self._get(f"{DOCS_API_URL}/{document_id}", document_id)
        rv: dict[str, Any] = r.json()
        if cache_name:
            with open(cache_name, "w", encoding="utf-8") as f:
                f.write(r.text)
        return rv

    def export_html(self, document_id: str) -> str:
        """Return the document exported from Drive as HTML."""
        cache_name = self._cache_name("export", document_id)
        if cache_name and Path(cache_name).exists():
            logger.debug("Filled from cache: {!r}", cache_name)
            return Path(cache_name).read_text(encoding="utf-8")

        r = self._get(f"{DRIVE_API_URL}/{document_id}/export", document_id, mimeType="text/html")
        if cache_name:
            Path(cache_name).write_text(r.text, encoding="utf-8")
        return r.text

    def list_images(self, document_id: str) -> list[ImageRef]:
        """Return images referenced by the document's HTML export."""
        return extract_image_refs(self.export_html(document_id))


def _error_message(r: requests.Response) -> str:
    try:
        return str(r.json()["error"]["message"])
    except (ValueError, KeyError, TypeError):
        return r.text[:200]
