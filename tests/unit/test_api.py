"""Tests for GoogleDocsApi: HTTP client with caching."""

import json
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
import requests

from gdoc_importer.api import GoogleDocsApi, read_access_token
from gdoc_importer.config import DOCS_API_URL, DRIVE_API_URL
from gdoc_importer.core.images import ImageRef
from gdoc_importer.errors import (
    DocumentAccessDeniedError,
    DocumentNotFoundError,
    SourceDocumentError,
    UnsupportedDocumentError,
)


@pytest.fixture(autouse=True)
def _no_env_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GOOGLE_ACCESS_TOKEN", raising=False)


@pytest.fixture
def api_with_mock_session(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> tuple[GoogleDocsApi, MagicMock]:
    """Create a GoogleDocsApi with a real token file and mocked requests.Session."""
    token_file = tmp_path / "token.txt"
    token_file.write_text("test-token\n")
    monkeypatch.setattr("gdoc_importer.api.ACCESS_TOKEN_FILES", [token_file])

    with patch("gdoc_importer.api.requests.Session") as mock_session_cls:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        api = GoogleDocsApi()

    return api, mock_session


@pytest.fixture
def cached_api(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> tuple[GoogleDocsApi, MagicMock]:
    """A GoogleDocsApi caching responses under tmp_path."""
    monkeypatch.setattr("gdoc_importer.api.API_CACHE_PREFIX", str(tmp_path / "cache" / "c-"))

    with patch("gdoc_importer.api.requests.Session") as mock_session_cls:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        api = GoogleDocsApi(access_token="tok", from_cache=True)

    return api, mock_session


def _make_response(
    data: Any = None, *, status_code: int = 200, text: str | None = None
) -> MagicMock:
    """Create a mock HTTP response with given JSON data."""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = data
    response.text = text if text is not None else json.dumps(data)
    return response


def _api_error(status_code: int, message: str) -> MagicMock:
    body = {"error": {"code": status_code, "message": message}}
    return _make_response(body, status_code=status_code)


def test_token_from_first_found_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """The access token is read from the first existing file."""
    token_file = tmp_path / "token.txt"
    token_file.write_text("my-secret-token\n")
    monkeypatch.setattr(
        "gdoc_importer.api.ACCESS_TOKEN_FILES", [tmp_path / "missing.txt", token_file]
    )

    assert read_access_token() == ("my-secret-token", str(token_file))


def test_token_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """GOOGLE_ACCESS_TOKEN wins over token files."""
    token_file = tmp_path / "token.txt"
    token_file.write_text("file-token")
    monkeypatch.setattr("gdoc_importer.api.ACCESS_TOKEN_FILES", [token_file])
    monkeypatch.setenv("GOOGLE_ACCESS_TOKEN", " env-token ")

    assert read_access_token() == ("env-token", "$GOOGLE_ACCESS_TOKEN")


def test_init_raises_without_token(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """GoogleDocsApi raises RuntimeError when no token is found."""
    monkeypatch.setattr("gdoc_importer.api.ACCESS_TOKEN_FILES", [tmp_path / "a.txt"])

    with pytest.raises(RuntimeError, match="Cannot find Google access token"):
        GoogleDocsApi()


def test_bearer_header_set(api_with_mock_session: tuple[GoogleDocsApi, MagicMock]) -> None:
    _api, mock_session = api_with_mock_session

    mock_session.headers.__setitem__.assert_called_with("Authorization", "Bearer test-token")


def test_get_document(api_with_mock_session: tuple[GoogleDocsApi, MagicMock]) -> None:
    """documents.get is called with the document id in the URL."""
    api, mock_session = api_with_mock_session
    mock_session.get.return_value = _make_response({"title": "Doc", "body": {"content": []}})

    rv = api.get_document("abc")

    assert rv == {"title": "Doc", "body": {"content": []}}
    args, kwargs = mock_session.get.call_args
    assert args[0] == f"{DOCS_API_URL}/abc"
    assert kwargs["params"] is None


def test_not_found(api_with_mock_session: tuple[GoogleDocsApi, MagicMock]) -> None:
    api, mock_session = api_with_mock_session
    mock_session.get.return_value = _api_error(404, "Requested entity was not found.")

    with pytest.raises(DocumentNotFoundError, match="Document not found: 'abc'"):
        api.get_document("abc")


@pytest.mark.parametrize("status_code", [401, 403])
def test_access_denied(
    api_with_mock_session: tuple[GoogleDocsApi, MagicMock], status_code: int
) -> None:
    """Auth failures carry the API's message."""
    api, mock_session = api_with_mock_session
    mock_session.get.return_value = _api_error(status_code, "The caller does not have permission")

    with pytest.raises(DocumentAccessDeniedError) as exc_info:
        api.get_document("abc")

    assert exc_info.value.document_id == "abc"
    assert "does not have permission" in str(exc_info.value)


def test_unsupported_document(api_with_mock_session: tuple[GoogleDocsApi, MagicMock]) -> None:
    """A 400 about an unsupported file type maps to UnsupportedDocumentError."""
    api, mock_session = api_with_mock_session
    mock_session.get.return_value = _api_error(
        400, "This operation is not supported for this document"
    )

    with pytest.raises(UnsupportedDocumentError):
        api.get_document("abc")


def test_other_errors_raise_source_error(
    api_with_mock_session: tuple[GoogleDocsApi, MagicMock],
) -> None:
    """Server errors come back as a typed source error with the status code."""
    api, mock_session = api_with_mock_session
    response = _make_response(status_code=500, text="oops")
    response.raise_for_status.side_effect = requests.HTTPError("500 Server Error")
    mock_session.get.return_value = response

    with pytest.raises(SourceDocumentError, match="HTTP 500: oops") as exc_info:
        api.get_document("abc")

    assert exc_info.value.document_id == "abc"


@pytest.mark.parametrize(
    "error", [requests.ConnectionError("connection reset"), requests.Timeout("read timed out")]
)
def test_transport_errors_raise_source_error(
    api_with_mock_session: tuple[GoogleDocsApi, MagicMock], error: Exception
) -> None:
    api, mock_session = api_with_mock_session
    mock_session.get.side_effect = error

    with pytest.raises(SourceDocumentError, match=str(error)):
        api.export_html("abc")


def test_export_html(api_with_mock_session: tuple[GoogleDocsApi, MagicMock]) -> None:
    """HTML exports come from the Drive export endpoint."""
    api, mock_session = api_with_mock_session
    mock_session.get.return_value = _make_response(text="<p>Hi</p>")

    assert api.export_html("abc") == "<p>Hi</p>"
    args, kwargs = mock_session.get.call_args
    assert args[0] == f"{DRIVE_API_URL}/abc/export"
    assert kwargs["params"] == {"mimeType": "text/html"}


def test_list_images(api_with_mock_session: tuple[GoogleDocsApi, MagicMock]) -> None:
    api, mock_session = api_with_mock_session
    mock_session.get.return_value = _make_response(text='<img src="https://img/1" alt="One">')

    assert api.list_images("abc") == [ImageRef(url="https://img/1", alt="One")]


def test_error_message_falls_back_to_text(
    api_with_mock_session: tuple[GoogleDocsApi, MagicMock],
) -> None:
    """Non-JSON error bodies are quoted as text."""
    api, mock_session = api_with_mock_session
    response = _make_response(status_code=403, text="<html>Forbidden</html>")
    response.json.side_effect = ValueError("not json")
    mock_session.get.return_value = response

    with pytest.raises(DocumentAccessDeniedError, match="Forbidden"):
        api.get_document("abc")


def test_document_cache(cached_api: tuple[GoogleDocsApi, MagicMock]) -> None:
    """With caching on, the second fetch is served from disk."""
    api, mock_session = cached_api
    mock_session.get.return_value = _make_response({"title": "Cached"})

    first = api.get_document("abc")
    second = api.get_document("abc")

    assert first == second == {"title": "Cached"}
    assert mock_session.get.call_count == 1
    assert Path(f"{api.api_cache_prefix}document--abc").exists()


def test_export_cache(cached_api: tuple[GoogleDocsApi, MagicMock]) -> None:
    api, mock_session = cached_api
    mock_session.get.return_value = _make_response(text="<p>Hi</p>")

    api.export_html("abc")
    api.export_html("abc")

    assert mock_session.get.call_count == 1


def test_no_cache_by_default(api_with_mock_session: tuple[GoogleDocsApi, MagicMock]) -> None:
    api, mock_session = api_with_mock_session
    mock_session.get.return_value = _make_response({"title": "Fresh"})

    api.get_document("abc")
    api.get_document("abc")

    assert api.api_cache_prefix is None
    assert mock_session.get.call_count == 2
