"""Unit tests for api/client.py — requests and error classification."""

import json
from io import BytesIO
from typing import Any
from unittest.mock import MagicMock, patch
from urllib.error import HTTPError, URLError

import pytest

from boxtree.api.client import BoxApi, classify_error
from boxtree.errors import (
    BoxApiError,
    InvalidInput,
    NameTaken,
    NotAuthorized,
    NotFound,
    TransportError,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _mock_response(payload: Any) -> MagicMock:
    """Return a urlopen context-manager mock yielding the given JSON payload."""
    mock_response = MagicMock()
    mock_response.read.return_value = b"" if payload is None else json.dumps(payload).encode()
    mock_response.__enter__ = lambda s: s
    mock_response.__exit__ = MagicMock(return_value=False)
    return mock_response


def _http_error(code: int, body: dict[str, Any] | None = None) -> HTTPError:
    return HTTPError(
        url="https://api.box.com/2.0/folders/1",
        code=code,
        msg="error",
        hdrs=MagicMock(),  # type: ignore[arg-type]
        fp=BytesIO(json.dumps(body or {}).encode()),
    )


# ---------------------------------------------------------------------------
# classify_error tests
# ---------------------------------------------------------------------------


class TestClassifyError:
    @pytest.mark.parametrize(
        ("status", "code", "expected"),
        [
            (409, "item_name_in_use", NameTaken),
            (401, "unauthorized", NotAuthorized),
            (403, "access_denied_insufficient_permissions", NotAuthorized),
            (400, "bad_request", InvalidInput),
            (404, "not_found", NotFound),
            (409, "operation_blocked_temporary", BoxApiError),
            (500, "internal_server_error", BoxApiError),
        ],
    )
    def test_maps_status_and_code(self, status: int, code: str, expected: type) -> None:
        error = classify_error(status, code, "message")
        assert type(error) is expected
        assert error.status_code == status
        assert error.code == code


# ---------------------------------------------------------------------------
# Request tests
# ---------------------------------------------------------------------------


class TestBoxApiRequests:
    def test_get_item_info_builds_url_and_bearer_header(self) -> None:
        api = BoxApi(access_token="tok-abc")

        with patch("boxtree.api.client.urllib_request.urlopen") as mock_urlopen:
            mock_urlopen.return_value = _mock_response({"id": "1", "type": "folder"})
            result = api.get_item_info("folder", "1", limit=1000, offset=0)

        assert result == {"id": "1", "type": "folder"}
        req = mock_urlopen.call_args[0][0]
        assert req.full_url == "https://api.box.com/2.0/folders/1?limit=1000&offset=0"
        assert req.get_method() == "GET"
        assert req.get_header("Authorization") == "Bearer tok-abc"

    def test_file_info_has_no_query_by_default(self) -> None:
        api = BoxApi(access_token="tok")

        with patch("boxtree.api.client.urllib_request.urlopen") as mock_urlopen:
            mock_urlopen.return_value = _mock_response({"id": "9"})
            api.get_item_info("file", "9")

        assert mock_urlopen.call_args[0][0].full_url == "https://api.box.com/2.0/files/9"

    def test_update_item_sends_json_body(self) -> None:
        api = BoxApi(access_token="tok")

        with patch("boxtree.api.client.urllib_request.urlopen") as mock_urlopen:
            mock_urlopen.return_value = _mock_response({"id": "9"})
            api.update_item("file", "9", {"name": "b.txt", "parent": {"id": "3"}})

        req = mock_urlopen.call_args[0][0]
        assert req.get_method() == "PUT"
        assert json.loads(req.data) == {"name": "b.txt", "parent": {"id": "3"}}
        assert req.get_header("Content-type") == "application/json"

    def test_delete_recursive_folder_returns_none_on_empty_body(self) -> None:
        api = BoxApi(access_token="tok")

        with patch("boxtree.api.client.urllib_request.urlopen") as mock_urlopen:
            mock_urlopen.return_value = _mock_response(None)
            result = api.delete_item("folder", "3", recursive=True)

        assert result is None
        req = mock_urlopen.call_args[0][0]
        assert req.full_url == "https://api.box.com/2.0/folders/3?recursive=true"
        assert req.get_method() == "DELETE"

    def test_upload_uses_upload_host_and_multipart_body(self) -> None:
        api = BoxApi(access_token="tok")

        with patch("boxtree.api.client.urllib_request.urlopen") as mock_urlopen:
            mock_urlopen.return_value = _mock_response({"entries": [{"id": "55"}]})
            api.upload_file("0", "a.txt", b"hello world")

        req = mock_urlopen.call_args[0][0]
        assert req.full_url == "https://upload.box.com/api/2.0/files/content"
        assert req.get_header("Content-type").startswith("multipart/form-data; boundary=")
        assert b"hello world" in req.data
        assert b'"parent": {"id": "0"}' in req.data

    def test_upload_escapes_quotes_and_line_breaks_in_filename(self) -> None:
        api = BoxApi(access_token="tok")

        with patch("boxtree.api.client.urllib_request.urlopen") as mock_urlopen:
            mock_urlopen.return_value = _mock_response({"entries": [{"id": "55"}]})
            api.upload_file("0", 'a"b\r\nX-Evil: 1.txt', b"data")

        body = mock_urlopen.call_args[0][0].data
        assert b'filename="a\\"b  X-Evil: 1.txt"\r\n' in body
        assert b"\r\nX-Evil" not in body

    def test_share_item_wraps_params(self) -> None:
        api = BoxApi(access_token="tok")

        with patch("boxtree.api.client.urllib_request.urlopen") as mock_urlopen:
            mock_urlopen.return_value = _mock_response({"shared_link": None})
            api.share_item("folder", "3", None)

        assert json.loads(mock_urlopen.call_args[0][0].data) == {"shared_link": None}

    def test_unsupported_kind_raises_value_error(self) -> None:
        with pytest.raises(ValueError, match="comment"):
            BoxApi(access_token="tok").get_item_info("comment", "1")

    def test_missing_token_raises_without_request(self) -> None:
        api = BoxApi()

        with (
            patch("boxtree.api.client.urllib_request.urlopen") as mock_urlopen,
            pytest.raises(NotAuthorized),
        ):
            api.get_account_info()

        mock_urlopen.assert_not_called()

    def test_set_access_token_is_used(self) -> None:
        api = BoxApi()
        api.set_access_token("later-token")

        with patch("boxtree.api.client.urllib_request.urlopen") as mock_urlopen:
            mock_urlopen.return_value = _mock_response({"id": "u1"})
            api.get_account_info()

        assert mock_urlopen.call_args[0][0].get_header("Authorization") == "Bearer later-token"


# ---------------------------------------------------------------------------
# Error response tests
# ---------------------------------------------------------------------------


class TestBoxApiErrors:
    def test_name_in_use_raises_name_taken(self) -> None:
        api = BoxApi(access_token="tok")
        error = _http_error(
            409, {"type": "error", "code": "item_name_in_use", "message": "Item with the same name"}
        )

        with (
            patch("boxtree.api.client.urllib_request.urlopen", side_effect=error),
            pytest.raises(NameTaken) as exc_info,
        ):
            api.create_folder("0", "docs")

        assert exc_info.value.status_code == 409
        assert "same name" in exc_info.value.message

    def test_not_found(self) -> None:
        api = BoxApi(access_token="tok")
        error = _http_error(404, {"code": "not_found", "message": "Not Found"})

        with (
            patch("boxtree.api.client.urllib_request.urlopen", side_effect=error),
            pytest.raises(NotFound),
        ):
            api.get_item_info("file", "missing")

    def test_unparseable_error_body(self) -> None:
        api = BoxApi(access_token="tok")
        error = HTTPError(
            url="https://api.box.com/2.0/users/me",
            code=500,
            msg="Internal Server Error",
            hdrs=MagicMock(),  # type: ignore[arg-type]
            fp=BytesIO(b"<html>oops</html>"),
        )

        with (
            patch("boxtree.api.client.urllib_request.urlopen", side_effect=error),
            pytest.raises(BoxApiError) as exc_info,
        ):
            api.get_account_info()

        assert exc_info.value.status_code == 500
        assert exc_info.value.code == ""

    def test_network_failure_raises_transport_error(self) -> None:
        api = BoxApi(access_token="tok")

        with (
            patch(
                "boxtree.api.client.urllib_request.urlopen",
                side_effect=URLError("timed out"),
            ),
            pytest.raises(TransportError) as exc_info,
        ):
            api.get_item_info("file", "9")

        assert exc_info.value.status_code == 0
        assert exc_info.value.code == "network_error"
        assert "timed out" in exc_info.value.message
        assert isinstance(exc_info.value, BoxApiError)

    def test_socket_timeout_raises_transport_error(self) -> None:
        api = BoxApi(access_token="tok")

        with (
            patch("boxtree.api.client.urllib_request.urlopen", side_effect=TimeoutError()),
            pytest.raises(TransportError),
        ):
            api.get_account_info()

    def test_undecodable_success_body_raises_transport_error(self) -> None:
        api = BoxApi(access_token="tok")
        mock_response = _mock_response(None)
        mock_response.read.return_value = b"<html>maintenance</html>"

        with (
            patch("boxtree.api.client.urllib_request.urlopen", return_value=mock_response),
            pytest.raises(TransportError) as exc_info,
        ):
            api.get_folder_items("0", limit=100, offset=0)

        assert exc_info.value.code == "invalid_response"
