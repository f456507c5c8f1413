"""Box REST API client with bearer-token authentication."""

from __future__ import annotations

import json
import logging
import uuid
from typing import TYPE_CHECKING, Any
from urllib import request as urllib_request
from urllib.error import HTTPError
from urllib.parse import urlencode

from boxtree.errors import (
    BoxApiError,
    InvalidInput,
    NameTaken,
    NotAuthorized,
    NotFound,
    TransportError,
)

if TYPE_CHECKING:
    from boxtree.config import AppConfig

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.box.com/2.0"
UPLOAD_BASE_URL = "https://upload.box.com/api/2.0"
DEFAULT_TIMEOUT_SECONDS = 30.0

# Box error codes that mean the name is already used in the target folder
NAME_TAKEN_CODES = frozenset({"item_name_in_use", "conflict"})

# Characters that would end a quoted multipart header value
_HEADER_ESCAPES = str.maketrans({"\\": "\\\\", '"': '\\"', "\r": " ", "\n": " "})

# Item kind -> collection path segment
_COLLECTIONS = {"file": "files", "folder": "folders"}


def _collection(kind: str) -> str:
    try:
        return _COLLECTIONS[kind]
    except KeyError:
        raise ValueError(f"Unsupported item kind: {kind}") from None


def classify_error(status_code: int, code: str, message: str) -> BoxApiError:
    """Map an HTTP status and Box error code to a BoxApiError subclass."""
    if status_code == 409 and code in NAME_TAKEN_CODES:
        return NameTaken(status_code, message, code)
    if status_code in (401, 403):
        return NotAuthorized(status_code, message, code)
    if status_code == 400:
        return InvalidInput(status_code, message, code)
    if status_code == 404:
        return NotFound(status_code, message, code)
    return BoxApiError(status_code, message, code)


class BoxApi:
    """Authenticated client for the Box API.

    Implements ``boxtree.api.transport.Transport``. Failures are raised as
    classified ``BoxApiError`` subclasses; nothing is retried.
    """

    def __init__(
        self,
        access_token: str | None = None,
        base_url: str = API_BASE_URL,
        upload_url: str = UPLOAD_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """Initialise the client.

        Args:
            access_token: OAuth2 access token; may be set later.
            base_url: Base URL of the Box API.
            upload_url: Base URL of the Box upload API.
            timeout: Socket timeout in seconds for each request.
        """
        self._access_token = access_token
        self._base_url = base_url.rstrip("/")
        self._upload_url = upload_url.rstrip("/")
        self._timeout = timeout

    def set_access_token(self, token: str | None) -> None:
        self._access_token = token

    # ------------------------------------------------------------------
    # Transport operations
    # ------------------------------------------------------------------

    def get_account_info(self) -> dict[str, Any]:
        return self._request("GET", "/users/me")

    def get_item_info(
        self,
        kind: str,
        item_id: str,
        limit: int | None = None,
        offset: int | None = None,
    ) -> dict[str, Any]:
        query = {
            key: value
            for key, value in (("limit", limit), ("offset", offset))
            if value is not None
        }
        return self._request("GET", f"/{_collection(kind)}/{item_id}", query=query)

    def get_folder_items(self, folder_id: str, limit: int, offset: int) -> dict[str, Any]:
        return self._request(
            "GET", f"/folders/{folder_id}/items", query={"limit": limit, "offset": offset}
        )

    def create_folder(self, parent_id: str, name: str) -> dict[str, Any]:
        return self._request("POST", "/folders", body={"name": name, "parent": {"id": parent_id}})

    def update_item(self, kind: str, item_id: str, params: dict[str, Any]) -> dict[str, Any]:
        return self._request("PUT", f"/{_collection(kind)}/{item_id}", body=params)

    def delete_item(self, kind: str, item_id: str, recursive: bool = False) -> None:
        query = {"recursive": "true"} if kind == "folder" and recursive else {}
        self._request("DELETE", f"/{_collection(kind)}/{item_id}", query=query)

    def upload_file(self, parent_id: str, name: str, content: bytes) -> dict[str, Any]:
        """Upload a file with a multipart/form-data request."""
        boundary = uuid.uuid4().hex
        filename = name.translate(_HEADER_ESCAPES)
        attributes = json.dumps({"name": name, "parent": {"id": parent_id}})
        body = b"".join(
            [
                f"--{boundary}\r\n".encode(),
                b'Content-Disposition: form-data; name="attributes"\r\n\r\n',
                attributes.encode("utf-8"),
                f"\r\n--{boundary}\r\n".encode(),
                f'Content-Disposition: form-data; name="file"; filename="{filename}"\r\n'.encode(),
                b"Content-Type: application/octet-stream\r\n\r\n",
                content,
                f"\r\n--{boundary}--\r\n".encode(),
            ]
        )
        return self._request(
            "POST",
            "/files/content",
            data=body,
            content_type=f"multipart/form-data; boundary={boundary}",
            base_url=self._upload_url,
        )

    def create_discussion(self, parent_id: str, name: str) -> dict[str, Any]:
        return self._request(
            "POST",
            "/discussions",
            body={"name": name, "parent": {"type": "folder", "id": parent_id}},
        )

    def get_folder_discussions(self, folder_id: str) -> dict[str, Any]:
        return self._request("GET", f"/folders/{folder_id}/discussions")

    def share_item(
        self, kind: str, item_id: str, params: dict[str, Any] | None
    ) -> dict[str, Any]:
        return self._request(
            "PUT", f"/{_collection(kind)}/{item_id}", body={"shared_link": params}
        )

    def get_folder_collaborations(self, folder_id: str) -> dict[str, Any]:
        return self._request("GET", f"/folders/{folder_id}/collaborations")

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        query: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
        data: bytes | None = None,
        content_type: str = "application/json",
        base_url: str | None = None,
    ) -> dict[str, Any]:
        """Perform an authenticated request and decode the JSON response.

        Args:
            method: HTTP method.
            path: URL path relative to the base URL (must start with '/').
            query: Query string parameters.
            body: JSON body; ignored when ``data`` is given.
            data: Raw request body.
            content_type: Content-Type for the request body.
            base_url: Base URL override (uploads use a different host).

        Returns:
            Parsed JSON response body, or an empty dict for empty responses.

        Raises:
            NotAuthorized: If no access token is set or the API rejects it.
            BoxApiError: If the API returns a non-2xx status code.
            TransportError: If the API cannot be reached or its answer is not JSON.
        """
        if not self._access_token:
            raise NotAuthorized(401, "No access token set", "unauthorized")

        url = f"{base_url or self._base_url}{path}"
        if query:
            url = f"{url}?{urlencode(query)}"
        if data is None and body is not None:
            data = json.dumps(body).encode("utf-8")

        headers = {
            "Authorization": f"Bearer {self._access_token}",
            "Accept": "application/json",
        }
        if data is not None:
            headers["Content-Type"] = content_type

        req = urllib_request.Request(url, data=data, headers=headers, method=method)
        logger.debug("[_request] sending request; method:%s;path:%s", method, path)
        try:
            with urllib_request.urlopen(req, timeout=self._timeout) as resp:
                raw = resp.read()
        except HTTPError as exc:
            raise self._error_from_response(exc) from exc
        except OSError as exc:
            # URLError and socket timeouts
            reason = getattr(exc, "reason", exc)
            logger.warning(
                "[_request] Box API unreachable; method:%s;path:%s;reason:%s", method, path, reason
            )
            raise TransportError(0, str(reason), "network_error") from exc

        if not raw:
            return {}
        try:
            return json.loads(raw)  # type: ignore[no-any-return]
        except ValueError as exc:
            logger.warning("[_request] undecodable response body; method:%s;path:%s", method, path)
            raise TransportError(0, "Response body is not valid JSON", "invalid_response") from exc

    @staticmethod
    def _error_from_response(exc: HTTPError) -> BoxApiError:
        raw = exc.read()
        try:
            payload = json.loads(raw)
            code = str(payload.get("code", ""))
            message = str(payload.get("message", exc.reason))
        except (ValueError, AttributeError):
            code, message = "", str(exc.reason)
        logger.warning(
            "[_request] Box API request failed; status:%s;code:%s",
            exc.code,
            code,
        )
        return classify_error(exc.code, code, message)


def box_api_from_config(config: AppConfig) -> BoxApi:
    """Construct a BoxApi from application configuration.

    Args:
        config: Application configuration instance.

    Returns:
        Configured BoxApi instance.
    """
    return BoxApi(
        access_token=config.access_token,
        base_url=config.api_base_url,
        upload_url=config.upload_base_url,
        timeout=config.timeout_seconds,
    )
