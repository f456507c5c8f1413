"""Exception hierarchy shared by the transport and the item model."""

from __future__ import annotations


class BoxError(Exception):
    """Base class for every error raised by boxtree."""


class BoxApiError(BoxError):
    """Raised when the Box API rejects a request."""

    def __init__(self, status_code: int, message: str, code: str = "") -> None:
        super().__init__(f"Box API error {status_code}: {message}")
        self.status_code = status_code
        self.code = code
        self.message = message


class NameTaken(BoxApiError):
    """An item with the same name already exists in the target folder."""


class NotAuthorized(BoxApiError):
    """The access token is missing, expired or lacks permission."""


class InvalidInput(BoxApiError):
    """The request parameters were rejected."""


class NotFound(BoxApiError):
    """The requested item does not exist."""


class TransportError(BoxApiError):
    """The request never got a usable answer: network failure or undecodable body.

    ``status_code`` is 0 when no HTTP response was received.
    """


class UnknownAttribute(BoxError, AttributeError):
    """Raised when an attribute is absent even after fetching the item."""

    def __init__(self, owner: str, name: str) -> None:
        super().__init__(f"{owner} has no attribute {name!r}")
        self.name = name
