"""Error taxonomy for Willys API calls.

Every failure raised by this package is one of four kinds, tagged with an
:class:`ErrorKind` so callers can branch exhaustively:

- ``VALIDATION``: bad input, raised before any network call. Don't retry.
- ``AUTHENTICATION``: the session could not be established or recovered.
- ``API``: the service answered with an unexpected status or body.
- ``NOT_FOUND``: the service reports the referenced resource doesn't exist.
"""

from __future__ import annotations

from enum import Enum
from http import HTTPStatus
from typing import Any


class ErrorKind(str, Enum):
    """Discriminator for the closed set of error variants."""

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    API = "api"
    NOT_FOUND = "not_found"


class WillysError(Exception):
    """Base class for all errors raised by the client."""

    kind: ErrorKind

    def to_dict(self) -> dict[str, Any]:
        """Convert error to a JSON-friendly dict for tool responses."""
        return {"kind": self.kind.value, "message": str(self)}


class ValidationError(WillysError):
    """Input failed a local precondition."""

    kind = ErrorKind.VALIDATION

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.field:
            return f"{self.field}: {self.message}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "field": self.field}


class AuthenticationError(WillysError):
    """Login failed, or the session could not be recovered."""

    kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str, cause: BaseException | None = None):
        self.message = message
        self.cause = cause
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class APIError(WillysError):
    """Non-success response, transport failure, or unparseable body.

    ``status_code`` is 0 when no response was received.
    """

    kind = ErrorKind.API

    def __init__(
        self,
        status_code: int,
        endpoint: str,
        message: str,
        cause: BaseException | None = None,
    ):
        self.status_code = status_code
        self.endpoint = endpoint
        self.message = message
        self.cause = cause
        super().__init__(str(self))

    def __str__(self) -> str:
        try:
            reason = HTTPStatus(self.status_code).phrase
        except ValueError:
            reason = ""
        msg = f"{reason} ({self.status_code})".lstrip()
        if self.endpoint:
            msg = f"{msg} at {self.endpoint}"
        if self.message:
            msg = f"{msg}: {self.message}"
        if self.cause is not None:
            msg = f"{msg}: {self.cause}"
        return msg

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "status_code": self.status_code,
            "endpoint": self.endpoint,
        }


class NotFoundError(WillysError):
    """The service reports the referenced resource does not exist."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, resource: str, id: str = ""):
        self.resource = resource
        self.id = id
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.id:
            return f"{self.resource} not found: {self.id}"
        return f"{self.resource} not found"

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "resource": self.resource, "id": self.id}


def is_validation_error(err: BaseException) -> bool:
    return isinstance(err, ValidationError)


def is_authentication_error(err: BaseException) -> bool:
    return isinstance(err, AuthenticationError)


def is_api_error(err: BaseException) -> bool:
    return isinstance(err, APIError)


def is_not_found_error(err: BaseException) -> bool:
    return isinstance(err, NotFoundError)
