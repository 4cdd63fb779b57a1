"""
Custom exception types for the Colete Online API client.

These exceptions allow callers to distinguish between failures
occurring during authentication, malformed server payloads and
rejections returned by API endpoints.  Network failures and timeouts
are not wrapped: they propagate as the ``requests`` exceptions raised
by the transport, re-exported here as :data:`TransportError`.
"""

from __future__ import annotations

from typing import List, Optional, TYPE_CHECKING

from requests.exceptions import RequestException

if TYPE_CHECKING:
    from .models import FieldError


#: Network, connection and timeout failures from the HTTP layer.
TransportError = RequestException


class ColeteOnlineError(Exception):
    """Base exception for all Colete Online client errors."""


class ColeteOnlineDecodeError(ColeteOnlineError, ValueError):
    """Raised when a request or response body cannot be (de)serialised."""


class ColeteOnlineTokenError(ColeteOnlineDecodeError):
    """Raised when an access token is not a well formed JWT."""


class ColeteOnlineAuthError(ColeteOnlineError):
    """Raised when the token endpoint rejects the client credentials.

    Attributes
    ----------
    name : str
        Short OAuth error name, e.g. ``"invalid_client"``.
    description : str
        Human readable description supplied by the server.
    status_code : int, optional
        HTTP status of the token exchange response.
    """

    def __init__(
        self, name: str, description: str, status_code: Optional[int] = None
    ) -> None:
        super().__init__(f'{name}: "{description}"')
        self.name = name
        self.description = description
        self.status_code = status_code


class ColeteOnlineAPIError(ColeteOnlineError):
    """Raised when an API endpoint answers with a non-success status."""

    def __init__(self, message: str, code: int) -> None:
        super().__init__(f'{code}: "{message}"')
        self.message = message
        self.code = code


class ColeteOnlineValidationError(ColeteOnlineAPIError):
    """The API rejected the request payload (HTTP 400).

    ``code`` is the application error code from the response body and
    ``errors`` lists the offending parameters.
    """

    def __init__(
        self, message: str, code: int, errors: Optional[List["FieldError"]] = None
    ) -> None:
        super().__init__(message, code)
        self.errors = list(errors or [])


class ColeteOnlineStatusError(ColeteOnlineAPIError):
    """The API answered with a status the client does not handle."""

    def __init__(self, status_code: int) -> None:
        super().__init__("unexpected response status", status_code)

    @property
    def status_code(self) -> int:
        return self.code
