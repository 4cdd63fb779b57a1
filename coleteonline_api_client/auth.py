"""
Bearer token handling for the Colete Online API.

The Colete Online authorisation server issues JWT access tokens through
the OAuth2 client credentials grant.  The token response carries no
``expires_in`` value, so the expiry is read from the ``exp`` claim of
the JWT payload instead.  The token is *not* verified: the API server
is the one that decides whether a token is acceptable, and a rejected
token simply triggers a refresh.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import threading
import time
from typing import Callable, Optional

import requests
from pydantic import ValidationError

from .exceptions import ColeteOnlineAuthError, ColeteOnlineDecodeError, ColeteOnlineTokenError
from .models import AuthResponseError, AuthToken

logger = logging.getLogger(__name__)

#: Upper bound on how much of a response body is read (1 MiB).
MAX_BODY_SIZE = 1 << 20


def read_body(response: requests.Response, limit: int = MAX_BODY_SIZE) -> bytes:
    """Read at most ``limit`` bytes from a streamed response.

    Anything past the limit is dropped, which normally makes the JSON
    payload undecodable.
    """
    chunks = []
    remaining = limit
    for chunk in response.iter_content(chunk_size=64 * 1024):
        if len(chunk) >= remaining:
            chunks.append(chunk[:remaining])
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def expires_at_from_jwt(token: str) -> float:
    """Return the ``exp`` claim of a JWT as epoch seconds.

    This does not guarantee that the token or its payload is valid; the
    signature is never checked.

    Raises
    ------
    ColeteOnlineTokenError
        If the token does not have three segments or its payload is not
        base64url encoded JSON with an integer ``exp`` claim.
    """
    parts = token.split(".")
    if len(parts) != 3:
        raise ColeteOnlineTokenError("invalid JWT token")
    segment = parts[1]
    try:
        payload = base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
        claims = json.loads(payload)
    except (binascii.Error, ValueError) as exc:
        raise ColeteOnlineTokenError(f"invalid JWT payload: {exc}") from exc
    exp = claims.get("exp") if isinstance(claims, dict) else None
    if isinstance(exp, bool) or not isinstance(exp, int):
        raise ColeteOnlineTokenError("invalid JWT payload: missing integer exp claim")
    try:
        return float(exp)
    except OverflowError as exc:
        raise ColeteOnlineTokenError(f"invalid JWT payload: exp out of range: {exc}") from exc


class TokenManager:
    """Cache for the bearer token used on API calls.

    Parameters
    ----------
    client_id : str
        Colete Online OAuth client identifier.
    client_secret : str
        Colete Online OAuth client secret.
    auth_url : str
        Token endpoint URL.
    session : requests.Session
        Session used for the token exchange.
    timeout : float, optional
        Timeout in seconds for the token exchange.
    clock : callable, optional
        Returns the current time as epoch seconds.  Defaults to
        :func:`time.time`.

    Notes
    -----
    A single lock is held for the whole check-and-refresh sequence.  When
    several threads find the token expired at the same time only the
    first one talks to the authorisation server; the others wait and
    then reuse the token it fetched.
    """

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        auth_url: str,
        session: requests.Session,
        timeout: Optional[float] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        credentials = f"{client_id}:{client_secret}".encode("utf-8")
        self._auth_basic = "Basic " + base64.b64encode(credentials).decode("ascii")
        self.auth_url = auth_url
        self.timeout = timeout
        self._session = session
        self._clock = clock or time.time
        self._lock = threading.Lock()

        # Internal token cache
        self._auth_bearer: Optional[str] = None
        self._auth_bearer_expiry: float = 0.0  # epoch seconds when token expires

    def _is_valid_locked(self) -> bool:
        return bool(self._auth_bearer) and self._clock() < self._auth_bearer_expiry

    def get_auth_bearer(self) -> str:
        """Return a valid ``Authorization`` value, refreshing it if expired."""
        with self._lock:
            if not self._is_valid_locked():
                self._refresh_locked()
            assert self._auth_bearer is not None
            return self._auth_bearer

    def invalidate(self, rejected: Optional[str] = None) -> None:
        """Drop the cached token so the next call fetches a new one.

        When ``rejected`` is given the cache is only cleared if it still
        holds that bearer; a token fetched after the rejected one was sent
        is kept.
        """
        with self._lock:
            if rejected is not None and self._auth_bearer != rejected:
                return
            logger.debug("Discarding cached Colete Online access token")
            self._auth_bearer = None
            self._auth_bearer_expiry = 0.0

    def _refresh_locked(self) -> None:
        """Exchange the client credentials for a new access token.

        Must be called with ``self._lock`` held.
        """
        logger.debug("Requesting Colete Online access token from %s", self.auth_url)
        headers = {
            "Authorization": self._auth_basic,
            "Content-Type": "application/x-www-form-urlencoded",
        }
        with self._session.post(
            self.auth_url,
            data="grant_type=client_credentials",
            headers=headers,
            timeout=self.timeout,
            stream=True,
        ) as response:
            body = read_body(response)
            status_code = response.status_code

        if status_code != 200:
            try:
                err = AuthResponseError.model_validate_json(body)
            except ValidationError as exc:
                raise ColeteOnlineDecodeError(
                    f"Could not decode authentication error (status {status_code}): {exc}"
                ) from exc
            raise ColeteOnlineAuthError(err.name, err.description, status_code)

        try:
            token = AuthToken.model_validate_json(body)
        except ValidationError as exc:
            raise ColeteOnlineDecodeError(f"Could not decode token response: {exc}") from exc

        expiry = expires_at_from_jwt(token.access_token)
        self._auth_bearer = "Bearer " + token.access_token
        self._auth_bearer_expiry = expiry
        logger.debug("Obtained Colete Online access token expiring at %d", expiry)
