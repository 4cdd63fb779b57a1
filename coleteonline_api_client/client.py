"""
Client implementation for the Colete Online REST API.

This module defines the :class:`ColeteOnlineClient` class which
authenticates against the Colete Online authorization server using
the OAuth2 client credentials grant and performs HTTP requests
against the Colete Online API.  The access token is cached until the
expiry embedded in the token itself and refreshed automatically when
it expires or when the API rejects it.

Usage
-----

.. code-block:: python

    from coleteonline_api_client import ColeteOnlineClient

    # Create a client for the staging environment
    client = ColeteOnlineClient(
        client_id="abc123",
        client_secret="shhsecret",
        use_production=False,
        timeout=10,
    )

    for service in client.service_list():
        print(service.courier_name, service.name)

    balance = client.user_balance()
    print(balance.amount)

Request payloads and responses are the pydantic models defined in
:mod:`coleteonline_api_client.models`.  For details on obtaining your
client credentials see the Colete Online developer documentation at
https://docs.api.colete-online.ro.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterator, List, Optional, Type, TypeVar

import requests
from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from .auth import TokenManager, read_body
from .exceptions import (
    ColeteOnlineDecodeError,
    ColeteOnlineStatusError,
    ColeteOnlineValidationError,
)
from .models import (
    AddressListResponse,
    ColeteOnlineModel,
    Order,
    OrderAddress,
    OrderPriceResponse,
    OrderResponse,
    OrderStatusResponse,
    ResponseError,
    ServiceResponse,
    UserBalance,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ColeteOnlineClient:
    """A simple client for the Colete Online REST API.

    Parameters
    ----------
    client_id : str
        Your Colete Online OAuth client identifier.
    client_secret : str
        Your Colete Online OAuth client secret.
    use_production : bool, optional
        Target the live API when true, the staging API otherwise.  The
        default is ``False``.
    timeout : float, optional
        Timeout in seconds applied to every HTTP request, including the
        token exchange.  The default is 30 seconds.
    auth_url : str, optional
        Override the token endpoint URL.
    base_url : str, optional
        Override the API base URL.  When provided, this parameter
        overrides the URL derived from ``use_production``.
    session : requests.Session, optional
        Session to send requests through.  A new one is created when
        omitted and closed by :meth:`close`.
    clock : callable, optional
        Returns the current time as epoch seconds; used to decide when
        the cached token expired.

    Notes
    -----
    The client is safe to share between threads.  The cached token is
    the only mutable state and it belongs to this instance, so two
    clients configured with different credentials never share tokens.
    """

    _DEFAULT_AUTH_URL = "https://auth.colete-online.ro/token"
    _DEFAULT_BASE_URLS = {
        True: "https://api.colete-online.ro/v1",
        False: "https://api.colete-online.ro/v1/staging",
    }

    # Number of times a call is repeated after the API rejects the token
    _MAX_AUTH_RETRIES = 1

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        use_production: bool = False,
        timeout: Optional[float] = 30.0,
        auth_url: Optional[str] = None,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        if not client_id:
            raise ValueError("client_id must be provided")
        if not client_secret:
            raise ValueError("client_secret must be provided")
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be positive, got %r" % timeout)

        self.client_id = client_id
        self.use_production = bool(use_production)
        self.timeout = timeout
        self.auth_url = auth_url or self._DEFAULT_AUTH_URL
        self.base_url = (base_url or self._DEFAULT_BASE_URLS[self.use_production]).rstrip("/")

        self._owns_session = session is None
        self._session = session or requests.Session()
        self._tokens = TokenManager(
            client_id=client_id,
            client_secret=client_secret,
            auth_url=self.auth_url,
            session=self._session,
            timeout=timeout,
            clock=clock,
        )

    def close(self) -> None:
        """Release the HTTP session if this client created it."""
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "ColeteOnlineClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    def get_auth_bearer(self) -> str:
        """Return the ``Authorization`` header value for API calls.

        The cached token is returned while it has not expired; otherwise
        a new one is fetched from the authorization server.

        Raises
        ------
        ColeteOnlineAuthError
            If the authorization server rejects the credentials.
        ColeteOnlineTokenError
            If the issued token is not a well formed JWT.
        """
        return self._tokens.get_auth_bearer()

    def invalidate_token(self) -> None:
        """Forget the cached token so the next request fetches a new one."""
        self._tokens.invalidate()

    # ------------------------------------------------------------------
    # HTTP request helpers
    # ------------------------------------------------------------------
    def _encode_body(self, body: Optional[ColeteOnlineModel]) -> Optional[bytes]:
        if body is None:
            return None
        try:
            return body.to_json().encode("utf-8")
        except PydanticSerializationError as exc:
            raise ColeteOnlineDecodeError(f"Could not encode request body: {exc}") from exc

    def _request(
        self,
        method: str,
        path: str,
        response_type: Type[T],
        *,
        body: Optional[ColeteOnlineModel] = None,
    ) -> T:
        """Perform an authenticated request and decode the response.

        Parameters
        ----------
        method : str
            The HTTP verb, such as ``"GET"`` or ``"POST"``.
        path : str
            Endpoint path relative to the base URL, including any query
            string.
        response_type : type
            Model (or ``List[Model]``) the 200 response body is decoded
            into.
        body : ColeteOnlineModel, optional
            Request payload, sent as JSON.

        Returns
        -------
        object
            The decoded response body.

        Raises
        ------
        ColeteOnlineValidationError
            If the API rejects the request with HTTP 400.
        ColeteOnlineStatusError
            For any other non-success status, including a second 401
            after the token was refreshed.
        ColeteOnlineDecodeError
            If a request or response body cannot be (de)serialised.
        requests.RequestException
            On connection failures and timeouts.
        """
        url = f"{self.base_url}{path}"
        data = self._encode_body(body)
        attempt = 0
        while True:
            bearer = self._tokens.get_auth_bearer()
            headers = {"Authorization": bearer}
            if data is not None:
                headers["Content-Type"] = "application/json"

            with self._session.request(
                method=method.upper(),
                url=url,
                data=data,
                headers=headers,
                timeout=self.timeout,
                stream=True,
            ) as response:
                status_code = response.status_code
                if status_code in (200, 400):
                    content = read_body(response)

            if status_code == 200:
                return self._decode(response_type, content)
            if status_code == 400:
                err = self._decode(ResponseError, content)
                raise ColeteOnlineValidationError(err.message, err.code, err.errors)
            if status_code == 401 and attempt < self._MAX_AUTH_RETRIES:
                attempt += 1
                logger.debug("%s %s returned 401; refreshing token and retrying", method, path)
                self._tokens.invalidate(bearer)
                continue
            raise ColeteOnlineStatusError(status_code)

    @staticmethod
    def _decode(response_type: Type[T], content: bytes) -> T:
        try:
            return TypeAdapter(response_type).validate_json(content)
        except ValidationError as exc:
            raise ColeteOnlineDecodeError(
                f"Could not decode {getattr(response_type, '__name__', response_type)}: {exc}"
            ) from exc

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------
    def create_order(self, order: Order) -> OrderResponse:
        """Place an order and return the chosen service and AWB."""
        return self._request("POST", "/order", OrderResponse, body=order)

    def order_price(self, order: Order) -> OrderPriceResponse:
        """Quote an order without placing it.

        The response holds the service that would be selected for the
        order as well as every matching service with its price.
        """
        return self._request("POST", "/order/price", OrderPriceResponse, body=order)

    def order_status(self, unique_id_or_awb: str) -> OrderStatusResponse:
        """Return the status summary and history of an order.

        ``unique_id_or_awb`` may be the order unique id or the courier
        AWB number.
        """
        if not unique_id_or_awb:
            raise ValueError("unique_id_or_awb must not be empty")
        return self._request("GET", f"/order/status/{unique_id_or_awb}", OrderStatusResponse)

    # ------------------------------------------------------------------
    # Address book
    # ------------------------------------------------------------------
    def address_list(self, page: int = 1) -> AddressListResponse:
        """Return one page of saved addresses."""
        return self._request("GET", f"/address?page={int(page)}", AddressListResponse)

    def iter_addresses(self, start_page: int = 1) -> Iterator[OrderAddress]:
        """Yield saved addresses from every page, starting at ``start_page``.

        Pages are fetched lazily, one request per page, until the last
        page reported by the API is reached or a page comes back empty.
        """
        page = start_page
        while True:
            resp = self.address_list(page)
            yield from resp.data
            if not resp.data or resp.pagination.current_page >= resp.pagination.total_pages:
                break
            page += 1

    # ------------------------------------------------------------------
    # Services and account
    # ------------------------------------------------------------------
    def service_list(self) -> List[ServiceResponse]:
        return self._request("GET", "/service", List[ServiceResponse])

    def user_balance(self) -> UserBalance:
        return self._request("GET", "/user/balance", UserBalance)
