"""HTTP client for the delivery server API.

:class:`APIClient` wraps :class:`httpx.Client` with the delivery URL
layout (``{scheme}://{server}/api/v0/e/{enterprise}/``), the JSON and
user/token headers the server expects, and conversion of transport
failures into :class:`~delivery.exceptions.DeliveryError`.

Two request styles are offered:

- :meth:`APIClient.post` -- returns the response *unread* (streamed) and
  leaves status interpretation to the caller.  Token exchange uses this.
- :meth:`APIClient.request` -- reads the body and raises ``ApiError`` for
  any non-2xx status.

No retries are performed; each call issues exactly one request.

Example::

    with APIClient.new_https("delivery.example.com", "acme") as client:
        response = client.post("users/alice/get-token", payload)
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from delivery.exceptions import ApiError, DeliveryError, Kind, converting

logger = logging.getLogger(__name__)

SUPPORTED_METHODS = ("GET", "POST", "PUT", "DELETE")


class APIClient:
    """Client bound to one server and enterprise.

    Must be used as a context manager so that the underlying transport is
    opened and closed.

    Args:
        server: Server host name (optionally with ``:port``).
        enterprise: Enterprise name; scopes every API path.
        scheme: ``"https"`` or ``"http"``.
        user: User name sent as ``chef-delivery-user`` when a token is set.
        token: API token sent as ``chef-delivery-token``.
        timeout: Request timeout in seconds.
        verify_ssl: Verify TLS certificates.
        transport: Optional :class:`httpx.BaseTransport`, mainly for tests.
    """

    def __init__(
        self,
        server: str,
        enterprise: str,
        scheme: str = "https",
        *,
        user: Optional[str] = None,
        token: Optional[str] = None,
        timeout: float = 30,
        verify_ssl: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._server = server
        self._enterprise = enterprise
        self._scheme = scheme
        self._user = user
        self._token = token
        self._timeout = timeout
        self._verify_ssl = verify_ssl
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @classmethod
    def new_https(cls, server: str, enterprise: str, **kwargs: object) -> APIClient:
        return cls(server, enterprise, "https", **kwargs)  # type: ignore[arg-type]

    @classmethod
    def new_http(cls, server: str, enterprise: str, **kwargs: object) -> APIClient:
        return cls(server, enterprise, "http", **kwargs)  # type: ignore[arg-type]

    @property
    def base_url(self) -> str:
        return f"{self._scheme}://{self._server}/api/v0/e/{self._enterprise}/"

    @property
    def is_secure(self) -> bool:
        return self._scheme == "https"

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> APIClient:
        with converting():
            self._client = httpx.Client(
                base_url=self.base_url,
                headers=self._default_headers(),
                timeout=self._timeout,
                verify=self._verify_ssl,
                transport=self._transport,
            )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    def post(self, path: str, payload: str) -> httpx.Response:
        """Send *payload* as a JSON POST and return the unread response.

        The caller owns the response and must call ``close()`` on it.

        Raises:
            DeliveryError: ``HttpTransportError`` on transport failure.
        """
        return self._send("POST", path, payload)

    def request(self, method: str, path: str, payload: Optional[str] = None) -> httpx.Response:
        """Send a request, read the body, and check the status.

        Raises:
            DeliveryError: ``UNSUPPORTED_HTTP_METHOD`` for methods outside
                :data:`SUPPORTED_METHODS`, ``HttpTransportError`` on
                transport failure, ``ApiError`` for any non-2xx status.
        """
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise DeliveryError(Kind.UNSUPPORTED_HTTP_METHOD, f"{method} is not one of {', '.join(SUPPORTED_METHODS)}")

        response = self._send(method, path, payload)
        try:
            if not response.is_success:
                raise api_error(response)
            with converting():
                response.read()
        finally:
            response.close()
        return response

    def _send(self, method: str, path: str, payload: Optional[str]) -> httpx.Response:
        assert self._client is not None, "Client not initialised -- use as context manager"
        with converting():
            request = self._client.build_request(method, path, content=payload)
            logger.debug("%s %s", method, request.url)
            response = self._client.send(request, stream=True)
        logger.debug("%s %s -> %d", method, request.url, response.status_code)
        return response

    def _default_headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self._token:
            if self._user:
                headers["chef-delivery-user"] = self._user
            headers["chef-delivery-token"] = self._token
        return headers


def api_error(response: httpx.Response) -> DeliveryError:
    """Build an ``ApiError`` for *response*, reading its body if possible.

    A failure while reading the body is recorded in place of the body and
    becomes the error's :attr:`~delivery.exceptions.DeliveryError.cause`.
    """
    body: str | Exception
    try:
        response.read()
        body = response.text
    except (httpx.HTTPError, httpx.StreamError, OSError) as exc:
        body = exc
    detail = f"{response.request.method} {response.request.url.path} returned {response.status_code}"
    return DeliveryError(ApiError(response.status_code, body), detail)
