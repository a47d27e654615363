"""Credential-to-token exchange.

:func:`request` trades a username and password for an opaque API token by
POSTing ``{"username": ..., "password": ...}`` to
``users/{username}/get-token`` on the enterprise's API root.  HTTPS is
always used since the password travels in the request body.

Outcomes:

* HTTP 200 -- the body is decoded as ``{"token": ...}`` and the token
  string is returned.
* HTTP 401 -- ``AUTHENTICATION_FAILED`` (the caller may prompt again).
* any other status -- also ``AUTHENTICATION_FAILED``, with the status in
  the detail.

Every other failure (encoding, transport, body read, decoding) is raised
as the matching :class:`~delivery.exceptions.DeliveryError` kind.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from delivery import codec
from delivery.client.api_client import APIClient
from delivery.exceptions import DeliveryError, Kind, from_io_error
from delivery.models import TokenRequest, TokenResponse

logger = logging.getLogger(__name__)


def token_payload(user: str, password: str) -> str:
    """Encode the JSON body of a token request.

    Raises:
        DeliveryError: ``JSON_ENCODE`` if the payload cannot be encoded.
    """
    return codec.encode(TokenRequest(username=user, password=password))


def parse_token(response: str) -> str:
    """Extract the token from a ``get-token`` response body.

    Raises:
        DeliveryError: ``JSON_PARSE_ERROR`` or ``JSON_ERROR``.
    """
    return codec.decode(response, TokenResponse).token


def token_path(user: str) -> str:
    """Path of the token endpoint, with *user* escaped as one segment."""
    return f"users/{quote(user, safe='')}/get-token"


def request(
    server: str,
    ent: str,
    user: str,
    password: str,
    **client_options: Any,
) -> str:
    """Request an API token for *user* from a delivery server.

    Args:
        server: Server host name.
        ent: Enterprise name.
        user: User name.
        password: The user's password.
        **client_options: Extra keyword arguments for
            :class:`~delivery.client.api_client.APIClient` (``timeout``,
            ``verify_ssl``, ``transport``).

    Returns:
        The token string.

    Raises:
        DeliveryError: See the module docstring for the kinds raised.
    """
    payload = token_payload(user, password)
    path = token_path(user)

    with APIClient.new_https(server, ent, **client_options) as client:
        logger.debug("Requesting token for %s from %s", user, client.base_url)
        response = client.post(path, payload)
        try:
            status = response.status_code
            if status == httpx.codes.OK:
                return parse_token(_read_body(response))
            if status == httpx.codes.UNAUTHORIZED:
                raise DeliveryError(Kind.AUTHENTICATION_FAILED, "token request returned 401")
            raise DeliveryError(Kind.AUTHENTICATION_FAILED, f"token request returned {status}")
        finally:
            response.close()


def _read_body(response: httpx.Response) -> str:
    try:
        response.read()
        return response.text
    except (httpx.HTTPError, httpx.StreamError, OSError) as exc:
        raise from_io_error(exc) from exc
