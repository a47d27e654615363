"""HTTP client module for delivery.

Classes and functions:
    :class:`APIClient` -- blocking client backed by :class:`httpx.Client`,
        bound to one server and enterprise.
    :func:`api_error` -- classify a non-2xx response as ``ApiError``.
    :func:`request_token` -- exchange a username and password for an API
        token (see :mod:`delivery.client.token`).

Example::

    from delivery.client import request_token

    token = request_token("delivery.example.com", "acme", "alice", password)
"""

from delivery.client.api_client import APIClient, api_error
from delivery.client.token import request as request_token

__all__ = ["APIClient", "api_error", "request_token"]
