"""API command -- make one authenticated request against the server.

Paths are relative to the enterprise root, so ``delivery api get orgs``
requests ``https://<server>/api/v0/e/<ent>/orgs``.  The token comes from
``--token`` or ``DELIVERY_TOKEN``; see ``delivery token``.
"""

from __future__ import annotations

import json
from typing import Optional

import typer

from delivery.commands import exit_on_error
from delivery.exceptions import DeliveryError, Kind


def api_command(
    method: str = typer.Argument(help="HTTP method: get, post, put, delete."),
    path: str = typer.Argument(help="Path below the enterprise API root."),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="JSON request body."),
    token: Optional[str] = typer.Option(
        None, "--token", "-t", envvar="DELIVERY_TOKEN", help="API token."
    ),
    server: Optional[str] = typer.Option(None, "--server", "-s", help="Delivery server host."),
    ent: Optional[str] = typer.Option(None, "--ent", "-e", help="Enterprise name."),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="User name."),
) -> None:
    """Call the delivery API and print the JSON response.

    Raises:
        typer.Exit: 3 without a token, 4 on HTTP 404, 5 on other non-2xx
            statuses, 6 on transport failure.

    Example::

        delivery api get orgs
        delivery api post orgs --data '{"name": "sandbox"}'
    """
    from delivery.client import APIClient
    from delivery.config import require, resolve_config
    from delivery.exceptions import from_json_parse_error
    from delivery.output import get_output, info

    with exit_on_error():
        config = resolve_config(server=server, enterprise=ent, user=user)
        require(config, "server", "enterprise", "user")
        if not token:
            raise DeliveryError(Kind.NO_TOKEN)
        payload = _check_json(data)

        with APIClient.new_https(
            config.server,  # type: ignore[arg-type]
            config.enterprise,  # type: ignore[arg-type]
            user=config.user,
            token=token,
            timeout=config.timeout,
            verify_ssl=config.verify_ssl,
        ) as client:
            response = client.request(method, path.lstrip("/"), payload)

        if not response.content:
            info(f"{response.status_code} {response.reason_phrase}: no content")
            return
        try:
            body = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise from_json_parse_error(exc) from exc
        get_output().format_response(body)


def _check_json(data: Optional[str]) -> Optional[str]:
    if data is None:
        return None
    try:
        json.loads(data)
    except json.JSONDecodeError as exc:
        raise DeliveryError(Kind.EXPECTED_JSON_STRING, f"--data is not valid JSON: {exc}") from exc
    return data
