"""Token command -- exchange a user's password for an API token.

The token is written to stdout alone so it can be captured::

    export DELIVERY_TOKEN=$(delivery token --user alice)

The password is read from ``DELIVERY_PASSWORD`` when set, otherwise
prompted for without echo.
"""

from __future__ import annotations

import os
from typing import Optional

import typer

from delivery.commands import exit_on_error
from delivery.exceptions import DeliveryError, Kind


def token_command(
    ctx: typer.Context,
    server: Optional[str] = typer.Option(None, "--server", "-s", help="Delivery server host."),
    ent: Optional[str] = typer.Option(None, "--ent", "-e", help="Enterprise name."),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="User name."),
) -> None:
    """Request an API token for a user.

    Resolves server, enterprise and user from flags, environment, and
    config files, then POSTs the credentials over HTTPS.

    Raises:
        typer.Exit: With the error's exit code on failure (3 when the
            server rejects the credentials).

    Example::

        delivery token --server delivery.example.com --ent acme --user alice
    """
    from delivery.client import request_token
    from delivery.config import require, resolve_config
    from delivery.output import debug, print_data, success, suggest

    no_input = bool(ctx.obj and ctx.obj.get("no_input"))

    with exit_on_error():
        config = resolve_config(server=server, enterprise=ent, user=user)
        require(config, "server", "enterprise", "user")
        password = _read_password(config.user, no_input)  # type: ignore[arg-type]

        debug(f"Requesting token from {config.server} for {config.user}")
        try:
            token = request_token(
                config.server,  # type: ignore[arg-type]
                config.enterprise,  # type: ignore[arg-type]
                config.user,  # type: ignore[arg-type]
                password,
                timeout=config.timeout,
                verify_ssl=config.verify_ssl,
            )
        except DeliveryError as err:
            if err.kind is Kind.AUTHENTICATION_FAILED:
                suggest("Check the user name and password, then run `delivery token` again.")
            raise

    print_data(token)
    success(f"Token issued for {config.user}.")


def _read_password(user: str, no_input: bool) -> str:
    password = os.environ.get("DELIVERY_PASSWORD")
    if password:
        return password
    if no_input:
        raise DeliveryError(
            Kind.CONFIG_VALIDATION,
            "Missing required option(s): password (set DELIVERY_PASSWORD with --no-input)",
        )
    return typer.prompt(f"Delivery password for {user}", hide_input=True)
