"""Built-in CLI sub-commands for delivery.

* :mod:`~delivery.commands.setup` -- write connection settings to a config file.
* :mod:`~delivery.commands.token` -- exchange a password for an API token.
* :mod:`~delivery.commands.api` -- make an authenticated API call.

Each module exports a plain callback registered on the root app in
:mod:`delivery.app`.  :func:`exit_on_error` turns a
:class:`~delivery.exceptions.DeliveryError` into a rendered message and the
matching exit code.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import typer

from delivery.exceptions import DeliveryError
from delivery.output import report_error


@contextmanager
def exit_on_error() -> Iterator[None]:
    try:
        yield
    except DeliveryError as err:
        report_error(err)
        raise typer.Exit(code=err.exit_code) from None
