"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a family of error kinds from
:mod:`delivery.exceptions`.  :attr:`~delivery.exceptions.DeliveryError.exit_code`
picks the constant for a given error, and
:func:`delivery.commands.exit_on_error` exits with it.  Shell wrappers can
inspect the code to tell a rejected password from an unreachable server
without parsing stderr.

Example::

    $ delivery token --user alice
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- credentials were rejected
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Authentication failed or no API token is available."""

EXIT_NOT_FOUND = 4
"""The server answered HTTP 404."""

EXIT_SERVER_ERROR = 5
"""The server answered with any other non-success status."""

EXIT_CONNECTION_ERROR = 6
"""A transport-level error occurred (timeout, DNS failure, TLS, connection refused)."""

EXIT_DATA_ERROR = 7
"""A JSON payload could not be encoded, parsed, or decoded."""

EXIT_CONFIG_ERROR = 8
"""The cli configuration is missing, unreadable, or incomplete."""
