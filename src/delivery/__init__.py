"""delivery -- command-line client core for a delivery server.

This package classifies every failure a client operation can produce into
one closed error taxonomy and exchanges a username/password for an API
token over HTTPS.

Typical workflow::

    delivery setup --server delivery.example.com --ent acme --user alice
    delivery token                       # prompts for the password
    delivery api get orgs --token <tok>  # authenticated call

Modules:
    app: Typer application and CLI entry point.
    exceptions: Error kinds, descriptions, and conversions.
    exit_codes: Numeric exit codes following clig.dev conventions.
    models: Pydantic models for config and wire payloads.
    codec: JSON encode/decode boundary.
    config: XDG-aware configuration and precedence resolution.
    output: stdout/stderr formatting system with Rich support.
    client: HTTP client and token exchange.
"""

__version__ = "0.1.0"
