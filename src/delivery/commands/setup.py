"""Setup command -- persist connection settings.

Writes ``.delivery/cli.json`` in the current directory (or the user-wide
``cli.json`` with ``--global``).  Values already in the file are kept
unless a flag overrides them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from delivery.commands import exit_on_error


def setup_command(
    server: Optional[str] = typer.Option(None, "--server", "-s", help="Delivery server host."),
    ent: Optional[str] = typer.Option(None, "--ent", "-e", help="Enterprise name."),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="User name."),
    org: Optional[str] = typer.Option(None, "--org", "-o", help="Default organization."),
    global_: bool = typer.Option(
        False, "--global", "-g", help="Write the user-wide config instead of the project one."
    ),
) -> None:
    """Write server, enterprise, user and organization to a config file.

    Example::

        delivery setup --server delivery.example.com --ent acme --user alice
    """
    from delivery.config import global_config_path, load_config_file, save_config
    from delivery.models import CliConfig
    from delivery.output import success, suggest, warning

    with exit_on_error():
        path = global_config_path() if global_ else Path.cwd() / ".delivery" / "cli.json"
        existing = load_config_file(path) or CliConfig()
        updates = {
            "server": server,
            "enterprise": ent,
            "user": user,
            "organization": org,
        }
        merged = existing.model_dump(exclude_unset=True)
        for field, value in updates.items():
            if value is None:
                continue
            previous = merged.get(field)
            if previous is not None and previous != value:
                warning(f"Replacing {field} {previous!r} with {value!r}")
            merged[field] = value
        save_config(CliConfig.model_validate(merged), path)

    success(f"Wrote {path}")
    suggest("Get a token: delivery token")
