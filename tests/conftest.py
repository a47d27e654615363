"""Shared test fixtures for delivery.

Provides isolated config environments, output state management, a CLI
runner, and helpers for routing :class:`~delivery.client.APIClient`
traffic through :class:`httpx.MockTransport`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

import httpx
import pytest

from delivery.client.api_client import APIClient
from delivery.output import OutputFormat, OutputManager, reset_output, set_output


Handler = Callable[[httpx.Request], httpx.Response]


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and ``delivery`` log handlers.

    Both cache references to the streams CliRunner swaps in; once a test
    finishes those streams are closed.
    """
    yield
    reset_output()
    logger = logging.getLogger("delivery")
    logger.handlers = []
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME and XDG_DATA_HOME at subdirectories of
    tmp_path, clears all DELIVERY_* environment variables, and changes the
    working directory to ``tmp_path / "project"``.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setattr("delivery.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "DELIVERY_SERVER",
        "DELIVERY_ENTERPRISE",
        "DELIVERY_USER",
        "DELIVERY_ORGANIZATION",
        "DELIVERY_PASSWORD",
        "DELIVERY_TOKEN",
    ]:
        monkeypatch.delenv(var, raising=False)

    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet, colourless OutputManager."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def route_api_client(monkeypatch: pytest.MonkeyPatch) -> Callable[[Handler], list[httpx.Request]]:
    """Send every ``APIClient.new_https`` client through a mock handler.

    Returns a function taking the handler; it returns the list that
    collects every request the handler saw.
    """

    def _install(handler: Handler) -> list[httpx.Request]:
        seen: list[httpx.Request] = []

        def _recording(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        original = APIClient.new_https.__func__  # type: ignore[attr-defined]

        def _new_https(cls: type[APIClient], server: str, enterprise: str, **kwargs: object) -> APIClient:
            kwargs["transport"] = httpx.MockTransport(_recording)
            return original(cls, server, enterprise, **kwargs)

        monkeypatch.setattr(APIClient, "new_https", classmethod(_new_https))
        return seen

    return _install


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
