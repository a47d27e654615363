"""Pydantic models shared across delivery modules.

**Configuration** -- :class:`CliConfig`, serialised as ``cli.json`` in the
user's config directory or in a project's ``.delivery/`` directory.

**Wire payloads** -- :class:`TokenRequest` and :class:`TokenResponse`,
exchanged with the server's ``get-token`` endpoint.  Field declaration
order is the serialisation order, so ``TokenRequest`` always encodes as
``{"username":...,"password":...}``.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CliConfig(BaseModel):
    """Connection settings for a delivery server.

    Loaded and merged by :func:`~delivery.config.resolve_config`.  All
    connection fields are optional at this level; commands call
    :func:`~delivery.config.require` for the ones they need.
    """

    model_config = ConfigDict(extra="ignore")

    server: Optional[str] = Field(default=None, description="Delivery server host name")
    enterprise: Optional[str] = Field(default=None, description="Enterprise the user belongs to")
    user: Optional[str] = Field(default=None, description="Delivery user name")
    organization: Optional[str] = Field(default=None, description="Default organization")
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")
    timeout: int = Field(default=30, description="Request timeout in seconds")


class TokenRequest(BaseModel):
    """Credentials sent to ``users/{username}/get-token``."""

    username: str
    password: str

    def __repr__(self) -> str:
        return f"TokenRequest(username={self.username!r}, password='***')"


class TokenResponse(BaseModel):
    """Successful ``get-token`` response.  Only ``token`` is kept."""

    model_config = ConfigDict(extra="ignore")

    token: str
