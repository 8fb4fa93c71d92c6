"""Pydantic configuration models for toolgate.

Strongly-typed configuration (Pydantic v2) for the trust gate: the
session-wide approval mode, per-server trust, and allowlist entries seeded
at session start.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["ApprovalMode", "BridgedServerConfig", "EnvSettings", "GateConfig"]


class ApprovalMode(str, Enum):
    """Session-wide approval mode.

    Attributes:
        DEFAULT: Confirm every invocation not covered by the allowlist
        YOLO: Trust every registered tool (no confirmation at all)
    """

    DEFAULT = "default"
    YOLO = "yolo"


class BridgedServerConfig(BaseModel):
    """Configuration for one remote tool server."""

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    trust: bool = Field(
        default=False,
        description="Trust every tool on this server (no confirmation)",
    )
    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Per-call timeout in seconds passed to the execution layer",
    )
    description: str = Field(
        default="",
        description="Human-readable server description",
    )


def _clean_entries(entries: list[str]) -> list[str]:
    cleaned = []
    for entry in entries:
        entry = entry.strip()
        if not entry:
            raise ValueError("Allowlist entries cannot be empty")
        if entry not in cleaned:
            cleaned.append(entry)
    return cleaned


def _check_server_id(server_id: str) -> None:
    if "." in server_id:
        raise ValueError(f"Invalid server id '{server_id}': cannot contain '.'")


class GateConfig(BaseModel):
    """Configuration for the tool trust gate.

    Example:
        >>> config = GateConfig(
        ...     allowed_shell_roots=["git", "ls"],
        ...     servers={"github": BridgedServerConfig(trust=True)},
        ... )
        >>> config.approval_mode
        <ApprovalMode.DEFAULT: 'default'>
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    approval_mode: ApprovalMode = Field(
        default=ApprovalMode.DEFAULT,
        description="'default' confirms untrusted invocations, 'yolo' trusts every tool "
        "(DANGEROUS - no confirmation at all)",
    )
    servers: dict[str, BridgedServerConfig] = Field(
        default_factory=dict,
        description="Remote tool servers keyed by server identity",
    )
    allowed_shell_roots: list[str] = Field(
        default_factory=list,
        description="Command roots trusted from session start (e.g. 'git')",
    )
    allowed_servers: list[str] = Field(
        default_factory=list,
        description="Server identities whose tools are trusted from session start",
    )
    allowed_tools: list[str] = Field(
        default_factory=list,
        description="Specific server tools trusted from session start, as 'server.tool'",
    )
    audit_log: Path | None = Field(
        default=None,
        description="JSONL audit log path (None disables audit logging)",
    )

    @field_validator("allowed_shell_roots")
    @classmethod
    def validate_entries(cls, v: list[str]) -> list[str]:
        """Strip entries and reject blanks."""
        return _clean_entries(v)

    @field_validator("allowed_servers")
    @classmethod
    def validate_server_entries(cls, v: list[str]) -> list[str]:
        """Reject server ids that would collide with 'server.tool' entries."""
        cleaned = _clean_entries(v)
        for entry in cleaned:
            _check_server_id(entry)
        return cleaned

    @field_validator("servers")
    @classmethod
    def validate_servers(
        cls, v: dict[str, BridgedServerConfig]
    ) -> dict[str, BridgedServerConfig]:
        """Reject server ids containing '.'."""
        for server_id in v:
            _check_server_id(server_id)
        return v

    @field_validator("allowed_tools")
    @classmethod
    def validate_tool_entries(cls, v: list[str]) -> list[str]:
        """Require 'server.tool' form."""
        cleaned = _clean_entries(v)
        for entry in cleaned:
            server, _, tool = entry.partition(".")
            if not server or not tool:
                raise ValueError(
                    f"Invalid tool entry '{entry}': expected 'server.tool'"
                )
        return cleaned

    def is_server_trusted(self, server_id: str) -> bool:
        """Whether a server's tools are statically always trusted."""
        if self.approval_mode == ApprovalMode.YOLO:
            return True
        server = self.servers.get(server_id)
        return server is not None and server.trust


class EnvSettings(BaseSettings):
    """Environment overrides.

    Environment Variables:
        TOOLGATE_APPROVAL_MODE: Override the approval mode
        TOOLGATE_AUDIT_LOG: Override the audit log path
    """

    model_config = SettingsConfigDict(
        env_prefix="TOOLGATE_",
        env_file=".env",
        extra="ignore",
    )

    approval_mode: ApprovalMode | None = None
    audit_log: Path | None = None
