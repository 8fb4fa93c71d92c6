"""Base data structures for the tool trust gate.

Defines the tool kinds the gate understands, the immutable descriptor
identifying an invocable tool, and the enums describing an invocation's
path through the gate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

__all__ = [
    "ConfirmationOutcome",
    "InvocationResult",
    "InvocationState",
    "ToolDescriptor",
    "ToolKind",
]


class ConfirmationOutcome(str, Enum):
    """Decision made once per invocation awaiting confirmation.

    Attributes:
        PROCEED_ONCE: Run this time only, remember nothing
        PROCEED_ALWAYS: Remember the command root (shell) or the tool (bridged)
        PROCEED_ALWAYS_TOOL: Remember the specific server tool
        PROCEED_ALWAYS_SERVER: Remember the whole server (bridged only;
            for shell the command root is already the coarsest scope)
        CANCEL: Do not run; the invocation is abandoned
    """

    PROCEED_ONCE = "proceed_once"
    PROCEED_ALWAYS = "proceed_always"
    PROCEED_ALWAYS_TOOL = "proceed_always_tool"
    PROCEED_ALWAYS_SERVER = "proceed_always_server"
    CANCEL = "cancel"

    def __str__(self) -> str:
        """Return string representation of outcome."""
        return self.value


class InvocationResult(str, Enum):
    """Terminal result handed back to the invocation's caller."""

    PROCEEDED = "proceeded"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        """Return string representation of result."""
        return self.value


class InvocationState(str, Enum):
    """States of one invocation's trust decision.

    ``unchecked -> {AUTO_PROCEED | AWAITING_CONFIRMATION} -> {PROCEEDED | CANCELLED}``

    "unchecked" is any invocation not yet seen by the evaluator and has no
    member of its own.
    """

    AUTO_PROCEED = "auto_proceed"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    PROCEEDED = "proceeded"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        """Return string representation of state."""
        return self.value


class ToolKind(str, Enum):
    """Category of invocable tool, selecting which trust scopes apply.

    Attributes:
        SHELL: Local shell command, trusted per command root
        BRIDGED: Tool exposed by a remote tool server (e.g. MCP), trusted
            per server or per server tool
    """

    SHELL = "shell"
    BRIDGED = "bridged"

    def __str__(self) -> str:
        """Return string representation of tool kind."""
        return self.value


@dataclass(frozen=True)
class ToolDescriptor:
    """Identity of an invocable tool.

    Immutable once created. ``always_trusted`` is fixed at registration time,
    typically derived from the session's approval mode.

    Attributes:
        name: Stable tool name (used for lookups)
        kind: Tool kind
        server_id: Remote server identity (bridged tools only)
        server_tool_id: Tool identity local to the server (bridged tools only)
        always_trusted: Bypass the allowlist entirely
        description: Human-readable description
        input_schema: JSON schema discovered from the tool server
        timeout: Per-call timeout in seconds for the execution collaborator

    Example:
        >>> shell = ToolDescriptor.shell()
        >>> tool = ToolDescriptor.bridged("github", "create_issue")
        >>> tool.name
        'github__create_issue'
    """

    name: str
    kind: ToolKind
    server_id: str | None = None
    server_tool_id: str | None = None
    always_trusted: bool = False
    description: str = ""
    input_schema: dict[str, Any] = field(default_factory=dict, compare=False)
    timeout: float | None = None

    def __post_init__(self) -> None:
        """Validate descriptor after initialization."""
        if not self.name or not self.name.strip():
            raise ValueError("Tool name cannot be empty")
        if self.kind == ToolKind.BRIDGED:
            if not self.server_id or not self.server_tool_id:
                raise ValueError(
                    f"Bridged tool '{self.name}' requires server_id and server_tool_id"
                )
            if "." in self.server_id:
                raise ValueError(
                    f"Bridged tool '{self.name}' has server_id '{self.server_id}': "
                    "server ids cannot contain '.'"
                )
        elif self.server_id is not None or self.server_tool_id is not None:
            raise ValueError(f"Shell tool '{self.name}' cannot have a server identity")

    @classmethod
    def shell(
        cls,
        name: str = "run_shell_command",
        *,
        always_trusted: bool = False,
        description: str = "",
    ) -> ToolDescriptor:
        """Create a shell tool descriptor."""
        return cls(
            name=name,
            kind=ToolKind.SHELL,
            always_trusted=always_trusted,
            description=description,
        )

    @classmethod
    def bridged(
        cls,
        server_id: str,
        server_tool_id: str,
        *,
        name: str | None = None,
        always_trusted: bool = False,
        description: str = "",
        input_schema: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> ToolDescriptor:
        """Create a bridged tool descriptor.

        Args:
            server_id: Remote server identity
            server_tool_id: Tool identity on that server
            name: Tool name exposed to the model (default ``server__tool``)
            always_trusted: Bypass the allowlist entirely
            description: Human-readable description
            input_schema: JSON schema for the tool arguments
            timeout: Per-call timeout in seconds

        Returns:
            Frozen ToolDescriptor of kind BRIDGED
        """
        return cls(
            name=name or f"{server_id}__{server_tool_id}",
            kind=ToolKind.BRIDGED,
            server_id=server_id,
            server_tool_id=server_tool_id,
            always_trusted=always_trusted,
            description=description,
            input_schema=dict(input_schema or {}),
            timeout=timeout,
        )
