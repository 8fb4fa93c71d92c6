"""Exceptions raised by the tool trust gate.

All trust-decision errors are raised synchronously to the caller of the gate.
None of them is ever converted into an implicit "proceed" or "deny".
"""

from __future__ import annotations

__all__ = [
    "CommandRootAmbiguityError",
    "DoubleResolutionError",
    "ToolError",
    "ToolNotFoundError",
    "ToolValidationError",
]


class ToolError(Exception):
    """Base exception for tool gating errors."""


class ToolValidationError(ToolError):
    """Raised when invocation parameters fail tool-specific checks.

    Surfaced before any trust decision is attempted.

    Attributes:
        tool_name: Name of the tool whose parameters were rejected
    """

    def __init__(self, message: str, tool_name: str | None = None):
        """Initialize validation error.

        Args:
            message: Human-readable reason
            tool_name: Name of the tool being invoked, if known
        """
        super().__init__(message)
        self.tool_name = tool_name


class CommandRootAmbiguityError(ToolValidationError):
    """Raised when a non-empty command yields no command root.

    Example: a command consisting only of separators (``"&& ;"``). Treated
    as a validation failure so crafted input cannot skip confirmation.

    Attributes:
        command: The command text that produced an empty root
    """

    def __init__(self, command: str, tool_name: str | None = None):
        """Initialize ambiguity error.

        Args:
            command: Command text that could not be reduced to a root
            tool_name: Name of the tool being invoked, if known
        """
        super().__init__(
            f"Could not determine command root for: {command!r}",
            tool_name=tool_name,
        )
        self.command = command


class DoubleResolutionError(ToolError):
    """Raised when a confirmation request is resolved more than once.

    A local programming fault. The second call never mutates the allowlist.
    """


class ToolNotFoundError(ToolError):
    """Raised when a tool is not registered."""
