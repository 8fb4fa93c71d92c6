"""Audit logging for tool trust decisions.

Provides pluggable audit logging for gate decisions: auto-proceed,
confirmation requests, their resolution and validation errors. Custom
backends implement the AuditLogger protocol.

Example (default file logger):
    >>> from toolgate.tools.audit import FileAuditLogger, AuditEvent
    >>> from pathlib import Path
    >>> logger = FileAuditLogger(Path.home() / ".toolgate" / "audit.jsonl")
    >>> event = AuditEvent(
    ...     event_type="auto_proceed",
    ...     tool_name="run_shell_command",
    ...     arguments={"command": "git status"},
    ...     scope="shell:git",
    ... )
    >>> await logger.log_event(event)

Example (custom logger):
    >>> class DatabaseAuditLogger:
    ...     async def log_event(self, event: AuditEvent) -> None:
    ...         await db.insert("audit_log", event.to_dict())
"""

from __future__ import annotations

import asyncio
import json
import sys
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal, Protocol

__all__ = [
    "AuditEvent",
    "AuditLogger",
    "FileAuditLogger",
    "NullAuditLogger",
]


@dataclass
class AuditEvent:
    """Structured audit event for one gate decision.

    Attributes:
        event_type: request/auto_proceed/proceeded/cancelled/error
        tool_name: Name of tool being invoked
        arguments: Invocation parameters
        timestamp: Event timestamp (UTC)
        request_id: Confirmation request id, if one was created
        kind: Tool kind ("shell" or "bridged")
        scope: Allowlist scope involved in the decision, as ``kind:scope``
        outcome: Confirmation outcome chosen, if any
        reason: Decision reason or error message
        metadata: Additional context (session_id, etc.)

    Example:
        >>> event = AuditEvent(
        ...     event_type="proceeded",
        ...     tool_name="run_shell_command",
        ...     arguments={"command": "npm install"},
        ...     outcome="proceed_always",
        ...     scope="shell:npm",
        ... )
    """

    event_type: Literal["request", "auto_proceed", "proceeded", "cancelled", "error"]
    tool_name: str
    arguments: dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: str | None = None
    kind: str | None = None
    scope: str | None = None
    outcome: str | None = None
    reason: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert event to dictionary for serialization.

        Returns:
            Dictionary with all event fields, timestamp as ISO 8601 string.
        """
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


class AuditLogger(Protocol):
    """Protocol for pluggable audit logging backends."""

    async def log_event(self, event: AuditEvent) -> None:
        """Log an audit event.

        Args:
            event: AuditEvent to log

        Note:
            This method should not raise exceptions. A failing audit backend
            must not change a trust decision.
        """
        ...


class FileAuditLogger:
    """File-based audit logger using JSONL format.

    Appends audit events as JSON objects (one per line) to a log file. The
    log directory is created on first write. Writes run in the default
    executor so the event loop is not blocked.

    Example:
        >>> logger = FileAuditLogger(Path("audit.jsonl"))
        >>> await logger.log_event(event)
    """

    def __init__(self, log_file: Path | str) -> None:
        """Initialize file audit logger.

        Args:
            log_file: Path to JSONL audit log file
        """
        self.log_file = Path(log_file)

    def _write_sync(self, event_json: str) -> None:
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        with self.log_file.open("a", encoding="utf-8") as f:
            f.write(event_json + "\n")

    async def log_event(self, event: AuditEvent) -> None:
        """Append event to the JSONL file.

        Args:
            event: AuditEvent to log

        Note:
            Errors are printed to stderr and otherwise ignored.
        """
        try:
            event_json = json.dumps(event.to_dict(), default=str)
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._write_sync, event_json)
        except Exception as e:
            print(f"Audit logging error: {e}", file=sys.stderr)


class NullAuditLogger:
    """No-op audit logger used when no audit log is configured."""

    async def log_event(self, event: AuditEvent) -> None:
        """No-op log event."""
