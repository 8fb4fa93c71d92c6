"""Gate session: owns the allowlist for the lifetime of one session.

A GateSession is created at session start and discarded at session end.
Nothing it holds is persisted.

Example:
    >>> from toolgate.config import GateConfig
    >>> from toolgate.tools.providers import CliApprovalProvider
    >>> session = GateSession.from_config(GateConfig(allowed_shell_roots=["ls"]))
    >>> shell = session.registry.register_shell()
    >>> await session.authorize(shell.name, {"command": "ls -la"}, CliApprovalProvider())
    <InvocationResult.PROCEEDED: 'proceeded'>
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from toolgate.config.models import ApprovalMode, GateConfig
from toolgate.tools.audit import FileAuditLogger, NullAuditLogger
from toolgate.tools.gate import ToolInvocationGate
from toolgate.tools.permissions.allowlist import (
    AllowlistKey,
    AllowlistStore,
    server_scope,
    shell_scope,
    tool_scope,
)
from toolgate.tools.permissions.evaluator import TrustEvaluator
from toolgate.tools.registry import ToolRegistry

if TYPE_CHECKING:
    from toolgate.tools.approval import ApprovalProvider
    from toolgate.tools.audit import AuditLogger
    from toolgate.tools.base import InvocationResult

logger = logging.getLogger(__name__)

__all__ = ["GateSession", "seed_keys"]


def seed_keys(config: GateConfig) -> list[AllowlistKey]:
    """Allowlist keys configured to be trusted from session start."""
    keys = [shell_scope(root) for root in config.allowed_shell_roots]
    keys.extend(server_scope(server) for server in config.allowed_servers)
    for entry in config.allowed_tools:
        server, _, tool = entry.partition(".")
        keys.append(tool_scope(server, tool))
    return keys


class GateSession:
    """One session's registry, allowlist and gate.

    Attributes:
        config: Session configuration
        store: Session allowlist (starts from the configured seed entries)
        registry: Tools known to the session
        gate: ToolInvocationGate bound to ``store``
    """

    def __init__(
        self,
        config: GateConfig,
        store: AllowlistStore,
        registry: ToolRegistry,
        gate: ToolInvocationGate,
    ) -> None:
        """Initialize session from prebuilt parts. Prefer from_config()."""
        self.config = config
        self.store = store
        self.registry = registry
        self.gate = gate

    @classmethod
    def from_config(
        cls,
        config: GateConfig | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> GateSession:
        """Build a session with a fresh allowlist.

        Args:
            config: Session configuration (default: GateConfig())
            audit_logger: Audit backend. Defaults to a FileAuditLogger when
                ``config.audit_log`` is set, else NullAuditLogger.

        Returns:
            New GateSession
        """
        config = config or GateConfig()
        if config.approval_mode == ApprovalMode.YOLO:
            logger.warning(
                "Session started in YOLO approval mode. Every registered tool "
                "runs without confirmation."
            )

        if audit_logger is None:
            audit_logger = (
                FileAuditLogger(config.audit_log) if config.audit_log else NullAuditLogger()
            )

        store = AllowlistStore(seed_keys(config))
        registry = ToolRegistry(config)
        gate = ToolInvocationGate(TrustEvaluator(store), audit_logger=audit_logger)
        return cls(config, store, registry, gate)

    async def authorize(
        self,
        tool_name: str,
        params: Any,
        provider: ApprovalProvider,
        cancel_event: asyncio.Event | None = None,
    ) -> InvocationResult:
        """Authorize an invocation of a registered tool.

        Raises:
            ToolNotFoundError: If the tool is not registered
            ToolValidationError: If parameters are invalid
        """
        tool = self.registry.get_tool(tool_name)
        return await self.gate.authorize(tool, params, provider, cancel_event)

    def __repr__(self) -> str:
        """Return string representation of session."""
        return f"GateSession(registry={self.registry!r}, store={self.store!r})"
