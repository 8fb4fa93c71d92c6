"""Tool registry for the trust gate.

Holds the ToolDescriptors known to a session and derives each tool's
static ``always_trusted`` flag from configuration at registration time.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from toolgate.config.models import ApprovalMode
from toolgate.tools.base import ToolDescriptor, ToolKind
from toolgate.tools.exceptions import ToolNotFoundError, ToolValidationError

if TYPE_CHECKING:
    from toolgate.config.models import GateConfig

logger = logging.getLogger(__name__)

__all__ = ["ToolRegistry"]


class ToolRegistry:
    """Central registry of invocable tools.

    Example:
        >>> from toolgate.config.models import GateConfig
        >>> registry = ToolRegistry(GateConfig())
        >>> shell = registry.register_shell()
        >>> tool = registry.register_bridged("github", "create_issue")
        >>> registry.get_tool("github__create_issue").server_id
        'github'
    """

    def __init__(self, config: GateConfig):
        """Initialize tool registry with configuration.

        Args:
            config: GateConfig supplying approval mode and server trust
        """
        self.config = config
        self._tools: dict[str, ToolDescriptor] = {}

    def register(self, tool: ToolDescriptor) -> ToolDescriptor:
        """Register a prebuilt descriptor.

        Raises:
            ToolValidationError: If a tool with the same name is registered
        """
        if tool.name in self._tools:
            raise ToolValidationError(
                f"Tool '{tool.name}' is already registered.", tool_name=tool.name
            )
        self._tools[tool.name] = tool
        logger.debug(
            f"Registered {tool.kind.value} tool '{tool.name}' "
            f"(always_trusted={tool.always_trusted})"
        )
        return tool

    def register_shell(
        self,
        name: str = "run_shell_command",
        description: str = "Execute a shell command",
    ) -> ToolDescriptor:
        """Register the shell tool.

        The tool is always trusted only in YOLO approval mode.
        """
        return self.register(
            ToolDescriptor.shell(
                name,
                always_trusted=self.config.approval_mode == ApprovalMode.YOLO,
                description=description,
            )
        )

    def register_bridged(
        self,
        server_id: str,
        server_tool_id: str,
        *,
        name: str | None = None,
        description: str = "",
        input_schema: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> ToolDescriptor:
        """Register a tool discovered on a remote server.

        The tool is always trusted if the approval mode is YOLO or the
        server is configured with ``trust: true``. A timeout not given
        here falls back to the server's configured timeout.

        Args:
            server_id: Remote server identity
            server_tool_id: Tool identity on that server
            name: Tool name exposed to the model (default ``server__tool``)
            description: Human-readable description
            input_schema: JSON schema discovered for the tool
            timeout: Per-call timeout in seconds

        Returns:
            The registered ToolDescriptor
        """
        server = self.config.servers.get(server_id)
        if timeout is None and server is not None:
            timeout = server.timeout

        return self.register(
            ToolDescriptor.bridged(
                server_id,
                server_tool_id,
                name=name,
                always_trusted=self.config.is_server_trusted(server_id),
                description=description,
                input_schema=input_schema,
                timeout=timeout,
            )
        )

    def get_tool(self, tool_name: str) -> ToolDescriptor:
        """Retrieve a tool by name.

        Raises:
            ToolNotFoundError: If tool is not registered
        """
        if tool_name not in self._tools:
            available = ", ".join(self._tools) if self._tools else "none"
            raise ToolNotFoundError(
                f"Tool '{tool_name}' not found in registry. "
                f"Available tools: {available}"
            )
        return self._tools[tool_name]

    def list_tools(self, kind: ToolKind | None = None) -> list[ToolDescriptor]:
        """List registered tools, optionally filtered by kind."""
        tools = list(self._tools.values())
        if kind is not None:
            tools = [t for t in tools if t.kind == kind]
        return tools

    def __len__(self) -> int:
        """Return number of registered tools."""
        return len(self._tools)

    def __contains__(self, tool_name: str) -> bool:
        """Check if a tool is registered."""
        return tool_name in self._tools

    def __repr__(self) -> str:
        """Return string representation of registry."""
        return (
            f"ToolRegistry(tools={len(self._tools)}, "
            f"approval_mode='{self.config.approval_mode.value}')"
        )
