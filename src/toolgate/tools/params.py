"""Invocation parameter validation and display helpers.

Validation runs before any trust decision. A failure is reported as a
message string here and raised as ToolValidationError by the evaluator.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import PurePosixPath, PureWindowsPath
from typing import Any

from toolgate.tools.base import ToolDescriptor, ToolKind

__all__ = ["describe_invocation", "validate_params"]


def validate_params(tool: ToolDescriptor, params: Any) -> str | None:
    """Check invocation parameters against tool-specific preconditions.

    Args:
        tool: Tool being invoked
        params: Invocation parameters

    Returns:
        Error message, or None if the parameters are valid

    Example:
        >>> validate_params(ToolDescriptor.shell(), {"command": ""})
        'Command cannot be empty.'
        >>> validate_params(ToolDescriptor.shell(), {"command": "ls -la"}) is None
        True
    """
    if not isinstance(params, Mapping):
        return "Parameters must be an object."

    if tool.kind == ToolKind.SHELL:
        return _validate_shell_params(params)
    return _validate_bridged_params(tool, params)


def _validate_shell_params(params: Mapping[str, Any]) -> str | None:
    command = params.get("command")
    if not isinstance(command, str) or not command.strip():
        return "Command cannot be empty."

    directory = params.get("directory")
    if directory is not None:
        if not isinstance(directory, str):
            return "Directory must be a string."
        if PurePosixPath(directory).is_absolute() or PureWindowsPath(directory).is_absolute():
            return (
                "Directory cannot be absolute. "
                "Must be relative to the project root directory."
            )
    return None


def _validate_bridged_params(
    tool: ToolDescriptor, params: Mapping[str, Any]
) -> str | None:
    for name in tool.input_schema.get("required", []):
        if name not in params:
            return f"Missing required parameter: '{name}'."
    return None


def describe_invocation(tool: ToolDescriptor, params: Mapping[str, Any]) -> str:
    """Render a one-line human description of an invocation.

    Example:
        >>> describe_invocation(
        ...     ToolDescriptor.shell(),
        ...     {"command": "npm test", "directory": "packages/core"},
        ... )
        'npm test [in packages/core]'
    """
    if tool.kind == ToolKind.SHELL:
        description = str(params.get("command", ""))
        if params.get("directory"):
            description += f" [in {params['directory']}]"
        if params.get("description"):
            note = " ".join(str(params["description"]).split())
            description += f" ({note})"
        return description

    args = json.dumps(dict(params), sort_keys=True, default=str)
    return f"{tool.server_id}.{tool.server_tool_id}({args})"
