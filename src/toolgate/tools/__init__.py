"""Tool trust gate.

Decides, for every tool invocation, whether it may run unattended, must be
confirmed, or is already trusted, for both local shell commands and tools
bridged from remote tool servers.

Architecture:
- No UI dependencies: prompting is delegated to an ApprovalProvider
- Explicit session-owned allowlist, never a global
- Two-phase protocol: evaluate() then ConfirmationRequest.resolve()

Example:
    >>> from toolgate.tools import (
    ...     AllowlistStore, ToolDescriptor, ToolInvocationGate, TrustEvaluator
    ... )
    >>> from toolgate.tools.providers import CliApprovalProvider
    >>>
    >>> gate = ToolInvocationGate(TrustEvaluator(AllowlistStore()))
    >>> result = await gate.authorize(
    ...     ToolDescriptor.shell(), {"command": "git status"}, CliApprovalProvider()
    ... )
"""

from toolgate.tools.approval import (
    ApprovalError,
    ApprovalProvider,
    BridgedConfirmationDetails,
    ConfirmationRequest,
    ShellConfirmationDetails,
)
from toolgate.tools.base import (
    ConfirmationOutcome,
    InvocationResult,
    InvocationState,
    ToolDescriptor,
    ToolKind,
)
from toolgate.tools.exceptions import (
    CommandRootAmbiguityError,
    DoubleResolutionError,
    ToolError,
    ToolNotFoundError,
    ToolValidationError,
)
from toolgate.tools.gate import AUTO_PROCEED, AutoProceed, ToolInvocationGate
from toolgate.tools.permissions import (
    AllowlistKey,
    AllowlistStore,
    TrustDecision,
    TrustEvaluator,
    extract_command_root,
    server_scope,
    shell_scope,
    tool_scope,
)
from toolgate.tools.registry import ToolRegistry

__all__ = [
    "AUTO_PROCEED",
    "AllowlistKey",
    "AllowlistStore",
    "ApprovalError",
    "ApprovalProvider",
    "AutoProceed",
    "BridgedConfirmationDetails",
    "CommandRootAmbiguityError",
    "ConfirmationOutcome",
    "ConfirmationRequest",
    "DoubleResolutionError",
    "InvocationResult",
    "InvocationState",
    "ShellConfirmationDetails",
    "ToolDescriptor",
    "ToolError",
    "ToolInvocationGate",
    "ToolKind",
    "ToolNotFoundError",
    "ToolRegistry",
    "ToolValidationError",
    "TrustDecision",
    "TrustEvaluator",
    "extract_command_root",
    "server_scope",
    "shell_scope",
    "tool_scope",
]
