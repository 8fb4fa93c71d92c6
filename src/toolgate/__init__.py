"""toolgate - trust and confirmation gate for agent tool invocations."""

from toolgate.config import GateConfig, load_config
from toolgate.session import GateSession
from toolgate.tools import (
    AUTO_PROCEED,
    AllowlistStore,
    ConfirmationOutcome,
    ConfirmationRequest,
    InvocationResult,
    ToolDescriptor,
    ToolInvocationGate,
    ToolKind,
    TrustEvaluator,
    extract_command_root,
)

__version__ = "0.1.0"

__all__ = [
    "AUTO_PROCEED",
    "AllowlistStore",
    "ConfirmationOutcome",
    "ConfirmationRequest",
    "GateConfig",
    "GateSession",
    "InvocationResult",
    "ToolDescriptor",
    "ToolInvocationGate",
    "ToolKind",
    "TrustEvaluator",
    "__version__",
    "extract_command_root",
    "load_config",
]
