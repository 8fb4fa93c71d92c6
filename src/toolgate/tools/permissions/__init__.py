"""Permission management for tool invocations.

Provides the command root extractor, the session allowlist and the trust
evaluator. No UI dependencies.

Example:
    >>> from toolgate.tools.permissions import extract_command_root
    >>> extract_command_root("/usr/bin/python3 -m pip install requests")
    'python3'
"""

from toolgate.tools.permissions.allowlist import (
    AllowlistKey,
    AllowlistStore,
    server_scope,
    shell_scope,
    tool_scope,
)
from toolgate.tools.permissions.command_root import extract_command_root
from toolgate.tools.permissions.evaluator import TrustDecision, TrustEvaluator

__all__ = [
    "AllowlistKey",
    "AllowlistStore",
    "TrustDecision",
    "TrustEvaluator",
    "extract_command_root",
    "server_scope",
    "shell_scope",
    "tool_scope",
]
