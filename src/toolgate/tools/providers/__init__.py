"""Approval provider implementations.

- CliApprovalProvider: Command-line prompt with input()
- PolicyBasedApprovalProvider: Non-blocking policy-based answers for headless use
"""

from toolgate.tools.providers.cli import CliApprovalProvider
from toolgate.tools.providers.policy import PolicyBasedApprovalProvider

__all__ = ["CliApprovalProvider", "PolicyBasedApprovalProvider"]
