"""Policy-based approval provider for headless environments.

Answers confirmation requests without prompting:
- Shell commands whose root is in ``shell_roots`` proceed once
- Bridged tools whose server is in ``servers`` proceed once
- Everything else gets the default outcome (CANCEL unless configured)

This provider NEVER blocks on stdin/terminal input.

Example:
    >>> from toolgate.tools.providers import PolicyBasedApprovalProvider
    >>> provider = PolicyBasedApprovalProvider(shell_roots={"git", "ls"})
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from toolgate.tools.approval import (
    BridgedConfirmationDetails,
    ConfirmationRequest,
    ShellConfirmationDetails,
)
from toolgate.tools.base import ConfirmationOutcome

logger = logging.getLogger(__name__)

__all__ = ["PolicyBasedApprovalProvider"]

_REMEMBERING_OUTCOMES = {
    ConfirmationOutcome.PROCEED_ALWAYS,
    ConfirmationOutcome.PROCEED_ALWAYS_TOOL,
    ConfirmationOutcome.PROCEED_ALWAYS_SERVER,
}


class PolicyBasedApprovalProvider:
    """Non-blocking approval provider.

    Outcomes for matched requests are PROCEED_ONCE, so a policy never grows
    the session allowlist by itself.

    Attributes:
        shell_roots: Command roots approved once per request
        servers: Server identities whose tools are approved once per request
        default_outcome: Outcome for everything else
    """

    def __init__(
        self,
        shell_roots: Iterable[str] | None = None,
        servers: Iterable[str] | None = None,
        default_outcome: ConfirmationOutcome = ConfirmationOutcome.CANCEL,
    ) -> None:
        """Initialize policy-based approval provider.

        Args:
            shell_roots: Command roots to approve
            servers: Bridged server identities to approve
            default_outcome: Outcome for requests matching neither set
        """
        self.shell_roots = frozenset(shell_roots or ())
        self.servers = frozenset(servers or ())
        self.default_outcome = ConfirmationOutcome(default_outcome)

        if self.default_outcome in _REMEMBERING_OUTCOMES:
            logger.warning(
                f"PolicyBasedApprovalProvider created with default_outcome="
                f"{self.default_outcome}. Unmatched tools will be added to the "
                "session allowlist without user interaction."
            )

    async def request_confirmation(
        self,
        request: ConfirmationRequest,
    ) -> ConfirmationOutcome:
        """Evaluate policy and return an outcome immediately.

        Args:
            request: Pending confirmation request

        Returns:
            PROCEED_ONCE for matched requests, else the default outcome
        """
        details = request.details
        if (
            isinstance(details, ShellConfirmationDetails)
            and details.root_command in self.shell_roots
        ):
            logger.debug(f"Shell root '{details.root_command}' approved by policy")
            return ConfirmationOutcome.PROCEED_ONCE

        if (
            isinstance(details, BridgedConfirmationDetails)
            and details.server_name in self.servers
        ):
            logger.debug(f"Server '{details.server_name}' approved by policy")
            return ConfirmationOutcome.PROCEED_ONCE

        if self.default_outcome not in request.options:
            logger.debug(
                f"Default outcome {self.default_outcome} not offered for "
                f"'{request.tool.name}', cancelling"
            )
            return ConfirmationOutcome.CANCEL

        logger.debug(f"'{request.tool.name}' answered by policy default {self.default_outcome}")
        return self.default_outcome
