"""Trust decision state machine for tool invocations.

TrustEvaluator decides whether an invocation may proceed without asking,
and applies a confirmation outcome back to the allowlist.

Decision precedence (first match wins):
1. Tool is always trusted: proceed, allowlist not consulted
2. Shell: validate parameters, extract the command root, proceed if the
   root is allowlisted
3. Bridged: validate parameters, proceed if the server is allowlisted,
   else if the specific server tool is allowlisted
4. Otherwise: confirmation required

Validation failures are raised, never turned into a decision.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from toolgate.tools.approval import CancellationSignal, ConfirmationRequest
from toolgate.tools.base import (
    ConfirmationOutcome,
    InvocationResult,
    InvocationState,
    ToolDescriptor,
    ToolKind,
)
from toolgate.tools.exceptions import CommandRootAmbiguityError, ToolValidationError
from toolgate.tools.params import validate_params
from toolgate.tools.permissions.allowlist import (
    AllowlistKey,
    AllowlistStore,
    server_scope,
    shell_scope,
    tool_scope,
)
from toolgate.tools.permissions.command_root import extract_command_root

logger = logging.getLogger(__name__)

__all__ = ["TrustDecision", "TrustEvaluator"]


@dataclass(frozen=True)
class TrustDecision:
    """Outcome of evaluating one invocation.

    The allowlist keys are computed once here so resolving a confirmation
    never recomputes them.

    Attributes:
        state: AUTO_PROCEED or AWAITING_CONFIRMATION
        reason: Short machine-readable reason for the decision
        tool: Tool the decision applies to
        fine_key: Specific-target scope (command root, or ``server.tool``)
        coarse_key: Tool-class scope (command root, or server)
        root_command: Extracted command root (shell only)
    """

    state: InvocationState
    reason: str
    tool: ToolDescriptor
    fine_key: AllowlistKey | None = None
    coarse_key: AllowlistKey | None = None
    root_command: str | None = None

    @property
    def requires_confirmation(self) -> bool:
        """Whether the invocation must be confirmed before running."""
        return self.state == InvocationState.AWAITING_CONFIRMATION


class TrustEvaluator:
    """Decides whether tool invocations need confirmation.

    Example:
        >>> store = AllowlistStore()
        >>> evaluator = TrustEvaluator(store)
        >>> decision = evaluator.decide(ToolDescriptor.shell(), {"command": "git status"})
        >>> decision.requires_confirmation
        True
        >>> evaluator.apply(decision, ConfirmationOutcome.PROCEED_ALWAYS)
        <InvocationResult.PROCEEDED: 'proceeded'>
        >>> store.is_allowed(ToolKind.SHELL, "git")
        True
    """

    def __init__(self, store: AllowlistStore) -> None:
        """Initialize evaluator.

        Args:
            store: Session allowlist consulted and updated by this evaluator
        """
        self.store = store

    def decide(self, tool: ToolDescriptor, params: Any) -> TrustDecision:
        """Evaluate an invocation.

        Args:
            tool: Tool being invoked
            params: Invocation parameters

        Returns:
            TrustDecision in state AUTO_PROCEED or AWAITING_CONFIRMATION

        Raises:
            ToolValidationError: If parameters fail tool-specific checks
            CommandRootAmbiguityError: If a shell command has no root
        """
        if tool.always_trusted:
            return TrustDecision(InvocationState.AUTO_PROCEED, "always_trusted", tool)

        error = validate_params(tool, params)
        if error:
            raise ToolValidationError(error, tool_name=tool.name)

        if tool.kind == ToolKind.SHELL:
            return self._decide_shell(tool, params["command"])
        return self._decide_bridged(tool)

    def _decide_shell(self, tool: ToolDescriptor, command: str) -> TrustDecision:
        root = extract_command_root(command)
        if not root:
            raise CommandRootAmbiguityError(command, tool_name=tool.name)

        key = shell_scope(root)
        if self.store.contains(key):
            return TrustDecision(
                InvocationState.AUTO_PROCEED,
                "shell_root_allowed",
                tool,
                fine_key=key,
                coarse_key=key,
                root_command=root,
            )

        return TrustDecision(
            InvocationState.AWAITING_CONFIRMATION,
            "confirmation_required",
            tool,
            fine_key=key,
            coarse_key=key,
            root_command=root,
        )

    def _decide_bridged(self, tool: ToolDescriptor) -> TrustDecision:
        assert tool.server_id is not None and tool.server_tool_id is not None
        coarse = server_scope(tool.server_id)
        fine = tool_scope(tool.server_id, tool.server_tool_id)

        # Server-level trust supersedes tool-level trust
        if self.store.contains(coarse):
            reason = "server_allowed"
        elif self.store.contains(fine):
            reason = "tool_allowed"
        else:
            return TrustDecision(
                InvocationState.AWAITING_CONFIRMATION,
                "confirmation_required",
                tool,
                fine_key=fine,
                coarse_key=coarse,
            )

        return TrustDecision(
            InvocationState.AUTO_PROCEED,
            reason,
            tool,
            fine_key=fine,
            coarse_key=coarse,
        )

    def request_confirmation(
        self,
        decision: TrustDecision,
        params: Any,
        cancel_event: CancellationSignal | None = None,
    ) -> ConfirmationRequest:
        """Create the pending request for a decision awaiting confirmation.

        Args:
            decision: Decision returned by decide()
            params: Invocation parameters
            cancel_event: Optional external cancellation signal

        Returns:
            ConfirmationRequest bound to this evaluator's allowlist
        """
        return ConfirmationRequest(decision, params, self, cancel_event=cancel_event)

    def apply(
        self,
        decision: TrustDecision,
        outcome: ConfirmationOutcome | str,
    ) -> InvocationResult:
        """Apply a confirmation outcome to a pending decision.

        Mutates the allowlist at most once, and only for outcomes that ask
        to remember the decision.

        Args:
            decision: Decision in state AWAITING_CONFIRMATION
            outcome: Outcome chosen by the prompting collaborator

        Returns:
            PROCEEDED or CANCELLED

        Raises:
            ValueError: If the decision is not awaiting confirmation, or the
                outcome is unknown
        """
        if not decision.requires_confirmation:
            raise ValueError(
                f"Cannot apply an outcome to a decision in state '{decision.state}'"
            )

        outcome = ConfirmationOutcome(outcome)

        if outcome == ConfirmationOutcome.CANCEL:
            return InvocationResult.CANCELLED
        if outcome == ConfirmationOutcome.PROCEED_ONCE:
            return InvocationResult.PROCEEDED

        if outcome == ConfirmationOutcome.PROCEED_ALWAYS_SERVER:
            key = decision.coarse_key
        else:
            key = decision.fine_key

        assert key is not None
        self.store.add(key)
        logger.debug(f"Outcome {outcome} for '{decision.tool.name}' remembered as {key}")
        return InvocationResult.PROCEEDED
