"""Tool invocation gate: the entry point between the agent and execution.

Two-phase protocol:

1. ``evaluate(tool, params)`` returns AUTO_PROCEED or a ConfirmationRequest.
   Validation errors are raised before any trust decision is made.
2. For a ConfirmationRequest, the caller obtains an outcome from a prompting
   collaborator and calls ``request.resolve(outcome)``.

``authorize`` composes both phases with an ApprovalProvider and an optional
asyncio.Event used as the cancellation signal.

Example:
    >>> store = AllowlistStore()
    >>> gate = ToolInvocationGate(TrustEvaluator(store))
    >>> shell = ToolDescriptor.shell()
    >>> request = gate.evaluate(shell, {"command": "git status"})
    >>> request.details.root_command
    'git'
    >>> request.resolve(ConfirmationOutcome.PROCEED_ALWAYS)
    <InvocationResult.PROCEEDED: 'proceeded'>
    >>> gate.evaluate(shell, {"command": "git log"}) is AUTO_PROCEED
    True
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from toolgate.tools.approval import ApprovalError, ConfirmationRequest
from toolgate.tools.audit import AuditEvent, NullAuditLogger
from toolgate.tools.base import ConfirmationOutcome, InvocationResult, ToolDescriptor
from toolgate.tools.exceptions import ToolValidationError

if TYPE_CHECKING:
    from toolgate.tools.approval import ApprovalProvider, CancellationSignal
    from toolgate.tools.audit import AuditLogger
    from toolgate.tools.permissions.allowlist import AllowlistStore
    from toolgate.tools.permissions.evaluator import TrustDecision, TrustEvaluator

logger = logging.getLogger(__name__)

__all__ = ["AUTO_PROCEED", "AutoProceed", "ToolInvocationGate"]


class AutoProceed:
    """Marker returned by evaluate() when no confirmation is needed."""

    _instance: AutoProceed | None = None

    def __new__(cls) -> AutoProceed:
        """Return the shared instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        """Return string representation of marker."""
        return "AUTO_PROCEED"


AUTO_PROCEED = AutoProceed()


class ToolInvocationGate:
    """Decides, per invocation, whether a tool may run.

    Attributes:
        evaluator: TrustEvaluator owning the session allowlist
        audit_logger: Receives one event per decision step
    """

    def __init__(
        self,
        evaluator: TrustEvaluator,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        """Initialize the gate.

        Args:
            evaluator: Evaluator bound to the session allowlist
            audit_logger: Audit backend (default: NullAuditLogger)
        """
        self.evaluator = evaluator
        self.audit_logger: AuditLogger = audit_logger or NullAuditLogger()

    @property
    def store(self) -> AllowlistStore:
        """Session allowlist."""
        return self.evaluator.store

    def evaluate(
        self,
        tool: ToolDescriptor,
        params: Any,
        cancel_event: CancellationSignal | None = None,
    ) -> AutoProceed | ConfirmationRequest:
        """Decide whether an invocation needs confirmation.

        Args:
            tool: Tool being invoked
            params: Invocation parameters
            cancel_event: Cancellation signal bound into the returned request

        Returns:
            AUTO_PROCEED, or a pending ConfirmationRequest

        Raises:
            ToolValidationError: If parameters are invalid or a shell command
                has no command root
        """
        _, gated = self._evaluate(tool, params, cancel_event)
        return gated

    def _evaluate(
        self,
        tool: ToolDescriptor,
        params: Any,
        cancel_event: CancellationSignal | None,
    ) -> tuple[TrustDecision, AutoProceed | ConfirmationRequest]:
        decision = self.evaluator.decide(tool, params)
        if not decision.requires_confirmation:
            logger.debug(f"Tool '{tool.name}' auto-approved: {decision.reason}")
            return decision, AUTO_PROCEED

        request = self.evaluator.request_confirmation(
            decision, params, cancel_event=cancel_event
        )
        logger.debug(f"Tool '{tool.name}' requires confirmation ({request.request_id})")
        return decision, request

    async def authorize(
        self,
        tool: ToolDescriptor,
        params: Any,
        provider: ApprovalProvider,
        cancel_event: asyncio.Event | None = None,
    ) -> InvocationResult:
        """Evaluate an invocation and, if needed, obtain and apply a decision.

        Suspends only the calling coroutine while the provider prompts. If
        ``cancel_event`` fires first, the prompt task is cancelled and the
        result is CANCELLED with no allowlist change.

        Args:
            tool: Tool being invoked
            params: Invocation parameters
            provider: Prompting collaborator
            cancel_event: Optional cancellation signal

        Returns:
            PROCEEDED or CANCELLED

        Raises:
            ToolValidationError: If parameters are invalid
            ApprovalError: If the provider fails or returns an unknown outcome
        """
        try:
            decision, gated = self._evaluate(tool, params, cancel_event)
        except ToolValidationError as e:
            await self._audit("error", tool, params, reason=str(e))
            raise

        if not isinstance(gated, ConfirmationRequest):
            await self._audit(
                "auto_proceed",
                tool,
                params,
                scope=decision.fine_key,
                reason=decision.reason,
            )
            return InvocationResult.PROCEEDED

        request = gated
        await self._audit(
            "request",
            tool,
            params,
            request_id=request.request_id,
            scope=request.fine_key,
            reason=decision.reason,
        )

        if cancel_event is not None and cancel_event.is_set():
            result = request.abandon()
        else:
            outcome = await self._prompt(request, provider, cancel_event)
            result = request.abandon() if outcome is None else request.resolve(outcome)

        if result == InvocationResult.CANCELLED and request.cancel_requested:
            logger.info(f"Confirmation for '{tool.name}' cancelled by caller")

        scope = (
            request.coarse_key
            if request.outcome == ConfirmationOutcome.PROCEED_ALWAYS_SERVER
            else request.fine_key
        )
        await self._audit(
            result.value,
            tool,
            params,
            request_id=request.request_id,
            scope=scope,
            outcome=request.outcome,
        )
        return result

    async def _prompt(
        self,
        request: ConfirmationRequest,
        provider: ApprovalProvider,
        cancel_event: asyncio.Event | None,
    ) -> ConfirmationOutcome | None:
        """Run the provider, racing the cancellation signal.

        Returns:
            The provider's outcome, or None if cancellation won
        """
        prompt = asyncio.ensure_future(provider.request_confirmation(request))
        waiters: set[asyncio.Future[Any]] = {prompt}
        if cancel_event is not None:
            waiters.add(asyncio.ensure_future(cancel_event.wait()))

        try:
            done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            request.abandon()
            raise
        finally:
            for waiter in waiters:
                if not waiter.done():
                    waiter.cancel()

        if prompt not in done:
            return None

        try:
            outcome = prompt.result()
        except Exception as e:
            request.abandon()
            raise ApprovalError(f"Approval provider failed for '{request.tool.name}': {e}") from e

        try:
            return ConfirmationOutcome(outcome)
        except ValueError as e:
            request.abandon()
            raise ApprovalError(
                f"Approval provider returned unknown outcome: {outcome!r}"
            ) from e

    async def _audit(
        self,
        event_type: Any,
        tool: ToolDescriptor,
        params: Any,
        **fields: Any,
    ) -> None:
        scope = fields.pop("scope", None)
        outcome = fields.pop("outcome", None)
        event = AuditEvent(
            event_type=event_type,
            tool_name=tool.name,
            arguments=dict(params) if isinstance(params, Mapping) else {},
            kind=tool.kind.value,
            scope=str(scope) if scope is not None else None,
            outcome=outcome.value if outcome is not None else None,
            **fields,
        )
        try:
            await self.audit_logger.log_event(event)
        except Exception as e:
            logger.warning(f"Audit logger failed: {e}")
