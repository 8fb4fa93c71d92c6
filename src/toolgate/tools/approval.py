"""Confirmation requests and the approval provider protocol.

An invocation that is not already trusted produces a ConfirmationRequest.
The request is handed to a prompting collaborator (an ApprovalProvider, or
any UI that calls ``resolve`` directly) and is settled exactly once:

    request = gate.evaluate(tool, params)
    if request is not AUTO_PROCEED:
        outcome = await provider.request_confirmation(request)
        result = request.resolve(outcome)

Resolution is an explicit second step. There are no callbacks bound into the
request beyond the allowlist update performed by ``resolve``.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, Protocol, runtime_checkable

from toolgate.tools.base import (
    ConfirmationOutcome,
    InvocationResult,
    InvocationState,
    ToolDescriptor,
    ToolKind,
)
from toolgate.tools.exceptions import DoubleResolutionError, ToolError

if TYPE_CHECKING:
    from toolgate.tools.permissions.allowlist import AllowlistKey
    from toolgate.tools.permissions.evaluator import TrustDecision, TrustEvaluator

__all__ = [
    "ApprovalError",
    "ApprovalProvider",
    "BridgedConfirmationDetails",
    "CancellationSignal",
    "ConfirmationRequest",
    "ShellConfirmationDetails",
]

SHELL_OPTIONS = (
    ConfirmationOutcome.PROCEED_ONCE,
    ConfirmationOutcome.PROCEED_ALWAYS,
    ConfirmationOutcome.CANCEL,
)

BRIDGED_OPTIONS = (
    ConfirmationOutcome.PROCEED_ONCE,
    ConfirmationOutcome.PROCEED_ALWAYS_TOOL,
    ConfirmationOutcome.PROCEED_ALWAYS_SERVER,
    ConfirmationOutcome.CANCEL,
)


class ApprovalError(ToolError):
    """Raised when the prompting collaborator fails to produce an outcome."""


class CancellationSignal(Protocol):
    """Anything with ``is_set()``: asyncio.Event, threading.Event."""

    def is_set(self) -> bool:
        """Return True once cancellation was requested."""
        ...


@dataclass(frozen=True)
class ShellConfirmationDetails:
    """Display payload for a shell command awaiting confirmation.

    Attributes:
        command: Full command text
        root_command: Command root that "always allow" would remember
        title: Prompt title
        type: Payload discriminator
    """

    command: str
    root_command: str
    title: str = "Confirm Shell Command"
    type: Literal["exec"] = "exec"


@dataclass(frozen=True)
class BridgedConfirmationDetails:
    """Display payload for a bridged tool awaiting confirmation.

    Attributes:
        server_name: Remote server identity
        tool_name: Tool identity on the server
        tool_display_name: Tool name exposed to the model
        title: Prompt title
        type: Payload discriminator
    """

    server_name: str
    tool_name: str
    tool_display_name: str
    title: str = "Confirm MCP Tool"
    type: Literal["mcp"] = "mcp"


ConfirmationDetails = ShellConfirmationDetails | BridgedConfirmationDetails


class ConfirmationRequest:
    """A pending decision for one invocation, settled at most once.

    Created from a TrustDecision in state AWAITING_CONFIRMATION. Holds the
    allowlist keys computed during evaluation and the evaluator that owns
    the session allowlist.

    If the bound cancellation signal is set when ``resolve`` is called, the
    outcome is ignored and the request is cancelled without touching the
    allowlist.

    Attributes:
        request_id: Unique identifier for correlation with audit events
        tool: Tool being invoked
        params: Invocation parameters
        details: Kind-specific display payload
    """

    def __init__(
        self,
        decision: TrustDecision,
        params: Any,
        evaluator: TrustEvaluator,
        cancel_event: CancellationSignal | None = None,
    ) -> None:
        """Initialize a pending request.

        Args:
            decision: Decision awaiting confirmation
            params: Invocation parameters
            evaluator: Evaluator applying the outcome to the allowlist
            cancel_event: Optional external cancellation signal

        Raises:
            ValueError: If the decision does not require confirmation
        """
        if not decision.requires_confirmation:
            raise ValueError("ConfirmationRequest requires a pending decision")

        self.request_id = uuid.uuid4().hex
        self.tool = decision.tool
        self.params = params
        self.details = _build_details(decision, params)
        self._decision = decision
        self._evaluator = evaluator
        self._cancel_event = cancel_event
        self._lock = threading.Lock()
        self._state = InvocationState.AWAITING_CONFIRMATION
        self._outcome: ConfirmationOutcome | None = None
        self._abandoned = False

    @property
    def title(self) -> str:
        """Prompt title."""
        return self.details.title

    @property
    def kind(self) -> ToolKind:
        """Kind of the tool being confirmed."""
        return self.tool.kind

    @property
    def options(self) -> tuple[ConfirmationOutcome, ...]:
        """Outcomes to present, in display order."""
        if self.tool.kind == ToolKind.SHELL:
            return SHELL_OPTIONS
        return BRIDGED_OPTIONS

    @property
    def fine_key(self) -> AllowlistKey | None:
        """Specific-target scope remembered by PROCEED_ALWAYS(_TOOL)."""
        return self._decision.fine_key

    @property
    def coarse_key(self) -> AllowlistKey | None:
        """Tool-class scope remembered by PROCEED_ALWAYS_SERVER."""
        return self._decision.coarse_key

    @property
    def state(self) -> InvocationState:
        """Current state of the invocation."""
        return self._state

    @property
    def outcome(self) -> ConfirmationOutcome | None:
        """Outcome the request was resolved with, if any."""
        return self._outcome

    @property
    def result(self) -> InvocationResult | None:
        """Terminal result, or None while pending."""
        if self._state == InvocationState.PROCEEDED:
            return InvocationResult.PROCEEDED
        if self._state == InvocationState.CANCELLED:
            return InvocationResult.CANCELLED
        return None

    @property
    def is_settled(self) -> bool:
        """Whether the request has reached a terminal state."""
        return self._state != InvocationState.AWAITING_CONFIRMATION

    @property
    def cancel_requested(self) -> bool:
        """Whether the bound cancellation signal has fired."""
        return self._cancel_event is not None and self._cancel_event.is_set()

    def resolve(self, outcome: ConfirmationOutcome | str) -> InvocationResult:
        """Settle the request with an outcome.

        Args:
            outcome: Outcome chosen by the prompting collaborator

        Returns:
            PROCEEDED or CANCELLED

        Raises:
            DoubleResolutionError: If the request was already settled
            ValueError: If the outcome is unknown (request stays pending)
        """
        with self._lock:
            if self.is_settled:
                raise DoubleResolutionError(
                    f"Confirmation request {self.request_id} for "
                    f"'{self.tool.name}' was already {self._state.value}"
                )

            if self.cancel_requested:
                self._abandoned = True
                return self._settle(InvocationResult.CANCELLED)

            result = self._evaluator.apply(self._decision, outcome)
            self._outcome = ConfirmationOutcome(outcome)
            return self._settle(result)

    def abandon(self) -> InvocationResult:
        """Cancel the request without an outcome. Never mutates the allowlist.

        Calling abandon() on an already abandoned request is a no-op.

        Returns:
            CANCELLED

        Raises:
            DoubleResolutionError: If the request was already resolved
        """
        with self._lock:
            if self._abandoned:
                return InvocationResult.CANCELLED
            if self.is_settled:
                raise DoubleResolutionError(
                    f"Confirmation request {self.request_id} for "
                    f"'{self.tool.name}' was already {self._state.value}"
                )
            self._abandoned = True
            return self._settle(InvocationResult.CANCELLED)

    def _settle(self, result: InvocationResult) -> InvocationResult:
        self._state = (
            InvocationState.PROCEEDED
            if result == InvocationResult.PROCEEDED
            else InvocationState.CANCELLED
        )
        return result

    def __repr__(self) -> str:
        """Return string representation of request."""
        return (
            f"ConfirmationRequest(id='{self.request_id}', tool='{self.tool.name}', "
            f"state='{self._state.value}')"
        )


def _build_details(decision: TrustDecision, params: Any) -> ConfirmationDetails:
    tool: ToolDescriptor = decision.tool
    if tool.kind == ToolKind.SHELL:
        assert decision.root_command is not None
        return ShellConfirmationDetails(
            command=params["command"],
            root_command=decision.root_command,
        )

    assert tool.server_id is not None and tool.server_tool_id is not None
    return BridgedConfirmationDetails(
        server_name=tool.server_id,
        tool_name=tool.server_tool_id,
        tool_display_name=tool.name,
    )


@runtime_checkable
class ApprovalProvider(Protocol):
    """Protocol for prompting collaborators.

    Implementations present ``request.options`` to a human (or a policy)
    and return exactly one of them. They never resolve the request
    themselves; the gate does.

    Example:
        >>> class AlwaysOnce:
        ...     async def request_confirmation(
        ...         self, request: ConfirmationRequest
        ...     ) -> ConfirmationOutcome:
        ...         return ConfirmationOutcome.PROCEED_ONCE
        >>> isinstance(AlwaysOnce(), ApprovalProvider)
        True
    """

    async def request_confirmation(
        self,
        request: ConfirmationRequest,
    ) -> ConfirmationOutcome:
        """Obtain an outcome for a pending request.

        Args:
            request: Pending confirmation request

        Returns:
            Chosen ConfirmationOutcome
        """
        ...
