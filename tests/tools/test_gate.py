"""Tests for ToolInvocationGate."""

import asyncio

import pytest

from toolgate.tools.approval import ApprovalError, ConfirmationRequest
from toolgate.tools.base import (
    ConfirmationOutcome,
    InvocationResult,
    ToolDescriptor,
    ToolKind,
)
from toolgate.tools.exceptions import CommandRootAmbiguityError, ToolValidationError
from toolgate.tools.gate import AUTO_PROCEED, AutoProceed, ToolInvocationGate
from toolgate.tools.permissions.allowlist import AllowlistStore
from toolgate.tools.permissions.evaluator import TrustEvaluator


class RecordingAuditLogger:
    """Audit logger that keeps events in memory."""

    def __init__(self):
        self.events = []

    async def log_event(self, event):
        self.events.append(event)

    @property
    def types(self):
        return [event.event_type for event in self.events]


class StaticProvider:
    """Provider that always answers with the same outcome."""

    def __init__(self, outcome):
        self.outcome = outcome
        self.requests = []

    async def request_confirmation(self, request):
        self.requests.append(request)
        return self.outcome


class HangingProvider:
    """Provider that never answers until cancelled."""

    def __init__(self):
        self.started = asyncio.Event()

    async def request_confirmation(self, request):
        self.started.set()
        await asyncio.Event().wait()


class FailingProvider:
    """Provider that raises."""

    async def request_confirmation(self, request):
        raise RuntimeError("terminal closed")


@pytest.fixture
def store():
    """Create an empty allowlist."""
    return AllowlistStore()


@pytest.fixture
def audit():
    """Create an in-memory audit logger."""
    return RecordingAuditLogger()


@pytest.fixture
def gate(store, audit):
    """Create a gate over the store."""
    return ToolInvocationGate(TrustEvaluator(store), audit_logger=audit)


@pytest.fixture
def shell():
    """Create an untrusted shell tool."""
    return ToolDescriptor.shell()


class TestAutoProceedMarker:
    """Tests for the AUTO_PROCEED marker."""

    def test_singleton(self):
        """Test the marker has a single instance."""
        assert AutoProceed() is AUTO_PROCEED
        assert repr(AUTO_PROCEED) == "AUTO_PROCEED"


class TestEvaluate:
    """Tests for the synchronous two-phase protocol."""

    def test_gate_exposes_store(self, gate, store):
        """Test the gate shares the evaluator's store."""
        assert gate.store is store

    def test_proceed_always_scenario(self, gate, store, shell):
        """Test remembering a root auto-proceeds later git commands."""
        request = gate.evaluate(shell, {"command": "git status"})
        assert isinstance(request, ConfirmationRequest)
        assert request.details.root_command == "git"

        assert request.resolve(ConfirmationOutcome.PROCEED_ALWAYS) == (
            InvocationResult.PROCEEDED
        )
        assert store.is_allowed(ToolKind.SHELL, "git")
        assert gate.evaluate(shell, {"command": "git log --oneline"}) is AUTO_PROCEED
        assert gate.evaluate(shell, {"command": "/usr/bin/git diff"}) is AUTO_PROCEED

    def test_proceed_once_scenario(self, gate, store, shell):
        """Test PROCEED_ONCE asks again next time."""
        params = {"command": "git status"}
        request = gate.evaluate(shell, params)
        request.resolve(ConfirmationOutcome.PROCEED_ONCE)

        assert store.snapshot() == {ToolKind.SHELL: frozenset(), ToolKind.BRIDGED: frozenset()}
        assert isinstance(gate.evaluate(shell, params), ConfirmationRequest)

    def test_proceed_always_server_scenario(self, gate):
        """Test server trust covers sibling tools but not other servers."""
        create = ToolDescriptor.bridged("github", "create_issue")
        list_repos = ToolDescriptor.bridged("github", "list_repos")
        other = ToolDescriptor.bridged("gitlab", "create_issue")

        request = gate.evaluate(create, {"title": "bug"})
        request.resolve(ConfirmationOutcome.PROCEED_ALWAYS_SERVER)

        assert gate.evaluate(create, {}) is AUTO_PROCEED
        assert gate.evaluate(list_repos, {}) is AUTO_PROCEED
        assert isinstance(gate.evaluate(other, {}), ConfirmationRequest)

    def test_proceed_always_tool_scenario(self, gate):
        """Test tool trust doesn't extend to sibling tools."""
        create = ToolDescriptor.bridged("github", "create_issue")
        request = gate.evaluate(create, {})
        request.resolve(ConfirmationOutcome.PROCEED_ALWAYS_TOOL)

        assert gate.evaluate(create, {}) is AUTO_PROCEED
        sibling = ToolDescriptor.bridged("github", "delete_repo")
        assert isinstance(gate.evaluate(sibling, {}), ConfirmationRequest)

    def test_always_trusted_ignores_store(self, gate, store):
        """Test trusted tools proceed whatever the allowlist holds."""
        tool = ToolDescriptor.shell(always_trusted=True)
        assert gate.evaluate(tool, {"command": "rm -rf build"}) is AUTO_PROCEED
        store.allow(ToolKind.SHELL, "rm")
        assert gate.evaluate(tool, {"command": "rm -rf build"}) is AUTO_PROCEED

    def test_validation_error_raised(self, gate, shell):
        """Test invalid parameters raise rather than prompt."""
        with pytest.raises(ToolValidationError, match="absolute"):
            gate.evaluate(shell, {"command": "ls", "directory": "/etc"})

    def test_ambiguous_root_raised(self, gate, shell):
        """Test separator-only commands raise."""
        with pytest.raises(CommandRootAmbiguityError):
            gate.evaluate(shell, {"command": "; ;"})

    def test_cancel_signal_bound_into_request(self, gate, store, shell):
        """Test the signal passed to evaluate() governs resolve()."""
        cancel = asyncio.Event()
        request = gate.evaluate(shell, {"command": "npm install"}, cancel_event=cancel)
        cancel.set()
        assert request.resolve(ConfirmationOutcome.PROCEED_ALWAYS) == (
            InvocationResult.CANCELLED
        )
        assert len(store) == 0


@pytest.mark.asyncio
class TestAuthorize:
    """Tests for ToolInvocationGate.authorize()."""

    async def test_auto_proceed_skips_provider(self, gate, store, audit, shell):
        """Test allowlisted invocations never reach the provider."""
        store.allow(ToolKind.SHELL, "ls")
        provider = StaticProvider(ConfirmationOutcome.CANCEL)

        result = await gate.authorize(shell, {"command": "ls -la"}, provider)

        assert result == InvocationResult.PROCEEDED
        assert provider.requests == []
        assert audit.types == ["auto_proceed"]
        assert audit.events[0].scope == "shell:ls"
        assert audit.events[0].reason == "shell_root_allowed"

    async def test_proceed_always_via_provider(self, gate, store, audit, shell):
        """Test provider outcome is applied to the store."""
        provider = StaticProvider(ConfirmationOutcome.PROCEED_ALWAYS)

        result = await gate.authorize(shell, {"command": "npm install"}, provider)

        assert result == InvocationResult.PROCEEDED
        assert store.is_allowed(ToolKind.SHELL, "npm")
        assert len(provider.requests) == 1
        assert provider.requests[0].is_settled
        assert audit.types == ["request", "proceeded"]
        assert audit.events[0].request_id == audit.events[1].request_id
        assert audit.events[1].outcome == "proceed_always"

    async def test_cancel_via_provider(self, gate, store, audit, shell):
        """Test CANCEL from the provider cancels the invocation."""
        provider = StaticProvider(ConfirmationOutcome.CANCEL)

        result = await gate.authorize(shell, {"command": "rm -rf /"}, provider)

        assert result == InvocationResult.CANCELLED
        assert len(store) == 0
        assert audit.types == ["request", "cancelled"]

    async def test_server_outcome_audits_coarse_scope(self, gate, audit):
        """Test server trust is audited under the server scope."""
        tool = ToolDescriptor.bridged("github", "create_issue")
        provider = StaticProvider(ConfirmationOutcome.PROCEED_ALWAYS_SERVER)

        await gate.authorize(tool, {"title": "bug"}, provider)

        assert audit.events[0].scope == "bridged:github.create_issue"
        assert audit.events[1].scope == "bridged:github"
        assert audit.events[1].arguments == {"title": "bug"}

    async def test_string_outcome_accepted(self, gate, store, shell):
        """Test providers may answer with outcome values."""
        provider = StaticProvider("proceed_always")
        await gate.authorize(shell, {"command": "make"}, provider)
        assert store.is_allowed(ToolKind.SHELL, "make")

    async def test_validation_error_is_audited(self, gate, audit, shell):
        """Test validation errors are audited then raised."""
        provider = StaticProvider(ConfirmationOutcome.PROCEED_ONCE)

        with pytest.raises(ToolValidationError):
            await gate.authorize(shell, {"command": ""}, provider)

        assert audit.types == ["error"]
        assert "Command cannot be empty" in audit.events[0].reason
        assert provider.requests == []

    async def test_cancellation_while_prompt_outstanding(self, gate, store, audit, shell):
        """Test the cancel signal wins over a pending prompt."""
        cancel = asyncio.Event()
        provider = HangingProvider()

        task = asyncio.create_task(
            gate.authorize(shell, {"command": "git push"}, provider, cancel_event=cancel)
        )
        await asyncio.wait_for(provider.started.wait(), timeout=1.0)
        cancel.set()
        result = await asyncio.wait_for(task, timeout=1.0)

        assert result == InvocationResult.CANCELLED
        assert len(store) == 0
        assert audit.types == ["request", "cancelled"]
        assert audit.events[1].outcome is None

    async def test_cancel_signal_set_before_prompt(self, gate, store, shell):
        """Test an already fired signal never prompts."""
        cancel = asyncio.Event()
        cancel.set()
        provider = StaticProvider(ConfirmationOutcome.PROCEED_ALWAYS)

        result = await gate.authorize(
            shell, {"command": "git push"}, provider, cancel_event=cancel
        )

        assert result == InvocationResult.CANCELLED
        assert provider.requests == []
        assert len(store) == 0

    async def test_cancel_signal_ignored_for_auto_proceed(self, gate, store, shell):
        """Test the signal only affects pending confirmations."""
        store.allow(ToolKind.SHELL, "git")
        cancel = asyncio.Event()
        cancel.set()

        result = await gate.authorize(
            shell,
            {"command": "git status"},
            StaticProvider(ConfirmationOutcome.CANCEL),
            cancel_event=cancel,
        )

        assert result == InvocationResult.PROCEEDED

    async def test_caller_task_cancelled(self, gate, store, shell):
        """Test cancelling authorize() itself propagates CancelledError."""
        provider = HangingProvider()
        task = asyncio.create_task(
            gate.authorize(shell, {"command": "git push"}, provider)
        )
        await asyncio.wait_for(provider.started.wait(), timeout=1.0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert len(store) == 0

    async def test_provider_failure_raises_approval_error(self, gate, store, shell):
        """Test a failing provider cancels and raises."""
        with pytest.raises(ApprovalError, match="terminal closed"):
            await gate.authorize(shell, {"command": "git push"}, FailingProvider())
        assert len(store) == 0

    async def test_unknown_outcome_raises_approval_error(self, gate, store, shell):
        """Test an unknown outcome cancels and raises."""
        with pytest.raises(ApprovalError, match="unknown outcome"):
            await gate.authorize(shell, {"command": "git push"}, StaticProvider("yes"))
        assert len(store) == 0

    async def test_concurrent_invocations_are_independent(self, gate, store):
        """Test one pending prompt doesn't block another invocation."""
        shell = ToolDescriptor.shell()
        tool = ToolDescriptor.bridged("github", "list_repos")
        hanging = HangingProvider()
        cancel = asyncio.Event()

        pending = asyncio.create_task(
            gate.authorize(shell, {"command": "git push"}, hanging, cancel_event=cancel)
        )
        await asyncio.wait_for(hanging.started.wait(), timeout=1.0)

        result = await gate.authorize(
            tool, {}, StaticProvider(ConfirmationOutcome.PROCEED_ALWAYS_TOOL)
        )
        assert result == InvocationResult.PROCEEDED
        assert store.is_allowed(ToolKind.BRIDGED, "github.list_repos")

        cancel.set()
        assert await asyncio.wait_for(pending, timeout=1.0) == InvocationResult.CANCELLED
        assert not store.is_allowed(ToolKind.SHELL, "git")

    async def test_failing_audit_logger_does_not_change_result(self, store, shell):
        """Test audit failures are logged, not raised."""

        class BrokenAuditLogger:
            async def log_event(self, event):
                raise OSError("disk full")

        gate = ToolInvocationGate(TrustEvaluator(store), audit_logger=BrokenAuditLogger())
        result = await gate.authorize(
            shell, {"command": "ls"}, StaticProvider(ConfirmationOutcome.PROCEED_ONCE)
        )
        assert result == InvocationResult.PROCEEDED
