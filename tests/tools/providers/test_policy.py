"""Tests for policy-based approval provider."""

import logging

import pytest

from toolgate.tools.base import ConfirmationOutcome, ToolDescriptor
from toolgate.tools.permissions.allowlist import AllowlistStore
from toolgate.tools.permissions.evaluator import TrustEvaluator
from toolgate.tools.providers import PolicyBasedApprovalProvider


def make_request(tool, params):
    """Build a pending request on a fresh allowlist."""
    evaluator = TrustEvaluator(AllowlistStore())
    return evaluator.request_confirmation(evaluator.decide(tool, params), params)


@pytest.fixture
def git_request():
    """Create a pending request for a git command."""
    return make_request(ToolDescriptor.shell(), {"command": "/usr/bin/git status"})


@pytest.fixture
def github_request():
    """Create a pending request for a github tool."""
    return make_request(ToolDescriptor.bridged("github", "create_issue"), {})


@pytest.mark.asyncio
class TestPolicyBasedApprovalProvider:
    """Tests for PolicyBasedApprovalProvider."""

    async def test_matched_shell_root(self, git_request):
        """Test listed roots proceed once."""
        provider = PolicyBasedApprovalProvider(shell_roots=["git"])
        assert await provider.request_confirmation(git_request) == (
            ConfirmationOutcome.PROCEED_ONCE
        )

    async def test_matched_server(self, github_request):
        """Test listed servers proceed once."""
        provider = PolicyBasedApprovalProvider(servers={"github"})
        assert await provider.request_confirmation(github_request) == (
            ConfirmationOutcome.PROCEED_ONCE
        )

    async def test_roots_and_servers_are_separate(self, git_request, github_request):
        """Test a root name doesn't approve a server of the same name."""
        provider = PolicyBasedApprovalProvider(shell_roots=["github"], servers=["git"])
        assert await provider.request_confirmation(git_request) == ConfirmationOutcome.CANCEL
        assert await provider.request_confirmation(github_request) == (
            ConfirmationOutcome.CANCEL
        )

    async def test_default_outcome(self, git_request):
        """Test unmatched requests get the default outcome."""
        provider = PolicyBasedApprovalProvider(
            default_outcome=ConfirmationOutcome.PROCEED_ONCE
        )
        assert await provider.request_confirmation(git_request) == (
            ConfirmationOutcome.PROCEED_ONCE
        )

    async def test_default_outcome_not_offered(self, git_request, github_request):
        """Test a default the request doesn't offer falls back to cancel."""
        provider = PolicyBasedApprovalProvider(
            default_outcome=ConfirmationOutcome.PROCEED_ALWAYS_SERVER
        )
        assert await provider.request_confirmation(git_request) == ConfirmationOutcome.CANCEL
        assert await provider.request_confirmation(github_request) == (
            ConfirmationOutcome.PROCEED_ALWAYS_SERVER
        )


class TestPolicyConfiguration:
    """Tests for provider construction."""

    def test_defaults(self):
        """Test an empty policy cancels everything."""
        provider = PolicyBasedApprovalProvider()
        assert provider.shell_roots == frozenset()
        assert provider.default_outcome == ConfirmationOutcome.CANCEL

    def test_remembering_default_warns(self, caplog):
        """Test a remembering default outcome logs a warning."""
        with caplog.at_level(logging.WARNING, logger="toolgate"):
            PolicyBasedApprovalProvider(default_outcome="proceed_always")
        assert "without user interaction" in caplog.text

    def test_invalid_default_rejected(self):
        """Test unknown default outcomes are rejected."""
        with pytest.raises(ValueError):
            PolicyBasedApprovalProvider(default_outcome="sometimes")
