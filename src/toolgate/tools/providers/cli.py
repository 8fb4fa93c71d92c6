"""CLI-based approval provider for terminal environments."""

from __future__ import annotations

import asyncio

from toolgate.tools.approval import (
    BridgedConfirmationDetails,
    ConfirmationRequest,
    ShellConfirmationDetails,
)
from toolgate.tools.base import ConfirmationOutcome
from toolgate.tools.params import describe_invocation

__all__ = ["CliApprovalProvider", "option_label"]


def option_label(request: ConfirmationRequest, outcome: ConfirmationOutcome) -> str:
    """Return the prompt label for one outcome of a request."""
    details = request.details
    if outcome == ConfirmationOutcome.PROCEED_ONCE:
        return "Yes, allow once"
    if outcome == ConfirmationOutcome.CANCEL:
        return "No, cancel"
    if isinstance(details, ShellConfirmationDetails):
        return f'Yes, allow always "{details.root_command} ..."'
    if outcome == ConfirmationOutcome.PROCEED_ALWAYS_SERVER:
        return f'Yes, always allow all tools from server "{details.server_name}"'
    return (
        f'Yes, always allow tool "{details.tool_name}" '
        f'from server "{details.server_name}"'
    )


class CliApprovalProvider:
    """Command-line approval provider using input().

    Displays the pending invocation in the terminal and asks the user to pick
    one of the request's options by number. The blocking read runs in a
    worker thread so other invocations keep making progress.

    A read is never abandoned with its prompt: if a prompt is cancelled while
    its read is blocked on stdin, the next prompt takes over that read, so
    the line the user types next answers the prompt they are looking at.
    Lines that arrived while no prompt was waiting are dropped.

    Example:
        >>> from toolgate.tools.providers import CliApprovalProvider
        >>> provider = CliApprovalProvider()
        >>> result = await gate.authorize(tool, params, provider)
    """

    def __init__(self, *, show_arguments: bool = True):
        """Initialize CLI approval provider.

        Args:
            show_arguments: Whether to display bridged tool arguments
        """
        self.show_arguments = show_arguments
        self._pending_line: asyncio.Future[str] | None = None

    async def request_confirmation(
        self,
        request: ConfirmationRequest,
    ) -> ConfirmationOutcome:
        """Show CLI prompt and return the chosen outcome.

        End of input (Ctrl-D) is treated as cancel.

        Args:
            request: Pending confirmation request

        Returns:
            ConfirmationOutcome chosen by the user
        """
        self._drop_stale_line()
        self._render(request)

        options = request.options
        for index, outcome in enumerate(options, start=1):
            print(f"  {index}. {option_label(request, outcome)}")

        print(f"{'=' * 60}")
        while True:
            try:
                answer = await self._read_line(f"Choose [1-{len(options)}]: ")
            except EOFError:
                print("✗ Cancelled")
                return ConfirmationOutcome.CANCEL

            answer = answer.strip()
            if answer.isdigit() and 1 <= int(answer) <= len(options):
                return options[int(answer) - 1]
            print(f"Please enter a number between 1 and {len(options)}")

    def _render(self, request: ConfirmationRequest) -> None:
        details = request.details
        print(f"\n{'=' * 60}")
        print(request.title)
        print(f"{'=' * 60}")

        if isinstance(details, ShellConfirmationDetails):
            print(f"Command: {describe_invocation(request.tool, request.params)}")
            print(f"Root:    {details.root_command}")
        elif isinstance(details, BridgedConfirmationDetails):
            print(f"Server: {details.server_name}")
            print(f"Tool:   {details.tool_name} ({details.tool_display_name})")
            if self.show_arguments and request.params:
                print("\nArguments:")
                for key, value in request.params.items():
                    value_str = str(value)
                    if len(value_str) > 100:
                        value_str = value_str[:97] + "..."
                    print(f"  {key}: {value_str}")
        print()

    def _drop_stale_line(self) -> None:
        pending = self._pending_line
        if pending is None:
            return
        if pending.done() or pending.get_loop() is not asyncio.get_running_loop():
            # Typed while no prompt was waiting (or read on a finished loop)
            if pending.done() and not pending.cancelled():
                pending.exception()
            self._pending_line = None

    async def _read_line(self, prompt: str) -> str:
        pending = self._pending_line
        if pending is None:
            pending = asyncio.ensure_future(asyncio.to_thread(input, prompt))
            self._pending_line = pending
        else:
            # input() already echoed the cancelled prompt's text
            print(prompt, end="", flush=True)

        try:
            return await asyncio.shield(pending)
        finally:
            if pending.done():
                self._pending_line = None
