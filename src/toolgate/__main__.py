"""CLI entry point for toolgate."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click

from toolgate.config.loader import ConfigError, load_config
from toolgate.session import GateSession
from toolgate.tools.approval import ApprovalProvider, ConfirmationRequest
from toolgate.tools.base import ConfirmationOutcome, InvocationResult
from toolgate.tools.exceptions import ToolValidationError
from toolgate.tools.permissions.command_root import extract_command_root
from toolgate.tools.providers import CliApprovalProvider, PolicyBasedApprovalProvider


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def cli(debug: bool) -> None:
    """toolgate - trust gate for agent tool invocations."""
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            handlers=[logging.StreamHandler()],
        )
        logging.getLogger("toolgate").setLevel(logging.DEBUG)


@cli.command()
@click.argument("command")
def root(command: str) -> None:
    """Print the allowlist root of a shell COMMAND."""
    command_root = extract_command_root(command)
    if not command_root:
        click.echo(f"Error: no command root in {command!r}", err=True)
        sys.exit(1)
    click.echo(command_root)


class _TrackingProvider:
    """Wraps a provider to note whether a prompt was shown."""

    def __init__(self, provider: ApprovalProvider) -> None:
        self.provider = provider
        self.prompted = False

    async def request_confirmation(
        self, request: ConfirmationRequest
    ) -> ConfirmationOutcome:
        self.prompted = True
        return await self.provider.request_confirmation(request)


@cli.command()
@click.argument("command")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: .toolgate/config.yaml)",
)
@click.option("--directory", help="Directory the command would run in (relative)")
@click.option("--yes", is_flag=True, help="Allow once without prompting")
def check(
    command: str,
    config_path: Path | None,
    directory: str | None,
    yes: bool,
) -> None:
    """Check whether a shell COMMAND may run, prompting if needed.

    Exit code 0 if the command would proceed, 1 if cancelled, 2 on errors.
    """
    try:
        config = load_config(config_path)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    session = GateSession.from_config(config)
    tool = session.registry.register_shell()
    params = {"command": command}
    if directory:
        params["directory"] = directory

    if yes:
        provider = _TrackingProvider(
            PolicyBasedApprovalProvider(default_outcome=ConfirmationOutcome.PROCEED_ONCE)
        )
    else:
        provider = _TrackingProvider(CliApprovalProvider())

    try:
        result = asyncio.run(session.authorize(tool.name, params, provider))
    except ToolValidationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    if result == InvocationResult.PROCEEDED and not provider.prompted:
        click.echo("auto-proceed")
        return
    click.echo(result.value)
    if result != InvocationResult.PROCEEDED:
        sys.exit(1)


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
