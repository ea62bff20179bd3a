"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from agentbox.cli_commands.run import run
    from agentbox.cli_commands.tools import tools
    from agentbox.cli_commands.watch import watch

    cli.add_command(run)
    cli.add_command(tools)
    cli.add_command(watch)
