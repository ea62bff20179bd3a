"""agentbox CLI entrypoint."""

from __future__ import annotations

import click

from agentbox import __version__


@click.group()
@click.version_option(version=__version__, prog_name="agentbox")
def main() -> None:
    """agentbox: run and observe agent sessions."""


from agentbox.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
