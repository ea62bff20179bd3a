"""Shared CLI output: console, logging setup and formatters."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

if TYPE_CHECKING:
    from agentbox.core.toolbus.models import ToolManifest
    from agentbox.session.bridge import AgentEvent

console = Console()

_STATUS_STYLES = {
    "completed": "green",
    "failed": "red",
    "running": "cyan",
}


def configure_logging(verbose: bool = False) -> None:
    """Route stdlib logging through the shared rich console."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )
    # LiteLLM and httpx are chatty at INFO.
    for noisy in ("LiteLLM", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def print_manifests_table(manifests: list[ToolManifest]) -> None:
    table = Table(title="Tool Manifests")
    table.add_column("ID", style="cyan")
    table.add_column("Type")
    table.add_column("Version")
    table.add_column("Enabled")
    table.add_column("Description")

    for manifest in manifests:
        table.add_row(
            manifest.id,
            manifest.type.value,
            manifest.version,
            "yes" if manifest.is_enabled else "no",
            _truncate(manifest.description),
        )

    console.print(table)


def print_event(event: AgentEvent) -> None:
    if event.type == "status_change":
        status = str(event.payload.get("status", "?"))
        style = _STATUS_STYLES.get(status, "yellow")
        console.print(f"status  [{style}]{status}[/{style}]")
    else:
        title = str(event.payload.get("title", event.id))
        kind = event.payload.get("type", "artifact")
        console.print(f"artifact  [bold]{_truncate(title)}[/bold] ({kind})")


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
