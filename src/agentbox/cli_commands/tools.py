"""``agentbox tools``: inspect tool manifest files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click
import yaml
from pydantic import ValidationError

from agentbox.cli_commands._output import console, print_manifests_table
from agentbox.core.toolbus.models import ToolManifest


@click.group()
def tools() -> None:
    """Inspect tool manifests."""


@tools.command("list")
@click.argument("manifest_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print model-facing function schemas as JSON.")
def list_tools(manifest_file: str, as_json: bool) -> None:
    """List the tools declared in MANIFEST_FILE (YAML or JSON).

    The file holds a list of manifests, or a mapping with a ``tools`` list.
    """
    try:
        manifests = load_manifests(Path(manifest_file))
    except (yaml.YAMLError, ValidationError, ValueError) as exc:
        raise click.ClickException(f"Invalid manifest file: {exc}") from exc

    if not manifests:
        console.print("[yellow]No tools declared.[/yellow]")
        return

    if as_json:
        schemas = [
            {
                "type": "function",
                "function": {
                    "name": m.id,
                    "description": m.description,
                    "parameters": m.schema_.parameters or {"type": "object", "properties": {}},
                },
            }
            for m in manifests
        ]
        console.print_json(json.dumps(schemas))
        return

    print_manifests_table(manifests)


def load_manifests(path: Path) -> list[ToolManifest]:
    """Parse a YAML/JSON manifest file into validated manifests."""
    with open(path) as f:
        raw: Any = yaml.safe_load(f)

    if raw is None:
        return []
    if isinstance(raw, dict):
        raw = raw.get("tools", [])
    if not isinstance(raw, list):
        raise ValueError("expected a list of tool manifests")
    return [ToolManifest.model_validate(item) for item in raw]
