"""``agentbox watch``: follow a session's status and artifacts."""

from __future__ import annotations

import asyncio

import click

from agentbox.cli_commands._output import configure_logging, console, print_event


@click.command()
@click.argument("session_id")
@click.option("--convex-url", envvar="CONVEX_URL", required=True, help="Durable session store URL.")
@click.option("--token", envvar="AUTH_TOKEN", default=None, help="Bearer token for the store.")
@click.option("--interval", type=float, default=3.0, show_default=True, help="Seconds between polls.")
@click.option("--max-polls", type=int, default=None, help="Stop after this many polls.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def watch(
    session_id: str,
    convex_url: str,
    token: str | None,
    interval: float,
    max_polls: int | None,
    verbose: bool,
) -> None:
    """Print events for SESSION_ID until it reaches a terminal status."""
    from agentbox.core.store.http import HttpStore
    from agentbox.session.bridge import SessionEventBridge
    from agentbox.session.store import SessionStore

    configure_logging(verbose)

    async def _watch() -> str | None:
        async with HttpStore(convex_url, token=token) as store:
            bridge = SessionEventBridge(SessionStore(store), session_id, interval=interval)
            bridge.subscribe(print_event)
            polls = 0
            last_status: str | None = None
            while True:
                events = await bridge.poll_once()
                polls += 1
                if not events:
                    return None
                for event in events:
                    if event.type == "status_change":
                        last_status = str(event.payload.get("status"))
                if last_status in ("completed", "failed"):
                    break
                if max_polls is not None and polls >= max_polls:
                    break
                await asyncio.sleep(interval)
            return last_status

    try:
        final = asyncio.run(_watch())
    except Exception as exc:
        console.print(f"[red]Watch error:[/red] {exc}")
        raise SystemExit(1) from exc

    if final is None:
        console.print(f"[yellow]Session {session_id} not found.[/yellow]")
