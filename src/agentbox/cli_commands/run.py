"""``agentbox run``: boot a session worker from its environment."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import TYPE_CHECKING

import click

from agentbox.cli_commands._output import configure_logging

if TYPE_CHECKING:
    from agentbox.session.models import SessionStatus
    from agentbox.session.settings import WorkerSettings

logger = logging.getLogger(__name__)


@click.command()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option("--telemetry", is_flag=True, help="Export traces to the console.")
@click.option(
    "--otlp-endpoint",
    envvar="OTEL_EXPORTER_OTLP_ENDPOINT",
    default=None,
    help="Export traces to this OTLP/gRPC endpoint.",
)
def run(verbose: bool, telemetry: bool, otlp_endpoint: str | None) -> None:
    """Run the session described by the worker environment variables.

    Exits 0 when the session completes and 1 when it fails or the
    environment is incomplete.
    """
    from agentbox.errors import ConfigurationError
    from agentbox.session.models import SessionStatus
    from agentbox.session.settings import MissingVariablesError, WorkerSettings

    configure_logging(verbose)

    try:
        settings = WorkerSettings.from_env()
    except MissingVariablesError as exc:
        logger.error(
            "Missing required environment variables: %s (has_auth_token=%s)",
            ", ".join(exc.missing),
            exc.has_auth_token,
        )
        sys.exit(1)
    except ConfigurationError as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(1)

    if telemetry or otlp_endpoint:
        from agentbox.utils.telemetry import configure_telemetry

        configure_telemetry(export_to_console=telemetry, otlp_endpoint=otlp_endpoint)

    logger.info("Starting session %s", settings.session_id)
    logger.debug("Worker settings: %s", settings.diagnostics())

    try:
        status = asyncio.run(_run_session(settings))
    except Exception:
        logger.exception("Unhandled error in session worker")
        sys.exit(1)

    if status is not SessionStatus.COMPLETED:
        logger.error("Session %s ended as %s", settings.session_id, status.value)
        sys.exit(1)
    logger.info("Session %s completed successfully", settings.session_id)


async def _run_session(settings: WorkerSettings) -> SessionStatus:
    from agentbox.core.store.http import HttpStore
    from agentbox.session.manager import SessionManager

    async with (
        HttpStore(settings.convex_url, token=settings.auth_token) as cloud,
        HttpStore(settings.local_convex_url) as local,
    ):
        manager = SessionManager(settings.manager_config(), cloud_store=cloud, local_store=local)
        await manager.start(settings.user_request)
        return manager.get_status()
