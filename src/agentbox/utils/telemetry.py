"""OpenTelemetry tracing helpers for agentbox.

Provides a thin wrapper around the OpenTelemetry API so the rest of the
codebase can call ``get_tracer()`` without caring whether the SDK is
installed.  Without a configured SDK the API hands out no-op tracers.

Usage::

    from agentbox.utils.telemetry import get_tracer

    _tracer = get_tracer(__name__)

    with _tracer.start_as_current_span("tool.execute") as span:
        span.set_attribute(ATTR_TOOL_NAME, "search_web")

To export spans, call :func:`configure_telemetry` once at startup
(requires the ``otel`` extra: ``pip install agentbox[otel]``).
"""

from __future__ import annotations

from typing import Any

from opentelemetry import trace

ATTR_SESSION_ID = "agentbox.session.id"
ATTR_SESSION_PHASE = "agentbox.session.phase"
ATTR_AGENT_ID = "agentbox.agent.id"
ATTR_DELEGATE_TO = "agentbox.agent.delegate_to"
ATTR_MODEL = "agentbox.model"
ATTR_PROVIDER = "agentbox.provider"
ATTR_TOKENS_PROMPT = "agentbox.tokens.prompt"
ATTR_TOKENS_COMPLETION = "agentbox.tokens.completion"
ATTR_TOKENS_TOTAL = "agentbox.tokens.total"
ATTR_FINISH_REASON = "agentbox.finish_reason"
ATTR_TOOL_NAME = "agentbox.tool.name"
ATTR_TOOL_TYPE = "agentbox.tool.type"
ATTR_TOOL_STATUS = "agentbox.tool.status"

_INSTRUMENTATION_NAME = "agentbox"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return a :class:`~opentelemetry.trace.Tracer` for *name*.

    If the OpenTelemetry SDK has not been configured the returned tracer
    is a no-op.
    """
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(
    *,
    service_name: str = "agentbox",
    export_to_console: bool = False,
    otlp_endpoint: str | None = None,
) -> None:
    """Configure OpenTelemetry tracing (requires ``agentbox[otel]``).

    Parameters
    ----------
    service_name:
        The ``service.name`` resource attribute.
    export_to_console:
        If ``True``, export spans as JSON to stdout.
    otlp_endpoint:
        If set, export spans via OTLP/gRPC to this endpoint.

    Raises
    ------
    ImportError
        If the ``opentelemetry-sdk`` package is not installed.
    """
    try:
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace.export import (  # pyright: ignore[reportMissingImports]
            BatchSpanProcessor,
            SimpleSpanProcessor,
        )
    except ImportError as exc:
        msg = (
            "opentelemetry-sdk is required for configure_telemetry(). "
            "Install it with: pip install agentbox[otel]"
        )
        raise ImportError(msg) from exc

    resource = Resource.create({"service.name": service_name})
    provider = TracerProvider(resource=resource)

    if export_to_console:
        _add_console_exporter(provider, SimpleSpanProcessor)

    if otlp_endpoint:
        _add_otlp_exporter(provider, BatchSpanProcessor, otlp_endpoint)

    trace.set_tracer_provider(provider)


def _add_console_exporter(provider: Any, processor_cls: Any) -> None:
    from opentelemetry.sdk.trace.export import ConsoleSpanExporter  # pyright: ignore[reportMissingImports]

    provider.add_span_processor(processor_cls(ConsoleSpanExporter()))


def _add_otlp_exporter(provider: Any, processor_cls: Any, endpoint: str) -> None:
    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (  # pyright: ignore[reportMissingImports]
            OTLPSpanExporter,
        )
    except ImportError as exc:
        msg = (
            "opentelemetry-exporter-otlp is required for OTLP export. "
            "Install it with: pip install agentbox[otel]"
        )
        raise ImportError(msg) from exc

    provider.add_span_processor(processor_cls(OTLPSpanExporter(endpoint=endpoint)))
