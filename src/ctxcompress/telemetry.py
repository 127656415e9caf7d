"""OpenTelemetry tracing for the compression pipeline.

A compression pass produces one ``compression/run`` span with a child
``compression/layer`` span per executed layer. Both carry the before/after
message and token counts under ``ctx.*`` attribute keys. Exporters: stdout,
OTLP, or none (noop tracer).
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Generator, Mapping
from dataclasses import dataclass

from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor, SpanExporter
from opentelemetry.trace import NoOpTracer, Span, Tracer

_log = logging.getLogger(__name__)

AttributeValue = str | int | float | bool

RUN_SPAN = "compression/run"
LAYER_SPAN = "compression/layer"


@dataclass
class TelemetryConfig:
    """Where compression spans go."""

    service_name: str = "ctxcompress"
    enabled: bool = True
    exporter: str = "none"  # "stdout" | "otlp" | "none"
    otlp_endpoint: str = "http://localhost:4317"


def _build_exporter(cfg: TelemetryConfig) -> SpanExporter | None:
    if cfg.exporter == "stdout":
        from opentelemetry.sdk.trace.export import ConsoleSpanExporter

        return ConsoleSpanExporter()
    if cfg.exporter == "otlp":
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
                OTLPSpanExporter,
            )
        except ImportError:  # pragma: no cover
            _log.warning("OTLP exporter requested but the otlp extra is not installed")
            return None
        return OTLPSpanExporter(endpoint=cfg.otlp_endpoint, insecure=True)
    return None


class CompressionTracer:
    """Owns the tracer that compression spans are written to.

    Until :meth:`init` succeeds (or a *provider* is supplied) spans go to a
    noop tracer, so tracing never costs anything when it is switched off.
    """

    def __init__(
        self,
        config: TelemetryConfig | None = None,
        provider: TracerProvider | None = None,
    ) -> None:
        self._config = config or TelemetryConfig()
        self._provider = provider
        self._tracer: Tracer = (
            provider.get_tracer(self._config.service_name) if provider else NoOpTracer()
        )

    @property
    def config(self) -> TelemetryConfig:
        return self._config

    def init(self) -> None:
        """Attach the configured exporter. Does nothing when disabled."""
        cfg = self._config
        if not cfg.enabled or self._provider is not None:
            return
        exporter = _build_exporter(cfg)
        if exporter is None:
            return
        provider = TracerProvider(resource=Resource.create({"service.name": cfg.service_name}))
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        self._provider = provider
        self._tracer = provider.get_tracer(cfg.service_name)

    @contextlib.contextmanager
    def span(
        self,
        name: str,
        attributes: Mapping[str, AttributeValue] | None = None,
    ) -> Generator[Span, None, None]:
        with self._tracer.start_as_current_span(name, attributes=dict(attributes or {})) as s:
            yield s

    def shutdown(self) -> None:
        """Flush pending spans. Safe to call more than once."""
        if self._provider is not None:
            self._provider.shutdown()
            self._provider = None
            self._tracer = NoOpTracer()


_DEFAULT_TRACER: CompressionTracer | None = None


def get_default_tracer() -> CompressionTracer:
    global _DEFAULT_TRACER  # noqa: PLW0603
    if _DEFAULT_TRACER is None:
        _DEFAULT_TRACER = CompressionTracer()
    return _DEFAULT_TRACER


@contextlib.contextmanager
def trace_compression_run(
    message_count: int,
    budget: int,
    model_id: str = "",
    tracer: CompressionTracer | None = None,
) -> Generator[Span, None, None]:
    """Trace one full compression pass."""
    attributes: dict[str, AttributeValue] = {
        "ctx.messages.before": message_count,
        "ctx.budget": budget,
        "ctx.model": model_id,
    }
    with (tracer or get_default_tracer()).span(RUN_SPAN, attributes) as s:
        yield s


@contextlib.contextmanager
def trace_compression_layer(
    layer: str, tracer: CompressionTracer | None = None
) -> Generator[Span, None, None]:
    """Trace one compression layer; the caller adds the counts."""
    with (tracer or get_default_tracer()).span(LAYER_SPAN, {"ctx.layer": str(layer)}) as s:
        yield s
