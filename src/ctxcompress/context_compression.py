"""Context Compression — fit a conversation history under a model's token budget.

Runs in front of every model request on a copy of the history:

1. Tool-result compaction (always): old, oversized tool output is cut down
   to head/tail summaries. No message is removed.
2. Stale-thinking removal (opt-in, only while over budget).
3. Sliding window (only while over budget): messages after the anchor are
   dropped oldest first, the recent tail is kept.

The caller's list and messages are never modified.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from opentelemetry.trace import Span

from .compaction.sliding_window import sliding_window_truncate_with_stats
from .compaction.thinking import strip_stale_thinking
from .compaction.token_budget import compute_budget
from .compaction.tool_results import compact_tool_results_with_stats
from .config import CompressionConfig
from .messages import Message
from .models import ModelDescriptor
from .telemetry import CompressionTracer, trace_compression_layer, trace_compression_run
from .token_counter import TokenCounter

_log = logging.getLogger(__name__)


class CompressionLayer(StrEnum):
    """Pipeline stages, in execution order."""

    TOOL_RESULTS = "tool_results"
    THINKING = "thinking"
    SLIDING_WINDOW = "sliding_window"


@dataclass
class LayerMetrics:
    """Message and token counts around one executed layer."""

    layer: CompressionLayer
    messages_before: int
    messages_after: int
    tokens_before: int
    tokens_after: int

    @property
    def tokens_saved(self) -> int:
        return self.tokens_before - self.tokens_after

    def as_attributes(self) -> dict[str, int | str]:
        return {
            "ctx.layer": str(self.layer),
            "ctx.messages.before": self.messages_before,
            "ctx.messages.after": self.messages_after,
            "ctx.tokens.before": self.tokens_before,
            "ctx.tokens.after": self.tokens_after,
        }


@dataclass
class CompressionReport:
    """Advisory metrics for one compression pass.

    Token counts are ``None`` when the pass failed before they were known.
    """

    budget: int
    messages_before: int
    tokens_before: int | None
    messages_after: int = 0
    tokens_after: int | None = None
    dropped_count: int = 0
    failed: bool = False
    layers: list[LayerMetrics] = field(default_factory=list)

    @property
    def layers_run(self) -> list[CompressionLayer]:
        return [m.layer for m in self.layers]

    def is_within_budget(self) -> bool:
        """False when the pass failed before the result was counted."""
        return self.tokens_after is not None and self.tokens_after <= self.budget


@dataclass
class CompressedContext:
    """Result of compressing a message history."""

    messages: list[Message]
    report: CompressionReport


class ContextCompressor:
    """Compresses a message history to fit within a model's token budget."""

    def __init__(
        self,
        config: CompressionConfig | None = None,
        counter: TokenCounter | None = None,
        tracer: CompressionTracer | None = None,
    ) -> None:
        self._config = config or CompressionConfig()
        self._counter = counter or TokenCounter.from_config(self._config)
        self._tracer = tracer

    @property
    def config(self) -> CompressionConfig:
        return self._config

    @property
    def counter(self) -> TokenCounter:
        return self._counter

    def budget_for(self, model: ModelDescriptor | None = None) -> int:
        """Token ceiling for *model*; unknown context windows use the default."""
        default = self._config.default_context_window
        window = model.effective_context_window(default) if model is not None else default
        return compute_budget(window, self._config.context_ratio)

    def compress(
        self, messages: Sequence[Message], model: ModelDescriptor | None = None
    ) -> list[Message]:
        return self.compress_with_report(messages, model).messages

    def compress_with_report(
        self, messages: Sequence[Message], model: ModelDescriptor | None = None
    ) -> CompressedContext:
        """Run the pipeline and return the new history with its metrics.

        Never raises: an unexpected failure is logged and the history is
        returned uncompressed.
        """
        budget = self.budget_for(model)
        model_id = model.id if model is not None else ""
        try:
            return self._run(messages, budget, model_id)
        except Exception:
            _log.exception("Context compression failed, sending history uncompressed")
            report = CompressionReport(
                budget=budget,
                messages_before=len(messages),
                tokens_before=None,
                messages_after=len(messages),
                failed=True,
            )
            return CompressedContext(messages=list(messages), report=report)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _run(self, messages: Sequence[Message], budget: int, model_id: str) -> CompressedContext:
        cfg = self._config
        with trace_compression_run(len(messages), budget, model_id, self._tracer) as run_span:
            tokens = self._counter.count_all(messages)
            report = CompressionReport(
                budget=budget, messages_before=len(messages), tokens_before=tokens
            )
            run_span.set_attribute("ctx.tokens.before", tokens)
            _log.info(
                "Compressing context: %d messages, %d tokens (budget %d)",
                len(messages),
                tokens,
                budget,
            )

            with trace_compression_layer(CompressionLayer.TOOL_RESULTS, self._tracer) as span:
                current = compact_tool_results_with_stats(
                    messages,
                    keep_recent_turns=cfg.keep_recent_turns,
                    threshold_chars=cfg.summary_threshold_chars,
                    head_lines=cfg.summary_head_lines,
                    tail_lines=cfg.summary_tail_lines,
                    counter=self._counter,
                ).messages
                tokens = self._record(
                    report, span, CompressionLayer.TOOL_RESULTS, messages, current, tokens
                )

            if tokens > budget and cfg.strip_stale_thinking:
                with trace_compression_layer(CompressionLayer.THINKING, self._tracer) as span:
                    previous = current
                    current = strip_stale_thinking(
                        previous, keep_recent_messages=cfg.keep_recent_messages
                    )
                    tokens = self._record(
                        report, span, CompressionLayer.THINKING, previous, current, tokens
                    )

            if tokens > budget:
                with trace_compression_layer(CompressionLayer.SLIDING_WINDOW, self._tracer) as span:
                    previous = current
                    truncation = sliding_window_truncate_with_stats(
                        previous,
                        budget,
                        keep_recent_messages=cfg.keep_recent_messages,
                        counter=self._counter,
                    )
                    current = truncation.messages
                    report.dropped_count = truncation.dropped_count
                    span.set_attribute("ctx.messages.dropped", truncation.dropped_count)
                    tokens = self._record(
                        report, span, CompressionLayer.SLIDING_WINDOW, previous, current, tokens
                    )

            report.messages_after = len(current)
            report.tokens_after = tokens
            run_span.set_attribute("ctx.messages.after", len(current))
            run_span.set_attribute("ctx.tokens.after", tokens)
            run_span.set_attribute("ctx.messages.dropped", report.dropped_count)

        if not report.is_within_budget():
            _log.warning(
                "Context still over budget after compression: %d > %d tokens",
                tokens,
                budget,
            )
        return CompressedContext(messages=current, report=report)

    def _record(
        self,
        report: CompressionReport,
        span: Span,
        layer: CompressionLayer,
        before: Sequence[Message],
        after: Sequence[Message],
        tokens_before: int,
    ) -> int:
        tokens_after = self._counter.count_all(after)
        metrics = LayerMetrics(
            layer=layer,
            messages_before=len(before),
            messages_after=len(after),
            tokens_before=tokens_before,
            tokens_after=tokens_after,
        )
        report.layers.append(metrics)
        for key, value in metrics.as_attributes().items():
            span.set_attribute(key, value)
        _log.info(
            "%s: %d -> %d messages, %d -> %d tokens",
            layer,
            metrics.messages_before,
            metrics.messages_after,
            metrics.tokens_before,
            metrics.tokens_after,
        )
        return tokens_after


# ---------------------------------------------------------------------------
# Convenience entry points
# ---------------------------------------------------------------------------


def compress_context(
    messages: Sequence[Message],
    model: ModelDescriptor | None = None,
    config: CompressionConfig | None = None,
) -> list[Message]:
    """One-shot compression with a fresh :class:`ContextCompressor`."""
    return ContextCompressor(config).compress(messages, model)


def create_transform_context(
    model: ModelDescriptor,
    config: CompressionConfig | None = None,
    counter: TokenCounter | None = None,
) -> Callable[[Sequence[Message]], list[Message]]:
    """Bind a compressor to *model* as a per-request history transform hook."""
    compressor = ContextCompressor(config, counter)

    def transform(messages: Sequence[Message]) -> list[Message]:
        return compressor.compress(messages, model)

    return transform
