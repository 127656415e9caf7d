"""Compression configuration — tunable constants with environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields

from .models import DEFAULT_CONTEXT_WINDOW

_ENV_PREFIX = "CTXC_"
_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class CompressionConfig:
    """Constants that drive the compression pipeline.

    Configuration via environment variables (see :meth:`from_env`):
        - ``CTXC_CONTEXT_RATIO``: share of the context window usable by history
        - ``CTXC_KEEP_RECENT_TURNS``: tool-result turns kept at full fidelity
        - ``CTXC_KEEP_RECENT_MESSAGES``: tail protected from truncation
        - ``CTXC_SUMMARY_THRESHOLD_CHARS``: text units longer than this get summarized
        - ``CTXC_ENCODING_MODEL``: tiktoken model name used for counting
        - ``CTXC_STRIP_STALE_THINKING``: enable the thinking-removal layer

    Every field has a matching ``CTXC_<FIELD_NAME>`` variable.
    """

    context_ratio: float = 0.75
    default_context_window: int = DEFAULT_CONTEXT_WINDOW
    keep_recent_turns: int = 6
    keep_recent_messages: int = 20
    summary_threshold_chars: int = 500
    summary_head_lines: int = 3
    summary_tail_lines: int = 2
    image_tokens: int = 85
    message_overhead_tokens: int = 4
    encoding_model: str = "gpt-4o"
    strip_stale_thinking: bool = False

    def __post_init__(self) -> None:
        if not 0 < self.context_ratio <= 1:
            msg = "context_ratio must be in (0, 1]"
            raise ValueError(msg)
        if self.default_context_window <= 0:
            msg = "default_context_window must be positive"
            raise ValueError(msg)
        for name in (
            "keep_recent_turns",
            "keep_recent_messages",
            "summary_threshold_chars",
            "summary_head_lines",
            "summary_tail_lines",
            "image_tokens",
            "message_overhead_tokens",
        ):
            if getattr(self, name) < 0:
                msg = f"{name} must not be negative"
                raise ValueError(msg)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> CompressionConfig:
        """Build a config from ``CTXC_*`` variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}
        for f in fields(cls):
            raw = env.get(_ENV_PREFIX + f.name.upper())
            if raw is None or raw.strip() == "":
                continue
            raw = raw.strip()
            if f.type == "bool":
                overrides[f.name] = raw.lower() in _TRUE_VALUES
            elif f.type == "int":
                overrides[f.name] = int(raw)
            elif f.type == "float":
                overrides[f.name] = float(raw)
            else:
                overrides[f.name] = raw
        return cls(**overrides)
