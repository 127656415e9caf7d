"""Token counting — tiktoken encoder with a character-length fallback.

Counting never raises. When the encoder cannot be built (e.g. the BPE file
cannot be fetched) or fails on a given input, the count degrades to
``ceil(len(text) / 3)``.
"""

from __future__ import annotations

import json
import logging
import math
import threading
from collections.abc import Iterable, Sequence
from typing import Any, Protocol, assert_never

import tiktoken

from .config import CompressionConfig
from .messages import (
    AssistantMessage,
    ContentUnit,
    ImageContent,
    Message,
    SystemMessage,
    TextContent,
    ThinkingContent,
    ToolCallContent,
    ToolResultMessage,
    UserMessage,
    content_units,
)

_log = logging.getLogger(__name__)

CHARS_PER_TOKEN = 3
"""Divisor for the fallback estimate when no encoder is usable."""

_FALLBACK_ENCODING = "cl100k_base"


class Encoder(Protocol):
    """Anything that turns text into a token sequence (e.g. ``tiktoken.Encoding``)."""

    def encode(self, text: str) -> Sequence[Any]: ...


# ---------------------------------------------------------------------------
# Shared encoder cache (built once per model name)
# ---------------------------------------------------------------------------

_ENCODERS: dict[str, Encoder | None] = {}
_ENCODERS_LOCK = threading.Lock()


def _load_encoder(model: str) -> Encoder | None:
    try:
        return tiktoken.encoding_for_model(model)
    except Exception as exc:  # noqa: BLE001
        _log.warning(
            "No tiktoken encoding for model %s (%s), trying %s", model, exc, _FALLBACK_ENCODING
        )
    try:
        return tiktoken.get_encoding(_FALLBACK_ENCODING)
    except Exception as exc:  # noqa: BLE001
        _log.warning("tiktoken unavailable (%s), using length heuristic", exc)
    return None


def get_encoder(model: str = "gpt-4o") -> Encoder | None:
    """Return the shared encoder for *model*, building it on first use.

    Initialisation happens exactly once per model name even under concurrent
    first access; later reads do not take the lock. ``None`` means no encoder
    could be built and callers should use the heuristic.
    """
    try:
        return _ENCODERS[model]
    except KeyError:
        pass
    with _ENCODERS_LOCK:
        if model not in _ENCODERS:
            _ENCODERS[model] = _load_encoder(model)
        return _ENCODERS[model]


def estimate_tokens(text: str) -> int:
    """Character-length estimate used when encoding is not possible."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


# ---------------------------------------------------------------------------
# TokenCounter
# ---------------------------------------------------------------------------


class TokenCounter:
    """Estimates the token cost of messages and content units."""

    def __init__(
        self,
        encoder: Encoder | None = None,
        *,
        encoding_model: str = "gpt-4o",
        image_tokens: int = 85,
        message_overhead: int = 4,
    ) -> None:
        self._encoder = encoder
        self._encoding_model = encoding_model
        self._image_tokens = image_tokens
        self._message_overhead = message_overhead

    @classmethod
    def from_config(cls, config: CompressionConfig, encoder: Encoder | None = None) -> TokenCounter:
        return cls(
            encoder,
            encoding_model=config.encoding_model,
            image_tokens=config.image_tokens,
            message_overhead=config.message_overhead_tokens,
        )

    @property
    def encoder(self) -> Encoder | None:
        if self._encoder is not None:
            return self._encoder
        return get_encoder(self._encoding_model)

    def count_text(self, text: str) -> int:
        if not text:
            return 0
        encoder = self.encoder
        if encoder is None:
            return estimate_tokens(text)
        try:
            return len(encoder.encode(text))
        except Exception:  # noqa: BLE001
            return estimate_tokens(text)

    def count_content_unit(self, unit: ContentUnit) -> int:
        match unit:
            case TextContent():
                return self.count_text(unit.text)
            case ThinkingContent():
                return self.count_text(unit.thinking)
            case ImageContent():
                # flat per-image cost, as in common vision pricing
                return self._image_tokens
            case ToolCallContent():
                arguments = _serialize_arguments(unit.arguments)
                return self.count_text(unit.name) + self.count_text(arguments)
            case _:
                assert_never(unit)

    def count_message(self, message: Message) -> int:
        """Fixed role/metadata overhead plus the role-appropriate content."""
        tokens = self._message_overhead
        match message:
            case UserMessage() | AssistantMessage() | SystemMessage():
                tokens += sum(self.count_content_unit(unit) for unit in content_units(message))
            case ToolResultMessage():
                tokens += self.count_text(message.tool_name)
                # only text is sent back for tool output accounting
                tokens += sum(
                    self.count_text(unit.text)
                    for unit in message.content
                    if isinstance(unit, TextContent)
                )
            case _:
                assert_never(message)
        return tokens

    def count_all(self, messages: Iterable[Message]) -> int:
        return sum(self.count_message(m) for m in messages)


def _serialize_arguments(arguments: dict[str, Any]) -> str:
    try:
        return json.dumps(arguments, ensure_ascii=False, separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        return str(arguments)


# ---------------------------------------------------------------------------
# Module-level helpers bound to a default counter
# ---------------------------------------------------------------------------

_DEFAULT_COUNTER = TokenCounter()


def count_text(text: str) -> int:
    return _DEFAULT_COUNTER.count_text(text)


def count_content_unit(unit: ContentUnit) -> int:
    return _DEFAULT_COUNTER.count_content_unit(unit)


def count_message(message: Message) -> int:
    return _DEFAULT_COUNTER.count_message(message)


def count_all(messages: Iterable[Message]) -> int:
    return _DEFAULT_COUNTER.count_all(messages)
