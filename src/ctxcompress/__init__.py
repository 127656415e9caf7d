"""ctxcompress — token-budget context compression for coding-assistant chats."""

from __future__ import annotations

__version__ = "0.1.0"

from .compaction import (
    compact_tool_results,
    compute_budget,
    identify_turns,
    sliding_window_truncate,
    strip_stale_thinking,
    summarize_text,
)
from .config import CompressionConfig
from .context_compression import (
    CompressedContext,
    CompressionLayer,
    CompressionReport,
    ContextCompressor,
    LayerMetrics,
    compress_context,
    create_transform_context,
)
from .messages import (
    AssistantMessage,
    ContentUnit,
    ImageContent,
    Message,
    MessageRole,
    SystemMessage,
    TextContent,
    ThinkingContent,
    ToolCallContent,
    ToolResultMessage,
    UserMessage,
    content_units,
    dump_messages,
    parse_messages,
)
from .models import ModelDescriptor
from .telemetry import CompressionTracer, TelemetryConfig
from .token_counter import (
    TokenCounter,
    count_all,
    count_content_unit,
    count_message,
    count_text,
    get_encoder,
)

__all__ = [
    "AssistantMessage",
    "CompressedContext",
    "CompressionConfig",
    "CompressionLayer",
    "CompressionReport",
    "CompressionTracer",
    "ContentUnit",
    "ContextCompressor",
    "ImageContent",
    "LayerMetrics",
    "Message",
    "MessageRole",
    "ModelDescriptor",
    "SystemMessage",
    "TelemetryConfig",
    "TextContent",
    "ThinkingContent",
    "TokenCounter",
    "ToolCallContent",
    "ToolResultMessage",
    "UserMessage",
    "compact_tool_results",
    "compress_context",
    "compute_budget",
    "content_units",
    "count_all",
    "count_content_unit",
    "count_message",
    "count_text",
    "create_transform_context",
    "dump_messages",
    "get_encoder",
    "identify_turns",
    "parse_messages",
    "sliding_window_truncate",
    "strip_stale_thinking",
    "summarize_text",
]
