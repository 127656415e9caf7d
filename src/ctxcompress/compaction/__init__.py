"""Compaction layers --- turn segmentation, tool-result summaries, sliding window."""

from .sliding_window import (
    TruncationResult,
    sliding_window_truncate,
    sliding_window_truncate_with_stats,
)
from .thinking import strip_stale_thinking
from .token_budget import compute_budget
from .tool_results import (
    ToolResultCompaction,
    compact_tool_results,
    compact_tool_results_with_stats,
    summarize_text,
)
from .turns import Turn, identify_turns

__all__ = [
    "ToolResultCompaction",
    "TruncationResult",
    "Turn",
    "compact_tool_results",
    "compact_tool_results_with_stats",
    "compute_budget",
    "identify_turns",
    "sliding_window_truncate",
    "sliding_window_truncate_with_stats",
    "strip_stale_thinking",
    "summarize_text",
]
