"""Layer 1 — shrink stale tool-result text to head/tail summaries.

Runs on every request. It never removes a message, so tool-call/tool-result
pairing is untouched; only oversized text payloads of old turns shrink.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ..messages import Message, TextContent, ToolResultMessage
from ..token_counter import TokenCounter
from .turns import identify_turns

_log = logging.getLogger(__name__)

SUMMARY_MARKER = "[... omitted {omitted} lines, original {chars} chars ...]"


@dataclass
class ToolResultCompaction:
    """Outcome of one Layer 1 pass."""

    messages: list[Message]
    stale_messages: int
    compacted_units: int


def summarize_text(text: str, head_lines: int = 3, tail_lines: int = 2) -> str:
    """Keep the first *head_lines* and last *tail_lines* lines of *text*.

    The dropped middle is replaced by a marker with the omitted line count and
    the original character length. Text with at most
    ``head_lines + tail_lines + 1`` lines is returned unchanged.
    """
    lines = text.split("\n")
    if len(lines) <= head_lines + tail_lines + 1:
        return text

    omitted = len(lines) - head_lines - tail_lines
    marker = SUMMARY_MARKER.format(omitted=omitted, chars=len(text))
    kept = [*lines[:head_lines], marker, *lines[len(lines) - tail_lines :]]
    return "\n".join(kept)


def compact_tool_results_with_stats(
    messages: Sequence[Message],
    *,
    keep_recent_turns: int = 6,
    threshold_chars: int = 500,
    head_lines: int = 3,
    tail_lines: int = 2,
    counter: TokenCounter | None = None,
) -> ToolResultCompaction:
    counter = counter or TokenCounter()
    turns = identify_turns(messages)
    if len(turns) <= keep_recent_turns:
        return ToolResultCompaction(messages=list(messages), stale_messages=0, compacted_units=0)

    stale_turns = turns[: len(turns) - keep_recent_turns]
    stale = {i for turn in stale_turns for i in turn}

    compacted_units = 0
    result: list[Message] = []
    for i, message in enumerate(messages):
        if i not in stale or not isinstance(message, ToolResultMessage):
            result.append(message)
            continue

        content = []
        changed = False
        for unit in message.content:
            if isinstance(unit, TextContent) and len(unit.text) > threshold_chars:
                summary = summarize_text(unit.text, head_lines, tail_lines)
                # a summary that costs more tokens than the original is discarded
                if counter.count_text(summary) < counter.count_text(unit.text):
                    content.append(TextContent(text=summary))
                    changed = True
                    compacted_units += 1
                    continue
            content.append(unit)

        if changed:
            message = message.model_copy(update={"content": tuple(content)})
        result.append(message)

    if compacted_units:
        _log.info(
            "Layer 1: compacted %d text block(s) across %d stale tool result(s)",
            compacted_units,
            len(stale),
        )
    return ToolResultCompaction(
        messages=result, stale_messages=len(stale), compacted_units=compacted_units
    )


def compact_tool_results(
    messages: Sequence[Message],
    *,
    keep_recent_turns: int = 6,
    threshold_chars: int = 500,
    head_lines: int = 3,
    tail_lines: int = 2,
    counter: TokenCounter | None = None,
) -> list[Message]:
    """Summarize oversized text in every tool-result turn but the newest ones.

    Returns a new list of the same length; messages that need no change are
    shared with the input (messages are immutable).
    """
    return compact_tool_results_with_stats(
        messages,
        keep_recent_turns=keep_recent_turns,
        threshold_chars=threshold_chars,
        head_lines=head_lines,
        tail_lines=tail_lines,
        counter=counter,
    ).messages
