"""Layer 2 — drop whole messages from the middle of the history.

Last resort, only used while the history is still over budget. The anchor
message (index 0) and the most recent messages are never dropped. A dropped
range can split a tool call from its result; an oversized request would be
rejected outright, so that loss is accepted.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from ..messages import Message
from ..token_counter import TokenCounter

_log = logging.getLogger(__name__)


@dataclass
class TruncationResult:
    """Outcome of one Layer 2 pass."""

    messages: list[Message]
    tokens_before: int
    tokens_after: int
    dropped_indices: list[int] = field(default_factory=list)

    @property
    def dropped_count(self) -> int:
        return len(self.dropped_indices)


def sliding_window_truncate_with_stats(
    messages: Sequence[Message],
    budget: int,
    *,
    keep_recent_messages: int = 20,
    counter: TokenCounter | None = None,
) -> TruncationResult:
    counter = counter or TokenCounter()
    budget = max(budget, 0)
    total = counter.count_all(messages)
    if len(messages) <= keep_recent_messages + 1 or total <= budget:
        return TruncationResult(messages=list(messages), tokens_before=total, tokens_after=total)

    running = total
    safe_start = len(messages) - keep_recent_messages
    dropped: list[int] = []
    for i in range(1, safe_start):
        if running <= budget:
            break
        running -= counter.count_message(messages[i])
        dropped.append(i)

    if not dropped:
        return TruncationResult(messages=list(messages), tokens_before=total, tokens_after=total)

    drop = set(dropped)
    kept = [m for i, m in enumerate(messages) if i not in drop]
    _log.info(
        "Layer 2: dropped %d message(s), about %d tokens remain (budget %d)",
        len(dropped),
        running,
        budget,
    )
    return TruncationResult(
        messages=kept,
        tokens_before=total,
        tokens_after=running,
        dropped_indices=dropped,
    )


def sliding_window_truncate(
    messages: Sequence[Message],
    budget: int,
    *,
    keep_recent_messages: int = 20,
    counter: TokenCounter | None = None,
) -> list[Message]:
    """Drop messages from index 1 onwards until the total fits *budget*.

    Stops at the protected tail of *keep_recent_messages* messages even if
    the history is still over budget. Survivors keep their relative order.
    A negative *budget* is treated as 0, so every eligible message goes.
    """
    return sliding_window_truncate_with_stats(
        messages,
        budget,
        keep_recent_messages=keep_recent_messages,
        counter=counter,
    ).messages
