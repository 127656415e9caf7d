"""Optional layer — drop reasoning blocks from older assistant messages."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ..messages import AssistantMessage, Message, TextContent, ThinkingContent

_log = logging.getLogger(__name__)


def strip_stale_thinking(
    messages: Sequence[Message],
    *,
    keep_recent_messages: int = 20,
) -> list[Message]:
    """Remove ``ThinkingContent`` from assistant messages outside the recent tail.

    The anchor message (index 0) and the last *keep_recent_messages* messages
    are left as they are. The message count never changes; an assistant
    message left with no content keeps one empty text block.
    """
    tail_start = max(1, len(messages) - keep_recent_messages)
    stripped = 0
    result: list[Message] = []
    for i, message in enumerate(messages):
        if i == 0 or i >= tail_start or not isinstance(message, AssistantMessage):
            result.append(message)
            continue
        kept = tuple(u for u in message.content if not isinstance(u, ThinkingContent))
        if len(kept) == len(message.content):
            result.append(message)
            continue
        stripped += len(message.content) - len(kept)
        result.append(message.model_copy(update={"content": kept or (TextContent(text=""),)}))

    if stripped:
        _log.info("Stripped %d thinking block(s) from older assistant messages", stripped)
    return result
