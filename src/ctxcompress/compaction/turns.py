"""Turn segmentation — group contiguous tool-result messages."""

from __future__ import annotations

from collections.abc import Sequence

from ..messages import Message, ToolResultMessage

Turn = list[int]


def identify_turns(messages: Sequence[Message]) -> list[Turn]:
    """Split *messages* into turns, the maximal runs of tool-result messages.

    Returns index lists ordered oldest to newest. Turns never overlap and
    together cover exactly the tool-result indices. Tool results produced by
    one assistant step are assumed to be adjacent in the history; anything
    interleaved between them starts a new turn.
    """
    turns: list[Turn] = []
    current: Turn = []
    for i, message in enumerate(messages):
        if isinstance(message, ToolResultMessage):
            current.append(i)
        elif current:
            turns.append(current)
            current = []
    if current:
        turns.append(current)
    return turns
