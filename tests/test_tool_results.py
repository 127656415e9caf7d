"""Tests for Layer 1 — stale tool-result summaries."""

from ctxcompress.compaction.tool_results import (
    compact_tool_results,
    compact_tool_results_with_stats,
    summarize_text,
)
from ctxcompress.messages import (
    AssistantMessage,
    ImageContent,
    TextContent,
    ToolCallContent,
    ToolResultMessage,
    UserMessage,
)
from ctxcompress.token_counter import TokenCounter

# 532 chars over 7 lines. The two long middle lines are one word each, so
# the marker adds more words than the summary removes.
_DENSE = "a\nb\nc\n" + "x" * 260 + "\n" + "y" * 260 + "\nd\ne"


class _CharEncoder:
    """One token per character."""

    def encode(self, text: str) -> list[str]:
        return list(text)


def _long_output(tag: str, n_lines: int = 20) -> str:
    return "\n".join(f"{tag} line {i:02d} " + "x" * 30 for i in range(1, n_lines + 1))


def _tool_history(n_turns: int, text_for=_long_output) -> list:
    """Anchor user message followed by *n_turns* call/result pairs."""
    messages: list = [UserMessage(content="Refactor the parser module")]
    for t in range(1, n_turns + 1):
        messages.append(AssistantMessage(content=(ToolCallContent(id=f"c{t}", name="read_file"),)))
        messages.append(
            ToolResultMessage(
                tool_call_id=f"c{t}",
                tool_name="read_file",
                content=(TextContent(text=text_for(f"turn{t}")),),
            )
        )
    return messages


def test_summary_keeps_head_and_tail_lines():
    text = "\n".join(f"line {i}" for i in range(1, 11))
    summary = summarize_text(text, head_lines=3, tail_lines=2)
    lines = summary.split("\n")
    assert lines[:3] == ["line 1", "line 2", "line 3"]
    assert lines[-2:] == ["line 9", "line 10"]
    assert len(lines) == 6
    assert "5 lines" in lines[3]
    assert f"{len(text)} chars" in lines[3]


def test_short_text_is_not_summarized():
    text = "\n".join(f"line {i}" for i in range(6))
    assert summarize_text(text, head_lines=3, tail_lines=2) == text


def test_summary_with_zero_tail_lines():
    text = "\n".join(str(i) for i in range(10))
    summary = summarize_text(text, head_lines=2, tail_lines=0)
    assert summary.split("\n")[:2] == ["0", "1"]
    assert summary.endswith("original 19 chars ...]")


def test_old_turns_compacted_recent_turns_untouched(counter):
    messages = _tool_history(25)
    result = compact_tool_results(messages, keep_recent_turns=5, counter=counter)

    assert len(result) == len(messages)
    result_indices = [i for i, m in enumerate(messages) if isinstance(m, ToolResultMessage)]
    for turn_no, idx in enumerate(result_indices, start=1):
        original_text = messages[idx].content[0].text
        new_text = result[idx].content[0].text
        if turn_no <= 20:
            assert new_text != original_text
            assert new_text == summarize_text(original_text)
            assert result[idx].tool_call_id == messages[idx].tool_call_id
        else:
            assert result[idx] == messages[idx]
    # non tool-result messages pass through verbatim
    for i, m in enumerate(messages):
        if not isinstance(m, ToolResultMessage):
            assert result[i] is m


def test_noop_when_turns_within_limit(counter):
    messages = _tool_history(3)
    stats = compact_tool_results_with_stats(messages, keep_recent_turns=3, counter=counter)
    assert stats.messages == messages
    assert stats.messages is not messages
    assert stats.compacted_units == 0


def test_threshold_leaves_small_outputs_alone(counter):
    messages = _tool_history(4, text_for=lambda tag: f"{tag}\nok\nok\nok\nok\nok\nok\nok")
    assert compact_tool_results(messages, keep_recent_turns=1, counter=counter) == messages


def test_non_text_units_pass_through(counter):
    image = ImageContent(data="iVBORw0", mime_type="image/png")
    messages = [
        UserMessage(content="take screenshots"),
        ToolResultMessage(
            tool_name="screenshot",
            content=(TextContent(text=_long_output("shot")), image),
        ),
        AssistantMessage(content=(TextContent(text="next"),)),
        ToolResultMessage(tool_name="screenshot", content=(TextContent(text="done"),)),
    ]
    result = compact_tool_results(messages, keep_recent_turns=1, counter=counter)
    compacted = result[1]
    assert compacted.content[1] == image
    assert "omitted" in compacted.content[0].text


def test_input_is_not_mutated(counter):
    messages = _tool_history(8)
    snapshot = [m.model_dump() for m in messages]
    compact_tool_results(messages, keep_recent_turns=2, counter=counter)
    assert [m.model_dump() for m in messages] == snapshot


def test_never_grows_token_count(counter):
    messages = _tool_history(12)
    result = compact_tool_results(messages, keep_recent_turns=4, counter=counter)
    assert counter.count_all(result) < counter.count_all(messages)
    assert len(result) == len(messages)


def test_stats_report_compacted_units(counter):
    stats = compact_tool_results_with_stats(
        _tool_history(10), keep_recent_turns=6, counter=counter
    )
    assert stats.stale_messages == 4
    assert stats.compacted_units == 4


def test_summary_costing_more_tokens_is_discarded(counter):
    messages = _tool_history(2, text_for=lambda tag: _DENSE)

    stats = compact_tool_results_with_stats(messages, keep_recent_turns=1, counter=counter)

    assert stats.compacted_units == 0
    assert stats.messages == messages
    assert counter.count_all(stats.messages) <= counter.count_all(messages)


def test_summary_guard_uses_the_given_counter(counter):
    messages = _tool_history(2, text_for=lambda tag: _DENSE)

    by_chars = compact_tool_results(
        messages, keep_recent_turns=1, counter=TokenCounter(_CharEncoder())
    )
    assert "omitted 2 lines" in by_chars[2].content[0].text
    assert compact_tool_results(messages, keep_recent_turns=1, counter=counter) == messages
