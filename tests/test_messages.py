"""Tests for the message model — role/content discrimination and parsing."""

import pytest
from pydantic import ValidationError

from ctxcompress.messages import (
    AssistantMessage,
    ImageContent,
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


def _raw_history() -> list[dict]:
    return [
        {"role": "user", "content": "Fix the failing test"},
        {
            "role": "assistant",
            "content": [
                {"type": "thinking", "thinking": "Look at the test first."},
                {
                    "type": "toolCall",
                    "id": "call_1",
                    "name": "read_file",
                    "arguments": {"path": "a.py"},
                },
            ],
        },
        {
            "role": "toolResult",
            "toolCallId": "call_1",
            "toolName": "read_file",
            "content": [{"type": "text", "text": "def f(): ..."}],
            "isError": False,
        },
        {"role": "system", "content": "Be concise."},
    ]


def test_parse_discriminates_roles_and_content():
    messages = parse_messages(_raw_history())
    assert [type(m) for m in messages] == [
        UserMessage,
        AssistantMessage,
        ToolResultMessage,
        SystemMessage,
    ]
    assistant = messages[1]
    assert isinstance(assistant.content[0], ThinkingContent)
    assert isinstance(assistant.content[1], ToolCallContent)
    assert assistant.content[1].arguments == {"path": "a.py"}
    tool_result = messages[2]
    assert tool_result.tool_name == "read_file"
    assert tool_result.tool_call_id == "call_1"


def test_parse_accepts_model_instances():
    original = [UserMessage(content="hi"), AssistantMessage(content=(TextContent(text="hello"),))]
    assert parse_messages(original) == original


def test_parse_rejects_unknown_role():
    with pytest.raises(ValidationError):
        parse_messages([{"role": "narrator", "content": "once upon a time"}])


def test_parse_rejects_tool_call_in_user_content():
    with pytest.raises(ValidationError):
        parse_messages([{"role": "user", "content": [{"type": "toolCall", "name": "x"}]}])


def test_dump_uses_camel_case_aliases():
    dumped = dump_messages(parse_messages(_raw_history()))
    assert dumped[2]["toolName"] == "read_file"
    assert dumped[2]["toolCallId"] == "call_1"
    assert dumped[0] == {"role": "user", "content": "Fix the failing test"}


def test_messages_are_immutable():
    msg = UserMessage(content="hi")
    with pytest.raises(ValidationError):
        msg.content = "changed"


def test_content_units_for_string_payloads():
    assert list(content_units(UserMessage(content="hi"))) == [TextContent(text="hi")]
    assert list(content_units(SystemMessage(content="rules"))) == [TextContent(text="rules")]
    assert list(content_units(UserMessage(content=""))) == []


def test_content_units_for_block_payloads():
    image = ImageContent(data="b64", mime_type="image/jpeg")
    msg = ToolResultMessage(tool_name="screenshot", content=(TextContent(text="ok"), image))
    assert list(content_units(msg)) == [TextContent(text="ok"), image]


def test_role_enum_matches_literal_roles():
    assert UserMessage().role == MessageRole.USER
    assert ToolResultMessage().role == MessageRole.TOOL_RESULT
