"""Conversation message model — tagged unions over roles and content units."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from enum import StrEnum
from typing import Annotated, Any, Literal, assert_never

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

# ---------------------------------------------------------------------------
# Content units
# ---------------------------------------------------------------------------


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class TextContent(_Frozen):
    """Plain text block."""

    type: Literal["text"] = "text"
    text: str = ""


class ImageContent(_Frozen):
    """Inline image, kept as an opaque reference (base64 payload or URL)."""

    type: Literal["image"] = "image"
    data: str = ""
    mime_type: str = Field(default="image/png", alias="mimeType")


class ThinkingContent(_Frozen):
    """Model reasoning block emitted by thinking-capable models."""

    type: Literal["thinking"] = "thinking"
    thinking: str = ""


class ToolCallContent(_Frozen):
    """A tool invocation requested by the assistant."""

    type: Literal["toolCall"] = "toolCall"
    id: str = ""
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


ContentUnit = Annotated[
    TextContent | ImageContent | ThinkingContent | ToolCallContent,
    Field(discriminator="type"),
]
UserContentUnit = Annotated[TextContent | ImageContent, Field(discriminator="type")]
AssistantContentUnit = Annotated[
    TextContent | ThinkingContent | ToolCallContent,
    Field(discriminator="type"),
]
ToolResultContentUnit = Annotated[TextContent | ImageContent, Field(discriminator="type")]


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class MessageRole(StrEnum):
    """Role of a message in the conversation."""

    USER = "user"
    ASSISTANT = "assistant"
    TOOL_RESULT = "toolResult"
    SYSTEM = "system"


class UserMessage(_Frozen):
    """Message typed by the user. Content is a plain string or a list of blocks."""

    role: Literal["user"] = "user"
    content: str | tuple[UserContentUnit, ...] = ""


class AssistantMessage(_Frozen):
    role: Literal["assistant"] = "assistant"
    content: tuple[AssistantContentUnit, ...] = ()


class ToolResultMessage(_Frozen):
    """Output of one tool call, fed back to the model."""

    role: Literal["toolResult"] = "toolResult"
    tool_call_id: str = Field(default="", alias="toolCallId")
    tool_name: str = Field(default="", alias="toolName")
    content: tuple[ToolResultContentUnit, ...] = ()
    is_error: bool = Field(default=False, alias="isError")


class SystemMessage(_Frozen):
    role: Literal["system"] = "system"
    content: str = ""


Message = Annotated[
    UserMessage | AssistantMessage | ToolResultMessage | SystemMessage,
    Field(discriminator="role"),
]

_MESSAGES_ADAPTER: TypeAdapter[list[Message]] = TypeAdapter(list[Message])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_messages(raw: Iterable[Mapping[str, Any] | BaseModel]) -> list[Message]:
    """Validate a loosely typed message list (as stored by the session layer).

    Items that are already message models are accepted as-is. Raises
    ``pydantic.ValidationError`` on unknown roles or content types.
    """
    return _MESSAGES_ADAPTER.validate_python(list(raw))


def dump_messages(messages: Sequence[Message]) -> list[dict[str, Any]]:
    """Serialize messages back to camelCase dicts."""
    return _MESSAGES_ADAPTER.dump_python(list(messages), by_alias=True, mode="json")


def content_units(message: Message) -> Iterator[ContentUnit]:
    """Yield the content units of *message*.

    String payloads (user and system messages) surface as a single
    ``TextContent``.
    """
    match message:
        case UserMessage(content=str() as text) | SystemMessage(content=text):
            if text:
                yield TextContent(text=text)
        case UserMessage() | AssistantMessage() | ToolResultMessage():
            yield from message.content
        case _:
            assert_never(message)