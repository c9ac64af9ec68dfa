"""Normalized prompt model consumed by the chat model.

A prompt is an ordered sequence of role-tagged messages. Message content is
either a plain string or an ordered tuple of typed content parts. Each part
type is a frozen dataclass so converters can dispatch with ``match`` and
close the union with ``assert_never``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

Role = Literal["user", "assistant", "system", "tool"]


@dataclass(frozen=True)
class TextPart:
    """Plain text. Concatenated verbatim with sibling text parts."""

    text: str


@dataclass(frozen=True)
class ImagePart:
    """Image content. Never accepted by the vendor."""

    image: bytes | str
    mime_type: str | None = None


@dataclass(frozen=True)
class FilePart:
    """File content. Never accepted by the vendor."""

    data: bytes | str
    mime_type: str


@dataclass(frozen=True)
class ToolCallPart:
    """A tool invocation previously requested by the assistant."""

    tool_call_id: str
    tool_name: str
    #: Structured arguments; JSON-encoded on the wire.
    args: Any


@dataclass(frozen=True)
class ToolResultPart:
    """The outcome of a tool invocation."""

    tool_call_id: str
    tool_name: str
    result: Any
    is_error: bool = False


ContentPart = TextPart | ImagePart | FilePart | ToolCallPart | ToolResultPart


@dataclass(frozen=True)
class Message:
    """One role-tagged turn of a prompt."""

    role: Role
    content: str | tuple[ContentPart, ...] = ()

    def __post_init__(self) -> None:
        """Freeze list content so messages stay value-typed."""
        if not isinstance(self.content, str | tuple):
            object.__setattr__(self, "content", tuple(self.content))


Prompt = Sequence[Message]


@dataclass(frozen=True)
class FunctionTool:
    """A function the model may call, described by a JSON schema."""

    name: str
    parameters: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )
    description: str | None = None
    type: Literal["function"] = "function"


@dataclass(frozen=True)
class ProviderDefinedTool:
    """A tool implemented by some other provider. Not supported here."""

    id: str
    name: str
    args: dict[str, Any] = field(default_factory=dict)
    type: Literal["provider-defined"] = "provider-defined"


Tool = FunctionTool | ProviderDefinedTool
