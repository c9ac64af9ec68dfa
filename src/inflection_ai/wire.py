"""Vendor wire shapes.

Outbound messages are frozen dataclasses serialized with ``to_dict()``.
Inbound payloads are validated with pydantic models; a mismatch surfaces as
``pydantic.ValidationError`` and is mapped by the decoders.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)

WireMessageType = Literal["Human", "AI", "Instruction", "Tool"]

# Leaf types refuse coercion ("1" is not a number, 1 is not a string).
Number = StrictInt | StrictFloat


# --- Outbound ---


@dataclass(frozen=True)
class WireToolCall:
    """A tool call as the vendor expects it. ``arguments`` is JSON text."""

    id: str
    name: str
    arguments: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


@dataclass(frozen=True)
class WireMessage:
    """One entry of the vendor ``context`` array."""

    type: WireMessageType
    text: str = ""
    tool_calls: tuple[WireToolCall, ...] | None = None
    tool_call_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type, "text": self.text}
        if self.tool_calls is not None:
            out["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            out["tool_call_id"] = self.tool_call_id
        return out


@dataclass(frozen=True)
class OpenAIMessage:
    """One entry of the OpenAI-compatible ``messages`` array."""

    role: Literal["system", "user", "assistant", "tool"]
    content: str
    tool_calls: tuple[WireToolCall, ...] | None = None
    tool_call_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls is not None:
            out["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            out["tool_call_id"] = self.tool_call_id
        return out


# --- Inbound: vendor-native ---


class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True)


class FunctionPayload(_Payload):
    name: StrictStr
    arguments: StrictStr


class ToolCallPayload(_Payload):
    id: StrictStr
    type: Literal["function"]
    function: FunctionPayload


class ChatResponsePayload(_Payload):
    """Non-streaming response: ``{created, text, tool_calls?}``."""

    created: Number
    text: StrictStr
    #: ``null`` on the wire is normalized to an empty list.
    tool_calls: list[ToolCallPayload] = Field(default_factory=list)

    @field_validator("tool_calls", mode="before")
    @classmethod
    def _null_tool_calls(cls, v: Any) -> Any:
        return [] if v is None else v


class StreamChunkPayload(_Payload):
    """Vendor-native stream chunk: ``{created, idx, text, tool_calls?}``."""

    created: Number
    idx: StrictInt
    text: StrictStr
    tool_calls: list[ToolCallPayload] = Field(default_factory=list)

    @field_validator("tool_calls", mode="before")
    @classmethod
    def _null_tool_calls(cls, v: Any) -> Any:
        return [] if v is None else v


# --- Inbound: OpenAI-compatible ---


class FunctionDeltaPayload(_Payload):
    name: StrictStr | None = None
    arguments: StrictStr = ""

    @field_validator("arguments", mode="before")
    @classmethod
    def _null_arguments(cls, v: Any) -> Any:
        return "" if v is None else v


class ToolCallDeltaPayload(_Payload):
    index: StrictInt | None = None
    id: StrictStr | None = None
    type: Literal["function"] | None = None
    function: FunctionDeltaPayload = Field(default_factory=FunctionDeltaPayload)


class DeltaPayload(_Payload):
    role: str | None = None
    content: StrictStr | None = None
    tool_calls: list[ToolCallDeltaPayload] | None = None


class ChoicePayload(_Payload):
    index: int = 0
    delta: DeltaPayload
    finish_reason: StrictStr | None = None


class OpenAIChunkPayload(_Payload):
    """OpenAI-compatible ``chat.completion.chunk``."""

    id: StrictStr | None = None
    object: str | None = None
    created: Number | None = None
    model: str | None = None
    choices: list[ChoicePayload]
