"""Normalized results: generate results, stream parts and call warnings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping
    from datetime import datetime

    from inflection_ai.prompt import Tool
    from inflection_ai.tokens import Usage

FinishReason = Literal[
    "stop", "length", "content-filter", "tool-calls", "error", "other", "unknown"
]


@dataclass(frozen=True)
class CallWarning:
    """A setting or tool that was accepted but not forwarded to the vendor."""

    type: Literal["unsupported-setting", "unsupported-tool", "other"]
    setting: str | None = None
    tool: Tool | None = None
    details: str | None = None


@dataclass(frozen=True)
class ToolCall:
    """A complete tool call with decoded arguments."""

    tool_call_id: str
    tool_name: str
    args: Any
    tool_call_type: Literal["function"] = "function"


@dataclass(frozen=True)
class ResponseMetadata:
    """Response identity reported by the vendor."""

    timestamp: datetime | None = None
    id: str | None = None
    model_id: str | None = None


@dataclass(frozen=True)
class RawCall:
    """The request as sent: wire context and every other body field."""

    raw_prompt: list[dict[str, Any]]
    raw_settings: dict[str, Any]


@dataclass(frozen=True)
class RawResponse:
    headers: Mapping[str, str] = field(default_factory=dict)


# --- Stream parts ---


@dataclass(frozen=True)
class ResponseMetadataPart:
    timestamp: datetime
    type: Literal["response-metadata"] = "response-metadata"


@dataclass(frozen=True)
class TextDeltaPart:
    text_delta: str
    type: Literal["text-delta"] = "text-delta"


@dataclass(frozen=True)
class ToolCallDeltaPart:
    """A raw, possibly partial, fragment of tool-call arguments."""

    tool_call_id: str
    tool_name: str
    args_text_delta: str
    tool_call_type: Literal["function"] = "function"
    type: Literal["tool-call-delta"] = "tool-call-delta"


@dataclass(frozen=True)
class ToolCallPart:
    """A tool call whose arguments are complete JSON."""

    tool_call_id: str
    tool_name: str
    args: Any
    tool_call_type: Literal["function"] = "function"
    type: Literal["tool-call"] = "tool-call"


@dataclass(frozen=True)
class ErrorPart:
    """A failure that does not end the stream."""

    error: Exception
    type: Literal["error"] = "error"


@dataclass(frozen=True)
class FinishPart:
    """Terminal part; exactly one per completed stream."""

    finish_reason: FinishReason | str
    usage: Usage
    type: Literal["finish"] = "finish"


StreamPart = (
    ResponseMetadataPart
    | TextDeltaPart
    | ToolCallDeltaPart
    | ToolCallPart
    | ErrorPart
    | FinishPart
)


@dataclass(frozen=True)
class GenerateResult:
    """Result of ``do_generate()``."""

    text: str
    finish_reason: FinishReason
    usage: Usage
    raw_call: RawCall
    #: ``None`` when the vendor returned no tool calls field.
    tool_calls: list[ToolCall] | None = None
    raw_response: RawResponse = field(default_factory=RawResponse)
    #: JSON text of the request body.
    request_body: str | None = None
    response: ResponseMetadata = field(default_factory=ResponseMetadata)
    warnings: tuple[CallWarning, ...] = ()


@dataclass(frozen=True)
class StreamResult:
    """Result of ``do_stream()``. Iterate ``stream`` to drive the call."""

    stream: AsyncIterator[StreamPart]
    raw_call: RawCall
    raw_response: RawResponse = field(default_factory=RawResponse)
    request_body: str | None = None
    warnings: tuple[CallWarning, ...] = ()
