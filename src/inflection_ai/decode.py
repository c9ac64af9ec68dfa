"""Non-streaming response decoding."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
import json
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from inflection_ai.errors import SchemaValidationError, ToolCallArgumentsError
from inflection_ai.result import ResponseMetadata, ToolCall
from inflection_ai.tokens import Usage, estimate_prompt_tokens, estimate_tokens
from inflection_ai.wire import ChatResponsePayload

if TYPE_CHECKING:
    from collections.abc import Iterable

    from inflection_ai.result import FinishReason
    from inflection_ai.wire import ToolCallPayload, WireMessage


def timestamp_from_created(created: float) -> datetime:
    """Vendor ``created`` (seconds since epoch) as an aware UTC datetime.

    Raises:
        SchemaValidationError: If ``created`` is NaN, infinite or outside the
            range a datetime can hold.
    """
    try:
        return datetime.fromtimestamp(created, tz=UTC)
    except (OverflowError, ValueError, OSError) as e:
        raise SchemaValidationError(
            f"Invalid created timestamp {created!r}: {e}", value=created
        ) from e


def _parse_payload(value: Any) -> ChatResponsePayload:
    try:
        return ChatResponsePayload.model_validate(value)
    except ValidationError as e:
        raise SchemaValidationError(
            f"Invalid Inflection response: {e}",
            hint="The vendor payload did not match {created, text, tool_calls?}.",
            value=value,
        ) from e


def decode_tool_arguments(call: ToolCallPayload) -> Any:
    """JSON-decode one tool call's ``arguments``.

    Raises:
        ToolCallArgumentsError: When the arguments are not valid JSON.
    """
    try:
        return json.loads(call.function.arguments)
    except json.JSONDecodeError as e:
        raise ToolCallArgumentsError(
            f"Invalid arguments for tool call {call.id!r} ({call.function.name}): {e}",
            tool_call_id=call.id,
            tool_name=call.function.name,
            text=call.function.arguments,
        ) from e


@dataclass(frozen=True)
class DecodedResponse:
    """Decoded non-streaming response."""

    text: str
    tool_calls: list[ToolCall] | None
    finish_reason: FinishReason
    usage: Usage
    response: ResponseMetadata


def decode_response(value: Any, context: Iterable[WireMessage]) -> DecodedResponse:
    """Decode a vendor JSON response into a normalized result.

    Args:
        value: Parsed JSON body of the non-streaming call.
        context: Wire messages that were sent, for prompt token estimation.

    Raises:
        SchemaValidationError: If the payload does not match the expected shape.
        ToolCallArgumentsError: If any tool call carries non-JSON arguments.
            No partial result is returned.
    """
    payload = _parse_payload(value)

    tool_calls: list[ToolCall] | None = None
    if "tool_calls" in payload.model_fields_set:
        tool_calls = [
            ToolCall(
                tool_call_id=call.id,
                tool_name=call.function.name,
                args=decode_tool_arguments(call),
            )
            for call in payload.tool_calls
        ]

    return DecodedResponse(
        text=payload.text,
        tool_calls=tool_calls,
        finish_reason="tool-calls" if tool_calls else "stop",
        usage=Usage(
            prompt_tokens=estimate_prompt_tokens(context),
            completion_tokens=estimate_tokens(payload.text),
        ),
        response=ResponseMetadata(timestamp=timestamp_from_created(payload.created)),
    )
