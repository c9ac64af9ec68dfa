"""Prompt conversion: normalized messages to vendor wire messages.

Pure functions, no I/O. Two targets share the same content rules:

- ``convert_to_inflection_messages`` builds the vendor ``context`` array.
- ``convert_to_openai_messages`` builds the ``messages`` array for the
  OpenAI-compatible endpoint.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
from typing import TYPE_CHECKING, Any, assert_never

from inflection_ai.config import TOOL_MODEL_ID, supports_tools
from inflection_ai.errors import UnsupportedFunctionalityError
from inflection_ai.prompt import (
    FilePart,
    ImagePart,
    TextPart,
    ToolCallPart,
    ToolResultPart,
)
from inflection_ai.wire import OpenAIMessage, WireMessage, WireToolCall

if TYPE_CHECKING:
    from inflection_ai.prompt import Message, Prompt, Role
    from inflection_ai.wire import WireMessageType

_ROLE_TO_WIRE_TYPE: dict[Role, WireMessageType] = {
    "user": "Human",
    "assistant": "AI",
    "system": "Instruction",
    "tool": "Tool",
}


def encode_arguments(args: Any) -> str:
    """JSON-encode structured tool arguments for the wire."""
    return json.dumps(args, ensure_ascii=False)


@dataclass(frozen=True)
class _Flattened:
    text: str
    tool_calls: tuple[WireToolCall, ...]
    tool_call_id: str | None


def _flatten(message: Message, model_id: str) -> _Flattened:
    """Collapse one message's content parts into text plus tool calls.

    Text parts are concatenated with no separator. A tool result replaces
    the accumulated text with its JSON encoding.
    """
    content = message.content
    if isinstance(content, str):
        return _Flattened(text=content, tool_calls=(), tool_call_id=None)

    text = ""
    tool_calls: list[WireToolCall] = []
    tool_call_id: str | None = None

    for part in content:
        match part:
            case TextPart():
                text += part.text
            case ToolCallPart():
                if not supports_tools(model_id):
                    raise UnsupportedFunctionalityError(
                        f"Tool calls are only supported with the {TOOL_MODEL_ID} model",
                        hint=f"Use model_id={TOOL_MODEL_ID!r} for tool calling.",
                    )
                tool_calls.append(
                    WireToolCall(
                        id=part.tool_call_id,
                        name=part.tool_name,
                        arguments=encode_arguments(part.args),
                    )
                )
            case ToolResultPart():
                if not supports_tools(model_id):
                    raise UnsupportedFunctionalityError(
                        f"Tool results are only supported with the {TOOL_MODEL_ID} model",
                        hint=f"Use model_id={TOOL_MODEL_ID!r} for tool calling.",
                    )
                text = encode_arguments(part.result)
                if tool_call_id is None:
                    tool_call_id = part.tool_call_id
            case ImagePart():
                raise UnsupportedFunctionalityError(
                    "Image content parts are not supported by Inflection AI at this time"
                )
            case FilePart():
                raise UnsupportedFunctionalityError(
                    "File content parts are not supported by Inflection AI at this time"
                )
            case _:
                assert_never(part)

    return _Flattened(
        text=text, tool_calls=tuple(tool_calls), tool_call_id=tool_call_id
    )


def _wire_type(role: Role) -> WireMessageType:
    match role:
        case "user" | "assistant" | "system" | "tool":
            return _ROLE_TO_WIRE_TYPE[role]
        case _:
            assert_never(role)


def convert_to_inflection_messages(
    prompt: Prompt, model_id: str = "inflection_3_pi"
) -> list[WireMessage]:
    """Convert a normalized prompt into the vendor ``context`` array.

    Args:
        prompt: Ordered role-tagged messages.
        model_id: Target model; only the tool model accepts tool parts.

    Returns:
        Wire messages in prompt order. Messages with empty text and no tool
        calls are skipped.

    Raises:
        UnsupportedFunctionalityError: For tool parts on a model without
            tool support, and for image or file parts on any model.
        AssertionError: When an unknown role or part type reaches the
            converter.
    """
    context: list[WireMessage] = []

    for message in prompt:
        flat = _flatten(message, model_id)
        wire_type = _wire_type(message.role)

        if not flat.text and not flat.tool_calls:
            continue

        if wire_type == "AI":
            context.append(
                WireMessage(
                    type="AI",
                    text=flat.text,
                    tool_calls=(
                        flat.tool_calls
                        if supports_tools(model_id) and flat.tool_calls
                        else None
                    ),
                )
            )
        elif wire_type == "Tool":
            # Tool calls alone never make a tool message worth sending.
            if flat.text:
                context.append(
                    WireMessage(
                        type="Tool", text=flat.text, tool_call_id=flat.tool_call_id
                    )
                )
        else:
            context.append(WireMessage(type=wire_type, text=flat.text))

    return context


def convert_to_openai_messages(
    prompt: Prompt, model_id: str = TOOL_MODEL_ID
) -> list[OpenAIMessage]:
    """Convert a normalized prompt into OpenAI-compatible chat messages.

    Unlike the vendor context, every message is kept, even when empty.
    """
    messages: list[OpenAIMessage] = []
    for message in prompt:
        flat = _flatten(message, model_id)
        _wire_type(message.role)
        messages.append(
            OpenAIMessage(
                role=message.role,
                content=flat.text,
                tool_calls=flat.tool_calls or None,
                tool_call_id=flat.tool_call_id if message.role == "tool" else None,
            )
        )
    return messages
