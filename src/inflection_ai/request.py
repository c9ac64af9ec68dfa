"""Request building: call options to a vendor request body.

Pure, no I/O. The wire format is chosen here, once per call, and carried on
the resulting ``ChatRequest`` so the decoders never have to guess.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import json
from typing import TYPE_CHECKING, Any

from inflection_ai._http import OPENAI_CHAT_COMPLETIONS_PATH, STREAMING_PATH
from inflection_ai.config import TOOL_MODEL_ID, supports_tools
from inflection_ai.convert import (
    convert_to_inflection_messages,
    convert_to_openai_messages,
)
from inflection_ai.errors import UnsupportedFunctionalityError
from inflection_ai.prompt import FunctionTool
from inflection_ai.result import CallWarning, RawCall

if TYPE_CHECKING:
    from inflection_ai.config import ChatSettings
    from inflection_ai.options import CallOptions
    from inflection_ai.prompt import Tool
    from inflection_ai.wire import WireMessage


class WireFormat(Enum):
    """Shape of the request body and of the response stream."""

    INFLECTION = "inflection"
    OPENAI = "openai"


@dataclass(frozen=True)
class ChatRequest:
    """A fully built request, ready for the transport."""

    wire_format: WireFormat
    #: Appended to the provider base URL ("" for the non-streaming call).
    path: str
    body: dict[str, Any]
    #: Vendor context used for prompt token estimation, even when the body
    #: carries OpenAI-style messages instead.
    context: tuple[WireMessage, ...]
    raw_call: RawCall
    warnings: tuple[CallWarning, ...] = ()

    @property
    def stream(self) -> bool:
        return bool(self.body.get("stream"))

    def body_json(self) -> str:
        return json.dumps(self.body, ensure_ascii=False)


def use_alternate_endpoint(model_id: str, tools: tuple[Tool, ...] | None) -> bool:
    """Whether a streaming call must go through the OpenAI-compatible endpoint.

    The vendor-native streaming endpoint does not deliver tool-call deltas
    reliably, so tool-bearing streams on the tool model use the
    OpenAI-compatible endpoint instead.
    """
    return supports_tools(model_id) and bool(tools)


def _function_tools(tools: tuple[Tool, ...] | None) -> list[FunctionTool]:
    return [t for t in tools or () if isinstance(t, FunctionTool)]


def _tool_warnings(tools: tuple[Tool, ...] | None) -> list[CallWarning]:
    return [
        CallWarning(type="unsupported-tool", tool=t)
        for t in tools or ()
        if not isinstance(t, FunctionTool)
    ]


def _inflection_tool(tool: FunctionTool) -> dict[str, Any]:
    function: dict[str, Any] = {"name": tool.name}
    if tool.description is not None:
        function["description"] = tool.description
    parameters: dict[str, Any] = {
        "type": "object",
        "properties": tool.parameters.get("properties", {}),
    }
    if "required" in tool.parameters:
        parameters["required"] = tool.parameters["required"]
    function["parameters"] = parameters
    return {"type": "function", "function": function}


def _openai_tool(tool: FunctionTool) -> dict[str, Any]:
    function: dict[str, Any] = {"name": tool.name}
    if tool.description is not None:
        function["description"] = tool.description
    function["parameters"] = tool.parameters
    return {"type": "function", "function": function}


def _check_tools_allowed(options: CallOptions, model_id: str) -> None:
    if options.tools and not supports_tools(model_id):
        raise UnsupportedFunctionalityError(
            f"Tool calls are only supported with the {TOOL_MODEL_ID} model",
            hint=f"Use model_id={TOOL_MODEL_ID!r} or drop tools=...",
        )


def _base_args(
    options: CallOptions, model_id: str, settings: ChatSettings
) -> tuple[dict[str, Any], list[WireMessage], list[CallWarning]]:
    """Build the vendor-native body shared by the generate and stream calls."""
    _check_tools_allowed(options, model_id)

    warnings: list[CallWarning] = []
    if options.seed is not None:
        warnings.append(CallWarning(type="unsupported-setting", setting="seed"))
    warnings.extend(_tool_warnings(options.tools))

    context = convert_to_inflection_messages(options.prompt, model_id)

    body: dict[str, Any] = {"config": model_id}
    optional: dict[str, Any] = {
        "max_tokens": options.max_tokens,
        "temperature": options.temperature,
        "top_p": options.top_p,
        "stop_tokens": list(options.stop_sequences)
        if options.stop_sequences is not None
        else None,
        "web_search": settings.web_search,
        "metadata": settings.metadata.to_dict() if settings.metadata else None,
    }
    body.update({k: v for k, v in optional.items() if v is not None})
    body["context"] = [m.to_dict() for m in context]

    function_tools = _function_tools(options.tools)
    if function_tools:
        body["tools"] = [_inflection_tool(t) for t in function_tools]

    return body, context, warnings


def _raw_call(body: dict[str, Any]) -> RawCall:
    raw_settings = {k: v for k, v in body.items() if k != "context"}
    return RawCall(raw_prompt=body["context"], raw_settings=raw_settings)


def build_generate_request(
    options: CallOptions, model_id: str, settings: ChatSettings
) -> ChatRequest:
    """Build the non-streaming vendor-native request."""
    body, context, warnings = _base_args(options, model_id, settings)
    return ChatRequest(
        wire_format=WireFormat.INFLECTION,
        path="",
        body=body,
        context=tuple(context),
        raw_call=_raw_call(body),
        warnings=tuple(warnings),
    )


def build_stream_request(
    options: CallOptions, model_id: str, settings: ChatSettings
) -> ChatRequest:
    """Build a streaming request, choosing the wire format for the call.

    Raises:
        UnsupportedFunctionalityError: Before any conversion when tools are
            declared for a model without tool support.
    """
    body, context, warnings = _base_args(options, model_id, settings)
    raw_call = _raw_call(body)

    if use_alternate_endpoint(model_id, options.tools):
        openai_body: dict[str, Any] = {
            "model": model_id,
            "stream": True,
            "messages": [
                m.to_dict() for m in convert_to_openai_messages(options.prompt, model_id)
            ],
            "tools": [_openai_tool(t) for t in _function_tools(options.tools)],
        }
        return ChatRequest(
            wire_format=WireFormat.OPENAI,
            path=OPENAI_CHAT_COMPLETIONS_PATH,
            body=openai_body,
            context=tuple(context),
            raw_call=raw_call,
            warnings=tuple(warnings),
        )

    return ChatRequest(
        wire_format=WireFormat.INFLECTION,
        path=STREAMING_PATH,
        body={**body, "stream": True},
        context=tuple(context),
        raw_call=raw_call,
        warnings=tuple(warnings),
    )
