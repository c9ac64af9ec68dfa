"""Request bodies, endpoint selection and call warnings."""

from __future__ import annotations

import json

import pytest

from inflection_ai.config import ChatSettings, UserMetadata
from inflection_ai.errors import UnsupportedFunctionalityError
from inflection_ai.options import CallOptions
from inflection_ai.prompt import FunctionTool, Message, ProviderDefinedTool, TextPart
from inflection_ai.request import (
    WireFormat,
    build_generate_request,
    build_stream_request,
    use_alternate_endpoint,
)

pytestmark = pytest.mark.unit

TOOLS_MODEL = "inflection_3_with_tools"

WEATHER = FunctionTool(
    name="get_weather",
    description="Look up the weather",
    parameters={
        "type": "object",
        "properties": {"city": {"type": "string"}},
        "required": ["city"],
        "additionalProperties": False,
    },
)


def _options(**kwargs) -> CallOptions:
    kwargs.setdefault("prompt", [Message(role="user", content=[TextPart("Hello")])])
    return CallOptions(**kwargs)


def test_minimal_generate_body() -> None:
    request = build_generate_request(_options(), "inflection_3_pi", ChatSettings())

    assert request.wire_format is WireFormat.INFLECTION
    assert request.path == ""
    assert request.stream is False
    assert request.body == {
        "config": "inflection_3_pi",
        "context": [{"type": "Human", "text": "Hello"}],
    }


def test_sampling_parameters_and_settings_are_forwarded() -> None:
    settings = ChatSettings(
        web_search=True,
        metadata=UserMetadata(user_firstname="Ada", user_timezone="Europe/London"),
    )
    options = _options(
        max_tokens=256, temperature=0.2, top_p=0.9, stop_sequences=["\n\n"]
    )

    body = build_generate_request(options, "inflection_3_productivity", settings).body

    assert body["max_tokens"] == 256
    assert body["temperature"] == 0.2
    assert body["top_p"] == 0.9
    assert body["stop_tokens"] == ["\n\n"]
    assert body["web_search"] is True
    assert body["metadata"] == {"user_firstname": "Ada", "user_timezone": "Europe/London"}


def test_unknown_model_id_passes_through_as_config() -> None:
    body = build_generate_request(_options(), "inflection_4_preview", ChatSettings()).body

    assert body["config"] == "inflection_4_preview"


def test_raw_call_splits_context_from_settings() -> None:
    request = build_generate_request(_options(temperature=0.5), "inflection_3_pi", ChatSettings())

    assert request.raw_call.raw_prompt == [{"type": "Human", "text": "Hello"}]
    assert request.raw_call.raw_settings == {"config": "inflection_3_pi", "temperature": 0.5}
    assert json.loads(request.body_json()) == request.body


def test_vendor_tool_declaration_shape() -> None:
    body = build_generate_request(_options(tools=[WEATHER]), TOOLS_MODEL, ChatSettings()).body

    assert body["tools"] == [
        {
            "type": "function",
            "function": {
                "name": "get_weather",
                "description": "Look up the weather",
                "parameters": {
                    "type": "object",
                    "properties": {"city": {"type": "string"}},
                    "required": ["city"],
                },
            },
        }
    ]


def test_tools_on_non_tool_model_fail_before_conversion() -> None:
    with pytest.raises(UnsupportedFunctionalityError, match="inflection_3_with_tools"):
        build_stream_request(_options(tools=[WEATHER]), "inflection_3_pi", ChatSettings())


def test_seed_and_provider_defined_tools_become_warnings() -> None:
    browser = ProviderDefinedTool(id="other.browser", name="browser")
    request = build_generate_request(
        _options(seed=7, tools=[WEATHER, browser]), TOOLS_MODEL, ChatSettings()
    )

    assert "seed" not in request.body
    assert [t["function"]["name"] for t in request.body["tools"]] == ["get_weather"]
    assert [(w.type, w.setting, w.tool) for w in request.warnings] == [
        ("unsupported-setting", "seed", None),
        ("unsupported-tool", None, browser),
    ]


def test_only_provider_defined_tools_send_no_tools_key() -> None:
    browser = ProviderDefinedTool(id="other.browser", name="browser")
    request = build_generate_request(_options(tools=[browser]), TOOLS_MODEL, ChatSettings())

    assert "tools" not in request.body


# --- Streaming endpoint selection ---


def test_plain_stream_uses_vendor_streaming_endpoint() -> None:
    request = build_stream_request(_options(max_tokens=10), "inflection_3_pi", ChatSettings())

    assert request.wire_format is WireFormat.INFLECTION
    assert request.path == "/streaming"
    assert request.stream is True
    assert request.body["stream"] is True
    assert request.body["max_tokens"] == 10
    assert request.body["context"] == [{"type": "Human", "text": "Hello"}]


def test_tool_model_without_tools_streams_vendor_native() -> None:
    request = build_stream_request(_options(), TOOLS_MODEL, ChatSettings())

    assert request.wire_format is WireFormat.INFLECTION
    assert request.path == "/streaming"


def test_tool_stream_uses_openai_compatible_endpoint() -> None:
    request = build_stream_request(_options(tools=[WEATHER]), TOOLS_MODEL, ChatSettings())

    assert request.wire_format is WireFormat.OPENAI
    assert request.path == "/openai/v1/chat/completions"
    assert request.body == {
        "model": TOOLS_MODEL,
        "stream": True,
        "messages": [{"role": "user", "content": "Hello"}],
        "tools": [
            {
                "type": "function",
                "function": {
                    "name": "get_weather",
                    "description": "Look up the weather",
                    "parameters": WEATHER.parameters,
                },
            }
        ],
    }
    # Prompt tokens are still estimated from the vendor context.
    assert [m.text for m in request.context] == ["Hello"]


@pytest.mark.parametrize(
    ("model_id", "tools", "expected"),
    [
        (TOOLS_MODEL, (WEATHER,), True),
        (TOOLS_MODEL, (), False),
        (TOOLS_MODEL, None, False),
        ("inflection_3_pi", (WEATHER,), False),
    ],
)
def test_use_alternate_endpoint(model_id, tools, expected) -> None:
    assert use_alternate_endpoint(model_id, tools) is expected


def test_request_building_is_pure() -> None:
    options = _options(temperature=0.1)

    first = build_stream_request(options, "inflection_3_pi", ChatSettings())
    second = build_stream_request(options, "inflection_3_pi", ChatSettings())

    assert first.body == second.body
    assert "stream" not in build_generate_request(options, "inflection_3_pi", ChatSettings()).body
