"""Non-streaming response decoding and token estimation."""

from __future__ import annotations

from datetime import UTC, datetime

from hypothesis import given, settings
from hypothesis import strategies as st
import pytest

from inflection_ai.decode import decode_response, timestamp_from_created
from inflection_ai.errors import SchemaValidationError, ToolCallArgumentsError
from inflection_ai.tokens import Usage, estimate_prompt_tokens, estimate_tokens
from inflection_ai.wire import WireMessage

pytestmark = pytest.mark.unit

CONTEXT = (WireMessage(type="Human", text="Hello there"),)


def _call(call_id: str, name: str, arguments: str) -> dict[str, object]:
    return {"id": call_id, "type": "function", "function": {"name": name, "arguments": arguments}}


def test_text_response_decodes_with_stop_and_estimated_usage() -> None:
    decoded = decode_response({"created": 1714000000, "text": "Hi! How are you?"}, CONTEXT)

    assert decoded.text == "Hi! How are you?"
    assert decoded.tool_calls is None
    assert decoded.finish_reason == "stop"
    assert decoded.usage == Usage(prompt_tokens=3, completion_tokens=4)
    assert decoded.response.timestamp == datetime(2024, 4, 24, 23, 6, 40, tzinfo=UTC)


def test_tool_calls_are_decoded_and_finish_with_tool_calls() -> None:
    decoded = decode_response(
        {
            "created": 1714000000.5,
            "text": "",
            "tool_calls": [_call("c1", "get_weather", '{"city": "Paris"}')],
        },
        CONTEXT,
    )

    assert decoded.finish_reason == "tool-calls"
    assert decoded.tool_calls is not None
    (call,) = decoded.tool_calls
    assert (call.tool_call_id, call.tool_name, call.args) == ("c1", "get_weather", {"city": "Paris"})
    assert call.tool_call_type == "function"
    assert decoded.usage.completion_tokens == 0


@pytest.mark.parametrize("tool_calls", [None, []])
def test_null_or_empty_tool_calls_are_not_an_error(tool_calls) -> None:
    decoded = decode_response({"created": 1, "text": "ok", "tool_calls": tool_calls}, CONTEXT)

    assert decoded.tool_calls == []
    assert decoded.finish_reason == "stop"


def test_malformed_tool_arguments_fail_the_whole_response() -> None:
    payload = {
        "created": 1,
        "text": "",
        "tool_calls": [
            _call("good", "a", "{}"),
            _call("bad", "b", "{not json"),
        ],
    }

    with pytest.raises(ToolCallArgumentsError) as exc:
        decode_response(payload, CONTEXT)

    assert exc.value.tool_call_id == "bad"
    assert exc.value.tool_name == "b"
    assert exc.value.text == "{not json"


@pytest.mark.parametrize(
    "payload",
    [
        {"text": "missing created"},
        {"created": "1714000000", "text": "created as a string"},
        {"created": 1, "text": 42},
        {"created": 1},
        {"created": 1, "text": "x", "tool_calls": [{"id": "c1", "type": "function"}]},
        {"created": 1, "text": "x", "tool_calls": [_call("c1", "f", {"a": 1})]},  # type: ignore[arg-type]
        ["not", "an", "object"],
    ],
)
def test_schema_mismatch_raises_schema_validation_error(payload) -> None:
    with pytest.raises(SchemaValidationError) as exc:
        decode_response(payload, CONTEXT)

    assert exc.value.value == payload


def test_timestamp_from_created_is_utc_aware() -> None:
    stamp = timestamp_from_created(0)

    assert stamp.tzinfo is UTC
    assert stamp == datetime(1970, 1, 1, tzinfo=UTC)


@pytest.mark.parametrize("created", [1e20, -1e15, float("nan"), float("inf")])
def test_out_of_range_created_is_schema_validation_error(created) -> None:
    with pytest.raises(SchemaValidationError, match="Invalid created timestamp"):
        decode_response({"created": created, "text": "x"}, CONTEXT)


# --- Token estimation ---


@pytest.mark.parametrize(
    ("text", "tokens"),
    [("", 0), ("a", 1), ("abcd", 1), ("abcde", 2), ("x" * 8, 2), ("héllo", 2)],
)
def test_estimate_tokens_rounds_up_quarter_length(text, tokens) -> None:
    assert estimate_tokens(text) == tokens


def test_prompt_estimate_uses_concatenated_context_text() -> None:
    context = [WireMessage(type="Human", text="ab"), WireMessage(type="AI", text="cde")]

    # ceil(5 / 4), not ceil(2 / 4) + ceil(3 / 4)
    assert estimate_prompt_tokens(context) == 2


def test_usage_rejects_negative_counts() -> None:
    with pytest.raises(ValueError, match="must be >= 0"):
        Usage(prompt_tokens=-1)


def test_usage_total() -> None:
    assert Usage(prompt_tokens=3, completion_tokens=4).total_tokens == 7


@given(text=st.text())
@settings(max_examples=100, deadline=None, derandomize=True)
def test_estimate_is_monotonic_and_bounded(text) -> None:
    tokens = estimate_tokens(text)

    assert tokens * 4 >= len(text)
    assert (tokens - 1) * 4 < len(text) or tokens == 0
    assert estimate_tokens(text + "x") >= tokens
