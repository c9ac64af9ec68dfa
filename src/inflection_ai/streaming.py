"""Stream decoding: raw wire events to normalized stream parts.

Two layers:

- ``EventStreamParser`` deframes response lines into JSON parse results. It
  understands Server-Sent-Event ``data:`` fields and bare line-delimited
  JSON, which is what the vendor-native streaming endpoint sends.
- ``StreamDecoder`` turns parse results into stream parts. The wire format
  is fixed when the decoder is made (``make_stream_decoder``); each format
  has its own subclass sharing the token estimator, the running
  finish-reason/usage state and the error downgrade for bad chunks.

The decoder is single-pass and never reorders: the parts for one chunk are
returned before the next chunk is looked at, and ``finish()`` is called
once the wire stream is exhausted.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
import json
import logging
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import ValidationError

from inflection_ai.decode import decode_tool_arguments, timestamp_from_created
from inflection_ai.errors import (
    InternalError,
    SchemaValidationError,
    ToolCallArgumentsError,
)
from inflection_ai.request import WireFormat
from inflection_ai.result import (
    ErrorPart,
    FinishPart,
    ResponseMetadataPart,
    TextDeltaPart,
    ToolCallDeltaPart,
    ToolCallPart,
)
from inflection_ai.tokens import Usage, estimate_tokens
from inflection_ai.wire import OpenAIChunkPayload, StreamChunkPayload

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, AsyncIterable

    from inflection_ai.result import FinishReason, StreamPart
    from inflection_ai.wire import ToolCallDeltaPayload

logger = logging.getLogger(__name__)

_SSE_FIELDS = frozenset({"data", "event", "id", "retry"})
_DONE = "[DONE]"


# --- Deframing ---


@dataclass(frozen=True)
class ParseResult:
    """One deframed event: a parsed JSON value or the reason it failed."""

    success: bool
    value: Any = None
    error: Exception | None = None
    raw_value: str | None = None


def parse_json_event(text: str) -> ParseResult:
    """Parse one event payload; failures become unsuccessful results."""
    try:
        return ParseResult(success=True, value=json.loads(text), raw_value=text)
    except json.JSONDecodeError as e:
        error = SchemaValidationError(f"Invalid JSON in stream event: {e}", value=text)
        error.__cause__ = e
        return ParseResult(success=False, error=error, raw_value=text)


class EventStreamParser:
    """Incremental line deframer for event-stream and JSON-lines bodies.

    ``data:`` lines accumulate until a blank line ends the event. A line that
    is not an SSE field is a complete JSON document on its own.
    """

    def __init__(self) -> None:
        self._data: list[str] = []

    def feed_line(self, line: str) -> list[ParseResult]:
        line = line.rstrip("\r\n")
        if not line:
            return self.flush()
        if line.startswith(":"):
            return []

        field, sep, value = line.partition(":")
        if sep and field in _SSE_FIELDS:
            if field == "data":
                self._data.append(value[1:] if value.startswith(" ") else value)
            return []

        return [*self.flush(), *self._event(line)]

    def flush(self) -> list[ParseResult]:
        """Dispatch any buffered ``data:`` lines as one event."""
        if not self._data:
            return []
        text = "\n".join(self._data)
        self._data = []
        return self._event(text)

    @staticmethod
    def _event(text: str) -> list[ParseResult]:
        if text.strip() == _DONE:
            return []
        return [parse_json_event(text)]


async def parse_event_stream(lines: AsyncIterable[str]) -> AsyncGenerator[ParseResult, None]:
    """Yield parse results for an async stream of response lines."""
    parser = EventStreamParser()
    async for line in lines:
        for result in parser.feed_line(line):
            yield result
    for result in parser.flush():
        yield result


# --- Decoding ---


def map_finish_reason(finish_reason: str) -> FinishReason | str:
    """Map an OpenAI-compatible finish reason to the normalized vocabulary."""
    if finish_reason == "tool_calls":
        return "tool-calls"
    if finish_reason == "content-filter":
        return "content-filter"
    return finish_reason


class StreamDecoder(ABC):
    """Base decoder. Subclasses implement ``_decode_value`` for one format."""

    wire_format: ClassVar[WireFormat]

    def __init__(self, *, prompt_tokens: int) -> None:
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = 0
        self.finish_reason: FinishReason | str = "stop"
        self._finished = False

    def feed(self, result: ParseResult) -> list[StreamPart]:
        """Decode one wire event.

        Failures of the event itself are returned as an error part; the
        stream goes on.
        """
        if self._finished:
            raise InternalError("Stream decoder fed after finish()")
        if not result.success:
            error = result.error or SchemaValidationError("Unparseable stream event")
            logger.warning("Dropping unparseable stream event: %s", error)
            return [ErrorPart(error=error)]
        try:
            return self._decode_value(result.value)
        except ValidationError as e:
            error = SchemaValidationError(
                f"Failed to parse {self.wire_format.value} stream chunk: {e}",
                value=result.value,
            )
            error.__cause__ = e
        except SchemaValidationError as e:
            error = e
        logger.warning("Dropping invalid stream chunk: %s", error)
        return [ErrorPart(error=error)]

    def finish(self) -> FinishPart:
        """Return the terminal part. Call once, after the last chunk."""
        if self._finished:
            raise InternalError("Stream decoder finished twice")
        self._finished = True
        return FinishPart(
            finish_reason=self.finish_reason,
            usage=Usage(
                prompt_tokens=self.prompt_tokens,
                completion_tokens=self.completion_tokens,
            ),
        )

    def _text_delta(self, text: str) -> TextDeltaPart:
        self.completion_tokens += estimate_tokens(text)
        return TextDeltaPart(text_delta=text)

    @abstractmethod
    def _decode_value(self, value: Any) -> list[StreamPart]:
        """Decode one parsed chunk into parts, updating the running state."""


class InflectionStreamDecoder(StreamDecoder):
    """Vendor-native chunks: ``{created, idx, text, tool_calls?}``.

    Tool calls arrive whole. One with malformed arguments becomes an error
    part and does not stop the stream.
    """

    wire_format = WireFormat.INFLECTION

    def _decode_value(self, value: Any) -> list[StreamPart]:
        chunk = StreamChunkPayload.model_validate(value)
        parts: list[StreamPart] = []

        if chunk.idx == 0:
            parts.append(
                ResponseMetadataPart(timestamp=timestamp_from_created(chunk.created))
            )

        if chunk.text:
            parts.append(self._text_delta(chunk.text))

        for call in chunk.tool_calls:
            try:
                args = decode_tool_arguments(call)
            except ToolCallArgumentsError as e:
                logger.warning("Failed to process tool call %s: %s", call.id, e)
                parts.append(ErrorPart(error=e))
                continue
            parts.append(
                ToolCallPart(
                    tool_call_id=call.id, tool_name=call.function.name, args=args
                )
            )

        if chunk.tool_calls:
            self.finish_reason = "tool-calls"
        return parts


@dataclass
class _PendingToolCall:
    tool_call_id: str
    tool_name: str
    arguments: str = ""
    complete: bool = False


class OpenAIStreamDecoder(StreamDecoder):
    """OpenAI-compatible ``chat.completion.chunk`` deltas.

    Tool-call arguments arrive as fragments keyed by the entry ``index`` (or
    ``id``). Every fragment is forwarded as a delta part; once the
    accumulated text parses as JSON a single tool-call part follows. Parse
    failures on incomplete fragments are expected and stay silent.
    """

    wire_format = WireFormat.OPENAI

    def __init__(self, *, prompt_tokens: int) -> None:
        super().__init__(prompt_tokens=prompt_tokens)
        self._tool_calls: dict[int | str, _PendingToolCall] = {}

    def _decode_value(self, value: Any) -> list[StreamPart]:
        chunk = OpenAIChunkPayload.model_validate(value)
        if not chunk.choices:
            return []
        choice = chunk.choices[0]
        delta = choice.delta
        entries = delta.tool_calls or []

        # Resolve every entry before touching state so a bad chunk is dropped whole.
        pending = self._resolve(entries)

        parts: list[StreamPart] = []
        if delta.content:
            parts.append(self._text_delta(delta.content))

        for call, entry in zip(pending, entries, strict=True):
            fragment = entry.function.arguments
            parts.append(
                ToolCallDeltaPart(
                    tool_call_id=call.tool_call_id,
                    tool_name=call.tool_name,
                    args_text_delta=fragment,
                )
            )
            call.arguments += fragment
            if call.complete:
                continue
            try:
                args = json.loads(call.arguments)
            except json.JSONDecodeError:
                logger.debug(
                    "Tool call %s arguments incomplete (%d chars)",
                    call.tool_call_id,
                    len(call.arguments),
                )
                continue
            call.complete = True
            parts.append(
                ToolCallPart(
                    tool_call_id=call.tool_call_id,
                    tool_name=call.tool_name,
                    args=args,
                )
            )

        if entries:
            self.finish_reason = "tool-calls"
        if choice.finish_reason:
            self.finish_reason = map_finish_reason(choice.finish_reason)
        return parts

    def _resolve(
        self, entries: list[ToolCallDeltaPayload]
    ) -> list[_PendingToolCall]:
        """Match each entry to its call, registering new calls on success only.

        Calls started earlier in the same chunk are visible to later entries.
        """
        started: dict[int | str, _PendingToolCall] = {}
        resolved: list[_PendingToolCall] = []
        for entry in entries:
            key: int | str
            if entry.index is not None:
                key = entry.index
            elif entry.id is not None:
                key = entry.id
            else:
                raise SchemaValidationError(
                    "Tool call delta has neither an index nor an id",
                    value=entry.model_dump(),
                )

            call = started.get(key) or self._tool_calls.get(key)
            if call is None:
                if entry.id is None or entry.function.name is None:
                    raise SchemaValidationError(
                        "Tool call delta starts without an id and function name",
                        value=entry.model_dump(),
                    )
                call = _PendingToolCall(
                    tool_call_id=entry.id, tool_name=entry.function.name
                )
                started[key] = call
            resolved.append(call)

        self._tool_calls.update(started)
        return resolved


_DECODERS: dict[WireFormat, type[StreamDecoder]] = {
    WireFormat.INFLECTION: InflectionStreamDecoder,
    WireFormat.OPENAI: OpenAIStreamDecoder,
}


def make_stream_decoder(wire_format: WireFormat, *, prompt_tokens: int) -> StreamDecoder:
    """Return a fresh decoder for *wire_format*."""
    return _DECODERS[wire_format](prompt_tokens=prompt_tokens)


async def decode_stream(
    events: AsyncIterable[ParseResult], decoder: StreamDecoder
) -> AsyncGenerator[StreamPart, None]:
    """Transform parse results into stream parts, ending with one finish part.

    Production is driven by the consumer: the next event is read only after
    the parts of the previous one were taken.
    """
    async for event in events:
        for part in decoder.feed(event):
            yield part
    yield decoder.finish()
