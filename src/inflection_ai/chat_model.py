"""Inflection chat language model: ``do_generate`` and ``do_stream``."""

from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack
import json
import logging
from typing import TYPE_CHECKING, Any

import httpx

from inflection_ai._errors import error_from_response, wrap_transport_error
from inflection_ai.config import ChatSettings, combine_headers, supports_tools
from inflection_ai.decode import decode_response
from inflection_ai.errors import (
    InflectionError,
    RequestAbortedError,
    SchemaValidationError,
)
from inflection_ai.request import build_generate_request, build_stream_request
from inflection_ai.result import GenerateResult, RawResponse, StreamResult
from inflection_ai.streaming import decode_stream, make_stream_decoder, parse_event_stream
from inflection_ai.tokens import estimate_prompt_tokens

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from inflection_ai.config import ChatConfig
    from inflection_ai.options import CallOptions
    from inflection_ai.request import ChatRequest
    from inflection_ai.result import StreamPart
    from inflection_ai.streaming import StreamDecoder

logger = logging.getLogger(__name__)


class InflectionChatLanguageModel:
    """Chat model bound to one model id, its settings and the provider config."""

    specification_version = "v1"
    default_object_generation_mode = "json"
    supports_image_urls = False

    def __init__(
        self,
        model_id: str,
        settings: ChatSettings | None,
        config: ChatConfig,
    ) -> None:
        """Bind a model id to settings and immutable provider config."""
        self.model_id = model_id
        self.settings = settings or ChatSettings()
        self._config = config

    @property
    def provider(self) -> str:
        return self._config.provider

    @property
    def supports_tools(self) -> bool:
        return supports_tools(self.model_id)

    def __repr__(self) -> str:
        return f"InflectionChatLanguageModel(model_id={self.model_id!r}, provider={self.provider!r})"

    # --- Transport ---

    def _url(self, request: ChatRequest) -> str:
        return f"{self._config.base_url}{request.path}"

    def _headers(self, options: CallOptions) -> dict[str, str]:
        return combine_headers(self._config.headers(), options.headers)

    async def _open_client(self, stack: AsyncExitStack) -> httpx.AsyncClient:
        """Return the injected client, or one owned by *stack*."""
        if self._config.http_client is not None:
            return self._config.http_client
        return await stack.enter_async_context(
            httpx.AsyncClient(timeout=self._config.timeout_s)
        )

    @staticmethod
    def _check_aborted(options: CallOptions) -> None:
        if options.abort_signal is not None and options.abort_signal.is_set():
            raise RequestAbortedError("Request aborted before it was sent")

    async def _post(
        self,
        client: httpx.AsyncClient,
        request: ChatRequest,
        options: CallOptions,
        *,
        phase: str,
    ) -> httpx.Response:
        url = self._url(request)
        self._check_aborted(options)
        logger.debug(
            "POST %s model=%s format=%s messages=%d",
            url,
            self.model_id,
            request.wire_format.value,
            len(request.context),
        )
        try:
            http_request = client.build_request(
                "POST", url, json=request.body, headers=self._headers(options)
            )
            response = await client.send(http_request, stream=request.stream)
        except asyncio.CancelledError:
            raise
        except InflectionError:
            raise
        except Exception as e:
            raise wrap_transport_error(
                e, provider=self.provider, phase=phase, url=url
            ) from e

        if response.is_error:
            body = (await response.aread()).decode("utf-8", errors="replace")
            await response.aclose()
            raise error_from_response(
                status_code=response.status_code,
                body=body,
                url=url,
                provider=self.provider,
                phase=phase,
            )
        return response

    # --- Calls ---

    async def do_generate(self, options: CallOptions) -> GenerateResult:
        """Run a non-streaming call.

        Raises:
            UnsupportedFunctionalityError: Unsupported tools or content.
            APIError: The HTTP call failed.
            SchemaValidationError: The response did not match the vendor shape.
            ToolCallArgumentsError: A returned tool call had non-JSON arguments.
        """
        request = build_generate_request(options, self.model_id, self.settings)

        async with AsyncExitStack() as stack:
            client = await self._open_client(stack)
            response = await self._post(client, request, options, phase="generate")
            try:
                value: Any = response.json()
            except json.JSONDecodeError as e:
                raise SchemaValidationError(
                    f"Inflection response is not JSON: {e}", value=response.text
                ) from e

        decoded = decode_response(value, request.context)
        return GenerateResult(
            text=decoded.text,
            finish_reason=decoded.finish_reason,
            usage=decoded.usage,
            tool_calls=decoded.tool_calls,
            raw_call=request.raw_call,
            raw_response=RawResponse(headers=dict(response.headers)),
            request_body=request.body_json(),
            response=decoded.response,
            warnings=request.warnings,
        )

    async def do_stream(self, options: CallOptions) -> StreamResult:
        """Start a streaming call.

        The HTTP request is sent before this returns, so request-time
        failures raise here. Per-chunk failures arrive as error parts.
        """
        request = build_stream_request(options, self.model_id, self.settings)

        stack = AsyncExitStack()
        try:
            client = await self._open_client(stack)
            response = await self._post(client, request, options, phase="stream")
        except BaseException:
            await stack.aclose()
            raise
        stack.push_async_callback(response.aclose)

        decoder = make_stream_decoder(
            request.wire_format,
            prompt_tokens=estimate_prompt_tokens(request.context),
        )
        return StreamResult(
            stream=self._iter_parts(response, decoder, stack, options),
            raw_call=request.raw_call,
            raw_response=RawResponse(headers=dict(response.headers)),
            request_body=request.body_json(),
            warnings=request.warnings,
        )

    async def _iter_parts(
        self,
        response: httpx.Response,
        decoder: StreamDecoder,
        stack: AsyncExitStack,
        options: CallOptions,
    ) -> AsyncIterator[StreamPart]:
        abort = options.abort_signal
        try:
            parts = decode_stream(parse_event_stream(response.aiter_lines()), decoder)
            try:
                async for part in parts:
                    if abort is not None and abort.is_set():
                        logger.debug("Stream aborted by caller")
                        return
                    yield part
            except httpx.HTTPError as e:
                raise wrap_transport_error(
                    e, provider=self.provider, phase="stream", url=str(response.url)
                ) from e
            finally:
                await parts.aclose()
        finally:
            await stack.aclose()

