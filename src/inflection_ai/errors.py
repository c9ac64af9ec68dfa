"""Exception hierarchy for the Inflection AI provider."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class InflectionError(Exception):
    """Base exception for all provider errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(InflectionError):
    """Configuration validation or resolution failed."""


class InternalError(InflectionError):
    """An internal error (bug) or invariant violation."""


class UnsupportedFunctionalityError(InflectionError):
    """The requested feature is not available for this model or at all.

    Raised before any network call is made.
    """

    def __init__(self, functionality: str, *, hint: str | None = None) -> None:
        super().__init__(functionality, hint=hint)
        self.functionality = functionality


class SchemaValidationError(InflectionError):
    """A vendor payload did not match the expected shape."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        value: object = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.value = value


class ToolCallArgumentsError(InflectionError):
    """Tool-call arguments sent by the vendor are not valid JSON."""

    def __init__(
        self,
        message: str,
        *,
        tool_call_id: str | None = None,
        tool_name: str | None = None,
        text: str = "",
    ) -> None:
        super().__init__(message)
        self.tool_call_id = tool_call_id
        self.tool_name = tool_name
        self.text = text


class NoSuchModelError(InflectionError):
    """The provider does not offer the requested model type."""

    def __init__(self, model_id: str, model_type: str) -> None:
        super().__init__(f"No such {model_type}: {model_id}")
        self.model_id = model_id
        self.model_type = model_type


class NoContentGeneratedError(InflectionError):
    """The model produced no usable object content."""


class RequestAbortedError(InflectionError):
    """The caller aborted the call before it was sent."""


class APIError(InflectionError):
    """API call failed.

    Carries structured HTTP metadata. ``retryable`` is informational only;
    nothing in this package retries on its own.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        retryable: bool | None = None,
        status_code: int | None = None,
        response_body: str | None = None,
        url: str | None = None,
        provider: str | None = None,
        phase: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.retryable = retryable
        self.status_code = status_code
        self.response_body = response_body
        self.url = url
        self.provider = provider
        self.phase = phase


class RateLimitError(APIError):
    """Rate limit exceeded (HTTP 429)."""


def _walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc* and its ``__cause__``/``__context__`` chain, with cycle protection."""
    seen: set[int] = set()
    stack: list[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur

        cause = cur.__cause__
        if isinstance(cause, BaseException):
            stack.append(cause)
        context = cur.__context__
        if isinstance(context, BaseException):
            stack.append(context)
