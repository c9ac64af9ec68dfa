"""HTTP-side error helpers.

Failed vendor responses and transport exceptions are mapped into APIError
with stable metadata so callers can decide about retries without substring
matching. Nothing here retries.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from inflection_ai._http import RETRYABLE_STATUS_CODES
from inflection_ai.config import API_KEY_ENV_VAR
from inflection_ai.errors import APIError, RateLimitError, _walk_exception_chain


class _ErrorDetail(BaseModel):
    message: str
    type: str | None = None
    code: str | int | None = None


class ErrorBody(BaseModel):
    """Vendor error body: ``{"error": {...}}`` or ``{"detail": ...}``."""

    error: _ErrorDetail | str | None = None
    detail: Any = None

    def message(self) -> str | None:
        if isinstance(self.error, _ErrorDetail):
            return self.error.message
        if isinstance(self.error, str) and self.error:
            return self.error
        if isinstance(self.detail, str) and self.detail:
            return self.detail
        if self.detail is not None:
            return json.dumps(self.detail)
        return None


def extract_status_code(exc: BaseException) -> int | None:
    """Walk the exception chain to find an HTTP status code."""
    for e in _walk_exception_chain(exc):
        for attr in ("status_code", "status"):
            value = getattr(e, attr, None)
            if isinstance(value, int) and 100 <= value <= 599:
                return value
        response = getattr(e, "response", None)
        value = getattr(response, "status_code", None)
        if isinstance(value, int) and 100 <= value <= 599:
            return value
    return None


def _auth_hint(status_code: int | None) -> str | None:
    if status_code in {401, 403}:
        return f"Check credentials/permissions (try setting {API_KEY_ENV_VAR} or api_key=...)."
    return None


def error_from_response(
    *,
    status_code: int,
    body: str,
    url: str,
    provider: str,
    phase: str,
) -> APIError:
    """Build an APIError for a non-2xx vendor response."""
    message: str | None = None
    try:
        message = ErrorBody.model_validate_json(body).message()
    except ValidationError:
        message = None
    if not message:
        message = body.strip() or None

    err_cls: type[APIError] = RateLimitError if status_code == 429 else APIError
    return err_cls(
        f"{provider} {phase} failed (status={status_code}): {message}"
        if message
        else f"{provider} {phase} failed (status={status_code})",
        hint=_auth_hint(status_code),
        retryable=status_code in RETRYABLE_STATUS_CODES,
        status_code=status_code,
        response_body=body,
        url=url,
        provider=provider,
        phase=phase,
    )


def wrap_transport_error(
    exc: BaseException,
    *,
    provider: str,
    phase: str,
    url: str | None = None,
) -> APIError:
    """Map an httpx (or other transport) exception into APIError."""
    if isinstance(exc, asyncio.CancelledError):
        raise exc

    # Already wrapped: fill in missing context only.
    if isinstance(exc, APIError):
        if exc.provider is None:
            exc.provider = provider
        if exc.phase is None:
            exc.phase = phase
        if exc.url is None:
            exc.url = url
        return exc

    status_code = extract_status_code(exc)
    retryable = isinstance(status_code, int) and status_code in RETRYABLE_STATUS_CODES
    if not retryable:
        for e in _walk_exception_chain(exc):
            if isinstance(e, httpx.TimeoutException | httpx.RequestError):
                retryable = True
                break

    err_cls: type[APIError] = RateLimitError if status_code == 429 else APIError
    status_note = f" (status={status_code})" if isinstance(status_code, int) else ""
    cause = str(exc) or type(exc).__name__
    return err_cls(
        f"{provider} {phase} failed{status_note}: {cause}",
        hint=_auth_hint(status_code),
        retryable=retryable,
        status_code=status_code,
        url=url,
        provider=provider,
        phase=phase,
    )
