"""Configuration: model identifiers, per-model settings and call-time config."""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Literal

from dotenv import load_dotenv

from inflection_ai._http import DEFAULT_BASE_URL
from inflection_ai.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    import httpx

load_dotenv()

API_KEY_ENV_VAR = "INFLECTION_API_KEY"
BASE_URL_ENV_VAR = "INFLECTION_BASE_URL"

KnownChatModelId = Literal[
    "inflection_3_pi",
    "inflection_3_productivity",
    "inflection_3_with_tools",
]
# Unknown ids are passed through as the vendor ``config`` field.
ChatModelId = KnownChatModelId | str

#: The only model allowed to exchange tool calls and tool results.
TOOL_MODEL_ID: KnownChatModelId = "inflection_3_with_tools"


def supports_tools(model_id: str) -> bool:
    """Whether *model_id* may carry tool calls and tool results."""
    return model_id == TOOL_MODEL_ID


@dataclass(frozen=True)
class UserMetadata:
    """Optional user context forwarded to the vendor."""

    user_firstname: str | None = None
    user_timezone: str | None = None
    user_country: str | None = None
    user_region: str | None = None
    user_city: str | None = None

    def to_dict(self) -> dict[str, str]:
        return {k: v for k, v in self.__dict__.items() if v is not None}


@dataclass(frozen=True)
class ChatSettings:
    """Per-model settings that map onto vendor request fields."""

    #: Let the model search the web while answering.
    web_search: bool | None = None
    metadata: UserMetadata | None = None


@dataclass(frozen=True)
class ChatConfig:
    """Immutable construction state shared by every call of a chat model.

    Built once by the provider and never mutated.
    """

    provider: str
    base_url: str
    headers: Callable[[], Mapping[str, str | None]]
    http_client: httpx.AsyncClient | None = None
    timeout_s: float = 60.0

    def __post_init__(self) -> None:
        """Validate and normalize the base URL."""
        if not self.base_url or not self.base_url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"Invalid base_url: {self.base_url!r}",
                hint="Pass an absolute http(s) URL, e.g. the default inference endpoint.",
            )
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))
        if self.timeout_s <= 0:
            raise ConfigurationError(
                f"timeout_s must be > 0, got {self.timeout_s}",
                hint="This bounds each HTTP request in seconds.",
            )


@dataclass(frozen=True)
class ProviderSettings:
    """Provider construction options.

    ``api_key`` is resolved lazily, at call time, from the argument or the
    ``INFLECTION_API_KEY`` environment variable.

    Example:
        settings = ProviderSettings(base_url="https://example.test/api")
    """

    api_key: str | None = None
    #: Defaults to ``INFLECTION_BASE_URL`` or the public inference endpoint.
    base_url: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout_s: float = 60.0

    def __post_init__(self) -> None:
        """Resolve the base URL and freeze default headers."""
        if self.base_url is None:
            resolved = os.environ.get(BASE_URL_ENV_VAR) or DEFAULT_BASE_URL
            object.__setattr__(self, "base_url", resolved)
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    def load_api_key(self) -> str:
        """Return the API key or raise ConfigurationError when none is set."""
        key = self.api_key if self.api_key is not None else os.environ.get(API_KEY_ENV_VAR)
        if not key or not key.strip():
            raise ConfigurationError(
                "Inflection API key is missing",
                hint=f"Set {API_KEY_ENV_VAR} environment variable or pass api_key=...",
            )
        return key.strip()

    def request_headers(self) -> dict[str, Any]:
        """Authorization plus the caller's default headers."""
        return {
            "Authorization": f"Bearer {self.load_api_key()}",
            **self.headers,
        }

    def __str__(self) -> str:
        """Return a redacted, developer-friendly representation."""
        return (
            f"ProviderSettings(base_url={self.base_url!r}, "
            f"api_key={'[REDACTED]' if self.api_key else None})"
        )

    __repr__ = __str__


def combine_headers(*headers: Mapping[str, str | None] | None) -> dict[str, str]:
    """Merge header mappings left to right, dropping ``None`` values."""
    merged: dict[str, str | None] = {}
    for h in headers:
        if h:
            merged.update(h)
    return {k: v for k, v in merged.items() if v is not None}
