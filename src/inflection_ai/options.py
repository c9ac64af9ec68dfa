"""Per-call options for ``do_generate()`` and ``do_stream()``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from inflection_ai.errors import ConfigurationError
from inflection_ai.prompt import FunctionTool, Message, ProviderDefinedTool

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Mapping

    from inflection_ai.prompt import Prompt, Tool


@dataclass(frozen=True)
class CallOptions:
    """Normalized prompt plus sampling parameters for one call."""

    prompt: Prompt
    max_tokens: int | None = None
    temperature: float | None = None
    top_p: float | None = None
    stop_sequences: tuple[str, ...] | None = None
    #: Not supported by the vendor; reported as a call warning.
    seed: int | None = None
    tools: tuple[Tool, ...] | None = None
    #: Extra headers merged over the provider headers. ``None`` drops a header.
    headers: Mapping[str, str | None] | None = None
    #: Set to stop the call; a stream stops yielding without a finish part.
    abort_signal: asyncio.Event | None = None

    def __post_init__(self) -> None:
        """Validate option shapes early for clear errors."""
        if isinstance(self.prompt, str) or not all(
            isinstance(m, Message) for m in self.prompt
        ):
            raise ConfigurationError(
                "prompt must be a sequence of Message objects",
                hint="Pass prompt=[Message(role='user', content='Hello')].",
            )
        object.__setattr__(self, "prompt", tuple(self.prompt))

        if self.max_tokens is not None and (
            not isinstance(self.max_tokens, int) or self.max_tokens <= 0
        ):
            raise ConfigurationError(
                "max_tokens must be a positive integer",
                hint="Pass max_tokens=1024 or leave it unset.",
            )
        if self.temperature is not None and self.temperature < 0:
            raise ConfigurationError(
                f"temperature must be >= 0, got {self.temperature}",
            )
        if self.top_p is not None and not 0 <= self.top_p <= 1:
            raise ConfigurationError(
                f"top_p must be within [0, 1], got {self.top_p}",
            )

        if self.stop_sequences is not None:
            if isinstance(self.stop_sequences, str):
                raise ConfigurationError(
                    "stop_sequences must be a list of strings",
                    hint="Pass stop_sequences=['\\n\\n'] rather than a bare string.",
                )
            object.__setattr__(self, "stop_sequences", tuple(self.stop_sequences))

        if self.tools is not None:
            tools = tuple(self.tools)
            for tool in tools:
                if not isinstance(tool, FunctionTool | ProviderDefinedTool):
                    raise ConfigurationError(
                        f"Unsupported tool declaration: {tool!r}",
                        hint="Declare tools with FunctionTool(name=..., parameters=...).",
                    )
            object.__setattr__(self, "tools", tools)
