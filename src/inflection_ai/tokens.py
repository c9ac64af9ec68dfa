"""Token estimation.

The vendor reports no token counts, so usage is estimated at a fixed four
characters per token, rounded up. Length is measured in code points.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from inflection_ai.wire import WireMessage

CHARS_PER_TOKEN = 4


@dataclass(frozen=True)
class Usage:
    """Estimated token usage for one call."""

    prompt_tokens: int = 0
    completion_tokens: int = 0

    def __post_init__(self) -> None:
        """Reject negative counts."""
        if self.prompt_tokens < 0 or self.completion_tokens < 0:
            raise ValueError(
                f"token counts must be >= 0, got {self.prompt_tokens}/{self.completion_tokens}"
            )

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


def estimate_tokens(text: str) -> int:
    """Return ``ceil(len(text) / 4)``; empty text costs nothing."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def estimate_prompt_tokens(context: Iterable[WireMessage]) -> int:
    """Estimate prompt tokens from the concatenated text of the wire context."""
    return estimate_tokens("".join(m.text for m in context))
