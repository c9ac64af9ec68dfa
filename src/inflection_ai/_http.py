"""Small HTTP-related constants shared across the provider.

This module is intentionally tiny to avoid circular imports and drift.
"""

from __future__ import annotations

# Status codes reported as retryable on APIError.
RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({408, 409, 429, 500, 502, 503, 504})

DEFAULT_BASE_URL = "https://layercake.pubwestus3.inf7ks8.com/external/api/inference"
STREAMING_PATH = "/streaming"
OPENAI_CHAT_COMPLETIONS_PATH = "/openai/v1/chat/completions"
