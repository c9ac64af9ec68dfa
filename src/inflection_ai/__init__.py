"""Inflection AI chat-model adapter.

Public API:
    - create_inflection(): Provider factory; ``inflection`` is the default provider
    - InflectionChatLanguageModel: do_generate() and do_stream()
    - generate_object(): Validated JSON objects on top of do_generate()
    - Message and content parts: Normalized prompt input
    - CallOptions: Per-call parameters
"""

from __future__ import annotations

import logging

from inflection_ai.chat_model import InflectionChatLanguageModel
from inflection_ai.config import ChatSettings, ProviderSettings, UserMetadata
from inflection_ai.errors import (
    APIError,
    ConfigurationError,
    InflectionError,
    InternalError,
    NoContentGeneratedError,
    NoSuchModelError,
    RateLimitError,
    RequestAbortedError,
    SchemaValidationError,
    ToolCallArgumentsError,
    UnsupportedFunctionalityError,
)
from inflection_ai.generate_object import ObjectResult, generate_object
from inflection_ai.options import CallOptions
from inflection_ai.prompt import (
    FilePart,
    FunctionTool,
    ImagePart,
    Message,
    ProviderDefinedTool,
    TextPart,
    ToolCallPart,
    ToolResultPart,
)
from inflection_ai.provider import InflectionProvider, create_inflection, inflection
from inflection_ai.result import CallWarning, GenerateResult, StreamResult, ToolCall
from inflection_ai.tokens import Usage

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("inflection-ai-provider")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("inflection_ai").addHandler(logging.NullHandler())

__all__ = [
    "APIError",
    "CallOptions",
    "CallWarning",
    "ChatSettings",
    "ConfigurationError",
    "FilePart",
    "FunctionTool",
    "GenerateResult",
    "ImagePart",
    "InflectionChatLanguageModel",
    "InflectionError",
    "InflectionProvider",
    "InternalError",
    "Message",
    "NoContentGeneratedError",
    "NoSuchModelError",
    "ObjectResult",
    "ProviderDefinedTool",
    "ProviderSettings",
    "RateLimitError",
    "RequestAbortedError",
    "SchemaValidationError",
    "StreamResult",
    "TextPart",
    "ToolCall",
    "ToolCallArgumentsError",
    "ToolCallPart",
    "ToolResultPart",
    "UnsupportedFunctionalityError",
    "Usage",
    "UserMetadata",
    "create_inflection",
    "generate_object",
    "inflection",
]
