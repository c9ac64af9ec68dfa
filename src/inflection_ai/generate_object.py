"""Generate a validated object by prompting for JSON and parsing the text.

This helper only calls ``do_generate``; the chat model knows nothing about
object generation.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import json
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, TypeAdapter, ValidationError

from inflection_ai.chat_model import InflectionChatLanguageModel
from inflection_ai.errors import ConfigurationError, NoContentGeneratedError
from inflection_ai.options import CallOptions
from inflection_ai.prompt import Message

if TYPE_CHECKING:
    from collections.abc import Sequence

    from inflection_ai.prompt import Prompt
    from inflection_ai.result import ResponseMetadata
    from inflection_ai.tokens import Usage

OutputStrategy = Literal["object", "array", "enum", "no-schema"]

_JSON_ONLY = "Do not include any explanatory text, only output valid JSON."


@dataclass(frozen=True)
class ObjectResult:
    """A parsed, validated object plus the call's metadata."""

    object: Any
    response: ResponseMetadata
    usage: Usage


def _system_instruction(
    output: OutputStrategy,
    schema: type[BaseModel] | None,
    enum_values: Sequence[str] | None,
) -> str:
    json_schema = json.dumps(schema.model_json_schema()) if schema else None
    match output:
        case "object":
            if json_schema:
                return (
                    "You must respond with a valid JSON object that strictly conforms "
                    f"to this schema: {json_schema}. {_JSON_ONLY}"
                )
            return f"You must respond with a valid JSON object. {_JSON_ONLY}"
        case "array":
            if json_schema:
                return (
                    "You must respond with a JSON array where each element strictly "
                    f"conforms to this schema: {json_schema}. {_JSON_ONLY}"
                )
            return f"You must respond with a JSON array. {_JSON_ONLY}"
        case "enum":
            valid = ", ".join(enum_values or ())
            return (
                f"You must respond with exactly one of these values: {valid}. "
                "Do not include any explanatory text or quotes, only output the exact value."
            )
        case "no-schema":
            return f"You must respond with valid JSON. {_JSON_ONLY}"
    raise ConfigurationError(
        f"Unknown output strategy: {output!r}",
        hint="Use one of: 'object', 'array', 'enum', 'no-schema'.",
    )


def _validate(
    value: Any,
    output: OutputStrategy,
    schema: type[BaseModel] | None,
    enum_values: Sequence[str] | None,
) -> Any:
    if schema is not None:
        try:
            if output == "array":
                value = TypeAdapter(list[schema]).validate_python(value)  # type: ignore[valid-type]
            else:
                value = schema.model_validate(value)
        except ValidationError as e:
            raise NoContentGeneratedError(f"Schema validation failed: {e}") from e

    if output == "enum" and value not in (enum_values or ()):
        raise NoContentGeneratedError(
            f"Invalid enum value: {value!r}",
            hint=f"Expected one of: {', '.join(enum_values or ())}.",
        )
    return value


async def generate_object(
    model: InflectionChatLanguageModel,
    prompt: Prompt,
    *,
    output: OutputStrategy = "object",
    schema: type[BaseModel] | None = None,
    enum: Sequence[str] | None = None,
    max_tokens: int | None = None,
    temperature: float | None = None,
    top_p: float | None = None,
    stop_sequences: Sequence[str] | None = None,
) -> ObjectResult:
    """Ask the model for JSON and return the validated value.

    Args:
        model: An Inflection chat model.
        prompt: Conversation to answer; a system instruction is prepended.
        output: ``"object"``/``"array"`` need ``schema``; ``"enum"`` needs ``enum``.
        schema: Pydantic model the object (or each array element) must match.
        enum: Allowed values for ``output="enum"``.

    Raises:
        ConfigurationError: Invalid model or strategy arguments.
        NoContentGeneratedError: Empty text, unparseable JSON, failed
            validation, or any failure of the underlying call.
    """
    if not isinstance(model, InflectionChatLanguageModel):
        raise ConfigurationError(
            "Model must be an Inflection AI model",
            hint="Create one with create_inflection()(model_id).",
        )
    if output == "enum" and not enum:
        raise ConfigurationError(
            "Enum values must be provided when using enum output strategy"
        )
    if output in ("object", "array") and schema is None:
        raise ConfigurationError(
            "Schema must be provided when using object or array output strategy"
        )

    full_prompt = [
        Message(role="system", content=_system_instruction(output, schema, enum)),
        *prompt,
    ]

    try:
        response = await model.do_generate(
            CallOptions(
                prompt=full_prompt,
                max_tokens=max_tokens,
                temperature=temperature,
                top_p=top_p,
                stop_sequences=tuple(stop_sequences) if stop_sequences else None,
            )
        )

        if not response.text:
            raise NoContentGeneratedError("No content was generated")

        parsed: Any
        if output == "enum":
            parsed = response.text.strip()
        else:
            try:
                parsed = json.loads(response.text)
            except json.JSONDecodeError as e:
                raise NoContentGeneratedError(f"Failed to parse JSON: {e}") from e

        return ObjectResult(
            object=_validate(parsed, output, schema, enum),
            response=response.response,
            usage=response.usage,
        )
    except asyncio.CancelledError:
        raise
    except NoContentGeneratedError:
        raise
    except Exception as e:
        raise NoContentGeneratedError(str(e) or type(e).__name__) from e
