"""Structured extraction backed by the OpenAI chat-completions API.

Schemas reach this module only after the schema gate accepted them, so they
never carry ``additionalProperties``; the strict-mode closing of objects is
done here.
"""

import copy
import json
import logging
import os
from typing import Any, Optional

from openai import AsyncOpenAI, OpenAIError

from app.services.errors import ExtractionError

logger = logging.getLogger(__name__)

EXTRACT_MODEL = os.environ.get("EXTRACT_MODEL", "gpt-4o-mini")

# Keeps a single request inside the model's context window
MAX_INPUT_CHARS = 100_000

_SYSTEM_PROMPT = (
    "You extract structured data from web pages. "
    "Use only information present in the page. "
    "Respond with a single JSON object."
)

_client: Optional[AsyncOpenAI] = None


def _get_client() -> AsyncOpenAI:
    global _client
    if _client is None:
        if not os.environ.get("OPENAI_API_KEY"):
            raise ExtractionError("Extraction is not configured: OPENAI_API_KEY is not set.")
        _client = AsyncOpenAI()
    return _client


def to_strict_schema(schema: Any) -> Any:
    """Return a copy of *schema* in the provider's strict dialect.

    Every object with ``properties`` is closed (``additionalProperties:
    false``) and lists all of its properties as required.
    """
    if isinstance(schema, list):
        return [to_strict_schema(item) for item in schema]
    if not isinstance(schema, dict):
        return schema

    strict = {key: to_strict_schema(value) for key, value in schema.items() if key != "properties"}
    properties = schema.get("properties")
    if isinstance(properties, dict):
        strict["properties"] = {name: to_strict_schema(sub) for name, sub in properties.items()}
        strict["required"] = list(properties)
        strict["additionalProperties"] = False
    return strict


def _build_messages(html: str, prompt: Optional[str]) -> list:
    instructions = prompt or "Extract the information described by the schema."
    return [
        {"role": "system", "content": _SYSTEM_PROMPT},
        {
            "role": "user",
            "content": f"{instructions}\n\nPage HTML:\n{html[:MAX_INPUT_CHARS]}",
        },
    ]


async def extract_structured(
    html: str,
    *,
    schema: Optional[dict] = None,
    prompt: Optional[str] = None,
) -> Any:
    """Extract JSON from *html* following *schema* and/or *prompt*.

    Raises:
        ExtractionError: when the provider is unavailable, errors, or returns
            something that is not JSON.
    """
    if schema is not None:
        response_format = {
            "type": "json_schema",
            "json_schema": {
                "name": "extraction",
                "schema": to_strict_schema(copy.deepcopy(schema)),
                "strict": True,
            },
        }
    else:
        response_format = {"type": "json_object"}

    client = _get_client()
    try:
        completion = await client.chat.completions.create(
            model=EXTRACT_MODEL,
            messages=_build_messages(html, prompt),
            response_format=response_format,
        )
    except OpenAIError as exc:
        logger.warning("Extraction provider error: %s", exc)
        raise ExtractionError(f"Extraction provider error: {exc}") from exc

    content = completion.choices[0].message.content if completion.choices else None
    if not content:
        raise ExtractionError("Extraction provider returned an empty response.")
    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        raise ExtractionError("Extraction provider returned invalid JSON.") from exc
