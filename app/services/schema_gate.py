"""Pre-flight validation of caller-supplied extraction schemas.

The extraction backend runs the provider in strict structured-output mode,
which owns the ``additionalProperties`` keyword itself.  A schema that
declares it anywhere (``true`` *or* ``false``) is rejected here, before any
retrieval engine is started for the request.
"""

from typing import Any, Iterable, Iterator, Optional, Tuple

from app.services.errors import SchemaValidationError

_FORBIDDEN_KEY = "additionalProperties"

# name -> subschema mappings (keys are property names, not keywords)
_SCHEMA_MAP_KEYS = ("properties", "patternProperties", "$defs", "definitions")

# keywords holding a single subschema
_SCHEMA_KEYS = ("items", "additionalItems", "contains", "not", "if", "then", "else")

# keywords holding a list of subschemas
_SCHEMA_LIST_KEYS = ("prefixItems", "oneOf", "anyOf", "allOf")


def _iter_subschemas(node: dict, path: str) -> Iterator[Tuple[str, Any]]:
    """Yield ``(path, child)`` for every subschema directly under *node*."""
    for key in _SCHEMA_MAP_KEYS:
        children = node.get(key)
        if isinstance(children, dict):
            for name, child in children.items():
                yield f"{path}.{key}.{name}", child

    for key in _SCHEMA_KEYS:
        child = node.get(key)
        if isinstance(child, dict):
            yield f"{path}.{key}", child
        elif isinstance(child, list):
            # draft-04 tuple form of "items"
            for index, item in enumerate(child):
                yield f"{path}.{key}[{index}]", item

    for key in _SCHEMA_LIST_KEYS:
        children = node.get(key)
        if isinstance(children, list):
            for index, child in enumerate(children):
                yield f"{path}.{key}[{index}]", child


def find_additional_properties(schema: Any, path: str = "$") -> Optional[str]:
    """Return the JSON path of the first node declaring ``additionalProperties``.

    Walks depth-first through object properties, array items, combinator
    branches and definitions.  Returns ``None`` when the key appears nowhere.
    """
    if not isinstance(schema, dict):
        return None
    if _FORBIDDEN_KEY in schema:
        return path
    for child_path, child in _iter_subschemas(schema, path):
        found = find_additional_properties(child, child_path)
        if found is not None:
            return found
    return None


def validate_schema(schema: Any) -> None:
    """Raise :class:`SchemaValidationError` if *schema* cannot be used for extraction."""
    if not isinstance(schema, dict):
        raise SchemaValidationError("Extraction schema must be a JSON object.")

    offending = find_additional_properties(schema)
    if offending is not None:
        raise SchemaValidationError(
            f"The '{_FORBIDDEN_KEY}' keyword is not supported in extraction schemas "
            f"(found at {offending}): OpenAI structured outputs run in strict mode, "
            f"which rejects '{_FORBIDDEN_KEY}' whether it is true or false. "
            "Remove it from the schema and try again."
        )


def validate_format_schemas(formats: Iterable[Any]) -> None:
    """Run :func:`validate_schema` on every schema-bearing format, in order."""
    for fmt in formats:
        schema = getattr(fmt, "json_schema", None)
        if schema is not None:
            validate_schema(schema)
