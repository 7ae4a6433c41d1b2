"""Example payload selection and synthesis from JSON Schema.

When an OpenAPI operation carries no explicit example, the importer builds
one from the schema. :func:`synthesize` is a pure recursive walk with an
explicit depth counter: each nested schema is visited one level deeper and
the walk returns ``None`` once :data:`MAX_SCHEMA_DEPTH` is exceeded, so
recursive schemas always terminate.

Priority used for request bodies (:func:`example_for_media`):

1. the media object's ``example``;
2. the first entry of its ``examples`` map (its ``value`` unwrapped);
3. the schema's own ``example`` or ``default``;
4. a synthesised value.
"""

from __future__ import annotations

import json
from typing import Any

from reqtree.parser.resolver import resolve

MAX_SCHEMA_DEPTH = 6
"""Deepest nesting level :func:`synthesize` descends into."""

_SCALAR_DEFAULTS: dict[str, Any] = {
    "string": "",
    "integer": 0,
    "number": 0.0,
    "boolean": False,
}


def schema_type(schema: dict[str, Any]) -> str | None:
    """Return the schema's type, using the first non-null entry of 3.1 type arrays."""
    type_value = schema.get("type")
    if isinstance(type_value, list):
        non_null = [t for t in type_value if t != "null"]
        return non_null[0] if non_null else None
    return type_value if isinstance(type_value, str) else None


def synthesize(document: Any, schema: Any, depth: int = 0) -> Any:
    """Build a placeholder value shaped like *schema*.

    Rules, in order: ``enum`` -> first value; ``allOf``/``oneOf``/``anyOf``
    -> first variant; ``object`` or has ``properties`` -> mapping of
    per-property values; ``array`` -> one item; ``string`` -> ``""``;
    ``integer`` -> ``0``; ``number`` -> ``0.0``; ``boolean`` -> ``False``;
    anything else -> ``None``.

    Args:
        document: Root document used to resolve ``$ref`` pointers.
        schema: The (possibly referenced) schema.
        depth: Current nesting level.

    Example::

        >>> synthesize({}, {"type": "object", "properties": {
        ...     "id": {"type": "integer"}, "name": {"type": "string"}}})
        {'id': 0, 'name': ''}
    """
    if depth > MAX_SCHEMA_DEPTH:
        return None

    schema = resolve(document, schema)
    if not isinstance(schema, dict):
        return None

    enum_values = schema.get("enum")
    if isinstance(enum_values, list) and enum_values:
        return enum_values[0]

    for combinator in ("allOf", "oneOf", "anyOf"):
        variants = schema.get(combinator)
        if isinstance(variants, list) and variants:
            return synthesize(document, variants[0], depth + 1)

    kind = schema_type(schema)
    if kind == "object" or "properties" in schema:
        properties = schema.get("properties")
        if not isinstance(properties, dict):
            return {}
        return {
            name: synthesize(document, prop, depth + 1)
            for name, prop in properties.items()
        }

    if kind == "array":
        return [synthesize(document, schema.get("items"), depth + 1)]

    if kind in _SCALAR_DEFAULTS:
        return _SCALAR_DEFAULTS[kind]

    return None


def example_for_schema(document: Any, schema: Any) -> Any:
    """Return the schema's ``example``, else its ``default``, else a synthesised value."""
    resolved = resolve(document, schema)
    if isinstance(resolved, dict):
        if "example" in resolved:
            return resolved["example"]
        if "default" in resolved:
            return resolved["default"]
    return synthesize(document, resolved)


def _first_named_example(document: Any, examples: Any) -> tuple[bool, Any]:
    """Return ``(found, value)`` for the first entry of an ``examples`` map."""
    if not isinstance(examples, dict) or not examples:
        return False, None
    first = resolve(document, next(iter(examples.values())))
    if isinstance(first, dict) and "value" in first:
        return True, first["value"]
    return True, first


def example_for_media(document: Any, media: Any) -> tuple[bool, Any]:
    """Select the example for a media-type object.

    Returns:
        ``(found, value)``. *found* is ``False`` when the media object has no
        example, no ``examples`` and no schema to derive one from.
    """
    media = resolve(document, media)
    if not isinstance(media, dict):
        return False, None
    if "example" in media:
        return True, media["example"]
    found, value = _first_named_example(document, media.get("examples"))
    if found:
        return True, value
    if "schema" in media:
        return True, example_for_schema(document, media["schema"])
    return False, None


def example_for_parameter(document: Any, parameter: dict[str, Any]) -> Any:
    """Select the example value for a parameter object.

    Parameter-level ``example`` / ``examples`` win over the schema.
    """
    if "example" in parameter:
        return parameter["example"]
    found, value = _first_named_example(document, parameter.get("examples"))
    if found:
        return value
    if "schema" in parameter:
        return example_for_schema(document, parameter["schema"])
    return ""


def render_text(value: Any) -> str:
    """Render an example value as the text of a table row.

    Strings pass through, booleans become ``true``/``false``, ``None``
    becomes empty, and structured values are serialised as compact JSON.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False, default=str)
