"""Resolve ``$ref`` JSON Reference pointers on demand.

OpenAPI documents use ``$ref`` pointers (e.g.
``{"$ref": "#/components/schemas/Pet"}``) to avoid repetition. Instead of
inlining the whole document up front, the importer resolves references
lazily, one value at a time, with :func:`resolve`.

Resolution never raises. Chained references are followed up to
:data:`MAX_REF_DEPTH` hops; a reference that is external, points nowhere, or
is still a reference once the depth is exhausted is returned as the ``$ref``
object itself. A self-referencing schema therefore terminates after a fixed
number of hops instead of looping.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)

MAX_REF_DEPTH = 8
"""Maximum number of chained ``$ref`` hops followed by :func:`resolve`."""

_MISSING = object()


def _lookup(document: Any, ref: str) -> Any:
    # RFC 6901 pointer: ~1 is "/", ~0 is "~"; list segments are indices.
    if ref == "#":
        return document
    if not ref.startswith("#/"):
        return _MISSING

    current: Any = document
    for segment in ref[2:].split("/"):
        segment = segment.replace("~1", "/").replace("~0", "~")
        if isinstance(current, dict):
            if segment not in current:
                return _MISSING
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError):
                return _MISSING
        else:
            return _MISSING
    return current


def ref_of(value: Any) -> Optional[str]:
    """Return the ``$ref`` string of *value*, or ``None`` when it is not a reference."""
    if isinstance(value, dict):
        ref = value.get("$ref")
        if isinstance(ref, str):
            return ref
    return None


def resolve(document: Any, value: Any, max_depth: int = MAX_REF_DEPTH) -> Any:
    """Follow the ``$ref`` chain starting at *value*.

    Args:
        document: The root document that pointers are resolved against.
        value: Any value; non-references are returned unchanged.
        max_depth: Maximum number of hops to follow.

    Returns:
        The first non-reference value in the chain, or the last reference
        object reached when the chain is broken or longer than *max_depth*.
    """
    current = value
    for _ in range(max_depth):
        ref = ref_of(current)
        if ref is None:
            return current
        target = _lookup(document, ref)
        if target is _MISSING:
            logger.debug("Unresolvable $ref %s kept as-is", ref)
            return current
        current = target

    if ref_of(current) is not None:
        logger.warning(
            "$ref chain deeper than %d hops, keeping %s", max_depth, ref_of(current)
        )
    return current
