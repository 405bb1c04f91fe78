"""
Query-string serialization for Featurebase filter parameters.

Filter arguments arrive as a loosely typed mapping: strings, numbers,
booleans, lists of those, or None. This module turns such a mapping into a
deterministic query string:

    >>> serialize_params({"q": "dark mode", "category": ["Bugs", "Ideas"], "page": None})
    'q=dark+mode&category=Bugs&category=Ideas'

Rules:
    - None values are skipped entirely (never serialized as ``key=``)
    - Lists/tuples produce one repeated ``key=value`` pair per element, in order
    - Booleans render as ``true``/``false``, integral floats as integers
    - Output order follows the mapping's insertion order
"""

from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode


def stringify(value: Any) -> str:
    """
    Convert a scalar parameter value to its canonical query text.

    Args:
        value: A string, number, or boolean

    Returns:
        The value as it should appear in the query string
    """
    # bool is checked first because it is a subclass of int
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def query_pairs(params: Mapping[str, Any] | None) -> list[tuple[str, str]]:
    """
    Flatten a filter mapping into ordered key/value pairs.

    Args:
        params: Mapping of parameter names to scalars, sequences, or None

    Returns:
        List of (key, value) string pairs, repeated keys for sequences
    """
    if not params:
        return []

    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            pairs.extend((key, stringify(item)) for item in value if item is not None)
        else:
            pairs.append((key, stringify(value)))
    return pairs


def serialize_params(params: Mapping[str, Any] | None) -> str:
    """
    Serialize a filter mapping to a form-encoded query string.

    Returns:
        The query string without a leading ``?`` (empty if nothing to send)
    """
    return urlencode(query_pairs(params))


def build_url(base: str, path: str, params: Mapping[str, Any] | None = None) -> str:
    """
    Join a base origin, a path, and serialized parameters.

    The ``?`` separator is only added when at least one pair survives.

    Args:
        base: Base origin, e.g. ``https://do.featurebase.app/v2``
        path: Path appended verbatim, e.g. ``/posts``
        params: Optional filter mapping

    Returns:
        The full request URL
    """
    url = f"{base}{path}"
    query = serialize_params(params)
    if query:
        url += f"?{query}"
    return url
