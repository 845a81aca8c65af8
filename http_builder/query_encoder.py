"""Query Encoder - Renders mappings as delimited, percent-encoded strings.

Nested mappings and sequences become bracketed keys (``a[b]``, ``a[0]``),
the same shape form decoders on most web stacks expect. The encoder is used
for URL query strings, form bodies and the Cookie header.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Iterator
from urllib.parse import quote, quote_plus

from pydantic import BaseModel


class EncodingDialect(str, Enum):
    """Space encoding scheme used when rendering a query string."""

    RFC1738 = "rfc1738"  # space -> "+"
    RFC3986 = "rfc3986"  # space -> "%20"


# Encoded index marker: "[0]", "[12]" or "[]" after percent-encoding.
_INDEX_MARKER = re.compile(r"%5B\d*%5D")


def encode(
    data: Any,
    numeric_prefix: str = "",
    separator: str = "&",
    dialect: EncodingDialect = EncodingDialect.RFC3986,
    suppress_brackets: bool = False,
) -> str:
    """Encode a mapping or sequence as a query string.

    Args:
        data: Mapping, sequence or pydantic model to encode.
        numeric_prefix: Prepended to top-level integer keys and sequence
            indices, so ``encode(["x"], "n")`` gives ``n0=x``.
        separator: Placed between key=value pairs.
        dialect: Space encoding scheme.
        suppress_brackets: Strip index markers (``[0]``, ``[]``) from keys.

    Returns:
        The encoded string; empty for empty input.
    """
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")

    quote_fn = quote_plus if dialect == EncodingDialect.RFC1738 else quote

    pairs: list[str] = []
    for key, value in _items(data):
        if isinstance(key, int) and not isinstance(key, bool):
            key = f"{numeric_prefix}{key}"
        for full_key, scalar in _flatten(str(key), value):
            pairs.append(f"{quote_fn(full_key, safe='')}={quote_fn(scalar, safe='')}")

    result = separator.join(pairs)
    if suppress_brackets:
        result = _strip_index_markers(result, separator)
    return result


def _items(data: Any) -> Iterator[tuple[Any, Any]]:
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    if isinstance(data, dict):
        return iter(data.items())
    if isinstance(data, (list, tuple)):
        return enumerate(data)
    raise TypeError(f"Cannot encode {type(data).__name__} as a query string")


def _flatten(key: str, value: Any) -> Iterator[tuple[str, str]]:
    """Yield (bracketed_key, scalar_string) pairs for one top-level entry."""
    if value is None:
        return
    if isinstance(value, (dict, list, tuple, BaseModel)):
        for sub_key, sub_value in _items(value):
            yield from _flatten(f"{key}[{sub_key}]", sub_value)
        return
    yield key, _scalar(value)


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def _strip_index_markers(encoded: str, separator: str) -> str:
    """Delete index markers from the key of every encoded pair.

    Values are left alone so a literal "[0]" in a value survives.
    """
    if not encoded:
        return encoded
    if not separator:
        return _INDEX_MARKER.sub("", encoded)
    stripped = []
    for pair in encoded.split(separator):
        key, eq, value = pair.partition("=")
        stripped.append(_INDEX_MARKER.sub("", key) + eq + value)
    return separator.join(stripped)
