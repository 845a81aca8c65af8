"""Payload preparation strategies and the JSON codec.

A payload strategy turns the data passed to a payload-bearing verb into the
value stored under the POST_FIELDS option. The executor takes the strategy as
a constructor argument.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Callable

from pydantic import BaseModel

if TYPE_CHECKING:
    from http_builder.state import RequestState


class CodecError(Exception):
    """Raised when a request body cannot be JSON-encoded."""


PayloadStrategy = Callable[[Any, bool, "RequestState"], Any]


def encode_json(value: Any) -> str:
    """Encode a value as compact JSON.

    Raises:
        CodecError: If the value is not JSON-serializable.
    """
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    try:
        return json.dumps(value, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise CodecError(f"Cannot encode request body as JSON: {e}") from e


def json_or_raw_payload(data: Any, as_json: bool, state: RequestState) -> Any:
    """JSON-encode when asked, otherwise pass the mapping or string through."""
    if as_json:
        return encode_json(data)
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    return data


def form_payload(data: Any, as_json: bool, state: RequestState) -> Any:
    """JSON-encode when asked, otherwise render mappings with the body dialect.

    Strings and bytes are sent as-is.
    """
    if as_json:
        return encode_json(data)
    if isinstance(data, (str, bytes)):
        return data
    return state.build_payload_query(data)
