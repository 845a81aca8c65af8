"""Request State - Accumulates request configuration across a fluent phase.

RequestState holds the URL, headers, cookies, raw transport options and the
encoding policy. resolve_options() layers the options derived from headers
and cookies over the explicit ones, so a stale explicit header list can never
shadow live header state.

Usage:
    state = (
        RequestState()
        .set_url("https://api.example.com/users")
        .add_header("Authorization", "Bearer abc")
        .add_cookie("session", "xyz")
        .add_option(Opt.TIMEOUT, 10)
    )
    options = state.resolve_options()
"""

from __future__ import annotations

import copy
from collections.abc import Hashable, Mapping
from typing import TYPE_CHECKING, Any

from http_builder import query_encoder
from http_builder.options import Opt
from http_builder.query_encoder import EncodingDialect

if TYPE_CHECKING:
    from http_builder.models import RequestProfile


DEFAULT_ENCODING = EncodingDialect.RFC1738


class RequestState:
    """Mutable request configuration. All mutators return self."""

    def __init__(self) -> None:
        self._set_defaults()

    def _set_defaults(self) -> None:
        self._url: str | None = None
        self._headers: dict[str, str] = {}
        self._cookies: dict[str, str] = {}
        self._options: dict[Hashable, Any] = {}
        self._url_encoding = DEFAULT_ENCODING
        self._body_encoding = DEFAULT_ENCODING
        self._suppress_array_brackets = False
        self._return_raw_body = True

    @classmethod
    def from_profile(cls, profile: RequestProfile) -> RequestState:
        """Build a state from a loaded request profile."""
        return (
            cls()
            .set_url(profile.url)
            .add_headers(profile.headers)
            .add_cookies(profile.cookies)
            .add_options(profile.options)
            .set_url_encoding(profile.url_encoding)
            .set_body_encoding(profile.body_encoding)
            .set_suppress_array_brackets(profile.suppress_array_brackets)
            .set_return_raw_body(profile.return_raw_body)
        )

    def reset(self) -> RequestState:
        """Restore every field to its construction default."""
        self._set_defaults()
        return self

    def copy(self) -> RequestState:
        """Return an independent copy for use by another executor."""
        return copy.deepcopy(self)

    # -------------------------------------------------------------------------
    # URL
    # -------------------------------------------------------------------------

    @property
    def url(self) -> str | None:
        return self._url

    def set_url(self, url: str | None) -> RequestState:
        self._url = url
        return self

    # -------------------------------------------------------------------------
    # Headers
    # -------------------------------------------------------------------------

    @property
    def headers(self) -> dict[str, str]:
        """Copy of the header mapping in insertion order."""
        return dict(self._headers)

    def get_header(self, key: str) -> str | None:
        return self._headers.get(key)

    def add_header(self, key: str, value: str | None) -> RequestState:
        """Set a header. A None value removes it."""
        if value is None:
            return self.remove_header(key)
        self._headers[key] = value
        return self

    def add_headers(self, headers: Mapping[str, str | None]) -> RequestState:
        for key, value in headers.items():
            self.add_header(key, value)
        return self

    def set_headers(self, headers: Mapping[str, str | None]) -> RequestState:
        self._headers = {}
        return self.add_headers(headers)

    def remove_header(self, key: str) -> RequestState:
        self._headers.pop(key, None)
        return self

    def clear_headers(self) -> RequestState:
        self._headers = {}
        return self

    # -------------------------------------------------------------------------
    # Cookies
    # -------------------------------------------------------------------------

    @property
    def cookies(self) -> dict[str, str]:
        """Copy of the cookie mapping in insertion order."""
        return dict(self._cookies)

    def get_cookie(self, key: str) -> str | None:
        return self._cookies.get(key)

    def add_cookie(self, key: str, value: str | None) -> RequestState:
        """Set a cookie. A None value removes it."""
        if value is None:
            return self.remove_cookie(key)
        self._cookies[key] = value
        return self

    def add_cookies(self, cookies: Mapping[str, str | None]) -> RequestState:
        for key, value in cookies.items():
            self.add_cookie(key, value)
        return self

    def set_cookies(self, cookies: Mapping[str, str | None]) -> RequestState:
        self._cookies = {}
        return self.add_cookies(cookies)

    def remove_cookie(self, key: str) -> RequestState:
        self._cookies.pop(key, None)
        return self

    def clear_cookies(self) -> RequestState:
        self._cookies = {}
        return self

    # -------------------------------------------------------------------------
    # Explicit transport options
    # -------------------------------------------------------------------------

    @property
    def options(self) -> dict[Hashable, Any]:
        """Copy of the explicit options (without derived entries)."""
        return dict(self._options)

    def get_option(self, key: Hashable) -> Any:
        return self._options.get(key)

    def add_option(self, key: Hashable, value: Any) -> RequestState:
        self._options[key] = value
        return self

    def add_options(self, options: Mapping[Hashable, Any]) -> RequestState:
        for key, value in options.items():
            self.add_option(key, value)
        return self

    def set_options(self, options: Mapping[Hashable, Any]) -> RequestState:
        """Replace all explicit options. Header and cookie state is untouched."""
        self._options = {}
        return self.add_options(options)

    # -------------------------------------------------------------------------
    # Encoding policy
    # -------------------------------------------------------------------------

    @property
    def url_encoding(self) -> EncodingDialect:
        return self._url_encoding

    def set_url_encoding(self, dialect: EncodingDialect) -> RequestState:
        self._url_encoding = EncodingDialect(dialect)
        return self

    @property
    def body_encoding(self) -> EncodingDialect:
        return self._body_encoding

    def set_body_encoding(self, dialect: EncodingDialect) -> RequestState:
        self._body_encoding = EncodingDialect(dialect)
        return self

    @property
    def suppress_array_brackets(self) -> bool:
        return self._suppress_array_brackets

    def set_suppress_array_brackets(self, suppress: bool) -> RequestState:
        self._suppress_array_brackets = suppress
        return self

    @property
    def return_raw_body(self) -> bool:
        return self._return_raw_body

    def set_return_raw_body(self, return_raw_body: bool) -> RequestState:
        self._return_raw_body = return_raw_body
        return self

    # -------------------------------------------------------------------------
    # Resolution and encoding
    # -------------------------------------------------------------------------

    def resolve_options(self) -> dict[Hashable, Any]:
        """Explicit options overlaid with the derived header and cookie options.

        Derived entries are only present when their source mapping is
        non-empty, and always win over same-keyed explicit options.
        """
        derived: dict[Hashable, Any] = {Opt.RETURN_TRANSFER: self._return_raw_body}
        if self._headers:
            derived[Opt.HTTP_HEADER] = [
                f"{key}: {value}" for key, value in self._headers.items()
            ]
        if self._cookies:
            derived[Opt.COOKIE] = query_encoder.encode(self._cookies, "", "; ")
        return {**self._options, **derived}

    def build_url_query(self, data: Any) -> str:
        return query_encoder.encode(
            data,
            dialect=self._url_encoding,
            suppress_brackets=self._suppress_array_brackets,
        )

    def build_payload_query(self, data: Any) -> str:
        return query_encoder.encode(
            data,
            dialect=self._body_encoding,
            suppress_brackets=self._suppress_array_brackets,
        )

    def __repr__(self) -> str:
        return (
            f"RequestState(url={self._url!r}, headers={len(self._headers)}, "
            f"cookies={len(self._cookies)}, options={len(self._options)})"
        )
