"""Transport - The capability that turns a resolved option set into a request.

The executor only talks to the Transport protocol. HttpxTransport is the
bundled implementation: each handle owns one httpx.Client, is invoked once,
and reports failures as curl-compatible error codes instead of raising.
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Hashable, Mapping
from typing import Any, Protocol

import httpx

from http_builder import query_encoder
from http_builder.models import TransportResult
from http_builder.options import KNOWN_OPTIONS, Info, Method, Opt
from http_builder.query_encoder import EncodingDialect


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

# curl-compatible error codes
E_UNSUPPORTED_PROTOCOL = 1
E_FAILED = 2
E_URL_MALFORMAT = 3
E_COULDNT_CONNECT = 7
E_OPERATION_TIMEDOUT = 28
E_BAD_FUNCTION_ARGUMENT = 43
E_TOO_MANY_REDIRECTS = 47
E_SEND_ERROR = 55
E_RECV_ERROR = 56

# Checked in order; subclasses must come before their bases.
_ERROR_CODES: list[tuple[type[Exception], int]] = [
    (httpx.UnsupportedProtocol, E_UNSUPPORTED_PROTOCOL),
    (httpx.InvalidURL, E_URL_MALFORMAT),
    (httpx.TimeoutException, E_OPERATION_TIMEDOUT),
    (httpx.ConnectError, E_COULDNT_CONNECT),
    (httpx.TooManyRedirects, E_TOO_MANY_REDIRECTS),
    (httpx.WriteError, E_SEND_ERROR),
    (httpx.ReadError, E_RECV_ERROR),
    (httpx.RemoteProtocolError, E_RECV_ERROR),
    (httpx.HTTPError, E_FAILED),
    (UnicodeEncodeError, E_BAD_FUNCTION_ARGUMENT),
]

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class Handle:
    """A live, single-use connection produced by Transport.open()."""

    def __init__(self, options: Mapping[Hashable, Any]) -> None:
        self.options: dict[Hashable, Any] = dict(options)
        self.closed = False

    def set_option(self, key: Hashable, value: Any) -> None:
        self.options[key] = value


class Transport(Protocol):
    """External HTTP transport capability."""

    def open(self, options: Mapping[Hashable, Any]) -> Handle: ...

    def invoke(self, handle: Handle) -> TransportResult: ...

    def get_metadata(self, handle: Handle, key: str | None = None) -> Any: ...

    def close(self, handle: Handle) -> None: ...


class HttpxHandle(Handle):
    """Handle backed by an httpx.Client."""

    def __init__(self, options: Mapping[Hashable, Any], client: httpx.Client) -> None:
        super().__init__(options)
        self.client = client
        self.response: httpx.Response | None = None
        self.total_time: float = 0.0


class HttpxTransport:
    """Transport implementation on top of httpx.

    Usage:
        transport = HttpxTransport()
        handle = transport.open({Opt.URL: "https://example.com", Opt.TIMEOUT: 5})
        try:
            result = transport.invoke(handle)
            status = transport.get_metadata(handle, Info.HTTP_CODE)
        finally:
            transport.close(handle)
    """

    def __init__(self, transport: httpx.BaseTransport | None = None) -> None:
        """Initialize the transport.

        Args:
            transport: Optional httpx transport mounted on every client
                (e.g. httpx.MockTransport in tests).
        """
        self._transport = transport

    def open(self, options: Mapping[Hashable, Any]) -> HttpxHandle:
        for key in options:
            if key not in KNOWN_OPTIONS:
                logger.debug("Ignoring unsupported transport option %r", key)
        client = httpx.Client(**self._build_client_kwargs(options))
        return HttpxHandle(options, client)

    def _build_client_kwargs(self, options: Mapping[Hashable, Any]) -> dict[str, Any]:
        """Build kwargs for httpx.Client from client-level options."""
        timeout = options.get(Opt.TIMEOUT, DEFAULT_TIMEOUT)
        connect_timeout = options.get(Opt.CONNECT_TIMEOUT)
        kwargs: dict[str, Any] = {
            "timeout": httpx.Timeout(timeout, connect=connect_timeout)
            if connect_timeout is not None
            else httpx.Timeout(timeout),
            "follow_redirects": bool(options.get(Opt.FOLLOW_LOCATION, False)),
            "verify": bool(options.get(Opt.SSL_VERIFY_PEER, True)),
        }
        if self._transport is not None:
            kwargs["transport"] = self._transport
        return kwargs

    def invoke(self, handle: Handle) -> TransportResult:
        """Send the request described by the handle's options.

        Never raises for network failures; they come back as error codes.

        Raises:
            ValueError: If the handle is closed or was not opened here.
        """
        if not isinstance(handle, HttpxHandle):
            raise ValueError("Handle was not opened by HttpxTransport")
        if handle.closed:
            raise ValueError("Handle is closed")

        options = handle.options
        url = options.get(Opt.URL)
        if not url:
            return TransportResult(
                body=False, error_code=E_URL_MALFORMAT, error_message="No URL set"
            )

        method = options.get(Opt.CUSTOM_REQUEST) or (
            Method.POST if options.get(Opt.POST) else Method.GET
        )
        request_kwargs = self._build_request_kwargs(options)
        logger.debug("%s %s", method, url)

        start_time = time.perf_counter()
        try:
            if options.get(Opt.RETURN_TRANSFER, True):
                handle.response = handle.client.request(method, url, **request_kwargs)
                body: str | bool = handle.response.text
            else:
                sink = options.get(Opt.OUTPUT) or sys.stdout
                with handle.client.stream(method, url, **request_kwargs) as response:
                    for chunk in response.iter_text():
                        sink.write(chunk)
                handle.response = response
                body = True
        except Exception as e:
            code = _error_code(e)
            if code is None:
                raise
            logger.debug("Transport error %d for %s %s: %s", code, method, url, e)
            return TransportResult(body=False, error_code=code, error_message=str(e))
        finally:
            handle.total_time = time.perf_counter() - start_time

        return TransportResult(body=body)

    def _build_request_kwargs(self, options: Mapping[Hashable, Any]) -> dict[str, Any]:
        """Build per-request kwargs (headers and body) for client.request()."""
        headers: list[tuple[str, str]] = []
        for line in options.get(Opt.HTTP_HEADER) or []:
            name, _, value = line.partition(":")
            headers.append((name.strip(), value.strip()))
        names = {name.lower() for name, _ in headers}

        if options.get(Opt.USER_AGENT) and "user-agent" not in names:
            headers.append(("User-Agent", options[Opt.USER_AGENT]))
        if options.get(Opt.COOKIE) and "cookie" not in names:
            headers.append(("Cookie", options[Opt.COOKIE]))

        kwargs: dict[str, Any] = {}
        body = options.get(Opt.POST_FIELDS)
        if body is not None:
            if isinstance(body, (Mapping, list, tuple)):
                body = query_encoder.encode(body, dialect=EncodingDialect.RFC1738)
            kwargs["content"] = body.encode("utf-8") if isinstance(body, str) else body
            if "content-type" not in names:
                headers.append(("Content-Type", FORM_CONTENT_TYPE))

        if headers:
            kwargs["headers"] = headers
        return kwargs

    def get_metadata(self, handle: Handle, key: str | None = None) -> Any:
        """Return transfer metadata for an invoked handle.

        Args:
            handle: The handle to inspect.
            key: One of the Info keys, or None for all of them.

        Raises:
            ValueError: If the key is unknown.
        """
        if not isinstance(handle, HttpxHandle):
            raise ValueError("Handle was not opened by HttpxTransport")
        response = handle.response

        info: dict[str, Any] = {
            Info.HTTP_CODE: response.status_code if response is not None else 0,
            Info.EFFECTIVE_URL: str(response.url) if response is not None else handle.options.get(Opt.URL),
            Info.CONTENT_TYPE: response.headers.get("content-type") if response is not None else None,
            Info.TOTAL_TIME: handle.total_time,
            Info.HTTP_VERSION: response.http_version if response is not None else None,
            Info.HEADERS: _convert_headers(response.headers) if response is not None else {},
        }
        if key is None:
            return info
        if key not in info:
            raise ValueError(f"Unknown metadata key '{key}'")
        return info[key]

    def close(self, handle: Handle) -> None:
        if handle.closed:
            return
        handle.closed = True
        if isinstance(handle, HttpxHandle):
            handle.client.close()


def _error_code(error: Exception) -> int | None:
    for exc_type, code in _ERROR_CODES:
        if isinstance(error, exc_type):
            return code
    return None


def _convert_headers(headers: httpx.Headers) -> dict[str, list[str]]:
    """Lowercase keys, list values for repeated headers."""
    result: dict[str, list[str]] = {}
    for key, value in headers.multi_items():
        result.setdefault(key.lower(), []).append(value)
    return result
