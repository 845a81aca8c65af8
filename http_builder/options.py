"""Option keys understood by the bundled httpx transport.

RequestState treats option keys as opaque hashable tokens; these names only
mean something to the transport that consumes the resolved option set. Names
follow the libcurl options they stand in for.
"""

from __future__ import annotations


class Opt:
    """Transport option keys."""

    URL = "url"
    CUSTOM_REQUEST = "custom_request"
    HTTP_HEADER = "http_header"
    COOKIE = "cookie"
    POST = "post"
    POST_FIELDS = "post_fields"
    RETURN_TRANSFER = "return_transfer"
    TIMEOUT = "timeout"
    CONNECT_TIMEOUT = "connect_timeout"
    FOLLOW_LOCATION = "follow_location"
    SSL_VERIFY_PEER = "ssl_verify_peer"
    USER_AGENT = "user_agent"
    # Writable text sink used when RETURN_TRANSFER is false (stdout if unset).
    OUTPUT = "output"


KNOWN_OPTIONS = frozenset(
    value for name, value in vars(Opt).items() if not name.startswith("_")
)


class Info:
    """Metadata keys accepted by ``Transport.get_metadata``."""

    HTTP_CODE = "http_code"
    EFFECTIVE_URL = "effective_url"
    CONTENT_TYPE = "content_type"
    TOTAL_TIME = "total_time"
    HTTP_VERSION = "http_version"
    HEADERS = "headers"


class Method:
    """HTTP request methods."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    HEAD = "HEAD"
    DELETE = "DELETE"
    TRACE = "TRACE"
    OPTIONS = "OPTIONS"
    CONNECT = "CONNECT"
    MERGE = "MERGE"
