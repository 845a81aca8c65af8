"""Data models for http-builder.

All models use Pydantic v2.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from http_builder.query_encoder import EncodingDialect


# =============================================================================
# Execution Results
# =============================================================================


class TransportResult(BaseModel):
    """Raw outcome of one transport invocation."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    body: str | bool | None = Field(
        default=None,
        description="Buffered body text, True when streamed, False/None on failure",
    )
    error_code: int = Field(default=0, description="0 on success, curl-compatible code otherwise")
    error_message: str = Field(default="", description="Empty on success")


class Response(BaseModel):
    """Response captured by one execution.

    Frozen: populated once per execution and replaced wholesale on the next.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    body: str | bool | None = Field(default=None, description="Response body")
    status_code: int = Field(default=0, description="HTTP status (0 when no response was received)")
    transport_error_code: int = Field(default=0, description="Transport error code")
    transport_error_message: str = Field(default="", description="Transport error message")

    @property
    def ok(self) -> bool:
        """True when the transport succeeded and the status is 2xx."""
        return self.transport_error_code == 0 and 200 <= self.status_code < 300


# =============================================================================
# Request Profiles
# =============================================================================


class ExecutorSettings(BaseModel):
    """Executor construction policy."""

    model_config = ConfigDict(extra="forbid")

    json_payload: bool = Field(
        default=False, description="Default JSON-encoding policy for payload verbs"
    )
    raise_on_transport_error: bool = Field(
        default=True, description="Raise on transport errors instead of storing them"
    )
    single_shot: bool = Field(
        default=True, description="Drop the handle after each execution"
    )


class RequestProfile(BaseModel):
    """Request profile file structure.

    String values support ${ENV_VAR} substitution at load time.
    """

    model_config = ConfigDict(extra="forbid")

    url: str | None = Field(default=None, description="Target URL")
    headers: dict[str, str] = Field(default_factory=dict, description="Request headers")
    cookies: dict[str, str] = Field(default_factory=dict, description="Request cookies")
    options: dict[str, Any] = Field(
        default_factory=dict, description="Raw transport options keyed by option name"
    )
    url_encoding: EncodingDialect = Field(
        default=EncodingDialect.RFC1738, description="Dialect for URL query strings"
    )
    body_encoding: EncodingDialect = Field(
        default=EncodingDialect.RFC1738, description="Dialect for form bodies"
    )
    suppress_array_brackets: bool = Field(
        default=False, description="Strip [0]/[] index markers from encoded keys"
    )
    return_raw_body: bool = Field(default=True, description="Buffer and return the body")
    executor: ExecutorSettings = Field(
        default_factory=ExecutorSettings, description="Executor policy"
    )
