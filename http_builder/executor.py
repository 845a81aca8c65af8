"""Executor - Materializes a RequestState into one outbound HTTP call.

The executor owns the transport handle and walks it through an explicit
lifecycle:

    UNACQUIRED --acquire()--> READY --execute()--> EXECUTED
        ^                                              |
        +------------- single-shot: handle dropped ----+

In retained mode the handle survives execution so transfer metadata can be
queried through info(); the next acquire() closes it and opens a fresh one.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Mapping
from enum import Enum
from typing import Any

from http_builder.models import Response
from http_builder.options import Info, Method, Opt
from http_builder.payload import PayloadStrategy, json_or_raw_payload
from http_builder.state import RequestState
from http_builder.transport import Handle, HttpxTransport, Transport


logger = logging.getLogger(__name__)


class ExecutorError(Exception):
    """Base class for executor errors."""


class LifecycleError(ExecutorError):
    """Raised when an operation is invoked in the wrong lifecycle state."""


class TransportExecutionError(ExecutorError):
    """Raised when the transport reports a non-zero error code."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"Transport error {code}: {message}")
        self.code = code
        self.message = message


class ExecutorState(str, Enum):
    UNACQUIRED = "unacquired"
    READY = "ready"
    EXECUTED = "executed"


class RequestExecutor:
    """Executes requests built from a RequestState.

    Usage:
        state = RequestState().add_header("Accept", "application/json")
        with RequestExecutor(state, json_payload=True) as executor:
            executor.acquire("https://api.example.com/users").get({"page": 1})
            print(executor.status_code, executor.response.body)

    Transport errors raise TransportExecutionError by default. With
    raise_on_transport_error=False they are stored on the Response instead
    and the caller inspects response.transport_error_code.
    """

    def __init__(
        self,
        state: RequestState | None = None,
        transport: Transport | None = None,
        *,
        json_payload: bool = False,
        raise_on_transport_error: bool = True,
        single_shot: bool = True,
        payload_strategy: PayloadStrategy | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            state: Request configuration; a fresh RequestState if None.
            transport: Transport capability; HttpxTransport if None.
            json_payload: Default JSON-encoding policy for payload verbs.
            raise_on_transport_error: Raise TransportExecutionError on
                transport failures instead of storing them.
            single_shot: Drop the handle after each execution. When False the
                handle is retained for info() until the next acquire().
            payload_strategy: Turns payload data into the body option value.
        """
        self._state = state if state is not None else RequestState()
        self._transport: Transport = transport if transport is not None else HttpxTransport()
        self._json_payload = json_payload
        self._raise_on_transport_error = raise_on_transport_error
        self._single_shot = single_shot
        self._payload_strategy = payload_strategy or json_or_raw_payload

        self._handle: Handle | None = None
        self._executor_state = ExecutorState.UNACQUIRED
        self._url: str | None = None
        self._response: Response | None = None

    def __enter__(self) -> RequestExecutor:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close any held handle and return to UNACQUIRED."""
        self._release_handle()

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def state(self) -> RequestState:
        return self._state

    @property
    def executor_state(self) -> ExecutorState:
        return self._executor_state

    @property
    def handle(self) -> Handle | None:
        return self._handle

    @property
    def response(self) -> Response | None:
        """Response of the last execution; None until executed."""
        return self._response

    @property
    def status_code(self) -> int:
        return self._response.status_code if self._response is not None else 0

    def info(self, key: str | None = None) -> Any:
        """Query transport metadata for the held handle.

        Raises:
            LifecycleError: If no handle is held.
        """
        if self._handle is None:
            raise LifecycleError('No handle to inspect: call "acquire" first')
        return self._transport.get_metadata(self._handle, key)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def acquire(
        self,
        url: str | None = None,
        extra_options: Mapping[Hashable, Any] | None = None,
    ) -> RequestExecutor:
        """Open a fresh transport handle.

        The url argument wins over the state's stored URL and is written back
        to the state. Options merge as base < extra_options < state-derived.
        """
        self._release_handle()

        self._url = url if url is not None else self._state.url
        self._state.set_url(self._url)

        options: dict[Hashable, Any] = {Opt.URL: self._url}
        options.update(extra_options or {})
        options.update(self._state.resolve_options())

        self._handle = self._transport.open(options)
        self._url = self._handle.options.get(Opt.URL)
        self._response = None
        self._executor_state = ExecutorState.READY
        logger.debug("Acquired handle for %s", self._url)
        return self

    def _release_handle(self) -> None:
        if self._handle is not None:
            handle, self._handle = self._handle, None
            self._transport.close(handle)
        self._executor_state = ExecutorState.UNACQUIRED

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def execute(
        self,
        verb: str,
        data: Any = None,
        payload: bool = False,
        as_json: bool | None = None,
    ) -> RequestExecutor:
        """Execute one request on the acquired handle.

        Args:
            verb: HTTP method.
            data: Query data (payload=False) or body data (payload=True).
            payload: Send data as the request body instead of the query.
            as_json: JSON-encode the body; defaults to the executor policy.

        Raises:
            LifecycleError: If no handle has been acquired.
            CodecError: If the body cannot be JSON-encoded. Nothing is sent.
            TransportExecutionError: If the transport fails and the executor
                raises on transport errors.
        """
        if self._executor_state is not ExecutorState.READY or self._handle is None:
            raise LifecycleError('Must acquire first: call "acquire" before executing')

        if as_json is None:
            as_json = self._json_payload

        handle = self._handle
        updates: dict[Hashable, Any] = {Opt.CUSTOM_REQUEST: verb}
        if data:
            if payload:
                updates[Opt.POST] = True
                updates[Opt.POST_FIELDS] = self._payload_strategy(data, as_json, self._state)
            else:
                query = data if isinstance(data, str) else self._state.build_url_query(data)
                updates[Opt.URL] = f"{self._url}?{query}"
        for key, value in updates.items():
            handle.set_option(key, value)

        logger.debug("Executing %s %s", verb, handle.options.get(Opt.URL))
        # The handle is spent even if the transport raises.
        try:
            result = self._transport.invoke(handle)
            status_code = self._transport.get_metadata(handle, Info.HTTP_CODE) or 0
        finally:
            self._executor_state = ExecutorState.EXECUTED
            if self._single_shot:
                self._release_handle()

        self._response = Response(
            body=result.body,
            status_code=status_code,
            transport_error_code=result.error_code,
            transport_error_message=result.error_message,
        )

        if result.error_code != 0:
            if self._raise_on_transport_error:
                raise TransportExecutionError(result.error_code, result.error_message)
            logger.warning(
                "Transport error %d for %s %s: %s",
                result.error_code, verb, self._url, result.error_message,
            )
        return self

    def get(self, data: Any = None) -> RequestExecutor:
        return self.execute(Method.GET, data)

    def head(self, data: Any = None) -> RequestExecutor:
        return self.execute(Method.HEAD, data)

    def options(self, data: Any = None) -> RequestExecutor:
        return self.execute(Method.OPTIONS, data)

    def post(self, data: Any = None, as_json: bool | None = None) -> RequestExecutor:
        return self.execute(Method.POST, data, payload=True, as_json=as_json)

    def put(self, data: Any = None, as_json: bool | None = None) -> RequestExecutor:
        return self.execute(Method.PUT, data, payload=True, as_json=as_json)

    def patch(self, data: Any = None, as_json: bool | None = None) -> RequestExecutor:
        return self.execute(Method.PATCH, data, payload=True, as_json=as_json)

    def delete(self, data: Any = None, as_json: bool | None = None) -> RequestExecutor:
        return self.execute(Method.DELETE, data, payload=True, as_json=as_json)
