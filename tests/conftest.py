"""Pytest configuration and fixtures for http-builder tests.

This file provides:
- FakeTransport: Records opened handles and invoked option sets, returns
  canned TransportResults
- Fixtures: Fresh state, fake transport and an executor wired to both
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from typing import Any

import pytest

from http_builder.executor import RequestExecutor
from http_builder.models import TransportResult
from http_builder.options import Info, Opt
from http_builder.state import RequestState
from http_builder.transport import Handle


class FakeTransport:
    """In-memory Transport that never touches the network.

    Results are returned in order; once exhausted every invoke succeeds with
    body "ok". Status is 0 for failed invocations, status_code otherwise.
    """

    def __init__(
        self,
        results: list[TransportResult] | None = None,
        status_code: int = 200,
    ) -> None:
        self.results = list(results or [])
        self.status_code = status_code
        self.opened: list[Handle] = []
        self.invoked: list[dict[Hashable, Any]] = []
        self.closed: list[Handle] = []
        self._last_result: dict[int, TransportResult] = {}

    def open(self, options: Mapping[Hashable, Any]) -> Handle:
        handle = Handle(options)
        self.opened.append(handle)
        return handle

    def invoke(self, handle: Handle) -> TransportResult:
        self.invoked.append(dict(handle.options))
        result = self.results.pop(0) if self.results else TransportResult(body="ok")
        self._last_result[id(handle)] = result
        return result

    def get_metadata(self, handle: Handle, key: str | None = None) -> Any:
        result = self._last_result.get(id(handle))
        info = {
            Info.HTTP_CODE: self.status_code if result is not None and result.error_code == 0 else 0,
            Info.EFFECTIVE_URL: handle.options.get(Opt.URL),
        }
        return info if key is None else info[key]

    def close(self, handle: Handle) -> None:
        handle.closed = True
        self.closed.append(handle)

    @property
    def last_options(self) -> dict[Hashable, Any]:
        return self.invoked[-1]


@pytest.fixture
def state() -> RequestState:
    return RequestState()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def executor(state: RequestState, transport: FakeTransport) -> RequestExecutor:
    return RequestExecutor(state, transport)
