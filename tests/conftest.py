from __future__ import annotations

from typing import Any, Iterable, Mapping

import pytest

from ryst_client.options import RequestDescriptor
from ryst_client.transport.base import EventSource, ResponseCallback


class FakeResponse(EventSource):
    def __init__(self, status: int = 200, headers: Mapping[str, str] | None = None, charset: str | None = None) -> None:
        super().__init__()
        self.status = status
        self.headers = dict(headers or {})
        self.charset = charset


class FakeRequest(EventSource):
    """Request primitive driven by hand from the test body."""

    def __init__(self, descriptor: RequestDescriptor, on_response: ResponseCallback) -> None:
        super().__init__()
        self.descriptor = descriptor
        self.on_response = on_response
        self.writes: list[tuple[Any, str]] = []
        self.end_calls = 0
        self.destroy_calls = 0
        self.abort_calls = 0

    def write(self, data, encoding="utf-8", callback=None) -> None:
        self.writes.append((data, encoding))
        if callback is not None:
            callback(None)

    def end(self) -> None:
        self.end_calls += 1

    def destroy(self) -> None:
        self.destroy_calls += 1

    def abort(self) -> None:
        self.abort_calls += 1
        self.emit("abort")

    def respond(self, *, status: int = 200, headers: Mapping[str, str] | None = None, charset: str | None = None) -> FakeResponse:
        handle = FakeResponse(status, headers, charset)
        self.on_response(handle)
        return handle

    def complete(self, chunks: Iterable[Any] = (), **kwargs: Any) -> FakeResponse:
        handle = self.respond(**kwargs)
        for chunk in chunks:
            handle.emit("data", chunk)
        handle.emit("end")
        return handle


class FakeTransport:
    def __init__(self) -> None:
        self.requests: list[FakeRequest] = []

    def __call__(self, descriptor: RequestDescriptor, on_response: ResponseCallback) -> FakeRequest:
        request = FakeRequest(descriptor, on_response)
        self.requests.append(request)
        return request

    @property
    def last(self) -> FakeRequest:
        return self.requests[-1]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()
