"""Common transport abstractions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Literal, Mapping, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..options import RequestDescriptor

RequestEvent = Literal["abort", "timeout", "error"]
ResponseEvent = Literal["data", "end"]
WriteCallback = Callable[[Exception | None], None]
Listener = Callable[..., Any]


class EventSource:
    """Ordered listener registry used by transport primitives."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    def on(self, event: str, listener: Listener) -> "EventSource":
        self._listeners.setdefault(event, []).append(listener)
        return self

    def emit(self, event: str, *args: Any) -> bool:
        listeners = list(self._listeners.get(event, ()))
        for listener in listeners:
            listener(*args)
        return bool(listeners)


@runtime_checkable
class ResponseHandle(Protocol):
    """Headers-received view of a response; emits ``data`` chunks then ``end``."""

    status: int
    headers: Mapping[str, str]
    charset: str | None

    def on(self, event: ResponseEvent, listener: Listener) -> Any: ...


@runtime_checkable
class RequestPrimitive(Protocol):
    """A live request that emits exactly one of ``abort``, ``timeout`` or a response ``end``."""

    def on(self, event: RequestEvent, listener: Listener) -> Any: ...

    def write(
        self,
        data: str | bytes,
        encoding: str = "utf-8",
        callback: WriteCallback | None = None,
    ) -> None: ...

    def end(self) -> None: ...

    def destroy(self) -> None: ...

    def abort(self) -> None: ...


ResponseCallback = Callable[[ResponseHandle], None]
TransportFactory = Callable[["RequestDescriptor", ResponseCallback], RequestPrimitive]


__all__ = [
    "EventSource",
    "Listener",
    "RequestEvent",
    "RequestPrimitive",
    "ResponseCallback",
    "ResponseEvent",
    "ResponseHandle",
    "TransportFactory",
    "WriteCallback",
]
