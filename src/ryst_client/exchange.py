"""Deferred exchange: a live request observed through single-resolution futures."""

from __future__ import annotations

import asyncio
import codecs
import enum
import inspect
from dataclasses import dataclass
from typing import Any, Callable

from .errors import RequestAbortedError, RequestError, RequestTimeoutError, RystError, TransportError
from .logger import BoundLogger, create_logger
from .options import RequestDescriptor, encode_body
from .response import Response
from .transport.base import RequestPrimitive, ResponseCallback, ResponseHandle, TransportFactory, WriteCallback
from .transport.http import HttpxRequest

Transform = Callable[[Any], Any]


class ExchangeState(enum.Enum):
    PENDING = "pending"
    FINALIZING = "finalizing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class _Continuation:
    future: asyncio.Future[Any]
    transform: Callable[..., Any] | None = None


def _reraise(error: RequestError) -> Any:
    raise error


class Exchange:
    """Adapts an event-driven request primitive to future-style observation.

    Construction opens the request immediately and writes the initial body.
    Observers attach through :meth:`on_success`, :meth:`on_failure`,
    :meth:`on_settled` and :meth:`settle`; each call returns its own future
    and none of them issues the request again. The first terminal event the
    primitive emits decides the outcome for every observer, past and future.
    An exchange that is never settled nor finalized stays pending; use
    ``exchange.request.abort()`` to give it up.

    Usage::

        exchange = Exchange(build_descriptor("https://example.com/items"))
        response = await exchange.settle()
    """

    def __init__(
        self,
        descriptor: RequestDescriptor,
        on_response: ResponseCallback | None = None,
        *,
        transport: TransportFactory | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        self._descriptor = descriptor
        self._user_on_response = on_response
        self._logger = (logger or create_logger()).child("exchange")
        self._loop = asyncio.get_running_loop()
        self._state = ExchangeState.PENDING
        self._finalized = False
        self._outcome: Response | RequestError | None = None
        self._chunks: list[Any] | None = None
        self._decoder: codecs.IncrementalDecoder | None = None
        self._success: list[_Continuation] = []
        self._failure: list[_Continuation] = []
        self._settled: list[_Continuation] = []
        # Strong references to transforms still running as tasks.
        self._transforms: set[asyncio.Future[Any]] = set()

        # Serialization errors surface before any request is opened.
        payload = encode_body(descriptor.body, descriptor.encoding) if descriptor.has_body else None

        factory = transport or HttpxRequest
        self._request: RequestPrimitive = factory(descriptor, self._handle_response)
        self._request.on("abort", self._handle_abort)
        self._request.on("timeout", self._handle_timeout)
        self._request.on("error", self._handle_error)
        self._logger.debug("Opened %s", descriptor.describe())

        if payload is not None:
            self._request.write(payload, descriptor.encoding, descriptor.on_body_written)

    @property
    def descriptor(self) -> RequestDescriptor:
        return self._descriptor

    @property
    def request(self) -> RequestPrimitive:
        """The underlying primitive; use its ``abort()`` to cancel."""
        return self._request

    @property
    def state(self) -> ExchangeState:
        return self._state

    @property
    def finalized(self) -> bool:
        return self._finalized

    def done(self) -> bool:
        return self._state in (ExchangeState.SUCCEEDED, ExchangeState.FAILED)

    def write(
        self,
        data: Any,
        encoding: str = "utf-8",
        callback: WriteCallback | None = None,
    ) -> None:
        if self._finalized:
            raise RystError("Cannot write to a finalized request", context=self._descriptor)
        self._request.write(encode_body(data, encoding), encoding, callback)

    def finalize(self) -> None:
        """Signal end-of-body to the primitive, at most once."""
        if self._finalized:
            return
        self._finalized = True
        if self.done():
            return
        self._state = ExchangeState.FINALIZING
        self._logger.debug("Finalizing %s", self._descriptor.describe())
        self._request.end()

    def on_success(self, transform: Transform | None = None) -> asyncio.Future[Any]:
        continuation = _Continuation(self._loop.create_future(), transform)
        if self._state is ExchangeState.SUCCEEDED:
            self._fulfil(continuation, self._outcome)
        elif self._state is ExchangeState.FAILED:
            continuation.future.cancel()
        else:
            self._success.append(continuation)
        return continuation.future

    def on_failure(self, transform: Transform | None = None) -> asyncio.Future[Any]:
        continuation = _Continuation(self._loop.create_future(), transform)
        if self._state is ExchangeState.FAILED:
            self._fulfil(continuation, self._outcome)
        elif self._state is ExchangeState.SUCCEEDED:
            continuation.future.cancel()
        else:
            self._failure.append(continuation)
        return continuation.future

    def on_settled(self, callback: Callable[[], Any] | None = None) -> asyncio.Future[Any]:
        continuation = _Continuation(self._loop.create_future(), callback)
        if self.done():
            self._fulfil(continuation)
        else:
            self._settled.append(continuation)
        return continuation.future

    def settle(
        self,
        on_success: Transform | None = None,
        on_failure: Transform | None = None,
    ) -> asyncio.Future[Any]:
        """Finalize the request and race the success path against the failure path.

        Without ``on_failure`` the returned future raises the request error.
        """
        self.finalize()
        combined: asyncio.Future[Any] = self._loop.create_future()

        def relay(source: asyncio.Future[Any]) -> None:
            if source.cancelled():
                return
            error = source.exception()
            if combined.done():
                return
            if error is not None:
                combined.set_exception(error)
            else:
                combined.set_result(source.result())

        self.on_success(on_success).add_done_callback(relay)
        self.on_failure(on_failure or _reraise).add_done_callback(relay)
        return combined

    def _handle_response(self, handle: ResponseHandle) -> None:
        handle.on("data", self._handle_chunk)
        handle.on("end", lambda: self._resolve_success(handle))
        if not self._descriptor.raw_response:
            charset = getattr(handle, "charset", None) or "utf-8"
            try:
                self._decoder = codecs.getincrementaldecoder(charset)(errors="replace")
            except LookupError:
                self._logger.warn("Unknown charset %s, decoding as utf-8", charset)
                self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        if self._user_on_response is not None:
            self._user_on_response(handle)

    def _handle_chunk(self, chunk: str | bytes) -> None:
        if self.done():
            return
        if self._chunks is None:
            self._chunks = []
        if self._descriptor.raw_response:
            self._chunks.append(chunk.encode() if isinstance(chunk, str) else bytes(chunk))
        elif isinstance(chunk, str):
            self._chunks.append(chunk)
        else:
            if self._decoder is None:
                self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
            self._chunks.append(self._decoder.decode(bytes(chunk)))

    def _seal_body(self) -> str | bytes | None:
        if self._chunks is None:
            return None
        if self._descriptor.raw_response:
            return b"".join(self._chunks)
        if self._decoder is not None:
            self._chunks.append(self._decoder.decode(b"", final=True))
        return "".join(self._chunks)

    def _handle_abort(self) -> None:
        self._resolve_failure(RequestAbortedError(self._descriptor))

    def _handle_timeout(self) -> None:
        if self.done():
            return
        self._request.destroy()
        self._resolve_failure(RequestTimeoutError(self._descriptor))

    def _handle_error(self, cause: BaseException) -> None:
        self._resolve_failure(TransportError(self._descriptor, cause))

    def _resolve_success(self, handle: ResponseHandle) -> None:
        if self.done():
            return
        response = Response(handle, self._seal_body())
        self._chunks = None
        self._outcome = response
        self._state = ExchangeState.SUCCEEDED
        self._logger.debug("Completed %s status=%s", self._descriptor.describe(), response.status)
        self._drain(self._success, response)
        self._drain(self._settled)
        self._discard(self._failure)

    def _resolve_failure(self, error: RequestError) -> None:
        if self.done():
            return
        self._chunks = None
        self._outcome = error
        self._state = ExchangeState.FAILED
        self._logger.debug("Failed %s: %s", self._descriptor.describe(), error)
        self._drain(self._failure, error)
        self._drain(self._settled)
        self._discard(self._success)

    def _drain(self, continuations: list[_Continuation], *args: Any) -> None:
        pending = continuations[:]
        continuations.clear()
        for continuation in pending:
            self._fulfil(continuation, *args)

    def _discard(self, continuations: list[_Continuation]) -> None:
        pending = continuations[:]
        continuations.clear()
        for continuation in pending:
            continuation.future.cancel()

    def _fulfil(self, continuation: _Continuation, *args: Any) -> None:
        future = continuation.future
        if future.done():
            return
        if continuation.transform is None:
            future.set_result(args[0] if args else None)
            return
        try:
            result = continuation.transform(*args)
        except Exception as exc:
            future.set_exception(exc)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result, loop=self._loop)
            self._transforms.add(task)
            task.add_done_callback(self._transforms.discard)
            task.add_done_callback(lambda inner: _copy_outcome(inner, future))
        else:
            future.set_result(result)

    def __repr__(self) -> str:
        return f"<Exchange {self._descriptor.describe()} state={self._state.value}>"


def _copy_outcome(source: asyncio.Future[Any], target: asyncio.Future[Any]) -> None:
    if target.done():
        return
    if source.cancelled():
        target.cancel()
        return
    error = source.exception()
    if error is not None:
        target.set_exception(error)
    else:
        target.set_result(source.result())


__all__ = ["Exchange", "ExchangeState"]
