"""HTTP request primitive built on top of httpx."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Mapping

import httpx

from ..errors import RystError
from ..logger import BoundLogger, create_logger
from ..options import RequestDescriptor
from .base import EventSource, ResponseCallback, WriteCallback

_BodyItem = tuple[bytes, WriteCallback | None]


class HttpxResponseHandle(EventSource):
    """Wraps a streamed ``httpx.Response`` once its headers have arrived."""

    def __init__(self, response: httpx.Response) -> None:
        super().__init__()
        self.raw = response
        self.status: int = response.status_code
        self.headers: Mapping[str, str] = response.headers
        self.charset: str | None = response.charset_encoding


class HttpxRequest(EventSource):
    """Event-emitting request driven by a background task on the running loop.

    Construction only schedules the task. httpx has to know whether a body
    follows before it can send anything, so the request goes on the wire at
    the first body write or at ``end()``; a bodyless request is therefore
    not sent until the exchange is finalized. Bodyless requests go out
    without content; otherwise the queued writes are streamed to httpx as an
    async iterator. A request that is never ended nor aborted keeps its task
    waiting but holds no connection or client.
    """

    def __init__(
        self,
        descriptor: RequestDescriptor,
        on_response: ResponseCallback,
        *,
        client: httpx.AsyncClient | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        super().__init__()
        self._descriptor = descriptor
        self._on_response = on_response
        self._client = client
        self._owns_client = client is None
        self._logger = (logger or create_logger()).child("http")
        self._body: asyncio.Queue[_BodyItem | None] = asyncio.Queue()
        self._ended = False
        self._aborted = False
        self._destroyed = False
        self._finished = False
        self._task = asyncio.get_running_loop().create_task(self._run())

    @property
    def descriptor(self) -> RequestDescriptor:
        return self._descriptor

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def write(
        self,
        data: str | bytes,
        encoding: str = "utf-8",
        callback: WriteCallback | None = None,
    ) -> None:
        if self._ended:
            raise RystError("write after end", context=self._descriptor)
        payload = data.encode(encoding) if isinstance(data, str) else bytes(data)
        self._body.put_nowait((payload, callback))

    def end(self) -> None:
        if self._ended:
            return
        self._ended = True
        self._body.put_nowait(None)

    def abort(self) -> None:
        if self._aborted or self._finished:
            return
        self._aborted = True
        self._logger.debug("Aborting %s", self._descriptor.describe())
        self._cancel()
        self.emit("abort")

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        self._cancel()

    def _cancel(self) -> None:
        # When called from inside our own callbacks the task is about to
        # return on its own.
        if not self._task.done() and self._task is not asyncio.current_task():
            self._task.cancel()

    async def _stream_body(self, first: _BodyItem) -> AsyncIterator[bytes]:
        item: _BodyItem | None = first
        while item is not None:
            data, callback = item
            yield data
            if callback is not None:
                callback(None)
            item = await self._body.get()

    async def _run(self) -> None:
        descriptor = self._descriptor
        # Nothing is allocated until the body is written or ended.
        first = await self._body.get()
        client = self._client or httpx.AsyncClient()
        response: httpx.Response | None = None
        try:
            content = None if first is None else self._stream_body(first)
            request = client.build_request(
                descriptor.method,
                descriptor.url,
                headers=descriptor.headers,
                content=content,
                timeout=descriptor.timeout if descriptor.timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
            self._logger.debug("HTTP %s %s", descriptor.method, descriptor.url)
            response = await client.send(request, stream=True)
            handle = HttpxResponseHandle(response)
            self._logger.debug(
                "HTTP <- %s status=%s",
                descriptor.url,
                response.status_code,
            )
            self._on_response(handle)
            async for chunk in response.aiter_bytes():
                handle.emit("data", chunk)
            self._finished = True
            handle.emit("end")
        except httpx.TimeoutException as exc:
            self._finished = True
            self._logger.warn("HTTP timeout for %s: %s", descriptor.describe(), exc)
            self.emit("timeout")
        except httpx.HTTPError as exc:
            self._finished = True
            self._logger.error("HTTP transport error for %s: %s", descriptor.describe(), exc)
            self.emit("error", exc)
        except Exception as exc:
            if self._finished:
                raise
            self._finished = True
            self._logger.error("Response callback failed for %s: %s", descriptor.describe(), exc)
            self.emit("error", exc)
        finally:
            if response is not None:
                await response.aclose()
            if self._owns_client:
                await client.aclose()


__all__ = ["HttpxRequest", "HttpxResponseHandle"]
