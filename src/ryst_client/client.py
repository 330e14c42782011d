"""High-level client that turns URLs and options into deferred exchanges."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Mapping

import httpx

from .exchange import Exchange
from .logger import LogLevel, create_logger
from .options import RequestDescriptor, RequestOptions, build_descriptor
from .transport import HttpxRequest, RequestPrimitive, ResponseCallback, TransportFactory


@dataclass
class ClientOptions:
    default_headers: Mapping[str, str] | None = None
    timeout: float | None = None
    transport: TransportFactory | None = None
    http_client: httpx.AsyncClient | None = None
    logger: object | None = None
    log_level: LogLevel = "info"


class RystClient:
    """Creates exchanges that share default headers, timeout and transport.

    Nothing here is process-wide: two clients with different defaults never
    see each other's configuration.
    """

    def __init__(
        self,
        *,
        default_headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        transport: TransportFactory | None = None,
        http_client: httpx.AsyncClient | None = None,
        logger: object | None = None,
        log_level: LogLevel = "info",
    ) -> None:
        options = ClientOptions(
            default_headers=default_headers,
            timeout=timeout,
            transport=transport,
            http_client=http_client,
            logger=logger,
            log_level=log_level,
        )
        self.default_headers = dict(options.default_headers or {})
        self.timeout = options.timeout
        self._logger = create_logger(logger=options.logger, level=options.log_level)
        self._http_client = options.http_client
        self._transport = options.transport or self._create_transport

    def request(
        self,
        url: str | httpx.URL,
        options: RequestOptions | None = None,
        on_response: ResponseCallback | None = None,
    ) -> Exchange:
        options = options or RequestOptions()
        if options.timeout is None and self.timeout is not None:
            options = replace(options, timeout=self.timeout)
        descriptor = build_descriptor(url, options, self.default_headers)
        self._logger.debug("Starting %s", descriptor.describe())
        return Exchange(descriptor, on_response, transport=self._transport, logger=self._logger)

    def get(
        self,
        url: str | httpx.URL,
        options: RequestOptions | None = None,
        on_response: ResponseCallback | None = None,
    ) -> Exchange:
        return self.request(url, replace(options or RequestOptions(), method="GET"), on_response)

    def post(
        self,
        url: str | httpx.URL,
        options: RequestOptions | None = None,
        on_response: ResponseCallback | None = None,
    ) -> Exchange:
        return self.request(url, replace(options or RequestOptions(), method="POST"), on_response)

    def head(
        self,
        url: str | httpx.URL,
        options: RequestOptions | None = None,
        on_response: ResponseCallback | None = None,
    ) -> Exchange:
        return self.request(url, replace(options or RequestOptions(), method="HEAD"), on_response)

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()

    def _create_transport(self, descriptor: RequestDescriptor, on_response: ResponseCallback) -> RequestPrimitive:
        return HttpxRequest(descriptor, on_response, client=self._http_client, logger=self._logger)


def request(
    url: str | httpx.URL,
    options: RequestOptions | None = None,
    on_response: ResponseCallback | None = None,
) -> Exchange:
    return RystClient().request(url, options, on_response)


def get(
    url: str | httpx.URL,
    options: RequestOptions | None = None,
    on_response: ResponseCallback | None = None,
) -> Exchange:
    return RystClient().get(url, options, on_response)


def post(
    url: str | httpx.URL,
    options: RequestOptions | None = None,
    on_response: ResponseCallback | None = None,
) -> Exchange:
    return RystClient().post(url, options, on_response)


def head(
    url: str | httpx.URL,
    options: RequestOptions | None = None,
    on_response: ResponseCallback | None = None,
) -> Exchange:
    return RystClient().head(url, options, on_response)


__all__ = ["ClientOptions", "RystClient", "get", "head", "post", "request"]
