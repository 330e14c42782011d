"""Request configuration and the immutable descriptor built from it."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

import httpx

from .errors import SerializationError

BodyWrittenCallback = Callable[[Exception | None], None]

RAW_BODY_TYPES = (str, bytes, bytearray)

DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass
class RequestOptions:
    method: str = "GET"
    headers: Mapping[str, str] | None = None
    body: Any = None
    encoding: str = "utf-8"
    on_body_written: BodyWrittenCallback | None = None
    timeout: float | None = None
    raw_response: bool = False


@dataclass(frozen=True)
class RequestDescriptor:
    """Everything a transport needs to issue one request.

    Built once per exchange and never mutated afterwards; errors keep a
    reference to it for their messages.
    """

    url: httpx.URL
    method: str = "GET"
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: Any = None
    encoding: str = "utf-8"
    on_body_written: BodyWrittenCallback | None = None
    timeout: float | None = None
    raw_response: bool = False

    @property
    def scheme(self) -> str:
        return self.url.scheme

    @property
    def host(self) -> str:
        return self.url.host

    @property
    def port(self) -> int | None:
        return self.url.port or DEFAULT_PORTS.get(self.url.scheme)

    @property
    def path(self) -> str:
        return self.url.raw_path.decode("ascii")

    @property
    def has_body(self) -> bool:
        return self.body is not None

    def describe(self) -> str:
        return f"{self.method} request for {self.host}{self.path}"


def to_url(url: str | httpx.URL) -> httpx.URL:
    if isinstance(url, httpx.URL):
        return url
    if "://" not in url:
        url = f"http://{url}"
    return httpx.URL(url)


def merge_headers(*sources: Mapping[str, str] | None) -> httpx.Headers:
    """Fold header mappings left to right; later keys replace earlier ones."""
    merged = httpx.Headers()
    for source in sources:
        if not source:
            continue
        for key, value in source.items():
            merged[key] = value
    return merged


def encode_body(body: Any, encoding: str = "utf-8") -> str | bytes:
    if isinstance(body, bytearray):
        return bytes(body)
    if isinstance(body, (str, bytes)):
        return body
    try:
        return json.dumps(body)
    except (TypeError, ValueError, RecursionError) as exc:
        raise SerializationError(
            f"Cannot serialize request body of type {type(body).__name__}: {exc}",
            context=body,
        ) from exc


def build_descriptor(
    url: str | httpx.URL,
    options: RequestOptions | None = None,
    default_headers: Mapping[str, str] | None = None,
) -> RequestDescriptor:
    options = options or RequestOptions()
    headers = merge_headers(default_headers, options.headers)
    if options.body is not None and not isinstance(options.body, RAW_BODY_TYPES):
        headers.setdefault("Content-Type", "application/json")
    return RequestDescriptor(
        url=to_url(url),
        method=options.method.upper(),
        headers=headers,
        body=options.body,
        encoding=options.encoding,
        on_body_written=options.on_body_written,
        timeout=options.timeout,
        raw_response=options.raw_response,
    )


__all__ = [
    "BodyWrittenCallback",
    "RequestDescriptor",
    "RequestOptions",
    "build_descriptor",
    "encode_body",
    "merge_headers",
    "to_url",
]
