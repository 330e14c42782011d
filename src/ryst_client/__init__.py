"""Public surface for the ryst client."""

from .client import ClientOptions, RystClient, get, head, post, request
from .errors import (
    ParseError,
    RequestAbortedError,
    RequestError,
    RequestTimeoutError,
    RystError,
    SerializationError,
    TransportError,
)
from .exchange import Exchange, ExchangeState
from .options import RequestDescriptor, RequestOptions, build_descriptor
from .response import Response
from .transport import HttpxRequest, RequestPrimitive, ResponseHandle
from .version import __version__

__all__ = [
    "__version__",
    "ClientOptions",
    "Exchange",
    "ExchangeState",
    "HttpxRequest",
    "ParseError",
    "RequestAbortedError",
    "RequestDescriptor",
    "RequestError",
    "RequestOptions",
    "RequestPrimitive",
    "RequestTimeoutError",
    "Response",
    "ResponseHandle",
    "RystClient",
    "RystError",
    "SerializationError",
    "TransportError",
    "build_descriptor",
    "get",
    "head",
    "post",
    "request",
]
