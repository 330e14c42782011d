"""Transport primitives exposed to users."""

from .base import (
    EventSource,
    RequestPrimitive,
    ResponseCallback,
    ResponseHandle,
    TransportFactory,
)
from .http import HttpxRequest, HttpxResponseHandle

__all__ = [
    "EventSource",
    "HttpxRequest",
    "HttpxResponseHandle",
    "RequestPrimitive",
    "ResponseCallback",
    "ResponseHandle",
    "TransportFactory",
]
