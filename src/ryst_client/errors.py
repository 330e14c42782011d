"""Custom exceptions raised by the ryst client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .options import RequestDescriptor


class RystError(Exception):
    """Base error for all client failures."""

    def __init__(self, message: str, *, context: Any | None = None) -> None:
        super().__init__(message)
        self.context = context


class SerializationError(RystError):
    """Raised when a structured request body cannot be serialized."""


class ParseError(RystError):
    """Raised when a response body is not valid JSON."""


class RequestError(RystError):
    """Base class for failures delivered through an exchange's futures."""

    def __init__(self, message: str, request: RequestDescriptor) -> None:
        super().__init__(message, context=request)
        self.request = request


class RequestAbortedError(RequestError):
    """Raised when the request was aborted by the client."""

    def __init__(self, request: RequestDescriptor) -> None:
        super().__init__(f"The {request.describe()} was aborted by the client.", request)


class RequestTimeoutError(RequestError):
    """Raised when the transport reports a timeout."""

    def __init__(self, request: RequestDescriptor) -> None:
        super().__init__(f"The {request.describe()} timed out.", request)


class TransportError(RequestError):
    """Raised when the transport fails outside of abort and timeout."""

    def __init__(self, request: RequestDescriptor, cause: BaseException) -> None:
        super().__init__(f"The {request.describe()} failed: {cause}", request)
        self.cause = cause


__all__ = [
    "ParseError",
    "RequestAbortedError",
    "RequestError",
    "RequestTimeoutError",
    "RystError",
    "SerializationError",
    "TransportError",
]
