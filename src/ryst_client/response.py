"""The sealed response value handed to success observers."""

from __future__ import annotations

import json
from typing import Any, Mapping

from .errors import ParseError
from .transport.base import ResponseHandle


class Response:
    """A completed response: transport metadata plus the fully buffered body."""

    __slots__ = ("_message", "_body")

    def __init__(self, message: ResponseHandle, body: str | bytes | None = None) -> None:
        object.__setattr__(self, "_message", message)
        object.__setattr__(self, "_body", body)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def message(self) -> ResponseHandle:
        """The low-level response handle the transport produced."""
        return self._message

    @property
    def status(self) -> int:
        return self._message.status

    @property
    def headers(self) -> Mapping[str, str]:
        return self._message.headers

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def body(self) -> str | bytes | None:
        """The buffered body, or ``None`` when the server sent no data."""
        return self._body

    def json(self) -> Any | None:
        """Decode the body as JSON.

        Returns ``None`` when there is no textual body to decode (absent,
        empty or raw bytes). Malformed text raises :class:`ParseError`.
        """
        if not self._body or isinstance(self._body, bytes):
            return None
        try:
            return json.loads(self._body)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Response body is not valid JSON: {exc}", context=self._body) from exc

    def __repr__(self) -> str:
        size = len(self._body) if self._body is not None else 0
        return f"<Response status={self.status} body_length={size}>"


__all__ = ["Response"]
