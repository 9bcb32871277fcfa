"""Error types raised by the streaming pipeline."""

from __future__ import annotations


class TransportError(RuntimeError):
    """The request failed before or while the response body was read.

    ``status_code`` is None when no HTTP status applies (unreadable body,
    connection failure).
    """

    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @classmethod
    def from_status(cls, status_code: int, body: str) -> TransportError:
        return cls(f"API Error: {status_code} - {body}", status_code=status_code, body=body)


class DecodeError(ValueError):
    """A data line carried a payload that is not a valid event record."""
