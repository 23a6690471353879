"""
Common exception classes for the Jlama chat stream client.

Every error raised by the request issuer or the stream decoder derives from
``JlamaClientError`` so callers can catch the whole family in one place while
still distinguishing transport failures, deliberate cancellation and
undecodable stream content.
"""

from __future__ import annotations

from typing import Any


class JlamaClientError(Exception):
    """Base exception class for all client errors."""

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        *,
        status_code: int | None = None,
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error details
            status_code: Optional HTTP status code associated with the failure
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        error_dict: dict[str, Any] = {
            "message": self.message,
            "type": self.__class__.__name__,
            "details": self.details,
        }
        if self.status_code is not None:
            error_dict["status_code"] = self.status_code
        return {"error": error_dict}


class TransportError(JlamaClientError):
    """Raised when the request cannot be sent, the connection drops, or the
    server answers with a non-success status."""

    def __init__(
        self,
        message: str = "Transport failure",
        details: dict | None = None,
        *,
        status_code: int | None = None,
    ):
        super().__init__(message, details, status_code=status_code)


class CancellationError(JlamaClientError):
    """Raised when the caller's cancellation token aborts the operation."""

    def __init__(
        self,
        message: str = "Request cancelled",
        details: dict | None = None,
    ):
        super().__init__(message, details)


class DecodeError(JlamaClientError):
    """Raised when a stream line (or the flushed remainder) is not valid JSON."""

    def __init__(
        self,
        message: str = "Could not decode stream line",
        line: str | None = None,
        details: dict | None = None,
    ):
        det = details.copy() if details else {}
        if line is not None:
            det.setdefault("line", line)
        super().__init__(message, det)
        self.line = line


class ConfigurationError(JlamaClientError):
    """Raised when there's a configuration issue."""

    def __init__(
        self,
        message: str = "Configuration error",
        details: dict | None = None,
    ):
        super().__init__(message, details)
