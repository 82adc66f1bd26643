"""Exceptions raised by the Gogs API client."""

from __future__ import annotations

from typing import Optional


class GogsError(Exception):
    """Base class for all Gogs integration errors."""

    pass


class GogsRequestError(GogsError):
    """Raised when a request to the Gogs server fails.

    A non-2xx response carries the HTTP status code and the raw response body
    for diagnostics. A pure transport failure (connection refused, timeout,
    DNS error) is reported with ``status == 0``.

    Example:
        Fetching a branch that does not exist raises
        ``GogsRequestError(404, "...")``.
    """

    def __init__(self, status: int, body: str = "", message: Optional[str] = None):
        self.status = status
        self.body = body
        if message is None:
            message = f"HTTP request error. Status: {status}.\n{body}"
        super().__init__(message)

    @classmethod
    def communication_error(cls, exc: BaseException) -> "GogsRequestError":
        """Wrap a transport level failure."""
        return cls(0, str(exc), message=f"Communication error: {exc}")

    @property
    def is_not_found(self) -> bool:
        return self.status == 404


class GogsParseError(GogsError):
    """Raised when a Gogs response body cannot be decoded into the model."""

    def __init__(self, message: str, body: str = ""):
        self.body = body
        super().__init__(message)


__all__ = [
    "GogsError",
    "GogsParseError",
    "GogsRequestError",
]
