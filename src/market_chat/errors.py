"""Request-level errors and their mapping to HTTP (status_code, detail)."""
import asyncio
from dataclasses import dataclass

import httpx


class ChatError(Exception):
    """Base class for errors that end a chat request before streaming starts."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ChatError):
    """The request is missing a required field."""

    status_code = 400


class ConfigurationError(ChatError):
    """The server lacks a credential it needs for this request."""

    status_code = 500


class QuotaExceededError(ChatError):
    """An anonymous caller used up the daily allowance for elevated modes."""

    status_code = 429


class UpstreamCompletionError(ChatError):
    """The completion provider refused the request or the connection failed.

    ``message`` holds upstream detail for logs only; callers see the generic
    text from ChatErrorMapper.
    """

    status_code = 502


GENERIC_UPSTREAM_DETAIL = (
    "The AI service is temporarily unavailable. Please try again shortly."
)


@dataclass(frozen=True)
class ChatErrorMapper:
    """Maps request errors to HTTP (status_code, detail).

    Configuration, validation and quota errors keep their message so the
    caller can act on it. Upstream and unexpected failures get a generic
    detail so provider error text never reaches the client.
    """

    upstream_detail: str = GENERIC_UPSTREAM_DETAIL

    def to_http(self, exc: Exception) -> tuple[int, str]:
        """Map an exception raised while preparing a chat to (status_code, detail).

        Args:
            exc: The exception raised by the chat service.

        Returns:
            (status_code, detail) suitable for a JSON ``{"error": detail}`` body.
        """
        if isinstance(exc, UpstreamCompletionError):
            return (exc.status_code, self.upstream_detail)
        if isinstance(exc, ChatError):
            return (exc.status_code, exc.message)
        if isinstance(exc, httpx.HTTPError):
            return (502, self.upstream_detail)
        if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
            return (504, self.upstream_detail)
        return (500, "Internal server error")
