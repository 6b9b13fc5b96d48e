from __future__ import annotations

from typing import Optional


class LarkApiError(Exception):
    """Base class for failures talking to the LARK backend.

    `user_message` is the text that may be shown to the officer; `str(exc)`
    keeps the technical detail for logs.
    """

    default_message = "An error occurred while processing your request."

    def __init__(self, detail: str | None = None, *, user_message: Optional[str] = None) -> None:
        super().__init__(detail or self.default_message)
        self.user_message = user_message or self.default_message


class NetworkError(LarkApiError):
    """Raised when no response was received."""

    default_message = "Network error. Please check your connection."


class ApiTimeoutError(LarkApiError):
    """Raised when no response arrived within the request budget."""

    default_message = "Request timed out. Please try again."


class HttpError(LarkApiError):
    """Raised for a non-2xx response."""

    def __init__(self, status_code: int, detail: str | None = None, *, user_message: Optional[str] = None) -> None:
        super().__init__(detail or f"HTTP {status_code}", user_message=user_message)
        self.status_code = status_code


class AuthError(HttpError):
    default_message = "Authentication error. Please check your credentials."


class NotFoundError(HttpError):
    default_message = "The requested resource was not found."


class RateLimitedError(HttpError):
    default_message = "Too many requests. Please try again later."


class ServerError(HttpError):
    default_message = "Server error. Please try again later."


class ApiResponseError(LarkApiError):
    """Raised when the backend answers with `success: false`."""

    default_message = "Unknown error from API"


class ParseError(LarkApiError):
    """Raised when the backend body is not the expected JSON."""

    default_message = "Unable to understand the response from the server."


def http_error_for_status(status_code: int, api_error: str | None = None) -> HttpError:
    if status_code in (401, 403):
        cls: type[HttpError] = AuthError
    elif status_code == 404:
        cls = NotFoundError
    elif status_code == 429:
        cls = RateLimitedError
    elif status_code >= 500:
        cls = ServerError
    else:
        cls = HttpError
    return cls(status_code, f"HTTP {status_code}", user_message=api_error or None)


def user_message_for(exc: BaseException) -> str:
    if isinstance(exc, LarkApiError):
        return exc.user_message
    return str(exc) or LarkApiError.default_message


__all__ = [
    "LarkApiError",
    "NetworkError",
    "ApiTimeoutError",
    "HttpError",
    "AuthError",
    "NotFoundError",
    "RateLimitedError",
    "ServerError",
    "ApiResponseError",
    "ParseError",
    "http_error_for_status",
    "user_message_for",
]
