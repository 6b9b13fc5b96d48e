# The client is imported from its module; importing it here would cycle
# through reliability.timeouts.
from .errors import (
    ApiResponseError,
    ApiTimeoutError,
    AuthError,
    HttpError,
    LarkApiError,
    NetworkError,
    NotFoundError,
    ParseError,
    RateLimitedError,
    ServerError,
    user_message_for,
)

__all__ = [
    "ApiResponseError",
    "ApiTimeoutError",
    "AuthError",
    "HttpError",
    "LarkApiError",
    "NetworkError",
    "NotFoundError",
    "ParseError",
    "RateLimitedError",
    "ServerError",
    "user_message_for",
]
