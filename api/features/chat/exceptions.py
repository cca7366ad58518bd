"""Exceptions for the Chat feature."""
from typing import Any, Dict, Optional

from api.shared.exceptions import ContinuumException


class UpstreamError(ContinuumException):
    """Raised when the completion service call fails."""

    status_code = 500

    def __init__(
        self,
        message: str,
        error_code: str = "UPSTREAM_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, details)


class UpstreamAuthError(UpstreamError):
    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            "Invalid OpenAI API Key. Please check your OPENAI_API_KEY setting.",
            "UPSTREAM_AUTH_ERROR",
            details,
        )


class UpstreamRateLimitError(UpstreamError):
    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            "OpenAI API rate limit exceeded. Please try again later.",
            "UPSTREAM_RATE_LIMIT",
            details,
        )


class UpstreamServerError(UpstreamError):
    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            "OpenAI API server error. Please try again later.",
            "UPSTREAM_SERVER_ERROR",
            details,
        )


class EmptyReplyError(UpstreamError):
    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__("OpenAI returned an empty response.", "EMPTY_REPLY", details)
