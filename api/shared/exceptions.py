"""Shared exceptions for the Continuum API."""
from typing import Any, Dict, Optional


class ContinuumException(Exception):
    """Base exception for Continuum API."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(ContinuumException):
    """Raised when a required setting is missing."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONFIGURATION_ERROR", details)


class ValidationError(ContinuumException):
    """Raised when input validation fails."""

    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthError(ContinuumException):
    """Raised when the caller cannot be identified."""

    status_code = 401

    def __init__(
        self,
        message: str = "Unauthorized. Please sign in.",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, "UNAUTHORIZED", details)


class NotFoundError(ContinuumException):
    """Raised when a resource is not found or not owned by the caller."""

    status_code = 404

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "NOT_FOUND", details)


class PersistenceError(ContinuumException):
    """Raised when database operations fail."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "PERSISTENCE_ERROR", details)
