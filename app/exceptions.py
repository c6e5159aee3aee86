"""Domain errors rendered as JSON error envelopes by the API layer"""

from typing import Any, Optional


class AppError(Exception):
    """Base error carrying an HTTP status and a user-facing message"""
    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AppError):
    """Malformed action or input"""
    status_code = 400


class NotFoundError(AppError):
    """Missing row"""
    status_code = 404


class ConflictError(AppError):
    """Uniqueness or availability conflict"""
    status_code = 409
