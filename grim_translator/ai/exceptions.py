"""
AI Service Exceptions

This module contains exception classes for the AI service.
Separated to avoid circular imports between service.py, retry.py and providers.py.
"""


class TranslationError(Exception):
    """Translation service error with optional code and details."""

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}


class RateLimitError(TranslationError):
    """Raised when the provider keeps rate limiting after all retry attempts."""

    name = "RateLimitError"
    MESSAGE = "Rate limit exceeded. Maximum retry attempts reached."

    def __init__(self, details: dict = None):
        super().__init__(self.MESSAGE, code="rate_limit", details=details)


class TranslationCancelledError(TranslationError):
    """Raised when a translation run is cancelled between batches."""

    name = "TranslationCancelledError"

    def __init__(self, message: str = "Translation cancelled", details: dict = None):
        super().__init__(message, code="cancelled", details=details)
