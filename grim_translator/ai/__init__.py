"""
AI Module

This module provides error types, retry control and provider clients.
The configured service lives in grim_translator.ai.service.
"""

from grim_translator.ai.exceptions import RateLimitError, TranslationCancelledError, TranslationError
from grim_translator.ai.retry import ErrorKind, RetryController, RetryPolicy, classify_error
from grim_translator.ai.providers import (
    AIProvider,
    create_provider,
    get_available_models,
    verify_api_key,
)

__all__ = [
    'TranslationError',
    'RateLimitError',
    'TranslationCancelledError',
    'ErrorKind',
    'RetryController',
    'RetryPolicy',
    'classify_error',
    'AIProvider',
    'create_provider',
    'get_available_models',
    'verify_api_key',
]
