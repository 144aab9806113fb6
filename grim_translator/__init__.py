"""
grim-translator: AI-powered translation engine for localization files.

Translates key/value message maps with a language model, in bounded batches,
with automatic retry when the provider rate limits.
"""

__version__ = "0.1.0"

from grim_translator.ai.exceptions import RateLimitError, TranslationCancelledError, TranslationError
from grim_translator.ai.providers import get_available_models, verify_api_key
from grim_translator.ai.retry import RetryController, RetryPolicy
from grim_translator.ai.service import AIService
from grim_translator.translation import TranslationProgress, translate_messages

__all__ = [
    "translate_messages",
    "RateLimitError",
    "TranslationError",
    "TranslationCancelledError",
    "RetryController",
    "RetryPolicy",
    "TranslationProgress",
    "AIService",
    "verify_api_key",
    "get_available_models",
]
