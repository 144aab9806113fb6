"""
AI Translation Service Module

This module provides the main AI service for translation:
- AIService class for coordinating translations with the configured provider
- Configuration validation
- Retry policy and batch size from configuration

For provider-specific API implementations, see ai/providers.py
"""

from typing import Any, Callable, Dict, Mapping, Optional

import httpx

from grim_translator.config import (
    API_KEY_PLACEHOLDER,
    BUILTIN_PROVIDER_DISPLAY_NAMES,
    TRANSLATION_BATCH_SIZE,
    load_config,
)
from grim_translator.logger import get_logger
from grim_translator.ai.exceptions import TranslationError
from grim_translator.ai.providers import PROVIDERS, AIProvider, create_provider
from grim_translator.ai.retry import RetryController, RetryPolicy
from grim_translator.translation.translator import ProgressCallback, translate_messages

logger = get_logger(__name__)


def validate_ai_config(provider_override: Optional[str] = None, config: Optional[Dict[str, Any]] = None) -> None:
    """
    Validate that AI provider configuration is properly set up.

    Args:
        provider_override: Optional provider to validate instead of the default.
        config: Configuration to validate, loaded from file if omitted.

    Raises:
        TranslationError: If configuration is invalid or missing, with code and details.
    """
    config = config if config is not None else load_config()
    provider = provider_override if provider_override else config.get('ai_provider', 'gemini')

    if provider not in PROVIDERS:
        raise TranslationError(
            f"Unsupported AI provider: {provider}",
            code="unknown_provider",
            details={"provider": provider}
        )

    provider_display = BUILTIN_PROVIDER_DISPLAY_NAMES.get(provider, provider)
    provider_config = config.get(provider)
    if not isinstance(provider_config, dict) or not provider_config:
        raise TranslationError(
            f"AI provider '{provider}' configuration not found",
            code="ai_config_missing",
            details={"provider": provider}
        )

    api_key = provider_config.get('api_key', '')
    if not api_key or api_key == API_KEY_PLACEHOLDER:
        raise TranslationError(
            f"{provider_display} API key not configured. Please set it in Settings.",
            code="ai_config_missing",
            details={"provider": provider, "missing_field": "api_key"}
        )

    models = provider_config.get('models', [])
    valid_models = [m for m in models if m and isinstance(m, str)] if isinstance(models, list) else []
    if not valid_models:
        raise TranslationError(
            f"{provider_display} model not configured",
            code="ai_config_missing",
            details={"provider": provider, "missing_field": "models"}
        )


class AIService:
    """AI service for translation."""

    def __init__(
        self,
        model_override: Optional[str] = None,
        provider_override: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config if config is not None else load_config()
        # Use provider_override if specified, otherwise use config default
        self.provider = provider_override if provider_override else self.config.get('ai_provider', 'gemini')
        self.model_override = model_override
        self.translation_config = self._section('translation')
        self.retry_config = self._section('retry')
        self._client = client
        self._provider_instance: Optional[AIProvider] = None
        if model_override or provider_override:
            logger.info(f"Initialized AI service with provider: {self.provider}, model override: {model_override}")
        else:
            logger.info(f"Initialized AI service with provider: {self.provider}")

    def _section(self, name: str) -> Dict[str, Any]:
        section = self.config.get(name)
        if not isinstance(section, dict):
            if section is not None:
                logger.warning(f"Ignoring invalid '{name}' config section: {section!r}")
            return {}
        return section

    def _get_model(self, provider_config: Dict[str, Any]) -> Optional[str]:
        """
        Get the model to use for translation.

        Priority:
        1. model_override (if set)
        2. First model from 'models' array
        3. None (provider default)
        """
        if self.model_override:
            return self.model_override

        models = provider_config.get('models', [])
        if models and isinstance(models, list) and models[0]:
            return models[0]

        return None

    @property
    def model(self) -> str:
        return self.get_provider().model

    @property
    def batch_size(self) -> int:
        return int(self.translation_config.get('batch_size', TRANSLATION_BATCH_SIZE))

    def get_provider(self) -> AIProvider:
        """Build (once) the provider client for the configured provider."""
        if self._provider_instance is None:
            validate_ai_config(self.provider, self.config)
            provider_config = self.config[self.provider]
            self._provider_instance = create_provider(
                self.provider,
                provider_config['api_key'],
                model=self._get_model(provider_config),
                timeout=provider_config.get('timeout', 120),
                client=self._client,
            )
        return self._provider_instance

    def build_retry_controller(self) -> RetryController:
        """Retry controller using the configured retry policy."""
        policy = RetryPolicy(
            max_attempts=int(self.retry_config.get('max_attempts', RetryPolicy.max_attempts)),
            base_delay=float(self.retry_config.get('base_delay', RetryPolicy.base_delay)),
            multiplier=float(self.retry_config.get('multiplier', RetryPolicy.multiplier)),
        )
        return RetryController(policy)

    async def invoke(self, prompt: str) -> str:
        """Send a prompt to the configured model."""
        return await self.get_provider().invoke(prompt)

    async def translate(
        self,
        messages: Mapping[str, str],
        target_language: str,
        context: str = "",
        on_progress: Optional[ProgressCallback] = None,
        cancel_check: Optional[Callable[[], bool]] = None,
    ) -> Dict[str, str]:
        """
        Translate messages with the configured provider, batch size and retry policy.

        Args:
            messages: Ordered mapping of message key to source text
            target_language: Target language code
            context: Optional product context
            on_progress: Optional callback receiving (processed, total)
            cancel_check: Optional function to check for cancellation

        Returns:
            Dict with the same keys as messages
        """
        provider = self.get_provider()
        logger.debug(f"Starting translation: {len(messages)} messages to {target_language} via {provider.name}/{provider.model}")

        return await translate_messages(
            messages,
            target_language,
            context,
            provider.invoke,
            on_progress,
            batch_size=self.batch_size,
            retry=self.build_retry_controller(),
            cancel_check=cancel_check,
        )
