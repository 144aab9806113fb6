"""
AI Provider API Implementations

This module contains the API implementations for each AI provider:
- Gemini
- OpenAI
- Anthropic

Each provider can invoke a model with a prompt (returning the text response),
verify an API key, and list the models available to that key.
"""

from typing import Any, Dict, List, Optional

import httpx

from grim_translator.logger import get_logger
from grim_translator.ai.exceptions import TranslationError

logger = get_logger(__name__)

MAX_OUTPUT_TOKENS = 8192

ANTHROPIC_API_VERSION = "2023-06-01"

ANTHROPIC_MODELS = [
    {"value": "claude-sonnet-4-0", "label": "Claude Sonnet 4"},
    {"value": "claude-3-7-sonnet-latest", "label": "Claude 3.7 Sonnet"},
    {"value": "claude-3-5-haiku-latest", "label": "Claude 3.5 Haiku"},
    {"value": "claude-opus-4-0", "label": "Claude Opus 4"},
]


def get_httpx_timeout(timeout_config: Any) -> httpx.Timeout:
    """
    Convert timeout configuration to httpx.Timeout object.

    Args:
        timeout_config: Either a number (total timeout) or a dict with
            connect, write, read, pool keys

    Returns:
        httpx.Timeout object
    """
    if isinstance(timeout_config, dict):
        return httpx.Timeout(
            connect=timeout_config.get('connect', 10.0),
            write=timeout_config.get('write', 60.0),
            read=timeout_config.get('read', 120.0),
            pool=timeout_config.get('pool', 10.0),
        )
    else:
        timeout_value = float(timeout_config) if timeout_config else 120.0
        return httpx.Timeout(
            connect=10.0,
            write=60.0,
            read=timeout_value,
            pool=10.0,
        )


def handle_http_error(e: httpx.HTTPStatusError, provider: str):
    """Raise a TranslationError carrying the status code and API error message."""
    status_code = e.response.status_code
    error_text = "Unknown error"

    try:
        error_json = e.response.json()
        if isinstance(error_json, dict) and "error" in error_json:
            error_detail = error_json["error"]
            if isinstance(error_detail, dict):
                error_text = error_detail.get("message", str(error_detail))
            else:
                error_text = str(error_detail)
    except ValueError:
        error_text = e.response.text[:500] or "No details"

    raise TranslationError(
        f"{provider} API error ({status_code}): {error_text}",
        code="provider_http_error",
        details={"provider": provider, "status_code": status_code},
    ) from e


class AIProvider:
    """
    Base class for AI providers.

    Subclasses implement the HTTP specifics; the translation pipeline only
    ever sees `invoke`.
    """

    name = ""
    display_name = ""
    default_model = ""

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        timeout: Any = 120,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.model = model or self.default_model
        self.timeout = get_httpx_timeout(timeout)
        # Injected clients are owned by the caller and never closed here
        self._client = client

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        if self._client is not None:
            return await self._client.request(method, url, **kwargs)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.request(method, url, **kwargs)

    async def invoke(self, prompt: str) -> str:
        """
        Send a prompt to the model and return its text response.

        Raises:
            TranslationError: On HTTP errors, timeouts and unexpected payloads
        """
        logger.debug(f"  Calling {self.display_name} API (model: {self.model})...")

        try:
            response = await self._request(**self._build_invoke_request(prompt))
            response.raise_for_status()
            text = self._extract_text(response.json())
        except httpx.HTTPStatusError as e:
            logger.error(f"{self.display_name} API HTTP error: {e.response.status_code}")
            handle_http_error(e, self.display_name)
        except httpx.TimeoutException as e:
            raise TranslationError(f"{self.display_name} API request timeout", code="provider_timeout") from e
        except httpx.HTTPError as e:
            raise TranslationError(f"{self.display_name} API call failed: {e}", code="provider_unavailable") from e
        except ValueError as e:
            raise TranslationError(f"{self.display_name} API returned invalid JSON: {e}") from e

        logger.debug(f"  Received {len(text)} chars from {self.display_name}")
        return text

    async def verify_api_key(self) -> bool:
        """Check the API key against the provider. Network errors count as invalid."""
        try:
            response = await self._request(**self._build_verify_request())
        except httpx.HTTPError as e:
            logger.warning(f"{self.display_name} API key verification failed: {e}")
            return False

        valid = response.is_success
        logger.info(f"{self.display_name} API key verification: {'valid' if valid else 'invalid'} ({response.status_code})")
        return valid

    async def list_models(self) -> List[Dict[str, str]]:
        """
        List models usable for translation.

        Returns:
            List of {"value": model_id, "label": display_name}, empty on any failure
        """
        try:
            response = await self._request(**self._build_verify_request())
            response.raise_for_status()
            return self._parse_models(response.json())
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Failed to fetch {self.display_name} models: {e}")
            return []

    def _build_invoke_request(self, prompt: str) -> Dict[str, Any]:
        raise NotImplementedError

    def _build_verify_request(self) -> Dict[str, Any]:
        raise NotImplementedError

    def _extract_text(self, result: Dict[str, Any]) -> str:
        raise NotImplementedError

    def _parse_models(self, result: Dict[str, Any]) -> List[Dict[str, str]]:
        raise NotImplementedError


class GeminiProvider(AIProvider):
    """Google Gemini via the generativelanguage REST API."""

    name = "gemini"
    display_name = "Gemini"
    default_model = "gemini-2.0-flash"
    base_url = "https://generativelanguage.googleapis.com/v1beta"

    def _build_invoke_request(self, prompt: str) -> Dict[str, Any]:
        return {
            "method": "POST",
            "url": f"{self.base_url}/models/{self.model}:generateContent",
            "params": {"key": self.api_key},
            "json": {
                "contents": [{"parts": [{"text": prompt}]}],
                "generationConfig": {"maxOutputTokens": MAX_OUTPUT_TOKENS},
            },
        }

    def _build_verify_request(self) -> Dict[str, Any]:
        return {
            "method": "GET",
            "url": f"{self.base_url}/models",
            "params": {"key": self.api_key},
        }

    def _extract_text(self, result: Dict[str, Any]) -> str:
        usage_metadata = result.get('usageMetadata', {})
        if usage_metadata:
            logger.debug(f"Gemini usageMetadata: {usage_metadata}")

        candidates = result.get('candidates') or []
        if candidates:
            parts = candidates[0].get('content', {}).get('parts') or []
            if parts:
                return parts[0].get('text', '')

        raise TranslationError(f"Unexpected Gemini API response format: {result}")

    def _parse_models(self, result: Dict[str, Any]) -> List[Dict[str, str]]:
        models = []
        for model in result.get('models', []):
            if 'generateContent' not in model.get('supportedGenerationMethods', []):
                continue
            model_id = model['name'].replace('models/', '', 1)
            models.append({"value": model_id, "label": model.get('displayName', model_id)})
        return models


class OpenAIProvider(AIProvider):
    """OpenAI chat completions."""

    name = "openai"
    display_name = "OpenAI"
    default_model = "gpt-4o-mini"
    base_url = "https://api.openai.com/v1"

    def _headers(self) -> Dict[str, str]:
        return {"authorization": f"Bearer {self.api_key}"}

    def _build_invoke_request(self, prompt: str) -> Dict[str, Any]:
        return {
            "method": "POST",
            "url": f"{self.base_url}/chat/completions",
            "headers": self._headers(),
            "json": {
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
            },
        }

    def _build_verify_request(self) -> Dict[str, Any]:
        return {
            "method": "GET",
            "url": f"{self.base_url}/models",
            "headers": self._headers(),
        }

    def _extract_text(self, result: Dict[str, Any]) -> str:
        usage = result.get('usage', {})
        if usage:
            logger.debug(f"OpenAI token usage: {usage}")

        choices = result.get('choices') or []
        if choices:
            return choices[0].get('message', {}).get('content') or ''

        raise TranslationError("No content in OpenAI response")

    def _parse_models(self, result: Dict[str, Any]) -> List[Dict[str, str]]:
        return [
            {"value": model['id'], "label": model['id']}
            for model in result.get('data', [])
            if model.get('id', '').startswith('gpt')
        ]


class AnthropicProvider(AIProvider):
    """Anthropic messages API."""

    name = "anthropic"
    display_name = "Anthropic"
    default_model = "claude-3-5-haiku-latest"
    base_url = "https://api.anthropic.com/v1"

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_API_VERSION,
        }

    def _build_invoke_request(self, prompt: str) -> Dict[str, Any]:
        return {
            "method": "POST",
            "url": f"{self.base_url}/messages",
            "headers": self._headers(),
            "json": {
                "model": self.model,
                "max_tokens": MAX_OUTPUT_TOKENS,
                "messages": [{"role": "user", "content": prompt}],
            },
        }

    def _build_verify_request(self) -> Dict[str, Any]:
        return {
            "method": "GET",
            "url": f"{self.base_url}/models",
            "headers": self._headers(),
        }

    def _extract_text(self, result: Dict[str, Any]) -> str:
        blocks = [block.get('text', '') for block in result.get('content', []) if block.get('type') == 'text']
        if blocks:
            return ''.join(blocks)

        raise TranslationError("No content in Anthropic response")

    async def list_models(self) -> List[Dict[str, str]]:
        # Static list, no request needed
        return [dict(model) for model in ANTHROPIC_MODELS]


PROVIDERS = {
    GeminiProvider.name: GeminiProvider,
    OpenAIProvider.name: OpenAIProvider,
    AnthropicProvider.name: AnthropicProvider,
}


def create_provider(
    provider: str,
    api_key: str,
    model: Optional[str] = None,
    timeout: Any = 120,
    client: Optional[httpx.AsyncClient] = None,
) -> AIProvider:
    """Create a provider instance by name."""
    provider_class = PROVIDERS.get(provider)
    if provider_class is None:
        raise TranslationError(
            f"Unsupported AI provider: {provider}",
            code="unknown_provider",
            details={"provider": provider, "supported": sorted(PROVIDERS)},
        )
    return provider_class(api_key, model=model, timeout=timeout, client=client)


async def verify_api_key(api_key: str, provider: str, client: Optional[httpx.AsyncClient] = None) -> bool:
    """Verify an API key for the given provider."""
    return await create_provider(provider, api_key, client=client).verify_api_key()


async def get_available_models(
    api_key: str,
    provider: str,
    client: Optional[httpx.AsyncClient] = None,
) -> List[Dict[str, str]]:
    """List models available to an API key for the given provider."""
    return await create_provider(provider, api_key, client=client).list_models()
