"""Settings management API routes."""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from flask import Blueprint, jsonify, request

import grim_translator.config as config
import grim_translator.language_codes as lc
from grim_translator.config import (
    API_KEY_PLACEHOLDER,
    BUILTIN_PROVIDERS,
    BUILTIN_PROVIDER_DISPLAY_NAMES,
    LOG_MODES,
    PROVIDER_DEFAULTS,
)
from grim_translator.ai.providers import get_available_models, verify_api_key
from grim_translator.logger import get_logger, clear_log_mode_cache

settings_bp = Blueprint("settings", __name__)
logger = get_logger(__name__)


def _mask_api_key(api_key: str) -> str:
    if not api_key or api_key == API_KEY_PLACEHOLDER:
        return ""
    if len(api_key) <= 8:
        return "*" * len(api_key)
    return f"{api_key[:4]}...{api_key[-4:]}"


@settings_bp.get("/")
def get_settings():
    """Return current configuration with API keys masked."""
    current_config = config.load_config()

    for provider in BUILTIN_PROVIDERS:
        provider_config = current_config.get(provider, {})
        provider_config["api_key_set"] = bool(_mask_api_key(provider_config.get("api_key", "")))
        provider_config["api_key"] = _mask_api_key(provider_config.get("api_key", ""))

    logger.debug("Settings retrieved")

    # Return config with meta information for frontend
    return jsonify({
        "config": current_config,
        "meta": {
            "builtin_providers": [
                {"id": p, "name": BUILTIN_PROVIDER_DISPLAY_NAMES[p]}
                for p in BUILTIN_PROVIDERS
            ],
            "provider_defaults": PROVIDER_DEFAULTS,
            "log_modes": LOG_MODES,
        }
    })


@settings_bp.put("/")
def update_settings():
    """Update configuration. Provider sections are merged key by key."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or "config" not in data:
        return jsonify({"error": "Request body must contain a config object"}), 400

    new_config = data["config"]
    validation_error = validate_config(new_config)
    if validation_error:
        return jsonify({"error": validation_error}), 400

    current_config = config.load_config()
    for key, value in new_config.items():
        if isinstance(value, dict) and isinstance(current_config.get(key), dict):
            # Empty api_key means "unchanged" since GET only returns masked keys
            if key in BUILTIN_PROVIDERS and not value.get("api_key"):
                value = {k: v for k, v in value.items() if k != "api_key"}
            value = {k: v for k, v in value.items() if k != "api_key_set"}
            current_config[key].update(value)
        else:
            current_config[key] = value

    try:
        config.save_config(current_config)
    except OSError:
        return jsonify({"error": "Failed to save settings"}), 500

    # Clear log mode cache to ensure new log mode takes effect
    clear_log_mode_cache()

    logger.info("Settings updated successfully")
    return jsonify({"message": "Settings updated successfully"})


def validate_config(config_dict: Any) -> Optional[str]:
    """Validate configuration structure and return error message if invalid."""
    if not isinstance(config_dict, dict):
        return "Configuration must be an object"

    if "ai_provider" in config_dict and config_dict["ai_provider"] not in BUILTIN_PROVIDERS:
        return f"Invalid AI provider: {config_dict['ai_provider']}"

    if "log_mode" in config_dict and config_dict["log_mode"] not in LOG_MODES:
        return f"Invalid log mode: {config_dict['log_mode']}"

    for provider in BUILTIN_PROVIDERS:
        provider_config = config_dict.get(provider)
        if provider_config is None:
            continue
        if not isinstance(provider_config, dict):
            return f"{provider} config must be an object"

        if "models" in provider_config:
            models = provider_config["models"]
            if not isinstance(models, list) or not all(isinstance(m, str) for m in models):
                return f"{provider} models must be an array of strings"

        if "timeout" in provider_config:
            timeout = provider_config["timeout"]
            if not isinstance(timeout, (int, float)) or timeout <= 0:
                return f"{provider} timeout must be a positive number"

    for section in ("translation", "retry"):
        if section in config_dict and not isinstance(config_dict[section], dict):
            return f"{section} config must be an object"

    translation_config = config_dict.get("translation", {})
    if "batch_size" in translation_config:
        batch_size = translation_config["batch_size"]
        if not isinstance(batch_size, int) or batch_size < 1:
            return "translation batch_size must be at least 1"

    retry_config = config_dict.get("retry", {})
    if "max_attempts" in retry_config:
        attempts = retry_config["max_attempts"]
        if not isinstance(attempts, int) or attempts < 1:
            return "retry max_attempts must be at least 1"
    if "base_delay" in retry_config:
        base_delay = retry_config["base_delay"]
        if not isinstance(base_delay, (int, float)) or base_delay <= 0:
            return "retry base_delay must be a positive number"
    if "multiplier" in retry_config:
        multiplier = retry_config["multiplier"]
        if not isinstance(multiplier, (int, float)) or multiplier <= 1:
            return "retry multiplier must be greater than 1"

    return None


@settings_bp.post("/verify-key")
def verify_key():
    """Check an API key against the provider."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400

    provider = data.get("provider")
    api_key = data.get("api_key")

    if provider not in BUILTIN_PROVIDERS:
        return jsonify({"error": f"Invalid AI provider: {provider}"}), 400
    if not api_key or not isinstance(api_key, str):
        return jsonify({"error": "api_key is required"}), 400

    valid = asyncio.run(verify_api_key(api_key, provider))
    return jsonify({"provider": provider, "valid": valid})


@settings_bp.get("/models")
def list_models():
    """List models available to the configured API key of a provider."""
    current_config = config.load_config()
    provider = request.args.get("provider") or current_config.get("ai_provider", "gemini")

    if provider not in BUILTIN_PROVIDERS:
        return jsonify({"error": f"Invalid AI provider: {provider}"}), 400

    api_key = config.get_provider_config(provider, current_config).get("api_key", "")
    if not api_key or api_key == API_KEY_PLACEHOLDER:
        return jsonify({"error": f"{BUILTIN_PROVIDER_DISPLAY_NAMES[provider]} API key not configured", "code": "ai_config_missing"}), 400

    models = asyncio.run(get_available_models(api_key, provider))
    return jsonify({"provider": provider, "models": models})


@settings_bp.get("/languages")
def list_languages():
    """Return the language codes that have display names."""
    return jsonify({"languages": lc.get_supported_languages()})
