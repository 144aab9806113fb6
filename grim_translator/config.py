
import copy
import json
import os
from pathlib import Path
from typing import Dict, Any

from grim_translator.logger import get_logger

logger = get_logger(__name__)

# Translation configuration constants
TRANSLATION_BATCH_SIZE = 100  # Maximum messages per model request

# Retry configuration constants
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 1.0  # Seconds before the first retry
DEFAULT_BACKOFF_MULTIPLIER = 2.0

# Provider configuration constants
BUILTIN_PROVIDERS = ["gemini", "openai", "anthropic"]

BUILTIN_PROVIDER_DISPLAY_NAMES = {
    "gemini": "Gemini",
    "openai": "OpenAI",
    "anthropic": "Anthropic"
}

PROVIDER_DEFAULTS = {
    "timeout": 120
}

API_KEY_PLACEHOLDER = "YOUR_API_KEY_HERE"

LOG_MODES = ["off", "info", "debug"]

# Get base directory (project root)
BASE_DIR = Path(__file__).parent.parent
CONFIG_DIR = BASE_DIR / "config"
CONFIG_FILE = Path(os.environ.get("GRIM_TRANSLATOR_CONFIG", CONFIG_DIR / "config.json"))

# Default configuration template
DEFAULT_CONFIG = {
    "ai_provider": "gemini",
    "gemini": {
        "api_key": API_KEY_PLACEHOLDER,
        "models": ["gemini-2.0-flash", "gemini-2.5-flash"],  # First is default
        "timeout": 120,
    },
    "openai": {
        "api_key": API_KEY_PLACEHOLDER,
        "models": ["gpt-4o-mini", "gpt-4o"],  # First is default
        "timeout": 120,
    },
    "anthropic": {
        "api_key": API_KEY_PLACEHOLDER,
        "models": ["claude-3-5-haiku-latest", "claude-sonnet-4-0"],  # First is default
        "timeout": 120,
    },
    "translation": {
        "batch_size": TRANSLATION_BATCH_SIZE,
    },
    "retry": {
        "max_attempts": DEFAULT_MAX_ATTEMPTS,
        "base_delay": DEFAULT_BASE_DELAY,
        "multiplier": DEFAULT_BACKOFF_MULTIPLIER,
    },
    "log_mode": "off"
}


def ensure_config_directory():
    """Ensure the config directory exists."""
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    logger.debug(f"Config directory ensured: {CONFIG_FILE.parent}")


def create_default_config():
    """Create the default config.json file."""
    ensure_config_directory()
    with open(CONFIG_FILE, 'w', encoding='utf-8') as f:
        json.dump(DEFAULT_CONFIG, f, indent=4, ensure_ascii=False)
    logger.info(f"Created default config file: {CONFIG_FILE}")


def initialize_app():
    """
    Initialize the application.
    Creates the default configuration file on first run.
    """
    logger.info("Initializing application...")

    if not CONFIG_FILE.exists():
        try:
            create_default_config()
        except OSError as e:
            logger.error(f"Failed to create default config: {e}")
            logger.warning("Application will use in-memory default configuration")
    else:
        logger.debug("Config file already exists")

    logger.info("Application initialization complete")


def _merge_defaults(config: Dict[str, Any]) -> Dict[str, Any]:
    """Fill in missing sections and keys from DEFAULT_CONFIG."""
    merged = copy.deepcopy(DEFAULT_CONFIG)
    for key, value in config.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


def load_config() -> Dict[str, Any]:
    """Load the configuration from the config file, merged over the defaults."""
    if not CONFIG_FILE.exists():
        logger.debug("No config file, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(CONFIG_FILE, 'r', encoding='utf-8') as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse config file {CONFIG_FILE}: {e}")
        logger.warning("Using default configuration")
        return copy.deepcopy(DEFAULT_CONFIG)
    except OSError as e:
        logger.error(f"Failed to read config file {CONFIG_FILE}: {e}")
        logger.warning("Using default configuration")
        return copy.deepcopy(DEFAULT_CONFIG)

    if not isinstance(config, dict):
        logger.error(f"Config file {CONFIG_FILE} does not contain an object")
        return copy.deepcopy(DEFAULT_CONFIG)

    logger.debug("Configuration loaded from file")
    return _merge_defaults(config)


def save_config(config: Dict[str, Any]):
    """Save the configuration to the config file."""
    try:
        ensure_config_directory()
        with open(CONFIG_FILE, 'w', encoding='utf-8') as f:
            json.dump(config, f, indent=4, ensure_ascii=False)
        logger.info("Configuration saved")
    except OSError as e:
        logger.error(f"Failed to save config: {e}")
        raise


def get_provider_config(provider: str, config: Dict[str, Any] = None) -> Dict[str, Any]:
    """Get one provider's section, empty if not configured."""
    config = config if config is not None else load_config()
    provider_config = config.get(provider, {})
    return provider_config if isinstance(provider_config, dict) else {}
