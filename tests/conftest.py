"""
Pytest configuration and fixtures for the grim-translator test suite.

This module provides reusable fixtures for:
- Isolated configuration files
- Retry controllers that do not actually sleep
"""

import json
import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path to import grim_translator.* modules
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import grim_translator.config as config  # noqa: E402
from grim_translator.ai.retry import RetryController, RetryPolicy  # noqa: E402


@pytest.fixture
def sleeps():
    """Recorded backoff delays of the no_sleep_retry controller."""
    return []


@pytest.fixture
def no_sleep_retry(sleeps):
    """Default retry policy with sleeps recorded instead of awaited."""
    async def fake_sleep(delay):
        sleeps.append(delay)

    return RetryController(RetryPolicy(), sleep=fake_sleep)


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    """Point configuration at a temporary file and return its path."""
    path = tmp_path / "config" / "config.json"
    monkeypatch.setattr(config, "CONFIG_FILE", path)
    return path


@pytest.fixture
def configured(config_file):
    """Write a config with a Gemini key set and fast retries."""
    data = json.loads(json.dumps(config.DEFAULT_CONFIG))
    data["gemini"]["api_key"] = "test-gemini-key"
    data["retry"]["base_delay"] = 0.001
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(data), encoding="utf-8")
    return data
