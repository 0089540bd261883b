"""
Shared pytest fixtures for the VLM product tagger tests.
"""

import pytest

from vlm_tagger.utils.config import (
    API_KEY_ENV_VARS,
    BASE_URL_ENV_VARS,
    MODEL_ENV_VARS,
    ConfigManager,
    VisionModelSettings,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's real credentials out of the tests."""
    for name in API_KEY_ENV_VARS + BASE_URL_ENV_VARS + MODEL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("VLM_TAGGER_CONFIG", raising=False)


@pytest.fixture
def config(tmp_path):
    """Default settings with output redirected to a temp directory."""
    manager = ConfigManager(str(tmp_path / "missing_settings.yaml"))
    manager.update("output.directory", str(tmp_path / "output"))
    manager.update("processing.retry_delay_seconds", 0)
    return manager


@pytest.fixture
def vision_settings():
    return VisionModelSettings(
        api_key="sk-test", base_url="https://vlm.example.com/v1", model="qwen-vl-plus"
    )
