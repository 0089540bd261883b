import copy
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import yaml
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://dashscope-intl.aliyuncs.com/compatible-mode/v1"
DEFAULT_MODEL = "qwen-vl-plus"

# Checked in order; the first non-empty variable wins
API_KEY_ENV_VARS = ("DASHSCOPE_API_KEY", "APPLESAY_API_KEY", "OPENAI_API_KEY")
BASE_URL_ENV_VARS = ("DASHSCOPE_BASE_URL", "APPLESAY_BASE_URL")
MODEL_ENV_VARS = ("VLM_MODEL", "APPLESAY_MODEL")


class VisionModelSettings(BaseModel):
    """Process-wide vision model endpoint settings, resolved once at startup"""
    model_config = ConfigDict(frozen=True)

    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


def _first_env(names: Sequence[str]) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


class ConfigManager:
    """Manages system configuration and settings"""

    def __init__(self, config_path: Optional[str] = None):
        if config_path is None:
            config_path = os.getenv(
                "VLM_TAGGER_CONFIG", str(Path("config") / "settings.yaml")
            )

        self.config_path = Path(config_path)
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file, layered over the defaults"""
        config = self._get_default_config()
        if not self.config_path.exists():
            return config

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                overrides = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {self.config_path}: {e}")
            return config

        return _deep_merge(config, overrides)

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration"""
        return {
            "vlm": {
                "base_url": DEFAULT_BASE_URL,
                "model": DEFAULT_MODEL,
                "timeout_seconds": 60,
                "temperature": 0.3,
                "max_tokens": 500,
            },
            "processing": {
                "batch_size": 5,
                "retry_attempts": 3,
                "retry_delay_seconds": 1.0,
            },
            "server": {
                "host": "0.0.0.0",
                "port": 8000,
                "process_url": "http://localhost:8000/api/process",
                "timeout_seconds": 300,
            },
            "output": {
                "directory": "./output",
                "preview_rows": 10,
            },
            "logging": {
                "level": "INFO",
                "file": "./logs/vlm_tagger.log",
                "max_file_size_mb": 10,
                "backup_count": 5,
            },
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation"""
        keys = key.split(".")
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def update(self, key: str, value: Any) -> None:
        """Update configuration value using dot notation"""
        keys = key.split(".")
        config_ref = self.config

        for k in keys[:-1]:
            if k not in config_ref:
                config_ref[k] = {}
            config_ref = config_ref[k]

        config_ref[keys[-1]] = value

    def get_api_key(self) -> Optional[str]:
        """Get the vision model API key from environment variables"""
        return _first_env(API_KEY_ENV_VARS)

    def get_vision_settings(self) -> VisionModelSettings:
        """Resolve credential, endpoint and model with their env fallbacks"""
        return VisionModelSettings(
            api_key=self.get_api_key(),
            base_url=_first_env(BASE_URL_ENV_VARS)
            or self.get("vlm.base_url")
            or DEFAULT_BASE_URL,
            model=_first_env(MODEL_ENV_VARS) or self.get("vlm.model") or DEFAULT_MODEL,
        )


def _deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def setup_logging(config: ConfigManager) -> bool:
    """Setup logging configuration

    Does nothing when the root logger already has handlers, since basicConfig
    would ignore them. Returns True when handlers were installed.
    """
    if logging.getLogger().handlers:
        return False

    log_level = str(config.get("logging.level", "INFO")).upper()
    log_file = config.get("logging.file", "./logs/vlm_tagger.log")

    # Create logs directory if it doesn't exist
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=int(config.get("logging.max_file_size_mb", 10)) * 1024 * 1024,
        backupCount=int(config.get("logging.backup_count", 5)),
        encoding="utf-8",
    )

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[file_handler, logging.StreamHandler()],
    )
    return True
