"""Simple YAML configuration loader for MediVoice."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

# Environment variables that take precedence over the YAML file.
ENV_OVERRIDES = {
    "MEDIVOICE_SERVICE_URL": "service.base_url",
    "MEDIVOICE_ACCESS_TOKEN": "auth.access_token",
    "MEDIVOICE_PUBLISHABLE_KEY": "auth.publishable_key",
}

DEFAULT_ENDPOINTS = {
    "transcribe": "transcribe",
    "process": "process-transcription",
    "enhance": "enhance-transcription",
    "generate": "generate-report",
}

# Keys holding filesystem paths; relative values are taken from the config file's directory.
PATH_KEYS = ("storage.data_directory", "logging.file_path")


class MediVoiceConfig:
    """MediVoice configuration loader."""

    def __init__(self, config_path: str):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file (see medivoice.example.yaml)
        """
        if not config_path:
            raise ValueError("A configuration file path is required (use --config)")
        self.config_file = Path(config_path)

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()
        self._resolve_paths()
        self._apply_env_overrides()
        logger.info("Configuration loaded successfully")

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        if not config:
            raise ValueError("Configuration file is empty")
        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping")
        return config

    def _resolve_paths(self) -> None:
        config_dir = self.config_file.parent
        for key_path in PATH_KEYS:
            path = self.get(key_path)
            if path and not os.path.isabs(path):
                self.set(key_path, str(config_dir / path))

    def _apply_env_overrides(self) -> None:
        for env_name, key_path in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                self.set(key_path, value)
                logger.info(f"Configuration key '{key_path}' overridden by {env_name}")

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'generation.timeout_seconds').

        Args:
            key_path: Dot-separated key path (e.g., 'service.base_url')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        section = self.config
        *parents, leaf = key_path.split('.')
        for key in parents:
            section = section.get(key) if isinstance(section, dict) else None
        if isinstance(section, dict) and leaf in section:
            return section[leaf]
        return default

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation, creating sections as needed."""
        section = self.config
        *parents, leaf = key_path.split('.')
        for key in parents:
            if not isinstance(section.get(key), dict):
                section[key] = {}
            section = section[key]
        section[leaf] = value
        logger.debug(f"Configuration key '{key_path}' set")

    def get_service_url(self) -> Optional[str]:
        """Get base URL of the AI functions host; None when not configured."""
        url = self.get('service.base_url')
        if not url:
            logger.warning("service.base_url is not configured - remote AI features are unavailable")
            return None
        return str(url)

    def get_endpoint_path(self, name: str) -> str:
        """Get the function path for 'transcribe', 'process', 'enhance' or 'generate'."""
        if name not in DEFAULT_ENDPOINTS:
            raise KeyError(f"Unknown endpoint: {name}")
        return self.get(f'service.endpoints.{name}', DEFAULT_ENDPOINTS[name])

    def get_timeout(self, section: str, default: float) -> float:
        """Get ``<section>.timeout_seconds`` as a float."""
        return float(self.get(f'{section}.timeout_seconds', default))

    def get_fallback_word_delay(self) -> float:
        """Get delay between fallback report words in seconds."""
        return float(self.get('generation.fallback_word_delay_ms', 50)) / 1000.0

    def get_data_directory(self) -> str:
        """Get data directory path."""
        return str(Path(self.get('storage.data_directory', 'data')).absolute())
