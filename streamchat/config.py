"""Configuration management for the streaming chat client."""

import os
from typing import Any

import yaml
from dotenv import load_dotenv

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "config.yaml")

REQUIRED_LLM_KEYS = [
    "base_url", "endpoint", "model", "temperature", "api_key_env", "system_prompt"
]
HTTP_CLIENT_KEYS = [
    "connect_timeout", "read_timeout", "write_timeout", "pool_timeout"
]


class Configuration:
    """Manages configuration and environment variables for the chat client."""

    def __init__(self, config_path: str | None = None) -> None:
        """Initialize configuration from YAML and environment variables."""
        self.load_env()  # Load .env for API keys
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self._config = self._load_yaml_config()

    @staticmethod
    def load_env() -> None:
        """Load environment variables from .env file."""
        load_dotenv()

    def _load_yaml_config(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        with open(self.config_path, encoding="utf-8") as file:
            config = yaml.safe_load(file)
            if not isinstance(config, dict):
                raise ValueError(
                    f"Config file must be YAML dict, got {type(config)}"
                )
            return config

    @property
    def active_provider(self) -> str:
        return self._config.get("llm", {}).get("active", "deepseek")

    @property
    def llm_api_key(self) -> str:
        """Get the API key for the active LLM provider.

        Returns:
            The API key as a string.

        Raises:
            ValueError: If the API key is not found in environment variables.
        """
        env_key = self.get_llm_config()["api_key_env"]

        api_key = os.getenv(env_key)
        if not api_key:
            raise ValueError(
                f"API key '{env_key}' not found in environment variables "
                f"for provider '{self.active_provider}'"
            )

        return api_key

    def get_llm_config(self) -> dict[str, Any]:
        """Get active LLM provider configuration from YAML.

        Returns:
            Active LLM provider configuration dictionary.

        Raises:
            ValueError: If the active provider or one of its required
                parameters is not configured.
        """
        providers = self._config.get("llm", {}).get("providers", {})
        active_provider = self.active_provider

        if active_provider not in providers:
            raise ValueError(
                f"Active provider '{active_provider}' not found in providers config"
            )

        llm_config = providers[active_provider]
        for key in REQUIRED_LLM_KEYS:
            if key not in llm_config:
                raise ValueError(
                    f"Required LLM configuration parameter '{key}' not found "
                    f"for provider '{active_provider}'. "
                    "All LLM parameters must be explicitly configured."
                )

        return llm_config

    def get_http_client_config(self) -> dict[str, Any]:
        """Get HTTP client timeouts for the active LLM provider.

        Returns:
            HTTP client configuration dictionary with validated values.

        Raises:
            ValueError: If a timeout is missing or not positive.
        """
        http_config = self.get_llm_config().get("http_client", {})

        for key in HTTP_CLIENT_KEYS:
            if key not in http_config:
                raise ValueError(
                    f"http_client.{key} must be explicitly configured "
                    f"for provider '{self.active_provider}' in config.yaml"
                )
            value = http_config[key]
            if value is not None and value <= 0:
                raise ValueError(f"http_client.{key} must be positive or null")

        return http_config
