"""
Configuration Loader
Loads Triton client configuration from various sources
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from triton_client.config.client_config import (
    ENV_VAR_MAPPING,
    TritonConfig,
    is_pem_content,
)
from triton_client.config.config_validator import ConfigValidator
from triton_client.exceptions import ConfigError


class ConfigLoader:
    """
    ConfigLoader class
    Provides multiple ways to load and merge configuration

    This is the only place that reads the process environment; the client
    itself receives every value explicitly.
    """

    def __init__(self) -> None:
        self._validator = ConfigValidator()

    def from_file(self, path: Union[str, Path]) -> Dict[str, Any]:
        """
        Load configuration from a JSON file

        Args:
            path: Path to JSON configuration file

        Returns:
            Loaded configuration dictionary

        Raises:
            ConfigError: If file not found or invalid JSON
        """
        file_path = Path(path).resolve()

        if not file_path.exists():
            raise ConfigError(
                f"Configuration file not found: {file_path}",
                code="CONFIG_FILE_NOT_FOUND"
            )

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(
                f"Invalid JSON in configuration file: {file_path}",
                code="CONFIG_PARSE_ERROR",
                cause=e
            ) from e

        if not isinstance(config, dict):
            raise ConfigError(
                f"Configuration file must contain a JSON object: {file_path}",
                code="CONFIG_PARSE_ERROR"
            )

        return self._process_key_path(config, file_path.parent)

    def from_environment(self) -> Dict[str, Any]:
        """
        Load configuration from environment variables

        Returns:
            Configuration dictionary from environment variables
        """
        config: Dict[str, Any] = {}

        for env_var, config_key in ENV_VAR_MAPPING.items():
            value = os.environ.get(env_var)
            if value is not None and value != "":
                config[config_key] = self._parse_env_value(config_key, value)

        return config

    def from_dict(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Return a copy of a configuration dictionary"""
        return config.copy()

    def merge(self, *sources: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge multiple configuration sources
        Priority: later sources override earlier sources

        Args:
            sources: Configuration dictionaries in order of increasing priority

        Returns:
            Merged configuration dictionary
        """
        merged: Dict[str, Any] = {}

        for source in sources:
            merged.update(self._filter_none(source))

        return merged

    def resolve(self, config: Dict[str, Any]) -> TritonConfig:
        """
        Resolve configuration with defaults and validation

        Raises:
            ValidationError: If configuration is invalid
        """
        self._validator.validate_or_raise(config)
        return TritonConfig(**config)

    def load(
        self,
        file: Optional[Union[str, Path]] = None,
        env: bool = True,
        config: Optional[Dict[str, Any]] = None,
    ) -> TritonConfig:
        """
        Load, merge, and resolve configuration from multiple sources

        Args:
            file: Path to JSON configuration file (optional)
            env: Whether to load from environment variables (default: True)
            config: Programmatic configuration dictionary (optional)

        Returns:
            Fully resolved TritonConfig object
        """
        sources: List[Dict[str, Any]] = []

        if file is not None:
            sources.append(self.from_file(file))

        if env:
            sources.append(self.from_environment())

        if config is not None:
            sources.append(config)

        return self.resolve(self.merge(*sources))

    def create_template(self, path: Union[str, Path]) -> None:
        """
        Create a configuration template file

        Args:
            path: Path to write template
        """
        template = {
            "endpoint": "https://us-east-1.api.joyent.com",
            "account_name": "YOUR_ACCOUNT",
            "key_id": "00:00:00:00:00:00:00:00:00:00:00:00:00:00:00:00",
            "key_material": "~/.ssh/id_rsa",
            "private_key_password": "",
            "insecure_skip_tls_verify": False,
        }

        file_path = Path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(template, f, indent=2)

    def _parse_env_value(self, key: str, value: str) -> Any:
        """Parse environment variable value to appropriate type"""
        if key == "insecure_skip_tls_verify":
            return value.lower() in ("true", "1", "yes")

        return value

    def _process_key_path(
        self, config: Dict[str, Any], base_path: Path
    ) -> Dict[str, Any]:
        """Resolve a relative key_material path against the config file"""
        processed = config.copy()

        key = processed.get("key_material")
        if isinstance(key, str) and key and not is_pem_content(key):
            key_path = Path(key).expanduser()
            if not key_path.is_absolute():
                processed["key_material"] = str(base_path / key_path)

        return processed

    def _filter_none(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Filter out None values from config dictionary"""
        return {k: v for k, v in config.items() if v is not None}
