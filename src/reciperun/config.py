"""Configuration management for reciperun.

This module provides a centralized configuration system that supports:
- Default values for all settings
- Loading from TOML configuration files
- Environment variable overrides
- Validation of configuration values

Configuration priority (highest to lowest):
1. CLI arguments (applied with ``ImportConfig.update``)
2. Environment variables (RECIPERUN_*)
3. Project config file (.reciperun.toml)
4. User config file (~/.config/reciperun/config.toml)
5. Default values

The OpenAI API key is never part of the configuration; the client reads it
from ``OPENAI_API_KEY``.

Example:
    >>> config = ImportConfig.load()
    >>> config.update(model="gpt-4o")
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .exceptions import ConfigurationError

VALID_MODELS = frozenset({"gpt-4o", "gpt-4o-mini", "gpt-5-nano", "gpt-5-mini"})

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)


@dataclass
class ImportConfig:
    """Configuration for recipe import.

    Attributes:
        Model Settings:
            model: OpenAI model used for every generation call
            temperature: Sampling temperature (0.0 = deterministic)
            request_timeout: Seconds allowed per generation call

        Fetch Settings:
            fetch_timeout: Seconds allowed per HTTP page fetch
            page_load_timeout: Seconds allowed for a browser page load
            user_agent: User agent for HTTP requests and the browser
            headless: Run the fallback browser headless
            enable_browser_fallback: Include the browser strategy in the chain
            max_page_chars: Rendered page text sent to the model is cut to this

        Output Settings:
            output_dir: Directory used by the file repository
            debug_mode: Enable debug logging

    Example:
        >>> config = ImportConfig()
        >>> config.model = "gpt-4o"
        >>> config.page_load_timeout = 30.0
    """

    # Model settings
    model: str = "gpt-4o-mini"
    temperature: float = 0.0
    request_timeout: float = 120.0

    # Fetch settings
    fetch_timeout: float = 15.0
    page_load_timeout: float = 60.0
    user_agent: str = DEFAULT_USER_AGENT
    headless: bool = True
    enable_browser_fallback: bool = True
    max_page_chars: int = 60000

    # Output settings
    output_dir: Path = field(default_factory=lambda: Path("recipes"))
    debug_mode: bool = False

    def __post_init__(self) -> None:
        """Validate configuration values after initialization."""
        self._validate()

    def _validate(self) -> None:
        """Validate configuration values.

        Raises:
            ConfigurationError: If any configuration value is invalid
        """
        if self.model not in VALID_MODELS:
            raise ConfigurationError(
                f"Invalid model: {self.model}",
                model=self.model,
                valid_models=", ".join(sorted(VALID_MODELS)),
            )

        if not 0.0 <= self.temperature <= 2.0:
            raise ConfigurationError(
                "Temperature must be between 0.0 and 2.0",
                temperature=self.temperature,
            )

        for name in ("request_timeout", "fetch_timeout", "page_load_timeout"):
            value = getattr(self, name)
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive", **{name: value})

        if self.max_page_chars < 1000:
            raise ConfigurationError(
                "max_page_chars must be at least 1000",
                max_page_chars=self.max_page_chars,
            )

        if not self.user_agent.strip():
            raise ConfigurationError("user_agent must not be empty")

        # May receive str from config/env
        if not isinstance(self.output_dir, Path):  # type: ignore[reportUnnecessaryIsInstance]
            self.output_dir = Path(self.output_dir)

    @classmethod
    def load(
        cls,
        config_path: str | Path | None = None,
        load_user_config: bool = True,
        load_env: bool = True,
    ) -> "ImportConfig":
        """Load configuration from file(s) and environment variables.

        Configuration is loaded in this order (later overrides earlier):
        1. Default values
        2. User config file (~/.config/reciperun/config.toml)
        3. Project config file (.reciperun.toml or specified path)
        4. Environment variables (RECIPERUN_*)

        Args:
            config_path: Path to project config file (optional)
            load_user_config: Whether to load user config file
            load_env: Whether to load environment variables

        Returns:
            Loaded and validated configuration

        Raises:
            ConfigurationError: If configuration is invalid
        """
        config_dict: dict[str, Any] = {}

        if load_user_config:
            user_config_path = Path.home() / ".config" / "reciperun" / "config.toml"
            if user_config_path.exists():
                config_dict.update(cls._load_toml(user_config_path))

        if config_path:
            project_path = Path(config_path)
            if not project_path.exists():
                raise ConfigurationError("Configuration file not found", path=str(project_path))
            config_dict.update(cls._load_toml(project_path))
        else:
            default_path = Path(".reciperun.toml")
            if default_path.exists():
                config_dict.update(cls._load_toml(default_path))

        if load_env:
            config_dict.update(cls._load_env())

        unknown = set(config_dict) - set(cls.__dataclass_fields__)
        if unknown:
            raise ConfigurationError(
                "Unknown configuration keys",
                keys=", ".join(sorted(unknown)),
            )

        return cls(**config_dict)

    @staticmethod
    def _load_toml(path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file.

        A top-level ``[reciperun]`` table is unwrapped if present.

        Raises:
            ConfigurationError: If the TOML file is invalid
        """
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigurationError(
                f"Failed to load configuration from {path}",
                path=str(path),
                error=str(e),
            ) from e

        if "reciperun" in data:
            return data["reciperun"]
        return data

    @staticmethod
    def _load_env() -> dict[str, Any]:
        """Load configuration from environment variables.

        Variables are prefixed with RECIPERUN_ and use uppercase snake_case,
        for example RECIPERUN_MODEL=gpt-4o or RECIPERUN_HEADLESS=false.
        """
        config: dict[str, Any] = {}
        prefix = "RECIPERUN_"

        for key, value in os.environ.items():
            if not key.startswith(prefix):
                continue

            config_key = key[len(prefix) :].lower()

            if value.lower() in ("true", "yes"):
                config[config_key] = True
            elif value.lower() in ("false", "no"):
                config[config_key] = False
            elif value.isdigit():
                config[config_key] = int(value)
            elif value.replace(".", "", 1).isdigit():
                config[config_key] = float(value)
            else:
                config[config_key] = value

        return config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary with Paths as strings."""
        result: dict[str, Any] = {}
        for key, value in self.__dict__.items():
            if isinstance(value, Path):
                result[key] = str(value)
            else:
                result[key] = value
        return result

    def update(self, **kwargs: Any) -> None:
        """Update configuration values and revalidate.

        Raises:
            ConfigurationError: If a key is unknown or a value is invalid
        """
        for key, value in kwargs.items():
            if key not in self.__dataclass_fields__:
                raise ConfigurationError(
                    f"Unknown configuration key: {key}",
                    key=key,
                    valid_keys=", ".join(self.__dataclass_fields__.keys()),
                )
            setattr(self, key, value)

        self._validate()
