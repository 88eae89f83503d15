"""Configuration service for managing application settings."""

import json
import os
from dataclasses import replace
from pathlib import Path

import structlog

from ..models import AppConfig
from ..models.config import DEFAULT_IGDB_BASE_URL

log = structlog.stdlib.get_logger()

# Environment variables that override the config file
ENV_CLIENT_ID = "IGDB_CLIENT_ID"
ENV_CLIENT_SECRET = "IGDB_CLIENT_SECRET"
ENV_BASE_URL = "IGDB_BASE_URL"

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

ConfigValue = str | int | float | bool | None


class ValidationResult:
    """Result of configuration validation."""

    def __init__(self, is_valid: bool, errors: list[str] | None = None) -> None:
        self.is_valid: bool = is_valid
        self.errors: list[str] = errors or []


class ConfigurationService:
    """Service for managing application configuration."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_path: Path = config_path or Path.home() / ".config" / "gameshelf" / "config.json"
        log.info("Configuration service initialized", config_path=str(self.config_path))

    def load_config(self) -> AppConfig:
        """Load configuration from file, apply environment overrides, fall back to defaults."""
        return self._apply_environment(self._load_file_config())

    def _load_file_config(self) -> AppConfig:
        if not self.config_path.exists():
            log.info("Configuration file not found, using defaults")
            return self._get_default_config()

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data: dict[str, ConfigValue] = json.load(f)

            config = self._dict_to_config(data)
            validation_result = self.validate_config(config)

            if not validation_result.is_valid:
                log.warning("Invalid configuration loaded, using defaults", errors=validation_result.errors)
                return self._get_default_config()

            log.info("Configuration loaded successfully")
            return config

        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            log.error("Failed to load configuration, using defaults", error=str(e))
            return self._get_default_config()

    def save_config(self, config: AppConfig) -> None:
        """Save configuration to file.

        Raises:
            ValueError: If the configuration is invalid
            OSError: If the file cannot be written
        """
        validation_result = self.validate_config(config)
        if not validation_result.is_valid:
            raise ValueError(f"Invalid configuration: {', '.join(validation_result.errors)}")

        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            data = self._config_to_dict(config)
            with open(self.config_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)

            log.info("Configuration saved successfully")

        except OSError as e:
            log.error("Failed to save configuration", error=str(e))
            raise

    def validate_config(self, config: AppConfig) -> ValidationResult:
        """Validate configuration settings."""
        errors = []

        if not isinstance(config.storage_path, Path):
            errors.append("storage_path must be a Path object")
        elif not config.storage_path.is_absolute():
            errors.append("storage_path must be an absolute path")

        if not isinstance(config.igdb_base_url, str) or not config.igdb_base_url.startswith("https://"):
            errors.append("igdb_base_url must be an https URL")

        if isinstance(config.search_debounce, bool) or not isinstance(config.search_debounce, (int, float)) or config.search_debounce < 0:
            errors.append("search_debounce must be a non-negative number")
        elif config.search_debounce > 5:
            errors.append("search_debounce should not exceed 5 seconds")

        if isinstance(config.search_limit, bool) or not isinstance(config.search_limit, int) or config.search_limit < 1:
            errors.append("search_limit must be a positive integer")
        elif config.search_limit > 50:
            errors.append("search_limit should not exceed 50")

        if isinstance(config.request_timeout, bool) or not isinstance(config.request_timeout, (int, float)) or config.request_timeout <= 0:
            errors.append("request_timeout must be a positive number")
        elif config.request_timeout > 120:
            errors.append("request_timeout should not exceed 120 seconds")

        if config.log_level not in VALID_LOG_LEVELS:
            errors.append(f"log_level must be one of: {', '.join(sorted(VALID_LOG_LEVELS))}")

        return ValidationResult(len(errors) == 0, errors)

    def _apply_environment(self, config: AppConfig) -> AppConfig:
        """Let IGDB_* environment variables override credentials and base URL."""
        overrides: dict[str, str] = {}
        if os.getenv(ENV_CLIENT_ID):
            overrides["igdb_client_id"] = os.environ[ENV_CLIENT_ID]
        if os.getenv(ENV_CLIENT_SECRET):
            overrides["igdb_client_secret"] = os.environ[ENV_CLIENT_SECRET]
        if os.getenv(ENV_BASE_URL):
            overrides["igdb_base_url"] = os.environ[ENV_BASE_URL]

        if not overrides:
            return config

        log.info("Applied environment overrides", settings=sorted(overrides))
        return replace(config, **overrides)

    def _get_default_config(self) -> AppConfig:
        return AppConfig(
            storage_path=Path.home() / ".local" / "share" / "gameshelf" / "storage.json",
        )

    def _config_to_dict(self, config: AppConfig) -> dict[str, ConfigValue]:
        """Convert AppConfig to dictionary for JSON serialization."""
        return {
            "storage_path": str(config.storage_path),
            "igdb_client_id": config.igdb_client_id,
            "igdb_client_secret": config.igdb_client_secret,
            "igdb_base_url": config.igdb_base_url,
            "search_debounce": config.search_debounce,
            "search_limit": config.search_limit,
            "request_timeout": config.request_timeout,
            "log_level": config.log_level,
        }

    def _dict_to_config(self, data: dict[str, ConfigValue]) -> AppConfig:
        """Convert dictionary to AppConfig, filling gaps with defaults."""
        defaults = self._get_default_config()

        storage_raw = data.get("storage_path")
        storage_path = Path(str(storage_raw)).expanduser() if storage_raw else defaults.storage_path

        debounce_raw = data.get("search_debounce", defaults.search_debounce)
        limit_raw = data.get("search_limit", defaults.search_limit)
        timeout_raw = data.get("request_timeout", defaults.request_timeout)

        return AppConfig(
            storage_path=storage_path,
            igdb_client_id=str(data.get("igdb_client_id") or ""),
            igdb_client_secret=str(data.get("igdb_client_secret") or ""),
            igdb_base_url=str(data.get("igdb_base_url") or DEFAULT_IGDB_BASE_URL),
            search_debounce=float(debounce_raw) if isinstance(debounce_raw, (int, float)) and not isinstance(debounce_raw, bool) else defaults.search_debounce,
            search_limit=int(limit_raw) if isinstance(limit_raw, int) and not isinstance(limit_raw, bool) else defaults.search_limit,
            request_timeout=float(timeout_raw) if isinstance(timeout_raw, (int, float)) and not isinstance(timeout_raw, bool) else defaults.request_timeout,
            log_level=str(data.get("log_level") or defaults.log_level),
        )
