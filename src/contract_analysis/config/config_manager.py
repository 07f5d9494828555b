"""Configuration Manager implementation for the Contract Analysis Agent.

This module loads agent configuration from environment variables and JSON
files, coerces raw values to their declared types, and validates the result.
"""

import json
import os
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .models import (
    AgentConfig,
    ConfigurationError,
    DatabaseSettings,
    NotificationSettings,
    OllamaSettings,
    RetrievalSettings,
    ValidationResult,
)


# Environment variable -> (section, attribute)
ENV_BINDINGS: Dict[str, Tuple[str, str]] = {
    "DATABASE_URL": ("database", "url"),
    "DATABASE_POOL_SIZE": ("database", "pool_size"),
    "DATABASE_POOL_TIMEOUT": ("database", "pool_timeout"),
    "DATABASE_CONNECT_TIMEOUT": ("database", "connect_timeout"),
    "DATABASE_STATEMENT_TIMEOUT": ("database", "statement_timeout"),
    "DATABASE_ECHO": ("database", "echo"),
    "OLLAMA_HOST": ("ollama", "host"),
    "OLLAMA_MODEL": ("ollama", "model"),
    "EMBEDDING_MODEL": ("ollama", "embedding_model"),
    "OLLAMA_EMBEDDING_TIMEOUT": ("ollama", "embedding_timeout"),
    "OLLAMA_ANALYSIS_TIMEOUT": ("ollama", "analysis_timeout"),
    "OLLAMA_REPORT_TIMEOUT": ("ollama", "report_timeout"),
    "RETRIEVAL_LIMIT": ("retrieval", "limit"),
    "RETRIEVAL_MIN_SCORE": ("retrieval", "min_score"),
    "RETRIEVAL_SEMANTIC_TIER": ("retrieval", "enable_semantic_tier"),
    "SLACK_WEBHOOK_URL": ("notification", "webhook_url"),
    "NOTIFICATION_TIMEOUT": ("notification", "timeout"),
}

_SECTION_TYPES = {
    "database": DatabaseSettings,
    "ollama": OllamaSettings,
    "retrieval": RetrievalSettings,
    "notification": NotificationSettings,
}

_TRUTHY = {"1", "true", "yes", "y", "on"}
_FALSY = {"0", "false", "no", "n", "off"}


class ConfigurationManager:
    """
    Manager for agent configuration.

    Handles loading from the environment and JSON files, type coercion,
    and validation of the aggregated AgentConfig.
    """

    def __init__(self, config: Optional[AgentConfig] = None):
        self._configuration = config or AgentConfig()
        self._is_loaded = config is not None

    @property
    def configuration(self) -> AgentConfig:
        """Get the current agent configuration."""
        return self._configuration

    @property
    def is_loaded(self) -> bool:
        """Check if configuration has been loaded."""
        return self._is_loaded

    # =========================================================================
    # Loading
    # =========================================================================

    def load_from_env(self, environ: Optional[Mapping[str, str]] = None) -> ValidationResult:
        """
        Load configuration values from environment variables.

        Only variables that are set and non-empty override the current values.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.

        Returns:
            ValidationResult for the resulting configuration.

        Raises:
            ConfigurationError: If a value cannot be coerced or fails validation.
        """
        environ = os.environ if environ is None else environ
        result = ValidationResult(is_valid=True)

        for env_name, (section, attribute) in ENV_BINDINGS.items():
            raw = environ.get(env_name)
            if raw is None or not str(raw).strip():
                continue
            self._assign(section, attribute, raw, f"${env_name}", result)

        return self._finish_load(result, "Environment configuration is invalid")

    def load_from_file(
        self, source: Union[str, Path, Dict[str, Any]]
    ) -> ValidationResult:
        """
        Load configuration sections from a JSON file or dictionary.

        Recognised top-level keys are ``database``, ``ollama``, ``retrieval``,
        ``notification`` and ``history_default_limit``.

        Raises:
            ConfigurationError: If the file is missing, malformed or invalid.
        """
        raw_data = self._parse_source(source)
        if not isinstance(raw_data, dict):
            raise ConfigurationError("Configuration root must be a JSON object")

        result = ValidationResult(is_valid=True)
        for key, value in raw_data.items():
            if key == "history_default_limit":
                self._assign(None, key, value, key, result)
            elif key in _SECTION_TYPES:
                if not isinstance(value, dict):
                    result.add_error(f"Section '{key}' must be an object")
                    continue
                for attribute, item in value.items():
                    self._assign(key, attribute, item, f"{key}.{attribute}", result)
            else:
                result.add_warning(f"Unknown configuration section '{key}' ignored")

        return self._finish_load(result, "File configuration is invalid")

    def _finish_load(self, result: ValidationResult, message: str) -> ValidationResult:
        result = result.merge(self.validate_configuration())
        if not result.is_valid:
            raise ConfigurationError(message, validation_result=result)
        self._is_loaded = True
        return result

    def _assign(
        self,
        section: Optional[str],
        attribute: str,
        raw: Any,
        label: str,
        result: ValidationResult,
    ) -> None:
        """Coerce ``raw`` to the declared type of the target field and set it."""
        target = self._configuration if section is None else getattr(self._configuration, section)
        declared = {f.name: f for f in fields(target)}
        if attribute not in declared:
            result.add_warning(f"{label}: unknown setting ignored")
            return

        current = getattr(target, attribute)
        try:
            value = self._coerce(raw, declared[attribute].default, current)
        except (TypeError, ValueError) as e:
            result.add_error(f"{label}: {e}")
            return
        setattr(target, attribute, value)

    @staticmethod
    def _coerce(raw: Any, default: Any, current: Any) -> Any:
        reference = default if default is not None else current
        if reference is None or isinstance(reference, str):
            return None if raw is None else str(raw).strip()
        if isinstance(reference, bool):
            if isinstance(raw, bool):
                return raw
            text = str(raw).strip().lower()
            if text in _TRUTHY:
                return True
            if text in _FALSY:
                return False
            raise ValueError(f"expected a boolean, got {raw!r}")
        if isinstance(reference, int):
            if isinstance(raw, bool):
                raise ValueError(f"expected an integer, got {raw!r}")
            return int(str(raw).strip())
        if isinstance(reference, float):
            if isinstance(raw, bool):
                raise ValueError(f"expected a number, got {raw!r}")
            return float(str(raw).strip())
        return raw

    # =========================================================================
    # Validation
    # =========================================================================

    def validate_configuration(self) -> ValidationResult:
        """Check value ranges across every configuration section."""
        config = self._configuration
        result = ValidationResult(is_valid=True)

        if config.database.pool_size < 1:
            result.add_error("database.pool_size must be at least 1")
        if config.database.max_overflow < 0:
            result.add_error("database.max_overflow must not be negative")
        if config.database.pool_timeout <= 0:
            result.add_error("database.pool_timeout must be positive")
        if config.database.connect_timeout <= 0:
            result.add_error("database.connect_timeout must be positive")
        if config.database.statement_timeout <= 0:
            result.add_error("database.statement_timeout must be positive")

        ollama = config.ollama
        if not ollama.host:
            result.add_error("ollama.host must be set")
        if not ollama.model:
            result.add_error("ollama.model must be set")
        if not ollama.embedding_model:
            result.add_error("ollama.embedding_model must be set")
        for name in ("embedding_timeout", "analysis_timeout", "report_timeout"):
            if getattr(ollama, name) <= 0:
                result.add_error(f"ollama.{name} must be positive")
        for name in ("analysis_temperature", "report_temperature"):
            value = getattr(ollama, name)
            if not 0.0 <= value <= 2.0:
                result.add_error(f"ollama.{name} must be between 0.0 and 2.0")

        retrieval = config.retrieval
        if not 1 <= retrieval.limit <= 50:
            result.add_error("retrieval.limit must be between 1 and 50")
        if not 0.0 <= retrieval.min_score <= 1.0:
            result.add_error("retrieval.min_score must be between 0.0 and 1.0")
        if retrieval.query_prefix_chars < 1:
            result.add_error("retrieval.query_prefix_chars must be positive")
        if retrieval.substring_prefix_chars < 1:
            result.add_error("retrieval.substring_prefix_chars must be positive")

        notification = config.notification
        if notification.timeout <= 0:
            result.add_error("notification.timeout must be positive")
        if notification.webhook_url and not notification.webhook_url.startswith(
            ("http://", "https://")
        ):
            result.add_error("notification.webhook_url must be an http(s) URL")
        if not notification.webhook_url:
            result.add_warning("No webhook configured; notifications are disabled")

        if not 1 <= config.history_default_limit <= 100:
            result.add_error("history_default_limit must be between 1 and 100")

        return result

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def _parse_source(
        self, source: Union[str, Path, Dict[str, Any]]
    ) -> Any:
        """Parse configuration source to raw data."""
        if isinstance(source, (str, Path)):
            path = Path(source)
            if not path.exists():
                raise ConfigurationError(f"Configuration file not found: {path}")

            try:
                with open(path, "r", encoding="utf-8") as f:
                    return json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e

        return source

    def reset(self) -> None:
        """Reset configuration to defaults."""
        self._configuration = AgentConfig()
        self._is_loaded = False

    def to_dict(self) -> Dict[str, Any]:
        """Export the configuration as a dictionary."""
        return asdict(self._configuration)
