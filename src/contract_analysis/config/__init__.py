"""Configuration management for the Contract Analysis Agent."""

from .config_manager import ConfigurationManager
from .models import (
    AgentConfig,
    ConfigurationError,
    DatabaseSettings,
    NotificationSettings,
    OllamaSettings,
    RetrievalSettings,
    ValidationResult,
)

__all__ = [
    "ConfigurationManager",
    "AgentConfig",
    "ConfigurationError",
    "DatabaseSettings",
    "NotificationSettings",
    "OllamaSettings",
    "RetrievalSettings",
    "ValidationResult",
]
