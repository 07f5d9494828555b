"""Data models for configuration management."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class DatabaseSettings:
    """Connection settings for the document store."""
    url: Optional[str] = None
    pool_size: int = 5
    max_overflow: int = 0  # outstanding connections never exceed pool_size
    pool_timeout: int = 30  # seconds to wait for a free connection
    connect_timeout: int = 10  # seconds to establish a new connection
    statement_timeout: float = 30.0  # seconds a single statement may run
    echo: bool = False


@dataclass
class OllamaSettings:
    """Settings for the embedding and generation service."""
    host: str = "http://localhost:11434"
    model: str = "llama3.1:8b"
    embedding_model: str = "nomic-embed-text"
    embedding_timeout: float = 60.0
    analysis_timeout: float = 90.0
    report_timeout: float = 60.0
    analysis_temperature: float = 0.3
    analysis_max_tokens: int = 800
    report_temperature: float = 0.2
    report_max_tokens: int = 400


@dataclass
class RetrievalSettings:
    """Parameters for related-document retrieval."""
    query_prefix_chars: int = 1000
    limit: int = 5
    min_score: float = 0.8
    substring_prefix_chars: int = 50
    enable_semantic_tier: bool = True


@dataclass
class NotificationSettings:
    """Webhook notification settings."""
    webhook_url: Optional[str] = None
    timeout: float = 10.0


@dataclass
class AgentConfig:
    """
    Complete agent configuration.

    Aggregates all configuration sections into a single structure.
    """
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    ollama: OllamaSettings = field(default_factory=OllamaSettings)
    retrieval: RetrievalSettings = field(default_factory=RetrievalSettings)
    notification: NotificationSettings = field(default_factory=NotificationSettings)
    history_default_limit: int = 10


@dataclass
class ValidationResult:
    """Result of configuration validation."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        """Add an error message."""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        """Merge another validation result into this one."""
        return ValidationResult(
            is_valid=self.is_valid and other.is_valid,
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings
        )


class ConfigurationError(Exception):
    """Exception raised for configuration errors."""

    def __init__(self, message: str, validation_result: Optional[ValidationResult] = None):
        super().__init__(message)
        self.message = message
        self.validation_result = validation_result
