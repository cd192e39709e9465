"""
Hierarchical configuration management for repograph.

Configuration priority (highest to lowest):
1. Explicit overrides passed to ``RepographConfig.load``
2. Project config (.repograph.yml)
3. User config (~/.repograph/config.yml)
4. Environment variables (REPOGRAPH_*)
5. Default values

File values reach the model as init arguments, which pydantic-settings
ranks above the environment.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from repograph.models.base import TruncationPolicy
from repograph.utils.logging import setup_logging

DEFAULT_STOP_WORDS = [
    "the", "is", "at", "which", "on", "in", "to", "for", "of", "and", "a", "an",
]


class ParserConfig(BaseModel):
    """Configuration for the source parser front ends."""

    # Files above this size get an empty analysis instead of a parse
    max_file_chars: int = 2_000_000
    record_function_bodies: bool = True

    @field_validator("max_file_chars")
    @classmethod
    def validate_max_file_chars(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("max_file_chars must be positive")
        return v


class GraphConfig(BaseModel):
    """Configuration for import resolution in the graph builder."""

    import_suffixes: list[str] = Field(
        default_factory=lambda: [".ts", ".js", ".tsx", ".jsx", "/index.ts", "/index.js"]
    )
    python_import_suffixes: list[str] = Field(
        default_factory=lambda: [".py", "/__init__.py"]
    )
    resolve_python_absolute_imports: bool = True


class ContextConfig(BaseModel):
    """Configuration for context window assembly."""

    default_max_tokens: int = 50_000
    chars_per_token: int = 4
    content_match_weight: int = 10
    path_match_weight: int = 50
    symbol_match_weight: int = 30
    min_term_length: int = 3
    stop_words: list[str] = Field(default_factory=lambda: list(DEFAULT_STOP_WORDS))
    truncation_policy: TruncationPolicy = TruncationPolicy.ALWAYS_INCLUDE_TOP
    default_radius: int = 2
    seed_relevance: float = 1.0
    dependency_relevance: float = 0.8
    dependent_relevance: float = 0.6
    refactor_member_relevance: float = 1.0
    refactor_dependency_relevance: float = 0.5

    @field_validator("default_max_tokens", "chars_per_token", "min_term_length")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("value must be positive")
        return v

    @field_validator(
        "seed_relevance",
        "dependency_relevance",
        "dependent_relevance",
        "refactor_member_relevance",
        "refactor_dependency_relevance",
    )
    @classmethod
    def validate_relevance(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("relevance scores must be between 0.0 and 1.0")
        return v


class AnalysisConfig(BaseModel):
    """Configuration for architecture heuristics."""

    duplication_threshold: float = 0.7
    fragment_max_chars: int = 200
    min_component_files: int = 5

    @field_validator("duplication_threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("duplication_threshold must be between 0.0 and 1.0")
        return v


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = "INFO"
    file: Optional[Path] = None
    json_format: bool = False
    max_file_size_mb: int = 10
    backup_count: int = 5

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("file", mode="before")
    @classmethod
    def validate_file(cls, v: Any) -> Optional[Path]:
        if v is None:
            return None
        if isinstance(v, str):
            return Path(v)
        return v

    def configure(self) -> logging.Logger:
        """Apply these settings to the ``repograph`` logger."""
        return setup_logging(
            level=self.level,
            log_file=self.file,
            json_format=self.json_format,
            max_file_size_mb=self.max_file_size_mb,
            backup_count=self.backup_count,
        )


class RepographConfig(BaseSettings):
    """
    Main configuration model with hierarchical loading.

    Loads configuration from:
    1. Default values (lowest priority)
    2. Environment variables (REPOGRAPH_*)
    3. User config file (~/.repograph/config.yml)
    4. Project config file (.repograph.yml)
    5. Explicit overrides (highest priority)
    """

    model_config = SettingsConfigDict(
        env_prefix="REPOGRAPH_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    parser: ParserConfig = Field(default_factory=ParserConfig)
    graph: GraphConfig = Field(default_factory=GraphConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(
        cls,
        overrides: Optional[dict[str, Any]] = None,
        project_path: Optional[Path] = None,
        user_config_path: Optional[Path] = None,
    ) -> RepographConfig:
        """
        Load configuration from multiple sources with priority.

        Args:
            overrides: Nested values that win over every file source
            project_path: Directory holding .repograph.yml (defaults to cwd)
            user_config_path: User config file (defaults to ~/.repograph/config.yml)

        Returns:
            Merged configuration
        """
        config_dict: dict[str, Any] = {}
        project_path = project_path or Path.cwd()
        user_config_path = user_config_path or Path.home() / ".repograph" / "config.yml"

        if user_config_path.exists():
            with open(user_config_path) as f:
                config_dict = _deep_merge(config_dict, yaml.safe_load(f) or {})

        project_config_path = project_path / ".repograph.yml"
        if project_config_path.exists():
            with open(project_config_path) as f:
                config_dict = _deep_merge(config_dict, yaml.safe_load(f) or {})

        if overrides:
            config_dict = _deep_merge(config_dict, overrides)

        return cls(**config_dict)

    def to_yaml(self, path: Path) -> None:
        """Write configuration to YAML file."""
        with open(path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary with values to override

    Returns:
        Merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def get_default_config() -> RepographConfig:
    """Get configuration with all defaults."""
    return RepographConfig()
