"""Configuration management for the class progression engine.

This module provides centralized configuration using pydantic-settings,
supporting environment variables, .env files, and runtime overrides.

Example:
    >>> from dnd_progression.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.rules.max_level
    20

Environment Variables:
    DND_PROGRESSION_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    DND_PROGRESSION_JSON_LOGS: Emit JSON logs instead of console output
    DND_PROGRESSION_RULES_MAX_LEVEL: Highest total character level allowed
    DND_PROGRESSION_RULES_DEFAULT_SOURCE: Source book assumed for new classes
    DND_PROGRESSION_RULES_VALIDATE_BEFORE_COMMIT: Check invariants before merging
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dnd_progression.core.constants import (
    DEFAULT_SUBCLASS_LEVEL,
    MAX_CHARACTER_LEVEL,
    STANDARD_ASI_LEVELS,
)
from dnd_progression.core.exceptions import ConfigurationError


class RulesSettings(BaseSettings):
    """Configuration for rules defaults and commit behaviour.

    Attributes:
        max_level: Highest total character level a commit may produce.
        default_asi_levels: ASI levels assumed when a class table has none.
        default_subclass_level: Subclass level assumed when undetectable.
        default_source: Source book assumed for newly added classes.
        validate_before_commit: Check commit invariants on the staged state
            before anything is merged into the live character.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_PROGRESSION_RULES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_level: int = Field(
        default=MAX_CHARACTER_LEVEL,
        ge=1,
        le=MAX_CHARACTER_LEVEL,
        description="Highest total character level",
    )
    default_asi_levels: list[int] = Field(
        default_factory=lambda: list(STANDARD_ASI_LEVELS),
        description="Fallback ASI levels",
    )
    default_subclass_level: int = Field(
        default=DEFAULT_SUBCLASS_LEVEL,
        ge=1,
        le=MAX_CHARACTER_LEVEL,
        description="Fallback subclass level",
    )
    default_source: str = Field(
        default="PHB",
        min_length=1,
        description="Default source book",
    )
    validate_before_commit: bool = Field(
        default=True,
        description="Check invariants before merging staged changes",
    )

    @model_validator(mode="after")
    def validate_asi_levels(self) -> "RulesSettings":
        """Ensure fallback ASI levels fall inside the level range.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If an ASI level is outside 1..max_level.
        """
        invalid = [lvl for lvl in self.default_asi_levels if not 1 <= lvl <= self.max_level]
        if invalid:
            raise ConfigurationError(
                f"default_asi_levels must be within 1..{self.max_level}, got {invalid}",
                config_key="default_asi_levels",
            )
        return self


class Settings(BaseSettings):
    """Main engine settings.

    Attributes:
        app_name: Application name.
        app_version: Application version string.
        debug: Enable debug mode.
        log_level: Engine logging level.
        json_logs: Emit JSON log lines.
        rules: Rules defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_PROGRESSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(
        default="D&D 5E Class Progression Engine",
        description="Application name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    json_logs: bool = Field(
        default=False,
        description="Emit JSON logs",
    )

    rules: RulesSettings = Field(default_factory=RulesSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the engine settings singleton.

    Returns:
        The cached Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load engine settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access.

    This is primarily useful for testing or when environment variables
    have changed at runtime.
    """
    get_settings.cache_clear()


__all__ = [
    "RulesSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
