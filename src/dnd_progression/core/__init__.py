"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        DndProgressionError: Base exception for all engine errors.
        ConfigurationError: Configuration-related errors.
        ValidationError: Invalid caller input.
        ProgressionError: Base exception for engine misuse.
        InvalidCharacterStateError: Commit-time invariant violations.
        SessionError: Progression session misuse.

    Configuration:
        Settings: Main engine settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up engine logging.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        bound_context: Add context to log entries within a block.
        clear_context: Clear logging context.
"""

from __future__ import annotations

from dnd_progression.core.config import (
    RulesSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)
from dnd_progression.core.exceptions import (
    ConfigurationError,
    DndProgressionError,
    InvalidCharacterStateError,
    ProgressionError,
    SessionError,
    ValidationError,
)
from dnd_progression.core.logging import (
    bind_context,
    bound_context,
    clear_context,
    configure_logging,
    get_logger,
)


__all__ = [
    # Base exception
    "DndProgressionError",
    # Configuration exceptions
    "ConfigurationError",
    "ValidationError",
    # Engine exceptions
    "ProgressionError",
    "InvalidCharacterStateError",
    "SessionError",
    # Configuration
    "Settings",
    "RulesSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "bound_context",
    "clear_context",
]
