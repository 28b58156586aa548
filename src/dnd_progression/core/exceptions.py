"""Custom exception hierarchy for the D&D 5E class progression engine.

This module defines the exceptions raised by the engine. All exceptions
inherit from DndProgressionError, enabling unified error handling at the
application boundary while preserving domain-specific context.

Only programmer errors and invalid caller input are raised. Gaps in class
data degrade to neutral defaults, and choices the player still owes are
reported as findings in a ValidationReport, never as exceptions.

Example:
    >>> from dnd_progression.core.exceptions import SessionError
    >>> raise SessionError("Malformed staged path", path="progression.classes[x]")
"""

from __future__ import annotations

from typing import Any


class DndProgressionError(Exception):
    """Base exception for all progression engine errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        """Return a detailed string representation of the exception."""
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Configuration & Validation Exceptions
# =============================================================================


class ConfigurationError(DndProgressionError):
    """Raised when engine configuration is invalid.

    This includes invalid rule settings or incompatible configuration
    combinations loaded from the environment.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


class ValidationError(DndProgressionError):
    """Raised when caller-supplied data fails validation.

    This covers bad arguments to engine operations (an empty class name,
    a class level outside 1-20), not missing player choices.
    """

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error with field context.

        Args:
            message: Human-readable error description.
            field_name: Name of the field that failed validation.
            invalid_value: The value that failed validation.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        if invalid_value is not None:
            combined_details["invalid_value"] = invalid_value
        super().__init__(message, details=combined_details)


# =============================================================================
# Progression Engine Exceptions
# =============================================================================


class ProgressionError(DndProgressionError):
    """Base exception for progression engine errors.

    Raised when the engine is used incorrectly or reaches a state that
    violates its own invariants.
    """


class InvalidCharacterStateError(ProgressionError):
    """Raised when a character would be committed in an invalid state.

    This is a guard against internal inconsistencies (no classes, a total
    level outside 1-20) and should never fire in normal operation.
    """

    def __init__(
        self,
        message: str,
        *,
        character_name: str | None = None,
        level: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize invalid character state error.

        Args:
            message: Human-readable error description.
            character_name: Name of the character being committed.
            level: The offending total character level.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if character_name:
            combined_details["character_name"] = character_name
        if level is not None:
            combined_details["level"] = level
        super().__init__(message, details=combined_details)


class SessionError(ProgressionError):
    """Raised when a progression session is misused.

    This typically occurs when a session is opened without a character or
    when a staged path cannot be parsed.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize session error with path context.

        Args:
            message: Human-readable error description.
            path: The staged path involved, if any.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if path:
            combined_details["path"] = path
        super().__init__(message, details=combined_details)


__all__ = [
    "DndProgressionError",
    "ConfigurationError",
    "ValidationError",
    "ProgressionError",
    "InvalidCharacterStateError",
    "SessionError",
]
