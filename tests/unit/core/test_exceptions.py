"""Tests for the exception hierarchy."""

from __future__ import annotations

import pytest

from dnd_progression.core.exceptions import (
    ConfigurationError,
    DndProgressionError,
    InvalidCharacterStateError,
    ProgressionError,
    SessionError,
    ValidationError,
)


class TestDndProgressionError:
    """Tests for the base DndProgressionError exception."""

    def test_basic_message(self) -> None:
        """Test exception with basic message."""
        exc = DndProgressionError("Test error message")
        assert exc.message == "Test error message"
        assert exc.details == {}
        assert str(exc) == "Test error message"

    def test_with_details(self) -> None:
        """Test exception with additional details."""
        exc = DndProgressionError(
            "Test error",
            details={"key": "value", "count": 42},
        )
        assert exc.details == {"key": "value", "count": 42}
        assert "key='value'" in str(exc)
        assert "count=42" in str(exc)

    def test_repr(self) -> None:
        exc = DndProgressionError("Test", details={"x": 1})
        repr_str = repr(exc)
        assert "DndProgressionError" in repr_str
        assert "Test" in repr_str
        assert "x" in repr_str


class TestEngineExceptions:
    """Tests for progression engine exceptions."""

    def test_invalid_character_state(self) -> None:
        """Test InvalidCharacterStateError with character context."""
        exc = InvalidCharacterStateError("Level out of range", character_name="Thorin", level=21)
        assert exc.details["character_name"] == "Thorin"
        assert exc.details["level"] == 21

    def test_level_zero_is_kept(self) -> None:
        exc = InvalidCharacterStateError("No classes", level=0)
        assert exc.details["level"] == 0

    def test_session_error_with_path(self) -> None:
        exc = SessionError("Malformed path", path="progression.classes[x]")
        assert exc.details["path"] == "progression.classes[x]"
        assert "progression.classes[x]" in str(exc)

    def test_engine_inheritance(self) -> None:
        """Test engine exception inheritance."""
        for exc in (InvalidCharacterStateError("Error"), SessionError("Error")):
            assert isinstance(exc, ProgressionError)
            assert isinstance(exc, DndProgressionError)
            assert isinstance(exc, Exception)


class TestConfigurationExceptions:
    """Tests for configuration and input exceptions."""

    def test_configuration_error(self) -> None:
        exc = ConfigurationError(
            "Invalid ASI level",
            config_key="default_asi_levels",
        )
        assert exc.details["config_key"] == "default_asi_levels"

    def test_validation_error(self) -> None:
        """Test ValidationError with field info."""
        exc = ValidationError(
            "Invalid value",
            field_name="level",
            invalid_value=25,
        )
        assert exc.details["field_name"] == "level"
        assert exc.details["invalid_value"] == 25


class TestExceptionChaining:
    """Tests for exception chaining behavior."""

    def test_raise_from(self) -> None:
        """Test that exceptions can be properly chained."""
        original = ValueError("Original error")

        with pytest.raises(SessionError) as exc_info:
            try:
                raise original
            except ValueError as e:
                raise SessionError("Wrapped error") from e

        assert exc_info.value.__cause__ is original
