"""D&D 5E class progression engine.

Level-up and multiclassing rules for a character builder: class levels,
spell slots, completeness checks, and a staged level-up wizard session.

Example:
    >>> from dnd_progression import Character, ProgressionSession
    >>> session = ProgressionSession(hero)
    >>> session.add_class_level("Wizard", 3)
    >>> session.apply_changes()
"""

from __future__ import annotations

from dnd_progression.core import (
    DndProgressionError,
    InvalidCharacterStateError,
    ProgressionError,
    SessionError,
    ValidationError,
    configure_logging,
    get_settings,
)
from dnd_progression.data import InMemoryClassDataProvider, srd_class_provider
from dnd_progression.engine import (
    CompletenessValidator,
    ProgressionManager,
    ProgressionSession,
    SpellSlotCalculator,
)
from dnd_progression.models import Character, ClassEntry, StagedChanges, ValidationReport


__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Engine
    "ProgressionSession",
    "ProgressionManager",
    "SpellSlotCalculator",
    "CompletenessValidator",
    # Data
    "InMemoryClassDataProvider",
    "srd_class_provider",
    # Models
    "Character",
    "ClassEntry",
    "StagedChanges",
    "ValidationReport",
    # Core
    "DndProgressionError",
    "ProgressionError",
    "InvalidCharacterStateError",
    "SessionError",
    "ValidationError",
    "configure_logging",
    "get_settings",
]
