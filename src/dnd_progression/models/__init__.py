"""Pydantic V2 schemas for the class progression engine.

Submodules:
    character: Character, progression and spellcasting records.
    class_data: Read-only class definitions and feature references.
    validation: Completeness reports and level-up summaries.
    progression: Static rules tables (spell slots, proficiency, hit points).

Example:
    >>> from dnd_progression.models import Character, ClassEntry
    >>> hero = Character(name="Thorin")
    >>> hero.progression.classes.append(ClassEntry(name="Fighter", levels=3))
    >>> hero.total_level
    3
"""

from __future__ import annotations

# =============================================================================
# Character Records
# =============================================================================
from dnd_progression.models.character import (
    AbilityChange,
    Character,
    ChoiceRecord,
    ClassEntry,
    ClassSpellcasting,
    HitPoints,
    Invocation,
    LevelUpRecord,
    MulticlassSpellcasting,
    OtherSpellcasting,
    ProgressionHolder,
    ProgressionRecord,
    Spell,
    SpellcastingState,
    SpellSlot,
    StagedChanges,
    calculate_modifier,
    normalize_ability,
)

# =============================================================================
# Class Data
# =============================================================================
from dnd_progression.models.class_data import (
    ClassDefinition,
    Feature,
    FeatureRef,
    MulticlassingInfo,
)

# =============================================================================
# Reports
# =============================================================================
from dnd_progression.models.validation import (
    ChangeSummary,
    ClassMissingChoices,
    Finding,
    LevelChange,
    MissingChoices,
    PendingChoicesSummary,
    ValidationReport,
)


__all__ = [
    # Character records
    "AbilityChange",
    "Character",
    "ChoiceRecord",
    "ClassEntry",
    "ClassSpellcasting",
    "HitPoints",
    "Invocation",
    "LevelUpRecord",
    "MulticlassSpellcasting",
    "OtherSpellcasting",
    "ProgressionHolder",
    "ProgressionRecord",
    "Spell",
    "SpellcastingState",
    "SpellSlot",
    "StagedChanges",
    "calculate_modifier",
    "normalize_ability",
    # Class data
    "ClassDefinition",
    "Feature",
    "FeatureRef",
    "MulticlassingInfo",
    # Reports
    "ChangeSummary",
    "ClassMissingChoices",
    "Finding",
    "LevelChange",
    "MissingChoices",
    "PendingChoicesSummary",
    "ValidationReport",
]
