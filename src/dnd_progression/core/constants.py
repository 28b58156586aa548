"""Engine-wide constants for the class progression engine.

This module defines D&D 5E rules constants and the wizard step layout
used throughout the engine.
"""

from __future__ import annotations

# =============================================================================
# Character Level Constants
# =============================================================================

MAX_CHARACTER_LEVEL = 20
"""Maximum character level in D&D 5E."""

MIN_CHARACTER_LEVEL = 1
"""Minimum character level. Level 0 is not a valid game state."""

STANDARD_ASI_LEVELS = (4, 8, 12, 16, 19)
"""ASI levels used when a class feature table cannot be parsed."""

DEFAULT_SUBCLASS_LEVEL = 3
"""Subclass level used when the class table does not reveal one."""

DEFAULT_HIT_DIE = 8
"""Hit die size used for classes without hit die data."""

# =============================================================================
# Ability Scores
# =============================================================================

ABILITY_NAMES = (
    "strength",
    "dexterity",
    "constitution",
    "intelligence",
    "wisdom",
    "charisma",
)
"""The six fixed ability keys."""

ABILITY_ABBREVIATIONS: dict[str, str] = {
    "str": "strength",
    "dex": "dexterity",
    "con": "constitution",
    "int": "intelligence",
    "wis": "wisdom",
    "cha": "charisma",
}
"""Short ability keys as used by class data, mapped to full names."""

DEFAULT_ABILITY_SCORE = 10
"""Ability score assumed when a character has none recorded."""

# =============================================================================
# Level-Up Wizard
# =============================================================================

WIZARD_STEPS = (
    "rules_review",
    "class_features",
    "ability_score_improvement",
    "spells",
    "summary",
)
"""Steps of the level-up wizard, indexed 0-4."""

FIRST_STEP = 0
LAST_STEP = len(WIZARD_STEPS) - 1


__all__ = [
    "MAX_CHARACTER_LEVEL",
    "MIN_CHARACTER_LEVEL",
    "STANDARD_ASI_LEVELS",
    "DEFAULT_SUBCLASS_LEVEL",
    "DEFAULT_HIT_DIE",
    "ABILITY_NAMES",
    "ABILITY_ABBREVIATIONS",
    "DEFAULT_ABILITY_SCORE",
    "WIZARD_STEPS",
    "FIRST_STEP",
    "LAST_STEP",
]
