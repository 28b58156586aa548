"""D&D 5E Level Progression Tables.

This module contains the static rules tables the engine derives values from:
- Spell slots by effective caster level (PHB p.165 multiclass table)
- Warlock pact magic slots by warlock level
- Caster progression divisors
- Proficiency bonus and hit point gains by level

These rows are hand-authored from the published rules. They are irregular
(caster levels 11 and 12 are identical, for example) and must not be
derived algorithmically.
"""

from __future__ import annotations

import math

# =============================================================================
# Spell Slots by Effective Caster Level
# =============================================================================

# caster level -> {spell_level: num_slots}; row 0 has no slots
STANDARD_SPELL_SLOTS: dict[int, dict[int, int]] = {
    0:  {},
    1:  {1: 2},
    2:  {1: 3},
    3:  {1: 4, 2: 2},
    4:  {1: 4, 2: 3},
    5:  {1: 4, 2: 3, 3: 2},
    6:  {1: 4, 2: 3, 3: 3},
    7:  {1: 4, 2: 3, 3: 3, 4: 1},
    8:  {1: 4, 2: 3, 3: 3, 4: 2},
    9:  {1: 4, 2: 3, 3: 3, 4: 3, 5: 1},
    10: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2},
    11: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2, 6: 1},
    12: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2, 6: 1},
    13: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2, 6: 1, 7: 1},
    14: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2, 6: 1, 7: 1},
    15: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2, 6: 1, 7: 1, 8: 1},
    16: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2, 6: 1, 7: 1, 8: 1},
    17: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2, 6: 1, 7: 1, 8: 1, 9: 1},
    18: {1: 4, 2: 3, 3: 3, 4: 3, 5: 3, 6: 1, 7: 1, 8: 1, 9: 1},
    19: {1: 4, 2: 3, 3: 3, 4: 3, 5: 3, 6: 2, 7: 1, 8: 1, 9: 1},
    20: {1: 4, 2: 3, 3: 3, 4: 3, 5: 3, 6: 2, 7: 2, 8: 1, 9: 1},
}

# Warlock pact magic
PACT_MAGIC_SLOTS: dict[int, tuple[int, int]] = {
    # level: (num_slots, slot_level)
    1:  (1, 1),
    2:  (2, 1),
    3:  (2, 2),
    4:  (2, 2),
    5:  (2, 3),
    6:  (2, 3),
    7:  (2, 4),
    8:  (2, 4),
    9:  (2, 5),
    10: (2, 5),
    11: (3, 5),
    12: (3, 5),
    13: (3, 5),
    14: (3, 5),
    15: (3, 5),
    16: (3, 5),
    17: (4, 5),
    18: (4, 5),
    19: (4, 5),
    20: (4, 5),
}

# =============================================================================
# Caster Progressions
# =============================================================================

FULL_CASTER = "full"
HALF_CASTER = "1/2"
THIRD_CASTER = "1/3"
PACT_CASTER = "pact"

# Share of class levels that count toward effective caster level
CASTER_LEVEL_DIVISORS: dict[str, int] = {
    FULL_CASTER: 1,
    HALF_CASTER: 2,
    THIRD_CASTER: 3,
}

# Classes that may cast rituals from their spell list
RITUAL_CASTING_CLASSES = {"Bard", "Cleric", "Druid", "Wizard"}


def get_effective_caster_level(caster_progression: str | None, level: int) -> int:
    """Get the caster level a class contributes to the standard slot table.

    Pact magic and non-casters contribute nothing.
    """
    divisor = CASTER_LEVEL_DIVISORS.get(caster_progression or "")
    if divisor is None or level <= 0:
        return 0
    return level // divisor


# =============================================================================
# Proficiency Bonus by Level (PHB p.15)
# =============================================================================

def get_proficiency_bonus(level: int) -> int:
    """Get proficiency bonus for a given total level."""
    if level < 1:
        return 2
    return math.ceil(level / 4) + 1


# =============================================================================
# Hit Points
# =============================================================================

def average_hit_die_roll(hit_die: int) -> int:
    """Average hit die result, rounded up per PHB."""
    return (hit_die // 2) + 1


def calculate_hp_increase(hit_die: int, con_mod: int, roll: int | None = None) -> int:
    """Calculate HP increase on level up.

    Args:
        hit_die: Size of the class hit die.
        con_mod: Constitution modifier.
        roll: If provided, use this roll. Otherwise use average.

    Returns:
        HP gained this level.
    """
    if roll is not None:
        # Use actual roll (clamped to minimum 1)
        hp_from_die = max(1, roll)
    else:
        hp_from_die = average_hit_die_roll(hit_die)

    # Always gain at least 1 HP per level
    return max(1, hp_from_die + con_mod)


__all__ = [
    "STANDARD_SPELL_SLOTS",
    "PACT_MAGIC_SLOTS",
    "FULL_CASTER",
    "HALF_CASTER",
    "THIRD_CASTER",
    "PACT_CASTER",
    "CASTER_LEVEL_DIVISORS",
    "RITUAL_CASTING_CLASSES",
    "get_effective_caster_level",
    "get_proficiency_bonus",
    "average_hit_die_roll",
    "calculate_hp_increase",
]
