"""Progression engine services.

Exports:
    SpellSlotCalculator: Slot tables and the multiclass combination rule.
    ProgressionManager: Class levels, ASIs, multiclassing, derived stats.
    CompletenessValidator: Reports choices a character still owes.
    ProgressionSession: Staged level-up wizard with commit and discard.
"""

from __future__ import annotations

from dnd_progression.engine.paths import get_path, parse_path, set_path
from dnd_progression.engine.progression_manager import (
    EventHandler,
    MulticlassOption,
    ProgressionEvent,
    ProgressionEventType,
    ProgressionManager,
)
from dnd_progression.engine.session import ProgressionSession, StepValidator
from dnd_progression.engine.spell_slots import (
    CombinedSlots,
    SpellcastingInfo,
    SpellSlotCalculator,
    pact_slots,
    standard_slots,
)
from dnd_progression.engine.validator import CompletenessValidator, parse_choice_count


__all__ = [
    # Spell slots
    "SpellSlotCalculator",
    "SpellcastingInfo",
    "CombinedSlots",
    "standard_slots",
    "pact_slots",
    # Progression
    "ProgressionManager",
    "ProgressionEvent",
    "ProgressionEventType",
    "EventHandler",
    "MulticlassOption",
    # Validation
    "CompletenessValidator",
    "parse_choice_count",
    # Sessions
    "ProgressionSession",
    "StepValidator",
    "get_path",
    "set_path",
    "parse_path",
]
