"""Spellcasting resource calculation.

Derives spell slots, cantrips known and spell limits from class levels and
class data. Every method is a pure lookup: an unknown class or a missing
progression table yields the neutral empty value (``{}``, ``0`` or None)
rather than an exception.

Multiclass rule (PHB p.164): full casters contribute their level, half
casters half their level, third casters a third, all rounded down. The sum
indexes the standard slot table. Pact magic never joins that pool.
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import Field, computed_field

from dnd_progression.core.logging import get_logger
from dnd_progression.data.provider import ClassDataProvider
from dnd_progression.data.srd import srd_class_provider
from dnd_progression.models.character import ClassEntry, ClassSpellcasting, Component, SpellSlot
from dnd_progression.models.class_data import ClassDefinition
from dnd_progression.models.progression import (
    CASTER_LEVEL_DIVISORS,
    PACT_CASTER,
    PACT_MAGIC_SLOTS,
    RITUAL_CASTING_CLASSES,
    STANDARD_SPELL_SLOTS,
    get_effective_caster_level,
)


logger = get_logger(__name__)


# =============================================================================
# Result Models
# =============================================================================


class SpellcastingInfo(Component):
    """How a class casts spells."""

    spellcasting_ability: str
    ritual_casting: bool = False
    known_type: str = Field(default="known", description="'known' or 'prepared'")
    is_pact_magic: bool = False
    caster_progression: str | None = None


class CombinedSlots(Component):
    """Slots of a multiclassed caster.

    Attributes:
        caster_level: Effective caster level summed over non-pact classes.
        slots: Shared standard slot pool.
        pact_magic: Pact slots per pact-casting class, kept apart.
    """

    caster_level: int = 0
    slots: dict[int, SpellSlot] = Field(default_factory=dict)
    pact_magic: dict[str, dict[int, SpellSlot]] = Field(default_factory=dict)

    @computed_field(description="True when two or more casting classes combine")
    @property
    def is_casting_multiclass(self) -> bool:
        return bool(self.slots or self.pact_magic)


# =============================================================================
# Calculator
# =============================================================================


class SpellSlotCalculator:
    """Derives spellcasting resources from class data.

    Stateless apart from the injected data provider; one instance can be
    shared by every session.

    Example:
        >>> calculator = SpellSlotCalculator(srd_class_provider())
        >>> calculator.slots_for("Warlock", 11)[5].max
        3
    """

    def __init__(self, provider: ClassDataProvider | None = None) -> None:
        """Initialize the calculator.

        Args:
            provider: Class data source. Defaults to the SRD classes.
        """
        self._provider = provider if provider is not None else srd_class_provider()

    @property
    def provider(self) -> ClassDataProvider:
        return self._provider

    def _definition(self, class_name: str) -> ClassDefinition | None:
        definition = self._provider.get_class(class_name)
        if definition is None:
            logger.debug("Unknown class, no spellcasting data", class_name=class_name)
        return definition

    # -------------------------------------------------------------------------
    # Slots
    # -------------------------------------------------------------------------

    def slots_for(self, class_name: str, level: int) -> dict[int, SpellSlot]:
        """Spell slots a single class grants at a class level.

        Args:
            class_name: Class to look up.
            level: Levels held in that class.

        Returns:
            Mapping of spell level to a full SpellSlot, or ``{}`` for
            non-casters and unknown classes.
        """
        definition = self._definition(class_name)
        if definition is None or not definition.caster_progression or level <= 0:
            return {}

        if definition.caster_progression == PACT_CASTER:
            return pact_slots(level)

        caster_level = get_effective_caster_level(definition.caster_progression, level)
        return standard_slots(caster_level)

    def combined_slots_for(self, class_entries: Iterable[ClassEntry]) -> CombinedSlots:
        """Apply the multiclass spellcaster rule.

        Args:
            class_entries: Every class the character holds.

        Returns:
            The shared pool plus per-class pact slots. Empty when fewer
            than two casting classes are present.
        """
        casting: list[tuple[ClassEntry, ClassDefinition]] = []
        for entry in class_entries:
            definition = self._definition(entry.name)
            if definition is None or entry.levels <= 0:
                continue
            progression = definition.caster_progression
            if progression == PACT_CASTER or progression in CASTER_LEVEL_DIVISORS:
                casting.append((entry, definition))

        if len(casting) < 2:
            return CombinedSlots()

        caster_level = 0
        pact_magic: dict[str, dict[int, SpellSlot]] = {}
        for entry, definition in casting:
            if definition.caster_progression == PACT_CASTER:
                pact_magic[entry.name] = pact_slots(entry.levels)
            else:
                caster_level += get_effective_caster_level(
                    definition.caster_progression, entry.levels
                )

        combined = CombinedSlots(
            caster_level=caster_level,
            slots=standard_slots(caster_level),
            pact_magic=pact_magic,
        )
        logger.debug(
            "Multiclass slots combined",
            classes=[entry.name for entry, _ in casting],
            caster_level=caster_level,
        )
        return combined

    # -------------------------------------------------------------------------
    # Spells Known
    # -------------------------------------------------------------------------

    def cantrips_known(self, class_name: str, level: int) -> int:
        """Cantrips known at a class level, 0 when the class has none."""
        definition = self._definition(class_name)
        if definition is None or level <= 0:
            return 0
        return _clamped_lookup(definition.cantrip_progression, level)

    def spells_known_limit(self, class_name: str, level: int) -> int:
        """Leveled spells a class may know at a class level.

        Classes with a fixed-learn table (a wizard's spellbook) accumulate
        every entry up to ``level`` instead of indexing once.
        """
        definition = self._definition(class_name)
        if definition is None or level <= 0:
            return 0
        if definition.spells_known_progression:
            return _clamped_lookup(definition.spells_known_progression, level)
        if definition.spells_known_progression_fixed:
            return sum(definition.spells_known_progression_fixed[:level])
        return 0

    def spells_learned_at_level(self, class_name: str, level: int) -> int:
        """Spells a fixed-learn class adds at exactly ``level``."""
        definition = self._definition(class_name)
        if definition is None:
            return 0
        table = definition.spells_known_progression_fixed
        if not 1 <= level <= len(table):
            return 0
        return table[level - 1]

    def prepared_spell_limit(self, class_name: str, level: int, ability_modifier: int) -> int:
        """Spells a prepared caster may prepare: class level plus modifier, minimum 1.

        Returns:
            The limit, or 0 for known-spell casters and non-casters.
        """
        info = self.spellcasting_info(class_name)
        if info is None or info.known_type != "prepared":
            return 0
        return max(1, level + ability_modifier)

    # -------------------------------------------------------------------------
    # Class Spellcasting
    # -------------------------------------------------------------------------

    def spellcasting_info(self, class_name: str) -> SpellcastingInfo | None:
        """Describe how a class casts spells, or None for non-casters."""
        definition = self._definition(class_name)
        if definition is None or not definition.spellcasting_ability:
            return None
        return SpellcastingInfo(
            spellcasting_ability=definition.spellcasting_ability,
            ritual_casting=class_name in RITUAL_CASTING_CLASSES,
            known_type="prepared" if definition.prepared_spells else "known",
            is_pact_magic=definition.is_pact_caster,
            caster_progression=definition.caster_progression,
        )

    def is_spellcasting_class(self, class_name: str) -> bool:
        return self.spellcasting_info(class_name) is not None

    def initialize_class_spellcasting(
        self,
        class_name: str,
        level: int,
    ) -> ClassSpellcasting | None:
        """Build fresh spellcasting state for a newly added class.

        Returns:
            The new state, or None if the class does not cast spells.
        """
        info = self.spellcasting_info(class_name)
        if info is None:
            logger.debug("Class is not a spellcaster", class_name=class_name)
            return None

        return ClassSpellcasting(
            level=level,
            spell_slots=self.slots_for(class_name, level),
            cantrips_known=self.cantrips_known(class_name, level),
            spellcasting_ability=info.spellcasting_ability,
            ritual_casting=info.ritual_casting,
        )


# =============================================================================
# Table Lookups
# =============================================================================


def standard_slots(caster_level: int) -> dict[int, SpellSlot]:
    """Full slots for an effective caster level from the standard table."""
    row = STANDARD_SPELL_SLOTS.get(min(caster_level, 20), {})
    return {
        spell_level: SpellSlot(max=count, current=count)
        for spell_level, count in row.items()
        if count > 0
    }


def pact_slots(warlock_level: int) -> dict[int, SpellSlot]:
    """Pact magic slots for a warlock level, tagged as pact magic."""
    entry = PACT_MAGIC_SLOTS.get(min(warlock_level, 20))
    if entry is None:
        return {}
    count, slot_level = entry
    return {slot_level: SpellSlot(max=count, current=count, is_pact_magic=True)}


def _clamped_lookup(table: list[int], level: int) -> int:
    # Tables start at class level 1
    if not table:
        return 0
    index = max(0, min(level - 1, len(table) - 1))
    return table[index]


__all__ = [
    "SpellcastingInfo",
    "CombinedSlots",
    "SpellSlotCalculator",
    "standard_slots",
    "pact_slots",
]
