"""Class level and multiclass management.

ProgressionManager owns the ``progression`` record of a character: which
classes it holds and at what level, which ASI opportunities exist, the
level-up audit trail, and the spell slots those levels imply.

Every operation accepts anything shaped like a character (a live Character
or a session's StagedChanges), so a wizard can run the same rules against
its staged copy before committing.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from enum import StrEnum
from typing import Any

from dnd_progression.core.config import RulesSettings, get_settings
from dnd_progression.core.constants import (
    ABILITY_ABBREVIATIONS,
    DEFAULT_ABILITY_SCORE,
    DEFAULT_HIT_DIE,
)
from dnd_progression.core.exceptions import ValidationError
from dnd_progression.core.logging import get_logger
from dnd_progression.data.provider import AllowAllSourceFilter, ClassDataProvider, SourceFilter
from dnd_progression.engine.spell_slots import CombinedSlots, SpellSlotCalculator
from dnd_progression.models.character import (
    ClassEntry,
    Component,
    LevelUpRecord,
    ProgressionHolder,
    SpellSlot,
)
from dnd_progression.models.class_data import RequirementGroup
from dnd_progression.models.progression import calculate_hp_increase


logger = get_logger(__name__)

_SHORT_ABILITY = {full: short.upper() for short, full in ABILITY_ABBREVIATIONS.items()}


# =============================================================================
# Events
# =============================================================================


class ProgressionEventType(StrEnum):
    """Notifications emitted by the manager."""

    MULTICLASS_ADDED = "multiclass_added"
    MULTICLASS_REMOVED = "multiclass_removed"
    LEVEL_UP_RECORDED = "level_up_recorded"


class ProgressionEvent:
    """A progression change delivered to registered handlers.

    Attributes:
        event_type: Type of the event.
        character: The character (or staged copy) that changed.
        data: Event data payload.
    """

    def __init__(
        self,
        event_type: ProgressionEventType,
        character: ProgressionHolder,
        data: dict[str, Any] | None = None,
    ) -> None:
        self.event_type = event_type
        self.character = character
        self.data = data or {}


EventHandler = Callable[[ProgressionEvent], None]


class MulticlassOption(Component):
    """A class the character could multiclass into."""

    name: str
    source: str
    meets_requirements: bool
    requirement_text: str


# =============================================================================
# Manager
# =============================================================================


class ProgressionManager:
    """Tracks class levels, ASIs, multiclassing and derived spell slots.

    The manager keeps no per-character state. Event handlers are the only
    thing registered on an instance.

    Example:
        >>> manager = ProgressionManager()
        >>> manager.add_class_level(hero, "Fighter", 5)
        >>> manager.add_class_level(hero, "Fighter", 5)  # still one entry
        >>> manager.get_total_level(hero)
        5
    """

    def __init__(
        self,
        provider: ClassDataProvider | None = None,
        calculator: SpellSlotCalculator | None = None,
        *,
        rules: RulesSettings | None = None,
        source_filter: SourceFilter | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            provider: Class data source. Defaults to the calculator's provider.
            calculator: Spell slot calculator. Built from ``provider`` if omitted.
            rules: Rules settings. Defaults to the global settings.
            source_filter: Filter for multiclass options. Defaults to allow-all.
        """
        if calculator is None:
            calculator = SpellSlotCalculator(provider)
        self._calculator = calculator
        self._provider = provider if provider is not None else calculator.provider
        self._rules = rules if rules is not None else get_settings().rules
        self._source_filter = source_filter or AllowAllSourceFilter()
        self._event_handlers: dict[str, list[EventHandler]] = {}

    @property
    def calculator(self) -> SpellSlotCalculator:
        return self._calculator

    @property
    def provider(self) -> ClassDataProvider:
        return self._provider

    @property
    def rules(self) -> RulesSettings:
        return self._rules

    # -------------------------------------------------------------------------
    # Class Levels
    # -------------------------------------------------------------------------

    def add_class_level(
        self,
        character: ProgressionHolder,
        class_name: str,
        level: int = 1,
        source: str | None = None,
    ) -> ClassEntry:
        """Set a class to the given level, adding the class if new.

        Calling this twice with the same arguments leaves exactly one entry
        at ``level``; it sets, it does not increment.

        Args:
            character: Character or staged copy to modify.
            class_name: Class to add or update.
            level: Levels to hold in that class.
            source: Source book for a new entry.

        Returns:
            The created or updated class entry.

        Raises:
            ValidationError: If the class name is empty or the level is
                outside 1 to the configured maximum.
        """
        if not class_name or not class_name.strip():
            raise ValidationError("Class name must not be empty", field_name="class_name")
        if not 1 <= level <= self._rules.max_level:
            raise ValidationError(
                f"Class level must be between 1 and {self._rules.max_level}",
                field_name="level",
                invalid_value=level,
            )

        entry = character.progression.get_class(class_name)
        if entry is not None:
            entry.levels = level
            logger.info("Updated class level", class_name=class_name, level=level)
            return entry

        definition = self._provider.get_class(class_name)
        if source is None:
            source = definition.source if definition is not None else self._rules.default_source

        entry = ClassEntry(name=class_name, source=source, levels=level)
        character.progression.classes.append(entry)

        spellcasting = self._calculator.initialize_class_spellcasting(class_name, level)
        if spellcasting is not None:
            character.spellcasting.classes[class_name] = spellcasting

        logger.info("Added class level", class_name=class_name, level=level, source=source)
        self._emit_event(
            ProgressionEvent(
                ProgressionEventType.MULTICLASS_ADDED,
                character,
                {"class_name": class_name, "level": level},
            )
        )
        return entry

    def remove_class_level(self, character: ProgressionHolder, class_name: str) -> bool:
        """Remove a class entirely.

        Returns:
            True if the class was removed, False if the character lacks it.
        """
        entry = character.progression.get_class(class_name)
        if entry is None:
            logger.warning("Class not found", class_name=class_name)
            return False

        character.progression.classes.remove(entry)
        character.spellcasting.classes.pop(class_name, None)

        logger.info("Removed class level", class_name=class_name, levels=entry.levels)
        self._emit_event(
            ProgressionEvent(
                ProgressionEventType.MULTICLASS_REMOVED,
                character,
                {"class_name": class_name, "levels": entry.levels},
            )
        )
        return True

    def get_total_level(self, character: ProgressionHolder) -> int:
        """Sum of all class levels; 1 for a character without classes."""
        return character.progression.total_level

    # -------------------------------------------------------------------------
    # Ability Score Improvements
    # -------------------------------------------------------------------------

    def get_class_asi_levels(self, class_name: str) -> list[int]:
        """ASI levels read from a class's feature table.

        Falls back to the configured default levels when the class is
        unknown or its table lists no ASI.
        """
        definition = self._provider.get_class(class_name)
        if definition is not None:
            levels = sorted({ref.level for ref in definition.class_features if ref.is_asi})
            if levels:
                return levels
        logger.debug("Using default ASI levels", class_name=class_name)
        return sorted(self._rules.default_asi_levels)

    def get_asi_levels(self, character: ProgressionHolder) -> list[int]:
        """Union of the ASI levels of every class the character holds."""
        if not character.progression.classes:
            return sorted(self._rules.default_asi_levels)
        levels: set[int] = set()
        for entry in character.progression.classes:
            levels.update(self.get_class_asi_levels(entry.name))
        return sorted(levels)

    def has_asi_available(self, character: ProgressionHolder, class_name: str | None = None) -> bool:
        """Whether a class's current level is one of its ASI levels.

        Args:
            character: Character to check.
            class_name: Class to check. Any class qualifies when omitted.
        """
        entries = character.progression.classes
        if class_name is not None:
            entries = [entry for entry in entries if entry.name == class_name]
        return any(entry.levels in self.get_class_asi_levels(entry.name) for entry in entries)

    # -------------------------------------------------------------------------
    # Multiclassing
    # -------------------------------------------------------------------------

    def _requirement_groups(self, class_name: str) -> list[RequirementGroup]:
        definition = self._provider.get_class(class_name)
        if definition is None:
            return []
        return definition.multiclassing.requirement_groups()

    def check_multiclass_requirements(self, character: ProgressionHolder, class_name: str) -> bool:
        """Check ability score prerequisites for multiclassing into a class.

        Prerequisites are alternative groups of minimums. Meeting every
        minimum of any one group is sufficient.

        Returns:
            True if the prerequisites are met or none are defined.
        """
        groups = self._requirement_groups(class_name)
        if not groups:
            logger.warning("No multiclass requirements defined", class_name=class_name)
            return True

        scores = character.ability_scores
        return any(
            all(scores.get(ability, DEFAULT_ABILITY_SCORE) >= minimum for ability, minimum in group.items())
            for group in groups
        )

    def requirement_text(self, class_name: str) -> str:
        """Human-readable prerequisites, e.g. ``"STR 13 or DEX 13"``."""
        groups = self._requirement_groups(class_name)
        return " or ".join(
            ", ".join(
                f"{_SHORT_ABILITY.get(ability, ability.upper())} {minimum}"
                for ability, minimum in group.items()
            )
            for group in groups
        )

    def get_multiclass_options(
        self,
        character: ProgressionHolder,
        ignore_requirements: bool = False,
    ) -> list[MulticlassOption]:
        """Classes the character could add, sorted by name.

        Sidekick classes, classes from disallowed sources and classes the
        character already has are skipped.
        """
        taken = {entry.name for entry in character.progression.classes}
        seen: set[str] = set()
        options: list[MulticlassOption] = []

        for definition in self._provider.get_all_classes():
            if definition.is_sidekick or definition.name in taken or definition.name in seen:
                continue
            if not self._source_filter.is_source_allowed(definition.source):
                continue
            seen.add(definition.name)

            meets = ignore_requirements or self.check_multiclass_requirements(
                character, definition.name
            )
            options.append(
                MulticlassOption(
                    name=definition.name,
                    source=definition.source,
                    meets_requirements=meets,
                    requirement_text=self.requirement_text(definition.name),
                )
            )

        return sorted(options, key=lambda option: option.name)

    def get_available_classes_for_multiclass(
        self,
        character: ProgressionHolder,
        ignore_requirements: bool = False,
    ) -> list[str]:
        """Names of multiclass options whose prerequisites are met."""
        return [
            option.name
            for option in self.get_multiclass_options(character, ignore_requirements)
            if option.meets_requirements
        ]

    def calculate_multiclass_spell_slots(self, character: ProgressionHolder) -> CombinedSlots:
        """Combined slots under the multiclass spellcaster rule."""
        return self._calculator.combined_slots_for(character.progression.classes)

    # -------------------------------------------------------------------------
    # History & Derived Stats
    # -------------------------------------------------------------------------

    def record_level_up(
        self,
        character: ProgressionHolder,
        from_level: int,
        to_level: int,
        changes: Mapping[str, Any] | None = None,
    ) -> LevelUpRecord:
        """Append a level-up to the audit trail.

        Args:
            character: Character to record on.
            from_level: Total level before the level-up.
            to_level: Total level after the level-up.
            changes: Optional ``applied_feats``, ``applied_features`` and
                ``changed_abilities``.

        Returns:
            The appended record.
        """
        changes = changes or {}
        record = LevelUpRecord(
            from_level=from_level,
            to_level=to_level,
            applied_feats=list(changes.get("applied_feats", [])),
            applied_features=list(changes.get("applied_features", [])),
            changed_abilities=dict(changes.get("changed_abilities", {})),
        )
        character.progression.level_ups.append(record)

        logger.info(
            "Recorded level-up",
            from_level=from_level,
            to_level=to_level,
            used_asi=record.used_asi,
        )
        self._emit_event(
            ProgressionEvent(
                ProgressionEventType.LEVEL_UP_RECORDED,
                character,
                {"from_level": from_level, "to_level": to_level},
            )
        )
        return record

    def update_spell_slots(self, character: ProgressionHolder) -> None:
        """Recompute slot maximums for every class with spellcasting.

        Remaining slots carry over, capped at the new maximum, so slots spent
        before a level-up stay spent.
        """
        for entry in character.progression.classes:
            spellcasting = character.spellcasting.classes.get(entry.name)
            if spellcasting is None:
                continue

            slots = _carry_over(
                spellcasting.spell_slots,
                self._calculator.slots_for(entry.name, entry.levels),
            )
            spellcasting.spell_slots = slots
            spellcasting.level = entry.levels
            spellcasting.cantrips_known = self._calculator.cantrips_known(entry.name, entry.levels)
            entry.spell_slots = {lvl: slot.model_copy() for lvl, slot in slots.items()}

        combined = self._calculator.combined_slots_for(character.progression.classes)
        multiclass = character.spellcasting.multiclass
        multiclass.combined_slots = _carry_over(multiclass.combined_slots, combined.slots)
        multiclass.is_casting_multiclass = combined.is_casting_multiclass

        logger.debug(
            "Updated spell slots",
            classes=list(character.spellcasting.classes),
            caster_level=combined.caster_level,
        )

    def calculate_max_hit_points(self, character: ProgressionHolder) -> int:
        """Maximum hit points from class levels and Constitution.

        The first level of the first class takes the full hit die; every
        other level uses its recorded roll or the average. Each level adds
        the Constitution modifier and grants at least 1 hit point.
        """
        con_mod = character.ability_modifier("constitution")
        if not character.progression.classes:
            return max(1, DEFAULT_HIT_DIE + con_mod)

        total = 0
        for index, entry in enumerate(character.progression.classes):
            definition = self._provider.get_class(entry.name)
            hit_die = definition.hit_die if definition is not None else DEFAULT_HIT_DIE

            for class_level in range(1, entry.levels + 1):
                if index == 0 and class_level == 1:
                    total += max(1, hit_die + con_mod)
                    continue
                roll = entry.hit_points[class_level - 1] if class_level <= len(entry.hit_points) else None
                total += calculate_hp_increase(hit_die, con_mod, roll)

        return max(1, total)

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def on_event(self, event_type: str, handler: EventHandler) -> None:
        """Register an event handler.

        Args:
            event_type: Type of event to handle.
            handler: Callback invoked with the ProgressionEvent.
        """
        if event_type not in self._event_handlers:
            self._event_handlers[event_type] = []
        self._event_handlers[event_type].append(handler)

    def _emit_event(self, event: ProgressionEvent) -> None:
        handlers = self._event_handlers.get(event.event_type, [])
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Event handler error",
                    event_type=str(event.event_type),
                )


def _carry_over(
    old_slots: Mapping[int, SpellSlot],
    new_slots: dict[int, SpellSlot],
) -> dict[int, SpellSlot]:
    for spell_level, slot in new_slots.items():
        previous = old_slots.get(spell_level)
        if previous is not None:
            slot.current = min(previous.current, slot.max)
    return new_slots


__all__ = [
    "ProgressionEventType",
    "ProgressionEvent",
    "EventHandler",
    "MulticlassOption",
    "ProgressionManager",
]
