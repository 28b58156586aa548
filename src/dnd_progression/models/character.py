"""Character progression records.

This module holds the Pydantic V2 models for the parts of a character the
progression engine reads and writes:

- ProgressionRecord: class levels, experience, and the level-up audit trail
- SpellcastingState: per-class spellcasting plus the multiclass slot pool
- Character: the mutable root the hosting application owns
- StagedChanges: the isolated copy a level-up session edits

Total character level is always derived from the class entries and never
stored, so it cannot diverge from them.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any, Protocol

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from dnd_progression.core.constants import (
    ABILITY_ABBREVIATIONS,
    ABILITY_NAMES,
    DEFAULT_ABILITY_SCORE,
    MAX_CHARACTER_LEVEL,
    MIN_CHARACTER_LEVEL,
)


# =============================================================================
# Type Definitions
# =============================================================================


AbilityScore = Annotated[int, Field(ge=1, le=30, description="D&D ability score (1-30)")]
ClassLevel = Annotated[int, Field(ge=1, le=20, description="Levels held in one class (1-20)")]
SpellLevel = Annotated[int, Field(ge=0, le=9, description="Spell level (0 = cantrip)")]


def calculate_modifier(score: int) -> int:
    """Ability modifier for a score: (score - 10) // 2."""
    return (score - 10) // 2


def normalize_ability(ability: str) -> str:
    """Map 'str'/'STR'/'Strength' style keys onto the full lowercase name."""
    key = ability.strip().lower()
    return ABILITY_ABBREVIATIONS.get(key, key)


def _utcnow() -> datetime:
    return datetime.now(UTC)


# =============================================================================
# Base Component
# =============================================================================


class Component(BaseModel):
    """Base class for character records.

    Records are plain data containers. The engine services mutate them;
    assignment is validated so a staged edit cannot smuggle in bad values.
    """

    model_config = ConfigDict(
        frozen=False,
        validate_assignment=True,
        extra="ignore",  # Ignore computed fields when deserializing
        populate_by_name=True,
    )


# =============================================================================
# Spellcasting
# =============================================================================


class Spell(Component):
    """A spell known or prepared by a class."""

    name: str = Field(min_length=1)
    level: SpellLevel = Field(default=1)
    source: str = Field(default="PHB")

    @model_validator(mode="before")
    @classmethod
    def coerce_name(cls, data: Any) -> Any:
        """Accept a bare spell name."""
        if isinstance(data, str):
            return {"name": data}
        return data

    @property
    def is_cantrip(self) -> bool:
        return self.level == 0


class SpellSlot(Component):
    """Maximum and remaining slots for one spell level."""

    max: int = Field(default=0, ge=0)
    current: int = Field(default=0, ge=0)
    is_pact_magic: bool = Field(default=False, description="Warlock pact slot")


class ClassSpellcasting(Component):
    """Spellcasting state contributed by a single class."""

    level: int = Field(default=0, ge=0, le=MAX_CHARACTER_LEVEL)
    spells_known: list[Spell] = Field(default_factory=list)
    spells_prepared: list[Spell] = Field(default_factory=list)
    spell_slots: dict[int, SpellSlot] = Field(default_factory=dict)
    cantrips_known: int = Field(default=0, ge=0)
    spellcasting_ability: str | None = Field(default=None)
    ritual_casting: bool = Field(default=False)

    @property
    def cantrips(self) -> list[Spell]:
        return [spell for spell in self.spells_known if spell.is_cantrip]

    @property
    def leveled_spells(self) -> list[Spell]:
        return [spell for spell in self.spells_known if not spell.is_cantrip]


class MulticlassSpellcasting(Component):
    """The shared slot pool of a multiclassed caster."""

    is_casting_multiclass: bool = Field(default=False)
    combined_slots: dict[int, SpellSlot] = Field(default_factory=dict)


class OtherSpellcasting(Component):
    """Spells granted outside any class (feats, races, items)."""

    spells_known: list[Spell] = Field(default_factory=list)
    item_spells: list[Spell] = Field(default_factory=list)


class SpellcastingState(Component):
    """All spellcasting state of a character."""

    classes: dict[str, ClassSpellcasting] = Field(default_factory=dict)
    multiclass: MulticlassSpellcasting = Field(default_factory=MulticlassSpellcasting)
    other: OtherSpellcasting = Field(default_factory=OtherSpellcasting)


# =============================================================================
# Progression
# =============================================================================


class ClassEntry(Component):
    """One class the character has taken, unique by name."""

    name: str = Field(min_length=1)
    source: str = Field(default="PHB")
    levels: ClassLevel = Field(default=1)
    subclass: str | None = Field(default=None)
    features: list[str] = Field(default_factory=list)
    spell_slots: dict[int, SpellSlot] = Field(default_factory=dict)

    # Rolled hit die results indexed by class level - 1; missing rolls use the average
    hit_points: list[int] = Field(default_factory=list)

    fighting_style: str | None = Field(default=None)
    pact_boon: str | None = Field(default=None)

    # Picks made for generic "choose N" features, keyed by feature name
    feature_choices: dict[str, list[str]] = Field(default_factory=dict)


class AbilityChange(Component):
    """Before/after value of one ability score."""

    from_score: int = Field(alias="from")
    to_score: int = Field(alias="to")

    @property
    def change(self) -> int:
        return self.to_score - self.from_score


class LevelUpRecord(Component):
    """Append-only audit entry written whenever a level-up is committed."""

    from_level: int = Field(ge=0)
    to_level: int = Field(ge=0)
    applied_feats: list[str] = Field(default_factory=list)
    applied_features: list[str] = Field(default_factory=list)
    changed_abilities: dict[str, AbilityChange] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utcnow)

    @property
    def used_asi(self) -> bool:
        """Whether this level-up spent an ASI (ability change or feat)."""
        return bool(self.changed_abilities) or bool(self.applied_feats)


class ProgressionRecord(Component):
    """Class levels, experience, and the level-up history."""

    classes: list[ClassEntry] = Field(default_factory=list)
    experience_points: int = Field(default=0, ge=0)
    level_ups: list[LevelUpRecord] = Field(default_factory=list)

    @computed_field(description="Total character level")
    @property
    def total_level(self) -> int:
        if not self.classes:
            return MIN_CHARACTER_LEVEL
        return sum(entry.levels for entry in self.classes)

    def get_class(self, name: str) -> ClassEntry | None:
        """Find a class entry by name."""
        for entry in self.classes:
            if entry.name == name:
                return entry
        return None

    def class_levels(self) -> dict[str, int]:
        """Map of class name to levels held."""
        return {entry.name: entry.levels for entry in self.classes}


# =============================================================================
# Character
# =============================================================================


def _default_ability_scores() -> dict[str, int]:
    return {ability: DEFAULT_ABILITY_SCORE for ability in ABILITY_NAMES}


class HitPoints(Component):
    """Hit point pool."""

    current: int = Field(default=1, ge=0)
    max: int = Field(default=1, ge=1)
    temp: int = Field(default=0, ge=0)


class Invocation(Component):
    """An Eldritch Invocation and the class that granted it."""

    name: str = Field(min_length=1)
    class_name: str = Field(default="Warlock")


class ChoiceRecord(Component):
    """Choices made while progressing a class to a given level."""

    choices: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utcnow)


def _normalize_scores(value: Any) -> Any:
    if isinstance(value, dict):
        return {normalize_ability(str(k)): v for k, v in value.items()}
    return value


class Character(Component):
    """The character being built or leveled.

    Owned by the hosting application. The engine borrows it and only
    writes to it when a ProgressionSession commits.
    """

    name: str = Field(default="Unnamed Character")
    ability_scores: dict[str, AbilityScore] = Field(default_factory=_default_ability_scores)
    progression: ProgressionRecord = Field(default_factory=ProgressionRecord)
    spellcasting: SpellcastingState = Field(default_factory=SpellcastingState)
    hit_points: HitPoints = Field(default_factory=HitPoints)
    feats: list[str] = Field(default_factory=list)
    proficiency_bonus: int = Field(default=2, ge=2, le=6)

    invocations: list[Invocation] = Field(default_factory=list)
    metamagic: list[str] = Field(default_factory=list)

    # class name -> class level -> choices recorded during level-up
    progression_history: dict[str, dict[int, ChoiceRecord]] = Field(default_factory=dict)

    @field_validator("ability_scores", mode="before")
    @classmethod
    def normalize_ability_keys(cls, v: Any) -> Any:
        """Accept abbreviated or capitalised ability keys."""
        return _normalize_scores(v)

    @computed_field(description="Total character level")
    @property
    def total_level(self) -> int:
        return self.progression.total_level

    def ability_score(self, ability: str) -> int:
        """Score for an ability, 10 when not recorded."""
        return self.ability_scores.get(normalize_ability(ability), DEFAULT_ABILITY_SCORE)

    def ability_modifier(self, ability: str) -> int:
        return calculate_modifier(self.ability_score(ability))


# =============================================================================
# Staging
# =============================================================================


class StagedChanges(Component):
    """Isolated copy of the character fields a level-up may change.

    A session writes only to this copy. Discarding it is always a safe
    rollback because the live character was never touched.
    """

    progression: ProgressionRecord = Field(default_factory=ProgressionRecord)
    spellcasting: SpellcastingState = Field(default_factory=SpellcastingState)
    feats: list[str] = Field(default_factory=list)
    ability_scores: dict[str, AbilityScore] = Field(default_factory=_default_ability_scores)
    hit_points: HitPoints = Field(default_factory=HitPoints)
    proficiency_bonus: int = Field(default=2, ge=2, le=6)

    @field_validator("ability_scores", mode="before")
    @classmethod
    def normalize_ability_keys(cls, v: Any) -> Any:
        """Accept abbreviated or capitalised ability keys."""
        return _normalize_scores(v)

    @classmethod
    def from_character(cls, character: Character) -> StagedChanges:
        """Deep-copy the level-up relevant fields of a character."""
        return cls(
            progression=character.progression.model_copy(deep=True),
            spellcasting=character.spellcasting.model_copy(deep=True),
            feats=list(character.feats),
            ability_scores=dict(character.ability_scores),
            hit_points=character.hit_points.model_copy(deep=True),
            proficiency_bonus=character.proficiency_bonus,
        )

    @property
    def total_level(self) -> int:
        return self.progression.total_level

    def ability_score(self, ability: str) -> int:
        return self.ability_scores.get(normalize_ability(ability), DEFAULT_ABILITY_SCORE)

    def ability_modifier(self, ability: str) -> int:
        return calculate_modifier(self.ability_score(ability))


class ProgressionHolder(Protocol):
    """Anything carrying progression, spellcasting, and ability scores.

    Both Character and StagedChanges satisfy this, so the engine services
    can operate on a session's staged copy exactly as on a live character.
    """

    progression: ProgressionRecord
    spellcasting: SpellcastingState
    ability_scores: dict[str, int]

    def ability_modifier(self, ability: str) -> int: ...


__all__ = [
    "AbilityScore",
    "ClassLevel",
    "calculate_modifier",
    "normalize_ability",
    "Component",
    "Spell",
    "SpellSlot",
    "ClassSpellcasting",
    "MulticlassSpellcasting",
    "OtherSpellcasting",
    "SpellcastingState",
    "ClassEntry",
    "AbilityChange",
    "LevelUpRecord",
    "ProgressionRecord",
    "HitPoints",
    "Invocation",
    "ChoiceRecord",
    "Character",
    "StagedChanges",
    "ProgressionHolder",
]
