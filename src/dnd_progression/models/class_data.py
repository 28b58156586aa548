"""Read-only class definitions served by a ClassDataProvider.

The shapes mirror 5etools class JSON: camelCase keys are accepted on input
(``casterProgression``, ``classFeatures``, ...) alongside the snake_case
field names, so raw data files can be validated directly.

Class feature references come in two forms:

- ``"Ability Score Improvement|Fighter||4"``: ``name|class|classSource|level``
- ``{"classFeature": "Martial Archetype|Fighter||3", "gainSubclassFeature": true}``
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from dnd_progression.core.constants import ABILITY_ABBREVIATIONS, DEFAULT_HIT_DIE


# =============================================================================
# Base
# =============================================================================


class ClassDataModel(BaseModel):
    """Base for immutable game-data records."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )


# =============================================================================
# Features
# =============================================================================


class FeatureRef(ClassDataModel):
    """One entry of a class's feature table."""

    name: str
    class_name: str = ""
    class_source: str = "PHB"
    level: int = Field(default=1, ge=1, le=20)
    gain_subclass_feature: bool = False

    @classmethod
    def parse(cls, raw: str | dict[str, Any] | FeatureRef) -> FeatureRef | None:
        """Parse a 5etools feature reference.

        Returns:
            The parsed reference, or None when the entry is unreadable.
        """
        if isinstance(raw, FeatureRef):
            return raw

        gain_subclass = False
        if isinstance(raw, dict):
            gain_subclass = bool(raw.get("gainSubclassFeature", raw.get("gain_subclass_feature")))
            raw = raw.get("classFeature", raw.get("class_feature", ""))

        if not isinstance(raw, str) or not raw.strip():
            return None

        parts = raw.split("|")
        name = parts[0].strip()
        class_name = parts[1].strip() if len(parts) > 1 else ""
        class_source = (parts[2].strip() if len(parts) > 2 else "") or "PHB"
        try:
            level = int(parts[3]) if len(parts) > 3 and parts[3].strip() else 1
        except ValueError:
            return None
        if not name or not 1 <= level <= 20:
            return None

        return cls(
            name=name,
            class_name=class_name,
            class_source=class_source,
            level=level,
            gain_subclass_feature=gain_subclass,
        )

    @property
    def is_asi(self) -> bool:
        return "Ability Score Improvement" in self.name or self.name == "ASI"

    @property
    def grants_subclass(self) -> bool:
        return self.gain_subclass_feature or "subclass" in self.name.lower()


class Feature(ClassDataModel):
    """Full text of a class or subclass feature."""

    name: str
    class_name: str
    source: str = "PHB"
    class_source: str = "PHB"
    level: int = Field(default=1, ge=1, le=20)
    entries: list[Any] = Field(default_factory=list)
    subclass_short_name: str | None = None

    @property
    def is_asi(self) -> bool:
        return "Ability Score Improvement" in self.name or self.name == "ASI"

    @property
    def text(self) -> str:
        """Lowercased name and entries, used for choice detection."""
        return f"{self.name} {json.dumps(self.entries)}".lower()


# =============================================================================
# Classes
# =============================================================================


RequirementGroup = dict[str, int]


class MulticlassingInfo(ClassDataModel):
    """Multiclassing prerequisites.

    ``requirements`` is either a flat mapping of ability minimums, all of
    which must be met, or ``{"or": [group, ...]}`` where meeting every
    minimum of any one group suffices.
    """

    requirements: dict[str, Any] = Field(default_factory=dict)

    def requirement_groups(self) -> list[RequirementGroup]:
        """Requirements as alternative AND-groups keyed by full ability name."""
        if not self.requirements:
            return []
        if "or" in self.requirements:
            groups = self.requirements.get("or") or []
            return [_normalize_group(group) for group in groups if isinstance(group, dict)]
        return [_normalize_group(self.requirements)]


def _normalize_group(group: dict[str, Any]) -> RequirementGroup:
    normalized: RequirementGroup = {}
    for ability, minimum in group.items():
        key = ability.strip().lower()
        normalized[ABILITY_ABBREVIATIONS.get(key, key)] = int(minimum)
    return normalized


class ClassDefinition(ClassDataModel):
    """A class as described by the game data."""

    name: str
    source: str = "PHB"
    hit_die: int = Field(
        default=DEFAULT_HIT_DIE,
        validation_alias=AliasChoices("hit_die", "hitDie", "hd"),
    )
    caster_progression: str | None = None
    spellcasting_ability: str | None = None
    prepared_spells: bool = False
    cantrip_progression: list[int] = Field(default_factory=list)
    spells_known_progression: list[int] = Field(default_factory=list)
    spells_known_progression_fixed: list[int] = Field(default_factory=list)
    class_features: list[FeatureRef] = Field(default_factory=list)
    multiclassing: MulticlassingInfo = Field(default_factory=MulticlassingInfo)
    subclass_title: str | None = None
    is_sidekick: bool = False

    @field_validator("hit_die", mode="before")
    @classmethod
    def parse_hit_die(cls, v: Any) -> Any:
        """Accept ``"d10"`` or the 5etools ``{"number": 1, "faces": 10}`` form."""
        if isinstance(v, dict):
            return v.get("faces", DEFAULT_HIT_DIE)
        if isinstance(v, str):
            return int(v.lower().lstrip("d") or DEFAULT_HIT_DIE)
        return v

    @field_validator("spellcasting_ability", mode="before")
    @classmethod
    def expand_ability(cls, v: Any) -> Any:
        """Expand ``"cha"`` style abbreviations to full ability names."""
        if isinstance(v, str) and v.strip():
            key = v.strip().lower()
            return ABILITY_ABBREVIATIONS.get(key, key)
        return v or None

    @field_validator("prepared_spells", mode="before")
    @classmethod
    def parse_prepared_spells(cls, v: Any) -> Any:
        # 5etools stores a formula string such as "<$level$> + <$int_mod$>"
        if isinstance(v, str):
            return bool(v.strip())
        return v

    @field_validator("class_features", mode="before")
    @classmethod
    def parse_class_features(cls, v: Any) -> Any:
        """Parse feature references, flattening per-level nesting."""
        if not isinstance(v, list):
            return v
        parsed: list[FeatureRef] = []
        for item in v:
            items = item if isinstance(item, list) else [item]
            for raw in items:
                ref = FeatureRef.parse(raw)
                if ref is not None:
                    parsed.append(ref)
        return parsed

    @property
    def is_spellcaster(self) -> bool:
        return bool(self.spellcasting_ability)

    @property
    def is_pact_caster(self) -> bool:
        return self.caster_progression == "pact"


__all__ = [
    "ClassDataModel",
    "FeatureRef",
    "Feature",
    "RequirementGroup",
    "MulticlassingInfo",
    "ClassDefinition",
]
