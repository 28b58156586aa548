"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the class progression engine test suite.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from dnd_progression.data import InMemoryClassDataProvider, srd_class_provider
from dnd_progression.engine import CompletenessValidator, ProgressionManager, SpellSlotCalculator
from dnd_progression.models import (
    Character,
    ClassEntry,
    ClassSpellcasting,
    HitPoints,
    LevelUpRecord,
    ProgressionRecord,
    Spell,
    SpellcastingState,
)


if TYPE_CHECKING:
    from collections.abc import Generator


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from dnd_progression.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def provider() -> InMemoryClassDataProvider:
    """Provide the SRD class data."""
    return srd_class_provider()


@pytest.fixture
def calculator(provider: InMemoryClassDataProvider) -> SpellSlotCalculator:
    return SpellSlotCalculator(provider)


@pytest.fixture
def manager(provider: InMemoryClassDataProvider, calculator: SpellSlotCalculator) -> ProgressionManager:
    return ProgressionManager(provider, calculator)


@pytest.fixture
def validator(provider: InMemoryClassDataProvider, calculator: SpellSlotCalculator) -> CompletenessValidator:
    return CompletenessValidator(provider, calculator)


@pytest.fixture
def homebrew_data() -> dict[str, list[dict[str, object]]]:
    """Provide 5etools-shaped data for classes outside the SRD.

    Returns:
        Mapping with ``class`` and ``classFeature`` lists.
    """
    return {
        "class": [
            {
                "name": "Spellblade",
                "source": "HB",
                "hd": {"number": 1, "faces": 10},
                "casterProgression": "1/3",
                "spellcastingAbility": "int",
                "cantripProgression": [2, 2, 2, 3],
                "spellsKnownProgression": [0, 0, 3, 4],
                "classFeatures": [
                    "Weapon Bond|Spellblade|HB|1",
                    ["Blade Style|Spellblade|HB|2"],
                    {"classFeature": "Spellblade Order|Spellblade|HB|3", "gainSubclassFeature": True},
                    "Ability Score Improvement|Spellblade|HB|4",
                ],
                "multiclassing": {"requirements": {"str": 13, "int": 13}},
            },
            {
                "name": "Expert",
                "source": "TCE",
                "hitDie": "d8",
                "isSidekick": True,
                "classFeatures": ["Helpful|Expert|TCE|1"],
            },
        ],
        "classFeature": [
            {"name": "Weapon Bond", "className": "Spellblade", "classSource": "HB", "source": "HB", "level": 1},
            {
                "name": "Blade Style",
                "className": "Spellblade",
                "classSource": "HB",
                "source": "HB",
                "level": 2,
                "entries": ["Choose 2 of the following blade styles."],
            },
            {"name": "Spellblade Order", "className": "Spellblade", "classSource": "HB", "source": "HB", "level": 3},
            {
                "name": "Ability Score Improvement",
                "className": "Spellblade",
                "classSource": "HB",
                "source": "HB",
                "level": 4,
            },
        ],
    }


@pytest.fixture
def homebrew_provider(homebrew_data: dict[str, list[dict[str, object]]]) -> InMemoryClassDataProvider:
    return InMemoryClassDataProvider.from_5etools(homebrew_data)


# =============================================================================
# Character Fixtures
# =============================================================================


@pytest.fixture
def sample_ability_scores() -> dict[str, int]:
    """Provide sample character ability scores.

    Returns:
        Dictionary of ability scores.
    """
    return {
        "strength": 16,
        "dexterity": 14,
        "constitution": 14,
        "intelligence": 10,
        "wisdom": 12,
        "charisma": 8,
    }


@pytest.fixture
def fighter(sample_ability_scores: dict[str, int]) -> Character:
    """A level 5 Fighter with every choice made.

    The ASI at level 4 was spent on Strength.
    """
    return Character(
        name="Thorin",
        ability_scores=sample_ability_scores,
        progression=ProgressionRecord(
            classes=[
                ClassEntry(
                    name="Fighter",
                    levels=5,
                    subclass="Champion",
                    fighting_style="Defense",
                )
            ],
            level_ups=[
                LevelUpRecord(
                    from_level=3,
                    to_level=4,
                    changed_abilities={"strength": {"from": 15, "to": 16}},
                )
            ],
        ),
        hit_points=HitPoints(current=44, max=44),
        proficiency_bonus=3,
    )


@pytest.fixture
def incomplete_fighter(sample_ability_scores: dict[str, int]) -> Character:
    """A level 5 Fighter missing subclass, fighting style and ASI."""
    return Character(
        name="Greenhorn",
        ability_scores=sample_ability_scores,
        progression=ProgressionRecord(classes=[ClassEntry(name="Fighter", levels=5)]),
        hit_points=HitPoints(current=44, max=44),
        proficiency_bonus=3,
    )


def _spells(prefix: str, count: int, level: int = 1) -> list[Spell]:
    return [Spell(name=f"{prefix} {index}", level=level) for index in range(count)]


@pytest.fixture
def wizard() -> Character:
    """A complete level 3 Wizard with a full spellbook."""
    return Character(
        name="Elara",
        ability_scores={"str": 8, "dex": 14, "con": 12, "int": 16, "wis": 12, "cha": 10},
        progression=ProgressionRecord(
            classes=[ClassEntry(name="Wizard", levels=3, subclass="School of Evocation")]
        ),
        spellcasting=SpellcastingState(
            classes={
                "Wizard": ClassSpellcasting(
                    level=3,
                    spells_known=_spells("Cantrip", 3, level=0) + _spells("Spell", 10),
                    cantrips_known=3,
                    spellcasting_ability="intelligence",
                    ritual_casting=True,
                )
            }
        ),
        hit_points=HitPoints(current=14, max=14),
    )


@pytest.fixture
def warlock_wizard() -> Character:
    """A Warlock 9 / Wizard 3 multiclass."""
    return Character(
        name="Morwen",
        ability_scores={"int": 14, "cha": 18, "con": 12},
        progression=ProgressionRecord(
            classes=[
                ClassEntry(name="Warlock", levels=9, subclass="The Fiend", pact_boon="Pact of the Tome"),
                ClassEntry(name="Wizard", levels=3, subclass="School of Divination"),
            ]
        ),
        proficiency_bonus=4,
    )
