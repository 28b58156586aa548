"""D&D 5E SRD class data.

The twelve core classes as ClassDefinition records, with feature tables,
spell progressions and multiclassing prerequisites from the PHB. This is
the default data source when the hosting application supplies none.

Feature entries carry only the text the engine needs for choice detection.
"""

from __future__ import annotations

from functools import lru_cache

from dnd_progression.core.constants import STANDARD_ASI_LEVELS
from dnd_progression.data.provider import InMemoryClassDataProvider
from dnd_progression.models.class_data import ClassDefinition, Feature, FeatureRef
from dnd_progression.models.progression import FULL_CASTER, HALF_CASTER, PACT_CASTER


# =============================================================================
# Class Basics
# =============================================================================

CLASS_HIT_DIE: dict[str, int] = {
    "Barbarian": 12,
    "Fighter": 10,
    "Paladin": 10,
    "Ranger": 10,
    "Bard": 8,
    "Cleric": 8,
    "Druid": 8,
    "Monk": 8,
    "Rogue": 8,
    "Warlock": 8,
    "Sorcerer": 6,
    "Wizard": 6,
}

CASTER_PROGRESSION: dict[str, str] = {
    "Bard": FULL_CASTER,
    "Cleric": FULL_CASTER,
    "Druid": FULL_CASTER,
    "Sorcerer": FULL_CASTER,
    "Wizard": FULL_CASTER,
    "Paladin": HALF_CASTER,
    "Ranger": HALF_CASTER,
    "Warlock": PACT_CASTER,
}

SPELLCASTING_ABILITY: dict[str, str] = {
    "Bard": "charisma",
    "Cleric": "wisdom",
    "Druid": "wisdom",
    "Paladin": "charisma",
    "Ranger": "wisdom",
    "Sorcerer": "charisma",
    "Warlock": "charisma",
    "Wizard": "intelligence",
}

PREPARED_CASTERS = {"Cleric", "Druid", "Paladin", "Wizard"}

SUBCLASS_TITLE: dict[str, str] = {
    "Barbarian": "Primal Path",
    "Bard": "Bard College",
    "Cleric": "Divine Domain",
    "Druid": "Druid Circle",
    "Fighter": "Martial Archetype",
    "Monk": "Monastic Tradition",
    "Paladin": "Sacred Oath",
    "Ranger": "Ranger Archetype",
    "Rogue": "Roguish Archetype",
    "Sorcerer": "Sorcerous Origin",
    "Warlock": "Otherworldly Patron",
    "Wizard": "Arcane Tradition",
}

SUBCLASS_LEVEL: dict[str, int] = {
    "Cleric": 1,
    "Sorcerer": 1,
    "Warlock": 1,
    "Druid": 2,
    "Wizard": 2,
}

# PHB p.163; Fighter needs STR 13 or DEX 13
MULTICLASS_REQUIREMENTS: dict[str, dict[str, object]] = {
    "Barbarian": {"str": 13},
    "Bard": {"cha": 13},
    "Cleric": {"wis": 13},
    "Druid": {"wis": 13},
    "Fighter": {"or": [{"str": 13}, {"dex": 13}]},
    "Monk": {"dex": 13, "wis": 13},
    "Paladin": {"str": 13, "cha": 13},
    "Ranger": {"dex": 13, "wis": 13},
    "Rogue": {"dex": 13},
    "Sorcerer": {"cha": 13},
    "Warlock": {"cha": 13},
    "Wizard": {"int": 13},
}

# =============================================================================
# Spell Progressions
# =============================================================================

CANTRIPS_KNOWN: dict[str, dict[int, int]] = {
    "Bard": {1: 2, 4: 3, 10: 4},
    "Cleric": {1: 3, 4: 4, 10: 5},
    "Druid": {1: 2, 4: 3, 10: 4},
    "Sorcerer": {1: 4, 4: 5, 10: 6},
    "Warlock": {1: 2, 4: 3, 10: 4},
    "Wizard": {1: 3, 4: 4, 10: 5},
}

SPELLS_KNOWN: dict[str, list[int]] = {
    "Bard": [4, 5, 6, 7, 8, 9, 10, 11, 12, 14, 15, 15, 16, 18, 19, 19, 20, 22, 22, 22],
    "Ranger": [0, 2, 3, 3, 4, 4, 5, 5, 6, 6, 7, 7, 8, 8, 9, 9, 10, 10, 11, 11],
    "Sorcerer": [2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12, 12, 13, 13, 14, 14, 15, 15, 15, 15],
    "Warlock": [2, 3, 4, 5, 6, 7, 8, 9, 10, 10, 11, 11, 12, 12, 13, 13, 14, 14, 15, 15],
}

# Spells added to a spellbook per wizard level: six at 1st, two thereafter
SPELLS_LEARNED: dict[str, list[int]] = {
    "Wizard": [6] + [2] * 19,
}


def _stepped(breakpoints: dict[int, int]) -> list[int]:
    """Expand {level: value} breakpoints into a 20-entry per-level list."""
    values: list[int] = []
    current = 0
    for level in range(1, 21):
        current = breakpoints.get(level, current)
        values.append(current)
    return values


# =============================================================================
# Feature Tables
# =============================================================================

# Class features by level, excluding ASIs and the subclass grant
CLASS_FEATURES: dict[str, dict[int, list[str]]] = {
    "Barbarian": {
        1: ["Rage", "Unarmored Defense"],
        2: ["Reckless Attack", "Danger Sense"],
        5: ["Extra Attack", "Fast Movement"],
        6: ["Path Feature"],
        7: ["Feral Instinct"],
        9: ["Brutal Critical"],
        10: ["Path Feature"],
        11: ["Relentless Rage"],
        14: ["Path Feature"],
        15: ["Persistent Rage"],
        18: ["Indomitable Might"],
        20: ["Primal Champion"],
    },
    "Bard": {
        1: ["Spellcasting", "Bardic Inspiration"],
        2: ["Jack of All Trades", "Song of Rest"],
        3: ["Expertise"],
        5: ["Font of Inspiration"],
        6: ["Countercharm", "College Feature"],
        10: ["Expertise", "Magical Secrets"],
        14: ["Magical Secrets", "College Feature"],
        18: ["Magical Secrets"],
        20: ["Superior Inspiration"],
    },
    "Cleric": {
        1: ["Spellcasting"],
        2: ["Channel Divinity", "Domain Feature"],
        5: ["Destroy Undead"],
        6: ["Domain Feature"],
        8: ["Domain Feature"],
        10: ["Divine Intervention"],
        17: ["Domain Feature"],
        20: ["Divine Intervention Improvement"],
    },
    "Druid": {
        1: ["Druidic", "Spellcasting"],
        2: ["Wild Shape"],
        6: ["Circle Feature"],
        10: ["Circle Feature"],
        14: ["Circle Feature"],
        18: ["Timeless Body", "Beast Spells"],
        20: ["Archdruid"],
    },
    "Fighter": {
        1: ["Fighting Style", "Second Wind"],
        2: ["Action Surge"],
        5: ["Extra Attack"],
        7: ["Archetype Feature"],
        9: ["Indomitable"],
        10: ["Archetype Feature"],
        15: ["Archetype Feature"],
        18: ["Archetype Feature"],
    },
    "Monk": {
        1: ["Unarmored Defense", "Martial Arts"],
        2: ["Ki", "Unarmored Movement"],
        3: ["Deflect Missiles"],
        4: ["Slow Fall"],
        5: ["Extra Attack", "Stunning Strike"],
        6: ["Ki-Empowered Strikes", "Tradition Feature"],
        7: ["Evasion", "Stillness of Mind"],
        10: ["Purity of Body"],
        11: ["Tradition Feature"],
        13: ["Tongue of the Sun and Moon"],
        14: ["Diamond Soul"],
        15: ["Timeless Body"],
        17: ["Tradition Feature"],
        18: ["Empty Body"],
        20: ["Perfect Self"],
    },
    "Paladin": {
        1: ["Divine Sense", "Lay on Hands"],
        2: ["Fighting Style", "Spellcasting", "Divine Smite"],
        3: ["Divine Health"],
        5: ["Extra Attack"],
        6: ["Aura of Protection"],
        7: ["Oath Feature"],
        10: ["Aura of Courage"],
        11: ["Improved Divine Smite"],
        14: ["Cleansing Touch"],
        15: ["Oath Feature"],
        18: ["Aura Improvements"],
        20: ["Oath Feature"],
    },
    "Ranger": {
        1: ["Favored Enemy", "Natural Explorer"],
        2: ["Fighting Style", "Spellcasting"],
        3: ["Primeval Awareness"],
        5: ["Extra Attack"],
        7: ["Archetype Feature"],
        8: ["Land's Stride"],
        10: ["Hide in Plain Sight"],
        11: ["Archetype Feature"],
        14: ["Vanish"],
        15: ["Archetype Feature"],
        18: ["Feral Senses"],
        20: ["Foe Slayer"],
    },
    "Rogue": {
        1: ["Expertise", "Sneak Attack", "Thieves' Cant"],
        2: ["Cunning Action"],
        5: ["Uncanny Dodge"],
        6: ["Expertise"],
        7: ["Evasion"],
        9: ["Archetype Feature"],
        11: ["Reliable Talent"],
        13: ["Archetype Feature"],
        14: ["Blindsense"],
        15: ["Slippery Mind"],
        17: ["Archetype Feature"],
        18: ["Elusive"],
        20: ["Stroke of Luck"],
    },
    "Sorcerer": {
        1: ["Spellcasting"],
        2: ["Font of Magic"],
        3: ["Metamagic"],
        6: ["Origin Feature"],
        14: ["Origin Feature"],
        18: ["Origin Feature"],
        20: ["Sorcerous Restoration"],
    },
    "Warlock": {
        1: ["Pact Magic"],
        2: ["Eldritch Invocations"],
        3: ["Pact Boon"],
        6: ["Patron Feature"],
        10: ["Patron Feature"],
        11: ["Mystic Arcanum"],
        14: ["Patron Feature"],
        20: ["Eldritch Master"],
    },
    "Wizard": {
        1: ["Spellcasting", "Arcane Recovery"],
        6: ["Tradition Feature"],
        10: ["Tradition Feature"],
        14: ["Tradition Feature"],
        18: ["Spell Mastery"],
        20: ["Signature Spells"],
    },
}

CLASS_ASI_LEVELS: dict[str, tuple[int, ...]] = {
    "Fighter": (4, 6, 8, 12, 14, 16, 19),
    "Rogue": (4, 8, 10, 12, 16, 19),
}

ASI_FEATURE = "Ability Score Improvement"

# Entry text of features that ask the player for a decision
FEATURE_TEXT: dict[str, str] = {
    "Fighting Style": "You adopt a particular style of fighting as your specialty. "
    "Choose one of the following options.",
    "Eldritch Invocations": "In your study of occult lore, you have unearthed "
    "fragments of forbidden knowledge. You gain 2 eldritch invocations of your choice.",
    "Pact Boon": "Your otherworldly patron bestows a gift upon you for your loyal service.",
    "Metamagic": "You gain the ability to twist your spells to suit your needs. "
    "You gain 2 Metamagic options of your choice.",
    "Expertise": "Choose 2 of your skill proficiencies. Your proficiency bonus is "
    "doubled for any ability check you make that uses either of them.",
    "Favored Enemy": "Choose a type of favored enemy: beasts, fey, humanoids, "
    "monstrosities, or undead.",
    "Natural Explorer": "Choose one type of favored terrain: arctic, coast, desert, "
    "forest, grassland, mountain, or swamp.",
    ASI_FEATURE: "Increase one ability score by 2, or two ability scores by 1.",
}


def _feature_refs(class_name: str) -> list[str | dict[str, object]]:
    """Build the 5etools-style feature table for a class."""
    subclass_level = SUBCLASS_LEVEL.get(class_name, 3)
    asi_levels = CLASS_ASI_LEVELS.get(class_name, STANDARD_ASI_LEVELS)
    table = CLASS_FEATURES[class_name]

    refs: list[str | dict[str, object]] = []
    for level in range(1, 21):
        for name in table.get(level, []):
            refs.append(f"{name}|{class_name}||{level}")
        if level == subclass_level:
            refs.append({
                "classFeature": f"{SUBCLASS_TITLE[class_name]}|{class_name}||{level}",
                "gainSubclassFeature": True,
            })
        if level in asi_levels:
            refs.append(f"{ASI_FEATURE}|{class_name}||{level}")
    return refs


def _build_class(class_name: str) -> ClassDefinition:
    return ClassDefinition(
        name=class_name,
        source="PHB",
        hit_die=CLASS_HIT_DIE[class_name],
        caster_progression=CASTER_PROGRESSION.get(class_name),
        spellcasting_ability=SPELLCASTING_ABILITY.get(class_name),
        prepared_spells=class_name in PREPARED_CASTERS,
        cantrip_progression=_stepped(CANTRIPS_KNOWN[class_name]) if class_name in CANTRIPS_KNOWN else [],
        spells_known_progression=SPELLS_KNOWN.get(class_name, []),
        spells_known_progression_fixed=SPELLS_LEARNED.get(class_name, []),
        class_features=_feature_refs(class_name),
        multiclassing={"requirements": MULTICLASS_REQUIREMENTS[class_name]},
        subclass_title=SUBCLASS_TITLE[class_name],
    )


def _build_features(definition: ClassDefinition) -> list[Feature]:
    return [
        Feature(
            name=ref.name,
            class_name=definition.name,
            source=definition.source,
            class_source=definition.source,
            level=ref.level,
            entries=[FEATURE_TEXT[ref.name]] if ref.name in FEATURE_TEXT else [],
        )
        for ref in definition.class_features
    ]


def srd_classes() -> list[ClassDefinition]:
    """All SRD class definitions."""
    return [_build_class(name) for name in CLASS_HIT_DIE]


@lru_cache(maxsize=1)
def srd_class_provider() -> InMemoryClassDataProvider:
    """Get the shared provider over the SRD classes."""
    classes = srd_classes()
    features = [feature for definition in classes for feature in _build_features(definition)]
    return InMemoryClassDataProvider(classes, features)


__all__ = [
    "CLASS_HIT_DIE",
    "CASTER_PROGRESSION",
    "SPELLCASTING_ABILITY",
    "PREPARED_CASTERS",
    "SUBCLASS_TITLE",
    "SUBCLASS_LEVEL",
    "MULTICLASS_REQUIREMENTS",
    "CANTRIPS_KNOWN",
    "SPELLS_KNOWN",
    "SPELLS_LEARNED",
    "CLASS_FEATURES",
    "CLASS_ASI_LEVELS",
    "ASI_FEATURE",
    "FEATURE_TEXT",
    "srd_classes",
    "srd_class_provider",
]
