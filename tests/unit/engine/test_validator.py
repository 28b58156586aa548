"""Tests for character completeness validation."""

from __future__ import annotations

import pytest

from dnd_progression.data import InMemoryClassDataProvider
from dnd_progression.engine import CompletenessValidator, ProgressionManager, parse_choice_count
from dnd_progression.models import (
    Character,
    ClassEntry,
    Invocation,
    LevelUpRecord,
    ProgressionRecord,
)


class TestParseChoiceCount:
    """Tests for choice count parsing."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Choose 2 of your skill proficiencies", 2),
            ("You gain 3 options of your choice", 3),
            ("Select 4 spells from the list", 4),
            ("You learn 2 cantrips", 2),
            ("You know 5 maneuvers", 5),
            ("Choose 2 now; you gain 3 later", 2),
            ("Choose one of the following options", 1),
            ("Select a cantrip", 1),
            ("You gain proficiency with shields", 0),
            ("", 0),
        ],
    )
    def test_parse(self, text: str, expected: int) -> None:
        assert parse_choice_count(text) == expected


class TestCompleteCharacters:
    """Tests for characters with every choice made."""

    def test_complete_fighter(self, validator: CompletenessValidator, fighter: Character) -> None:
        report = validator.validate(fighter)

        assert report.is_valid
        assert report.warnings == []

    def test_complete_wizard(self, validator: CompletenessValidator, wizard: Character) -> None:
        assert validator.validate(wizard).is_valid

    def test_validation_does_not_modify_character(
        self,
        validator: CompletenessValidator,
        incomplete_fighter: Character,
    ) -> None:
        before = incomplete_fighter.model_dump()
        validator.validate(incomplete_fighter)
        assert incomplete_fighter.model_dump() == before


class TestMissingChoices:
    """Tests for each missing-choice category."""

    def test_incomplete_fighter(self, validator: CompletenessValidator, incomplete_fighter: Character) -> None:
        report = validator.validate(incomplete_fighter)
        missing = report.missing

        assert not report.is_valid
        assert missing.count() == 3

        subclass = missing.subclasses[0]
        assert subclass.required_at == 3
        assert subclass.message == "Fighter should have a Martial Archetype selected at level 3"

        assert missing.fighting_styles[0].feature == "Fighting Style"
        assert missing.fighting_styles[0].level == 1

        asi = missing.asis[0]
        assert asi.asi_levels == [4]
        assert asi.expected_count == 1
        assert asi.required_at == 4

    def test_warlock_choices(self, validator: CompletenessValidator, manager: ProgressionManager) -> None:
        character = Character(name="Hexa", ability_scores={"charisma": 16})
        manager.add_class_level(character, "Warlock", 3)

        missing = validator.validate(character).missing

        assert missing.subclasses[0].required_at == 1
        assert len(missing.pact_boons) == 1

        invocations = missing.invocations[0]
        assert (invocations.expected, invocations.actual, invocations.missing) == (2, 0, 2)

        spells, cantrips = missing.spells
        assert (spells.expected, spells.missing) == (4, 4)
        assert cantrips.type == "cantrips"
        assert cantrips.missing == 2

    def test_invocations_counted_per_class(self, validator: CompletenessValidator, manager: ProgressionManager) -> None:
        character = Character(
            invocations=[Invocation(name="Agonizing Blast"), Invocation(name="Devil's Sight")],
        )
        manager.add_class_level(character, "Warlock", 2)

        assert validator.validate(character).missing.invocations == []

        character.invocations[1].class_name = "Other"
        assert validator.validate(character).missing.invocations[0].missing == 1

    def test_metamagic(self, validator: CompletenessValidator, manager: ProgressionManager) -> None:
        character = Character()
        manager.add_class_level(character, "Sorcerer", 3)

        assert validator.validate(character).missing.metamagic[0].expected == 2

        character.metamagic = ["Quickened Spell", "Twinned Spell"]
        assert validator.validate(character).missing.metamagic == []

    def test_generic_choice_feature(self, validator: CompletenessValidator) -> None:
        character = Character(progression=ProgressionRecord(classes=[ClassEntry(name="Rogue", levels=1)]))

        other = validator.validate(character).missing.other
        assert len(other) == 1
        assert other[0].feature == "Expertise"
        assert other[0].expected_choices == 2

        character.progression.classes[0].feature_choices = {"Expertise": ["Stealth", "Thieves' Tools"]}
        assert validator.validate(character).missing.other == []

    def test_bare_choose_counts_as_one(self, validator: CompletenessValidator) -> None:
        character = Character(progression=ProgressionRecord(classes=[ClassEntry(name="Ranger", levels=1)]))

        other = validator.validate(character).missing.other

        assert {finding.feature for finding in other} == {"Favored Enemy", "Natural Explorer"}
        assert all(finding.expected_choices == 1 for finding in other)

    def test_uninitialized_spellcasting(self, validator: CompletenessValidator) -> None:
        character = Character(progression=ProgressionRecord(classes=[ClassEntry(name="Wizard", levels=1)]))

        spells = validator.validate(character).missing.spells

        assert len(spells) == 1
        assert spells[0].message == "Wizard spellcasting not initialized"

    def test_homebrew_class(self, homebrew_provider: InMemoryClassDataProvider) -> None:
        validator = CompletenessValidator(homebrew_provider)
        character = Character(
            progression=ProgressionRecord(
                classes=[ClassEntry(name="Spellblade", source="HB", levels=3, subclass="Order of Ash")]
            )
        )

        missing = validator.validate(character).missing

        assert missing.subclasses == []
        assert [finding.feature for finding in missing.other] == ["Blade Style"]


class TestAbilityScoreImprovementDetection:
    """Tests for ASI usage detection through level-up records."""

    @pytest.fixture
    def veteran(self) -> Character:
        return Character(
            progression=ProgressionRecord(
                classes=[ClassEntry(name="Fighter", levels=8, subclass="Champion", fighting_style="Archery")]
            )
        )

    def test_all_unused(self, validator: CompletenessValidator, veteran: Character) -> None:
        asi = validator.validate(veteran).missing.asis[0]

        assert asi.asi_levels == [4, 6, 8]
        assert asi.expected_count == 3
        assert "at level(s) 4, 6, 8" in asi.message

    def test_used_asi_recognized(self, validator: CompletenessValidator, veteran: Character) -> None:
        veteran.progression.level_ups = [
            LevelUpRecord(from_level=5, to_level=6, applied_feats=["Alert"]),
            LevelUpRecord(from_level=3, to_level=4),
        ]

        asi = validator.validate(veteran).missing.asis[0]

        assert asi.asi_levels == [4, 8]

    def test_all_used(self, validator: CompletenessValidator, veteran: Character) -> None:
        veteran.progression.level_ups = [
            LevelUpRecord(from_level=level - 1, to_level=level, changed_abilities={"strength": {"from": 14, "to": 15}})
            for level in (4, 6, 8)
        ]

        assert validator.validate(veteran).missing.asis == []


class TestWarnings:
    """Tests for data warnings."""

    def test_no_classes(self, validator: CompletenessValidator) -> None:
        report = validator.validate(Character())

        assert report.is_valid
        assert report.warnings == ["Character has no class progression data"]

    def test_unknown_class(self, validator: CompletenessValidator) -> None:
        character = Character(progression=ProgressionRecord(classes=[ClassEntry(name="Artificer", levels=3)]))

        report = validator.validate(character)

        assert report.is_valid
        assert report.warnings == ["Unknown class: Artificer"]


class TestSummaries:
    """Tests for report summaries."""

    def test_get_summary(self, validator: CompletenessValidator, incomplete_fighter: Character) -> None:
        report = validator.validate(incomplete_fighter)

        assert validator.get_summary(report) == [
            "Missing subclass choices: 1",
            "Missing fighting styles: 1",
            "Unused ASI/Feat choices: 1",
        ]

    def test_empty_summary(self, validator: CompletenessValidator, fighter: Character) -> None:
        assert validator.get_summary(validator.validate(fighter)) == []

    def test_pending_choices_summary(self, validator: CompletenessValidator, incomplete_fighter: Character) -> None:
        summary = validator.get_pending_choices_summary(incomplete_fighter)

        assert summary.total == 3
        assert summary.by_category == {"subclasses": 1, "asis": 1, "features": 1}
        assert summary.messages == ["1 subclass choice", "1 ASI/Feat choice", "1 class feature choice"]

    def test_pending_spells_pluralized(self, validator: CompletenessValidator, manager: ProgressionManager) -> None:
        character = Character(name="Hexa")
        manager.add_class_level(character, "Warlock", 1)
        character.progression.classes[0].subclass = "The Archfey"

        summary = validator.get_pending_choices_summary(character)

        assert summary.by_category == {"spells": 4}
        assert summary.messages == ["4 spells"]

    def test_missing_choices_for_class(self, validator: CompletenessValidator, incomplete_fighter: Character) -> None:
        choices = validator.get_missing_choices_for_class(incomplete_fighter, "Fighter")

        assert choices.subclass is not None
        assert choices.asi is not None
        assert choices.spells is None
        assert [finding.feature for finding in choices.features] == ["Fighting Style"]

        other = validator.get_missing_choices_for_class(incomplete_fighter, "Wizard")
        assert other.subclass is None
        assert other.features == []
