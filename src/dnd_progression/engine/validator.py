"""Character completeness validation.

Inspects a character against its class tables and reports every choice the
player still owes: subclasses, spells, Eldritch Invocations, Metamagic,
Fighting Styles, Pact Boons, generic "choose N" features, and ASIs.

Unknown classes produce warnings rather than failures, so validation keeps
working against house-ruled or incomplete class data.
"""

from __future__ import annotations

import re

from dnd_progression.core.config import RulesSettings, get_settings
from dnd_progression.core.logging import get_logger
from dnd_progression.data.provider import ClassDataProvider
from dnd_progression.engine.spell_slots import SpellSlotCalculator
from dnd_progression.models.character import Character, ClassEntry
from dnd_progression.models.class_data import ClassDefinition, Feature
from dnd_progression.models.validation import (
    FEATURE_CATEGORIES,
    ClassMissingChoices,
    Finding,
    PendingChoicesSummary,
    ValidationReport,
)


logger = get_logger(__name__)


# =============================================================================
# Choice Count Parsing
# =============================================================================

_COUNT_PATTERNS = (
    re.compile(r"choose (\d+)"),
    re.compile(r"gain (\d+)"),
    re.compile(r"select (\d+)"),
    re.compile(r"learn (\d+)"),
    re.compile(r"know (\d+)"),
)


def parse_choice_count(text: str) -> int:
    """Number of choices a feature's text asks for.

    Free-text matching over class data. Patterns are tried in order
    (``choose N``, ``gain N``, ``select N``, ``learn N``, ``know N``); a bare
    "choose" or "select" without a number counts as one choice.

    Args:
        text: Feature name and entries.

    Returns:
        The parsed count, or 0 when the text asks for no choice.
    """
    lowered = text.lower()
    for pattern in _COUNT_PATTERNS:
        match = pattern.search(lowered)
        if match:
            return int(match.group(1))
    if "choose" in lowered or "select" in lowered:
        return 1
    return 0


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count > 1 else ''}"


# =============================================================================
# Validator
# =============================================================================


class CompletenessValidator:
    """Reports the choices a character has not made yet.

    Example:
        >>> validator = CompletenessValidator()
        >>> report = validator.validate(hero)
        >>> report.is_valid
        False
        >>> validator.get_summary(report)
        ['Missing subclass choices: 1']
    """

    def __init__(
        self,
        provider: ClassDataProvider | None = None,
        calculator: SpellSlotCalculator | None = None,
        *,
        rules: RulesSettings | None = None,
    ) -> None:
        """Initialize the validator.

        Args:
            provider: Class data source. Defaults to the calculator's provider.
            calculator: Spell limit source. Built from ``provider`` if omitted.
            rules: Rules settings. Defaults to the global settings.
        """
        if calculator is None:
            calculator = SpellSlotCalculator(provider)
        self._calculator = calculator
        self._provider = provider if provider is not None else calculator.provider
        self._rules = rules if rules is not None else get_settings().rules

    def validate(self, character: Character) -> ValidationReport:
        """Check every class of a character for missing choices.

        Args:
            character: Character to inspect. It is never modified.

        Returns:
            Findings grouped by category plus data warnings.
        """
        report = ValidationReport()

        if not character.progression.classes:
            report.warnings.append("Character has no class progression data")

        for entry in character.progression.classes:
            self._validate_class(character, entry, report)

        logger.info(
            "Validation complete",
            character_name=character.name,
            is_valid=report.is_valid,
            missing_count=report.missing.count(),
        )
        return report

    def _validate_class(self, character: Character, entry: ClassEntry, report: ValidationReport) -> None:
        if entry.levels <= 0:
            return

        definition = self._provider.get_class(entry.name)
        if definition is None:
            report.warnings.append(f"Unknown class: {entry.name}")
            logger.warning("Unknown class during validation", class_name=entry.name)
            return

        features = self._provider.get_class_features(entry.name, entry.levels, definition.source)

        self._check_subclass(entry, definition, report)
        if definition.spellcasting_ability:
            self._check_spells(character, entry, report)
        self._check_features(character, entry, definition, features, report)
        self._check_asis(character, entry, features, report)

    # -------------------------------------------------------------------------
    # Checks
    # -------------------------------------------------------------------------

    def subclass_level(self, definition: ClassDefinition) -> int:
        """Level at which a class picks its subclass."""
        levels = [ref.level for ref in definition.class_features if ref.grants_subclass]
        return min(levels) if levels else self._rules.default_subclass_level

    def _check_subclass(self, entry: ClassEntry, definition: ClassDefinition, report: ValidationReport) -> None:
        required_at = self.subclass_level(definition)
        if entry.levels < required_at or entry.subclass:
            return

        title = definition.subclass_title or "subclass"
        report.missing.subclasses.append(
            Finding(
                class_name=entry.name,
                level=entry.levels,
                required_at=required_at,
                message=f"{entry.name} should have a {title} selected at level {required_at}",
            )
        )

    def _check_spells(self, character: Character, entry: ClassEntry, report: ValidationReport) -> None:
        spellcasting = character.spellcasting.classes.get(entry.name)
        if spellcasting is None:
            report.missing.spells.append(
                Finding(
                    class_name=entry.name,
                    level=entry.levels,
                    message=f"{entry.name} spellcasting not initialized",
                )
            )
            return

        expected = self._calculator.spells_known_limit(entry.name, entry.levels)
        actual = len(spellcasting.leveled_spells)
        if expected > 0 and actual < expected:
            report.missing.spells.append(
                Finding(
                    class_name=entry.name,
                    level=entry.levels,
                    expected=expected,
                    actual=actual,
                    missing=expected - actual,
                    message=(
                        f"{entry.name} is missing {expected - actual} spells "
                        f"(has {actual}, should have {expected})"
                    ),
                )
            )

        expected_cantrips = self._calculator.cantrips_known(entry.name, entry.levels)
        actual_cantrips = len(spellcasting.cantrips)
        if expected_cantrips > 0 and actual_cantrips < expected_cantrips:
            report.missing.spells.append(
                Finding(
                    class_name=entry.name,
                    level=entry.levels,
                    type="cantrips",
                    expected=expected_cantrips,
                    actual=actual_cantrips,
                    missing=expected_cantrips - actual_cantrips,
                    message=f"{entry.name} is missing {expected_cantrips - actual_cantrips} cantrips",
                )
            )

    def _check_features(
        self,
        character: Character,
        entry: ClassEntry,
        definition: ClassDefinition,
        features: list[Feature],
        report: ValidationReport,
    ) -> None:
        subclass_features = {ref.name for ref in definition.class_features if ref.grants_subclass}
        for feature in features:
            if feature.name in subclass_features:
                continue
            self._check_feature_choice(character, entry, feature, report)

    def _check_feature_choice(
        self,
        character: Character,
        entry: ClassEntry,
        feature: Feature,
        report: ValidationReport,
    ) -> None:
        name = feature.name
        level = feature.level

        if "Eldritch Invocations" in name or "Invocation" in name:
            expected = parse_choice_count(feature.text)
            actual = sum(1 for inv in character.invocations if inv.class_name == entry.name)
            if expected > 0 and actual < expected:
                report.missing.invocations.append(
                    Finding(
                        class_name=entry.name,
                        level=level,
                        expected=expected,
                        actual=actual,
                        missing=expected - actual,
                        feature=name,
                        message=f"{entry.name} is missing {expected - actual} {name}",
                    )
                )

        elif "Metamagic" in name:
            expected = parse_choice_count(feature.text)
            actual = len(character.metamagic)
            if expected > 0 and actual < expected:
                report.missing.metamagic.append(
                    Finding(
                        class_name=entry.name,
                        level=level,
                        expected=expected,
                        actual=actual,
                        missing=expected - actual,
                        feature=name,
                        message=f"{entry.name} is missing {expected - actual} {name} options",
                    )
                )

        elif "Pact Boon" in name:
            if not entry.pact_boon:
                report.missing.pact_boons.append(
                    Finding(
                        class_name=entry.name,
                        level=level,
                        feature=name,
                        message=f"{entry.name} should have a Pact Boon selected",
                    )
                )

        elif "Fighting Style" in name:
            if not entry.fighting_style:
                report.missing.fighting_styles.append(
                    Finding(
                        class_name=entry.name,
                        level=level,
                        feature=name,
                        message=f"{entry.name} should have a Fighting Style selected",
                    )
                )

        elif feature.is_asi:
            return

        else:
            text = feature.text
            if "choose" not in text and "select" not in text:
                return
            expected = parse_choice_count(text)
            actual = len(entry.feature_choices.get(name, []))
            if expected > 0 and actual < expected:
                report.missing.other.append(
                    Finding(
                        class_name=entry.name,
                        level=level,
                        feature=name,
                        expected_choices=expected,
                        expected=expected,
                        actual=actual,
                        missing=expected - actual,
                        message=f"{entry.name} has a choice to make for {name}",
                    )
                )

    def _check_asis(
        self,
        character: Character,
        entry: ClassEntry,
        features: list[Feature],
        report: ValidationReport,
    ) -> None:
        asi_levels = sorted({feature.level for feature in features if feature.is_asi})
        if not asi_levels:
            return

        used = {
            record.to_level
            for record in character.progression.level_ups
            if record.used_asi and record.to_level in asi_levels
        }
        unused = [level for level in asi_levels if level not in used]
        if not unused:
            return

        levels_text = ", ".join(str(level) for level in unused)
        report.missing.asis.append(
            Finding(
                class_name=entry.name,
                level=entry.levels,
                required_at=unused[0],
                asi_levels=unused,
                expected_count=len(unused),
                message=(
                    f"{entry.name} has {len(unused)} unused ASI/Feat choice(s) "
                    f"at level(s) {levels_text}"
                ),
            )
        )

    # -------------------------------------------------------------------------
    # Summaries
    # -------------------------------------------------------------------------

    def get_summary(self, report: ValidationReport) -> list[str]:
        """Short human-readable lines describing a report."""
        missing = report.missing
        messages: list[str] = []

        if missing.subclasses:
            messages.append(f"Missing subclass choices: {len(missing.subclasses)}")
        if missing.spells:
            messages.append(f"Missing spells: {sum(f.missing or 0 for f in missing.spells)}")
        if missing.invocations:
            messages.append(f"Missing invocations: {sum(f.missing or 0 for f in missing.invocations)}")
        if missing.metamagic:
            messages.append(f"Missing metamagic: {sum(f.missing or 0 for f in missing.metamagic)}")
        if missing.fighting_styles:
            messages.append(f"Missing fighting styles: {len(missing.fighting_styles)}")
        if missing.pact_boons:
            messages.append(f"Missing pact boons: {len(missing.pact_boons)}")
        if missing.asis:
            messages.append(f"Unused ASI/Feat choices: {sum(f.expected_count or 0 for f in missing.asis)}")
        if missing.features:
            messages.append(f"Missing features: {len(missing.features)}")
        if missing.other:
            messages.append(f"Other incomplete choices: {len(missing.other)}")

        return messages

    def get_pending_choices_summary(self, character: Character) -> PendingChoicesSummary:
        """Counts of outstanding choices by category."""
        report = self.validate(character)
        missing = report.missing
        summary = PendingChoicesSummary()

        def add(category: str, count: int, noun: str | None) -> None:
            if count <= 0:
                return
            summary.by_category[category] = count
            summary.total += count
            if noun:
                summary.messages.append(_plural(count, noun))

        add("subclasses", len(missing.subclasses), "subclass choice")
        add("asis", sum(f.expected_count or 0 for f in missing.asis), "ASI/Feat choice")
        add("spells", sum(f.missing or 0 for f in missing.spells), "spell")
        add(
            "features",
            sum(f.missing or 1 for category in FEATURE_CATEGORIES for f in getattr(missing, category)),
            "class feature choice",
        )
        add("other", len(missing.other), None)

        return summary

    def get_missing_choices_for_class(self, character: Character, class_name: str) -> ClassMissingChoices:
        """Missing choices scoped to one class."""
        missing = self.validate(character).missing

        def first(findings: list[Finding]) -> Finding | None:
            return next((f for f in findings if f.class_name == class_name), None)

        features: list[Finding] = []
        for category in (*FEATURE_CATEGORIES, "features", "other"):
            features.extend(f for f in getattr(missing, category) if f.class_name == class_name)

        return ClassMissingChoices(
            subclass=first(missing.subclasses),
            features=features,
            spells=first(missing.spells),
            asi=first(missing.asis),
        )


__all__ = [
    "parse_choice_count",
    "CompletenessValidator",
]
