"""Completeness reports and level-up summaries.

A ValidationReport lists every choice a character still owes, grouped by
category. Missing choices are data, never exceptions: the hosting UI
decides whether a finding blocks or merely warns.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from pydantic import Field, computed_field

from dnd_progression.models.character import AbilityChange, Component


# =============================================================================
# Findings
# =============================================================================


class Finding(Component):
    """One missing choice.

    Attributes:
        class_name: Class the finding belongs to.
        level: Class level the finding was raised at.
        message: Human-readable description.
        required_at: Level at which the choice first became due.
        expected: Count the class table calls for.
        actual: Count the character has.
        missing: Shortfall between the two.
        feature: Feature that asks for the choice.
        type: Sub-kind within the category (e.g. "cantrips").
        asi_levels: Unused ASI levels (ASI findings only).
        expected_count: Number of unused ASIs (ASI findings only).
        expected_choices: Count parsed from a generic choice feature.
    """

    class_name: str
    level: int
    message: str
    required_at: int | None = None
    expected: int | None = None
    actual: int | None = None
    missing: int | None = None
    feature: str | None = None
    type: str | None = None
    asi_levels: list[int] = Field(default_factory=list)
    expected_count: int | None = None
    expected_choices: int | None = None

    @property
    def required_level(self) -> int:
        """Level the class must hold for this finding to apply."""
        return self.required_at if self.required_at is not None else self.level


CATEGORIES = (
    "spells",
    "invocations",
    "metamagic",
    "fighting_styles",
    "pact_boons",
    "subclasses",
    "asis",
    "features",
    "other",
)

# Categories counted as "class feature choices" in pending-choice summaries
FEATURE_CATEGORIES = ("invocations", "metamagic", "fighting_styles", "pact_boons")


class MissingChoices(Component):
    """Findings grouped by category."""

    spells: list[Finding] = Field(default_factory=list)
    invocations: list[Finding] = Field(default_factory=list)
    metamagic: list[Finding] = Field(default_factory=list)
    fighting_styles: list[Finding] = Field(default_factory=list)
    pact_boons: list[Finding] = Field(default_factory=list)
    subclasses: list[Finding] = Field(default_factory=list)
    asis: list[Finding] = Field(default_factory=list)
    features: list[Finding] = Field(default_factory=list)
    other: list[Finding] = Field(default_factory=list)

    def items(self) -> Iterator[tuple[str, list[Finding]]]:
        """Iterate (category, findings) pairs in a stable order."""
        for category in CATEGORIES:
            yield category, getattr(self, category)

    def count(self) -> int:
        return sum(len(findings) for _, findings in self.items())

    def for_class(self, class_name: str) -> list[Finding]:
        return [f for _, findings in self.items() for f in findings if f.class_name == class_name]


class ValidationReport(Component):
    """Result of a completeness check."""

    missing: MissingChoices = Field(default_factory=MissingChoices)
    warnings: list[str] = Field(default_factory=list)

    @computed_field(description="True when no choices are missing")
    @property
    def is_valid(self) -> bool:
        return all(not findings for _, findings in self.missing.items())


# =============================================================================
# Summaries
# =============================================================================


class PendingChoicesSummary(Component):
    """Counts of outstanding choices for display."""

    total: int = 0
    by_category: dict[str, int] = Field(default_factory=dict)
    messages: list[str] = Field(default_factory=list)


class ClassMissingChoices(Component):
    """Missing choices scoped to one class."""

    subclass: Finding | None = None
    features: list[Finding] = Field(default_factory=list)
    spells: Finding | None = None
    asi: Finding | None = None


class LevelChange(Component):
    """Level delta of one class within a session."""

    name: str
    from_level: int = Field(alias="from")
    to_level: int = Field(alias="to")
    change: int


class ChangeSummary(Component):
    """What a session would change, shown on the summary step."""

    leveled_classes: list[LevelChange] = Field(default_factory=list)
    new_features: dict[str, Any] = Field(default_factory=dict)
    new_asis: list[Any] = Field(default_factory=list)
    new_spells: dict[str, Any] = Field(default_factory=dict)
    changed_abilities: dict[str, AbilityChange] = Field(default_factory=dict)
    total_level_change: int = 0


__all__ = [
    "Finding",
    "CATEGORIES",
    "FEATURE_CATEGORIES",
    "MissingChoices",
    "ValidationReport",
    "PendingChoicesSummary",
    "ClassMissingChoices",
    "LevelChange",
    "ChangeSummary",
]
