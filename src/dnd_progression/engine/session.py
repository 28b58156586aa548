"""Level-up wizard sessions.

A ProgressionSession stages every edit of a level-up on an isolated copy of
the character and merges it back only when the player commits. Walking
away from the wizard, or calling ``discard()``, leaves the live character
exactly as it was.

The wizard runs five steps:

    0. Rules review
    1. Class features
    2. Ability score improvements
    3. Spells
    4. Summary
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from dnd_progression.core.config import RulesSettings, get_settings
from dnd_progression.core.constants import FIRST_STEP, LAST_STEP, WIZARD_STEPS
from dnd_progression.core.exceptions import InvalidCharacterStateError, SessionError
from dnd_progression.core.logging import bound_context, get_logger
from dnd_progression.data.provider import ClassDataProvider
from dnd_progression.engine.paths import get_path, set_path
from dnd_progression.engine.progression_manager import ProgressionManager
from dnd_progression.engine.spell_slots import SpellSlotCalculator
from dnd_progression.engine.validator import CompletenessValidator
from dnd_progression.models.character import (
    AbilityChange,
    Character,
    ChoiceRecord,
    ClassEntry,
    ProgressionRecord,
    StagedChanges,
)
from dnd_progression.models.progression import get_proficiency_bonus
from dnd_progression.models.validation import (
    ChangeSummary,
    LevelChange,
    ValidationReport,
)


logger = get_logger(__name__)

StepValidator = Callable[["ProgressionSession"], bool]


def _empty_step_data() -> dict[str, dict[Any, Any]]:
    return {
        "selected_subclasses": {},
        "asi_choices": {},
        "selected_features": {},
        "selected_spells": {},
    }


class ProgressionSession:
    """A staged level-up of one character.

    Attributes:
        original_character: The live character. Only ``apply_changes``
            writes to it.
        staged_changes: Isolated copy the wizard edits.
        current_step: Index of the active wizard step.
        step_data: Per-step UI selections (subclasses, ASI choices,
            features, spells).
        validation_report: Completeness report of the original character.
        has_missing_choices: Whether that report has any finding.

    Example:
        >>> session = ProgressionSession(hero)
        >>> session.set("progression.classes[0].levels", 5)
        >>> session.get("progression.classes[0].levels")
        5
        >>> hero = session.apply_changes()
    """

    def __init__(
        self,
        character: Character | None,
        *,
        manager: ProgressionManager | None = None,
        validator: CompletenessValidator | None = None,
        calculator: SpellSlotCalculator | None = None,
        provider: ClassDataProvider | None = None,
        rules: RulesSettings | None = None,
    ) -> None:
        """Start a session for a character.

        Args:
            character: Character to level up.
            manager: Progression manager. Built from the other services if omitted.
            validator: Completeness validator. Built likewise if omitted.
            calculator: Spell slot calculator shared by the default services.
            provider: Class data source shared by the default services.
            rules: Rules settings. Defaults to the global settings.

        Raises:
            SessionError: If no character is given.
        """
        if character is None:
            raise SessionError("A level-up session requires a character")

        self._rules = rules if rules is not None else get_settings().rules
        if calculator is None:
            calculator = manager.calculator if manager is not None else SpellSlotCalculator(provider)
        self._manager = manager or ProgressionManager(provider, calculator, rules=self._rules)
        self._validator = validator or CompletenessValidator(provider, calculator, rules=self._rules)
        self._step_validators: dict[int, StepValidator] = {}

        self.original_character = character
        self.staged_changes = StagedChanges.from_character(character)
        self._initial_state = self.staged_changes.model_copy(deep=True)

        self.current_step = FIRST_STEP
        self.step_data: dict[str, dict[Any, Any]] = _empty_step_data()

        # class name -> class level -> choices
        self._choices: dict[str, dict[int, dict[str, Any]]] = {}

        self.validation_report = self._validator.validate(character)
        self.has_missing_choices = not self.validation_report.is_valid
        if self.has_missing_choices:
            logger.warning(
                "Character has incomplete choices",
                character_name=character.name,
                summary=self._validator.get_summary(self.validation_report),
            )

        logger.info(
            "Progression session started",
            character_name=character.name,
            total_level=self._initial_state.total_level,
        )

    @property
    def manager(self) -> ProgressionManager:
        return self._manager

    @property
    def validator(self) -> CompletenessValidator:
        return self._validator

    # -------------------------------------------------------------------------
    # Staged Access
    # -------------------------------------------------------------------------

    def get(self, path: str) -> Any:
        """Read a staged value by dotted path, e.g. ``"progression.classes[0].levels"``.

        Returns:
            The value, or None when the path does not exist.

        Raises:
            SessionError: If the path is malformed.
        """
        return get_path(self.staged_changes, path)

    def set(self, path: str, value: Any) -> None:
        """Write a staged value by dotted path, creating missing parents.

        Raises:
            SessionError: If the path is malformed or the value is invalid
                for the staged model.
        """
        set_path(self.staged_changes, path, value)
        logger.debug("Staged value set", path=path)

    def get_staged_changes(self) -> StagedChanges:
        return self.staged_changes

    def add_class_level(self, class_name: str, level: int = 1, source: str | None = None) -> ClassEntry:
        """Set a staged class to ``level``, adding it if new."""
        entry = self._manager.add_class_level(self.staged_changes, class_name, level, source)
        self._manager.update_spell_slots(self.staged_changes)
        return entry

    def remove_class_level(self, class_name: str) -> bool:
        """Remove a class from the staged copy."""
        removed = self._manager.remove_class_level(self.staged_changes, class_name)
        if removed:
            self.step_data["selected_subclasses"].pop(class_name, None)
            self.clear_choices(class_name)
            self._manager.update_spell_slots(self.staged_changes)
        return removed

    def select_subclass(self, class_name: str, subclass: str) -> None:
        """Stage a subclass choice for a class.

        Raises:
            SessionError: If the class is not part of the staged progression.
        """
        entry = self.staged_changes.progression.get_class(class_name)
        if entry is None:
            raise SessionError(
                f"Cannot select a subclass for {class_name}: class not staged",
                details={"class_name": class_name},
            )
        entry.subclass = subclass
        self.step_data["selected_subclasses"][class_name] = subclass
        logger.debug("Subclass staged", class_name=class_name, subclass=subclass)

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    @property
    def step_name(self) -> str:
        return WIZARD_STEPS[self.current_step]

    def register_step_validator(self, step: int, validator: StepValidator) -> None:
        """Install the check that gates leaving ``step``."""
        self._step_validators[step] = validator

    def _validate_step(self, step: int) -> bool:
        validator = self._step_validators.get(step)
        if validator is None:
            return True
        return validator(self)

    def can_go_to_step(self, step: int) -> bool:
        """Whether the wizard may move to ``step``.

        The first step is always reachable. Any other step requires the
        current step's validator to pass.
        """
        if not FIRST_STEP <= step <= LAST_STEP:
            return False
        if step == FIRST_STEP:
            return True
        return self._validate_step(self.current_step)

    def next_step(self) -> bool:
        """Advance one step. Returns False if blocked or already last."""
        if self.current_step >= LAST_STEP:
            return False
        target = self.current_step + 1
        if not self.can_go_to_step(target):
            return False
        self.current_step = target
        logger.debug("Wizard step advanced", step=target, step_name=self.step_name)
        return True

    def previous_step(self) -> bool:
        """Go back one step. Returns False on the first step."""
        if self.current_step <= FIRST_STEP:
            return False
        self.current_step -= 1
        return True

    def jump_to_step(self, step: int) -> bool:
        """Move directly to ``step`` if allowed."""
        if not self.can_go_to_step(step):
            return False
        self.current_step = step
        return True

    # -------------------------------------------------------------------------
    # Choice Ledger
    # -------------------------------------------------------------------------

    def record_choices(self, class_name: str, level: int, choices: Mapping[str, Any]) -> None:
        """Record the choices made for a class at one class level.

        Recording the same class and level again replaces the earlier entry.
        """
        self._choices.setdefault(class_name, {})[level] = dict(choices)
        logger.debug("Choices recorded", class_name=class_name, level=level)

    def get_choices(self, class_name: str, level: int) -> dict[str, Any] | None:
        return self._choices.get(class_name, {}).get(level)

    def get_class_choices(self, class_name: str) -> dict[int, dict[str, Any]]:
        return self._choices.get(class_name, {})

    def get_all_choices(self) -> dict[str, dict[int, dict[str, Any]]]:
        return self._choices

    def clear_choices(self, class_name: str | None = None) -> None:
        """Forget recorded choices for one class, or for all classes."""
        if class_name is None:
            self._choices.clear()
        else:
            self._choices.pop(class_name, None)

    # -------------------------------------------------------------------------
    # Summaries & Reports
    # -------------------------------------------------------------------------

    def _changed_abilities(self) -> dict[str, AbilityChange]:
        initial = self._initial_state.ability_scores
        changed: dict[str, AbilityChange] = {}
        for ability, score in self.staged_changes.ability_scores.items():
            before = initial.get(ability, score)
            if before != score:
                changed[ability] = AbilityChange(from_score=before, to_score=score)
        return changed

    def get_change_summary(self) -> ChangeSummary:
        """What committing would change, compared with the session start."""
        before = self._initial_state.progression.class_levels()
        after = self.staged_changes.progression.class_levels()

        leveled: list[LevelChange] = []
        for name, to_level in after.items():
            from_level = before.get(name, 0)
            if to_level != from_level:
                leveled.append(
                    LevelChange(name=name, from_level=from_level, to_level=to_level, change=to_level - from_level)
                )
        for name, from_level in before.items():
            if name not in after:
                leveled.append(LevelChange(name=name, from_level=from_level, to_level=0, change=-from_level))

        return ChangeSummary(
            leveled_classes=leveled,
            new_features=dict(self.step_data["selected_features"]),
            new_asis=list(self.step_data["asi_choices"].values()),
            new_spells=dict(self.step_data["selected_spells"]),
            changed_abilities=self._changed_abilities(),
            total_level_change=self.staged_changes.total_level - self._initial_state.total_level,
        )

    def get_validation_report(self) -> ValidationReport:
        return self.validation_report

    def get_filtered_validation_report(self) -> ValidationReport:
        """Findings that still apply at the staged class levels.

        Findings whose required level exceeds the staged level of their
        class are dropped, as are findings for classes no longer staged.
        ASI findings keep only the ASI levels still reached. The stored
        report is never modified.
        """
        report = self.validation_report.model_copy(deep=True)
        staged_levels = self.staged_changes.progression.class_levels()

        for category, findings in report.missing.items():
            kept = []
            for finding in findings:
                class_level = staged_levels.get(finding.class_name, 0)
                if finding.required_level > class_level:
                    continue
                if category == "asis" and finding.asi_levels:
                    reached = [level for level in finding.asi_levels if level <= class_level]
                    if not reached:
                        continue
                    finding.asi_levels = reached
                    finding.expected_count = len(reached)
                kept.append(finding)
            setattr(report.missing, category, kept)

        return report

    def has_missing_choices_for_current_level(self) -> bool:
        return not self.get_filtered_validation_report().is_valid

    def get_missing_choices_summary(self) -> list[str]:
        """Summary lines for the findings that apply at the staged levels."""
        return self._validator.get_summary(self.get_filtered_validation_report())

    # -------------------------------------------------------------------------
    # Terminal Actions
    # -------------------------------------------------------------------------

    def discard(self) -> None:
        """Throw away every staged edit and return to the first step."""
        self.staged_changes = self._initial_state.model_copy(deep=True)
        self.step_data = _empty_step_data()
        self.current_step = FIRST_STEP
        logger.info("Progression session discarded", character_name=self.original_character.name)

    def _check_invariants(self, progression: ProgressionRecord, character_name: str) -> None:
        if not progression.classes:
            raise InvalidCharacterStateError(
                "Character must have at least one class",
                character_name=character_name,
            )
        total = progression.total_level
        if not 1 <= total <= self._rules.max_level:
            raise InvalidCharacterStateError(
                f"Total level must be between 1 and {self._rules.max_level}",
                character_name=character_name,
                level=total,
            )

    def _commit_changes(self) -> dict[str, Any]:
        initial_feats = set(self._initial_state.feats)
        applied_features: list[str] = []
        for selected in self.step_data["selected_features"].values():
            if isinstance(selected, str):
                applied_features.append(selected)
            elif isinstance(selected, (list, tuple)):
                applied_features.extend(str(item) for item in selected)
        return {
            "applied_feats": [feat for feat in self.staged_changes.feats if feat not in initial_feats],
            "applied_features": applied_features,
            "changed_abilities": self._changed_abilities(),
        }

    def apply_changes(self) -> Character:
        """Merge the staged copy into the live character.

        Derived values are recomputed after the merge: proficiency bonus,
        hit points, then spell slots. A LevelUpRecord is appended and the
        choice ledger is persisted to the character's progression history.

        Returns:
            The updated character.

        Raises:
            InvalidCharacterStateError: If the staged state has no class or
                a total level outside the allowed range. When
                ``validate_before_commit`` is set the character is left
                untouched.
        """
        character = self.original_character
        staged = self.staged_changes

        if self._rules.validate_before_commit:
            self._check_invariants(staged.progression, character.name)

        with bound_context(character_name=character.name):
            from_level = self._initial_state.total_level
            had_classes = bool(self._initial_state.progression.classes)
            changes = self._commit_changes()

            character.progression = staged.progression.model_copy(deep=True)
            character.spellcasting = staged.spellcasting.model_copy(deep=True)
            character.feats = list(staged.feats)
            character.ability_scores = dict(staged.ability_scores)
            character.hit_points = staged.hit_points.model_copy(deep=True)

            # Derived stats assume a legal total level
            self._check_invariants(character.progression, character.name)

            for class_name, subclass in self.step_data["selected_subclasses"].items():
                entry = character.progression.get_class(class_name)
                if entry is not None:
                    entry.subclass = subclass

            to_level = character.progression.total_level
            character.proficiency_bonus = get_proficiency_bonus(to_level)
            self._update_hit_points(character, had_classes)
            self._manager.update_spell_slots(character)

            self._manager.record_level_up(character, from_level, to_level, changes)
            for class_name, levels in self._choices.items():
                history = character.progression_history.setdefault(class_name, {})
                for level, choices in levels.items():
                    history[level] = ChoiceRecord(choices=dict(choices))

            logger.info(
                "Progression changes applied",
                from_level=from_level,
                to_level=to_level,
                proficiency_bonus=character.proficiency_bonus,
                max_hit_points=character.hit_points.max,
            )

        # Later edits in this session start from the committed state
        self.staged_changes = StagedChanges.from_character(character)
        self._initial_state = self.staged_changes.model_copy(deep=True)
        self.step_data = _empty_step_data()
        self._choices = {}
        self.validation_report = self._validator.validate(character)
        self.has_missing_choices = not self.validation_report.is_valid

        return character

    def _update_hit_points(self, character: Character, had_classes: bool) -> None:
        hit_points = character.hit_points
        new_max = self._manager.calculate_max_hit_points(character)

        if not had_classes:
            hit_points.max = new_max
            hit_points.current = new_max
            return

        delta = new_max - self._manager.calculate_max_hit_points(self._initial_state)
        maximum = max(1, hit_points.max + delta)
        hit_points.max = maximum
        hit_points.current = min(maximum, max(0, hit_points.current + delta))


__all__ = [
    "StepValidator",
    "ProgressionSession",
]
