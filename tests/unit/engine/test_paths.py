"""Tests for dotted-path access to staged data."""

from __future__ import annotations

from typing import Any

import pytest

from dnd_progression.core.exceptions import SessionError
from dnd_progression.engine import get_path, parse_path, set_path
from dnd_progression.models import Character, ClassSpellcasting, StagedChanges


@pytest.fixture
def staged(wizard: Character) -> StagedChanges:
    return StagedChanges.from_character(wizard)


class TestParsePath:
    """Tests for path parsing."""

    def test_segments(self) -> None:
        assert parse_path("progression.classes[0].levels") == [
            ("progression", None),
            ("classes", 0),
            ("levels", None),
        ]

    def test_keys_with_spaces(self) -> None:
        assert parse_path("spellcasting.classes.Blood Hunter") == [
            ("spellcasting", None),
            ("classes", None),
            ("Blood Hunter", None),
        ]

    @pytest.mark.parametrize("path", ["", "  ", "progression..classes", "classes[x]", "classes[0", "[0]"])
    def test_malformed(self, path: str) -> None:
        with pytest.raises(SessionError):
            parse_path(path)


class TestGetPath:
    """Tests for reading staged values."""

    def test_model_fields_and_lists(self, staged: StagedChanges) -> None:
        assert get_path(staged, "progression.classes[0].name") == "Wizard"
        assert get_path(staged, "progression.classes[0].levels") == 3
        assert get_path(staged, "progression.total_level") == 3

    def test_integer_mapping_keys(self, staged: StagedChanges) -> None:
        staged.spellcasting.classes["Wizard"].spell_slots = {1: {"max": 4, "current": 2}}  # type: ignore[dict-item]

        assert get_path(staged, "spellcasting.classes.Wizard.spell_slots.1.current") == 2

    def test_missing_returns_none(self, staged: StagedChanges) -> None:
        assert get_path(staged, "progression.classes[5].levels") is None
        assert get_path(staged, "spellcasting.classes.Cleric.level") is None
        assert get_path(staged, "progression.nonexistent") is None
        assert get_path(staged, "feats[0]") is None

    def test_plain_containers(self) -> None:
        data = {"a": {"b": [10, {"c": "deep"}]}}

        assert get_path(data, "a.b[1].c") == "deep"
        assert get_path(data, "a.b.0") == 10


class TestSetPath:
    """Tests for writing staged values."""

    def test_set_nested_model_value(self, staged: StagedChanges) -> None:
        set_path(staged, "progression.classes[0].levels", 4)

        assert staged.progression.classes[0].levels == 4
        assert staged.progression.total_level == 4

    def test_set_top_level_field(self, staged: StagedChanges) -> None:
        set_path(staged, "feats", ["War Caster"])
        assert staged.feats == ["War Caster"]

    def test_set_vivifies_model_mapping(self, staged: StagedChanges) -> None:
        set_path(staged, "spellcasting.classes.Cleric.level", 1)

        cleric = staged.spellcasting.classes["Cleric"]
        assert isinstance(cleric, ClassSpellcasting)
        assert cleric.level == 1
        assert "Wizard" in staged.spellcasting.classes

    def test_set_vivifies_plain_containers(self) -> None:
        data: dict[str, Any] = {}

        set_path(data, "a.b[1].c", 5)

        assert data == {"a": {"b": [None, {"c": 5}]}}

    def test_invalid_value_leaves_model_untouched(self, staged: StagedChanges) -> None:
        with pytest.raises(SessionError) as exc_info:
            set_path(staged, "progression.classes[0].levels", 25)

        assert exc_info.value.details["path"] == "progression.classes[0].levels"
        assert staged.progression.classes[0].levels == 3

    def test_unknown_staged_field(self, staged: StagedChanges) -> None:
        with pytest.raises(SessionError):
            set_path(staged, "experience.points", 300)

    def test_cannot_traverse_scalar(self) -> None:
        data: dict[str, Any] = {"name": "Elara"}
        with pytest.raises(SessionError):
            set_path(data, "name.first", "E")
