"""Tests for class data providers."""

from __future__ import annotations

from dnd_progression.data import (
    AllowAllSourceFilter,
    AllowListSourceFilter,
    ClassDataProvider,
    InMemoryClassDataProvider,
    SourceFilter,
    srd_class_provider,
    srd_classes,
)
from dnd_progression.models import ClassDefinition, Feature


class TestInMemoryProvider:
    """Tests for InMemoryClassDataProvider."""

    def test_satisfies_protocol(self, provider: InMemoryClassDataProvider) -> None:
        assert isinstance(provider, ClassDataProvider)

    def test_get_class(self, provider: InMemoryClassDataProvider) -> None:
        definition = provider.get_class("Wizard")

        assert definition is not None
        assert definition.hit_die == 6
        assert definition.spellcasting_ability == "intelligence"
        assert provider.get_class("Artificer") is None

    def test_features_filtered_by_level(self, provider: InMemoryClassDataProvider) -> None:
        """Test that only features at or below the level are returned."""
        features = provider.get_class_features("Fighter", 2)

        assert {feature.name for feature in features} == {
            "Fighting Style",
            "Second Wind",
            "Action Surge",
        }
        assert all(feature.level <= 2 for feature in features)

    def test_features_filtered_by_source(self, provider: InMemoryClassDataProvider) -> None:
        assert provider.get_class_features("Fighter", 20, source="XGE") == []

    def test_later_duplicate_replaces_earlier(self) -> None:
        provider = InMemoryClassDataProvider(
            [ClassDefinition(name="Fighter", hit_die=8), ClassDefinition(name="Fighter", hit_die=10)]
        )
        definition = provider.get_class("Fighter")
        assert definition is not None
        assert definition.hit_die == 10

    def test_subclass_features(self) -> None:
        provider = InMemoryClassDataProvider(
            [ClassDefinition(name="Fighter")],
            subclass_features=[
                Feature(name="Improved Critical", class_name="Fighter", level=3, subclass_short_name="Champion"),
                Feature(name="Remarkable Athlete", class_name="Fighter", level=7, subclass_short_name="Champion"),
                Feature(name="Combat Superiority", class_name="Fighter", level=3, subclass_short_name="Battle Master"),
            ],
        )

        features = provider.get_subclass_features("Fighter", "Champion", 5)

        assert [feature.name for feature in features] == ["Improved Critical"]

    def test_from_5etools(self, homebrew_provider: InMemoryClassDataProvider) -> None:
        definition = homebrew_provider.get_class("Spellblade")

        assert definition is not None
        assert definition.source == "HB"
        assert definition.hit_die == 10
        assert definition.caster_progression == "1/3"
        assert [ref.level for ref in definition.class_features] == [1, 2, 3, 4]

        features = homebrew_provider.get_class_features("Spellblade", 2, source="HB")
        assert [feature.name for feature in features] == ["Weapon Bond", "Blade Style"]

    def test_get_all_classes(self, homebrew_provider: InMemoryClassDataProvider) -> None:
        names = {definition.name for definition in homebrew_provider.get_all_classes()}
        assert names == {"Spellblade", "Expert"}


class TestSourceFilters:
    """Tests for source filters."""

    def test_allow_all(self) -> None:
        source_filter = AllowAllSourceFilter()
        assert isinstance(source_filter, SourceFilter)
        assert source_filter.is_source_allowed("UA")

    def test_allow_list_is_case_insensitive(self) -> None:
        source_filter = AllowListSourceFilter({"PHB", "xge"})

        assert source_filter.is_source_allowed("phb")
        assert source_filter.is_source_allowed("XGE")
        assert not source_filter.is_source_allowed("TCE")


class TestSrdData:
    """Tests for the bundled SRD classes."""

    def test_twelve_classes(self) -> None:
        assert len(srd_classes()) == 12

    def test_provider_is_shared(self) -> None:
        assert srd_class_provider() is srd_class_provider()

    def test_subclass_grant_flagged(self, provider: InMemoryClassDataProvider) -> None:
        cleric = provider.get_class("Cleric")
        assert cleric is not None

        grants = [ref for ref in cleric.class_features if ref.grants_subclass]
        assert [(ref.name, ref.level) for ref in grants] == [("Divine Domain", 1)]

    def test_fighter_extra_asi_levels(self, provider: InMemoryClassDataProvider) -> None:
        fighter = provider.get_class("Fighter")
        assert fighter is not None

        levels = [ref.level for ref in fighter.class_features if ref.is_asi]
        assert levels == [4, 6, 8, 12, 14, 16, 19]

    def test_pact_caster(self, provider: InMemoryClassDataProvider) -> None:
        warlock = provider.get_class("Warlock")
        assert warlock is not None
        assert warlock.is_pact_caster
