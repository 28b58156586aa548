"""Class data lookup.

The engine never loads game data itself. It reads class definitions through
the ClassDataProvider protocol, which any pre-loaded data source can satisfy.
InMemoryClassDataProvider is the reference implementation used by the SRD
dataset and by tests.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

from dnd_progression.core.logging import get_logger
from dnd_progression.models.class_data import ClassDefinition, Feature


logger = get_logger(__name__)


# =============================================================================
# Protocols
# =============================================================================


@runtime_checkable
class ClassDataProvider(Protocol):
    """Read-only lookup of class definitions and their features."""

    def get_class(self, name: str) -> ClassDefinition | None:
        """Return the class definition, or None when unknown."""
        ...

    def get_class_features(self, name: str, level: int, source: str = "PHB") -> list[Feature]:
        """Return class features gained at or below ``level``."""
        ...

    def get_subclass_features(
        self,
        class_name: str,
        subclass_name: str,
        level: int,
    ) -> list[Feature]:
        """Return subclass features gained at or below ``level``."""
        ...

    def get_all_classes(self) -> list[ClassDefinition]:
        """Return every known class definition."""
        ...


@runtime_checkable
class SourceFilter(Protocol):
    """Decides whether content from a source book may be offered."""

    def is_source_allowed(self, source: str) -> bool:
        ...


class AllowAllSourceFilter:
    """Source filter that allows every book."""

    def is_source_allowed(self, source: str) -> bool:
        return True


class AllowListSourceFilter:
    """Source filter backed by an explicit set of allowed books.

    Example:
        >>> source_filter = AllowListSourceFilter({"PHB", "XGE"})
        >>> source_filter.is_source_allowed("phb")
        True
    """

    def __init__(self, allowed_sources: Iterable[str]) -> None:
        self._allowed = {source.upper() for source in allowed_sources}

    def is_source_allowed(self, source: str) -> bool:
        return source.upper() in self._allowed


# =============================================================================
# In-Memory Provider
# =============================================================================


class InMemoryClassDataProvider:
    """ClassDataProvider over pre-loaded class and feature records.

    Attributes:
        classes: Class definitions keyed by name.
    """

    def __init__(
        self,
        classes: Iterable[ClassDefinition],
        features: Iterable[Feature] = (),
        subclass_features: Iterable[Feature] = (),
    ) -> None:
        """Index the supplied records.

        Args:
            classes: Class definitions. Later duplicates replace earlier ones.
            features: Class features for every class.
            subclass_features: Subclass features, tagged by subclass short name.
        """
        self.classes: dict[str, ClassDefinition] = {}
        for definition in classes:
            self.classes[definition.name] = definition

        self._features = sorted(features, key=lambda f: f.level)
        self._subclass_features = sorted(subclass_features, key=lambda f: f.level)

        logger.debug(
            "Class data indexed",
            class_count=len(self.classes),
            feature_count=len(self._features),
            subclass_feature_count=len(self._subclass_features),
        )

    @classmethod
    def from_5etools(cls, data: Mapping[str, Any]) -> InMemoryClassDataProvider:
        """Build a provider from 5etools-shaped class JSON.

        Args:
            data: Mapping with ``class``, ``classFeature`` and
                ``subclassFeature`` lists.

        Returns:
            Provider over the validated records.
        """
        classes = [ClassDefinition.model_validate(raw) for raw in data.get("class", [])]
        features = [Feature.model_validate(raw) for raw in data.get("classFeature", [])]
        subclass_features = [
            Feature.model_validate(raw) for raw in data.get("subclassFeature", [])
        ]
        return cls(classes, features, subclass_features)

    def get_class(self, name: str) -> ClassDefinition | None:
        return self.classes.get(name)

    def get_class_features(self, name: str, level: int, source: str = "PHB") -> list[Feature]:
        return [
            feature
            for feature in self._features
            if feature.class_name == name
            and source in (feature.class_source, feature.source)
            and feature.level <= level
        ]

    def get_subclass_features(
        self,
        class_name: str,
        subclass_name: str,
        level: int,
    ) -> list[Feature]:
        return [
            feature
            for feature in self._subclass_features
            if feature.class_name == class_name
            and feature.subclass_short_name == subclass_name
            and feature.level <= level
        ]

    def get_all_classes(self) -> list[ClassDefinition]:
        return list(self.classes.values())


__all__ = [
    "ClassDataProvider",
    "SourceFilter",
    "AllowAllSourceFilter",
    "AllowListSourceFilter",
    "InMemoryClassDataProvider",
]
