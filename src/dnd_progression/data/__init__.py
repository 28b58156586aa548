"""Class data sources.

Exports:
    ClassDataProvider: Protocol for read-only class lookups.
    SourceFilter: Protocol deciding which source books are allowed.
    InMemoryClassDataProvider: Provider over pre-loaded records.
    srd_class_provider: Shared provider over the SRD classes.
"""

from __future__ import annotations

from dnd_progression.data.provider import (
    AllowAllSourceFilter,
    AllowListSourceFilter,
    ClassDataProvider,
    InMemoryClassDataProvider,
    SourceFilter,
)
from dnd_progression.data.srd import srd_class_provider, srd_classes


__all__ = [
    "ClassDataProvider",
    "SourceFilter",
    "AllowAllSourceFilter",
    "AllowListSourceFilter",
    "InMemoryClassDataProvider",
    "srd_class_provider",
    "srd_classes",
]
