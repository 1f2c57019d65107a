# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Base interface for symbol extractor plugins.

Each extractor scans a fixed set of project files for one symbol category and
returns a de-duplicated, sorted list of SymbolEntry objects. Extractors are
pattern matchers over lines, not parsers; a grammar-based implementation can
replace any of them behind the same interface without touching the cache,
resolver or ranker.

Contract:
- extract() is read-only and idempotent
- extract() never raises for missing or unreadable sources; it returns []
- entries carry absolute source paths
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List

from laravel_symbols.models import SymbolData, SymbolEntry


class SymbolExtractor(ABC):
    """Abstract base class for extractor plugins.

    Lifecycle:
    1. Extractor is constructed from project configuration
    2. Extractor is registered in ExtractorRegistry under its category
    3. SymbolCache calls extract() on a cold or expired category
    4. The returned data replaces the previous cache entry wholesale
    """

    @abstractmethod
    def extract(self, project_root: Path) -> SymbolData:
        """Build the full symbol index for this extractor's category.

        Args:
            project_root: Absolute path of the Laravel project root.

        Returns:
            List of SymbolEntry sorted by name (or a RelationshipGraph for
            the relationship extractor). Empty when sources are missing.
        """
        pass

    @abstractmethod
    def category(self) -> str:
        """Return the SymbolCategory value this extractor produces."""
        pass

    @abstractmethod
    def name(self) -> str:
        """Return extractor name for logging and debugging."""
        pass

    def source_paths(self) -> List[str]:
        """Project-relative files or directories this extractor reads.

        Used to map file change events to the category to invalidate.
        """
        return []

    def is_external(self) -> bool:
        """Whether this extractor is backed by an expensive external source.

        External extractors get the longer cache TTL.
        """
        return False


def unique_sorted(entries: Iterable[SymbolEntry]) -> List[SymbolEntry]:
    """De-duplicate entries by name (first occurrence wins) and sort by name."""
    seen: Dict[str, SymbolEntry] = {}
    for entry in entries:
        if entry.name not in seen:
            seen[entry.name] = entry
    return [seen[name] for name in sorted(seen)]
