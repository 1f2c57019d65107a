# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Per-category symbol cache with time-based expiry.

Key Features:
- One cache entry per symbol category, replaced wholesale on re-extraction
- TTL per category: file-scanned categories use the completion TTL, categories
  backed by an external query or generated helper files use the external TTL
- Explicit invalidation (one category or all), plus mapping of changed source
  files to the categories that read them
- Statistics tracking for cache behaviour

Expiry rule: an entry is fresh while `now - produced_at < ttl`. Invalidation
resets `produced_at` to 0, so the next read re-extracts. An empty result is a
valid entry and is not re-extracted until it expires.

Thread Safety:
- One Lock per category guards that category's entry and its extraction, so
  a slow route query never blocks completion of config keys
- Cached data is stored as immutable tuples (or a RelationshipGraph that is
  never mutated) and swapped in a single assignment
- _stats_lock protects the statistics; it is never held while extracting
"""

import logging
import os
import time
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Dict, List, Optional

from laravel_symbols.extractors.base import SymbolExtractor
from laravel_symbols.extractors.registry import ExtractorRegistry
from laravel_symbols.logging_setup import symbol_fields
from laravel_symbols.models import (
    CacheEntry,
    CacheStatistics,
    RelationshipGraph,
    SymbolCategory,
    SymbolData,
    SymbolEntry,
)

logger = logging.getLogger(__name__)


def _empty_data(category: str) -> Any:
    return RelationshipGraph() if category == SymbolCategory.RELATIONSHIP else ()


class SymbolCache:
    """Lazily extracted, TTL-bounded symbol indexes keyed by category.

    Usage:
        cache = SymbolCache(project_root, registry, completion_ttl=30, external_ttl=60)
        routes = cache.get_or_extract(SymbolCategory.ROUTE)
        cache.invalidate(SymbolCategory.ROUTE)
    """

    def __init__(
        self,
        project_root: Path,
        registry: ExtractorRegistry,
        completion_ttl: float = 30,
        external_ttl: float = 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache.

        Args:
            project_root: Absolute project root passed to every extractor.
            registry: Extractors keyed by category.
            completion_ttl: TTL in seconds for file-scanned categories.
            external_ttl: TTL in seconds for external categories.
            clock: Time source, injectable for tests.
        """
        self._project_root = Path(project_root)
        self._registry = registry
        self._completion_ttl = completion_ttl
        self._external_ttl = external_ttl
        self._clock = clock

        self._entries: Dict[str, CacheEntry] = {}
        self._locks: Dict[str, Lock] = {c: Lock() for c in SymbolCategory.ALL}
        self._locks_guard = Lock()

        self._stats = CacheStatistics()
        self._stats_lock = Lock()

        logger.debug(
            f"SymbolCache initialized for {self._project_root} with "
            f"completion_ttl={completion_ttl}s, external_ttl={external_ttl}s"
        )

    def _lock_for(self, category: str) -> Lock:
        with self._locks_guard:
            lock = self._locks.get(category)
            if lock is None:
                lock = self._locks[category] = Lock()
            return lock

    def ttl_for(self, category: str) -> float:
        """TTL that applies to a category given its registered extractor."""
        extractor = self._registry.get(category)
        if extractor is not None and extractor.is_external():
            return self._external_ttl
        return self._completion_ttl

    def get_or_extract(self, category: str) -> SymbolData:
        """Return the index for a category, extracting it when stale.

        Never raises: extractor failures are logged and produce an empty
        index for the category until it expires.

        Returns:
            List of SymbolEntry sorted by name, or a RelationshipGraph for
            the relationship category. [] for categories with no extractor.
        """
        extractor = self._registry.get(category)
        if extractor is None:
            logger.debug(f"No extractor registered for category '{category}'")
            return []

        with self._lock_for(category):
            entry = self._entries.get(category)
            now = self._clock()
            if entry is not None and entry.produced_at > 0:
                if entry.age(now) < self.ttl_for(category):
                    self._count("hits")
                    return self._public(entry.data)

            self._count("misses" if entry is None else "expirations")
            data = self._extract(extractor, category)
            self._entries[category] = CacheEntry(
                category=category, data=data, produced_at=self._clock()
            )
            return self._public(data)

    def _extract(self, extractor: SymbolExtractor, category: str) -> Any:
        start = time.time()
        try:
            result = extractor.extract(self._project_root)
        except Exception as e:
            logger.warning(f"Extractor {extractor.name()} failed for '{category}': {e}")
            with self._stats_lock:
                self._stats.extraction_errors += 1
            return _empty_data(category)

        with self._stats_lock:
            self._stats.extractions[category] = self._stats.extractions.get(category, 0) + 1

        elapsed_ms = (time.time() - start) * 1000
        logger.debug(
            f"Extracted '{category}' with {extractor.name()}: "
            f"{len(result)} symbols in {elapsed_ms:.1f}ms",
            extra=symbol_fields(
                category=category,
                extractor=extractor.name(),
                symbols=len(result),
                elapsed_ms=round(elapsed_ms, 1),
            ),
        )
        if isinstance(result, RelationshipGraph):
            return result
        return tuple(result)

    @staticmethod
    def _public(data: Any) -> SymbolData:
        if isinstance(data, RelationshipGraph):
            return data
        return list(data)

    def entries(self, category: str) -> List[SymbolEntry]:
        """Index for a category as a flat entry list (graphs are flattened)."""
        data = self.get_or_extract(category)
        if isinstance(data, RelationshipGraph):
            return data.entries()
        return data

    def invalidate(self, category: Optional[str] = None) -> None:
        """Mark one category (or every category) for re-extraction."""
        categories = [category] if category is not None else list(self._entries)
        for name in categories:
            with self._lock_for(name):
                entry = self._entries.get(name)
                if entry is None:
                    continue
                entry.produced_at = 0.0
            self._count("invalidations")
            logger.debug(f"Invalidated cache for category '{name}'")

    def invalidate_for_path(self, path: str) -> List[str]:
        """Invalidate every category whose extractor reads `path`.

        Args:
            path: Absolute or project-relative path of a changed file.

        Returns:
            Categories that were invalidated, sorted.
        """
        changed = Path(path)
        if not changed.is_absolute():
            changed = self._project_root / changed
        changed_str = os.path.normpath(str(changed))

        affected = []
        for extractor in self._registry.get_extractors():
            for relative in extractor.source_paths():
                source = os.path.normpath(str(self._project_root / relative))
                if changed_str == source or changed_str.startswith(source + os.sep):
                    affected.append(extractor.category())
                    break

        for category in affected:
            self.invalidate(category)
        if affected:
            logger.debug(f"Change to {path} invalidated {affected}")
        return sorted(affected)

    def produced_at(self, category: str) -> float:
        """Production timestamp of a category's entry (0 if absent or invalidated)."""
        entry = self._entries.get(category)
        return entry.produced_at if entry is not None else 0.0

    def _count(self, counter: str) -> None:
        with self._stats_lock:
            setattr(self._stats, counter, getattr(self._stats, counter) + 1)

    def get_statistics(self) -> CacheStatistics:
        """Snapshot of the cache statistics."""
        with self._stats_lock:
            return CacheStatistics(
                hits=self._stats.hits,
                misses=self._stats.misses,
                expirations=self._stats.expirations,
                invalidations=self._stats.invalidations,
                extraction_errors=self._stats.extraction_errors,
                extractions=dict(self._stats.extractions),
            )
