# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for SymbolCache expiry, invalidation and statistics."""

import threading
from pathlib import Path
from typing import List

import pytest

from laravel_symbols.cache import SymbolCache
from laravel_symbols.extractors.base import SymbolExtractor
from laravel_symbols.extractors.registry import ExtractorRegistry
from laravel_symbols.models import RelationshipGraph, SymbolCategory, SymbolEntry


class CountingExtractor(SymbolExtractor):
    """Returns fixed names and records how often it ran."""

    def __init__(self, category, names, external=False, paths=None):
        self._category = category
        self._names = list(names)
        self._external = external
        self._paths = paths or []
        self.calls = 0

    def extract(self, project_root: Path) -> List[SymbolEntry]:
        self.calls += 1
        return [
            SymbolEntry(name=n, category=self._category, source_file=str(project_root / "x"))
            for n in sorted(self._names)
        ]

    def category(self) -> str:
        return self._category

    def name(self) -> str:
        return f"Counting[{self._category}]"

    def source_paths(self) -> List[str]:
        return list(self._paths)

    def is_external(self) -> bool:
        return self._external


class FailingExtractor(CountingExtractor):
    def extract(self, project_root: Path) -> List[SymbolEntry]:
        self.calls += 1
        raise RuntimeError("scan exploded")


@pytest.fixture
def route_extractor():
    return CountingExtractor(
        SymbolCategory.ROUTE, ["home", "dashboard"], external=True, paths=["routes/web.php"]
    )


@pytest.fixture
def config_extractor():
    return CountingExtractor(SymbolCategory.CONFIG, ["app.name"], paths=["config"])


@pytest.fixture
def cache(tmp_path, clock, route_extractor, config_extractor):
    registry = ExtractorRegistry()
    registry.register(route_extractor)
    registry.register(config_extractor)
    return SymbolCache(tmp_path, registry, completion_ttl=30, external_ttl=60, clock=clock)


class TestExpiry:
    def test_first_read_extracts(self, cache, config_extractor):
        entries = cache.get_or_extract(SymbolCategory.CONFIG)

        assert [e.name for e in entries] == ["app.name"]
        assert config_extractor.calls == 1
        assert cache.get_statistics().misses == 1

    def test_fresh_entry_is_served_from_cache(self, cache, clock, config_extractor):
        cache.get_or_extract(SymbolCategory.CONFIG)
        clock.advance(29)
        cache.get_or_extract(SymbolCategory.CONFIG)

        assert config_extractor.calls == 1
        assert cache.get_statistics().hits == 1

    def test_expired_entry_is_re_extracted(self, cache, clock, config_extractor):
        cache.get_or_extract(SymbolCategory.CONFIG)
        clock.advance(30)
        cache.get_or_extract(SymbolCategory.CONFIG)

        assert config_extractor.calls == 2
        assert cache.get_statistics().expirations == 1

    def test_external_category_uses_longer_ttl(self, cache, clock, route_extractor):
        assert cache.ttl_for(SymbolCategory.ROUTE) == 60
        assert cache.ttl_for(SymbolCategory.CONFIG) == 30

        cache.get_or_extract(SymbolCategory.ROUTE)
        clock.advance(45)
        cache.get_or_extract(SymbolCategory.ROUTE)
        assert route_extractor.calls == 1

        clock.advance(15)
        cache.get_or_extract(SymbolCategory.ROUTE)
        assert route_extractor.calls == 2

    def test_produced_at_tracks_clock(self, cache, clock):
        assert cache.produced_at(SymbolCategory.CONFIG) == 0.0
        cache.get_or_extract(SymbolCategory.CONFIG)
        assert cache.produced_at(SymbolCategory.CONFIG) == clock.now

    def test_returned_list_is_a_copy(self, cache):
        first = cache.get_or_extract(SymbolCategory.CONFIG)
        first.clear()

        assert len(cache.get_or_extract(SymbolCategory.CONFIG)) == 1

    def test_unregistered_category_is_empty(self, cache):
        assert cache.get_or_extract(SymbolCategory.VIEW) == []


class TestInvalidation:
    def test_invalidate_one_category(self, cache, route_extractor, config_extractor):
        cache.get_or_extract(SymbolCategory.ROUTE)
        cache.get_or_extract(SymbolCategory.CONFIG)

        cache.invalidate(SymbolCategory.ROUTE)

        assert cache.produced_at(SymbolCategory.ROUTE) == 0.0
        cache.get_or_extract(SymbolCategory.ROUTE)
        cache.get_or_extract(SymbolCategory.CONFIG)
        assert route_extractor.calls == 2
        assert config_extractor.calls == 1

    def test_invalidate_all(self, cache, route_extractor, config_extractor):
        cache.get_or_extract(SymbolCategory.ROUTE)
        cache.get_or_extract(SymbolCategory.CONFIG)

        cache.invalidate()

        assert cache.get_statistics().invalidations == 2
        cache.get_or_extract(SymbolCategory.ROUTE)
        cache.get_or_extract(SymbolCategory.CONFIG)
        assert route_extractor.calls == 2
        assert config_extractor.calls == 2

    def test_invalidating_unknown_entry_is_not_counted(self, cache):
        cache.invalidate(SymbolCategory.VIEW)
        assert cache.get_statistics().invalidations == 0

    def test_invalidate_for_path(self, cache, tmp_path):
        cache.get_or_extract(SymbolCategory.ROUTE)
        cache.get_or_extract(SymbolCategory.CONFIG)

        assert cache.invalidate_for_path(str(tmp_path / "config" / "app.php")) == ["config"]
        assert cache.invalidate_for_path("routes/web.php") == ["route"]
        assert cache.invalidate_for_path(str(tmp_path / "configuration.php")) == []


class TestFailures:
    def test_failed_extraction_caches_empty_index(self, tmp_path, clock):
        failing = FailingExtractor(SymbolCategory.ENV, [])
        registry = ExtractorRegistry()
        registry.register(failing)
        cache = SymbolCache(tmp_path, registry, clock=clock)

        assert cache.get_or_extract(SymbolCategory.ENV) == []
        assert cache.get_or_extract(SymbolCategory.ENV) == []

        assert failing.calls == 1
        assert cache.get_statistics().extraction_errors == 1

    def test_failed_relationship_extraction_returns_empty_graph(self, tmp_path, clock):
        registry = ExtractorRegistry()
        registry.register(FailingExtractor(SymbolCategory.RELATIONSHIP, []))
        cache = SymbolCache(tmp_path, registry, clock=clock)

        graph = cache.get_or_extract(SymbolCategory.RELATIONSHIP)

        assert isinstance(graph, RelationshipGraph)
        assert len(graph) == 0
        assert cache.entries(SymbolCategory.RELATIONSHIP) == []


class TestStatistics:
    def test_extraction_counts_per_category(self, cache, clock):
        cache.get_or_extract(SymbolCategory.CONFIG)
        clock.advance(31)
        cache.get_or_extract(SymbolCategory.CONFIG)
        cache.get_or_extract(SymbolCategory.ROUTE)

        stats = cache.get_statistics().to_dict()

        assert stats["extractions"] == {"config": 2, "route": 1}
        assert stats["misses"] == 2
        assert stats["expirations"] == 1

    def test_snapshot_is_detached(self, cache):
        snapshot = cache.get_statistics()
        cache.get_or_extract(SymbolCategory.CONFIG)

        assert snapshot.misses == 0


def test_concurrent_reads_extract_once(tmp_path, clock):
    extractor = CountingExtractor(SymbolCategory.VIEW, ["welcome"])
    registry = ExtractorRegistry()
    registry.register(extractor)
    cache = SymbolCache(tmp_path, registry, clock=clock)

    threads = [
        threading.Thread(target=cache.get_or_extract, args=(SymbolCategory.VIEW,))
        for _ in range(8)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert extractor.calls == 1
    assert cache.get_statistics().hits == 7
