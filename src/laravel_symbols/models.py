# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Core data models for Laravel symbol resolution and completion.

This module defines the data structures shared by every component:
- SymbolCategory: Enum-like class for symbol categories
- SymbolEntry: A named project symbol produced by an extractor
- RelationshipGraph: Model -> relationship entries produced by the model extractor
- RouteRecord: A normalized row of `php artisan route:list --json`
- CompletionContext: Result of context detection for one cursor position
- SymbolLocation: A line inside a file where a symbol is defined
- CacheEntry / CacheStatistics: State owned by the symbol cache

All models use JSON-compatible primitives so they can be returned from the
MCP layer unchanged.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

logger = logging.getLogger(__name__)


class SymbolCategory:
    """Categories of project symbols.

    Design: Using class constants (not Enum) for JSON-compatible strings.
    """

    ROUTE = "route"  # route('home')
    VIEW = "view"  # view('admin.dashboard'), Inertia::render('Admin/Dashboard')
    CONFIG = "config"  # config('app.name')
    TRANSLATION = "translation"  # __('auth.failed'), trans('auth.failed')
    ENV = "env"  # env('APP_KEY')
    RELATIONSHIP = "relationship"  # User.posts -> hasMany(Post::class)

    # Categories sourced from IDE helper files or fixed tables
    FACADE = "facade"  # DB::table
    FLUENT = "fluent"  # $table->string
    CONTAINER = "container"  # app('cache')
    MODEL = "model"  # App\Models\User

    # Livewire components and the database schema declared by migrations
    LIVEWIRE = "livewire"  # <livewire:user-table />, @livewire('counter')
    TABLE = "table"  # DB::table('users')
    COLUMN = "column"  # users.email

    ALL = (
        ROUTE,
        VIEW,
        CONFIG,
        TRANSLATION,
        ENV,
        RELATIONSHIP,
        FACADE,
        FLUENT,
        CONTAINER,
        MODEL,
        LIVEWIRE,
        TABLE,
        COLUMN,
    )

    # Categories whose definition lives on a line inside a file
    IN_FILE = (ROUTE, CONFIG, TRANSLATION, ENV, RELATIONSHIP, LIVEWIRE, TABLE, COLUMN)


@dataclass(frozen=True)
class SymbolEntry:
    """A named, addressable project symbol.

    Entries are immutable once produced by an extractor. The set of entries
    for a category is replaced wholesale on each extraction.
    """

    name: str
    category: str  # SymbolCategory value
    source_file: str  # Absolute path of the file the symbol was found in
    extra: Dict[str, str] = field(default_factory=dict, compare=False, hash=False)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Return an extra attribute."""
        return self.extra.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "name": self.name,
            "category": self.category,
            "source_file": self.source_file,
            "extra": dict(self.extra),
        }


class RelationshipGraph:
    """Relationships declared by Eloquent models.

    Maps a model class name to the relationship entries found in its file.
    Built once per extraction; never mutated after the extractor returns it.
    """

    def __init__(self, entries: Sequence[SymbolEntry] = ()) -> None:
        self._by_model: Dict[str, List[SymbolEntry]] = {}
        for entry in entries:
            model = entry.get("model") or entry.name.split(".", 1)[0]
            self._by_model.setdefault(model, []).append(entry)

    def models(self) -> List[str]:
        """Model names that declare at least one relationship, sorted."""
        return sorted(self._by_model)

    def relationships_of(self, model: str) -> List[SymbolEntry]:
        """Relationship entries declared by a model (source order)."""
        return list(self._by_model.get(model, []))

    def related_models(self, model: str) -> List[str]:
        """Distinct related model names for a model, sorted."""
        return sorted(
            {e.get("related_model", "") for e in self._by_model.get(model, [])} - {""}
        )

    def dependents_of(self, model: str) -> List[str]:
        """Models that declare a relationship pointing at `model`."""
        return sorted(
            owner
            for owner, entries in self._by_model.items()
            if any(e.get("related_model") == model for e in entries)
        )

    def entries(self) -> List[SymbolEntry]:
        """All relationship entries, sorted by `Model.method` name."""
        return sorted(
            (e for entries in self._by_model.values() for e in entries), key=lambda e: e.name
        )

    def find(self, name: str) -> Optional[SymbolEntry]:
        """Look up a relationship by its `Model.method` name."""
        model = name.split(".", 1)[0]
        for entry in self._by_model.get(model, []):
            if entry.name == name:
                return entry
        return None

    def __len__(self) -> int:
        return sum(len(v) for v in self._by_model.values())

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            model: [
                {
                    "method": e.get("method"),
                    "type": e.get("type"),
                    "related_model": e.get("related_model"),
                }
                for e in entries
            ]
            for model, entries in sorted(self._by_model.items())
        }


def _as_text(value: Any) -> str:
    """Coerce a JSON scalar (possibly null) to a string."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


@dataclass(frozen=True)
class RouteRecord:
    """One route as reported by `php artisan route:list --json`."""

    methods: List[str]
    uri: str
    name: str
    action: str

    @classmethod
    def from_artisan(cls, data: Dict[str, Any]) -> "RouteRecord":
        """Normalize the different shapes artisan has emitted across versions.

        Accepts `method` or `methods` (string like "GET|HEAD" or a list),
        `uri` or `url`, and `action` or `uses`.
        """
        raw_methods = data.get("methods", data.get("method")) or []
        if isinstance(raw_methods, str):
            methods = [m for m in raw_methods.split("|") if m]
        else:
            methods = [_as_text(m) for m in raw_methods]

        uri = _as_text(data.get("uri", data.get("url")))

        action = data.get("action", data.get("uses"))
        if isinstance(action, dict):
            action = action.get("uses")

        return cls(
            methods=methods,
            uri=uri,
            name=_as_text(data.get("name")),
            action=_as_text(action),
        )


@dataclass(frozen=True)
class CompletionContext:
    """Which helper call the cursor is inside and what has been typed.

    Transient: produced fresh per query, never persisted.
    """

    category: str  # SymbolCategory value
    partial_text: str
    match_start_offset: int  # Offset of the first character of partial_text
    helper: str = ""  # Helper spelling (or facade identifier) that matched

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "category": self.category,
            "partial_text": self.partial_text,
            "match_start_offset": self.match_start_offset,
            "helper": self.helper,
        }


@dataclass(frozen=True)
class SymbolLocation:
    """A definition site inside a file (1-based line)."""

    file: str
    line: int
    is_fallback: bool = False  # True when a route resolved to its handler instead

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {"file": self.file, "line": self.line, "is_fallback": self.is_fallback}


SymbolData = Union[List[SymbolEntry], RelationshipGraph]


@dataclass
class CacheEntry:
    """Cached extraction result for one category.

    Owned exclusively by SymbolCache. `data` is replaced, never merged.
    """

    category: str
    data: Any  # tuple of SymbolEntry, or RelationshipGraph
    produced_at: float = 0.0

    def age(self, now: Optional[float] = None) -> float:
        """Seconds since this entry was produced."""
        return (time.time() if now is None else now) - self.produced_at


@dataclass
class CacheStatistics:
    """Counters for SymbolCache behaviour."""

    hits: int = 0
    misses: int = 0  # First extraction for a category
    expirations: int = 0  # Re-extraction after TTL expiry or invalidation
    invalidations: int = 0
    extraction_errors: int = 0
    extractions: Dict[str, int] = field(default_factory=dict)  # Per category

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "expirations": self.expirations,
            "invalidations": self.invalidations,
            "extraction_errors": self.extraction_errors,
            "extractions": dict(self.extractions),
        }


def relative_to_root(path: Union[str, Path], project_root: Union[str, Path]) -> str:
    """Render a path relative to the project root when possible."""
    try:
        return str(Path(path).relative_to(project_root))
    except ValueError:
        return str(path)
