# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""SymbolService - business logic layer behind the MCP server.

Key Responsibilities:
- Build extractors, cache, resolver and ranker from a ProjectContext
- Answer completion and go-to-definition requests for one line of source
- Pre-warm the route index on a background thread
- Optionally watch the project tree and invalidate affected categories

Initialization order: ProjectContext (root discovery, then configuration)
-> extractor registry -> cache -> resolver and ranker -> background work.

Errors surfaced to callers: ExternalQueryTimeout from refresh_routes() and
ViewCreationError from create_view(). Everything else degrades to "not
found" or an empty list and is logged.
"""

import logging
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from laravel_symbols.cache import SymbolCache
from laravel_symbols.context_detector import ContextDetector
from laravel_symbols.errors import ExternalQueryTimeout
from laravel_symbols.extractors import (
    ArtisanRouteExtractor,
    ArtisanRouteQuery,
    ColumnExtractor,
    ConfigKeyExtractor,
    ContainerBindingExtractor,
    EnvKeyExtractor,
    ExtractorRegistry,
    FacadeExtractor,
    FluentMethodExtractor,
    LivewireComponentExtractor,
    ModelExtractor,
    ModelRelationshipExtractor,
    RouteFileExtractor,
    TableExtractor,
    TranslationKeyExtractor,
    ViewExtractor,
)
from laravel_symbols.file_watcher import FileWatcher
from laravel_symbols.logging_setup import symbol_fields
from laravel_symbols.models import (
    RelationshipGraph,
    SymbolCategory,
    SymbolEntry,
    SymbolLocation,
    relative_to_root,
)
from laravel_symbols.project import ProjectContext
from laravel_symbols.ranker import CompletionRanker
from laravel_symbols.resolver import SymbolResolver

logger = logging.getLogger(__name__)


class SymbolService:
    """Coordinates symbol extraction, caching, resolution and completion.

    Usage:
        context = ProjectContext.discover("/path/to/app")
        service = SymbolService(context)
        service.complete("return view('admin.", 20)
        service.shutdown()
    """

    def __init__(
        self,
        context: ProjectContext,
        registry: Optional[ExtractorRegistry] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the service.

        Args:
            context: Project root and configuration.
            registry: Extractor registry. If None, the default extractors are
                registered from the configuration.
            clock: Time source for the cache, injectable for tests.
        """
        self.context = context
        self.config = context.config

        if registry is None:
            registry = ExtractorRegistry()
            self._register_extractors(registry)
        self._registry = registry

        self.cache = SymbolCache(
            project_root=context.root,
            registry=registry,
            completion_ttl=self.config.completion_ttl_seconds,
            external_ttl=self.config.external_ttl_seconds,
            clock=clock,
        )
        self.resolver = SymbolResolver(context, self.cache)
        self.ranker = CompletionRanker(self.cache)
        self.detector = ContextDetector()

        self._file_watcher: Optional[FileWatcher] = None
        self._warm_up_thread: Optional[threading.Thread] = None

        if self.config.warm_up_routes:
            self.start_warm_up()
        if self.config.watch_files:
            self.start_file_watcher()

        logger.info(
            f"SymbolService initialized for {context.root} "
            f"({registry.count()} extractors: {', '.join(registry.categories())})"
        )

    def _register_extractors(self, registry: ExtractorRegistry) -> None:
        config = self.config
        depth = config.max_scan_depth

        route_files = RouteFileExtractor(config.route_files)
        if config.use_route_query:
            query = ArtisanRouteQuery(
                php_binary=config.php_binary,
                timeout=config.route_query_timeout_seconds,
                command_prefix=config.command_prefix,
                sail_enabled=config.sail_enabled,
            )
            registry.register(ArtisanRouteExtractor(query, fallback=route_files))
        else:
            registry.register(route_files)

        registry.register(
            ViewExtractor(
                config.template_root,
                config.component_roots,
                config.component_extensions,
                max_depth=depth,
            )
        )
        registry.register(ConfigKeyExtractor(config.config_dir, config.nested_keys))
        registry.register(TranslationKeyExtractor(config.lang_dirs, config.nested_keys))
        registry.register(EnvKeyExtractor(config.env_files))
        registry.register(ModelRelationshipExtractor(config.models_root, max_depth=depth))
        registry.register(ModelExtractor(config.models_root, max_depth=depth))
        registry.register(LivewireComponentExtractor(config.livewire_roots, max_depth=depth))
        registry.register(TableExtractor(config.migrations_dir))
        registry.register(ColumnExtractor(config.migrations_dir))
        registry.register(FacadeExtractor())
        registry.register(ContainerBindingExtractor())
        registry.register(FluentMethodExtractor())

    # ------------------------------------------------------------------
    # Background work
    # ------------------------------------------------------------------

    def start_warm_up(self) -> None:
        """Extract the route index once on a daemon thread."""
        if self._warm_up_thread is not None and self._warm_up_thread.is_alive():
            return
        self._warm_up_thread = threading.Thread(
            target=self._warm_up_routes, name="laravel-symbols-route-warm-up", daemon=True
        )
        self._warm_up_thread.start()

    def _warm_up_routes(self) -> None:
        start = time.time()
        try:
            routes = self.cache.get_or_extract(SymbolCategory.ROUTE)
        except Exception as e:
            logger.warning(f"Route warm-up failed: {e}")
            return
        elapsed = time.time() - start
        logger.info(
            f"Route warm-up finished: {len(routes)} routes in {elapsed:.2f}s",
            extra=symbol_fields(category=SymbolCategory.ROUTE, symbols=len(routes)),
        )

    def wait_for_warm_up(self, timeout: Optional[float] = None) -> None:
        """Block until the warm-up thread (if any) finishes."""
        if self._warm_up_thread is not None:
            self._warm_up_thread.join(timeout)

    def start_file_watcher(self) -> None:
        """Invalidate affected categories whenever a source file changes."""
        if self._file_watcher is None:
            self._file_watcher = FileWatcher(
                str(self.context.root), component_extensions=self.config.component_extensions
            )
            self._file_watcher.add_listener(self.cache.invalidate_for_path)
        if not self._file_watcher.is_running():
            self._file_watcher.start()

    def stop_file_watcher(self) -> None:
        if self._file_watcher is not None:
            self._file_watcher.stop()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def complete(self, line: str, cursor: int) -> Dict[str, Any]:
        """Completion candidates for the cursor position on a line.

        Returns:
            Dictionary with:
            - context: detected CompletionContext as a dict, or None
            - candidates: ranked names (empty when no context)
        """
        context = self.detector.detect(line, cursor)
        if context is None:
            return {"context": None, "candidates": []}

        candidates = self.ranker.rank(context.category, context.partial_text, context.helper)
        return {"context": context.to_dict(), "candidates": candidates}

    def goto_definition(self, line: str, cursor: int) -> Dict[str, Any]:
        """Resolve the symbol under the cursor to a location.

        Returns:
            Dictionary with:
            - found: whether a location was resolved
            - context: detected context (None if the cursor is not in a helper)
            - location: file, line and is_fallback when found
            - view: for Livewire components, the rendered view when it exists
            - candidates: for unresolved views, the candidate paths that could
              be created, each with an `exists` flag
        """
        context = self.detector.detect(line, cursor)
        if context is None:
            return {"found": False, "context": None}

        result: Dict[str, Any] = {"found": False, "context": context.to_dict()}
        name = context.partial_text
        if context.category == SymbolCategory.FACADE:
            # Facade index keys are `Facade::method`
            name = f"{context.helper}::{context.partial_text}"
        location = self.resolve(context.category, name)
        if location is not None:
            result["found"] = True
            result["location"] = self._location_dict(location)
            if context.category == SymbolCategory.LIVEWIRE:
                view = self.resolver.resolve_livewire_view(name)
                if view is not None:
                    result["view"] = self._location_dict(SymbolLocation(file=str(view), line=1))
        elif context.category == SymbolCategory.VIEW:
            result["candidates"] = [
                {"path": path, "exists": exists}
                for path, exists in self.resolver.candidates_with_existence(context.partial_text)
            ]
        return result

    def resolve(self, category: str, name: str) -> Optional[SymbolLocation]:
        """Resolve a category and name to a location, or None."""
        if not name:
            return None
        return self.resolver.resolve(category, name)

    def _location_dict(self, location: SymbolLocation) -> Dict[str, Any]:
        data = location.to_dict()
        data["relative_file"] = relative_to_root(location.file, self.context.root)
        return data

    def list_symbols(self, category: str) -> List[SymbolEntry]:
        """Full index for a category, sorted by name."""
        return self.cache.entries(category)

    def model_relationships(self, model: str) -> Dict[str, Any]:
        """Relationships declared by a model and the models that point at it."""
        graph = self.cache.get_or_extract(SymbolCategory.RELATIONSHIP)
        if not isinstance(graph, RelationshipGraph):
            graph = RelationshipGraph()
        return {
            "model": model,
            "relationships": [
                {
                    "method": entry.get("method"),
                    "type": entry.get("type"),
                    "related_model": entry.get("related_model"),
                    "line": int(entry.get("line", "1") or 1),
                }
                for entry in graph.relationships_of(model)
            ],
            "related_models": graph.related_models(model),
            "dependents": graph.dependents_of(model),
        }

    def clear_cache(self, category: Optional[str] = None) -> None:
        """Invalidate one category, or all of them."""
        self.cache.invalidate(category)
        logger.info(f"Cleared symbol cache for {category or 'all categories'}")

    def refresh_routes(self) -> int:
        """Re-extract the route index now.

        Returns:
            Number of route names.

        Raises:
            ExternalQueryTimeout: If the artisan route query timed out. The
                static route names are still cached.
        """
        self.cache.invalidate(SymbolCategory.ROUTE)
        routes = self.cache.get_or_extract(SymbolCategory.ROUTE)

        extractor = self._registry.get(SymbolCategory.ROUTE)
        if isinstance(extractor, ArtisanRouteExtractor) and isinstance(
            extractor.last_error, ExternalQueryTimeout
        ):
            raise extractor.last_error
        return len(routes)

    def create_view(self, name: str, candidate_index: int = 0) -> Path:
        """Create an empty view file at a candidate path.

        Raises:
            ViewCreationError: If the file exists or cannot be created.
        """
        return self.resolver.create_view_file(name, candidate_index)

    def get_cache_statistics(self) -> Dict[str, Any]:
        return self.cache.get_statistics().to_dict()

    def shutdown(self) -> None:
        """Stop background work."""
        self.stop_file_watcher()
        logger.info("SymbolService shut down")
