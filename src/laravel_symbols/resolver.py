# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Symbol resolution: from a category and name to a place on disk.

View names resolve to candidate files in a fixed order:

1. `<template root>/<a>/<b>.blade.php`
2. every component root x every extension, segments verbatim
3. every component root x every extension, segments capitalized

so `admin.dashboard` tries resources/views/admin/dashboard.blade.php, then
resources/js/pages/admin/dashboard.vue ... and finally
resources/js/Pages/Admin/Dashboard.svelte. A template always beats a page
component of the same name, and component roots are tried in configured
order. Inertia-style names (`Admin/Dashboard`) use the same segments.

Route, config, translation and env names resolve to a (file, line) location.
A route whose `->name()` binding cannot be found falls back to its controller
method, flagged with is_fallback.

A Livewire component resolves to its class, or to the view it renders when
no class is indexed under that name. Tables and columns resolve to the
migration line that first declares them.
"""

import json
import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

from laravel_symbols.cache import SymbolCache
from laravel_symbols.errors import ViewCreationError
from laravel_symbols.extractors.array_keys import key_pattern, qualified_keys
from laravel_symbols.extractors.env import env_key_pattern
from laravel_symbols.extractors.livewire import default_view
from laravel_symbols.extractors.routes import route_name_pattern
from laravel_symbols.extractors.scanning import list_dir, read_lines, walk_files
from laravel_symbols.extractors.views import BLADE_SUFFIX
from laravel_symbols.models import RelationshipGraph, SymbolCategory, SymbolLocation
from laravel_symbols.project import ProjectContext

logger = logging.getLogger(__name__)

CONTROLLER_NAMESPACE = "App\\Http\\Controllers\\"
_SEGMENT_SEPARATORS = re.compile(r"[./\\]")


def view_segments(name: str) -> List[str]:
    """Split a dotted or slash-separated view name into path segments.

    Empty segments are dropped, so `..` can never climb out of a root.
    """
    return [segment for segment in _SEGMENT_SEPARATORS.split(name.strip()) if segment]


def capitalize_segments(segments: List[str]) -> List[str]:
    """Upper-case the first letter of each segment (admin -> Admin)."""
    return [segment[:1].upper() + segment[1:] for segment in segments]


def _method_line(lines: List[str], method: str) -> Optional[int]:
    pattern = re.compile(r"function\s+" + re.escape(method) + r"\s*\(")
    for line_number, line in enumerate(lines, 1):
        if pattern.search(line):
            return line_number
    return None


class SymbolResolver:
    """Resolves symbol names to files and definition lines.

    Reads project files directly and consults the symbol cache only for
    data that the files alone cannot give (route actions from the artisan
    query, the relationship graph, helper-file indexes).
    """

    def __init__(self, context: ProjectContext, cache: SymbolCache):
        self._context = context
        self._config = context.config
        self._cache = cache

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def view_candidates(self, name: str) -> List[Path]:
        """Ordered, de-duplicated candidate paths for a view name."""
        segments = view_segments(name)
        if not segments:
            return []

        relative = "/".join(segments)
        capitalized = "/".join(capitalize_segments(segments))
        candidates = [self._context.path(self._config.template_root) / f"{relative}{BLADE_SUFFIX}"]
        for stem in (relative, capitalized):
            for root in self._config.component_roots:
                for extension in self._config.component_extensions:
                    candidates.append(self._context.path(root) / f"{stem}{extension}")

        unique: List[Path] = []
        for candidate in candidates:
            if candidate not in unique:
                unique.append(candidate)
        return unique

    def resolve_view(self, name: str) -> Optional[Path]:
        """First existing candidate for a view name, or None."""
        for candidate in self.view_candidates(name):
            if candidate.is_file():
                return candidate
        logger.debug(f"View '{name}' not found")
        return None

    def create_view_file(self, name: str, candidate_index: int = 0) -> Path:
        """Create an empty file at one of the view candidates.

        Args:
            name: View name as written in the source.
            candidate_index: Index into view_candidates(name); 0 is the
                Blade template path.

        Returns:
            The created file.

        Raises:
            ViewCreationError: If the index is invalid, the file already
                exists, or it cannot be written.
        """
        candidates = self.view_candidates(name)
        if not candidates:
            raise ViewCreationError(f"Invalid view name: '{name}'")
        if not 0 <= candidate_index < len(candidates):
            raise ViewCreationError(
                f"Candidate index {candidate_index} out of range for '{name}' "
                f"({len(candidates)} candidates)"
            )

        target = candidates[candidate_index]
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "x", encoding="utf-8"):
                pass
        except FileExistsError as e:
            raise ViewCreationError(f"View file already exists: {target}") from e
        except OSError as e:
            raise ViewCreationError(f"Unable to create view file {target}: {e}") from e

        self._cache.invalidate(SymbolCategory.VIEW)
        logger.info(f"Created view file {target}")
        return target

    # ------------------------------------------------------------------
    # Locations
    # ------------------------------------------------------------------

    def resolve(self, category: str, name: str) -> Optional[SymbolLocation]:
        """Resolve any category to a location, or None if not found."""
        if category == SymbolCategory.VIEW:
            path = self.resolve_view(name)
            return SymbolLocation(file=str(path), line=1) if path else None
        if category == SymbolCategory.RELATIONSHIP:
            return self._resolve_relationship(name)
        if category == SymbolCategory.LIVEWIRE:
            return self._resolve_livewire(name)
        if category in (
            SymbolCategory.ROUTE,
            SymbolCategory.CONFIG,
            SymbolCategory.TRANSLATION,
            SymbolCategory.ENV,
        ):
            return self.resolve_location(category, name)
        return self._resolve_from_index(category, name)

    def resolve_location(self, category: str, name: str) -> Optional[SymbolLocation]:
        """Definition line of a route, config, translation or env symbol."""
        if category == SymbolCategory.ROUTE:
            return self._resolve_route(name)
        if category == SymbolCategory.CONFIG:
            return self._resolve_config(name)
        if category == SymbolCategory.TRANSLATION:
            return self._resolve_translation(name)
        if category == SymbolCategory.ENV:
            return self._resolve_env(name)
        logger.debug(f"resolve_location does not handle category '{category}'")
        return None

    def _resolve_route(self, name: str) -> Optional[SymbolLocation]:
        pattern = route_name_pattern(name)
        for route_file in self._context.paths(self._config.route_files):
            for line_number, line in enumerate(read_lines(route_file), 1):
                if pattern.search(line):
                    return SymbolLocation(file=str(route_file), line=line_number)

        action = ""
        for entry in self._cache.entries(SymbolCategory.ROUTE):
            if entry.name == name:
                action = entry.get("action", "") or ""
                break
        if not action:
            logger.debug(f"Route '{name}' not found in route files and has no action")
            return None
        return self.resolve_controller_action(action)

    def resolve_controller_action(self, action: str) -> Optional[SymbolLocation]:
        """Locate the handler of a `Class@method` (or invokable `Class`) action."""
        class_part, _, method = action.partition("@")
        class_part = class_part.lstrip("\\")
        if not class_part or class_part == "Closure":
            return None

        controller_file = self._find_controller(class_part)
        if controller_file is None:
            logger.debug(f"Controller for action '{action}' not found")
            return None

        line = _method_line(read_lines(controller_file), method or "__invoke") or 1
        return SymbolLocation(file=str(controller_file), line=line, is_fallback=True)

    def _find_controller(self, class_name: str) -> Optional[Path]:
        controllers_root = self._context.path(self._config.controllers_root)
        if class_name.startswith(CONTROLLER_NAMESPACE):
            relative = class_name[len(CONTROLLER_NAMESPACE) :].replace("\\", "/")
            direct = controllers_root / f"{relative}.php"
            if direct.is_file():
                return direct

        short_name = class_name.rsplit("\\", 1)[-1]
        for _, path in walk_files(
            controllers_root, lambda n: n == f"{short_name}.php", self._config.max_scan_depth
        ):
            return path
        return None

    def _key_line(self, path: Path, key: str) -> Optional[int]:
        """Line of a (possibly dotted) key inside a PHP array file."""
        lines = read_lines(path)
        if self._config.nested_keys == "qualified":
            for qualified, line_number in qualified_keys(lines):
                if qualified == key:
                    return line_number
            return None

        for candidate in (key, key.rsplit(".", 1)[-1]):
            pattern = key_pattern(candidate)
            for line_number, line in enumerate(lines, 1):
                if pattern.search(line):
                    return line_number
        return None

    def _resolve_config(self, name: str) -> Optional[SymbolLocation]:
        file_name, _, key = name.partition(".")
        config_file = self._context.path(self._config.config_dir) / f"{file_name}.php"
        if not config_file.is_file():
            return None
        if not key:
            return SymbolLocation(file=str(config_file), line=1)
        line = self._key_line(config_file, key)
        return SymbolLocation(file=str(config_file), line=line) if line else None

    def _locale_dirs(self, lang_root: Path) -> List[Path]:
        """Locale directories of a lang root, preferred locale first."""
        preferred = self._config.locale
        others = [
            Path(entry.path)
            for entry in list_dir(lang_root)
            if entry.is_dir() and entry.name not in (preferred, "vendor")
        ]
        return [lang_root / preferred] + others

    def _resolve_translation(self, name: str) -> Optional[SymbolLocation]:
        file_name, _, key = name.partition(".")
        for lang_root in self._context.paths(self._config.lang_dirs):
            for locale_dir in self._locale_dirs(lang_root):
                lang_file = locale_dir / f"{file_name}.php"
                if not lang_file.is_file():
                    continue
                if not key:
                    return SymbolLocation(file=str(lang_file), line=1)
                line = self._key_line(lang_file, key)
                if line:
                    return SymbolLocation(file=str(lang_file), line=line)

        return self._resolve_json_translation(name)

    def _resolve_json_translation(self, name: str) -> Optional[SymbolLocation]:
        pattern = re.compile(re.escape(json.dumps(name)) + r"\s*:")
        for lang_root in self._context.paths(self._config.lang_dirs):
            json_files = [lang_root / f"{self._config.locale}.json"] + [
                Path(entry.path)
                for entry in list_dir(lang_root)
                if entry.name.endswith(".json") and entry.name != f"{self._config.locale}.json"
            ]
            for json_file in json_files:
                for line_number, line in enumerate(read_lines(json_file), 1):
                    if pattern.search(line):
                        return SymbolLocation(file=str(json_file), line=line_number)
        return None

    def _resolve_env(self, name: str) -> Optional[SymbolLocation]:
        pattern = env_key_pattern(name)
        for env_file in self._context.paths(self._config.env_files):
            for line_number, line in enumerate(read_lines(env_file), 1):
                if pattern.match(line):
                    return SymbolLocation(file=str(env_file), line=line_number)
        return None

    def _resolve_relationship(self, name: str) -> Optional[SymbolLocation]:
        graph = self._cache.get_or_extract(SymbolCategory.RELATIONSHIP)
        if not isinstance(graph, RelationshipGraph):
            return None
        entry = graph.find(name)
        if entry is None:
            return None
        return SymbolLocation(file=entry.source_file, line=int(entry.get("line", "1") or 1))

    def resolve_livewire_view(self, name: str) -> Optional[Path]:
        """View file rendered by a Livewire component, or None."""
        view = default_view(name)
        for entry in self._cache.entries(SymbolCategory.LIVEWIRE):
            if entry.name == name:
                view = entry.get("view") or view
                break
        return self.resolve_view(view)

    def _resolve_livewire(self, name: str) -> Optional[SymbolLocation]:
        location = self._resolve_from_index(SymbolCategory.LIVEWIRE, name)
        if location is not None:
            return location
        view = self.resolve_livewire_view(name)
        return SymbolLocation(file=str(view), line=1) if view else None

    def _resolve_from_index(self, category: str, name: str) -> Optional[SymbolLocation]:
        for entry in self._cache.entries(category):
            if entry.name == name and entry.source_file:
                return SymbolLocation(
                    file=entry.source_file, line=int(entry.get("line", "1") or 1)
                )
        return None

    def candidates_with_existence(self, name: str) -> List[Tuple[str, bool]]:
        """View candidates paired with whether each exists, for pickers."""
        return [(str(path), path.is_file()) for path in self.view_candidates(name)]
