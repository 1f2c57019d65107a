# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Livewire component extractor.

Component classes under each Livewire root become kebab-case component
names, with directories joined by dots:

    app/Livewire/Counter.php              -> counter
    app/Livewire/Admin/UserTable.php      -> admin.user-table
    app/Http/Livewire/ShowPosts.php       -> show-posts (Livewire 2 layout)

Each entry records the view it renders: the first `view('...')` after
`function render(`, or the `livewire.<name>` convention when render() does
not name one. `*Test.php` files are skipped.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Sequence

from laravel_symbols.extractors.base import SymbolExtractor, unique_sorted
from laravel_symbols.extractors.scanning import DEFAULT_MAX_DEPTH, read_lines, walk_files
from laravel_symbols.models import SymbolCategory, SymbolEntry

logger = logging.getLogger(__name__)

RENDER_PATTERN = re.compile(r"function\s+render\s*\(")
RENDER_VIEW_PATTERN = re.compile(r"""view\s*\(\s*['"]([^'"]+)['"]""")
CLASS_PATTERN = re.compile(r"^\s*(?:final\s+|abstract\s+)?class\s+(\w+)")
_CAMEL_BOUNDARY = re.compile(r"([a-z])([A-Z])")


def component_name(parts: Sequence[str]) -> str:
    """Dotted kebab-case component name for a class path below a root.

    `("Admin", "UserTable")` -> `admin.user-table`
    """
    return ".".join(_CAMEL_BOUNDARY.sub(r"\1-\2", part).lower() for part in parts)


def default_view(name: str) -> str:
    """View name Livewire uses when render() does not return one explicitly."""
    return f"livewire.{name}"


def render_view(lines: List[str]) -> Optional[str]:
    """View named inside the render() method, if any."""
    in_render = False
    for line in lines:
        if RENDER_PATTERN.search(line):
            in_render = True
        if not in_render:
            continue
        match = RENDER_VIEW_PATTERN.search(line)
        if match:
            return match.group(1)
    return None


def class_line(lines: List[str]) -> int:
    """1-based line of the class declaration (1 if none is found)."""
    for line_number, line in enumerate(lines, 1):
        if CLASS_PATTERN.match(line):
            return line_number
    return 1


class LivewireComponentExtractor(SymbolExtractor):
    """Extract Livewire component names from the component class roots.

    Roots are scanned in order, so when two roots yield the same name the
    first root wins. Entries carry `class`, `view` and `line` extras.
    """

    def __init__(self, roots: Sequence[str], max_depth: int = DEFAULT_MAX_DEPTH):
        self._roots = list(roots)
        self._max_depth = max_depth

    def extract(self, project_root: Path) -> List[SymbolEntry]:
        entries: List[SymbolEntry] = []
        for relative_root in self._roots:
            for parts, path in walk_files(
                project_root / relative_root, _is_component_file, self._max_depth
            ):
                class_name = path.name[: -len(".php")]
                name = component_name(parts + (class_name,))
                lines = read_lines(path)
                entries.append(
                    SymbolEntry(
                        name=name,
                        category=SymbolCategory.LIVEWIRE,
                        source_file=str(path),
                        extra={
                            "class": class_name,
                            "view": render_view(lines) or default_view(name),
                            "line": str(class_line(lines)),
                        },
                    )
                )

        result = unique_sorted(entries)
        logger.debug(f"LivewireComponentExtractor found {len(result)} components")
        return result

    def category(self) -> str:
        return SymbolCategory.LIVEWIRE

    def name(self) -> str:
        return "LivewireComponentExtractor"

    def source_paths(self) -> List[str]:
        return list(self._roots)


def _is_component_file(filename: str) -> bool:
    return filename.endswith(".php") and not filename.endswith("Test.php")
