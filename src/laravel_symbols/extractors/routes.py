# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Static route-name extractor.

Scans the route definition files for name bindings such as

    Route::get('/dashboard', DashboardController::class)->name('dashboard');

Route names registered programmatically are invisible to this scan; the
artisan-backed extractor in route_query.py covers those.
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Sequence

from laravel_symbols.extractors.base import SymbolExtractor, unique_sorted
from laravel_symbols.extractors.scanning import read_lines
from laravel_symbols.models import SymbolCategory, SymbolEntry

logger = logging.getLogger(__name__)

ROUTE_NAME_PATTERN = re.compile(r"""->\s*name\s*\(\s*['"]([^'"]+)['"]""")

# Route::get('/uri', ...) on the same line as the name binding
ROUTE_VERB_PATTERN = re.compile(
    r"""Route\s*::\s*(get|post|put|patch|delete|options|any|match|view|redirect|inertia"""
    r"""|resource|apiResource)\s*\(\s*(?:\[[^\]]*\]\s*,\s*)?['"]([^'"]*)['"]""",
    re.IGNORECASE,
)

# Handler on the same line: [UserController::class, 'show'] or 'UserController@show'
ROUTE_ACTION_PATTERN = re.compile(
    r"""\[\s*\\?([\w\\]+)::class\s*,\s*['"](\w+)['"]\s*\]"""
    r"""|['"]\\?([\w\\]+Controller)@(\w+)['"]"""
    r"""|\\?([\w\\]+Controller)::class"""
)


def route_name_pattern(name: str) -> "re.Pattern[str]":
    """Pattern matching the name binding of one specific route."""
    return re.compile(r"""->\s*name\s*\(\s*['"]""" + re.escape(name) + r"""['"]""")


def parse_action(line: str) -> str:
    """Return the handler on a route line as `Class@method`, or ""."""
    match = ROUTE_ACTION_PATTERN.search(line)
    if not match:
        return ""
    if match.group(1):
        return f"{match.group(1)}@{match.group(2)}"
    if match.group(3):
        return f"{match.group(3)}@{match.group(4)}"
    return match.group(5)


class RouteFileExtractor(SymbolExtractor):
    """Extract route names from route definition files.

    Each entry carries `line` plus, when present on the same line, the HTTP
    `method`, `uri` and `action` of the route.
    """

    def __init__(self, route_files: Sequence[str]):
        """Initialize the extractor.

        Args:
            route_files: Project-relative route files in precedence order.
        """
        self._route_files = list(route_files)

    def extract(self, project_root: Path) -> List[SymbolEntry]:
        entries: List[SymbolEntry] = []
        for relative in self._route_files:
            route_file = project_root / relative
            for line_number, line in enumerate(read_lines(route_file), 1):
                for match in ROUTE_NAME_PATTERN.finditer(line):
                    entries.append(
                        SymbolEntry(
                            name=match.group(1),
                            category=SymbolCategory.ROUTE,
                            source_file=str(route_file),
                            extra=self._extras(line, line_number),
                        )
                    )

        result = unique_sorted(entries)
        logger.debug(f"RouteFileExtractor found {len(result)} route names")
        return result

    @staticmethod
    def _extras(line: str, line_number: int) -> Dict[str, str]:
        extra = {"line": str(line_number)}
        verb = ROUTE_VERB_PATTERN.search(line)
        if verb:
            extra["method"] = verb.group(1).upper()
            extra["uri"] = verb.group(2)
        action = parse_action(line)
        if action:
            extra["action"] = action
        return extra

    def category(self) -> str:
        return SymbolCategory.ROUTE

    def name(self) -> str:
        return "RouteFileExtractor"

    def source_paths(self) -> List[str]:
        return list(self._route_files)
