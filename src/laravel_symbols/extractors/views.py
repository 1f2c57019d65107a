# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""View and page-component extractor.

Blade templates under the template root and page components under each
component root share one dotted namespace:

    resources/views/admin/dashboard.blade.php   -> admin.dashboard
    resources/js/Pages/Admin/Dashboard.tsx      -> Admin.Dashboard
"""

import logging
from pathlib import Path
from typing import List, Sequence

from laravel_symbols.extractors.base import SymbolExtractor, unique_sorted
from laravel_symbols.extractors.scanning import DEFAULT_MAX_DEPTH, strip_suffix, walk_files
from laravel_symbols.models import SymbolCategory, SymbolEntry

logger = logging.getLogger(__name__)

BLADE_SUFFIX = ".blade.php"


class ViewExtractor(SymbolExtractor):
    """Extract view names from the template root and component roots.

    Templates are scanned first, so when a template and a component collapse
    to the same dotted name the template entry is kept.
    """

    def __init__(
        self,
        template_root: str,
        component_roots: Sequence[str],
        component_extensions: Sequence[str],
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self._template_root = template_root
        self._component_roots = list(component_roots)
        self._component_extensions = list(component_extensions)
        self._max_depth = max_depth

    def extract(self, project_root: Path) -> List[SymbolEntry]:
        entries: List[SymbolEntry] = []

        template_root = project_root / self._template_root
        for parts, path in walk_files(
            template_root, lambda n: n.endswith(BLADE_SUFFIX), self._max_depth
        ):
            stem = strip_suffix(path.name, [BLADE_SUFFIX])
            if stem is None:
                continue
            entries.append(
                SymbolEntry(
                    name=".".join(parts + (stem,)),
                    category=SymbolCategory.VIEW,
                    source_file=str(path),
                    extra={"kind": "template", "root": self._template_root},
                )
            )

        for relative_root in self._component_roots:
            root = project_root / relative_root
            for parts, path in walk_files(
                root,
                lambda n: strip_suffix(n, self._component_extensions) is not None,
                self._max_depth,
            ):
                stem = strip_suffix(path.name, self._component_extensions)
                if stem is None:
                    continue
                entries.append(
                    SymbolEntry(
                        name=".".join(parts + (stem,)),
                        category=SymbolCategory.VIEW,
                        source_file=str(path),
                        extra={"kind": "component", "root": relative_root},
                    )
                )

        result = unique_sorted(entries)
        logger.debug(f"ViewExtractor found {len(result)} views and components")
        return result

    def category(self) -> str:
        return SymbolCategory.VIEW

    def name(self) -> str:
        return "ViewExtractor"

    def source_paths(self) -> List[str]:
        return [self._template_root] + self._component_roots
