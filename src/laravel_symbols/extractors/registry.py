# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Registry for symbol extractor plugins, keyed by category."""

import logging
from typing import Dict, List, Optional

from .base import SymbolExtractor

logger = logging.getLogger(__name__)


class ExtractorRegistry:
    """Registry mapping each symbol category to exactly one extractor.

    Registering a second extractor for a category replaces the first, which
    is how a stricter extractor is swapped in for a line-pattern one.

    Thread Safety:
    - NOT thread-safe: Register all extractors during initialization
    """

    def __init__(self) -> None:
        """Initialize empty extractor registry."""
        self._extractors: Dict[str, SymbolExtractor] = {}

    def register(self, extractor: SymbolExtractor) -> None:
        """Register an extractor plugin for its category.

        Raises:
            TypeError: If extractor is not a SymbolExtractor instance.
        """
        if not isinstance(extractor, SymbolExtractor):
            raise TypeError(f"Extractor must be a SymbolExtractor instance, got {type(extractor)}")

        category = extractor.category()
        previous = self._extractors.get(category)
        if previous is not None:
            logger.debug(
                f"Replacing extractor '{previous.name()}' with '{extractor.name()}' "
                f"for category '{category}'"
            )
        self._extractors[category] = extractor
        logger.debug(f"Registered extractor '{extractor.name()}' for category '{category}'")

    def get(self, category: str) -> Optional[SymbolExtractor]:
        """Get the extractor for a category, or None if none is registered."""
        return self._extractors.get(category)

    def categories(self) -> List[str]:
        """Registered categories, sorted."""
        return sorted(self._extractors)

    def get_extractors(self) -> List[SymbolExtractor]:
        """All registered extractors, ordered by category."""
        return [self._extractors[c] for c in self.categories()]

    def clear(self) -> None:
        """Remove all registered extractors."""
        self._extractors.clear()

    def count(self) -> int:
        """Return number of registered extractors."""
        return len(self._extractors)
