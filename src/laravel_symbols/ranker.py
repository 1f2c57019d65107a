# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Completion ranking over cached symbol indexes."""

import logging
from typing import List

from laravel_symbols.cache import SymbolCache
from laravel_symbols.models import SymbolCategory, SymbolEntry

logger = logging.getLogger(__name__)


def filter_names(names: List[str], partial_text: str) -> List[str]:
    """Case-insensitive substring filter that keeps the input order."""
    if not partial_text:
        return list(names)
    needle = partial_text.lower()
    return [name for name in names if needle in name.lower()]


def facade_methods(entries: List[SymbolEntry], facade: str, partial_text: str) -> List[str]:
    """Method names of one facade starting with the typed prefix."""
    prefix = partial_text.lower()
    return [
        entry.get("method", "") or ""
        for entry in entries
        if entry.get("facade") == facade
        and (entry.get("method", "") or "").lower().startswith(prefix)
    ]


class CompletionRanker:
    """Turns a category and partial text into an ordered candidate list.

    The index order (lexicographic by name) is kept; ranking is a stable
    filter, so calling rank() twice with the same inputs returns the same
    list.
    """

    def __init__(self, cache: SymbolCache):
        self._cache = cache

    def rank(self, category: str, partial_text: str, helper: str = "") -> List[str]:
        """Return completion candidates.

        Args:
            category: SymbolCategory value from the context detector.
            partial_text: Text typed so far inside the string.
            helper: Facade identifier for the facade category.
        """
        entries = self._cache.entries(category)

        if category == SymbolCategory.FACADE:
            # Already narrowed to one facade and a prefix, no second filter
            result = facade_methods(entries, helper, partial_text)
        else:
            result = filter_names([entry.name for entry in entries], partial_text)

        logger.debug(
            f"Ranked {len(result)} of {len(entries)} '{category}' symbols for '{partial_text}'"
        )
        return result
