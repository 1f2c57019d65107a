# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Environment variable extractor for dotenv files."""

import logging
import re
from pathlib import Path
from typing import List, Sequence

from laravel_symbols.extractors.base import SymbolExtractor, unique_sorted
from laravel_symbols.extractors.scanning import read_lines
from laravel_symbols.models import SymbolCategory, SymbolEntry

logger = logging.getLogger(__name__)

ENV_KEY_PATTERN = re.compile(r"^\s*(?:export\s+)?([A-Z_][A-Z0-9_]*)\s*=")
SKIP_LINE = re.compile(r"^\s*(#|$)")


def env_key_pattern(key: str) -> "re.Pattern[str]":
    """Pattern matching the definition line of one key."""
    return re.compile(r"^\s*(?:export\s+)?" + re.escape(key) + r"\s*=")


class EnvKeyExtractor(SymbolExtractor):
    """Extract uppercase snake-case keys from dotenv files.

    Files are read in precedence order; a key keeps the file and line of its
    first definition.
    """

    def __init__(self, env_files: Sequence[str]):
        self._env_files = list(env_files)

    def extract(self, project_root: Path) -> List[SymbolEntry]:
        entries: List[SymbolEntry] = []
        for relative in self._env_files:
            env_file = project_root / relative
            for line_number, line in enumerate(read_lines(env_file), 1):
                if SKIP_LINE.match(line):
                    continue
                match = ENV_KEY_PATTERN.match(line)
                if match:
                    entries.append(
                        SymbolEntry(
                            name=match.group(1),
                            category=SymbolCategory.ENV,
                            source_file=str(env_file),
                            extra={"line": str(line_number)},
                        )
                    )

        result = unique_sorted(entries)
        logger.debug(f"EnvKeyExtractor found {len(result)} environment keys")
        return result

    def category(self) -> str:
        return SymbolCategory.ENV

    def name(self) -> str:
        return "EnvKeyExtractor"

    def source_paths(self) -> List[str]:
        return list(self._env_files)
