# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Extractors backed by barryvdh/laravel-ide-helper output and fixed tables.

- FacadeExtractor reads `_ide_helper.php`
- ContainerBindingExtractor reads `.phpstorm.meta.php`
- FluentMethodExtractor returns migration Blueprint methods from a table

The generated helper files are large and change only when regenerated, so
these categories use the external cache TTL.
"""

import logging
import re
from pathlib import Path
from typing import List

from laravel_symbols.extractors.base import SymbolExtractor, unique_sorted
from laravel_symbols.extractors.scanning import read_lines
from laravel_symbols.models import SymbolCategory, SymbolEntry

logger = logging.getLogger(__name__)

IDE_HELPER_FILE = "_ide_helper.php"
PHPSTORM_META_FILE = ".phpstorm.meta.php"

FACADE_CLASS_PATTERN = re.compile(r"class\s+(\w+)\s+extends\s+\S*Facade\b")
STATIC_METHOD_PATTERN = re.compile(r"@method\s+static\s+.+\s+(\w+)\s*\(")
CONTAINER_BINDING_PATTERN = re.compile(r"""['"]([^'"]+)['"]\s*=>\s*\\?([\w\\]+)::class""")

FLUENT_METHODS = (
    # Column modifiers
    "after", "autoIncrement", "charset", "collation", "comment", "default", "first",
    "generatedAs", "index", "nullable", "primary", "storedAs", "unique", "unsigned",
    "useCurrent", "useCurrentOnUpdate", "virtualAs",
    # Column types
    "bigIncrements", "bigInteger", "binary", "boolean", "char", "dateTimeTz", "date",
    "dateTime", "decimal", "double", "enum", "float", "foreignId", "foreignIdFor",
    "foreignUuid", "geometryCollection", "geometry", "id", "increments", "integer",
    "ipAddress", "json", "jsonb", "lineString", "longText", "macAddress", "mediumIncrements",
    "mediumInteger", "mediumText", "morphs", "multiLineString", "multiPoint", "multiPolygon",
    "nullableMorphs", "nullableTimestamps", "nullableUuidMorphs", "point", "polygon",
    "rememberToken", "set", "smallIncrements", "smallInteger", "softDeletesTz", "softDeletes",
    "string", "text", "timeTz", "time", "timestampTz", "timestamp", "timestampsTz", "timestamps",
    "tinyIncrements", "tinyInteger", "tinyText", "unsignedBigInteger", "unsignedDecimal",
    "unsignedInteger", "unsignedMediumInteger", "unsignedSmallInteger", "unsignedTinyInteger",
    "uuidMorphs", "uuid", "year",
)  # fmt: skip


class FacadeExtractor(SymbolExtractor):
    """Static facade methods documented in `_ide_helper.php`.

    Entries are named `Facade::method` and carry `facade`, `method` and
    `line` extras. A facade block starts at `class X extends ...Facade` and
    lasts until the next facade class.
    """

    def extract(self, project_root: Path) -> List[SymbolEntry]:
        helper_file = project_root / IDE_HELPER_FILE
        entries: List[SymbolEntry] = []
        current_facade = None

        for line_number, line in enumerate(read_lines(helper_file), 1):
            facade = FACADE_CLASS_PATTERN.search(line)
            if facade:
                current_facade = facade.group(1)
                continue
            if current_facade is None:
                continue
            method = STATIC_METHOD_PATTERN.search(line)
            if method:
                entries.append(
                    SymbolEntry(
                        name=f"{current_facade}::{method.group(1)}",
                        category=SymbolCategory.FACADE,
                        source_file=str(helper_file),
                        extra={
                            "facade": current_facade,
                            "method": method.group(1),
                            "line": str(line_number),
                        },
                    )
                )

        result = unique_sorted(entries)
        logger.debug(f"FacadeExtractor found {len(result)} facade methods")
        return result

    def category(self) -> str:
        return SymbolCategory.FACADE

    def name(self) -> str:
        return "FacadeExtractor"

    def source_paths(self) -> List[str]:
        return [IDE_HELPER_FILE]

    def is_external(self) -> bool:
        return True


class ContainerBindingExtractor(SymbolExtractor):
    """Container binding keys for `app('...')` from `.phpstorm.meta.php`."""

    def extract(self, project_root: Path) -> List[SymbolEntry]:
        meta_file = project_root / PHPSTORM_META_FILE
        entries: List[SymbolEntry] = []
        for line_number, line in enumerate(read_lines(meta_file), 1):
            for match in CONTAINER_BINDING_PATTERN.finditer(line):
                entries.append(
                    SymbolEntry(
                        name=match.group(1),
                        category=SymbolCategory.CONTAINER,
                        source_file=str(meta_file),
                        extra={"class": match.group(2), "line": str(line_number)},
                    )
                )

        result = unique_sorted(entries)
        logger.debug(f"ContainerBindingExtractor found {len(result)} bindings")
        return result

    def category(self) -> str:
        return SymbolCategory.CONTAINER

    def name(self) -> str:
        return "ContainerBindingExtractor"

    def source_paths(self) -> List[str]:
        return [PHPSTORM_META_FILE]

    def is_external(self) -> bool:
        return True


class FluentMethodExtractor(SymbolExtractor):
    """Schema Blueprint column types and modifiers for `$table->...`."""

    def extract(self, project_root: Path) -> List[SymbolEntry]:
        return unique_sorted(
            SymbolEntry(name=method, category=SymbolCategory.FLUENT, source_file="")
            for method in FLUENT_METHODS
        )

    def category(self) -> str:
        return SymbolCategory.FLUENT

    def name(self) -> str:
        return "FluentMethodExtractor"

    def is_external(self) -> bool:
        return True
