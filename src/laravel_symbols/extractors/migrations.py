# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Database schema extractors over migration files.

Each migration is read with a line state machine:

- `function up(` enters the up() method; any other named method leaves it
- inside up(), `Schema::create('t'` or `Schema::table('t'` opens a table
  block, and `});` closes it
- inside a table block, `$table->type('name'` declares a column, and the
  zero-argument helpers (`id()`, `timestamps()`, `softDeletes()`, ...)
  declare their implicit columns
- `->references('id')->on('users')` and `->constrained('users')` on a
  column line record the referenced table column

down() is skipped, so dropped or renamed columns are never reported.
Migrations are read in file name (timestamp) order. A table or column keeps
the location of the migration that first declares it.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from laravel_symbols.extractors.base import SymbolExtractor, unique_sorted
from laravel_symbols.extractors.scanning import list_dir, read_lines
from laravel_symbols.models import SymbolCategory, SymbolEntry

logger = logging.getLogger(__name__)

NAMED_METHOD_PATTERN = re.compile(r"function\s+(\w+)\s*\(")
SCHEMA_CALL_PATTERN = re.compile(r"""Schema::(create|table)\s*\(\s*['"]([^'"]+)['"]""")
BLOCK_END_PATTERN = re.compile(r"^\s*}\s*\)\s*;")
COLUMN_CALL_PATTERN = re.compile(r"""\$table\s*->\s*(\w+)\s*\(\s*(?:['"]([^'"]+)['"])?""")
REFERENCES_PATTERN = re.compile(r"""->\s*references\s*\(\s*['"]([^'"]+)['"]""")
ON_TABLE_PATTERN = re.compile(r"""->\s*on\s*\(\s*['"]([^'"]+)['"]""")
CONSTRAINED_PATTERN = re.compile(r"""->\s*constrained\s*\(\s*['"]([^'"]+)['"]""")

# Blueprint calls that take a column name but do not declare a column
NON_COLUMN_METHODS = frozenset(
    {
        "foreign",
        "index",
        "unique",
        "primary",
        "fullText",
        "spatialIndex",
        "dropColumn",
        "dropForeign",
        "dropIndex",
        "dropPrimary",
        "dropUnique",
        "dropConstrainedForeignId",
        "renameColumn",
        "renameIndex",
        "comment",
        "engine",
        "charset",
        "collation",
    }
)

# Helpers that declare columns without naming them
IMPLICIT_COLUMNS: Dict[str, List[str]] = {
    "id": ["id"],
    "timestamps": ["created_at", "updated_at"],
    "timestampsTz": ["created_at", "updated_at"],
    "nullableTimestamps": ["created_at", "updated_at"],
    "softDeletes": ["deleted_at"],
    "softDeletesTz": ["deleted_at"],
    "rememberToken": ["remember_token"],
}

MORPH_METHODS = ("morphs", "nullableMorphs", "uuidMorphs", "nullableUuidMorphs")


@dataclass
class TableDefinition:
    name: str
    action: str  # "create" or "modify"
    line: int


@dataclass
class ColumnDefinition:
    table: str
    name: str
    type: str
    line: int
    references: str = ""  # "table.column" for foreign keys


@dataclass
class MigrationSchema:
    """Tables and columns declared by the up() method of one migration."""

    tables: List[TableDefinition] = field(default_factory=list)
    columns: List[ColumnDefinition] = field(default_factory=list)


def _column_names(method: str, argument: Optional[str]) -> List[str]:
    if method in IMPLICIT_COLUMNS and argument is None:
        return IMPLICIT_COLUMNS[method]
    if argument is None:
        # Bare calls other than the implicit-column helpers declare nothing
        return []
    if method in MORPH_METHODS:
        return [f"{argument}_id", f"{argument}_type"]
    return [argument]


def _reference(line: str) -> str:
    on_table = ON_TABLE_PATTERN.search(line)
    if on_table:
        references = REFERENCES_PATTERN.search(line)
        return f"{on_table.group(1)}.{references.group(1) if references else 'id'}"
    constrained = CONSTRAINED_PATTERN.search(line)
    if constrained:
        return f"{constrained.group(1)}.id"
    return ""


def parse_migration(lines: List[str]) -> MigrationSchema:
    """Run the line state machine over one migration file."""
    schema = MigrationSchema()
    in_up = False
    current_table: Optional[str] = None

    for line_number, line in enumerate(lines, 1):
        method = NAMED_METHOD_PATTERN.search(line)
        if method:
            in_up = method.group(1) == "up"
            current_table = None
            continue
        if not in_up:
            continue

        schema_call = SCHEMA_CALL_PATTERN.search(line)
        if schema_call:
            action = "create" if schema_call.group(1) == "create" else "modify"
            current_table = schema_call.group(2)
            schema.tables.append(TableDefinition(current_table, action, line_number))
            continue

        if current_table is None:
            continue
        if BLOCK_END_PATTERN.match(line):
            current_table = None
            continue

        column_call = COLUMN_CALL_PATTERN.search(line)
        if not column_call:
            continue
        column_method, argument = column_call.group(1), column_call.group(2)

        if column_method == "foreign" and argument:
            # Attach the reference to a column declared earlier in this block
            reference = _reference(line)
            for column in reversed(schema.columns):
                if column.table == current_table and column.name == argument:
                    column.references = column.references or reference
                    break
            continue
        if column_method in NON_COLUMN_METHODS:
            continue

        reference = _reference(line)
        for name in _column_names(column_method, argument):
            schema.columns.append(
                ColumnDefinition(current_table, name, column_method, line_number, reference)
            )

    return schema


def migration_files(migrations_dir: Path) -> Iterator[Path]:
    """Migration files in timestamp order (top level of the directory only)."""
    for entry in list_dir(migrations_dir):
        if entry.name.endswith(".php") and entry.is_file():
            yield Path(entry.path)


class MigrationExtractor(SymbolExtractor):
    """Shared migration scanning for the table and column extractors."""

    def __init__(self, migrations_dir: str):
        self._migrations_dir = migrations_dir

    def schemas(self, project_root: Path) -> Iterator[Tuple[Path, MigrationSchema]]:
        """(migration path, MigrationSchema) pairs in timestamp order."""
        for path in migration_files(project_root / self._migrations_dir):
            yield path, parse_migration(read_lines(path))

    def source_paths(self) -> List[str]:
        return [self._migrations_dir]


class TableExtractor(MigrationExtractor):
    """Table names from Schema::create / Schema::table calls.

    Entries carry `action`, `migration` and `line` extras; the first
    migration that mentions a table (normally its create) wins.
    """

    def extract(self, project_root: Path) -> List[SymbolEntry]:
        entries: List[SymbolEntry] = []
        for path, schema in self.schemas(project_root):
            for table in schema.tables:
                entries.append(
                    SymbolEntry(
                        name=table.name,
                        category=SymbolCategory.TABLE,
                        source_file=str(path),
                        extra={
                            "action": table.action,
                            "migration": path.name,
                            "line": str(table.line),
                        },
                    )
                )

        result = unique_sorted(entries)
        logger.debug(f"TableExtractor found {len(result)} tables")
        return result

    def category(self) -> str:
        return SymbolCategory.TABLE

    def name(self) -> str:
        return "TableExtractor"


class ColumnExtractor(MigrationExtractor):
    """Columns declared in migrations, named `table.column`.

    Entries carry `table`, `type`, `migration` and `line` extras, plus
    `references` for foreign keys.
    """

    def extract(self, project_root: Path) -> List[SymbolEntry]:
        entries: List[SymbolEntry] = []
        for path, schema in self.schemas(project_root):
            for column in schema.columns:
                extra = {
                    "table": column.table,
                    "type": column.type,
                    "migration": path.name,
                    "line": str(column.line),
                }
                if column.references:
                    extra["references"] = column.references
                entries.append(
                    SymbolEntry(
                        name=f"{column.table}.{column.name}",
                        category=SymbolCategory.COLUMN,
                        source_file=str(path),
                        extra=extra,
                    )
                )

        result = unique_sorted(entries)
        logger.debug(f"ColumnExtractor found {len(result)} columns")
        return result

    def category(self) -> str:
        return SymbolCategory.COLUMN

    def name(self) -> str:
        return "ColumnExtractor"
