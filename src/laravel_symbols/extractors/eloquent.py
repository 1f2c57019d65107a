# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Eloquent model and relationship extractors.

Relationship extraction is a line-oriented state machine, not a parser:

- `function name(` enters a method and remembers its name
- a line holding only `}` leaves it
- inside a method, the first `$this->hasMany(...)` style call on a line is
  attributed to the current method
- the related class is read from the same line; when the call's argument
  list continues on the next lines, up to LOOKAHEAD_LINES lines are searched

Multi-statement lines, closures containing a lone `}` and unusual call
layouts can produce missed or misattributed relationships. That is the
accepted price for a fast, dependency-free scan.
"""

import logging
import re
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from laravel_symbols.extractors.base import SymbolExtractor, unique_sorted
from laravel_symbols.extractors.scanning import DEFAULT_MAX_DEPTH, list_dir, read_lines, walk_files
from laravel_symbols.models import RelationshipGraph, SymbolCategory, SymbolEntry

logger = logging.getLogger(__name__)

LOOKAHEAD_LINES = 3

RELATIONSHIP_TYPES = (
    "hasOneThrough",
    "hasManyThrough",
    "hasOne",
    "hasMany",
    "belongsToMany",
    "belongsTo",
    "morphOne",
    "morphMany",
    "morphToMany",
    "morphTo",
    "morphedByMany",
)

METHOD_PATTERN = re.compile(r"function\s+(\w+)\s*\(")
METHOD_END_PATTERN = re.compile(r"^\s*}\s*$")
RELATION_CALL_PATTERN = re.compile(
    r"\$this\s*->\s*(" + "|".join(RELATIONSHIP_TYPES) + r")\s*\((.*)$"
)
NAMESPACE_PATTERN = re.compile(r"^\s*namespace\s+([\w\\]+)\s*;")
EXTENDS_MODEL_PATTERN = re.compile(r"extends\s+[\w\\]*Model\b|use\s+[\w\\]*Model\s*;")

# Class references, in the order they are tried
CLASS_REFERENCE_PATTERNS = (
    re.compile(r"\\?([A-Z][\w\\]*)::class"),
    re.compile(r"""['"]\\?([A-Z][\w\\]*)['"]"""),
    re.compile(r"\\?([A-Z][\w\\]*)::\w+"),
)


def short_class_name(reference: str) -> str:
    """Strip quotes, `::class` and the namespace from a class reference."""
    cleaned = reference.strip().strip("'\"")
    if cleaned.endswith("::class"):
        cleaned = cleaned[: -len("::class")]
    return cleaned.rstrip("\\").rsplit("\\", 1)[-1]


def find_class_reference(text: str) -> Optional[str]:
    """First class reference in a fragment of source, as a short name."""
    for pattern in CLASS_REFERENCE_PATTERNS:
        match = pattern.search(text)
        if match:
            return short_class_name(match.group(1))
    return None


def model_files(
    project_root: Path, models_root: str, max_depth: int = DEFAULT_MAX_DEPTH
) -> Iterator[Path]:
    """Yield model files.

    Every PHP file under the models root counts as a model. When the models
    root does not exist (pre-Laravel 8 layout), PHP files directly in `app/`
    whose first lines extend or import Model are used instead.
    """
    root = project_root / models_root
    if root.is_dir():
        for _, path in walk_files(root, lambda n: n.endswith(".php"), max_depth):
            yield path
        return

    for entry in list_dir(project_root / "app"):
        if not entry.name.endswith(".php") or not entry.is_file():
            continue
        path = Path(entry.path)
        head = read_lines(path)[:15]
        if any(EXTENDS_MODEL_PATTERN.search(line) for line in head):
            yield path


def extract_relationships(lines: List[str]) -> List[Tuple[str, str, str, int]]:
    """Run the line state machine over one model file.

    Returns:
        (method, relationship type, related model, line number) tuples in
        source order. The related model is "" for polymorphic morphTo().
    """
    relationships = []
    current_method: Optional[str] = None

    for index, line in enumerate(lines):
        method = METHOD_PATTERN.search(line)
        if method:
            current_method = method.group(1)

        if current_method is not None and METHOD_END_PATTERN.match(line):
            current_method = None
            continue

        if current_method is None:
            continue

        call = RELATION_CALL_PATTERN.search(line)
        if not call:
            continue

        rel_type, arguments = call.group(1), call.group(2)
        related = find_class_reference(arguments)
        if related is None and not arguments.strip().startswith(")"):
            for next_line in lines[index + 1 : index + 1 + LOOKAHEAD_LINES]:
                related = find_class_reference(next_line)
                if related:
                    break

        if related is None and rel_type != "morphTo":
            logger.debug(f"No related model found for {current_method}() on line {index + 1}")
            continue

        relationships.append((current_method, rel_type, related or "", index + 1))

    return relationships


class _ModelFileExtractor(SymbolExtractor):
    """Shared model-file discovery for the model and relationship extractors.

    Which layout was found is remembered on each extraction, so that
    source_paths() also covers `app/` when models are read from there.
    """

    def __init__(self, models_root: str, max_depth: int = DEFAULT_MAX_DEPTH):
        self._models_root = models_root
        self._max_depth = max_depth
        self._reads_app_root = False

    def _model_files(self, project_root: Path) -> Iterator[Path]:
        self._reads_app_root = not (project_root / self._models_root).is_dir()
        return model_files(project_root, self._models_root, self._max_depth)

    def source_paths(self) -> List[str]:
        if self._reads_app_root:
            return [self._models_root, "app"]
        return [self._models_root]


class ModelRelationshipExtractor(_ModelFileExtractor):
    """Build the relationship graph for all models.

    Each relationship becomes an entry named `Model.method` with `model`,
    `method`, `type`, `related_model` and `line` extras.
    """

    def extract(self, project_root: Path) -> RelationshipGraph:
        entries: List[SymbolEntry] = []
        for path in self._model_files(project_root):
            model = path.name[: -len(".php")]
            for method, rel_type, related, line_number in extract_relationships(
                read_lines(path)
            ):
                entries.append(
                    SymbolEntry(
                        name=f"{model}.{method}",
                        category=SymbolCategory.RELATIONSHIP,
                        source_file=str(path),
                        extra={
                            "model": model,
                            "method": method,
                            "type": rel_type,
                            "related_model": related,
                            "line": str(line_number),
                        },
                    )
                )

        graph = RelationshipGraph(unique_sorted(entries))
        logger.debug(f"ModelRelationshipExtractor found {len(graph)} relationships")
        return graph

    def category(self) -> str:
        return SymbolCategory.RELATIONSHIP

    def name(self) -> str:
        return "ModelRelationshipExtractor"


class ModelExtractor(_ModelFileExtractor):
    """Extract Eloquent model class names with their fully-qualified names."""

    def extract(self, project_root: Path) -> List[SymbolEntry]:
        entries: List[SymbolEntry] = []
        for path in self._model_files(project_root):
            class_name = path.name[: -len(".php")]
            namespace = ""
            for line in read_lines(path)[:30]:
                match = NAMESPACE_PATTERN.match(line)
                if match:
                    namespace = match.group(1)
                    break
            fqcn = f"{namespace}\\{class_name}" if namespace else class_name
            entries.append(
                SymbolEntry(
                    name=class_name,
                    category=SymbolCategory.MODEL,
                    source_file=str(path),
                    extra={"fqcn": fqcn, "line": "1"},
                )
            )

        result = unique_sorted(entries)
        logger.debug(f"ModelExtractor found {len(result)} models")
        return result

    def category(self) -> str:
        return SymbolCategory.MODEL

    def name(self) -> str:
        return "ModelExtractor"
