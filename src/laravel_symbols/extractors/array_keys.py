# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Config and translation key extractors.

Both categories live in PHP files that return an array:

    // config/mail.php
    return [
        'default' => env('MAIL_MAILER', 'smtp'),
        'mailers' => [
            'smtp' => [
                'host' => env('MAIL_HOST'),
            ],
        ],
    ];

Every file contributes its bare name (`mail`) plus one symbol per
`'key' =>` assignment. Keys are found line by line, not parsed. How nested
keys are named depends on the mode:

- "flatten" (default): every key becomes `file.key` regardless of depth, so
  the example above yields mail.default, mail.mailers, mail.smtp, mail.host.
- "qualified": bracket depth is tracked across lines and keys get their full
  dotted path: mail.mailers.smtp.host.

Numeric keys are skipped in both modes.
"""

import json
import logging
import re
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from laravel_symbols.extractors.base import SymbolExtractor, unique_sorted
from laravel_symbols.extractors.scanning import list_dir, read_lines
from laravel_symbols.models import SymbolCategory, SymbolEntry

logger = logging.getLogger(__name__)

KEY_PATTERN = re.compile(r"""['"]([^'"]+)['"]\s*=>""")
NUMERIC_KEY = re.compile(r"^\d+$")

# Tokens that matter for nesting: strings (optionally followed by =>),
# brackets, and line comments.
_TOKEN = re.compile(
    r"""(?P<str>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")(?P<arrow>\s*=>)?"""
    r"""|(?P<open>[\[(])|(?P<close>[\])])|(?P<comment>//|\#)"""
)
_OPENS_ARRAY = re.compile(r"\s*(?:\[|array\s*\()")


def key_pattern(key: str) -> "re.Pattern[str]":
    """Pattern matching the assignment of one specific key."""
    return re.compile(r"""['"]""" + re.escape(key) + r"""['"]\s*=>""")


def flattened_keys(lines: List[str]) -> Iterator[Tuple[str, int]]:
    """Yield (key, line number) for every key assignment, ignoring depth."""
    for line_number, line in enumerate(lines, 1):
        for match in KEY_PATTERN.finditer(line):
            key = match.group(1)
            if not NUMERIC_KEY.match(key):
                yield key, line_number


def qualified_keys(lines: List[str]) -> Iterator[Tuple[str, int]]:
    """Yield (dotted key path, line number), tracking bracket nesting."""
    stack: List[Optional[str]] = []
    in_block_comment = False

    for line_number, line in enumerate(lines, 1):
        text = line
        if in_block_comment:
            end = text.find("*/")
            if end < 0:
                continue
            text = text[end + 2 :]
            in_block_comment = False
        start = text.find("/*")
        if start >= 0:
            end = text.find("*/", start + 2)
            if end < 0:
                in_block_comment = True
                text = text[:start]
            else:
                text = text[:start] + text[end + 2 :]

        pending: Optional[str] = None
        for token in _TOKEN.finditer(text):
            if token.group("comment"):
                break
            if token.group("str"):
                pending = None
                if not token.group("arrow"):
                    continue
                key = token.group("str")[1:-1]
                if NUMERIC_KEY.match(key):
                    continue
                path = [k for k in stack if k is not None] + [key]
                yield ".".join(path), line_number
                if _OPENS_ARRAY.match(text, token.end()):
                    pending = key
            elif token.group("open"):
                stack.append(pending)
                pending = None
            elif token.group("close"):
                pending = None
                if stack:
                    stack.pop()


def keys_in_file(lines: List[str], mode: str) -> Iterator[Tuple[str, int]]:
    """Dispatch to the key naming mode."""
    if mode == "qualified":
        return qualified_keys(lines)
    return flattened_keys(lines)


class _ArrayKeyExtractor(SymbolExtractor):
    """Shared logic for PHP array files: file symbol plus key symbols."""

    def __init__(self, nested_keys: str = "flatten"):
        self._nested_keys = nested_keys

    def _file_entries(self, path: Path, extra: Dict[str, str]) -> List[SymbolEntry]:
        prefix = path.name[: -len(".php")]
        entries = [
            SymbolEntry(
                name=prefix,
                category=self.category(),
                source_file=str(path),
                extra={**extra, "line": "1"},
            )
        ]
        for key, line_number in keys_in_file(read_lines(path), self._nested_keys):
            entries.append(
                SymbolEntry(
                    name=f"{prefix}.{key}",
                    category=self.category(),
                    source_file=str(path),
                    extra={**extra, "line": str(line_number)},
                )
            )
        return entries


def php_files(directory: Path) -> List[Path]:
    """Non-recursive, sorted *.php files of a directory."""
    return [
        Path(entry.path)
        for entry in list_dir(directory)
        if entry.name.endswith(".php") and entry.is_file()
    ]


class ConfigKeyExtractor(_ArrayKeyExtractor):
    """Extract `config('file.key')` symbols from the config directory."""

    def __init__(self, config_dir: str, nested_keys: str = "flatten"):
        super().__init__(nested_keys)
        self._config_dir = config_dir

    def extract(self, project_root: Path) -> List[SymbolEntry]:
        entries: List[SymbolEntry] = []
        for path in php_files(project_root / self._config_dir):
            entries.extend(self._file_entries(path, {}))

        result = unique_sorted(entries)
        logger.debug(f"ConfigKeyExtractor found {len(result)} config keys")
        return result

    def category(self) -> str:
        return SymbolCategory.CONFIG

    def name(self) -> str:
        return "ConfigKeyExtractor"

    def source_paths(self) -> List[str]:
        return [self._config_dir]


class TranslationKeyExtractor(_ArrayKeyExtractor):
    """Extract translation keys from every locale of every lang root.

    PHP files under `<lang root>/<locale>/` yield `file` and `file.key`;
    JSON files `<lang root>/<locale>.json` yield their top-level keys verbatim.
    The `vendor` directory (package overrides) is skipped.
    """

    def __init__(self, lang_dirs: Sequence[str], nested_keys: str = "flatten"):
        super().__init__(nested_keys)
        self._lang_dirs = list(lang_dirs)

    def extract(self, project_root: Path) -> List[SymbolEntry]:
        entries: List[SymbolEntry] = []
        for relative in self._lang_dirs:
            lang_root = project_root / relative
            for entry in list_dir(lang_root):
                if entry.is_dir() and entry.name != "vendor":
                    for path in php_files(Path(entry.path)):
                        entries.extend(self._file_entries(path, {"locale": entry.name}))
                elif entry.is_file() and entry.name.endswith(".json"):
                    entries.extend(self._json_entries(Path(entry.path)))

        result = unique_sorted(entries)
        logger.debug(f"TranslationKeyExtractor found {len(result)} translation keys")
        return result

    def _json_entries(self, path: Path) -> List[SymbolEntry]:
        lines = read_lines(path)
        try:
            data = json.loads("\n".join(lines)) if lines else {}
        except ValueError as e:
            logger.debug(f"Skipping unparsable translation file {path}: {e}")
            return []
        if not isinstance(data, dict):
            return []

        locale = path.name[: -len(".json")]
        entries = []
        for key in data:
            line_number = next(
                (i for i, line in enumerate(lines, 1) if json.dumps(key) in line), 1
            )
            entries.append(
                SymbolEntry(
                    name=key,
                    category=SymbolCategory.TRANSLATION,
                    source_file=str(path),
                    extra={"locale": locale, "line": str(line_number), "format": "json"},
                )
            )
        return entries

    def category(self) -> str:
        return SymbolCategory.TRANSLATION

    def name(self) -> str:
        return "TranslationKeyExtractor"

    def source_paths(self) -> List[str]:
        return list(self._lang_dirs)
