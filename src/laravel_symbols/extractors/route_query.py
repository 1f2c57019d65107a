# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Route extraction through `php artisan route:list --json`.

Route names can be registered programmatically (packages, loops, macros), so
static scanning misses some of them. This module asks the application itself.

The query runs as a subprocess in the project root, optionally wrapped by a
command prefix (an explicit one from configuration, or Laravel Sail when it
is enabled and installed). A timeout is always applied since the child
process may never exit. When a prefixed command fails the query is retried
once without the prefix, which covers Sail containers that are not running.
"""

import json
import logging
import shlex
import subprocess
from pathlib import Path
from typing import Any, List, Optional

from laravel_symbols.errors import ExternalQueryFailed, ExternalQueryTimeout
from laravel_symbols.extractors.base import SymbolExtractor, unique_sorted
from laravel_symbols.extractors.routes import RouteFileExtractor
from laravel_symbols.models import RouteRecord, SymbolCategory, SymbolEntry

logger = logging.getLogger(__name__)

SAIL_SCRIPT = "vendor/bin/sail"
COMPOSE_FILES = ("docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml")


def is_sail_available(project_root: Path) -> bool:
    """Check for a compose file and the vendor/bin/sail script."""
    has_compose = any((project_root / name).is_file() for name in COMPOSE_FILES)
    return has_compose and (project_root / SAIL_SCRIPT).is_file()


def _is_route_array(data: Any) -> bool:
    """An empty list or a list holding at least one route object."""
    return isinstance(data, list) and (not data or any(isinstance(item, dict) for item in data))


def parse_route_list(output: str) -> List[RouteRecord]:
    """Parse route:list JSON output.

    The first JSON array in the output is used. Noise around it (deprecation
    notices, Sail banners, bracketed log lines, PHP warnings printed after
    the array) is skipped.

    Raises:
        ExternalQueryFailed: If no JSON array of route objects can be parsed.
    """
    decoder = json.JSONDecoder()
    start = output.find("[")
    if start < 0:
        raise ExternalQueryFailed("route:list produced no JSON array")

    last_error: Optional[ValueError] = None
    while start >= 0:
        try:
            data, _ = decoder.raw_decode(output, start)
        except ValueError as e:
            last_error = e
        else:
            if _is_route_array(data):
                return [RouteRecord.from_artisan(item) for item in data if isinstance(item, dict)]
        start = output.find("[", start + 1)

    if last_error is not None:
        raise ExternalQueryFailed(f"Unable to parse route:list JSON: {last_error}")
    raise ExternalQueryFailed("Expected a JSON array from route:list")


class ArtisanRouteQuery:
    """Runs `php artisan route:list --json` with prefix handling and a timeout."""

    def __init__(
        self,
        php_binary: str = "php",
        timeout: float = 15,
        command_prefix: str = "",
        sail_enabled: bool = True,
    ):
        """Initialize the query.

        Args:
            php_binary: PHP executable.
            timeout: Seconds before the child process is killed.
            command_prefix: Explicit wrapper command, split with shlex.
            sail_enabled: Wrap with Sail when no explicit prefix is given and
                Sail is installed in the project.
        """
        self._php_binary = php_binary
        self._timeout = timeout
        self._command_prefix = command_prefix
        self._sail_enabled = sail_enabled

    def prefix_for(self, project_root: Path) -> List[str]:
        """Command prefix to use for this project (possibly empty)."""
        if self._command_prefix:
            return shlex.split(self._command_prefix)
        if self._sail_enabled and is_sail_available(project_root):
            return [f"./{SAIL_SCRIPT}"]
        return []

    def base_command(self) -> List[str]:
        return [self._php_binary, "artisan", "route:list", "--json"]

    def run(self, project_root: Path) -> List[RouteRecord]:
        """Run the query and return the parsed routes.

        Raises:
            ExternalQueryTimeout: If the command does not finish in time.
            ExternalQueryFailed: If artisan is missing, the command fails, or
                the output cannot be parsed.
        """
        if not (project_root / "artisan").is_file():
            raise ExternalQueryFailed(f"No artisan script in {project_root}")

        prefix = self.prefix_for(project_root)
        command = prefix + self.base_command()
        try:
            return parse_route_list(self._execute(command, project_root))
        except ExternalQueryTimeout:
            raise
        except ExternalQueryFailed as e:
            if not prefix:
                raise
            logger.info(f"Prefixed route query failed ({e}), retrying without prefix")

        return parse_route_list(self._execute(self.base_command(), project_root))

    def _execute(self, command: List[str], cwd: Path) -> str:
        command_text = shlex.join(command)
        logger.debug(f"Running external route query: {command_text} (cwd={cwd})")
        try:
            completed = subprocess.run(
                command,
                cwd=str(cwd),
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise ExternalQueryTimeout(command_text, self._timeout) from e
        except OSError as e:
            raise ExternalQueryFailed(f"Unable to start {command_text}: {e}") from e

        if completed.returncode != 0:
            detail = (completed.stderr or completed.stdout or "").strip()
            raise ExternalQueryFailed(
                f"{command_text} exited with status {completed.returncode}: {detail[:500]}"
            )
        return completed.stdout


def route_entries(records: List[RouteRecord], source_file: str) -> List[SymbolEntry]:
    """Convert named route records to route SymbolEntries."""
    entries = []
    for record in records:
        if not record.name:
            continue
        extra = {"uri": record.uri, "method": "|".join(record.methods)}
        if record.action:
            extra["action"] = record.action
        entries.append(
            SymbolEntry(
                name=record.name,
                category=SymbolCategory.ROUTE,
                source_file=source_file,
                extra=extra,
            )
        )
    return entries


class ArtisanRouteExtractor(SymbolExtractor):
    """Route names from the artisan route query.

    Failures (ExternalQueryFailed, including timeouts) are logged and
    degrade to [], combined with whatever the static scan finds. The failure
    of the most recent extraction is kept in last_error.
    """

    def __init__(self, query: ArtisanRouteQuery, fallback: Optional[RouteFileExtractor] = None):
        """Initialize the extractor.

        Args:
            query: The artisan query runner.
            fallback: Static extractor whose results are merged in, so names
                and line numbers stay available when the query fails.
        """
        self._query = query
        self._fallback = fallback
        self.last_error: Optional[ExternalQueryFailed] = None

    def extract(self, project_root: Path) -> List[SymbolEntry]:
        static_entries = self._fallback.extract(project_root) if self._fallback else []

        try:
            records = self._query.run(project_root)
        except ExternalQueryFailed as e:
            logger.warning(f"External route query failed, using static routes only: {e}")
            self.last_error = e
            return static_entries
        self.last_error = None

        queried = route_entries(records, str(project_root / "artisan"))
        static_by_name = {entry.name: entry for entry in static_entries}

        merged: List[SymbolEntry] = []
        for entry in queried:
            static = static_by_name.pop(entry.name, None)
            if static is None:
                merged.append(entry)
                continue
            # Keep the defining file and line from the scan, prefer artisan extras
            merged.append(
                SymbolEntry(
                    name=entry.name,
                    category=entry.category,
                    source_file=static.source_file,
                    extra={**static.extra, **entry.extra},
                )
            )
        merged.extend(static_by_name.values())

        result = unique_sorted(merged)
        logger.debug(f"ArtisanRouteExtractor found {len(result)} route names")
        return result

    def category(self) -> str:
        return SymbolCategory.ROUTE

    def name(self) -> str:
        return "ArtisanRouteExtractor"

    def source_paths(self) -> List[str]:
        paths = self._fallback.source_paths() if self._fallback else []
        return paths + ["routes"]

    def is_external(self) -> bool:
        return True
