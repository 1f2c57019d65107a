# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Project root discovery and the explicit project context.

Initialization order: the project root is discovered first, then the
configuration is loaded from that root, and only then are extractors, the
cache and the resolver constructed from the resulting ProjectContext.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from laravel_symbols.config import Config
from laravel_symbols.errors import ProjectNotFoundError

logger = logging.getLogger(__name__)

LARAVEL_PACKAGES = ("laravel/framework", "laravel/laravel")


def _composer_requires_laravel(composer_json: Path) -> bool:
    try:
        data = json.loads(composer_json.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.debug(f"Unable to read {composer_json}: {e}")
        return False

    if not isinstance(data, dict):
        return False

    for section in ("require", "require-dev"):
        packages = data.get(section) or {}
        if isinstance(packages, dict) and any(pkg in packages for pkg in LARAVEL_PACKAGES):
            return True
    return data.get("name") in LARAVEL_PACKAGES


def is_laravel_root(directory: Path) -> bool:
    """Check whether a directory looks like a Laravel project root.

    An `artisan` file is sufficient; otherwise composer.json must require
    the Laravel framework.
    """
    if (directory / "artisan").is_file():
        return True
    composer_json = directory / "composer.json"
    return composer_json.is_file() and _composer_requires_laravel(composer_json)


def discover_project_root(start: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """Walk from `start` (default: cwd) up to the filesystem root.

    Returns:
        The first directory that looks like a Laravel root, or None.
    """
    current = Path(start or Path.cwd()).resolve()
    if current.is_file():
        current = current.parent

    for directory in [current, *current.parents]:
        if is_laravel_root(directory):
            logger.debug(f"Laravel project root discovered at {directory}")
            return directory
    return None


@dataclass(frozen=True)
class ProjectContext:
    """Project root plus configuration, passed to every component."""

    root: Path
    config: Config

    @classmethod
    def discover(
        cls, start: Optional[Union[str, Path]] = None, config: Optional[Config] = None
    ) -> "ProjectContext":
        """Discover the root from `start` and load its configuration.

        Raises:
            ProjectNotFoundError: If no Laravel project encloses `start`.
        """
        root = discover_project_root(start)
        if root is None:
            raise ProjectNotFoundError(f"No Laravel project found from {start or Path.cwd()}")
        return cls.for_root(root, config)

    @classmethod
    def for_root(cls, root: Union[str, Path], config: Optional[Config] = None) -> "ProjectContext":
        """Build a context for a known root without discovery."""
        root_path = Path(root).resolve()
        return cls(root=root_path, config=config or Config.for_project(root_path))

    def path(self, relative: str) -> Path:
        """Absolute path for a project-relative path."""
        return self.root / relative

    def paths(self, relatives: List[str]) -> List[Path]:
        """Absolute paths for project-relative paths, order preserved."""
        return [self.root / rel for rel in relatives]
