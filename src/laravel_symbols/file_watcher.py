# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Source change watcher for cache invalidation.

Uses the watchdog library to monitor the Laravel project tree. Every relevant
create, modify, delete or move event is passed to the registered change
listeners, which map the path to the symbol categories it feeds (see
SymbolCache.invalidate_for_path).

Ignored:
- dependency and build directories (vendor, node_modules, storage, ...)
- files whose names match user-configured glob patterns

Relevant files are PHP sources, JSON translations, dotenv files and page
components; everything else is dropped before listeners run.

Known Limitations:
- No debouncing: an editor saving twice triggers two invalidations, which
  only costs one extra extraction on the next read
- Symlinked directories are followed by watchdog without validation that the
  resolved paths stay within the project root
"""

import fnmatch
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional, Set

from watchdog.events import FileMovedEvent, FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

if TYPE_CHECKING:
    from watchdog.observers.api import BaseObserver

logger = logging.getLogger(__name__)

# Listener signature: (changed file path) -> None
ChangeListener = Callable[[str], None]

OBSERVER_JOIN_TIMEOUT = 5.0


class FileWatcher:
    """Watches a Laravel project and reports changed source files.

    Usage:
        watcher = FileWatcher(project_root="/path/to/app")
        watcher.add_listener(cache.invalidate_for_path)
        watcher.start()
        ...
        watcher.stop()
    """

    ALWAYS_IGNORED = {
        ".git",
        "vendor",
        "node_modules",
        "storage",
        ".idea",
        ".vscode",
        ".phpunit.cache",
        "public",
    }

    RELEVANT_SUFFIXES = (".php", ".json")

    def __init__(
        self,
        project_root: str,
        component_extensions: Iterable[str] = (),
        ignore_patterns: Optional[Set[str]] = None,
    ):
        """
        Args:
            project_root: Laravel project root to watch recursively.
            component_extensions: Page component extensions to treat as relevant.
            ignore_patterns: Extra glob patterns, matched against the
                root-relative path and the bare file name.
        """
        self.project_root = Path(project_root).resolve()
        self.ignore_patterns = set(ignore_patterns or ())
        self._relevant_suffixes = self.RELEVANT_SUFFIXES + tuple(component_extensions)
        self._listeners: List[ChangeListener] = []
        self._observer: Optional["BaseObserver"] = None
        self._handler = _ProjectEventHandler(self)

        logger.debug(f"Watcher prepared for {self.project_root}")

    def is_ignored(self, file_path: str) -> bool:
        """Check if a path lies in an ignored directory or matches a user pattern."""
        path = Path(file_path)
        try:
            relative = path.relative_to(self.project_root)
        except ValueError:
            relative = path

        if any(part in self.ALWAYS_IGNORED for part in relative.parts[:-1]):
            return True

        candidates = (relative.as_posix(), path.name)
        return any(
            fnmatch.fnmatch(candidate, pattern)
            for pattern in self.ignore_patterns
            for candidate in candidates
        )

    def is_relevant_file(self, file_path: str) -> bool:
        """Check whether a file can feed any symbol index."""
        name = Path(file_path).name
        if name == ".env" or name.startswith(".env."):
            return True
        return name.endswith(self._relevant_suffixes)

    def add_listener(self, listener: ChangeListener) -> None:
        """Call `listener` with the path of each relevant change.

        Listeners run synchronously on the observer thread and should return
        quickly. Adding the same listener twice has no effect.
        """
        if listener in self._listeners:
            return
        self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def notify(self, file_path: str) -> None:
        """Pass a changed path to every listener, unless it is ignored or irrelevant."""
        if self.is_ignored(file_path) or not self.is_relevant_file(file_path):
            return

        logger.debug(f"Source changed: {file_path}")
        for listener in list(self._listeners):
            try:
                listener(file_path)
            except Exception as e:
                # Remaining listeners still run
                logger.error(f"Change listener {listener!r} failed for {file_path}: {e}")

    def start(self) -> None:
        """Start the watchdog observer thread.

        Raises:
            RuntimeError: If the watcher is already running.
        """
        if self.is_running():
            raise RuntimeError(f"Already watching {self.project_root}")

        observer = Observer()
        observer.schedule(  # type: ignore  # watchdog types vary by version
            self._handler, str(self.project_root), recursive=True
        )
        observer.daemon = True
        observer.start()  # type: ignore  # watchdog types vary by version
        self._observer = observer

        logger.info(f"Watching {self.project_root} for source changes")

    def stop(self) -> None:
        """Stop the observer and wait briefly for its thread to exit."""
        if not self.is_running():
            return
        assert self._observer is not None
        self._observer.stop()  # type: ignore  # watchdog types vary by version
        self._observer.join(timeout=OBSERVER_JOIN_TIMEOUT)
        self._observer = None
        logger.info(f"Stopped watching {self.project_root}")

    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()


class _ProjectEventHandler(FileSystemEventHandler):
    """Forwards file events to FileWatcher.notify; directory events are dropped."""

    def __init__(self, watcher: FileWatcher):
        super().__init__()
        self._watcher = watcher

    def _forward(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher.notify(str(event.src_path))

    def on_created(self, event: FileSystemEvent) -> None:
        self._forward(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._forward(event)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._forward(event)

    def on_moved(self, event: FileSystemEvent) -> None:
        # Both ends: the old path disappeared, the new one appeared
        if event.is_directory or not isinstance(event, FileMovedEvent):
            return
        self._watcher.notify(str(event.src_path))
        self._watcher.notify(str(event.dest_path))
