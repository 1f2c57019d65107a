# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for FileWatcher filtering and listener dispatch."""

from unittest.mock import Mock

import pytest
from watchdog.events import DirModifiedEvent, FileModifiedEvent, FileMovedEvent

from laravel_symbols.file_watcher import FileWatcher, _ProjectEventHandler


class TestFiltering:
    def test_initialization(self, tmp_path):
        watcher = FileWatcher(project_root=str(tmp_path))

        assert watcher.project_root == tmp_path.resolve()
        assert not watcher.is_running()

    def test_dependency_directories_ignored(self, tmp_path):
        watcher = FileWatcher(project_root=str(tmp_path))

        assert watcher.is_ignored(str(tmp_path / "vendor/laravel/framework/src/a.php"))
        assert watcher.is_ignored(str(tmp_path / "node_modules/vue/index.js"))
        assert watcher.is_ignored(str(tmp_path / "storage/framework/views/x.php"))
        assert not watcher.is_ignored(str(tmp_path / "routes/web.php"))

    def test_only_directory_parts_are_checked(self, tmp_path):
        watcher = FileWatcher(project_root=str(tmp_path))
        # A file named like an ignored directory is still watched
        assert not watcher.is_ignored(str(tmp_path / "config/storage"))

    def test_user_patterns(self, tmp_path):
        watcher = FileWatcher(project_root=str(tmp_path), ignore_patterns={"*.bak", "tmp/*"})

        assert watcher.is_ignored(str(tmp_path / "config/app.php.bak"))
        assert watcher.is_ignored(str(tmp_path / "tmp/scratch.php"))
        assert not watcher.is_ignored(str(tmp_path / "config/app.php"))

    def test_relevant_files(self, tmp_path):
        watcher = FileWatcher(project_root=str(tmp_path), component_extensions=[".vue", ".tsx"])

        assert watcher.is_relevant_file("config/app.php")
        assert watcher.is_relevant_file("lang/fr.json")
        assert watcher.is_relevant_file(".env")
        assert watcher.is_relevant_file(".env.testing")
        assert watcher.is_relevant_file("resources/js/Pages/Home.vue")
        assert not watcher.is_relevant_file("resources/css/app.css")
        assert not watcher.is_relevant_file("environment.txt")


class TestListeners:
    def test_notify_reaches_listeners_for_relevant_files(self, tmp_path):
        watcher = FileWatcher(project_root=str(tmp_path))
        callback = Mock()
        watcher.add_listener(callback)
        watcher.add_listener(callback)

        watcher.notify(str(tmp_path / "config/app.php"))
        watcher.notify(str(tmp_path / "README.md"))
        watcher.notify(str(tmp_path / "vendor/x/config.php"))

        callback.assert_called_once_with(str(tmp_path / "config/app.php"))

    def test_remove_listener(self, tmp_path):
        watcher = FileWatcher(project_root=str(tmp_path))
        callback = Mock()
        watcher.add_listener(callback)
        watcher.remove_listener(callback)

        watcher.notify(str(tmp_path / "config/app.php"))

        callback.assert_not_called()

    def test_failing_listener_does_not_stop_others(self, tmp_path):
        watcher = FileWatcher(project_root=str(tmp_path))
        failing = Mock(side_effect=RuntimeError("boom"))
        working = Mock()
        watcher.add_listener(failing)
        watcher.add_listener(working)

        watcher.notify(str(tmp_path / ".env"))

        working.assert_called_once()

    def test_event_handler_dispatch(self, tmp_path):
        watcher = FileWatcher(project_root=str(tmp_path))
        callback = Mock()
        watcher.add_listener(callback)
        handler = _ProjectEventHandler(watcher)

        handler.on_modified(FileModifiedEvent(str(tmp_path / "routes/web.php")))
        handler.on_modified(DirModifiedEvent(str(tmp_path / "routes")))
        handler.on_moved(
            FileMovedEvent(str(tmp_path / "lang/en/a.php"), str(tmp_path / "lang/en/b.php"))
        )

        assert [c.args[0] for c in callback.call_args_list] == [
            str(tmp_path / "routes/web.php"),
            str(tmp_path / "lang/en/a.php"),
            str(tmp_path / "lang/en/b.php"),
        ]


class TestLifecycle:
    def test_start_stop(self, tmp_path):
        watcher = FileWatcher(project_root=str(tmp_path))
        watcher.start()
        try:
            assert watcher.is_running()
        finally:
            watcher.stop()

        assert not watcher.is_running()

    def test_double_start_raises(self, tmp_path):
        watcher = FileWatcher(project_root=str(tmp_path))
        watcher.start()
        try:
            with pytest.raises(RuntimeError):
                watcher.start()
        finally:
            watcher.stop()
