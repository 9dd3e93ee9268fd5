from __future__ import annotations

import time
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

import harmony.services.file_watcher as file_watcher
from harmony.services.file_watcher import FileWatcher


def fs_event(src_path: str, is_directory: bool = False, dest_path: str = "") -> MagicMock:
    event = MagicMock()
    event.is_directory = is_directory
    event.src_path = src_path
    event.dest_path = dest_path
    return event


class TestFileWatcherLifecycle:
    def test_start_file_watcher__already_running__is_idempotent(self, tmp_path: Path):
        watcher = FileWatcher(tmp_path, lambda path: True)

        observer = MagicMock()
        observer.is_alive.return_value = True

        with patch("harmony.services.file_watcher.Observer", return_value=observer) as Observer:
            watcher.start_file_watcher()
            watcher.start_file_watcher()

        Observer.assert_called_once()
        observer.schedule.assert_called_once()
        observer.start.assert_called_once()

    def test_start_file_watcher__missing_import_dir__created(self, tmp_path: Path):
        import_dir = tmp_path / "import"
        watcher = FileWatcher(import_dir, lambda path: True)

        with patch("harmony.services.file_watcher.Observer", return_value=MagicMock()):
            watcher.start_file_watcher()

        assert import_dir.is_dir()

    def test_stop_file_watcher__not_started__is_noop(self, tmp_path: Path):
        watcher = FileWatcher(tmp_path, lambda path: True)
        watcher.stop_file_watcher()
        assert watcher.observer is None

    def test_stop_file_watcher__started__stops_and_clears_observer(self, tmp_path: Path):
        watcher = FileWatcher(tmp_path, lambda path: True)
        observer = MagicMock()
        watcher.observer = observer

        watcher.stop_file_watcher()

        observer.stop.assert_called_once()
        observer.join.assert_called_once()
        assert watcher.observer is None


class TestCanOpenForRead:
    @pytest.mark.parametrize("content", [b"", b"hello"])
    def test_can_open_for_read__existing_file__returns_true(self, tmp_path: Path, content: bytes):
        path = tmp_path / "file.bin"
        path.write_bytes(content)
        assert file_watcher.can_open_for_read(path) is True

    def test_can_open_for_read__missing_path__returns_false(self, tmp_path: Path):
        assert file_watcher.can_open_for_read(tmp_path / "missing.bin") is False

    def test_can_open_for_read__directory__returns_false(self, tmp_path: Path):
        d = tmp_path / "dir"
        d.mkdir()
        assert file_watcher.can_open_for_read(d) is False


class TestWaitUntilStable:
    def test_wait_until_stable__stable_file__returns_true(self, tmp_path: Path):
        path = tmp_path / "stable.mp3"
        path.write_bytes(b"stable")
        assert file_watcher.wait_until_stable(path, timeout=0.2, interval=0.01) is True

    def test_wait_until_stable__file_keeps_changing_until_timeout__returns_false(self, tmp_path: Path):
        path = tmp_path / "changing.mp3"
        path.write_bytes(b"initial")

        real_sleep = time.sleep

        def mutate_on_sleep(seconds: float):
            with open(path, "ab") as f:
                f.write(b"x")
            real_sleep(min(seconds, 0.001))

        with patch("harmony.services.file_watcher.time.sleep", side_effect=mutate_on_sleep):
            assert file_watcher.wait_until_stable(path, timeout=0.05, interval=0.01) is False

    def test_wait_until_stable__missing_file__returns_false(self, tmp_path: Path):
        assert file_watcher.wait_until_stable(tmp_path / "missing.mp3", timeout=0.05, interval=0.01) is False

    def test_wait_until_stable__permission_error_on_stat__returns_false(self, tmp_path: Path):
        path = tmp_path / "file.mp3"
        path.write_bytes(b"x")

        with patch("harmony.services.file_watcher.os.path.getsize", side_effect=PermissionError):
            assert file_watcher.wait_until_stable(path, timeout=0.2, interval=0.01) is False


class TestProcessFileAfterStable:
    def test_process_file_after_stable__ready__calls_callback_and_returns_true(self, tmp_path: Path):
        path = tmp_path / "ready.mp3"
        path.write_bytes(b"x")

        on_file = MagicMock(return_value=None)
        watcher = FileWatcher(tmp_path, on_file)

        with patch("harmony.services.file_watcher.wait_until_ready", return_value=True):
            assert watcher.process_file_after_stable(path) is True

        on_file.assert_called_once_with(path)

    def test_process_file_after_stable__not_ready__does_not_call_callback(self, tmp_path: Path):
        path = tmp_path / "not_ready.mp3"
        on_file = MagicMock()
        watcher = FileWatcher(tmp_path, on_file)

        with patch("harmony.services.file_watcher.wait_until_ready", return_value=False):
            assert watcher.process_file_after_stable(path) is False

        on_file.assert_not_called()

    def test_process_file_after_stable__callback_raises__returns_false(self, tmp_path: Path):
        path = tmp_path / "boom.mp3"
        watcher = FileWatcher(tmp_path, MagicMock(side_effect=RuntimeError("boom")))

        with patch("harmony.services.file_watcher.wait_until_ready", return_value=True):
            assert watcher.process_file_after_stable(path) is False


class TestOnCreated:
    def test_on_created__directory_event__ignored(self, tmp_path: Path):
        watcher = FileWatcher(tmp_path, lambda path: True)

        with patch.object(watcher.executor, "submit") as submit:
            watcher.on_created(fs_event("/some/directory", is_directory=True))

        submit.assert_not_called()
        assert watcher.processed == set()

    def test_on_created__not_audio__ignored(self, tmp_path: Path):
        watcher = FileWatcher(tmp_path, lambda path: True)

        with patch.object(watcher.executor, "submit") as submit:
            watcher.on_created(fs_event("/some/cover.jpg"))

        submit.assert_not_called()

    def test_on_created__already_processed_path__ignored(self, tmp_path: Path):
        watcher = FileWatcher(tmp_path, lambda path: True)
        already = Path("/some/file.mp3")
        watcher.processed.add(already)

        with patch.object(watcher.executor, "submit") as submit:
            watcher.on_created(fs_event(str(already)))

        submit.assert_not_called()
        assert watcher.processed == {already}

    def test_on_created__new_audio_file__scheduled_and_marked_processed(self, tmp_path: Path):
        watcher = FileWatcher(tmp_path, lambda path: True)
        expected_path = Path("/some/new_file.flac")

        with patch.object(watcher.executor, "submit") as submit:
            watcher.on_created(fs_event(str(expected_path)))

        assert expected_path in watcher.processed
        submit.assert_called_once_with(watcher.process_file_after_stable, expected_path)

    def test_on_moved__into_folder__scheduled_by_destination(self, tmp_path: Path):
        watcher = FileWatcher(tmp_path, lambda path: True)
        destination = Path("/import/renamed.mp3")

        with patch.object(watcher.executor, "submit") as submit:
            watcher.on_moved(fs_event("/import/.partial", dest_path=str(destination)))

        submit.assert_called_once_with(watcher.process_file_after_stable, destination)
