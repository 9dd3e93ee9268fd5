import os
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from harmony.services.ingestion import is_music_file


class FileWatcher(FileSystemEventHandler):
    """
    Watches the import folder and hands each new audio file to on_file once
    it has stopped growing. A single worker keeps files in arrival order.
    """

    def __init__(self, import_dir: Path, on_file: Callable[[Path], object]):
        self.import_dir = import_dir
        self.on_file = on_file
        self.observer = None
        self.executor = ThreadPoolExecutor(max_workers=1)
        # Track already-seen paths to avoid double-processing duplicate FS events.
        self.processed: set[Path] = set()

    def on_created(self, event: FileSystemEvent):
        if event.is_directory:
            return
        self.schedule(Path(os.fsdecode(event.src_path)))

    def on_moved(self, event: FileSystemEvent):
        if event.is_directory:
            return
        self.schedule(Path(os.fsdecode(event.dest_path)))

    def schedule(self, path: Path) -> bool:
        if path in self.processed:
            return False
        if not is_music_file(path):
            return False

        self.processed.add(path)
        self.executor.submit(self.process_file_after_stable, path)
        return True

    def start_file_watcher(self):
        if self.observer is None or not self.observer.is_alive():
            self.import_dir.mkdir(parents=True, exist_ok=True)
            self.observer = Observer()
            self.observer.schedule(self, str(self.import_dir), recursive=True)
            self.observer.start()
            print(f"Import folder watcher started for {self.import_dir}")

    def stop_file_watcher(self):
        if self.observer is not None:
            self.observer.stop()
            self.observer.join()
            self.observer = None
            print("Import folder watcher stopped")
        self.executor.shutdown(wait=False, cancel_futures=True)
        self.executor = ThreadPoolExecutor(max_workers=1)

    def process_file_after_stable(self, path: Path) -> bool:
        if not wait_until_ready(path):
            print(f"Skipping {path}, it never became readable")
            return False
        print(f"Importing {path} from the watch folder")
        try:
            self.on_file(path)
        except Exception as e:
            # Runs on the worker thread; nothing above it would report this
            print(f"Import of {path} failed: {e}")
            return False
        return True


def wait_until_ready(path: Path) -> bool:
    if not wait_until_stable(path):
        return False
    return can_open_for_read(path)


def wait_until_stable(path: str | Path, timeout: float = 60, interval: float = 0.2) -> bool:
    start_time = time.time()

    if os.path.isdir(path):
        return False

    last_size = -1
    last_mtime = -1.0
    while time.time() - start_time < timeout:
        if not os.path.exists(path):
            return False
        try:
            current_size = os.path.getsize(path)
            current_mtime = os.path.getmtime(path)
        except OSError:
            return False

        if current_size == last_size and current_mtime == last_mtime:
            return True

        last_size = current_size
        last_mtime = current_mtime
        time.sleep(interval)

    return False


def can_open_for_read(path: Path) -> bool:
    if os.path.isdir(path):
        return False
    if not os.path.exists(path):
        return False
    try:
        with open(path, "rb"):
            return True
    except OSError:
        return False
