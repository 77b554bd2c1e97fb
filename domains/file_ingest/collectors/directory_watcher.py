"""
Directory watcher for the file ingestion trigger.

Wraps a watchdog observer and reports every file that appears below a root
directory. Watchdog delivers events on its own thread; callbacks are handed
back to the asyncio loop that started the watcher.
"""

import asyncio
import os
from pathlib import Path
from typing import Callable, Optional

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from app.utils.helpers import iter_files, normalise_path

AddedCallback = Callable[[str], None]


class AddedFileHandler(FileSystemEventHandler):
    """Forwards file creations and moves into the tree as "added" events."""

    def __init__(self, on_added: AddedCallback, root: Path):
        super().__init__()
        self.on_added = on_added
        self.root = root

    def on_created(self, event: FileSystemEvent) -> None:
        """Report a newly created file."""
        if event.is_directory:
            return
        self.on_added(os.fsdecode(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        """Report a file renamed or moved into the watched tree."""
        if event.is_directory:
            return

        dest = getattr(event, "dest_path", None)
        if not dest:
            return

        # Lexical containment; a symlink moved in may point outside the tree
        dest_path = Path(os.path.abspath(os.fsdecode(dest)))
        if dest_path == self.root or self.root in dest_path.parents:
            self.on_added(str(dest_path))


class DirectoryWatcher:
    """
    Observes one root directory for added files.

    ``on_added`` always runs on the event loop given at construction (or the
    loop running when the watcher is created), never on the observer thread.
    """

    def __init__(
        self,
        root: Path,
        on_added: AddedCallback,
        *,
        recursive: bool = True,
        replay_existing: bool = False,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.root = normalise_path(Path(root))
        self.on_added = on_added
        self.recursive = recursive
        self.replay_existing = replay_existing
        self.loop = loop or asyncio.get_running_loop()
        self.observer: Optional[Observer] = None
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def _dispatch(self, path: str) -> None:
        if not self._active or self.loop.is_closed():
            return
        try:
            self.loop.call_soon_threadsafe(self._deliver, path)
        except RuntimeError as e:
            # Loop closed between the check and the call
            logger.debug(f"Dropping event for {path}: {e}")

    def _deliver(self, path: str) -> None:
        if self._active:
            self.on_added(path)

    def start(self) -> None:
        """
        Start observing the root directory.

        Blocking; call from a worker thread when running inside the loop.

        Raises:
            FileNotFoundError: root directory does not exist
        """
        if self._active:
            return

        if not self.root.is_dir():
            raise FileNotFoundError(f"Watch directory does not exist: {self.root}")

        observer = Observer()
        observer.schedule(AddedFileHandler(self._dispatch, self.root), str(self.root), recursive=self.recursive)
        observer.daemon = True
        observer.start()

        self.observer = observer
        self._active = True
        logger.info(f"Watching {self.root} (recursive={self.recursive})")

        if self.replay_existing:
            count = 0
            for path in iter_files(self.root, recursive=self.recursive):
                self._dispatch(str(path))
                count += 1
            logger.info(f"Replayed {count} existing file(s) in {self.root}")

    def stop(self) -> None:
        """Stop observing. Safe to call more than once."""
        if not self._active:
            return

        self._active = False
        observer, self.observer = self.observer, None
        if observer is not None:
            observer.stop()
            observer.join()
        logger.info(f"Stopped watching {self.root}")
