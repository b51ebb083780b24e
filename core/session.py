import fnmatch
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, List, Optional

from core.file_ops import LocalFileHandle
from core.formats import is_allowed
from core.navigation import NavigationController
from core.preview_cache import PreviewCache
from core.preview_resolver import PreviewResolver
from core.trash import DEFAULT_TRASH_DIR_NAME, TrashResult, TrashTransaction
from core.triage import FileEntry, SortMode, TriageStore

logger = logging.getLogger(__name__)


class FolderOpenError(Exception):
    """The chosen folder could not be enumerated."""


class SessionRoot:
    """The folder a session works on."""

    def __init__(self, path, ignore_patterns: Optional[List[str]] = None,
                 trash_dir_name: str = DEFAULT_TRASH_DIR_NAME):
        self.path = Path(path).expanduser()
        self.ignore_patterns = ignore_patterns if ignore_patterns is not None else ["._*"]
        self.trash_dir_name = trash_dir_name

    def is_supported_file(self, filename: str) -> bool:
        for pattern in self.ignore_patterns:
            if fnmatch.fnmatch(filename, pattern):
                logger.debug(f"Skipping {filename}: matches ignore pattern '{pattern}'")
                return False
        return is_allowed(filename)

    def enumerate(self) -> List[FileEntry]:
        """Return one unreviewed entry per supported regular file directly inside the folder."""
        if not self.path.is_dir():
            raise FolderOpenError(f"Not a directory: {self.path}")
        entries = []
        try:
            with os.scandir(self.path) as it:
                for dirent in it:
                    if dirent.is_file() and self.is_supported_file(dirent.name):
                        entries.append(FileEntry(dirent.name, LocalFileHandle(Path(dirent.path))))
        except OSError as e:
            raise FolderOpenError(f"Error scanning {self.path}: {e}") from e
        logger.info(f"Found {len(entries)} photos in {self.path}")
        return entries

    @property
    def trash_dir(self) -> Path:
        return self.path / self.trash_dir_name


class Session:
    """
    Everything that lives as long as one open folder: the root, the working
    set, the navigation state, the preview cache and its worker pool.
    Replaced wholesale when another folder is opened; close() releases it.
    """

    def __init__(self, root: SessionRoot, resolver: PreviewResolver,
                 cache_failures: bool = True, workers: int = 4,
                 sort_mode: SortMode = SortMode.NAME_ASC, column_count: int = 6):
        self.root = root
        self.store = TriageStore(root.enumerate())
        self.navigation = NavigationController(self.store, sort_mode, column_count)
        self.preview_cache = PreviewCache(resolver, cache_failures=cache_failures)
        self.executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="preview")
        self.closed = False

    @classmethod
    def open(cls, folder, config_manager, resolver: PreviewResolver) -> "Session":
        """Open *folder* with settings from *config_manager*; raises FolderOpenError."""
        root = SessionRoot(
            folder,
            ignore_patterns=config_manager.get("ignore_patterns", ["._*"]),
            trash_dir_name=config_manager.get("trash.dir_name", DEFAULT_TRASH_DIR_NAME),
        )
        try:
            sort_mode = SortMode(config_manager.get("triage.default_sort", SortMode.NAME_ASC.value))
        except ValueError:
            logger.warning("Unknown triage.default_sort in config; using name_asc")
            sort_mode = SortMode.NAME_ASC
        return cls(
            root,
            resolver,
            cache_failures=config_manager.get("preview.cache_failures", True),
            workers=config_manager.get("preview.workers", 4),
            sort_mode=sort_mode,
            column_count=config_manager.get("triage.default_columns", 6),
        )

    def request_preview(self, entry: FileEntry):
        """Future of the entry's Preview (or None when no preview is available)."""
        return self.preview_cache.request_async(entry.name, entry.handle, self.executor)

    def move_rejects_to_trash(self, confirm: Optional[Callable[[int], bool]] = None) -> TrashResult:
        result = TrashTransaction(self.root.path, self.store, confirm, self.root.trash_dir_name).run()
        if result.succeeded:
            for name in result.moved:
                self.preview_cache.invalidate(name)
            self.navigation.reconcile()
        return result

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.navigation.close()
        # Queued resolutions drain as no-ops; running ones finish and are dropped.
        self.preview_cache.close()
        self.executor.shutdown(wait=False)
        logger.info(f"Closed session for {self.root.path}")
