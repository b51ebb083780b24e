import logging
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from core.triage import TriageStore

logger = logging.getLogger(__name__)

DEFAULT_TRASH_DIR_NAME = "_Trash"


class TrashStatus(Enum):
    MOVED = "moved"
    NOTHING_TO_DO = "nothing_to_do"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class TrashResult:
    status: TrashStatus
    moved: List[str] = field(default_factory=list)
    trash_dir: Optional[Path] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is TrashStatus.MOVED


class TrashTransaction:
    """
    Moves every rejected entry into a holding folder under the session root,
    then drops them from the working set.

    The batch is all-or-nothing as far as the working set is concerned: if
    any move fails the store is left untouched, even though files moved
    before the failure stay in the holding folder.
    """

    def __init__(self, root: Path, store: TriageStore,
                 confirm: Optional[Callable[[int], bool]] = None,
                 dir_name: str = DEFAULT_TRASH_DIR_NAME):
        self.root = Path(root)
        self.store = store
        self.confirm = confirm
        self.dir_name = dir_name

    @property
    def trash_dir(self) -> Path:
        return self.root / self.dir_name

    def run(self) -> TrashResult:
        rejects = self.store.rejects()
        if not rejects:
            return TrashResult(TrashStatus.NOTHING_TO_DO)
        if self.confirm is not None and not self.confirm(len(rejects)):
            logger.info(f"Moving {len(rejects)} rejects cancelled by user")
            return TrashResult(TrashStatus.CANCELLED)

        trash_dir = self.trash_dir
        moved: List[str] = []
        try:
            trash_dir.mkdir(exist_ok=True)
            for entry in rejects:
                entry.handle.move_to(trash_dir)
                moved.append(entry.name)
        except (OSError, shutil.Error) as e:
            logger.error(f"Moving rejects to {trash_dir} failed after {len(moved)} of {len(rejects)} files: {e}")
            return TrashResult(TrashStatus.FAILED, moved=moved, trash_dir=trash_dir, error=str(e))

        self.store.remove(moved)
        logger.info(f"Moved {len(moved)} files to {trash_dir}")
        return TrashResult(TrashStatus.MOVED, moved=moved, trash_dir=trash_dir)
