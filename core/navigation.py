import logging
from typing import List, Optional

from core.triage import FileEntry, SortMode, Status, TriageStore

logger = logging.getLogger(__name__)

MIN_COLUMNS = 4
MAX_COLUMNS = 12


class NavigationController:
    """
    Grid/viewer state over a TriageStore: the sort mode, the grid column count
    and the index of the entry open in the single-item viewer.  The index
    always refers to the view produced by the current sort mode.
    """

    def __init__(self, store: TriageStore, sort_mode: SortMode = SortMode.NAME_ASC, column_count: int = 6):
        self.store = store
        self.sort_mode = sort_mode
        self.column_count = self._clamp_columns(column_count)
        self.selected_index: Optional[int] = None

    def view(self) -> List[FileEntry]:
        return self.store.sorted_view(self.sort_mode)

    @property
    def selected_entry(self) -> Optional[FileEntry]:
        if self.selected_index is None:
            return None
        view = self.view()
        if 0 <= self.selected_index < len(view):
            return view[self.selected_index]
        return None

    def open(self, index: int) -> bool:
        """Open the viewer on *index*. Out-of-range indices are ignored."""
        return self.navigate(index)

    def close(self) -> None:
        self.selected_index = None

    def navigate(self, target_index: int) -> bool:
        """Select *target_index* if it lies inside the view; no wraparound."""
        if 0 <= target_index < len(self.store):
            self.selected_index = target_index
            return True
        logger.debug(f"Ignoring navigation to {target_index} (view has {len(self.store)} entries)")
        return False

    def next(self) -> bool:
        if self.selected_index is None:
            return False
        return self.navigate(self.selected_index + 1)

    def previous(self) -> bool:
        if self.selected_index is None:
            return False
        return self.navigate(self.selected_index - 1)

    def mark(self, name: str, status: Status) -> FileEntry:
        return self.store.mark(name, status)

    def mark_selected(self, status: Status) -> Optional[FileEntry]:
        """Mark the entry under the cursor. The cursor keeps its index, not its entry."""
        entry = self.selected_entry
        if entry is None:
            return None
        return self.store.mark(entry.name, status)

    def set_sort_mode(self, mode: SortMode) -> None:
        self.sort_mode = mode

    def set_column_count(self, count: int) -> int:
        self.column_count = self._clamp_columns(count)
        return self.column_count

    def reconcile(self) -> None:
        """Clamp or clear the selection after the working set shrank."""
        if self.selected_index is None:
            return
        size = len(self.store)
        if size == 0:
            self.selected_index = None
        elif self.selected_index >= size:
            self.selected_index = size - 1

    @staticmethod
    def _clamp_columns(count: int) -> int:
        return max(MIN_COLUMNS, min(MAX_COLUMNS, int(count)))
