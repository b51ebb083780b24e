import logging
import re
import unicodedata
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional

from core.file_ops import FileHandle

logger = logging.getLogger(__name__)


class Status(Enum):
    UNREVIEWED = "unreviewed"
    KEEP = "keep"
    REJECT = "reject"


class SortMode(Enum):
    NAME_ASC = "name_asc"
    NAME_DESC = "name_desc"
    STATUS = "status"


STATUS_RANK: Dict[Status, int] = {
    Status.KEEP: 1,
    Status.UNREVIEWED: 2,
    Status.REJECT: 3,
}

# Character classes in collation order: whitespace < punctuation and
# symbols < digit runs < letters.
_SPACE, _PUNCT, _DIGIT, _LETTER = range(4)

_TOKENS = re.compile(r"(\d+)|(.)", re.DOTALL)


def natural_sort_key(name: str) -> tuple:
    """
    Key for locale-style, numeric-aware ordering of file names.

    Names are compared token by token: each digit run is one token compared
    by value ('IMG2' before 'IMG10'), every other character is its own token.
    Punctuation sorts before digits and digits before letters, so
    'photo.jpg' comes before 'photo2.jpg' and 'IMG_1234' before 'IMG_E1234'.
    Letters compare without case or accents; names equal under those rules
    keep their relative order in a stable sort.
    """
    key = []
    for match in _TOKENS.finditer(unicodedata.normalize("NFD", name)):
        digits, char = match.groups()
        if digits:
            key.append((_DIGIT, int(digits), ""))
        elif unicodedata.combining(char):
            continue
        elif char.isalpha():
            key.append((_LETTER, 0, char.casefold()))
        elif char.isspace():
            key.append((_SPACE, 0, " "))
        else:
            key.append((_PUNCT, 0, char))
    return tuple(key)


@dataclass
class FileEntry:
    name: str
    handle: FileHandle
    status: Status = Status.UNREVIEWED


class TriageStore:
    """The working set of a session: one FileEntry per name, in enumeration order."""

    def __init__(self, entries: Optional[Iterable[FileEntry]] = None):
        self._entries: Dict[str, FileEntry] = {}
        for entry in entries or ():
            if entry.name in self._entries:
                logger.warning(f"Duplicate entry name {entry.name!r} ignored")
                continue
            self._entries[entry.name] = entry

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def get(self, name: str) -> FileEntry:
        """Return the entry called *name*; raises KeyError if there is none."""
        return self._entries[name]

    def entries(self) -> List[FileEntry]:
        return list(self._entries.values())

    def mark(self, name: str, status: Status) -> FileEntry:
        entry = self._entries[name]
        if entry.status is not status:
            logger.debug(f"{name}: {entry.status.value} -> {status.value}")
            entry.status = status
        return entry

    def rejects(self) -> List[FileEntry]:
        return [e for e in self._entries.values() if e.status is Status.REJECT]

    def counts(self) -> Dict[Status, int]:
        counts = {status: 0 for status in Status}
        for entry in self._entries.values():
            counts[entry.status] += 1
        return counts

    def remove(self, names: Iterable[str]) -> int:
        """Drop the named entries; unknown names are ignored. Returns the number removed."""
        removed = 0
        for name in names:
            if self._entries.pop(name, None) is not None:
                removed += 1
        if removed:
            logger.info(f"Removed {removed} entries from the working set")
        return removed

    def sorted_view(self, mode: SortMode) -> List[FileEntry]:
        """Return a new list of entries ordered by *mode*; the store itself is untouched."""
        entries = list(self._entries.values())
        if mode is SortMode.NAME_ASC:
            entries.sort(key=lambda e: natural_sort_key(e.name))
        elif mode is SortMode.NAME_DESC:
            entries.sort(key=lambda e: natural_sort_key(e.name), reverse=True)
        elif mode is SortMode.STATUS:
            entries.sort(key=lambda e: STATUS_RANK[e.status])
        return entries
