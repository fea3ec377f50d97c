"""Snapshot handed from the revision walker to the file scanner."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


class StaleSnapshotError(RuntimeError):
    """A snapshot was read after the walker had moved to another revision."""


@dataclass(eq=False)
class ScanSnapshot:
    """The working tree as it stands right after *revision* was checked out.

    Valid only until the walker materializes the next revision; after that
    ``ensure_current`` raises instead of letting a reader see another
    revision's files under this revision's name.
    """

    revision: str
    root: Path
    _current: bool = field(default=True, init=False, repr=False)

    @property
    def is_current(self) -> bool:
        return self._current

    def expire(self) -> None:
        self._current = False

    def ensure_current(self) -> None:
        if not self._current:
            raise StaleSnapshotError(
                f"snapshot of {self.revision} is stale; the working tree has moved on"
            )
