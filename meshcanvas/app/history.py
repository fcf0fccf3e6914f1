"""Linear undo/redo over point-list snapshots."""

from __future__ import annotations

import logging
from typing import Optional

from meshcanvas.types import Point, clone_points

logger = logging.getLogger(__name__)


class HistoryManager:
    """Branch-discarding history.

    ``entries[cursor]`` is the state currently shown. Committing after an
    undo drops every entry past the cursor. Entries are deep copies and are
    never handed out directly.
    """

    def __init__(self) -> None:
        self.entries: list[list[Point]] = []
        self.cursor: int = -1

    def commit(self, snapshot: list[Point]) -> None:
        del self.entries[self.cursor + 1:]
        self.entries.append(clone_points(snapshot))
        self.cursor = len(self.entries) - 1

    def undo(self) -> Optional[list[Point]]:
        """Step back. Returns a copy of the now-current entry, or None at the start."""
        if self.cursor <= 0:
            return None
        self.cursor -= 1
        logger.debug("undo -> %d/%d", self.cursor, len(self.entries))
        return clone_points(self.entries[self.cursor])

    def redo(self) -> Optional[list[Point]]:
        """Step forward. Returns a copy of the now-current entry, or None at the end."""
        if self.cursor >= len(self.entries) - 1:
            return None
        self.cursor += 1
        logger.debug("redo -> %d/%d", self.cursor, len(self.entries))
        return clone_points(self.entries[self.cursor])

    def can_undo(self) -> bool:
        return self.cursor > 0

    def can_redo(self) -> bool:
        return self.cursor < len(self.entries) - 1

    def clear(self) -> None:
        self.entries.clear()
        self.cursor = -1

    def __len__(self) -> int:
        return len(self.entries)
