"""Editor workspace collaborator.

Tracks which note is active and turns "focus or open" requests into a
state change. A desktop integration can subclass ``Workspace`` and open
the note in an editor from ``focus_or_open``.
"""
import logging
import threading
from collections import deque
from typing import Deque, List, Optional

from actions_uri.storage.base import NoteFile, NoteStore

logger = logging.getLogger(__name__)

# Number of recently focused notes remembered
RECENT_NOTES_LIMIT = 50


class Workspace:
    """Active-note tracking for the vault."""

    def __init__(self, store: NoteStore):
        self.store = store
        self._active_path: Optional[str] = None
        self._history: Deque[str] = deque(maxlen=RECENT_NOTES_LIMIT)
        self._lock = threading.Lock()

    def focus_or_open(self, path: str) -> None:
        """Make the note at ``path`` the active one."""
        with self._lock:
            self._active_path = path
            self._history.append(path)
        logger.info(f"Focused note {path}")

    def set_active_file(self, path: Optional[str]) -> None:
        with self._lock:
            self._active_path = path

    def get_active_file(self) -> Optional[NoteFile]:
        """Return the active note if it still exists."""
        with self._lock:
            path = self._active_path
        if path is None:
            return None
        return self.store.get_file(path)

    @property
    def opened(self) -> List[str]:
        """Most recently focused paths, oldest first."""
        with self._lock:
            return list(self._history)
