"""Periodic note generation.

Maps a ``PeriodicNoteType`` to the note path of the current period using
the folder and ``strftime`` formats from configuration.
"""
import logging
from datetime import datetime
from typing import Callable, Optional

from actions_uri.config import ActionsUriConfig
from actions_uri.exceptions import ErrorCode, StorageError
from actions_uri.models.params import PeriodicNoteType
from actions_uri.storage.base import NoteFile, NoteStore
from actions_uri.utils import sanitize_file_path

logger = logging.getLogger(__name__)


class PeriodicNotes:
    """Resolve and create the notes of the current day, week, month, etc."""

    def __init__(
        self,
        store: NoteStore,
        config: ActionsUriConfig,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.config = config
        self.clock = clock

    def _format_for(self, note_type: PeriodicNoteType) -> str:
        return {
            PeriodicNoteType.DAILY: self.config.daily_note_format,
            PeriodicNoteType.WEEKLY: self.config.weekly_note_format,
            PeriodicNoteType.MONTHLY: self.config.monthly_note_format,
            PeriodicNoteType.QUARTERLY: self.config.quarterly_note_format,
            PeriodicNoteType.YEARLY: self.config.yearly_note_format,
        }[note_type]

    def current_path(self, note_type: PeriodicNoteType, now: Optional[datetime] = None) -> str:
        """Vault-relative path of the note for the period containing ``now``."""
        now = now or self.clock()
        fmt = self._format_for(note_type).replace("{quarter}", str((now.month - 1) // 3 + 1))
        name = now.strftime(fmt)
        folder = self.config.periodic_notes_folder.strip("/")
        return sanitize_file_path(f"{folder}/{name}" if folder else name)

    def create(self, note_type: PeriodicNoteType) -> NoteFile:
        """Create the current period's note, returning the existing one if present."""
        path = self.current_path(note_type)
        existing = self.store.get_file(path)
        if existing is not None:
            return existing
        if not path:
            raise StorageError(
                f"Could not derive a path for the {note_type.value} note",
                operation="create",
                code=ErrorCode.UNABLE_TO_CREATE_NOTE,
            )
        logger.info(f"Creating {note_type.value} note {path}")
        return self.store.create(path, "")
