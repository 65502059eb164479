"""Document store interface.

The store is the boundary to the vault: it creates, reads, modifies,
renames, deletes, trashes and lists notes keyed by vault-relative path.
Failures are raised as typed exceptions from ``actions_uri.exceptions``.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any, Callable, Dict, List, Optional

import yaml

from actions_uri.exceptions import ErrorCode, StorageError
from actions_uri.storage.markdown import parse_properties, render_with_properties

logger = logging.getLogger(__name__)

# Upper bound on numbered siblings tried by next_available_path()
_MAX_SUFFIX = 10_000


@dataclass(frozen=True)
class NoteFile:
    """Handle to an existing note.

    Attributes:
        path: Vault-relative path with forward slashes, e.g. ``Folder/Note.md``.
        ctime: Creation time (seconds since the epoch).
        mtime: Last modification time (seconds since the epoch).
        size: File size in bytes.
    """

    path: str
    ctime: float = 0.0
    mtime: float = 0.0
    size: int = 0

    @property
    def name(self) -> str:
        """File name including extension (``Note.md``)."""
        return PurePosixPath(self.path).name

    @property
    def basename(self) -> str:
        """File name without extension (``Note``)."""
        return PurePosixPath(self.path).stem

    @property
    def extension(self) -> str:
        """Lower-cased extension without the dot (``md``)."""
        return PurePosixPath(self.path).suffix.lstrip(".").lower()


class NoteStore(ABC):
    """Abstract document store keyed by vault-relative path."""

    @abstractmethod
    def get_file(self, path: str) -> Optional[NoteFile]:
        """Return a handle to the note at ``path`` or None if absent."""
        pass

    @abstractmethod
    def list_markdown_files(self) -> List[NoteFile]:
        """Return every markdown note, sorted by path."""
        pass

    @abstractmethod
    def read(self, path: str) -> str:
        """Return the full text of a note."""
        pass

    @abstractmethod
    def create(self, path: str, content: str) -> NoteFile:
        """Create a note; raises NoteAlreadyExistsError if the path is taken."""
        pass

    @abstractmethod
    def modify(self, path: str, content: str) -> NoteFile:
        """Replace the text of an existing note."""
        pass

    @abstractmethod
    def rename(self, path: str, new_path: str) -> NoteFile:
        """Move a note; raises NoteAlreadyExistsError if the target is taken."""
        pass

    @abstractmethod
    def delete(self, path: str) -> None:
        """Delete a note permanently."""
        pass

    @abstractmethod
    def trash(self, path: str) -> None:
        """Move a note to the vault's trash."""
        pass

    @abstractmethod
    def touch(self, path: str) -> NoteFile:
        """Update a note's modification time."""
        pass

    # ------------------------------------------------------------------
    # Derived operations
    # ------------------------------------------------------------------

    def exists(self, path: str) -> bool:
        return self.get_file(path) is not None

    def create_or_overwrite(self, path: str, content: str) -> NoteFile:
        """Create a note, replacing the content of an existing one."""
        if self.exists(path):
            return self.modify(path, content)
        return self.create(path, content)

    def next_available_path(self, path: str) -> str:
        """Return ``path`` or the first free numbered sibling (``Note 1.md``)."""
        if not self.exists(path):
            return path
        pure = PurePosixPath(path)
        for number in range(1, _MAX_SUFFIX):
            candidate = str(pure.with_name(f"{pure.stem} {number}{pure.suffix}"))
            if not self.exists(candidate):
                return candidate
        raise StorageError(
            "No free file name available",
            operation="create",
            path=path,
            code=ErrorCode.STORAGE_WRITE_FAILED,
        )

    def get_properties(self, path: str) -> Dict[str, Any]:
        """Return the front matter of a note as a mapping."""
        text = self.read(path)
        try:
            return parse_properties(text)
        except yaml.YAMLError as e:
            raise StorageError(
                "Front matter is not valid YAML",
                operation="read_properties",
                path=path,
                original_error=e,
            ) from e

    def set_properties(self, path: str, properties: Dict[str, Any]) -> NoteFile:
        """Replace the front matter of a note. An empty mapping removes it."""
        text = self.read(path)
        return self.modify(path, render_with_properties(text, properties))

    def update_properties(
        self, path: str, mutate: Callable[[Dict[str, Any]], None]
    ) -> NoteFile:
        """Read the front matter, let ``mutate`` change it in place, write it back."""
        properties = self.get_properties(path)
        mutate(properties)
        return self.set_properties(path, properties)
