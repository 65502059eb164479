"""Filesystem-backed document store.

Notes are plain markdown files below the vault directory. Paths handed to
the store are vault-relative with forward slashes; the store refuses any
path that would escape the vault.
"""
import logging
import os
import shutil
import threading
import time
from pathlib import Path
from typing import List, Optional

from actions_uri.config import config
from actions_uri.exceptions import (
    ConfigurationError,
    ErrorCode,
    NoteAlreadyExistsError,
    NoteNotFoundError,
    StorageError,
)
from actions_uri.storage.base import NoteFile, NoteStore

logger = logging.getLogger(__name__)


class VaultStore(NoteStore):
    """Document store over a directory of markdown files."""

    def __init__(self, vault_dir: Optional[Path] = None, trash_dir: Optional[str] = None):
        """Initialize the store.

        Args:
            vault_dir: Vault root. If None, uses config.get_vault_path().
            trash_dir: Vault-relative folder receiving trashed notes.
                       If None, uses config.trash_dir.
        """
        self.vault_dir = Path(vault_dir) if vault_dir else config.get_vault_path()
        if self.vault_dir.exists() and not self.vault_dir.is_dir():
            raise ConfigurationError(
                f"Vault path {self.vault_dir} is not a directory",
                config_key="vault_dir",
            )
        self.vault_dir.mkdir(parents=True, exist_ok=True)
        self.vault_dir = self.vault_dir.resolve()
        self.trash_dir = (trash_dir if trash_dir is not None else config.trash_dir).strip("/")
        self.file_lock = threading.RLock()

    # ------------------------------------------------------------------
    # Path handling
    # ------------------------------------------------------------------

    def _abs_path(self, path: str) -> Path:
        """Map a vault-relative path to an absolute one inside the vault."""
        candidate = (self.vault_dir / path.lstrip("/")).resolve()
        try:
            candidate.relative_to(self.vault_dir)
        except ValueError:
            raise StorageError(
                "Path escapes the vault",
                operation="resolve",
                path=path,
                code=ErrorCode.PATH_TRAVERSAL_DETECTED,
            ) from None
        return candidate

    def _rel_path(self, abs_path: Path) -> str:
        return abs_path.relative_to(self.vault_dir).as_posix()

    def _note_file(self, abs_path: Path) -> NoteFile:
        stat = abs_path.stat()
        return NoteFile(
            path=self._rel_path(abs_path),
            ctime=stat.st_ctime,
            mtime=stat.st_mtime,
            size=stat.st_size,
        )

    def _require(self, path: str) -> Path:
        abs_path = self._abs_path(path)
        if not abs_path.is_file():
            raise NoteNotFoundError(path)
        return abs_path

    def _in_trash(self, abs_path: Path) -> bool:
        if not self.trash_dir:
            return False
        trash_root = self.vault_dir / self.trash_dir
        return trash_root == abs_path or trash_root in abs_path.parents

    def _write(self, abs_path: Path, content: str, operation: str) -> None:
        try:
            abs_path.parent.mkdir(parents=True, exist_ok=True)
            with open(abs_path, "w", encoding="utf-8", newline="") as f:
                f.write(content)
        except OSError as e:
            raise StorageError(
                f"Failed to write note {self._rel_path(abs_path)}",
                operation=operation,
                path=str(abs_path),
                code=ErrorCode.STORAGE_WRITE_FAILED,
                original_error=e,
            ) from e

    # ------------------------------------------------------------------
    # NoteStore interface
    # ------------------------------------------------------------------

    def get_file(self, path: str) -> Optional[NoteFile]:
        abs_path = self._abs_path(path)
        if not abs_path.is_file():
            return None
        return self._note_file(abs_path)

    def list_markdown_files(self) -> List[NoteFile]:
        files = []
        for root, dirs, names in os.walk(self.vault_dir):
            root_path = Path(root)
            # Hidden folders (trash, editor settings) are not part of the vault
            dirs[:] = [d for d in dirs if not d.startswith(".")]
            for name in names:
                if not name.lower().endswith(".md"):
                    continue
                abs_path = root_path / name
                if self._in_trash(abs_path):
                    continue
                files.append(self._note_file(abs_path))
        return sorted(files, key=lambda f: f.path)

    def read(self, path: str) -> str:
        abs_path = self._require(path)
        try:
            with open(abs_path, "r", encoding="utf-8", newline="") as f:
                return f.read()
        except OSError as e:
            raise StorageError(
                f"Failed to read note {path}",
                operation="read",
                path=str(abs_path),
                original_error=e,
            ) from e

    def create(self, path: str, content: str) -> NoteFile:
        abs_path = self._abs_path(path)
        with self.file_lock:
            if abs_path.exists():
                raise NoteAlreadyExistsError(path)
            self._write(abs_path, content, "create")
        logger.info(f"Created note {path}")
        return self._note_file(abs_path)

    def modify(self, path: str, content: str) -> NoteFile:
        with self.file_lock:
            abs_path = self._require(path)
            self._write(abs_path, content, "modify")
        logger.debug(f"Modified note {path}")
        return self._note_file(abs_path)

    def rename(self, path: str, new_path: str) -> NoteFile:
        with self.file_lock:
            source = self._require(path)
            target = self._abs_path(new_path)
            if target == source:
                return self._note_file(source)
            if target.exists():
                raise NoteAlreadyExistsError(new_path)
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                source.rename(target)
            except OSError as e:
                raise StorageError(
                    f"Failed to rename note {path}",
                    operation="rename",
                    path=str(source),
                    code=ErrorCode.STORAGE_WRITE_FAILED,
                    original_error=e,
                ) from e
        logger.info(f"Renamed note {path} -> {new_path}")
        return self._note_file(target)

    def delete(self, path: str) -> None:
        with self.file_lock:
            abs_path = self._require(path)
            try:
                abs_path.unlink()
            except OSError as e:
                raise StorageError(
                    f"Failed to delete note {path}",
                    operation="delete",
                    path=str(abs_path),
                    code=ErrorCode.STORAGE_DELETE_FAILED,
                    original_error=e,
                ) from e
        logger.info(f"Deleted note {path}")

    def trash(self, path: str) -> None:
        with self.file_lock:
            source = self._require(path)
            trash_root = self.vault_dir / (self.trash_dir or ".trash")
            target = trash_root / path
            # Keep earlier trashed versions of the same note
            counter = 1
            while target.exists():
                target = (trash_root / path).with_name(
                    f"{Path(path).stem} {counter}{Path(path).suffix}"
                )
                counter += 1
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.move(str(source), str(target))
            except OSError as e:
                raise StorageError(
                    f"Failed to trash note {path}",
                    operation="trash",
                    path=str(source),
                    code=ErrorCode.STORAGE_DELETE_FAILED,
                    original_error=e,
                ) from e
        logger.info(f"Moved note {path} to trash")

    def touch(self, path: str) -> NoteFile:
        with self.file_lock:
            abs_path = self._require(path)
            now = time.time()
            os.utime(abs_path, (now, now))
        return self._note_file(abs_path)
