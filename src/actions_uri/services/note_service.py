"""Service layer for note operations.

Route handlers stay thin: they unpack parameters and call into
``NoteService``, which composes store calls with the pure text helpers in
``actions_uri.storage.markdown``. Failures are raised as typed exceptions.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Pattern, Union

from actions_uri.exceptions import ActionsUriError, ErrorCode, StorageError
from actions_uri.models.results import NoteDetails
from actions_uri.storage.base import NoteFile, NoteStore
from actions_uri.storage.markdown import (
    append_below_headline,
    append_text,
    prepend_below_headline,
    prepend_text,
    search_and_replace,
    split_front_matter,
)

logger = logging.getLogger(__name__)

# Messages returned to callers
NOTE_OPENED = "Opened note"
NOTE_TOUCHED = "Touched note"
CONTENT_APPENDED = "Appended content"
CONTENT_PREPENDED = "Prepended content"
REPLACEMENT_DONE = "Replaced text in note"
NOTE_DELETED = "Deleted note"
NOTE_TRASHED = "Moved note to trash"
NOTE_RENAMED = "Renamed note"


class NoteService:
    """Note-level operations over a ``NoteStore``."""

    def __init__(self, store: NoteStore, frontmatter_key: str = "uid"):
        self.store = store
        self.frontmatter_key = frontmatter_key

    def note_details(self, path: str) -> NoteDetails:
        """Content, body, raw front matter and parsed properties of a note."""
        content = self.store.read(path)
        _, front_matter, body = split_front_matter(content)
        return NoteDetails(
            filepath=path,
            content=content,
            body=body,
            front_matter=front_matter,
            properties=self.store.get_properties(path),
        )

    def list_paths(self) -> List[str]:
        return sorted(f.path for f in self.store.list_markdown_files())

    def create_note(self, path: str, content: str = "") -> NoteFile:
        """Create a note, picking the next free numbered name if ``path`` is taken."""
        target = self.store.next_available_path(path)
        try:
            return self.store.create(target, content)
        except StorageError as e:
            raise ActionsUriError(
                f"Unable to create note {target}",
                code=ErrorCode.UNABLE_TO_CREATE_NOTE,
                details={"path": target, "reason": e.message},
            ) from e

    def create_note_with_uid(self, path: str, uid: str) -> NoteFile:
        """Create an empty note whose front matter carries ``uid``."""
        note = self.create_note(path, "")
        return self.store.set_properties(note.path, {self.frontmatter_key: uid})

    def append(
        self,
        path: str,
        content: str,
        ensure_newline: bool = False,
        below_headline: Optional[str] = None,
    ) -> str:
        text = self.store.read(path)
        if below_headline:
            new_text = append_below_headline(text, below_headline, content)
            if new_text is None:
                raise self._headline_not_found(path, below_headline)
        else:
            new_text = append_text(text, content, ensure_newline)
        self._write(path, new_text)
        return CONTENT_APPENDED

    def prepend(
        self,
        path: str,
        content: str,
        ensure_newline: bool = False,
        ignore_front_matter: bool = False,
        below_headline: Optional[str] = None,
    ) -> str:
        text = self.store.read(path)
        if below_headline:
            if ensure_newline and not content.endswith("\n"):
                content += "\n"
            new_text = prepend_below_headline(text, below_headline, content)
            if new_text is None:
                raise self._headline_not_found(path, below_headline)
        else:
            new_text = prepend_text(text, content, ensure_newline, ignore_front_matter)
        self._write(path, new_text)
        return CONTENT_PREPENDED

    def search_and_replace(
        self,
        path: str,
        search: Union[str, Pattern[str]],
        replace: str,
        count: int = 0,
    ) -> str:
        text = self.store.read(path)
        new_text = search_and_replace(text, search, replace, count)
        if new_text is None:
            raise ActionsUriError(
                "Search pattern not found in note",
                code=ErrorCode.NOT_FOUND,
                details={"path": path},
            )
        self._write(path, new_text)
        return REPLACEMENT_DONE

    def search_contents(self, query: str) -> List[str]:
        """Paths of notes whose text contains ``query``, case-insensitively."""
        needle = query.casefold()
        hits = []
        for note in self.store.list_markdown_files():
            try:
                text = self.store.read(note.path)
            except StorageError as e:
                logger.warning(f"Skipping unreadable note {note.path}: {e}")
                continue
            if needle in text.casefold():
                hits.append(note.path)
        return hits

    def set_properties(self, path: str, properties: Dict[str, Any], merge: bool = False) -> NoteDetails:
        if merge:
            def _merge(current: Dict[str, Any]) -> None:
                current.update(properties)

            self.store.update_properties(path, _merge)
        else:
            self.store.set_properties(path, dict(properties))
        return self.note_details(path)

    def remove_properties(self, path: str, keys: Iterable[str]) -> NoteDetails:
        def _remove(current: Dict[str, Any]) -> None:
            for key in keys:
                current.pop(key, None)

        self.store.update_properties(path, _remove)
        return self.note_details(path)

    def _write(self, path: str, text: str) -> None:
        try:
            self.store.modify(path, text)
        except StorageError as e:
            raise ActionsUriError(
                f"Unable to write note {path}",
                code=ErrorCode.UNABLE_TO_WRITE_NOTE,
                details={"path": path, "reason": e.message},
            ) from e

    @staticmethod
    def _headline_not_found(path: str, headline: str) -> ActionsUriError:
        return ActionsUriError(
            f"Headline '{headline}' not found in note",
            code=ErrorCode.NOT_FOUND,
            details={"path": path, "headline": headline},
        )
