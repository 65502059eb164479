"""Note-targeting resolution.

Decides which single note a request addresses from the mutually exclusive
fields ``file``, ``uid`` and ``periodic-note``:

- **hard**: the note must exist, otherwise ``NoteNotFoundError``
- **soft**: the note may be missing; a canonical path is still produced

Identifier lookups scan the configured front matter key of every note in
path-ascending order, so the first match is deterministic.
"""
import logging
from typing import Any, List, Optional

from actions_uri.exceptions import (
    AmbiguousTargetError,
    NoteNotFoundError,
    ParameterValidationError,
    StorageError,
)
from actions_uri.models.params import NoteTargetingParams, PeriodicNoteType, TargetingKey
from actions_uri.routing.context import ActionServices, ResolvedTarget
from actions_uri.routing.registry import Targeting
from actions_uri.storage.base import NoteFile, NoteStore
from actions_uri.utils import sanitize_file_path

logger = logging.getLogger(__name__)

SORT_OPTIONS = (
    "best-guess",
    "path-asc",
    "path-desc",
    "ctime-asc",
    "ctime-desc",
    "mtime-asc",
    "mtime-desc",
)

_TARGETING_HINT = "one of file, uid or periodic-note is required"


def _matches_uid(value: Any, uid: str) -> bool:
    if isinstance(value, list):
        return any(_matches_uid(item, uid) for item in value)
    if value is None or isinstance(value, (dict, bool)):
        return False
    return str(value) == uid


def find_notes_by_uid(store: NoteStore, key: str, uid: str) -> List[NoteFile]:
    """Return all notes whose front matter ``key`` equals ``uid``, path-ascending."""
    matches = []
    for note in store.list_markdown_files():
        try:
            properties = store.get_properties(note.path)
        except StorageError as e:
            logger.debug(f"Skipping {note.path} during uid lookup: {e}")
            continue
        if _matches_uid(properties.get(key), uid):
            matches.append(note)
    return sorted(matches, key=lambda f: f.path)


def _resolve_uid(uid: str, services: ActionServices) -> Optional[NoteFile]:
    matches = find_notes_by_uid(services.store, services.config.frontmatter_key, uid)
    if not matches:
        return None
    if len(matches) > 1:
        paths = [m.path for m in matches]
        if services.config.uid_ambiguity == "error":
            raise AmbiguousTargetError(uid, paths)
        logger.warning(
            f"Identifier '{uid}' is carried by {len(matches)} notes, using {paths[0]}"
        )
    return matches[0]


def resolve_note_target(
    params: NoteTargetingParams,
    policy: Targeting,
    services: ActionServices,
) -> ResolvedTarget:
    """Resolve the addressing fields of ``params`` to a single note.

    Raises:
        ParameterValidationError: Several addressing fields were supplied, or
            none was supplied under the soft policy.
        NoteNotFoundError: Hard policy and the target does not exist.
        AmbiguousTargetError: Several notes share the identifier and the
            configuration asks to refuse.
    """
    supplied = params.targeting_fields()
    if len(supplied) > 1:
        keys = ", ".join(key.value for key in supplied)
        raise ParameterValidationError([
            {"field": key.value, "message": f"only one of {keys} may be given"}
            for key in supplied
        ])
    if not supplied:
        if policy is Targeting.HARD:
            raise NoteNotFoundError(message=f"Note couldn't be found: {_TARGETING_HINT}")
        raise ParameterValidationError.single("file", _TARGETING_HINT)

    input_key, value = next(iter(supplied.items()))

    if input_key is TargetingKey.FILE:
        path = sanitize_file_path(value)
        note = services.store.get_file(path)
    elif input_key is TargetingKey.UID:
        note = _resolve_uid(value, services)
        path = note.path if note else sanitize_file_path(value)
    else:
        path = services.periodic_notes.current_path(PeriodicNoteType(value))
        note = services.store.get_file(path)

    if note is None and policy is Targeting.HARD:
        raise NoteNotFoundError(path or None)
    if not path:
        raise ParameterValidationError.single(input_key.value, "must be a valid note path")

    logger.debug(
        f"Resolved {input_key.value}={value!r} to {path} "
        f"({'exists' if note else 'missing'})"
    )
    return ResolvedTarget(input_key=input_key, path=path, file=note)


def _best_guess(files: List[NoteFile], linkpath: str) -> Optional[NoteFile]:
    for note in files:
        if note.path == linkpath:
            return note

    wanted = linkpath.lower()
    wanted_name = wanted.rsplit("/", 1)[-1]
    candidates = [f for f in files if f.name.lower() == wanted_name]
    if not candidates:
        return None
    # Prefer notes whose path ends with the requested folder/name, then the
    # shallowest one; ties are broken by path
    candidates.sort(key=lambda f: (
        not f.path.lower().endswith(wanted),
        len(f.path),
        f.path,
    ))
    return candidates[0]


def resolve_note_by_name(
    store: NoteStore, name: str, sort_by: str = "best-guess"
) -> Optional[NoteFile]:
    """Find the first note called ``name``.

    ``best-guess`` uses link resolution: an exact path wins, then a
    case-insensitive file name match. Any other option sorts all notes and
    returns the first whose file name equals ``name``.
    """
    files = store.list_markdown_files()
    if sort_by == "best-guess":
        return _best_guess(files, sanitize_file_path(name))

    field, _, direction = sort_by.partition("-")
    key = {
        "path": lambda f: f.path,
        "ctime": lambda f: f.ctime,
        "mtime": lambda f: f.mtime,
    }[field]
    ordered = sorted(files, key=key, reverse=direction == "desc")
    return next((f for f in ordered if f.name == name), None)
