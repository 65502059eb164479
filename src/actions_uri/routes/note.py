"""Actions on single notes: ``/note/...``."""
import logging
import re
from typing import Any, Literal, Mapping, Optional, Type

from pydantic import Field

from actions_uri.exceptions import ErrorCode, ParameterValidationError
from actions_uri.models.params import (
    AlwaysFalse,
    IncomingParams,
    NonEmptyStr,
    NoteTargetingParams,
    OptionalBool,
    OptionalStr,
    PeriodicNoteType,
    SanitizedNotePath,
    TargetingKey,
)
from actions_uri.models.results import (
    Outcome,
    PathsResult,
    TextResult,
    failure,
    success,
)
from actions_uri.plugins import TEMPLATER_PLUGIN, TEMPLATES_PLUGIN
from actions_uri.routes.hello import hello_route
from actions_uri.routing.context import ActionContext, ActionServices
from actions_uri.routing.registry import RouteSpec, RouteTree, Targeting
from actions_uri.routing.targeting import resolve_note_by_name
from actions_uri.services.note_service import (
    NOTE_DELETED,
    NOTE_OPENED,
    NOTE_RENAMED,
    NOTE_TOUCHED,
    NOTE_TRASHED,
    NoteService,
)
from actions_uri.utils import parse_string_into_regex

logger = logging.getLogger(__name__)

# SCHEMATA ----------------------------------------

SortBy = Literal[
    "best-guess",
    "path-asc",
    "path-desc",
    "ctime-asc",
    "ctime-desc",
    "mtime-asc",
    "mtime-desc",
    "",
]
IfExists = Literal["overwrite", "skip", ""]


class JustReturnCallParams(IncomingParams):
    pass


class GetParams(NoteTargetingParams):
    silent: OptionalBool = False


class ReadFirstNamedParams(IncomingParams):
    file: SanitizedNotePath
    sort_by: Optional[SortBy] = Field(default=None, alias="sort-by")


class OpenParams(NoteTargetingParams):
    # Opening a note is the whole point, so it can't be silenced
    silent: AlwaysFalse = False


class CreateParams(NoteTargetingParams):
    if_exists: Optional[IfExists] = Field(default=None, alias="if-exists")
    silent: OptionalBool = False

    @classmethod
    def select_variant(cls, raw: Mapping[str, Any]) -> Type[IncomingParams]:
        if raw.get(TargetingKey.PERIODIC_NOTE.value):
            return CreatePeriodicNoteParams
        apply = raw.get("apply")
        if apply == "templater":
            return CreateTemplaterParams
        if apply == "templates":
            return CreateTemplatesParams
        return CreateContentParams


class CreateContentParams(CreateParams):
    # A missing `apply` defaults to content; an empty one is rejected
    apply: Literal["content"] = "content"
    content: Optional[str] = None


class CreateTemplaterParams(CreateParams):
    apply: Literal["templater"]
    template_file: SanitizedNotePath = Field(alias="template-file")


class CreateTemplatesParams(CreateParams):
    apply: Literal["templates"]
    template_file: SanitizedNotePath = Field(alias="template-file")


class CreatePeriodicNoteParams(CreateParams):
    periodic_note: PeriodicNoteType = Field(alias="periodic-note")


class AppendParams(NoteTargetingParams):
    content: str
    silent: OptionalBool = False
    below_headline: OptionalStr = Field(default=None, alias="below-headline")
    create_if_not_found: OptionalBool = Field(default=False, alias="create-if-not-found")
    ensure_newline: OptionalBool = Field(default=False, alias="ensure-newline")


class PrependParams(AppendParams):
    ignore_front_matter: OptionalBool = Field(default=False, alias="ignore-front-matter")


class TouchParams(NoteTargetingParams):
    silent: OptionalBool = False


class SearchAndReplaceParams(NoteTargetingParams):
    silent: OptionalBool = False
    search: NonEmptyStr
    replace: str


class DeleteParams(NoteTargetingParams):
    pass


class RenameParams(NoteTargetingParams):
    new_filename: SanitizedNotePath = Field(alias="new-filename")
    silent: OptionalBool = False


def template_file_exists(params: IncomingParams, services: ActionServices) -> None:
    """Reject template-based creation when the template note is missing."""
    if not isinstance(params, (CreateTemplaterParams, CreateTemplatesParams)):
        return
    if not services.store.exists(params.template_file):
        raise ParameterValidationError.single(
            "template-file", f"no template found at '{params.template_file}'"
        )


# HANDLERS ----------------------------------------


def _service(services: ActionServices) -> NoteService:
    return NoteService(services.store, services.config.frontmatter_key)


def _focus_unless_silent(params: IncomingParams, services: ActionServices, path: str) -> None:
    if not getattr(params, "silent", False):
        services.workspace.focus_or_open(path)


def handle_list(ctx: ActionContext, services: ActionServices) -> Outcome:
    return success(PathsResult(paths=_service(services).list_paths()))


def handle_get(ctx: ActionContext, services: ActionServices) -> Outcome:
    details = _service(services).note_details(ctx.path)
    _focus_unless_silent(ctx.params, services, ctx.path)
    return success(details, ctx.path)


def handle_get_active(ctx: ActionContext, services: ActionServices) -> Outcome:
    active = services.workspace.get_active_file()
    if active is None or active.extension != "md":
        return failure(ErrorCode.NOT_FOUND, "No active note")
    return success(_service(services).note_details(active.path), active.path)


def handle_get_named(ctx: ActionContext, services: ActionServices) -> Outcome:
    params = ctx.params_as(ReadFirstNamedParams)
    note = resolve_note_by_name(services.store, params.file, params.sort_by or "best-guess")
    if note is None:
        return failure(ErrorCode.NOT_FOUND, "No note found with that name")
    return success(_service(services).note_details(note.path), note.path)


def handle_open(ctx: ActionContext, services: ActionServices) -> Outcome:
    services.workspace.focus_or_open(ctx.path)
    return success(TextResult(message=NOTE_OPENED), ctx.path)


def handle_create(ctx: ActionContext, services: ActionServices) -> Outcome:
    params = ctx.params_as(CreateParams)
    target = ctx.target
    note_service = _service(services)

    if target.exists and params.if_exists == "skip":
        _focus_unless_silent(params, services, target.path)
        return success(note_service.note_details(target.path), target.path)

    if isinstance(params, CreatePeriodicNoteParams):
        return _create_periodic_note(ctx, params, services)
    return _create_general_note(ctx, params, services)


def _create_periodic_note(
    ctx: ActionContext, params: CreatePeriodicNoteParams, services: ActionServices
) -> Outcome:
    path = ctx.path
    note_service = _service(services)
    if ctx.target.exists:
        if params.if_exists != "overwrite":
            _focus_unless_silent(params, services, path)
            return success(note_service.note_details(path), path)
        services.store.trash(path)

    note = services.periodic_notes.create(params.periodic_note)
    _focus_unless_silent(params, services, note.path)
    return success(note_service.note_details(note.path), note.path)


def _create_general_note(
    ctx: ActionContext, params: CreateParams, services: ActionServices
) -> Outcome:
    store = services.store
    note_service = _service(services)

    # Check the plugin before anything is written
    plugin = None
    if isinstance(params, CreateTemplaterParams):
        plugin = services.plugins.enabled_plugin(TEMPLATER_PLUGIN)
    elif isinstance(params, CreateTemplatesParams):
        plugin = services.plugins.enabled_plugin(TEMPLATES_PLUGIN)

    if ctx.target.exists and params.if_exists == "overwrite":
        note = store.create_or_overwrite(ctx.path, "")
    else:
        note = note_service.create_note(ctx.path, "")

    if isinstance(params, CreateContentParams):
        store.modify(note.path, params.content or "")
    else:
        plugin.apply_template(store, params.template_file, note.path)

    if ctx.target.input_key is TargetingKey.UID and not ctx.target.exists:
        store.update_properties(
            note.path,
            lambda props: props.update({services.config.frontmatter_key: params.uid}),
        )

    _focus_unless_silent(params, services, note.path)
    return success(note_service.note_details(note.path), note.path)


def _prepare_soft_target(ctx: ActionContext, services: ActionServices) -> Optional[Outcome]:
    """Create a missing note for append/prepend, or report it as missing."""
    params = ctx.params_as(AppendParams)
    if ctx.target.exists:
        return None
    if not params.create_if_not_found:
        return failure(ErrorCode.NOT_FOUND, "Note couldn't be found")

    note_service = _service(services)
    if ctx.target.input_key is TargetingKey.UID:
        note_service.create_note_with_uid(ctx.path, params.uid)
    else:
        services.store.create(ctx.path, "")
    return None


def handle_append(ctx: ActionContext, services: ActionServices) -> Outcome:
    params = ctx.params_as(AppendParams)
    missing = _prepare_soft_target(ctx, services)
    if missing is not None:
        return missing

    message = _service(services).append(
        ctx.path,
        params.content,
        ensure_newline=params.ensure_newline,
        below_headline=params.below_headline,
    )
    _focus_unless_silent(params, services, ctx.path)
    return success(TextResult(message=message), ctx.path)


def handle_prepend(ctx: ActionContext, services: ActionServices) -> Outcome:
    params = ctx.params_as(PrependParams)
    missing = _prepare_soft_target(ctx, services)
    if missing is not None:
        return missing

    message = _service(services).prepend(
        ctx.path,
        params.content,
        ensure_newline=params.ensure_newline,
        ignore_front_matter=params.ignore_front_matter,
        below_headline=params.below_headline,
    )
    _focus_unless_silent(params, services, ctx.path)
    return success(TextResult(message=message), ctx.path)


def handle_touch(ctx: ActionContext, services: ActionServices) -> Outcome:
    services.store.touch(ctx.path)
    _focus_unless_silent(ctx.params, services, ctx.path)
    return success(TextResult(message=NOTE_TOUCHED), ctx.path)


def handle_search_string_and_replace(ctx: ActionContext, services: ActionServices) -> Outcome:
    params = ctx.params_as(SearchAndReplaceParams)
    message = _service(services).search_and_replace(ctx.path, params.search, params.replace)
    _focus_unless_silent(params, services, ctx.path)
    return success(TextResult(message=message), ctx.path)


def handle_search_regex_and_replace(ctx: ActionContext, services: ActionServices) -> Outcome:
    params = ctx.params_as(SearchAndReplaceParams)
    try:
        pattern, count = parse_string_into_regex(params.search)
    except (ValueError, re.error) as e:
        return failure(ErrorCode.INVALID_REGEX, f"Invalid regular expression: {e}")

    message = _service(services).search_and_replace(ctx.path, pattern, params.replace, count)
    _focus_unless_silent(params, services, ctx.path)
    return success(TextResult(message=message), ctx.path)


def handle_delete(ctx: ActionContext, services: ActionServices) -> Outcome:
    services.store.delete(ctx.path)
    return success(TextResult(message=NOTE_DELETED), ctx.path)


def handle_trash(ctx: ActionContext, services: ActionServices) -> Outcome:
    services.store.trash(ctx.path)
    return success(TextResult(message=NOTE_TRASHED), ctx.path)


def handle_rename(ctx: ActionContext, services: ActionServices) -> Outcome:
    params = ctx.params_as(RenameParams)
    services.store.rename(ctx.path, params.new_filename)
    _focus_unless_silent(params, services, params.new_filename)
    return success(TextResult(message=NOTE_RENAMED), ctx.path)


# ROUTES ----------------------------------------

ROUTES: RouteTree = {
    "/note": [
        hello_route(),
        RouteSpec("/list", JustReturnCallParams, handle_list, returns_data=True),
        RouteSpec("/get", GetParams, handle_get, Targeting.HARD, returns_data=True),
        RouteSpec("/get-first-named", ReadFirstNamedParams, handle_get_named, returns_data=True),
        RouteSpec("/get-active", JustReturnCallParams, handle_get_active, returns_data=True),
        RouteSpec("/open", OpenParams, handle_open, Targeting.HARD),
        RouteSpec(
            "/create",
            CreateParams,
            handle_create,
            Targeting.SOFT,
            preconditions=(template_file_exists,),
        ),
        RouteSpec("/append", AppendParams, handle_append, Targeting.SOFT),
        RouteSpec("/prepend", PrependParams, handle_prepend, Targeting.SOFT),
        RouteSpec("/touch", TouchParams, handle_touch, Targeting.HARD),
        RouteSpec("/delete", DeleteParams, handle_delete, Targeting.HARD),
        RouteSpec("/trash", DeleteParams, handle_trash, Targeting.HARD),
        RouteSpec("/rename", RenameParams, handle_rename, Targeting.HARD),
        RouteSpec(
            "/search-string-and-replace",
            SearchAndReplaceParams,
            handle_search_string_and_replace,
            Targeting.HARD,
        ),
        RouteSpec(
            "/search-regex-and-replace",
            SearchAndReplaceParams,
            handle_search_regex_and_replace,
            Targeting.HARD,
        ),
    ],
}
