"""Front matter actions: ``/note-properties/...``."""
from typing import Literal, Optional

from actions_uri.models.params import (
    JsonPropertiesObject,
    JsonStringArray,
    NoteTargetingParams,
    OptionalBool,
)
from actions_uri.models.results import Outcome, PropertiesResult, success
from actions_uri.routes.hello import hello_route
from actions_uri.routing.context import ActionContext, ActionServices
from actions_uri.routing.registry import RouteSpec, RouteTree, Targeting
from actions_uri.services.note_service import NoteService

# SCHEMATA ----------------------------------------


class GetParams(NoteTargetingParams):
    silent: OptionalBool = False


class SetParams(NoteTargetingParams):
    properties: JsonPropertiesObject
    mode: Optional[Literal["overwrite", "update"]] = None


class RemoveKeysParams(NoteTargetingParams):
    keys: JsonStringArray


# HANDLERS ----------------------------------------


def handle_get(ctx: ActionContext, services: ActionServices) -> Outcome:
    properties = services.store.get_properties(ctx.path)
    return success(PropertiesResult(properties=properties), ctx.path)


def handle_set(ctx: ActionContext, services: ActionServices) -> Outcome:
    params = ctx.params_as(SetParams)
    details = NoteService(services.store).set_properties(
        ctx.path, params.properties, merge=params.mode == "update"
    )
    return success(details, ctx.path)


def handle_clear(ctx: ActionContext, services: ActionServices) -> Outcome:
    details = NoteService(services.store).set_properties(ctx.path, {})
    return success(details, ctx.path)


def handle_remove_keys(ctx: ActionContext, services: ActionServices) -> Outcome:
    params = ctx.params_as(RemoveKeysParams)
    details = NoteService(services.store).remove_properties(ctx.path, params.keys)
    return success(details, ctx.path)


# ROUTES ----------------------------------------

ROUTES: RouteTree = {
    "/note-properties": [
        hello_route(),
        RouteSpec("/get", GetParams, handle_get, Targeting.HARD, returns_data=True),
        RouteSpec("/set", SetParams, handle_set, Targeting.HARD),
        RouteSpec("/clear", GetParams, handle_clear, Targeting.HARD),
        RouteSpec("/remove-keys", RemoveKeysParams, handle_remove_keys, Targeting.HARD),
    ],
}
