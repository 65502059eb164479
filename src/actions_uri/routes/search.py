"""Vault search: ``/search/...``."""
from actions_uri.models.params import IncomingParams, NonEmptyStr
from actions_uri.models.results import Outcome, PathsResult, success
from actions_uri.routes.hello import hello_route
from actions_uri.routing.context import ActionContext, ActionServices
from actions_uri.routing.registry import RouteSpec, RouteTree
from actions_uri.services.note_service import NoteService


class SearchParams(IncomingParams):
    query: NonEmptyStr


def handle_search_all_notes(ctx: ActionContext, services: ActionServices) -> Outcome:
    params = ctx.params_as(SearchParams)
    paths = NoteService(services.store).search_contents(params.query)
    return success(PathsResult(paths=paths))


ROUTES: RouteTree = {
    "/search": [
        hello_route(),
        RouteSpec("/all-notes", SearchParams, handle_search_all_notes, returns_data=True),
    ],
}
