"""Two-stage parameter pipeline.

Stage 1 (``validate_params``) is pure: raw transport strings become a typed
parameter model, or a ``ParameterValidationError`` listing every offending
field. Stage 2 (``resolve_params``) consults the collaborators: it resolves
the addressed note and runs the route's preconditions. Failures of either
stage are raised before any handler runs.
"""
import logging
from typing import Any, Dict, List, Mapping

from pydantic import ValidationError

from actions_uri.exceptions import ParameterValidationError
from actions_uri.models.params import IncomingParams, NoteTargetingParams
from actions_uri.routing.context import ActionContext, ActionServices
from actions_uri.routing.registry import Route, Targeting
from actions_uri.routing.targeting import resolve_note_target

logger = logging.getLogger(__name__)

CALLBACK_FIELDS = ("x-success", "x-error")

_VALUE_ERROR_PREFIX = "Value error, "


def _field_name(loc: tuple) -> str:
    return ".".join(str(part) for part in loc)


def field_errors_from(exc: ValidationError) -> List[Dict[str, str]]:
    """Flatten a pydantic ValidationError into one entry per offending field."""
    errors = []
    for error in exc.errors():
        message = error["msg"]
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX):]
        errors.append({"field": _field_name(error["loc"]), "message": message})
    return errors


def validate_params(
    route: Route,
    raw: Mapping[str, Any],
    require_callbacks: bool = False,
) -> IncomingParams:
    """Stage 1: validate raw parameters against the route's schema.

    The ``action`` field is injected from the route path and overrides any
    caller-supplied value.

    Args:
        route: The route being called.
        raw: Raw parameters as received from the transport.
        require_callbacks: Also require ``x-success`` and ``x-error`` (URI
            transport calls to data-returning routes).

    Raises:
        ParameterValidationError: Listing every violated field.
    """
    data = dict(raw)
    data["action"] = route.path

    errors: List[Dict[str, str]] = []
    params = None
    try:
        params = route.schema.select_variant(data).model_validate(data)
    except ValidationError as e:
        errors.extend(field_errors_from(e))

    if require_callbacks:
        reported = {e["field"] for e in errors}
        for name in CALLBACK_FIELDS:
            if not data.get(name) and name not in reported:
                errors.append({"field": name, "message": "Field required"})

    if errors:
        raise ParameterValidationError(errors)
    return params


def resolve_params(
    route: Route,
    params: IncomingParams,
    services: ActionServices,
    raw: Mapping[str, Any],
) -> ActionContext:
    """Stage 2: resolve the targeted note and run route preconditions.

    Raises:
        ParameterValidationError: A precondition failed or the addressing
            fields are unusable.
        NoteNotFoundError: Hard targeting found no note.
        AmbiguousTargetError: Identifier ambiguity is configured as an error.
    """
    target = None
    if route.targeting is not Targeting.NONE:
        if not isinstance(params, NoteTargetingParams):
            raise TypeError(f"Route {route.path} resolves notes but its schema has no targeting fields")
        target = resolve_note_target(params, route.targeting, services)

    for check in route.preconditions:
        check(params, services)

    return ActionContext(route=route, params=params, raw=dict(raw), target=target)


def run_pipeline(
    route: Route,
    raw: Mapping[str, Any],
    services: ActionServices,
    require_callbacks: bool = False,
) -> ActionContext:
    """Run both stages and return the context a handler is called with."""
    params = validate_params(route, raw, require_callbacks=require_callbacks)
    return resolve_params(route, params, services, raw)
