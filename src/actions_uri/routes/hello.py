"""Discovery routes.

Every namespace answers at its own root with the list of its sub-actions;
the URI namespace root lists the namespaces.
"""
from actions_uri.models.params import IncomingParams
from actions_uri.models.results import HelloResult, Outcome, success
from actions_uri.routing.context import ActionContext, ActionServices
from actions_uri.routing.registry import RouteSpec


def handle_hello(ctx: ActionContext, services: ActionServices) -> Outcome:
    registry = services.registry
    namespace = ctx.route.namespace
    if namespace == registry.prefix:
        actions = registry.namespaces()
    else:
        actions = registry.sub_actions(namespace)
    return success(HelloResult(
        message=f"Hello from {namespace}",
        actions=actions,
    ))


def hello_route() -> RouteSpec:
    """Zero-parameter discovery route mounted at a namespace root."""
    return RouteSpec(path="/", schema=IncomingParams, handler=handle_hello)
