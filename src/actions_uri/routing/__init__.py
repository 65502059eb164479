"""Routing: the route registry, the parameter pipeline and note targeting."""
from actions_uri.routing.context import ActionContext, ActionServices, ResolvedTarget
from actions_uri.routing.registry import (
    Route,
    RouteRegistry,
    RouteSpec,
    RouteTree,
    Targeting,
    normalize_route_path,
)

__all__ = [
    "ActionContext",
    "ActionServices",
    "ResolvedTarget",
    "Route",
    "RouteRegistry",
    "RouteSpec",
    "RouteTree",
    "Targeting",
    "normalize_route_path",
]
