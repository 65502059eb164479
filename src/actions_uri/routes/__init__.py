"""Route tree of all actions."""
from typing import Dict, List

from actions_uri.routes import note, note_properties, search
from actions_uri.routes.hello import hello_route
from actions_uri.routing.registry import RouteRegistry, RouteSpec, RouteTree


def route_tree() -> RouteTree:
    """All namespaces with their sub-routes, including the root hello route."""
    tree: Dict[str, List[RouteSpec]] = {"/": [hello_route()]}
    for module in (note, note_properties, search):
        for namespace, specs in module.ROUTES.items():
            tree.setdefault(namespace, []).extend(specs)
    return tree


def build_registry(namespace: str) -> RouteRegistry:
    """Registry with every action mounted under the URI ``namespace``."""
    registry = RouteRegistry(prefix=namespace)
    registry.register(route_tree())
    return registry
