"""Route registry.

A route tree maps a namespace (``/note``) to an ordered list of sub-routes,
each binding a sub-path to a parameter schema and a handler. The registry
flattens the tree into a table keyed by the normalized full path
(``/actions-uri/note/get``) once at startup; after that it is read-only
and looked up by exact match.
"""
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Type

from actions_uri.exceptions import DuplicateRouteError
from actions_uri.models.params import IncomingParams

if TYPE_CHECKING:
    from actions_uri.models.results import Outcome
    from actions_uri.routing.context import ActionContext, ActionServices

logger = logging.getLogger(__name__)

_DUPLICATE_SLASHES = re.compile(r"/{2,}")

Handler = Callable[["ActionContext", "ActionServices"], "Outcome"]
Precondition = Callable[[IncomingParams, "ActionServices"], None]


class Targeting(Enum):
    """How a route resolves the note it addresses before the handler runs."""

    NONE = "none"
    HARD = "hard"
    SOFT = "soft"


@dataclass(frozen=True)
class RouteSpec:
    """One entry of a route tree, relative to its namespace.

    Attributes:
        path: Sub-path below the namespace, e.g. ``/get``; ``/`` for the
            namespace's own hello route.
        schema: Parameter model validating the raw input.
        handler: Callable producing the outcome.
        targeting: Resolution policy for the addressed note.
        returns_data: The URI transport requires both callback URLs.
        preconditions: Extra checks that need collaborators (e.g. a template
            file must exist); each raises ParameterValidationError.
    """

    path: str
    schema: Type[IncomingParams]
    handler: Handler
    targeting: Targeting = Targeting.NONE
    returns_data: bool = False
    preconditions: Tuple[Precondition, ...] = ()


@dataclass(frozen=True)
class Route:
    """A registered route, addressed by its normalized full path."""

    path: str
    namespace: str
    schema: Type[IncomingParams]
    handler: Handler
    targeting: Targeting = Targeting.NONE
    returns_data: bool = False
    preconditions: Tuple[Precondition, ...] = field(default=())

    @property
    def is_namespace_root(self) -> bool:
        return self.path == self.namespace


RouteTree = Mapping[str, Sequence[RouteSpec]]


def normalize_route_path(*parts: str) -> str:
    """Join path parts into a normalized absolute route path.

    Duplicate slashes collapse, a trailing slash is stripped and the result
    always starts with a single ``/``.

    Examples:
        ("actions-uri", "/note", "/get") -> "/actions-uri/note/get"
        ("actions-uri", "/note", "/") -> "/actions-uri/note"
    """
    joined = "/" + "/".join(part.strip() for part in parts if part)
    joined = _DUPLICATE_SLASHES.sub("/", joined)
    if len(joined) > 1:
        joined = joined.rstrip("/")
    return joined or "/"


class RouteRegistry:
    """Read-only-after-init table from full path to route."""

    def __init__(self, prefix: str = ""):
        """Initialize an empty registry.

        Args:
            prefix: Namespace every tree is mounted under, e.g. ``actions-uri``.
        """
        self.prefix = normalize_route_path(prefix)
        self._routes: Dict[str, Route] = {}
        self._namespaces: List[str] = []

    def register(self, tree: RouteTree) -> None:
        """Flatten a route tree into the table.

        Raises:
            DuplicateRouteError: If two entries normalize to the same path.
        """
        for namespace_path, specs in tree.items():
            namespace = normalize_route_path(self.prefix, namespace_path)
            if namespace not in self._namespaces:
                self._namespaces.append(namespace)
            for spec in specs:
                full_path = normalize_route_path(self.prefix, namespace_path, spec.path)
                if full_path in self._routes:
                    raise DuplicateRouteError(full_path)
                self._routes[full_path] = Route(
                    path=full_path,
                    namespace=namespace,
                    schema=spec.schema,
                    handler=spec.handler,
                    targeting=spec.targeting,
                    returns_data=spec.returns_data,
                    preconditions=tuple(spec.preconditions),
                )
                logger.debug(f"Registered route {full_path}")

    def lookup(self, path: str) -> Optional[Route]:
        """Return the route registered at exactly ``path``."""
        return self._routes.get(path)

    def namespaces(self) -> List[str]:
        """Full paths of all registered namespaces except the root, in registration order."""
        return [ns for ns in self._namespaces if ns != self.prefix]

    def sub_actions(self, namespace: str) -> List[str]:
        """Full paths of the routes below ``namespace`` (its hello route excluded)."""
        namespace = normalize_route_path(namespace)
        return [
            route.path
            for route in self._routes.values()
            if route.namespace == namespace and not route.is_namespace_root
        ]

    def paths(self) -> List[str]:
        return list(self._routes)

    def __contains__(self, path: object) -> bool:
        return path in self._routes

    def __iter__(self) -> Iterator[Route]:
        return iter(self._routes.values())

    def __len__(self) -> int:
        return len(self._routes)
