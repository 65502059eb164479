"""Per-call context and injected collaborators."""
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Type, TypeVar

from actions_uri.config import ActionsUriConfig
from actions_uri.models.params import IncomingParams, TargetingKey
from actions_uri.periodic import PeriodicNotes
from actions_uri.plugins import PluginRegistry
from actions_uri.routing.registry import Route, RouteRegistry
from actions_uri.storage.base import NoteFile, NoteStore
from actions_uri.workspace import Workspace

P = TypeVar("P", bound=IncomingParams)


@dataclass(frozen=True)
class ResolvedTarget:
    """Outcome of note-targeting resolution.

    Attributes:
        input_key: The addressing field that was supplied, if any.
        path: Canonical vault-relative path of the target.
        file: Handle to the note if it exists, None otherwise.
    """

    input_key: Optional[TargetingKey]
    path: str
    file: Optional[NoteFile] = None

    @property
    def exists(self) -> bool:
        return self.file is not None


@dataclass(frozen=True)
class ActionContext:
    """Validated, resolved input of exactly one handler invocation."""

    route: Route
    params: IncomingParams
    raw: Mapping[str, Any] = field(default_factory=dict)
    target: Optional[ResolvedTarget] = None

    @property
    def path(self) -> str:
        """Resolved note path; only valid on targeting routes."""
        if self.target is None:
            raise AttributeError(f"Route {self.route.path} does not resolve a note")
        return self.target.path

    def params_as(self, params_type: Type[P]) -> P:
        """Return the validated params narrowed to the variant a handler expects.

        Raises:
            TypeError: If the route's schema produced a different variant.
        """
        if not isinstance(self.params, params_type):
            raise TypeError(
                f"Route {self.route.path} expected {params_type.__name__}, "
                f"got {type(self.params).__name__}"
            )
        return self.params


@dataclass
class ActionServices:
    """Collaborators handed to every handler."""

    store: NoteStore
    workspace: Workspace
    plugins: PluginRegistry
    periodic_notes: PeriodicNotes
    config: ActionsUriConfig
    registry: RouteRegistry
