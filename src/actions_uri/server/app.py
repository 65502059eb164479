"""Application wiring: builds the registry, collaborators and transports."""
import logging
from pathlib import Path
from typing import Optional

from actions_uri.config import ActionsUriConfig
from actions_uri.config import config as default_config
from actions_uri.periodic import PeriodicNotes
from actions_uri.plugins import PluginRegistry, default_plugins
from actions_uri.routes import build_registry
from actions_uri.routing.context import ActionServices
from actions_uri.server.callbacks import Opener
from actions_uri.server.dispatcher import Dispatcher
from actions_uri.server.http_server import HttpTransport
from actions_uri.server.uri_handler import ErrorReporter, UriTransport
from actions_uri.storage.base import NoteStore
from actions_uri.storage.vault_store import VaultStore
from actions_uri.workspace import Workspace

logger = logging.getLogger(__name__)


class ActionsUriApp:
    """Everything needed to serve actions, built once at startup."""

    def __init__(
        self,
        config: Optional[ActionsUriConfig] = None,
        store: Optional[NoteStore] = None,
        plugins: Optional[PluginRegistry] = None,
        opener: Optional[Opener] = None,
        error_reporter: Optional[ErrorReporter] = None,
    ):
        self.config = config or default_config
        self.store = store or VaultStore(
            Path(self.config.get_vault_path()), self.config.trash_dir
        )
        self.registry = build_registry(self.config.uri_namespace)
        self.services = ActionServices(
            store=self.store,
            workspace=Workspace(self.store),
            plugins=plugins or default_plugins(),
            periodic_notes=PeriodicNotes(self.store, self.config),
            config=self.config,
            registry=self.registry,
        )
        self.dispatcher = Dispatcher(self.registry, self.services)

        uri_kwargs = {"scheme": self.config.uri_scheme}
        if opener is not None:
            uri_kwargs["opener"] = opener
        if error_reporter is not None:
            uri_kwargs["error_reporter"] = error_reporter
        self.uri = UriTransport(self.dispatcher, **uri_kwargs)
        self.http = HttpTransport(
            self.dispatcher, host=self.config.http_host, port=self.config.http_port
        )
        logger.info(
            f"{self.config.server_name} {self.config.server_version}: "
            f"{len(self.registry)} routes under {self.registry.prefix}"
        )
