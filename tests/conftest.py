"""Common test fixtures for the Actions URI server."""

import tempfile
from pathlib import Path

import pytest

from actions_uri.config import ActionsUriConfig
from actions_uri.observability import metrics
from actions_uri.server.app import ActionsUriApp
from actions_uri.storage.vault_store import VaultStore
from tests.fakes import RecordingOpener, RecordingReporter


@pytest.fixture(autouse=True)
def _reset_metrics():
    """Keep the global metrics collector clean between tests."""
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def vault_dir():
    """Create a temporary vault directory."""
    with tempfile.TemporaryDirectory() as vault:
        yield Path(vault)


@pytest.fixture
def test_config(vault_dir):
    """Configuration pointing at the temporary vault, HTTP on a free port."""
    return ActionsUriConfig(vault_dir=vault_dir, http_port=0)


@pytest.fixture
def store(vault_dir):
    """Create a vault store on the temporary vault."""
    return VaultStore(vault_dir=vault_dir, trash_dir=".trash")


@pytest.fixture
def opener():
    return RecordingOpener()


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def app(test_config, store, opener, reporter):
    """Fully wired application with recording doubles for navigation."""
    return ActionsUriApp(
        config=test_config, store=store, opener=opener, error_reporter=reporter
    )


@pytest.fixture
def services(app):
    return app.services


@pytest.fixture
def call(app):
    """Dispatch an action by its path below the namespace, e.g. ``/note/get``."""

    def _call(path, params=None):
        route = app.registry.lookup(f"/actions-uri{path}")
        assert route is not None, f"no route for {path}"
        return app.dispatcher.dispatch(route, params or {})

    return _call
