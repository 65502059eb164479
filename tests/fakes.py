"""Test doubles for collaborators of the action pipeline.

Design principles:
- Never mock the vault: tests use a real ``VaultStore`` on a temp directory
- Doubles record what they were asked to do so tests can assert on it
- Deterministic: fixed clocks, no real browser navigation
"""
from datetime import datetime
from typing import List

from actions_uri.models.results import TextResult, success
from actions_uri.plugins import TEMPLATER_PLUGIN, TemplatePlugin
from actions_uri.storage.base import NoteStore


class RecordingOpener:
    """Stands in for ``webbrowser.open`` and remembers every URL."""

    def __init__(self) -> None:
        self.urls: List[str] = []

    def __call__(self, url: str) -> bool:
        self.urls.append(url)
        return True


class RecordingReporter:
    """Collects messages sent to the local error reporter."""

    def __init__(self) -> None:
        self.messages: List[str] = []

    def __call__(self, message: str) -> None:
        self.messages.append(message)


class CountingHandler:
    """Route handler that counts its invocations and remembers the context."""

    def __init__(self, message: str = "handled") -> None:
        self.message = message
        self.calls = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def __call__(self, ctx, services):
        self.calls.append(ctx)
        processed = ctx.target.path if ctx.target is not None else None
        return success(TextResult(message=self.message), processed)


class FakeTemplaterPlugin(TemplatePlugin):
    """Templater stand-in: copies the template and upper-cases ``<% title %>``."""

    name = TEMPLATER_PLUGIN

    def __init__(self, enabled: bool = True) -> None:
        super().__init__(enabled)
        self.applied = []

    def apply_template(self, store: NoteStore, template_path: str, note_path: str) -> None:
        self.applied.append((template_path, note_path))
        title = note_path.rsplit("/", 1)[-1][:-3]
        store.modify(note_path, store.read(template_path).replace("<% title %>", title.upper()))


def fixed_clock(year: int = 2024, month: int = 5, day: int = 3, hour: int = 9, minute: int = 30):
    """Return a clock callable that always reports the same moment."""
    moment = datetime(year, month, day, hour, minute)
    return lambda: moment
