"""Template plugin capabilities.

Note creation can apply a template through a companion plugin. Plugins are
looked up by name from a ``PluginRegistry`` that is injected into the
handlers; a missing or disabled plugin is reported as a ``PluginError``.
"""
import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import PurePosixPath
from typing import Callable, Dict, Iterable, Optional

from actions_uri.exceptions import ErrorCode, PluginError
from actions_uri.storage.base import NoteStore

logger = logging.getLogger(__name__)

TEMPLATER_PLUGIN = "templater-obsidian"
TEMPLATES_PLUGIN = "templates"

_TEMPLATE_VARIABLE = re.compile(r"\{\{\s*(title|date|time)(?::([^}]*))?\s*\}\}")

# Moment-style tokens accepted in {{date:...}} / {{time:...}}
_MOMENT_TOKENS = [
    ("YYYY", "%Y"),
    ("YY", "%y"),
    ("MMMM", "%B"),
    ("MMM", "%b"),
    ("MM", "%m"),
    ("DD", "%d"),
    ("dddd", "%A"),
    ("ddd", "%a"),
    ("HH", "%H"),
    ("mm", "%M"),
    ("ss", "%S"),
]


def _moment_to_strftime(fmt: str) -> str:
    for token, directive in _MOMENT_TOKENS:
        fmt = fmt.replace(token, directive)
    return fmt


class TemplatePlugin(ABC):
    """A capability that writes a rendered template into a note."""

    name: str = ""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    @abstractmethod
    def apply_template(self, store: NoteStore, template_path: str, note_path: str) -> None:
        """Render ``template_path`` and write the result to ``note_path``."""
        pass


class CoreTemplatesPlugin(TemplatePlugin):
    """Plain variable substitution: ``{{title}}``, ``{{date}}``, ``{{time}}``.

    ``{{date:YYYY-MM-DD}}`` style formats are supported for date and time.
    """

    name = TEMPLATES_PLUGIN

    def __init__(
        self,
        enabled: bool = True,
        date_format: str = "YYYY-MM-DD",
        time_format: str = "HH:mm",
        clock: Callable[[], datetime] = datetime.now,
    ):
        super().__init__(enabled)
        self.date_format = date_format
        self.time_format = time_format
        self.clock = clock

    def render(self, template: str, title: str) -> str:
        now = self.clock()

        def _substitute(match: "re.Match[str]") -> str:
            variable, fmt = match.group(1), match.group(2)
            if variable == "title":
                return title
            default = self.date_format if variable == "date" else self.time_format
            return now.strftime(_moment_to_strftime(fmt.strip() if fmt else default))

        return _TEMPLATE_VARIABLE.sub(_substitute, template)

    def apply_template(self, store: NoteStore, template_path: str, note_path: str) -> None:
        template = store.read(template_path)
        title = PurePosixPath(note_path).stem
        store.modify(note_path, self.render(template, title))
        logger.debug(f"Applied template {template_path} to {note_path}")


class PluginRegistry:
    """Name-keyed lookup of plugin capabilities."""

    def __init__(self, plugins: Optional[Iterable[TemplatePlugin]] = None):
        self._plugins: Dict[str, TemplatePlugin] = {}
        for plugin in plugins or ():
            self.register(plugin)

    def register(self, plugin: TemplatePlugin) -> None:
        self._plugins[plugin.name] = plugin

    def get_plugin(self, name: str) -> Optional[TemplatePlugin]:
        return self._plugins.get(name)

    def enabled_plugin(self, name: str) -> TemplatePlugin:
        """Return an enabled plugin.

        Raises:
            PluginError: MISSING_PLUGIN if absent, PLUGIN_DISABLED if turned off.
        """
        plugin = self.get_plugin(name)
        if plugin is None:
            raise PluginError(
                f"Plugin {name} is not available",
                plugin_name=name,
                code=ErrorCode.MISSING_PLUGIN,
            )
        if not plugin.enabled:
            raise PluginError(
                f"Plugin {name} is not enabled",
                plugin_name=name,
                code=ErrorCode.PLUGIN_DISABLED,
            )
        return plugin


def default_plugins() -> PluginRegistry:
    """Registry with the built-in core templates capability."""
    return PluginRegistry([CoreTemplatesPlugin()])
