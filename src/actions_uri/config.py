"""Configuration module for the Actions URI server."""

import logging
import os
import re
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from actions_uri import __version__

# Load environment variables from the project root .env file.
# Anchored to __file__ so it works regardless of the process CWD.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# User-level config: survives reinstalls, lives alongside the logs
_USER_ENV = Path.home() / ".actions-uri" / ".env"
load_dotenv(_USER_ENV)


logger = logging.getLogger(__name__)

_NAMESPACE_PATTERN = re.compile(r"^[a-z0-9][a-z0-9\-]*$")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class ActionsUriConfig(BaseModel):
    """Configuration for the Actions URI server."""

    # Base directory for relative paths
    base_dir: Path = Field(
        default_factory=lambda: Path(os.getenv("ACTIONS_URI_BASE_DIR", "."))
    )
    # Vault (document store) root
    vault_dir: Path = Field(
        default_factory=lambda: Path(os.getenv("ACTIONS_URI_VAULT_DIR", "vault"))
    )
    # Folder inside the vault that receives trashed notes
    trash_dir: str = Field(
        default_factory=lambda: os.getenv("ACTIONS_URI_TRASH_DIR", ".trash")
    )
    # URI transport: <scheme>://<namespace>/<route>/<subroute>?...
    uri_scheme: str = Field(
        default_factory=lambda: os.getenv("ACTIONS_URI_SCHEME", "obsidian")
    )
    uri_namespace: str = Field(
        default_factory=lambda: os.getenv("ACTIONS_URI_NAMESPACE", "actions-uri")
    )
    # HTTP transport (loopback only)
    http_enabled: bool = Field(
        default_factory=lambda: _env_flag("ACTIONS_URI_HTTP_ENABLED", "true")
    )
    http_host: str = Field(
        default_factory=lambda: os.getenv("ACTIONS_URI_HTTP_HOST", "127.0.0.1")
    )
    http_port: int = Field(
        default_factory=lambda: int(os.getenv("ACTIONS_URI_HTTP_PORT", "3000"))
    )
    # Front matter key holding a note's stable identifier
    frontmatter_key: str = Field(
        default_factory=lambda: os.getenv("ACTIONS_URI_FRONTMATTER_KEY", "uid")
    )
    # What to do when several notes carry the same identifier:
    # "first" picks the path-ascending first match, "error" refuses.
    uid_ambiguity: Literal["first", "error"] = Field(
        default_factory=lambda: os.getenv("ACTIONS_URI_UID_AMBIGUITY", "first")
    )
    # Periodic notes
    periodic_notes_folder: str = Field(
        default_factory=lambda: os.getenv("ACTIONS_URI_PERIODIC_NOTES_FOLDER", "")
    )
    daily_note_format: str = Field(
        default_factory=lambda: os.getenv("ACTIONS_URI_DAILY_NOTE_FORMAT", "%Y-%m-%d")
    )
    weekly_note_format: str = Field(
        default_factory=lambda: os.getenv("ACTIONS_URI_WEEKLY_NOTE_FORMAT", "%G-W%V")
    )
    monthly_note_format: str = Field(
        default_factory=lambda: os.getenv("ACTIONS_URI_MONTHLY_NOTE_FORMAT", "%Y-%m")
    )
    # "{quarter}" is replaced with the quarter number before strftime runs
    quarterly_note_format: str = Field(
        default_factory=lambda: os.getenv(
            "ACTIONS_URI_QUARTERLY_NOTE_FORMAT", "%Y-Q{quarter}"
        )
    )
    yearly_note_format: str = Field(
        default_factory=lambda: os.getenv("ACTIONS_URI_YEARLY_NOTE_FORMAT", "%Y")
    )
    # Server identification
    server_name: str = Field(
        default=os.getenv("ACTIONS_URI_SERVER_NAME", "actions-uri")
    )
    server_version: str = Field(default=__version__)

    @model_validator(mode="after")
    def _validate_transport_config(self) -> "ActionsUriConfig":
        """Validate transport settings."""
        if not 0 <= self.http_port <= 65535:
            raise ValueError("http_port must be between 0 and 65535")
        if not _NAMESPACE_PATTERN.match(self.uri_namespace):
            raise ValueError(
                "uri_namespace may only contain lowercase letters, digits and hyphens"
            )
        # Defaults built from the environment skip field validation
        if self.uid_ambiguity not in ("first", "error"):
            raise ValueError("uid_ambiguity must be 'first' or 'error'")
        if not self.frontmatter_key.strip():
            raise ValueError("frontmatter_key cannot be empty")
        if self.http_port < 1024 and self.http_port != 0:
            logger.warning(
                "HTTP port %d is privileged and may require elevated permissions",
                self.http_port,
            )
        return self

    def get_absolute_path(self, path: Path) -> Path:
        """Convert a relative path to an absolute path based on base_dir."""
        if path.is_absolute():
            return path
        return self.base_dir / path

    def get_vault_path(self) -> Path:
        """Get the absolute vault directory, creating it if needed."""
        vault_path = self.get_absolute_path(self.vault_dir)
        vault_path.mkdir(parents=True, exist_ok=True)
        return vault_path


# Create a global config instance
config = ActionsUriConfig()
