"""Storage layer: the document store interface and its vault implementation."""
from actions_uri.storage.base import NoteFile, NoteStore
from actions_uri.storage.vault_store import VaultStore

__all__ = ["NoteFile", "NoteStore", "VaultStore"]
