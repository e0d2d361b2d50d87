"""
shellmark - bookmarks for your shell

Register filesystem paths and jump back to them through an interactive fuzzy
picker. The picker prints a shell command (``cd``, ``Push-Location``, ...)
that a small shell function evaluates.

Example Usage:
    >>> from shellmark import ChangeDir, Store, rank, emit
    >>> store = Store.load("/tmp/bookmarks.json")
    >>> bookmark = store.add("/home/u/proj", label="proj")
    >>> store.save()
    >>> best, _ = rank("proj", store.bookmarks)[0]
    >>> emit(ChangeDir(best.path), "posix")
    'cd -- /home/u/proj'
"""

__version__ = "0.4.0"

# Store
from shellmark.models import Bookmark
from shellmark.store import Store

# Configuration
from shellmark.config import ShellmarkConfig, init_config

# Ranking
from shellmark.matcher import rank

# Emission
from shellmark.emitter import ChangeDir, OpenInEditor, emit, plug, get_dialect

# Errors
from shellmark.errors import (
    ShellmarkError,
    ValidationError,
    StorageError,
    CorruptStoreError,
    StorageIOError,
    TerminalError,
)

__all__ = [
    "Bookmark",
    "Store",
    "ShellmarkConfig",
    "init_config",
    "rank",
    "ChangeDir",
    "OpenInEditor",
    "emit",
    "plug",
    "get_dialect",
    "ShellmarkError",
    "ValidationError",
    "StorageError",
    "CorruptStoreError",
    "StorageIOError",
    "TerminalError",
]
