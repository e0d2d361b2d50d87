"""
Path helpers shared by the store, the browser and the CLI.
"""
import os
import logging
from pathlib import Path
from typing import Optional

from platformdirs import user_data_dir

from shellmark.constants import APP_NAME, STORE_FILENAME
from shellmark.errors import ValidationError

logger = logging.getLogger(__name__)

# Extended-length prefix written by canonicalizing APIs on Windows
WINDOWS_VERBATIM_PREFIX = "\\\\?\\"


def default_store_path() -> Path:
    """
    Default location of the bookmark store.

    Uses platformdirs for a per-user data directory:
    - Linux: ~/.local/share/shellmark/bookmarks.json
    - macOS: ~/Library/Application Support/shellmark/bookmarks.json
    - Windows: %LOCALAPPDATA%/shellmark/bookmarks.json
    """
    return Path(user_data_dir(APP_NAME, appauthor=False)) / STORE_FILENAME


def normalize_path(path: str) -> str:
    """
    Normalize a bookmark path without touching the filesystem.

    Expands ``~``, makes the path absolute, collapses ``.`` and ``..`` and
    case-folds it on case-insensitive platforms.

    Raises:
        ValidationError: If the path is empty
    """
    if path is None or not str(path).strip():
        raise ValidationError("Bookmark path must not be empty")

    expanded = os.path.expanduser(str(path))
    if os.name == "nt" and expanded.startswith(WINDOWS_VERBATIM_PREFIX):
        expanded = expanded[len(WINDOWS_VERBATIM_PREFIX):]
    return os.path.normcase(os.path.normpath(os.path.abspath(expanded)))


def resolve_destination(path: Optional[str] = None) -> str:
    """
    Resolve an ``add`` destination to an existing absolute path.

    Symlinks are followed. Defaults to the current directory.

    Raises:
        ValidationError: If the path is empty or does not exist
    """
    if path is None:
        return normalize_path(os.getcwd())

    if not str(path).strip():
        raise ValidationError("Bookmark path must not be empty")

    try:
        resolved = Path(path).expanduser().resolve(strict=True)
    except (FileNotFoundError, NotADirectoryError):
        raise ValidationError(f"Path does not exist: {path}")
    except (OSError, RuntimeError) as e:
        raise ValidationError(f"Cannot resolve path {path}: {e}")

    return normalize_path(str(resolved))


def friendly_path(path: str, home: Optional[str] = None) -> str:
    """Display a path with the home directory shortened to ``~``."""
    home = home if home is not None else os.path.expanduser("~")
    home = home.rstrip("/\\")
    if not home:
        return path

    if path == home:
        return "~"
    for sep in ("/", "\\"):
        if path.startswith(home + sep):
            return "~" + path[len(home):]
    return path


def default_label(path: str) -> str:
    """Label shown for an unlabeled bookmark: its final path component."""
    name = os.path.basename(path.rstrip("/\\"))
    return name or friendly_path(path)


def ensure_parent_dir(path: Path) -> None:
    """Create the parent directory of ``path`` if missing."""
    parent = Path(path).parent
    if not parent.exists():
        logger.info(f"Creating data directory at {friendly_path(str(parent))}")
        parent.mkdir(parents=True, exist_ok=True)
