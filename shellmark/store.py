"""
Persistent bookmark store for shellmark.

The store is one JSON file holding a format version and an ordered array of
bookmarks. Writes are atomic: the new content goes to a temporary file in the
same directory which is then renamed over the target, so a concurrent reader
never sees a partial file. There is no cross-process locking; the last writer
wins.
"""
import os
import json
import logging
import tempfile
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Generator, List, Optional, Union

from shellmark.constants import LEGACY_FORMAT_VERSION, STORE_FORMAT_VERSION
from shellmark.errors import CorruptStoreError, StorageIOError, ValidationError
from shellmark.models import Bookmark
from shellmark.utils import ensure_parent_dir, normalize_path

logger = logging.getLogger(__name__)


def default_order_key(bookmark: Bookmark):
    """Sort key for the default order: score desc, most recent use, path."""
    last_used = bookmark.last_used_at.timestamp() if bookmark.last_used_at else float("-inf")
    return (-bookmark.score, -last_used, bookmark.path)


class Store:
    """
    Ordered collection of bookmarks backed by a JSON file.

    The in-memory order is the file order; ``list()`` returns the ranking
    order used by the browser. Mutations only change memory until ``save()``.
    """

    def __init__(self, path: Union[str, Path], bookmarks: Optional[List[Bookmark]] = None,
                 version: int = STORE_FORMAT_VERSION):
        self.path = Path(path)
        self.bookmarks: List[Bookmark] = list(bookmarks or [])
        self.version = version

    def __len__(self) -> int:
        return len(self.bookmarks)

    def __iter__(self):
        return iter(self.bookmarks)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Store":
        """
        Read a store from disk.

        A missing or blank file yields an empty store. Stored paths are
        normalized like paths given to ``add``, so lookups by path find them.

        Args:
            path: Store file location

        Returns:
            Loaded store

        Raises:
            CorruptStoreError: If the file cannot be parsed
            StorageIOError: If the file cannot be read
        """
        path = Path(path)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug(f"No store at {path}, starting empty")
            return cls(path)
        except (OSError, UnicodeDecodeError) as e:
            raise StorageIOError(f"Couldn't read bookmarks file {path}: {e}", path=path)

        if not content.strip():
            return cls(path)

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise CorruptStoreError(f"Couldn't parse bookmarks file {path}: {e}", path=path)

        try:
            version, bookmarks = cls._decode(data)
            for bookmark in bookmarks:
                bookmark.path = normalize_path(bookmark.path)
        except (ValueError, TypeError, ValidationError) as e:
            raise CorruptStoreError(f"Invalid bookmarks file {path}: {e}", path=path)

        seen = set()
        for bookmark in bookmarks:
            if bookmark.path in seen:
                raise CorruptStoreError(f"Invalid bookmarks file {path}: duplicate path {bookmark.path}", path=path)
            seen.add(bookmark.path)

        if version == LEGACY_FORMAT_VERSION:
            logger.info(f"Upgrading legacy bookmarks file {path}")

        return cls(path, bookmarks, version=version)

    @staticmethod
    def _decode(data):
        if isinstance(data, list):
            return LEGACY_FORMAT_VERSION, [Bookmark.from_legacy(item) for item in data]

        if not isinstance(data, dict):
            raise ValueError("top level must be an object")

        version = data.get("version")
        if isinstance(version, bool) or not isinstance(version, int):
            raise ValueError("missing format version")
        if version > STORE_FORMAT_VERSION or version < 1:
            raise ValueError(f"unsupported format version {version}")

        items = data.get("bookmarks", [])
        if not isinstance(items, list):
            raise ValueError("bookmarks must be an array")

        return version, [Bookmark.from_dict(item) for item in items]

    def to_json(self) -> str:
        """Serialize the store in the current format."""
        data = {
            "version": STORE_FORMAT_VERSION,
            "bookmarks": [b.to_dict() for b in self.bookmarks],
        }
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    def save(self) -> None:
        """
        Atomically write the store to disk.

        Raises:
            StorageIOError: If the file cannot be written
        """
        content = self.to_json()
        tmp_name = None
        try:
            ensure_parent_dir(self.path)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=str(self.path.parent),
                prefix=f".{self.path.name}.", suffix=".tmp", delete=False
            ) as handle:
                tmp_name = handle.name
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageIOError(f"Couldn't write bookmarks file {self.path}: {e}", path=self.path)

        self.version = STORE_FORMAT_VERSION
        logger.debug(f"Saved {len(self.bookmarks)} bookmarks to {self.path}")

    @classmethod
    @contextmanager
    def transaction(cls, path: Union[str, Path]) -> Generator["Store", None, None]:
        """
        Read-modify-write against the file at ``path``.

        Loads the current file, yields the store and saves it when the block
        completes. Changes are discarded if the block raises.
        """
        store = cls.load(path)
        yield store
        store.save()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, path: str, label: Optional[str] = None, force: bool = False) -> Bookmark:
        """
        Add a bookmark.

        Args:
            path: Path to bookmark, normalized before storing
            label: Optional short name
            force: Replace an existing bookmark for the same path

        Returns:
            The new bookmark

        Raises:
            ValidationError: If the path is empty or already bookmarked
        """
        path = normalize_path(path)
        bookmark = Bookmark(path=path, label=label or None)

        index = self._index_of(path)
        if index is not None:
            if not force:
                raise ValidationError(f"Bookmark already exists: {path}")
            logger.info(f"Replacing bookmark for {path}")
            self.bookmarks[index] = bookmark
        else:
            self.bookmarks.append(bookmark)

        return bookmark

    def remove(self, path: str) -> bool:
        """
        Remove a bookmark.

        Returns:
            True if removed, False if no bookmark had that path
        """
        index = self._index_of(self._key(path))
        if index is None:
            return False
        del self.bookmarks[index]
        return True

    def touch(self, path: str, now: Optional[datetime] = None) -> bool:
        """
        Record a selection: bump the score and set last_used_at.

        Returns:
            True if the bookmark exists, False otherwise
        """
        bookmark = self.get(path)
        if bookmark is None:
            return False
        bookmark.touch(now)
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, path: str) -> Optional[Bookmark]:
        """Get a bookmark by path."""
        index = self._index_of(self._key(path))
        return self.bookmarks[index] if index is not None else None

    def list(self) -> List[Bookmark]:
        """Bookmarks in default order: score desc, most recent use, path."""
        return sorted(self.bookmarks, key=default_order_key)

    def find_by_prefix(self, prefix: str) -> List[Bookmark]:
        """Bookmarks whose path or label starts with ``prefix``, in default order."""
        if not prefix:
            return self.list()
        return [
            b for b in self.list()
            if b.path.startswith(prefix) or (b.label is not None and b.label.startswith(prefix))
        ]

    @staticmethod
    def _key(path: str) -> str:
        try:
            return normalize_path(path)
        except ValidationError:
            return ""

    def _index_of(self, path: str) -> Optional[int]:
        for i, bookmark in enumerate(self.bookmarks):
            if bookmark.path == path:
                return i
        return None
