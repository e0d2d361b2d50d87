"""
Browser state machine.

BrowseSession holds everything the interactive picker needs (the store, the
query, the ranked candidates, the selection and the current mode) and exposes
one method per user command. It never touches the terminal, so the whole
interaction can be driven from tests.

Modes:
    TYPING          editing the query, list focused
    CONFIRM_DELETE  waiting for y/n after the delete key
    HELP            key binding overview, any key returns to TYPING
    COMMITTED       terminal: a bookmark was chosen
    CANCELLED       terminal: the user quit

The store is only written on commit and on a confirmed delete.
"""
import os
import logging
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from shellmark.emitter import ChangeDir, OpenInEditor, Outcome
from shellmark.errors import StorageError
from shellmark.matcher import rank
from shellmark.models import Bookmark
from shellmark.store import Store

logger = logging.getLogger(__name__)

Ranker = Callable[[str, Sequence[Bookmark]], List[Tuple[Bookmark, int]]]


class Mode(Enum):
    TYPING = "typing"
    CONFIRM_DELETE = "confirm_delete"
    HELP = "help"
    COMMITTED = "committed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (Mode.COMMITTED, Mode.CANCELLED)


class Target(Enum):
    """What a commit should do with the selected bookmark."""
    DEFAULT = "default"
    DIRECTORY = "directory"
    EDITOR = "editor"


def outcome_for(path: str, target: Target = Target.DEFAULT, editor: Optional[str] = None) -> Outcome:
    """
    Decide what selecting ``path`` means.

    Directories are entered. Files open in the editor when one is set (or
    when asked for explicitly), otherwise their parent directory is entered.
    """
    if target == Target.EDITOR:
        return OpenInEditor(path, editor)

    if os.path.isfile(path):
        if target == Target.DEFAULT and editor:
            return OpenInEditor(path, editor)
        return ChangeDir(os.path.dirname(path) or path)

    if not os.path.exists(path):
        logger.warning(f"Bookmarked path no longer exists: {path}")
    return ChangeDir(path)


class BrowseSession:
    """
    Query, selection and mode of one interactive session.

    Args:
        store: Store to browse; mutated and saved on commit or delete
        editor: Configured editor, decides how files are opened
        ranker: Ranking function, defaults to matcher.rank
    """

    def __init__(self, store: Store, editor: Optional[str] = None, ranker: Ranker = rank):
        self.store = store
        self.editor = editor
        self.ranker = ranker

        self.query = ""
        self.cursor = 0
        self.selected = 0
        self.offset = 0
        self.mode = Mode.TYPING
        self.outcome: Outcome = None
        self.message: Optional[str] = None
        self.candidates: List[Tuple[Bookmark, int]] = []

        self.refresh(reset=True)

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def done(self) -> bool:
        return self.mode.is_terminal

    @property
    def selected_bookmark(self) -> Optional[Bookmark]:
        if not self.candidates:
            return None
        return self.candidates[self.selected][0]

    def refresh(self, reset: bool = False) -> None:
        """Re-rank and clamp the selection to the new candidate count."""
        self.candidates = self.ranker(self.query, self.store.bookmarks)
        if reset or not self.candidates:
            self.selected = 0
        else:
            self.selected = min(self.selected, len(self.candidates) - 1)

    def viewport(self, rows: int) -> Tuple[int, int]:
        """
        Visible slice of the candidate list for ``rows`` lines.

        Scrolls the remembered offset just enough to keep the selection visible.

        Returns:
            (start, end) indices into candidates
        """
        rows = max(rows, 1)
        if self.selected < self.offset:
            self.offset = self.selected
        elif self.selected >= self.offset + rows:
            self.offset = self.selected - rows + 1
        self.offset = max(0, min(self.offset, max(len(self.candidates) - rows, 0)))
        return self.offset, min(self.offset + rows, len(self.candidates))

    # ------------------------------------------------------------------
    # Query editing
    # ------------------------------------------------------------------

    def insert_char(self, char: str) -> None:
        self.query = self.query[:self.cursor] + char + self.query[self.cursor:]
        self.cursor += len(char)
        self.refresh()

    def delete_char_backwards(self) -> None:
        if self.cursor == 0:
            return
        self.query = self.query[:self.cursor - 1] + self.query[self.cursor:]
        self.cursor -= 1
        self.refresh()

    def delete_word_backwards(self) -> None:
        head = self.query[:self.cursor].rstrip()
        cut = max(head.rfind(" "), head.rfind("/")) + 1
        self.query = self.query[:cut] + self.query[self.cursor:]
        self.cursor = cut
        self.refresh()

    def clear_query(self) -> None:
        self.query = ""
        self.cursor = 0
        self.refresh(reset=True)

    def move_cursor(self, delta: int) -> None:
        self.cursor = max(0, min(len(self.query), self.cursor + delta))

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def move_selection(self, delta: int) -> None:
        """Move the highlight, stopping at the first and last candidate."""
        if not self.candidates:
            return
        self.selected = max(0, min(len(self.candidates) - 1, self.selected + delta))

    def commit(self, target: Target = Target.DEFAULT) -> bool:
        """
        Choose the selected bookmark.

        Touches and saves the store exactly once, then ends the session.

        Returns:
            False when there is nothing to choose
        """
        bookmark = self.selected_bookmark
        if bookmark is None:
            return False

        if not self.store.touch(bookmark.path):
            raise StorageError(f"Bookmark vanished from the store: {bookmark.path}", path=self.store.path)
        self.store.save()
        self.outcome = outcome_for(bookmark.path, target, self.editor)
        self.mode = Mode.COMMITTED
        return True

    def cancel(self) -> None:
        self.outcome = None
        self.mode = Mode.CANCELLED

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def request_delete(self) -> None:
        if self.selected_bookmark is not None:
            self.mode = Mode.CONFIRM_DELETE

    def confirm_delete(self) -> None:
        bookmark = self.selected_bookmark
        if self.mode == Mode.CONFIRM_DELETE and bookmark is not None:
            if self.store.remove(bookmark.path):
                self.store.save()
                self.message = f"Deleted {bookmark.name}"
                logger.info(f"Deleted bookmark {bookmark.path}")
            else:
                self.message = f"Bookmark not found: {bookmark.name}"
            self.refresh()
        self.mode = Mode.TYPING

    def abort_delete(self) -> None:
        self.mode = Mode.TYPING

    # ------------------------------------------------------------------
    # Help
    # ------------------------------------------------------------------

    def toggle_help(self) -> None:
        self.mode = Mode.TYPING if self.mode == Mode.HELP else Mode.HELP
