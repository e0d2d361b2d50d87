"""
Tests for shellmark/browse/ui.py

Runs the real prompt_toolkit application against a pipe input and a dummy
output, so key handling and exit paths are exercised end to end.
"""
import pytest
from unittest.mock import MagicMock, patch

from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.output import DummyOutput

from shellmark.browse.keys import BINDINGS, help_lines
from shellmark.browse.state import BrowseSession, Mode
from shellmark.browse.ui import BrowserView, highlight, run_browser
from shellmark.emitter import ChangeDir, emit
from shellmark.errors import StorageIOError, TerminalError
from shellmark.store import Store

DOWN = "\x1b[B"
UP = "\x1b[A"
ENTER = "\r"
CTRL_C = "\x03"
ESCAPE = "\x1b"
CTRL_D = "\x04"
CTRL_U = "\x15"
BACKSPACE = "\x7f"


def run_keys(session, keys):
    with create_pipe_input() as inp:
        inp.send_text(keys)
        return run_browser(session, input=inp, output=DummyOutput())


class TestRunBrowser:
    """Keystrokes in, outcome out."""

    def test_type_and_commit(self, populated_store):
        session = BrowseSession(populated_store)

        outcome = run_keys(session, "nginx" + ENTER)

        assert outcome == ChangeDir("/etc/nginx")
        assert session.mode == Mode.COMMITTED

    def test_navigate_and_commit(self, populated_store, store_path):
        session = BrowseSession(populated_store)

        outcome = run_keys(session, DOWN + DOWN + DOWN + UP + ENTER)

        assert outcome == ChangeDir("/home/u/notes")
        assert Store.load(store_path).get("/home/u/notes").score == 3

    def test_quit_leaves_store_untouched(self, populated_store, store_path):
        """Type, then quit: nothing emitted, file byte-identical."""
        before = store_path.read_bytes()
        session = BrowseSession(populated_store)

        outcome = run_keys(session, "ng" + CTRL_C)

        assert outcome is None
        assert emit(outcome, "posix") == ""
        assert session.mode == Mode.CANCELLED
        assert store_path.read_bytes() == before

    def test_escape_quits(self, populated_store, store_path):
        before = store_path.read_bytes()
        session = BrowseSession(populated_store)

        outcome = run_keys(session, "ng" + ESCAPE)

        assert outcome is None
        assert session.mode == Mode.CANCELLED
        assert store_path.read_bytes() == before

    def test_backspace_and_clear(self, populated_store):
        session = BrowseSession(populated_store)

        outcome = run_keys(session, "xyz" + BACKSPACE + CTRL_U + "log" + ENTER)

        assert outcome == ChangeDir("/var/log")

    def test_enter_on_no_matches_keeps_running(self, populated_store):
        session = BrowseSession(populated_store)

        outcome = run_keys(session, "zzz" + ENTER + CTRL_C)

        assert outcome is None
        assert session.query == "zzz"

    def test_delete_confirmed(self, populated_store, store_path):
        session = BrowseSession(populated_store)

        run_keys(session, CTRL_D + "y" + CTRL_C)

        assert Store.load(store_path).get("/home/u/src/shellmark") is None
        assert len(Store.load(store_path)) == 3

    def test_delete_declined(self, populated_store, store_path):
        before = store_path.read_bytes()
        session = BrowseSession(populated_store)

        run_keys(session, CTRL_D + "n" + CTRL_C)

        assert store_path.read_bytes() == before
        assert session.query == ""

    def test_delete_then_commit_next(self, populated_store):
        session = BrowseSession(populated_store)

        outcome = run_keys(session, CTRL_D + "y" + ENTER)

        assert outcome == ChangeDir("/etc/nginx")

    def test_help_toggles(self, populated_store):
        session = BrowseSession(populated_store)

        outcome = run_keys(session, "\x1bOP" + "x" + "log" + ENTER)

        # the key that closes help is not typed into the query
        assert session.query == "log"
        assert outcome == ChangeDir("/var/log")

    def test_save_failure_propagates(self, populated_store):
        session = BrowseSession(populated_store)

        with patch.object(populated_store, "save", side_effect=StorageIOError("disk full")):
            with pytest.raises(StorageIOError):
                run_keys(session, ENTER)

    def test_terminal_error_is_wrapped(self, populated_store):
        session = BrowseSession(populated_store)
        app = MagicMock()
        app.run.side_effect = OSError("bad file descriptor")

        with patch("shellmark.browse.ui.create_app", return_value=app):
            with pytest.raises(TerminalError):
                run_browser(session)


class TestRendering:
    """Test the fragments the view produces."""

    def test_highlight_marks_matches(self):
        fragments = highlight("nginx", "nx")

        assert fragments == [("class:match", "n"), ("", "gi"), ("class:match", "x")]

    def test_highlight_without_query(self):
        assert highlight("abc", "") == [("", "abc")]

    def test_list_shows_selection(self, populated_store):
        session = BrowseSession(populated_store)
        view = BrowserView(session)

        text = "".join(t for _, t in view._list_text())

        assert text.startswith(">> shellmark")
        assert "nginx" in text
        assert text.count("\n") == 4

    def test_list_empty_store(self, store_path):
        view = BrowserView(BrowseSession(Store.load(store_path)))

        assert "No bookmarks yet" in "".join(t for _, t in view._list_text())

    def test_list_no_matches(self, populated_store):
        session = BrowseSession(populated_store)
        session.insert_char("z")

        assert "No matches" in "".join(t for _, t in BrowserView(session)._list_text())

    def test_status_shows_counts(self, populated_store):
        session = BrowseSession(populated_store)
        session.insert_char("n")

        status = "".join(t for _, t in BrowserView(session)._status_text())

        assert status.startswith(f"{len(session.candidates)}/4")

    def test_status_asks_for_confirmation(self, populated_store):
        session = BrowseSession(populated_store)
        session.request_delete()

        status = "".join(t for _, t in BrowserView(session)._status_text())

        assert status == "Delete shellmark? [y/N]"

    def test_cursor_position_follows_query_cursor(self, populated_store):
        session = BrowseSession(populated_store)
        session.insert_char("a")
        session.insert_char("b")
        session.move_cursor(-1)

        assert BrowserView(session)._cursor_position().x == 3


class TestKeyTable:
    def test_help_lines_have_descriptions(self):
        lines = help_lines()

        assert ("Enter", "Go to the selected bookmark (files open in $EDITOR)") in lines
        assert all(keys and description for keys, description in lines)

    def test_catch_all_bindings_come_first(self):
        from prompt_toolkit.keys import Keys

        first_specific = next(i for i, b in enumerate(BINDINGS) if b.keys != (Keys.Any,))
        assert all(b.keys != (Keys.Any,) for b in BINDINGS[first_specific:])
