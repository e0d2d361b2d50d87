"""
Key bindings of the interactive browser, per mode.

The table below is the single source for both the prompt_toolkit bindings
and the help screen.
"""
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from prompt_toolkit.filters import Condition
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.keys import Keys

from shellmark.browse.state import BrowseSession, Mode, Target
from shellmark.errors import ShellmarkError

Action = Callable[[BrowseSession, str], None]


@dataclass(frozen=True)
class Binding:
    """One or more keys bound to an action in some modes."""

    keys: Tuple[str, ...]
    modes: Tuple[Mode, ...]
    action: Action
    label: Optional[str] = None
    description: Optional[str] = None


def _insert(session: BrowseSession, data: str) -> None:
    if data and data.isprintable():
        session.insert_char(data)


def _leave_help(session: BrowseSession, data: str) -> None:
    session.toggle_help()


TYPING = (Mode.TYPING,)

BINDINGS: List[Binding] = [
    # Catch-alls first; specific keys registered later take precedence.
    Binding((Keys.Any,), TYPING, _insert),
    Binding((Keys.Any,), (Mode.CONFIRM_DELETE,), lambda s, d: s.abort_delete()),
    Binding((Keys.Any,), (Mode.HELP,), _leave_help),

    Binding(("enter",), TYPING, lambda s, d: s.commit(),
            "Enter", "Go to the selected bookmark (files open in $EDITOR)"),
    Binding(("c-g",), TYPING, lambda s, d: s.commit(Target.DIRECTORY),
            "Ctrl-G", "Go to the bookmark's directory"),
    Binding(("c-o",), TYPING, lambda s, d: s.commit(Target.EDITOR),
            "Ctrl-O", "Open the selected bookmark in $EDITOR"),
    Binding(("up",), TYPING, lambda s, d: s.move_selection(-1),
            "Up / Ctrl-P", "Move selection up"),
    Binding(("c-p",), TYPING, lambda s, d: s.move_selection(-1)),
    Binding(("down",), TYPING, lambda s, d: s.move_selection(1),
            "Down / Ctrl-N", "Move selection down"),
    Binding(("c-n",), TYPING, lambda s, d: s.move_selection(1)),
    Binding(("backspace",), TYPING, lambda s, d: s.delete_char_backwards(),
            "Backspace", "Delete the previous character"),
    Binding(("c-w",), TYPING, lambda s, d: s.delete_word_backwards(),
            "Ctrl-W", "Delete the previous word"),
    Binding(("c-u",), TYPING, lambda s, d: s.clear_query(),
            "Ctrl-U", "Clear the query"),
    Binding(("left",), TYPING, lambda s, d: s.move_cursor(-1),
            "Left / Right", "Move the cursor in the query"),
    Binding(("right",), TYPING, lambda s, d: s.move_cursor(1)),
    Binding(("delete",), TYPING, lambda s, d: s.request_delete(),
            "Delete / Ctrl-D / Ctrl-K", "Delete the selected bookmark"),
    Binding(("c-d",), TYPING, lambda s, d: s.request_delete()),
    Binding(("c-k",), TYPING, lambda s, d: s.request_delete()),
    Binding(("f1",), TYPING, lambda s, d: s.toggle_help(),
            "F1", "Show this help"),
    Binding(("escape",), TYPING, lambda s, d: s.cancel(),
            "Esc / Ctrl-C", "Quit without changing directory"),
    Binding(("c-c",), TYPING, lambda s, d: s.cancel()),

    Binding(("y",), (Mode.CONFIRM_DELETE,), lambda s, d: s.confirm_delete()),
    Binding(("Y",), (Mode.CONFIRM_DELETE,), lambda s, d: s.confirm_delete()),
]


def help_lines(extra: Optional[List[Binding]] = None) -> List[Tuple[str, str]]:
    """(keys, description) pairs for the help screen."""
    return [(b.label, b.description) for b in BINDINGS + (extra or []) if b.label and b.description]


def paging_bindings(rows: Callable[[], int]) -> List[Binding]:
    """PageUp/PageDown bindings that move by the current viewport height."""
    return [
        Binding(("pageup",), TYPING, lambda s, d: s.move_selection(-rows()),
                "PageUp / PageDown", "Move selection by a page"),
        Binding(("pagedown",), TYPING, lambda s, d: s.move_selection(rows())),
    ]


def build_key_bindings(session: BrowseSession, on_change: Callable[[], None],
                       on_error: Callable[[ShellmarkError], None],
                       extra: Optional[List[Binding]] = None) -> KeyBindings:
    """
    Register the binding table for a session.

    Args:
        session: Session the actions operate on
        on_change: Called after every handled key (to exit once the session is done)
        on_error: Called with any ShellmarkError an action raises, e.g. a failed save
        extra: Additional bindings, registered after the table
    """
    kb = KeyBindings()

    for binding in BINDINGS + (extra or []):
        modes = binding.modes
        in_mode = Condition(lambda modes=modes: session.mode in modes)

        def handler(event, action=binding.action):
            session.message = None
            try:
                action(session, event.data)
            except ShellmarkError as e:
                on_error(e)
                return
            on_change()

        kb.add(*binding.keys, filter=in_mode)(handler)

    return kb
