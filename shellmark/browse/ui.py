"""
Full-screen picker built on prompt_toolkit.

Everything is drawn on stderr so stdout stays free for the emitted command.
prompt_toolkit puts the terminal in raw mode for the duration of ``run`` and
restores it on the way out, including when an exception escapes.
"""
import sys
import logging
from typing import List, Optional, Tuple

from prompt_toolkit import Application
from prompt_toolkit.application.current import get_app
from prompt_toolkit.data_structures import Point
from prompt_toolkit.filters import Condition
from prompt_toolkit.input import Input
from prompt_toolkit.layout.containers import ConditionalContainer, HSplit, Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.layout.layout import Layout
from prompt_toolkit.output import Output, create_output
from prompt_toolkit.styles import Style as PtStyle
from prompt_toolkit.utils import get_cwidth

from shellmark.browse.keys import build_key_bindings, help_lines, paging_bindings
from shellmark.browse.state import BrowseSession, Mode
from shellmark.constants import MIN_LIST_ROWS
from shellmark.emitter import Outcome
from shellmark.errors import TerminalError
from shellmark.matcher import match_positions
from shellmark.utils import friendly_path

logger = logging.getLogger(__name__)

PROMPT = "> "
SELECTED_MARK = ">> "
UNSELECTED_MARK = "   "
# title, prompt, status
CHROME_ROWS = 3
NAME_WIDTH = 24

Fragments = List[Tuple[str, str]]

STYLE = PtStyle.from_dict({
    "title": "bold",
    "prompt": "bold #e0af68",
    "status": "#8a8a8a",
    "status.confirm": "bold #f7768e",
    "name": "#9ece6a",
    "match": "#f7768e",
    "selected": "bold reverse",
    "empty": "#777777",
    "help.keys": "bold #7aa2f7",
})


def highlight(text: str, query: str, style: str = "") -> Fragments:
    """Split ``text`` into fragments with the characters matching ``query`` highlighted."""
    positions = set(match_positions(query, text)) if query else set()
    fragments: Fragments = []
    for i, char in enumerate(text):
        frag_style = f"{style} class:match".strip() if i in positions else style
        if fragments and fragments[-1][0] == frag_style:
            fragments[-1] = (frag_style, fragments[-1][1] + char)
        else:
            fragments.append((frag_style, char))
    return fragments


def _pad(text: str, width: int) -> str:
    if get_cwidth(text) > width:
        while text and get_cwidth(text + "…") > width:
            text = text[:-1]
        text += "…"
    return text + " " * max(width - get_cwidth(text), 0)


class BrowserView:
    """Layout and rendering of a BrowseSession."""

    def __init__(self, session: BrowseSession, title: str = "shellmark"):
        self.session = session
        self.title = title

        self.prompt_control = FormattedTextControl(
            self._prompt_text,
            focusable=True,
            show_cursor=True,
            get_cursor_position=self._cursor_position,
        )
        self.prompt_window = Window(self.prompt_control, height=1)

        in_help = Condition(lambda: session.mode == Mode.HELP)
        self.container = HSplit([
            Window(FormattedTextControl(self._title_text), height=1),
            self.prompt_window,
            Window(FormattedTextControl(self._status_text), height=1),
            ConditionalContainer(Window(FormattedTextControl(self._list_text)), filter=~in_help),
            ConditionalContainer(Window(FormattedTextControl(self._help_text)), filter=in_help),
        ])

    def list_rows(self) -> int:
        """Rows available for candidates."""
        rows = get_app().output.get_size().rows
        return max(rows - CHROME_ROWS, MIN_LIST_ROWS)

    def _title_text(self) -> Fragments:
        return [("class:title", f" {self.title} ")]

    def _prompt_text(self) -> Fragments:
        return [("class:prompt", PROMPT), ("", self.session.query)]

    def _cursor_position(self) -> Point:
        before = self.session.query[:self.session.cursor]
        return Point(x=get_cwidth(PROMPT) + get_cwidth(before), y=0)

    def _status_text(self) -> Fragments:
        session = self.session
        if session.mode == Mode.CONFIRM_DELETE and session.selected_bookmark is not None:
            return [("class:status.confirm", f"Delete {session.selected_bookmark.name}? [y/N]")]
        if session.message:
            return [("class:status", session.message)]
        return [("class:status", f"{len(session.candidates)}/{len(session.store)}  (F1 for help)")]

    def _list_text(self) -> Fragments:
        session = self.session
        if not session.candidates:
            text = "No bookmarks yet. Add one with `shellmark add`." if not len(session.store) else "No matches"
            return [("class:empty", f"{UNSELECTED_MARK}{text}")]

        start, end = session.viewport(self.list_rows())
        fragments: Fragments = []
        for index in range(start, end):
            bookmark, _ = session.candidates[index]
            selected = index == session.selected
            row_style = "class:selected" if selected else ""

            fragments.append((row_style, SELECTED_MARK if selected else UNSELECTED_MARK))
            fragments.extend(highlight(_pad(bookmark.name, NAME_WIDTH), session.query,
                                       f"{row_style} class:name".strip()))
            fragments.append((row_style, " "))
            fragments.extend(highlight(friendly_path(bookmark.path), session.query, row_style))
            fragments.append(("", "\n"))
        return fragments

    def _help_text(self) -> Fragments:
        fragments: Fragments = []
        for keys, description in help_lines(paging_bindings(self.list_rows)):
            fragments.append(("class:help.keys", f"  {_pad(keys, NAME_WIDTH)}"))
            fragments.append(("", f" {description}\n"))
        fragments.append(("class:status", "\n  Press any key to return"))
        return fragments


def create_app(session: BrowseSession, input: Optional[Input] = None,
               output: Optional[Output] = None) -> Application:
    """
    Build the picker application for a session.

    Args:
        session: Session to drive
        input: prompt_toolkit input (defaults to the terminal)
        output: prompt_toolkit output (defaults to stderr)
    """
    view = BrowserView(session)

    def on_change():
        if session.done:
            get_app().exit()

    def on_error(error):
        get_app().exit(exception=error)

    kb = build_key_bindings(session, on_change, on_error, extra=paging_bindings(view.list_rows))

    app = Application(
        layout=Layout(view.container, focused_element=view.prompt_window),
        key_bindings=kb,
        style=STYLE,
        full_screen=True,
        mouse_support=False,
        input=input,
        output=output or create_output(stdout=sys.stderr),
    )
    app.ttimeoutlen = 0.05
    return app


def run_browser(session: BrowseSession, input: Optional[Input] = None,
                output: Optional[Output] = None) -> Outcome:
    """
    Run the picker until the user commits or quits.

    Returns:
        The session outcome, None when cancelled

    Raises:
        TerminalError: If the terminal cannot be read or written
    """
    try:
        app = create_app(session, input=input, output=output)
        app.run()
    except (OSError, EOFError) as e:
        raise TerminalError(f"Terminal error: {e}") from e

    if session.mode == Mode.COMMITTED:
        logger.debug(f"Committed: {session.outcome}")
    return session.outcome
