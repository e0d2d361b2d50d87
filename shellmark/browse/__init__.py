"""
Interactive fuzzy-search browser.

- state: terminal-free session state machine
- keys: key bindings per mode
- ui: prompt_toolkit application
"""
from shellmark.browse.state import BrowseSession, Mode, Target, outcome_for
from shellmark.browse.ui import create_app, run_browser

__all__ = [
    "BrowseSession",
    "Mode",
    "Target",
    "outcome_for",
    "create_app",
    "run_browser",
]
