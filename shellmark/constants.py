"""
Constants for shellmark.

Defaults that the config system can override live in config.py.
"""

APP_NAME = "shellmark"

# Store file
STORE_FILENAME = "bookmarks.json"
STORE_FORMAT_VERSION = 1
LEGACY_FORMAT_VERSION = 0

# Shell integration
DEFAULT_ALIAS = "s"
DEFAULT_DIALECT = "plain"

# Browser
MIN_LIST_ROWS = 1
