"""
Exception hierarchy for shellmark.

Every error the CLI knows how to report derives from ShellmarkError.
Not-found conditions (removing a missing bookmark, committing on an empty
list) are normal results and never raise.
"""


class ShellmarkError(Exception):
    """Base exception for shellmark errors."""
    pass


class ValidationError(ShellmarkError):
    """Raised when user input is rejected (empty, duplicate or missing path, bad alias)."""
    pass


class StorageError(ShellmarkError):
    """Base exception for bookmark store failures."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class CorruptStoreError(StorageError):
    """Raised when the store file exists but cannot be parsed."""
    pass


class StorageIOError(StorageError):
    """Raised when the store file cannot be read or written."""
    pass


class TerminalError(ShellmarkError):
    """Raised when the interactive browser loses its terminal."""
    pass
