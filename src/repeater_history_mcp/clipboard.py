# ABOUTME: System clipboard sink for formatted reports
# ABOUTME: Wraps pyperclip so callers see a single error type

import logging

import pyperclip

log = logging.getLogger(__name__)


class ClipboardError(Exception):
    """Raised when the system clipboard cannot be written."""


def copy_to_clipboard(text: str) -> None:
    """
    Copy text to the system clipboard.

    Raises:
        ClipboardError: If no clipboard mechanism is available or the write fails
    """
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        log.error(f"Failed to copy to clipboard: {e}")
        raise ClipboardError("Clipboard operation failed") from e
