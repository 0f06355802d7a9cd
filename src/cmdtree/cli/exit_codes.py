"""Exit-code constants used by the CLI layer.

Every exit path returns one of these rather than a bare integer.
"""

from __future__ import annotations

SUCCESS: int = 0
"""Command completed, or help was shown on request."""

GENERAL_ERROR: int = 1
"""User input error, reported command fault or failed result."""

UNEXPECTED_ERROR: int = 2
"""An exception escaped the application error handler."""

KEYBOARD_INTERRUPT: int = 130
"""User pressed Ctrl+C.  Follows POSIX convention (128 + SIGINT=2)."""
