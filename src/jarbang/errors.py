"""Base exception for jarbang.

Each module declares its own error type deriving from ``JarbangError`` so the
CLI can report every fatal condition through a single handler.
"""


class JarbangError(Exception):
    """Base exception for all jarbang errors."""

    pass
