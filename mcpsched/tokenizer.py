"""Split command lines into tokens on any of a set of delimiter characters."""

from __future__ import annotations

import re


def _split(buf: str, delim: str) -> list[str]:
    if not delim:
        return [buf] if buf else []
    pattern = "[" + "".join(re.escape(ch) for ch in delim) + "]+"
    return [piece for piece in re.split(pattern, buf) if piece]


def count_tokens(buf: str | None, delim: str) -> int:
    """Return how many non-empty tokens ``buf`` holds; ``None`` holds none."""
    if buf is None:
        return 0
    return len(_split(buf, delim))


def tokenize(buf: str, delim: str) -> list[str]:
    """Split ``buf`` on any character of ``delim``, dropping empty pieces.

    Each token is cut at its first newline, so a trailing newline never
    reaches a command's arguments.
    """
    return [token.split("\n", 1)[0] for token in _split(buf, delim)]