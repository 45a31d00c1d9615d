"""Coloured status lines for warnings and successes."""

from __future__ import annotations

import os
import sys

from rich.console import Console
from rich.text import Text

_WARN_EMOJI = "\u26a0\ufe0f "
_WARN_FALLBACK = "!"
_SUCCESS_EMOJI = "\u2705"
_SUCCESS_FALLBACK = "\u2713"


def no_emoji() -> bool:
    """Return True when the user asked for output without emoji."""
    return "NO_EMOJI" in os.environ


def _console() -> Console:
    return Console(highlight=False, soft_wrap=True)


def _emoji(symbol: str, fallback: str) -> str:
    encoding = getattr(sys.stdout, "encoding", None) or "utf-8"
    try:
        symbol.encode(encoding)
    except (UnicodeEncodeError, LookupError):
        return fallback
    return symbol


def _emit(prefix: str, message: str, colour: str) -> None:
    line = Text()
    line.append(prefix, style=colour)
    line.append(" ")
    line.append(message, style=colour)
    _console().print(line)


def warn(message: str) -> None:
    """Print a red warning line."""
    prefix = _WARN_FALLBACK if no_emoji() else _emoji(_WARN_EMOJI, _WARN_FALLBACK)
    _emit(prefix, message, "red")


def success(message: str) -> None:
    """Print a green success line."""
    prefix = (
        _SUCCESS_FALLBACK
        if no_emoji()
        else _emoji(_SUCCESS_EMOJI, _SUCCESS_FALLBACK)
    )
    _emit(prefix, message, "green")