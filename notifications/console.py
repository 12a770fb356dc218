"""
Console output — colored log lines and the in-place countdown line.
"""

from __future__ import annotations
import logging
import sys
from typing import Optional, TextIO

RESET = "\033[0m"
ERASE_LINE = "\033[2K"

COLORS = {
    "bold": "\033[1m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
}

LEVEL_COLORS = {
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "red",
}


def colorize(text: str, *styles: str) -> str:
    codes = "".join(COLORS[s] for s in styles if s in COLORS)
    return f"{codes}{text}{RESET}" if codes else text


class ColorFormatter(logging.Formatter):
    """
    Colors the whole line.
    A record picks its styles with extra={"color": "green"} or
    extra={"color": ("yellow", "bold")}; otherwise the level decides.
    """

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        styles = getattr(record, "color", None) or LEVEL_COLORS.get(record.levelno)
        if not styles:
            return text
        if isinstance(styles, str):
            styles = (styles,)
        return colorize(text, *styles)


class CountdownLine:
    """
    A single status line redrawn in place (carriage return + erase).
    Silent when the stream is not a terminal.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout

    @property
    def enabled(self) -> bool:
        isatty = getattr(self.stream, "isatty", None)
        return bool(isatty and isatty())

    def write(self, text: str):
        if not self.enabled:
            return
        self.stream.write(f"\r{ERASE_LINE}{text}")
        self.stream.flush()

    def clear(self):
        if not self.enabled:
            return
        self.stream.write(f"\r{ERASE_LINE}")
        self.stream.flush()
