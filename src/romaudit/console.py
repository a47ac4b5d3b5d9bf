# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Rich consoles shared by the CLI, the logging helpers and the report renderers."""

from __future__ import annotations

import sys
from functools import lru_cache

from rich.console import Console


def detect_tty() -> bool:
    """Return ``True`` when stdout appears to be backed by a terminal."""

    try:
        return sys.stdout.isatty()
    except (AttributeError, ValueError):
        return False


class RichConsoleManager:
    """Hand out one console per ``(use_color, use_emoji)`` pair of CLI flags.

    Colour is only emitted on a terminal, whatever ``use_color`` asks for, so
    piped reports stay plain. Automatic highlighting is off: digests, sizes
    and archive paths in audit output keep the styles the renderers give them.
    """

    def __init__(self) -> None:
        self._cache: dict[tuple[bool, bool], Console] = {}

    def get(self, *, use_color: bool | None = None, use_emoji: bool = True) -> Console:
        """Return the console for the given flags; ``use_color=None`` follows the terminal."""

        tty = detect_tty()
        colored = tty if use_color is None else use_color and tty
        key = (colored, use_emoji)
        if key not in self._cache:
            self._cache[key] = Console(
                color_system="auto" if colored else None,
                force_terminal=tty,
                no_color=not colored,
                emoji=use_emoji,
                highlight=False,
                soft_wrap=True,
            )
        return self._cache[key]


@lru_cache(maxsize=1)
def get_console_manager() -> RichConsoleManager:
    """Return the process-wide :class:`RichConsoleManager` instance."""

    return RichConsoleManager()


__all__ = ["RichConsoleManager", "detect_tty", "get_console_manager"]
