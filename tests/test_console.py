# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for the shared rich console manager."""

from __future__ import annotations

import pytest

from romaudit import console as console_module
from romaudit.console import RichConsoleManager


def test_piped_output_is_never_coloured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(console_module, "detect_tty", lambda: False)
    manager = RichConsoleManager()

    requested = manager.get(use_color=True, use_emoji=True)

    assert requested.no_color
    assert requested.color_system is None
    assert manager.get(use_color=False, use_emoji=True) is requested
    assert manager.get(use_emoji=True) is requested


def test_terminal_colour_follows_the_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(console_module, "detect_tty", lambda: True)
    manager = RichConsoleManager()

    assert not manager.get(use_color=None).no_color
    assert manager.get(use_color=False).no_color
    assert manager.get(use_color=True) is manager.get(use_color=None)


def test_emoji_flag_selects_a_separate_console(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(console_module, "detect_tty", lambda: False)
    manager = RichConsoleManager()
    plain = manager.get(use_color=False, use_emoji=False)

    with plain.capture() as capture:
        plain.print(":warning: crc32:cbf43926")

    assert plain is not manager.get(use_color=False, use_emoji=True)
    assert capture.get().strip() == ":warning: crc32:cbf43926"
