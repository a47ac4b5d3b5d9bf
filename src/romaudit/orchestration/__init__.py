# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Concurrent orchestration of verification runs."""

from __future__ import annotations

from .runner import ReportHook, RunResult, VerificationRunner

__all__ = ["ReportHook", "RunResult", "VerificationRunner"]
