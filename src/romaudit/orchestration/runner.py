# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Worker-pool execution of per-machine verification."""

from __future__ import annotations

import logging
import threading
from collections import Counter
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from ..config import default_parallel_jobs
from ..interfaces.archive import ContentView
from ..policy import DEFAULT_POLICY, PackagingPolicy
from ..verification.engine import VerificationEngine
from ..verification.report import MachineReport, MachineStatus

LOGGER = logging.getLogger(__name__)

ReportHook = Callable[[MachineReport], None]


@dataclass(frozen=True, slots=True)
class RunResult:
    """Reports gathered by one verification run.

    Attributes:
        reports: Completed reports sorted by machine name.
        skipped: Machines that never started because the run was cancelled.
        cancelled: ``True`` when cancellation was requested during the run.
        unknown_archives: Archives of the collection named after no catalog machine.
    """

    reports: tuple[MachineReport, ...] = field(default_factory=tuple)
    skipped: tuple[str, ...] = field(default_factory=tuple)
    cancelled: bool = False
    unknown_archives: tuple[str, ...] = field(default_factory=tuple)

    def report_for(self, machine: str) -> MachineReport | None:
        """Return the report of ``machine`` when it completed."""

        return next((report for report in self.reports if report.machine == machine), None)

    def status_counts(self) -> dict[MachineStatus, int]:
        """Return how many machines ended in each status."""

        counts = Counter(report.status for report in self.reports)
        return {status: counts[status] for status in MachineStatus}

    @property
    def ok(self) -> bool:
        """Return ``True`` when every machine completed and is complete."""

        return not self.skipped and all(report.status is MachineStatus.COMPLETE for report in self.reports)


class VerificationRunner:
    """Verify many machines on a thread pool with cooperative cancellation.

    The engine, catalog snapshots and view are shared by every worker; only
    the view's hash memo is mutated, under its own locks. Cancelling stops new
    machines from starting and drops queued ones; machines already running
    finish and keep their reports.
    """

    def __init__(
        self,
        engine: VerificationEngine,
        view: ContentView,
        *,
        policy: PackagingPolicy | str = DEFAULT_POLICY,
        jobs: int | None = None,
        after_machine: ReportHook | None = None,
    ) -> None:
        """Create the runner.

        Args:
            engine: Verification engine applied to every machine.
            view: Collection view reading archives and hashing entries.
            policy: Packaging policy the collection follows.
            jobs: Worker count; defaults to roughly 75% of the CPU cores.
            after_machine: Callback invoked with each completed report.
        """

        self._engine = engine
        self._view = view
        self._policy = PackagingPolicy.parse(policy)
        self._jobs = max(1, jobs if jobs is not None else default_parallel_jobs())
        self._after_machine = after_machine
        self._cancel = threading.Event()

    @property
    def jobs(self) -> int:
        """Return the configured worker count."""

        return self._jobs

    @property
    def cancelled(self) -> bool:
        """Return ``True`` once cancellation has been requested."""

        return self._cancel.is_set()

    def cancel(self) -> None:
        """Request cancellation; safe to call from any thread, including hooks."""

        self._cancel.set()

    def run(self, machines: Sequence[str]) -> RunResult:
        """Verify ``machines`` and return their reports.

        Args:
            machines: Machine identifiers to verify.

        Returns:
            RunResult: Completed reports plus the machines skipped by cancellation.
        """

        ordered = list(dict.fromkeys(machines))
        if self._jobs == 1 or len(ordered) <= 1:
            reports = self._run_serial(ordered)
        else:
            reports = self._run_parallel(ordered)
        done = {report.machine for report in reports}
        return RunResult(
            reports=tuple(sorted(reports, key=lambda report: report.machine)),
            skipped=tuple(name for name in ordered if name not in done),
            cancelled=self._cancel.is_set(),
        )

    def _verify_one(self, machine: str) -> MachineReport | None:
        if self._cancel.is_set():
            return None
        LOGGER.debug("verifying %s", machine)
        return self._engine.verify(machine, None, self._policy, self._view)

    def _record(self, report: MachineReport | None, reports: list[MachineReport]) -> None:
        if report is None:
            return
        reports.append(report)
        if self._after_machine is not None:
            self._after_machine(report)

    def _run_serial(self, machines: Sequence[str]) -> list[MachineReport]:
        reports: list[MachineReport] = []
        for machine in machines:
            if self._cancel.is_set():
                break
            self._record(self._verify_one(machine), reports)
        return reports

    def _run_parallel(self, machines: Sequence[str]) -> list[MachineReport]:
        reports: list[MachineReport] = []
        with ThreadPoolExecutor(max_workers=self._jobs, thread_name_prefix="romaudit") as executor:
            futures: dict[Future[MachineReport | None], str] = {
                executor.submit(self._verify_one, machine): machine for machine in machines
            }
            for future in as_completed(futures):
                if future.cancelled():
                    continue
                self._record(future.result(), reports)
                if self._cancel.is_set():
                    dropped = sum(1 for pending in futures if pending.cancel())
                    if dropped:
                        LOGGER.info("cancelled %d queued machines", dropped)
        return reports


__all__ = ["ReportHook", "RunResult", "VerificationRunner"]
