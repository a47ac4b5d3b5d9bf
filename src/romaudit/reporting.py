# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Rich rendering and JSON payloads for audit results."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any, Final

from rich import box
from rich.console import Console
from rich.table import Table

from .models import Checksum, PartRef
from .orchestration.runner import RunResult
from .query import CatalogStats, DerivableSet
from .resolution import EffectiveSet
from .verification.report import MachineReport, MachineStatus, PartReport, PartStatus, SampleStatus

STATUS_STYLES: Final[dict[str, str]] = {
    MachineStatus.COMPLETE.value: "green",
    MachineStatus.FIXABLE.value: "yellow",
    MachineStatus.INCOMPLETE.value: "red",
    PartStatus.OK.value: "green",
    PartStatus.MISNAMED.value: "yellow",
    PartStatus.FIXABLE.value: "yellow",
    PartStatus.DUPLICATE_CONTENT_UNRESOLVED.value: "magenta",
    PartStatus.MISSING.value: "red",
    PartStatus.UNKNOWN.value: "dim",
    SampleStatus.PRESENT.value: "green",
    SampleStatus.MISSING.value: "red",
    SampleStatus.UNCHECKED.value: "dim",
}


def _styled(value: str) -> str:
    style = STATUS_STYLES.get(value)
    return f"[{style}]{value}[/]" if style else value


def _part_detail(part: PartReport) -> str:
    if part.suggestion is not None:
        return str(part.suggestion)
    details = []
    if part.cause:
        details.append(part.cause)
    if part.donors:
        details.append("from " + ", ".join(part.donors))
    return "; ".join(details)


def render_report(console: Console, report: MachineReport, *, show_ok: bool = False) -> None:
    """Print one machine report.

    Args:
        console: Destination console.
        report: Report to render.
        show_ok: Also list parts that verified cleanly.
    """

    console.print(f"[bold]{report.machine}[/bold] {_styled(report.status.value)}")
    rows = [part for part in report.parts if show_ok or part.status is not PartStatus.OK]
    if rows:
        table = Table(box=box.SIMPLE, show_header=True, pad_edge=False)
        table.add_column("Part", style="bold")
        table.add_column("Archive")
        table.add_column("Status")
        table.add_column("Detail", overflow="fold")
        for part in rows:
            label = part.name if part.required else f"{part.name} (optional)"
            table.add_row(label, part.location, _styled(part.status.value), _part_detail(part))
        console.print(table)
    for sample in report.samples:
        if show_ok or sample.status is not SampleStatus.PRESENT:
            console.print(f"  sample {sample.name} in {sample.location}: {_styled(sample.status.value)}")
    for item in report.unneeded:
        where = f" (needed by {', '.join(item.required_by)})" if item.misplaced else ""
        console.print(f"  [dim]unneeded[/dim] {item.archive}/{item.name}{where}")
    for item in report.unreadable:
        console.print(f"  [red]unreadable[/red] {item.archive}/{item.name}: {item.error}")
    for error in report.errors:
        console.print(f"  [red]{error.kind}[/red]: {error.message}")
    for issue in report.issues:
        console.print(f"  [yellow]catalog[/yellow] {issue}")


def render_run(console: Console, result: RunResult, *, show_ok: bool = False) -> None:
    """Print every non-complete report, a status summary and archives matching no machine."""

    for report in result.reports:
        if show_ok or report.status is not MachineStatus.COMPLETE:
            render_report(console, report, show_ok=show_ok)
    summary = Table(title="Summary", box=box.SIMPLE)
    summary.add_column("Status", style="bold")
    summary.add_column("Machines", justify="right")
    for status, count in result.status_counts().items():
        summary.add_row(_styled(status.value), str(count))
    if result.skipped:
        summary.add_row("skipped", str(len(result.skipped)))
    if result.unknown_archives:
        summary.add_row("unknown archives", str(len(result.unknown_archives)))
    console.print(summary)
    for archive in result.unknown_archives:
        console.print(f"  [dim]unknown archive[/dim] {archive}")


def render_effective_set(console: Console, effective: EffectiveSet) -> None:
    """Print the resolved parts, samples and issues of a machine."""

    table = Table(title=f"{effective.machine} ({effective.policy.value})", box=box.SIMPLE)
    table.add_column("Name", style="bold")
    table.add_column("Archive")
    table.add_column("Origin")
    table.add_column("Checksum", overflow="fold")
    table.add_column("Required")
    for part in effective.parts:
        table.add_row(
            part.name,
            part.location,
            part.origin if part.origin == effective.machine else f"{part.origin}:{part.declared_name}",
            str(part.checksum) if part.checksum else "nodump",
            "yes" if part.required else "no",
        )
    console.print(table)
    for sample in effective.samples:
        console.print(f"  sample {sample.name} in {sample.location}")
    for device in effective.device_parts:
        console.print(f"  [dim]device part {device.name} excluded[/dim]")
    for issue in effective.issues:
        console.print(f"  [yellow]catalog[/yellow] {issue}")


def render_stats(console: Console, stats: CatalogStats) -> None:
    """Print catalog counters."""

    table = Table(title="Catalog", box=box.SIMPLE)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    for key, value in stats.model_dump().items():
        table.add_row(key.replace("_", " "), str(value))
    console.print(table)


def render_shared(console: Console, shared: Mapping[Checksum, tuple[str, ...]]) -> None:
    """Print checksums shared between machines."""

    table = Table(title="Shared content", box=box.SIMPLE)
    table.add_column("Checksum", overflow="fold")
    table.add_column("Machines", overflow="fold")
    for checksum, machines in shared.items():
        table.add_row(str(checksum), ", ".join(machines))
    console.print(table)


def render_derivable(console: Console, sets: Sequence[DerivableSet]) -> None:
    """Print machines derivable from an ancestor."""

    table = Table(title="Derivable sets", box=box.SIMPLE)
    table.add_column("Machine", style="bold")
    table.add_column("Ancestor")
    table.add_column("Shared", justify="right")
    table.add_column("New", overflow="fold")
    for item in sets:
        table.add_row(item.machine, item.ancestor, str(len(item.shared)), ", ".join(item.new) or "-")
    console.print(table)


def render_usage(console: Console, ref: PartRef, usage: Sequence[PartRef]) -> None:
    """Print the other parts sharing content with ``ref``."""

    if not usage:
        console.print(f"{ref} is not shared")
        return
    console.print(f"{ref} is also declared as:")
    for other in usage:
        console.print(f"  {other}")


def render_sharing(console: Console, machine: str, sharing: Mapping[str, tuple[str, ...]]) -> None:
    """Print the machines sharing content with ``machine``."""

    if not sharing:
        console.print(f"{machine} shares no content")
        return
    table = Table(title=f"Shared with {machine}", box=box.SIMPLE)
    table.add_column("Machine", style="bold")
    table.add_column("Parts", overflow="fold")
    for other, names in sharing.items():
        table.add_row(other, ", ".join(names))
    console.print(table)


def run_payload(result: RunResult) -> dict[str, Any]:
    """Return a JSON-ready payload describing ``result``."""

    return {
        "reports": [report.model_dump(mode="json") for report in result.reports],
        "skipped": list(result.skipped),
        "cancelled": result.cancelled,
        "unknown_archives": list(result.unknown_archives),
    }


def effective_set_payload(effective: EffectiveSet) -> dict[str, Any]:
    """Return a JSON-ready payload describing ``effective``."""

    return {
        "machine": effective.machine,
        "policy": effective.policy.value,
        "parts": [
            {
                "name": part.name,
                "location": part.location,
                "origin": part.origin,
                "declared_name": part.declared_name,
                "crc32": part.checksum.crc32 if part.checksum else None,
                "sha1": part.checksum.sha1 if part.checksum else None,
                "md5": part.checksum.md5 if part.checksum else None,
                "size": part.size,
                "required": part.required,
            }
            for part in effective.parts
        ],
        "samples": [{"name": item.name, "location": item.location} for item in effective.samples],
        "device_parts": [item.name for item in effective.device_parts],
        "issues": [str(issue) for issue in effective.issues],
    }


def dumps(payload: Any) -> str:
    """Serialise ``payload`` as indented, key-sorted JSON."""

    return json.dumps(payload, indent=2, sort_keys=True)


__all__ = [
    "dumps",
    "effective_set_payload",
    "render_derivable",
    "render_effective_set",
    "render_report",
    "render_run",
    "render_shared",
    "render_sharing",
    "render_stats",
    "render_usage",
    "run_payload",
]
