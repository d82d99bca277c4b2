"""Changelog and audit log inspection commands."""

from __future__ import annotations

import json

from rich.console import Console
from rich.table import Table

from ..audit_log import format_audit_entry, read_audit_log
from ..config import GovernanceConfig
from ..errors import GovernanceError
from ..ledger import ChangelogLedger


def run_changelog_show(config: GovernanceConfig, *, limit: int = 20, output_json: bool = False) -> int:
    err = Console(stderr=True)
    ledger = ChangelogLedger(config.changelog, marker=config.marker)
    try:
        entries = ledger.render()
    except GovernanceError as exc:
        err.print(str(exc), style="bold red", markup=False)
        return 1

    # Newest first, so the head of the ledger is the most recent.
    entries = entries[:limit] if limit > 0 else entries

    if output_json:
        print(json.dumps([e.to_dict() for e in entries], indent=2))
        return 0

    if not entries:
        err.print(f"No changelog entries in {config.changelog}", style="yellow")
        return 0

    console = Console()
    table = Table(title=f"Changelog ({config.changelog.name})")
    table.add_column("when", style="cyan", no_wrap=True)
    table.add_column("label", style="magenta")
    table.add_column("changes")
    for entry in entries:
        table.add_row(
            entry.timestamp.strftime("%Y-%m-%d %H:%M"),
            entry.label or "",
            "\n".join(entry.bullets),
        )
    console.print(table)
    return 0


def run_audit(config: GovernanceConfig, *, last_n: int | None = None, output_json: bool = False) -> int:
    entries = read_audit_log(config.state_dir, last_n)

    if output_json:
        print(json.dumps([e.to_dict() for e in entries], indent=2))
        return 0

    if not entries:
        Console(stderr=True).print("No audit entries recorded.", style="yellow")
        return 0

    for entry in entries:
        print(format_audit_entry(entry))
        print()
    return 0
