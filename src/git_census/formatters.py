"""Output formatters for console and JSON display."""

from __future__ import annotations

import json
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .core import FetchOutcome, PullOutcome, SwitchOutcome, SyncOperation, outcome_counts

if TYPE_CHECKING:
    from .core import CensusOptions, CensusSummary, RepoRecord

SWITCH_LABELS = {
    SwitchOutcome.SWITCHED: ("✓ switched", "green"),
    SwitchOutcome.ALREADY_ON_BRANCH: ("· already on branch", "dim"),
    SwitchOutcome.DIRTY: ("✗ skipped", "red"),
    SwitchOutcome.BRANCH_NOT_FOUND: ("· branch not found", "dim"),
    SwitchOutcome.ERROR: ("✗ error (checkout failed)", "red"),
}

FETCH_LABELS = {
    FetchOutcome.FETCHED: ("fetched", "green"),
    FetchOutcome.NO_REMOTE: ("no remote", "dim"),
    FetchOutcome.ERROR: ("error", "red"),
}

PULL_LABELS = {
    PullOutcome.PULLED: ("pulled", "green"),
    PullOutcome.UP_TO_DATE: ("up to date", "dim"),
    PullOutcome.NOT_FAST_FORWARD: ("not fast-forward", "yellow"),
    PullOutcome.DIRTY: ("dirty", "red"),
    PullOutcome.NO_REMOTE: ("no remote", "dim"),
    PullOutcome.ERROR: ("error", "red"),
}

# Outcomes that need no attention in the per-repository listing, per outcome type
QUIET_OUTCOMES = {
    FetchOutcome: frozenset({FetchOutcome.FETCHED}),
    PullOutcome: frozenset({PullOutcome.PULLED, PullOutcome.UP_TO_DATE}),
}


def relative_time(when: datetime | None, now: datetime | None = None) -> str:
    """Describe a commit time relative to now."""
    if when is None:
        return "no commits"

    now = now or datetime.now(timezone.utc)
    diff = max(0, int((now - when).total_seconds()))

    if diff < 60:
        return "just now"
    if diff < 3600:
        return f"{diff // 60} min ago"
    if diff < 86400:
        hours = diff // 3600
        return f"{hours} hour{'' if hours == 1 else 's'} ago"
    if diff < 2592000:
        days = diff // 86400
        return f"{days} day{'' if days == 1 else 's'} ago"
    if diff < 31536000:
        return f"{diff // 2592000} mo ago"
    return f"{diff // 31536000} yr ago"


def sync_indicator(record: RepoRecord) -> tuple[str, str]:
    """Return (text, style) for the sync column."""
    if not record.has_remote:
        return "?", "dim"
    if record.ahead and record.behind:
        return f"↑{record.ahead}↓{record.behind}", "magenta"
    if record.ahead:
        return f"↑{record.ahead}", "green"
    if record.behind:
        return f"↓{record.behind}", "red"
    return "≡", "dim"


def compute_unique_display_names(records: list[RepoRecord]) -> dict[Path, str]:
    """Compute unique display names for records with duplicate names.

    When several repositories share a directory name, parent directory
    components are added until each name becomes unique.

    Args:
        records: Census records in display order

    Returns:
        Dictionary mapping repository path to display name
    """
    name_groups: dict[str, list[Path]] = defaultdict(list)
    for record in records:
        name_groups[record.name].append(record.path)

    result: dict[Path, str] = {}
    for name, paths in name_groups.items():
        if len(paths) == 1:
            result[paths[0]] = name
        else:
            for path, unique_name in zip(paths, _make_paths_unique(paths)):
                result[path] = unique_name
    return result


def _make_paths_unique(paths: list[Path]) -> list[str]:
    """Shortest trailing component sequence that tells each path apart."""
    reversed_parts = [list(reversed(p.parts)) for p in paths]

    result = []
    for i, parts in enumerate(reversed_parts):
        for depth in range(1, len(parts) + 1):
            candidate = "/".join(reversed(parts[:depth]))
            clashes = any(
                "/".join(reversed(other[:depth])) == candidate
                for j, other in enumerate(reversed_parts)
                if j != i
            )
            if not clashes:
                result.append(candidate)
                break
        else:
            result.append("/".join(reversed(parts)))
    return result


class OutputFormatter:
    """Format census output for console or JSON."""

    def __init__(self, console: Console, use_json: bool = False):
        self.console = console
        self.use_json = use_json

    def print_report(
        self,
        records: list[RepoRecord],
        summary: CensusSummary,
        root_path: Path,
        options: CensusOptions,
    ):
        """Print the full census report."""
        if self.use_json:
            self._print_report_json(records, summary, root_path, options)
            return

        self.console.print(f"[bold]Scanned:[/] {escape(str(root_path))}\n")
        display_names = compute_unique_display_names(records)

        if options.operation is SyncOperation.FETCH:
            self._print_operation_summary(records, display_names, "Fetch", FetchOutcome)
        elif options.operation is SyncOperation.PULL:
            self._print_operation_summary(records, display_names, "Pull", PullOutcome)
        if options.switch_branch:
            self._print_switch_summary(records, display_names, options.switch_branch)

        self._print_status_table(records, display_names)
        self._print_summary_line(summary)

    def _print_status_table(self, records: list[RepoRecord], display_names: dict[Path, str]):
        """Print one row per repository in discovery order."""
        table = Table(box=None, header_style="dim", pad_edge=False)
        table.add_column("NAME", style="cyan", no_wrap=True, max_width=28)
        table.add_column("BRANCH", no_wrap=True, max_width=30)
        table.add_column("SYNC", no_wrap=True)
        table.add_column("WHEN", style="dim", no_wrap=True)
        table.add_column("STATUS", no_wrap=True)

        for record in records:
            name = escape(display_names.get(record.path, record.name))
            sync_text, sync_style = sync_indicator(record)
            table.add_row(
                name,
                self._get_branch_display(record),
                f"[{sync_style}]{sync_text}[/]",
                relative_time(record.last_commit),
                self._get_working_tree_display(record),
            )

        self.console.print(table)

    def _get_branch_display(self, record: RepoRecord) -> str:
        if not record.usable:
            return "[red](unreadable)[/]"
        color = "yellow" if record.is_dirty else "green"
        return f"[{color}]{escape(record.branch)}[/]"

    def _get_working_tree_display(self, record: RepoRecord) -> str:
        if not record.is_dirty:
            return "[green]✓[/]"

        parts = []
        if record.staged:
            parts.append(f"[green]●{record.staged}[/]")
        if record.modified:
            parts.append(f"[red]✗{record.modified}[/]")
        if record.untracked:
            parts.append(f"[magenta]?{record.untracked}[/]")
        return " ".join(parts)

    def _print_summary_line(self, summary: CensusSummary):
        if summary.total == 0:
            self.console.print("  No git repositories found.")
            return

        parts = [
            f"[bold]{summary.total} repo{'' if summary.total == 1 else 's'}[/]",
            f"[green]{summary.clean} clean[/]",
            f"[red]{summary.dirty} dirty[/]",
        ]
        if summary.behind > 0:
            parts.append(f"[yellow]{summary.behind} behind[/]")
        self.console.print("  " + " · ".join(parts))

    def _print_switch_summary(
        self,
        records: list[RepoRecord],
        display_names: dict[Path, str],
        branch: str,
    ):
        """Print per-repository switch results and their totals."""
        self.console.print(f"[bold]Switching to branch:[/] [yellow]{escape(branch)}[/]\n")

        for record in records:
            if record.switch_result is None:
                continue
            label, style = SWITCH_LABELS[record.switch_result]
            line = f"  [cyan]{escape(display_names.get(record.path, record.name))}[/]  "
            line += f"[{style}]{label}[/]"
            if record.switch_result is SwitchOutcome.DIRTY:
                details = []
                if record.staged:
                    details.append(f"{record.staged} staged")
                if record.modified:
                    details.append(f"{record.modified} modified")
                line += f"  [dim]{', '.join(details)}[/]"
            self.console.print(line)

        counts = outcome_counts(records, SwitchOutcome)
        skipped = counts[SwitchOutcome.DIRTY] + counts[SwitchOutcome.ERROR]
        totals = (
            f"  switched [green]{counts[SwitchOutcome.SWITCHED]}[/]"
            f" · already [dim]{counts[SwitchOutcome.ALREADY_ON_BRANCH]}[/]"
        )
        if skipped:
            totals += f" · skipped [red]{skipped}[/]"
        self.console.print()
        self.console.print(totals)
        self.console.print()

    def _print_operation_summary(
        self,
        records: list[RepoRecord],
        display_names: dict[Path, str],
        title: str,
        outcome_type: type[FetchOutcome] | type[PullOutcome],
    ):
        """Print per-outcome counts, then the repositories that need attention."""
        labels = FETCH_LABELS if outcome_type is FetchOutcome else PULL_LABELS
        quiet = QUIET_OUTCOMES[outcome_type]
        counts = outcome_counts(records, outcome_type)

        parts = []
        for outcome, total in counts.items():
            if total:
                label, style = labels[outcome]
                parts.append(f"[{style}]{total} {label}[/]")
        self.console.print(f"[bold]{title}:[/] " + (" · ".join(parts) or "[dim]nothing to do[/]"))

        for record in records:
            outcome = record.operation_result
            # StrEnum members of different types compare equal by value
            if not isinstance(outcome, outcome_type) or outcome in quiet:
                continue
            label, style = labels[outcome]
            name = escape(display_names.get(record.path, record.name))
            self.console.print(f"  [cyan]{name}[/]  [{style}]{label}[/]")
        self.console.print()

    def _print_report_json(
        self,
        records: list[RepoRecord],
        summary: CensusSummary,
        root_path: Path,
        options: CensusOptions,
    ):
        output: dict = {
            "root": str(root_path),
            "repositories": [r.to_dict() for r in records],
            "summary": summary.to_dict(),
        }
        if options.switch_branch:
            output["switch"] = {
                "branch": options.switch_branch,
                "counts": {k.value: v for k, v in outcome_counts(records, SwitchOutcome).items()},
            }
        if options.operation is not SyncOperation.NONE:
            outcome_type = FetchOutcome if options.operation is SyncOperation.FETCH else PullOutcome
            output["operation"] = {
                "name": options.operation.value,
                "counts": {k.value: v for k, v in outcome_counts(records, outcome_type).items()},
            }
        self.console.print(
            json.dumps(output, indent=2, default=str),
            markup=False,
            emoji=False,
            highlight=False,
            soft_wrap=True,
        )
