"""
Output formatters for different output modes (JSON, TSV, human-readable)
"""

import json
from typing import Any

from rich.console import Console
from rich.table import Table

from dlmomentos.models import Group
from dlmomentos.orchestrator import DownloadReport


class OutputFormatter:
    """Format output in different modes"""

    def __init__(self, mode: str = "human", console: Console | None = None):
        """
        Initialize formatter

        Args:
            mode: Output mode (human, json, tsv)
        """
        self.mode = mode.lower()
        self.console = console or Console()

    def output_groups(self, groups: list[Group]) -> None:
        """Output the user's groups"""
        rows = [{"id": g.id, "name": g.name} for g in groups]
        if self.mode == "json":
            self._output_json({"status": "success", "total_groups": len(rows), "groups": rows})
        elif self.mode == "tsv":
            self._output_tsv(rows)
        else:
            self._output_human_groups(groups)

    def output_download_report(self, report: DownloadReport) -> None:
        """Output the outcome of a download run"""
        if self.mode == "json":
            self._output_json(report.to_dict())
        elif self.mode == "tsv":
            self._output_tsv(
                [
                    {
                        "group_id": g.group_id,
                        "event_id": e.event_id,
                        "status": "success" if e.ok else "error",
                        "files": ",".join(str(p) for p in e.files),
                    }
                    for g in report.groups
                    for e in g.events
                ]
            )
        else:
            self._output_human_report(report)

    def output_error(self, message: str) -> None:
        """Output error message"""
        if self.mode == "json":
            self._output_json({"status": "error", "error": message})
        else:
            self.console.print(f"[bold red]Error:[/bold red] {message}")

    def output_info(self, message: str) -> None:
        """Output info message"""
        if self.mode == "json":
            return
        self.console.print(message)

    def _output_json(self, data: Any) -> None:
        print(json.dumps(data, indent=2))

    def _output_tsv(self, data: list[dict[str, Any]]) -> None:
        if not data:
            return
        keys = list(data[0].keys())
        print("\t".join(keys))
        for item in data:
            print("\t".join(str(item.get(key, "")) for key in keys))

    def _output_human_groups(self, groups: list[Group]) -> None:
        if not groups:
            self.console.print("[yellow]No groups found[/yellow]")
            return

        table = Table(title="Momentos Groups")
        table.add_column("Group ID", style="cyan")
        table.add_column("Name", style="green")
        for group in groups:
            table.add_row(group.id, group.name)
        self.console.print(table)

    def _output_human_report(self, report: DownloadReport) -> None:
        for group in report.groups:
            if group.error is not None:
                self.console.print(
                    f"[bold red]✗[/bold red] Group {group.group_id}: "
                    f"{group.error.code}: {group.error.message}"
                )
                continue

            downloaded = sum(len(e.files) for e in group.events)
            failed = group.failed_events
            marker = "[bold yellow]![/bold yellow]" if failed else "[bold green]✓[/bold green]"
            self.console.print(
                f"{marker} Group {group.group_id}: {len(group.events)} events, "
                f"{downloaded} files written"
            )
            for event in group.events:
                if event.error is None:
                    continue
                self.console.print(
                    f"    [red]event {event.event_id}[/red]: "
                    f"{event.error.code}: {event.error.message}"
                )

        total = len(report.groups)
        self.console.print("\n[bold]Download complete:[/bold]")
        self.console.print(f"  Groups: {total - len(report.failed_groups)}/{total} succeeded")
        if report.failed_events:
            self.console.print(f"  Failed events: {report.failed_events}")
