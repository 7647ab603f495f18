"""Rich terminal output utilities for vmconverge.

This module provides formatted output using the Rich library for the
desired-state listing and the per-cycle summary.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import TYPE_CHECKING

import yaml
from rich.console import Console
from rich.table import Table
from rich.text import Text

from vmconverge.models.desired_state import DesiredStateRecord, PowerIntent

if TYPE_CHECKING:
    from vmconverge.core.reconciler import CycleResult

# Global console instance
console = Console()
error_console = Console(stderr=True)

ACTION_COLORS = {
    "reconfigured": "green",
    "would_reconfigure": "yellow",
    "unchanged": "dim",
    "not_found": "blue",
    "failed": "red",
}


class OutputFormat(str, Enum):
    """Supported output formats."""

    TABLE = "table"
    JSON = "json"
    YAML = "yaml"


class OutputFormatter:
    """Formats desired-state records and cycle results.

    Args:
        format_type: Output format to use (table, json, yaml).
        output_console: Rich console instance for output.
    """

    def __init__(
        self,
        format_type: OutputFormat = OutputFormat.TABLE,
        output_console: Console | None = None,
    ) -> None:
        self.format_type = format_type
        self.console = output_console or console

    def _print_data(self, data: object) -> None:
        if self.format_type == OutputFormat.JSON:
            self.console.print_json(json.dumps(data, indent=2, default=str))
        else:
            self.console.print(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))

    def print_records(self, records: list[DesiredStateRecord]) -> None:
        """Print desired-state records.

        Args:
            records: Records to display.
        """
        if self.format_type != OutputFormat.TABLE:
            self._print_data([r.to_dict() for r in records])
            return

        table = Table(title="Desired State", show_header=True)
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("CPU", justify="right", style="yellow")
        table.add_column("RAM (GB)", justify="right", style="yellow")
        table.add_column("Start", justify="center")

        for record in records:
            start = Text(record.start or "-")
            if record.power_intent is PowerIntent.INVALID:
                start.stylize("red")
            table.add_row(
                record.name,
                str(record.cpu) if record.cpu is not None else "-",
                str(record.ram) if record.ram is not None else "-",
                start,
            )

        self.console.print(table)

    def print_cycle_result(self, result: CycleResult) -> None:
        """Print the per-VM outcomes of a cycle.

        Args:
            result: Cycle result to display.
        """
        if self.format_type != OutputFormat.TABLE:
            self._print_data(
                {
                    "error_count": result.error_count,
                    "changed": sorted(result.changed_vm_names),
                    "outcomes": [
                        {
                            "name": o.name,
                            "action": o.action.value,
                            "changes": o.changes,
                            "powered_on": o.powered_on,
                        }
                        for o in result.outcomes
                    ],
                }
            )
            return

        table = Table(title="Reconciliation Cycle", show_header=True)
        table.add_column("VM", style="cyan", no_wrap=True)
        table.add_column("Action", justify="center")
        table.add_column("CPU", justify="right", style="yellow")
        table.add_column("Memory (MB)", justify="right", style="yellow")
        table.add_column("Powered On", justify="center")

        for outcome in result.outcomes:
            action = Text(outcome.action.value)
            action.stylize(ACTION_COLORS.get(outcome.action.value, "white"))
            table.add_row(
                outcome.name,
                action,
                str(outcome.changes.get("num_cpu", "-")),
                str(outcome.changes.get("memory_mib", "-")),
                "yes" if outcome.powered_on else "-",
            )

        self.console.print(table)


def print_success(message: str) -> None:
    """Print a success message.

    Args:
        message: Success message to display.
    """
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message to stderr.

    Args:
        message: Error message to display.
    """
    error_console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message.

    Args:
        message: Warning message to display.
    """
    console.print(f"[yellow]![/yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message.

    Args:
        message: Info message to display.
    """
    console.print(f"[blue]ℹ[/blue] {message}")
