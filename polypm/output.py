#!/usr/bin/env python3
"""
Console output for the polypm CLI: rich tables or JSON.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .models import PackageRecord
from .pm_types import ManagerInfoDict, PackageDict


class RichOutput:
    """Rich console output manager for the CLI."""

    def __init__(
        self,
        console: Optional[Console] = None,
        error_console: Optional[Console] = None,
        json_mode: bool = False,
    ) -> None:
        self.console = console or Console()
        self.error_console = error_console or Console(stderr=True)
        self.json_mode = json_mode

    def print_packages(self, packages: Iterable[PackageRecord], title: str = "Packages") -> int:
        """Print packages as a table or JSON array; returns how many were printed."""
        rows: list[PackageDict] = [pkg.to_dict() for pkg in packages]

        if self.json_mode:
            self.console.print_json(data=rows)
            return len(rows)

        table = Table(title=f"{title} ({len(rows)})", show_header=True)
        table.add_column("Package", style="cyan")
        table.add_column("Version", style="green")
        for row in rows:
            table.add_row(row["name"], row["version"] or "[white]~[/white]")
        self.console.print(table)
        return len(rows)

    def print_managers(self, managers: list[ManagerInfoDict]) -> None:
        """Display supported package managers with their availability."""
        if self.json_mode:
            self.console.print_json(data=managers)
            return

        self.console.print(f"a total of {len(managers)} package managers are supported")
        table = Table(show_header=True)
        table.add_column("Supported", style="cyan")
        table.add_column("Name")
        table.add_column("File Extensions", style="green")
        table.add_column("Available")
        for info in managers:
            table.add_row(
                info["name"],
                info["display_name"],
                ", ".join(info["file_extensions"]),
                "[green]Yes[/green]" if info["available"] else "[red]No[/red]",
            )
        self.console.print(table)

    def print_error(self, message: str, command: Optional[Iterable[str]] = None) -> None:
        self.error_console.print(f"[bold red]Error:[/bold red] {escape(message)}", highlight=False)
        if command:
            self.error_console.print(f"  command: {' '.join(command)}", highlight=False, markup=False)
