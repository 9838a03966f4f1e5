"""
Terminal UI for FuelFlow.

Rich-based output helpers used by the command-line interface.
"""

from typing import Optional

from rich.box import ROUNDED
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..currency import CURRENCY_CONFIG, get_currency_info
from ..models import Session, StationSettings


class TerminalUI:
    """Rich terminal interface for FuelFlow."""

    def __init__(self, use_colors: bool = True, console: Optional[Console] = None):
        self.console = console or Console(
            color_system="auto" if use_colors else None
        )

    def print_success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str, technical_details: Optional[str] = None) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {escape(message)}")
        if technical_details:
            self.console.print(f"[dim]{escape(technical_details)}[/dim]")

    def print_warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_info(self, message: str) -> None:
        self.console.print(f"[blue]ℹ[/blue] {message}")

    def print_session(
        self,
        session: Session,
        currency_code: str,
        station: Optional[StationSettings] = None,
    ) -> None:
        """Show who is logged in and the active currency."""
        info = get_currency_info(currency_code)
        lines = [
            f"[bold]{session.full_name}[/bold] ([cyan]{session.username}[/cyan])",
            f"Role: [cyan]{session.role}[/cyan]",
            f"Station: [cyan]{session.station_id or '-'}[/cyan]",
            f"Currency: [cyan]{info.code}[/cyan] {info.symbol} ({info.name})",
        ]
        if station is not None and session.station_id:
            lines.insert(3, f"[dim]{station.station_name}, {station.address}[/dim]")

        self.console.print(Panel("\n".join(lines), title="FuelFlow", border_style="green"))

    def print_currencies(self, active: Optional[str] = None) -> None:
        """Table of the supported currencies."""
        table = Table(title="Supported currencies", box=ROUNDED)
        table.add_column("Code", style="bold")
        table.add_column("Symbol")
        table.add_column("Name")
        table.add_column("Locale", style="dim")

        for code, info in CURRENCY_CONFIG.items():
            marker = " [green]●[/green]" if code == active else ""
            table.add_row(f"{code}{marker}", info.symbol, info.name, info.locale)

        self.console.print(table)
