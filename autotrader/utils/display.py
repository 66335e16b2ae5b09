"""
Terminal status display for the CLI.

Renders the controller status and open positions with rich.
"""

from typing import Any, Dict, Optional, Sequence

from rich import box
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table

from autotrader.trading.models import PositionRecord


def _short(text: str, width: int = 45) -> str:
    if not text:
        return "N/A"
    return text[: width - 3] + "..." if len(text) > width else text


def build_positions_table(positions: Sequence[PositionRecord]) -> Table:
    table = Table(
        show_header=True,
        header_style="bold cyan",
        border_style="cyan",
        box=box.ROUNDED,
        expand=True,
    )
    table.add_column("Market", style="white", max_width=45)
    table.add_column("Side", justify="center")
    table.add_column("Size", justify="right")
    table.add_column("Entry", justify="right")
    table.add_column("Current", justify="right")
    table.add_column("P&L", justify="right")

    if not positions:
        table.add_row("[dim]No open positions[/dim]", "", "", "", "", "")
        return table

    for position in positions:
        pnl = position.market_value - position.cost_basis
        pnl_style = "green" if pnl >= 0 else "red"
        side_style = "green" if position.outcome.upper() == "YES" else "red"
        table.add_row(
            _short(position.question or position.key or ""),
            f"[{side_style}]{position.outcome}[/{side_style}]",
            f"{position.size:.2f}",
            f"${position.avg_price:.3f}",
            f"${position.current_price:.3f}" if position.current_price is not None else "N/A",
            f"[{pnl_style}]${pnl:+.2f}[/{pnl_style}]",
        )
    return table


def build_status_panel(status: Dict[str, Any], positions: Sequence[PositionRecord]) -> Panel:
    state_style = "green" if status["running"] else "yellow"
    mode_style = "red" if status["mode"] == "UNSUPERVISED" else "cyan"
    summary = (
        f"[bold]State:[/bold] [{state_style}]{status['state']}[/{state_style}]   "
        f"[bold]Mode:[/bold] [{mode_style}]{status['mode']}[/{mode_style}]\n"
        f"[bold]Daily Trades:[/bold] {status['daily_trade_count']}/{status['max_daily_trades']}   "
        f"[bold]Open Positions:[/bold] {status['open_positions']}/{status['max_open_positions']}\n"
        f"[bold]Exposure:[/bold] [yellow]${status['total_exposure']}[/yellow]   "
        f"{status['balance']}"
    )
    return Panel(
        Group(summary, build_positions_table(positions)),
        title="[bold cyan]AUTONOMOUS TRADER[/bold cyan]",
        border_style="cyan",
    )


def print_status(controller: Any, console: Optional[Console] = None) -> None:
    """Print the controller status panel to the terminal."""
    console = console or Console()
    console.print(build_status_panel(controller.get_status(), controller.positions.positions))
