"""Console render helpers used by the CLI commands."""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from rich.console import Console
from rich.table import Table
from termcolor import colored

from .brokers.models import Order, Position
from .normalize import PortfolioTotals
from .orders import Reconciliation


def _money(value: Optional[float]) -> str:
    return f"{value:,.2f}" if value is not None else "-"


def render_positions(console: Console, positions: Iterable[Position], totals: PortfolioTotals) -> None:
    table = Table(title="Holdings")
    table.add_column("Symbol")
    table.add_column("Shares", justify="right")
    table.add_column("Purchase", justify="right")
    table.add_column("Current", justify="right")
    table.add_column("Value", justify="right")
    table.add_column("Gain", justify="right")
    table.add_column("Gain %", justify="right")

    count = 0
    for pos in positions:
        count += 1
        table.add_row(
            pos.symbol,
            f"{pos.shares:g}",
            _money(pos.purchase_price),
            _money(pos.current_price),
            _money(pos.value),
            _money(pos.gain),
            f"{pos.gain_percent:.2f}%" if pos.gain_percent is not None else "-",
        )

    if count == 0:
        console.print(colored("No open positions.", "yellow"))
        return
    console.print(table)
    console.print(
        f"Balance {totals.balance:,.2f}  Gain {totals.total_gain:,.2f} "
        f"({totals.total_gain_percent:.2f}%)"
    )


def render_order_preview(console: Console, order: Order, sizing: Reconciliation) -> None:
    table = Table(title=f"{order.side.upper()} {order.symbol}")
    table.add_column("Field")
    table.add_column("Value")
    for key, value in order.to_payload().items():
        table.add_row(key, str(value))
    table.add_row("est. shares", f"{sizing.quantity:.4f}")
    table.add_row("est. total", f"{sizing.total:,.2f}")
    console.print(table)


def render_records(
    console: Console,
    title: str,
    records: Iterable[Mapping[str, Any]],
    columns: tuple[str, ...],
    empty_message: str,
) -> None:
    """Render vendor records whose shape is only loosely known."""
    table = Table(title=title)
    for column in columns:
        table.add_column(column)

    count = 0
    for record in records:
        count += 1
        table.add_row(*(str(record.get(column, "-") if record.get(column) is not None else "-") for column in columns))

    if count == 0:
        console.print(colored(empty_message, "yellow"))
    else:
        console.print(table)


def render_mapping(console: Console, title: str, data: Any) -> None:
    if not isinstance(data, Mapping):
        console.print(data)
        return
    table = Table(title=title)
    table.add_column("Field")
    table.add_column("Value")
    for key, value in data.items():
        table.add_row(str(key), str(value))
    console.print(table)
