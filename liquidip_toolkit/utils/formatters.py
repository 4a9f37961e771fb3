"""Shared formatting and file utilities for commands."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from rich.console import Console
from rich.table import Table

# Shared console instance
console = Console()


def format_address(address: str, length: int = 10) -> str:
    """
    Format an Ethereum address to show first and last characters.

    Returns:
        Formatted address like "0x1234...5678"
    """
    if not address:
        return "N/A"
    if len(address) <= length:
        return address
    return f"{address[:6]}...{address[-4:]}"


def format_timestamp(timestamp: int, format_str: str = "%Y-%m-%d %H:%M:%S") -> str:
    """Format a Unix timestamp as a UTC date string."""
    dt = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return dt.strftime(format_str) + " UTC"


def format_duration(seconds: int) -> str:
    """Compact duration like ``1d 2h 3m`` (seconds only when under a minute)."""
    if seconds < 60:
        return f"{seconds}s"
    days, rest = divmod(seconds, 86400)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60
    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    return " ".join(parts)


def save_json_output(
    data: Dict[str, Any],
    filename: str,
    output_dir: str = "output",
    print_path: bool = True,
) -> str:
    """
    Save data to a JSON file with automatic directory creation.

    Returns:
        Full path to saved file
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    filepath = output_path / filename

    with open(filepath, "w") as f:
        json.dump(data, f, indent=2)

    if print_path:
        console.print(f"[cyan]Data saved to:[/cyan] {filepath}")

    return str(filepath)


def create_epochs_table() -> Table:
    """Rich table with one row per epoch."""
    table = Table(
        show_header=True,
        header_style="bold cyan",
        show_lines=False,
        pad_edge=False,
        box=None,
    )
    table.add_column("Epoch", width=6, justify="right")
    table.add_column("Start", width=24)
    table.add_column("Duration", width=12, justify="right")
    table.add_column("Positions", width=10, justify="center")
    table.add_column("Tokens", width=28, justify="right")
    return table


def create_positions_table(title: str) -> Table:
    table = Table(title=title, header_style="bold magenta", box=None)
    table.add_column("#", justify="right")
    table.add_column("Tick lower", justify="right")
    table.add_column("Tick upper", justify="right")
    table.add_column("Amount", justify="right")
    return table
