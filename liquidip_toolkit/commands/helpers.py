"""Shared command helpers and utilities."""

import sys
from typing import Callable, Optional

from rich import print as rprint

from liquidip_toolkit.shared.exceptions import NonRetryableException


def handle_command_error(
    error: Exception, show_usage_fn: Optional[Callable[[], None]] = None
) -> None:
    """
    Standard error handling for commands.

    Args:
        error: The exception that occurred
        show_usage_fn: Optional function to display usage instructions
    """
    if isinstance(error, NonRetryableException):
        rprint(f"[red]{type(error).__name__}:[/red] {error.message}")
    elif isinstance(error, (ValueError, OSError)):
        rprint(f"[red]Error:[/red] {str(error)}")
    else:
        rprint(f"[red]Unexpected error:[/red] {str(error)}")

    if show_usage_fn:
        show_usage_fn()

    sys.exit(1)
