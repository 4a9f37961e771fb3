"""Show the contents of a binary campaign config."""

from typing import Any, Dict, Optional

from rich.panel import Panel

from liquidip_toolkit.config.encrypted_codec import EncryptedCampaignConfigView
from liquidip_toolkit.utils.file_utils import open_config_view, read_config_bytes
from liquidip_toolkit.utils.formatters import (
    console,
    create_epochs_table,
    create_positions_table,
    format_duration,
    format_timestamp,
    save_json_output,
)


def _summarize(view) -> Dict[str, Any]:
    summary = view.to_model().to_dict()
    summary["ending_time"] = view.ending_time()
    summary["total_tokens_to_sell"] = str(view.total_tokens_to_sell())
    summary["size"] = len(view)
    return summary


def inspect_config(config_path: str) -> Dict[str, Any]:
    """Validate a config file and return its decoded model as a dict."""
    return _summarize(open_config_view(read_config_bytes(config_path)).validate())


def run(
    config_path: str,
    show_positions: bool = False,
    json_output: Optional[str] = None,
) -> Dict[str, Any]:
    console.print(Panel("Campaign Config", style="bold magenta"))
    view = open_config_view(read_config_bytes(config_path)).validate()
    encrypted = isinstance(view, EncryptedCampaignConfigView)

    console.print(f"Variant: {'private' if encrypted else 'public'} ({len(view)} bytes)")
    console.print(f"Starts:  {format_timestamp(view.starting_time())}")
    console.print(f"Ends:    {format_timestamp(view.ending_time())}")
    console.print(f"Tokens:  {view.total_tokens_to_sell()}")

    table = create_epochs_table()
    for epoch in range(view.num_epochs()):
        tokens = (
            "encrypted"
            if encrypted
            else str(sum(p.amount for p in view.positions(epoch)))
        )
        table.add_row(
            str(epoch),
            format_timestamp(view.epoch_starting_time(epoch)),
            format_duration(view.duration_seconds(epoch)),
            str(view.num_positions(epoch)),
            tokens,
        )
    console.print(table)

    if show_positions and not encrypted:
        for epoch in range(view.num_epochs()):
            positions = create_positions_table(f"Epoch {epoch}")
            for index, position in enumerate(view.positions(epoch)):
                positions.add_row(
                    str(index),
                    str(position.tick_lower),
                    str(position.tick_upper),
                    str(position.amount),
                )
            console.print(positions)

    summary = _summarize(view)
    if json_output:
        save_json_output(summary, json_output)
    return summary
