"""Resolve which epoch of a campaign a timestamp falls in."""

import time
from typing import Any, Dict, Optional

from liquidip_toolkit.epochs.scheduler import (
    CampaignPhase,
    campaign_phase,
    current_epoch,
    epoch_bounds,
)
from liquidip_toolkit.shared.services.web3_service import Web3Service
from liquidip_toolkit.utils.file_utils import open_config_view, read_config_bytes
from liquidip_toolkit.utils.formatters import console, format_duration, format_timestamp


def chain_time(chain_id: int) -> int:
    """Latest block timestamp, the clock the hook sees."""
    return Web3Service.get_instance(chain_id).get_block_timestamp()


def resolve_epoch(config_path: str, timestamp: Optional[int] = None) -> Dict[str, Any]:
    view = open_config_view(read_config_bytes(config_path)).validate()
    now = int(time.time()) if timestamp is None else timestamp
    phase = campaign_phase(view, now)

    info: Dict[str, Any] = {"timestamp": now, "phase": phase.value, "epoch": None}
    if phase is CampaignPhase.ACTIVE:
        epoch = current_epoch(view, now)
        start, end = epoch_bounds(view, epoch)
        info.update(
            {"epoch": epoch, "epoch_start": start, "epoch_end": end, "remaining": end - now}
        )
    return info


def run(
    config_path: str,
    timestamp: Optional[int] = None,
    chain_id: Optional[int] = None,
) -> Dict[str, Any]:
    if timestamp is None and chain_id is not None:
        timestamp = chain_time(chain_id)
    info = resolve_epoch(config_path, timestamp)
    console.print(f"At {format_timestamp(info['timestamp'])}: [bold]{info['phase']}[/bold]")
    if info["epoch"] is not None:
        console.print(
            f"Epoch {info['epoch']} "
            f"({format_timestamp(info['epoch_start'])} -> "
            f"{format_timestamp(info['epoch_end'])}), "
            f"{format_duration(info['remaining'])} left"
        )
    return info
