"""Epoch scheduling helpers."""

from .scheduler import (
    CampaignPhase,
    campaign_phase,
    current_epoch,
    ending_time,
    ensure_active,
    epoch_bounds,
    seconds_until_next_epoch,
)

__all__ = [
    "CampaignPhase",
    "campaign_phase",
    "current_epoch",
    "ending_time",
    "ensure_active",
    "epoch_bounds",
    "seconds_until_next_epoch",
]
