"""
Epoch scheduling: mapping wall-clock time onto campaign epochs.

Epochs are contiguous half-open windows ``[start, end)`` laid end to end
from the campaign starting time, so a timestamp exactly on a boundary
belongs to the later epoch.
"""

from enum import Enum
from typing import Protocol, Tuple

from liquidip_toolkit.shared.exceptions import CampaignEnded, CampaignNotStarted


class EpochSchedule(Protocol):
    """Anything exposing the timing fields of a campaign config."""

    def starting_time(self) -> int:
        ...

    def num_epochs(self) -> int:
        ...

    def duration_seconds(self, epoch: int) -> int:
        ...


class CampaignPhase(Enum):
    """Where a timestamp falls relative to the campaign span."""

    NOT_STARTED = "not_started"
    ACTIVE = "active"
    ENDED = "ended"


def ending_time(schedule: EpochSchedule) -> int:
    """First second after the last epoch."""
    return schedule.starting_time() + sum(
        schedule.duration_seconds(e) for e in range(schedule.num_epochs())
    )


def campaign_phase(schedule: EpochSchedule, now: int) -> CampaignPhase:
    if now < schedule.starting_time():
        return CampaignPhase.NOT_STARTED
    if now >= ending_time(schedule):
        return CampaignPhase.ENDED
    return CampaignPhase.ACTIVE


def ensure_active(schedule: EpochSchedule, now: int) -> None:
    """Raise the timing error for ``now`` outside the campaign span."""
    phase = campaign_phase(schedule, now)
    if phase is CampaignPhase.NOT_STARTED:
        raise CampaignNotStarted(
            f"Campaign starts at {schedule.starting_time()}, now is {now}"
        )
    if phase is CampaignPhase.ENDED:
        raise CampaignEnded(
            f"Campaign ended at {ending_time(schedule)}, now is {now}"
        )


def current_epoch(schedule: EpochSchedule, now: int) -> int:
    """
    Index of the epoch containing ``now``.

    Accumulates durations from epoch 0 until ``now`` falls inside
    ``[epoch_start, epoch_start + duration)``. Timestamps outside the
    campaign raise CampaignNotStarted / CampaignEnded.
    """
    start = schedule.starting_time()
    if now < start:
        raise CampaignNotStarted(f"Campaign starts at {start}, now is {now}")

    epoch_start = start
    for epoch in range(schedule.num_epochs()):
        epoch_end = epoch_start + schedule.duration_seconds(epoch)
        if now < epoch_end:
            return epoch
        epoch_start = epoch_end

    raise CampaignEnded(f"Campaign ended at {epoch_start}, now is {now}")


def epoch_bounds(schedule: EpochSchedule, epoch: int) -> Tuple[int, int]:
    """``(start, end)`` timestamps of one epoch."""
    if not 0 <= epoch < schedule.num_epochs():
        raise IndexError(
            f"Epoch {epoch} out of range (campaign has "
            f"{schedule.num_epochs()} epochs)"
        )
    start = schedule.starting_time() + sum(
        schedule.duration_seconds(e) for e in range(epoch)
    )
    return start, start + schedule.duration_seconds(epoch)


def seconds_until_next_epoch(schedule: EpochSchedule, now: int) -> int:
    """Time left in the epoch containing ``now``."""
    _, end = epoch_bounds(schedule, current_epoch(schedule, now))
    return end - now
