"""Population models — workers and the jobs they hold."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from dustcore.models.buildings import BuildingId
from dustcore.util.constants import MAX_HEALTH


class JobId(Enum):
    """Jobs a worker can be assigned to."""

    SCAVENGER = "scavenger"
    WATER_COLLECTOR = "water_collector"
    HUNTER = "hunter"
    ENGINEER = "engineer"
    RESEARCHER = "researcher"
    GUARD = "guard"
    SCOUT = "scout"


JOB_BUILDING: dict[JobId, BuildingId] = {
    JobId.SCAVENGER: BuildingId.SCAVENGE_POST,
    JobId.WATER_COLLECTOR: BuildingId.WATER_COLLECTOR,
    JobId.HUNTER: BuildingId.TRAP,
    JobId.ENGINEER: BuildingId.WORKSHOP,
    JobId.RESEARCHER: BuildingId.RESEARCH_DESK,
}
"""Building whose level drives a job's output."""

SLOTTED_JOBS: frozenset[JobId] = frozenset({
    JobId.SCAVENGER, JobId.WATER_COLLECTOR, JobId.HUNTER,
})
"""Jobs whose head count is limited by their building's worker slots."""


@dataclass
class Worker:
    """A single colonist.

    Attributes:
        worker_id: Unique worker ID.
        name: Display name.
        health: Current health (0–100).
        job: Assigned job, or None when idle.
        bleeding: Set by the medical system; a bleeding worker cannot work.
        on_expedition: True while the worker is away exploring.
    """

    worker_id: str
    name: str
    health: float = MAX_HEALTH
    job: Optional[JobId] = None
    bleeding: bool = False
    on_expedition: bool = False


@dataclass(frozen=True)
class JobOutput:
    """Output of one job for one phase.

    ``resource`` is a resource id value string, ``"work"`` or
    ``"research"``.
    """

    resource: str
    amount: float
    vu_value: float


@dataclass(frozen=True)
class MinimumWorkers:
    """Workers needed to keep the colony fed and watered."""

    water: int
    food: int
    total: int
