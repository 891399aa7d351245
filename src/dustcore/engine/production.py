"""Production calculator — pure job output and efficiency formulas.

Every productive job is calibrated to the same value: one fully
efficient worker at building level 1 produces 15 VU per AU, whatever
the job.  Output is linear in worker count and in AU.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from dustcore.models.buildings import BuildingId
from dustcore.models.population import JobId, JobOutput, MinimumWorkers, Worker
from dustcore.util.constants import (
    BUILDING_EFFICIENCY_STEP,
    CANNOT_WORK_HEALTH,
    LOW_HEALTH,
    LOW_HEALTH_EFFICIENCY,
    NET_SURPLUS_VU_PER_AU,
    WORKERS_PER_SURVIVAL_UNIT,
    WORKSHOP_EFFICIENCY_STEP,
)


@dataclass(frozen=True)
class JobRate:
    """Per-worker, per-AU output of a job at level 1."""
    resource: str
    amount: float
    vu_per_unit: float


JOB_PRODUCTION: dict[JobId, JobRate] = {
    JobId.SCAVENGER: JobRate("scrap", 15.0, 1.0),
    JobId.WATER_COLLECTOR: JobRate("water", 3.0, 5.0),
    JobId.HUNTER: JobRate("food", 3.6, 4.167),
    JobId.ENGINEER: JobRate("work", 60.0, 0.25),
    JobId.RESEARCHER: JobRate("research", 30.0, 0.5),
    JobId.GUARD: JobRate("none", 0.0, 0.0),
    JobId.SCOUT: JobRate("none", 0.0, 0.0),
}


def building_efficiency_multiplier(level: int) -> float:
    """``1 + 0.10 × (level − 1)``; an unbuilt building (level ≤ 0) gives 0."""
    if level <= 0:
        return 0.0
    return 1.0 + BUILDING_EFFICIENCY_STEP * (level - 1)


def workshop_efficiency_multiplier(level: int) -> float:
    """``1 + 0.20 × (level − 1)``; no workshop (level ≤ 0) gives 0."""
    if level <= 0:
        return 0.0
    return 1.0 + WORKSHOP_EFFICIENCY_STEP * (level - 1)


def job_production(
    job: JobId,
    worker_count: int,
    building_level: int,
    phase_au: float,
    worker_efficiencies: Optional[Sequence[float]] = None,
) -> JobOutput:
    """Output of *worker_count* workers doing *job* for one phase.

    Args:
        job: The job.
        worker_count: Workers assigned.
        building_level: Level of the job's building.
        phase_au: AU of the phase.
        worker_efficiencies: Per-worker efficiency (defaults to 1.0 each).
    """
    rate = JOB_PRODUCTION[job]
    if worker_count <= 0 or rate.amount == 0:
        return JobOutput(rate.resource, 0.0, 0.0)
    if worker_efficiencies is None:
        effective = float(worker_count)
    else:
        effective = float(sum(worker_efficiencies[:worker_count]))
    amount = rate.amount * effective * building_efficiency_multiplier(building_level) * phase_au
    return JobOutput(rate.resource, amount, amount * rate.vu_per_unit)


def minimum_workers(population: int, efficiency_multiplier: float) -> MinimumWorkers:
    """Water and food workers needed to sustain *population*.

    Each is ``ceil(population / (3 × efficiency))``; advisory only.
    """
    if efficiency_multiplier <= 0:
        raise ValueError(f"Efficiency must be positive, got {efficiency_multiplier}")
    need = math.ceil(population / (WORKERS_PER_SURVIVAL_UNIT * efficiency_multiplier))
    return MinimumWorkers(water=need, food=need, total=need * 2)


def net_surplus(effective_workers: float, phase_au: float) -> float:
    """Net VU gained: ``effective_workers × 5 × phase_au``."""
    return effective_workers * NET_SURPLUS_VU_PER_AU * phase_au


def worker_efficiency(worker: Worker) -> float:
    """0 if too hurt to work or bleeding, 0.7 if hurt, else 1."""
    if worker.health < CANNOT_WORK_HEALTH or worker.bleeding:
        return 0.0
    if worker.health < LOW_HEALTH:
        return LOW_HEALTH_EFFICIENCY
    return 1.0


def can_work(worker: Worker) -> bool:
    return worker_efficiency(worker) > 0


def max_worker_slots(building: BuildingId, level: int) -> int:
    """Worker slots a production building offers (0 while unbuilt)."""
    if level <= 0:
        return 0
    if building == BuildingId.SCAVENGE_POST:
        return 3 + 3 * level
    return 2 + 2 * level
