"""Population service — workers, job assignment and job output.

All methods operate on :class:`Worker` objects.  Building levels are
passed in by the caller; the service does not own them.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from dustcore.engine.production import (
    building_efficiency_multiplier,
    can_work,
    job_production,
    max_worker_slots,
    minimum_workers,
    net_surplus,
    worker_efficiency,
)
from dustcore.models.buildings import BuildingId
from dustcore.models.population import (
    JOB_BUILDING,
    SLOTTED_JOBS,
    JobId,
    JobOutput,
    MinimumWorkers,
    Worker,
)
from dustcore.util.constants import BASE_POPULATION_CAP, MAX_HEALTH

log = logging.getLogger(__name__)


class PopulationService:
    """Owns the colony's workers.

    Args:
        population_cap: Initial population cap.
    """

    def __init__(self, population_cap: int = BASE_POPULATION_CAP) -> None:
        self.population_cap = population_cap
        self._workers: dict[str, Worker] = {}  # worker_id → Worker
        self._next_worker_id = 1

    def reset(self, population_cap: int = BASE_POPULATION_CAP) -> None:
        self.population_cap = population_cap
        self._workers = {}
        self._next_worker_id = 1

    # -- Registry --------------------------------------------------------

    @property
    def workers(self) -> list[Worker]:
        return list(self._workers.values())

    @property
    def population(self) -> int:
        return len(self._workers)

    def get(self, worker_id: str) -> Optional[Worker]:
        return self._workers.get(worker_id)

    def add_worker(self, name: str, health: float = MAX_HEALTH) -> Optional[Worker]:
        """Add a worker.  Returns None when the population cap is reached."""
        if len(self._workers) >= self.population_cap:
            log.info("Cannot add %s: population cap %d reached", name, self.population_cap)
            return None
        worker = Worker(worker_id=f"w{self._next_worker_id}", name=name, health=health)
        self._next_worker_id += 1
        self._workers[worker.worker_id] = worker
        log.info("Worker joined: %s (%s)", worker.name, worker.worker_id)
        return worker

    def remove_worker(self, worker_id: str) -> Optional[Worker]:
        worker = self._workers.pop(worker_id, None)
        if worker is not None:
            log.info("Worker left: %s (%s)", worker.name, worker_id)
        return worker

    def apply_damage(self, damage: float, worker_ids: Optional[list[str]] = None) -> list[Worker]:
        """Take *damage* health from each worker, lowest health first.

        Only *worker_ids* are hit when given.  Workers left at 0 health
        die and are removed.

        Returns:
            The workers who died.
        """
        if damage <= 0:
            return []
        targets = [w for w in self._workers.values()
                   if worker_ids is None or w.worker_id in worker_ids]
        dead: list[Worker] = []
        for worker in sorted(targets, key=lambda w: w.health):
            worker.health = max(0.0, worker.health - damage)
            if worker.health <= 0:
                dead.append(worker)
        for worker in dead:
            del self._workers[worker.worker_id]
            log.warning("%s (%s) died", worker.name, worker.worker_id)
        return dead

    def available_workers(self) -> list[Worker]:
        """Workers at the base (not away on an expedition)."""
        return [w for w in self._workers.values() if not w.on_expedition]

    def set_on_expedition(self, worker_ids: list[str], away: bool) -> None:
        for wid in worker_ids:
            worker = self._workers.get(wid)
            if worker is not None:
                worker.on_expedition = away

    # -- Jobs ------------------------------------------------------------

    def job_workers(self, job: JobId) -> list[Worker]:
        """Workers assigned to *job* who are at the base."""
        return [w for w in self._workers.values() if w.job == job and not w.on_expedition]

    def job_slots(self, job: JobId, building_levels: Mapping[BuildingId, int]) -> Optional[int]:
        """Maximum head count of *job* (None = unlimited)."""
        if job not in SLOTTED_JOBS:
            return None
        building = JOB_BUILDING[job]
        return max_worker_slots(building, building_levels.get(building, 0))

    def assign_job(self, worker_id: str, job: Optional[JobId],
                   building_levels: Mapping[BuildingId, int]) -> Optional[str]:
        """Assign (or with ``job=None`` clear) a worker's job.

        Returns:
            None on success, or an error message.
        """
        worker = self._workers.get(worker_id)
        if worker is None:
            return f"Unknown worker: {worker_id}"
        if job is None:
            worker.job = None
            return None
        if worker.on_expedition:
            return f"{worker.name} is away on an expedition"
        if not can_work(worker):
            return f"{worker.name} is not fit to work"
        if worker.job == job:
            return None

        building = JOB_BUILDING.get(job)
        if building is not None and building_levels.get(building, 0) <= 0:
            return f"{job.value} requires a {building.value}"
        slots = self.job_slots(job, building_levels)
        if slots is not None and len(self.job_workers(job)) >= slots:
            return f"No free {job.value} slots ({slots} max)"

        worker.job = job
        log.info("%s assigned to %s", worker.name, job.value)
        return None

    # -- Production ------------------------------------------------------

    def job_output(self, job: JobId, phase_au: float,
                   building_levels: Mapping[BuildingId, int]) -> JobOutput:
        """What the workers of *job* produce in one phase."""
        workers = self.job_workers(job)
        building = JOB_BUILDING.get(job)
        level = building_levels.get(building, 0) if building is not None else 1
        return job_production(job, len(workers), level, phase_au,
                              [worker_efficiency(w) for w in workers])

    def minimum_workers(self, building_levels: Mapping[BuildingId, int]) -> MinimumWorkers:
        """Water and food workers the current population needs."""
        avg_level = (building_levels.get(BuildingId.WATER_COLLECTOR, 0)
                     + building_levels.get(BuildingId.TRAP, 0)) / 2
        efficiency = building_efficiency_multiplier(avg_level) if avg_level >= 1 else 1.0
        return minimum_workers(self.population, efficiency)

    def net_surplus(self, phase_au: float) -> float:
        """Net VU of the employed, fit workers at the base for one phase."""
        effective = sum(
            1 for w in self._workers.values()
            if w.job is not None and not w.on_expedition and can_work(w)
        )
        return net_surplus(effective, phase_au)

    # -- Snapshot --------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        return {
            "population_cap": self.population_cap,
            "next_worker_id": self._next_worker_id,
            "workers": [
                {
                    "worker_id": w.worker_id,
                    "name": w.name,
                    "health": w.health,
                    "job": w.job.value if w.job else None,
                    "bleeding": w.bleeding,
                    "on_expedition": w.on_expedition,
                }
                for w in self._workers.values()
            ],
        }

    def restore(self, data: dict[str, Any]) -> None:
        self.population_cap = int(data.get("population_cap", BASE_POPULATION_CAP))
        self._next_worker_id = int(data.get("next_worker_id", 1))
        self._workers = {}
        for raw in data.get("workers", []) or []:
            worker = Worker(
                worker_id=raw["worker_id"],
                name=raw.get("name", raw["worker_id"]),
                health=float(raw.get("health", MAX_HEALTH)),
                job=JobId(raw["job"]) if raw.get("job") else None,
                bleeding=bool(raw.get("bleeding", False)),
                on_expedition=bool(raw.get("on_expedition", False)),
            )
            self._workers[worker.worker_id] = worker
