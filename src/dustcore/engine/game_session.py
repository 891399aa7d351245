"""Game session — wires the engines together and settles each phase.

Responsibilities:
- Own one of each engine, the event bus and the catalog
- Player commands: each is validated for AU by the action executor and
  committed by the owning engine in the same call
- Phase-end settlement: consumption, bonfire, job production,
  perishables, shortage damage, expedition progress, then the clock
  advances
- Keep population and storage caps in line with building levels
- New game setup and whole-state snapshot / restore

No I/O happens here; persistence lives in ``dustcore.persistence``.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from dustcore.engine.action_executor import ActionExecutor
from dustcore.engine.building_service import BuildingService
from dustcore.engine.catalog import Catalog
from dustcore.engine.crafting_engine import CraftingEngine, recipe_materials, work_from_engineers
from dustcore.engine.exploration_engine import ExplorationEngine
from dustcore.engine.population_service import PopulationService
from dustcore.engine.production import worker_efficiency, workshop_efficiency_multiplier
from dustcore.engine.resource_ledger import ResourceLedger, shortage_damage
from dustcore.engine.tech_service import TechService
from dustcore.engine.time_engine import TimeEngine
from dustcore.loaders.game_config_loader import GameConfig
from dustcore.models.actions import ActionContext, ActionResult, FailureCategory
from dustcore.models.buildings import BonfireIntensity, BuildingId
from dustcore.models.crafting import CraftingTask
from dustcore.models.map import ExpeditionOutcome, ExpeditionProgress, ExpeditionStatus, RegionTier
from dustcore.models.population import JOB_BUILDING, JobId
from dustcore.models.resources import ConsumptionResult, ResourceChange, ResourceId
from dustcore.models.time import Phase
from dustcore.util.events import BuildingLevelChanged, ColonyLost, EventBus, WorkerDied

log = logging.getLogger(__name__)

STATE_VERSION = 1

_RESOURCE_JOBS = (JobId.SCAVENGER, JobId.WATER_COLLECTOR, JobId.HUNTER)


@dataclass
class PhaseReport:
    """Everything that happened while settling one phase.

    Attributes:
        day: Day of the settled phase.
        phase: The settled phase.
        phase_au: AU of the settled phase.
        consumption: Population water/food consumption.
        bonfire_fuel: Wood burned by the bonfire.
        production: Output per resource key (resource id, ``"work"``, ``"research"``).
        crafting_completed: Task finished this phase, if any.
        research_completed: Technology finished this phase, if any.
        spoiled: Perishables lost at midnight.
        shortage_damage: Health each worker at the base lost to the shortage.
        deaths: Ids of workers who died of the shortage.
        game_over: True once nobody is left alive.
        expedition: Progress of the active expedition, if any.
        expedition_outcome: Outcome of an expedition that returned.
    """

    day: int
    phase: Phase
    phase_au: float
    consumption: ConsumptionResult = field(default_factory=ConsumptionResult)
    bonfire_fuel: float = 0.0
    production: dict[str, float] = field(default_factory=dict)
    crafting_completed: Optional[CraftingTask] = None
    research_completed: Optional[str] = None
    spoiled: dict[ResourceId, float] = field(default_factory=dict)
    shortage_damage: float = 0.0
    deaths: list[str] = field(default_factory=list)
    game_over: bool = False
    expedition: Optional[ExpeditionProgress] = None
    expedition_outcome: Optional[ExpeditionOutcome] = None


class GameSession:
    """One colony and every engine that acts on it.

    Args:
        catalog: Static game data.
        game_config: Tunable constants (defaults if None).
        event_bus: Shared event bus (a new one if None).
        rng: Random source shared by actions and loot (seeded from
            ``game_config.seed`` if None).
    """

    def __init__(self, catalog: Catalog, game_config: Optional[GameConfig] = None,
                 event_bus: Optional[EventBus] = None,
                 rng: Optional[random.Random] = None) -> None:
        self.catalog = catalog
        self.config = game_config or GameConfig()
        self.events = event_bus or EventBus()
        self.rng = rng or random.Random(self.config.seed)
        self.difficulty = self.config.difficulty
        self.game_over = False

        self.time = TimeEngine(self.events)
        self.ledger = ResourceLedger(catalog, self.events, self.config)
        self.actions = ActionExecutor(catalog, self.events, self.rng)
        self.crafting = CraftingEngine(catalog, self.events)
        self.exploration = ExplorationEngine(catalog, self.events, self.config, self.rng)
        self.buildings = BuildingService(catalog, self.events, self.config.base_population_cap)
        self.population = PopulationService(self.config.base_population_cap)
        self.tech = TechService(catalog, self.events)

        self.events.on(BuildingLevelChanged, self._on_building_level_changed)
        self.sync_building_effects()

    # -- Building effects ------------------------------------------------

    def _on_building_level_changed(self, event: BuildingLevelChanged) -> None:
        self.sync_building_effects()

    def sync_building_effects(self) -> None:
        """Push building-derived values into the other engines.

        Population cap (shelter), storage caps (warehouse) and radio
        range (radio tower).
        """
        self.population.population_cap = self.buildings.population_cap()
        for rid, cap in self.buildings.storage_caps().items():
            self.ledger.set_cap(rid, cap)
        self.exploration.radio_tower_level = self.buildings.level(BuildingId.RADIO_TOWER)

    # -- Context ---------------------------------------------------------

    def context(self) -> ActionContext:
        """Snapshot of the colony for action validation."""
        return ActionContext(
            phase=self.time.phase,
            phase_au=self.time.get_current_phase_au(),
            resources=self.ledger.amounts(),
            buildings=dict(self.buildings.levels),
            technologies=set(self.tech.researched),
            worker_count=self.population.population,
        )

    def remaining_au(self) -> float:
        return self.actions.remaining_au(self.time.get_current_phase_au())

    def _run(self, action_id: str, commit=None) -> ActionResult:
        return self.actions.execute_action(
            action_id, self.context(),
            self.ledger.consume_resources, self.ledger.add_resources,
            commit=commit,
        )

    # -- Commands --------------------------------------------------------

    def execute_action(self, action_id: str) -> ActionResult:
        """Run a generic action (quick_scavenge, hunt, ...)."""
        action = self.catalog.action(action_id)
        if action is not None and action.delegated:
            raise ValueError(f"{action_id} must go through its dedicated command")
        return self._run(action_id)

    def build_or_upgrade(self, building_id: BuildingId) -> ActionResult:
        """Construct or upgrade a building (``build`` action)."""
        def commit() -> ActionResult:
            check = self.buildings.build_or_upgrade(
                building_id, self.ledger.amounts(), self.tech.researched,
                self.ledger.consume_resources,
            )
            if not check.can_build:
                return ActionResult.fail(check.category, check.reason)
            level = self.buildings.level(building_id)
            return ActionResult(
                success=True,
                message=f"{building_id.value} is now level {level}",
                resource_changes=[ResourceChange(c.resource_id, -c.amount) for c in check.cost],
            )
        return self._run("build", commit)

    def start_research(self, tech_id: str) -> ActionResult:
        """Begin researching a technology (``research`` action)."""
        def commit() -> ActionResult:
            error = self.tech.start_research(tech_id)
            if error is not None:
                return ActionResult.fail(FailureCategory.UNKNOWN_RECIPE_OR_TECH, error)
            return ActionResult(success=True, message=f"Researching {tech_id}")
        return self._run("research", commit)

    def _recipe_locked(self, recipe_id: str) -> bool:
        return (recipe_id in self.catalog.tech_gated_recipes()
                and recipe_id not in self.tech.unlocked("recipe"))

    def craft_immediate(self, recipe_id: str, quantity: int = 1) -> ActionResult:
        """Craft now from stock and the Work pool (``workshop_craft`` action)."""
        def commit() -> ActionResult:
            if self._recipe_locked(recipe_id):
                return ActionResult.fail(FailureCategory.UNKNOWN_RECIPE_OR_TECH,
                                         f"Recipe {recipe_id} is not researched")
            result = self.crafting.craft_immediate(
                recipe_id, quantity, self.ledger.amounts(),
                self.buildings.level(BuildingId.WORKSHOP),
                self.ledger.consume_resources, self.ledger.add_resource,
            )
            if not result.success:
                return ActionResult.fail(result.category, result.reason)
            recipe = self.catalog.recipe(recipe_id)
            changes = [ResourceChange(m.resource_id, -m.amount)
                       for m in recipe_materials(recipe, quantity)]
            changes.append(ResourceChange(result.output_resource_id, result.output_amount))
            return ActionResult(
                success=True,
                message=f"Crafted {result.output_amount:g} {result.output_resource_id.value}",
                resource_changes=changes,
            )
        return self._run("workshop_craft", commit)

    def start_crafting_task(self, recipe_id: str, quantity: int = 1) -> ActionResult:
        """Queue a task for the engineers (``workshop_craft`` action).

        Materials are taken when the task is queued.
        """
        def commit() -> ActionResult:
            recipe = self.catalog.recipe(recipe_id)
            if recipe is None or quantity <= 0:
                return ActionResult.fail(FailureCategory.UNKNOWN_RECIPE_OR_TECH,
                                         f"Cannot queue {quantity}x {recipe_id}")
            if self._recipe_locked(recipe_id):
                return ActionResult.fail(FailureCategory.UNKNOWN_RECIPE_OR_TECH,
                                         f"Recipe {recipe_id} is not researched")
            if self.crafting.current_task is not None:
                return ActionResult.fail(FailureCategory.INSUFFICIENT_RESOURCES,
                                         "The workshop is busy with another task")
            materials = recipe_materials(recipe, quantity)
            if not self.ledger.consume_resources(materials):
                return ActionResult.fail(FailureCategory.INSUFFICIENT_RESOURCES,
                                         f"Not enough materials for {quantity}x {recipe_id}")
            task = self.crafting.create_task(recipe_id, quantity)
            return ActionResult(
                success=True,
                message=f"Queued {quantity}x {recipe_id} ({task.work_required:g} Work)",
                resource_changes=[ResourceChange(m.resource_id, -m.amount) for m in materials],
            )
        return self._run("workshop_craft", commit)

    def start_expedition(self, node_id: str, worker_ids: Sequence[str]) -> ActionResult:
        """Send workers to a map node (``explore`` action)."""
        def commit() -> ActionResult:
            if self.exploration.active_expedition is not None:
                return ActionResult.fail(FailureCategory.EXPEDITION_ALREADY_ACTIVE,
                                         "An expedition is already out")
            explorable = {n.node_id for n in self.exploration.get_explorable_nodes()}
            if node_id not in explorable:
                return ActionResult.fail(FailureCategory.NODE_INACCESSIBLE,
                                         f"{node_id} cannot be reached")
            at_base = {w.worker_id for w in self.population.available_workers()}
            if not worker_ids or any(wid not in at_base for wid in worker_ids):
                return ActionResult.fail(FailureCategory.INSUFFICIENT_RESOURCES,
                                         "Explorers must be workers at the base")
            expedition = self.exploration.start_expedition(
                node_id, worker_ids, self.time.day, self.time.phase,
                self.ledger.consume_resources,
            )
            if expedition is None:
                return ActionResult.fail(FailureCategory.INSUFFICIENT_RESOURCES,
                                         "Not enough water and food for the trip")
            self.population.set_on_expedition(list(worker_ids), True)
            supplies = expedition.supplies
            return ActionResult(
                success=True,
                message=f"Expedition left for {node_id} ({expedition.total_au:g} AU)",
                resource_changes=[ResourceChange(ResourceId.WATER, -supplies.water),
                                  ResourceChange(ResourceId.FOOD, -supplies.food)],
            )
        return self._run("explore", commit)

    def cancel_expedition(self) -> bool:
        """Call the expedition home immediately; its supplies are lost."""
        expedition = self.exploration.cancel_expedition()
        if expedition is None:
            return False
        self.population.set_on_expedition(expedition.worker_ids, False)
        return True

    def assign_job(self, worker_id: str, job: Optional[JobId]) -> ActionResult:
        """Assign or clear a worker's job (``assign_workers`` action)."""
        def commit() -> ActionResult:
            levels = self.buildings.levels
            error = self.population.assign_job(worker_id, job, levels)
            if error is not None:
                building = JOB_BUILDING.get(job) if job is not None else None
                if building is not None and levels.get(building, 0) <= 0:
                    category = FailureCategory.MISSING_BUILDING
                else:
                    category = FailureCategory.INSUFFICIENT_RESOURCES
                return ActionResult.fail(category, error)
            return ActionResult(success=True,
                                message=f"{worker_id} -> {job.value if job else 'idle'}")
        return self._run("assign_workers", commit)

    def set_bonfire_intensity(self, intensity: BonfireIntensity) -> None:
        self.buildings.set_bonfire_intensity(intensity)

    # -- Phase settlement ------------------------------------------------

    def process_phase_end(self) -> PhaseReport:
        """Settle the current phase and advance the clock."""
        day, phase = self.time.day, self.time.phase
        phase_au = self.time.get_current_phase_au()
        report = PhaseReport(day=day, phase=phase, phase_au=phase_au)

        self.actions.reset_phase_actions()

        at_base = len(self.population.available_workers())
        report.consumption = self.ledger.process_phase_consumption(at_base, phase_au, day, phase)

        self._burn_bonfire(report)
        self._produce(report)

        if phase == Phase.MIDNIGHT:
            report.spoiled = self.ledger.process_perishables()

        self._apply_shortage(report)
        self._progress_expedition(report)

        self.time.advance_phase()
        report.game_over = self.game_over
        return report

    def _apply_shortage(self, report: PhaseReport) -> None:
        consumption = report.consumption
        damage = shortage_damage(consumption.water_shortage, consumption.food_shortage)
        if damage <= 0:
            return
        report.shortage_damage = damage
        cause = "dehydration" if consumption.water_shortage > consumption.food_shortage else "starvation"
        at_base = [w.worker_id for w in self.population.available_workers()]
        for worker in self.population.apply_damage(damage, at_base):
            report.deaths.append(worker.worker_id)
            self.events.emit(WorkerDied(worker_id=worker.worker_id, name=worker.name, cause=cause))
        if report.deaths and self.population.population == 0:
            self.game_over = True
            log.warning("All survivors are dead: game over on day %d", report.day)
            self.events.emit(ColonyLost(day=report.day, phase=report.phase.value))

    def _burn_bonfire(self, report: PhaseReport) -> None:
        fuel = self.buildings.bonfire_fuel(report.phase_au)
        if fuel <= 0:
            return
        if self.ledger.consume_resource(ResourceId.WOOD, fuel):
            report.bonfire_fuel = fuel
        else:
            log.warning("Out of wood: the bonfire goes out")
            self.buildings.set_bonfire_intensity(BonfireIntensity.OFF)

    def _produce(self, report: PhaseReport) -> None:
        levels = self.buildings.levels
        for job in _RESOURCE_JOBS:
            output = self.population.job_output(job, report.phase_au, levels)
            if output.amount > 0:
                added = self.ledger.add_resource(ResourceId(output.resource), output.amount)
                report.production[output.resource] = added

        engineers = self.population.job_workers(JobId.ENGINEER)
        work = work_from_engineers([worker_efficiency(w) for w in engineers], report.phase_au)
        if work > 0:
            report.production["work"] = work
            progress = self.crafting.advance_crafting_progress(work)
            self.crafting.add_work(work - progress.work_used)
            if progress.completed:
                self._deliver_task(progress.task)
                report.crafting_completed = progress.task

        research = self.population.job_output(JobId.RESEARCHER, report.phase_au, levels)
        if research.amount > 0:
            report.production["research"] = research.amount
            result = self.tech.add_progress(research.amount)
            if result.completed:
                report.research_completed = result.tech_id

    def _deliver_task(self, task: CraftingTask) -> None:
        recipe = self.catalog.recipe(task.recipe_id)
        if recipe is None:
            log.error("Completed task %d has unknown recipe %s", task.task_id, task.recipe_id)
            return
        efficiency = workshop_efficiency_multiplier(self.buildings.level(BuildingId.WORKSHOP))
        amount = recipe.output.amount * task.quantity * efficiency
        self.ledger.add_resource(recipe.output.resource_id, amount)

    def _progress_expedition(self, report: PhaseReport) -> None:
        expedition = self.exploration.active_expedition
        if expedition is None:
            return
        report.expedition = self.exploration.process_expedition_progress(report.day, report.phase)
        if report.expedition.status != ExpeditionStatus.COMPLETED:
            return
        outcome = self.exploration.complete_expedition()
        self.ledger.add_resources(outcome.loot)
        self.population.set_on_expedition(expedition.worker_ids, False)
        report.expedition_outcome = outcome

    # -- New game --------------------------------------------------------

    def new_game(self, difficulty: Optional[str] = None, scenario: Optional[str] = None) -> None:
        """Reset every engine and set up a starting scenario.

        Raises:
            ValueError: If the scenario is not in the catalog.
        """
        scenario_id = scenario or self.config.scenario
        start = self.catalog.scenarios.get(scenario_id)
        if start is None:
            raise ValueError(f"Unknown scenario: {scenario_id}")
        self.difficulty = difficulty or self.config.difficulty
        self.game_over = False
        mods = self.config.modifiers(self.difficulty)

        self.time.reset()
        self.ledger.reset()
        self.ledger.consumption_multiplier = mods.consumption_multiplier
        self.actions.reset_phase_actions()
        self.crafting.reset()
        self.exploration.reset()
        self.tech.reset()
        self.buildings.reset()
        self.population.reset(self.config.base_population_cap)
        self.sync_building_effects()

        for rid, amount in start.resources.items():
            self.ledger.add_resource(rid, math.floor(amount * mods.starting_resource_multiplier))

        names = self.config.worker_names or ["Survivor"]
        for i in range(start.workers):
            self.population.add_worker(names[i % len(names)])

        for node in self.exploration.nodes.values():
            if node.tier == RegionTier.T1:
                self.exploration.discover_node(node.node_id)

        log.info("New game: scenario=%s difficulty=%s workers=%d",
                 scenario_id, self.difficulty, self.population.population)

    # -- State -----------------------------------------------------------

    def collect_state(self) -> dict[str, Any]:
        """Plain-data snapshot of the whole session."""
        return {
            "version": STATE_VERSION,
            "difficulty": self.difficulty,
            "game_over": self.game_over,
            "time": {"day": self.time.day, "phase": self.time.phase.value},
            "used_au": self.actions.used_au,
            "resources": self.ledger.snapshot(),
            "buildings": self.buildings.snapshot(),
            "population": self.population.snapshot(),
            "crafting": self.crafting.snapshot(),
            "exploration": self.exploration.snapshot(),
            "tech": self.tech.snapshot(),
        }

    def restore_state(self, data: dict[str, Any]) -> bool:
        """Replace the session state with *data*.

        Everything is rebuilt into fresh engines first; the session is
        only touched if that succeeds.

        Returns:
            True on success, False (state untouched) if *data* is invalid.
        """
        try:
            version = int(data.get("version", 0))
            if version != STATE_VERSION:
                raise ValueError(f"unsupported state version {version}")
            difficulty = str(data.get("difficulty", self.config.difficulty))
            game_over = bool(data.get("game_over", False))

            time = TimeEngine(self.events)
            time.restore(int(data["time"]["day"]), Phase(data["time"]["phase"]))

            actions = ActionExecutor(self.catalog, self.events, self.rng)
            actions.restore_used_au(float(data.get("used_au", 0.0)))

            buildings = BuildingService(self.catalog, self.events, self.config.base_population_cap)
            buildings.restore(data["buildings"])

            ledger = ResourceLedger(self.catalog, self.events, self.config)
            ledger.consumption_multiplier = self.config.modifiers(difficulty).consumption_multiplier
            for rid, cap in buildings.storage_caps().items():
                ledger.set_cap(rid, cap)
            ledger.restore(data["resources"])

            population = PopulationService(self.config.base_population_cap)
            population.restore(data["population"])

            crafting = CraftingEngine(self.catalog, self.events)
            crafting.restore(data["crafting"])

            exploration = ExplorationEngine(self.catalog, self.events, self.config, self.rng)
            exploration.restore(data["exploration"])

            tech = TechService(self.catalog, self.events)
            tech.restore(data["tech"])
        except (KeyError, ValueError, TypeError, AttributeError) as exc:
            log.error("Cannot restore state: %s", exc)
            return False

        self.difficulty = difficulty
        self.game_over = game_over
        self.time = time
        self.actions = actions
        self.buildings = buildings
        self.ledger = ledger
        self.population = population
        self.crafting = crafting
        self.exploration = exploration
        self.tech = tech
        self.sync_building_effects()
        log.info("State restored: day %d %s", self.time.day, self.time.phase.value)
        return True
