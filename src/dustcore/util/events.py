"""Typed event bus — decoupled notification between engines.

Engines publish what happened; the game session and any presentation
layer subscribe.  Building level changes, phase changes and crises all
travel through here instead of registered global callbacks.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, TypeVar, Type

T = TypeVar("T")


# -- Time events ---------------------------------------------------------

@dataclass(frozen=True)
class PhaseAdvanced:
    """The clock moved to a new phase."""
    day: int
    phase: str
    phase_au: float
    new_day: bool


# -- Resource events -----------------------------------------------------

@dataclass(frozen=True)
class ResourceShortage:
    """Population demand could not be met."""
    day: int
    phase: str
    kind: str  # "water_shortage" or "food_shortage"
    severity: str  # "warning" or "critical"
    deficit: float


@dataclass(frozen=True)
class ResourcesSpoiled:
    """Perishable resources were lost at midnight."""
    amounts: dict


# -- Population events -------------------------------------------------

@dataclass(frozen=True)
class WorkerDied:
    """A worker's health reached 0."""
    worker_id: str
    name: str
    cause: str  # "dehydration" or "starvation"


@dataclass(frozen=True)
class ColonyLost:
    """The last survivor died; the game is over."""
    day: int
    phase: str


# -- Building events -----------------------------------------------------

@dataclass(frozen=True)
class BuildingLevelChanged:
    """A building was constructed or upgraded."""
    building_id: str
    level: int


# -- Research events -----------------------------------------------------

@dataclass(frozen=True)
class ResearchCompleted:
    """A technology finished researching."""
    tech_id: str


# -- Crafting events -----------------------------------------------------

@dataclass(frozen=True)
class CraftingTaskCompleted:
    """A queued crafting task received all its Work."""
    task_id: int
    recipe_id: str
    quantity: int


# -- Exploration events --------------------------------------------------

@dataclass(frozen=True)
class ExpeditionStarted:
    """An expedition left the base."""
    expedition_id: int
    node_id: str
    explorers: int


@dataclass(frozen=True)
class ExpeditionStatusChanged:
    """An expedition moved to a new leg (traveling → exploring → ...)."""
    expedition_id: int
    node_id: str
    new_status: str


@dataclass(frozen=True)
class ExpeditionFinished:
    """An expedition returned (completed) or was called off (cancelled)."""
    expedition_id: int
    node_id: str
    completed: bool


# -- Event Bus -----------------------------------------------------------

class EventBus:
    """Simple synchronous event bus with typed events.

    Usage:
        bus = EventBus()
        bus.on(PhaseAdvanced, lambda e: print(e.phase))
        bus.emit(PhaseAdvanced(day=1, phase="morning", phase_au=1.0, new_day=False))
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[[Any], None]]] = defaultdict(list)

    def on(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Register a handler for an event type."""
        self._handlers[event_type].append(handler)

    def off(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Unregister a handler."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: object) -> None:
        """Emit an event to all registered handlers."""
        for handler in self._handlers.get(type(event), []):
            handler(event)

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
