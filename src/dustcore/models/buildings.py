"""Building models.

Static building definitions (costs per level, unlocking technology)
loaded from config/buildings.yaml, plus the bonfire intensity setting.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from dustcore.models.resources import ResourceId


class BuildingId(Enum):
    """Every constructible building."""

    BONFIRE = "bonfire"
    SHELTER = "shelter"
    WAREHOUSE = "warehouse"
    WORKSHOP = "workshop"
    RADIO_TOWER = "radio_tower"
    WATER_COLLECTOR = "water_collector"
    TRAP = "trap"
    SCAVENGE_POST = "scavenge_post"
    GREENHOUSE = "greenhouse"
    RESEARCH_DESK = "research_desk"
    GENERATOR = "generator"
    SOLAR_PANEL = "solar_panel"
    BATTERY_BANK = "battery_bank"
    TRAINING_GROUND = "training_ground"
    MAP_ROOM = "map_room"
    VANGUARD_CAMP = "vanguard_camp"


class BonfireIntensity(Enum):
    """How hard the bonfire burns.

    The value tuple is ``(name, wanderer coefficient, wood per AU)``.
    """

    OFF = ("off", 0, 0.0)
    LOW = ("low", 1, 0.3)
    MEDIUM = ("medium", 2, 0.8)
    HIGH = ("high", 3, 1.6)

    def __init__(self, label: str, coefficient: int, fuel_per_au: float) -> None:
        self.label = label
        self.coefficient = coefficient
        self.fuel_per_au = fuel_per_au

    @classmethod
    def from_label(cls, label: str) -> BonfireIntensity:
        for member in cls:
            if member.label == label:
                return member
        raise ValueError(f"Unknown bonfire intensity: {label!r}")


@dataclass(frozen=True)
class BuildingDefinition:
    """Static definition of a building.

    Attributes:
        building_id: Building identifier.
        name: Display name.
        max_level: Highest reachable level.
        costs: Resource cost per target level, ``costs[0]`` is level 1.
        unlock_tech: Technology required before the first level, if any.
    """

    building_id: BuildingId
    name: str = ""
    max_level: int = 1
    costs: tuple[dict[ResourceId, float], ...] = field(default_factory=tuple)
    unlock_tech: Optional[str] = None

    def cost_for_level(self, level: int) -> dict[ResourceId, float] | None:
        """Return the cost of reaching *level*, or None if out of range."""
        if level < 1 or level > len(self.costs):
            return None
        return dict(self.costs[level - 1])
