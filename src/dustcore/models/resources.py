"""Resource models.

Resource identifiers, static resource definitions loaded from
config/resources.yaml, and the mutable ledger entries.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ResourceId(Enum):
    """Every resource the colony can hold."""

    # Primary
    SCRAP = "scrap"
    WATER = "water"
    DIRTY_WATER = "dirty_water"
    FOOD = "food"
    RAW_MEAT = "raw_meat"
    CANNED_FOOD = "canned_food"
    VEGETABLES = "vegetables"
    SEEDS = "seeds"
    FERTILIZER = "fertilizer"
    # Secondary
    WOOD = "wood"
    METAL = "metal"
    CLOTH = "cloth"
    LEATHER = "leather"
    PLASTIC = "plastic"
    GLASS = "glass"
    RUBBER = "rubber"
    WIRE = "wire"
    ROPE = "rope"
    DUCT_TAPE = "duct_tape"
    # Components
    GEAR = "gear"
    PIPE = "pipe"
    SPRING = "spring"
    BEARING = "bearing"
    FASTENERS = "fasteners"
    # Chemicals
    SOLVENT = "solvent"
    ACID = "acid"
    GUNPOWDER = "gunpowder"
    FUEL = "fuel"
    # Energy
    BATTERY_CELL = "battery_cell"
    BATTERY_PACK = "battery_pack"
    FILTER = "filter"
    SEAL_RING = "seal_ring"
    # Rare
    MEDS = "meds"
    DATA_TAPE = "data_tape"
    RADIO_PARTS = "radio_parts"
    SOLAR_CELL = "solar_cell"
    RARE_ALLOY = "rare_alloy"
    MICROCHIPS = "microchips"
    NANOFIBER = "nanofiber"
    POWER_CORE = "power_core"


class ResourceCategory(Enum):
    """Grouping used by the resource panel and the storage rules."""

    PRIMARY = "primary"
    SECONDARY = "secondary"
    COMPONENT = "component"
    CHEMICAL = "chemical"
    ENERGY = "energy"
    RARE = "rare"


@dataclass(frozen=True)
class ResourceDefinition:
    """Static definition of a resource.

    Attributes:
        resource_id: Resource identifier.
        name: Display name.
        category: Resource category.
        vu: Value of one unit in VU (1 scrap = 1 VU).
        base_cap: Storage cap without a warehouse.
        warehouse_increment: Cap added per warehouse level.
        perishable: Spoils at midnight.
    """

    resource_id: ResourceId
    name: str = ""
    category: ResourceCategory = ResourceCategory.PRIMARY
    vu: float = 0.0
    base_cap: float = 0.0
    warehouse_increment: float = 0.0
    perishable: bool = False


@dataclass(frozen=True)
class ResourceChange:
    """A signed change to one resource (positive = gain, negative = cost)."""

    resource_id: ResourceId
    amount: float


@dataclass
class ResourceEntry:
    """Current amount and cap of one resource.  ``amount <= cap`` always."""

    resource_id: ResourceId
    amount: float = 0.0
    cap: float = 0.0


@dataclass(frozen=True)
class Consumption:
    """Water and food demanded by the population for one phase."""

    water: float
    food: float


@dataclass
class ConsumptionResult:
    """Outcome of applying one phase of population consumption."""

    water_consumed: float = 0.0
    food_consumed: float = 0.0
    water_shortage: float = 0.0
    food_shortage: float = 0.0

    @property
    def has_shortage(self) -> bool:
        return self.water_shortage > 0 or self.food_shortage > 0


@dataclass(frozen=True)
class CrisisEvent:
    """A recorded supply crisis (water or food shortage).

    Attributes:
        day: Day the shortage happened.
        phase: Phase value string the shortage happened in.
        kind: ``"water_shortage"`` or ``"food_shortage"``.
        severity: ``"warning"`` or ``"critical"``.
        deficit: Unmet amount.
    """

    day: int
    phase: str
    kind: str
    severity: str
    deficit: float


def changes_from_dict(amounts: dict[ResourceId, float], sign: float = 1.0) -> list[ResourceChange]:
    """Turn a ``{resource: amount}`` mapping into a list of changes."""
    return [ResourceChange(rid, sign * amount) for rid, amount in amounts.items()]
