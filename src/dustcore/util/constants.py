"""Game constants — balance numbers, rates, thresholds.

All fixed economy numbers live here.  Tunables that a difficulty or a
config file may change are mirrored in ``GameConfig``.
"""

# -- Time ----------------------------------------------------------------

TOTAL_DAY_AU: float = 5.0
"""Sum of the AU granted by the six phases of one day."""

SHORT_ACTION_AU_COST: float = 0.5
"""AU cost of a short action."""

STANDARD_ACTION_AU_COST: float = 1.0
"""AU cost of a standard action."""

# -- Consumption ---------------------------------------------------------

WATER_PER_POP_PER_AU: float = 1.0
"""Water drunk by one colonist per AU."""

FOOD_PER_POP_PER_AU: float = 1.2
"""Food eaten by one colonist per AU (always 20% above water)."""

CRITICAL_SHORTAGE_RATIO: float = 0.5
"""Unmet fraction of demand at which a shortage becomes critical."""

WATER_SHORTAGE_DAMAGE_PER_UNIT: float = 10.0
"""Health lost per unit of missing water (applied by the health system)."""

FOOD_SHORTAGE_DAMAGE_PER_UNIT: float = 8.0
"""Health lost per unit of missing food (applied by the health system)."""

# -- Production ----------------------------------------------------------

BASE_PRODUCTION_VU_PER_AU: float = 15.0
"""Value produced by one fully efficient worker per AU."""

BASE_CONSUMPTION_VU_PER_AU: float = 10.0
"""Value consumed by one colonist per AU."""

NET_SURPLUS_VU_PER_AU: float = BASE_PRODUCTION_VU_PER_AU - BASE_CONSUMPTION_VU_PER_AU
"""Net value a working colonist adds per AU."""

BUILDING_EFFICIENCY_STEP: float = 0.10
"""Production bonus per building level above 1."""

WORKSHOP_EFFICIENCY_STEP: float = 0.20
"""Crafting output bonus per workshop level above 1."""

WORKERS_PER_SURVIVAL_UNIT: float = 3.0
"""Colonists one water (or food) worker can sustain at efficiency 1."""

# -- Worker health -------------------------------------------------------

CANNOT_WORK_HEALTH: float = 20.0
"""Below this health a worker produces nothing."""

LOW_HEALTH: float = 50.0
"""Below this health a worker is penalised."""

LOW_HEALTH_EFFICIENCY: float = 0.7
"""Efficiency of a worker under ``LOW_HEALTH``."""

MAX_HEALTH: float = 100.0
"""Health of a fresh worker."""

# -- Crafting ------------------------------------------------------------

WORK_PER_ENGINEER_PER_AU: float = 60.0
"""Work produced by one engineer per AU."""

WORK_VU: float = 0.25
"""Value of a single Work point."""

# -- Population & buildings ---------------------------------------------

BASE_POPULATION_CAP: int = 2
"""Population cap before any shelter is built."""

SHELTER_CAP_PER_LEVEL: int = 2
"""Additional colonists housed per shelter level."""

WANDERER_BASE_RATE: float = 0.2
"""Base chance per free bed that a wanderer joins at the bonfire."""

# -- Exploration ---------------------------------------------------------

EXPLORATION_WATER_PER_EXPLORER_PER_AU: float = 1.5
"""Water an explorer carries per AU of expedition."""

EXPLORATION_FOOD_PER_EXPLORER_PER_AU: float = 1.8
"""Food an explorer carries per AU of expedition."""

RADIO_TOWER_RANGE: dict[int, int] = {0: 2, 1: 4, 2: 7, 3: 10}
"""Maximum reachable node distance by radio tower level."""

MAX_EXPLORATION_DISTANCE: int = 10
"""Reach of a radio tower above the highest listed level."""

BASE_SEARCH_TIME: int = 2
"""AU spent searching a node at distance 0."""

REGION_DIFFICULTY_BASE: float = 6.0
"""Difficulty of a region at distance 0."""

REGION_DIFFICULTY_PER_DISTANCE: float = 1.5
"""Difficulty added per distance step."""
