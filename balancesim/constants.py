from enum import Enum, auto

# Base granularity of the simulation clock in game minutes
TICK_MINUTES = 1

# Fixed seed used when a run does not ask for one so results are reproducible
DEFAULT_SEED = 42

# Maximum number of actions executed per tick
MAX_ACTIONS_PER_TICK = 3

# Waking window used to spread persona check-ins across a day
WAKING_WINDOW_MINUTES = 16 * 60
DAY_START_HOUR = 6
NIGHT_START_HOUR = 22

# Stuck detection
STUCK_SCREEN_MINUTES = 60
STUCK_PROGRESS_DAYS = 3
STUCK_GOLD_PROGRESS = 100

# Victory conditions
VICTORY_FARM_PLOTS = 90
VICTORY_HERO_LEVEL = 15

# Default limit for materials without a storage table entry
UNKNOWN_MATERIAL_LIMIT = 50

# Number of recent high-importance events kept for display
EVENT_LOG_SIZE = 5


class Screen(Enum):
    FARM = "farm"
    TOWER = "tower"
    TOWN = "town"
    ADVENTURE = "adventure"
    FORGE = "forge"
    MINE = "mine"
    MENU = "menu"


# Screens that contribute candidate actions
GAME_SCREENS = (
    Screen.FARM,
    Screen.TOWER,
    Screen.TOWN,
    Screen.ADVENTURE,
    Screen.FORGE,
    Screen.MINE,
)


class Phase(Enum):
    TUTORIAL = "Tutorial"
    EARLY = "Early"
    MID = "Mid"
    LATE = "Late"
    END = "End"
    POST = "Post"


class ActionType(Enum):
    PLANT = "plant"
    HARVEST = "harvest"
    WATER = "water"
    PUMP = "pump"
    CLEANUP = "cleanup"
    MOVE = "move"
    CATCH_SEEDS = "catch_seeds"
    PURCHASE = "purchase"
    ADVENTURE = "adventure"
    BUILD = "build"
    CRAFT = "craft"
    STOKE = "stoke"
    MINE = "mine"
    ASSIGN_ROLE = "assign_role"
    TRAIN_HELPER = "train_helper"
    TRAIN = "train"
    RESCUE = "rescue"
    SELL_MATERIAL = "sell_material"
    WAIT = "wait"


class Importance(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Urgency(Enum):
    LOW = auto()
    NORMAL = auto()
    HIGH = auto()
    CRITICAL = auto()
    EMERGENCY = auto()


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


class ResourceType(Enum):
    ENERGY = "energy"
    GOLD = "gold"
    WATER = "water"
    SEEDS = "seeds"
    MATERIALS = "materials"


class Operation(Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    SET = "set"


class HelperRole(Enum):
    WATERER = "waterer"
    PUMP = "pump"
    SOWER = "sower"
    HARVESTER = "harvester"
    MINER = "miner"
    CATCHER = "catcher"
    FORAGER = "forager"
    FIGHTER = "fighter"
    SUPPORT = "support"
    REFINER = "refiner"


# Material storage: (tier 0 limit, limits for storage tiers 1..n)
MATERIAL_STORAGE_LIMITS: dict[str, tuple[int, tuple[int, ...]]] = {
    "wood": (50, (100, 250, 500, 1000, 2500, 10000)),
    "stone": (50, (100, 250, 500, 1000, 2500, 10000)),
    "copper": (25, (50, 125, 250, 500, 1250, 5000)),
    "iron": (25, (50, 125, 250, 500, 1250, 5000)),
    "silver": (10, (20, 50, 100, 200, 500, 2000)),
    "crystal": (5, (10, 25, 50, 100, 250, 1000)),
    "mythril": (3, (6, 15, 30, 60, 150, 600)),
    "obsidian": (2, (4, 10, 20, 40, 100, 400)),
    # Special drops are not storage limited
    "pine_resin": (999999, ()),
    "shadow_bark": (999999, ()),
    "mountain_stone": (999999, ()),
    "cave_crystal": (999999, ()),
    "frozen_heart": (999999, ()),
    "enchanted_wood": (999999, ()),
    "molten_core": (999999, ()),
}

# Storage upgrade ids in tier order (index + 1 is the tier)
STORAGE_UPGRADES = (
    "material_crate_i",
    "material_crate_ii",
    "material_warehouse",
    "material_depot",
    "material_silo",
    "grand_warehouse",
    "infinite_vault",
)

# Water pumped per pump action, best upgrade first
PUMP_RATES = (
    ("crystal_pump", 60),
    ("steam_pump", 30),
    ("well_pump_iii", 15),
    ("well_pump_ii", 8),
    ("well_pump_i", 4),
)
BASE_PUMP_RATE = 2

# Water delivered per water action by equipped tool, best first
WATERING_TOOLS = (
    ("rain_bringer", 8.0),
    ("sprinkler_can", 4.0),
    ("watering_can_ii", 2.0),
)
BASE_WATER_AMOUNT = 1.0

# Farm plots needed for each named land stage
LAND_STAGES = {
    "small_hold": 20,
    "homestead": 40,
    "manor_grounds": 65,
    "great_estate": 90,
}

# Minimum hero level for each screen, farm and tower are handled separately
SCREEN_LEVEL_REQUIREMENTS = {
    Screen.TOWN: 3,
    Screen.FORGE: 4,
    Screen.ADVENTURE: 5,
    Screen.MINE: 6,
}

# Minutes a persona may stay idle during waking hours before a forced check-in
MAX_IDLE_MINUTES = {
    "speedrunner": 30,
    "casual": 45,
    "weekend-warrior": 60,
}

# Materials yielded by mining, indexed by depth tier
MINING_MATERIALS_BY_TIER = (
    ("stone",),
    ("copper", "stone"),
    ("iron", "copper"),
    ("iron",),
    ("silver", "iron"),
    ("silver",),
    ("crystal", "silver"),
    ("crystal",),
    ("mythril", "crystal"),
    ("obsidian", "mythril"),
)
MINING_DEPTH_PER_TIER = 500
MINING_METERS_PER_MINUTE = 10

# Forge
FORGE_MAX_HEAT = 5000
FORGE_STOKE_HEAT = 500
FORGE_HEAT_DECAY = 50
FORGE_MAX_CONCURRENT = 3

# Gold paid per unit when selling materials in town
MATERIAL_VALUES = {
    "wood": 1,
    "stone": 1,
    "copper": 3,
    "iron": 5,
    "silver": 10,
    "crystal": 20,
    "mythril": 40,
    "obsidian": 60,
}
