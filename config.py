# Vertical bounds must line up with sections of this many blocks.
SECTOR_SIZE = 16 #width and depth (x and z)
SECTION_HEIGHT = 16

# Host defaults used whenever a policy is inactive or an override is absent.
HOST_SEA_LEVEL = 63
HOST_MIN_Y = -64
HOST_HEIGHT = 384 # -64 .. 320

# Accepted ranges for operator supplied values (inclusive).
SEA_LEVEL_RANGE = (0, 320)
FLOOR_LEVEL_RANGE = (-2048, 320)
CEILING_LEVEL_RANGE = (-64, 2048)

# Defaults applied when a value is missing or rejected.
DEFAULT_ENABLED = True
DEFAULT_SEA_LEVEL = 100
DEFAULT_FLOOR_LEVEL = -100
DEFAULT_CEILING_LEVEL = 1000
DEFAULT_ALLOWED_BIOMES = (
    "minecraft:ocean",
    "minecraft:deep_ocean",
    "minecraft:warm_ocean",
    "minecraft:lukewarm_ocean",
    "minecraft:deep_lukewarm_ocean",
    "minecraft:cold_ocean",
    "minecraft:deep_cold_ocean",
    "minecraft:frozen_ocean",
    "minecraft:deep_frozen_ocean",
)

# Namespace assumed for identifiers written without one ("plains").
DEFAULT_NAMESPACE = "minecraft"

# Carving passes run by the host, in order. Backfill happens after the last.
CARVING_STAGES = ("liquid", "air")

# Enable ANSI colors in logs.
LOG_COLOR = True

# Log per-reload summaries (allow-list size, bounds).
LOG_POLICY = True

# Keys remembered by log_once before the set is cleared.
LOG_ONCE_LIMIT = 1024

# Name of the logger everything is routed through.
LOGGER_NAME = "worldmodifier"
