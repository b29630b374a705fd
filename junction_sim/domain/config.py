# Simulation Configuration

# Tick Settings
TICK_DT = 0.05           # Fixed timestep for the background loop
MAX_DT = 0.05            # Larger steps are clamped to this
TARGET_FPS = 20

# Vehicle Defaults (live-tunable through SimulationParameters)
DEFAULT_REACTION = 0.6   # seconds
DEFAULT_ACCEL = 2.5      # units/s^2
DEFAULT_DECEL = 4.0      # units/s^2
DEFAULT_TARGET_SPEED = 18.0

# Kinematics
HEADING_BLEND = 0.15     # Fraction of the heading error removed per tick
BRAKING_MARGIN = 6.0     # Added to the physical stopping distance
STOP_LINE = 6.0          # Yielding vehicles hold this far from the center
ARRIVAL_THRESHOLD = 4.0  # Node counts as reached inside this distance
MIN_LENGTH = 1.0         # Floor for segment lengths

# Car Following
MIN_FOLLOW_GAP = 6.0
FOLLOW_BUFFER = 4.0
LANE_TOLERANCE = 4.0     # Max lateral offset for a vehicle to count as a leader

# Junction Arbitration
CLAIM_THRESHOLD = 10.0   # Occupancy may be claimed inside this distance
CLEARANCE_DISTANCE = 14.0
YIELD_ANGLE = 0.05       # radians, clockwise tolerance for "on my right"
TIME_GAP_TOLERANCE = 1.2 # seconds
ETA_SPEED_FLOOR = 1.0
PATIENCE = 3.0           # seconds held at a stop line before right-hand rule is waived

# Map Editing
PICK_RADIUS = 12.0
ROAD_WIDTH = 10.0

# Spawning
MAX_GOAL_ATTEMPTS = 10
DEFAULT_SPAWN_BATCH = 500

# Sample Map (four-arm junction, entrances north/west/south)
SAMPLE_LAYOUT = {
    "center": (480.0, 360.0),
    "north": (480.0, 120.0),
    "south": (480.0, 620.0),
    "west": (180.0, 360.0),
    "east": (780.0, 360.0),
}
SAMPLE_ENTRANCES = ["north", "west", "south"]
