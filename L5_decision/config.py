# =============================================================================
# L5 Decision - Configuration
# =============================================================================
# Defaults of the runtime lane select parameters and fixed constants of the
# lane change synthesizer.
# =============================================================================

# =============================================================================
# RUNTIME PARAMETER DEFAULTS (overridable through on_config)
# =============================================================================
# Lateral / longitudinal gating distance (meters)
DISTANCE_THRESHOLD = 3.0

# Waypoints at the start of the target lane still flagged as part of the change
LANE_CHANGE_INTERVAL = 10.0

# Connector landing distance on the target lane: max(v * RATIO, MINIMUM)
LANE_CHANGE_TARGET_RATIO = 2.0
LANE_CHANGE_TARGET_MINIMUM = 5.0    # meters

# Number of interior waypoints of the connector curve
HERMITE_CURVE_SAMPLE_COUNT = 10

# =============================================================================
# LANE CHANGE SYNTHESIS
# =============================================================================
# Minimum number of waypoints kept straight before diverging
MIN_STRAIGHT_OFFSET = 3

# Change offers farther than this are ignored (meters)
MAX_CHANGE_OFFER_DISTANCE = 500.0

# =============================================================================
# COMMANDED STATES
# =============================================================================
COMMAND_LANE_CHANGE = "LANE_CHANGE"
COMMAND_MOVE_FORWARD = "MOVE_FORWARD"

# =============================================================================
# MARKERS
# =============================================================================
MARKER_FRAME_ID = "map"
MARKER_LINE_WIDTH = 0.1
MARKER_POINT_SIZE = 0.5
CHANGE_LANE_Z_OFFSET = -0.1

# RGBA colors
COLOR_CURRENT = (0.0, 0.7, 1.0, 1.0)
COLOR_INACTIVE = (0.5, 0.5, 0.5, 1.0)
COLOR_NEIGHBOR_CHANGE = (0.0, 1.0, 0.7, 1.0)
COLOR_CHANGE_PREPARED = (1.0, 0.0, 0.0, 0.7)
COLOR_CLOSEST_WAYPOINT = (1.0, 1.0, 1.0, 1.0)
