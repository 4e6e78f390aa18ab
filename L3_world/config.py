# =============================================================================
# L3 World Model - Configuration
# =============================================================================
# All configurable parameters for the lane scenario simulation.
# =============================================================================

# =============================================================================
# TIME PARAMETERS
# =============================================================================
# Delta time between simulation frames (seconds)
# 0.1s = 10 Hz update rate
DEFAULT_DT = 0.1

# Total number of simulation steps
# With dt=0.1, 400 steps = 40 seconds of simulation
DEFAULT_SIMULATION_STEPS = 400

# =============================================================================
# LANE GEOMETRY
# =============================================================================
# Distance between consecutive waypoints (meters)
WAYPOINT_SPACING = 1.0

# Lateral distance between parallel lane centers (meters)
LANE_WIDTH = 3.0

# Number of waypoints per generated lane
DEFAULT_LANE_LENGTH = 200

# Target speed stored in generated waypoints (m/s)
DEFAULT_LANE_SPEED = 5.0

# Change-flag window on the source lane: first waypoint and length
CHANGE_WINDOW_START = 40
CHANGE_WINDOW_LENGTH = 40

# =============================================================================
# VEHICLE CONFIGURATION
# =============================================================================
# Cruise speed (m/s)
DEFAULT_VEHICLE_SPEED = 5.0

# Initial pose [x, y, yaw]
DEFAULT_VEHICLE_START_POSE = (0.0, 0.0, 0.0)

# Maximum longitudinal acceleration (m/s^2)
VEHICLE_MAX_ACCEL = 2.0

# Maximum yaw rate (rad/s)
VEHICLE_MAX_YAW_RATE = 0.8

# Pure pursuit lookahead distance (meters)
PURE_PURSUIT_LOOKAHEAD = 5.0

# Minimum squared lookahead distance before curvature is ignored (m^2)
PURE_PURSUIT_MIN_DIST_SQ = 0.05 ** 2

# =============================================================================
# HISTORY BUFFERS
# =============================================================================
VEHICLE_TRAJECTORY_MAX_LENGTH = 2000
