# =============================================================================
# L4 Localization - Configuration
# =============================================================================
# Parameters for closest-waypoint tracking and neighbor lane detection.
# =============================================================================

# =============================================================================
# CLOSEST WAYPOINT SEARCH
# =============================================================================
# A waypoint is "ahead" only if its heading differs from the vehicle heading
# by less than this angle (degrees)
SEARCH_HEADING_CONE_DEG = 90.0

# Re-search window after a previous match: max(v * RATIO, MINIMUM) waypoints
SEARCH_WINDOW_RATIO = 3.0
SEARCH_WINDOW_MINIMUM = 5.0

# Localization is lost when the vehicle is farther than
# LOSS_FACTOR * distance_threshold from the previous closest waypoint
LOCALIZATION_LOSS_FACTOR = 2.0

# =============================================================================
# NEIGHBOR LANES
# =============================================================================
# Maximum lateral offset for a lane to count as a neighbor (meters)
DEFAULT_DISTANCE_THRESHOLD = 3.0

# =============================================================================
# OUTPUT CODES
# =============================================================================
# Closest-waypoint index published when the vehicle is not on any lane
NO_CLOSEST_WAYPOINT = -1
