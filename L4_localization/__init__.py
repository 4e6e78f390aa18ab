# =============================================================================
# L4 Localization Package
# =============================================================================
# Tracks where the vehicle is on every candidate lane.
#
# Responsibilities:
# - Lane / waypoint data model
# - Planar transforms between map frame and pose-local frames
# - Closest-waypoint search (full scan and bounded re-search)
# - Current lane selection and left/right neighbor classification
#
# Usage:
#   from L4_localization import LaneRegistry
#   registry = LaneRegistry()
#   registry.replace(lanes)
#   if registry.update_closest(pose, velocity, distance_threshold):
#       registry.select_lanes(pose, distance_threshold)
# =============================================================================

# Types
from .types import (
    ChangeFlag,
    Pose,
    Waypoint,
    Lane,
    LaneCandidate,
    LaneForChange,
    LaneSelectError,
    LaneIndexError
)

# Transforms
from .transforms import (
    rotation_matrix_2d,
    normalize_angle,
    planar_distance,
    relative_angle,
    transform_to_map_frame,
    transform_to_pose_frame
)

# Core components
from .search import find_closest_ahead, search_window
from .registry import recompute_closest_for_all, select_current_lane, find_nearest_lane
from .neighbors import classify_neighbors
from .tracker import LaneRegistry

from .config import NO_CLOSEST_WAYPOINT, DEFAULT_DISTANCE_THRESHOLD

__all__ = [
    # Types
    'ChangeFlag',
    'Pose',
    'Waypoint',
    'Lane',
    'LaneCandidate',
    'LaneForChange',
    'LaneSelectError',
    'LaneIndexError',

    # Transforms
    'rotation_matrix_2d',
    'normalize_angle',
    'planar_distance',
    'relative_angle',
    'transform_to_map_frame',
    'transform_to_pose_frame',

    # Components
    'find_closest_ahead',
    'search_window',
    'recompute_closest_for_all',
    'select_current_lane',
    'find_nearest_lane',
    'classify_neighbors',
    'LaneRegistry',

    # Config exports
    'NO_CLOSEST_WAYPOINT',
    'DEFAULT_DISTANCE_THRESHOLD',
]

__version__ = '1.0.0'
