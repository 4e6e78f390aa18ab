# =============================================================================
# L4 Localization - Closest Waypoint Search
# =============================================================================
# Finds the waypoint of a lane that is closest to the vehicle while lying
# ahead of it. Two modes:
# - Full scan when the lane has no previous match
# - Bounded forward window starting at the previous match
# =============================================================================

import numpy as np
from typing import Iterable, List, Optional

from .types import Lane, Pose, LaneIndexError
from .transforms import planar_distance, relative_angle, transform_to_pose_frame
from .config import (
    SEARCH_HEADING_CONE_DEG,
    SEARCH_WINDOW_RATIO,
    SEARCH_WINDOW_MINIMUM,
    LOCALIZATION_LOSS_FACTOR
)

from utils import get_logger

logger = get_logger(__name__)


def is_waypoint_ahead(lane: Lane, index: int, pose: Pose) -> bool:
    """True if waypoint lies in front of pose and heads the same way."""
    wp_pose = lane[index].pose
    local = transform_to_pose_frame(wp_pose.position, pose)
    return local[0] > 0 and relative_angle(wp_pose, pose) < SEARCH_HEADING_CONE_DEG


def search_window(velocity: float) -> int:
    """Number of waypoints re-searched after a previous match."""
    return int(max(velocity * SEARCH_WINDOW_RATIO, SEARCH_WINDOW_MINIMUM))


def nearest_index(lane: Lane, indices: Iterable[int], point: np.ndarray) -> Optional[int]:
    """
    Index whose waypoint is nearest to point.

    Ties keep the first index encountered.
    """
    best = None
    best_dist = float('inf')
    for i in indices:
        dist = planar_distance(lane[i].pose.position, point)
        if dist < best_dist:
            best = i
            best_dist = dist
    return best


def find_closest_ahead(lane: Lane,
                       pose: Pose,
                       velocity: float,
                       previous_index: Optional[int],
                       distance_threshold: float) -> Optional[int]:
    """
    Find the closest waypoint ahead of the vehicle.

    Args:
        lane: Lane to search
        pose: Current vehicle pose
        velocity: Forward velocity (m/s)
        previous_index: Closest index found on the previous tick, or None
        distance_threshold: Gating distance (meters)

    Returns:
        Waypoint index, or None if the vehicle cannot be placed on the lane
    """
    if lane.is_empty:
        return None

    if previous_index is None:
        candidates: List[int] = [
            i for i in range(len(lane)) if is_waypoint_ahead(lane, i, pose)
        ]
    else:
        if not lane.has_index(previous_index):
            logger.error("previous index %d outside lane of %d waypoints",
                         previous_index, len(lane))
            raise LaneIndexError(
                f"previous index {previous_index} outside [0, {len(lane)})"
            )

        dist = planar_distance(lane[previous_index].pose.position, pose.position)
        if dist > LOCALIZATION_LOSS_FACTOR * distance_threshold:
            logger.warning("Vehicle is %.1f m away from previous closest waypoint, "
                           "lane reference lost", dist)
            return None

        range_max = min(previous_index + search_window(velocity), len(lane))
        candidates = [
            i for i in range(previous_index, range_max)
            if is_waypoint_ahead(lane, i, pose)
        ]

    return nearest_index(lane, candidates, pose.position)
