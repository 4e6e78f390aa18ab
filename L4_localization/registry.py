# =============================================================================
# L4 Localization - Lane Registry Operations
# =============================================================================
# Operations over the candidate collection of the current tick:
# - Closest waypoint update for every lane
# - Current lane selection (nearest tracked lane)
# =============================================================================

import numpy as np
from typing import Dict, Iterable, Optional

from .types import LaneCandidate, Pose
from .search import find_closest_ahead
from .transforms import planar_distance

from utils import get_logger

logger = get_logger(__name__)


def recompute_closest_for_all(candidates: Dict[int, LaneCandidate],
                              pose: Pose,
                              velocity: float,
                              distance_threshold: float) -> bool:
    """
    Update the closest waypoint of every candidate.

    Args:
        candidates: Lane candidates keyed by lane id
        pose: Current vehicle pose
        velocity: Forward velocity (m/s)
        distance_threshold: Gating distance (meters)

    Returns:
        False if no lane could be associated with the vehicle
    """
    for lane_id, cand in candidates.items():
        cand.closest_index = find_closest_ahead(
            cand.lane, pose, velocity, cand.closest_index, distance_threshold
        )
        logger.debug("lane %d closest: %s", lane_id, cand.closest_index)

    if all(cand.closest_index is None for cand in candidates.values()):
        logger.warning("Cannot get closest waypoints, all lanes are untracked")
        return False
    return True


def find_nearest_lane(candidates: Dict[int, LaneCandidate],
                      lane_ids: Iterable[int],
                      point: np.ndarray) -> Optional[int]:
    """
    Lane whose closest waypoint is nearest to point.

    Lanes without closest waypoint are skipped; ties keep the first lane.
    """
    best = None
    best_dist = float('inf')
    for lane_id in lane_ids:
        wp = candidates[lane_id].closest_waypoint()
        if wp is None:
            continue
        dist = planar_distance(wp.pose.position, point)
        if dist < best_dist:
            best = lane_id
            best_dist = dist
    return best


def select_current_lane(candidates: Dict[int, LaneCandidate],
                        pose: Pose) -> Optional[int]:
    """Pick the tracked lane whose closest waypoint is nearest to the vehicle."""
    return find_nearest_lane(candidates, candidates.keys(), pose.position)
