# =============================================================================
# L4 Localization - Neighbor Lane Resolver
# =============================================================================
# Classifies candidate lanes as left / right of the current lane using the
# lateral offset of their closest waypoints in the frame of the current
# lane's closest waypoint.
# =============================================================================

from typing import Dict, List, Optional, Tuple

from .types import LaneCandidate
from .transforms import transform_to_pose_frame
from .registry import find_nearest_lane

from utils import get_logger

logger = get_logger(__name__)


def lateral_offsets(candidates: Dict[int, LaneCandidate],
                    current_lane_id: int) -> Dict[int, float]:
    """Lateral offset of every tracked lane relative to the current lane."""
    current = candidates[current_lane_id]
    reference = current.closest_waypoint()
    if reference is None:
        return {}

    offsets = {}
    for lane_id, cand in candidates.items():
        if lane_id == current_lane_id or cand.closest_index is None:
            continue
        local = transform_to_pose_frame(cand.closest_waypoint().pose.position,
                                        reference.pose)
        offsets[lane_id] = float(local[1])
    return offsets


def classify_neighbors(candidates: Dict[int, LaneCandidate],
                       current_lane_id: Optional[int],
                       distance_threshold: float) -> Tuple[Optional[int], Optional[int]]:
    """
    Find the nearest right and left neighbor lanes.

    Args:
        candidates: Lane candidates keyed by lane id
        current_lane_id: Id of the current lane
        distance_threshold: Maximum lateral offset of a neighbor (meters)

    Returns:
        (right_lane_id, left_lane_id), None for a side without neighbor
    """
    if current_lane_id is None or current_lane_id not in candidates:
        return None, None
    reference_wp = candidates[current_lane_id].closest_waypoint()
    if reference_wp is None:
        return None, None

    right: List[int] = []
    left: List[int] = []
    for lane_id, y in lateral_offsets(candidates, current_lane_id).items():
        logger.debug("lane %d lateral offset: %.2f", lane_id, y)
        if abs(y) > distance_threshold:
            logger.debug("lane %d is far from current lane", lane_id)
            continue
        if y > 0:
            left.append(lane_id)
        elif y < 0:
            right.append(lane_id)

    reference = reference_wp.pose.position
    return (find_nearest_lane(candidates, right, reference),
            find_nearest_lane(candidates, left, reference))
