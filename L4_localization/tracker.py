# =============================================================================
# L4 Localization - Lane Tracker
# =============================================================================
# Holds the candidate lanes of the latest lane array and tracks, per tick:
# - Closest waypoint on every lane
# - Current, right and left lane selection
# - Per-lane change flag
# =============================================================================

from typing import Dict, List, Optional

from .types import ChangeFlag, Lane, LaneCandidate, Pose
from .registry import recompute_closest_for_all, select_current_lane
from .neighbors import classify_neighbors
from .config import DEFAULT_DISTANCE_THRESHOLD

from utils import get_logger

logger = get_logger(__name__)


class LaneRegistry:
    """
    Candidate lanes of the latest lane array.

    Lane ids are assigned on receipt and never reused, so an id kept from
    an older array can never point into a newer one.
    """

    def __init__(self):
        self.candidates: Dict[int, LaneCandidate] = {}
        self.next_id = 0

        self.current_lane_id: Optional[int] = None
        self.right_lane_id: Optional[int] = None
        self.left_lane_id: Optional[int] = None

    def replace(self, lanes: List[Lane]) -> List[int]:
        """
        Replace all candidates with a new lane array.

        Returns:
            Ids assigned to the new lanes, in array order
        """
        self.candidates = {}
        for lane in lanes:
            self.candidates[self.next_id] = LaneCandidate(lane_id=self.next_id, lane=lane)
            self.next_id += 1
        self.reset_selection()
        return list(self.candidates.keys())

    def reset_selection(self):
        """Forget current/right/left lane selection."""
        self.current_lane_id = None
        self.right_lane_id = None
        self.left_lane_id = None

    def reset(self):
        self.candidates = {}
        self.reset_selection()

    def __len__(self) -> int:
        return len(self.candidates)

    def get(self, lane_id: Optional[int]) -> Optional[LaneCandidate]:
        if lane_id is None:
            return None
        return self.candidates.get(lane_id)

    @property
    def current(self) -> Optional[LaneCandidate]:
        return self.get(self.current_lane_id)

    @property
    def right(self) -> Optional[LaneCandidate]:
        return self.get(self.right_lane_id)

    @property
    def left(self) -> Optional[LaneCandidate]:
        return self.get(self.left_lane_id)

    # =========================================================================
    # Per-tick updates
    # =========================================================================

    def update_closest(self, pose: Pose, velocity: float,
                       distance_threshold: float = DEFAULT_DISTANCE_THRESHOLD) -> bool:
        """Track the closest waypoint on every lane. False on total loss."""
        return recompute_closest_for_all(self.candidates, pose, velocity, distance_threshold)

    def select_lanes(self, pose: Pose,
                     distance_threshold: float = DEFAULT_DISTANCE_THRESHOLD) -> Optional[int]:
        """
        Select current lane and its neighbors.

        Returns:
            Current lane id, or None if no lane is tracked
        """
        self.current_lane_id = select_current_lane(self.candidates, pose)
        self.right_lane_id, self.left_lane_id = classify_neighbors(
            self.candidates, self.current_lane_id, distance_threshold
        )
        logger.debug("current lane: %s, right lane: %s, left lane: %s",
                     self.current_lane_id, self.right_lane_id, self.left_lane_id)
        return self.current_lane_id

    def has_neighbor(self, flag: ChangeFlag) -> bool:
        """True if the neighbor on the side of flag exists and is tracked."""
        if flag == ChangeFlag.RIGHT:
            neighbor = self.right
        elif flag == ChangeFlag.LEFT:
            neighbor = self.left
        else:
            return False
        return neighbor is not None and neighbor.closest_index is not None

    def neighbor_for(self, flag: ChangeFlag) -> Optional[LaneCandidate]:
        """Tracked neighbor lane on the side of flag."""
        if not self.has_neighbor(flag):
            return None
        return self.right if flag == ChangeFlag.RIGHT else self.left

    def change_flag_at(self, lane: Lane, index: Optional[int]) -> ChangeFlag:
        """
        Change flag offered at a waypoint.

        RIGHT / LEFT degrade to UNKNOWN when there is no lane to change to.
        """
        if index is None:
            return ChangeFlag.UNKNOWN
        flag = ChangeFlag(lane[index].change_flag)
        if flag.is_change and not self.has_neighbor(flag):
            return ChangeFlag.UNKNOWN
        return flag

    def update_change_flags(self, lane_for_change_empty: bool):
        """Refresh the change flag of every candidate."""
        for lane_id, cand in self.candidates.items():
            cand.change_flag = self.change_flag_at(cand.lane, cand.closest_index)
            logger.debug("lane %d change flag: %d", lane_id, cand.change_flag)

        current = self.current
        if lane_for_change_empty and current is not None:
            current.change_flag = ChangeFlag.STRAIGHT

    def export_state(self) -> List[dict]:
        """Export candidates for analysis/debug."""
        return [{
            "lane_id": lane_id,
            "num_waypoints": len(cand.lane),
            "stamp": float(cand.lane.stamp),
            "closest_index": cand.closest_index,
            "change_flag": int(cand.change_flag),
            "role": ("current" if lane_id == self.current_lane_id else
                     "right" if lane_id == self.right_lane_id else
                     "left" if lane_id == self.left_lane_id else None)
        } for lane_id, cand in self.candidates.items()]
