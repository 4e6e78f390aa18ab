# =============================================================================
# L4 Localization - Types and Data Structures
# =============================================================================
# Waypoints, lanes and the per-lane tracking records shared with L5.
# =============================================================================

import numpy as np
from dataclasses import dataclass, field, replace
from typing import List, Optional
from enum import IntEnum


# =============================================================================
# Exceptions
# =============================================================================

class LaneSelectError(Exception):
    """Base class for lane select errors."""


class LaneIndexError(LaneSelectError, IndexError):
    """A stored waypoint index is present but outside its lane."""


# =============================================================================
# Enumerations
# =============================================================================

class ChangeFlag(IntEnum):
    """Per-waypoint lane change marker (value is the published code)."""
    STRAIGHT = 0
    RIGHT = 1
    LEFT = 2
    UNKNOWN = 3

    @property
    def is_change(self) -> bool:
        return self in (ChangeFlag.RIGHT, ChangeFlag.LEFT)


# =============================================================================
# Geometry
# =============================================================================

@dataclass
class Pose:
    """Planar pose in map frame."""
    position: np.ndarray    # [x, y] (meters)
    yaw: float = 0.0        # Heading (radians)
    z: float = 0.0          # Height, only used for markers

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=float)[:2]

    @classmethod
    def from_xy(cls, x: float, y: float, yaw: float = 0.0) -> 'Pose':
        return cls(position=np.array([x, y], dtype=float), yaw=yaw)

    @property
    def x(self) -> float:
        return float(self.position[0])

    @property
    def y(self) -> float:
        return float(self.position[1])


# =============================================================================
# Lanes
# =============================================================================

@dataclass
class Waypoint:
    """Single lane waypoint."""
    pose: Pose
    velocity: float = 0.0                       # Target speed (m/s)
    change_flag: ChangeFlag = ChangeFlag.STRAIGHT

    def with_flag(self, flag: ChangeFlag) -> 'Waypoint':
        """Copy of this waypoint carrying another change flag."""
        return replace(self, change_flag=ChangeFlag(flag))


@dataclass
class Lane:
    """Ordered waypoint sequence received from the route planner."""
    waypoints: List[Waypoint] = field(default_factory=list)
    stamp: float = 0.0                          # Planner timestamp (seconds)

    def __len__(self) -> int:
        return len(self.waypoints)

    def __getitem__(self, index: int) -> Waypoint:
        return self.waypoints[index]

    @property
    def is_empty(self) -> bool:
        return not self.waypoints

    @property
    def last_index(self) -> int:
        return len(self.waypoints) - 1

    def positions(self) -> np.ndarray:
        """(N, 2) array of waypoint positions."""
        if not self.waypoints:
            return np.zeros((0, 2))
        return np.array([wp.pose.position for wp in self.waypoints])

    def has_index(self, index: Optional[int]) -> bool:
        return index is not None and 0 <= index < len(self.waypoints)


# =============================================================================
# Tracking Records
# =============================================================================

@dataclass
class LaneCandidate:
    """
    Tracking record of one lane of the latest lane array.
    
    closest_index is None while the vehicle cannot be associated with the lane.
    """
    lane_id: int
    lane: Lane
    closest_index: Optional[int] = None
    change_flag: ChangeFlag = ChangeFlag.STRAIGHT

    def closest_waypoint(self) -> Optional[Waypoint]:
        """Closest waypoint, None if untracked."""
        if self.closest_index is None:
            return None
        if not self.lane.has_index(self.closest_index):
            raise LaneIndexError(
                f"lane {self.lane_id}: closest index {self.closest_index} "
                f"outside [0, {len(self.lane)})"
            )
        return self.lane[self.closest_index]


@dataclass
class LaneForChange:
    """Synthesized blend lane used to execute a lane change."""
    lane: Lane = field(default_factory=Lane)
    closest_index: Optional[int] = None
    change_flag: ChangeFlag = ChangeFlag.UNKNOWN

    @property
    def is_empty(self) -> bool:
        return self.lane.is_empty

    def clear(self):
        self.lane = Lane()
        self.closest_index = None
        self.change_flag = ChangeFlag.UNKNOWN
