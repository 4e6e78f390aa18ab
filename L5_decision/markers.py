# =============================================================================
# L5 Decision - Debug Markers
# =============================================================================
# Visualization primitives describing the current selection:
# - Current lane, right / left neighbors (line strips)
# - Lane change blend lane (line strip)
# - Closest waypoint of every tracked lane (points)
# =============================================================================

import numpy as np
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from enum import Enum

from L4_localization import ChangeFlag, Lane, LaneForChange, LaneRegistry

from .types import SelectorState
from .config import (
    MARKER_FRAME_ID,
    MARKER_LINE_WIDTH,
    MARKER_POINT_SIZE,
    CHANGE_LANE_Z_OFFSET,
    COLOR_CURRENT,
    COLOR_INACTIVE,
    COLOR_NEIGHBOR_CHANGE,
    COLOR_CHANGE_PREPARED,
    COLOR_CLOSEST_WAYPOINT
)


class MarkerKind(Enum):
    LINE_STRIP = "LINE_STRIP"
    POINTS = "POINTS"


class MarkerAction(Enum):
    ADD = "ADD"
    DELETE = "DELETE"


@dataclass
class LaneMarker:
    """Single visualization primitive."""
    namespace: str
    kind: MarkerKind = MarkerKind.LINE_STRIP
    action: MarkerAction = MarkerAction.ADD
    points: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))   # (N, 3)
    color: Tuple[float, float, float, float] = COLOR_INACTIVE
    scale: float = MARKER_LINE_WIDTH
    frame_id: str = MARKER_FRAME_ID

    @classmethod
    def delete(cls, namespace: str) -> 'LaneMarker':
        return cls(namespace=namespace, action=MarkerAction.DELETE)

    @property
    def is_visible(self) -> bool:
        return self.action == MarkerAction.ADD and len(self.points) > 0


def lane_points(lane: Lane, z_offset: float = 0.0) -> np.ndarray:
    """(N, 3) array of waypoint positions."""
    return np.array([[wp.pose.x, wp.pose.y, wp.pose.z + z_offset]
                     for wp in lane.waypoints]).reshape(-1, 3)


def create_current_lane_marker(registry: LaneRegistry, state: SelectorState) -> LaneMarker:
    current = registry.current
    if current is None or current.lane.is_empty:
        return LaneMarker.delete("current_lane_marker")
    color = COLOR_INACTIVE if state == SelectorState.LANE_CHANGE else COLOR_CURRENT
    return LaneMarker(namespace="current_lane_marker", points=lane_points(current.lane), color=color)


def _neighbor_marker(namespace: str, registry: LaneRegistry, lane_id: Optional[int],
                     highlighted: bool) -> LaneMarker:
    neighbor = registry.get(lane_id)
    current = registry.current
    if neighbor is None or current is None or current.lane.is_empty:
        return LaneMarker.delete(namespace)
    color = COLOR_NEIGHBOR_CHANGE if highlighted else COLOR_INACTIVE
    return LaneMarker(namespace=namespace, points=lane_points(neighbor.lane), color=color)


def create_right_lane_marker(registry: LaneRegistry, change_flag: ChangeFlag) -> LaneMarker:
    return _neighbor_marker("right_lane_marker", registry, registry.right_lane_id,
                            change_flag == ChangeFlag.RIGHT)


def create_left_lane_marker(registry: LaneRegistry, change_flag: ChangeFlag) -> LaneMarker:
    return _neighbor_marker("left_lane_marker", registry, registry.left_lane_id,
                            change_flag == ChangeFlag.LEFT)


def create_change_lane_marker(lane_for_change: LaneForChange, state: SelectorState) -> LaneMarker:
    if lane_for_change.is_empty:
        return LaneMarker.delete("change_lane_marker")
    color = COLOR_CURRENT if state == SelectorState.LANE_CHANGE else COLOR_CHANGE_PREPARED
    return LaneMarker(namespace="change_lane_marker",
                      points=lane_points(lane_for_change.lane, CHANGE_LANE_Z_OFFSET),
                      color=color)


def create_closest_waypoints_marker(registry: LaneRegistry) -> LaneMarker:
    points = []
    for cand in registry.candidates.values():
        wp = cand.closest_waypoint()
        if wp is not None:
            points.append([wp.pose.x, wp.pose.y, wp.pose.z])
    return LaneMarker(namespace="closest_waypoints_marker",
                      kind=MarkerKind.POINTS,
                      points=np.array(points).reshape(-1, 3),
                      color=COLOR_CLOSEST_WAYPOINT,
                      scale=MARKER_POINT_SIZE)


def create_marker_array(registry: LaneRegistry,
                        lane_for_change: LaneForChange,
                        state: SelectorState,
                        change_flag: ChangeFlag) -> List[LaneMarker]:
    """All debug markers of the current selection."""
    return [
        create_change_lane_marker(lane_for_change, state),
        create_current_lane_marker(registry, state),
        create_right_lane_marker(registry, change_flag),
        create_left_lane_marker(registry, change_flag),
        create_closest_waypoints_marker(registry),
    ]
