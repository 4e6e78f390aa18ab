# =============================================================================
# L3 World Model - Lane Generator
# =============================================================================

import numpy as np
from typing import List, Sequence

from L4_localization import ChangeFlag, Lane, Pose, Waypoint

from .config import (
    WAYPOINT_SPACING,
    LANE_WIDTH,
    DEFAULT_LANE_LENGTH,
    DEFAULT_LANE_SPEED
)


class LaneGenerator:
    """
    Lane generator for the simulation world.
    Supports straight lanes, polyline lanes and parallel offsets.
    """

    @staticmethod
    def lane_from_points(points: np.ndarray,
                         speed: float = DEFAULT_LANE_SPEED,
                         stamp: float = 0.0) -> Lane:
        """
        Build a lane along a polyline.

        Args:
            points: Array of shape (N, 2) of waypoint positions
            speed: Target speed of every waypoint (m/s)
            stamp: Lane timestamp

        Returns:
            Lane whose headings follow the polyline
        """
        points = np.asarray(points, dtype=float).reshape(-1, 2)
        if len(points) == 0:
            return Lane(stamp=stamp)
        if len(points) == 1:
            return Lane(waypoints=[Waypoint(pose=Pose(position=points[0]), velocity=speed)],
                        stamp=stamp)

        # Heading from finite differences along the polyline
        diffs = np.gradient(points, axis=0)
        headings = np.arctan2(diffs[:, 1], diffs[:, 0])
        waypoints = [
            Waypoint(pose=Pose(position=p, yaw=float(yaw)), velocity=speed)
            for p, yaw in zip(points, headings)
        ]
        return Lane(waypoints=waypoints, stamp=stamp)

    @staticmethod
    def straight_lane(origin: Sequence[float] = (0.0, 0.0),
                      yaw: float = 0.0,
                      num_waypoints: int = DEFAULT_LANE_LENGTH,
                      spacing: float = WAYPOINT_SPACING,
                      speed: float = DEFAULT_LANE_SPEED,
                      stamp: float = 0.0) -> Lane:
        """Straight lane starting at origin and heading along yaw."""
        direction = np.array([np.cos(yaw), np.sin(yaw)])
        origin = np.asarray(origin, dtype=float)
        waypoints = [
            Waypoint(pose=Pose(position=origin + direction * spacing * i, yaw=yaw), velocity=speed)
            for i in range(num_waypoints)
        ]
        return Lane(waypoints=waypoints, stamp=stamp)

    @staticmethod
    def offset_lane(lane: Lane, offset: float, stamp: float = None) -> Lane:
        """
        Lane shifted sideways by offset (positive = left).

        Waypoint speeds are kept, change flags are reset to STRAIGHT.
        """
        waypoints = []
        for wp in lane.waypoints:
            normal = np.array([-np.sin(wp.pose.yaw), np.cos(wp.pose.yaw)])
            pose = Pose(position=wp.pose.position + normal * offset, yaw=wp.pose.yaw, z=wp.pose.z)
            waypoints.append(Waypoint(pose=pose, velocity=wp.velocity))
        return Lane(waypoints=waypoints, stamp=lane.stamp if stamp is None else stamp)

    @staticmethod
    def parallel_lanes(reference: Lane, num_lanes: int,
                       lane_width: float = LANE_WIDTH,
                       to_left: bool = False) -> List[Lane]:
        """
        Reference lane followed by num_lanes - 1 parallel lanes.

        Args:
            reference: First lane
            num_lanes: Total number of lanes
            lane_width: Distance between lane centers (meters)
            to_left: Add the lanes on the left side instead of the right

        Returns:
            Lanes ordered from the reference outwards
        """
        sign = 1.0 if to_left else -1.0
        lanes = [reference]
        for i in range(1, num_lanes):
            lanes.append(LaneGenerator.offset_lane(reference, sign * lane_width * i))
        return lanes

    @staticmethod
    def mark_change_window(lane: Lane, start: int, length: int, flag: ChangeFlag) -> Lane:
        """Copy of lane whose waypoints [start, start + length) carry flag."""
        end = min(start + length, len(lane))
        waypoints = [
            wp.with_flag(flag) if start <= i < end else wp
            for i, wp in enumerate(lane.waypoints)
        ]
        return Lane(waypoints=waypoints, stamp=lane.stamp)
