# =============================================================================
# L3 World Model - Lane Following Vehicle
# =============================================================================

import numpy as np
from typing import Optional, Tuple

from L4_localization import Lane, Pose, planar_distance, transform_to_pose_frame

from .config import (
    DEFAULT_VEHICLE_SPEED,
    VEHICLE_MAX_ACCEL,
    VEHICLE_MAX_YAW_RATE,
    PURE_PURSUIT_LOOKAHEAD,
    PURE_PURSUIT_MIN_DIST_SQ
)


class LaneFollowingVehicle:
    """
    Vehicle that tracks the published lane with pure pursuit.
    Without a lane (or closest waypoint) it keeps its heading.
    """

    def __init__(self, start_pose: Pose, speed: float = DEFAULT_VEHICLE_SPEED,
                 lookahead: float = PURE_PURSUIT_LOOKAHEAD):
        self.pos = start_pose.position.copy()
        self.heading = start_pose.yaw
        self.max_speed = speed
        self.target_speed = speed
        self.current_speed = 0.0
        self.lookahead = lookahead

    def set_target_speed(self, speed: float):
        self.target_speed = float(np.clip(speed, 0.0, self.max_speed))

    def lookahead_point(self, lane: Lane, closest_index: int) -> np.ndarray:
        """First waypoint at least lookahead away, or the lane end."""
        for i in range(closest_index, len(lane)):
            point = lane[i].pose.position
            if planar_distance(point, self.pos) >= self.lookahead:
                return point
        return lane[lane.last_index].pose.position

    def steering_yaw_rate(self, lane: Optional[Lane], closest_index: Optional[int]) -> float:
        """Pure pursuit yaw rate towards the lookahead point."""
        if lane is None or not lane.has_index(closest_index):
            return 0.0

        target = self.lookahead_point(lane, closest_index)
        local = transform_to_pose_frame(target, self.pose)

        # Curvature kappa = 2*y / L^2
        dist_sq = float(local[0] ** 2 + local[1] ** 2)
        if dist_sq <= PURE_PURSUIT_MIN_DIST_SQ:
            kappa = 0.0
        else:
            kappa = 2.0 * local[1] / dist_sq

        return float(np.clip(self.current_speed * kappa, -VEHICLE_MAX_YAW_RATE, VEHICLE_MAX_YAW_RATE))

    def update(self, dt: float, lane: Optional[Lane] = None,
               closest_index: Optional[int] = None) -> Tuple[np.ndarray, float, float]:
        """
        Advance one step.

        Returns:
            (position, heading, speed)
        """
        max_accel = VEHICLE_MAX_ACCEL * dt
        speed_diff = self.target_speed - self.current_speed
        self.current_speed += np.clip(speed_diff, -max_accel, max_accel)
        self.current_speed = float(np.clip(self.current_speed, 0.0, self.max_speed))

        yaw_rate = self.steering_yaw_rate(lane, closest_index)
        self.heading += yaw_rate * dt

        while self.heading > np.pi:
            self.heading -= 2 * np.pi
        while self.heading < -np.pi:
            self.heading += 2 * np.pi

        direction = np.array([np.cos(self.heading), np.sin(self.heading)])
        self.pos = self.pos + direction * self.current_speed * dt
        return self.pos, self.heading, self.current_speed

    @property
    def pose(self) -> Pose:
        return Pose(position=self.pos.copy(), yaw=float(self.heading))

    def get_state(self) -> dict:
        return {
            'position': self.pos.copy(),
            'heading': self.heading,
            'speed': self.current_speed,
            'target_speed': self.target_speed,
            'max_speed': self.max_speed
        }
