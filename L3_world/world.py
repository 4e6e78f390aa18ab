# =============================================================================
# L3 World Model - World Model and Scenario Presets
# =============================================================================

import numpy as np
from typing import List, Optional
from collections import deque

from L4_localization import ChangeFlag, Lane, Pose

from .config import (
    DEFAULT_DT,
    DEFAULT_VEHICLE_SPEED,
    DEFAULT_VEHICLE_START_POSE,
    DEFAULT_LANE_LENGTH,
    LANE_WIDTH,
    CHANGE_WINDOW_START,
    CHANGE_WINDOW_LENGTH,
    VEHICLE_TRAJECTORY_MAX_LENGTH
)

from .lanes import LaneGenerator
from .vehicle import LaneFollowingVehicle


class WorldModel:
    """
    Simulation world model.
    Manages the lane array, the vehicle and the simulation clock.
    """

    def __init__(self, dt: float = DEFAULT_DT,
                 vehicle_start_pose: Optional[Pose] = None,
                 vehicle_speed: float = DEFAULT_VEHICLE_SPEED):
        """
        Initialize the simulation world.

        Args:
            dt: Delta time for the simulation
            vehicle_start_pose: Vehicle initial pose
            vehicle_speed: Vehicle cruise speed
        """
        self.dt = dt
        self.vehicle_speed = vehicle_speed
        if vehicle_start_pose is None:
            vehicle_start_pose = Pose.from_xy(*DEFAULT_VEHICLE_START_POSE)
        self.vehicle_start_pose = vehicle_start_pose

        self.lanes: List[Lane] = []
        self.vehicle = LaneFollowingVehicle(vehicle_start_pose, speed=vehicle_speed)

        self.vehicle_trajectory = deque(maxlen=VEHICLE_TRAJECTORY_MAX_LENGTH)
        self.current_time = 0.0
        self.current_frame = 0

    def set_lanes(self, lanes: List[Lane]):
        self.lanes = list(lanes)

    def reset(self, vehicle_start_pose: Optional[Pose] = None):
        if vehicle_start_pose is not None:
            self.vehicle_start_pose = vehicle_start_pose
        self.vehicle = LaneFollowingVehicle(self.vehicle_start_pose, speed=self.vehicle_speed)
        self.vehicle_trajectory.clear()
        self.current_time = 0.0
        self.current_frame = 0

    def update(self, lane: Optional[Lane] = None, closest_index: Optional[int] = None) -> dict:
        """Advance the vehicle along the lane it was told to follow."""
        pos, heading, speed = self.vehicle.update(self.dt, lane, closest_index)
        self.vehicle_trajectory.append(pos.copy())

        self.current_time += self.dt
        self.current_frame += 1

        return {
            'pose': self.vehicle.pose,
            'velocity': speed,
            'time': self.current_time,
            'frame': self.current_frame
        }

    def get_vehicle_state(self) -> dict:
        return self.vehicle.get_state()

    def bounds(self, margin: float = 5.0) -> tuple:
        """Plot limits (x_min, x_max, y_min, y_max) covering all lanes."""
        points = [lane.positions() for lane in self.lanes if not lane.is_empty]
        if not points:
            return (-margin, margin, -margin, margin)
        stacked = np.vstack(points)
        x_min, y_min = stacked.min(axis=0) - margin
        x_max, y_max = stacked.max(axis=0) + margin
        return (float(x_min), float(x_max), float(y_min), float(y_max))


class ScenarioPresets:
    """Presets for common lane scenarios."""

    @staticmethod
    def scenario_single_lane(world: WorldModel):
        """One straight lane without change offers."""
        lane = LaneGenerator.straight_lane(num_waypoints=DEFAULT_LANE_LENGTH)
        world.set_lanes([lane])
        world.reset()
        return {'type': 'single_lane', 'num_lanes': 1, 'change': None}

    @staticmethod
    def scenario_right_change(world: WorldModel):
        """Two parallel lanes, the left one offers a change to the right."""
        reference = LaneGenerator.straight_lane(num_waypoints=DEFAULT_LANE_LENGTH)
        lanes = LaneGenerator.parallel_lanes(reference, 2, LANE_WIDTH, to_left=False)
        lanes[0] = LaneGenerator.mark_change_window(
            lanes[0], CHANGE_WINDOW_START, CHANGE_WINDOW_LENGTH, ChangeFlag.RIGHT
        )
        world.set_lanes(lanes)
        world.reset()
        return {'type': 'right_change', 'num_lanes': 2, 'change': 'RIGHT'}

    @staticmethod
    def scenario_left_change(world: WorldModel):
        """Three parallel lanes, the right one offers a change to the left."""
        reference = LaneGenerator.straight_lane(num_waypoints=DEFAULT_LANE_LENGTH)
        lanes = LaneGenerator.parallel_lanes(reference, 3, LANE_WIDTH, to_left=True)
        lanes[0] = LaneGenerator.mark_change_window(
            lanes[0], CHANGE_WINDOW_START, CHANGE_WINDOW_LENGTH, ChangeFlag.LEFT
        )
        world.set_lanes(lanes)
        world.reset()
        return {'type': 'left_change', 'num_lanes': 3, 'change': 'LEFT'}
