"""Shared fixtures for lane select tests."""

import pytest

from L3_world import LaneGenerator
from L4_localization import ChangeFlag, LaneRegistry, Pose
from L5_decision import LaneSelectLayer, RecordingPublisher


@pytest.fixture
def make_lane():
    """Factory for straight lanes along +x at a given lateral offset."""
    def _make(y=0.0, num_waypoints=20, flags=None, stamp=0.0, speed=5.0):
        lane = LaneGenerator.straight_lane(origin=(0.0, y), num_waypoints=num_waypoints,
                                           speed=speed, stamp=stamp)
        for (start, length), flag in (flags or {}).items():
            lane = LaneGenerator.mark_change_window(lane, start, length, flag)
        return lane
    return _make


@pytest.fixture
def make_registry():
    """Factory for a registry with closest waypoints tracked and lanes selected."""
    def _make(lanes, pose, velocity=5.0, distance_threshold=3.0):
        registry = LaneRegistry()
        registry.replace(lanes)
        registry.update_closest(pose, velocity, distance_threshold)
        registry.select_lanes(pose, distance_threshold)
        return registry
    return _make


@pytest.fixture
def two_lane_road(make_lane):
    """Lane 0 at y=0 offering a right change at waypoint 10, lane 1 at y=-3."""
    return [
        make_lane(0.0, 60, flags={(10, 1): ChangeFlag.RIGHT}),
        make_lane(-3.0, 60, stamp=1.5),
    ]


@pytest.fixture
def layer():
    return LaneSelectLayer(publisher=RecordingPublisher())


@pytest.fixture
def pose_at():
    return Pose.from_xy
