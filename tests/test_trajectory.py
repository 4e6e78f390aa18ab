"""Unit tests for lane change trajectory synthesis."""

import numpy as np
import pytest

from L4_localization import ChangeFlag, Lane, LaneRegistry, Pose
from L5_decision import (
    LaneSelectConfig,
    find_waypoint_ahead,
    first_change_offer,
    generate_hermite_connector,
    synthesize_lane_change
)
from L5_decision.trajectory import straight_offset

VEHICLE = Pose.from_xy(10.3, 0.1)


class TestChangeOffer:
    """Test suite for locating the next change offer."""

    def test_first_flag_at_or_after_index(self, make_lane):
        lane = make_lane(num_waypoints=20, flags={(8, 4): ChangeFlag.RIGHT})

        assert first_change_offer(lane, 0) == 8
        assert first_change_offer(lane, 9) == 9
        assert first_change_offer(lane, 12) is None

    def test_left_flag_counts(self, make_lane):
        lane = make_lane(num_waypoints=20, flags={(15, 1): ChangeFlag.LEFT})

        assert first_change_offer(lane, 3) == 15

    def test_invalid_start(self, make_lane):
        lane = make_lane(num_waypoints=20, flags={(8, 4): ChangeFlag.RIGHT})

        assert first_change_offer(lane, None) is None
        assert first_change_offer(lane, 25) is None

    def test_unknown_flag_is_not_an_offer(self, make_lane):
        lane = make_lane(num_waypoints=20, flags={(8, 4): ChangeFlag.UNKNOWN})

        assert first_change_offer(lane, 0) is None


class TestWaypointAhead:
    """Test suite for distance-based lookahead along a lane."""

    def test_first_waypoint_at_distance(self, make_lane):
        lane = make_lane(num_waypoints=20)

        assert find_waypoint_ahead(lane, 2, 3.0) == 5
        assert find_waypoint_ahead(lane, 2, 2.5) == 5
        assert find_waypoint_ahead(lane, 2, 0.0) == 2

    def test_lane_end(self, make_lane):
        """Test that the last waypoint is returned when the lane ends first."""
        lane = make_lane(num_waypoints=20)

        assert find_waypoint_ahead(lane, 15, 100.0) == 19

    def test_invalid_start(self, make_lane):
        lane = make_lane(num_waypoints=20)

        assert find_waypoint_ahead(lane, None, 3.0) is None
        assert find_waypoint_ahead(lane, 20, 3.0) is None
        assert find_waypoint_ahead(Lane(), 0, 3.0) is None

    def test_straight_offset(self):
        assert straight_offset(0.0) == 3
        assert straight_offset(2.5) == 3
        assert straight_offset(5.0) == 5
        assert straight_offset(7.6) == 8


class TestHermiteConnector:
    """Test suite for the connector curve."""

    def test_sample_count_and_endpoints_excluded(self):
        start = Pose.from_xy(0.0, 0.0, 0.0)
        end = Pose.from_xy(10.0, 3.0, 0.0)

        waypoints = generate_hermite_connector(start, end, 4.0, 10)
        xs = np.array([wp.pose.x for wp in waypoints])

        assert len(waypoints) == 10
        assert np.all(xs > 0.0) and np.all(xs < 10.0)
        assert np.all(np.diff(xs) > 0.0)
        assert all(wp.velocity == 4.0 for wp in waypoints)

    def test_symmetric_midpoint(self):
        """Test that equal end headings give a point-symmetric S curve."""
        start = Pose.from_xy(0.0, 0.0, 0.0)
        end = Pose.from_xy(10.0, 3.0, 0.0)

        (mid,) = generate_hermite_connector(start, end, 4.0, 1)

        np.testing.assert_allclose(mid.pose.position, [5.0, 1.5], atol=1e-9)
        assert mid.pose.yaw > 0.0

    def test_headings_follow_curve(self):
        start = Pose.from_xy(0.0, 0.0, 0.0)
        end = Pose.from_xy(10.0, 0.0, 0.0)

        waypoints = generate_hermite_connector(start, end, 4.0, 5)

        for wp in waypoints:
            assert wp.pose.y == pytest.approx(0.0, abs=1e-9)
            assert wp.pose.yaw == pytest.approx(0.0, abs=1e-9)

    def test_degenerate_inputs(self):
        start = Pose.from_xy(1.0, 1.0, 0.0)

        assert generate_hermite_connector(start, Pose.from_xy(5.0, 1.0), 4.0, 0) == []
        assert generate_hermite_connector(start, Pose.from_xy(1.0, 1.0), 4.0, 10) == []


class TestSynthesizeLaneChange:
    """Test suite for blend lane synthesis."""

    @pytest.fixture
    def road(self, make_lane):
        return [
            make_lane(0.0, 100, flags={(30, 1): ChangeFlag.RIGHT}),
            make_lane(-3.0, 100, stamp=2.0),
        ]

    def test_blend_lane_layout(self, road, make_registry):
        """Test exit segment, connector and entry segment of the blend lane."""
        registry = make_registry(road, VEHICLE, velocity=5.0)

        lane = synthesize_lane_change(registry, VEHICLE, 5.0, LaneSelectConfig())

        # exit [11, 35) + 10 connector waypoints + entry [40, 100)
        assert len(lane) == 24 + 10 + 60
        assert lane.stamp == 2.0
        np.testing.assert_allclose(lane[0].pose.position, [11.0, 0.0])
        np.testing.assert_allclose(lane[23].pose.position, [34.0, 0.0])
        np.testing.assert_allclose(lane[34].pose.position, [40.0, -3.0])
        np.testing.assert_allclose(lane[len(lane) - 1].pose.position, [99.0, -3.0])
        assert all(35.0 < wp.pose.x < 40.0 for wp in lane.waypoints[24:34])

    def test_blend_lane_flags(self, road, make_registry):
        registry = make_registry(road, VEHICLE, velocity=5.0)

        lane = synthesize_lane_change(registry, VEHICLE, 5.0, LaneSelectConfig())
        flags = [ChangeFlag(wp.change_flag) for wp in lane.waypoints]

        assert set(flags[:19]) == {ChangeFlag.STRAIGHT}
        # last straight_offset exit waypoints, connector, first interval entry waypoints
        assert set(flags[19:44]) == {ChangeFlag.RIGHT}
        assert set(flags[44:]) == {ChangeFlag.STRAIGHT}

    def test_source_lanes_untouched(self, road, make_registry):
        registry = make_registry(road, VEHICLE, velocity=5.0)

        synthesize_lane_change(registry, VEHICLE, 5.0, LaneSelectConfig())

        assert road[0][31].change_flag == ChangeFlag.STRAIGHT
        assert road[1][40].change_flag == ChangeFlag.STRAIGHT

    def test_interval_from_config(self, road, make_registry):
        registry = make_registry(road, VEHICLE, velocity=5.0)
        config = LaneSelectConfig(lane_change_interval=3)

        lane = synthesize_lane_change(registry, VEHICLE, 5.0, config)
        flags = [ChangeFlag(wp.change_flag) for wp in lane.waypoints]

        assert set(flags[34:37]) == {ChangeFlag.RIGHT}
        assert flags[37] == ChangeFlag.STRAIGHT

    def test_fractional_interval(self, road, make_registry):
        """Test that a fractional interval flags every entry waypoint below it."""
        registry = make_registry(road, VEHICLE, velocity=5.0)
        config = LaneSelectConfig(lane_change_interval=2.5)

        lane = synthesize_lane_change(registry, VEHICLE, 5.0, config)
        flags = [int(wp.change_flag) for wp in lane.waypoints[34:38]]

        assert flags == [1, 1, 1, 0]

    def test_fractional_interval_must_fit_target_lane(self, make_lane, make_registry):
        lanes = [make_lane(0.0, 100, flags={(30, 1): ChangeFlag.RIGHT}), make_lane(-3.0, 51)]
        registry = make_registry(lanes, VEHICLE)

        # entry at 40, last index 50
        assert synthesize_lane_change(registry, VEHICLE, 5.0,
                                      LaneSelectConfig(lane_change_interval=10.5)) is None
        assert synthesize_lane_change(registry, VEHICLE, 5.0,
                                      LaneSelectConfig(lane_change_interval=10.0)) is not None

    def test_slow_vehicle(self, road, make_registry):
        """Test minimum straight offset and landing distance at standstill."""
        registry = make_registry(road, VEHICLE, velocity=0.0)

        lane = synthesize_lane_change(registry, VEHICLE, 0.0, LaneSelectConfig())

        # exit [11, 33), entry at 11 + 19 + 5 = 35
        assert len(lane) == 22 + 10 + 65
        np.testing.assert_allclose(lane[32].pose.position, [35.0, -3.0])

    def test_no_flag_ahead(self, make_lane, make_registry):
        registry = make_registry([make_lane(0.0, 100), make_lane(-3.0, 100)], VEHICLE)

        assert synthesize_lane_change(registry, VEHICLE, 5.0, LaneSelectConfig()) is None

    def test_no_room_to_exit(self, make_lane, make_registry):
        lanes = [make_lane(0.0, 40, flags={(37, 1): ChangeFlag.RIGHT}), make_lane(-3.0, 40)]
        registry = make_registry(lanes, VEHICLE)

        assert synthesize_lane_change(registry, VEHICLE, 5.0, LaneSelectConfig()) is None

    def test_no_neighbor(self, make_lane, make_registry):
        registry = make_registry([make_lane(0.0, 100, flags={(30, 1): ChangeFlag.RIGHT})], VEHICLE)

        assert synthesize_lane_change(registry, VEHICLE, 5.0, LaneSelectConfig()) is None

    def test_neighbor_on_wrong_side(self, make_lane, make_registry):
        lanes = [make_lane(0.0, 100, flags={(30, 1): ChangeFlag.LEFT}), make_lane(-3.0, 100)]
        registry = make_registry(lanes, VEHICLE)

        assert synthesize_lane_change(registry, VEHICLE, 5.0, LaneSelectConfig()) is None

    def test_target_lane_too_short(self, make_lane, make_registry):
        """Test that the entry point plus interval must fit in the target lane."""
        flags = {(30, 1): ChangeFlag.RIGHT}
        short = make_registry([make_lane(0.0, 100, flags=flags), make_lane(-3.0, 45)], VEHICLE)
        exact = make_registry([make_lane(0.0, 100, flags=flags), make_lane(-3.0, 51)], VEHICLE)

        assert synthesize_lane_change(short, VEHICLE, 5.0, LaneSelectConfig()) is None
        assert synthesize_lane_change(exact, VEHICLE, 5.0, LaneSelectConfig()) is not None

    def test_offer_too_far(self, make_lane, make_registry):
        lanes = [make_lane(0.0, 600, flags={(560, 1): ChangeFlag.RIGHT}), make_lane(-3.0, 600)]
        registry = make_registry(lanes, VEHICLE)

        assert synthesize_lane_change(registry, VEHICLE, 5.0, LaneSelectConfig()) is None

    def test_no_current_lane(self):
        assert synthesize_lane_change(LaneRegistry(), VEHICLE, 5.0, LaneSelectConfig()) is None
