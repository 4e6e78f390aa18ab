"""Unit tests for neighbor lane classification."""

import pytest

from L4_localization import LaneRegistry, Pose, classify_neighbors
from L4_localization.neighbors import lateral_offsets


def tracked_candidates(lanes, pose):
    registry = LaneRegistry()
    registry.replace(lanes)
    registry.update_closest(pose, 5.0)
    return registry.candidates


class TestClassifyNeighbors:
    """Test suite for left / right neighbor resolution."""

    def test_left_and_right(self, make_lane):
        candidates = tracked_candidates(
            [make_lane(0.0), make_lane(3.0), make_lane(-3.0)], Pose.from_xy(5.2, 0.1)
        )

        right, left = classify_neighbors(candidates, 0, 3.0)

        assert right == 2
        assert left == 1

    def test_lateral_offsets(self, make_lane):
        candidates = tracked_candidates(
            [make_lane(0.0), make_lane(3.0), make_lane(-3.0)], Pose.from_xy(5.2, 0.1)
        )

        offsets = lateral_offsets(candidates, 0)

        assert offsets == pytest.approx({1: 3.0, 2: -3.0})

    def test_lane_beyond_threshold_is_ignored(self, make_lane):
        """Test that only lanes within the threshold count as neighbors."""
        candidates = tracked_candidates([make_lane(0.0), make_lane(4.0)], Pose.from_xy(5.2, 0.1))

        assert classify_neighbors(candidates, 0, 3.0) == (None, None)
        assert classify_neighbors(candidates, 0, 5.0) == (None, 1)

    def test_nearest_neighbor_on_each_side(self, make_lane):
        candidates = tracked_candidates(
            [make_lane(0.0), make_lane(5.0), make_lane(2.5), make_lane(-2.0), make_lane(-4.0)],
            Pose.from_xy(5.2, 0.0)
        )

        assert classify_neighbors(candidates, 0, 6.0) == (3, 2)

    def test_missing_current_lane(self, make_lane):
        candidates = tracked_candidates([make_lane(0.0), make_lane(-3.0)], Pose.from_xy(5.2, 0.0))

        assert classify_neighbors(candidates, None, 3.0) == (None, None)
        assert classify_neighbors(candidates, 7, 3.0) == (None, None)

    def test_untracked_current_lane(self, make_lane):
        candidates = tracked_candidates([make_lane(0.0), make_lane(-3.0)], Pose.from_xy(5.2, 0.0))
        candidates[0].closest_index = None

        assert classify_neighbors(candidates, 0, 3.0) == (None, None)

    def test_untracked_neighbor_is_skipped(self, make_lane):
        candidates = tracked_candidates([make_lane(0.0), make_lane(-3.0)], Pose.from_xy(5.2, 0.0))
        candidates[1].closest_index = None

        assert classify_neighbors(candidates, 0, 3.0) == (None, None)

    def test_repeated_classification_is_stable(self, make_lane):
        candidates = tracked_candidates(
            [make_lane(0.0), make_lane(3.0), make_lane(-3.0)], Pose.from_xy(5.2, 0.1)
        )

        first = classify_neighbors(candidates, 0, 3.0)
        second = classify_neighbors(candidates, 0, 3.0)

        assert first == second
        assert [c.closest_index for c in candidates.values()] == [6, 6, 6]
