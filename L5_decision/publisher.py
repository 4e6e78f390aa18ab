# =============================================================================
# L5 Decision - Output Publishers
# =============================================================================
# Sinks for the results of each tick. The transport is external; a
# publisher only has to accept the selected lane, the closest waypoint index,
# the change flag code and the debug markers.
# =============================================================================

from abc import ABC, abstractmethod
from typing import List

from L4_localization import ChangeFlag, Lane

from .types import TickOutput


class BasePublisher(ABC):
    """
    Abstract output sink of the lane select layer.

    Subclasses forward the values to their transport.
    """

    @abstractmethod
    def publish_lane(self, lane: Lane):
        """Selected lane, sent on selection and on state transitions."""
        pass

    @abstractmethod
    def publish_closest_waypoint(self, index: int):
        """Closest waypoint index, -1 when lost."""
        pass

    @abstractmethod
    def publish_change_flag(self, code: int):
        """Change flag code of the followed lane."""
        pass

    def publish_markers(self, markers: List):
        """Debug markers; ignored unless overridden."""
        pass

    def flush(self, output: TickOutput):
        """Publish everything collected during one tick."""
        if output.lane is not None:
            self.publish_lane(output.lane)
        if output.closest_waypoint is not None:
            self.publish_closest_waypoint(output.closest_waypoint)
        if output.change_flag is not None:
            self.publish_change_flag(int(output.change_flag))
        if output.markers:
            self.publish_markers(output.markers)


class RecordingPublisher(BasePublisher):
    """Publisher that keeps every published value, in order."""

    def __init__(self):
        self.lanes: List[Lane] = []
        self.closest_waypoints: List[int] = []
        self.change_flags: List[int] = []
        self.marker_arrays: List[List] = []

    def publish_lane(self, lane: Lane):
        self.lanes.append(lane)

    def publish_closest_waypoint(self, index: int):
        self.closest_waypoints.append(int(index))

    def publish_change_flag(self, code: int):
        self.change_flags.append(int(code))

    def publish_markers(self, markers: List):
        self.marker_arrays.append(list(markers))

    @property
    def last_closest_waypoint(self) -> int:
        return self.closest_waypoints[-1] if self.closest_waypoints else -1

    @property
    def last_change_flag(self) -> ChangeFlag:
        return ChangeFlag(self.change_flags[-1]) if self.change_flags else ChangeFlag.UNKNOWN

    @property
    def last_lane(self):
        return self.lanes[-1] if self.lanes else None

    def clear(self):
        self.lanes.clear()
        self.closest_waypoints.clear()
        self.change_flags.clear()
        self.marker_arrays.clear()
