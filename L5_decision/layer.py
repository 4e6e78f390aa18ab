# =============================================================================
# L5 Decision - Lane Select Layer
# =============================================================================
# Complete lane select node that integrates:
# - L4 lane registry (closest waypoints, current / neighbor lanes)
# - Lane change synthesis
# - MOVE_FORWARD / LANE_CHANGE decision state machine
#
# Every input callback updates its own field and then runs one tick. A tick
# mutates state first and publishes everything it produced at its end.
# =============================================================================

from typing import Iterable, Mapping, Optional, Union

from L4_localization import (
    ChangeFlag,
    Lane,
    LaneForChange,
    LaneRegistry,
    Pose,
    find_closest_ahead,
    NO_CLOSEST_WAYPOINT
)

from .types import LaneSelectConfig, SelectorState, TickOutput, VehicleState
from .trajectory import synthesize_lane_change
from .publisher import BasePublisher, RecordingPublisher
from .markers import create_marker_array

from utils import get_logger

logger = get_logger(__name__)


class LaneSelectLayer:
    """
    Lane select decision layer.

    Chooses the lane to follow among the candidates of the latest lane
    array, prepares a lane change trajectory while moving forward and
    follows it once LANE_CHANGE is commanded.
    """

    def __init__(self,
                 config: Optional[LaneSelectConfig] = None,
                 publisher: Optional[BasePublisher] = None,
                 enable_markers: bool = True):
        """
        Initialize lane select layer.

        Args:
            config: Runtime parameters (defaults if None)
            publisher: Output sink (a RecordingPublisher if None)
            enable_markers: Publish debug markers every tick
        """
        self.config = config if config is not None else LaneSelectConfig()
        self.publisher = publisher if publisher is not None else RecordingPublisher()
        self.enable_markers = enable_markers

        self.registry = LaneRegistry()
        self.lane_for_change = LaneForChange()
        self.vehicle = VehicleState()

        # State in force during the last completed tick, for edge detection
        self.last_tick_state = SelectorState.UNKNOWN
        self.current_change_flag = ChangeFlag.UNKNOWN
        self.last_output: Optional[TickOutput] = None
        self.tick_count = 0

    def reset(self):
        """Reset the layer to its initial state, keeping config and publisher."""
        self.registry.reset()
        self.lane_for_change.clear()
        self.vehicle = VehicleState()
        self.last_tick_state = SelectorState.UNKNOWN
        self.current_change_flag = ChangeFlag.UNKNOWN
        self.last_output = None
        self.tick_count = 0

    # =========================================================================
    # Inputs
    # =========================================================================

    def on_lane_array(self, lanes: Iterable[Lane]) -> Optional[TickOutput]:
        """Replace the candidate lanes; selection starts over."""
        ids = self.registry.replace(list(lanes))
        self.vehicle.lanes_received = True
        logger.info("Received lane array with %d lanes (ids %s)", len(ids), ids)
        return self.tick()

    def on_pose(self, pose: Pose) -> Optional[TickOutput]:
        self.vehicle.pose = pose
        return self.tick()

    def on_velocity(self, velocity: float) -> Optional[TickOutput]:
        """Forward (linear x) velocity in m/s."""
        self.vehicle.velocity = float(velocity)
        return self.tick()

    def on_state(self, command: Union[str, SelectorState]) -> Optional[TickOutput]:
        """Commanded behavior, as state or as the external state string."""
        if isinstance(command, SelectorState):
            state = command
        else:
            state = SelectorState.from_command(command)
        self.vehicle.command(state)
        return self.tick()

    def on_config(self, config: Union[LaneSelectConfig, Mapping]) -> Optional[TickOutput]:
        """Runtime parameter update; a mapping may hold a subset of the fields."""
        if isinstance(config, LaneSelectConfig):
            self.config = config
        else:
            self.config = LaneSelectConfig.from_dict({**self.config.to_dict(), **dict(config)})
        logger.info("Config updated: %s", self.config.to_dict())
        return self.tick()

    # =========================================================================
    # Tick
    # =========================================================================

    def tick(self) -> Optional[TickOutput]:
        """
        Run one recomputation with the latest inputs.

        Returns:
            What was published, or None if inputs are still missing
        """
        if not self.vehicle.is_ready:
            logger.warning("Necessary inputs are not received yet. Waiting...")
            return None

        self.tick_count += 1
        output = TickOutput()
        pose = self.vehicle.pose
        velocity = self.vehicle.velocity
        state = self.vehicle.state
        threshold = self.config.distance_threshold

        if not self.registry.update_closest(pose, velocity, threshold):
            self.registry.reset_selection()
            output.closest_waypoint = NO_CLOSEST_WAYPOINT
            self._publish(output, state)
            return output

        selected_now = False
        current = self.registry.current
        if current is None or (current.closest_index is None and state != SelectorState.LANE_CHANGE):
            self.registry.select_lanes(pose, threshold)
            selected_now = True
            if state != SelectorState.LANE_CHANGE or self.lane_for_change.is_empty:
                output.lane = self.registry.current.lane

        self.registry.update_change_flags(self.lane_for_change.is_empty)

        if state == SelectorState.LANE_CHANGE:
            self._change_lane(output, pose, velocity)
        else:
            self._move_forward(output, pose, velocity, selected_now)

        self.last_tick_state = state
        self._publish(output, state)
        return output

    def _change_lane(self, output: TickOutput, pose: Pose, velocity: float):
        """Follow the blend lane."""
        lfc = self.lane_for_change
        if lfc.is_empty:
            logger.warning("LANE_CHANGE commanded but no lane change is prepared")
            lfc.closest_index = None
            lfc.change_flag = ChangeFlag.UNKNOWN
        else:
            lfc.closest_index = find_closest_ahead(
                lfc.lane, pose, velocity, lfc.closest_index, self.config.distance_threshold
            )
            lfc.change_flag = self.registry.change_flag_at(lfc.lane, lfc.closest_index)
            if self.last_tick_state == SelectorState.MOVE_FORWARD:
                logger.info("Lane change started (%d waypoints)", len(lfc.lane))
                output.lane = lfc.lane

        logger.debug("lane change closest: %s", lfc.closest_index)
        output.closest_waypoint = _index_code(lfc.closest_index)
        output.change_flag = lfc.change_flag
        self.current_change_flag = lfc.change_flag

    def _move_forward(self, output: TickOutput, pose: Pose, velocity: float,
                      selected_now: bool):
        """Follow the current lane and prepare the next lane change."""
        threshold = self.config.distance_threshold
        if self.last_tick_state == SelectorState.LANE_CHANGE and not selected_now:
            self.registry.select_lanes(pose, threshold)
            self.registry.update_change_flags(self.lane_for_change.is_empty)
            output.lane = self.registry.current.lane
            logger.info("Lane change finished, following lane %d",
                        self.registry.current_lane_id)

        lane = synthesize_lane_change(self.registry, pose, velocity, self.config)
        if lane is None:
            self.lane_for_change.clear()
        else:
            self.lane_for_change = LaneForChange(lane=lane)

        current = self.registry.current
        output.closest_waypoint = _index_code(current.closest_index)
        output.change_flag = current.change_flag
        self.current_change_flag = current.change_flag

    def _publish(self, output: TickOutput, state: SelectorState):
        if self.enable_markers:
            output.markers = create_marker_array(
                self.registry, self.lane_for_change, state, self.current_change_flag
            )
        self.publisher.flush(output)
        self.last_output = output

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def state(self) -> SelectorState:
        return self.vehicle.state

    def followed_lane(self) -> Optional[Lane]:
        """Lane the vehicle is expected to follow right now."""
        if self.last_tick_state == SelectorState.LANE_CHANGE and not self.lane_for_change.is_empty:
            return self.lane_for_change.lane
        current = self.registry.current
        return current.lane if current is not None else None

    def export_state(self) -> dict:
        """Export complete state for analysis/debug."""
        lfc = self.lane_for_change
        return {
            "tick": self.tick_count,
            "state": self.vehicle.state.value,
            "previous_state": self.vehicle.previous_state.value,
            "last_tick_state": self.last_tick_state.value,
            "current_lane_id": self.registry.current_lane_id,
            "right_lane_id": self.registry.right_lane_id,
            "left_lane_id": self.registry.left_lane_id,
            "change_flag": int(self.current_change_flag),
            "candidates": self.registry.export_state(),
            "lane_for_change": {
                "num_waypoints": len(lfc.lane),
                "stamp": float(lfc.lane.stamp),
                "closest_index": lfc.closest_index,
                "change_flag": int(lfc.change_flag)
            },
            "config": self.config.to_dict()
        }


def _index_code(index: Optional[int]) -> int:
    return NO_CLOSEST_WAYPOINT if index is None else int(index)
