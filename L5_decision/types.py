# =============================================================================
# L5 Decision - Types and Data Structures
# =============================================================================
# Commanded states, runtime configuration and per-tick outputs.
# Note: Lane / waypoint types are in L4_localization.
# =============================================================================

from dataclasses import dataclass, field, fields, asdict, replace
from typing import List, Mapping, Optional
from enum import Enum

from L4_localization import ChangeFlag, Lane, Pose

from .config import (
    DISTANCE_THRESHOLD,
    LANE_CHANGE_INTERVAL,
    LANE_CHANGE_TARGET_RATIO,
    LANE_CHANGE_TARGET_MINIMUM,
    HERMITE_CURVE_SAMPLE_COUNT,
    COMMAND_LANE_CHANGE,
    COMMAND_MOVE_FORWARD
)

from utils import get_logger

logger = get_logger(__name__)


# =============================================================================
# Decision Enumerations
# =============================================================================

class SelectorState(Enum):
    """High-level behavior commanded by the upstream state machine."""
    UNKNOWN = "UNKNOWN"
    MOVE_FORWARD = "MOVE_FORWARD"
    LANE_CHANGE = "LANE_CHANGE"

    @classmethod
    def from_command(cls, command: str) -> 'SelectorState':
        """
        Map an external state string to a state.

        Anything other than LANE_CHANGE means moving forward.
        """
        if command == COMMAND_LANE_CHANGE:
            return cls.LANE_CHANGE
        if command != COMMAND_MOVE_FORWARD:
            logger.warning("Unrecognized commanded state %r, treated as %s",
                           command, COMMAND_MOVE_FORWARD)
        return cls.MOVE_FORWARD


# =============================================================================
# Configuration
# =============================================================================

@dataclass(frozen=True)
class LaneSelectConfig:
    """Runtime lane select parameters."""
    distance_threshold: float = DISTANCE_THRESHOLD
    lane_change_interval: float = LANE_CHANGE_INTERVAL
    lane_change_target_ratio: float = LANE_CHANGE_TARGET_RATIO
    lane_change_target_minimum: float = LANE_CHANGE_TARGET_MINIMUM
    hermite_curve_sample_count: int = HERMITE_CURVE_SAMPLE_COUNT

    @classmethod
    def from_dict(cls, values: Mapping) -> 'LaneSelectConfig':
        """Build a config from a mapping; missing keys keep their defaults."""
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown lane select parameters: {sorted(unknown)}")
        return cls(**values)

    def to_dict(self) -> dict:
        return asdict(self)

    def updated(self, **changes) -> 'LaneSelectConfig':
        return replace(self, **changes)


# =============================================================================
# Vehicle State
# =============================================================================

@dataclass
class VehicleState:
    """Latest inputs, each updated independently by its own callback."""
    pose: Optional[Pose] = None
    velocity: Optional[float] = None            # Forward velocity (m/s)
    lanes_received: bool = False
    state: SelectorState = SelectorState.UNKNOWN
    previous_state: SelectorState = SelectorState.UNKNOWN

    @property
    def is_ready(self) -> bool:
        """True once lane array, pose and velocity were all received."""
        return self.lanes_received and self.pose is not None and self.velocity is not None

    def command(self, state: SelectorState):
        self.previous_state = self.state
        self.state = state


# =============================================================================
# Tick Output
# =============================================================================

@dataclass
class TickOutput:
    """Everything published at the end of one tick."""
    lane: Optional[Lane] = None
    closest_waypoint: Optional[int] = None
    change_flag: Optional[ChangeFlag] = None
    markers: List = field(default_factory=list)
