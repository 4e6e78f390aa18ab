# =============================================================================
# L5 Decision Package
# =============================================================================
# Lane select and lane change decision layer.
#
# Responsibilities:
# - MOVE_FORWARD / LANE_CHANGE decision state machine
# - Lane change blend trajectory synthesis (exit, Hermite connector, entry)
# - Output publishing (lane, closest waypoint, change flag, debug markers)
#
# Usage:
#   from L5_decision import LaneSelectLayer
#   layer = LaneSelectLayer()
#   layer.on_lane_array(lanes)
#   layer.on_pose(pose)
#   layer.on_velocity(5.0)
#   layer.on_state("LANE_CHANGE")
#
# Note: Closest waypoint tracking and neighbor detection are handled by the
# L4_localization package.
# =============================================================================

# Types and data structures (L5 specific)
from .types import (
    SelectorState,
    LaneSelectConfig,
    VehicleState,
    TickOutput
)

# Re-export L4 types for convenience
from L4_localization import (
    ChangeFlag,
    Pose,
    Waypoint,
    Lane,
    LaneForChange,
    LaneRegistry
)

# Core components
from .trajectory import (
    first_change_offer,
    find_waypoint_ahead,
    generate_hermite_connector,
    synthesize_lane_change
)
from .publisher import BasePublisher, RecordingPublisher
from .markers import LaneMarker, MarkerKind, MarkerAction, create_marker_array

# Complete layer
from .layer import LaneSelectLayer

__all__ = [
    # Enums and types (from L4, re-exported)
    'ChangeFlag',
    'Pose',
    'Waypoint',
    'Lane',
    'LaneForChange',
    'LaneRegistry',

    # Enums and types (L5 specific)
    'SelectorState',
    'LaneSelectConfig',
    'VehicleState',
    'TickOutput',

    # Lane change synthesis
    'first_change_offer',
    'find_waypoint_ahead',
    'generate_hermite_connector',
    'synthesize_lane_change',

    # Outputs
    'BasePublisher',
    'RecordingPublisher',
    'LaneMarker',
    'MarkerKind',
    'MarkerAction',
    'create_marker_array',

    # Complete layer
    'LaneSelectLayer',
]

__version__ = '1.0.0'
