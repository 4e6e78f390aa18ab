# =============================================================================
# L3 World Model Package
# =============================================================================
# Simulation world layer for lane select scenarios.
#
# Responsibilities:
# - Lane generation (straight, polyline, parallel offsets, change windows)
# - Lane following vehicle (pure pursuit)
# - World state management
#
# Usage:
#   from L3_world import WorldModel, ScenarioPresets
#   world = WorldModel(dt=0.1)
#   ScenarioPresets.scenario_right_change(world)
#   state = world.update(lane, closest_index)
# =============================================================================

from .lanes import LaneGenerator
from .vehicle import LaneFollowingVehicle
from .world import WorldModel, ScenarioPresets

# Re-export config for convenience
from .config import (
    DEFAULT_DT,
    DEFAULT_VEHICLE_SPEED,
    DEFAULT_SIMULATION_STEPS,
    LANE_WIDTH,
    WAYPOINT_SPACING
)

__all__ = [
    # Lanes
    'LaneGenerator',

    # Vehicle
    'LaneFollowingVehicle',

    # World
    'WorldModel',
    'ScenarioPresets',

    # Config exports
    'DEFAULT_DT',
    'DEFAULT_VEHICLE_SPEED',
    'DEFAULT_SIMULATION_STEPS',
    'LANE_WIDTH',
    'WAYPOINT_SPACING',
]

__version__ = '1.0.0'
