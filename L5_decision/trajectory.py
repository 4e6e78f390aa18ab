# =============================================================================
# L5 Decision - Lane Change Trajectory Synthesis
# =============================================================================
# Builds the blend lane used for a lane change:
#   exit segment   : current lane from the closest waypoint up to the exit
#   connector      : cubic Hermite curve from the exit to the target entry
#   entry segment  : target lane from the entry waypoint to its end
# Any missing precondition aborts synthesis and yields no lane.
# =============================================================================

import numpy as np
from scipy.interpolate import CubicHermiteSpline
from typing import List, Optional

from L4_localization import (
    ChangeFlag,
    Lane,
    LaneRegistry,
    Pose,
    Waypoint,
    planar_distance
)

from .types import LaneSelectConfig
from .config import MIN_STRAIGHT_OFFSET, MAX_CHANGE_OFFER_DISTANCE

from utils import get_logger

logger = get_logger(__name__)


def first_change_offer(lane: Lane, from_index: Optional[int]) -> Optional[int]:
    """Lowest index >= from_index flagged RIGHT or LEFT, None if there is none."""
    if not lane.has_index(from_index):
        return None
    for i in range(from_index, len(lane)):
        if ChangeFlag(lane[i].change_flag).is_change:
            return i
    return None


def find_waypoint_ahead(lane: Lane, start: Optional[int], distance: float) -> Optional[int]:
    """
    First waypoint at least distance away from lane[start].

    Returns the last index when the lane ends first, None if start is invalid.
    """
    if not lane.has_index(start):
        return None
    origin = lane[start].pose.position
    for i in range(start, len(lane)):
        if i == lane.last_index or planar_distance(origin, lane[i].pose.position) >= distance:
            return i
    return None


def straight_offset(velocity: float) -> int:
    """Waypoints kept on the current lane past the change offer."""
    return max(int(round(velocity)), MIN_STRAIGHT_OFFSET)


def generate_hermite_connector(start: Pose, end: Pose, speed: float,
                               sample_count: int) -> List[Waypoint]:
    """
    Interior waypoints of a cubic Hermite curve between two poses.

    Tangents follow the pose headings, scaled by the chord length so the
    curve neither overshoots nor flattens for short or long gaps.

    Args:
        start: Exit pose on the current lane
        end: Entry pose on the target lane
        speed: Target speed of every connector waypoint (m/s)
        sample_count: Number of waypoints between start and end

    Returns:
        Waypoints ordered from start to end, endpoints excluded
    """
    chord = planar_distance(start.position, end.position)
    if sample_count <= 0 or chord == 0.0:
        return []

    tangents = chord * np.array([
        [np.cos(start.yaw), np.sin(start.yaw)],
        [np.cos(end.yaw), np.sin(end.yaw)]
    ])
    spline = CubicHermiteSpline([0.0, 1.0], np.vstack([start.position, end.position]), tangents)

    t = np.linspace(0.0, 1.0, sample_count + 2)[1:-1]
    points = spline(t)
    derivatives = spline(t, 1)
    headings = np.arctan2(derivatives[:, 1], derivatives[:, 0])
    heights = start.z + (end.z - start.z) * t

    return [
        Waypoint(pose=Pose(position=p, yaw=float(yaw), z=float(z)), velocity=speed)
        for p, yaw, z in zip(points, headings, heights)
    ]


def synthesize_lane_change(registry: LaneRegistry,
                           pose: Pose,
                           velocity: float,
                           config: LaneSelectConfig) -> Optional[Lane]:
    """
    Build the blend lane for the next change offered on the current lane.

    Args:
        registry: Lane registry with current lane and neighbors selected
        pose: Current vehicle pose
        velocity: Forward velocity (m/s)
        config: Runtime parameters

    Returns:
        Blend lane, or None if no change can be prepared
    """
    current = registry.current
    if current is None or current.closest_index is None:
        logger.warning("No current lane to change from")
        return None

    lane = current.lane
    closest = current.closest_index

    offer = first_change_offer(lane, closest)
    if offer is None:
        logger.debug("Current lane has no right or left flag ahead")
        return None

    offset = straight_offset(velocity)
    if offer + offset > lane.last_index:
        logger.warning("Change offer at %d leaves no room to exit (offset %d, %d waypoints)",
                       offer, offset, len(lane))
        return None

    offer_dist = planar_distance(lane[offer].pose.position, pose.position)
    if offer_dist > MAX_CHANGE_OFFER_DISTANCE:
        logger.warning("Change offer is %.1f m away, too far to prepare", offer_dist)
        return None

    flag = ChangeFlag(lane[offer].change_flag)
    target = registry.neighbor_for(flag)
    if target is None:
        logger.warning("Current lane has no %s lane for lane change", flag.name.lower())
        return None

    dt = planar_distance(lane[offer].pose.position, lane[closest].pose.position)
    dt_by_vel = max(velocity * config.lane_change_target_ratio,
                    config.lane_change_target_minimum)
    logger.debug("dt: %.2f, dt_by_vel: %.2f", dt, dt_by_vel)

    interval = config.lane_change_interval
    target_index = find_waypoint_ahead(target.lane, target.closest_index, dt + dt_by_vel)
    if target_index is None or target_index + interval > target.lane.last_index:
        logger.warning("Target lane %d too short for lane change (target %s)",
                       target.lane_id, target_index)
        return None

    exit_index = offer + offset
    waypoints = list(lane.waypoints[closest:exit_index])
    for i in range(max(len(waypoints) - offset, 0), len(waypoints)):
        waypoints[i] = waypoints[i].with_flag(flag)

    connector = generate_hermite_connector(
        lane[exit_index].pose,
        target.lane[target_index].pose,
        lane[exit_index].velocity,
        int(config.hermite_curve_sample_count)
    )
    waypoints.extend(wp.with_flag(flag) for wp in connector)

    for k, wp in enumerate(target.lane.waypoints[target_index:]):
        waypoints.append(wp.with_flag(flag if k < interval else ChangeFlag.STRAIGHT))

    logger.debug("Lane change to lane %d: offer %d, exit %d, entry %d, %d waypoints",
                 target.lane_id, offer, exit_index, target_index, len(waypoints))
    return Lane(waypoints=waypoints, stamp=target.lane.stamp)
