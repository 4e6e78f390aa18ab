# =============================================================================
# L4 Localization - Coordinate Transforms
# =============================================================================
# Planar geometry between map frame and pose-local frames.
# Local frame: x forward along the pose heading, y to the left.
# =============================================================================

import numpy as np

from .types import Pose


def rotation_matrix_2d(theta: float) -> np.ndarray:
    """
    Creates a 2D rotation matrix.
    
    Args:
        theta: Rotation angle in radians
        
    Returns:
        2x2 rotation matrix
    """
    c, s = np.cos(theta), np.sin(theta)
    return np.array([[c, -s], [s, c]])


def normalize_angle(angle: float) -> float:
    """Normalize angle to [-pi, pi]."""
    while angle > np.pi:
        angle -= 2 * np.pi
    while angle < -np.pi:
        angle += 2 * np.pi
    return angle


def planar_distance(p: np.ndarray, q: np.ndarray) -> float:
    """Euclidean distance between two points, ignoring height."""
    p = np.asarray(p, dtype=float)
    q = np.asarray(q, dtype=float)
    return float(np.hypot(p[0] - q[0], p[1] - q[1]))


def transform_to_map_frame(point_local: np.ndarray, pose: Pose) -> np.ndarray:
    """
    Transforms a position from the pose-local frame to map frame.
    
    Args:
        point_local: Position in the local frame of pose [x, y]
        pose: Frame origin and heading in map frame
        
    Returns:
        Position in map frame [x, y]
    """
    R = rotation_matrix_2d(pose.yaw)
    return pose.position + R @ np.asarray(point_local, dtype=float)[:2]


def transform_to_pose_frame(point_map: np.ndarray, pose: Pose) -> np.ndarray:
    """
    Transforms a position from map frame to the pose-local frame.
    
    Args:
        point_map: Position in map frame [x, y]
        pose: Frame origin and heading in map frame
        
    Returns:
        Position in the local frame of pose [x, y]
    """
    R = rotation_matrix_2d(-pose.yaw)
    return R @ (np.asarray(point_map, dtype=float)[:2] - pose.position)


def relative_angle(pose_a: Pose, pose_b: Pose) -> float:
    """Unsigned angle between the headings of two poses (degrees, 0-180)."""
    return float(np.degrees(abs(normalize_angle(pose_a.yaw - pose_b.yaw))))
