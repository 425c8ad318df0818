from __future__ import annotations

import numpy as np

from utils.helpers import fmt_array, invert_T, is_rigid, transform_points
from utils.logger import Logger

LOG = Logger.get_logger("transforms")


def world_to_camera(points: np.ndarray, T_world_cam: np.ndarray) -> np.ndarray:
    """Bring world-frame points into the camera frame of pose WORLD <- CAM."""
    return transform_points(points, invert_T(T_world_cam))


def camera_to_world(points: np.ndarray, T_world_cam: np.ndarray) -> np.ndarray:
    return transform_points(points, T_world_cam)


def check_poses(poses) -> int:
    """Warn about non-rigid poses; returns how many were flagged."""
    flagged = 0
    for i, T in enumerate(poses):
        if not is_rigid(T):
            flagged += 1
            LOG.warning(f"pose[{i}] is not rigid:\n{fmt_array(T)}")
    return flagged
