# utils/helpers.py
from __future__ import annotations

import numpy as np

from .logger import Logger, SuppressO3DInfo

# ============================================================================ #
# Logger / numpy
# ============================================================================ #
logger = Logger.get_logger("helpers")


def setup_numpy_print(precision: int = 6, linewidth: int = 180) -> None:
    """Consistent numpy printing for pose dumps."""
    np.set_printoptions(suppress=True, precision=precision, linewidth=linewidth)


# ============================================================================ #
# Math: transforms, formatting
# ============================================================================ #
def invert_T(T: np.ndarray) -> np.ndarray:
    """Inverse of a 4x4 transform (general, not assuming rigidity)."""
    T = np.asarray(T, dtype=float)
    if T.shape != (4, 4):
        raise ValueError(f"expected a 4x4 transform, got {T.shape}")
    return np.linalg.inv(T)


def transform_points(P: np.ndarray, T: np.ndarray) -> np.ndarray:
    """Apply 4x4 T to (N,3) points; NaN rows stay NaN."""
    P = np.asarray(P, dtype=float).reshape(-1, 3)
    T = np.asarray(T, dtype=float)
    return P @ T[:3, :3].T + T[:3, 3]


def is_rigid(T: np.ndarray, atol: float = 1e-4) -> bool:
    """True if the upper 3x3 is a rotation and the last row is [0,0,0,1]."""
    T = np.asarray(T, dtype=float)
    R = T[:3, :3]
    return bool(
        np.allclose(R @ R.T, np.eye(3), atol=atol)
        and np.isclose(np.linalg.det(R), 1.0, atol=atol)
        and np.allclose(T[3], [0.0, 0.0, 0.0, 1.0], atol=atol)
    )


def fmt_array(v) -> str:
    """Pretty numpy one-liner for logs."""
    return np.array2string(np.asarray(v), separator=", ")


# ============================================================================ #
# Log sinks helpers re-exports
# ============================================================================ #
def suppress_o3d_info() -> SuppressO3DInfo:
    """
    Context manager: suppresses noisy console outputs from Open3D C++ code.
    """
    return SuppressO3DInfo()
