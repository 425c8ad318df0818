from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from utils.logger import Logger

from .intrinsics import CameraIntrinsics

LOG = Logger.get_logger("reproj")


# ============================== FRAME ========================================


@dataclass(frozen=True, eq=False)
class OrganizedFrame:
    """
    Camera-aligned grid: points (H,W,3) in the camera frame, NaN where a
    cell is empty, and uint8 colors (H,W,3).
    """

    points: np.ndarray
    colors: np.ndarray

    @classmethod
    def empty(cls, intr: CameraIntrinsics) -> "OrganizedFrame":
        return cls(
            points=np.full((intr.height, intr.width, 3), np.nan, np.float64),
            colors=np.zeros((intr.height, intr.width, 3), np.uint8),
        )

    @property
    def height(self) -> int:
        return int(self.points.shape[0])

    @property
    def width(self) -> int:
        return int(self.points.shape[1])

    @property
    def depth(self) -> np.ndarray:
        return self.points[..., 2]

    @property
    def occupied(self) -> np.ndarray:
        return np.isfinite(self.depth)

    @property
    def num_occupied(self) -> int:
        return int(self.occupied.sum())

    def to_cloud(self) -> Tuple[np.ndarray, np.ndarray]:
        """Occupied cells only, row-major, as ((K,3) points, (K,3) colors)."""
        m = self.occupied
        return self.points[m], self.colors[m]


# ============================== PREPASS ======================================


def zero_to_nan(points: np.ndarray) -> np.ndarray:
    """Copy of points with exact (0,0,0) rows replaced by NaN (missing)."""
    P = np.array(points, dtype=np.float64).reshape(-1, 3)
    zero = np.all(P == 0.0, axis=1)
    P[zero] = np.nan
    return P


# ============================== REPROJECTION =================================


def reproject_points(
    points: np.ndarray, intr: CameraIntrinsics
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Pinhole projection to integer pixels, rounding half up.
    Returns (u, v, valid); u and v are only meaningful where valid.
    """
    P = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    x, y, z = P[:, 0], P[:, 1], P[:, 2]
    with np.errstate(invalid="ignore", divide="ignore"):
        uf = np.floor(x * intr.fx / z + intr.cx + 0.5)
        vf = np.floor(y * intr.fy / z + intr.cy + 0.5)
        valid = (
            np.isfinite(z)
            & (z > 0)
            & np.isfinite(uf)
            & np.isfinite(vf)
            & (uf >= 0)
            & (uf < intr.width)
            & (vf >= 0)
            & (vf < intr.height)
        )
    u = np.where(valid, uf, -1).astype(np.int64)
    v = np.where(valid, vf, -1).astype(np.int64)
    return u, v, valid


# ============================== COMPOSITING ==================================


def _as_colors(colors: Optional[np.ndarray], n: int) -> np.ndarray:
    if colors is None:
        return np.zeros((n, 3), np.uint8)
    C = np.asarray(colors).reshape(-1, 3)
    if len(C) != n:
        raise ValueError(f"{len(C)} colors for {n} points")
    return C.astype(np.uint8, copy=False)


def composite(
    points: np.ndarray,
    colors: Optional[np.ndarray],
    intr: CameraIntrinsics,
) -> OrganizedFrame:
    """
    Z-buffer the cloud into the camera grid.

    A cell takes a point when the cell is empty or the point's z is strictly
    smaller than the occupant's; on equal z the earlier point stays. This is
    the order (pixel, z, arrival) below: the first row of each pixel group
    is the winner.
    """
    P = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    C = _as_colors(colors, len(P))
    frame = OrganizedFrame.empty(intr)

    u, v, valid = reproject_points(P, intr)
    src = np.flatnonzero(valid)
    if len(src) == 0:
        return frame
    pix = v[src] * intr.width + u[src]
    order = np.lexsort((src, P[src, 2], pix))
    pix_sorted = pix[order]
    first = np.ones(len(order), dtype=bool)
    first[1:] = pix_sorted[1:] != pix_sorted[:-1]
    win_pix = pix_sorted[first]
    win_src = src[order][first]

    flat_p = frame.points.reshape(-1, 3)
    flat_c = frame.colors.reshape(-1, 3)
    flat_p[win_pix] = P[win_src]
    flat_c[win_pix] = C[win_src]
    return frame


def copy_organized(
    points: np.ndarray,
    colors: Optional[np.ndarray],
    intr: CameraIntrinsics,
) -> OrganizedFrame:
    """Reshape an already organized cloud (row-major, W*H points) to a frame."""
    P = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    if len(P) != intr.num_pixels:
        raise ValueError(
            f"organized cloud has {len(P)} points, expected "
            f"{intr.width}x{intr.height}={intr.num_pixels}"
        )
    C = _as_colors(colors, len(P))
    return OrganizedFrame(
        points=P.reshape(intr.height, intr.width, 3).copy(),
        colors=C.reshape(intr.height, intr.width, 3).copy(),
    )


def organize(
    points: np.ndarray,
    colors: Optional[np.ndarray],
    intr: CameraIntrinsics,
    organized: bool = False,
) -> OrganizedFrame:
    if organized:
        return copy_organized(points, colors, intr)
    frame = composite(points, colors, intr)
    LOG.debug(
        f"composited {len(np.asarray(points).reshape(-1, 3))} pts -> "
        f"{frame.num_occupied}/{intr.num_pixels} cells"
    )
    return frame
