from __future__ import annotations

from typing import List, Tuple, Union

import numpy as np
from scipy.spatial import cKDTree

Query = Union[int, np.integer, np.ndarray, Tuple[float, float, float]]


class SpatialIndex:
    """
    Radius queries over a fixed (N,3) point set.

    The array is borrowed, not copied: callers must keep it alive and
    unchanged while the index is in use.
    """

    def __init__(self, points: np.ndarray) -> None:
        P = np.asarray(points, dtype=np.float64)
        self._points = P.reshape(-1, 3) if P.size else np.empty((0, 3))
        self._tree = cKDTree(self._points) if len(self._points) else None

    def __len__(self) -> int:
        return int(len(self._points))

    @property
    def points(self) -> np.ndarray:
        view = self._points.view()
        view.flags.writeable = False
        return view

    def _position(self, query: Query) -> np.ndarray:
        if isinstance(query, (int, np.integer)):
            return self._points[int(query)]
        p = np.asarray(query, dtype=np.float64).reshape(3)
        return p

    def radius_query(
        self, query: Query, radius: float, sort: bool = True
    ) -> List[Tuple[int, float]]:
        """
        (index, distance) of every indexed point with distance <= radius.
        ``query`` is an index into the set (the point itself is included at
        distance 0) or a 3D position. Non-positive radius gives [].
        """
        if self._tree is None or not radius > 0:
            return []
        p = self._position(query)
        if not np.all(np.isfinite(p)):
            return []
        idx = self._tree.query_ball_point(p, float(radius))
        if not idx:
            return []
        idx = np.asarray(idx, dtype=np.int64)
        d = np.linalg.norm(self._points[idx] - p, axis=1)
        if sort:
            order = np.lexsort((idx, d))
            idx, d = idx[order], d[order]
        return [(int(i), float(di)) for i, di in zip(idx, d)]

    def pairs_within(self, radius: float, strict: bool = False) -> np.ndarray:
        """(K,2) pairs i<j closer than radius (``strict``: distance < radius)."""
        if self._tree is None or not radius > 0:
            return np.empty((0, 2), np.int64)
        pairs = self._tree.query_pairs(float(radius), output_type="ndarray")
        pairs = np.asarray(pairs, dtype=np.int64).reshape(-1, 2)
        if strict and len(pairs):
            d = np.linalg.norm(
                self._points[pairs[:, 0]] - self._points[pairs[:, 1]], axis=1
            )
            pairs = pairs[d < radius]
        return pairs
