from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import numpy as np
import open3d as o3d

from utils.logger import Logger

LOG = Logger.get_logger("mesh")


def _as_vertices(V) -> np.ndarray:
    V = np.asarray(V, dtype=np.float64)
    if V.size == 0:
        return np.empty((0, 3), np.float64)
    return V.reshape(-1, 3)


def _as_faces(F) -> np.ndarray:
    F = np.asarray(F, dtype=np.int64)
    if F.size == 0:
        return np.empty((0, 3), np.int64)
    return F.reshape(-1, 3)


@dataclass(frozen=True, eq=False)
class Mesh:
    """
    Triangle mesh as flat arrays: vertices (N,3) and faces (M,3) of vertex
    indices. Stages return a new Mesh instead of editing one in place.
    """

    vertices: np.ndarray
    faces: np.ndarray
    vertex_colors: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "vertices", _as_vertices(self.vertices))
        object.__setattr__(self, "faces", _as_faces(self.faces))
        if self.vertex_colors is not None:
            C = np.asarray(self.vertex_colors, dtype=np.float64).reshape(-1, 3)
            if len(C) != len(self.vertices):
                raise ValueError(
                    f"{len(C)} vertex colors for {len(self.vertices)} vertices"
                )
            object.__setattr__(self, "vertex_colors", C)

    # ------------------------------------------------------------------ #
    @classmethod
    def empty(cls) -> "Mesh":
        return cls(np.empty((0, 3)), np.empty((0, 3), np.int64))

    @classmethod
    def from_polygons(
        cls,
        vertices,
        polygons: Iterable[Sequence[int]],
        vertex_colors=None,
    ) -> "Mesh":
        """Keep triangles only; other polygon sizes are dropped and counted."""
        tris = []
        dropped = 0
        for poly in polygons:
            if len(poly) != 3:
                LOG.error(f"Found a polygon of size {len(poly)}")
                dropped += 1
                continue
            tris.append(poly)
        if dropped:
            LOG.warning(f"dropped {dropped} non-triangle polygons")
        return cls(vertices, tris, vertex_colors)

    @classmethod
    def from_o3d(cls, mesh: o3d.geometry.TriangleMesh) -> "Mesh":
        colors = (
            np.asarray(mesh.vertex_colors) if mesh.has_vertex_colors() else None
        )
        return cls(
            np.asarray(mesh.vertices), np.asarray(mesh.triangles), colors
        )

    def to_o3d(self) -> o3d.geometry.TriangleMesh:
        m = o3d.geometry.TriangleMesh()
        m.vertices = o3d.utility.Vector3dVector(self.vertices)
        m.triangles = o3d.utility.Vector3iVector(self.faces.astype(np.int32))
        if self.vertex_colors is not None:
            m.vertex_colors = o3d.utility.Vector3dVector(self.vertex_colors)
        return m

    # ------------------------------------------------------------------ #
    @property
    def num_vertices(self) -> int:
        return int(len(self.vertices))

    @property
    def num_faces(self) -> int:
        return int(len(self.faces))

    def degenerate_mask(self) -> np.ndarray:
        """Faces whose three indices are not all distinct."""
        F = self.faces
        return (F[:, 0] == F[:, 1]) | (F[:, 1] == F[:, 2]) | (F[:, 2] == F[:, 0])

    def referenced_mask(self) -> np.ndarray:
        used = np.zeros(self.num_vertices, dtype=bool)
        used[self.faces.reshape(-1)] = True
        return used

    def validate(self) -> None:
        """Raise ValueError if any face points outside the vertex array."""
        if self.num_faces == 0:
            return
        lo = int(self.faces.min())
        hi = int(self.faces.max())
        if lo < 0 or hi >= self.num_vertices:
            raise ValueError(
                f"face index range [{lo}, {hi}] outside {self.num_vertices} vertices"
            )

    def summary(self) -> str:
        return f"{self.num_vertices} vertices, {self.num_faces} faces"
