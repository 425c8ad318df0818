from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from utils.config import FLATTEN_MIN_DIST
from utils.logger import Logger

from .cleanup import drop_degenerate_faces
from .mesh import Mesh
from .spatial import SpatialIndex

LOG = Logger.get_logger("flatten")


@dataclass(frozen=True, eq=False)
class VertexRemap:
    """Result of merge_vertices: old->new ids and the kept vertices."""

    remap: np.ndarray  # (N,) new id per input vertex
    vertices: np.ndarray  # (K,3) compacted
    representatives: np.ndarray  # (K,) input index kept for each new id

    @property
    def num_merged(self) -> int:
        return int(len(self.remap) - len(self.vertices))


@dataclass(frozen=True)
class FlattenStats:
    vertices_in: int
    vertices_out: int
    degenerate_faces: int


def merge_vertices(vertices: np.ndarray, eps: float) -> VertexRemap:
    """
    Greedy single-hop merge in input order.

    Each vertex not yet assigned opens a new id and claims every unassigned
    vertex within ``eps`` of it. Claimed vertices never claim others, so
    chains a-b-c with |a-c| > eps are not collapsed into one id.
    """
    V = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
    n = len(V)
    remap = np.full(n, -1, dtype=np.int64)
    reps = []
    index = SpatialIndex(V)
    new_id = 0
    for i in range(n):
        if remap[i] >= 0:
            continue
        remap[i] = new_id
        for j, _ in index.radius_query(i, eps, sort=False):
            if remap[j] < 0:
                remap[j] = new_id
        reps.append(i)
        new_id += 1
    reps = np.asarray(reps, dtype=np.int64)
    return VertexRemap(remap=remap, vertices=V[reps], representatives=reps)


def flatten_vertices(
    mesh: Mesh, eps: float = FLATTEN_MIN_DIST
) -> Tuple[Mesh, FlattenStats]:
    """Merge near-duplicate vertices, remap faces, drop faces that collapse."""
    mesh.validate()
    merged = merge_vertices(mesh.vertices, eps)
    faces = merged.remap[mesh.faces]
    faces, n_degenerate = drop_degenerate_faces(faces)
    colors = None
    if mesh.vertex_colors is not None:
        colors = mesh.vertex_colors[merged.representatives]

    out = Mesh(merged.vertices, faces, colors)
    stats = FlattenStats(
        vertices_in=mesh.num_vertices,
        vertices_out=out.num_vertices,
        degenerate_faces=n_degenerate,
    )
    LOG.info(
        f"[FLATTEN] eps={eps:g}: vertices {stats.vertices_in} -> "
        f"{stats.vertices_out}, degenerate faces dropped {n_degenerate}"
    )
    return out, stats
