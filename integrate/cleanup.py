from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np

from utils.config import CLEANUP_FACE_DIST, CLEANUP_MAX_CLUSTER_SIZE
from utils.logger import Logger

from .clusters import small_face_clusters
from .mesh import Mesh

LOG = Logger.get_logger("cleanup")


@dataclass(frozen=True)
class CleanupStats:
    faces_in: int
    faces_removed: int
    degenerate_faces: int
    vertices_in: int
    vertices_pruned: int


def drop_degenerate_faces(faces: np.ndarray) -> Tuple[np.ndarray, int]:
    """Remove faces with a repeated vertex index; returns (faces, dropped)."""
    F = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
    bad = (F[:, 0] == F[:, 1]) | (F[:, 1] == F[:, 2]) | (F[:, 2] == F[:, 0])
    n_bad = int(bad.sum())
    if n_bad:
        for f in F[bad][:20]:
            LOG.debug(f"Degenerate face: ({f[0]}, {f[1]}, {f[2]})")
    return F[~bad], n_bad


def remove_faces(faces: np.ndarray, remove: Iterable[int]) -> np.ndarray:
    """
    Delete the listed face indices, highest first so lower indices stay
    valid. Duplicates collapse; out-of-range indices are skipped.
    """
    F = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
    idx = np.unique(np.asarray(list(remove), dtype=np.int64))
    bad = (idx < 0) | (idx >= len(F))
    if bad.any():
        LOG.warning(f"ignoring {int(bad.sum())} out-of-range face indices")
        idx = idx[~bad]
    if len(idx) == 0:
        return F.copy()
    return np.delete(F, idx[::-1], axis=0)


def prune_vertices(mesh: Mesh) -> Tuple[Mesh, int]:
    """Drop vertices no face references, keeping order; faces are remapped."""
    mesh.validate()
    keep = mesh.referenced_mask()
    new_idx = np.full(mesh.num_vertices, -1, dtype=np.int64)
    new_idx[keep] = np.arange(int(keep.sum()), dtype=np.int64)
    colors = None if mesh.vertex_colors is None else mesh.vertex_colors[keep]
    out = Mesh(mesh.vertices[keep], new_idx[mesh.faces], colors)
    return out, int(mesh.num_vertices - out.num_vertices)


def cleanup_mesh(
    mesh: Mesh, remove: Iterable[int] = ()
) -> Tuple[Mesh, CleanupStats]:
    """Delete flagged faces, then degenerate ones, then orphaned vertices."""
    mesh.validate()
    faces = remove_faces(mesh.faces, remove)
    n_removed = mesh.num_faces - len(faces)
    faces, n_degenerate = drop_degenerate_faces(faces)
    out, n_pruned = prune_vertices(Mesh(mesh.vertices, faces, mesh.vertex_colors))
    stats = CleanupStats(
        faces_in=mesh.num_faces,
        faces_removed=n_removed,
        degenerate_faces=n_degenerate,
        vertices_in=mesh.num_vertices,
        vertices_pruned=n_pruned,
    )
    LOG.info(
        f"[CLEANUP] faces {stats.faces_in} -> {out.num_faces} "
        f"(removed {n_removed}, degenerate {n_degenerate}); "
        f"vertices {stats.vertices_in} -> {out.num_vertices}"
    )
    return out, stats


def remove_small_clusters(
    mesh: Mesh,
    face_dist: float = CLEANUP_FACE_DIST,
    max_cluster_size: int = CLEANUP_MAX_CLUSTER_SIZE,
) -> Tuple[Mesh, CleanupStats]:
    """Drop face clusters of at most ``max_cluster_size`` faces."""
    remove = small_face_clusters(mesh, face_dist, max_cluster_size)
    return cleanup_mesh(mesh, remove)
