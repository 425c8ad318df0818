from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import connected_components

from utils.config import CLEANUP_FACE_DIST, CLEANUP_MAX_CLUSTER_SIZE
from utils.logger import Logger

from .mesh import Mesh
from .spatial import SpatialIndex

LOG = Logger.get_logger("clusters")


@dataclass(frozen=True, eq=False)
class FaceRecords:
    """Per-triangle centroid and unit normal, tagged with the face index."""

    centroids: np.ndarray  # (F,3)
    normals: np.ndarray  # (F,3), zero for zero-area triangles
    face_index: np.ndarray  # (F,) index into mesh.faces
    skipped: int = 0

    def __len__(self) -> int:
        return int(len(self.face_index))


@dataclass(frozen=True, eq=False)
class FaceClusters:
    labels: np.ndarray  # (F,) component id per record
    sizes: np.ndarray  # (C,) faces per component
    face_index: np.ndarray  # (F,) owning face of each record
    skipped: int = 0

    @property
    def num_clusters(self) -> int:
        return int(len(self.sizes))

    def members(self, label: int) -> np.ndarray:
        return self.face_index[self.labels == label]


def face_records(mesh: Mesh) -> FaceRecords:
    """One record per triangle with three distinct vertex indices."""
    mesh.validate()
    bad = mesh.degenerate_mask()
    n_bad = int(bad.sum())
    if n_bad:
        LOG.warning(f"skipping {n_bad} degenerate faces")
    face_index = np.flatnonzero(~bad).astype(np.int64)
    F = mesh.faces[face_index]
    v0 = mesh.vertices[F[:, 0]]
    v1 = mesh.vertices[F[:, 1]]
    v2 = mesh.vertices[F[:, 2]]
    n = np.cross(v1 - v0, v2 - v0)
    norm = np.linalg.norm(n, axis=1, keepdims=True)
    with np.errstate(invalid="ignore", divide="ignore"):
        n = np.where(norm > 0, n / norm, 0.0)
    return FaceRecords(
        centroids=(v0 + v1 + v2) / 3.0,
        normals=n,
        face_index=face_index,
        skipped=n_bad,
    )


def cluster_faces(
    mesh: Mesh, face_dist: float = CLEANUP_FACE_DIST
) -> FaceClusters:
    """Connected components of faces whose centroids are < face_dist apart."""
    rec = face_records(mesh)
    n = len(rec)
    if n == 0:
        return FaceClusters(
            labels=np.empty(0, np.int64),
            sizes=np.empty(0, np.int64),
            face_index=rec.face_index,
            skipped=rec.skipped,
        )
    pairs = SpatialIndex(rec.centroids).pairs_within(face_dist, strict=True)
    graph = csr_matrix(
        (np.ones(len(pairs), np.int8), (pairs[:, 0], pairs[:, 1])),
        shape=(n, n),
    )
    n_comp, labels = connected_components(graph, directed=False)
    sizes = np.bincount(labels, minlength=n_comp)
    return FaceClusters(
        labels=labels.astype(np.int64),
        sizes=sizes.astype(np.int64),
        face_index=rec.face_index,
        skipped=rec.skipped,
    )


def small_face_clusters(
    mesh: Mesh,
    face_dist: float = CLEANUP_FACE_DIST,
    max_cluster_size: int = CLEANUP_MAX_CLUSTER_SIZE,
) -> np.ndarray:
    """Face indices of every cluster with <= max_cluster_size faces, descending."""
    clusters = cluster_faces(mesh, face_dist)
    small = np.flatnonzero(clusters.sizes <= max_cluster_size)
    LOG.info(
        f"Found {clusters.num_clusters} clusters, {len(small)} with "
        f"<= {max_cluster_size} faces (dist={face_dist:g})"
    )
    if len(small) == 0:
        return np.empty(0, np.int64)
    in_small = np.isin(clusters.labels, small)
    return np.sort(clusters.face_index[in_small])[::-1].copy()
