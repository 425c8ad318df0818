"""Small synthetic meshes shared by the tests."""

import numpy as np

from integrate.mesh import Mesh


def strip_of_faces(n, origin=(0.0, 0.0, 0.0), step=0.01, size=0.001):
    """
    ``n`` tiny disjoint triangles along +x, centroids ``step`` apart.
    Returns (vertices, faces) with faces indexing the returned vertices.
    """
    o = np.asarray(origin, dtype=float)
    tri = np.array([[0.0, 0.0, 0.0], [size, 0.0, 0.0], [0.0, size, 0.0]])
    V, F = [], []
    for i in range(n):
        V.append(tri + o + [i * step, 0.0, 0.0])
        F.append([3 * i, 3 * i + 1, 3 * i + 2])
    return np.vstack(V), np.asarray(F, dtype=np.int64)


def mesh_with_clusters(sizes, gap=10.0, step=0.01):
    """One strip per entry of ``sizes``, strips ``gap`` apart along y."""
    Vs, Fs = [], []
    offset = 0
    for k, n in enumerate(sizes):
        V, F = strip_of_faces(n, origin=(0.0, k * gap, 0.0), step=step)
        Vs.append(V)
        Fs.append(F + offset)
        offset += len(V)
    return Mesh(np.vstack(Vs), np.vstack(Fs))
