"""Tests for face clustering by centroid proximity."""

import unittest

import numpy as np

from integrate.clusters import cluster_faces, face_records, small_face_clusters
from integrate.mesh import Mesh

from tests.helpers import mesh_with_clusters


class TestFaceRecords(unittest.TestCase):
    def test_centroid_and_normal(self):
        V = np.array([[0, 0, 0], [3, 0, 0], [0, 3, 0]], float)
        rec = face_records(Mesh(V, [[0, 1, 2]]))
        np.testing.assert_allclose(rec.centroids, [[1, 1, 0]])
        np.testing.assert_allclose(rec.normals, [[0, 0, 1]])
        self.assertEqual(rec.face_index.tolist(), [0])

    def test_degenerate_faces_are_skipped_and_counted(self):
        V = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0]], float)
        rec = face_records(Mesh(V, [[0, 0, 1], [0, 1, 2], [2, 2, 2]]))
        self.assertEqual(rec.skipped, 2)
        self.assertEqual(rec.face_index.tolist(), [1])

    def test_zero_area_face_gets_zero_normal(self):
        V = np.array([[0, 0, 0], [1, 0, 0], [2, 0, 0]], float)
        rec = face_records(Mesh(V, [[0, 1, 2]]))
        np.testing.assert_array_equal(rec.normals, [[0, 0, 0]])


class TestClusterFaces(unittest.TestCase):
    def test_components_follow_strips(self):
        mesh = mesh_with_clusters([4, 2, 7])
        clusters = cluster_faces(mesh, face_dist=0.02)
        self.assertEqual(clusters.num_clusters, 3)
        self.assertEqual(sorted(clusters.sizes.tolist()), [2, 4, 7])
        label = clusters.labels[4]
        self.assertEqual(clusters.members(label).tolist(), [4, 5])

    def test_distance_equal_to_tolerance_is_not_adjacent(self):
        # centroids exactly 1.0 apart
        V = np.array(
            [[-1, 0, 0], [1, 0, 0], [0, 3, 0], [0, 0, 0], [2, 0, 0], [1, 3, 0]],
            float,
        )
        mesh = Mesh(V, [[0, 1, 2], [3, 4, 5]])
        self.assertEqual(cluster_faces(mesh, face_dist=1.0).num_clusters, 2)
        self.assertEqual(cluster_faces(mesh, face_dist=1.5).num_clusters, 1)

    def test_empty_mesh(self):
        clusters = cluster_faces(Mesh.empty())
        self.assertEqual(clusters.num_clusters, 0)


class TestSmallFaceClusters(unittest.TestCase):
    def test_only_clusters_up_to_threshold(self):
        mesh = mesh_with_clusters([8, 3, 5, 6])
        remove = small_face_clusters(mesh, face_dist=0.02, max_cluster_size=5)
        # faces 8..10 (size 3) and 11..15 (size 5)
        self.assertEqual(remove.tolist(), list(range(15, 7, -1)))

    def test_sorted_descending(self):
        mesh = mesh_with_clusters([1, 9, 1, 2])
        remove = small_face_clusters(mesh, face_dist=0.02, max_cluster_size=2)
        self.assertEqual(remove.tolist(), sorted(remove.tolist(), reverse=True))
        self.assertEqual(sorted(remove.tolist()), [0, 10, 11, 12])

    def test_nothing_small(self):
        mesh = mesh_with_clusters([6, 7])
        remove = small_face_clusters(mesh, face_dist=0.02, max_cluster_size=5)
        self.assertEqual(len(remove), 0)

    def test_indices_refer_to_input_faces_past_degenerates(self):
        base = mesh_with_clusters([6, 1])
        V, F = base.vertices, base.faces
        F = np.vstack([[[0, 0, 1]], F])  # degenerate face shifts the rest
        remove = small_face_clusters(Mesh(V, F), 0.02, 1)
        self.assertEqual(remove.tolist(), [7])


if __name__ == "__main__":
    unittest.main()
