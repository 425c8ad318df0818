"""Tests for the flat-array mesh container."""

import unittest
from unittest.mock import patch

import numpy as np

from integrate.mesh import Mesh


class TestFromPolygons(unittest.TestCase):
    def setUp(self):
        self.V = np.arange(18, dtype=float).reshape(6, 3)

    def test_non_triangles_dropped_and_counted(self):
        polygons = [[0, 1, 2], [0, 1, 2, 3], [4, 5], [3, 4, 5], [1, 2, 3, 4, 5]]
        with patch("integrate.mesh.LOG") as log:
            mesh = Mesh.from_polygons(self.V, polygons)
        self.assertEqual(mesh.faces.tolist(), [[0, 1, 2], [3, 4, 5]])
        self.assertEqual(mesh.num_vertices, 6)
        self.assertEqual(log.error.call_count, 3)
        log.warning.assert_called_once()
        self.assertIn("3", log.warning.call_args[0][0])

    def test_only_triangles_logs_nothing(self):
        with patch("integrate.mesh.LOG") as log:
            mesh = Mesh.from_polygons(self.V, [[0, 1, 2], [2, 3, 4]])
        self.assertEqual(mesh.num_faces, 2)
        log.warning.assert_not_called()

    def test_all_dropped_gives_empty_faces(self):
        mesh = Mesh.from_polygons(self.V, [[0, 1], [0, 1, 2, 3]])
        self.assertEqual(mesh.faces.shape, (0, 3))
        self.assertEqual(mesh.num_vertices, 6)

    def test_colors_kept(self):
        C = np.full((6, 3), 0.5)
        mesh = Mesh.from_polygons(self.V, [[0, 1, 2]], vertex_colors=C)
        np.testing.assert_array_equal(mesh.vertex_colors, C)


class TestMeshChecks(unittest.TestCase):
    def test_validate_rejects_out_of_range(self):
        with self.assertRaises(ValueError):
            Mesh(np.zeros((3, 3)), [[0, 1, 3]]).validate()

    def test_degenerate_and_referenced(self):
        mesh = Mesh(np.zeros((5, 3)), [[0, 1, 2], [1, 1, 3]])
        self.assertEqual(mesh.degenerate_mask().tolist(), [False, True])
        self.assertEqual(
            mesh.referenced_mask().tolist(), [True, True, True, True, False]
        )

    def test_color_count_mismatch(self):
        with self.assertRaises(ValueError):
            Mesh(np.zeros((3, 3)), [[0, 1, 2]], vertex_colors=np.zeros((2, 3)))

    def test_o3d_conversion_keeps_arrays(self):
        V = np.eye(3)
        mesh = Mesh.from_o3d(Mesh(V, [[0, 1, 2]]).to_o3d())
        np.testing.assert_array_equal(mesh.vertices, V)
        self.assertEqual(mesh.faces.tolist(), [[0, 1, 2]])
        self.assertIsNone(mesh.vertex_colors)


if __name__ == "__main__":
    unittest.main()
