"""Tests for input scraping and pose parsing."""

import tempfile
import unittest
from pathlib import Path

import numpy as np
import open3d as o3d

from utils.error_tracker import InputPathError, PoseParseError
from utils.io import load_cloud, load_poses, read_pose, scrape_inputs


class _TmpDirCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()


class TestReadPose(_TmpDirCase):
    def test_ascii_row_major(self):
        p = self.root / "0001.txt"
        p.write_text("1 0 0 0.5\n0 1 0 1.5\n0 0 1 -2\n0 0 0 1\n")
        T = read_pose(p)
        self.assertEqual(T.shape, (4, 4))
        np.testing.assert_allclose(T[:3, 3], [0.5, 1.5, -2.0])

    def test_binary_float32(self):
        p = self.root / "0001.transform"
        vals = np.arange(16, dtype=np.float32)
        vals.tofile(p)
        T = read_pose(p, binary=True)
        np.testing.assert_array_equal(T, vals.reshape(4, 4))
        self.assertEqual(T.dtype, np.float64)

    def test_short_file_fails(self):
        p = self.root / "bad.txt"
        p.write_text(" ".join(["1"] * 15))
        with self.assertRaises(PoseParseError):
            read_pose(p)

    def test_short_binary_fails(self):
        p = self.root / "bad.transform"
        np.zeros(8, np.float32).tofile(p)
        with self.assertRaises(PoseParseError):
            read_pose(p, binary=True)

    def test_non_numeric_fails(self):
        p = self.root / "bad.txt"
        p.write_text("1 0 0 0 0 1 0 0 0 0 one 0 0 0 0 1")
        with self.assertRaises(PoseParseError):
            read_pose(p)

    def test_missing_file(self):
        with self.assertRaises(InputPathError):
            read_pose(self.root / "missing.txt")

    def test_directory_in_place_of_file(self):
        d = self.root / "0001.txt"
        d.mkdir()
        with self.assertRaises(InputPathError):
            read_pose(d)
        with self.assertRaises(InputPathError):
            read_pose(d, binary=True)


class TestLoadPoses(_TmpDirCase):
    def test_invert(self):
        T = np.eye(4)
        T[:3, 3] = [1.0, 2.0, 3.0]
        p = self.root / "a.txt"
        p.write_text(" ".join(str(x) for x in T.ravel()))
        (pose,) = load_poses([p], invert=True)
        np.testing.assert_allclose(pose[:3, 3], [-1.0, -2.0, -3.0])


class TestScrapeInputs(_TmpDirCase):
    def test_sorted_and_filtered(self):
        for name in ["b.pcd", "a.PCD", "b.txt", "a.TXT", "notes.md"]:
            (self.root / name).write_text("x")
        (self.root / "sub.pcd").mkdir()
        files = scrape_inputs(self.root)
        self.assertEqual([p.name for p in files.clouds], ["a.PCD", "b.pcd"])
        self.assertEqual([p.name for p in files.poses], ["a.TXT", "b.txt"])
        self.assertFalse(files.binary_poses)

    def test_binary_poses_detected(self):
        (self.root / "a.pcd").write_text("x")
        (self.root / "a.transform").write_bytes(b"\0" * 64)
        self.assertTrue(scrape_inputs(self.root).binary_poses)

    def test_missing_dir(self):
        with self.assertRaises(InputPathError):
            scrape_inputs(self.root / "nope")


class TestLoadCloud(_TmpDirCase):
    PTS = np.array([[0.0, 0.0, 1.0], [1.0, 0.0, 1.0], [0.0, 1.0, 2.0]])

    def _write(self, name, colors=None):
        pcd = o3d.geometry.PointCloud()
        pcd.points = o3d.utility.Vector3dVector(self.PTS)
        if colors is not None:
            pcd.colors = o3d.utility.Vector3dVector(colors)
        path = self.root / name
        o3d.io.write_point_cloud(str(path), pcd, write_ascii=True)
        return path

    def test_colorless_cloud_has_no_colors(self):
        P, C = load_cloud(self._write("a.pcd"))
        self.assertEqual(P.shape, (3, 3))
        np.testing.assert_allclose(P, self.PTS)
        self.assertIsNone(C)

    def test_colors_become_uint8(self):
        cols = np.array([[1.0, 0.0, 0.0], [0.0, 0.5, 0.0], [0.0, 0.0, 1.0]])
        _, C = load_cloud(self._write("a.pcd", cols))
        self.assertEqual(C.dtype, np.uint8)
        self.assertEqual(C[0].tolist(), [255, 0, 0])
        self.assertEqual(C[2].tolist(), [0, 0, 255])

    def test_garbage_file_is_fatal(self):
        path = self.root / "0000.pcd"
        path.write_bytes(b"this is not a point cloud\n\x00\x01\x02")
        with self.assertRaises(InputPathError):
            load_cloud(path)

    def test_empty_file_is_fatal(self):
        path = self.root / "0000.pcd"
        path.write_bytes(b"")
        with self.assertRaises(InputPathError):
            load_cloud(path)

    def test_missing_file(self):
        with self.assertRaises(InputPathError):
            load_cloud(self.root / "missing.pcd")


if __name__ == "__main__":
    unittest.main()
