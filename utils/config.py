# utils/config.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


# ============================== CORE DATATYPES ===============================


@dataclass(frozen=True)
class CameraDefaults:
    """Reference pinhole camera that default intrinsics are scaled from."""

    width: int
    height: int
    fx: float
    fy: float


# ============================== PROJECT DEFAULTS =============================

# Kinect-style VGA camera: 525 px focal length at 640x480.
REFERENCE_CAMERA = CameraDefaults(width=640, height=480, fx=525.0, fy=525.0)

# Input scraping (extensions are matched case-insensitively).
CLOUD_EXTS: Tuple[str, ...] = (".pcd",)
POSE_TEXT_EXTS: Tuple[str, ...] = (".txt",)
POSE_BINARY_EXTS: Tuple[str, ...] = (".transform",)

# Output
MESH_NAME: str = "mesh.ply"

# Vertex flattening: vertices closer than this (meters) are merged.
FLATTEN_MIN_DIST: float = 0.0001

# Small-cluster cleanup: faces whose centroids are closer than FACE_DIST are
# connected; clusters with at most MAX_CLUSTER_SIZE faces are dropped.
CLEANUP_FACE_DIST: float = 0.02
CLEANUP_MAX_CLUSTER_SIZE: int = 5

# TSDF volume (meters). Resolution = volume / cell, snapped up to 2^k.
TSDF_VOLUME_SIZE: float = 12.0
TSDF_CELL_SIZE: float = 0.006
TSDF_TRUNC_VOXELS: float = 4.0
TSDF_DEPTH_TRUNC: float = 10.0
