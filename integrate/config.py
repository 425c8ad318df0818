from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from utils import config as ucfg

from .intrinsics import CameraIntrinsics

# ============================== CONFIG TYPES =================================


@dataclass(frozen=True)
class CameraCfg:
    """Compositing grid size; unset intrinsics derive from the resolution."""

    width: int = ucfg.REFERENCE_CAMERA.width
    height: int = ucfg.REFERENCE_CAMERA.height
    fx: Optional[float] = None
    fy: Optional[float] = None
    cx: Optional[float] = None
    cy: Optional[float] = None

    def intrinsics(self) -> CameraIntrinsics:
        return CameraIntrinsics.from_resolution(
            self.width, self.height, self.fx, self.fy, self.cx, self.cy
        )


@dataclass(frozen=True)
class FlattenCfg:
    enabled: bool = False
    min_dist: float = ucfg.FLATTEN_MIN_DIST


@dataclass(frozen=True)
class CleanupCfg:
    enabled: bool = False
    face_dist: float = ucfg.CLEANUP_FACE_DIST
    max_cluster_size: int = ucfg.CLEANUP_MAX_CLUSTER_SIZE


@dataclass(frozen=True)
class TSDFCfg:
    """Volume edge length and target cell size (meters)."""

    volume_size: float = ucfg.TSDF_VOLUME_SIZE
    cell_size: float = ucfg.TSDF_CELL_SIZE
    trunc_voxels: float = ucfg.TSDF_TRUNC_VOXELS
    depth_trunc: float = ucfg.TSDF_DEPTH_TRUNC


@dataclass(frozen=True)
class PipelineCfg:
    """Top-level knobs for one integration run."""

    in_dir: str = "."
    out_dir: str = "out"
    mesh_name: str = ucfg.MESH_NAME

    camera: CameraCfg = field(default_factory=CameraCfg)
    tsdf: TSDFCfg = field(default_factory=TSDFCfg)
    flatten: FlattenCfg = field(default_factory=FlattenCfg)
    cleanup: CleanupCfg = field(default_factory=CleanupCfg)

    # Frame interpretation
    invert_poses: bool = False  # pose files hold WORLD -> CAM
    world_frame: bool = False  # clouds are given in the world frame
    organized: bool = False  # clouds already match the camera grid
    zero_as_missing: bool = False  # (0,0,0) marks a missing reading

    # Output / diagnostics
    save_ascii: bool = False
    visualize: bool = False
    verbose: bool = False

    def intrinsics(self) -> CameraIntrinsics:
        return self.camera.intrinsics()
