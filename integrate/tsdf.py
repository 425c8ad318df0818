from __future__ import annotations

from typing import Optional, Protocol

import numpy as np
import open3d as o3d

from utils.helpers import invert_T, suppress_o3d_info
from utils.logger import Logger

from .config import TSDFCfg
from .intrinsics import CameraIntrinsics
from .mesh import Mesh
from .reproject import OrganizedFrame

LOG = Logger.get_logger("tsdf")


class FusionEngine(Protocol):
    """Volumetric integrator fed one organized frame at a time."""

    def integrate(
        self,
        frame: OrganizedFrame,
        pose: np.ndarray,
        normals: Optional[np.ndarray] = None,
    ) -> None: ...

    def reconstruct(self) -> Mesh: ...


def snap_resolution(volume_size: float, cell_size: float) -> int:
    """Smallest power of two >= volume_size / cell_size."""
    desired = int(volume_size / cell_size)
    n = 1
    while desired > n:
        n *= 2
    return n


def frame_to_rgbd(
    frame: OrganizedFrame, depth_trunc: float
) -> o3d.geometry.RGBDImage:
    """Depth image from cell z (empty/invalid -> 0) plus the cell colors."""
    depth = np.nan_to_num(frame.depth, nan=0.0, posinf=0.0, neginf=0.0)
    depth = np.where(depth > 0, depth, 0.0).astype(np.float32)
    color = np.ascontiguousarray(frame.colors, dtype=np.uint8)
    return o3d.geometry.RGBDImage.create_from_color_and_depth(
        o3d.geometry.Image(color),
        o3d.geometry.Image(np.ascontiguousarray(depth)),
        depth_scale=1.0,
        depth_trunc=float(depth_trunc),
        convert_rgb_to_intensity=False,
    )


class TSDFFusion:
    """FusionEngine over Open3D's scalable TSDF volume."""

    def __init__(self, intr: CameraIntrinsics, cfg: TSDFCfg = TSDFCfg()) -> None:
        self.intr = intr
        self.cfg = cfg
        self.resolution = snap_resolution(cfg.volume_size, cfg.cell_size)
        self.voxel = cfg.volume_size / self.resolution
        self.trunc = cfg.trunc_voxels * self.voxel
        self._o3d_intr = intr.to_o3d()
        self.num_frames = 0
        self.volume = o3d.pipelines.integration.ScalableTSDFVolume(
            voxel_length=self.voxel,
            sdf_trunc=self.trunc,
            color_type=o3d.pipelines.integration.TSDFVolumeColorType.RGB8,
        )
        LOG.info(
            f"size={cfg.volume_size:g} res={self.resolution} "
            f"voxel={self.voxel:.4f} trunc={self.trunc:.4f}"
        )

    def integrate(
        self,
        frame: OrganizedFrame,
        pose: np.ndarray,
        normals: Optional[np.ndarray] = None,
    ) -> None:
        """Integrate one frame; ``pose`` is WORLD <- CAM. Normals are unused."""
        if (frame.width, frame.height) != (self.intr.width, self.intr.height):
            raise ValueError(
                f"frame {frame.width}x{frame.height} does not match camera "
                f"{self.intr.width}x{self.intr.height}"
            )
        rgbd = frame_to_rgbd(frame, self.cfg.depth_trunc)
        extr = invert_T(pose)  # Open3D expects CAM <- WORLD
        with suppress_o3d_info():
            self.volume.integrate(rgbd, self._o3d_intr, extr)
        self.num_frames += 1

    def reconstruct(self) -> Mesh:
        with suppress_o3d_info():
            tm = self.volume.extract_triangle_mesh()
        mesh = Mesh.from_o3d(tm)
        LOG.info(f"marching cubes over {self.num_frames} frames: {mesh.summary()}")
        return mesh
