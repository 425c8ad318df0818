from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import open3d as o3d

from utils.logger import Logger

from .reproject import OrganizedFrame
from .transforms import camera_to_world

LOG = Logger.get_logger("viz")


@dataclass(frozen=True, eq=False)
class VizMap:
    """World-frame points accumulated across frames for the preview."""

    points: np.ndarray
    colors: np.ndarray

    @classmethod
    def empty(cls) -> "VizMap":
        return cls(np.empty((0, 3)), np.empty((0, 3), np.uint8))

    def __len__(self) -> int:
        return int(len(self.points))


def accumulate(viz_map: VizMap, frame: OrganizedFrame, pose: np.ndarray) -> VizMap:
    """New map = old map + the frame's occupied cells in the world frame."""
    P, C = frame.to_cloud()
    Pw = camera_to_world(P, pose)
    return VizMap(
        points=np.vstack([viz_map.points, Pw]),
        colors=np.vstack([viz_map.colors, C]),
    )


def show_map(
    viz_map: VizMap, title: str = "Map", coord_frame_size: float = 0.2
) -> None:
    """Blocking viewer: map in red plus the world axes."""
    pcd = o3d.geometry.PointCloud()
    pcd.points = o3d.utility.Vector3dVector(viz_map.points)
    pcd.paint_uniform_color((1.0, 0.0, 0.0))
    axes = o3d.geometry.TriangleMesh.create_coordinate_frame(size=coord_frame_size)
    LOG.info(f"{title}: {len(viz_map)} pts")
    o3d.visualization.draw_geometries([pcd, axes], window_name=title)
