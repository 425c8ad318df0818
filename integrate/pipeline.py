from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from utils.error_tracker import FrameCountMismatchError, InputPathError
from utils.io import load_cloud, load_poses, scrape_inputs
from utils.logger import Logger

from .cleanup import remove_small_clusters
from .config import PipelineCfg
from .flatten import flatten_vertices
from .intrinsics import CameraIntrinsics
from .mesh import Mesh
from .reproject import OrganizedFrame, organize, zero_to_nan
from .transforms import check_poses, world_to_camera
from .tsdf import FusionEngine, TSDFFusion
from .viz import VizMap, accumulate, show_map

LOG = Logger.get_logger("pipeline")

Cloud = Tuple[np.ndarray, Optional[np.ndarray]]


@dataclass
class IntegrationResult:
    engine: FusionEngine
    viz_map: Optional[VizMap]
    n_frames: int


# ============================== HELPERS ======================================


def pair_frames(
    clouds: Sequence[Path], poses: Sequence[np.ndarray]
) -> List[Tuple[Path, np.ndarray]]:
    """Positional pairing of sorted clouds and poses; counts must match."""
    if len(clouds) != len(poses):
        raise FrameCountMismatchError(
            f"{len(clouds)} clouds but {len(poses)} poses"
        )
    return list(zip(clouds, poses))


def preprocess_frame(
    points: np.ndarray, pose: np.ndarray, cfg: PipelineCfg
) -> np.ndarray:
    """Zero->NaN remap and world->camera transform, as configured."""
    P = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    if cfg.zero_as_missing:
        P = zero_to_nan(P)
    if cfg.world_frame:
        P = world_to_camera(P, pose)
    return P


def process_frame(
    cloud: Cloud,
    pose: np.ndarray,
    intr: CameraIntrinsics,
    cfg: PipelineCfg,
) -> OrganizedFrame:
    points, colors = cloud
    P = preprocess_frame(points, pose, cfg)
    return organize(P, colors, intr, organized=cfg.organized)


def _load_clouds(paths: Sequence[Path]) -> Iterator[Cloud]:
    for p in paths:
        LOG.debug(f"[LOAD] {p}")
        yield load_cloud(p)


# ============================== PIPELINE =====================================


def integrate_frames(
    clouds: Iterable[Cloud],
    poses: Sequence[np.ndarray],
    intr: CameraIntrinsics,
    cfg: PipelineCfg,
    engine: FusionEngine,
    viz_map: Optional[VizMap] = None,
) -> IntegrationResult:
    """
    Feed frames to ``engine`` strictly in order. The preview map is threaded
    through and returned; it is built when given or when cfg.visualize.
    """
    if hasattr(clouds, "__len__") and len(clouds) != len(poses):
        raise FrameCountMismatchError(
            f"{len(clouds)} clouds but {len(poses)} poses"
        )
    if cfg.visualize and viz_map is None:
        viz_map = VizMap.empty()

    n = len(poses)
    done = 0
    for i, (cloud, pose) in enumerate(
        Logger.progress(zip(clouds, poses), desc="integrate", total=n)
    ):
        frame = process_frame(cloud, pose, intr, cfg)
        LOG.info(f"[FRAME {i + 1}/{n}] {frame.num_occupied} cells occupied")
        if viz_map is not None:
            viz_map = accumulate(viz_map, frame, pose)
            if cfg.visualize:
                show_map(viz_map, title=f"Map {i + 1}/{n}")
        engine.integrate(frame, pose)
        done += 1

    if done != n:
        raise FrameCountMismatchError(f"{done} clouds but {n} poses")
    return IntegrationResult(engine=engine, viz_map=viz_map, n_frames=done)


def finalize_mesh(mesh: Mesh, cfg: PipelineCfg) -> Mesh:
    """Optional vertex flattening, then optional small-cluster removal."""
    LOG.info(f"[MESH] reconstructed: {mesh.summary()}")
    if cfg.flatten.enabled:
        mesh, _ = flatten_vertices(mesh, cfg.flatten.min_dist)
    if cfg.cleanup.enabled:
        mesh, _ = remove_small_clusters(
            mesh, cfg.cleanup.face_dist, cfg.cleanup.max_cluster_size
        )
    return mesh


def integrate_capture(
    cfg: PipelineCfg, engine: Optional[FusionEngine] = None
) -> Mesh:
    """Scrape -> poses -> per-frame integrate -> reconstruct -> cleanup."""
    t0 = time.perf_counter()
    root = Path(cfg.in_dir)
    intr = cfg.intrinsics()
    intr.log()

    files = scrape_inputs(root)
    if not files.clouds:
        raise InputPathError(f"no clouds found in {root}")
    poses = load_poses(
        files.poses,
        binary=files.binary_poses,
        invert=cfg.invert_poses,
        verbose=cfg.verbose,
    )
    pairs = pair_frames(files.clouds, poses)
    check_poses(poses)
    for cloud_path, pose_path in zip(files.clouds, files.poses):
        LOG.debug(f"Cloud: {cloud_path.name}, pose: {pose_path.name}")

    engine = engine or TSDFFusion(intr, cfg.tsdf)
    integrate_frames(
        _load_clouds([p for p, _ in pairs]),
        [T for _, T in pairs],
        intr,
        cfg,
        engine,
    )
    mesh = finalize_mesh(engine.reconstruct(), cfg)
    LOG.info(
        f"Entire pipeline took {(time.perf_counter() - t0) * 1000.0:.1f} ms"
    )
    return mesh
