from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional

from utils.error_tracker import ErrorTracker, IntegrationError
from utils.helpers import setup_numpy_print
from utils.io import save_triangle_mesh
from utils.logger import Logger

from .config import CameraCfg, CleanupCfg, FlattenCfg, PipelineCfg, TSDFCfg
from .pipeline import integrate_capture

LOG = Logger.get_logger("main")


def run(cfg: PipelineCfg | None = None) -> Path:
    """Install error handling, run the pipeline and write <out>/mesh.ply."""
    cfg = cfg or PipelineCfg()
    if cfg.verbose:
        Logger.configure(level="DEBUG")
    setup_numpy_print()
    ErrorTracker.install_excepthook()
    ErrorTracker.install_signal_handlers()

    LOG.info(f"[START] in={cfg.in_dir} out={cfg.out_dir}")
    mesh = integrate_capture(cfg)
    out_path = Path(cfg.out_dir) / cfg.mesh_name
    return save_triangle_mesh(out_path, mesh.to_o3d(), ascii=cfg.save_ascii)


def build_parser() -> argparse.ArgumentParser:
    d = PipelineCfg()
    p = argparse.ArgumentParser(
        prog="integrate-mesh",
        description=(
            "Integrates posed point clouds (*.pcd with *.txt or *.transform "
            "poses of the camera in the world frame) and writes a mesh."
        ),
    )
    p.add_argument("--in", dest="in_dir", required=True, help="Input dir")
    p.add_argument("--out", dest="out_dir", required=True, help="Output dir")
    p.add_argument("--volume-size", type=float, default=d.tsdf.volume_size)
    p.add_argument("--cell-size", type=float, default=d.tsdf.cell_size)
    p.add_argument("--visualize", action="store_true")
    p.add_argument("--verbose", action="store_true")
    p.add_argument("--flatten", action="store_true", help="Merge near-duplicate vertices")
    p.add_argument("--flatten-dist", type=float, default=d.flatten.min_dist)
    p.add_argument("--cleanup", action="store_true", help="Remove small face clusters")
    p.add_argument("--face-dist", type=float, default=d.cleanup.face_dist)
    p.add_argument("--max-cluster-size", type=int, default=d.cleanup.max_cluster_size)
    p.add_argument("--invert", action="store_true", help="Poses are world -> camera")
    p.add_argument("--world", action="store_true", help="Clouds are in the world frame")
    p.add_argument("--organized", action="store_true", help="Clouds are already organized")
    p.add_argument("--zero-nans", action="store_true", help="(0,0,0) marks missing data")
    p.add_argument("--width", type=int, default=d.camera.width)
    p.add_argument("--height", type=int, default=d.camera.height)
    p.add_argument("--fx", type=float)
    p.add_argument("--fy", type=float)
    p.add_argument("--cx", type=float)
    p.add_argument("--cy", type=float)
    p.add_argument("--save-ascii", action="store_true", help="Write ASCII PLY")
    return p


def cfg_from_args(argv: Optional[List[str]] = None) -> PipelineCfg:
    a = build_parser().parse_args(argv)
    return PipelineCfg(
        in_dir=a.in_dir,
        out_dir=a.out_dir,
        camera=CameraCfg(a.width, a.height, a.fx, a.fy, a.cx, a.cy),
        tsdf=TSDFCfg(volume_size=a.volume_size, cell_size=a.cell_size),
        flatten=FlattenCfg(enabled=a.flatten, min_dist=a.flatten_dist),
        cleanup=CleanupCfg(
            enabled=a.cleanup,
            face_dist=a.face_dist,
            max_cluster_size=a.max_cluster_size,
        ),
        invert_poses=a.invert,
        world_frame=a.world,
        organized=a.organized,
        zero_as_missing=a.zero_nans,
        save_ascii=a.save_ascii,
        visualize=a.visualize,
        verbose=a.verbose,
    )


def _main(argv: Optional[List[str]] = None) -> int:
    """Module runner for `python -m integrate.main`."""
    cfg = cfg_from_args(argv)
    try:
        run(cfg)
    except IntegrationError as e:
        LOG.error(f"{type(e).__name__}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
