# utils/io.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np
import open3d as o3d

from utils.config import CLOUD_EXTS, POSE_BINARY_EXTS, POSE_TEXT_EXTS
from utils.error_tracker import InputPathError, MeshWriteError, PoseParseError
from utils.helpers import fmt_array, invert_T
from utils.logger import Logger

logger = Logger.get_logger("io")


# ============================================================================ #
# Input scraping
# ============================================================================ #
@dataclass(frozen=True)
class CaptureFiles:
    """Sorted cloud and pose paths found in one input directory."""

    clouds: List[Path]
    poses: List[Path]
    binary_poses: bool


def scrape_inputs(root: Path) -> CaptureFiles:
    """
    Collect *.pcd clouds and *.txt / *.transform poses under ``root``.
    Both lists are sorted by path; pairing is positional.
    If both pose encodings are present the last one visited wins.
    """
    root = Path(root)
    if not root.is_dir():
        raise InputPathError(f"input directory not found: {root}")

    clouds: List[Path] = []
    poses: List[Path] = []
    binary = False
    for p in root.iterdir():
        if not p.is_file():
            continue
        ext = p.suffix.lower()
        if ext in CLOUD_EXTS:
            clouds.append(p)
        elif ext in POSE_BINARY_EXTS:
            poses.append(p)
            binary = True
        elif ext in POSE_TEXT_EXTS:
            poses.append(p)
            binary = False
    clouds.sort()
    poses.sort()
    logger.info(
        f"[SCRAPE] {root}: {len(clouds)} clouds, {len(poses)} "
        f"{'binary' if binary else 'ascii'} poses"
    )
    return CaptureFiles(clouds=clouds, poses=poses, binary_poses=binary)


# ============================================================================ #
# Poses
# ============================================================================ #
def read_pose(path: Path, binary: bool = False) -> np.ndarray:
    """
    Read one 4x4 pose, row-major.
    ASCII: 16 whitespace separated numbers. Binary: 16 raw float32 values.
    """
    path = Path(path)
    try:
        if binary:
            vals = np.fromfile(path, dtype=np.float32)
        else:
            vals = np.array(path.read_text().split()[:16], dtype=np.float32)
    except FileNotFoundError as e:
        raise InputPathError(f"pose file not found: {path}") from e
    except OSError as e:
        raise InputPathError(f"cannot read pose file {path}: {e}") from e
    except ValueError as e:
        raise PoseParseError(f"{path.name}: non-numeric pose value ({e})") from e

    if vals.size < 16:
        raise PoseParseError(
            f"{path.name}: expected 16 values, found {vals.size}"
        )
    T = vals[:16].astype(np.float64).reshape(4, 4)
    if not np.all(np.isfinite(T)):
        raise PoseParseError(f"{path.name}: pose holds non-finite values")
    return T


def load_poses(
    paths: Sequence[Path],
    binary: bool = False,
    invert: bool = False,
    verbose: bool = False,
) -> List[np.ndarray]:
    """Read every pose; ``invert`` flips world->camera files to camera->world."""
    kind = "binary" if binary else "ascii"
    logger.info(f"[POSES] reading {len(paths)} {kind} pose files")
    out: List[np.ndarray] = []
    for i, p in enumerate(paths):
        T = read_pose(p, binary=binary)
        if invert:
            try:
                T = invert_T(T)
            except np.linalg.LinAlgError as e:
                raise PoseParseError(f"{Path(p).name}: singular pose") from e
        if verbose:
            logger.debug(f"[POSES] pose[{i}]=\n{fmt_array(T)}")
        out.append(T)
    return out


# ============================================================================ #
# Clouds / meshes (Open3D codecs)
# ============================================================================ #
def _pcd_declared_points(path: Path) -> Optional[int]:
    """POINTS count from a PCD header, None when no header ending in DATA."""
    points = None
    with open(path, "rb") as f:
        for _ in range(32):
            line = f.readline()
            if not line:
                break
            key, _, value = line.decode("ascii", "replace").strip().partition(" ")
            if key == "POINTS":
                try:
                    points = int(value)
                except ValueError:
                    return None
            elif key == "DATA":
                return points
    return None


def load_cloud(path: Path) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """
    Load a cloud as (points (N,3) float64, colors (N,3) uint8 or None).
    NaN points are kept so organized clouds keep their layout. A file that
    Open3D cannot decode is a fatal InputPathError, not an empty frame.
    """
    path = Path(path)
    if not path.is_file():
        raise InputPathError(f"cloud not found: {path}")
    pcd = o3d.io.read_point_cloud(
        str(path), remove_nan_points=False, remove_infinite_points=False
    )
    P = np.asarray(pcd.points, dtype=np.float64)
    if len(P) == 0:
        try:
            declared = _pcd_declared_points(path)
        except OSError as e:
            raise InputPathError(f"cannot read cloud {path}: {e}") from e
        if declared != 0:
            raise InputPathError(f"unreadable cloud: {path}")
        logger.warning(f"[LOAD] {path.name} holds no points")
    C = None
    if pcd.has_colors():
        C = np.clip(np.asarray(pcd.colors) * 255.0 + 0.5, 0, 255)
        C = C.astype(np.uint8)
    return P, C


def save_triangle_mesh(
    path: Path, mesh: o3d.geometry.TriangleMesh, ascii: bool = False
) -> Path:
    """Write PLY (binary unless ``ascii``); creates parent dirs."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    ok = o3d.io.write_triangle_mesh(str(path), mesh, write_ascii=ascii)
    if not ok:
        raise MeshWriteError(f"failed to write mesh: {path}")
    logger.info(
        f"[SAVE] {len(mesh.vertices)} vertices, {len(mesh.triangles)} faces "
        f"-> {path} ({'ascii' if ascii else 'binary'})"
    )
    return path
