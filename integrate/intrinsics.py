from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import open3d as o3d

from utils.config import REFERENCE_CAMERA, CameraDefaults
from utils.logger import Logger

LOG = Logger.get_logger("intrinsics")


@dataclass(frozen=True)
class CameraIntrinsics:
    """Pinhole camera of the compositing grid; fixed for a whole run."""

    width: int
    height: int
    fx: float
    fy: float
    cx: float
    cy: float

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"image size must be positive, got {self.width}x{self.height}"
            )
        if not (np.isfinite(self.fx) and np.isfinite(self.fy)):
            raise ValueError("focal lengths must be finite")

    @classmethod
    def from_resolution(
        cls,
        width: int = REFERENCE_CAMERA.width,
        height: int = REFERENCE_CAMERA.height,
        fx: Optional[float] = None,
        fy: Optional[float] = None,
        cx: Optional[float] = None,
        cy: Optional[float] = None,
        reference: CameraDefaults = REFERENCE_CAMERA,
    ) -> "CameraIntrinsics":
        """
        Scale the reference focal length to (width, height) and center the
        principal point on the pixel grid; any value can be overridden.
        """
        width, height = int(width), int(height)
        return cls(
            width=width,
            height=height,
            fx=float(fx if fx is not None else reference.fx * width / reference.width),
            fy=float(fy if fy is not None else reference.fy * height / reference.height),
            cx=float(cx if cx is not None else width / 2.0 - 0.5),
            cy=float(cy if cy is not None else height / 2.0 - 0.5),
        )

    @property
    def num_pixels(self) -> int:
        return self.width * self.height

    def as_tuple(self) -> Tuple[int, int, float, float, float, float]:
        return (self.width, self.height, self.fx, self.fy, self.cx, self.cy)

    def as_matrix(self) -> np.ndarray:
        return np.array(
            [
                [self.fx, 0.0, self.cx],
                [0.0, self.fy, self.cy],
                [0.0, 0.0, 1.0],
            ],
            dtype=np.float64,
        )

    def to_o3d(self) -> o3d.camera.PinholeCameraIntrinsic:
        return o3d.camera.PinholeCameraIntrinsic(*self.as_tuple())

    def log(self) -> None:
        LOG.info(
            f"[INTR] w={self.width} h={self.height} fx={self.fx:.3f} "
            f"fy={self.fy:.3f} cx={self.cx:.3f} cy={self.cy:.3f}"
        )
