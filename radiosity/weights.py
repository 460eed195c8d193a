"""Per-pixel weights for cube-map integration.

Every frame is a 90 degree square view onto a plane at unit distance. Pixel
(i, j) has its centre at (u, v) in (-1, 1)^2, with row 0 at the bottom
(v = -1), which is also the first row of read-back data. A pixel covers the
solid angle

    d_omega = (2 / R)^2 / |d|^3,   |d| = sqrt(1 + u^2 + v^2)

All arrays are flattened row-major, bottom row first.
"""
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

import numpy as np  # type: ignore

# Total of the subtend weights over the whole sphere.
SUBTEND_TOTAL = 6.0


def pixel_grid(resolution: int, rows: Optional[int] = None) -> Tuple[np.ndarray, np.ndarray]:
    """Return (u, v) pixel-centre coordinates, shape (rows, resolution)."""
    rows = resolution if rows is None else rows
    c = (2.0 * (np.arange(resolution) + 0.5) / resolution) - 1.0
    v, u = np.meshgrid(c[:rows], c, indexing="ij")
    return u, v


def _solid_angle(u: np.ndarray, v: np.ndarray, resolution: int) -> Tuple[np.ndarray, np.ndarray]:
    dlen = np.sqrt(1.0 + u * u + v * v)
    return (2.0 / resolution) ** 2 / dlen ** 3, dlen


def calc_subtend_weights(resolution: int) -> np.ndarray:
    u, v = pixel_grid(resolution)
    d_omega, _ = _solid_angle(u, v, resolution)
    # 4 pi steradians map to SUBTEND_TOTAL.
    return (SUBTEND_TOTAL / (4.0 * np.pi) * d_omega).ravel()


def calc_forward_light_weights(resolution: int) -> np.ndarray:
    u, v = pixel_grid(resolution)
    d_omega, dlen = _solid_angle(u, v, resolution)
    return (d_omega / (np.pi * dlen)).ravel()


def calc_side_light_weights(resolution: int) -> np.ndarray:
    """Cosine weights for the half of a side frame facing forward.

    Only the bottom resolution // 2 rows are returned; the other half looks
    backwards and cannot receive light.
    """
    u, v = pixel_grid(resolution, rows=resolution // 2)
    d_omega, dlen = _solid_angle(u, v, resolution)
    return (d_omega * (-v) / (np.pi * dlen)).ravel()


@dataclass(frozen=True)
class WeightMasks:
    resolution: int
    subtend: np.ndarray
    forward_light: np.ndarray
    side_light: np.ndarray


@lru_cache(maxsize=None)
def weight_masks(resolution: int) -> WeightMasks:
    if resolution < 1:
        raise ValueError(f"resolution must be positive, got {resolution}")
    masks = WeightMasks(
        resolution=resolution,
        subtend=calc_subtend_weights(resolution),
        forward_light=calc_forward_light_weights(resolution),
        side_light=calc_side_light_weights(resolution),
    )
    for arr in (masks.subtend, masks.forward_light, masks.side_light):
        arr.setflags(write=False)
    return masks
