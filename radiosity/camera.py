import numpy as np  # type: ignore
from dataclasses import dataclass
from typing import Dict, Tuple

from .errors import DegenerateGeometryError

EPS = 1e-12

# Order in which the full cube map is rendered.
CUBE_FACES: Tuple[str, ...] = ("front", "back", "right", "left", "up", "down")
# The side orientations used for light gathering; "back" is never needed.
SIDE_FACES: Tuple[str, ...] = ("right", "left", "up", "down")


def _unit(v: np.ndarray) -> np.ndarray:
    n = float(np.linalg.norm(v))
    if n < EPS:
        raise DegenerateGeometryError(f"cannot normalise zero-length vector {v}")
    return v / n


def perpendicular(v: np.ndarray) -> np.ndarray:
    """Return some unit vector perpendicular to v."""
    v = np.asarray(v, dtype=np.float64)
    axis = np.zeros(3)
    axis[int(np.argmin(np.abs(v)))] = 1.0
    return _unit(np.cross(v, axis))


@dataclass
class Camera:
    eye: np.ndarray
    look_at: np.ndarray
    up: np.ndarray

    def __post_init__(self) -> None:
        self.eye = np.asarray(self.eye, dtype=np.float64)
        self.look_at = np.asarray(self.look_at, dtype=np.float64)
        self.up = np.asarray(self.up, dtype=np.float64)

    @classmethod
    def facing(cls, eye: np.ndarray, direction: np.ndarray) -> "Camera":
        """Camera at eye looking along direction, with an arbitrary up."""
        eye = np.asarray(eye, dtype=np.float64)
        direction = np.asarray(direction, dtype=np.float64)
        return cls(eye, eye + direction, perpendicular(direction))

    @property
    def forward(self) -> np.ndarray:
        return _unit(self.look_at - self.eye)

    def basis(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Return orthonormal (forward, up, right)."""
        f = self.forward
        u = _unit(self.up - np.dot(self.up, f) * f)
        r = np.cross(f, u)
        return f, u, r


def cube_views(camera: Camera) -> Dict[str, Tuple[np.ndarray, np.ndarray]]:
    """Six 90 degree view orientations (forward, up) around the camera.

    Side views use the reversed camera forward as their up vector, so the half
    of the frame facing the camera's forward direction is the bottom half.
    """
    f, u, r = camera.basis()
    return {
        "front": (f, u),
        "back": (-f, u),
        "right": (r, -f),
        "left": (-r, -f),
        "up": (u, -f),
        "down": (-u, -f),
    }
