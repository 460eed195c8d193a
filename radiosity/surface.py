import numpy as np  # type: ignore
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from .errors import RadiosityError, RenderSetupError
from .ids import NUM_CHANS
from .weights import pixel_grid

EPS = 1e-12


class RenderSurface(ABC):
    """Offscreen square render target used for cube-map evaluation.

    The view is a 90 degree square frustum. Pixel data is read back bottom
    row first as raw RGBA bytes.
    """

    def __init__(self, resolution: int) -> None:
        if int(resolution) < 1:
            raise RenderSetupError(f"invalid surface resolution {resolution}")
        self.resolution = int(resolution)

    @abstractmethod
    def set_view(self, eye: np.ndarray, forward: np.ndarray, up: np.ndarray) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...

    @abstractmethod
    def draw_quad(self, corners: np.ndarray, rgba: Sequence[int]) -> None:
        ...

    @abstractmethod
    def set_scissor(self, rows: Optional[int]) -> None:
        """Limit drawing to the first `rows` rows (None for the full frame)."""

    @abstractmethod
    def read_pixels(self, rows: Optional[int] = None) -> bytes:
        ...

    def close(self) -> None:
        pass

    def __enter__(self) -> "RenderSurface":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class RaycastSurface(RenderSurface):
    """CPU surface: one ray per pixel centre, flat fill, z-buffer, back-face culling."""

    def __init__(self, resolution: int, near: float = 1e-6) -> None:
        super().__init__(resolution)
        r = self.resolution
        try:
            self._colour = np.zeros((r * r, NUM_CHANS), dtype=np.uint8)
            self._depth = np.full(r * r, np.inf)
        except MemoryError as e:
            raise RenderSetupError(f"cannot allocate {r}x{r} surface") from e
        u, v = pixel_grid(r)
        self._u = u.ravel()
        self._v = v.ravel()
        self.near = near
        self._eye: Optional[np.ndarray] = None
        self._dirs: Optional[np.ndarray] = None
        self._rows = r
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            raise RadiosityError("render surface has been closed")

    def set_view(self, eye: np.ndarray, forward: np.ndarray, up: np.ndarray) -> None:
        self._check_open()
        f = np.asarray(forward, dtype=np.float64)
        u = np.asarray(up, dtype=np.float64)
        right = np.cross(f, u)
        self._eye = np.asarray(eye, dtype=np.float64)
        # Unnormalised: t along these rays is the view-space depth.
        self._dirs = f[None, :] + self._u[:, None] * right[None, :] + self._v[:, None] * u[None, :]

    def clear(self) -> None:
        self._check_open()
        self._colour.fill(0)
        self._depth.fill(np.inf)

    def set_scissor(self, rows: Optional[int]) -> None:
        self._check_open()
        if rows is None:
            self._rows = self.resolution
        elif not 0 <= rows <= self.resolution:
            raise ValueError(f"scissor rows {rows} outside 0..{self.resolution}")
        else:
            self._rows = int(rows)

    def draw_quad(self, corners: np.ndarray, rgba: Sequence[int]) -> None:
        self._check_open()
        if self._dirs is None:
            raise RadiosityError("set_view must be called before drawing")
        corners = np.asarray(corners, dtype=np.float64)
        count = self._rows * self.resolution
        dirs = self._dirs[:count]
        v0 = corners[0]
        n = np.cross(corners[1] - v0, corners[3] - v0)

        denom = dirs @ n
        # Back faces are culled: only rays arriving against the normal draw.
        cand = np.nonzero(denom < -EPS)[0]
        if cand.size == 0:
            return
        t = ((v0 - self._eye) @ n) / denom[cand]
        keep = (t > self.near) & (t < self._depth[cand])
        cand, t = cand[keep], t[keep]
        if cand.size == 0:
            return

        points = self._eye[None, :] + t[:, None] * dirs[cand]
        inside = np.ones(cand.size, dtype=bool)
        for k in range(4):
            a = corners[k]
            edge = corners[(k + 1) % 4] - a
            inside &= (np.cross(edge[None, :], points - a[None, :]) @ n) >= 0.0
        hit = cand[inside]
        self._depth[hit] = t[inside]
        self._colour[hit] = np.asarray(rgba, dtype=np.uint8)

    def read_pixels(self, rows: Optional[int] = None) -> bytes:
        self._check_open()
        rows = self.resolution if rows is None else rows
        return self._colour[: rows * self.resolution].tobytes()

    def close(self) -> None:
        self._closed = True
        self._dirs = None
