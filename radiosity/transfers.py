"""Transfer coefficients: how much of each patch's light reaches each other patch.

Both calculators produce an (n, n) matrix T where T[i, j] is the fraction of
patch j's outgoing radiance arriving at patch i. Row i is evaluated from a
camera sitting on patch i's centre and looking along its normal.
"""
import numpy as np  # type: ignore
from abc import ABC, abstractmethod
from typing import Callable, Optional

from tqdm import tqdm  # type: ignore

from .camera import Camera, CUBE_FACES, SIDE_FACES, cube_views
from .errors import DegenerateGeometryError
from .ids import PatchIdCodec
from .scene import Patch, Scene, quad_area, quad_centre, quad_normal
from .surface import RaycastSurface, RenderSurface
from .weights import WeightMasks, weight_masks

EPS = 1e-12

# Scale for subtended values so that a full sphere totals 6, matching the
# subtend weights of the cube map.
SUBTEND_SCALE = 1.5

TRANSFER_METHODS = ("render", "analytic")


class TransferCalculator(ABC):
    """Common interface of the render-based and analytic calculators."""

    name = "transfer"

    def __init__(self, scene: Scene) -> None:
        self.scene = scene

    @abstractmethod
    def calc_subtended(self, camera: Camera) -> np.ndarray:
        """Per-patch subtended solid angle seen from camera, shape (n,)."""

    def calc_light(self, camera: Camera) -> np.ndarray:
        """Per-patch light contribution received at camera, shape (n,)."""
        return self._light_row(camera)

    @abstractmethod
    def _light_row(self, camera: Camera, exclude: Optional[int] = None) -> np.ndarray:
        ...

    def calc_all_lights(self) -> np.ndarray:
        n = len(self.scene)
        centres = self.scene.centres()
        normals = self.scene.normals()
        transfers = np.zeros((n, n), dtype=np.float64)
        print(f"[Transfers] Computing {n}x{n} transfer matrix ({self.name})...")
        for i in tqdm(range(n), desc="Transfers", leave=False):
            cam = Camera.facing(centres[i], normals[i])
            transfers[i, :] = self._light_row(cam, exclude=i)
        np.fill_diagonal(transfers, 0.0)
        if n:
            print(f"[Transfers] Done: mean row sum {transfers.sum(axis=1).mean():.4f}")
        return transfers

    def close(self) -> None:
        pass

    def __enter__(self) -> "TransferCalculator":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class RenderTransferCalculator(TransferCalculator):
    """Cube-map integration by rendering patch identifiers from each patch."""

    name = "render"

    def __init__(
        self,
        scene: Scene,
        resolution: int = 256,
        surface_factory: Callable[[int], RenderSurface] = RaycastSurface,
        codec: Optional[PatchIdCodec] = None,
    ) -> None:
        super().__init__(scene)
        self.codec = codec if codec is not None else PatchIdCodec()
        self.codec.check_capacity(len(scene))
        self.resolution = int(resolution)
        self._corners = scene.corners()
        self._colours = [self.codec.encode(i + 1) for i in range(len(scene))]
        # Surface set-up failures propagate: nothing can be computed without it.
        self.surface = surface_factory(self.resolution)

    @property
    def masks(self) -> WeightMasks:
        return weight_masks(self.resolution)

    def _render(self) -> None:
        for corners, colour in zip(self._corners, self._colours):
            self.surface.draw_quad(corners, colour)

    def _sum_weights(self, sums: np.ndarray, weights: np.ndarray) -> None:
        rows = weights.size // self.resolution
        ids = self.codec.decode(self.surface.read_pixels(rows))
        n = sums.size
        acc = np.bincount(ids, weights=weights, minlength=n + 1)
        sums += acc[1 : n + 1]

    def _calc_face(self, camera: Camera, view, weights: np.ndarray, sums: np.ndarray) -> None:
        forward, up = view
        self.surface.set_view(camera.eye, forward, up)
        self.surface.clear()
        self._render()
        self._sum_weights(sums, weights)

    def calc_subtended(self, camera: Camera) -> np.ndarray:
        sums = np.zeros(len(self.scene))
        views = cube_views(camera)
        ws = self.masks.subtend
        for face in CUBE_FACES:
            self._calc_face(camera, views[face], ws, sums)
        return sums

    def _light_row(self, camera: Camera, exclude: Optional[int] = None) -> np.ndarray:
        sums = np.zeros(len(self.scene))
        views = cube_views(camera)
        masks = self.masks
        self._calc_face(camera, views["front"], masks.forward_light, sums)
        # Only the forward-facing half of each side frame can receive light.
        self.surface.set_scissor(self.resolution // 2)
        try:
            for face in SIDE_FACES:
                self._calc_face(camera, views[face], masks.side_light, sums)
        finally:
            self.surface.set_scissor(None)
        if exclude is not None:
            sums[exclude] = 0.0
        return sums

    def close(self) -> None:
        self.surface.close()


class AnalyticTransferCalculator(TransferCalculator):
    """Closed-form inverse-square / cosine approximation, no occlusion."""

    name = "analytic"

    def _source_terms(self, camera: Camera, exclude: Optional[int] = None):
        """Return (projected area / (pi r^2), unit directions) for every patch."""
        centres = self.scene.centres()
        normals = self.scene.normals()
        areas = self.scene.areas()
        dirs = centres - camera.eye
        dist = np.linalg.norm(dirs, axis=1)
        coincident = dist < EPS
        if exclude is not None:
            coincident[exclude] = False
            dist[exclude] = 1.0
        if coincident.any():
            raise DegenerateGeometryError(
                f"camera eye coincides with centre of patches {np.nonzero(coincident)[0].tolist()}"
            )
        unit = dirs / dist[:, None]
        facing = np.maximum(0.0, -np.einsum("ij,ij->i", unit, normals)) * areas
        terms = facing / (np.pi * dist * dist)
        if exclude is not None:
            terms[exclude] = 0.0
        return terms, unit

    def _single_terms(self, camera: Camera, patch: Patch):
        corners = patch.corners(self.scene.vertices)
        d = quad_centre(corners) - camera.eye
        length = float(np.linalg.norm(d))
        if length < EPS:
            raise DegenerateGeometryError("camera eye coincides with the patch centre")
        d = d / length
        facing = max(0.0, -float(np.dot(quad_normal(corners), d))) * float(quad_area(corners))
        return facing / (np.pi * length * length), d

    def calc_single_quad_subtended(self, camera: Camera, patch: Patch) -> float:
        term, _ = self._single_terms(camera, patch)
        return SUBTEND_SCALE * term

    def calc_single_quad_light(self, camera: Camera, patch: Patch) -> float:
        term, d = self._single_terms(camera, patch)
        cos_cam = max(0.0, float(np.dot(camera.forward, d)))
        return cos_cam * term

    def calc_subtended(self, camera: Camera) -> np.ndarray:
        terms, _ = self._source_terms(camera)
        return SUBTEND_SCALE * terms

    def _light_row(self, camera: Camera, exclude: Optional[int] = None) -> np.ndarray:
        terms, unit = self._source_terms(camera, exclude)
        cos_cam = np.maximum(0.0, unit @ camera.forward)
        return cos_cam * terms


def create_transfer_calculator(method: str, scene: Scene, **kwargs) -> TransferCalculator:
    """Create a transfer calculator by name ("render" or "analytic")."""
    if method == "render":
        return RenderTransferCalculator(scene, **kwargs)
    elif method == "analytic":
        if kwargs:
            raise ValueError(f"analytic calculator takes no options, got {sorted(kwargs)}")
        return AnalyticTransferCalculator(scene)
    else:
        raise ValueError(f"Unknown transfer method: {method}")
