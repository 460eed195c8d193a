import numpy as np  # type: ignore
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

EPS = 1e-9

Colour = Tuple[float, float, float]

WHITE: Colour = (1.0, 1.0, 1.0)

# Unit box [-1, 1]^3, seen from inside: every face is wound counter-clockwise
# when viewed from the interior, so normals point into the box.
CUBE_VERTICES = np.array(
    [
        [-1.0, -1.0, -1.0],
        [1.0, -1.0, -1.0],
        [1.0, 1.0, -1.0],
        [-1.0, 1.0, -1.0],
        [-1.0, -1.0, 1.0],
        [1.0, -1.0, 1.0],
        [1.0, 1.0, 1.0],
        [-1.0, 1.0, 1.0],
    ]
)
CUBE_FACES: Tuple[Tuple[int, int, int, int], ...] = (
    (0, 4, 5, 1),  # floor, y = -1
    (3, 2, 6, 7),  # ceiling, y = +1
    (0, 3, 7, 4),  # left wall, x = -1
    (1, 5, 6, 2),  # right wall, x = +1
    (0, 1, 2, 3),  # back wall, z = -1
    (4, 7, 6, 5),  # front wall, z = +1
)


@dataclass
class SceneConfig:
    subdivision: int = 32
    wall_reflectance: float = 0.75
    inner_cube: bool = True
    inner_scale: float = 0.4
    inner_rotations: Tuple[Tuple[Tuple[float, float, float], float], ...] = (
        ((1.0, 0.0, 0.0), np.pi / 3.0),
        ((0.0, 0.0, 1.0), np.pi / 6.0),
    )
    inner_offset: Tuple[float, float, float] = (0.0, -0.25, 0.0)
    light_half_size: float = 0.5
    light_colour: Colour = (2.0, 2.0, 2.0)
    left_wall_tint: Colour = (1.0, 0.5, 0.5)
    right_wall_tint: Colour = (0.5, 0.5, 1.0)


class Patch:
    """Planar quad referencing four vertices of the owning scene.

    Vertices are ordered counter-clockwise seen from the lit side.
    """

    __slots__ = (
        "indices",
        "material",
        "radiance",
        "is_emitter",
        "is_specular",
    )

    def __init__(
        self,
        indices: Sequence[int],
        material: Sequence[float] = WHITE,
        radiance: Optional[Sequence[float]] = None,
        is_emitter: bool = False,
        is_specular: bool = False,
    ) -> None:
        if len(indices) != 4:
            raise ValueError(f"a patch needs 4 vertex indices, got {len(indices)}")
        self.indices = tuple(int(i) for i in indices)
        self.material = np.array(material, dtype=np.float64)
        self.radiance = (
            np.zeros(3) if radiance is None else np.array(radiance, dtype=np.float64)
        )
        self.is_emitter = bool(is_emitter)
        self.is_specular = bool(is_specular)

    def corners(self, vertices: np.ndarray) -> np.ndarray:
        return vertices[list(self.indices)]


def quad_centre(corners: np.ndarray) -> np.ndarray:
    return corners.mean(axis=-2)


def quad_cross(corners: np.ndarray) -> np.ndarray:
    """Cross product of the two edges leaving vertex 0 (lit-side normal)."""
    return np.cross(
        corners[..., 1, :] - corners[..., 0, :],
        corners[..., 3, :] - corners[..., 0, :],
    )


def quad_normal(corners: np.ndarray) -> np.ndarray:
    n = quad_cross(corners)
    return n / (np.linalg.norm(n, axis=-1, keepdims=True) + EPS)


def quad_area(corners: np.ndarray) -> np.ndarray:
    a = np.cross(
        corners[..., 1, :] - corners[..., 0, :],
        corners[..., 2, :] - corners[..., 0, :],
    )
    b = np.cross(
        corners[..., 2, :] - corners[..., 0, :],
        corners[..., 3, :] - corners[..., 0, :],
    )
    return 0.5 * (np.linalg.norm(a, axis=-1) + np.linalg.norm(b, axis=-1))


@dataclass
class Scene:
    """Owns the shared vertex buffer and the patch list.

    The vertex buffer is append-only; patches refer to rows of it by index.
    All calculators and solver steps receive the scene explicitly.
    """

    vertices: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))
    patches: List[Patch] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.patches)

    def add_vertices(self, points: np.ndarray) -> np.ndarray:
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        start = self.vertices.shape[0]
        self.vertices = np.vstack([self.vertices, points])
        return np.arange(start, start + points.shape[0])

    def add_patch(self, patch: Patch) -> Patch:
        if max(patch.indices) >= self.vertices.shape[0] or min(patch.indices) < 0:
            raise ValueError(f"patch indices {patch.indices} outside vertex buffer")
        self.patches.append(patch)
        return patch

    def add_quad(self, corners: np.ndarray, **kwargs) -> Patch:
        idx = self.add_vertices(corners)
        return self.add_patch(Patch(idx, **kwargs))

    def quad_indices(self) -> np.ndarray:
        return np.array([p.indices for p in self.patches], dtype=np.int64).reshape(-1, 4)

    def corners(self) -> np.ndarray:
        return self.vertices[self.quad_indices()]

    def centres(self) -> np.ndarray:
        return quad_centre(self.corners())

    def normals(self) -> np.ndarray:
        return quad_normal(self.corners())

    def areas(self) -> np.ndarray:
        return quad_area(self.corners())

    def materials(self) -> np.ndarray:
        return np.array([p.material for p in self.patches]).reshape(-1, 3)

    def radiances(self) -> np.ndarray:
        return np.array([p.radiance for p in self.patches]).reshape(-1, 3)

    def set_radiances(self, values: np.ndarray) -> None:
        values = np.asarray(values, dtype=np.float64)
        if values.shape != (len(self.patches), 3):
            raise ValueError(
                f"radiance array shape {values.shape} does not match {len(self.patches)} patches"
            )
        for p, v in zip(self.patches, values):
            p.radiance = v.copy()

    def emitter_mask(self) -> np.ndarray:
        return np.array([p.is_emitter for p in self.patches], dtype=bool)

    def specular_mask(self) -> np.ndarray:
        return np.array([p.is_specular for p in self.patches], dtype=bool)


def _bilinear(corners: np.ndarray, s: float, t: float) -> np.ndarray:
    v0, v1, v2, v3 = corners
    return (
        (1 - s) * (1 - t) * v0
        + s * (1 - t) * v1
        + s * t * v2
        + (1 - s) * t * v3
    )


def _make_grid_on_quad(
    scene: Scene,
    corners: np.ndarray,
    nx: int,
    ny: int,
    material: Sequence[float] = WHITE,
    is_specular: bool = False,
) -> List[Patch]:
    """Split a quad into nx * ny sub-quads sharing their grid vertices."""
    if nx < 1 or ny < 1:
        raise ValueError(f"subdivision must be positive, got {nx}x{ny}")
    grid = np.array(
        [
            _bilinear(corners, i / nx, j / ny)
            for j in range(ny + 1)
            for i in range(nx + 1)
        ]
    )
    idx = scene.add_vertices(grid).reshape(ny + 1, nx + 1)
    patches: List[Patch] = []
    for j in range(ny):
        for i in range(nx):
            quad = (idx[j, i], idx[j, i + 1], idx[j + 1, i + 1], idx[j + 1, i])
            patches.append(
                scene.add_patch(Patch(quad, material=material, is_specular=is_specular))
            )
    return patches


def rotation_matrix(axis: Sequence[float], angle: float) -> np.ndarray:
    a = np.asarray(axis, dtype=np.float64)
    a = a / (np.linalg.norm(a) + EPS)
    x, y, z = a
    k = np.array([[0.0, -z, y], [z, 0.0, -x], [-y, x, 0.0]])
    return np.eye(3) + np.sin(angle) * k + (1.0 - np.cos(angle)) * (k @ k)


def transform_points(
    points: np.ndarray,
    scale: float = 1.0,
    rotations: Iterable[Tuple[Sequence[float], float]] = (),
    offset: Sequence[float] = (0.0, 0.0, 0.0),
) -> np.ndarray:
    """Scale, then rotate in order, then translate."""
    p = np.asarray(points, dtype=np.float64) * scale
    for axis, angle in rotations:
        p = p @ rotation_matrix(axis, angle).T
    return p + np.asarray(offset, dtype=np.float64)


def flip_faces(faces: Sequence[Tuple[int, int, int, int]]) -> List[Tuple[int, int, int, int]]:
    """Reverse winding so the lit side swaps."""
    return [(a, d, c, b) for (a, b, c, d) in faces]


def build_cube_scene(config: SceneConfig) -> Scene:
    sub = config.subdivision
    print(f"[Scene] Building cube scene: subdivision={sub}, inner_cube={config.inner_cube}")
    scene = Scene()
    wall = (config.wall_reflectance,) * 3

    for face in CUBE_FACES:
        _make_grid_on_quad(scene, CUBE_VERTICES[list(face)], sub, sub, material=wall)

    if config.inner_cube:
        inner = transform_points(
            CUBE_VERTICES,
            scale=config.inner_scale,
            rotations=config.inner_rotations,
            offset=config.inner_offset,
        )
        inner_sub = max(1, sub // 2)
        for face in flip_faces(CUBE_FACES):
            _make_grid_on_quad(
                scene,
                inner[list(face)],
                inner_sub,
                inner_sub,
                material=wall,
                is_specular=True,
            )

    print(f"[Scene] Total patches: {len(scene)}, vertices: {scene.vertices.shape[0]}")
    return scene


def init_lighting(scene: Scene, config: SceneConfig) -> int:
    """Turn the top-centre ceiling patches into lights and tint the side walls.

    Returns the number of emitters.
    """
    h = config.light_half_size
    count = 0
    for p, c in zip(scene.patches, scene.centres()):
        if abs(c[0]) < h and abs(c[2]) < h and c[1] > 0.9:
            p.material = np.array(config.light_colour, dtype=np.float64)
            p.radiance = p.material.copy()
            p.is_emitter = True
            count += 1
        if c[0] < -0.999:
            p.material = p.material * np.asarray(config.left_wall_tint)
        elif c[0] > 0.999:
            p.material = p.material * np.asarray(config.right_wall_tint)
    print(f"[Scene] Lighting initialised: {count} emitter patches.")
    return count
