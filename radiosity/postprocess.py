import numpy as np  # type: ignore

from .errors import DegenerateGeometryError
from .scene import Scene

SPECULAR_POWER = 32.0
SPECULAR_FACTOR = 0.02
TARGET_BRIGHTNESS = 1.0

EPS = 1e-12


def _normalise_rows(v: np.ndarray) -> np.ndarray:
    return v / np.linalg.norm(v, axis=-1, keepdims=True)


def apply_specular(
    scene: Scene,
    camera_position: np.ndarray,
    exponent: float = SPECULAR_POWER,
    intensity: float = SPECULAR_FACTOR,
) -> np.ndarray:
    """Add Phong highlights from every emitter to specular non-emitters.

    The highlight is white glare added on top of the converged radiance; it is
    not filtered by the material. The result depends on `camera_position`, so
    callers pass the current view position. Returns the per-patch highlight.
    """
    cam = np.asarray(camera_position, dtype=np.float64)
    centres = scene.centres()
    normals = scene.normals()
    emitters = scene.emitter_mask()
    receivers = np.nonzero(scene.specular_mask() & ~emitters)[0]
    sources = centres[emitters]
    highlight = np.zeros(len(scene))
    if receivers.size == 0 or sources.shape[0] == 0:
        return highlight

    print(f"[Specular] Computing highlights: {receivers.size} receivers, {sources.shape[0]} emitters")
    for i in receivers:
        to_cam = cam - centres[i]
        if np.linalg.norm(to_cam) < EPS:
            raise DegenerateGeometryError(f"camera sits on the centre of patch {i}")
        view = -to_cam / np.linalg.norm(to_cam)
        light = centres[i][None, :] - sources
        lengths = np.linalg.norm(light, axis=1)
        light = light[lengths > EPS] / lengths[lengths > EPS, None]
        n = normals[i]
        reflect = _normalise_rows(2.0 * (light @ n)[:, None] * n[None, :] - light)
        spec = np.maximum(reflect @ view, 0.0) ** exponent
        highlight[i] = float(np.sum(spec)) * intensity

    scene.set_radiances(scene.radiances() + highlight[:, None])
    return highlight


def normalise_brightness(
    scene: Scene,
    camera_position: np.ndarray,
    target: float = TARGET_BRIGHTNESS,
) -> float:
    """Scale non-emitters so the brightest one facing the camera reaches target.

    Only patches facing the camera set the peak, but every non-emitter is
    scaled. Brighter scenes are left alone. Returns the scale applied.
    """
    cam = np.asarray(camera_position, dtype=np.float64)
    emitters = scene.emitter_mask()
    facing = np.einsum("ij,ij->i", cam[None, :] - scene.centres(), scene.normals()) > 0.0
    radiance = scene.radiances()
    sample = radiance[facing & ~emitters]
    peak = float(sample.max()) if sample.size else 0.0
    if peak <= 0.0:
        print("[Normalise] No lit non-emitter faces the camera; leaving brightness unchanged.")
        return 1.0
    scale = target / peak if peak < target else 1.0
    radiance[~emitters] *= scale
    scene.set_radiances(radiance)
    print(f"[Normalise] Peak {peak:.4f}, scale {scale:.4f}")
    return scale
