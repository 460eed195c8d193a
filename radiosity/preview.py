import numpy as np  # type: ignore
from pathlib import Path

from tqdm import tqdm  # type: ignore

from .camera import Camera
from .ids import NUM_CHANS
from .scene import Scene
from .surface import RaycastSurface

GAMMA = 2.2


def radiance_to_rgba(radiance: np.ndarray) -> np.ndarray:
    """Clamp to [0, 1], gamma-encode and pack as opaque RGBA bytes."""
    val = np.power(np.clip(radiance, 0.0, 1.0), 1.0 / GAMMA)
    rgba = np.full((radiance.shape[0], NUM_CHANS), 255, dtype=np.uint8)
    rgba[:, :3] = np.round(val * 255.0).astype(np.uint8)
    return rgba


def render_preview(scene: Scene, camera: Camera, resolution: int = 256) -> np.ndarray:
    """Flat-shaded view of the patch radiance, shape (R, R, 3), top row first."""
    print(f"[Preview] Rendering {resolution}x{resolution} preview of {len(scene)} patches")
    forward, up, _ = camera.basis()
    colours = radiance_to_rgba(scene.radiances())
    with RaycastSurface(resolution) as surface:
        surface.set_view(camera.eye, forward, up)
        surface.clear()
        for corners, rgba in tqdm(
            zip(scene.corners(), colours), total=len(scene), desc="Preview", leave=False
        ):
            surface.draw_quad(corners, rgba)
        pixels = np.frombuffer(surface.read_pixels(), dtype=np.uint8)
    img = pixels.reshape(resolution, resolution, NUM_CHANS)[::-1, :, :3]
    return img.astype(np.float32) / 255.0


def save_image(img: np.ndarray, out_path: Path) -> None:
    import matplotlib.pyplot as plt  # type: ignore

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    plt.imsave(str(out_path), np.clip(img, 0, 1))
    print(f"[Preview] Saved image to {out_path}")
