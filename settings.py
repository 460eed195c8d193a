import numpy as np  # type: ignore
from pathlib import Path

from radiosity.scene import SceneConfig

# ---- Scene ----
# Break up each base quad into subdivision^2 subquads for radiosity
# calculations (the inner cube uses half of it).
subdivision = 8
wall_reflectance = 0.75

scene_config = SceneConfig(
    subdivision=subdivision,
    wall_reflectance=wall_reflectance,
    inner_cube=True,
    inner_scale=0.4,
    inner_offset=(0.0, -0.25, 0.0),
    light_half_size=0.5,
    light_colour=(2.0, 2.0, 2.0),
    left_wall_tint=(1.0, 0.5, 0.5),
    right_wall_tint=(0.5, 0.5, 1.0),
)

# ---- Transfer calculation ----
# Options: "render" (cube-map integration) or "analytic" (no occlusion)
transfer_method = "render"
# Square resolution of each cube-map frame
transfer_resolution = 64

# ---- Solver ----
# Relative change in total light by the point we stop iterating.
convergence_target = 0.001
# Safety cap; None iterates until convergence however long it takes
max_iterations = 10000

# ---- Viewer (drives specular highlights and brightness normalisation) ----
cam_pos = np.array([0.0, 0.0, -3.0])
cam_look = np.array([0.0, 0.0, 0.0])
cam_up = np.array([0.0, 1.0, 0.0])

specular_power = 32.0
specular_factor = 0.02
target_brightness = 1.0

# ---- Preview ----
preview_resolution = 512
output_dir = Path(__file__).parent / "outputs"
