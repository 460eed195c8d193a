from radiosity.camera import Camera
from radiosity.postprocess import apply_specular, normalise_brightness
from radiosity.preview import render_preview, save_image
from radiosity.scene import build_cube_scene, init_lighting
from radiosity.solver import solve
from radiosity.transfers import create_transfer_calculator
from settings import (
    scene_config,
    transfer_method,
    transfer_resolution,
    convergence_target,
    max_iterations,
    cam_pos,
    cam_look,
    cam_up,
    specular_power,
    specular_factor,
    target_brightness,
    preview_resolution,
    output_dir,
)


def main():
    print("[Main] Building geometry...")
    scene = build_cube_scene(scene_config)
    init_lighting(scene, scene_config)

    print(f"[Main] Computing transfers ({transfer_method})...")
    options = {"resolution": transfer_resolution} if transfer_method == "render" else {}
    with create_transfer_calculator(transfer_method, scene, **options) as calc:
        transfers = calc.calc_all_lights()

    print("[Main] Solving radiosity...")
    solve(scene, transfers, threshold=convergence_target, max_iterations=max_iterations)

    print("[Main] Computing specularity...")
    apply_specular(scene, cam_pos, exponent=specular_power, intensity=specular_factor)

    print("[Main] Normalising brightness...")
    normalise_brightness(scene, cam_pos, target=target_brightness)

    camera = Camera(cam_pos, cam_look, cam_up)
    img = render_preview(scene, camera, resolution=preview_resolution)
    save_image(img, output_dir / f"scene_{transfer_method}.png")


if __name__ == "__main__":
    main()
