import numpy as np
import pytest

from quads import square
from radiosity.postprocess import SPECULAR_FACTOR, apply_specular, normalise_brightness
from radiosity.scene import Scene


def specular_scene(receiver_specular=True):
    scene = Scene()
    scene.add_quad(
        square((0, 0, 0), (0, 1, 0), 0.2),
        material=(0.3, 0.3, 0.3),
        radiance=(0.1, 0.1, 0.1),
        is_specular=receiver_specular,
    )
    scene.add_quad(
        square((0, 2, 0), (0, -1, 0), 0.2),
        material=(2.0, 2.0, 2.0),
        radiance=(2.0, 2.0, 2.0),
        is_emitter=True,
        is_specular=True,
    )
    return scene


class TestSpecular:
    def test_mirror_direction(self):
        scene = specular_scene()
        highlight = apply_specular(scene, (0.0, 3.0, 0.0))
        assert highlight[0] == pytest.approx(SPECULAR_FACTOR, rel=1e-6)
        np.testing.assert_allclose(scene.patches[0].radiance, 0.1 + SPECULAR_FACTOR, rtol=1e-6)

    def test_emitters_unchanged(self):
        scene = specular_scene()
        highlight = apply_specular(scene, (0.0, 3.0, 0.0))
        assert highlight[1] == 0.0
        np.testing.assert_allclose(scene.patches[1].radiance, 2.0)

    def test_off_axis_camera(self):
        scene = specular_scene()
        highlight = apply_specular(scene, (3.0, 0.0, 0.0))
        assert highlight[0] == pytest.approx(0.0, abs=1e-12)
        np.testing.assert_allclose(scene.patches[0].radiance, 0.1)

    def test_diffuse_patch_unchanged(self):
        scene = specular_scene(receiver_specular=False)
        apply_specular(scene, (0.0, 3.0, 0.0))
        np.testing.assert_allclose(scene.patches[0].radiance, 0.1)

    def test_sums_emitters_with_exponent(self):
        scene = Scene()
        scene.add_quad(square((0, 0, 0), (0, 1, 0), 0.2), is_specular=True)
        for x in (1.0, -1.0):
            scene.add_quad(square((x, 2, 0), (0, -1, 0), 0.2), is_emitter=True)
        # Reflections are (+-1, -2, 0) / sqrt(5); the view is (0.5, -3, 0) / sqrt(9.25).
        near = 6.5 / np.sqrt(46.25)
        far = 5.5 / np.sqrt(46.25)
        highlight = apply_specular(scene, (-0.5, 3.0, 0.0))
        assert highlight[0] == pytest.approx(SPECULAR_FACTOR * (near ** 32 + far ** 32), rel=1e-5)

        scene.patches[0].radiance = np.zeros(3)
        linear = apply_specular(scene, (-0.5, 3.0, 0.0), exponent=1.0)
        assert linear[0] == pytest.approx(SPECULAR_FACTOR * (near + far), rel=1e-5)

    def test_no_emitters(self):
        scene = specular_scene()
        scene.patches[1].is_emitter = False
        assert not apply_specular(scene, (0.0, 3.0, 0.0)).any()


def brightness_scene():
    """Two patches facing a camera at z = 5, one facing away, one emitter."""
    scene = Scene()
    scene.add_quad(square((0, 0, 0), (0, 0, 1), 0.5), radiance=(0.4, 0.2, 0.1))
    scene.add_quad(square((1, 0, 0), (0, 0, 1), 0.5), radiance=(0.1, 0.3, 0.2))
    scene.add_quad(square((2, 0, 0), (0, 0, -1), 0.5), radiance=(0.8, 0.8, 0.8))
    scene.add_quad(square((3, 0, 0), (0, 0, 1), 0.5), radiance=(2.0, 2.0, 2.0), is_emitter=True)
    return scene


CAMERA = (0.0, 0.0, 5.0)


class TestNormaliseBrightness:
    def test_scales_to_facing_peak(self):
        scene = brightness_scene()
        scale = normalise_brightness(scene, CAMERA)
        assert scale == pytest.approx(2.5)
        np.testing.assert_allclose(
            scene.radiances(),
            [[1.0, 0.5, 0.25], [0.25, 0.75, 0.5], [2.0, 2.0, 2.0], [2.0, 2.0, 2.0]],
        )

    def test_bright_scene_unchanged(self):
        scene = brightness_scene()
        scene.patches[0].radiance = np.array([1.5, 0.2, 0.1])
        before = scene.radiances()
        assert normalise_brightness(scene, CAMERA) == 1.0
        np.testing.assert_allclose(scene.radiances(), before)

    def test_dark_scene(self):
        scene = brightness_scene()
        for p in scene.patches[:3]:
            p.radiance = np.zeros(3)
        assert normalise_brightness(scene, CAMERA) == 1.0
        assert np.all(np.isfinite(scene.radiances()))

    def test_custom_target(self):
        scene = brightness_scene()
        assert normalise_brightness(scene, CAMERA, target=0.8) == pytest.approx(2.0)
