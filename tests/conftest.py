import pytest

from quads import SMALL_BOX
from radiosity.scene import build_cube_scene, init_lighting
from radiosity.transfers import AnalyticTransferCalculator


@pytest.fixture
def small_box():
    scene = build_cube_scene(SMALL_BOX)
    init_lighting(scene, SMALL_BOX)
    return scene


@pytest.fixture
def box_transfers(small_box):
    return AnalyticTransferCalculator(small_box).calc_all_lights()
