"""
Pytest configuration and fixtures for Part Template Locator tests
"""

import cv2
import numpy as np
import pytest

from models import LocateParams


class SceneBuilder:
    """Helpers to compose synthetic scenes with a known part pose."""

    @staticmethod
    def paste(canvas: np.ndarray, template: np.ndarray, top_left) -> np.ndarray:
        """Copy template into canvas with its upper-left corner at (x, y)."""
        x, y = top_left
        th, tw = template.shape[:2]
        canvas[y : y + th, x : x + tw] = template
        return canvas

    @staticmethod
    def rotation_matrix(shape, angle: float) -> np.ndarray:
        """Matrix turning a scene so the locator reports `angle` for it."""
        h, w = shape[:2]
        center = ((w - 1) / 2.0, (h - 1) / 2.0)
        return cv2.getRotationMatrix2D(center, -angle, 1.0)

    def rotate(self, scene: np.ndarray, angle: float) -> np.ndarray:
        """Rotate a whole scene about its center with a black border."""
        h, w = scene.shape[:2]
        M = self.rotation_matrix(scene.shape, angle)
        return cv2.warpAffine(
            scene,
            M,
            (w, h),
            flags=cv2.INTER_LINEAR,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=0,
        )

    @staticmethod
    def transform_point(M: np.ndarray, x: float, y: float):
        """Apply a 2x3 affine matrix to a point."""
        return (
            M[0, 0] * x + M[0, 1] * y + M[0, 2],
            M[1, 0] * x + M[1, 1] * y + M[1, 2],
        )


@pytest.fixture
def scene_builder():
    """Scene composition helpers"""
    return SceneBuilder()


@pytest.fixture
def crosshair_template():
    """50x50 crosshair: white bars on black, symmetric under 90 degree turns"""
    template = np.zeros((50, 50, 3), dtype=np.uint8)
    cv2.rectangle(template, (5, 21), (44, 28), (255, 255, 255), -1)
    cv2.rectangle(template, (21, 5), (28, 44), (255, 255, 255), -1)
    return template


@pytest.fixture
def l_template():
    """60x60 L-shaped part with no rotational symmetry"""
    template = np.zeros((60, 60, 3), dtype=np.uint8)
    cv2.rectangle(template, (12, 8), (22, 50), (255, 255, 255), -1)
    cv2.rectangle(template, (12, 40), (48, 50), (255, 255, 255), -1)
    cv2.circle(template, (44, 16), 4, (160, 160, 160), -1)
    return template


@pytest.fixture
def crosshair_scene(crosshair_template, scene_builder):
    """200x200 scene with the crosshair centered at (99.5, 99.5)"""
    scene = np.zeros((200, 200, 3), dtype=np.uint8)
    return scene_builder.paste(scene, crosshair_template, (75, 75))


@pytest.fixture
def l_scene(l_template, scene_builder):
    """240x240 scene with the L part centered at (119.5, 119.5)"""
    scene = np.zeros((240, 240, 3), dtype=np.uint8)
    return scene_builder.paste(scene, l_template, (90, 90))


@pytest.fixture
def noise_scene():
    """200x200 uniform noise, seeded"""
    rng = np.random.default_rng(1234)
    return rng.integers(0, 256, size=(200, 200, 3), dtype=np.uint8)


@pytest.fixture
def default_params():
    """Default locator parameters"""
    return LocateParams()
