"""
Tests for image.geometry module.
"""

import cv2
import pytest

from image.geometry import angle_difference, normalize_angle, rotate_point


class TestNormalizeAngle:
    """Tests for angle normalization."""

    @pytest.mark.parametrize(
        "angle,angle_format,expected",
        [
            (370.0, "0_360", 10.0),
            (-30.0, "0_360", 330.0),
            (190.0, "-180_180", -170.0),
            (-190.0, "-180_180", 170.0),
            (200.0, "0_180", 20.0),
            (-45.0, "0_180", 135.0),
        ],
    )
    def test_formats(self, angle, angle_format, expected):
        assert normalize_angle(angle, angle_format) == pytest.approx(expected)

    def test_invalid_format(self):
        with pytest.raises(ValueError):
            normalize_angle(10.0, "radians")


class TestAngleDifference:
    """Tests for angle comparison."""

    def test_wraparound(self):
        assert angle_difference(359.0, 1.0) == pytest.approx(2.0)
        assert angle_difference(-170.0, 170.0) == pytest.approx(20.0)

    def test_symmetry_period(self):
        """A cross turned 92 degrees is 2 degrees away modulo 90."""
        assert angle_difference(92.0, 0.0, period=90.0) == pytest.approx(2.0)
        assert angle_difference(-43.0, 47.0, period=90.0) == pytest.approx(0.0)


class TestRotatePoint:
    """Tests for point rotation about a pivot."""

    def test_pivot_is_fixed(self):
        assert rotate_point(5.0, 7.0, (5.0, 7.0), 33.0) == pytest.approx((5.0, 7.0))

    def test_quarter_turn(self):
        """In image coordinates +90 degrees maps +x onto +y."""
        x, y = rotate_point(11.0, 1.0, (1.0, 1.0), 90.0)

        assert x == pytest.approx(1.0)
        assert y == pytest.approx(11.0)

    @pytest.mark.parametrize("angle", [15.0, -40.0, 123.0])
    def test_inverts_opencv_rotation(self, angle):
        """Undoes cv2.getRotationMatrix2D for the same angle and pivot."""
        pivot = (62.0, 62.0)
        M = cv2.getRotationMatrix2D(pivot, angle, 1.0)
        px, py = 80.0, 30.0
        rx = M[0, 0] * px + M[0, 1] * py + M[0, 2]
        ry = M[1, 0] * px + M[1, 1] * py + M[1, 2]

        x, y = rotate_point(rx, ry, pivot, angle)

        assert x == pytest.approx(px)
        assert y == pytest.approx(py)
