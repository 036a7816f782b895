"""
Unit tests for closed-form plane estimation.
"""

import itertools

import numpy as np
import pytest

from seq_ransac.errors import DegenerateInputError, InsufficientPointsError
from seq_ransac.plane_estimation import PlaneParams, estimate_plane_optimal


class TestEstimatePlaneOptimal:
    """Tests for estimate_plane_optimal."""

    def test_coplanar_points_have_zero_residual(self):
        """Noise-free points on x + y + z = 1 lie on the fitted plane."""
        rng = np.random.default_rng(0)
        x = rng.uniform(-5, 5, 200)
        y = rng.uniform(-5, 5, 200)
        points = np.column_stack([x, y, 1 - x - y])

        plane = estimate_plane_optimal(points)

        assert np.max(np.abs(plane.signed_distances(points))) < 1e-9
        assert plane.a ** 2 + plane.b ** 2 + plane.c ** 2 == pytest.approx(1.0)

    def test_three_points_define_unique_plane(self):
        points = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]])
        s = 1 / np.sqrt(3)
        expected = PlaneParams(s, s, s, -s)

        for order in itertools.permutations(range(3)):
            plane = estimate_plane_optimal(points[list(order)])
            assert plane.is_equivalent(expected, atol=1e-9)

    def test_horizontal_plane_offset(self):
        """Centroid lies on the plane, so D matches the plane height."""
        points = np.array([
            [0.0, 0.0, 2.0],
            [1.0, 0.0, 2.0],
            [0.0, 1.0, 2.0],
            [1.0, 1.0, 2.0],
        ])

        plane = estimate_plane_optimal(points).canonical()

        np.testing.assert_allclose(plane.as_array(), [0.0, 0.0, 1.0, -2.0], atol=1e-12)

    def test_accepts_lists(self):
        plane = estimate_plane_optimal([[0, 0, 0], [1, 0, 0], [0, 1, 0]])
        assert abs(plane.c) == pytest.approx(1.0)

    def test_too_few_points(self):
        with pytest.raises(InsufficientPointsError):
            estimate_plane_optimal(np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]]))

    def test_collinear_points(self):
        points = np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 1.0], [2.0, 2.0, 2.0], [3.0, 3.0, 3.0]])
        with pytest.raises(DegenerateInputError):
            estimate_plane_optimal(points)

    def test_coincident_points(self):
        points = np.ones((5, 3))
        with pytest.raises(DegenerateInputError):
            estimate_plane_optimal(points)

    @pytest.mark.parametrize('value', [np.nan, np.inf, -np.inf])
    def test_non_finite_points(self, value):
        points = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
        points[0, 2] = value
        with pytest.raises(DegenerateInputError):
            estimate_plane_optimal(points)

    def test_overflowing_scatter_matrix(self):
        points = np.array([[0.0, 0.0, 0.0], [1e200, 0.0, 0.0], [0.0, 1e200, 0.0]])
        with pytest.raises(DegenerateInputError):
            estimate_plane_optimal(points)

    def test_input_not_modified(self):
        rng = np.random.default_rng(1)
        points = rng.uniform(-1, 1, (20, 3))
        original = points.copy()

        estimate_plane_optimal(points)

        np.testing.assert_array_equal(points, original)


class TestPlaneParams:
    """Tests for the PlaneParams value type."""

    def test_canonical_flips_sign(self):
        plane = PlaneParams(0.0, 0.0, -1.0, 2.0)
        assert plane.canonical() == PlaneParams(0.0, 0.0, 1.0, -2.0)

    def test_opposite_signs_are_equivalent(self):
        plane = PlaneParams(0.6, 0.8, 0.0, -1.0)
        assert plane.is_equivalent(plane.flipped())
        assert not plane.is_equivalent(PlaneParams(0.6, 0.8, 0.0, 1.0))

    def test_angle_between_orthogonal_planes(self):
        floor = PlaneParams(0.0, 0.0, 1.0, 0.0)
        wall = PlaneParams(1.0, 0.0, 0.0, -3.0)
        assert floor.angle_to(wall) == pytest.approx(90.0)
        assert floor.angle_to(floor.flipped()) == pytest.approx(0.0, abs=1e-6)

    def test_fixed_arity(self):
        plane = PlaneParams(1.0, 0.0, 0.0, 0.5)
        assert tuple(plane) == (1.0, 0.0, 0.0, 0.5)
        assert plane.as_array().shape == (4,)
        with pytest.raises(AttributeError):
            plane.a = 2.0
