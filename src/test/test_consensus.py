"""
Unit tests for consensus evaluation.
"""

import numpy as np
import pytest

from seq_ransac.consensus import evaluate_consensus
from seq_ransac.errors import InvalidParameterError
from seq_ransac.plane_estimation import PlaneParams, estimate_plane_optimal


FLOOR = PlaneParams(0.0, 0.0, 1.0, 0.0)


class TestEvaluateConsensus:
    """Tests for evaluate_consensus."""

    def test_index_aligned(self, tilted_plane_cloud):
        plane = estimate_plane_optimal(tilted_plane_cloud[:900])

        result = evaluate_consensus(tilted_plane_cloud, plane, 0.01)

        assert len(result.distances) == len(tilted_plane_cloud)
        assert len(result.is_inlier) == len(tilted_plane_cloud)
        assert result.inlier_count == int(np.sum(result.is_inlier))
        assert np.all(result.is_inlier[:900])

    def test_distances_are_absolute(self):
        points = np.array([[0.0, 0.0, -2.0], [0.0, 0.0, 0.5], [3.0, 4.0, 0.0]])

        result = evaluate_consensus(points, FLOOR, 1.0)

        np.testing.assert_allclose(result.distances, [2.0, 0.5, 0.0])
        np.testing.assert_array_equal(result.is_inlier, [False, True, True])
        np.testing.assert_array_equal(result.inlier_indices, [1, 2])
        np.testing.assert_array_equal(result.outlier_indices, [0])
        assert result.inlier_ratio == pytest.approx(2 / 3)

    def test_point_at_threshold_is_outlier(self):
        points = np.array([[0.0, 0.0, 0.5], [0.0, 0.0, -0.5], [1.0, 1.0, 0.25]])

        result = evaluate_consensus(points, FLOOR, 0.5)

        np.testing.assert_array_equal(result.is_inlier, [False, False, True])
        assert result.inlier_count == 1

    def test_reevaluating_inliers_keeps_all(self, tilted_plane_cloud):
        rng = np.random.default_rng(3)
        noisy = tilted_plane_cloud + rng.normal(0, 0.005, tilted_plane_cloud.shape)
        plane = estimate_plane_optimal(noisy[:900])

        first = evaluate_consensus(noisy, plane, 0.01)
        inliers = noisy[first.is_inlier]
        second = evaluate_consensus(inliers, plane, 0.01)

        assert second.inlier_count == len(inliers)

    def test_larger_threshold_never_loses_inliers(self, tilted_plane_cloud):
        plane = estimate_plane_optimal(tilted_plane_cloud)

        counts = [
            evaluate_consensus(tilted_plane_cloud, plane, threshold).inlier_count
            for threshold in (0.001, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0)
        ]

        assert counts == sorted(counts)

    def test_input_not_modified_and_output_read_only(self):
        points = np.array([[0.0, 0.0, 1.0], [0.0, 0.0, 0.0], [1.0, 2.0, 0.001]])
        original = points.copy()

        result = evaluate_consensus(points, FLOOR, 0.01)

        np.testing.assert_array_equal(points, original)
        assert not result.distances.flags.writeable
        assert not result.is_inlier.flags.writeable

    def test_empty_point_set(self):
        result = evaluate_consensus(np.empty((0, 3)), FLOOR, 0.1)
        assert result.inlier_count == 0
        assert result.inlier_ratio == 0.0

    @pytest.mark.parametrize('threshold', [0.0, -0.1, float('nan'), float('inf'), None, '0.1', True])
    def test_invalid_threshold(self, threshold):
        with pytest.raises(InvalidParameterError):
            evaluate_consensus(np.zeros((3, 3)), FLOOR, threshold)

    def test_invalid_threshold_is_value_error(self):
        with pytest.raises(ValueError):
            evaluate_consensus(np.zeros((3, 3)), FLOOR, 0)
