"""
Point-to-plane differences and inlier/outlier separation.
"""

import numbers
from dataclasses import dataclass

import numpy as np

from .errors import InvalidParameterError
from .plane_estimation import PlaneParams
from .point_cloud_handler import PointCloudHandler


@dataclass(frozen=True)
class ConsensusResult:
    """Per-point distances and inlier flags, index-aligned with the input points."""
    distances: np.ndarray  # |Ax + By + Cz + D| per point
    is_inlier: np.ndarray  # distance < threshold
    inlier_count: int

    @property
    def inlier_indices(self) -> np.ndarray:
        return np.flatnonzero(self.is_inlier)

    @property
    def outlier_indices(self) -> np.ndarray:
        return np.flatnonzero(~self.is_inlier)

    @property
    def inlier_ratio(self) -> float:
        if len(self.is_inlier) == 0:
            return 0.0
        return self.inlier_count / len(self.is_inlier)


def check_threshold(threshold: float) -> float:
    if isinstance(threshold, bool) or not isinstance(threshold, numbers.Real):
        raise InvalidParameterError(
            f'Distance threshold must be a real number, got {threshold!r}'
        )
    threshold = float(threshold)
    if not np.isfinite(threshold) or threshold <= 0:
        raise InvalidParameterError(
            f'Distance threshold must be a positive finite number, got {threshold}'
        )
    return threshold


def evaluate_consensus(
    points: np.ndarray,
    plane: PlaneParams,
    threshold: float
) -> ConsensusResult:
    """
    Compute plane-point distances and classify inliers.

    The plane must be normalized (A^2 + B^2 + C^2 = 1) for the distances to
    be Euclidean. A point is an inlier only if its distance is strictly
    below the threshold; a point exactly at the threshold is an outlier.

    Args:
        points: Array of shape (N, 3)
        plane: Plane parameters
        threshold: Inlier distance threshold, > 0

    Returns:
        ConsensusResult with read-only arrays
    """
    threshold = check_threshold(threshold)
    points = PointCloudHandler.as_xyz(points)

    distances = np.abs(plane.signed_distances(points))
    is_inlier = distances < threshold
    distances.setflags(write=False)
    is_inlier.setflags(write=False)

    return ConsensusResult(
        distances=distances,
        is_inlier=is_inlier,
        inlier_count=int(np.count_nonzero(is_inlier))
    )
