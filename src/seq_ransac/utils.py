"""
Geometry helpers for detected planes.
"""

from itertools import combinations
from typing import Sequence, Tuple

import numpy as np

from .plane_estimation import PlaneParams
from .point_cloud_handler import PointCloudHandler


def plane_angle(first: PlaneParams, second: PlaneParams) -> float:
    """Acute angle between two planes in degrees (0 = parallel)."""
    return first.angle_to(second)


def orthogonality_error(planes: Sequence[PlaneParams]) -> float:
    """
    Largest deviation from 90 degrees over all pairs of planes.

    Returns 0.0 for fewer than two planes.
    """
    errors = [90.0 - plane_angle(p, q) for p, q in combinations(planes, 2)]
    return max(errors, default=0.0)


def plane_extent(
    points: np.ndarray,
    plane: PlaneParams,
    padding: float = 0.0
) -> Tuple[float, float]:
    """
    Size of a planar patch.

    The points are projected onto the plane and measured along the main
    axis of their spread and the in-plane axis perpendicular to it.

    Args:
        points: Inlier points of the plane, shape (N, 3)
        plane: Plane the points belong to
        padding: Added on both sides of each axis

    Returns:
        Tuple of (length, width) along the major and minor axis
    """
    points = PointCloudHandler.as_xyz(points)
    if len(points) == 0:
        return 2 * padding, 2 * padding

    normal = plane.normal / np.linalg.norm(plane.normal)
    centered = points - np.mean(points, axis=0)
    projected = centered - np.outer(centered @ normal, normal)

    _, _, vh = np.linalg.svd(projected, full_matrices=False)
    major = vh[0] - np.dot(vh[0], normal) * normal
    if np.linalg.norm(major) < 1e-12:
        # No spread in the plane
        return 2 * padding, 2 * padding
    major = major / np.linalg.norm(major)
    minor = np.cross(normal, major)

    length = np.ptp(projected @ major) + 2 * padding
    width = np.ptp(projected @ minor) + 2 * padding
    return float(length), float(width)
