"""
Point Cloud Array Handling.

This module provides utilities for preparing XYZ point arrays for RANSAC
processing: coercion to an (N, 3) float array, removal of invalid points and
random subsampling.
"""

import numpy as np
from typing import Optional, Tuple

from .errors import InvalidParameterError


class PointCloudHandler:
    """
    Helpers for validating and reducing XYZ point arrays.
    """

    @staticmethod
    def as_xyz(points) -> np.ndarray:
        """
        Convert an array-like of points to a float64 array of shape (N, 3).

        Args:
            points: Anything numpy can turn into an (N, 3) array

        Returns:
            Numpy array of shape (N, 3). The input is returned unchanged
            when it is already a float64 array of that shape.

        Raises:
            InvalidParameterError: if the data is not a list of 3D points
        """
        try:
            array = np.asarray(points, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise InvalidParameterError(f'Points are not numeric: {exc}') from exc

        if array.ndim == 1 and array.size == 0:
            return array.reshape(0, 3)
        if array.ndim != 2 or array.shape[1] != 3:
            raise InvalidParameterError(
                f'Points must have shape (N, 3), got {array.shape}'
            )
        return array

    @staticmethod
    def filter_invalid_points(points: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Filter out NaN and Inf values from point cloud.

        Args:
            points: Numpy array of shape (N, 3)

        Returns:
            Tuple of (filtered_points, valid_indices)
        """
        points = PointCloudHandler.as_xyz(points)
        valid_mask = np.all(np.isfinite(points), axis=1)
        valid_indices = np.where(valid_mask)[0]
        return points[valid_mask], valid_indices

    @staticmethod
    def subsample_points(
        points: np.ndarray,
        max_points: int = 10000,
        random_seed: Optional[int] = None
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Randomly subsample points if there are too many.

        Args:
            points: Numpy array of shape (N, 3)
            max_points: Maximum number of points to keep
            random_seed: Optional seed for reproducibility

        Returns:
            Tuple of (subsampled_points, selected_indices), indices sorted
        """
        if max_points <= 0:
            raise InvalidParameterError(f'max_points must be positive, got {max_points}')

        points = PointCloudHandler.as_xyz(points)
        if len(points) <= max_points:
            return points, np.arange(len(points))

        rng = np.random.default_rng(random_seed)
        indices = np.sort(rng.choice(len(points), max_points, replace=False))
        return points[indices], indices
