"""
Plane detection on raw point clouds.

Cleans the cloud (invalid points, optional subsampling), runs sequential
RANSAC and maps every reported index back to the raw cloud.
"""

import dataclasses
import logging
from typing import Optional

import numpy as np

from .config import RANSACConfig
from .point_cloud_handler import PointCloudHandler
from .ransac_core import ExtractionReport

logger = logging.getLogger(__name__)


def detect_planes(
    points: np.ndarray,
    config: Optional[RANSACConfig] = None,
    cancel_token=None
) -> ExtractionReport:
    """
    Extract config.plane_count planes from a raw point cloud.

    NaN/Inf points never reach RANSAC. If config.max_points is set and the
    cloud is larger, a random subset is used. Indices in the report refer to
    rows of the raw input; dropped points appear in neither the inliers nor
    the residual.

    Args:
        points: Array-like of shape (N, 3)
        config: RANSAC parameters, defaults to RANSACConfig()
        cancel_token: Optional object with is_set()

    Returns:
        ExtractionReport in raw cloud indices
    """
    if config is None:
        config = RANSACConfig()

    points = PointCloudHandler.as_xyz(points)
    n_raw = len(points)

    # Filter invalid points
    points, valid_indices = PointCloudHandler.filter_invalid_points(points)
    if len(points) < n_raw:
        logger.warning('Dropped %d invalid points', n_raw - len(points))

    # Subsample if too many points
    if config.max_points is not None and len(points) > config.max_points:
        points, sample_indices = PointCloudHandler.subsample_points(
            points, config.max_points, config.random_seed
        )
        valid_indices = valid_indices[sample_indices]
        logger.debug('Subsampled to %d points', len(points))

    report = config.build_extractor().fit(points, cancel_token)

    results = [
        dataclasses.replace(
            result,
            inlier_indices=valid_indices[result.inlier_indices],
            residual_indices=valid_indices[result.residual_indices]
        )
        for result in report.results
    ]
    logger.info('Detected %d of %d planes', len(results), report.requested)

    return dataclasses.replace(
        report,
        results=results,
        residual_indices=valid_indices[report.residual_indices]
    )
