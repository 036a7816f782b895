"""
Sequential RANSAC - robust detection of multiple planes in 3D point clouds.

This package provides closed-form plane estimation, consensus evaluation,
RANSAC plane fitting and sequential extraction of several planes from one
point cloud.
"""

__version__ = '1.0.0'

from .errors import (
    RANSACError,
    InsufficientPointsError,
    DegenerateInputError,
    NoConsensusFoundError,
    InvalidParameterError,
    FitCancelledError,
)
from .plane_estimation import PlaneParams, estimate_plane_optimal
from .consensus import ConsensusResult, evaluate_consensus
from .ransac_core import (
    RANSACPlane,
    RANSACResult,
    MultiPlaneRANSAC,
    ExtractionResult,
    ExtractionReport,
    FitComparison,
    fit_plane_ransac,
    extract_planes,
    compare_fits,
)
from .point_cloud_handler import PointCloudHandler
from .config import RANSACConfig, load_config
from .pipeline import detect_planes

__all__ = [
    'RANSACError',
    'InsufficientPointsError',
    'DegenerateInputError',
    'NoConsensusFoundError',
    'InvalidParameterError',
    'FitCancelledError',
    'PlaneParams',
    'estimate_plane_optimal',
    'ConsensusResult',
    'evaluate_consensus',
    'RANSACPlane',
    'RANSACResult',
    'MultiPlaneRANSAC',
    'ExtractionResult',
    'ExtractionReport',
    'FitComparison',
    'fit_plane_ransac',
    'extract_planes',
    'compare_fits',
    'PointCloudHandler',
    'RANSACConfig',
    'load_config',
    'detect_planes',
]
