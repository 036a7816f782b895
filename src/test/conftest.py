"""
Synthetic point clouds shared by the tests.
"""

import os
import sys

import numpy as np
import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


@pytest.fixture
def tilted_plane_cloud():
    """900 points exactly on x + y + z - 1 = 0 followed by 100 random outliers."""
    rng = np.random.default_rng(42)
    n_inliers = 900
    x = rng.uniform(-1, 1, n_inliers)
    y = rng.uniform(-1, 1, n_inliers)
    z = 1 - x - y
    plane_points = np.column_stack([x, y, z])

    outliers = rng.uniform(-1, 1, (100, 3))
    return np.vstack([plane_points, outliers])


@pytest.fixture
def cube_corner_cloud():
    """300 points on each of the planes x = 0, y = 0 and z = 0, no outliers."""
    rng = np.random.default_rng(7)
    n = 300
    a = rng.uniform(0.1, 1.0, (3, n))
    b = rng.uniform(0.1, 1.0, (3, n))
    zeros = np.zeros(n)

    wall_x = np.column_stack([zeros, a[0], b[0]])
    wall_y = np.column_stack([a[1], zeros, b[1]])
    floor = np.column_stack([a[2], b[2], zeros])
    return np.vstack([wall_x, wall_y, floor])
