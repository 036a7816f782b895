"""
Closed-form plane estimation.

The plane is given in implicit form Ax + By + Cz + D = 0 with a unit normal,
so A*x + B*y + C*z + D is the signed Euclidean distance of (x, y, z) to it.
"""

from dataclasses import dataclass

import numpy as np

from .errors import DegenerateInputError, InsufficientPointsError
from .point_cloud_handler import PointCloudHandler


# Ratio of middle to largest eigenvalue below which the points are collinear
DEGENERACY_TOLERANCE = 1e-12


@dataclass(frozen=True)
class PlaneParams:
    """
    Coefficients of the plane Ax + By + Cz + D = 0.

    (a, b, c, d) and (-a, -b, -c, -d) describe the same plane; use
    is_equivalent() or canonical() before comparing two planes.
    """
    a: float
    b: float
    c: float
    d: float

    @property
    def normal(self) -> np.ndarray:
        return np.array([self.a, self.b, self.c])

    def as_array(self) -> np.ndarray:
        return np.array([self.a, self.b, self.c, self.d])

    def signed_distances(self, points: np.ndarray) -> np.ndarray:
        """Signed distance of every row of points to the plane."""
        points = np.asarray(points, dtype=np.float64)
        return points @ self.normal + self.d

    def flipped(self) -> 'PlaneParams':
        return PlaneParams(-self.a, -self.b, -self.c, -self.d)

    def canonical(self) -> 'PlaneParams':
        """Return the representation whose dominant normal component is positive."""
        normal = self.normal
        if normal[np.argmax(np.abs(normal))] < 0:
            return self.flipped()
        return self

    def is_equivalent(self, other: 'PlaneParams', atol: float = 1e-6) -> bool:
        coefficients = self.as_array()
        other_coefficients = other.as_array()
        return bool(
            np.allclose(coefficients, other_coefficients, atol=atol)
            or np.allclose(coefficients, -other_coefficients, atol=atol)
        )

    def angle_to(self, other: 'PlaneParams') -> float:
        """Acute angle between the two plane normals, in degrees."""
        cos_angle = abs(float(np.dot(self.normal, other.normal)))
        return float(np.degrees(np.arccos(np.clip(cos_angle, 0.0, 1.0))))

    def __iter__(self):
        return iter((self.a, self.b, self.c, self.d))


def estimate_plane_optimal(points: np.ndarray) -> PlaneParams:
    """
    Fit a plane to the given points in the total least squares sense.

    The normal is the eigenvector of the centred scatter matrix X^T X that
    belongs to the smallest eigenvalue, i.e. the direction of least spread.
    D is chosen so that the centroid lies on the plane.

    Args:
        points: Array of shape (N, 3), N >= 3

    Returns:
        PlaneParams with a unit normal

    Raises:
        InsufficientPointsError: fewer than 3 points
        DegenerateInputError: the points are coincident, collinear or not
            finite
    """
    points = PointCloudHandler.as_xyz(points)
    if len(points) < 3:
        raise InsufficientPointsError(len(points))
    if not np.all(np.isfinite(points)):
        raise DegenerateInputError('Points contain NaN or Inf coordinates')

    centroid = np.mean(points, axis=0)
    centered = points - centroid
    with np.errstate(over='ignore', invalid='ignore'):
        scatter = centered.T @ centered
    # Finite coordinates can still overflow the scatter matrix
    if not np.all(np.isfinite(scatter)):
        raise DegenerateInputError('Scatter matrix overflows, coordinates are too large')

    # eigh returns eigenvalues in ascending order
    try:
        eigenvalues, eigenvectors = np.linalg.eigh(scatter)
    except np.linalg.LinAlgError as exc:
        raise DegenerateInputError(f'Scatter matrix decomposition failed: {exc}') from exc

    if eigenvalues[2] <= 0.0:
        raise DegenerateInputError('All points coincide')
    if eigenvalues[1] <= DEGENERACY_TOLERANCE * eigenvalues[2]:
        raise DegenerateInputError('Points are collinear')

    normal = eigenvectors[:, 0]
    normal = normal / np.linalg.norm(normal)
    d = -float(np.dot(normal, centroid))

    return PlaneParams(float(normal[0]), float(normal[1]), float(normal[2]), d)
