"""
Exceptions raised by the RANSAC plane fitting core.
"""


class RANSACError(Exception):
    """Base class for all plane fitting failures."""


class InsufficientPointsError(RANSACError):
    """Fewer points were supplied than a plane fit requires."""

    def __init__(self, num_points: int, required: int = 3):
        self.num_points = num_points
        self.required = required
        super().__init__(
            f'Plane fitting needs at least {required} points, got {num_points}'
        )


class DegenerateInputError(RANSACError):
    """Points are coincident or collinear, so the plane normal is undefined."""


class NoConsensusFoundError(RANSACError):
    """RANSAC finished without recording an acceptable plane."""


class InvalidParameterError(RANSACError, ValueError):
    """A threshold, iteration count, plane count or point array is invalid."""


class FitCancelledError(RANSACError):
    """The cancellation token was set while a fit was running."""
