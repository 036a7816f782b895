"""
Core RANSAC Plane Fitting.

This module provides:
- RANSACPlane: robust single-plane fitting by random sampling and consensus
- MultiPlaneRANSAC: sequential RANSAC that extracts several planes one after
  another from a shrinking point set
- compare_fits: least squares fit on all points next to the robust fit
"""

import concurrent.futures
import logging
import numbers
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

import numpy as np

from .consensus import ConsensusResult, check_threshold, evaluate_consensus
from .errors import (
    DegenerateInputError,
    FitCancelledError,
    InsufficientPointsError,
    InvalidParameterError,
    NoConsensusFoundError,
    RANSACError,
)
from .plane_estimation import PlaneParams, estimate_plane_optimal
from .point_cloud_handler import PointCloudHandler
from .utils import plane_extent

logger = logging.getLogger(__name__)

MIN_SAMPLES = 3  # 3 points define a plane

# (inlier_count, trial_index, plane) of the best trial in a batch
TrialScore = Tuple[int, int, Optional[PlaneParams]]


def check_count(name: str, value, minimum: int = 1) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value < minimum:
        raise InvalidParameterError(f'{name} must be an integer >= {minimum}, got {value!r}')
    return int(value)


@dataclass
class RANSACResult:
    """Result of a single RANSAC plane fit."""
    plane: PlaneParams  # Plane refitted on the consensus set
    consensus: ConsensusResult  # Consensus of the refitted plane on all points
    inlier_ratio: float  # Ratio of inliers to total points
    num_iterations: int  # Number of iterations performed
    best_trial: int  # Index of the trial whose sample won

    @property
    def coefficients(self) -> np.ndarray:
        return self.plane.as_array()

    @property
    def inlier_indices(self) -> np.ndarray:
        return self.consensus.inlier_indices

    @property
    def outlier_indices(self) -> np.ndarray:
        return self.consensus.outlier_indices


class RANSACPlane:
    """
    RANSAC algorithm for fitting a plane to a 3D point cloud.

    Every trial fits a plane to 3 distinct random points and counts the
    points of the whole cloud closer to it than the distance threshold. The
    trial with the most inliers wins; on equal counts the earlier trial
    wins. The winning plane is finally refitted on all of its inliers.

    The iteration count is fixed; there is no early termination.
    """

    def __init__(
        self,
        max_iterations: int = 1000,
        distance_threshold: float = 0.01,
        min_inliers_ratio: float = 0.0,
        random_seed: Optional[int] = None,
        rng=None,
        n_workers: int = 1
    ):
        """
        Initialize RANSAC algorithm.

        Args:
            max_iterations: Number of RANSAC iterations
            distance_threshold: Points closer than this are inliers
            min_inliers_ratio: Minimum ratio of inliers for a valid plane
            random_seed: Optional seed for reproducibility
            rng: Optional random source with a numpy Generator style
                choice() method; overrides random_seed
            n_workers: Number of threads scoring trials
        """
        self.max_iterations = check_count('max_iterations', max_iterations)
        if (isinstance(min_inliers_ratio, bool) or not isinstance(min_inliers_ratio, numbers.Real)
                or not 0.0 <= min_inliers_ratio <= 1.0):
            raise InvalidParameterError(
                f'min_inliers_ratio must be in [0, 1], got {min_inliers_ratio}'
            )
        self.n_workers = check_count('n_workers', n_workers)
        self.distance_threshold = check_threshold(distance_threshold)
        self.min_inliers_ratio = min_inliers_ratio
        self.rng = rng if rng is not None else np.random.default_rng(random_seed)

    def _draw_samples(self, n_points: int) -> np.ndarray:
        """
        Draw the minimal samples of all trials, in trial order.

        A sample with repeated indices is redrawn, so every trial gets 3
        distinct points even from a random source that ignores replace=False.
        """
        samples = np.empty((self.max_iterations, MIN_SAMPLES), dtype=np.intp)
        for trial in range(self.max_iterations):
            sample = self.rng.choice(n_points, MIN_SAMPLES, replace=False)
            while len(np.unique(sample)) < MIN_SAMPLES:
                sample = self.rng.choice(n_points, MIN_SAMPLES, replace=False)
            samples[trial] = sample
        return samples

    def _score_trials(
        self,
        points: np.ndarray,
        samples: np.ndarray,
        start: int,
        stop: int,
        cancel_token=None
    ) -> TrialScore:
        best_count = 0
        best_trial = -1
        best_plane = None

        for trial in range(start, stop):
            if cancel_token is not None and cancel_token.is_set():
                raise FitCancelledError(f'Plane fit cancelled at trial {trial}')

            try:
                plane = estimate_plane_optimal(points[samples[trial]])
            except DegenerateInputError:
                # Collinear, coincident or non-finite sample points
                continue

            consensus = evaluate_consensus(points, plane, self.distance_threshold)

            if consensus.inlier_count > best_count:
                best_count = consensus.inlier_count
                best_trial = trial
                best_plane = plane
                logger.debug('Trial %d: %d inliers', trial, best_count)

        return best_count, best_trial, best_plane

    def _run_trials(self, points: np.ndarray, samples: np.ndarray, cancel_token=None) -> TrialScore:
        if self.n_workers == 1:
            return self._score_trials(points, samples, 0, len(samples), cancel_token)

        bounds = np.linspace(0, len(samples), self.n_workers + 1).astype(int)
        futures = []
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.n_workers) as executor:
            for start, stop in zip(bounds[:-1], bounds[1:]):
                if start == stop:
                    continue
                futures.append(executor.submit(
                    self._score_trials, points, samples, int(start), int(stop), cancel_token
                ))
            scores = [future.result() for future in futures]

        # Highest inlier count wins, ties go to the lowest trial index
        return max(scores, key=lambda score: (score[0], -score[1]))

    def fit(self, points: np.ndarray, cancel_token=None) -> RANSACResult:
        """
        Fit a plane to points using RANSAC.

        Args:
            points: Array of shape (N, 3), N >= 3
                (points with NaN or Inf coordinates are never inliers)
            cancel_token: Optional object with is_set(), e.g. threading.Event

        Returns:
            RANSACResult of the refitted plane

        Raises:
            InsufficientPointsError: fewer than 3 points
            NoConsensusFoundError: no trial produced a plane, or too few inliers
            FitCancelledError: cancel_token was set
        """
        points = PointCloudHandler.as_xyz(points)
        n_points = len(points)
        if n_points < MIN_SAMPLES:
            raise InsufficientPointsError(n_points, MIN_SAMPLES)

        samples = self._draw_samples(n_points)
        best_count, best_trial, best_plane = self._run_trials(points, samples, cancel_token)

        if best_plane is None:
            raise NoConsensusFoundError(
                f'No plane reached consensus in {self.max_iterations} iterations '
                f'on {n_points} points'
            )

        # Finally, the plane is refitted from the best consensus set
        best_consensus = evaluate_consensus(points, best_plane, self.distance_threshold)
        try:
            plane = estimate_plane_optimal(points[best_consensus.is_inlier])
        except (InsufficientPointsError, DegenerateInputError) as exc:
            logger.warning('Refit on consensus set failed (%s), keeping sample plane', exc)
            plane = best_plane

        consensus = evaluate_consensus(points, plane, self.distance_threshold)
        if consensus.inlier_count == 0 or consensus.inlier_ratio < self.min_inliers_ratio:
            raise NoConsensusFoundError(
                f'Best plane has {consensus.inlier_count}/{n_points} inliers, '
                f'below the minimum ratio {self.min_inliers_ratio}'
            )

        logger.info(
            'Plane [%.4f %.4f %.4f %.4f]: %d/%d inliers (%.1f%%), trial %d',
            plane.a, plane.b, plane.c, plane.d,
            consensus.inlier_count, n_points, 100.0 * consensus.inlier_ratio, best_trial
        )

        return RANSACResult(
            plane=plane,
            consensus=consensus,
            inlier_ratio=consensus.inlier_ratio,
            num_iterations=self.max_iterations,
            best_trial=best_trial
        )


@dataclass
class ExtractionResult:
    """One plane of a sequential extraction and the partition it made."""
    plane: PlaneParams
    inliers: np.ndarray  # Points claimed by this plane
    residual: np.ndarray  # Points passed on to the next round
    inlier_indices: np.ndarray  # Indices into the original point cloud
    residual_indices: np.ndarray
    inlier_ratio: float  # Relative to the working set of this round

    @property
    def inlier_count(self) -> int:
        return len(self.inliers)

    @property
    def center(self) -> np.ndarray:
        """Centroid of the inliers."""
        return np.mean(self.inliers, axis=0)

    @property
    def extent(self) -> Tuple[float, float]:
        """(length, width) of the inliers along their principal in-plane axes."""
        return plane_extent(self.inliers, self.plane)


@dataclass
class ExtractionReport:
    """
    Planes found by MultiPlaneRANSAC.

    Behaves like the list of ExtractionResult objects. When fewer planes
    than requested were found, is_short is True and error holds the failure
    that stopped the extraction.
    """
    results: List[ExtractionResult]
    requested: int
    residual: np.ndarray
    residual_indices: np.ndarray
    error: Optional[RANSACError] = field(default=None)

    @property
    def planes(self) -> List[PlaneParams]:
        return [result.plane for result in self.results]

    @property
    def is_complete(self) -> bool:
        return len(self.results) == self.requested

    @property
    def is_short(self) -> bool:
        return not self.is_complete

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self) -> Iterator[ExtractionResult]:
        return iter(self.results)

    def __getitem__(self, index):
        return self.results[index]


class MultiPlaneRANSAC:
    """
    Sequential RANSAC for detecting multiple planes in a point cloud.

    Each round fits one plane to the points left over by the previous
    rounds, so every point ends up in at most one plane.
    """

    def __init__(
        self,
        plane_count: int = 3,
        max_iterations: int = 1000,
        distance_threshold: float = 0.01,
        min_inliers_ratio: float = 0.0,
        random_seed: Optional[int] = None,
        rng=None,
        n_workers: int = 1
    ):
        """
        Initialize multi-plane RANSAC.

        Args:
            plane_count: Number of planes to extract
            max_iterations: Iterations per plane
            distance_threshold: Inlier distance threshold
            min_inliers_ratio: Min inlier ratio for valid plane, per round
            random_seed: Optional seed, shared by all rounds
            rng: Optional random source, overrides random_seed
            n_workers: Number of threads scoring trials
        """
        self.plane_count = check_count('plane_count', plane_count)
        self.ransac = RANSACPlane(
            max_iterations=max_iterations,
            distance_threshold=distance_threshold,
            min_inliers_ratio=min_inliers_ratio,
            random_seed=random_seed,
            rng=rng,
            n_workers=n_workers
        )

    @property
    def distance_threshold(self) -> float:
        return self.ransac.distance_threshold

    def fit(self, points: np.ndarray, cancel_token=None) -> ExtractionReport:
        """
        Detect multiple planes in point cloud.

        Args:
            points: Array of shape (N, 3)
            cancel_token: Optional object with is_set(), checked every trial

        Returns:
            ExtractionReport with one ExtractionResult per detected plane
        """
        points = PointCloudHandler.as_xyz(points)
        results = []
        remaining_points = points
        remaining_indices = np.arange(len(points))
        error = None

        for round_index in range(self.plane_count):
            try:
                if len(remaining_points) < MIN_SAMPLES:
                    raise InsufficientPointsError(len(remaining_points), MIN_SAMPLES)
                fit = self.ransac.fit(remaining_points, cancel_token)
            except RANSACError as exc:
                error = exc
                logger.warning(
                    'Plane extraction stopped after %d of %d planes: %s',
                    len(results), self.plane_count, exc
                )
                break

            mask = fit.consensus.is_inlier
            result = ExtractionResult(
                plane=fit.plane,
                inliers=remaining_points[mask],
                residual=remaining_points[~mask],
                inlier_indices=remaining_indices[mask],
                residual_indices=remaining_indices[~mask],
                inlier_ratio=fit.inlier_ratio
            )
            results.append(result)
            logger.info(
                'Round %d: plane with %d inliers, %d points left',
                round_index + 1, result.inlier_count, len(result.residual)
            )

            # Remove inliers for next round
            remaining_points = result.residual
            remaining_indices = result.residual_indices

        return ExtractionReport(
            results=results,
            requested=self.plane_count,
            residual=remaining_points,
            residual_indices=remaining_indices,
            error=error
        )


def fit_plane_ransac(
    points: np.ndarray,
    threshold: float,
    iterations: int,
    *,
    random_seed: Optional[int] = None,
    rng=None,
    n_workers: int = 1,
    cancel_token=None
) -> PlaneParams:
    """Robust plane fit; see RANSACPlane."""
    ransac = RANSACPlane(
        max_iterations=iterations,
        distance_threshold=threshold,
        random_seed=random_seed,
        rng=rng,
        n_workers=n_workers
    )
    return ransac.fit(points, cancel_token).plane


def extract_planes(
    points: np.ndarray,
    threshold: float,
    iterations: int,
    plane_count: int,
    *,
    random_seed: Optional[int] = None,
    rng=None,
    n_workers: int = 1,
    cancel_token=None
) -> ExtractionReport:
    """Sequential plane extraction; see MultiPlaneRANSAC."""
    extractor = MultiPlaneRANSAC(
        plane_count=plane_count,
        max_iterations=iterations,
        distance_threshold=threshold,
        random_seed=random_seed,
        rng=rng,
        n_workers=n_workers
    )
    return extractor.fit(points, cancel_token)


@dataclass
class FitComparison:
    """Least squares plane of all points next to the RANSAC plane."""
    optimal: PlaneParams
    robust: PlaneParams
    consensus: ConsensusResult  # Robust plane evaluated on all points


def compare_fits(
    points: np.ndarray,
    threshold: float,
    iterations: int,
    *,
    random_seed: Optional[int] = None
) -> FitComparison:
    """
    Fit a plane without and with robustification and separate the inliers.

    The plain least squares fit is pulled towards outliers; the difference
    between the two planes shows how much the outliers matter.
    """
    optimal = estimate_plane_optimal(points)
    logger.info('Plane fitted to all points: A=%f B=%f C=%f D=%f', *optimal)

    robust = fit_plane_ransac(points, threshold, iterations, random_seed=random_seed)
    logger.info('Plane fitted by RANSAC: A=%f B=%f C=%f D=%f', *robust)

    consensus = evaluate_consensus(points, robust, threshold)
    return FitComparison(optimal=optimal, robust=robust, consensus=consensus)
