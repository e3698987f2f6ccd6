"""Frame-by-frame difference matrices between a candidate and a query."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np
from scipy.spatial.distance import cdist

from . import config
from .errors import DimensionMismatchError, NumericalError
from .scratch import ScratchPool


class Metric(Enum):
    """Frame distance used to fill the difference matrix."""
    BANDED_SSD = 'banded_ssd'   # mean squared difference inside the band
    BANDED_L1 = 'banded_l1'     # mean absolute difference inside the band
    COSINE = 'cosine'           # 1 - cosine similarity, full matrix

    @classmethod
    def parse(cls, value) -> 'Metric':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            options = ', '.join(m.value for m in cls)
            raise ValueError(f"Unknown metric: {value!r} (expected one of {options})") from None


def band_radius(band_range: float, query_frames: int) -> int:
    """Band half-width in query frames, rounded half up."""
    return int(math.floor(band_range * query_frames + 0.5))


def band_mask(candidate_frames: int, query_frames: int, radius: int) -> np.ndarray:
    """
    Boolean (candidate_frames, query_frames) mask of cells inside the band.

    Row i admits columns j in [max(0, i - radius), min(query_frames, i + radius - 1)).
    The upper bound is one short of symmetric; alignments near the upper
    edge of the band are therefore slightly more constrained.
    """
    i = np.arange(candidate_frames)[:, None]
    j = np.arange(query_frames)[None, :]
    return (j >= i - radius) & (j < np.minimum(query_frames, i + radius - 1))


@dataclass
class PreparedQuery:
    """Query data reused for every candidate of one search."""
    frames: np.ndarray
    transposed: np.ndarray
    norms: np.ndarray
    radius: int

    @property
    def n_frames(self) -> int:
        return self.frames.shape[0]


class DifferenceMatrixBuilder:
    """
    Builds the [T_candidate, T_query] matrix of frame distances.

    The metric is chosen once at construction. Banded metrics leave every
    cell outside the band at +inf; the cosine metric is computed with one
    matrix multiply and is never banded. The returned matrix is a scratch
    view from the pool and is overwritten by the next call.
    """

    def __init__(self, metric=None, band_range: float = None,
                 feature_weights: Optional[np.ndarray] = None, pool: ScratchPool = None):
        self.metric = Metric.parse(metric if metric is not None else config.DEFAULT_METRIC)
        self.band_range = config.DEFAULT_BAND_RANGE if band_range is None else band_range
        self.pool = pool or ScratchPool()
        self.feature_weights = None
        if feature_weights is not None:
            weights = np.asarray(feature_weights, dtype=np.float64).ravel()
            if not np.all(np.isfinite(weights)) or np.any(weights < 0):
                raise ValueError("feature_weights must be finite and non-negative")
            self.feature_weights = weights

    def prepare(self, query: np.ndarray) -> PreparedQuery:
        """Precompute the query's transpose, frame norms and band radius."""
        with np.errstate(over='ignore'):
            norms = np.sqrt(np.sum(query ** 2, axis=1))
        return PreparedQuery(
            frames=query,
            transposed=np.ascontiguousarray(query.T),
            norms=norms,
            radius=band_radius(self.band_range, query.shape[0]),
        )

    def compute_difference_matrix(self, candidate: np.ndarray, query: PreparedQuery) -> np.ndarray:
        """
        Return the difference matrix of `candidate` against a prepared query.

        Raises:
            NumericalError: if any computed cell is NaN or infinite. Only the
                cells outside the band may hold +inf.
        """
        if candidate.shape[1] != query.frames.shape[1]:
            raise DimensionMismatchError(candidate.shape[1], query.frames.shape[1], what="query")
        if self.feature_weights is not None and self.feature_weights.shape[0] != candidate.shape[1]:
            raise DimensionMismatchError(candidate.shape[1], self.feature_weights.shape[0], what="feature_weights")

        out = self.pool.take('difference', (candidate.shape[0], query.n_frames))
        if self.metric is Metric.COSINE:
            self._cosine(candidate, query, out)
        else:
            self._banded(candidate, query, out)
        return out

    def _banded(self, candidate: np.ndarray, query: PreparedQuery, out: np.ndarray):
        kind = 'sqeuclidean' if self.metric is Metric.BANDED_SSD else 'cityblock'
        kwargs = {} if self.feature_weights is None else {'w': self.feature_weights}
        with np.errstate(over='ignore', invalid='ignore'):
            cdist(candidate, query.frames, kind, out=out, **kwargs)
            out /= candidate.shape[1]

        # a single-frame query has nothing to warp against: keep the whole column
        if query.n_frames == 1:
            self._check_finite(out)
            return
        inside = band_mask(candidate.shape[0], query.n_frames, query.radius)
        self._check_finite(out[inside])
        out[~inside] = np.inf

    def _cosine(self, candidate: np.ndarray, query: PreparedQuery, out: np.ndarray):
        with np.errstate(over='ignore', divide='ignore', invalid='ignore'):
            candidate_norms = np.sqrt(np.sum(candidate ** 2, axis=1))
            np.matmul(candidate, query.transposed, out=out)
            out /= np.outer(candidate_norms, query.norms)
        self._check_finite(out)
        np.clip(out, -1.0, 1.0, out=out)
        np.subtract(1.0, out, out=out)

    def _check_finite(self, cells: np.ndarray):
        if np.isnan(cells).any():
            raise NumericalError(f"{self.metric.value} difference matrix contains NaN")
        if np.isinf(cells).any():
            raise NumericalError(f"{self.metric.value} difference overflowed to infinity")
