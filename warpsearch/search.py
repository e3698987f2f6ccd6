"""Linear nearest-neighbor scans over a SequenceStore."""

import logging
import math
import time
from dataclasses import dataclass, field
from typing import NamedTuple, Optional

import numpy as np

from . import config
from .aligner import DTWAligner, Path
from .difference import DifferenceMatrixBuilder
from .errors import DimensionMismatchError, NoCandidatesError, SearchTimeoutError, ShapeMismatchError
from .preprocess import QueryPreprocessor
from .store import SequenceStore, as_sequence

logger = logging.getLogger(__name__)


class SearchResult(NamedTuple):
    distance: float
    index: int
    path: Path


class EuclideanResult(NamedTuple):
    distance: float
    index: int


@dataclass
class SearchContext:
    """Pruning state for one search call; created fresh per call."""
    best_so_far: float = math.inf
    best_index: int = 0
    best_path: Path = field(default_factory=list)
    compared: int = 0
    abandoned: int = 0

    def offer(self, index: int, distance: float, path: Optional[Path] = None) -> bool:
        """Record a candidate's distance; only a strictly smaller one replaces the best."""
        self.compared += 1
        if distance < self.best_so_far:
            self.best_so_far = distance
            self.best_index = index
            self.best_path = path if path is not None else []
            return True
        return False


def _check_query(store: SequenceStore, query) -> np.ndarray:
    if store.is_empty():
        raise NoCandidatesError()
    q = as_sequence(query, what="query")
    if q.shape[1] != store.dims:
        raise DimensionMismatchError(store.dims, q.shape[1], what="query")
    return q


class NearestNeighborSearch:
    """
    DTW nearest neighbor over every candidate in store order.

    The best-so-far bound is shared across the whole scan of one call, so
    later candidates are abandoned against the best match found so far.
    """

    def __init__(self, store: SequenceStore, preprocessor: QueryPreprocessor,
                 builder: DifferenceMatrixBuilder, aligner: DTWAligner,
                 deadline: Optional[float] = None):
        self.store = store
        self.preprocessor = preprocessor
        self.builder = builder
        self.aligner = aligner
        self.deadline = config.SEARCH_DEADLINE_S if deadline is None else deadline

    def search(self, query) -> SearchResult:
        """
        Find the candidate with the smallest DTW distance to `query`.

        Returns:
            SearchResult(distance, index, path). If no candidate has a
            finite distance the result is (inf, 0, []).
        """
        q = _check_query(self.store, query)
        prepared = self.builder.prepare(self.preprocessor.preprocess(q))
        context = SearchContext()
        started = time.monotonic()

        for index in range(self.store.count()):
            if self.deadline is not None and time.monotonic() - started > self.deadline:
                raise SearchTimeoutError(
                    f"search exceeded {self.deadline}s after {context.compared} of {self.store.count()} candidates"
                )
            candidate = self.preprocessor.candidate(index)
            diff = self.builder.compute_difference_matrix(candidate, prepared)
            alignment = self.aligner.align(diff, context.best_so_far)
            if alignment.abandoned:
                context.abandoned += 1
            context.offer(index, alignment.distance, alignment.path)

        logger.debug(
            "[NearestNeighborSearch] best=%d distance=%.6g compared=%d abandoned=%d",
            context.best_index, context.best_so_far, context.compared, context.abandoned,
        )
        return SearchResult(context.best_so_far, context.best_index, context.best_path)


class EuclideanNearestNeighbor:
    """
    Frame-wise comparison without warping.

    Every candidate must have exactly the query's shape. The distance is
    the sum of absolute differences over all frames and dimensions.
    """

    def __init__(self, store: SequenceStore, preprocessor: QueryPreprocessor):
        self.store = store
        self.preprocessor = preprocessor

    def search(self, query) -> EuclideanResult:
        q = _check_query(self.store, query)
        q = self.preprocessor.preprocess(q)
        context = SearchContext()

        for index in range(self.store.count()):
            candidate = self.preprocessor.candidate(index)
            if candidate.shape != q.shape:
                raise ShapeMismatchError(q.shape, candidate.shape, index)
            distance = float(np.sum(np.abs(q - candidate)))
            context.offer(index, distance)

        return EuclideanResult(context.best_so_far, context.best_index)
