"""Sequence matcher: database of recordings plus DTW nearest-neighbor search."""

import logging
from pathlib import Path
from typing import Optional

import numpy as np

from . import config
from .aligner import DTWAligner
from .difference import DifferenceMatrixBuilder
from .persistence import load_store, save_store
from .preprocess import QueryPreprocessor
from .scratch import ScratchPool
from .search import EuclideanNearestNeighbor, EuclideanResult, NearestNeighborSearch, SearchResult
from .store import SequenceStore
from .template_loader import load_sequences_from_dir

logger = logging.getLogger(__name__)


class SequenceMatcher:
    """
    Finds the stored sequence that best matches a query under time warping.

    Usage:
        matcher = SequenceMatcher(band_range=0.5)
        matcher.add_to_database(recording)          # (frames, dims)
        distance, index, path = matcher.get_nearest_candidate(query)
    """

    def __init__(self, band_range: float = None, metric: str = None, z_normalize: bool = None,
                 early_abandon: bool = None, feature_weights: Optional[np.ndarray] = None,
                 deadline: Optional[float] = None):
        """
        Args:
            band_range: Fraction of the query length used as band half-width, in (0, 1]
            metric: 'banded_ssd' (default), 'banded_l1' or 'cosine'
            z_normalize: Normalize queries and candidates with database statistics
            early_abandon: Drop candidates whose partial cost exceeds the best so far
            feature_weights: Fixed per-dimension weights for the banded metrics
            deadline: Seconds allowed per search (None for no limit)
        """
        self.store = SequenceStore()
        self._pool = ScratchPool()
        self._preprocessor = QueryPreprocessor(
            self.store, config.USE_Z_NORMALIZE if z_normalize is None else z_normalize
        )
        self._builder = DifferenceMatrixBuilder(metric=metric, feature_weights=feature_weights, pool=self._pool)
        self._aligner = DTWAligner(early_abandon=early_abandon, pool=self._pool)
        self._search = NearestNeighborSearch(self.store, self._preprocessor, self._builder, self._aligner, deadline)
        self._euclidean = EuclideanNearestNeighbor(self.store, self._preprocessor)
        self.set_band_range(config.DEFAULT_BAND_RANGE if band_range is None else band_range)

    # =========================================================================
    # Configuration
    # =========================================================================

    def set_band_range(self, r: float):
        """Set the warping band half-width as a fraction of the query length."""
        if not 0.0 < r <= 1.0:
            raise ValueError(f"band range must be in (0, 1], got {r}")
        self._builder.band_range = float(r)

    @property
    def band_range(self) -> float:
        return self._builder.band_range

    @property
    def metric(self):
        return self._builder.metric

    @property
    def z_normalize(self) -> bool:
        return self._preprocessor.z_normalize

    # =========================================================================
    # Database
    # =========================================================================

    def add_to_database(self, sequence, name: str = None) -> int:
        """Add a (frames, dims) sequence and return its index."""
        index = self.store.add(sequence, name=name)
        self._preprocessor.invalidate()
        return index

    def load_templates_from_dir(self, template_dir) -> int:
        """Add every sequence/audio file under a directory; returns how many were added."""
        count = load_sequences_from_dir(template_dir, self.add_to_database)
        logger.info("[SequenceMatcher] %d sequences loaded from %s", count, template_dir)
        return count

    def candidate(self, index: int) -> np.ndarray:
        return self.store.get(index)

    def candidate_name(self, index: int) -> Optional[str]:
        return self.store.name(index)

    def count(self) -> int:
        return self.store.count()

    def is_empty(self) -> bool:
        return self.store.is_empty()

    @property
    def dims(self) -> Optional[int]:
        return self.store.dims

    # =========================================================================
    # Search
    # =========================================================================

    def get_nearest_candidate(self, query) -> SearchResult:
        """
        Find the nearest candidate under banded DTW.

        Returns:
            (distance, index, path) where path lists (candidate_frame, query_frame)
            pairs from the last frames back to the first.
        """
        return self._search.search(query)

    def get_nearest_candidate_euclidean(self, query) -> EuclideanResult:
        """Find the nearest candidate by summed absolute difference; lengths must match."""
        return self._euclidean.search(query)

    # =========================================================================
    # Persistence
    # =========================================================================

    def save(self, path=None) -> Path:
        """Write the database to `path` (default config.DATABASE_DIR / config.DATABASE_FILENAME)."""
        return save_store(self.store, path or Path(config.DATABASE_DIR) / config.DATABASE_FILENAME)

    def load(self, path=None):
        """
        Replace the database with the contents of `path`.

        On LoadError the current database is kept unchanged. Normalization
        statistics are rebuilt before the next query is served.
        """
        loaded = load_store(path or Path(config.DATABASE_DIR) / config.DATABASE_FILENAME)
        self.store.replace_with(loaded)
        self._preprocessor.rebuild()
