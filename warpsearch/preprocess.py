"""Z-normalization of queries and candidates against database statistics."""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .errors import DimensionMismatchError
from .store import SequenceStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizationStats:
    """Per-column mean and standard deviation over every stored frame."""
    mean: np.ndarray
    std: np.ndarray

    @classmethod
    def from_store(cls, store: SequenceStore) -> 'NormalizationStats':
        frames = store.concatenated()
        mean = frames.mean(axis=0)
        std = frames.std(axis=0)
        logger.debug("[NormalizationStats] mean=%s std=%s", mean, std)
        return cls(mean=mean, std=std)

    def apply(self, sequence: np.ndarray) -> np.ndarray:
        """
        Return a z-normalized copy of `sequence`.

        Columns with zero standard deviation are only centered, never divided.
        """
        if sequence.shape[1] != self.mean.shape[0]:
            raise DimensionMismatchError(self.mean.shape[0], sequence.shape[1])
        out = sequence - self.mean
        scale = np.where(self.std > 0, self.std, 1.0)
        out /= scale
        return out


class QueryPreprocessor:
    """
    Applies optional z-normalization with statistics built once per database state.

    Stats are computed lazily on first use after the store changes, tracked
    through the store version, and are never recomputed per query.
    Candidates are normalized with the same statistics and cached as one
    contiguous copy of the store buffer.
    """

    def __init__(self, store: SequenceStore, z_normalize: bool = False):
        self.store = store
        self.z_normalize = z_normalize
        self._stats: Optional[NormalizationStats] = None
        self._normalized: Optional[np.ndarray] = None
        self._built_version: Optional[int] = None

    def invalidate(self):
        """Forget cached statistics; call after the store changes."""
        self._stats = None
        self._normalized = None
        self._built_version = None

    @property
    def stats(self) -> Optional[NormalizationStats]:
        if not self.z_normalize or self.store.is_empty():
            return None
        if self._stats is None or self._built_version != self.store.version:
            self.rebuild()
        return self._stats

    def rebuild(self):
        """Compute statistics from the full database and normalize the candidates."""
        if not self.z_normalize or self.store.is_empty():
            self.invalidate()
            return
        self._stats = NormalizationStats.from_store(self.store)
        self._normalized = self._stats.apply(self.store.concatenated())
        self._normalized.flags.writeable = False
        self._built_version = self.store.version
        logger.info("[QueryPreprocessor] Normalization stats built over %d candidates", self.store.count())

    def preprocess(self, query: np.ndarray) -> np.ndarray:
        """Return the query as it should be compared; unchanged when normalization is off."""
        stats = self.stats
        if stats is None:
            return query
        return stats.apply(query)

    def candidate(self, index: int) -> np.ndarray:
        """Return candidate `index` in the same space as a preprocessed query."""
        if self.stats is None:
            return self.store.get(index)
        offset, length = self.store.span(index)
        return self._normalized[offset:offset + length]
