# warpsearch - DTW nearest-neighbor search over multi-dimensional sequences

from . import config

from .errors import (
    WarpSearchError, NoCandidatesError, DimensionMismatchError, ShapeMismatchError,
    InvalidSequenceError, NumericalError, LoadError, SearchTimeoutError
)
from .store import SequenceStore, as_sequence
from .preprocess import NormalizationStats, QueryPreprocessor
from .difference import Metric, DifferenceMatrixBuilder, band_radius
from .aligner import DTWAligner, Alignment, Step
from .search import NearestNeighborSearch, EuclideanNearestNeighbor, SearchContext, SearchResult
from .persistence import save_store, load_store
from .matcher import SequenceMatcher

__version__ = "0.1.0"
