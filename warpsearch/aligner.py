"""Dynamic Time Warping alignment over a difference matrix."""

import math
from enum import IntEnum
from typing import List, NamedTuple, Tuple

import numpy as np

from . import config
from .scratch import ScratchPool

INF = math.inf

Path = List[Tuple[int, int]]


class Step(IntEnum):
    """Back-pointer stored per cell of the traceback matrix."""
    HORIZONTAL = 0  # came from (i, j-1)
    VERTICAL = 1    # came from (i-1, j)
    DIAGONAL = 2    # came from (i-1, j-1)


class Alignment(NamedTuple):
    distance: float
    path: Path
    abandoned: bool = False


class DTWAligner:
    """
    Accumulates DTW cost in place over a difference matrix.

    Between horizontal and vertical predecessors the horizontal one wins
    exact ties; the diagonal replaces that choice only when strictly
    smaller. With early abandoning on, a candidate is dropped as soon as
    the cheapest cell of a completed row exceeds the caller's best-so-far.
    Each row is visited only between its first and last finite cells, so a
    narrow band bounds the work per candidate.
    """

    def __init__(self, early_abandon: bool = None, pool: ScratchPool = None):
        self.early_abandon = config.EARLY_ABANDON if early_abandon is None else early_abandon
        self.pool = pool or ScratchPool()

    def align(self, diff: np.ndarray, best_so_far: float = INF) -> Alignment:
        """
        Align a candidate (rows) to a query (columns).

        Args:
            diff: (T_candidate, T_query) difference matrix, overwritten with
                the cumulative cost.
            best_so_far: Pruning bound from the current search.

        Returns:
            Alignment(distance, path, abandoned). distance is +inf and path
            empty when the candidate was abandoned or no cell path reaches
            the terminal cell.
        """
        n_rows, n_cols = diff.shape
        trace = self.pool.take('traceback', (n_rows, n_cols), dtype=np.int8)

        prev = None
        for i in range(n_rows):
            row = diff[i].tolist()
            steps = [Step.DIAGONAL] * n_cols
            row_min = INF
            # cells outside the band are +inf and stay +inf: visit only the band
            finite = np.flatnonzero(np.isfinite(diff[i]))
            start, stop = (int(finite[0]), int(finite[-1]) + 1) if finite.size else (0, 0)
            for j in range(start, stop):
                if i == 0 and j == 0:
                    row_min = row[0]
                    continue

                horizontal = row[j - 1] if j > 0 else INF
                vertical = prev[j] if prev is not None else INF
                diagonal = prev[j - 1] if (prev is not None and j > 0) else INF

                if horizontal <= vertical:
                    best, step = horizontal, Step.HORIZONTAL
                else:
                    best, step = vertical, Step.VERTICAL
                if diagonal < best:
                    best, step = diagonal, Step.DIAGONAL

                row[j] += best
                steps[j] = step
                if row[j] < row_min:
                    row_min = row[j]

            diff[i] = row
            trace[i] = steps
            prev = row

            if self.early_abandon and row_min > best_so_far:
                return Alignment(INF, [], abandoned=True)

        distance = float(diff[n_rows - 1, n_cols - 1])
        if math.isinf(distance):
            return Alignment(INF, [])
        return Alignment(distance, self.trace_path(trace))

    @staticmethod
    def trace_path(trace: np.ndarray) -> Path:
        """Follow back-pointers from the terminal cell until an index leaves the matrix."""
        i, j = trace.shape[0] - 1, trace.shape[1] - 1
        path = []
        while i >= 0 and j >= 0:
            path.append((i, j))
            step = trace[i, j]
            if step == Step.HORIZONTAL:
                j -= 1
            elif step == Step.VERTICAL:
                i -= 1
            else:
                i -= 1
                j -= 1
        return path
