"""Reusable scratch buffers for per-candidate matrices."""

from typing import Dict, Tuple

import numpy as np


class ScratchPool:
    """
    Named growable buffers handed out as (rows, cols) views.

    A buffer only grows, so scanning many candidates of similar length
    allocates once. Views returned by take() are overwritten by the next
    take() of the same name. Not thread-safe: give each worker its own pool.
    """

    def __init__(self):
        self._buffers: Dict[str, np.ndarray] = {}

    def take(self, name: str, shape: Tuple[int, int], dtype=np.float64, fill=None) -> np.ndarray:
        """Return a (rows, cols) view of buffer `name`, optionally filled with `fill`."""
        size = int(shape[0]) * int(shape[1])
        buf = self._buffers.get(name)
        if buf is None or buf.size < size or buf.dtype != np.dtype(dtype):
            buf = np.empty(max(size, 1), dtype=dtype)
            self._buffers[name] = buf
        view = buf[:size].reshape(shape)
        if fill is not None:
            view.fill(fill)
        return view
