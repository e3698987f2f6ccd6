"""Contiguous storage for the database of reference sequences."""

import logging
from typing import Iterator, List, Optional, Tuple

import numpy as np

from .errors import DimensionMismatchError, InvalidSequenceError

logger = logging.getLogger(__name__)

_INITIAL_CAPACITY = 256  # frames


def as_sequence(data, what: str = "sequence") -> np.ndarray:
    """
    Coerce input to a (frames, dims) float64 array.

    A 1-D input is read as a single frame. Empty, higher-rank or
    non-finite input raises InvalidSequenceError.
    """
    seq = np.asarray(data, dtype=np.float64)
    if seq.ndim == 1:
        seq = seq.reshape(1, -1)
    if seq.ndim != 2:
        raise InvalidSequenceError(f"{what} must be 2-D [frames, dims], got {seq.ndim}-D")
    if seq.shape[0] == 0 or seq.shape[1] == 0:
        raise InvalidSequenceError(f"{what} must have at least one frame and one dimension, got {seq.shape}")
    if not np.all(np.isfinite(seq)):
        raise InvalidSequenceError(f"{what} contains NaN or infinite values")
    return seq


class SequenceStore:
    """
    Database of reference sequences sharing one feature dimension.

    All frames live in a single growable buffer; each candidate is an
    (offset, length) entry in a lookup table. get() hands out read-only
    views into the buffer, so candidates cannot be mutated once added.
    """

    def __init__(self, dims: Optional[int] = None):
        self._dims = dims
        self._buffer = np.empty((0, dims or 0), dtype=np.float64)
        self._used = 0
        self._lut: List[Tuple[int, int]] = []
        self._names: List[Optional[str]] = []
        self._version = 0

    @property
    def dims(self) -> Optional[int]:
        """Feature dimension, None until the first sequence is added."""
        return self._dims

    @property
    def version(self) -> int:
        """Incremented on every change to the contents."""
        return self._version

    def _reserve(self, frames: int):
        needed = self._used + frames
        capacity = self._buffer.shape[0]
        if needed <= capacity:
            return
        new_capacity = max(capacity, _INITIAL_CAPACITY)
        while new_capacity < needed:
            new_capacity *= 2
        grown = np.empty((new_capacity, self._dims), dtype=np.float64)
        grown[:self._used] = self._buffer[:self._used]
        self._buffer = grown

    def add(self, sequence, name: Optional[str] = None) -> int:
        """Append a sequence and return its id (insertion position)."""
        seq = as_sequence(sequence)
        if self._dims is None:
            self._dims = seq.shape[1]
            self._buffer = np.empty((0, self._dims), dtype=np.float64)
        elif seq.shape[1] != self._dims:
            raise DimensionMismatchError(self._dims, seq.shape[1])

        self._reserve(seq.shape[0])
        offset = self._used
        self._buffer[offset:offset + seq.shape[0]] = seq
        self._used += seq.shape[0]
        self._lut.append((offset, seq.shape[0]))
        self._names.append(name)
        self._version += 1
        return len(self._lut) - 1

    def get(self, index: int) -> np.ndarray:
        """Return a read-only (frames, dims) view of candidate `index`."""
        if index < 0 or index >= len(self._lut):
            raise IndexError(f"candidate {index} out of range (store holds {len(self._lut)})")
        offset, length = self._lut[index]
        view = self._buffer[offset:offset + length]
        view.flags.writeable = False
        return view

    def name(self, index: int) -> Optional[str]:
        if index < 0 or index >= len(self._names):
            raise IndexError(f"candidate {index} out of range (store holds {len(self._names)})")
        return self._names[index]

    def span(self, index: int) -> Tuple[int, int]:
        """(offset, length) of candidate `index` in the backing buffer."""
        if index < 0 or index >= len(self._lut):
            raise IndexError(f"candidate {index} out of range (store holds {len(self._lut)})")
        return self._lut[index]

    def concatenated(self) -> np.ndarray:
        """All stored frames as one read-only (total_frames, dims) view."""
        view = self._buffer[:self._used]
        view.flags.writeable = False
        return view

    def count(self) -> int:
        return len(self._lut)

    def is_empty(self) -> bool:
        return not self._lut

    def __len__(self) -> int:
        return len(self._lut)

    def __iter__(self) -> Iterator[Tuple[int, np.ndarray]]:
        for index in range(len(self._lut)):
            yield index, self.get(index)

    def clear(self):
        """Drop every candidate and forget the established dimension."""
        self._dims = None
        self._buffer = np.empty((0, 0), dtype=np.float64)
        self._used = 0
        self._lut = []
        self._names = []
        self._version += 1

    def replace_with(self, other: 'SequenceStore'):
        """Take over the contents of another store in one step."""
        self._dims = other._dims
        self._buffer = other._buffer
        self._used = other._used
        self._lut = list(other._lut)
        self._names = list(other._names)
        self._version += 1
        logger.debug("[SequenceStore] Replaced contents: %d candidates, %d frames", len(self._lut), self._used)
