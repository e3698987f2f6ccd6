"""Exceptions raised by warpsearch."""


class WarpSearchError(Exception):
    """Base class for every error raised by this package."""


class NoCandidatesError(WarpSearchError):
    """A search was requested against an empty database."""

    def __init__(self, message: str = "Add sequences to the database first"):
        super().__init__(message)


class DimensionMismatchError(WarpSearchError, ValueError):
    """A sequence's feature dimension does not match the database's."""

    def __init__(self, expected: int, got: int, what: str = "sequence"):
        self.expected = expected
        self.got = got
        super().__init__(f"{what} has {got} dimensions, database expects {expected}")


class ShapeMismatchError(DimensionMismatchError):
    """Frame-wise comparison needs identically shaped sequences."""

    def __init__(self, expected: tuple, got: tuple, index: int):
        self.expected = expected
        self.got = got
        self.index = index
        WarpSearchError.__init__(
            self,
            f"candidate {index} has shape {got}, query has shape {expected}; "
            "euclidean search requires uniform sequence length",
        )


class InvalidSequenceError(WarpSearchError, ValueError):
    """Sequence is empty, not 2-D, or holds non-finite values."""


class NumericalError(WarpSearchError, ArithmeticError):
    """A NaN appeared where only finite distances or the band sentinel are allowed."""


class LoadError(WarpSearchError):
    """A persisted database could not be read."""


class SearchTimeoutError(WarpSearchError, TimeoutError):
    """The search deadline passed before every candidate was compared."""
