"""
Text persistence for a SequenceStore.

File layout:
    warpsearch-db 1
    <count> <dims>
    <rows> <cols> <name or ->        one header per candidate,
    <cols floats>                    followed by its rows, row-major
    ...

A name that is literally "-" or starts with a backslash is written with a
leading backslash, which load strips again.
"""

import logging
from pathlib import Path
from typing import Iterator, Union

import numpy as np

from . import config
from .errors import LoadError
from .store import SequenceStore

logger = logging.getLogger(__name__)

_NO_NAME = "-"
_ESCAPE = "\\"


def _encode_name(name) -> str:
    if not name:
        return _NO_NAME
    # names are a single whitespace-free token on the header line
    token = "_".join(str(name).split())
    if token == _NO_NAME or token.startswith(_ESCAPE):
        token = _ESCAPE + token
    return token


def _decode_name(token: str):
    if token == _NO_NAME:
        return None
    if token.startswith(_ESCAPE):
        return token[1:]
    return token


def save_store(store: SequenceStore, path: Union[str, Path]) -> Path:
    """Write every candidate of `store` to `path`, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        f.write(f"{config.DATABASE_MAGIC} {config.DATABASE_VERSION}\n")
        f.write(f"{store.count()} {store.dims or 0}\n")
        for index, sequence in store:
            rows, cols = sequence.shape
            f.write(f"{rows} {cols} {_encode_name(store.name(index))}\n")
            np.savetxt(f, sequence, fmt=config.FLOAT_FORMAT)

    logger.info("[persistence] Saved %d candidates to %s", store.count(), path)
    return path


def _lines(path: Path) -> Iterator[str]:
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                yield line


def _next(lines: Iterator[str], what: str) -> str:
    try:
        return next(lines)
    except StopIteration:
        raise LoadError(f"unexpected end of file while reading {what}") from None


def _ints(line: str, count: int, what: str):
    parts = line.split()
    if len(parts) < count:
        raise LoadError(f"malformed {what}: {line!r}")
    try:
        return [int(p) for p in parts[:count]], parts[count:]
    except ValueError:
        raise LoadError(f"malformed {what}: {line!r}") from None


def load_store(path: Union[str, Path]) -> SequenceStore:
    """
    Read a database file into a new SequenceStore.

    Raises:
        LoadError: if the file is missing, truncated or malformed.
    """
    path = Path(path)
    if not path.is_file():
        raise LoadError(f"database file not found: {path}")

    try:
        lines = _lines(path)
        magic = _next(lines, "header").split()
        if len(magic) != 2 or magic[0] != config.DATABASE_MAGIC:
            raise LoadError(f"{path} is not a warpsearch database")
        if magic[1] != str(config.DATABASE_VERSION):
            raise LoadError(f"unsupported database version {magic[1]}")

        (count, dims), _ = _ints(_next(lines, "candidate count"), 2, "candidate count")
        if count < 0 or dims < 0 or (count > 0 and dims == 0):
            raise LoadError(f"invalid candidate count/dims: {count} {dims}")

        store = SequenceStore()
        for index in range(count):
            (rows, cols), rest = _ints(_next(lines, f"candidate {index} shape"), 2, f"candidate {index} shape")
            if rows <= 0 or cols != dims:
                raise LoadError(f"candidate {index} has shape ({rows}, {cols}), expected dims {dims}")
            name = _decode_name(rest[0]) if rest else None

            frames = np.empty((rows, cols), dtype=np.float64)
            for r in range(rows):
                values = _next(lines, f"candidate {index} row {r}").split()
                if len(values) != cols:
                    raise LoadError(f"candidate {index} row {r} has {len(values)} values, expected {cols}")
                try:
                    frames[r] = [float(v) for v in values]
                except ValueError:
                    raise LoadError(f"candidate {index} row {r} is not numeric") from None
            if not np.all(np.isfinite(frames)):
                raise LoadError(f"candidate {index} contains non-finite values")
            store.add(frames, name=name)

        trailing = next(lines, None)
        if trailing is not None:
            raise LoadError(f"unexpected data after {count} candidates: {trailing[:40]!r}")
    except (OSError, UnicodeDecodeError) as e:
        raise LoadError(f"could not read {path}: {e}") from e

    logger.info("[persistence] Loaded %d candidates from %s", store.count(), path)
    return store
