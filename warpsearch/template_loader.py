"""Sequence loading utilities for building a database from a directory.

Centralizes filesystem traversal and file-type handling so that the matcher
stays focused on search logic.
"""

import logging
from pathlib import Path
from typing import Callable, Iterable, Optional

import numpy as np

from . import config
from .features import extract_mfcc, load_audio_file

logger = logging.getLogger(__name__)

SequenceAdder = Callable[[np.ndarray, str], int]  # sequence, name -> id


def _iter_files(root: Path, extensions: Iterable[str]) -> Iterable[Path]:
    """Yield files under root with a matching extension, in sorted order."""
    suffixes = {ext.lower() for ext in extensions}
    for path in sorted(root.rglob("*")):
        if any(part in config.SKIP_DIRS for part in path.relative_to(root).parts[:-1]):
            continue
        if path.is_file() and path.suffix.lower() in suffixes:
            yield path


def load_sequence_file(path: Path) -> Optional[np.ndarray]:
    """Load one file as a (frames, dims) sequence; None for unsupported types."""
    suffix = path.suffix.lower()
    if suffix in config.SEQUENCE_EXTENSIONS:
        return np.load(path, allow_pickle=False)
    if suffix in config.AUDIO_EXTENSIONS:
        return extract_mfcc(load_audio_file(str(path)))
    return None


def load_sequences_from_dir(template_dir, add_sequence: SequenceAdder) -> int:
    """
    Load every sequence file under a directory tree.

    .npy files are stored sequences; audio files are converted to MFCC
    sequences. Files are visited in sorted path order so candidate ids are
    reproducible. Names are paths relative to `template_dir`.

    Returns:
        Number of sequences added.
    """
    base = Path(template_dir)
    if not base.is_dir():
        logger.warning("[template_loader] Template directory does not exist: %s", base)
        return 0

    loaded = 0
    extensions = tuple(config.SEQUENCE_EXTENSIONS) + tuple(config.AUDIO_EXTENSIONS)
    for path in _iter_files(base, extensions):
        sequence = load_sequence_file(path)
        name = path.relative_to(base).as_posix()
        index = add_sequence(sequence, name)
        loaded += 1
        logger.info("[template_loader] Loaded %s -> candidate %d %s", name, index, tuple(sequence.shape))

    return loaded
