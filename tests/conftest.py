"""Shared test fixtures and helpers."""

import numpy as np
import pytest

from warpsearch import SequenceMatcher
from tests.sequence_utils import gesture_family


@pytest.fixture
def ramp_a():
    return np.array([[0.0], [1.0], [2.0]])


@pytest.fixture
def ramp_b():
    return np.array([[10.0], [11.0], [12.0]])


@pytest.fixture
def ramp_matcher(ramp_a, ramp_b):
    """Two-candidate database used throughout the DTW tests (full band, banded SSD)."""
    matcher = SequenceMatcher(band_range=1.0, metric='banded_ssd')
    matcher.add_to_database(ramp_a, name="A")
    matcher.add_to_database(ramp_b, name="B")
    return matcher


@pytest.fixture
def gestures():
    return gesture_family()


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "dtwDatabase" / "dtw.txt"
