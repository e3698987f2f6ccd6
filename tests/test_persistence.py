"""save/load round-trips and failure handling."""

import numpy as np
import pytest

from warpsearch import LoadError, SequenceMatcher, SequenceStore, load_store, save_store
from tests.sequence_utils import random_database


def test_round_trip_is_bit_exact(db_path):
    store = SequenceStore()
    sequences = random_database(7, n_candidates=5, dims=3)
    sequences.append(np.array([[1e-300, -0.1, 1.0 / 3.0]]))
    for k, seq in enumerate(sequences):
        store.add(seq, name=f"take {k}" if k % 2 else None)

    save_store(store, db_path)
    restored = load_store(db_path)

    assert restored.count() == store.count()
    assert restored.dims == 3
    for k, seq in enumerate(sequences):
        assert restored.get(k).shape == seq.shape
        np.testing.assert_array_equal(restored.get(k), seq)
    assert restored.name(1) == "take_1"
    assert restored.name(0) is None


def test_empty_store_round_trip(db_path):
    save_store(SequenceStore(), db_path)
    restored = load_store(db_path)
    assert restored.is_empty()


def test_file_layout(db_path):
    store = SequenceStore()
    store.add(np.array([[0.5, 1.0], [2.0, 3.0]]), name="wave")
    save_store(store, db_path)
    lines = db_path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "warpsearch-db 1"
    assert lines[1] == "1 2"
    assert lines[2] == "2 2 wave"
    assert [float(v) for v in lines[3].split()] == [0.5, 1.0]


@pytest.mark.parametrize("content", [
    "",
    "not-a-database 1\n",
    "warpsearch-db 99\n1 1\n",
    "warpsearch-db 1\n2 1\n1 1 -\n0.5\n",          # truncated: second candidate missing
    "warpsearch-db 1\n1 2\n1 2 -\n0.5\n",          # row too short
    "warpsearch-db 1\n1 1\n1 1 -\nabc\n",          # not numeric
    "warpsearch-db 1\n1 1\n1 1 -\nnan\n",          # non-finite
    "warpsearch-db 1\n1 2\n1 3 -\n1 2 3\n",        # dims disagree with header
    "warpsearch-db 1\n1 1\n1 1 -\n0.5\n0.7\n",     # trailing data
    "warpsearch-db 1\nx y\n",
])
def test_malformed_files_raise_load_error(db_path, content):
    db_path.parent.mkdir(parents=True, exist_ok=True)
    db_path.write_text(content, encoding="utf-8")
    with pytest.raises(LoadError):
        load_store(db_path)


def test_missing_file(tmp_path):
    with pytest.raises(LoadError):
        load_store(tmp_path / "nope.txt")


def test_failed_load_leaves_database_untouched(db_path, ramp_matcher, ramp_a):
    db_path.parent.mkdir(parents=True, exist_ok=True)
    db_path.write_text("warpsearch-db 1\n3 1\n3 1 -\n1\n2\n", encoding="utf-8")
    with pytest.raises(LoadError):
        ramp_matcher.load(db_path)
    assert ramp_matcher.count() == 2
    assert tuple(ramp_matcher.get_nearest_candidate(ramp_a)) == (0.0, 0, [(2, 2), (1, 1), (0, 0)])


def test_matcher_save_load_serves_queries(db_path, ramp_matcher, ramp_b):
    ramp_matcher.save(db_path)
    other = SequenceMatcher(band_range=1.0)
    other.add_to_database(np.zeros((4, 1)))
    other.load(db_path)
    assert other.count() == 2
    assert other.candidate_name(1) == "B"
    distance, index, _ = other.get_nearest_candidate(ramp_b)
    assert (distance, index) == (0.0, 1)


def test_load_rebuilds_normalization_stats(db_path):
    source = SequenceMatcher()
    source.add_to_database(np.array([[0.0, 10.0], [2.0, 30.0]]))
    source.add_to_database(np.array([[4.0, 50.0], [6.0, 70.0]]))
    source.save(db_path)

    matcher = SequenceMatcher(z_normalize=True, band_range=1.0)
    matcher.add_to_database(np.array([[100.0, 100.0]]))
    matcher.load(db_path)
    stats = matcher._preprocessor.stats
    np.testing.assert_allclose(stats.mean, [3.0, 40.0])
    distance, index, _ = matcher.get_nearest_candidate(np.array([[4.0, 50.0], [6.0, 70.0]]))
    assert (distance, index) == (0.0, 1)


def test_default_location(tmp_path, monkeypatch, ramp_matcher):
    monkeypatch.setattr("warpsearch.config.DATABASE_DIR", tmp_path / "db")
    path = ramp_matcher.save()
    assert path == tmp_path / "db" / "dtw.txt"
    fresh = SequenceMatcher()
    fresh.load()
    assert fresh.count() == 2


def test_names_that_look_like_markers_survive(db_path):
    store = SequenceStore()
    for name in ["-", "\\raw", "--", None]:
        store.add(np.zeros((1, 1)), name=name)
    save_store(store, db_path)
    restored = load_store(db_path)
    assert [restored.name(k) for k in range(4)] == ["-", "\\raw", "--", None]
