"""SequenceStore: contiguous buffer, lookup table, validation."""

import numpy as np
import pytest

from warpsearch import DimensionMismatchError, InvalidSequenceError, SequenceStore


def test_add_returns_insertion_index():
    store = SequenceStore()
    assert store.is_empty()
    assert store.add(np.zeros((3, 2))) == 0
    assert store.add(np.ones((5, 2))) == 1
    assert store.count() == 2
    assert len(store) == 2
    assert not store.is_empty()
    assert store.dims == 2


def test_get_returns_stored_values():
    store = SequenceStore()
    a = np.arange(6, dtype=float).reshape(3, 2)
    b = np.arange(8, dtype=float).reshape(4, 2) + 100
    store.add(a)
    store.add(b)
    np.testing.assert_array_equal(store.get(0), a)
    np.testing.assert_array_equal(store.get(1), b)
    assert store.span(1) == (3, 4)


def test_views_are_read_only_and_detached_from_input():
    store = SequenceStore()
    a = np.zeros((2, 2))
    store.add(a)
    a[0, 0] = 42.0
    view = store.get(0)
    assert view[0, 0] == 0.0
    with pytest.raises(ValueError):
        view[0, 0] = 1.0


def test_buffer_growth_keeps_earlier_candidates():
    """Many adds force several reallocations of the backing buffer."""
    store = SequenceStore()
    sequences = [np.full((37, 3), float(k)) for k in range(40)]
    for seq in sequences:
        store.add(seq)
    for k, seq in enumerate(sequences):
        np.testing.assert_array_equal(store.get(k), seq)
    assert store.concatenated().shape == (37 * 40, 3)


def test_dimension_mismatch_rejected():
    store = SequenceStore()
    store.add(np.zeros((3, 2)))
    with pytest.raises(DimensionMismatchError) as exc:
        store.add(np.zeros((3, 4)))
    assert exc.value.expected == 2
    assert exc.value.got == 4
    assert store.count() == 1


@pytest.mark.parametrize("bad", [
    np.zeros((0, 2)),
    np.zeros((2, 2, 2)),
    np.array([[0.0, np.nan]]),
    np.array([[np.inf, 1.0]]),
])
def test_invalid_sequences_rejected(bad):
    store = SequenceStore()
    with pytest.raises(InvalidSequenceError):
        store.add(bad)
    assert store.is_empty()


def test_one_dimensional_input_is_a_single_frame():
    store = SequenceStore()
    store.add([1.0, 2.0, 3.0])
    assert store.get(0).shape == (1, 3)


def test_names_and_iteration():
    store = SequenceStore()
    store.add(np.zeros((1, 1)), name="first")
    store.add(np.ones((2, 1)))
    assert store.name(0) == "first"
    assert store.name(1) is None
    assert [index for index, _ in store] == [0, 1]
    with pytest.raises(IndexError):
        store.get(2)


def test_replace_with_and_clear():
    store = SequenceStore()
    store.add(np.zeros((2, 2)))
    other = SequenceStore()
    other.add(np.ones((3, 5)), name="x")
    store.replace_with(other)
    assert store.count() == 1
    assert store.dims == 5
    assert store.name(0) == "x"
    store.clear()
    assert store.is_empty()
    assert store.dims is None
    store.add(np.zeros((1, 7)))
    assert store.dims == 7


def test_version_tracks_every_change():
    store = SequenceStore()
    versions = [store.version]
    store.add(np.zeros((2, 2)))
    versions.append(store.version)
    store.replace_with(SequenceStore())
    versions.append(store.version)
    store.clear()
    versions.append(store.version)
    assert len(set(versions)) == len(versions)
