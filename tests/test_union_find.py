from __future__ import annotations

import numpy as np
import pytest

from blobcore import UnionFindForest


def _forest(n):
    f = UnionFindForest()
    for k in range(1, n + 1):
        f.make_node(k)
    return f


def test_singletons_are_their_own_root():
    f = _forest(4)
    assert len(f) == 4
    for k in range(1, 5):
        assert f.find(k) == k


@pytest.mark.parametrize("a,b", [(5, 2), (2, 5)])
def test_union_keeps_smaller_root(a, b):
    f = _forest(5)
    assert f.union(a, b) == 2
    assert f.find(5) == 2
    assert f.find(2) == 2


def test_union_chain_collapses_to_minimum():
    f = _forest(8)
    f.union(8, 7)
    f.union(7, 6)
    f.union(6, 3)
    f.union(5, 4)
    assert {f.find(k) for k in (3, 6, 7, 8)} == {3}
    assert f.find(5) == 4
    f.union(8, 4)
    assert {f.find(k) for k in (3, 4, 5, 6, 7, 8)} == {3}
    assert f.find(1) == 1 and f.find(2) == 2


def test_union_same_class_is_noop():
    f = _forest(3)
    f.union(1, 3)
    assert f.union(3, 1) == 1
    assert f.find(3) == 1


def test_make_node_rejects_bad_keys():
    f = _forest(2)
    with pytest.raises(ValueError):
        f.make_node(0)
    with pytest.raises(ValueError):
        f.make_node(-3)
    with pytest.raises(ValueError):
        f.make_node(2)


def test_unknown_keys_raise_key_error():
    f = _forest(2)
    with pytest.raises(KeyError):
        f.find(3)
    with pytest.raises(KeyError):
        f.union(1, 99)
    assert 3 not in f
    assert 0 not in f


def test_forest_grows_past_capacity():
    f = UnionFindForest(capacity=2)
    f.make_node(1)
    f.make_node(1000)
    assert 1000 in f
    assert f.parent.size > 1000
    f.union(1000, 1)
    assert f.find(1000) == 1


def test_sparse_keys():
    f = UnionFindForest()
    f.make_node(10)
    f.make_node(4)
    assert len(f) == 2
    assert 7 not in f
    assert f.union(10, 4) == 4


def test_compact_numbers_classes_by_smallest_key():
    f = _forest(5)
    f.union(4, 1)
    f.union(5, 2)
    lut, k = f.compact(5)
    assert k == 3
    assert lut.tolist() == [0, 1, 2, 3, 1, 2]
    assert lut.dtype == np.int32


def test_compact_all_merged():
    f = _forest(6)
    for k in range(2, 7):
        f.union(k, k - 1)
    lut, k = f.compact(6)
    assert k == 1
    assert lut.tolist() == [0, 1, 1, 1, 1, 1, 1]


def test_compact_requires_contiguous_keys():
    f = UnionFindForest()
    f.make_node(1)
    f.make_node(3)
    with pytest.raises(KeyError):
        f.compact(3)


def test_adopt_registers_kernel_written_keys():
    f = UnionFindForest(capacity=8)
    f.parent[1:4] = [1, 1, 3]
    f.adopt(3)
    assert len(f) == 3
    assert f.find(2) == 1
    lut, k = f.compact(3)
    assert k == 2
    assert lut.tolist() == [0, 1, 1, 2]
