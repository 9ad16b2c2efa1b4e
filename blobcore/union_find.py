"""
Union-find forest over small positive integer keys.

``parent[k] == 0`` marks an unused key, ``parent[k] == k`` a root. A union
always hangs the root with the larger key under the one with the smaller
key, so the representative of a class is the smallest key ever placed in it.
Path halving never changes which node is the root.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np
from numba import njit


@njit(inline='always')
def uf_find(parent, x):
    while parent[x] != x:
        parent[x] = parent[parent[x]]
        x = parent[x]
    return x


@njit(inline='always')
def uf_union(parent, a, b):
    ra = uf_find(parent, a)
    rb = uf_find(parent, b)
    if ra < rb:
        parent[rb] = ra
        return ra
    if rb < ra:
        parent[ra] = rb
    return rb


@njit
def _compact(parent, n_keys):
    """Dense ids 1..K for keys 1..n_keys, numbered in ascending key order of first sight."""
    lut = np.zeros(n_keys + 1, dtype=np.int32)
    dense = np.zeros(n_keys + 1, dtype=np.int32)
    k = 0
    for i in range(1, n_keys + 1):
        r = uf_find(parent, i)
        if dense[r] == 0:
            k += 1
            dense[r] = k
        lut[i] = dense[r]
    return lut, k


class UnionFindForest:
    __slots__ = ("parent", "_n")

    def __init__(self, capacity: int = 16):
        self.parent = np.zeros(max(int(capacity), 2), dtype=np.int64)
        self._n = 0

    def __len__(self) -> int:
        return self._n

    def __contains__(self, key) -> bool:
        key = int(key)
        return 0 < key < self.parent.size and self.parent[key] != 0

    def _require(self, key) -> int:
        key = int(key)
        if key not in self:
            raise KeyError(f"Unknown union-find key {key}")
        return key

    def make_node(self, key: int) -> int:
        key = int(key)
        if key <= 0:
            raise ValueError(f"Union-find keys must be positive, got {key}")
        if key in self:
            raise ValueError(f"Union-find key {key} already exists")
        if key >= self.parent.size:
            grown = np.zeros(max(2 * self.parent.size, key + 1), dtype=np.int64)
            grown[:self.parent.size] = self.parent
            self.parent = grown
        self.parent[key] = key
        self._n += 1
        return key

    def find(self, key: int) -> int:
        return int(uf_find(self.parent, self._require(key)))

    def union(self, a: int, b: int) -> int:
        """Merge the classes of ``a`` and ``b``; return the canonical root."""
        return int(uf_union(self.parent, self._require(a), self._require(b)))

    def adopt(self, n_keys: int):
        """Register keys 1..n_keys that a kernel has already initialised in ``parent``."""
        self._n = int(n_keys)

    def compact(self, n_keys: int) -> Tuple[np.ndarray, int]:
        """Return (lut, K): ``lut[key]`` is the dense id of ``key``'s class, ``lut[0] == 0``."""
        n_keys = int(n_keys)
        if n_keys >= self.parent.size or not np.all(self.parent[1:n_keys + 1]):
            raise KeyError(f"Union-find forest does not hold every key in 1..{n_keys}")
        lut, k = _compact(self.parent, n_keys)
        return lut, int(k)
