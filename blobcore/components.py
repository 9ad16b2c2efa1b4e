from __future__ import annotations

from typing import List, Sequence

import numpy as np

from .tensor import Tensor


def _ensure_K(labels: np.ndarray, K: int | None = None) -> int:
    if K is None:
        K = int(labels.max()) if labels.size else 0
    return K


def voxel_counts(labels: np.ndarray, K: int | None = None) -> np.ndarray:
    K = _ensure_K(labels, K)
    lab = labels.ravel()
    cnt = np.bincount(lab, minlength=K + 1).astype(np.int64)
    return cnt[1:K + 1]


def centroids(labels: np.ndarray,
              element_size_um: Sequence[float],
              K: int | None = None) -> np.ndarray:
    """Compute per-label centroids of voxel centers in micrometers.

    ``labels`` holds only spatial axes, ``element_size_um`` one size per axis.
    Returns float64 array [K, ndim] in axis order (z, y, x) / (y, x).
    """
    K = _ensure_K(labels, K)
    nd = labels.ndim
    if K == 0:
        return np.zeros((0, nd), dtype=np.float64)

    W = np.zeros(K + 1, dtype=np.float64)
    S = np.zeros((nd, K + 1), dtype=np.float64)
    for d in range(nd):
        coord = (np.arange(labels.shape[d]) + 0.5) * element_size_um[d]
        for i in range(labels.shape[d]):
            L = np.take(labels, i, axis=d).ravel()
            if L.size == 0:
                continue
            cnt = np.bincount(L, minlength=K + 1)[:K + 1]
            S[d] += coord[i] * cnt
            if d == 0:
                W += cnt

    small = 1e-300
    return (S[:, 1:] / (W[1:] + small)).T


def bounding_boxes(labels: np.ndarray, K: int | None = None) -> np.ndarray:
    """Compute per-label bounding boxes [min,max) along every axis.

    Returns int32 array of shape [K, 2*ndim]: (min_0, max_0, min_1, max_1, ...).
    """
    K = _ensure_K(labels, K)
    nd = labels.ndim
    if K == 0:
        return np.zeros((0, 2 * nd), dtype=np.int32)
    cols = []
    for d in range(nd):
        n = labels.shape[d]
        lo = np.full(K + 1, n, dtype=np.int64)
        hi = np.zeros(K + 1, dtype=np.int64)
        for i in range(n):
            u = np.unique(np.take(labels, i, axis=d))
            u = u[(u != 0) & (u <= K)]
            if u.size == 0:
                continue
            lo[u] = np.minimum(lo[u], i)
            hi[u] = np.maximum(hi[u], i + 1)
        cols += [lo[1:], hi[1:]]
    return np.stack(cols, axis=1).astype(np.int32)


def layer_centroids(label_tensor: Tensor, n_components: np.ndarray) -> List[np.ndarray]:
    """Centroids (micrometers) of every component, one [K, n_spatial] array per (t, c) layer."""
    n_layers = len(n_components)
    layers = label_tensor.numpy().reshape((n_layers,) + label_tensor.spatial_shape)
    return [centroids(layers[n], label_tensor.element_size_um, K=int(n_components[n]))
            for n in range(n_layers)]
