from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Tuple

import numpy as np
from numba import njit

from .errors import Cancelled, UnsupportedRank
from .progress import ProgressMonitor
from .tensor import Tensor
from .union_find import UnionFindForest, uf_union

logger = logging.getLogger(__name__)


class Connectivity(str, Enum):
    SIMPLE = "simple"    # 4-connected in 2-D, 6-connected in 3-D
    COMPLEX = "complex"  # 8-connected in 2-D, 26-connected in 3-D


def _as_connectivity(mode) -> Connectivity:
    if isinstance(mode, str) and not isinstance(mode, Connectivity):
        mode = mode.lower()
    try:
        return Connectivity(mode)
    except ValueError:
        raise ValueError(f"Unknown connectivity '{mode}'; expected 'simple' or 'complex'") from None


def neighbor_offsets(connectivity: Connectivity, n_spatial_dims: int) -> np.ndarray:
    """Return the already-visited half of the neighborhood.

    Offsets are shaped (M,3) with entries (dz,dy,dx) relative to the current voxel.
    Scanning order is z, then y, then x (fastest).
    """
    if n_spatial_dims == 2:
        if connectivity is Connectivity.COMPLEX:
            offs = [(0, -1, -1), (0, -1, 0), (0, -1, 1), (0, 0, -1)]
        else:
            offs = [(0, -1, 0), (0, 0, -1)]
    elif n_spatial_dims == 3:
        if connectivity is Connectivity.COMPLEX:
            offs = [
                # previous slice (dz=-1), all 3x3 neighbors
                (-1, -1, -1), (-1, -1, 0), (-1, -1, 1),
                (-1, 0, -1),  (-1, 0, 0),  (-1, 0, 1),
                (-1, 1, -1),  (-1, 1, 0),  (-1, 1, 1),
                # same slice (dz=0), previous row/col
                (0, -1, -1), (0, -1, 0), (0, -1, 1), (0, 0, -1),
            ]
        else:
            offs = [(-1, 0, 0), (0, -1, 0), (0, 0, -1)]
    else:
        raise UnsupportedRank(f"Labeling needs 2 or 3 spatial axes, got {n_spatial_dims}")
    return np.asarray(offs, dtype=np.int64)


@njit
def _scan_plane(fg, labels, parent, z, neigh, next_label):
    """Assign provisional labels to plane z and record equivalences in ``parent``.

    Returns the next unused provisional label.
    """
    nz, ny, nx = fg.shape
    for y in range(ny):
        for x in range(nx):
            if not fg[z, y, x]:
                continue
            val = 0
            for t in range(neigh.shape[0]):
                dz = z + neigh[t, 0]
                dy = y + neigh[t, 1]
                dx = x + neigh[t, 2]
                if dz < 0 or dy < 0 or dx < 0 or dz >= nz or dy >= ny or dx >= nx:
                    continue
                nb = labels[dz, dy, dx]
                if nb == 0 or nb == val:
                    continue
                if val == 0:
                    val = nb
                else:
                    uf_union(parent, val, nb)
            if val == 0:
                val = next_label
                parent[val] = val
                next_label += 1
            labels[z, y, x] = val
    return next_label


def label(tensor: Tensor,
          connectivity=Connectivity.COMPLEX,
          progress: Optional[ProgressMonitor] = None) -> Tuple[Tensor, np.ndarray]:
    """Label connected foreground (nonzero) regions per (t, c) layer.

    Returns (labels, n_components): an int32 Tensor with the input's shape and
    element size (0 = background, 1..K per layer in order of first appearance
    in the raster scan) and an int64 array with one component count per layer.
    """
    conn = _as_connectivity(connectivity)
    ns = tensor.n_spatial_dims
    n_lead = tensor.ndim - ns
    if ns not in (2, 3) or n_lead > 2:
        raise UnsupportedRank(
            f"Cannot label {tensor.ndim}-D tensor with {ns} spatial axes; expected (t, c) + 2-D or 3-D")
    neigh = neighbor_offsets(conn, ns)

    n_layers = int(np.prod(tensor.shape[:n_lead], dtype=np.int64))
    D = tensor.spatial_shape[0] if ns == 3 else 1
    H, W = tensor.spatial_shape[-2:]

    fg = (tensor.numpy() != 0).reshape(n_layers, D, H, W).view(np.uint8)
    out = np.zeros((n_layers, D, H, W), dtype=np.int32)
    n_components = np.zeros(n_layers, dtype=np.int64)

    if progress is not None:
        progress.init(n_layers * D, "Connected component labeling")
        progress.check()

    for n in range(n_layers):
        layer = out[n]
        # new provisional labels are never adjacent, so at most ceil(size/2) are created
        forest = UnionFindForest(capacity=D * H * W // 2 + 2)
        next_label = 1
        for z in range(D):
            if progress is not None and not progress.count(1):
                raise Cancelled("Connected component labeling canceled")
            next_label = _scan_plane(fg[n], layer, forest.parent, z, neigh, next_label)
        forest.adopt(next_label - 1)
        lut, k = forest.compact(next_label - 1)
        out[n] = lut[layer]
        n_components[n] = k

    if progress is not None:
        progress.end()
    logger.debug("labeled %d layer(s) of %s: components=%s", n_layers, tensor.shape_string(), n_components.tolist())

    return Tensor._adopt(out.reshape(-1), tensor.shape, tensor.element_size_um), n_components


def label_array(mask: np.ndarray, connectivity=Connectivity.COMPLEX) -> Tuple[np.ndarray, int]:
    """Label a single 2-D or 3-D array. Returns (labels int32 array, K)."""
    mask = np.asarray(mask)
    if mask.ndim not in (2, 3):
        raise UnsupportedRank(f"label_array expects a 2-D or 3-D array, got {mask.ndim}-D")
    t = Tensor.from_array(mask != 0, (1.0,) * mask.ndim)
    labels, counts = label(t, connectivity)
    return labels.numpy(), int(counts[0])
