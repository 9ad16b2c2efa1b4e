"""
resample.py

Rescale a Tensor to a new physical element size.

The tensor is viewed as (N, D, H, W): N is the product of all non-spatial
(leading) axes, and missing spatial axes are unit axes with scale 1. The
output is built one (n, target z) plane at a time, which is also the
granularity at which the progress context is checked for cancellation.

Source coordinate of target index ``i`` along an axis is ``i / scale``.
Nearest sampling rounds half up; linear sampling blends ``floor`` and
``floor + 1``. Indices past the last sample are mirrored about it.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Sequence, Tuple

import numpy as np

from .errors import Cancelled, DimensionMismatch, InvalidShape, UnsupportedElementType
from .progress import ProgressMonitor
from .tensor import Tensor

logger = logging.getLogger(__name__)


class Interpolation(str, Enum):
    NEAREST = "nearest"
    LINEAR = "linear"


def _round_half_up(v):
    return np.floor(np.asarray(v, dtype=np.float64) + 0.5).astype(np.int64)


def _mirror(idx: np.ndarray, extent: int) -> np.ndarray:
    out = np.where(idx >= extent, 2 * (extent - 1) - idx, idx)
    return np.clip(out, 0, max(extent - 1, 0))


def nearest_indices(target_extent: int, scale: float, extent: int) -> np.ndarray:
    src = np.arange(target_extent, dtype=np.float64) / scale
    return _mirror(_round_half_up(src), extent)


def linear_indices(target_extent: int, scale: float, extent: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Return (lower, upper, frac) sample indices and blend weights for one axis."""
    src = np.arange(target_extent, dtype=np.float64) / scale
    lower = np.floor(src).astype(np.int64)
    frac = src - lower
    upper = _mirror(lower + 1, extent)
    return np.clip(lower, 0, max(extent - 1, 0)), upper, frac


def _as_interpolation(mode) -> Interpolation:
    if isinstance(mode, str) and not isinstance(mode, Interpolation):
        mode = mode.lower()
    try:
        return Interpolation(mode)
    except ValueError:
        raise ValueError(f"Unknown interpolation '{mode}'; expected one of "
                         f"{[m.value for m in Interpolation]}") from None


def _bilinear(plane: np.ndarray, ry, rx) -> np.ndarray:
    yl, yu, fy = ry
    xl, xu, fx = rx
    fy = fy[:, None]
    top = plane[np.ix_(yl, xl)] * (1.0 - fx) + plane[np.ix_(yl, xu)] * fx
    bottom = plane[np.ix_(yu, xl)] * (1.0 - fx) + plane[np.ix_(yu, xu)] * fx
    return top * (1.0 - fy) + bottom * fy


def _store(values: np.ndarray, dtype: np.dtype) -> np.ndarray:
    if dtype.kind == "f":
        return values.astype(dtype)
    return _round_half_up(values).astype(dtype)


def target_shape(shape: Sequence[int], scales: Sequence[float]) -> Tuple[int, ...]:
    lead = len(shape) - len(scales)
    spatial = [int(_round_half_up(n * s)) for n, s in zip(shape[lead:], scales)]
    return tuple(shape[:lead]) + tuple(spatial)


def rescale(tensor: Tensor,
            target_element_size_um: Sequence[float],
            interpolation=Interpolation.LINEAR,
            progress: Optional[ProgressMonitor] = None) -> Tensor:
    """Resample ``tensor`` so that its element size becomes ``target_element_size_um``.

    Returns a new Tensor, or ``tensor`` itself when every scale factor is exactly 1.
    The input is never modified; on ``Cancelled`` nothing is returned.
    """
    mode = _as_interpolation(interpolation)
    target = tuple(float(e) for e in target_element_size_um)
    if len(target) != tensor.n_spatial_dims:
        raise DimensionMismatch(
            f"{len(target)} target element sizes given for {tensor.n_spatial_dims} spatial axes")
    if any(not e > 0 for e in target):
        raise InvalidShape(f"Target element sizes must be positive, got {target}")

    scales = [cur / tgt for cur, tgt in zip(tensor.element_size_um, target)]
    if all(s == 1.0 for s in scales):
        return tensor

    dtype = tensor.dtype
    if mode is Interpolation.LINEAR and dtype == np.object_:
        raise UnsupportedElementType("Linear interpolation needs a numeric element type")

    new_shape = target_shape(tensor.shape, scales)
    logger.info("Rescaling tensor %s with element size %s to element size %s. New shape: %s",
                tensor.shape_string(), tensor.element_size_um, target,
                "(" + ",".join(str(n) for n in new_shape) + ")")

    ns = tensor.n_spatial_dims
    pad = 3 - ns
    src_sp = (1,) * pad + tensor.spatial_shape
    dst_sp = (1,) * pad + new_shape[len(new_shape) - ns:]
    sc = (1.0,) * pad + tuple(scales)
    N = int(np.prod(tensor.shape[:tensor.ndim - ns], dtype=np.int64))
    D, H, W = src_sp
    tD, tH, tW = dst_sp

    src = tensor.data().reshape(N, D, H, W)
    out = np.empty((N, tD, tH, tW), dtype=dtype)

    if progress is not None:
        progress.init(N * tD, "Rescaling")
        progress.check()

    if mode is Interpolation.NEAREST:
        iz = nearest_indices(tD, sc[0], D)
        iy = nearest_indices(tH, sc[1], H)
        ix = nearest_indices(tW, sc[2], W)
        for n in range(N):
            for z in range(tD):
                if progress is not None and not progress.count(1):
                    raise Cancelled("Rescaling canceled")
                out[n, z] = src[n, iz[z]][np.ix_(iy, ix)]
    else:
        zl, zu, fz = linear_indices(tD, sc[0], D)
        ry = linear_indices(tH, sc[1], H)
        rx = linear_indices(tW, sc[2], W)
        for n in range(N):
            for z in range(tD):
                if progress is not None and not progress.count(1):
                    raise Cancelled("Rescaling canceled")
                lo = _bilinear(src[n, zl[z]].astype(np.float64), ry, rx)
                if fz[z] != 0.0:
                    hi = _bilinear(src[n, zu[z]].astype(np.float64), ry, rx)
                    lo = lo * (1.0 - fz[z]) + hi * fz[z]
                out[n, z] = _store(lo, dtype)

    if progress is not None:
        progress.end()

    return Tensor._adopt(out.reshape(-1), new_shape, target)
