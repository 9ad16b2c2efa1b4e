"""
tensor.py

Dense n-dimensional array with physical element size metadata.

- Axis order is (t, c, z, y, x); lower-rank tensors omit leading axes.
- ``element_size_um`` holds one size per trailing spatial axis, so its length
  (1, 2 or 3) decides how many trailing axes are resampled by ``rescale``.
- The buffer is a single flat, C-contiguous numpy array owned by the tensor.
"""

from __future__ import annotations

import math
import operator
from typing import TYPE_CHECKING, Any, Optional, Sequence, Tuple

import numpy as np

from .errors import DimensionMismatch, IndexOutOfRange, InvalidShape, UnsupportedElementType, UnsupportedRank
from .shapes import flat_index, num_elements, shape_string, strides

if TYPE_CHECKING:
    from .progress import ProgressMonitor

AXIS_NAMES = ("t", "c", "z", "y", "x")

ELEMENT_TYPES = tuple(np.dtype(t) for t in (
    np.bool_, np.int8, np.uint8, np.int16, np.uint16,
    np.int32, np.uint32, np.float32, np.float64, np.object_,
))


def _element_dtype(dtype) -> np.dtype:
    dt = np.dtype(dtype)
    if dt not in ELEMENT_TYPES:
        raise UnsupportedElementType(f"Element type {dt} is not supported")
    return dt


def _validate(shape: Tuple[int, ...], element_size_um: Tuple[float, ...]):
    if len(shape) == 0:
        raise InvalidShape("Tensor needs at least one axis")
    for n in shape:
        if n < 0:
            raise InvalidShape(f"Negative extent in shape {shape_string(shape)}")
    if not 1 <= len(element_size_um) <= 3:
        raise InvalidShape(f"Expected 1 to 3 element sizes, got {len(element_size_um)}")
    if len(element_size_um) > len(shape):
        raise InvalidShape(
            f"{len(element_size_um)} element sizes given for {len(shape)}-D shape {shape_string(shape)}")
    for e in element_size_um:
        if not (math.isfinite(e) and e > 0):
            raise InvalidShape(f"Element sizes must be positive, got {element_size_um}")


class Tensor:
    __slots__ = ("_data", "_shape", "_stride", "_element_size_um")

    def __init__(self,
                 shape: Sequence[int],
                 element_size_um: Sequence[float],
                 dtype=np.float32,
                 data=None):
        shape = tuple(int(n) for n in shape)
        element_size_um = tuple(float(e) for e in element_size_um)
        _validate(shape, element_size_um)
        dt = _element_dtype(dtype)
        n = num_elements(shape)
        if data is None:
            if dt == np.object_:
                buf = np.full(n, None, dtype=dt)
            else:
                buf = np.zeros(n, dtype=dt)
        else:
            buf = np.array(data, dtype=dt, copy=True).reshape(-1)
            if buf.size != n:
                raise InvalidShape(f"Buffer of {buf.size} elements does not fit shape {shape_string(shape)}")
        self._data = buf
        self._shape = shape
        self._stride = strides(shape)
        self._element_size_um = element_size_um

    @classmethod
    def from_array(cls, array, element_size_um: Sequence[float]) -> "Tensor":
        arr = np.asarray(array)
        return cls(arr.shape, element_size_um, dtype=arr.dtype, data=arr)

    @classmethod
    def _adopt(cls, buf: np.ndarray, shape: Tuple[int, ...], element_size_um: Tuple[float, ...]) -> "Tensor":
        # Takes ownership of a freshly built flat buffer without copying it.
        t = cls.__new__(cls)
        t._data = buf
        t._shape = shape
        t._stride = strides(shape)
        t._element_size_um = element_size_um
        return t

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._shape

    @property
    def stride(self) -> Tuple[int, ...]:
        return self._stride

    @property
    def element_size_um(self) -> Tuple[float, ...]:
        return self._element_size_um

    @property
    def ndim(self) -> int:
        return len(self._shape)

    @property
    def n_spatial_dims(self) -> int:
        return len(self._element_size_um)

    @property
    def spatial_shape(self) -> Tuple[int, ...]:
        return self._shape[self.ndim - self.n_spatial_dims:]

    @property
    def size(self) -> int:
        return self._data.size

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    def data(self) -> np.ndarray:
        """Return the flat buffer by reference. Callers must not resize it."""
        return self._data

    def numpy(self) -> np.ndarray:
        return self._data.reshape(self._shape)

    def shape_string(self) -> str:
        return shape_string(self._shape)

    def copy(self) -> "Tensor":
        return Tensor._adopt(self._data.copy(), self._shape, self._element_size_um)

    def _axis_name(self, d: int) -> str:
        if self.ndim <= len(AXIS_NAMES):
            return AXIS_NAMES[len(AXIS_NAMES) - self.ndim + d]
        return f"axis{d}"

    def _offset(self, pos: Sequence[int]) -> int:
        if len(pos) != self.ndim:
            raise DimensionMismatch(
                f"{self.ndim}-D tensor cannot be accessed via {len(pos)}-D index {tuple(pos)}")
        for d, p in enumerate(pos):
            p = operator.index(p)
            if p < 0 or p >= self._shape[d]:
                raise IndexOutOfRange(self._axis_name(d), p, self.shape_string())
        return flat_index(pos, self._stride)

    def _offset_tczyx(self, t: int, c: int, z: int, y: int, x: int) -> int:
        if self.ndim > len(AXIS_NAMES):
            raise UnsupportedRank(f"{self.ndim}-D tensor cannot be accessed using (t, c, z, y, x)")
        return self._offset((t, c, z, y, x)[len(AXIS_NAMES) - self.ndim:])

    def get(self, pos: Sequence[int]) -> Any:
        return self._data[self._offset(pos)]

    def set(self, pos: Sequence[int], value: Any):
        self._data[self._offset(pos)] = value

    def get_tczyx(self, t: int, c: int, z: int, y: int, x: int) -> Any:
        """Read using the fixed (t, c, z, y, x) convention; unused leading components are ignored."""
        return self._data[self._offset_tczyx(t, c, z, y, x)]

    def set_tczyx(self, t: int, c: int, z: int, y: int, x: int, value: Any):
        self._data[self._offset_tczyx(t, c, z, y, x)] = value

    def rescale(self, target_element_size_um: Sequence[float], interpolation="linear",
                progress: Optional["ProgressMonitor"] = None) -> "Tensor":
        """Return this tensor resampled to the given element size.

        The tensor itself is left untouched. If no axis changes scale, ``self``
        is returned so callers can detect the no-op by identity.
        """
        from .resample import rescale
        return rescale(self, target_element_size_um, interpolation, progress=progress)

    def __repr__(self) -> str:
        return (f"Tensor(shape={self.shape_string()}, element_size_um={self._element_size_um}, "
                f"dtype={self.dtype})")
