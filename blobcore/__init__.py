"""Physically calibrated n-D blobs and connected component labeling.

A ``Tensor`` is a dense (t, c, z, y, x) array whose trailing spatial axes
carry an element size in micrometers. Tensors can be resampled to another
element size (nearest or linear, mirrored at the far border) and labeled
into connected foreground components, independently per (t, c) layer.
"""
from .errors import (
    BlobError, Cancelled, DimensionMismatch, IndexOutOfRange,
    InvalidShape, UnsupportedElementType, UnsupportedRank,
)
from .tensor import Tensor, AXIS_NAMES, ELEMENT_TYPES
from .resample import Interpolation, rescale
from .union_find import UnionFindForest
from .labeling import Connectivity, label, label_array, neighbor_offsets
from .components import voxel_counts, centroids, bounding_boxes, layer_centroids
from .progress import ProgressMonitor
from .units import to_micrometers

__version__ = "0.1.0"
