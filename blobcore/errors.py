from __future__ import annotations


class BlobError(Exception):
    """Base class for all failures raised by blobcore."""


class InvalidShape(BlobError, ValueError):
    pass


class IndexOutOfRange(BlobError, IndexError):
    def __init__(self, axis: str, value: int, shape: str):
        self.axis = axis
        self.value = value
        self.shape = shape
        super().__init__(f"Index {value} on axis '{axis}' out of range for tensor with shape {shape}")


class DimensionMismatch(BlobError, IndexError):
    pass


class UnsupportedRank(BlobError, ValueError):
    pass


class UnsupportedElementType(BlobError, TypeError):
    pass


class Cancelled(BlobError):
    """Raised when a cooperative progress context was canceled mid-operation."""
