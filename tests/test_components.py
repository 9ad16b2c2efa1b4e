from __future__ import annotations

import numpy as np
import pytest
from scipy import ndimage as ndi

from blobcore import Tensor, bounding_boxes, centroids, label, label_array, layer_centroids, voxel_counts


def _two_blobs():
    labels = np.zeros((6, 8), dtype=np.int32)
    labels[0:2, 0:3] = 1
    labels[3:6, 5:7] = 2
    return labels


def test_voxel_counts():
    labels = _two_blobs()
    assert voxel_counts(labels).tolist() == [6, 6]
    assert voxel_counts(labels, K=3).tolist() == [6, 6, 0]
    assert voxel_counts(np.zeros((3, 3), dtype=np.int32)).tolist() == []


def test_centroids_in_micrometers():
    labels = _two_blobs()
    c = centroids(labels, (2.0, 0.5))
    assert c.shape == (2, 2)
    # voxel centers sit at (i + 0.5) * element size
    assert c[0] == pytest.approx([1.0 * 2.0, 1.5 * 0.5])
    assert c[1] == pytest.approx([4.5 * 2.0, 6.0 * 0.5])


def test_centroids_match_scipy():
    rng = np.random.default_rng(11)
    labels, k = label_array(rng.random((7, 10, 9)) > 0.5, "simple")
    es = (3.0, 1.0, 0.5)
    ours = centroids(labels, es, K=k)
    ref = np.array(ndi.center_of_mass(np.ones_like(labels), labels, range(1, k + 1)))
    ref = (ref + 0.5) * np.array(es)
    assert np.allclose(ours, ref)


def test_centroids_empty():
    c = centroids(np.zeros((4, 4, 4), dtype=np.int32), (1.0, 1.0, 1.0))
    assert c.shape == (0, 3)


def test_bounding_boxes():
    boxes = bounding_boxes(_two_blobs())
    assert boxes.dtype == np.int32
    assert boxes.tolist() == [[0, 2, 0, 3], [3, 6, 5, 7]]


def test_bounding_boxes_match_scipy():
    rng = np.random.default_rng(5)
    labels, k = label_array(rng.random((20, 25)) > 0.6, "complex")
    boxes = bounding_boxes(labels, K=k)
    for i, sl in enumerate(ndi.find_objects(labels)):
        assert boxes[i].tolist() == [sl[0].start, sl[0].stop, sl[1].start, sl[1].stop]


def test_layer_centroids_per_layer():
    arr = np.zeros((2, 4, 4), dtype=np.uint8)
    arr[0, 0, 0] = 1
    arr[1, 3, 3] = 1
    arr[1, 0, 0] = 1
    labels, k = label(Tensor.from_array(arr, (1.0, 1.0)))
    cents = layer_centroids(labels, k)
    assert len(cents) == 2
    assert cents[0].tolist() == [[0.5, 0.5]]
    assert cents[1].tolist() == [[0.5, 0.5], [3.5, 3.5]]
