from __future__ import annotations

import argparse
import json
import logging
import os
import subprocess
import time

import numpy as np

from .components import layer_centroids, voxel_counts
from .config import PipelineConfig, load_config
from .errors import UnsupportedElementType
from .labeling import label
from .progress import ProgressMonitor
from .tensor import ELEMENT_TYPES, Tensor

logger = logging.getLogger(__name__)


def load_input(path: str) -> np.ndarray:
    if path.endswith(".npz"):
        with np.load(path) as d:
            if "data" not in d.files:
                raise KeyError(f"{path} has no 'data' array (found {d.files})")
            return d["data"]
    return np.load(path)


def as_element_type(arr: np.ndarray) -> np.ndarray:
    """Cast a loaded array onto the closed set of tensor element types.

    Wide integers become int32 when every value fits, float64 otherwise;
    float16 becomes float32.
    """
    if arr.dtype in ELEMENT_TYPES:
        return arr
    kind = arr.dtype.kind
    if kind in "iu":
        info = np.iinfo(np.int32)
        if arr.size == 0 or (int(arr.min()) >= info.min and int(arr.max()) <= info.max):
            return arr.astype(np.int32)
        logger.warning("%s values exceed int32, loading as float64", arr.dtype)
        return arr.astype(np.float64)
    if kind == "f":
        return arr.astype(np.float32 if arr.dtype.itemsize < 4 else np.float64)
    raise UnsupportedElementType(f"Cannot load arrays of element type {arr.dtype}")


def _git_rev() -> str:
    try:
        return subprocess.check_output(["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL).decode().strip()
    except (OSError, subprocess.CalledProcessError):
        return "unknown"


def run(cfg: PipelineConfig, progress: ProgressMonitor | None = None) -> dict:
    """Load, rescale, label and measure one input; write results to ``cfg.output_dir``."""
    t0 = time.time()
    tensor = Tensor.from_array(as_element_type(load_input(cfg.input_path)), cfg.element_size_um)
    t_load = time.time()

    if progress is not None:
        progress.push("Rescaling", 0.0, 0.5)
    if cfg.target_element_size_um is not None:
        tensor = tensor.rescale(cfg.target_element_size_um, cfg.interpolation, progress=progress)
    if progress is not None:
        progress.pop()
    t_rescale = time.time()

    if cfg.threshold is not None:
        tensor = Tensor.from_array(tensor.numpy() > cfg.threshold, tensor.element_size_um)

    if progress is not None:
        progress.push("Labeling", 0.5, 1.0)
    labels, n_components = label(tensor, cfg.connectivity, progress=progress)
    if progress is not None:
        progress.pop()
    t_label = time.time()

    n_layers = len(n_components)
    layers = labels.numpy().reshape((n_layers,) + labels.spatial_shape)
    counts = [voxel_counts(layers[n], K=int(n_components[n])) for n in range(n_layers)]
    cents = layer_centroids(labels, n_components)
    t_done = time.time()

    os.makedirs(cfg.output_dir, exist_ok=True)
    out_path = os.path.join(cfg.output_dir, "labels.npz")
    np.savez(
        out_path,
        labels=labels.numpy(),
        n_components=n_components,
        element_size_um=np.array(labels.element_size_um, dtype=np.float64),
        voxel_counts=np.concatenate(counts) if counts else np.zeros(0, dtype=np.int64),
        centroids_um=(np.concatenate(cents, axis=0) if cents
                      else np.zeros((0, labels.n_spatial_dims), dtype=np.float64)),
        centroid_layer=np.repeat(np.arange(n_layers, dtype=np.int32), n_components),
    )

    times = {
        "load": float(t_load - t0),
        "rescale": float(t_rescale - t_load),
        "label": float(t_label - t_rescale),
        "measure": float(t_done - t_label),
    }
    meta = {
        "input_path": cfg.input_path,
        "shape": list(labels.shape),
        "element_size_um": list(labels.element_size_um),
        "n_components": [int(k) for k in n_components],
        "labeling": {
            "connectivity": cfg.connectivity.value,
            "threshold": cfg.threshold,
        },
        "rescale": {
            "target_element_size_um": (list(cfg.target_element_size_um)
                                       if cfg.target_element_size_um is not None else None),
            "interpolation": cfg.interpolation.value,
        },
        "times": times,
        "git_rev": _git_rev(),
        "output_npz": os.path.basename(out_path),
    }
    with open(os.path.join(cfg.output_dir, "labels.meta.json"), "w") as f:
        json.dump(meta, f, indent=2)
    logger.info("wrote %s", out_path)
    return meta


def main(argv=None):
    ap = argparse.ArgumentParser(description="Rescale a hyperstack and label its connected components.")
    ap.add_argument("--config", required=True)
    ap.add_argument("--progress", action="store_true", help="Show a progress bar.")
    args = ap.parse_args(argv)

    cfg = load_config(args.config)
    logging.basicConfig(level=getattr(logging, cfg.log_level, logging.INFO),
                        format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    progress = ProgressMonitor(show=args.progress or cfg.show_progress, description="blobcore")
    try:
        meta = run(cfg, progress=progress)
    finally:
        progress.close()

    t = meta["times"]
    K = sum(meta["n_components"])
    print(f"times: load={t['load']:.2f}s rescale={t['rescale']:.2f}s label={t['label']:.2f}s K={K}")


if __name__ == "__main__":
    main()
