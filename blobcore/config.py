"""
Pipeline configuration read from YAML.

Example
-------

    input_path: ./stack.npy        # .npy, or .npz holding a 'data' array
    element_size: [0.5, 0.2, 0.2]  # (z, y, x) or (y, x), in `unit`
    unit: um
    target_element_size_um: [1.0, 0.5, 0.5]
    interpolation: nearest         # nearest | linear
    connectivity: complex          # simple | complex
    threshold: 0.5                 # foreground = value > threshold; omit for value != 0
    output_dir: ./blob_out
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import yaml

from .labeling import Connectivity
from .resample import Interpolation
from .units import element_size_um


@dataclass
class PipelineConfig:
    input_path: str
    element_size_um: Tuple[float, ...]
    target_element_size_um: Optional[Tuple[float, ...]] = None
    interpolation: Interpolation = Interpolation.NEAREST
    connectivity: Connectivity = Connectivity.COMPLEX
    threshold: Optional[float] = None
    output_dir: str = "./blob_out"
    show_progress: bool = False
    log_level: str = "INFO"


def parse_config(path: str) -> dict:
    with open(path, "r") as f:
        cfg = yaml.safe_load(f)
    if not isinstance(cfg, dict):
        raise ValueError(f"{path}: expected a mapping at top level")
    return cfg


def _sizes(cfg: dict, key: str, unit: str = "um") -> Optional[Tuple[float, ...]]:
    raw = cfg.get(key)
    if raw is None:
        return None
    if not isinstance(raw, (list, tuple)) or not 1 <= len(raw) <= 3:
        raise ValueError(f"'{key}' must be a list of 1 to 3 sizes")
    sizes = element_size_um([float(v) for v in raw], unit)
    if any(s <= 0 for s in sizes):
        raise ValueError(f"'{key}' must be positive, got {raw}")
    return sizes


def config_from_dict(cfg: dict) -> PipelineConfig:
    if "input_path" not in cfg:
        raise ValueError("'input_path' is required")
    unit = str(cfg.get("unit", "um"))
    es = _sizes(cfg, "element_size", unit)
    if es is None:
        raise ValueError("'element_size' is required")
    target = _sizes(cfg, "target_element_size_um")
    if target is not None and len(target) != len(es):
        raise ValueError("'target_element_size_um' must have as many entries as 'element_size'")
    try:
        interp = Interpolation(str(cfg.get("interpolation", "nearest")).lower())
    except ValueError:
        raise ValueError("'interpolation' must be 'nearest' or 'linear'") from None
    try:
        conn = Connectivity(str(cfg.get("connectivity", "complex")).lower())
    except ValueError:
        raise ValueError("'connectivity' must be 'simple' or 'complex'") from None
    thr = cfg.get("threshold")
    return PipelineConfig(
        input_path=str(cfg["input_path"]),
        element_size_um=es,
        target_element_size_um=target,
        interpolation=interp,
        connectivity=conn,
        threshold=None if thr is None else float(thr),
        output_dir=str(cfg.get("output_dir", "./blob_out")),
        show_progress=bool(cfg.get("show_progress", False)),
        log_level=str(cfg.get("log_level", "INFO")).upper(),
    )


def load_config(path: str) -> PipelineConfig:
    return config_from_dict(parse_config(path))
