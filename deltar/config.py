"""
Configuration for the Delta R estimation package.

Defaults live in this module and can be overridden by a ``deltar`` section
in a ``config.yaml`` file, e.g.

    deltar:
      iterations: 50000
      data_dir: /path/to/curves
"""

from __future__ import annotations

import copy
import os
from typing import Dict, Optional

import yaml

from deltar.constants import PROBABILITY_FLOOR, T_DOF


_DEFAULT_CONFIG: Dict[str, object] = {
    "iterations": 10_000,
    "confidence_level": 0.95,
    "calibration_curve": "intcal13",
    "reservoir_curve": "marine13",
    "terrestrial_curves": ["intcal13", "shcal13"],
    "probability_floor": PROBABILITY_FLOOR,
    "t_dof": T_DOF,
    "data_dir": "data",
    "n_jobs": 1,
    "curve_urls": {
        "intcal13": "https://intcal.org/curves/intcal13.14c",
        "marine13": "https://intcal.org/curves/marine13.14c",
        "shcal13": "https://intcal.org/curves/shcal13.14c",
    },
}


_CONFIG: Optional[Dict[str, object]] = None


def _config_path():
    """Return the path to config.yaml, honouring DELTAR_CONFIG."""
    return os.environ.get("DELTAR_CONFIG", "config.yaml")


def _merge_dict(default: Dict[str, object], override: Dict[str, object]) -> Dict[str, object]:
    merged = dict(default)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def load_config(reload: bool = False) -> Dict[str, object]:
    """Load the package configuration, merging config.yaml over the defaults.

    The merged configuration is cached; pass reload=True to re-read the file.
    """
    global _CONFIG
    if _CONFIG is not None and not reload:
        return _CONFIG

    cfg = copy.deepcopy(_DEFAULT_CONFIG)
    try:
        with open(_config_path(), "r") as f:
            file_cfg = yaml.safe_load(f) or {}
        cfg = _merge_dict(cfg, file_cfg.get("deltar") or {})
    except FileNotFoundError:
        pass
    _CONFIG = cfg
    return cfg


def get_option(key: str):
    """Return a single configuration value."""
    return load_config()[key]
