# VRPlayer - Utils Configuration

"""
Centralized configuration for the VR format detector.
Every keyword list, ratio table entry and pixel threshold is exposed here so
detection can be tuned without touching the matchers.
"""

import copy
from pathlib import Path
from typing import Dict, Any, Union

import yaml

CONFIG: Dict[str, Any] = {
    # ===========================================================================
    # Filename Matching
    # ===========================================================================
    "vr_keywords": [
        "vr", "360", "180", "sbs", "side-by-side", "sidebyside",
        "tb", "top-bottom", "topbottom", "ou", "over-under",
        "stereo", "3d", "cardboard", "oculus", "gear",
        "pano", "panorama", "spherical", "equirectangular",
        "cubemap", "fisheye", "fulldome", "immersive",
        "monoscopic", "stereoscopic", "dome", "planetarium",
        "quest", "vive", "rift", "pico", "wmr", "valve",
        "varjo", "pimax", "samsung", "daydream", "gopro",
        "4k360", "8k360", "4k180", "8k180", "6k", "8k", "360p", "180p",
        "virtual", "reality", "experience", "immerse",
        "spatial", "volumetric", "ambisonics",
    ],
    "fov_180_keywords": [
        "180", "180°", "half180", "half-180",
        "4k180", "8k180", "180p", "180vr", "vr180",
        "hemisphere", "half-sphere", "front180",
    ],
    "fov_360_keywords": [
        "360", "360°", "full360", "full-360",
        "4k360", "8k360", "360p", "360vr", "vr360",
        "spherical", "equirectangular", "full-sphere",
    ],
    "sbs_keywords": ["sbs", "side-by-side", "sidebyside", "stereo"],
    "tb_keywords": ["tb", "top-bottom", "topbottom", "ou", "over-under"],

    # ===========================================================================
    # Resolution Matching (first entry within tolerance wins)
    # ===========================================================================
    "vr_aspect_ratios": [
        {"ratio": 2.0, "tolerance": 0.12, "fov": "360", "format": "mono",
         "description": "360° panoramic video (2:1)"},
        {"ratio": 4.0, "tolerance": 0.2, "fov": "360", "format": "sbs",
         "description": "360° SBS stereo video (4:1)"},
        {"ratio": 1.0, "tolerance": 0.1, "fov": "360", "format": "tb",
         "description": "360° TB stereo video (1:1)"},
        {"ratio": 1.0, "tolerance": 0.1, "fov": "180", "format": "mono",
         "description": "180° video (1:1)"},
        {"ratio": 16 / 9, "tolerance": 0.1, "fov": "180", "format": "mono",
         "description": "180° video (16:9)"},
        {"ratio": 4 / 3, "tolerance": 0.1, "fov": "180", "format": "mono",
         "description": "180° video (4:3)"},
        {"ratio": 32 / 9, "tolerance": 0.2, "fov": "180", "format": "sbs",
         "description": "180° SBS stereo video (32:9)"},
        {"ratio": 8 / 3, "tolerance": 0.2, "fov": "180", "format": "sbs",
         "description": "180° SBS stereo video (8:3)"},
        {"ratio": 16 / 18, "tolerance": 0.1, "fov": "180", "format": "tb",
         "description": "180° TB stereo video (16:18)"},
        {"ratio": 4 / 6, "tolerance": 0.1, "fov": "180", "format": "tb",
         "description": "180° TB stereo video (4:6)"},
        {"ratio": 2.35, "tolerance": 0.1, "fov": "180", "format": "mono",
         "description": "Ultra-wide VR video"},
    ],

    # ===========================================================================
    # Frame Content Analysis
    # ===========================================================================
    "seam_samples": 50,             # Samples along the center column/row
    "seam_diff_threshold": 20,      # Summed |dR|+|dG|+|dB| that counts as a seam
    "seam_score_cutoff": 0.3,       # Score above which a stereo split is declared
    "edge_samples": 20,             # Rows sampled for left/right edge continuity
    "edge_diff_threshold": 20,      # Summed RGB diff below which edges "match"
    "edge_score_cutoff": 0.5,       # Score above which the frame is 360°
    "metadata_timeout_s": 10.0,     # Wait for provider metadata
    "seek_timeout_s": None,         # None = wait for the seek indefinitely

    # ===========================================================================
    # Fusion Weights
    # ===========================================================================
    "weight_filename": 0.4,
    "weight_frame": 0.3,
    "weight_resolution": 0.3,

    # ===========================================================================
    # Video Files
    # ===========================================================================
    "supported_extensions": [".mp4", ".webm", ".avi", ".mov", ".mkv", ".m4v"],
    "min_valid_file_size": 1024,    # Bytes; smaller files are treated as broken
}


def get_config() -> Dict[str, Any]:
    """Return a deep copy of the configuration dictionary."""
    return copy.deepcopy(CONFIG)


def get(key: str, default: Any = None) -> Any:
    """Get a configuration value by key."""
    return CONFIG.get(key, default)


def load_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a YAML override file on top of the defaults.

    Only keys already present in CONFIG are accepted; unknown keys are
    rejected so a typo doesn't silently leave a threshold at its default.

    Args:
        path: YAML file with a mapping of config keys to values.

    Returns:
        A merged copy; the module defaults are not modified.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file isn't a mapping or names unknown keys.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")

    unknown = sorted(set(data) - set(CONFIG))
    if unknown:
        raise ValueError(f"Unknown config keys in {path.name}: {', '.join(unknown)}")

    merged = get_config()
    merged.update(data)
    return merged
