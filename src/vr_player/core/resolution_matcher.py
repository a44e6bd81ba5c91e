# VRPlayer Resolution Matcher

"""
Aspect-ratio corroboration for VR content.

Only answers "is this frame shaped like a known VR layout". The table
entries carry fov/format for logging, but the verdict deliberately leaves
those to the filename and frame detectors.
"""

from typing import List, Optional

from vr_player.core.models import SubDetectionResult
from vr_player.utils import config
from vr_player.utils.logging import get_logger

logger = get_logger(__name__)


class ResolutionMatcher:
    """
    Matches width/height against an ordered table of VR aspect ratios.
    """

    def __init__(self, cfg: Optional[dict] = None):
        self._cfg = cfg or config.CONFIG
        self._table: List[dict] = list(
            self._cfg.get("vr_aspect_ratios", config.CONFIG["vr_aspect_ratios"])
        )

    def find_entry(self, width: float, height: float) -> Optional[dict]:
        """
        Return the first table entry whose tolerance window contains the ratio.

        Table order encodes priority between overlapping windows.
        """
        if not width or not height or width <= 0 or height <= 0:
            return None

        aspect_ratio = width / height
        for entry in self._table:
            if abs(aspect_ratio - entry["ratio"]) < entry["tolerance"]:
                return entry
        return None

    def match(self, width: Optional[float], height: Optional[float]) -> Optional[SubDetectionResult]:
        """
        Args:
            width: Native pixel width.
            height: Native pixel height.

        Returns:
            SubDetectionResult(is_vr=True) or None.
        """
        entry = self.find_entry(width, height)
        if entry is None:
            return None

        logger.info(f"VR detected from resolution: {width}x{height} "
                    f"({width / height:.2f}:1) - {entry['description']}")
        return SubDetectionResult(is_vr=True, description=entry["description"])
