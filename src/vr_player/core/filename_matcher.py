# VRPlayer Filename Matcher

"""
Keyword-based VR detection from the file name alone.

A name is VR when any vocabulary keyword appears as a complete word. The
fov and stereo format are then refined from smaller keyword sets, scanned in
a fixed order where the later set overwrites the earlier one:
180 then 360, SBS then TB.
"""

import re
from typing import Iterable, List, Optional

from vr_player.core.models import FieldOfView, StereoFormat, SubDetectionResult
from vr_player.utils import config
from vr_player.utils.logging import get_logger

logger = get_logger(__name__)

# Anything that isn't a letter or digit separates words, including "_".
_WORD_PATTERN = r"(?<![a-z0-9]){}(?![a-z0-9])"


def base_filename(file_path: str) -> str:
    """Strip directory components, accepting both / and \\ separators."""
    return re.split(r"[/\\]", file_path)[-1]


def has_complete_word(text: str, keyword: str) -> bool:
    """True if keyword occurs in text delimited by non-alphanumerics."""
    pattern = _WORD_PATTERN.format(re.escape(keyword.lower()))
    return re.search(pattern, text, re.IGNORECASE) is not None


def _first_match(text: str, keywords: Iterable[str]) -> Optional[str]:
    for keyword in keywords:
        if has_complete_word(text, keyword):
            return keyword
    return None


class FilenameMatcher:
    """
    Filename keyword classifier.
    """

    def __init__(self, cfg: Optional[dict] = None):
        self._cfg = cfg or config.CONFIG

    def _keywords(self, key: str) -> List[str]:
        return list(self._cfg.get(key, config.CONFIG[key]))

    def match(self, file_path: Optional[str]) -> Optional[SubDetectionResult]:
        """
        Classify a file path.

        Args:
            file_path: Full path or bare name; None/empty is allowed.

        Returns:
            SubDetectionResult with is_vr=True and best-guess fov/format,
            or None when no VR keyword is present.
        """
        if not file_path:
            return None

        file_name = base_filename(file_path).lower()

        matched = _first_match(file_name, self._keywords("vr_keywords"))
        if matched is None:
            return None

        fov = FieldOfView.FOV_180
        stereo = StereoFormat.MONO

        # Later scans overwrite earlier ones on purpose
        if _first_match(file_name, self._keywords("fov_180_keywords")):
            fov = FieldOfView.FOV_180
        if _first_match(file_name, self._keywords("fov_360_keywords")):
            fov = FieldOfView.FOV_360

        if _first_match(file_name, self._keywords("sbs_keywords")):
            stereo = StereoFormat.SBS
        if _first_match(file_name, self._keywords("tb_keywords")):
            stereo = StereoFormat.TB

        description = f"keyword '{matched}' in filename"
        logger.info(f"VR detected from filename: \"{file_name}\" - "
                    f"FOV: {fov.value}°, Format: {stereo.value.upper()}")

        return SubDetectionResult(is_vr=True, fov=fov, format=stereo,
                                  description=description)
