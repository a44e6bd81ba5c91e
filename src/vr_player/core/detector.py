# VRPlayer VR Detector

"""
Fuses the three sub-detectors into a single verdict.

Order and weights:
1. Filename   (0.4): sets is_vr, fov, format
2. Frame      (0.3): overwrites fov/format only
3. Resolution (0.3): sets is_vr only

confidence is the sum of the weights of the methods that contributed; read
it as "how many independent signals agreed", not as a probability.
"""

import asyncio
from typing import Optional

from vr_player.core.filename_matcher import FilenameMatcher
from vr_player.core.frame_analyzer import FrameAnalyzer
from vr_player.core.frame_provider import FrameProvider
from vr_player.core.models import DetectionMethod, DetectionResult
from vr_player.core.resolution_matcher import ResolutionMatcher
from vr_player.utils import config
from vr_player.utils.logging import get_logger

logger = get_logger(__name__)


class VRDetector:
    """
    Entry point for VR auto-detection. Holds no state between calls.
    """

    def __init__(self, cfg: Optional[dict] = None):
        self._cfg = cfg or config.CONFIG
        self.filename_matcher = FilenameMatcher(self._cfg)
        self.resolution_matcher = ResolutionMatcher(self._cfg)
        self.frame_analyzer = FrameAnalyzer(self._cfg)

    def _weight(self, method: DetectionMethod) -> float:
        key = f"weight_{method.value}"
        return float(self._cfg.get(key, config.CONFIG[key]))

    def _add(self, result: DetectionResult, method: DetectionMethod) -> None:
        result.methods.append(method)
        result.confidence += self._weight(method)

    async def detect(self, file_path: Optional[str] = None,
                     frame_provider: Optional[FrameProvider] = None) -> DetectionResult:
        """
        Classify a video.

        Args:
            file_path: Video path, used for keyword matching.
            frame_provider: Optional decoded-frame source. Must not be used
                by another detection call at the same time (seeking is
                stateful).

        Returns:
            DetectionResult. Sub-detector failures count as no contribution;
            this method never raises.
        """
        result = DetectionResult()

        # Method 1: filename
        try:
            filename_result = self.filename_matcher.match(file_path)
        except Exception:
            logger.exception("Filename detection failed")
            filename_result = None

        if filename_result is not None and filename_result.is_vr:
            result.is_vr = True
            result.fov = filename_result.fov
            result.format = filename_result.format
            self._add(result, DetectionMethod.FILENAME)
        logger.debug(f"Filename detection result: {filename_result}")

        # Method 2: frame content
        if frame_provider is not None:
            try:
                frame_result = await self.frame_analyzer.detect(frame_provider)
            except Exception:
                logger.warning("Frame content detection failed", exc_info=True)
                frame_result = None

            if frame_result is not None:
                result.fov = frame_result.fov
                result.format = frame_result.format
                self._add(result, DetectionMethod.FRAME)
            logger.debug(f"Frame content detection result: {frame_result}")

        # Method 3: resolution
        if frame_provider is not None:
            try:
                width = frame_provider.native_width
                height = frame_provider.native_height
                resolution_result = (
                    self.resolution_matcher.match(width, height) if width and height else None
                )
            except Exception:
                logger.exception("Resolution detection failed")
                resolution_result = None

            if resolution_result is not None and resolution_result.is_vr:
                result.is_vr = True
                self._add(result, DetectionMethod.RESOLUTION)
            logger.debug(f"Resolution detection result: {resolution_result}")

        if result.is_vr:
            methods = ", ".join(m.value for m in result.methods)
            logger.info(f"VR video detected with {result.confidence:.2f} confidence "
                        f"using methods: {methods}")
            logger.info(f"Final result: {result.fov.value}° {result.format.value.upper()}")

        return result


async def detect_vr_video(file_path: Optional[str] = None,
                          frame_provider: Optional[FrameProvider] = None,
                          cfg: Optional[dict] = None) -> DetectionResult:
    """Module-level shortcut for VRDetector(cfg).detect(...)."""
    return await VRDetector(cfg).detect(file_path, frame_provider)


def detect_vr_video_sync(file_path: Optional[str] = None,
                         frame_provider: Optional[FrameProvider] = None,
                         cfg: Optional[dict] = None) -> DetectionResult:
    """Blocking wrapper for scripts; must not be called from a running loop."""
    return asyncio.run(detect_vr_video(file_path, frame_provider, cfg))
