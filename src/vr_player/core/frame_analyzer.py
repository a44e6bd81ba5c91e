# VRPlayer Frame Analyzer

"""
Frame-content analysis for stereo format and field of view.

One mid-video frame is sampled with three passes:
- SBS seam: pixel jumps across the vertical center line
- TB seam: pixel jumps across the horizontal center line
- 360 continuity: left and right edges of one eye's image look alike

Scores are hit ratios in [0, 1]. The pixel passes are plain functions over an
RGBA array so they can be exercised without any decoder.
"""

import asyncio
from typing import Optional, Tuple

import numpy as np

from vr_player.core.frame_provider import (
    FrameProvider, FrameProviderError, METADATA_READY, LOAD_ERROR, SEEK_COMPLETED,
)
from vr_player.core.models import FieldOfView, StereoFormat, SubDetectionResult
from vr_player.utils import config
from vr_player.utils.logging import get_logger

logger = get_logger(__name__)


def _rgb(frame: np.ndarray) -> np.ndarray:
    """Signed RGB view so channel differences don't wrap around."""
    return frame[..., :3].astype(np.int32)


def _channel_diff(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return np.abs(a - b).sum(axis=-1)


def detect_sbs_score(frame: np.ndarray, threshold: int = 20, samples: int = 50) -> float:
    """
    Fraction of sampled rows with a seam at x = width // 2.

    A row is a hit when the center pixel differs from its left or right
    neighbour by more than threshold (summed over R, G, B).
    """
    height, width = frame.shape[:2]
    if height == 0 or width == 0:
        return 0.0

    rgb = _rgb(frame)
    center_x = width // 2
    rows = np.arange(0, height, max(1, height // samples))

    center = rgb[rows, center_x]
    left = rgb[rows, max(0, center_x - 1)]
    right = rgb[rows, min(width - 1, center_x + 1)]

    hits = (_channel_diff(center, left) > threshold) | (_channel_diff(center, right) > threshold)
    return float(hits.mean())


def detect_tb_score(frame: np.ndarray, threshold: int = 20, samples: int = 50) -> float:
    """Fraction of sampled columns with a seam at y = height // 2."""
    height, width = frame.shape[:2]
    if height == 0 or width == 0:
        return 0.0

    rgb = _rgb(frame)
    center_y = height // 2
    cols = np.arange(0, width, max(1, width // samples))

    center = rgb[center_y, cols]
    top = rgb[max(0, center_y - 1), cols]
    bottom = rgb[min(height - 1, center_y + 1), cols]

    hits = (_channel_diff(center, top) > threshold) | (_channel_diff(center, bottom) > threshold)
    return float(hits.mean())


def single_eye_region(width: int, height: int, stereo: StereoFormat) -> Tuple[int, int]:
    """Width/height of one eye's sub-image for a packed stereo frame."""
    if stereo == StereoFormat.SBS:
        return width // 2, height
    if stereo == StereoFormat.TB:
        return width, height // 2
    return width, height


def detect_360_score(frame: np.ndarray, stereo: StereoFormat = StereoFormat.MONO,
                     threshold: int = 20, samples: int = 20) -> float:
    """
    Fraction of sampled rows whose leftmost and rightmost pixels match.

    Only the first eye's sub-image is examined: wraparound continuity holds
    per eye, not across the packed frame.
    """
    height, width = frame.shape[:2]
    width, height = single_eye_region(width, height, stereo)
    if height == 0 or width == 0:
        return 0.0

    rgb = _rgb(frame)
    rows = np.arange(0, height, max(1, height // samples))

    hits = _channel_diff(rgb[rows, 0], rgb[rows, width - 1]) < threshold
    return float(hits.mean())


class FrameAnalyzer:
    """
    Classifies stereo format and fov from a decoded frame.
    """

    def __init__(self, cfg: Optional[dict] = None):
        self._cfg = cfg or config.CONFIG

    def _get(self, key: str):
        return self._cfg.get(key, config.CONFIG[key])

    def classify_format(self, frame: np.ndarray) -> Tuple[StereoFormat, float, float]:
        """
        Returns:
            (format, sbs_score, tb_score). SBS wins when both pass the cutoff.
        """
        threshold = self._get("seam_diff_threshold")
        samples = self._get("seam_samples")
        cutoff = self._get("seam_score_cutoff")

        sbs_score = detect_sbs_score(frame, threshold, samples)
        tb_score = detect_tb_score(frame, threshold, samples)
        logger.debug(f"SBS score: {sbs_score:.3f}, TB score: {tb_score:.3f}")

        if sbs_score > cutoff:
            return StereoFormat.SBS, sbs_score, tb_score
        if tb_score > cutoff:
            return StereoFormat.TB, sbs_score, tb_score
        return StereoFormat.MONO, sbs_score, tb_score

    def classify_fov(self, frame: np.ndarray, stereo: StereoFormat) -> Tuple[FieldOfView, float]:
        score = detect_360_score(frame, stereo,
                                 self._get("edge_diff_threshold"),
                                 self._get("edge_samples"))
        logger.debug(f"360 score: {score:.3f}")

        if score > self._get("edge_score_cutoff"):
            return FieldOfView.FOV_360, score
        return FieldOfView.FOV_180, score

    def analyze_pixels(self, frame: np.ndarray) -> SubDetectionResult:
        """
        Run all three passes on an RGBA frame.

        is_vr stays False: pixel evidence refines fov/format but never
        establishes VR on its own.
        """
        stereo, _, _ = self.classify_format(frame)
        fov, _ = self.classify_fov(frame, stereo)

        if stereo == StereoFormat.SBS:
            description = f"{fov.value}° SBS stereo video detected from frame analysis"
        elif stereo == StereoFormat.TB:
            description = f"{fov.value}° TB stereo video detected from frame analysis"
        else:
            description = f"{fov.value}° panoramic video detected from frame analysis"

        return SubDetectionResult(is_vr=False, fov=fov, format=stereo,
                                  description=description)

    # =========================================================================
    # Provider protocol
    # =========================================================================

    async def _wait_for_metadata(self, provider: FrameProvider) -> bool:
        """Load metadata if needed. False on timeout or load error."""
        if provider.has_dimensions:
            return True

        loop = asyncio.get_running_loop()
        ready = loop.create_future()

        def on_ready(*_):
            if not ready.done():
                ready.set_result(True)

        def on_error(error=None, *_):
            if not ready.done():
                ready.set_exception(FrameProviderError(f"Video loading failed: {error}"))

        provider.subscribe(METADATA_READY, on_ready)
        provider.subscribe(LOAD_ERROR, on_error)
        timeout = self._get("metadata_timeout_s")
        try:
            provider.request_load()
            await asyncio.wait_for(ready, timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning(f"Video loading timeout ({timeout:g}s)")
            return False
        except FrameProviderError as e:
            logger.error(f"Failed to load video metadata: {e}")
            return False
        finally:
            provider.unsubscribe(METADATA_READY, on_ready)
            provider.unsubscribe(LOAD_ERROR, on_error)

    async def _seek(self, provider: FrameProvider, time_seconds: float) -> bool:
        loop = asyncio.get_running_loop()
        seeked = loop.create_future()

        def on_seeked(*_):
            if not seeked.done():
                seeked.set_result(True)

        provider.subscribe(SEEK_COMPLETED, on_seeked)
        timeout = self._get("seek_timeout_s")
        try:
            provider.seek_to(time_seconds)
            if timeout is None:
                await seeked
            else:
                await asyncio.wait_for(seeked, timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning(f"Seek to {time_seconds:.2f}s timed out ({timeout:g}s)")
            return False
        finally:
            provider.unsubscribe(SEEK_COMPLETED, on_seeked)

    async def detect(self, provider: Optional[FrameProvider]) -> Optional[SubDetectionResult]:
        """
        Sample the temporal midpoint of the provider's video.

        Returns:
            SubDetectionResult with fov/format, or None if no usable frame
            could be obtained. Never raises.
        """
        if provider is None:
            return None

        try:
            if not await self._wait_for_metadata(provider):
                return None

            width = provider.native_width
            height = provider.native_height
            if not width or not height:
                return None

            seek_time = (provider.duration_seconds or 0.0) / 2
            logger.debug(f"Seeking to time: {seek_time:.3f}, "
                         f"duration: {provider.duration_seconds}")
            if not await self._seek(provider, seek_time):
                return None

            frame = np.asarray(provider.read_current_frame_pixels())
            if frame.ndim != 3 or frame.shape[0] != height or frame.shape[1] != width:
                raise FrameProviderError(
                    f"Frame shape {frame.shape} doesn't match {width}x{height}"
                )

            result = self.analyze_pixels(frame)
            logger.info(f"Frame content analysis: {result.description}")
            return result

        except Exception:
            logger.exception("Error analyzing frame content")
            return None
