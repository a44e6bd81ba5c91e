"""
Unit tests for STEP-03: FrameAnalyzer

Tests the seam and edge-continuity pixel passes and the async
load/seek/read protocol against scripted providers.
"""

import asyncio
import time

import pytest
import numpy as np
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from vr_player.core.frame_analyzer import (
    FrameAnalyzer, detect_sbs_score, detect_tb_score, detect_360_score, single_eye_region,
)
from vr_player.core.frame_provider import METADATA_READY, LOAD_ERROR, SEEK_COMPLETED
from vr_player.core.models import FieldOfView, StereoFormat
from vr_player.utils import config

from fakes import ScriptedProvider, horizontal_gradient


class TestSeamScores:
    """Tests for the SBS and TB seam passes."""

    def test_sbs_halves_score_high(self, sbs_frame):
        """Pixel-identical halves leave a seam on every sampled row."""
        assert detect_sbs_score(sbs_frame) == 1.0
        assert detect_tb_score(sbs_frame) == 0.0

    def test_tb_halves_score_high(self, tb_frame):
        assert detect_tb_score(tb_frame) == 1.0
        assert detect_sbs_score(tb_frame) == 0.0

    def test_smooth_frame_scores_zero(self, mono_frame):
        assert detect_sbs_score(mono_frame) == 0.0
        assert detect_tb_score(mono_frame) == 0.0

    def test_uniform_frame(self):
        frame = np.full((100, 100, 4), 128, dtype=np.uint8)
        assert detect_sbs_score(frame) == 0.0
        assert detect_tb_score(frame) == 0.0

    def test_partial_seam(self):
        """Seam on the top half of the rows only gives a ~0.5 score."""
        frame = np.zeros((100, 100, 4), dtype=np.uint8)
        frame[:50, 50:, :3] = 200
        score = detect_sbs_score(frame)
        assert 0.4 <= score <= 0.6

    def test_threshold_is_exclusive(self):
        """A summed difference of exactly the threshold is not a seam."""
        frame = np.zeros((100, 100, 4), dtype=np.uint8)
        frame[:, 50:, 0] = 20
        assert detect_sbs_score(frame, threshold=20) == 0.0
        assert detect_sbs_score(frame, threshold=19) == 1.0

    def test_no_uint8_wraparound(self):
        """Dark-to-bright and bright-to-dark seams count the same."""
        frame = np.zeros((100, 100, 4), dtype=np.uint8)
        frame[:, :50, :3] = 255
        assert detect_sbs_score(frame) == 1.0

    def test_alpha_ignored(self):
        frame = np.full((100, 100, 4), 100, dtype=np.uint8)
        frame[:, 50:, 3] = 0
        assert detect_sbs_score(frame) == 0.0

    def test_sample_count(self):
        """About 50 rows are sampled regardless of height."""
        frame = np.zeros((1000, 10, 4), dtype=np.uint8)
        frame[::20, 5:, :3] = 255  # Only sampled rows carry a seam
        assert detect_sbs_score(frame, samples=50) == 1.0

    def test_empty_frame(self):
        frame = np.zeros((0, 0, 4), dtype=np.uint8)
        assert detect_sbs_score(frame) == 0.0
        assert detect_tb_score(frame) == 0.0
        assert detect_360_score(frame) == 0.0


class Test360Score:
    """Tests for the edge-continuity pass."""

    def test_matching_edges(self, panorama_frame):
        assert detect_360_score(panorama_frame) == 1.0

    def test_mismatched_edges(self, mono_frame):
        assert detect_360_score(mono_frame) == 0.0

    def test_sbs_uses_left_eye(self, panorama_frame):
        """In SBS, edge continuity is checked inside the left eye only."""
        sbs = np.concatenate([panorama_frame, horizontal_gradient(200, 400)], axis=1)
        assert detect_360_score(sbs, StereoFormat.SBS) == 1.0
        # Across the full frame the edges don't match
        assert detect_360_score(sbs, StereoFormat.MONO) == 0.0

    def test_tb_uses_top_eye(self, panorama_frame):
        tb = np.concatenate([panorama_frame, horizontal_gradient(200, 400)], axis=0)
        assert detect_360_score(tb, StereoFormat.TB) == 1.0

    def test_single_eye_region(self):
        assert single_eye_region(4000, 2000, StereoFormat.SBS) == (2000, 2000)
        assert single_eye_region(4000, 2000, StereoFormat.TB) == (4000, 1000)
        assert single_eye_region(4000, 2000, StereoFormat.MONO) == (4000, 2000)


class TestAnalyzePixels:
    """Tests for the combined format + fov decision."""

    def test_sbs_verdict(self, sbs_frame):
        result = FrameAnalyzer().analyze_pixels(sbs_frame)
        assert result.format == StereoFormat.SBS
        assert result.fov == FieldOfView.FOV_180
        assert "SBS" in result.description

    def test_tb_360_verdict(self, tb_frame):
        """Row-constant halves: TB seam and matching edges."""
        result = FrameAnalyzer().analyze_pixels(tb_frame)
        assert result.format == StereoFormat.TB
        assert result.fov == FieldOfView.FOV_360

    def test_mono_360_verdict(self, panorama_frame):
        result = FrameAnalyzer().analyze_pixels(panorama_frame)
        assert result.format == StereoFormat.MONO
        assert result.fov == FieldOfView.FOV_360
        assert "panoramic" in result.description

    def test_mono_180_verdict(self, mono_frame):
        result = FrameAnalyzer().analyze_pixels(mono_frame)
        assert result.format == StereoFormat.MONO
        assert result.fov == FieldOfView.FOV_180

    def test_never_sets_is_vr(self, sbs_frame):
        assert FrameAnalyzer().analyze_pixels(sbs_frame).is_vr is False

    def test_sbs_wins_tie(self):
        """A frame split both ways resolves to SBS."""
        frame = np.zeros((100, 100, 4), dtype=np.uint8)
        frame[:50, :50, :3] = 255
        frame[50:, 50:, :3] = 255
        fmt, sbs_score, tb_score = FrameAnalyzer().classify_format(frame)
        assert sbs_score > 0.3 and tb_score > 0.3
        assert fmt == StereoFormat.SBS

    def test_custom_cutoff(self):
        frame = np.zeros((100, 100, 4), dtype=np.uint8)
        frame[:50, 50:, :3] = 200
        assert FrameAnalyzer().classify_format(frame)[0] == StereoFormat.SBS
        strict = FrameAnalyzer({"seam_score_cutoff": 0.9})
        assert strict.classify_format(frame)[0] == StereoFormat.MONO


class TestProviderProtocol:
    """Tests for the async load / seek / read sequence."""

    def test_reads_midpoint_frame(self, sbs_frame):
        provider = ScriptedProvider(sbs_frame, duration=42.0)
        result = asyncio.run(FrameAnalyzer().detect(provider))
        assert result.format == StereoFormat.SBS
        assert provider.seek_requests == [21.0]
        assert provider.load_requests == 0

    def test_waits_for_metadata(self, panorama_frame):
        provider = ScriptedProvider(panorama_frame, loaded=False)
        result = asyncio.run(FrameAnalyzer().detect(provider))
        assert provider.load_requests == 1
        assert result.fov == FieldOfView.FOV_360

    def test_listeners_detached(self, mono_frame):
        provider = ScriptedProvider(mono_frame, loaded=False)
        asyncio.run(FrameAnalyzer().detect(provider))
        for event in (METADATA_READY, LOAD_ERROR, SEEK_COMPLETED):
            assert provider.listener_count(event) == 0

    def test_metadata_timeout(self, mono_frame):
        """Metadata that never arrives resolves to None instead of hanging."""
        provider = ScriptedProvider(mono_frame, loaded=False, on_load="never")
        analyzer = FrameAnalyzer({"metadata_timeout_s": 0.05})

        start = time.monotonic()
        result = asyncio.run(analyzer.detect(provider))

        assert result is None
        assert time.monotonic() - start < 2.0
        assert provider.seek_requests == []
        assert provider.listener_count(METADATA_READY) == 0

    def test_default_metadata_timeout(self):
        assert config.get("metadata_timeout_s") == 10.0

    def test_load_error(self, mono_frame):
        provider = ScriptedProvider(mono_frame, loaded=False, on_load="error")
        assert asyncio.run(FrameAnalyzer().detect(provider)) is None

    def test_zero_dimensions(self):
        provider = ScriptedProvider(None, width=0, height=0)
        # Dimensions unknown and the load "succeeds" without providing them
        assert asyncio.run(FrameAnalyzer({"metadata_timeout_s": 0.05}).detect(provider)) is None
        assert provider.reads == 0

    def test_read_error(self, mono_frame):
        provider = ScriptedProvider(mono_frame, read_error=True)
        assert asyncio.run(FrameAnalyzer().detect(provider)) is None

    def test_shape_mismatch(self, mono_frame):
        provider = ScriptedProvider(mono_frame, width=800, height=400)
        assert asyncio.run(FrameAnalyzer().detect(provider)) is None

    def test_optional_seek_timeout(self, mono_frame):
        provider = ScriptedProvider(mono_frame, on_seek="never")
        analyzer = FrameAnalyzer({"seek_timeout_s": 0.05})
        assert asyncio.run(analyzer.detect(provider)) is None
        assert provider.listener_count(SEEK_COMPLETED) == 0

    def test_no_provider(self):
        assert asyncio.run(FrameAnalyzer().detect(None)) is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
