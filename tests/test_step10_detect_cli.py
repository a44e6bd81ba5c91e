"""
Unit tests for STEP-10: detect_vr CLI

Drives main() with patched argv on throwaway files; no video is decoded.
"""

import json

import pytest
import cv2
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))
sys.path.insert(0, str(PROJECT_ROOT / "scripts"))

import detect_vr
from vr_player.core.models import DetectionMethod, DetectionResult, FieldOfView, StereoFormat


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Keep main() from reconfiguring pytest's root handlers."""
    monkeypatch.setattr(detect_vr, "setup_logging", lambda **kwargs: None)


@pytest.fixture
def still(tmp_path, sbs_frame):
    path = tmp_path / "sbs_still.png"
    cv2.imwrite(str(path), cv2.cvtColor(sbs_frame, cv2.COLOR_RGBA2BGR))
    return path


def write_dummy(path: Path, size: int = 2048) -> Path:
    path.write_bytes(b"\0" * size)
    return path


def run_cli(monkeypatch, *args) -> int:
    monkeypatch.setattr(sys, "argv", ["detect_vr.py", *map(str, args)])
    return detect_vr.main()


class TestImageOption:
    """Tests for --image."""

    def test_image_with_directory_rejected(self, tmp_path, monkeypatch, capsys, still):
        videos = tmp_path / "videos"
        videos.mkdir()
        write_dummy(videos / "a_vr.mp4")
        write_dummy(videos / "b_plain.mp4")
        output = tmp_path / "results.json"

        code = run_cli(monkeypatch, videos, "--image", still, "--output", output)

        assert code == 1
        assert "--image needs a single input file" in capsys.readouterr().out
        assert not output.exists()

    def test_image_with_single_file(self, tmp_path, monkeypatch, still):
        video = write_dummy(tmp_path / "c_360_sbs.mp4")
        output = tmp_path / "results.json"

        code = run_cli(monkeypatch, video, "--image", still, "--output", output)

        assert code == 0
        payload = json.loads(output.read_text(encoding="utf-8"))
        result = DetectionResult.from_dict(payload[str(video)])
        assert result.is_vr
        assert result.format == StereoFormat.SBS
        assert DetectionMethod.FRAME in result.methods
        assert DetectionMethod.RESOLUTION in result.methods


class TestSingleInputChecks:
    """Tests for argument validation."""

    def test_missing_input(self, tmp_path, monkeypatch, capsys):
        assert run_cli(monkeypatch, tmp_path / "nope.mp4") == 1
        assert "Input not found" in capsys.readouterr().out

    def test_save_frame_with_directory_rejected(self, tmp_path, monkeypatch, capsys):
        write_dummy(tmp_path / "a_vr.mp4")
        write_dummy(tmp_path / "b_vr.mp4")
        code = run_cli(monkeypatch, tmp_path, "--save-frame", tmp_path / "out.png")
        assert code == 1
        assert "--save-frame needs a single input file" in capsys.readouterr().out

    def test_filename_only(self, tmp_path, monkeypatch, capsys):
        video = write_dummy(tmp_path / "movie_360_tb.mp4")
        assert run_cli(monkeypatch, video, "--no-frame") == 0
        assert "movie_360_tb.mp4: VR 360° TB (confidence 0.40; filename)" in capsys.readouterr().out


class TestPrintResult:
    """Tests for the verdict line."""

    def test_vr_line_uses_mode_label(self, capsys):
        result = DetectionResult(is_vr=True, fov=FieldOfView.FOV_360,
                                 format=StereoFormat.SBS, confidence=0.7,
                                 methods=[DetectionMethod.FILENAME, DetectionMethod.FRAME])
        detect_vr.print_result(Path("x.mp4"), result)
        assert capsys.readouterr().out.strip() == \
            "x.mp4: VR 360° SBS (confidence 0.70; filename, frame)"

    def test_not_vr_line(self, capsys):
        detect_vr.print_result(Path("plain.mp4"), DetectionResult())
        assert capsys.readouterr().out.strip() == "plain.mp4: not VR"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
