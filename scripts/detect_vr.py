#!/usr/bin/env python
# VRPlayer CLI Detection Script

"""
Command-line interface for VR format auto-detection.

Usage:
    python scripts/detect_vr.py video_360_sbs.mp4
    python scripts/detect_vr.py ~/Videos --output results.json
    python scripts/detect_vr.py clip.mp4 --save-frame clip_mid.png -v
    python scripts/detect_vr.py clip.mp4 --image still.png --config tuning.yaml
"""

import sys
import json
import asyncio
import argparse
from pathlib import Path
from typing import List, Optional

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import cv2
import numpy as np

from vr_player.core.detector import VRDetector
from vr_player.core.frame_loader import VideoFrameProvider
from vr_player.core.frame_provider import FrameProvider, FrameProviderError, StillFrameProvider
from vr_player.core.models import DetectionResult, VRMode
from vr_player.core.video_files import scan_video_files, is_supported_video, validate_video_file
from vr_player.utils import config
from vr_player.utils.logging import setup_logging, level_for_verbosity


def annotate_frame(frame_rgba: np.ndarray, result: DetectionResult) -> np.ndarray:
    """Draw the seam lines the analyzer samples plus the verdict, as BGR."""
    frame = cv2.cvtColor(frame_rgba, cv2.COLOR_RGBA2BGR)
    h, w = frame.shape[:2]

    cv2.line(frame, (w // 2, 0), (w // 2, h - 1), (0, 215, 255), 2)   # SBS seam
    cv2.line(frame, (0, h // 2), (w - 1, h // 2), (255, 191, 0), 2)   # TB seam

    label = f"{result.fov.value} {result.format.value.upper()} conf={result.confidence:.2f}"
    if not result.is_vr:
        label = "not VR - " + label
    cv2.putText(frame, label, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.8, (0, 255, 0), 2)
    return frame


async def detect_one(detector: VRDetector, video_path: Path, use_frame: bool,
                     image_path: Optional[Path] = None,
                     save_frame: Optional[Path] = None) -> DetectionResult:
    """Run detection on a single file, optionally with a still in place of decoding."""
    provider: Optional[FrameProvider] = None
    try:
        if image_path is not None:
            provider = StillFrameProvider.from_image_file(image_path)
        elif use_frame:
            provider = VideoFrameProvider(str(video_path))

        result = await detector.detect(str(video_path), provider)

        if save_frame is not None and provider is not None:
            try:
                frame = provider.read_current_frame_pixels()
            except FrameProviderError as e:
                print(f"Could not save frame: {e}")
            else:
                cv2.imwrite(str(save_frame), annotate_frame(frame, result))
                print(f"Saved analyzed frame to {save_frame}")

        return result
    finally:
        if isinstance(provider, VideoFrameProvider):
            provider.close()


async def detect_many(paths: List[Path], cfg: dict, use_frame: bool,
                      image_path: Optional[Path], save_frame: Optional[Path]) -> dict:
    detector = VRDetector(cfg)
    results = {}
    # Sequential on purpose: each provider is seeked exclusively
    for path in paths:
        result = await detect_one(detector, path, use_frame, image_path, save_frame)
        results[str(path)] = result
        print_result(path, result)
    return results


def print_result(path: Path, result: DetectionResult) -> None:
    """Print the verdict as the player would set up its projection for it."""
    mode = VRMode()
    mode.apply(result)
    if result.is_vr:
        methods = ", ".join(m.value for m in result.methods)
        print(f"{path.name}: VR {mode.label} "
              f"(confidence {result.confidence:.2f}; {methods})")
    else:
        print(f"{path.name}: not VR")


def collect_paths(target: Path) -> List[Path]:
    if target.is_dir():
        return [Path(info.path) for info in scan_video_files(target)]
    return [target]


def main():
    parser = argparse.ArgumentParser(description="VRPlayer VR format detection CLI")
    parser.add_argument("input", help="Video file or directory of videos")
    parser.add_argument("--output", "-o", default=None, help="Write results as JSON")
    parser.add_argument("--config", "-c", default=None, help="YAML file with config overrides")
    parser.add_argument("--no-frame", action="store_true",
                        help="Skip decoding; use the filename only")
    parser.add_argument("--image", default=None,
                        help="Analyze this still image instead of decoding the video (single file only)")
    parser.add_argument("--save-frame", default=None,
                        help="Save the analyzed frame with seam lines (single file only)")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="-v for info, -vv for per-pass scores")

    args = parser.parse_args()

    setup_logging(level=level_for_verbosity(args.verbose), log_file=args.log_file)

    target = Path(args.input)
    if not target.exists():
        print(f"Error: Input not found: {args.input}")
        return 1

    try:
        cfg = config.load_config_file(args.config) if args.config else config.get_config()
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    paths = collect_paths(target)
    if not paths:
        print(f"No supported videos in {target}")
        return 1

    if target.is_file() and not is_supported_video(target, cfg):
        print(f"Warning: {target.suffix} is not a supported video extension")

    for path in paths:
        if not validate_video_file(path, cfg):
            print(f"Warning: {path.name} looks truncated or unreadable")

    if args.save_frame and len(paths) > 1:
        print("Error: --save-frame needs a single input file")
        return 1

    # A still stands in for exactly one video
    if args.image and len(paths) > 1:
        print("Error: --image needs a single input file")
        return 1

    image_path = Path(args.image) if args.image else None
    save_frame = Path(args.save_frame) if args.save_frame else None

    results = asyncio.run(detect_many(paths, cfg, not args.no_frame, image_path, save_frame))

    if args.output:
        payload = {path: result.to_dict() for path, result in results.items()}
        with open(args.output, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        print(f"Results written to {args.output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
