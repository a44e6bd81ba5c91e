# VRPlayer Video Files

"""
File-level helpers for the player: extension checks, file info and
directory scanning. OS errors are logged and reported as "no result".
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from vr_player.utils import config
from vr_player.utils.logging import get_logger

logger = get_logger(__name__)

_SIZE_UNITS = ["Bytes", "KB", "MB", "GB", "TB"]


@dataclass
class VideoFileInfo:
    path: str
    name: str
    size: int
    size_formatted: str
    extension: str
    last_modified: datetime
    is_supported: bool

    def to_dict(self):
        data = asdict(self)
        data["last_modified"] = self.last_modified.isoformat()
        return data


def _extensions(cfg: Optional[dict]) -> List[str]:
    cfg = cfg or config.CONFIG
    return [ext.lower() for ext in cfg.get("supported_extensions",
                                           config.CONFIG["supported_extensions"])]


def is_supported_video(file_path: Union[str, Path], cfg: Optional[dict] = None) -> bool:
    return Path(file_path).suffix.lower() in _extensions(cfg)


def format_file_size(size_bytes: int) -> str:
    """Human readable size with two decimals, e.g. 1536 -> '1.5 KB'."""
    if size_bytes <= 0:
        return "0 Bytes"

    idx = 0
    value = float(size_bytes)
    while value >= 1024 and idx < len(_SIZE_UNITS) - 1:
        value /= 1024
        idx += 1
    value = round(value, 2)
    # Drop trailing zeros: 1.50 -> 1.5, 2.00 -> 2
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[idx]}"


def get_video_info(file_path: Union[str, Path], cfg: Optional[dict] = None) -> Optional[VideoFileInfo]:
    path = Path(file_path)
    try:
        stats = path.stat()
    except OSError as e:
        logger.error(f"Error getting video info for {path}: {e}")
        return None

    return VideoFileInfo(
        path=str(path),
        name=path.name,
        size=stats.st_size,
        size_formatted=format_file_size(stats.st_size),
        extension=path.suffix.lower(),
        last_modified=datetime.fromtimestamp(stats.st_mtime),
        is_supported=is_supported_video(path, cfg),
    )


def scan_video_files(dir_path: Union[str, Path], cfg: Optional[dict] = None) -> List[VideoFileInfo]:
    """
    List supported videos directly inside dir_path, sorted by name.

    Subdirectories are not descended into.
    """
    directory = Path(dir_path)
    videos: List[VideoFileInfo] = []

    try:
        entries = list(directory.iterdir())
    except OSError as e:
        logger.error(f"Error scanning directory {directory}: {e}")
        return videos

    for entry in entries:
        if entry.is_file() and is_supported_video(entry, cfg):
            info = get_video_info(entry, cfg)
            if info is not None:
                videos.append(info)

    videos.sort(key=lambda v: v.name)
    return videos


def validate_video_file(file_path: Union[str, Path], cfg: Optional[dict] = None) -> bool:
    """True if the file exists, is readable and is not suspiciously small."""
    cfg = cfg or config.CONFIG
    min_size = cfg.get("min_valid_file_size", config.CONFIG["min_valid_file_size"])
    path = Path(file_path)

    try:
        if path.stat().st_size < min_size:
            return False
        with open(path, "rb"):
            pass
    except OSError as e:
        logger.error(f"Error validating video file {path}: {e}")
        return False

    return True
